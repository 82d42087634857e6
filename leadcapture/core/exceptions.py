"""
Custom exceptions for the Lead Capture service.
Pipeline code raises these; the HTTP helpers below translate them at the API boundary.
"""
from fastapi import HTTPException, status


class LeadCaptureException(Exception):
    """Base exception for Lead Capture"""
    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(LeadCaptureException):
    """Resource not found"""
    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class ConflictError(LeadCaptureException):
    """Resource already exists"""
    def __init__(self, resource: str = "Resource", field: str = None, value: str = None):
        if field and value:
            message = f"{resource} with {field} '{value}' already exists"
        else:
            message = f"{resource} already exists"
        super().__init__(message)


class ValidationError(LeadCaptureException):
    """Validation failed"""
    def __init__(self, message: str = "Validation failed", field: str = None):
        if field:
            message = f"Validation failed for field '{field}': {message}"
        super().__init__(message)


class ExternalServiceError(LeadCaptureException):
    """External service call failed"""
    def __init__(self, service: str = "External service", message: str = None):
        msg = f"{service} call failed"
        if message:
            msg = f"{msg}: {message}"
        super().__init__(msg)


class OracleError(ExternalServiceError):
    """Scoring or generation backend failed or returned unusable output"""
    def __init__(self, message: str = None):
        super().__init__("Oracle", message)


class TransportError(ExternalServiceError):
    """Mail transport could not deliver"""
    def __init__(self, message: str = None):
        super().__init__("Mail transport", message)


# HTTP Exception helpers
def raise_not_found(resource: str = "Resource", resource_id: str = None):
    """Raise 404 HTTPException"""
    err = NotFoundError(resource, resource_id)
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=err.message)


def raise_validation_error(message: str = "Validation failed", field: str = None):
    """Raise 422 HTTPException"""
    err = ValidationError(message, field)
    raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=err.message)


def raise_bad_gateway(message: str = "Upstream service failed"):
    """Raise 502 HTTPException"""
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=message)
