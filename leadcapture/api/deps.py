"""
API dependencies - shared across all routes.
Pipeline services are built once in the app lifespan and live on app.state.
"""
from fastapi import Request

from leadcapture.services.classification_service import ClassificationEngine
from leadcapture.services.supervisor import PipelineSupervisor


def get_supervisor(request: Request) -> PipelineSupervisor:
    """Supervisor that runs detached submission pipelines."""
    return request.app.state.supervisor


def get_classifier(request: Request) -> ClassificationEngine:
    """Classifier shared with the pipeline (for manual reclassification)."""
    return request.app.state.orchestrator.classifier


def get_client_info(request: Request) -> dict:
    """Extract client info from request."""
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent")
    }
