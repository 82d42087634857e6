"""
Customers API routes.
Public form submission plus read access to stored submissions.
"""
import uuid
from fastapi import APIRouter, Depends, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from leadcapture.database import get_session
from leadcapture.core.exceptions import (
    NotFoundError, ValidationError, raise_not_found, raise_validation_error
)
from leadcapture.api.deps import get_supervisor, get_client_info
from leadcapture.repositories.customer_repo import CustomerRepository
from leadcapture.repositories.lead_repo import LeadRepository
from leadcapture.schemas.customer import (
    SubmissionCreate, SubmissionResponse, CustomerDetailResponse, CustomerResponse
)
from leadcapture.schemas.lead import LeadResponse
from leadcapture.services.intake_service import SubmissionIntake
from leadcapture.services.supervisor import PipelineSupervisor

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.post("/submit", response_model=SubmissionResponse, status_code=201)
async def submit_form(
    submission: SubmissionCreate,
    request: Request,
    session: AsyncSession = Depends(get_session),
    supervisor: PipelineSupervisor = Depends(get_supervisor)
):
    """Submit a form. Classification and follow-up happen in the background."""
    intake = SubmissionIntake(session, supervisor)
    try:
        customer = await intake.submit(
            submission.form_id,
            submission.responses,
            **get_client_info(request)
        )
    except NotFoundError:
        raise_not_found("Form", str(submission.form_id))
    except ValidationError as e:
        raise_validation_error(e.message)

    return SubmissionResponse(
        message="Form submitted successfully! We will get back to you soon.",
        customer_id=customer.id
    )


@router.get("/{customer_id}", response_model=CustomerDetailResponse)
async def get_customer(
    customer_id: uuid.UUID,
    session: AsyncSession = Depends(get_session)
):
    """Get a submission and its lead, if it has been classified."""
    customer = await CustomerRepository(session).get(customer_id)
    if not customer:
        raise_not_found("Customer", str(customer_id))

    lead = await LeadRepository(session).get_by_customer(customer_id)
    return CustomerDetailResponse(
        customer=CustomerResponse.model_validate(customer),
        lead=LeadResponse.model_validate(lead) if lead else None
    )
