"""
Intake service - stores a public form submission and hands it to the pipeline.
"""
import logging
import uuid
from typing import Any, Dict, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from leadcapture.core.exceptions import NotFoundError, ValidationError
from leadcapture.models.customer import Customer
from leadcapture.repositories.customer_repo import CustomerRepository
from leadcapture.repositories.form_repo import FormRepository
from leadcapture.services.supervisor import PipelineSupervisor

logger = logging.getLogger(__name__)

# Label variants forms use for contact fields
EMAIL_LABELS = ("Email", "email", "Email Address")
NAME_LABELS = ("Name", "name", "Full Name")
PHONE_LABELS = ("Phone", "phone", "Phone Number")


def _first(responses: Dict[str, Any], labels) -> Optional[str]:
    for label in labels:
        value = responses.get(label)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def extract_contact(responses: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Best-effort email/name/phone from known label variants."""
    email = _first(responses, EMAIL_LABELS)
    return {
        "email": email.lower() if email else None,
        "name": _first(responses, NAME_LABELS),
        "phone": _first(responses, PHONE_LABELS),
    }


class SubmissionIntake:
    """Persists submissions and schedules classification without waiting for it."""

    def __init__(self, session: AsyncSession, supervisor: PipelineSupervisor):
        self.session = session
        self.supervisor = supervisor
        self.customer_repo = CustomerRepository(session)
        self.form_repo = FormRepository(session)

    async def submit(
        self,
        form_id: uuid.UUID,
        responses: Dict[str, Any],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Customer:
        """
        Store a submission and schedule its pipeline.

        Raises:
            NotFoundError: unknown form.
            ValidationError: inactive form or empty responses.
        """
        if not responses:
            raise ValidationError("At least one response is required", "responses")

        form = await self.form_repo.get(form_id)
        if not form:
            raise NotFoundError("Form", str(form_id))
        if not form.is_active:
            raise ValidationError("This form is no longer accepting responses")

        cleaned = {str(label).strip(): value for label, value in responses.items()}
        contact = extract_contact(cleaned)

        customer = await self.customer_repo.create({
            "form_id": form.id,
            "owner_id": form.owner_id,
            "responses": cleaned,
            "ip_address": ip_address,
            "user_agent": user_agent,
            **contact
        })
        await self.form_repo.increment_submissions(form.id)

        # Fire and forget; the supervisor tracks the outcome
        self.supervisor.submit(customer.id)
        logger.info(f"Stored submission {customer.id} for form {form.id}")
        return customer
