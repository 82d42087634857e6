"""
Pipeline service - runs one submission through classification, lead creation and auto-response.
Runs detached from the request that stored the submission; process() never raises.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from leadcapture.config import Settings
from leadcapture.core.exceptions import ConflictError, NotFoundError
from leadcapture.repositories.customer_repo import CustomerRepository
from leadcapture.repositories.form_repo import FormRepository
from leadcapture.repositories.lead_repo import LeadRepository
from leadcapture.repositories.owner_repo import OwnerRepository
from leadcapture.schemas.email import DeliveryOutcome
from leadcapture.schemas.pipeline import PipelineResult, PipelineState, TERMINAL_STATES
from leadcapture.services.classification_service import ClassificationEngine
from leadcapture.services.email_service import Dispatcher, EmailComposer
from leadcapture.services.integrations.base import MailTransport, Oracle
from leadcapture.services.integrations.email import build_mail_transport
from leadcapture.services.integrations.oracle import build_oracle

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """
    Received -> Classifying -> Classified -> {EmailSkipped | EmailSending -> EmailSent/EmailFailed} -> Completed.

    Failed is only reachable before the lead exists. Once a lead is stored the run
    always completes, whatever happens to the email.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        classifier: ClassificationEngine,
        dispatcher: Dispatcher
    ):
        self.session_factory = session_factory
        self.classifier = classifier
        self.dispatcher = dispatcher

    async def process(self, customer_id: uuid.UUID) -> PipelineResult:
        result = PipelineResult(customer_id=customer_id)
        logger.info(f"Processing customer {customer_id}...")

        try:
            async with self.session_factory() as session:
                await self._run(session, result)
        except Exception as e:
            logger.exception(f"Pipeline for customer {customer_id} crashed")
            if result.state in TERMINAL_STATES:
                result.error = result.error or str(e)
            elif result.lead_id is None:
                result.fail(str(e))
            else:
                result.error = str(e)
                result.advance(PipelineState.COMPLETED)

        return result

    async def _run(self, session: AsyncSession, result: PipelineResult) -> None:
        customers = CustomerRepository(session)
        forms = FormRepository(session)
        owners = OwnerRepository(session)
        leads = LeadRepository(session)
        customer_id = result.customer_id

        # Step 1: Load and classify
        result.advance(PipelineState.CLASSIFYING)
        try:
            customer = await customers.get(customer_id)
            if not customer:
                raise NotFoundError("Customer", str(customer_id))
            form = await forms.get(customer.form_id)
            if not form:
                raise NotFoundError("Form", str(customer.form_id))
            owner = await owners.get(customer.owner_id)
            if not owner:
                raise NotFoundError("Owner", str(customer.owner_id))
            form_config = form.config()

            classification = await self.classifier.classify(customer, form_config, owner)
        except Exception as e:
            await self._abort(session, customers, result, e)
            return

        # Step 2: Create the lead; the unique customer_id decides concurrent runs
        try:
            lead = await leads.create_from_classification(
                customer.id, owner.id, form.id, classification
            )
        except ConflictError:
            logger.info(f"Lead for customer {customer_id} already exists, skipping duplicate run")
            result.advance(PipelineState.DUPLICATE)
            return
        except Exception as e:
            await self._abort(session, customers, result, e)
            return

        result.lead_id = lead.id
        result.classification = lead.classification
        result.advance(PipelineState.CLASSIFIED)
        logger.info(f"Created lead {lead.id} ({lead.classification}) for customer {customer_id}")

        # Step 3: Auto-response, best effort
        if not self.dispatcher.should_send(customer, form_config):
            logger.info(f"Auto-response skipped for customer {customer_id}")
            result.advance(PipelineState.EMAIL_SKIPPED)
        else:
            result.advance(PipelineState.EMAIL_SENDING)
            try:
                await self._send_email(leads, result, lead, customer, form_config, owner)
            except Exception as e:
                logger.exception(f"Recording email outcome failed for customer {customer_id}")
                await session.rollback()
                result.error = str(e)
                if result.state == PipelineState.EMAIL_SENDING:
                    result.advance(PipelineState.EMAIL_FAILED)

        # Step 4: Mark processed
        await customers.mark_processed(customer_id)
        result.advance(PipelineState.COMPLETED)
        logger.info(f"Processing complete for customer {customer_id}")

    async def _send_email(self, leads, result, lead, customer, form_config, owner) -> None:
        try:
            delivery = await self.dispatcher.send_personalized(lead, customer, form_config, owner)
        except Exception as e:
            # Composition failed; the lead stays
            logger.warning(f"Could not compose email for customer {customer.id}: {e}")
            result.delivery = DeliveryOutcome(success=False, error=str(e))
            result.advance(PipelineState.EMAIL_FAILED)
            await leads.record_email_error(lead.id, str(e))
            return

        result.delivery = delivery.outcome
        if delivery.outcome.success:
            logger.info(f"Email sent to customer {customer.id}")
            result.advance(PipelineState.EMAIL_SENT)
        else:
            logger.warning(f"Email failed for customer {customer.id}: {delivery.outcome.error}")
            result.advance(PipelineState.EMAIL_FAILED)
        await leads.record_email(lead.id, delivery)

    async def _abort(
        self,
        session: AsyncSession,
        customers: CustomerRepository,
        result: PipelineResult,
        error: Exception
    ) -> None:
        message = getattr(error, "message", None) or str(error) or error.__class__.__name__
        logger.error(f"Pipeline failed for customer {result.customer_id}: {message}")
        result.fail(message)

        await session.rollback()
        await customers.record_error(result.customer_id, message)


def build_orchestrator(
    config: Settings,
    session_factory: sessionmaker,
    oracle: Optional[Oracle] = None,
    transport: Optional[MailTransport] = None
) -> PipelineOrchestrator:
    """Wire the pipeline from settings. Explicit oracle/transport override the configured ones."""
    oracle = oracle or build_oracle(config)
    transport = transport or build_mail_transport(config)
    classifier = ClassificationEngine(oracle, config)
    dispatcher = Dispatcher(transport, EmailComposer(oracle))
    return PipelineOrchestrator(session_factory, classifier, dispatcher)
