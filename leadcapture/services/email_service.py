"""
Email service - composes and dispatches the auto-response for a new lead.
Composition uses a configured template when one exists, otherwise the oracle writes it.
"""
import json
import logging
import re
from datetime import datetime, timezone
from typing import Optional

from leadcapture.core.exceptions import OracleError
from leadcapture.models.customer import Customer
from leadcapture.models.lead import Lead
from leadcapture.models.owner import Owner
from leadcapture.schemas.email import DeliveryOutcome, EmailContent, PersonalizedDelivery
from leadcapture.schemas.form import FormConfig
from leadcapture.services.integrations.base import MailTransport, Oracle

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")

TONE_GUIDELINES = {
    "hot": "enthusiastic, direct, action-oriented with a sense of urgency",
    "normal": "friendly, informative, helpful without being pushy",
    "cold": "educational, nurturing, value-focused without pressure",
}

CALL_TO_ACTION = {
    "hot": "Include clear call-to-action (schedule call, book demo, etc.)",
    "normal": "Provide helpful information and soft call-to-action",
    "cold": "Focus on education and building trust, gentle nurture approach",
}


class EmailComposer:
    """Builds the subject/body for a lead's auto-response."""

    def __init__(self, oracle: Oracle):
        self.oracle = oracle

    async def compose(
        self,
        lead: Lead,
        customer: Customer,
        form_config: FormConfig,
        owner: Owner
    ) -> EmailContent:
        """
        Template path if the form has a template for this classification,
        generation path otherwise. Never both.
        """
        template = form_config.email_settings.template_for(lead.classification)
        if template:
            logger.debug(f"Using {lead.classification} template for lead {lead.id}")
            return self.render_template(template, lead, customer, owner)

        return await self.generate(lead, customer, owner)

    def render_template(
        self,
        template: str,
        lead: Lead,
        customer: Customer,
        owner: Owner
    ) -> EmailContent:
        """Substitute {{tokens}}; anything unrecognized renders as an empty string."""
        responses = customer.responses or {}
        values = {
            "businessName": owner.business_name or "",
            "customerName": customer.name or "there",
            "classification": lead.classification,
        }

        def replace(match: re.Match) -> str:
            token = match.group(1)
            if token.startswith("response:"):
                value = responses.get(token[len("response:"):].strip())
                return "" if value is None else str(value)
            return values.get(token, "")

        return EmailContent(
            subject=f"Thank you for your interest - {owner.business_name}",
            body=TOKEN_PATTERN.sub(replace, template),
        )

    async def generate(self, lead: Lead, customer: Customer, owner: Owner) -> EmailContent:
        """
        Ask the oracle for a personalized email.

        Raises:
            OracleError: the oracle failed or left out subject/body.
        """
        content = await self.oracle.generate_structured(
            self.build_system_prompt(owner, lead.classification),
            self.build_user_prompt(lead, customer),
        )
        if not isinstance(content, dict) or not content.get("subject") or not content.get("body"):
            raise OracleError("email response is missing subject or body")

        return EmailContent(subject=content["subject"], body=content["body"])

    def build_system_prompt(self, owner: Owner, classification: str) -> str:
        return f"""You are writing a personalized email on behalf of {owner.business_name}.

Business Context:
{owner.business_description or 'Professional service provider'}

Lead Classification: {classification.upper()}
Email Tone: {TONE_GUIDELINES[classification]}

Email Guidelines:
- Keep it concise (150-250 words)
- Personalize based on their specific responses
- {CALL_TO_ACTION[classification]}
- Use a conversational, professional tone
- Address their specific pain points or interests
- Make it feel human, not robotic
- Include relevant next steps

Response Format (JSON only):
{{
  "subject": "Email subject line (under 60 chars)",
  "body": "Email body in HTML format with proper formatting"
}}"""

    def build_user_prompt(self, lead: Lead, customer: Customer) -> str:
        return f"""Lead Information:
- Classification: {lead.classification.upper()}
- Confidence Score: {lead.confidence_score}
- Key Insights: {json.dumps(lead.insights or {}, indent=2)}
- Reasoning: {lead.reasoning}

Customer Responses:
{json.dumps(customer.responses or {}, indent=2, default=str)}

Generate a personalized email for this lead."""


class Dispatcher:
    """Sends composed emails. Never raises; failures come back in the outcome."""

    def __init__(self, transport: MailTransport, composer: EmailComposer):
        self.transport = transport
        self.composer = composer

    async def send(self, to: str, subject: str, body: str) -> DeliveryOutcome:
        try:
            message_id = await self.transport.send_email(to, subject, body)
        except Exception as e:
            logger.warning(f"Email to {to} failed: {e}")
            return DeliveryOutcome(success=False, error=str(e))

        return DeliveryOutcome(success=True, message_id=message_id, sent_at=datetime.now(timezone.utc))

    def should_send(self, customer: Customer, form_config: FormConfig) -> bool:
        """Auto-response needs a contact email and the form setting switched on."""
        return bool(customer.email) and form_config.email_settings.send_auto_response

    async def send_personalized(
        self,
        lead: Lead,
        customer: Customer,
        form_config: FormConfig,
        owner: Owner
    ) -> Optional[PersonalizedDelivery]:
        """
        Compose and send the auto-response.

        Returns None when the customer left no email or the form has auto-response off.
        Composition errors propagate; delivery errors do not.
        """
        if not self.should_send(customer, form_config):
            return None

        content = await self.composer.compose(lead, customer, form_config, owner)
        outcome = await self.send(customer.email, content.subject, content.body)
        return PersonalizedDelivery(content=content, outcome=outcome)
