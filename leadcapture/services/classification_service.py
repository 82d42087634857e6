"""
Classification service - scores a submission's buying intent.
The oracle proposes; the final label is always recomputed from the clamped score.
"""
import json
import logging
import math
from typing import Any, Dict, List, Optional

from leadcapture.config import Settings, settings as default_settings
from leadcapture.core.exceptions import OracleError
from leadcapture.models.customer import Customer
from leadcapture.models.lead import Lead
from leadcapture.models.owner import Owner
from leadcapture.schemas.classification import ClassificationResult, LeadClassification, LeadInsights
from leadcapture.schemas.form import FormConfig
from leadcapture.services.integrations.base import Oracle

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 0.5

DEFAULT_INDICATORS = {
    "hot": [
        "High budget/purchasing power",
        "Immediate timeline (within 1-4 weeks)",
        "Decision-making authority",
        "Clear, urgent pain points",
        "Strong product/service fit",
    ],
    "normal": [
        "Moderate budget",
        "Short to medium timeline (1-3 months)",
        "Some influence in decision",
        "Defined needs but not urgent",
        "Good product/service fit",
    ],
    "cold": [
        "Limited budget or unspecified",
        "Long timeline (3+ months) or just browsing",
        "No decision-making power",
        "Vague or unclear needs",
        "Weak product/service fit",
    ],
}


class ClassificationEngine:
    """Builds the scoring prompt, calls the oracle and normalizes its answer."""

    def __init__(
        self,
        oracle: Oracle,
        config: Optional[Settings] = None,
        hot_threshold: Optional[float] = None,
        cold_threshold: Optional[float] = None
    ):
        config = config or default_settings
        self.oracle = oracle
        self.hot_threshold = config.HOT_LEAD_THRESHOLD if hot_threshold is None else hot_threshold
        self.cold_threshold = config.COLD_LEAD_THRESHOLD if cold_threshold is None else cold_threshold

    async def classify(
        self,
        customer: Customer,
        form_config: FormConfig,
        owner: Owner
    ) -> ClassificationResult:
        """
        Classify a submission.

        Raises:
            OracleError: the oracle failed or its answer was not a JSON object.
        """
        system_prompt = self.build_system_prompt(owner, form_config)
        user_prompt = self.build_user_prompt(customer, form_config)

        raw = await self.oracle.generate_structured(system_prompt, user_prompt)
        if not isinstance(raw, dict):
            raise OracleError("classification response is not a JSON object")

        result = self.normalize(raw)
        logger.info(
            f"Classified customer {customer.id} as {result.classification.value} "
            f"(score {result.confidence_score:.2f})"
        )
        return result

    async def reclassify(
        self,
        lead: Lead,
        customer: Customer,
        form_config: FormConfig,
        owner: Owner
    ) -> ClassificationResult:
        """Re-run classification for an existing lead (manual review)."""
        logger.info(f"Reclassifying lead {lead.id} (was {lead.classification})")
        return await self.classify(customer, form_config, owner)

    def build_system_prompt(self, owner: Owner, form_config: FormConfig) -> str:
        criteria = form_config.classification_criteria

        def indicators(band: str) -> str:
            items = getattr(criteria, f"{band}_indicators") or DEFAULT_INDICATORS[band]
            return "\n".join(f"- {item}" for item in items)

        return f"""You are an expert lead qualification assistant for {owner.business_name}, a business in the {owner.industry or 'various'} industry.

Business Context:
{owner.business_description or 'No additional context provided'}

Your task is to analyze customer form submissions and classify them as HOT, NORMAL, or COLD leads.

Classification Criteria:

HOT LEADS - High Priority (Score: {self.hot_threshold}-1.0):
{indicators("hot")}

NORMAL LEADS - Medium Priority (Score: {self.cold_threshold}-{self.hot_threshold}):
{indicators("normal")}

COLD LEADS - Low Priority (Score: 0-{self.cold_threshold}):
{indicators("cold")}

Response Format (JSON only):
{{
  "classification": "hot" | "normal" | "cold",
  "confidenceScore": 0.0-1.0,
  "reasoning": "Brief explanation of classification",
  "insights": {{
    "budget": "high" | "medium" | "low" | "unknown",
    "timeline": "immediate" | "short-term" | "long-term" | "unknown",
    "decisionMaker": true | false,
    "painPoints": ["pain point 1", "pain point 2"],
    "interests": ["interest 1", "interest 2"],
    "urgency": "immediate" | "short-term" | "long-term" | "unknown"
  }},
  "keyFactors": ["factor 1", "factor 2", "factor 3"]
}}"""

    def build_user_prompt(self, customer: Customer, form_config: FormConfig) -> str:
        lines = ["Customer Form Responses:", ""]
        for field in form_config.fields:
            value = customer.get_response(field.label) or "Not provided"
            lines.append(f"{field.label} [Weight: {field.classification_weight}]:")
            lines.append(value)
            lines.append("")

        lines.append("Please analyze these responses and provide a classification with detailed insights.")
        return "\n".join(lines)

    def label_for(self, score: float) -> LeadClassification:
        """Threshold rule: >= hot is hot, <= cold is cold, anything between is normal."""
        if score >= self.hot_threshold:
            return LeadClassification.HOT
        if score <= self.cold_threshold:
            return LeadClassification.COLD
        return LeadClassification.NORMAL

    def normalize(self, raw: Dict[str, Any]) -> ClassificationResult:
        """Clamp the score, derive the label and fill in missing insights/reasoning."""
        score = _clamp(_pick(raw, "confidenceScore", "confidence_score"))
        label = self.label_for(score)

        proposed = raw.get("classification")
        if proposed and proposed != label.value:
            logger.debug(f"Oracle proposed '{proposed}', threshold rule gives '{label.value}'")

        reasoning = raw.get("reasoning")
        if not isinstance(reasoning, str) or not reasoning.strip():
            reasoning = f"Lead classified as {label.value.upper()} based on form responses."

        return ClassificationResult(
            classification=label,
            confidence_score=score,
            reasoning=reasoning,
            insights=_insights(raw.get("insights")),
            key_factors=_strings(_pick(raw, "keyFactors", "key_factors")),
        )


def _pick(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _clamp(value: Any) -> float:
    try:
        score = float(value) if value is not None else DEFAULT_SCORE
    except (TypeError, ValueError):
        score = DEFAULT_SCORE
    if math.isnan(score):
        score = DEFAULT_SCORE
    return max(0.0, min(1.0, score))


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else json.dumps(item) for item in value]


def _insights(value: Any) -> LeadInsights:
    if not isinstance(value, dict):
        return LeadInsights()

    defaults = LeadInsights()
    decision_maker = _pick(value, "decisionMaker", "decision_maker")
    if isinstance(decision_maker, str):
        decision_maker = decision_maker.strip().lower() in ("true", "yes")
    return LeadInsights(
        budget=str(value.get("budget") or defaults.budget),
        timeline=str(value.get("timeline") or defaults.timeline),
        decision_maker=bool(decision_maker) if decision_maker is not None else defaults.decision_maker,
        pain_points=_strings(_pick(value, "painPoints", "pain_points")),
        interests=_strings(value.get("interests")),
        urgency=str(value.get("urgency") or defaults.urgency),
    )
