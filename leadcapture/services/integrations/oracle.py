"""
Oracle implementations.
HeuristicOracle runs offline and deterministically; OpenAIOracle and GeminiOracle call remote models.
"""
import asyncio
import logging
import re
from typing import Dict, Any, List, Optional, Tuple

from leadcapture.config import Settings, settings as default_settings
from leadcapture.core.exceptions import OracleError
from leadcapture.services.integrations.base import Oracle, parse_structured

logger = logging.getLogger(__name__)


class HeuristicOracle(Oracle):
    """
    Keyword-based oracle for development and tests.
    No API key required; identical prompts always produce identical output.
    """

    URGENT_TERMS = ("urgent", "asap", "immediately", "immediate", "right away", "this week", "today")
    TIMELINE_TERMS = ("timeline", "deadline", "next month", "this month", "weeks", "quarter")
    LOW_INTENT_TERMS = (
        "just browsing", "just looking", "researching", "no budget", "not sure",
        "maybe later", "next year", "someday", "curious"
    )
    DECISION_TERMS = ("owner", "founder", "ceo", "director", "i decide", "decision maker", "head of")
    PAIN_TERMS = ("need", "problem", "struggle", "issue", "pain", "slow", "broken")
    BUDGET_PATTERN = re.compile(r"\$\s?\d|\bbudget\b|\b\d+\s?k\b", re.IGNORECASE)
    FIELD_PATTERN = re.compile(r"^(?P<label>.+?) \[Weight: (?P<weight>\w+)\]:\n(?P<value>.*)$", re.MULTILINE)
    WEIGHT_FACTORS = {"high": 1.0, "medium": 0.6, "low": 0.3, "none": 0.0}

    async def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 2000
    ) -> str:
        if "connection" in user_prompt.lower():
            return "Connection successful!"
        return "This is a heuristic response. The offline oracle is working correctly."

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str
    ) -> Dict[str, Any]:
        if "lead qualification" in system_prompt:
            return self._classify(user_prompt)
        if "email" in system_prompt.lower():
            return self._write_email(system_prompt)
        return {"message": "Heuristic structured response", "success": True}

    def _responses(self, user_prompt: str) -> List[Tuple[str, float, str]]:
        """(label, weight factor, value) for each field in the prompt."""
        found = []
        for match in self.FIELD_PATTERN.finditer(user_prompt):
            factor = self.WEIGHT_FACTORS.get(match.group("weight").lower(), 0.6)
            found.append((match.group("label"), factor, match.group("value").strip()))
        if not found:
            found.append(("response", 1.0, user_prompt))
        return found

    def _classify(self, user_prompt: str) -> Dict[str, Any]:
        score = 0.5
        urgent = budget = timeline = low_intent = decision_maker = False
        pain_points: List[str] = []
        interests: List[str] = []

        for label, factor, value in self._responses(user_prompt):
            text = value.lower()
            if not factor or not text or text == "not provided":
                continue
            if any(term in text for term in self.URGENT_TERMS):
                score += 0.2 * factor
                urgent = True
            if self.BUDGET_PATTERN.search(text):
                score += 0.15 * factor
                budget = True
            if any(term in text for term in self.TIMELINE_TERMS):
                score += 0.1 * factor
                timeline = True
            if any(term in text for term in self.LOW_INTENT_TERMS):
                score -= 0.25 * factor
                low_intent = True
            if any(term in text for term in self.DECISION_TERMS):
                decision_maker = True
            if any(term in text for term in self.PAIN_TERMS) and len(pain_points) < 3:
                pain_points.append(value[:120])
            if factor >= 0.6 and len(interests) < 3:
                interests.append(label)

        score = round(max(0.0, min(1.0, score)), 2)
        if score >= 0.7:
            classification, band, horizon = "hot", "high", "immediate"
        elif score <= 0.3:
            classification, band, horizon = "cold", "low", "long-term"
        else:
            classification, band, horizon = "normal", "medium", "short-term"

        key_factors = [
            name for name, hit in (
                ("Urgency signals", urgent),
                ("Budget signals", budget),
                ("Timeline indication", timeline),
                ("Low-intent language", low_intent),
                ("Decision-maker language", decision_maker),
            ) if hit
        ] or ["Response completeness"]

        return {
            "classification": classification,
            "confidenceScore": score,
            "reasoning": (
                f"Heuristic analysis: lead looks {classification.upper()} "
                f"based on {', '.join(key_factors).lower()}."
            ),
            "insights": {
                "budget": band if budget else "unknown",
                "timeline": horizon if (timeline or urgent) else "unknown",
                "decisionMaker": decision_maker,
                "painPoints": pain_points,
                "interests": interests,
                "urgency": "immediate" if urgent else ("long-term" if low_intent else horizon),
            },
            "keyFactors": key_factors,
        }

    def _write_email(self, system_prompt: str) -> Dict[str, Any]:
        if "Lead Classification: HOT" in system_prompt:
            return {
                "subject": "Let's schedule a quick call",
                "body": (
                    "<p>Hi there!</p>"
                    "<p>Thanks for reaching out. Based on your answers we could be a great fit, "
                    "and I'd love to set up a 15-minute call this week.</p>"
                    "<p><strong>Does tomorrow or Thursday work for you?</strong></p>"
                    "<p>Best regards,<br>The Team</p>"
                ),
            }
        if "Lead Classification: COLD" in system_prompt:
            return {
                "subject": "Thanks for your interest - a few resources",
                "body": (
                    "<p>Hi there!</p>"
                    "<p>Thanks for filling out our form. Here are a few resources to explore at your own pace:</p>"
                    "<ul><li>Getting started guide</li><li>Customer stories</li><li>FAQ</li></ul>"
                    "<p>Best regards,<br>The Team</p>"
                ),
            }
        return {
            "subject": "Thanks for reaching out - let's connect",
            "body": (
                "<p>Hi there!</p>"
                "<p>Thank you for your interest. I reviewed your responses and think we can help.</p>"
                "<p>Would you be open to a brief conversation sometime this week?</p>"
                "<p>Best regards,<br>The Team</p>"
            ),
        }


class RemoteOracle(Oracle):
    """
    Shared plumbing for SDK-backed oracles.
    SDK calls are blocking, so they run in the default executor.
    """
    provider = "remote"

    def __init__(self, config: Settings):
        self.model = config.AI_MODEL
        self.max_tokens = config.ORACLE_MAX_TOKENS
        self.temperature = config.ORACLE_TEMPERATURE
        self.max_retries = max(0, config.ORACLE_MAX_RETRIES)
        self.retry_delay = config.ORACLE_RETRY_DELAY

    def _complete(self, system_prompt: str, user_prompt: str, max_tokens: int, json_mode: bool) -> str:
        raise NotImplementedError

    async def _run(self, system_prompt: str, user_prompt: str, max_tokens: int, json_mode: bool) -> str:
        loop = asyncio.get_running_loop()

        # Only rate limits are retried, and only when ORACLE_MAX_RETRIES > 0
        for attempt in range(self.max_retries + 1):
            try:
                return await loop.run_in_executor(
                    None, self._complete, system_prompt, user_prompt, max_tokens, json_mode
                )
            except Exception as e:
                is_rate_limit = "429" in str(e) or "quota" in str(e).lower() or "rate limit" in str(e).lower()
                if is_rate_limit and attempt < self.max_retries:
                    logger.warning(
                        f"{self.provider} rate limit hit. Waiting {self.retry_delay}s... "
                        f"(Attempt {attempt + 1}/{self.max_retries + 1})"
                    )
                    await asyncio.sleep(self.retry_delay)
                    continue
                logger.error(f"{self.provider} generation failed: {e}")
                raise OracleError(str(e)) from e

    async def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 2000
    ) -> str:
        return await self._run(system_prompt, user_prompt, max_tokens, json_mode=False)

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str
    ) -> Dict[str, Any]:
        text = await self._run(system_prompt, user_prompt, self.max_tokens, json_mode=True)
        return parse_structured(text)


class OpenAIOracle(RemoteOracle):
    provider = "openai"

    def __init__(self, config: Settings):
        from openai import OpenAI

        super().__init__(config)
        self.client = OpenAI(api_key=config.OPENAI_API_KEY)

    def _complete(self, system_prompt: str, user_prompt: str, max_tokens: int, json_mode: bool) -> str:
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=max_tokens,
            temperature=self.temperature,
            **kwargs
        )
        return response.choices[0].message.content


class GeminiOracle(RemoteOracle):
    provider = "gemini"

    def __init__(self, config: Settings):
        import google.generativeai as genai

        super().__init__(config)
        genai.configure(api_key=config.GEMINI_API_KEY)
        self._genai = genai

    def _complete(self, system_prompt: str, user_prompt: str, max_tokens: int, json_mode: bool) -> str:
        model = self._genai.GenerativeModel(self.model, system_instruction=system_prompt)
        generation_config = {"max_output_tokens": max_tokens, "temperature": self.temperature}
        if json_mode:
            generation_config["response_mime_type"] = "application/json"
        response = model.generate_content(user_prompt, generation_config=generation_config)
        return response.text


def build_oracle(config: Optional[Settings] = None) -> Oracle:
    """
    Pick the oracle variant from ORACLE_PROVIDER.
    Remote providers without a key fall back to the heuristic oracle.
    """
    config = config or default_settings
    provider = (config.ORACLE_PROVIDER or "heuristic").lower()

    if provider == "openai":
        if config.OPENAI_API_KEY:
            logger.info("Oracle initialized with OpenAI")
            return OpenAIOracle(config)
        logger.warning("OPENAI_API_KEY not configured, using heuristic oracle")
    elif provider == "gemini":
        if config.GEMINI_API_KEY:
            logger.info("Oracle initialized with Gemini")
            return GeminiOracle(config)
        logger.warning("GEMINI_API_KEY not configured, using heuristic oracle")
    elif provider != "heuristic":
        raise ValueError(f"Unknown ORACLE_PROVIDER '{config.ORACLE_PROVIDER}'")

    logger.info("Oracle initialized with heuristic backend (no API key required)")
    return HeuristicOracle()
