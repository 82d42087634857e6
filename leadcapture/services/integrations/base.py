"""
Base interfaces for external capabilities used by the submission pipeline.
Abstract base classes; concrete variants are picked once at construction time.
"""
import json
from abc import ABC, abstractmethod
from typing import Dict, Any

from leadcapture.core.exceptions import OracleError

# Markup fences models like to wrap JSON in
FENCE_MARKERS = ("```json", "```JSON", "```")


class Oracle(ABC):
    """Base interface for prompt -> text / structured data backends (heuristic, OpenAI, Gemini)."""

    @abstractmethod
    async def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 2000
    ) -> str:
        """Free-text completion."""
        pass

    @abstractmethod
    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str
    ) -> Dict[str, Any]:
        """
        Completion parsed into a JSON object.

        Raises:
            OracleError: the backend failed or did not return a JSON object.
        """
        pass


class MailTransport(ABC):
    """Base interface for email providers (SMTP, mock, etc.)"""

    @abstractmethod
    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str
    ) -> str:
        """
        Send an HTML email.

        Returns:
            The transport's message id.

        Raises:
            TransportError: delivery was not accepted.
        """
        pass


def strip_fences(text: str) -> str:
    """Remove leading/trailing markdown code fences."""
    cleaned = text.strip()
    for marker in FENCE_MARKERS:
        if cleaned.startswith(marker):
            cleaned = cleaned[len(marker):]
            break
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_structured(text: str) -> Dict[str, Any]:
    """Parse oracle output into a dict, tolerating markup fences."""
    if text is None:
        raise OracleError("empty response")

    cleaned = strip_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise OracleError(f"response is not valid JSON ({e.msg})")

    if not isinstance(data, dict):
        raise OracleError("response is not a JSON object")
    return data
