"""Shared fixtures for Lead Capture tests."""

import os
import pytest

# Ensure we use test/offline settings before the app modules are imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("ORACLE_PROVIDER", "heuristic")
os.environ.setdefault("EMAIL_PROVIDER", "mock")

from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402

from leadcapture.config import Settings  # noqa: E402
from leadcapture.core.exceptions import TransportError  # noqa: E402
from leadcapture.database import create_session_factory, init_db  # noqa: E402
from leadcapture.repositories.customer_repo import CustomerRepository  # noqa: E402
from leadcapture.repositories.form_repo import FormRepository  # noqa: E402
from leadcapture.repositories.owner_repo import OwnerRepository  # noqa: E402
from leadcapture.services.intake_service import extract_contact  # noqa: E402
from leadcapture.services.integrations.base import MailTransport, Oracle  # noqa: E402
from leadcapture.services.integrations.email import MockMailTransport  # noqa: E402
from leadcapture.services.pipeline_service import build_orchestrator  # noqa: E402


class CountingOracle(Oracle):
    """Canned oracle that records every call."""

    def __init__(self, classification=None, email=None, error=None):
        self.classification = classification or {
            "classification": "normal",
            "confidenceScore": 0.5,
            "reasoning": "Interested but no timeline.",
            "insights": {"budget": "medium", "timeline": "short-term"},
            "keyFactors": ["Moderate budget"],
        }
        self.email = email or {
            "subject": "Thanks for reaching out",
            "body": "<p>Hi there, thanks for your interest.</p>",
        }
        self.error = error
        self.calls = []

    async def generate_text(self, system_prompt, user_prompt, max_tokens=2000):
        self.calls.append(("text", system_prompt, user_prompt))
        return "ok"

    async def generate_structured(self, system_prompt, user_prompt):
        self.calls.append(("structured", system_prompt, user_prompt))
        if self.error:
            raise self.error
        if "lead qualification" in system_prompt:
            return dict(self.classification)
        return dict(self.email)

    @property
    def email_calls(self):
        return [call for call in self.calls if "lead qualification" not in call[1]]


class FailingTransport(MailTransport):
    """Transport whose every delivery is rejected."""

    def __init__(self):
        self.attempts = 0

    async def send_email(self, to, subject, html_body):
        self.attempts += 1
        raise TransportError("connection refused")


@pytest.fixture
def settings():
    return Settings(ORACLE_PROVIDER="heuristic", EMAIL_PROVIDER="mock")


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'leadcapture.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def oracle():
    return CountingOracle()


@pytest.fixture
def transport():
    return MockMailTransport()


@pytest.fixture
def orchestrator(settings, session_factory, oracle, transport):
    return build_orchestrator(settings, session_factory, oracle=oracle, transport=transport)


@pytest.fixture
async def owner(session):
    return await OwnerRepository(session).create({
        "business_name": "Acme",
        "business_description": "Custom software for logistics companies.",
        "industry": "Software",
        "email": "sales@acme.test",
    })


@pytest.fixture
def form_data(owner):
    """Form columns; tests tweak this before the form fixture creates the row."""
    return {
        "owner_id": owner.id,
        "title": "Project inquiry",
        "fields": [
            {"label": "Name", "field_type": "text", "classification_weight": "none", "order": 1},
            {"label": "Email", "field_type": "email", "classification_weight": "none", "order": 2},
            {"label": "Budget", "field_type": "text", "classification_weight": "high", "order": 3},
            {"label": "Timeline", "field_type": "text", "classification_weight": "medium", "order": 4},
        ],
        "email_settings": {"send_auto_response": True},
    }


@pytest.fixture
async def form(session, form_data):
    return await FormRepository(session).create(form_data)


@pytest.fixture
def sample_responses():
    return {
        "Name": "Jane",
        "Email": "jane@x.com",
        "Budget": "Over $50k, need this ASAP",
        "Timeline": "This month",
    }


@pytest.fixture
def make_customer(session, form, sample_responses):
    """Store a submission directly, bypassing intake scheduling."""
    async def _make(responses=None, **overrides):
        responses = sample_responses if responses is None else responses
        data = {
            "form_id": form.id,
            "owner_id": form.owner_id,
            "responses": responses,
            **extract_contact(responses),
        }
        data.update(overrides)
        return await CustomerRepository(session).create(data)
    return _make
