"""Tests for the submission pipeline against a real (SQLite) database."""

import asyncio
import uuid

from leadcapture.core.exceptions import OracleError
from leadcapture.repositories.customer_repo import CustomerRepository
from leadcapture.repositories.form_repo import FormRepository
from leadcapture.repositories.lead_repo import LeadRepository
from leadcapture.schemas.pipeline import PipelineState
from leadcapture.services.pipeline_service import build_orchestrator

from conftest import CountingOracle, FailingTransport


async def load(session_factory, customer_id):
    """Fresh view of a customer and its lead."""
    async with session_factory() as session:
        customer = await CustomerRepository(session).get(customer_id)
        lead = await LeadRepository(session).get_by_customer(customer_id)
        return customer, lead


async def test_happy_path_creates_lead_and_sends_email(orchestrator, session_factory, transport, make_customer):
    customer = await make_customer()

    result = await orchestrator.process(customer.id)

    assert result.state == PipelineState.COMPLETED
    assert result.history == [
        PipelineState.RECEIVED,
        PipelineState.CLASSIFYING,
        PipelineState.CLASSIFIED,
        PipelineState.EMAIL_SENDING,
        PipelineState.EMAIL_SENT,
        PipelineState.COMPLETED,
    ]
    stored_customer, lead = await load(session_factory, customer.id)
    assert stored_customer.processed is True
    assert lead.id == result.lead_id
    assert lead.classification == "normal"
    assert lead.email_sent is True
    assert lead.email_sent_at is not None
    assert lead.email_message_id == transport.get_last_email()["message_id"]
    assert transport.get_last_email()["to"] == "jane@x.com"


async def test_proposed_label_is_overridden_by_score(settings, session_factory, transport, make_customer):
    oracle = CountingOracle(classification={"classification": "normal", "confidenceScore": 0.85})
    orchestrator = build_orchestrator(settings, session_factory, oracle=oracle, transport=transport)
    customer = await make_customer()

    result = await orchestrator.process(customer.id)

    _, lead = await load(session_factory, customer.id)
    assert result.classification == "hot"
    assert lead.classification == "hot"
    assert lead.confidence_score == 0.85


async def test_failing_transport_keeps_lead(settings, session_factory, oracle, make_customer):
    transport = FailingTransport()
    orchestrator = build_orchestrator(settings, session_factory, oracle=oracle, transport=transport)
    customer = await make_customer()

    result = await orchestrator.process(customer.id)

    assert result.state == PipelineState.COMPLETED
    assert PipelineState.EMAIL_FAILED in result.history
    assert transport.attempts == 1
    stored_customer, lead = await load(session_factory, customer.id)
    assert stored_customer.processed is True
    assert lead is not None
    assert lead.email_sent is False
    assert lead.email_sent_at is None
    assert "connection refused" in lead.email_error


async def test_email_skipped_without_contact_email(orchestrator, session_factory, oracle, transport, make_customer):
    customer = await make_customer({"Name": "Jane", "Budget": "$5k"})

    result = await orchestrator.process(customer.id)

    assert PipelineState.EMAIL_SKIPPED in result.history
    assert result.state == PipelineState.COMPLETED
    assert transport.sent_emails == []
    assert oracle.email_calls == []
    stored_customer, lead = await load(session_factory, customer.id)
    assert stored_customer.processed is True
    assert lead.email_sent is False


async def test_composition_failure_still_completes(settings, session_factory, transport, make_customer):
    oracle = CountingOracle(email={"subject": ""})
    orchestrator = build_orchestrator(settings, session_factory, oracle=oracle, transport=transport)
    customer = await make_customer()

    result = await orchestrator.process(customer.id)

    assert result.state == PipelineState.COMPLETED
    assert PipelineState.EMAIL_FAILED in result.history
    assert transport.sent_emails == []
    _, lead = await load(session_factory, customer.id)
    assert lead.email_sent is False
    assert "subject or body" in lead.email_error


async def test_template_email_makes_single_oracle_call(settings, session_factory, session, owner, transport):
    form = await FormRepository(session).create({
        "owner_id": owner.id,
        "title": "Quote request",
        "fields": [{"label": "Budget", "classification_weight": "high"}],
        "email_settings": {"normal_template": "Hi {{customerName}}, thanks from {{businessName}}"},
    })
    customer = await CustomerRepository(session).create({
        "form_id": form.id,
        "owner_id": owner.id,
        "responses": {"Budget": "$5k"},
        "email": "sam@x.com",
        "name": "Sam",
    })
    oracle = CountingOracle()
    orchestrator = build_orchestrator(settings, session_factory, oracle=oracle, transport=transport)

    await orchestrator.process(customer.id)

    assert len(oracle.calls) == 1
    assert transport.get_last_email()["body"] == "Hi Sam, thanks from Acme"
    assert transport.get_last_email()["subject"] == "Thank you for your interest - Acme"


async def test_unknown_customer_fails(orchestrator, oracle):
    result = await orchestrator.process(uuid.uuid4())

    assert result.state == PipelineState.FAILED
    assert result.history == [PipelineState.RECEIVED, PipelineState.CLASSIFYING, PipelineState.FAILED]
    assert "not found" in result.error
    assert oracle.calls == []


async def test_oracle_failure_records_error_and_no_lead(settings, session_factory, transport, make_customer):
    oracle = CountingOracle(error=OracleError("model overloaded"))
    orchestrator = build_orchestrator(settings, session_factory, oracle=oracle, transport=transport)
    customer = await make_customer()

    result = await orchestrator.process(customer.id)

    assert result.state == PipelineState.FAILED
    assert result.lead_id is None
    stored_customer, lead = await load(session_factory, customer.id)
    assert lead is None
    assert stored_customer.processed is False
    assert "model overloaded" in stored_customer.processing_error
    assert transport.sent_emails == []


async def test_concurrent_runs_create_one_lead(orchestrator, session_factory, transport, make_customer):
    customer = await make_customer()

    first, second = await asyncio.gather(
        orchestrator.process(customer.id),
        orchestrator.process(customer.id),
    )

    states = sorted([first.state, second.state])
    assert states == sorted([PipelineState.COMPLETED, PipelineState.DUPLICATE])
    async with session_factory() as session:
        leads = await LeadRepository(session).list({"customer_id": customer.id})
    assert len(leads) == 1
    assert len(transport.sent_emails) == 1


async def test_rerun_after_completion_is_duplicate(orchestrator, session_factory, make_customer):
    customer = await make_customer()

    await orchestrator.process(customer.id)
    again = await orchestrator.process(customer.id)

    assert again.state == PipelineState.DUPLICATE
    stored_customer, _ = await load(session_factory, customer.id)
    assert stored_customer.processed is True


async def test_successful_rerun_clears_earlier_error(orchestrator, session_factory, make_customer):
    customer = await make_customer(processing_error="Oracle call failed: model overloaded")

    result = await orchestrator.process(customer.id)

    assert result.state == PipelineState.COMPLETED
    stored_customer, _ = await load(session_factory, customer.id)
    assert stored_customer.processed is True
    assert stored_customer.processing_error is None
