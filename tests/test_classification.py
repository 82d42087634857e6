"""Tests for lead classification and score normalization."""

import pytest

from leadcapture.core.exceptions import OracleError
from leadcapture.models.customer import Customer
from leadcapture.models.owner import Owner
from leadcapture.schemas.classification import LeadClassification, LeadInsights
from leadcapture.schemas.form import FormConfig
from leadcapture.services.classification_service import ClassificationEngine
from leadcapture.services.integrations.oracle import HeuristicOracle

from conftest import CountingOracle


@pytest.fixture
def classifier(settings):
    return ClassificationEngine(CountingOracle(), settings)


@pytest.fixture
def owner_profile():
    return Owner(business_name="Acme", industry="Software", business_description="Logistics software.")


@pytest.fixture
def form_config():
    return FormConfig.model_validate({
        "fields": [
            {"label": "Email", "classification_weight": "none"},
            {"label": "Budget", "classification_weight": "high"},
            {"label": "Notes", "classification_weight": "low"},
        ]
    })


@pytest.mark.parametrize("score, expected, label", [
    (1.4, 1.0, LeadClassification.HOT),
    (-0.2, 0.0, LeadClassification.COLD),
    (0.7, 0.7, LeadClassification.HOT),
    (0.3, 0.3, LeadClassification.COLD),
    (0.5, 0.5, LeadClassification.NORMAL),
    (0.69, 0.69, LeadClassification.NORMAL),
])
def test_score_clamped_and_mapped(classifier, score, expected, label):
    result = classifier.normalize({"confidenceScore": score})
    assert result.confidence_score == expected
    assert result.classification == label


def test_threshold_overrides_proposed_label(classifier):
    result = classifier.normalize({"classification": "normal", "confidenceScore": 0.85})
    assert result.classification == LeadClassification.HOT


@pytest.mark.parametrize("raw_score", [None, "not a number", float("nan")])
def test_unusable_score_defaults_to_midpoint(classifier, raw_score):
    result = classifier.normalize({"confidenceScore": raw_score})
    assert result.confidence_score == 0.5
    assert result.classification == LeadClassification.NORMAL


def test_missing_insights_and_reasoning_get_defaults(classifier):
    result = classifier.normalize({"confidenceScore": 0.1})
    assert result.insights == LeadInsights()
    assert result.insights.budget == "unknown"
    assert result.insights.decision_maker is False
    assert result.reasoning == "Lead classified as COLD based on form responses."
    assert result.key_factors == []


def test_snake_case_fields_accepted(classifier):
    result = classifier.normalize({
        "confidence_score": 0.8,
        "insights": {"decision_maker": "yes", "pain_points": ["slow onboarding"]},
        "key_factors": ["Budget"],
    })
    assert result.confidence_score == 0.8
    assert result.insights.decision_maker is True
    assert result.insights.pain_points == ["slow onboarding"]
    assert result.key_factors == ["Budget"]


def test_custom_thresholds(settings):
    engine = ClassificationEngine(CountingOracle(), settings, hot_threshold=0.9, cold_threshold=0.1)
    assert engine.label_for(0.85) == LeadClassification.NORMAL
    assert engine.label_for(0.9) == LeadClassification.HOT
    assert engine.label_for(0.1) == LeadClassification.COLD


def test_user_prompt_lists_weights_and_missing_values(classifier, form_config):
    customer = Customer(responses={"Email": "jane@x.com", "Budget": "$10k"})
    prompt = classifier.build_user_prompt(customer, form_config)
    assert "Budget [Weight: high]:\n$10k" in prompt
    assert "Notes [Weight: low]:\nNot provided" in prompt


def test_system_prompt_uses_default_indicators(classifier, owner_profile, form_config):
    prompt = classifier.build_system_prompt(owner_profile, form_config)
    assert "lead qualification" in prompt
    assert "Acme" in prompt
    assert "High budget/purchasing power" in prompt


def test_system_prompt_uses_form_indicators(classifier, owner_profile):
    config = FormConfig.model_validate({"classification_criteria": {"hot_indicators": ["Fleet over 100 trucks"]}})
    prompt = classifier.build_system_prompt(owner_profile, config)
    assert "Fleet over 100 trucks" in prompt
    assert "High budget/purchasing power" not in prompt


async def test_classify_rejects_non_object(settings, owner_profile, form_config):
    class ListOracle(CountingOracle):
        async def generate_structured(self, system_prompt, user_prompt):
            return ["hot"]

    engine = ClassificationEngine(ListOracle(), settings)
    with pytest.raises(OracleError):
        await engine.classify(Customer(responses={}), form_config, owner_profile)


async def test_classify_propagates_oracle_error(settings, owner_profile, form_config):
    engine = ClassificationEngine(CountingOracle(error=OracleError("timeout")), settings)
    with pytest.raises(OracleError):
        await engine.classify(Customer(responses={}), form_config, owner_profile)


async def test_heuristic_oracle_scores_urgent_budget_as_hot(settings, owner_profile, form_config):
    engine = ClassificationEngine(HeuristicOracle(), settings)
    customer = Customer(responses={"Email": "jane@x.com", "Budget": "Over $50k, need this ASAP"})

    result = await engine.classify(customer, form_config, owner_profile)
    assert result.classification == LeadClassification.HOT
    assert result.confidence_score == 0.85
    assert result.insights.urgency == "immediate"
    assert "Urgency signals" in result.key_factors


async def test_heuristic_oracle_is_deterministic(settings, owner_profile, form_config):
    engine = ClassificationEngine(HeuristicOracle(), settings)
    customer = Customer(responses={"Budget": "Not sure yet, just browsing"})

    first = await engine.classify(customer, form_config, owner_profile)
    second = await engine.classify(customer, form_config, owner_profile)
    assert first == second
    assert first.classification == LeadClassification.COLD
