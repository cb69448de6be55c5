"""
Tests for careguard.fall_risk -- Fall-Risk Scorer.

Covers: one alert per recognised factor with type-specific messages, alert
persistence, score weights and level buckets, custom scoring policy, fall
incident recording, and daily checklist submission.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from careguard.config import EngineSettings, RiskScoringPolicy
from careguard.fall_risk import FallRiskScorer
from careguard.models import (
    ChecklistStatus,
    ErrorKind,
    FallIncident,
    Patient,
    RiskChecklist,
    RiskFactor,
    RiskFactorType,
    Severity,
)
from careguard.storage import Collections


def _make_patient(*factors: tuple) -> Patient:
    """Build a patient from ``(type, severity)`` pairs."""
    return Patient(
        id="patient-1",
        name="Synthetic Patient",
        risk_factors=[RiskFactor(type=t, severity=s) for t, s in factors],
    )


def _make_incident(**overrides) -> FallIncident:
    data = {
        "id": "fall-1",
        "patient_id": "patient-1",
        "time_on_floor": 5,
        "location": "bathroom",
        "reported_by": "caregiver-1",
    }
    data.update(overrides)
    return FallIncident(**data)


def _make_checklist(**overrides) -> RiskChecklist:
    data = {
        "id": "check-1",
        "patient_id": "patient-1",
        "lighting": ChecklistStatus.ADEQUATE,
        "flooring": ChecklistStatus.SAFE,
        "footwear": ChecklistStatus.APPROPRIATE,
        "completed_by": "caregiver-1",
    }
    data.update(overrides)
    return RiskChecklist(**data)


@pytest.fixture
def scorer(store, settings, clock) -> FallRiskScorer:
    return FallRiskScorer(store, settings, clock)


# ---------------------------------------------------------------------------
# 1. Risk alerts
# ---------------------------------------------------------------------------

class TestRiskAlerts:
    def test_no_factors_no_alerts(self, scorer):
        result = asyncio.run(scorer.get_risk_alerts(_make_patient()))
        assert result.unwrap() == []

    @pytest.mark.parametrize(
        "factor_type, keyword",
        [
            (RiskFactorType.SEDATIVES, "sedatives"),
            (RiskFactorType.COGNITIVE_IMPAIRMENT, "cognitive"),
            (RiskFactorType.VISION_PROBLEMS, "vision"),
            (RiskFactorType.MOBILITY_ISSUES, "mobility"),
        ],
    )
    def test_type_specific_message(self, scorer, factor_type, keyword):
        patient = _make_patient((factor_type, Severity.HIGH))
        alerts = asyncio.run(scorer.get_risk_alerts(patient)).unwrap()
        assert len(alerts) == 1
        assert keyword in alerts[0].message
        assert alerts[0].risk_type == factor_type
        assert alerts[0].severity == Severity.HIGH
        assert alerts[0].patient_id == "patient-1"

    def test_one_alert_per_factor(self, scorer):
        patient = _make_patient(
            (RiskFactorType.SEDATIVES, Severity.HIGH),
            (RiskFactorType.COGNITIVE_IMPAIRMENT, Severity.MEDIUM),
            (RiskFactorType.VISION_PROBLEMS, Severity.LOW),
            (RiskFactorType.MOBILITY_ISSUES, Severity.MEDIUM),
        )
        alerts = asyncio.run(scorer.get_risk_alerts(patient)).unwrap()
        assert [a.risk_type for a in alerts] == [f.type for f in patient.risk_factors]

    def test_unrecognised_factor_emits_nothing(self, scorer):
        patient = _make_patient(
            ("POLYPHARMACY", Severity.HIGH),
            (RiskFactorType.SEDATIVES, Severity.LOW),
        )
        alerts = asyncio.run(scorer.get_risk_alerts(patient)).unwrap()
        assert len(alerts) == 1
        assert alerts[0].risk_type == RiskFactorType.SEDATIVES

    def test_alerts_persisted_and_regenerated(self, scorer, store):
        patient = _make_patient((RiskFactorType.SEDATIVES, Severity.HIGH))
        first = asyncio.run(scorer.get_risk_alerts(patient)).unwrap()
        second = asyncio.run(scorer.get_risk_alerts(patient)).unwrap()
        assert first[0].id != second[0].id
        assert asyncio.run(store.count(Collections.RISK_ALERTS)) == 2

    def test_alert_timestamp_from_clock(self, scorer, clock):
        patient = _make_patient((RiskFactorType.VISION_PROBLEMS, Severity.LOW))
        alerts = asyncio.run(scorer.get_risk_alerts(patient)).unwrap()
        assert alerts[0].created_at == clock.now


# ---------------------------------------------------------------------------
# 2. Risk score
# ---------------------------------------------------------------------------

class TestRiskScore:
    def test_empty_patient_is_low(self, scorer):
        score = scorer.calculate_risk_score(_make_patient())
        assert score.total == 0
        assert score.factors == []
        assert score.level == Severity.LOW

    @pytest.mark.parametrize(
        "factor_type, severity, expected",
        [
            (RiskFactorType.SEDATIVES, Severity.HIGH, 45),
            (RiskFactorType.SEDATIVES, Severity.MEDIUM, 30),
            (RiskFactorType.COGNITIVE_IMPAIRMENT, Severity.LOW, 12.5),
            (RiskFactorType.MOBILITY_ISSUES, Severity.MEDIUM, 25),
            (RiskFactorType.VISION_PROBLEMS, Severity.HIGH, 30),
            ("POLYPHARMACY", Severity.MEDIUM, 10),
            ("POLYPHARMACY", Severity.HIGH, 15),
        ],
    )
    def test_factor_weights(self, scorer, factor_type, severity, expected):
        score = scorer.calculate_risk_score(_make_patient((factor_type, severity)))
        assert score.factors[0].score == pytest.approx(expected)
        assert score.total == pytest.approx(expected)

    def test_level_buckets(self, scorer):
        low = _make_patient((RiskFactorType.VISION_PROBLEMS, Severity.MEDIUM))
        medium = _make_patient((RiskFactorType.MOBILITY_ISSUES, Severity.MEDIUM))
        high = _make_patient(
            (RiskFactorType.MOBILITY_ISSUES, Severity.MEDIUM),
            (RiskFactorType.COGNITIVE_IMPAIRMENT, Severity.MEDIUM),
        )
        assert scorer.calculate_risk_score(low).level == Severity.LOW
        assert scorer.calculate_risk_score(medium).level == Severity.MEDIUM
        assert scorer.calculate_risk_score(high).level == Severity.HIGH

    def test_sum_across_factors(self, scorer):
        patient = _make_patient(
            (RiskFactorType.SEDATIVES, Severity.HIGH),
            (RiskFactorType.VISION_PROBLEMS, Severity.LOW),
        )
        score = scorer.calculate_risk_score(patient)
        assert score.total == pytest.approx(55)
        assert score.level == Severity.HIGH
        assert [f.type for f in score.factors] == [
            RiskFactorType.SEDATIVES,
            RiskFactorType.VISION_PROBLEMS,
        ]

    def test_scoring_is_pure(self, scorer, store):
        scorer.calculate_risk_score(_make_patient((RiskFactorType.SEDATIVES, Severity.HIGH)))
        assert asyncio.run(store.count(Collections.RISK_ALERTS)) == 0

    def test_custom_policy(self, store, clock):
        settings = EngineSettings(
            risk_scoring=RiskScoringPolicy(medium_min_score=10, high_min_score=20)
        )
        scorer = FallRiskScorer(store, settings, clock)
        patient = _make_patient((RiskFactorType.VISION_PROBLEMS, Severity.MEDIUM))
        assert scorer.calculate_risk_score(patient).level == Severity.HIGH


# ---------------------------------------------------------------------------
# 3. Fall incidents
# ---------------------------------------------------------------------------

class TestFallIncident:
    def test_recorded_with_creation_time(self, scorer, store, clock):
        incident = _make_incident(occurred_at=clock.now - timedelta(minutes=20))
        result = asyncio.run(scorer.record_fall_incident(incident))
        assert result.is_ok()
        assert result.value.created_at == clock.now
        assert asyncio.run(store.get_by_id(Collections.FALL_INCIDENTS, "fall-1")) is not None

    def test_zero_minutes_on_floor_is_valid(self, scorer, clock):
        incident = _make_incident(time_on_floor=0, occurred_at=clock.now)
        assert asyncio.run(scorer.record_fall_incident(incident)).is_ok()

    def test_time_on_floor_required(self, scorer, clock):
        incident = _make_incident(time_on_floor=None, occurred_at=clock.now)
        result = asyncio.run(scorer.record_fall_incident(incident))
        assert result.error.code == ErrorKind.VALIDATION_REQUIRED_FIELD

    @pytest.mark.parametrize("minutes", [-1, float("nan"), float("inf")])
    def test_time_on_floor_must_be_valid(self, scorer, clock, minutes):
        incident = _make_incident(time_on_floor=minutes, occurred_at=clock.now)
        result = asyncio.run(scorer.record_fall_incident(incident))
        assert result.error.code == ErrorKind.VALIDATION_INVALID_FORMAT

    def test_occurrence_date_required(self, scorer, store):
        result = asyncio.run(scorer.record_fall_incident(_make_incident()))
        assert result.error.code == ErrorKind.VALIDATION_REQUIRED_FIELD
        assert asyncio.run(store.count(Collections.FALL_INCIDENTS)) == 0

    def test_reporter_required(self, scorer, clock):
        incident = _make_incident(reported_by=" ", occurred_at=clock.now)
        result = asyncio.run(scorer.record_fall_incident(incident))
        assert result.error.code == ErrorKind.VALIDATION_REQUIRED_FIELD


# ---------------------------------------------------------------------------
# 4. Daily checklist
# ---------------------------------------------------------------------------

class TestDailyChecklist:
    def test_complete_checklist_stored(self, scorer, store, clock):
        result = asyncio.run(scorer.submit_daily_checklist(_make_checklist(check_date=clock.now)))
        assert result.is_ok()
        assert result.value.created_at == clock.now
        assert asyncio.run(store.count(Collections.RISK_CHECKLISTS)) == 1

    def test_missing_assessment_rejected(self, scorer, store, clock):
        checklist = _make_checklist(check_date=clock.now, footwear=None)
        result = asyncio.run(scorer.submit_daily_checklist(checklist))
        assert result.error.code == ErrorKind.VALIDATION_REQUIRED_FIELD
        assert "footwear" in result.error.message
        assert asyncio.run(store.count(Collections.RISK_CHECKLISTS)) == 0

    def test_check_date_required(self, scorer):
        result = asyncio.run(scorer.submit_daily_checklist(_make_checklist()))
        assert result.error.code == ErrorKind.VALIDATION_REQUIRED_FIELD

    def test_completed_by_required(self, scorer, clock):
        checklist = _make_checklist(check_date=clock.now, completed_by="")
        result = asyncio.run(scorer.submit_daily_checklist(checklist))
        assert result.error.code == ErrorKind.VALIDATION_REQUIRED_FIELD
        assert "completed_by" in result.error.message
