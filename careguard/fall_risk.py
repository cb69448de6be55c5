"""
Fall-Risk Scorer.

Turns a patient's documented risk factors into per-factor alerts and an
aggregate score, and records fall incidents and daily home-safety
checklists.

* ``get_risk_alerts`` -- one alert per recognised risk factor, generated
  fresh on every call (no deduplication against earlier alerts).  Each
  alert is written to the ``risk_alerts`` collection as it is produced.
* ``calculate_risk_score`` -- pure: base points per factor type times a
  severity multiplier, summed and bucketed into LOW / MEDIUM / HIGH.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Callable

from careguard.config import DEFAULT_SETTINGS, EngineSettings
from careguard.models import (
    ErrorKind,
    FactorScore,
    FallIncident,
    Patient,
    RiskAlert,
    RiskChecklist,
    RiskFactorType,
    RiskScore,
    Severity,
    utc_now,
)
from careguard.result import Err, Ok, Result
from careguard.storage import (
    STORAGE_EXCEPTIONS,
    Collections,
    KeyValueStore,
    storage_failure,
)
from careguard.validation import validate_required_field

logger = logging.getLogger(__name__)


ALERT_MESSAGES: dict[RiskFactorType, str] = {
    RiskFactorType.SEDATIVES: "Elevated fall risk: patient has prescribed sedatives",
    RiskFactorType.COGNITIVE_IMPAIRMENT: "Elevated fall risk: patient has cognitive impairment",
    RiskFactorType.VISION_PROBLEMS: "Elevated fall risk: patient has vision problems",
    RiskFactorType.MOBILITY_ISSUES: "Elevated fall risk: patient has mobility issues",
}


class FallRiskScorer:
    """Fall-risk alerts, scoring and incident recording.

    Args:
        store: Key-value store for alerts, incidents and checklists.
        settings: Engine settings (risk scoring policy).
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        store: KeyValueStore,
        settings: EngineSettings = DEFAULT_SETTINGS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._settings = settings
        self._clock = clock

    async def get_risk_alerts(self, patient: Patient) -> Result[list[RiskAlert]]:
        alerts: list[RiskAlert] = []

        for factor in patient.risk_factors:
            message = ALERT_MESSAGES.get(factor.type)
            if message is None:
                continue

            alert = RiskAlert(
                patient_id=patient.id,
                risk_type=factor.type,
                severity=factor.severity,
                message=message,
                created_at=self._clock(),
            )
            try:
                await self._store.put(Collections.RISK_ALERTS, alert.model_dump())
            except STORAGE_EXCEPTIONS as exc:
                return storage_failure(
                    exc,
                    operation="put",
                    collection=Collections.RISK_ALERTS,
                    message="Failed to save the fall-risk alert",
                )
            alerts.append(alert)

        if alerts:
            logger.info("Generated %d fall-risk alerts for patient %s", len(alerts), patient.id)
        return Ok(alerts)

    def calculate_risk_score(self, patient: Patient) -> RiskScore:
        policy = self._settings.risk_scoring
        factors: list[FactorScore] = []
        total = 0.0

        for factor in patient.risk_factors:
            if isinstance(factor.type, RiskFactorType):
                base = policy.base_points.get(factor.type, policy.unknown_type_points)
            else:
                base = policy.unknown_type_points
            score = base * policy.severity_multipliers[factor.severity]
            total += score
            factors.append(FactorScore(type=factor.type, score=score))

        if total >= policy.high_min_score:
            level = Severity.HIGH
        elif total >= policy.medium_min_score:
            level = Severity.MEDIUM
        else:
            level = Severity.LOW

        return RiskScore(total=total, factors=factors, level=level)

    async def record_fall_incident(self, incident: FallIncident) -> Result[FallIncident]:
        """Record a fall.  ``time_on_floor`` is mandatory; zero minutes is valid."""
        for field_name in ("id", "patient_id"):
            check = validate_required_field(getattr(incident, field_name), field_name)
            if not check.is_valid:
                return check.to_result()

        check = validate_required_field(incident.time_on_floor, "time_on_floor")
        if not check.is_valid:
            return check.to_result()
        if not math.isfinite(incident.time_on_floor) or incident.time_on_floor < 0:
            return Err.of(
                ErrorKind.VALIDATION_INVALID_FORMAT,
                "Time on floor must be a valid number greater than or equal to zero",
            )

        check = validate_required_field(incident.reported_by, "reported_by")
        if not check.is_valid:
            return check.to_result()

        if incident.occurred_at is None:
            return Err.of(
                ErrorKind.VALIDATION_REQUIRED_FIELD,
                "The date the fall occurred is required",
            )

        stored = incident.model_copy(update={"created_at": self._clock()})
        try:
            await self._store.put(Collections.FALL_INCIDENTS, stored.model_dump())
        except STORAGE_EXCEPTIONS as exc:
            return storage_failure(
                exc,
                operation="put",
                collection=Collections.FALL_INCIDENTS,
                message="Failed to record the fall incident",
            )

        logger.info("Recorded fall incident %s for patient %s", stored.id, stored.patient_id)
        return Ok(stored)

    async def submit_daily_checklist(self, checklist: RiskChecklist) -> Result[RiskChecklist]:
        """Record the daily lighting / flooring / footwear assessment."""
        for field_name in ("id", "patient_id", "completed_by"):
            check = validate_required_field(getattr(checklist, field_name), field_name)
            if not check.is_valid:
                return check.to_result()

        if checklist.check_date is None:
            return Err.of(
                ErrorKind.VALIDATION_REQUIRED_FIELD,
                "The checklist date is required",
            )

        if checklist.lighting is None or checklist.flooring is None or checklist.footwear is None:
            return Err.of(
                ErrorKind.VALIDATION_REQUIRED_FIELD,
                "All assessment fields are required (lighting, flooring, footwear)",
            )

        stored = checklist.model_copy(update={"created_at": self._clock()})
        try:
            await self._store.put(Collections.RISK_CHECKLISTS, stored.model_dump())
        except STORAGE_EXCEPTIONS as exc:
            return storage_failure(
                exc,
                operation="put",
                collection=Collections.RISK_CHECKLISTS,
                message="Failed to save the daily checklist",
            )

        return Ok(stored)
