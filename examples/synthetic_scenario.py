"""
Synthetic Scenario: A Day of Home Care Documentation
====================================================

This script walks through the CareGuard engine with entirely synthetic
data.  No real patient data, PHI, or PII is used.

The scenario follows a caregiver looking after an older adult at home.

Steps demonstrated:
  1. Load engine settings from YAML
  2. Check a medication time and a bed elevation
  3. Review a mechanical restraint and a chemical restraint
  4. Score fall risk and generate alerts
  5. Record care events and try to edit one after the 24-hour lock
  6. Export the history as JSON and CSV

DISCLAIMER: This is a synthetic demonstration.  This software does not
diagnose or treat any condition and does not replace the judgement of a
licensed healthcare professional.

Usage:
    python -m examples.synthetic_scenario
    # or: python examples/synthetic_scenario.py
"""

from __future__ import annotations

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Ensure the project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from careguard.config import DEFAULT_SETTINGS, configure_logging, load_settings_from_yaml
from careguard.engine import build_engine
from careguard.history import ExportFormat, SortOrder
from careguard.models import (
    CareEvent,
    CareEventType,
    Patient,
    Restraint,
    RestraintType,
    RiskFactor,
    RiskFactorType,
    Severity,
)
from careguard.validation import validate_adherence_window, validate_bed_elevation


class DemoClock:
    """Clock the scenario can move forward."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _banner(text: str) -> None:
    print(f"\n{'=' * 60}")
    print(f"  {text}")
    print(f"{'=' * 60}\n")


async def run() -> None:
    _banner("CareGuard Synthetic Scenario: A Day of Home Care")
    print("DISCLAIMER: All data in this demo is entirely synthetic.\n")

    # ------------------------------------------------------------------
    # Step 1: Settings
    # ------------------------------------------------------------------
    _banner("Step 1: Load Engine Settings")

    sample_yaml = Path(__file__).parent / "engine_settings.yaml"
    if sample_yaml.exists():
        settings = load_settings_from_yaml(sample_yaml)
        print(f"Loaded settings from {sample_yaml.name}")
    else:
        settings = DEFAULT_SETTINGS
        print("Using default settings")
    configure_logging(settings)
    print(f"Edit lock after {settings.immutability_threshold_hours:g} hours")

    clock = DemoClock(datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc))
    engine = build_engine(settings=settings, clock=clock)
    patient_id = "synthetic-patient-001"

    # ------------------------------------------------------------------
    # Step 2: Validation primitives
    # ------------------------------------------------------------------
    _banner("Step 2: Medication Time and Bed Elevation")

    scheduled = clock.now
    for minutes in (45, 95):
        given = scheduled + timedelta(minutes=minutes)
        on_time = validate_adherence_window(scheduled, given, settings)
        print(f"Dose given {minutes} min late: on time={on_time}")

    for degrees in (25, 35):
        check = validate_bed_elevation(degrees, settings)
        print(f"Bed at {degrees} degrees: valid={check.is_valid} {check.message or ''}")

    # ------------------------------------------------------------------
    # Step 3: Restraint review
    # ------------------------------------------------------------------
    _banner("Step 3: Restraint Review")

    bed_rail = Restraint(
        patient_id=patient_id,
        specific_type="Barandilla parcial",
        justification="Riesgo de caída nocturna",
        alternatives=["environmental-2"],
        authorized_by="synthetic-nurse-01",
    )
    decision = engine.restraints.evaluate(bed_rail)
    print(f"Bed rail: {decision.outcome.value} as {decision.restraint_type.value}")
    await engine.restraints.record_restraint(bed_rail)

    sedation = Restraint(
        patient_id=patient_id,
        type=RestraintType.CHEMICAL,
        specific_type="Sedante lorazepam",
        justification="Paciente agitado y no coopera",
        authorized_by="synthetic-nurse-01",
    )
    decision = engine.restraints.evaluate(sedation)
    print(f"Sedation: {decision.outcome.value}")
    print(f"  {decision.validation.message}")
    print("  Alternatives offered:")
    for strategy in decision.alternatives:
        print(f"    - [{strategy.category.value}] {strategy.title}")

    # ------------------------------------------------------------------
    # Step 4: Fall risk
    # ------------------------------------------------------------------
    _banner("Step 4: Fall Risk")

    patient = Patient(
        id=patient_id,
        name="Synthetic Patient",
        risk_factors=[
            RiskFactor(type=RiskFactorType.SEDATIVES, severity=Severity.MEDIUM),
            RiskFactor(type=RiskFactorType.VISION_PROBLEMS, severity=Severity.HIGH),
        ],
    )
    score = engine.fall_risk.calculate_risk_score(patient)
    print(f"Risk score: {score.total:g} ({score.level.value})")
    for alert in (await engine.fall_risk.get_risk_alerts(patient)).unwrap():
        print(f"  ALERT [{alert.severity.value}] {alert.message}")

    # ------------------------------------------------------------------
    # Step 5: History and edit lock
    # ------------------------------------------------------------------
    _banner("Step 5: Care History and the 24-Hour Lock")

    for offset, event_type in enumerate(
        (CareEventType.MEDICATION, CareEventType.NUTRITION, CareEventType.POSTURAL_CHANGE)
    ):
        event = CareEvent(
            patient_id=patient_id,
            event_type=event_type,
            timestamp=clock.now + timedelta(hours=offset),
            performed_by="synthetic-caregiver-01",
            created_at=clock.now,
        )
        (await engine.history.record_event(event)).unwrap()

    history = (await engine.history.get_history(patient_id, SortOrder.ASC)).unwrap()
    first = history[0]
    print(f"Recorded {len(history)} events")

    clock.now += timedelta(hours=2)
    result = await engine.history.update_event(first.id, {"metadata": {"dose": "5mg"}})
    print(f"Edit after 2 hours: ok={result.is_ok()}")

    clock.now += timedelta(hours=24)
    result = await engine.history.update_event(first.id, {"metadata": {"dose": "10mg"}})
    print(f"Edit after 26 hours: {result.error.code.value}")

    # ------------------------------------------------------------------
    # Step 6: Export
    # ------------------------------------------------------------------
    _banner("Step 6: Export")

    csv_export = engine.history.export_history_with_timestamps(history, ExportFormat.CSV).unwrap()
    print(csv_export.content)

    json_export = engine.history.export_history_with_timestamps(history).unwrap()
    print(f"\nJSON export: {len(json_export.content)} characters")

    stats = (await engine.history.get_history_stats(patient_id)).unwrap()
    print(f"Events by type: {stats.events_by_type}")

    _banner("Scenario Complete")
    print("All data was synthetic. No real patients, PHI, or PII.")


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
