"""
Engine Settings -- Tunable Constants for the CareGuard Engine.

Every numeric limit the rules enforce (adherence window, bed elevation
ceiling, edit lock, risk-score weights and buckets) lives in a validated
``EngineSettings`` object instead of being scattered through the rule code.
``DEFAULT_SETTINGS`` carries the care-protocol values; deployments may load
an override file with ``load_settings_from_yaml()``.

Keyword overrides for restraint review *supplement* the built-in keyword
tables in ``careguard.keywords``.  They never remove a built-in entry, so a
configuration file cannot weaken the chemical-restraint block.

DISCLAIMER: These settings configure documentation and compliance rules.
They are not clinical guidelines.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from careguard.models import RiskFactorType, Severity


# ---------------------------------------------------------------------------
# Risk scoring policy
# ---------------------------------------------------------------------------

class RiskScoringPolicy(BaseModel):
    """Weights and buckets used by the fall-risk scorer.

    Each factor contributes ``base_points[type] * severity_multipliers[severity]``
    (``unknown_type_points`` for unrecognised kinds).  The summed total is
    bucketed as HIGH at ``high_min_score`` and above, MEDIUM at
    ``medium_min_score`` and above, LOW otherwise.
    """

    base_points: dict[RiskFactorType, float] = Field(
        default_factory=lambda: {
            RiskFactorType.SEDATIVES: 30,
            RiskFactorType.COGNITIVE_IMPAIRMENT: 25,
            RiskFactorType.MOBILITY_ISSUES: 25,
            RiskFactorType.VISION_PROBLEMS: 20,
        },
        description="Base points per recognised risk factor type.",
    )
    unknown_type_points: float = Field(
        default=10,
        ge=0,
        description="Base points for risk factor kinds outside RiskFactorType.",
    )
    severity_multipliers: dict[Severity, float] = Field(
        default_factory=lambda: {
            Severity.HIGH: 1.5,
            Severity.MEDIUM: 1.0,
            Severity.LOW: 0.5,
        },
        description="Multiplier applied to the base points for each severity.",
    )
    medium_min_score: float = Field(
        default=25,
        ge=0,
        description="Total at or above which the level is MEDIUM.",
    )
    high_min_score: float = Field(
        default=50,
        ge=0,
        description="Total at or above which the level is HIGH.",
    )

    @field_validator("severity_multipliers")
    @classmethod
    def all_severities_present(cls, v: dict[Severity, float]) -> dict[Severity, float]:
        missing = set(Severity) - set(v)
        if missing:
            raise ValueError(
                f"severity_multipliers missing entries for {sorted(s.value for s in missing)}"
            )
        return v

    @field_validator("high_min_score")
    @classmethod
    def high_above_medium(cls, v: float, info) -> float:
        medium = info.data.get("medium_min_score")
        if medium is not None and v < medium:
            raise ValueError(
                f"high_min_score ({v}) must be >= medium_min_score ({medium})"
            )
        return v


# ---------------------------------------------------------------------------
# Restraint keyword overrides
# ---------------------------------------------------------------------------

class RestraintKeywordPolicy(BaseModel):
    """Deployment-specific keywords added to the restraint review tables."""

    extra_medical_keywords: list[str] = Field(
        default_factory=list,
        description=(
            "Additional medical-indication phrases.  A match permits a "
            "chemical restraint regardless of behavioral wording."
        ),
    )
    extra_behavioral_keywords: list[str] = Field(
        default_factory=list,
        description="Additional behavior-control phrases that block a chemical restraint.",
    )

    @field_validator("extra_medical_keywords", "extra_behavioral_keywords")
    @classmethod
    def normalise_keywords(cls, v: list[str]) -> list[str]:
        cleaned = [kw.strip().lower() for kw in v]
        if any(not kw for kw in cleaned):
            raise ValueError("keywords must be non-empty strings")
        return cleaned


# ---------------------------------------------------------------------------
# Engine settings
# ---------------------------------------------------------------------------

class EngineSettings(BaseModel):
    """Complete configuration for one engine instance."""

    adherence_window_minutes: float = Field(
        default=90,
        gt=0,
        description="Tolerance either side of a scheduled medication time (inclusive).",
    )
    max_bed_elevation_degrees: float = Field(
        default=30,
        gt=0,
        description="Highest permitted head-of-bed elevation.",
    )
    min_justification_length: int = Field(
        default=3,
        ge=1,
        description="Minimum trimmed length of a justification text.",
    )
    immutability_threshold_hours: float = Field(
        default=24,
        gt=0,
        description="Age of a care event after which it can no longer be edited or deleted.",
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    risk_scoring: RiskScoringPolicy = Field(default_factory=RiskScoringPolicy)
    restraint_keywords: RestraintKeywordPolicy = Field(
        default_factory=RestraintKeywordPolicy
    )


DEFAULT_SETTINGS = EngineSettings()
"""Settings matching the care protocol: 90-minute adherence window,
30-degree bed elevation ceiling, 24-hour edit lock."""


# ---------------------------------------------------------------------------
# YAML loader
# ---------------------------------------------------------------------------

def load_settings_from_yaml(path: str | Path) -> EngineSettings:
    """Load engine settings from a YAML file.

    The file must contain a top-level ``settings`` mapping whose keys are
    ``EngineSettings`` fields.  Omitted keys keep their defaults.

    Example YAML structure::

        settings:
          immutability_threshold_hours: 24
          risk_scoring:
            high_min_score: 60
          restraint_keywords:
            extra_behavioral_keywords: ["sundowning"]

    Args:
        path: Path to the YAML file.

    Returns:
        A validated ``EngineSettings`` instance.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the YAML structure is invalid.
        pydantic.ValidationError: If any value fails validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict) or "settings" not in raw:
        raise ValueError(
            "YAML file must contain a top-level 'settings' key with a mapping of engine settings."
        )

    data = raw["settings"]
    if data is None:
        return EngineSettings()
    if not isinstance(data, dict):
        raise ValueError("'settings' must be a mapping.")

    return EngineSettings(**data)


def configure_logging(settings: EngineSettings = DEFAULT_SETTINGS) -> None:
    """Install a root logging handler at the configured level."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
