"""
Core data models for the CareGuard engine.

Records are pydantic models so that every candidate built by a form or a
screen is type-checked before it reaches a compliance rule.  All
timestamps are timezone-aware UTC; naive values supplied by callers are
interpreted as UTC.

DISCLAIMER: This module defines data structures for caregiving
documentation only.  It does not perform clinical assessment.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    """Current time as an aware UTC datetime, truncated to milliseconds."""
    return ensure_utc(datetime.now(timezone.utc))


def ensure_utc(value: Any) -> Any:
    """Attach UTC to naive datetimes and normalise aware ones to UTC.

    Sub-millisecond precision is dropped so that stored, compared and
    exported values agree exactly.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        else:
            value = value.astimezone(timezone.utc)
        return value.replace(microsecond=value.microsecond // 1000 * 1000)
    if isinstance(value, list):
        return [ensure_utc(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ErrorKind(str, enum.Enum):
    """Error taxonomy surfaced to callers in ``EngineError.code`` and
    ``ValidationResult.error_code``.

    * ``VALIDATION_*`` -- the caller supplied a bad value and can correct it.
    * ``BUSINESS_*``   -- a care policy refused the action.
    * ``SYSTEM_*``     -- storage or serialization failed.
    """

    VALIDATION_REQUIRED_FIELD = "VALIDATION_REQUIRED_FIELD"
    VALIDATION_INVALID_FORMAT = "VALIDATION_INVALID_FORMAT"
    VALIDATION_BED_ELEVATION = "VALIDATION_BED_ELEVATION"

    BUSINESS_JUSTIFICATION_REQUIRED = "BUSINESS_JUSTIFICATION_REQUIRED"
    BUSINESS_CHEMICAL_RESTRAINT_BLOCKED = "BUSINESS_CHEMICAL_RESTRAINT_BLOCKED"
    BUSINESS_HISTORICAL_RECORD_IMMUTABLE = "BUSINESS_HISTORICAL_RECORD_IMMUTABLE"

    SYSTEM_STORAGE_FAILURE = "SYSTEM_STORAGE_FAILURE"
    SYSTEM_EXPORT_FAILED = "SYSTEM_EXPORT_FAILED"


class CareEventType(str, enum.Enum):
    """Kinds of care action recorded in the history."""

    MEDICATION = "MEDICATION"
    FALL = "FALL"
    POSTURAL_CHANGE = "POSTURAL_CHANGE"
    NUTRITION = "NUTRITION"
    INCONTINENCE = "INCONTINENCE"
    RESTRAINT = "RESTRAINT"
    ASSESSMENT = "ASSESSMENT"


class SyncStatus(str, enum.Enum):
    PENDING = "PENDING"
    SYNCED = "SYNCED"
    CONFLICT = "CONFLICT"


class RestraintType(str, enum.Enum):
    """Restraint families.

    ``CHEMICAL`` restraints used for behavior control are hard-blocked by
    the compliance module; the other two require documented alternatives.
    """

    CHEMICAL = "CHEMICAL"
    MECHANICAL = "MECHANICAL"
    ENVIRONMENTAL = "ENVIRONMENTAL"


class RestraintStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    DISCONTINUED = "DISCONTINUED"


class RiskFactorType(str, enum.Enum):
    """Fall-risk factor kinds recognised by the scorer.

    Other strings are accepted on ``RiskFactor.type`` and scored at the
    unknown-type base value.
    """

    SEDATIVES = "SEDATIVES"
    COGNITIVE_IMPAIRMENT = "COGNITIVE_IMPAIRMENT"
    VISION_PROBLEMS = "VISION_PROBLEMS"
    MOBILITY_ISSUES = "MOBILITY_ISSUES"


class Severity(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class StrategyCategory(str, enum.Enum):
    """Categories of non-restrictive alternative strategies."""

    DISTRACTION = "DISTRACTION"
    COMMUNICATION = "COMMUNICATION"
    ENVIRONMENTAL = "ENVIRONMENTAL"


class ChecklistStatus(str, enum.Enum):
    """Assessment values for the daily fall-prevention checklist."""

    ADEQUATE = "ADEQUATE"
    INADEQUATE = "INADEQUATE"
    SAFE = "SAFE"
    HAZARDOUS = "HAZARDOUS"
    APPROPRIATE = "APPROPRIATE"
    INAPPROPRIATE = "INAPPROPRIATE"


# ---------------------------------------------------------------------------
# Care history
# ---------------------------------------------------------------------------

class CareEvent(BaseModel):
    """A single entry in the care history.

    Becomes immutable once ``created_at`` is 24 hours in the past: from
    then on no field may change and the record may not be deleted.
    ``metadata`` is schema-less and must hold JSON-representable values
    (strings, numbers, booleans, null, nested lists and mappings) so that
    exports round-trip it unchanged.
    """

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique identifier of the event.",
    )
    patient_id: str = Field(
        ...,
        description="Patient the event concerns.",
    )
    event_type: CareEventType = Field(
        ...,
        description="Kind of care action.",
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="UTC time at which the care action took place.",
    )
    performed_by: str = Field(
        ...,
        description="Identifier of the caregiver who performed the action.",
    )
    sync_status: SyncStatus = Field(
        default=SyncStatus.PENDING,
        description="Synchronization state with the remote backend.",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Event-specific JSON-representable data.",
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="UTC time the record was first written. Drives the 24-hour lock.",
    )

    @field_validator("timestamp", "created_at", mode="after")
    @classmethod
    def normalise_to_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class DateRange(BaseModel):
    """Inclusive range of UTC datetimes."""

    start: datetime
    end: datetime

    @field_validator("start", "end", mode="after")
    @classmethod
    def normalise_to_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


# ---------------------------------------------------------------------------
# Restraints
# ---------------------------------------------------------------------------

class Restraint(BaseModel):
    """A restraint measure submitted for compliance review.

    ``type`` may be left unset at intake; the compliance module derives it
    from ``specific_type`` and never overwrites a type that was assigned.
    """

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique identifier of the restraint record.",
    )
    patient_id: str = Field(
        ...,
        description="Patient the restraint applies to.",
    )
    type: Optional[RestraintType] = Field(
        default=None,
        description="Restraint family. Derived from specific_type when unset.",
    )
    specific_type: str = Field(
        default="",
        description="Free-text description, e.g. 'Bed rail' or 'Sedante lorazepam'.",
    )
    justification: Optional[str] = Field(
        default=None,
        description="Documented reason for the restraint.",
    )
    alternatives: list[str] = Field(
        default_factory=list,
        description="Alternative strategies considered (catalog ids or free text).",
    )
    authorized_by: str = Field(
        default="",
        description="Identifier of the person authorizing the restraint.",
    )
    start_time: datetime = Field(default_factory=utc_now)
    end_time: Optional[datetime] = Field(default=None)
    review_schedule: list[datetime] = Field(default_factory=list)
    status: RestraintStatus = Field(default=RestraintStatus.ACTIVE)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator(
        "start_time", "end_time", "review_schedule", "created_at", "updated_at",
        mode="after",
    )
    @classmethod
    def normalise_to_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class Strategy(BaseModel):
    """A non-restrictive alternative from the static catalog."""

    id: str
    category: StrategyCategory
    title: str
    description: str
    examples: list[str] = Field(..., min_length=1)


class CareContext(BaseModel):
    """Situation in which alternatives are requested."""

    patient_id: str
    situation: str = ""
    current_restraints: list[Restraint] = Field(default_factory=list)
    timestamp: Optional[datetime] = None

    @field_validator("timestamp", mode="after")
    @classmethod
    def normalise_to_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class JustificationForm(BaseModel):
    """Projection of a restraint into the justification form shown to the caregiver."""

    restraint_id: str
    justification: str
    alternatives: list[str]
    authorized_by: str
    timestamp: datetime

    @field_validator("timestamp", mode="after")
    @classmethod
    def normalise_to_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


# ---------------------------------------------------------------------------
# Fall risk
# ---------------------------------------------------------------------------

class RiskFactor(BaseModel):
    """A documented patient attribute that elevates fall risk."""

    type: Union[RiskFactorType, str] = Field(
        ...,
        description="Recognised RiskFactorType or any other kind as free text.",
    )
    severity: Severity = Field(default=Severity.MEDIUM)
    notes: str = Field(default="")
    assessed_at: datetime = Field(default_factory=utc_now)

    @field_validator("type", mode="before")
    @classmethod
    def recognise_known_type(cls, v: Any) -> Any:
        try:
            return RiskFactorType(v)
        except ValueError:
            return v

    @field_validator("assessed_at", mode="after")
    @classmethod
    def normalise_to_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class Patient(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = Field(default="")
    risk_factors: list[RiskFactor] = Field(default_factory=list)


class RiskAlert(BaseModel):
    """Fall-risk alert generated for one risk factor."""

    id: str = Field(default_factory=lambda: f"alert-{uuid.uuid4()}")
    patient_id: str
    risk_type: Union[RiskFactorType, str]
    severity: Severity
    message: str
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at", mode="after")
    @classmethod
    def normalise_to_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class FactorScore(BaseModel):
    type: Union[RiskFactorType, str]
    score: float


class RiskScore(BaseModel):
    """Aggregate fall-risk score with its per-factor breakdown."""

    total: float
    factors: list[FactorScore]
    level: Severity


class FallIncident(BaseModel):
    """A recorded fall.  ``time_on_floor`` is in minutes and mandatory."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    patient_id: str = ""
    occurred_at: Optional[datetime] = None
    time_on_floor: Optional[float] = None
    location: str = ""
    circumstances: str = ""
    injuries: list[str] = Field(default_factory=list)
    reported_by: str = ""
    created_at: Optional[datetime] = None

    @field_validator("occurred_at", "created_at", mode="after")
    @classmethod
    def normalise_to_utc(cls, v: Any) -> Any:
        return ensure_utc(v)


class RiskChecklist(BaseModel):
    """Daily home-safety checklist for fall prevention."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    patient_id: str = ""
    check_date: Optional[datetime] = None
    lighting: Optional[ChecklistStatus] = None
    flooring: Optional[ChecklistStatus] = None
    footwear: Optional[ChecklistStatus] = None
    notes: str = ""
    completed_by: str = ""
    created_at: Optional[datetime] = None

    @field_validator("check_date", "created_at", mode="after")
    @classmethod
    def normalise_to_utc(cls, v: Any) -> Any:
        return ensure_utc(v)
