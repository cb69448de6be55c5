"""
Validation Primitives.

Pure, side-effect-free checks on individual fields.  Each primitive returns
a ``ValidationResult`` (or a plain ``bool`` for the adherence window) and
never raises for bad input; the caller re-presents a corrected value.

Limits come from ``EngineSettings`` so that every primitive can be called
with the defaults or with a deployment's overrides.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from careguard.config import DEFAULT_SETTINGS, EngineSettings
from careguard.models import CareEvent, ErrorKind, ensure_utc
from careguard.result import Err, Ok, Result


# Letters or digits in any script, or meaningful punctuation.
_SIGNIFICANT_CONTENT = re.compile(r"[^\W_]|[,.\-:;]")


class ValidationResult(BaseModel):
    """Outcome of a single validation primitive."""

    is_valid: bool
    error_code: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def fail(cls, code: ErrorKind, message: str) -> "ValidationResult":
        return cls(is_valid=False, error_code=code, message=message)

    def to_result(self, value: Any = None) -> Result[Any]:
        """Lift into a ``Result``: ``Ok(value)`` when valid, ``Err`` otherwise."""
        if self.is_valid:
            return Ok(value)
        return Err.of(self.error_code, self.message or "")


def validate_required_field(value: Any, field_name: str) -> ValidationResult:
    """Fail with ``VALIDATION_REQUIRED_FIELD`` for None, blank strings and
    empty lists."""
    if value is None:
        return ValidationResult.fail(
            ErrorKind.VALIDATION_REQUIRED_FIELD,
            f'The field "{field_name}" is required',
        )
    if isinstance(value, str) and not value.strip():
        return ValidationResult.fail(
            ErrorKind.VALIDATION_REQUIRED_FIELD,
            f'The field "{field_name}" cannot be empty',
        )
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return ValidationResult.fail(
            ErrorKind.VALIDATION_REQUIRED_FIELD,
            f'The field "{field_name}" must contain at least one element',
        )
    return ValidationResult.ok()


def validate_adherence_window(
    scheduled_time: datetime,
    actual_time: datetime,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> bool:
    """True iff the dose was given within the adherence window.

    The window is symmetric around the scheduled time and its boundary is
    inclusive (exactly 90 minutes early or late is on time).
    """
    window = timedelta(minutes=settings.adherence_window_minutes)
    return abs(ensure_utc(actual_time) - ensure_utc(scheduled_time)) <= window


def validate_bed_elevation(
    degrees: Any, settings: EngineSettings = DEFAULT_SETTINGS
) -> ValidationResult:
    """Valid for the closed interval [0, max_bed_elevation_degrees]."""
    if (
        isinstance(degrees, bool)
        or not isinstance(degrees, (int, float))
        or not math.isfinite(degrees)
    ):
        return ValidationResult.fail(
            ErrorKind.VALIDATION_INVALID_FORMAT,
            "Bed elevation must be a valid number",
        )

    if degrees < 0:
        return ValidationResult.fail(
            ErrorKind.VALIDATION_BED_ELEVATION,
            "Bed elevation cannot be negative",
        )

    limit = settings.max_bed_elevation_degrees
    if degrees > limit:
        return ValidationResult.fail(
            ErrorKind.VALIDATION_BED_ELEVATION,
            f"Bed elevation cannot exceed {limit:g} degrees",
        )

    return ValidationResult.ok()


def validate_date(value: Any, field_name: str) -> ValidationResult:
    if not isinstance(value, datetime):
        return ValidationResult.fail(
            ErrorKind.VALIDATION_INVALID_FORMAT,
            f'The field "{field_name}" must be a valid date',
        )
    return ValidationResult.ok()


def validate_date_range(start: Any, end: Any) -> ValidationResult:
    """Both ends must be datetimes and ``start`` must not be after ``end``."""
    if not isinstance(start, datetime):
        return ValidationResult.fail(
            ErrorKind.VALIDATION_INVALID_FORMAT, "The start date is not valid"
        )
    if not isinstance(end, datetime):
        return ValidationResult.fail(
            ErrorKind.VALIDATION_INVALID_FORMAT, "The end date is not valid"
        )
    if ensure_utc(start) > ensure_utc(end):
        return ValidationResult.fail(
            ErrorKind.VALIDATION_INVALID_FORMAT,
            "The start date must be on or before the end date",
        )
    return ValidationResult.ok()


def validate_min_length(value: str, min_length: int, field_name: str) -> ValidationResult:
    if len(value) < min_length:
        return ValidationResult.fail(
            ErrorKind.VALIDATION_INVALID_FORMAT,
            f'The field "{field_name}" must have at least {min_length} characters',
        )
    return ValidationResult.ok()


def validate_justification(
    text: Any, field_name: str, settings: EngineSettings = DEFAULT_SETTINGS
) -> ValidationResult:
    """Require a justification with real content.

    Rejects missing or blank text first (``VALIDATION_REQUIRED_FIELD``),
    then text shorter than ``min_justification_length`` once trimmed or
    made only of symbols such as ``"!!!"``
    (``BUSINESS_JUSTIFICATION_REQUIRED``).
    """
    required = validate_required_field(text, field_name)
    if not required.is_valid:
        return required

    if not isinstance(text, str):
        return ValidationResult.fail(
            ErrorKind.VALIDATION_INVALID_FORMAT,
            f'The field "{field_name}" must be text',
        )

    trimmed = text.strip()
    minimum = settings.min_justification_length
    if len(trimmed) < minimum:
        return ValidationResult.fail(
            ErrorKind.BUSINESS_JUSTIFICATION_REQUIRED,
            f'The field "{field_name}" must contain at least {minimum} characters',
        )

    if not _SIGNIFICANT_CONTENT.search(trimmed):
        return ValidationResult.fail(
            ErrorKind.BUSINESS_JUSTIFICATION_REQUIRED,
            f'The field "{field_name}" must contain meaningful text',
        )

    return ValidationResult.ok()


def validate_care_event(candidate: Mapping[str, Any] | CareEvent) -> Result[CareEvent]:
    """Check a candidate care event and build the ``CareEvent``.

    Every problem is collected into ``details`` so a form can highlight
    all offending fields at once.
    """
    data = candidate.model_dump() if isinstance(candidate, CareEvent) else dict(candidate)
    errors: list[str] = []

    for field_name in ("id", "patient_id", "event_type", "performed_by", "sync_status"):
        check = validate_required_field(data.get(field_name), field_name)
        if not check.is_valid:
            errors.append(check.message)

    if data.get("timestamp") is None:
        errors.append('The field "timestamp" is required')
    else:
        check = validate_date(data["timestamp"], "timestamp")
        if not check.is_valid:
            errors.append(check.message)

    if data.get("created_at") is not None:
        check = validate_date(data["created_at"], "created_at")
        if not check.is_valid:
            errors.append(check.message)

    if not isinstance(data.get("metadata"), Mapping):
        errors.append('The field "metadata" must be a mapping')

    if not errors:
        try:
            return Ok(CareEvent.model_validate(data))
        except ValidationError as exc:
            errors.extend(
                f'{".".join(str(p) for p in e["loc"])}: {e["msg"]}' for e in exc.errors()
            )

    return Err.of(
        ErrorKind.VALIDATION_INVALID_FORMAT,
        "Validation errors in CareEvent",
        details=errors,
    )
