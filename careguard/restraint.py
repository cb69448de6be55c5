"""
Restraint Compliance Module.

Reviews every restraint before it is recorded.  Each review ends in one of
three terminal outcomes:

    ACCEPTED  -- justification and alternatives documented; may be persisted.
    BLOCKED   -- chemical restraint used for behavior control.  Hard stop.
    REJECTED  -- missing justification or alternatives; the caller corrects
                 the record and submits it again.

**Chemical restraint block:**  a CHEMICAL restraint whose justification or
description reads as behavior control (agitation, wandering, refusal to
cooperate, ...) is blocked.  A medical indication (diagnosed anxiety
disorder, seizures, surgery, severe pain, ...) always takes precedence over
behavioral wording.  Wording that matches neither list is permitted.
There is no override inside the engine: only a person re-documenting the
restraint with a qualifying medical indication changes the outcome.

Nothing is retried; each call is a fresh, final decision for that input.

DISCLAIMER: This module enforces documentation policy.  It does not judge
whether a medication is clinically appropriate.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel, Field

from careguard.config import DEFAULT_SETTINGS, EngineSettings
from careguard.keywords import (
    BEHAVIORAL_KEYWORDS,
    CLASSIFICATION_TABLE,
    DEFAULT_RESTRAINT_TYPE,
    MEDICAL_INDICATION_KEYWORDS,
    contains_any,
    first_match,
)
from careguard.models import (
    CareContext,
    ErrorKind,
    JustificationForm,
    Restraint,
    RestraintType,
    Strategy,
    utc_now,
)
from careguard.result import Err, Ok, Result
from careguard.storage import (
    STORAGE_EXCEPTIONS,
    Collections,
    KeyValueStore,
    storage_failure,
)
from careguard.strategies import all_strategies
from careguard.validation import ValidationResult, validate_required_field

logger = logging.getLogger(__name__)


CHEMICAL_RESTRAINT_BLOCKED_MESSAGE = (
    "Use of sedatives for behavioral management is not permitted. "
    "Review the non-restrictive alternatives before proceeding."
)


class RestraintOutcome(str, enum.Enum):
    """Terminal outcomes of a restraint review."""

    ACCEPTED = "ACCEPTED"
    BLOCKED = "BLOCKED"
    REJECTED = "REJECTED"


class RestraintDecision(BaseModel):
    """Result of ``RestraintComplianceModule.evaluate``.

    ``restraint_type`` is the effective type (assigned or derived); it is
    reported here and never written back onto the submitted record.
    """

    outcome: RestraintOutcome
    restraint_type: RestraintType
    validation: ValidationResult
    alternatives: list[Strategy] = Field(
        default_factory=list,
        description="Alternative strategies, attached when the restraint is BLOCKED.",
    )

    @property
    def accepted(self) -> bool:
        return self.outcome == RestraintOutcome.ACCEPTED


class RestraintComplianceModule:
    """Classifies, validates and records restraints.

    Args:
        store: Key-value store used by ``record_restraint``.  Optional for
            callers that only classify and validate.
        settings: Engine settings (keyword overrides).
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        settings: EngineSettings = DEFAULT_SETTINGS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._settings = settings
        self._clock = clock
        self._medical_keywords = MEDICAL_INDICATION_KEYWORDS + tuple(
            settings.restraint_keywords.extra_medical_keywords
        )
        self._behavioral_keywords = BEHAVIORAL_KEYWORDS + tuple(
            settings.restraint_keywords.extra_behavioral_keywords
        )

    # -- classification --

    def classify_restraint(self, restraint: Restraint) -> RestraintType:
        """Return the restraint's type, deriving it from ``specific_type`` if unset.

        An assigned type is returned unchanged.  Otherwise the first keyword
        group (chemical, mechanical, environmental) matching the description
        wins; with no match the restraint is treated as MECHANICAL.
        """
        if restraint.type is not None:
            return restraint.type

        derived = first_match(restraint.specific_type or "", CLASSIFICATION_TABLE)
        return derived if derived is not None else DEFAULT_RESTRAINT_TYPE

    def is_chemical_restraint_for_behavior(self, restraint: Restraint) -> bool:
        """True if the restraint reads as behavior control with no medical indication."""
        texts = (restraint.justification or "", restraint.specific_type or "")

        if contains_any(texts, self._medical_keywords):
            return False

        return contains_any(texts, self._behavioral_keywords)

    # -- validation --

    def validate_restraint(self, restraint: Restraint) -> ValidationResult:
        """Run the ordered compliance checks.

        1. A justification must be documented.
        2. A chemical restraint for behavior control is blocked.
        3. At least one alternative must be documented.
        """
        justification = validate_required_field(restraint.justification, "justification")
        if not justification.is_valid:
            return ValidationResult.fail(
                ErrorKind.BUSINESS_JUSTIFICATION_REQUIRED,
                "A documented justification is required for any restraint",
            )

        if self.classify_restraint(restraint) == RestraintType.CHEMICAL:
            if self.is_chemical_restraint_for_behavior(restraint):
                return ValidationResult.fail(
                    ErrorKind.BUSINESS_CHEMICAL_RESTRAINT_BLOCKED,
                    CHEMICAL_RESTRAINT_BLOCKED_MESSAGE,
                )

        if not restraint.alternatives:
            return ValidationResult.fail(
                ErrorKind.BUSINESS_JUSTIFICATION_REQUIRED,
                "The alternatives considered must be documented before applying a restraint",
            )

        return ValidationResult.ok()

    def evaluate(self, restraint: Restraint) -> RestraintDecision:
        """Classify and validate, mapping the result to a terminal outcome."""
        restraint_type = self.classify_restraint(restraint)
        validation = self.validate_restraint(restraint)

        if validation.is_valid:
            outcome = RestraintOutcome.ACCEPTED
            alternatives: list[Strategy] = []
        elif validation.error_code == ErrorKind.BUSINESS_CHEMICAL_RESTRAINT_BLOCKED:
            outcome = RestraintOutcome.BLOCKED
            alternatives = self.get_alternative_strategies()
            logger.warning(
                "Chemical restraint %s for patient %s blocked",
                restraint.id,
                restraint.patient_id,
            )
        else:
            outcome = RestraintOutcome.REJECTED
            alternatives = []
            logger.info(
                "Restraint %s rejected: %s", restraint.id, validation.error_code.value
            )

        return RestraintDecision(
            outcome=outcome,
            restraint_type=restraint_type,
            validation=validation,
            alternatives=alternatives,
        )

    # -- alternatives and justification --

    def get_alternative_strategies(
        self, context: Optional[CareContext] = None
    ) -> list[Strategy]:
        """Return the full alternative-strategy catalog.

        The catalog does not vary with ``context``; it always covers every
        strategy category.
        """
        return all_strategies()

    def require_justification(self, restraint: Restraint) -> JustificationForm:
        """Build the justification form shown before a restraint is applied.

        Args:
            restraint: The restraint under review.  Missing text fields
                become empty strings.

        Returns:
            A ``JustificationForm`` stamped with the current clock time.
        """
        return JustificationForm(
            restraint_id=restraint.id,
            justification=restraint.justification or "",
            alternatives=list(restraint.alternatives),
            authorized_by=restraint.authorized_by or "",
            timestamp=self._clock(),
        )

    # -- persistence --

    async def record_restraint(self, restraint: Restraint) -> Result[Restraint]:
        """Evaluate the restraint and persist it only when ACCEPTED.

        A derived type is filled in on the stored copy when the submitted
        record had none.  BLOCKED failures carry the alternative strategy
        ids in ``details``.
        """
        if self._store is None:
            raise RuntimeError("record_restraint requires a configured store")

        decision = self.evaluate(restraint)
        if not decision.accepted:
            details = {"outcome": decision.outcome.value}
            if decision.outcome == RestraintOutcome.BLOCKED:
                details["alternatives"] = [s.id for s in decision.alternatives]
            return Err.of(
                decision.validation.error_code,
                decision.validation.message or "",
                details=details,
            )

        stored = restraint
        if restraint.type is None:
            stored = restraint.model_copy(update={"type": decision.restraint_type})

        try:
            await self._store.put(Collections.RESTRAINTS, stored.model_dump())
        except STORAGE_EXCEPTIONS as exc:
            return storage_failure(
                exc,
                operation="put",
                collection=Collections.RESTRAINTS,
                message="Failed to save the restraint",
            )

        logger.info(
            "Recorded %s restraint %s for patient %s",
            stored.type.value,
            stored.id,
            stored.patient_id,
        )
        return Ok(stored)
