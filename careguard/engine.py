"""
Engine assembly.

``build_engine()`` wires the three services to one store, one settings
object and one clock.  Nothing is a module-level singleton: tests and
callers build as many independent engines as they need.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from careguard.config import DEFAULT_SETTINGS, EngineSettings
from careguard.fall_risk import FallRiskScorer
from careguard.history import HistoryStore
from careguard.models import utc_now
from careguard.restraint import RestraintComplianceModule
from careguard.storage import InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CareEngine:
    store: KeyValueStore
    settings: EngineSettings
    restraints: RestraintComplianceModule
    fall_risk: FallRiskScorer
    history: HistoryStore


def build_engine(
    store: Optional[KeyValueStore] = None,
    settings: Optional[EngineSettings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> CareEngine:
    """Build an engine.

    Args:
        store: Store adapter.  A fresh ``InMemoryKeyValueStore`` when omitted.
        settings: Engine settings.  ``DEFAULT_SETTINGS`` when omitted.
        clock: Returns the current UTC time.  The system clock when omitted.
    """
    store = store if store is not None else InMemoryKeyValueStore()
    settings = settings if settings is not None else DEFAULT_SETTINGS
    clock = clock if clock is not None else utc_now

    logger.debug("Building engine with %s", type(store).__name__)
    return CareEngine(
        store=store,
        settings=settings,
        restraints=RestraintComplianceModule(store, settings, clock),
        fall_risk=FallRiskScorer(store, settings, clock),
        history=HistoryStore(store, settings, clock),
    )
