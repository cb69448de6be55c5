"""
Immutable Care History.

Chronological retrieval, filtering, export and a time-based edit lock over
``CareEvent`` records kept in the ``care_events`` collection.

**Edit lock:**  a care event can be edited or deleted only during the first
``immutability_threshold_hours`` (24 by default) after ``created_at``.
``is_immutable()`` is the sole authority; sync status and event type play
no part.  Updates can never change ``id`` or ``created_at``.  A refused
delete leaves the record exactly as it was.

**Export:**  ``timestamp`` and ``created_at`` are rendered as ISO-8601 UTC
strings with millisecond precision (``2024-03-01T08:30:00.000Z``).  JSON
exports are an indented array in input order.  CSV exports have a fixed
seven-column header and do no quoting: values containing commas are not
supported.

Store failures come back as ``SYSTEM_STORAGE_FAILURE`` results and are
not retried.
"""

from __future__ import annotations

import enum
import json
import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from careguard.config import DEFAULT_SETTINGS, EngineSettings
from careguard.models import (
    CareEvent,
    CareEventType,
    DateRange,
    ErrorKind,
    ensure_utc,
    utc_now,
)
from careguard.result import Err, Ok, Result
from careguard.storage import (
    STORAGE_EXCEPTIONS,
    Collections,
    KeyValueStore,
    storage_failure,
)
from careguard.validation import validate_care_event, validate_date_range

logger = logging.getLogger(__name__)


CSV_HEADER = (
    "ID",
    "Patient ID",
    "Event Type",
    "Timestamp",
    "Performed By",
    "Sync Status",
    "Created At",
)


class SortOrder(str, enum.Enum):
    ASC = "ASC"    # oldest first
    DESC = "DESC"  # newest first


class ExportFormat(str, enum.Enum):
    JSON = "JSON"
    CSV = "CSV"


class HistoryFilter(BaseModel):
    """Criteria for ``get_filtered_history``; every supplied criterion must hold."""

    patient_id: Optional[str] = None
    event_type: Optional[CareEventType] = None
    date_range: Optional[DateRange] = None


class HistoryExport(BaseModel):
    """Serialized history together with the events it was built from."""

    events: list[CareEvent]
    exported_at: datetime
    format: ExportFormat
    content: str


class HistoryStats(BaseModel):
    total_events: int
    events_by_type: dict[str, int] = Field(default_factory=dict)
    oldest_event: Optional[datetime] = None
    newest_event: Optional[datetime] = None


def format_timestamp(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with milliseconds and a ``Z`` suffix."""
    return ensure_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Pure filters
# ---------------------------------------------------------------------------

def filter_by_event_type(events: Iterable[CareEvent], event_type: CareEventType) -> list[CareEvent]:
    return [e for e in events if e.event_type == event_type]


def filter_by_date_range(events: Iterable[CareEvent], date_range: DateRange) -> list[CareEvent]:
    """Keep events with ``start <= timestamp <= end``."""
    return [e for e in events if date_range.start <= e.timestamp <= date_range.end]


# ---------------------------------------------------------------------------
# History store
# ---------------------------------------------------------------------------

class HistoryStore:
    """Query and mutation gate for the care history.

    Args:
        store: Key-value store holding the ``care_events`` collection.
        settings: Engine settings (edit-lock threshold).
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

    # -- writes --

    async def record_event(self, event: Union[CareEvent, Mapping[str, Any]]) -> Result[CareEvent]:
        """Validate and persist a new care event."""
        checked = validate_care_event(event)
        if checked.is_err():
            return checked

        care_event = checked.value
        try:
            await self._store.put(Collections.CARE_EVENTS, care_event.model_dump())
        except STORAGE_EXCEPTIONS as exc:
            return storage_failure(
                exc,
                operation="put",
                collection=Collections.CARE_EVENTS,
                message="Failed to record the care event",
            )

        logger.debug("Recorded care event %s for patient %s", care_event.id, care_event.patient_id)
        return Ok(care_event)

    def is_immutable(self, event: CareEvent) -> bool:
        """True once the event is at least the lock threshold old."""
        age = self._clock() - event.created_at
        return age >= timedelta(hours=self._settings.immutability_threshold_hours)

    async def update_event(self, event_id: str, updates: Mapping[str, Any]) -> Result[CareEvent]:
        """Merge ``updates`` into a mutable event.

        ``id`` and ``created_at`` are always kept from the stored record.
        A merge that yields an invalid event writes nothing.
        """
        found = await self._load_mutable(event_id, action="modify")
        if found.is_err():
            return found
        existing = found.value

        merged = {
            **existing.model_dump(),
            **dict(updates),
            "id": existing.id,
            "created_at": existing.created_at,
        }
        try:
            updated = CareEvent.model_validate(merged)
        except ValidationError as exc:
            return Err.of(
                ErrorKind.VALIDATION_INVALID_FORMAT,
                "The update produces an invalid care event",
                details=[
                    f'{".".join(str(p) for p in e["loc"])}: {e["msg"]}' for e in exc.errors()
                ],
            )

        try:
            await self._store.put(Collections.CARE_EVENTS, updated.model_dump())
        except STORAGE_EXCEPTIONS as exc:
            return storage_failure(
                exc,
                operation="put",
                collection=Collections.CARE_EVENTS,
                message="Failed to update the care event",
            )

        logger.info("Updated care event %s", event_id)
        return Ok(updated)

    async def delete_event(self, event_id: str) -> Result[None]:
        """Delete a mutable event.

        Events past the lock threshold are refused with
        ``BUSINESS_HISTORICAL_RECORD_IMMUTABLE``.
        """
        found = await self._load_mutable(event_id, action="delete")
        if found.is_err():
            return found

        try:
            await self._store.delete_by_id(Collections.CARE_EVENTS, event_id)
        except STORAGE_EXCEPTIONS as exc:
            return storage_failure(
                exc,
                operation="delete_by_id",
                collection=Collections.CARE_EVENTS,
                message="Failed to delete the care event",
            )

        logger.info("Deleted care event %s", event_id)
        return Ok(None)

    async def _load_mutable(self, event_id: str, action: str) -> Result[CareEvent]:
        """Fetch an event and check that it may still be changed."""
        try:
            record = await self._store.get_by_id(Collections.CARE_EVENTS, event_id)
        except STORAGE_EXCEPTIONS as exc:
            return storage_failure(
                exc,
                operation="get_by_id",
                collection=Collections.CARE_EVENTS,
                message=f"Failed to load the care event to {action}",
            )

        if record is None:
            return Err.of(
                ErrorKind.VALIDATION_REQUIRED_FIELD,
                f"No care event found with ID: {event_id}",
            )

        event = CareEvent.model_validate(record)
        if self.is_immutable(event):
            logger.warning("Refused to %s immutable care event %s", action, event_id)
            return Err.of(
                ErrorKind.BUSINESS_HISTORICAL_RECORD_IMMUTABLE,
                f"Cannot {action} historical records more than "
                f"{self._settings.immutability_threshold_hours:g} hours old",
            )
        return Ok(event)

    # -- reads --

    async def get_event(self, event_id: str) -> Result[Optional[CareEvent]]:
        """Load one event by id.

        Returns:
            ``Ok(None)`` when no event has that id.
        """
        try:
            record = await self._store.get_by_id(Collections.CARE_EVENTS, event_id)
        except STORAGE_EXCEPTIONS as exc:
            return storage_failure(
                exc,
                operation="get_by_id",
                collection=Collections.CARE_EVENTS,
                message="Failed to load the care event",
            )
        return Ok(CareEvent.model_validate(record) if record is not None else None)

    async def get_history(
        self,
        patient_id: Optional[str] = None,
        order: Union[SortOrder, str] = SortOrder.DESC,
    ) -> Result[list[CareEvent]]:
        """All events, or one patient's, sorted by ``timestamp``."""
        order = SortOrder(order)
        try:
            if patient_id:
                records = await self._store.get_by_index(
                    Collections.CARE_EVENTS, "patient_id", patient_id
                )
            else:
                records = await self._store.get_all(Collections.CARE_EVENTS)
        except STORAGE_EXCEPTIONS as exc:
            return storage_failure(
                exc,
                operation="get_by_index" if patient_id else "get_all",
                collection=Collections.CARE_EVENTS,
                message="Failed to load the care history",
            )

        events = [CareEvent.model_validate(r) for r in records]
        events.sort(key=lambda e: e.timestamp, reverse=order == SortOrder.DESC)
        return Ok(events)

    def filter_by_event_type(
        self, events: Iterable[CareEvent], event_type: CareEventType
    ) -> list[CareEvent]:
        """Events of ``event_type``, in their original order."""
        return filter_by_event_type(events, event_type)

    def filter_by_date_range(
        self, events: Iterable[CareEvent], date_range: DateRange
    ) -> list[CareEvent]:
        """Events whose timestamp lies inside ``date_range``, bounds included."""
        return filter_by_date_range(events, date_range)

    async def get_filtered_history(
        self,
        history_filter: Optional[HistoryFilter] = None,
        order: Union[SortOrder, str] = SortOrder.DESC,
    ) -> Result[list[CareEvent]]:
        """History matching every supplied criterion."""
        history_filter = history_filter or HistoryFilter()

        if history_filter.date_range is not None:
            check = validate_date_range(
                history_filter.date_range.start, history_filter.date_range.end
            )
            if not check.is_valid:
                return check.to_result()

        history = await self.get_history(history_filter.patient_id, order)
        if history.is_err():
            return history

        events = history.value
        if history_filter.event_type is not None:
            events = filter_by_event_type(events, history_filter.event_type)
        if history_filter.date_range is not None:
            events = filter_by_date_range(events, history_filter.date_range)
        return Ok(events)

    async def get_history_stats(self, patient_id: Optional[str] = None) -> Result[HistoryStats]:
        """Summarise the history.

        Args:
            patient_id: Restrict the counts to one patient.  All events
                are counted when omitted.

        Returns:
            Totals per event type and the oldest and newest timestamps.
        """
        history = await self.get_history(patient_id, SortOrder.ASC)
        if history.is_err():
            return history

        events = history.value
        counts = Counter(e.event_type.value for e in events)
        return Ok(HistoryStats(
            total_events=len(events),
            events_by_type=dict(counts),
            oldest_event=events[0].timestamp if events else None,
            newest_event=events[-1].timestamp if events else None,
        ))

    # -- export --

    def export_history_with_timestamps(
        self,
        events: list[CareEvent],
        export_format: Union[ExportFormat, str] = ExportFormat.JSON,
    ) -> Result[HistoryExport]:
        """Serialize events with ISO-8601 timestamps.

        The returned ``HistoryExport.events`` is the input list, unchanged,
        so callers can verify the export against it.
        """
        try:
            export_format = ExportFormat(export_format)
        except ValueError:
            return Err.of(
                ErrorKind.VALIDATION_INVALID_FORMAT,
                f"Unsupported export format: {export_format}",
            )

        try:
            if export_format == ExportFormat.JSON:
                content = _to_json(events)
            else:
                content = _to_csv(events)
        except (TypeError, ValueError) as exc:
            logger.error("History export failed: %s", exc)
            return Err.of(
                ErrorKind.SYSTEM_EXPORT_FAILED,
                "Failed to export the care history",
                details={"format": export_format.value, "error": str(exc)},
            )

        return Ok(HistoryExport(
            events=list(events),
            exported_at=self._clock(),
            format=export_format,
            content=content,
        ))


def _to_json(events: list[CareEvent]) -> str:
    rows = []
    for event in events:
        row = event.model_dump(mode="json")
        row["timestamp"] = format_timestamp(event.timestamp)
        row["created_at"] = format_timestamp(event.created_at)
        rows.append(row)
    return json.dumps(rows, indent=2, ensure_ascii=False)


def _to_csv(events: list[CareEvent]) -> str:
    lines = [",".join(CSV_HEADER)]
    for event in events:
        lines.append(",".join((
            event.id,
            event.patient_id,
            event.event_type.value,
            format_timestamp(event.timestamp),
            event.performed_by,
            event.sync_status.value,
            format_timestamp(event.created_at),
        )))
    return "\n".join(lines)
