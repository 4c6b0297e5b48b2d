"""
Calendar feature: the Calendar container.

A calendar owns an ordered list of events and guards two invariants on every
insert or update:
  - no two events share (subject, start date, start time): breaking this
    raises DuplicateEventError whatever the conflict setting;
  - unless conflicts are allowed, no two events overlap in time: a conflict is
    a soft rejection, reported by returning False.

Listeners hear about committed changes only. Not thread-safe: a calendar is
meant to be owned by one caller at a time.
"""

import logging
from datetime import date, datetime, time

from calendar_app.core.exceptions import (
    DuplicateEventError,
    EventNotFoundError,
    InvalidArgumentError,
    MissingValueError,
)
from calendar_app.features.calendar import csv_format
from calendar_app.features.calendar.listeners import CalendarListener
from calendar_app.features.calendar.models import Event

logger = logging.getLogger(__name__)


class Calendar:
    """Ordered, conflict-checked collection of events."""

    def __init__(self, title: str | None, default_allow_conflicts: bool = False):
        if title is None or not title.strip():
            raise InvalidArgumentError("Calendar title cannot be null or empty")
        self._title = title.strip()
        self._default_allow_conflicts = default_allow_conflicts
        self._events: list[Event] = []
        self._listeners: list[CalendarListener] = []

    @property
    def title(self) -> str:
        return self._title

    @property
    def default_allow_conflicts(self) -> bool:
        return self._default_allow_conflicts

    # ── Mutations ────────────────────────────────────────

    def add_event(self, event: Event | None, allow_conflicts: bool | None = None) -> bool:
        """Append ``event`` if it is not a duplicate and (unless allowed) does not conflict.

        Args:
            event: Event to add.
            allow_conflicts: Skip the overlap check. None = calendar default.

        Returns:
            True if added, False if rejected because of a time conflict.

        Raises:
            MissingValueError: event is None.
            DuplicateEventError: same subject, date and start time already present.
        """
        if event is None:
            raise MissingValueError("Event")
        if allow_conflicts is None:
            allow_conflicts = self._default_allow_conflicts

        if self._find_duplicate(event, self._events) is not None:
            raise DuplicateEventError()

        if not allow_conflicts and self._find_conflict(event, self._events) is not None:
            logger.info(f"[{self._title}] '{event.subject}' rejected: time conflict")
            return False

        self._events.append(event)
        self._announce_added(event)
        return True

    def update_event(
        self,
        original_subject: str | None,
        original_date: date | None,
        original_time: datetime | time | None,
        updated_event: Event | None,
        allow_conflicts: bool | None = None,
    ) -> bool:
        """Replace the event found by (subject, date, time) with ``updated_event``.

        Checks run against the calendar without the original, so an edit may
        keep the original identity. The live list is only touched once every
        check has passed; on success the updated event goes to the end.

        Returns:
            True if replaced, False if rejected because of a time conflict.

        Raises:
            MissingValueError: subject, date or updated event is None.
            EventNotFoundError: nothing matches the original identity.
            DuplicateEventError: the update would collide with another event.
        """
        if original_subject is None:
            raise MissingValueError("Original subject")
        if original_date is None:
            raise MissingValueError("Original date")
        if updated_event is None:
            raise MissingValueError("Updated event")
        if allow_conflicts is None:
            allow_conflicts = self._default_allow_conflicts

        original = self.get_event(original_subject, original_date, original_time)
        if original is None:
            raise EventNotFoundError()

        remaining = self._without(original)

        if self._find_duplicate(updated_event, remaining) is not None:
            raise DuplicateEventError("Update would create duplicate event")

        if not allow_conflicts and self._find_conflict(updated_event, remaining) is not None:
            logger.info(f"[{self._title}] update of '{original_subject}' rejected: time conflict")
            return False

        remaining.append(updated_event)
        self._events = remaining
        self._announce_modified(updated_event)
        return True

    def remove_event(
        self,
        subject: str | None,
        event_date: date | None,
        event_time: datetime | time | None = None,
    ) -> Event:
        """Remove and return the event found by (subject, date, time)."""
        if subject is None:
            raise MissingValueError("Subject")
        if event_date is None:
            raise MissingValueError("Date")
        event = self.get_event(subject, event_date, event_time)
        if event is None:
            raise EventNotFoundError("Event not found")
        self._events = self._without(event)
        return event

    # ── Queries ──────────────────────────────────────────

    def get_event(
        self,
        subject: str | None,
        event_date: date | None,
        event_time: datetime | time | None = None,
    ) -> Event | None:
        """First event with this subject and start date.

        With no time, only all-day events match; otherwise the start time
        must equal the time-of-day of ``event_time``.
        """
        if subject is None or event_date is None:
            return None
        wanted = event_time.time() if isinstance(event_time, datetime) else event_time

        for event in self._events:
            if event.subject != subject or event.start_date != event_date:
                continue
            if wanted is None:
                if event.start_time is None:
                    return event
            elif event.start_time == wanted:
                return event
        return None

    def get_all_events(self) -> list[Event]:
        return list(self._events)

    def get_events_on_date(self, day: date | None) -> list[Event]:
        """Events whose [start date, end date] covers ``day``."""
        if day is None:
            raise MissingValueError("Date")
        return [
            event for event in self._events
            if event.start_date <= day <= (event.end_date or event.start_date)
        ]

    def get_events_in_range(self, start: date | None, end: date | None) -> list[Event]:
        """Events overlapping the inclusive range [start, end]."""
        if start is None:
            raise MissingValueError("Start date")
        if end is None:
            raise MissingValueError("End date")
        if end < start:
            raise InvalidArgumentError("End date must be after or equal to start date")
        return [
            event for event in self._events
            if (event.end_date or event.start_date) >= start and event.start_date <= end
        ]

    def is_busy_at(self, moment: datetime | None) -> bool:
        """True if any event's [start, end] contains ``moment``."""
        if moment is None:
            raise MissingValueError("Date time")
        # Event instants are naive local times
        if moment.tzinfo is not None:
            raise InvalidArgumentError("Date time must not carry a timezone")
        return any(event.start_datetime <= moment <= event.end_datetime for event in self._events)

    # ── CSV ──────────────────────────────────────────────

    def export_to_csv(self) -> str:
        return csv_format.export_events(self._events)

    def import_from_csv(self, content: str | None) -> None:
        """Add every data record through ``add_event`` with the calendar default.

        Rows rejected for a time conflict are skipped. Any other failure stops
        the import with an InvalidArgumentError naming the line the record starts on.
        """
        if content is None:
            raise MissingValueError("CSV content")

        for line_number, fields in csv_format.iter_records(content):
            try:
                event = csv_format.parse_event(fields)
                self.add_event(event, self._default_allow_conflicts)
            except (ValueError, MissingValueError) as e:
                raise InvalidArgumentError(f"Error parsing CSV line {line_number}: {e}") from e

    # ── Listeners ────────────────────────────────────────

    def add_calendar_listener(self, listener: CalendarListener | None) -> None:
        if listener is None:
            raise MissingValueError("Listener")
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_calendar_listener(self, listener: CalendarListener | None) -> None:
        if listener is None:
            raise MissingValueError("Listener")
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _announce_added(self, event: Event) -> None:
        for listener in list(self._listeners):
            listener.on_event_added(event)

    def _announce_modified(self, event: Event) -> None:
        for listener in list(self._listeners):
            listener.on_event_modified(event)

    # ── Helpers ──────────────────────────────────────────

    def _without(self, target: Event) -> list[Event]:
        """Copy of the event list minus ``target`` (matched by identity)."""
        remaining = list(self._events)
        for index, event in enumerate(remaining):
            if event is target:
                del remaining[index]
                break
        return remaining

    @staticmethod
    def _find_duplicate(candidate: Event, events: list[Event]) -> Event | None:
        key = candidate.identity()
        return next((event for event in events if event.identity() == key), None)

    @staticmethod
    def _find_conflict(candidate: Event, events: list[Event]) -> Event | None:
        return next(
            (
                event for event in events
                if event.conflicts_with(candidate) or candidate.conflicts_with(event)
            ),
            None,
        )

    def __len__(self):
        return len(self._events)

    def __repr__(self):
        return f"Calendar(title={self._title!r}, events={len(self._events)})"

    def __str__(self):
        return f"Calendar: {self._title} ({len(self._events)} events)"
