"""
Calendar feature: domain model for events.

Two event variants share the Event interface:
  - SingleEvent: one occurrence, may span several days.
  - RecurringEvent: a weekday pattern expanded into single-day occurrences,
    with per-date overrides.

Both are built through a staged builder: required fields go to the builder
constructor, optional fields are chained with ``with_*`` calls and ``build()``
validates everything in one place.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, time
from enum import Enum
from itertools import islice
from typing import Iterable

from dateutil.relativedelta import relativedelta
from dateutil.rrule import DAILY, rrule, weekdays as RRULE_WEEKDAYS

from calendar_app.core.exceptions import InvalidArgumentError, MissingValueError

END_OF_DAY = time(23, 59, 59)

# Scan window for every recurrence pattern, and the largest window a builder accepts
DEFAULT_HORIZON_YEARS = 2
MAX_HORIZON_YEARS = 10


class Visibility(str, Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class Weekday(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @property
    def number(self) -> int:
        """Monday = 0 ... Sunday = 6, same numbering as ``date.weekday()``."""
        return _WEEKDAY_ORDER.index(self)

    @classmethod
    def of(cls, day: date) -> "Weekday":
        return _WEEKDAY_ORDER[day.weekday()]


_WEEKDAY_ORDER = list(Weekday)


class RecurrencePattern:
    """Which weekdays repeat, and when the repetition stops.

    Exactly one termination rule is set: an inclusive end date, or a positive
    number of occurrences. Use the ``until`` / ``count`` constructors.
    """

    __slots__ = ("_weekdays", "_end_date", "_occurrences")

    def __init__(
        self,
        weekdays: Iterable[Weekday] | None,
        end_date: date | None = None,
        occurrences: int | None = None,
    ):
        if not weekdays:
            raise InvalidArgumentError("Days of week cannot be null or empty")
        day_set = frozenset(weekdays)
        if not day_set:
            raise InvalidArgumentError("Days of week cannot be null or empty")
        if end_date is not None and occurrences is not None:
            raise InvalidArgumentError("Use either an end date or an occurrence count, not both")
        if occurrences is None and end_date is None:
            raise InvalidArgumentError("End date cannot be null")
        if occurrences is not None and occurrences <= 0:
            raise InvalidArgumentError("Occurrences must be positive")

        self._weekdays = day_set
        self._end_date = end_date
        self._occurrences = occurrences

    @classmethod
    def until(cls, weekdays: Iterable[Weekday] | None, end_date: date | None) -> "RecurrencePattern":
        """Pattern ending on ``end_date`` (inclusive)."""
        if end_date is None:
            raise InvalidArgumentError("End date cannot be null")
        return cls(weekdays, end_date=end_date)

    @classmethod
    def count(cls, weekdays: Iterable[Weekday] | None, occurrences: int) -> "RecurrencePattern":
        """Pattern stopping after ``occurrences`` matching days."""
        return cls(weekdays, occurrences=occurrences)

    @property
    def weekdays(self) -> frozenset[Weekday]:
        return self._weekdays

    @property
    def end_date(self) -> date | None:
        return self._end_date

    @property
    def occurrences(self) -> int | None:
        return self._occurrences

    def uses_end_date(self) -> bool:
        return self._end_date is not None

    def expand(self, anchor: date, horizon_years: int = DEFAULT_HORIZON_YEARS) -> list[date]:
        """Every date from ``anchor`` onwards whose weekday is in the pattern.

        The anchor itself is only included when its weekday matches. No pattern
        scans past ``anchor + horizon_years``, whatever its end date.
        """
        limit = anchor + relativedelta(years=horizon_years)
        if self.uses_end_date():
            limit = min(limit, self._end_date)

        if limit < anchor:
            return []

        rule = rrule(
            DAILY,
            dtstart=datetime.combine(anchor, time.min),
            until=datetime.combine(limit, time.min),
            byweekday=[RRULE_WEEKDAYS[day.number] for day in sorted(self._weekdays, key=lambda d: d.number)],
        )
        dates = (occurrence.date() for occurrence in rule)
        if self._occurrences is not None:
            return list(islice(dates, self._occurrences))
        return list(dates)

    def __eq__(self, other):
        if not isinstance(other, RecurrencePattern):
            return NotImplemented
        return (
            self._weekdays == other._weekdays
            and self._end_date == other._end_date
            and self._occurrences == other._occurrences
        )

    def __hash__(self):
        return hash((self._weekdays, self._end_date, self._occurrences))

    def __repr__(self):
        days = ", ".join(day.value for day in sorted(self._weekdays, key=lambda d: d.number))
        if self._end_date is not None:
            return f"RecurrencePattern(days=[{days}], until={self._end_date.isoformat()})"
        return f"RecurrencePattern(days=[{days}], occurrences={self._occurrences})"


# ── Event interface ──────────────────────────────────────

class Event(ABC):
    """Read accessors shared by SingleEvent and RecurringEvent."""

    @property
    @abstractmethod
    def subject(self) -> str: ...

    @property
    @abstractmethod
    def start_date(self) -> date: ...

    @property
    @abstractmethod
    def start_time(self) -> time | None: ...

    @property
    @abstractmethod
    def end_date(self) -> date | None: ...

    @property
    @abstractmethod
    def end_time(self) -> time | None: ...

    @property
    @abstractmethod
    def visibility(self) -> Visibility: ...

    @property
    @abstractmethod
    def description(self) -> str | None: ...

    @property
    @abstractmethod
    def location(self) -> str | None: ...

    @property
    def is_all_day(self) -> bool:
        return self.start_time is None

    @property
    @abstractmethod
    def start_datetime(self) -> datetime: ...

    @property
    @abstractmethod
    def end_datetime(self) -> datetime: ...

    @abstractmethod
    def conflicts_with(self, other: "Event | None") -> bool: ...

    def identity(self) -> tuple[str, date, time | None]:
        """(subject, start date, start time): the key used for duplicate detection."""
        return (self.subject, self.start_date, self.start_time)


def _validate_subject(subject: str | None) -> str:
    if subject is None or not subject.strip():
        raise InvalidArgumentError("Subject is required")
    return subject.strip()


def _intervals_overlap(first: Event, second: Event) -> bool:
    return first.start_datetime < second.end_datetime and first.end_datetime > second.start_datetime


class SingleEvent(Event):
    """A one-off event. All-day when it has no start time."""

    def __init__(self, builder: "SingleEventBuilder"):
        self._subject = _validate_subject(builder.subject)
        if builder.start_date is None:
            raise MissingValueError("Start date")
        self._start_date = builder.start_date
        self._start_time = builder.start_time

        if self._start_time is None and builder.end_time is not None:
            raise InvalidArgumentError("Cannot have end time without start time")

        # Timed events without an end date end on the day they start
        if self._start_time is not None and builder.end_date is None:
            self._end_date = self._start_date
        else:
            self._end_date = builder.end_date
        self._end_time = builder.end_time

        if not self.is_all_day and self.end_datetime < self.start_datetime:
            raise InvalidArgumentError("End time must be after start time")

        self._visibility = builder.visibility or Visibility.PUBLIC
        self._description = builder.description
        self._location = builder.location

    @staticmethod
    def builder(subject: str | None, start_date: date | None) -> "SingleEventBuilder":
        return SingleEventBuilder(subject, start_date)

    @property
    def subject(self) -> str:
        return self._subject

    @property
    def start_date(self) -> date:
        return self._start_date

    @property
    def start_time(self) -> time | None:
        return self._start_time

    @property
    def end_date(self) -> date | None:
        return self._end_date

    @property
    def end_time(self) -> time | None:
        # A timed event without an end is a zero-length meeting
        if self._end_time is None and self._start_time is not None:
            return self._start_time
        return self._end_time

    @property
    def visibility(self) -> Visibility:
        return self._visibility

    @property
    def description(self) -> str | None:
        return self._description

    @property
    def location(self) -> str | None:
        return self._location

    @property
    def start_datetime(self) -> datetime:
        return datetime.combine(self._start_date, self._start_time or time.min)

    @property
    def end_datetime(self) -> datetime:
        end_day = self._end_date or self._start_date
        if self.is_all_day:
            return datetime.combine(end_day, END_OF_DAY)
        return datetime.combine(end_day, self.end_time)

    def conflicts_with(self, other: Event | None) -> bool:
        if other is None:
            return False
        return _intervals_overlap(self, other)

    def __eq__(self, other):
        if not isinstance(other, SingleEvent):
            return NotImplemented
        return self.identity() == other.identity()

    def __hash__(self):
        return hash(self.identity())

    def __repr__(self):
        text = f"SingleEvent(subject={self._subject!r}, date={self._start_date.isoformat()}"
        if not self.is_all_day:
            text += f", time={self._start_time.isoformat()}"
            if self.end_time != self._start_time:
                text += f"-{self.end_time.isoformat()}"
        return text + ")"


class SingleEventBuilder:
    """Collects SingleEvent fields; ``build()`` validates them."""

    def __init__(self, subject: str | None, start_date: date | None):
        self.subject = subject
        self.start_date = start_date
        self.start_time: time | None = None
        self.end_date: date | None = None
        self.end_time: time | None = None
        self.visibility: Visibility | None = None
        self.description: str | None = None
        self.location: str | None = None

    def with_start_time(self, start_time: time | None) -> "SingleEventBuilder":
        self.start_time = start_time
        return self

    def with_end_date(self, end_date: date | None) -> "SingleEventBuilder":
        self.end_date = end_date
        return self

    def with_end_time(self, end_time: time | None) -> "SingleEventBuilder":
        self.end_time = end_time
        return self

    def with_visibility(self, visibility: Visibility | None) -> "SingleEventBuilder":
        self.visibility = visibility
        return self

    def with_description(self, description: str | None) -> "SingleEventBuilder":
        self.description = description
        return self

    def with_location(self, location: str | None) -> "SingleEventBuilder":
        self.location = location
        return self

    def build(self) -> SingleEvent:
        return SingleEvent(self)


class RecurringEvent(Event):
    """An event repeated on the weekdays of a RecurrencePattern.

    Occurrence dates are computed once, at construction. Each occurrence is a
    single-day event; editing one (or a tail of them) stores an override for
    that date. Interface accessors describe the anchor date, except
    ``conflicts_with`` which checks every occurrence.
    """

    def __init__(self, builder: "RecurringEventBuilder"):
        self._subject = _validate_subject(builder.subject)
        if builder.start_date is None:
            raise MissingValueError("Start date")
        if builder.pattern is None:
            raise MissingValueError("Recurrence pattern")

        if builder.start_time is not None and builder.end_time is None:
            raise InvalidArgumentError("Recurring events with start time must have end time")
        if builder.start_time is None and builder.end_time is not None:
            raise InvalidArgumentError("Cannot have end time without start time")
        if builder.start_time is not None and builder.end_time < builder.start_time:
            raise InvalidArgumentError("End time must be after start time")

        self._start_date = builder.start_date
        self._start_time = builder.start_time
        self._end_time = builder.end_time
        self._visibility = builder.visibility or Visibility.PUBLIC
        self._description = builder.description
        self._location = builder.location
        self._pattern = builder.pattern
        self._occurrence_dates = self._pattern.expand(self._start_date, builder.horizon_years)
        self._overrides: dict[date, Event] = {}

    @staticmethod
    def builder(
        subject: str | None,
        start_date: date | None,
        pattern: RecurrencePattern | None,
    ) -> "RecurringEventBuilder":
        return RecurringEventBuilder(subject, start_date, pattern)

    # ── Occurrence engine ────────────────────────────────

    @property
    def pattern(self) -> RecurrencePattern:
        return self._pattern

    @property
    def occurrence_dates(self) -> list[date]:
        return list(self._occurrence_dates)

    @property
    def overrides(self) -> dict[date, Event]:
        return dict(self._overrides)

    def get_all_occurrences(self) -> list[Event]:
        """One event per occurrence date, overrides taking precedence."""
        return [
            self._overrides[day] if day in self._overrides else self._synthesize(self, day)
            for day in self._occurrence_dates
        ]

    def modify_single_occurrence(self, occurrence_date: date, replacement: Event) -> None:
        """Replace the occurrence on ``occurrence_date`` with ``replacement``."""
        if occurrence_date not in self._occurrence_dates:
            raise InvalidArgumentError("Date is not an occurrence of this recurring event")
        if replacement is None:
            raise MissingValueError("Replacement event")
        self._overrides[occurrence_date] = replacement

    def modify_from_date(self, from_date: date, template: Event) -> None:
        """Rewrite every occurrence on or after ``from_date`` from ``template``.

        Each rewritten occurrence keeps its own date; earlier occurrences are
        left alone.
        """
        if from_date is None:
            raise MissingValueError("From date")
        if template is None:
            raise MissingValueError("Template event")
        for day in self._occurrence_dates:
            if day >= from_date:
                self._overrides[day] = self._synthesize(template, day)

    @staticmethod
    def _synthesize(source: Event, day: date) -> SingleEvent:
        builder = SingleEvent.builder(source.subject, day).with_visibility(source.visibility)
        if source.start_time is not None:
            builder.with_start_time(source.start_time)
            builder.with_end_time(source.end_time)
        if source.description is not None:
            builder.with_description(source.description)
        if source.location is not None:
            builder.with_location(source.location)
        return builder.build()

    # ── Event interface (anchor occurrence) ──────────────

    @property
    def subject(self) -> str:
        return self._subject

    @property
    def start_date(self) -> date:
        return self._start_date

    @property
    def start_time(self) -> time | None:
        return self._start_time

    @property
    def end_date(self) -> date | None:
        return self._start_date

    @property
    def end_time(self) -> time | None:
        return self._end_time

    @property
    def visibility(self) -> Visibility:
        return self._visibility

    @property
    def description(self) -> str | None:
        return self._description

    @property
    def location(self) -> str | None:
        return self._location

    @property
    def start_datetime(self) -> datetime:
        return datetime.combine(self._start_date, self._start_time or time.min)

    @property
    def end_datetime(self) -> datetime:
        if self.is_all_day:
            return datetime.combine(self._start_date, END_OF_DAY)
        return datetime.combine(self._start_date, self._end_time)

    def conflicts_with(self, other: Event | None) -> bool:
        if other is None:
            return False
        return any(occurrence.conflicts_with(other) for occurrence in self.get_all_occurrences())

    def __eq__(self, other):
        if not isinstance(other, RecurringEvent):
            return NotImplemented
        return self.identity() == other.identity() and self._pattern == other._pattern

    def __hash__(self):
        return hash((*self.identity(), self._pattern))

    def __repr__(self):
        return (
            f"RecurringEvent(subject={self._subject!r}, start_date={self._start_date.isoformat()}, "
            f"pattern={self._pattern!r})"
        )


class RecurringEventBuilder:
    """Collects RecurringEvent fields; ``build()`` validates and expands the pattern."""

    def __init__(
        self,
        subject: str | None,
        start_date: date | None,
        pattern: RecurrencePattern | None,
    ):
        self.subject = subject
        self.start_date = start_date
        self.pattern = pattern
        self.start_time: time | None = None
        self.end_time: time | None = None
        self.visibility: Visibility | None = None
        self.description: str | None = None
        self.location: str | None = None
        self.horizon_years: int = DEFAULT_HORIZON_YEARS

    def with_start_time(self, start_time: time | None) -> "RecurringEventBuilder":
        self.start_time = start_time
        return self

    def with_end_time(self, end_time: time | None) -> "RecurringEventBuilder":
        self.end_time = end_time
        return self

    def with_visibility(self, visibility: Visibility | None) -> "RecurringEventBuilder":
        self.visibility = visibility
        return self

    def with_description(self, description: str | None) -> "RecurringEventBuilder":
        self.description = description
        return self

    def with_location(self, location: str | None) -> "RecurringEventBuilder":
        self.location = location
        return self

    def with_horizon_years(self, years: int) -> "RecurringEventBuilder":
        if years <= 0 or years > MAX_HORIZON_YEARS:
            raise InvalidArgumentError(f"Recurrence horizon must be between 1 and {MAX_HORIZON_YEARS} years")
        self.horizon_years = years
        return self

    def build(self) -> RecurringEvent:
        return RecurringEvent(self)
