"""
Calendar feature: Schemas for request/response models.
"""

from datetime import date, time
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from calendar_app.features.calendar.models import (
    Event,
    RecurrencePattern,
    RecurringEvent,
    SingleEvent,
    Visibility,
    Weekday,
)


def _naive_time(value: time | None) -> time | None:
    if value is not None and value.tzinfo is not None:
        raise ValueError("time must not carry a timezone")
    return value


class CalendarCreate(BaseModel):
    """Request to create a new calendar."""
    title: str
    default_allow_conflicts: bool | None = None  # None = server default


class CalendarResponse(BaseModel):
    """Response model for a calendar summary."""
    title: str
    default_allow_conflicts: bool
    event_count: int


class EventCreate(BaseModel):
    """Request to create a single event. No start_time = all-day."""
    subject: str
    start_date: date
    start_time: time | None = None
    end_date: date | None = None
    end_time: time | None = None
    visibility: Visibility = Visibility.PUBLIC
    description: str | None = None
    location: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def reject_aware_times(cls, value: time | None) -> time | None:
        return _naive_time(value)

    def to_event(self) -> SingleEvent:
        builder = (
            SingleEvent.builder(self.subject, self.start_date)
            .with_start_time(self.start_time)
            .with_end_date(self.end_date)
            .with_end_time(self.end_time)
            .with_visibility(self.visibility)
        )
        if self.description:
            builder.with_description(self.description)
        if self.location:
            builder.with_location(self.location)
        return builder.build()


class RecurrenceCreate(BaseModel):
    """Weekdays plus exactly one of end_date / occurrences."""
    weekdays: list[Weekday] = Field(..., min_length=1)
    end_date: date | None = None
    occurrences: int | None = None

    def to_pattern(self) -> RecurrencePattern:
        return RecurrencePattern(self.weekdays, end_date=self.end_date, occurrences=self.occurrences)


class RecurringEventCreate(BaseModel):
    """Request to create a recurring event. Timed occurrences need both times."""
    subject: str
    start_date: date  # anchor, need not fall on a pattern weekday
    start_time: time | None = None
    end_time: time | None = None
    visibility: Visibility = Visibility.PUBLIC
    description: str | None = None
    location: str | None = None
    recurrence: RecurrenceCreate

    @field_validator("start_time", "end_time")
    @classmethod
    def reject_aware_times(cls, value: time | None) -> time | None:
        return _naive_time(value)

    def to_event(self, horizon_years: int) -> RecurringEvent:
        builder = (
            RecurringEvent.builder(self.subject, self.start_date, self.recurrence.to_pattern())
            .with_start_time(self.start_time)
            .with_end_time(self.end_time)
            .with_visibility(self.visibility)
            .with_horizon_years(horizon_years)
        )
        if self.description:
            builder.with_description(self.description)
        if self.location:
            builder.with_location(self.location)
        return builder.build()


class EventUpdate(BaseModel):
    """Request to replace an event, found by its original identity."""
    original_subject: str
    original_date: date
    original_time: time | None = None  # None = the original is all-day
    event: EventCreate

    @field_validator("original_time")
    @classmethod
    def reject_aware_time(cls, value: time | None) -> time | None:
        return _naive_time(value)


class OccurrenceUpdate(BaseModel):
    """Request to edit one occurrence, or every occurrence from a date onwards."""
    occurrence_date: date
    event: EventCreate


class CsvImport(BaseModel):
    """CSV text, header line first."""
    content: str


class EventResponse(BaseModel):
    """Response model for an event (a recurring event reports its anchor)."""
    kind: Literal["single", "recurring"]
    subject: str
    start_date: date
    start_time: time | None = None
    end_date: date | None = None
    end_time: time | None = None
    is_all_day: bool
    visibility: Visibility
    description: str | None = None
    location: str | None = None
    occurrence_count: int | None = None

    @classmethod
    def from_event(cls, event: Event) -> "EventResponse":
        is_recurring = isinstance(event, RecurringEvent)
        return cls(
            kind="recurring" if is_recurring else "single",
            subject=event.subject,
            start_date=event.start_date,
            start_time=event.start_time,
            end_date=event.end_date,
            end_time=event.end_time,
            is_all_day=event.is_all_day,
            visibility=event.visibility,
            description=event.description,
            location=event.location,
            occurrence_count=len(event.occurrence_dates) if is_recurring else None,
        )
