"""
Calendar feature: API routes for calendars and events.

Create/update return 409 when the event overlaps another one; the client can
repeat the request with ``allow_conflicts=true`` to add it anyway. Duplicates
and invalid events are 400 whatever ``allow_conflicts`` says.
"""

from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from calendar_app.config import get_settings
from calendar_app.core.dependencies import get_calendar, get_calendar_store
from calendar_app.core.exceptions import AppBaseError, app_error_to_http
from calendar_app.features.calendar.models import RecurringEvent
from calendar_app.features.calendar.schemas import (
    CalendarCreate,
    CalendarResponse,
    CsvImport,
    EventCreate,
    EventResponse,
    EventUpdate,
    OccurrenceUpdate,
    RecurringEventCreate,
)
from calendar_app.features.calendar.service import Calendar
from calendar_app.features.calendar.storage import CalendarStore

router = APIRouter()


def _conflict(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "error": message,
            "detail": "Retry with allow_conflicts=true to save the event anyway.",
            "type": "EventConflict",
        },
    )


def _calendar_summary(calendar: Calendar) -> dict:
    return CalendarResponse(
        title=calendar.title,
        default_allow_conflicts=calendar.default_allow_conflicts,
        event_count=len(calendar),
    ).model_dump()


def _recurring_event(calendar: Calendar, subject: str, anchor: date, start_time: time | None) -> RecurringEvent:
    event = calendar.get_event(subject, anchor, start_time)
    if not isinstance(event, RecurringEvent):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": f"Recurring event '{subject}' not found",
                "detail": None,
                "type": "EventNotFoundError",
            },
        )
    return event


# ── Calendars ────────────────────────────────────────────

@router.get("/")
async def list_calendars(store: CalendarStore = Depends(get_calendar_store)):
    """List all calendars."""
    return {"data": [_calendar_summary(calendar) for calendar in store.calendars()]}


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_calendar(
    data: CalendarCreate,
    store: CalendarStore = Depends(get_calendar_store),
):
    """Create a new, empty calendar."""
    try:
        calendar = store.create(data.title, data.default_allow_conflicts)
    except AppBaseError as e:
        raise app_error_to_http(e)
    return {"data": _calendar_summary(calendar)}


# ── Events ───────────────────────────────────────────────

@router.get("/{title}/events")
async def list_events(
    on: date | None = None,
    start: date | None = None,
    end: date | None = None,
    calendar: Calendar = Depends(get_calendar),
):
    """List events: all of them, those on one date, or those overlapping [start, end]."""
    try:
        if on is not None:
            events = calendar.get_events_on_date(on)
        elif start is not None or end is not None:
            events = calendar.get_events_in_range(start, end)
        else:
            events = calendar.get_all_events()
    except AppBaseError as e:
        raise app_error_to_http(e)
    return {"data": [EventResponse.from_event(event).model_dump(mode="json") for event in events]}


@router.get("/{title}/busy")
async def is_busy(at: datetime, calendar: Calendar = Depends(get_calendar)):
    """Whether any event covers the given moment (a naive local date-time)."""
    try:
        busy = calendar.is_busy_at(at)
    except AppBaseError as e:
        raise app_error_to_http(e)
    return {"data": {"at": at.isoformat(), "busy": busy}}


@router.post("/{title}/events", status_code=status.HTTP_201_CREATED)
async def create_event(
    data: EventCreate,
    allow_conflicts: bool = False,
    calendar: Calendar = Depends(get_calendar),
):
    """Create a single event."""
    try:
        event = data.to_event()
        added = calendar.add_event(event, allow_conflicts)
    except AppBaseError as e:
        raise app_error_to_http(e)
    if not added:
        raise _conflict(f"'{event.subject}' conflicts with an existing event")
    return {"data": EventResponse.from_event(event).model_dump(mode="json")}


@router.post("/{title}/recurring-events", status_code=status.HTTP_201_CREATED)
async def create_recurring_event(
    data: RecurringEventCreate,
    allow_conflicts: bool = False,
    calendar: Calendar = Depends(get_calendar),
):
    """Create a recurring event."""
    settings = get_settings()
    try:
        event = data.to_event(settings.RECURRENCE_HORIZON_YEARS)
        added = calendar.add_event(event, allow_conflicts)
    except AppBaseError as e:
        raise app_error_to_http(e)
    if not added:
        raise _conflict(f"'{event.subject}' conflicts with an existing event")
    return {"data": EventResponse.from_event(event).model_dump(mode="json")}


@router.put("/{title}/events")
async def update_event(
    data: EventUpdate,
    allow_conflicts: bool = False,
    calendar: Calendar = Depends(get_calendar),
):
    """Replace an existing event."""
    try:
        updated_event = data.event.to_event()
        updated = calendar.update_event(
            data.original_subject,
            data.original_date,
            data.original_time,
            updated_event,
            allow_conflicts,
        )
    except AppBaseError as e:
        raise app_error_to_http(e)
    if not updated:
        raise _conflict(f"Update of '{data.original_subject}' conflicts with an existing event")
    return {"data": EventResponse.from_event(updated_event).model_dump(mode="json")}


@router.delete("/{title}/events")
async def delete_event(
    subject: str,
    event_date: date = Query(..., alias="date"),
    event_time: time | None = Query(None, alias="time"),
    calendar: Calendar = Depends(get_calendar),
):
    """Delete an event."""
    try:
        calendar.remove_event(subject, event_date, event_time)
    except AppBaseError as e:
        raise app_error_to_http(e, status.HTTP_404_NOT_FOUND)
    return {"message": "Event deleted"}


# ── Recurring occurrences ────────────────────────────────

@router.get("/{title}/recurring-events/occurrences")
async def list_occurrences(
    subject: str,
    anchor: date = Query(..., alias="date"),
    start_time: time | None = Query(None, alias="time"),
    calendar: Calendar = Depends(get_calendar),
):
    """List every occurrence of a recurring event, overrides applied."""
    event = _recurring_event(calendar, subject, anchor, start_time)
    occurrences = event.get_all_occurrences()
    return {"data": [EventResponse.from_event(o).model_dump(mode="json") for o in occurrences]}


@router.put("/{title}/recurring-events/occurrences")
async def modify_occurrences(
    data: OccurrenceUpdate,
    subject: str,
    anchor: date = Query(..., alias="date"),
    start_time: time | None = Query(None, alias="time"),
    following: bool = False,
    calendar: Calendar = Depends(get_calendar),
):
    """Edit one occurrence, or (following=true) that occurrence and all later ones."""
    event = _recurring_event(calendar, subject, anchor, start_time)
    try:
        replacement = data.event.to_event()
        if following:
            event.modify_from_date(data.occurrence_date, replacement)
        else:
            event.modify_single_occurrence(data.occurrence_date, replacement)
    except AppBaseError as e:
        raise app_error_to_http(e)
    occurrences = event.get_all_occurrences()
    return {"data": [EventResponse.from_event(o).model_dump(mode="json") for o in occurrences]}


# ── CSV ──────────────────────────────────────────────────

@router.get("/{title}/export", response_class=PlainTextResponse)
async def export_csv(calendar: Calendar = Depends(get_calendar)):
    """Export the calendar as CSV."""
    return PlainTextResponse(calendar.export_to_csv(), media_type="text/csv")


@router.post("/{title}/import")
async def import_csv(data: CsvImport, calendar: Calendar = Depends(get_calendar)):
    """Import CSV rows; rows that conflict are skipped."""
    before = len(calendar)
    try:
        calendar.import_from_csv(data.content)
    except AppBaseError as e:
        raise app_error_to_http(e)
    return {"data": {"imported": len(calendar) - before, "event_count": len(calendar)}}
