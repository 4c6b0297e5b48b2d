"""
Calendar feature: observers notified after a calendar changes.
"""

import logging
from typing import Protocol, runtime_checkable

from calendar_app.features.calendar.models import Event

logger = logging.getLogger(__name__)


@runtime_checkable
class CalendarListener(Protocol):
    """Called synchronously, only after an add or update has been committed."""

    def on_event_added(self, event: Event) -> None: ...

    def on_event_modified(self, event: Event) -> None: ...


class LoggingCalendarListener:
    """Writes one log line per committed change of the calendar it watches."""

    def __init__(self, calendar_title: str):
        self.calendar_title = calendar_title

    def on_event_added(self, event: Event) -> None:
        logger.info(f"📅 [{self.calendar_title}] added '{event.subject}' on {event.start_date.isoformat()}")

    def on_event_modified(self, event: Event) -> None:
        logger.info(f"✏️ [{self.calendar_title}] modified '{event.subject}' on {event.start_date.isoformat()}")

    def __eq__(self, other):
        if not isinstance(other, LoggingCalendarListener):
            return NotImplemented
        return self.calendar_title == other.calendar_title

    def __hash__(self):
        return hash(self.calendar_title)
