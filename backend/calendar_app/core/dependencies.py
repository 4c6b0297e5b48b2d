"""
FastAPI dependency injection functions.
"""

from functools import lru_cache

from fastapi import Depends, status

from calendar_app.config import get_settings
from calendar_app.core.exceptions import CalendarNotFoundError, app_error_to_http
from calendar_app.features.calendar.service import Calendar
from calendar_app.features.calendar.storage import CalendarStore


@lru_cache
def get_calendar_store() -> CalendarStore:
    """Get the calendar store (singleton).

    Created empty; the application lifespan calls ``load()`` on it.
    """
    settings = get_settings()
    return CalendarStore(
        path=settings.CALENDARS_FILE,
        default_allow_conflicts=settings.DEFAULT_ALLOW_CONFLICTS,
        seed_defaults=settings.SEED_DEFAULT_CALENDARS,
    )


def get_calendar(
    title: str,
    store: CalendarStore = Depends(get_calendar_store),
) -> Calendar:
    """Dependency: resolve the ``{title}`` path parameter to a calendar.

    Raises:
        HTTPException 404: If no calendar has this title.
    """
    try:
        return store.get(title)
    except CalendarNotFoundError as e:
        raise app_error_to_http(e, status.HTTP_404_NOT_FOUND)
