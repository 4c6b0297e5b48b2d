"""
Calendar feature: saving and restoring a set of calendars.

File layout, one block per calendar:

    ===CALENDAR===
    <title>
    <CSV header>
    <CSV rows...>

The save/restore functions only deal with the file. CalendarStore is the
orchestration layer on top: it keeps the live calendars and decides what to
do when nothing can be restored.
"""

import logging
from datetime import date, time
from pathlib import Path
from typing import Iterable

from calendar_app.core.exceptions import (
    CalendarNotFoundError,
    CalendarStorageError,
    InvalidArgumentError,
)
from calendar_app.features.calendar.listeners import LoggingCalendarListener
from calendar_app.features.calendar.models import SingleEvent, Visibility
from calendar_app.features.calendar.service import Calendar

logger = logging.getLogger(__name__)

CALENDAR_DELIMITER = "===CALENDAR==="


def save_all_calendars(calendars: Iterable[Calendar], path: str | Path) -> None:
    """Write every calendar to ``path``, replacing its contents."""
    blocks = []
    for calendar in calendars:
        blocks.append(f"{CALENDAR_DELIMITER}\n{calendar.title}\n{calendar.export_to_csv()}\n")
    try:
        Path(path).write_text("".join(blocks), encoding="utf-8")
    except OSError as e:
        raise CalendarStorageError(f"Cannot write calendars file '{path}'", detail=str(e)) from e


def restore_all_calendars(path: str | Path, default_allow_conflicts: bool = False) -> list[Calendar]:
    """Read the calendars saved in ``path``, in file order.

    Raises:
        CalendarStorageError: the file does not exist or cannot be read.
        InvalidArgumentError: the file is not UTF-8 or a calendar block holds a malformed CSV record.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CalendarStorageError(f"Cannot read calendars file '{path}'", detail=str(e)) from e
    except UnicodeDecodeError as e:
        raise InvalidArgumentError(f"Calendars file '{path}' is not valid UTF-8", detail=str(e)) from e

    calendars: list[Calendar] = []
    title: str | None = None
    body: list[str] = []

    def flush():
        if title is not None and body:
            calendar = Calendar(title, default_allow_conflicts)
            calendar.import_from_csv("\n".join(body) + "\n")
            calendars.append(calendar)

    # Only "\n" separates lines; other line-break characters belong to field values
    line_iter = iter(content.split("\n"))
    for line in line_iter:
        if line.rstrip("\r") == CALENDAR_DELIMITER:
            flush()
            title = next(line_iter, None)
            if title is not None:
                title = title.rstrip("\r")
            body = []
        else:
            body.append(line)
    flush()

    return calendars


def create_default_calendars(today: date | None = None) -> list[Calendar]:
    """Sample "Work" and "Personal" calendars with one event each."""
    today = today or date.today()

    work = Calendar("Work")
    work.add_event(
        SingleEvent.builder("Team Meeting", today)
        .with_start_time(time(10, 0))
        .with_end_time(time(11, 0))
        .with_description("Weekly team sync")
        .with_location("Conference Room A")
        .with_visibility(Visibility.PUBLIC)
        .build(),
        False,
    )

    personal = Calendar("Personal")
    personal.add_event(
        SingleEvent.builder("Lunch with Friends", today)
        .with_start_time(time(12, 30))
        .with_end_time(time(13, 30))
        .with_location("Downtown Cafe")
        .with_visibility(Visibility.PRIVATE)
        .build(),
        False,
    )

    return [work, personal]


class CalendarStore:
    """The live set of calendars, keyed by unique title, backed by one file."""

    def __init__(
        self,
        path: str | Path,
        default_allow_conflicts: bool = False,
        seed_defaults: bool = True,
    ):
        self.path = Path(path)
        self.default_allow_conflicts = default_allow_conflicts
        self.seed_defaults = seed_defaults
        self._calendars: list[Calendar] = []

    def load(self) -> list[Calendar]:
        """Restore from file; fall back to sample calendars when it cannot be read.

        A file that exists but does not parse is never replaced: the
        InvalidArgumentError propagates so the next save cannot overwrite it.
        """
        try:
            restored = restore_all_calendars(self.path, self.default_allow_conflicts)
            logger.info(f"📂 Restored {len(restored)} calendar(s) from {self.path}")
        except InvalidArgumentError as e:
            logger.error(f"❌ Calendars file {self.path} is corrupt: {e.message}")
            raise
        except CalendarStorageError as e:
            if not self.seed_defaults:
                raise
            logger.warning(f"Cannot restore calendars ({e.message}), creating default calendars")
            restored = create_default_calendars()

        self._calendars = []
        for calendar in restored:
            self.add(calendar)
        return self.calendars()

    def save(self) -> None:
        save_all_calendars(self._calendars, self.path)
        logger.info(f"💾 Saved {len(self._calendars)} calendar(s) to {self.path}")

    def calendars(self) -> list[Calendar]:
        return list(self._calendars)

    def titles(self) -> list[str]:
        return [calendar.title for calendar in self._calendars]

    def find(self, title: str) -> Calendar | None:
        return next((c for c in self._calendars if c.title == title.strip()), None)

    def get(self, title: str) -> Calendar:
        calendar = self.find(title)
        if calendar is None:
            raise CalendarNotFoundError(title)
        return calendar

    def add(self, calendar: Calendar) -> Calendar:
        if self.find(calendar.title) is not None:
            raise InvalidArgumentError(f"Calendar '{calendar.title}' already exists")
        calendar.add_calendar_listener(LoggingCalendarListener(calendar.title))
        self._calendars.append(calendar)
        return calendar

    def create(self, title: str, default_allow_conflicts: bool | None = None) -> Calendar:
        if default_allow_conflicts is None:
            default_allow_conflicts = self.default_allow_conflicts
        return self.add(Calendar(title, default_allow_conflicts))

    def __len__(self):
        return len(self._calendars)
