"""
Unit tests for saving/restoring calendars and the CalendarStore.
"""

from datetime import date, time

import pytest

from calendar_app.core.exceptions import CalendarNotFoundError, CalendarStorageError, InvalidArgumentError
from calendar_app.features.calendar.listeners import LoggingCalendarListener
from calendar_app.features.calendar.models import SingleEvent
from calendar_app.features.calendar.service import Calendar
from calendar_app.features.calendar.storage import (
    CALENDAR_DELIMITER,
    CalendarStore,
    create_default_calendars,
    restore_all_calendars,
    save_all_calendars,
)


def _event(subject, day, start=None, end=None):
    builder = SingleEvent.builder(subject, day)
    if start is not None:
        builder.with_start_time(start).with_end_time(end)
    return builder.build()


class TestSaveRestore:
    def test_empty_calendars(self, tmp_path):
        path = tmp_path / "calendars.txt"
        save_all_calendars([Calendar("Calendar 1"), Calendar("Calendar 2")], path)

        restored = restore_all_calendars(path)
        assert [c.title for c in restored] == ["Calendar 1", "Calendar 2"]
        assert all(c.get_all_events() == [] for c in restored)

    def test_calendars_with_events(self, tmp_path):
        work = Calendar("Work")
        work.add_event(_event("Meeting", date(2024, 1, 15), time(10, 0), time(11, 0)), False)
        personal = Calendar("Personal")
        personal.add_event(_event("Dentist", date(2024, 1, 16), time(14, 0), time(15, 0)), False)
        path = tmp_path / "calendars.txt"

        save_all_calendars([work, personal], path)
        restored = restore_all_calendars(path)

        assert len(restored) == 2
        assert [e.subject for e in restored[0].get_all_events()] == ["Meeting"]
        assert [e.subject for e in restored[1].get_all_events()] == ["Dentist"]

    def test_file_layout(self, tmp_path):
        path = tmp_path / "calendars.txt"
        save_all_calendars([Calendar("Work")], path)
        lines = path.read_text(encoding="utf-8").split("\n")
        assert lines[0] == CALENDAR_DELIMITER
        assert lines[1] == "Work"
        assert lines[2].startswith("Subject,Start Date")

    def test_save_empty_list(self, tmp_path):
        path = tmp_path / "calendars.txt"
        save_all_calendars([], path)
        assert restore_all_calendars(path) == []

    def test_restore_missing_file(self, tmp_path):
        with pytest.raises(CalendarStorageError):
            restore_all_calendars(tmp_path / "missing.txt")

    def test_storage_error_is_os_error(self, tmp_path):
        with pytest.raises(OSError):
            restore_all_calendars(tmp_path / "missing.txt")

    def test_restore_with_conflict_setting(self, tmp_path):
        calendar = Calendar("Shared", default_allow_conflicts=True)
        calendar.add_event(_event("A", date(2024, 1, 15), time(10, 0), time(11, 0)))
        calendar.add_event(_event("B", date(2024, 1, 15), time(10, 30), time(11, 30)))
        path = tmp_path / "calendars.txt"
        save_all_calendars([calendar], path)

        assert len(restore_all_calendars(path)[0].get_all_events()) == 1
        assert len(restore_all_calendars(path, default_allow_conflicts=True)[0].get_all_events()) == 2


class TestDefaultCalendars:
    def test_sample_calendars(self):
        work, personal = create_default_calendars(date(2024, 1, 15))
        assert work.title == "Work"
        assert personal.title == "Personal"
        assert work.get_all_events()[0].subject == "Team Meeting"
        assert personal.get_all_events()[0].location == "Downtown Cafe"


class TestCalendarStore:
    def test_load_falls_back_to_defaults(self, tmp_path):
        store = CalendarStore(tmp_path / "missing.txt")
        calendars = store.load()
        assert [c.title for c in calendars] == ["Work", "Personal"]

    def test_load_without_fallback_raises(self, tmp_path):
        store = CalendarStore(tmp_path / "missing.txt", seed_defaults=False)
        with pytest.raises(CalendarStorageError):
            store.load()

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "calendars.txt"
        store = CalendarStore(path)
        school = store.create("School")
        school.add_event(_event("Exam", date(2024, 5, 2), time(8, 0), time(10, 0)), False)
        store.save()

        reloaded = CalendarStore(path)
        reloaded.load()
        assert reloaded.titles() == ["School"]
        assert reloaded.get("School").get_all_events()[0].subject == "Exam"

    def test_get_unknown_title(self, tmp_path):
        store = CalendarStore(tmp_path / "calendars.txt")
        with pytest.raises(CalendarNotFoundError):
            store.get("Nope")

    def test_titles_are_unique(self, tmp_path):
        store = CalendarStore(tmp_path / "calendars.txt")
        store.create("Work")
        with pytest.raises(InvalidArgumentError):
            store.create(" Work ")

    def test_create_uses_store_default(self, tmp_path):
        store = CalendarStore(tmp_path / "calendars.txt", default_allow_conflicts=True)
        assert store.create("Shared").default_allow_conflicts
        assert not store.create("Strict", default_allow_conflicts=False).default_allow_conflicts

    def test_managed_calendars_get_logging_listener(self, tmp_path):
        store = CalendarStore(tmp_path / "calendars.txt")
        calendar = store.create("Work")
        assert LoggingCalendarListener("Work") in calendar._listeners

    def test_multiline_and_unicode_separators_survive_save_and_load(self, tmp_path):
        path = tmp_path / "calendars.txt"
        store = CalendarStore(path)
        mine = store.create("Mine")
        mine.add_event(
            SingleEvent.builder("Trip plan", date(2024, 3, 1))
            .with_description("pack bags\nbook hotel")
            .with_location("Gate\x0cB")
            .build(),
            False,
        )
        store.save()

        reloaded = CalendarStore(path)
        reloaded.load()
        assert reloaded.titles() == ["Mine"]
        event = reloaded.get("Mine").get_all_events()[0]
        assert event.subject == "Trip plan"
        assert event.description == "pack bags\nbook hotel"
        assert event.location == "Gate\x0cB"

    def test_corrupt_file_is_not_replaced_by_defaults(self, tmp_path):
        path = tmp_path / "calendars.txt"
        corrupt = f"{CALENDAR_DELIMITER}\nMine\nheader\nBroken,01/15/2024\n"
        path.write_text(corrupt, encoding="utf-8")

        store = CalendarStore(path)
        with pytest.raises(InvalidArgumentError):
            store.load()
        assert store.titles() == []
        assert path.read_text(encoding="utf-8") == corrupt
