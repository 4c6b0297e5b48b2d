"""
Unit tests for the Calendar container: add/update protocol and queries.
"""

from datetime import date, datetime, time, timezone

import pytest

from calendar_app.core.exceptions import (
    DuplicateEventError,
    EventNotFoundError,
    InvalidArgumentError,
    MissingValueError,
)
from calendar_app.features.calendar.models import RecurrencePattern, RecurringEvent, SingleEvent, Weekday
from calendar_app.features.calendar.service import Calendar


def _event(subject, day=date(2024, 1, 15), start=None, end=None, end_date=None):
    builder = SingleEvent.builder(subject, day)
    if start is not None:
        builder.with_start_time(start)
    if end is not None:
        builder.with_end_time(end)
    if end_date is not None:
        builder.with_end_date(end_date)
    return builder.build()


@pytest.fixture
def work():
    calendar = Calendar("Work")
    calendar.add_event(_event("Meeting", start=time(10, 0), end=time(11, 0)), False)
    return calendar


class TestCalendarConstruction:
    def test_title_is_trimmed(self):
        calendar = Calendar("  Work  ")
        assert calendar.title == "Work"
        assert not calendar.default_allow_conflicts
        assert calendar.get_all_events() == []

    @pytest.mark.parametrize("title", [None, "", "  "])
    def test_blank_title_rejected(self, title):
        with pytest.raises(InvalidArgumentError):
            Calendar(title)

    def test_str(self, work):
        assert str(work) == "Calendar: Work (1 events)"


class TestAddEvent:
    def test_add_event(self):
        calendar = Calendar("Work")
        assert calendar.add_event(_event("Lunch", start=time(12, 0), end=time(13, 0)), False)
        assert len(calendar.get_all_events()) == 1

    def test_add_none(self, work):
        with pytest.raises(MissingValueError):
            work.add_event(None, False)

    def test_conflict_rejected_softly(self, work):
        clash = _event("Meeting2", start=time(10, 30), end=time(11, 30))
        assert work.add_event(clash, False) is False
        assert len(work.get_all_events()) == 1

    def test_conflict_allowed(self, work):
        clash = _event("Meeting2", start=time(10, 30), end=time(11, 30))
        assert work.add_event(clash, True) is True
        assert len(work.get_all_events()) == 2

    def test_duplicate_is_hard_error_even_when_conflicts_allowed(self, work):
        duplicate = _event("Meeting", start=time(10, 0), end=time(12, 0))
        with pytest.raises(DuplicateEventError):
            work.add_event(duplicate, True)
        assert len(work.get_all_events()) == 1

    def test_same_subject_other_time_is_not_duplicate(self, work):
        assert work.add_event(_event("Meeting", start=time(14, 0), end=time(15, 0)), False)

    def test_default_conflict_setting_used_when_unspecified(self):
        calendar = Calendar("Shared", default_allow_conflicts=True)
        calendar.add_event(_event("A", start=time(9, 0), end=time(10, 0)))
        assert calendar.add_event(_event("B", start=time(9, 30), end=time(10, 30)))
        assert len(calendar) == 2

    def test_get_all_events_returns_copy(self, work):
        events = work.get_all_events()
        events.clear()
        assert len(work.get_all_events()) == 1

    def test_recurring_event_conflicts_on_later_occurrence(self):
        calendar = Calendar("Work")
        calendar.add_event(_event("Offsite", day=date(2024, 1, 17), start=time(9, 0), end=time(12, 0)), False)
        standup = (
            RecurringEvent.builder("Standup", date(2024, 1, 15), RecurrencePattern.count({Weekday.WEDNESDAY}, 3))
            .with_start_time(time(9, 0))
            .with_end_time(time(9, 15))
            .build()
        )
        assert calendar.add_event(standup, False) is False
        assert calendar.add_event(standup, True) is True


class TestGetEvent:
    def test_timed_lookup_accepts_datetime_or_time(self, work):
        assert work.get_event("Meeting", date(2024, 1, 15), datetime(2024, 1, 15, 10, 0)) is not None
        assert work.get_event("Meeting", date(2024, 1, 15), time(10, 0)) is not None

    def test_no_time_matches_only_all_day(self, work):
        assert work.get_event("Meeting", date(2024, 1, 15), None) is None
        work.add_event(_event("Meeting", day=date(2024, 1, 16)), False)
        found = work.get_event("Meeting", date(2024, 1, 16), None)
        assert found is not None and found.is_all_day

    def test_wrong_time_or_subject(self, work):
        assert work.get_event("Meeting", date(2024, 1, 15), time(9, 0)) is None
        assert work.get_event("Other", date(2024, 1, 15), time(10, 0)) is None
        assert work.get_event(None, date(2024, 1, 15), time(10, 0)) is None


class TestUpdateEvent:
    def test_update_changes_event(self, work):
        updated = _event("Meeting", start=time(14, 0), end=time(15, 0))
        assert work.update_event("Meeting", date(2024, 1, 15), time(10, 0), updated, False)
        events = work.get_all_events()
        assert len(events) == 1
        assert events[0].start_time == time(14, 0)

    def test_update_keeping_identity_is_not_duplicate(self, work):
        same_identity = _event("Meeting", start=time(10, 0), end=time(12, 0))
        assert work.update_event("Meeting", date(2024, 1, 15), time(10, 0), same_identity, False)
        assert work.get_all_events()[0].end_time == time(12, 0)

    def test_update_moves_event_to_end(self, work):
        lunch = _event("Lunch", start=time(12, 0), end=time(13, 0))
        work.add_event(lunch, False)
        work.update_event("Meeting", date(2024, 1, 15), time(10, 0), _event("Meeting", start=time(8, 0), end=time(9, 0)))
        assert [e.subject for e in work.get_all_events()] == ["Lunch", "Meeting"]

    def test_update_to_existing_identity_rolls_back(self, work):
        lunch = _event("Lunch", start=time(12, 0), end=time(13, 0))
        work.add_event(lunch, False)
        before = work.get_all_events()

        collision = _event("Lunch", start=time(12, 0), end=time(12, 30))
        with pytest.raises(DuplicateEventError):
            work.update_event("Meeting", date(2024, 1, 15), time(10, 0), collision, True)

        after = work.get_all_events()
        assert len(after) == len(before)
        assert all(a is b for a, b in zip(after, before))

    def test_update_conflict_rejected_softly(self, work):
        work.add_event(_event("Lunch", start=time(12, 0), end=time(13, 0)), False)
        before = work.get_all_events()

        overlapping = _event("Meeting", start=time(12, 30), end=time(13, 30))
        assert work.update_event("Meeting", date(2024, 1, 15), time(10, 0), overlapping, False) is False
        assert all(a is b for a, b in zip(work.get_all_events(), before))

        assert work.update_event("Meeting", date(2024, 1, 15), time(10, 0), overlapping, True) is True

    def test_update_ignores_conflict_with_original(self, work):
        extended = _event("Meeting", start=time(10, 30), end=time(11, 30))
        assert work.update_event("Meeting", date(2024, 1, 15), time(10, 0), extended, False)

    def test_update_missing_original(self, work):
        with pytest.raises(EventNotFoundError):
            work.update_event("Nope", date(2024, 1, 15), time(10, 0), _event("X"), False)
        with pytest.raises(InvalidArgumentError):
            work.update_event("Meeting", date(2024, 1, 15), None, _event("X"), False)

    @pytest.mark.parametrize(
        "subject, day, updated",
        [
            (None, date(2024, 1, 15), _event("X")),
            ("Meeting", None, _event("X")),
            ("Meeting", date(2024, 1, 15), None),
        ],
    )
    def test_update_missing_arguments(self, work, subject, day, updated):
        with pytest.raises(MissingValueError):
            work.update_event(subject, day, time(10, 0), updated, False)


class TestRemoveEvent:
    def test_remove(self, work):
        removed = work.remove_event("Meeting", date(2024, 1, 15), time(10, 0))
        assert removed.subject == "Meeting"
        assert work.get_all_events() == []

    def test_remove_missing(self, work):
        with pytest.raises(EventNotFoundError):
            work.remove_event("Meeting", date(2024, 1, 15))


class TestQueries:
    @pytest.fixture
    def calendar(self):
        calendar = Calendar("Queries")
        calendar.add_event(_event("Meeting", start=time(10, 0), end=time(11, 0)), False)
        calendar.add_event(_event("Trip", day=date(2024, 1, 20), end_date=date(2024, 1, 22)), False)
        calendar.add_event(_event("Review", day=date(2024, 1, 25), start=time(9, 0), end=time(10, 0)), False)
        return calendar

    def test_events_on_date(self, calendar):
        assert [e.subject for e in calendar.get_events_on_date(date(2024, 1, 15))] == ["Meeting"]
        assert [e.subject for e in calendar.get_events_on_date(date(2024, 1, 21))] == ["Trip"]
        assert [e.subject for e in calendar.get_events_on_date(date(2024, 1, 22))] == ["Trip"]
        assert calendar.get_events_on_date(date(2024, 1, 23)) == []

    def test_events_on_date_requires_date(self, calendar):
        with pytest.raises(MissingValueError):
            calendar.get_events_on_date(None)

    def test_events_in_range(self, calendar):
        found = calendar.get_events_in_range(date(2024, 1, 22), date(2024, 1, 25))
        assert [e.subject for e in found] == ["Trip", "Review"]

    def test_single_day_range(self, calendar):
        found = calendar.get_events_in_range(date(2024, 1, 15), date(2024, 1, 15))
        assert [e.subject for e in found] == ["Meeting"]

    def test_inverted_range(self, calendar):
        with pytest.raises(InvalidArgumentError):
            calendar.get_events_in_range(date(2024, 1, 25), date(2024, 1, 20))

    def test_is_busy_at(self, calendar):
        assert calendar.is_busy_at(datetime(2024, 1, 15, 10, 0))
        assert calendar.is_busy_at(datetime(2024, 1, 15, 11, 0))
        assert not calendar.is_busy_at(datetime(2024, 1, 15, 11, 1))
        assert calendar.is_busy_at(datetime(2024, 1, 21, 3, 0))

    def test_is_busy_at_rejects_aware_moment(self, calendar):
        with pytest.raises(InvalidArgumentError):
            calendar.is_busy_at(datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc))

    def test_is_busy_at_requires_moment(self, calendar):
        with pytest.raises(MissingValueError):
            calendar.is_busy_at(None)
