"""
Calendar feature: CSV record format (Google Calendar import layout).

Dates are MM/dd/yyyy, times are 12-hour "hh:mm AM". Booleans are TRUE/FALSE,
read case-insensitively. Quoting follows standard CSV rules.
"""

import csv
import io
from datetime import datetime
from typing import Iterable, Iterator

from calendar_app.core.exceptions import InvalidArgumentError
from calendar_app.features.calendar.models import Event, SingleEvent, Visibility

CSV_COLUMNS = [
    "Subject",
    "Start Date",
    "Start Time",
    "End Date",
    "End Time",
    "All Day Event",
    "Description",
    "Location",
    "Private",
]
CSV_HEADER = ",".join(CSV_COLUMNS)

DATE_FORMAT = "%m/%d/%Y"
TIME_FORMAT = "%I:%M %p"


def _flag(value: bool) -> str:
    return "TRUE" if value else "FALSE"


def event_to_fields(event: Event) -> list[str]:
    """Column values for one event, in CSV_COLUMNS order."""
    start_time = event.start_time.strftime(TIME_FORMAT) if event.start_time else ""

    if event.end_date is not None:
        end_date = event.end_date.strftime(DATE_FORMAT)
    elif event.start_time is not None:
        end_date = event.start_date.strftime(DATE_FORMAT)
    else:
        end_date = ""

    if event.end_time is not None:
        end_time = event.end_time.strftime(TIME_FORMAT)
    else:
        end_time = start_time

    return [
        event.subject,
        event.start_date.strftime(DATE_FORMAT),
        start_time,
        end_date,
        end_time,
        _flag(event.is_all_day),
        event.description or "",
        event.location or "",
        _flag(event.visibility == Visibility.PRIVATE),
    ]


def export_events(events: Iterable[Event]) -> str:
    """Header plus one row per event, each line terminated by a newline."""
    buffer = io.StringIO()
    buffer.write(CSV_HEADER + "\n")
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    for event in events:
        writer.writerow(event_to_fields(event))
    return buffer.getvalue()


def iter_records(content: str) -> Iterator[tuple[int, list[str]]]:
    """Yield (1-based line number, fields) for every non-blank record after the header.

    Quoted fields may span several physical lines; the number reported is the
    line the record starts on.

    Raises:
        InvalidArgumentError: the text is not valid CSV (e.g. a field over the csv size limit).
    """
    reader = csv.reader(io.StringIO(content, newline=""))
    while True:
        line_number = reader.line_num + 1
        try:
            fields = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            raise InvalidArgumentError(f"Error parsing CSV line {line_number}: {e}") from e
        if line_number == 1:
            continue
        if len(fields) <= 1 and not "".join(fields).strip():
            continue
        yield line_number, fields


def parse_event(fields: list[str]) -> SingleEvent:
    """Build a SingleEvent from the fields of one CSV record.

    Raises:
        InvalidArgumentError: fewer than 9 fields, or a rule of the event builder is broken.
        ValueError: a date or time is not in the expected format.
    """
    if len(fields) < len(CSV_COLUMNS):
        raise InvalidArgumentError("CSV line has insufficient fields")

    subject, start_date_str, start_time_str, end_date_str, end_time_str = fields[:5]
    is_all_day = fields[5].strip().upper() == "TRUE"
    description, location = fields[6], fields[7]
    is_private = fields[8].strip().upper() == "TRUE"

    builder = SingleEvent.builder(subject, datetime.strptime(start_date_str.strip(), DATE_FORMAT).date())

    if not is_all_day and start_time_str.strip():
        builder.with_start_time(datetime.strptime(start_time_str.strip(), TIME_FORMAT).time())
    if end_date_str.strip():
        builder.with_end_date(datetime.strptime(end_date_str.strip(), DATE_FORMAT).date())
    if not is_all_day and end_time_str.strip():
        builder.with_end_time(datetime.strptime(end_time_str.strip(), TIME_FORMAT).time())
    if description:
        builder.with_description(description)
    if location:
        builder.with_location(location)
    builder.with_visibility(Visibility.PRIVATE if is_private else Visibility.PUBLIC)

    return builder.build()
