"""
ICS feed parser and recurrence expander.

Turns raw VCALENDAR text into a flat list of CalendarEvent objects:

- VTIMEZONE components are registered before any event is read, so
  TZID references resolve with the feed's own DST rules.
- Each VEVENT is extracted in isolation; a malformed event is logged
  and skipped without affecting the rest of the feed.
- Recurring events are expanded with recurring_ical_events, bounded by
  MAX_RECURRENCE_INSTANCES and RECURRENCE_LOOKAHEAD.

Exception dates (EXDATE), extra dates (RDATE) and modified single
occurrences (RECURRENCE-ID) are not applied: every occurrence the rule
enumerates is emitted.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, date, timedelta, tzinfo
from typing import Iterator, Optional, Union

import pytz
from icalendar import Calendar as ICalCalendar, Event as ICalEvent
from recurring_ical_events import of as recurring_events_of

from .errors import FormatError
from .event_wrapper import CalendarEvent
from .timezone_utils import format_ical_time, is_date_only, localize

logger = logging.getLogger(__name__)

MAX_RECURRENCE_INSTANCES = 100
RECURRENCE_LOOKAHEAD = timedelta(days=365)
UNTITLED_EVENT = "Untitled Event"

ICalTime = Union[date, datetime]

# TZID -> tzinfo for the VTIMEZONE components of the feed being parsed
_registered_timezones: dict[str, tzinfo] = {}


def parse_icalendar(ical_text: str) -> ICalCalendar:
    """
    Parse iCalendar text into an icalendar.Calendar object.

    Args:
        ical_text: Raw iCalendar text (VCALENDAR)

    Returns:
        Parsed Calendar object

    Raises:
        FormatError: the text has no parseable VCALENDAR root.
    """
    if not ical_text or not ical_text.strip():
        raise FormatError("Empty calendar data")
    try:
        # bytes, so a one-line string is never probed as a file path
        calendar = ICalCalendar.from_ical(ical_text.encode('utf-8'))
    except Exception as e:
        raise FormatError(f"Invalid ICS format: {e}") from e

    if calendar.name != 'VCALENDAR':
        raise FormatError(f"Expected a VCALENDAR root, got {calendar.name!r}")
    return calendar


@contextmanager
def registered_timezones(calendar: ICalCalendar) -> Iterator[dict[str, tzinfo]]:
    """
    Register the calendar's VTIMEZONE definitions while the block runs.

    The registry is cleared on exit so definitions from one feed never
    leak into the next parse.
    """
    for vtimezone in calendar.walk('VTIMEZONE'):
        tzid = str(vtimezone.get('TZID', ''))
        if not tzid:
            continue
        try:
            _registered_timezones[tzid] = vtimezone.to_tz()
        except Exception as e:
            logger.warning("Ignoring unusable VTIMEZONE %r: %s", tzid, e)
    try:
        yield _registered_timezones
    finally:
        _registered_timezones.clear()


def lookup_timezone(tzid: Optional[str]) -> Optional[tzinfo]:
    """Find a timezone by TZID: feed definitions first, then the Olson database."""
    if not tzid:
        return None
    tz = _registered_timezones.get(tzid)
    if tz is not None:
        return tz
    try:
        return pytz.timezone(tzid)
    except pytz.UnknownTimeZoneError:
        return None


def resolve_time(prop) -> ICalTime:
    """
    Resolve a DTSTART/DTEND property to a date or an aware datetime.

    Times that icalendar left naive are interpreted in their TZID zone,
    or in UTC for floating times and unknown zones.
    """
    value = prop.dt
    if is_date_only(value):
        return value
    if not isinstance(value, datetime):
        raise ValueError(f"Unsupported time value {value!r}")
    if value.tzinfo is None:
        tz = lookup_timezone(prop.params.get('TZID'))
        value = localize(value, tz or pytz.UTC)
    return value


def _event_end(vevent: ICalEvent, start: ICalTime) -> Optional[ICalTime]:
    """DTEND if present, else start + DURATION, else None."""
    if vevent.get('DTEND') is not None:
        return resolve_time(vevent['DTEND'])
    duration = vevent.get('DURATION')
    if duration is not None:
        return start + duration.dt
    return None


def _optional_text(vevent: ICalEvent, name: str) -> Optional[str]:
    value = vevent.get(name)
    return str(value) if value else None


def _horizon(start: ICalTime, now: datetime) -> ICalTime:
    """
    Latest start an expanded occurrence may have.

    Bounded both by the lookahead from now and by the lookahead from the
    anchor start, whichever is earlier.
    """
    if is_date_only(start):
        return min(start, now.date()) + RECURRENCE_LOOKAHEAD
    return min(start, now) + RECURRENCE_LOOKAHEAD


def expand_occurrences(
    vevent: ICalEvent,
    start: ICalTime,
    now: datetime,
    max_instances: int = MAX_RECURRENCE_INSTANCES,
) -> list[ICalTime]:
    """
    Enumerate the start times of a recurring event.

    Starts at the event's own start and stops after max_instances
    occurrences or past the lookahead horizon, whichever comes first.
    """
    # Only DTSTART and RRULE take part, so EXDATE/RDATE/RECURRENCE-ID
    # never alter the enumeration.
    series = ICalEvent()
    series.add('UID', str(vevent.get('UID', 'series')))
    series.add('DTSTART', start)
    series['RRULE'] = vevent['RRULE']

    vcal = ICalCalendar()
    vcal.add('prodid', '-//feedcal//expansion//')
    vcal.add('version', '2.0')
    vcal.add_component(series)

    horizon = _horizon(start, now)
    starts: list[ICalTime] = []
    for occurrence in recurring_events_of(vcal).all():
        if len(starts) >= max_instances:
            break
        occurrence_start = resolve_time(occurrence['DTSTART'])
        if occurrence_start > horizon:
            break
        starts.append(occurrence_start)
    return starts


def _extract_event(
    vevent: ICalEvent,
    subscription_id: str,
    fallback_index: int,
    now: datetime,
) -> list[CalendarEvent]:
    """
    Convert one VEVENT into one event, or one event per occurrence.

    Raises on malformed input; the caller skips the event.
    """
    dtstart = vevent.get('DTSTART')
    if dtstart is None:
        raise ValueError("missing DTSTART")

    start = resolve_time(dtstart)
    end = _event_end(vevent, start)
    all_day = is_date_only(start)

    uid = str(vevent.get('UID') or '') or f"event-{fallback_index}"
    base = CalendarEvent(
        id=f"{subscription_id}-{uid}",
        title=_optional_text(vevent, 'SUMMARY') or UNTITLED_EVENT,
        start=format_ical_time(start),
        end=format_ical_time(end) if end is not None else None,
        all_day=all_day,
        description=_optional_text(vevent, 'DESCRIPTION'),
        location=_optional_text(vevent, 'LOCATION'),
    )

    if vevent.get('RRULE') is None:
        return [base]

    duration = end - start if end is not None else None
    instances = []
    for index, occurrence_start in enumerate(expand_occurrences(vevent, start, now)):
        occurrence_end = occurrence_start + duration if duration is not None else None
        instances.append(CalendarEvent(
            id=f"{base.id}-{index}",
            title=base.title,
            start=format_ical_time(occurrence_start),
            end=format_ical_time(occurrence_end) if occurrence_end is not None else None,
            all_day=all_day,
            description=base.description,
            location=base.location,
        ))
    return instances


def parse_calendar(
    ical_text: str,
    subscription_id: str = "default",
    now: Optional[datetime] = None,
) -> list[CalendarEvent]:
    """
    Parse raw ICS text into CalendarEvent objects.

    Args:
        ical_text: Raw VCALENDAR text
        subscription_id: Prefix for the generated event ids
        now: Reference time for the recurrence lookahead (default: current UTC time)

    Returns:
        Events in feed order; recurring events contribute one entry per occurrence.

    Raises:
        FormatError: the text is not calendar data at all.
    """
    if now is None:
        now = datetime.now(pytz.UTC)

    calendar = parse_icalendar(ical_text)
    events: list[CalendarEvent] = []
    skipped = 0

    with registered_timezones(calendar):
        for vevent in calendar.walk('VEVENT'):
            try:
                events.extend(_extract_event(vevent, subscription_id, len(events), now))
            except Exception as e:
                skipped += 1
                logger.warning(
                    "Skipping malformed event %r: %s",
                    str(vevent.get('UID') or vevent.get('SUMMARY') or '?'), e
                )

    logger.debug("Parsed %d events (%d skipped)", len(events), skipped)
    return events
