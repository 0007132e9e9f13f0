import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum
from typing import Any, Iterable, Mapping, Optional
from zoneinfo import ZoneInfo

from config import get_settings

logger = logging.getLogger(__name__)

MONDAY = 0
END_OF_DAY = time.max

_DISPLAY_FORMAT = re.compile(
    r"^\s*(\d{1,2})-(\d{1,2})-(\d{4})\s*/\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$"
)


class PeriodLabel(str, Enum):
    today = "Today"
    this_week = "This Week"
    this_month = "This Month"
    last_month = "Last Month"
    last_6_months = "Last 6 Months"
    this_year = "This Year"
    last_year = "Last Year"
    all_time = "All time"


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def _start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)


def _end_of_day(day: date, tz: Optional[tzinfo]) -> datetime:
    return datetime.combine(day, END_OF_DAY, tzinfo=tz)


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - date(year, month, 1)).days


def months_back(moment: datetime, months: int) -> datetime:
    """Same wall-clock time ``months`` calendar months earlier, day clamped."""
    total_months = moment.year * 12 + moment.month - 1 - months
    year = total_months // 12
    month = total_months % 12 + 1
    day = min(moment.day, days_in_month(year, month))
    return moment.replace(year=year, month=month, day=day)


def resolve_range(
    label: Optional[str],
    now: datetime,
    *,
    week_start: int = MONDAY,
) -> Optional[DateRange]:
    if not label or not label.strip():
        return None
    try:
        period = PeriodLabel(label.strip())
    except ValueError:
        logger.debug("unknown period label %r, not filtering", label)
        return None

    if period == PeriodLabel.all_time:
        return None
    if period == PeriodLabel.today:
        return DateRange(_start_of_day(now), _end_of_day(now.date(), now.tzinfo))
    if period == PeriodLabel.this_week:
        offset = (now.weekday() - week_start) % 7
        return DateRange(_start_of_day(now - timedelta(days=offset)), now)
    if period == PeriodLabel.this_month:
        return DateRange(_start_of_day(now.replace(day=1)), now)
    if period == PeriodLabel.last_month:
        first_this = now.date().replace(day=1)
        last_month_end = first_this - date.resolution
        last_month_start = last_month_end.replace(day=1)
        return DateRange(
            datetime.combine(last_month_start, time.min, tzinfo=now.tzinfo),
            _end_of_day(last_month_end, now.tzinfo),
        )
    if period == PeriodLabel.last_6_months:
        return DateRange(months_back(now, 6), now)
    if period == PeriodLabel.this_year:
        return DateRange(_start_of_day(now.replace(month=1, day=1)), now)
    # last year
    return DateRange(months_back(now, 12), now)


def custom_range(
    date_from: Optional[date],
    date_to: Optional[date],
    *,
    tz: Optional[tzinfo] = None,
) -> Optional[DateRange]:
    if not date_from or not date_to:
        return None
    if date_from > date_to:
        raise ValueError("Start date must be before end date")
    return DateRange(
        datetime.combine(date_from, time.min, tzinfo=tz),
        _end_of_day(date_to, tz),
    )


def _parse_display_format(value: str) -> Optional[datetime]:
    # e.g. "26-12-2025/20:10PM"
    match = _DISPLAY_FORMAT.match(value)
    if not match:
        return None
    day, month, year, hours, minutes, meridiem = match.groups()
    hour = int(hours)
    if meridiem:
        is_pm = meridiem.upper() == "PM"
        if is_pm and hour < 12:
            hour += 12
        if not is_pm and hour == 12:
            hour = 0
    try:
        return datetime(int(year), int(month), int(day), hour, int(minutes))
    except ValueError:
        return None


def parse_record_date(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if "/" in text and "-" in text:
        return _parse_display_format(text)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in ("%Y-%m-%d %H:%M:%S", "%d.%m.%Y"):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _align(moment: datetime, reference: datetime) -> datetime:
    if reference.tzinfo is None and moment.tzinfo is not None:
        local = ZoneInfo(get_settings().timezone)
        return moment.astimezone(local).replace(tzinfo=None)
    if reference.tzinfo is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=reference.tzinfo)
    return moment


def record_timestamp(
    record: Mapping[str, Any], candidate_date_fields: Iterable[str]
) -> Optional[datetime]:
    for field_name in candidate_date_fields:
        parsed = parse_record_date(record.get(field_name))
        if parsed is not None:
            return parsed
    return None


def matches_period(
    record: Mapping[str, Any],
    date_range: Optional[DateRange],
    candidate_date_fields: Iterable[str],
) -> bool:
    if date_range is None:
        return True
    if not isinstance(record, Mapping):
        return False
    moment = record_timestamp(record, candidate_date_fields)
    if moment is None:
        logger.debug("record has no parseable date, excluded from period")
        return False
    return date_range.contains(_align(moment, date_range.start))
