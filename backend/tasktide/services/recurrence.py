"""Occurrence calculations for recurring task templates.

Everything here is pure: callers pass the reference time explicitly and
nothing touches the database. An unparseable configuration never raises;
dependent functions return ``None``/``False`` so the template is treated as
paused until it is corrected.
"""
from __future__ import annotations

import calendar
import json
import logging
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from typing import Any, TypeVar

from pydantic import ValidationError

from tasktide.models.task import utcnow
from tasktide.schemas.recurrence import (
    CustomConfig,
    DailyConfig,
    MonthlyConfig,
    RecurringConfig,
    RecurringPattern,
    WeeklyConfig,
    recurring_config_adapter,
)

logger = logging.getLogger(__name__)

DateT = TypeVar("DateT", date, datetime)

_CONFIG_TYPES = (DailyConfig, WeeklyConfig, MonthlyConfig, CustomConfig)

_PATTERN_LABELS = {
    RecurringPattern.DAILY.value: "Daily",
    RecurringPattern.WEEKLY.value: "Weekly",
    RecurringPattern.MONTHLY.value: "Monthly",
    RecurringPattern.CUSTOM.value: "Custom",
}

_DAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def normalize_datetime(value: datetime | None) -> datetime | None:
    """Convert to naive UTC, the representation used for stored timestamps."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _sunday_weekday(value: date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday, matching stored ``daysOfWeek``."""
    return (value.weekday() + 1) % 7


def _clamp_day(year: int, month: int, day: int) -> int:
    return min(day, calendar.monthrange(year, month)[1])


def _add_months(base: DateT, months: int, day_of_month: int | None = None) -> DateT:
    month_index = base.month - 1 + months
    year = base.year + month_index // 12
    month = month_index % 12 + 1
    day = _clamp_day(year, month, day_of_month or base.day)
    return base.replace(year=year, month=month, day=day)


def parse_recurring_config(raw: Any) -> RecurringConfig | None:
    """
    Parse a stored recurring configuration.

    Args:
        raw: A config model, a mapping, or its JSON text

    Returns:
        The structured config, or None when missing or invalid
    """
    if isinstance(raw, _CONFIG_TYPES):
        return raw
    if not raw:
        return None
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if not isinstance(raw, Mapping):
        return None
    try:
        return recurring_config_adapter.validate_python(dict(raw))
    except ValidationError as e:
        logger.debug(f"Invalid recurring config {raw!r}: {e.error_count()} error(s)")
        return None


def _calculate_weekly_next(base_date: DateT, config: WeeklyConfig) -> DateT:
    """Nearest listed weekday later this week, else the first one `interval` weeks on."""
    if not config.days_of_week:
        return base_date + timedelta(weeks=config.interval)

    days_of_week = sorted(set(config.days_of_week))
    current_weekday = _sunday_weekday(base_date)
    for day in days_of_week:
        if day > current_weekday:
            return base_date + timedelta(days=day - current_weekday)

    week_start = base_date - timedelta(days=current_weekday)
    return week_start + timedelta(weeks=config.interval, days=days_of_week[0])


def calculate_next_occurrence_date(last_date: DateT, config: Any) -> DateT | None:
    """
    Calculate the occurrence following ``last_date``.

    Time of day is preserved. Returns None if the config cannot be parsed.
    """
    parsed = parse_recurring_config(config)
    if parsed is None:
        return None

    if isinstance(parsed, WeeklyConfig):
        return _calculate_weekly_next(last_date, parsed)
    if isinstance(parsed, MonthlyConfig):
        return _add_months(last_date, parsed.interval, parsed.day_of_month)
    # DAILY and CUSTOM are both plain day counts
    return last_date + timedelta(days=parsed.interval)


def next_occurrence_after(anchor: datetime, config: Any, after: datetime) -> datetime | None:
    """First occurrence of the series starting at ``anchor`` that is later than ``after``."""
    parsed = parse_recurring_config(config)
    if parsed is None:
        return None
    if isinstance(parsed, MonthlyConfig) and parsed.day_of_month is None:
        # Pin the series to the anchor's day so a short month does not stick
        parsed = parsed.model_copy(update={"day_of_month": anchor.day})

    candidate = anchor
    while candidate <= after:
        following = calculate_next_occurrence_date(candidate, parsed)
        if following <= candidate:
            raise ValueError(f"Recurrence did not advance past {candidate.isoformat()}")
        candidate = following
    return candidate


def calculate_initial_next_generation_date(config: Any, now: datetime | None = None) -> datetime | None:
    """
    Initial ``next_generation_date`` for a newly created template.

    Occurrences that already passed in the current week or month are
    generated today rather than skipped.
    """
    parsed = parse_recurring_config(config)
    if parsed is None:
        return None

    now = now or utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if isinstance(parsed, DailyConfig):
        return today

    if isinstance(parsed, WeeklyConfig) and parsed.days_of_week:
        current_weekday = _sunday_weekday(today)
        if any(day <= current_weekday for day in parsed.days_of_week):
            return today
        return today + timedelta(days=min(parsed.days_of_week) - current_weekday)

    if isinstance(parsed, MonthlyConfig) and parsed.day_of_month:
        if parsed.day_of_month >= today.day:
            return today.replace(day=_clamp_day(today.year, today.month, parsed.day_of_month))
        return _add_months(today, 1, parsed.day_of_month)

    return calculate_next_occurrence_date(today, parsed)


def should_generate_recurring_task(
    last_generated_date: datetime | None,
    next_generation_date: datetime | None,
    now: datetime | None = None,
) -> bool:
    """True when the next generation date has been reached.

    ``last_generated_date`` is accepted for symmetry with callers; only the
    next generation date decides.
    """
    if not next_generation_date:
        return False
    now = now or utcnow()
    return normalize_datetime(now) >= normalize_datetime(next_generation_date)


def is_recurring_task_ended(
    last_generated_date: datetime | None,
    config: Any,
    end_date: datetime | None,
    now: datetime | None = None,
) -> bool:
    """True when the config is valid and the series end date has passed."""
    if parse_recurring_config(config) is None:
        return False
    if not end_date:
        return False
    now = now or utcnow()
    return normalize_datetime(now) > normalize_datetime(end_date)


def get_recurring_pattern_label(pattern: RecurringPattern | str) -> str:
    key = getattr(pattern, "value", pattern)
    return _PATTERN_LABELS.get(key, str(key).capitalize())


def _day_of_month_suffix(day: int) -> str:
    if 11 <= day <= 13:
        return f"{day}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_recurring_description(pattern: RecurringPattern | str, config: Any) -> str:
    """Readable summary such as "Every 2 weeks on Mon, Wed"."""
    parsed = parse_recurring_config(config)
    if parsed is None:
        return get_recurring_pattern_label(pattern)

    interval = parsed.interval

    if isinstance(parsed, WeeklyConfig):
        day_names = [_DAY_LABELS[day] for day in parsed.days_of_week]
        days_str = f" on {', '.join(day_names)}" if day_names else ""
        if interval == 1:
            return f"Every week{days_str}"
        return f"Every {interval} weeks{days_str}"

    if isinstance(parsed, MonthlyConfig):
        day_str = _day_of_month_suffix(parsed.day_of_month or 1)
        if interval == 1:
            return f"Every month on the {day_str}"
        return f"Every {interval} months on the {day_str}"

    return "Every day" if interval == 1 else f"Every {interval} days"
