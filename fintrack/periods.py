from datetime import datetime, timedelta
from typing import Union

from dateutil.relativedelta import relativedelta

from fintrack.domain import PeriodKind
from fintrack.errors import ConfigurationError


def as_period_kind(value: Union[str, PeriodKind]) -> PeriodKind:
    """Coerce a stored period string ("weekly", "Monthly", ...) to PeriodKind.

    Unknown values raise ConfigurationError; there is no default period.
    """
    if isinstance(value, PeriodKind):
        return value
    try:
        return PeriodKind(str(value).strip().lower())
    except ValueError:
        raise ConfigurationError(f"Unknown period kind: {value!r}") from None


def _midnight(ts: datetime) -> datetime:
    return ts.replace(hour=0, minute=0, second=0, microsecond=0)


def period_start(now: datetime, period: Union[str, PeriodKind]) -> datetime:
    """Inclusive lower bound of the period containing `now`.

    Weeks start on Sunday at midnight, months on the 1st, years on January 1.
    """
    kind = as_period_kind(period)
    if kind is PeriodKind.WEEKLY:
        days_since_sunday = (now.weekday() + 1) % 7  # Monday=0 -> Sunday=0
        return _midnight(now - timedelta(days=days_since_sunday))
    if kind is PeriodKind.MONTHLY:
        return _midnight(now.replace(day=1))
    return _midnight(now.replace(month=1, day=1))


def advance(ts: datetime, period: Union[str, PeriodKind], steps: int = 1) -> datetime:
    """Move `ts` forward by `steps` whole periods.

    Months and years keep the day of month where it exists and clamp to the
    last day otherwise (Jan 31 + 1 month -> Feb 28/29).
    """
    kind = as_period_kind(period)
    if kind is PeriodKind.WEEKLY:
        return ts + timedelta(weeks=steps)
    if kind is PeriodKind.MONTHLY:
        return ts + relativedelta(months=steps)
    return ts + relativedelta(years=steps)
