import math
from datetime import datetime, timedelta
from typing import Iterable, List

from fintrack.domain import DueItem, DueState, DueStatus
from fintrack.errors import ConfigurationError, InvariantViolation
from fintrack.periods import advance, as_period_kind

DUE_SOON_DAYS = 3
MAX_PROJECTION_STEPS = 10_000

_ONE_DAY = timedelta(days=1)


def days_remaining(due_at: datetime, now: datetime) -> int:
    """Whole days until `due_at`, rounding partial days up.

    11 hours ahead gives 1; exactly 24 hours ago gives -1.
    """
    return math.ceil((due_at - now) / _ONE_DAY)


def classify_due(item: DueItem, now: datetime) -> DueStatus:
    if item.is_settled:
        return DueStatus(status=DueState.SETTLED)

    days = days_remaining(item.due_at, now)
    if days < 0:
        return DueStatus(status=DueState.OVERDUE, days_remaining=days, overdue_by_days=abs(days))
    if days == 0:
        return DueStatus(status=DueState.DUE_TODAY, days_remaining=days)
    if days <= DUE_SOON_DAYS:
        return DueStatus(status=DueState.DUE_SOON, days_remaining=days)
    return DueStatus(status=DueState.UPCOMING, days_remaining=days)


def classify_all(items: Iterable[DueItem], now: datetime) -> List[DueStatus]:
    return [classify_due(i, now) for i in items]


def project_next_due(item: DueItem, now: datetime, max_steps: int = MAX_PROJECTION_STEPS) -> datetime:
    """Next billing instant strictly after `now` for a recurring item.

    A future `next_due_at` override wins as-is. Otherwise whole recurrence
    units are added to the latest known billing instant, each step computed
    from that anchor so month-end days do not drift (Jan 31 -> Feb 29 -> Mar 31).
    """
    if item.next_due_at is not None and item.next_due_at > now:
        return item.next_due_at
    if item.recurrence is None:
        raise ConfigurationError("Cannot project the next occurrence of a non-recurring item")

    kind = as_period_kind(item.recurrence)
    anchor = item.next_due_at if item.next_due_at is not None else item.due_at
    candidate = anchor
    steps = 0
    while candidate <= now:
        steps += 1
        if steps > max_steps:
            raise InvariantViolation(
                f"Recurrence from {anchor.isoformat()} ({kind.value}) did not pass "
                f"{now.isoformat()} within {max_steps} steps"
            )
        try:
            candidate = advance(anchor, kind, steps)
        except (OverflowError, ValueError) as e:
            raise InvariantViolation(f"Recurrence from {anchor.isoformat()} overflowed the calendar") from e
    return candidate
