from datetime import datetime
from functools import reduce
from typing import Callable, Iterable, Optional, Tuple

from fintrack.domain import Transaction

Predicate = Callable[[Transaction], bool]


def by_category(category_id: Optional[str]) -> Predicate:
    # None matches every category
    def _filter(t: Transaction) -> bool:
        return category_id is None or t.category_id == category_id

    return _filter


def by_date_range(start: datetime, end: datetime) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return start <= t.occurred_at <= end

    return _filter


def by_direction(outflow: bool) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.is_outflow == outflow

    return _filter


def all_of(*preds: Predicate) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return all(p(t) for p in preds)

    return _filter


def income_events(events: Iterable[Transaction]) -> Tuple[Transaction, ...]:
    return tuple(filter(by_direction(False), events))


def expense_events(events: Iterable[Transaction]) -> Tuple[Transaction, ...]:
    return tuple(filter(by_direction(True), events))


def spend(
    events: Iterable[Transaction],
    period_start: datetime,
    now: datetime,
    category_id: Optional[str] = None,
    outflow: bool = True,
):
    """Sum of amounts in [period_start, now] for one direction and optional category.

    outflow=True aggregates spending, outflow=False income. Returns 0 for no matches.
    """
    match = all_of(
        by_date_range(period_start, now),
        by_category(category_id),
        by_direction(outflow),
    )
    return reduce(lambda acc, t: acc + t.amount if match(t) else acc, events, 0)
