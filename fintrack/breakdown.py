from collections import defaultdict
from datetime import datetime
from typing import Callable, Iterable, Iterator, Tuple

from fintrack.aggregate import all_of, by_date_range, by_direction
from fintrack.domain import Category, Transaction

UNCATEGORIZED = "Uncategorized"


def iter_events(
    events: Iterable[Transaction], pred: Callable[[Transaction], bool]
) -> Iterator[Transaction]:
    for t in events:
        if pred(t):
            yield t


def lazy_top_categories(
    events: Iterable[Transaction], cats: Iterable[Category], k: int
) -> Iterator[Tuple[str, float]]:
    category_name_by_id = {c.id: c.name for c in cats}
    totals_by_category = defaultdict(float)

    for t in events:
        if t.is_outflow:
            totals_by_category[t.category_id] += t.amount

    ordered = sorted(
        (
            (category_name_by_id.get(cid, cid) if cid is not None else UNCATEGORIZED, total)
            for cid, total in totals_by_category.items()
        ),
        key=lambda item: item[1],
        reverse=True,
    )

    for name, total in ordered[: max(0, k)]:
        yield name, total


def period_breakdown(
    events: Iterable[Transaction],
    cats: Iterable[Category],
    start: datetime,
    now: datetime,
    k: int = 5,
) -> Iterator[Tuple[str, float]]:
    """Top-k spending categories between `start` and `now`."""
    in_period = iter_events(events, all_of(by_date_range(start, now), by_direction(True)))
    return lazy_top_categories(in_period, cats, k)
