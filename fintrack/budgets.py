from datetime import datetime
from typing import Iterable, List, Sequence

from fintrack.aggregate import spend
from fintrack.domain import Budget, BudgetProgress, Tier, Transaction
from fintrack.errors import ConfigurationError
from fintrack.periods import period_start

CRITICAL_PERCENTAGE = 90
WARNING_PERCENTAGE = 75


def classify_tier(percentage) -> Tier:
    if percentage >= CRITICAL_PERCENTAGE:
        return Tier.CRITICAL
    if percentage >= WARNING_PERCENTAGE:
        return Tier.WARNING
    return Tier.NORMAL


def evaluate_budget(budget: Budget, events: Iterable[Transaction], now: datetime) -> BudgetProgress:
    """Spending against `budget` for the period containing `now`.

    Only outflows in [period_start, now] count, filtered to the budget's
    category when it has one. `percentage` is capped at 100 for display;
    `overage` keeps the raw difference so callers can show "exceeded by X".
    """
    if budget.limit_amount is None or budget.limit_amount <= 0:
        raise ConfigurationError(
            f"Budget {budget.id!r} has non-positive limit {budget.limit_amount!r}"
        )

    start = period_start(now, budget.period)
    spent = spend(events, start, now, category_id=budget.category_id, outflow=True)
    percentage = min(100, spent * 100 / budget.limit_amount)

    return BudgetProgress(
        period_start=start,
        spent=spent,
        limit_amount=budget.limit_amount,
        percentage=percentage,
        tier=classify_tier(percentage),
        overage=spent - budget.limit_amount,
    )


def evaluate_budgets(
    budgets: Iterable[Budget], events: Sequence[Transaction], now: datetime
) -> List[BudgetProgress]:
    events = tuple(events)
    return [evaluate_budget(b, events, now) for b in budgets]
