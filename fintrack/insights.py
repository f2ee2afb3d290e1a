from datetime import datetime
from typing import Any, Dict, Iterable

from fintrack.aggregate import spend
from fintrack.domain import Goal, PeriodKind, Subscription, Transaction
from fintrack.due import days_remaining
from fintrack.periods import as_period_kind, period_start

# billing cycle -> factor converting one charge to a monthly amount
_MONTHLY_FACTOR = {
    PeriodKind.WEEKLY: 52 / 12,
    PeriodKind.MONTHLY: 1,
    PeriodKind.YEARLY: 1 / 12,
}


def monthly_summary(events: Iterable[Transaction], now: datetime) -> Dict[str, Any]:
    """Income, spending, balance and savings rate for the month containing `now`."""
    events = tuple(events)
    start = period_start(now, PeriodKind.MONTHLY)
    income = spend(events, start, now, outflow=False)
    spending = spend(events, start, now, outflow=True)
    savings_rate = round((income - spending) / income * 100, 1) if income > 0 else 0.0
    return {
        "period_start": start,
        "income": income,
        "spending": spending,
        "balance": income - spending,
        "savings_rate": savings_rate,
    }


def subscription_monthly_cost(subscriptions: Iterable[Subscription]) -> float:
    # paused and cancelled subscriptions cost nothing
    return sum(
        s.amount * _MONTHLY_FACTOR[as_period_kind(s.billing_cycle)]
        for s in subscriptions
        if s.is_active
    )


def goal_progress(goal: Goal, now: datetime) -> Dict[str, Any]:
    if goal.target_amount > 0:
        progress = min(100, (goal.current_amount / goal.target_amount) * 100)
    else:
        progress = 100
    days_left = None
    if goal.target_date is not None:
        days_left = max(0, days_remaining(goal.target_date, now))
    return {
        "progress": progress,
        "remaining": max(0, goal.target_amount - goal.current_amount),
        "days_remaining": days_left,
        "is_complete": goal.current_amount >= goal.target_amount,
    }
