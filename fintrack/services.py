import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fintrack.breakdown import period_breakdown
from fintrack.budgets import evaluate_budget
from fintrack.domain import DueItem, PeriodKind
from fintrack.due import classify_due, project_next_due
from fintrack.errors import InvariantViolation
from fintrack.events import BILL_EVALUATED, BUDGET_EVALUATED, EventBus, event_bus
from fintrack.insights import goal_progress, monthly_summary, subscription_monthly_cost
from fintrack.periods import as_period_kind, period_start
from fintrack.storage import Storage

logger = logging.getLogger(__name__)


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None


class DashboardService:
    """Per-request facade: loads a user's records and shapes evaluator output.

    Every method takes `now` explicitly so the same inputs always produce the
    same rows. Ownership is the caller's concern; lists are only scoped by user.
    ConfigurationError from a bad budget propagates to the caller.
    """

    def __init__(self, storage: Storage, bus: Optional[EventBus] = None):
        self.storage = storage
        self.bus = bus if bus is not None else event_bus

    def budget_overview(self, user_id: str, now: datetime) -> List[Dict[str, Any]]:
        events = tuple(self.storage.list_transactions(user_id))
        rows = []
        for b in sorted(self.storage.list_budgets(user_id), key=lambda b: b.name):
            p = evaluate_budget(b, events, now)
            rows.append({
                "budget_id": b.id,
                "name": b.name,
                "period": as_period_kind(b.period).value,
                "category_id": b.category_id,
                "period_start": _iso(p.period_start),
                "spent": p.spent,
                "limit_amount": p.limit_amount,
                "percentage": p.percentage,
                "tier": p.tier.value,
                "overage": p.overage,
            })
        logger.debug("Evaluated %d budgets for user %s", len(rows), user_id)
        return rows

    def bill_overview(self, user_id: str, now: datetime) -> List[Dict[str, Any]]:
        rows = []
        for bill in sorted(self.storage.list_bills(user_id), key=lambda b: b.due_at):
            s = classify_due(bill.as_due_item(), now)
            rows.append({
                "bill_id": bill.id,
                "name": bill.name,
                "amount": bill.amount,
                "category": bill.category,
                "due_at": _iso(bill.due_at),
                "is_paid": bill.is_paid,
                "status": s.status.value,
                "days_remaining": s.days_remaining,
                "overdue_by_days": s.overdue_by_days,
            })
        return rows

    def subscription_overview(self, user_id: str, now: datetime) -> List[Dict[str, Any]]:
        # active first, then by name
        subs = sorted(self.storage.list_subscriptions(user_id), key=lambda s: (not s.is_active, s.name))
        rows = []
        for sub in subs:
            row = {
                "subscription_id": sub.id,
                "name": sub.name,
                "amount": sub.amount,
                "billing_cycle": as_period_kind(sub.billing_cycle).value,
                "subscription_status": sub.status,
                "next_due_at": None,
                "status": None,
                "days_remaining": None,
            }
            if sub.is_active:
                try:
                    next_due = project_next_due(sub.as_due_item(), now)
                except InvariantViolation:
                    logger.error("Could not project next billing date for subscription %s", sub.id, exc_info=True)
                    row["error"] = "internal_error"
                else:
                    s = classify_due(DueItem(amount=sub.amount, due_at=next_due), now)
                    row.update(next_due_at=_iso(next_due), status=s.status.value, days_remaining=s.days_remaining)
            rows.append(row)
        return rows

    def goal_overview(self, user_id: str, now: datetime) -> List[Dict[str, Any]]:
        rows = []
        for g in self.storage.list_goals(user_id):
            rows.append({
                "goal_id": g.id,
                "name": g.name,
                "target_amount": g.target_amount,
                "current_amount": g.current_amount,
                "target_date": _iso(g.target_date),
                **goal_progress(g, now),
            })
        return rows

    def summary(self, user_id: str, now: datetime) -> Dict[str, Any]:
        report = monthly_summary(self.storage.list_transactions(user_id), now)
        report["period_start"] = _iso(report["period_start"])
        report["subscription_monthly_cost"] = subscription_monthly_cost(self.storage.list_subscriptions(user_id))
        return report

    def category_breakdown(self, user_id: str, now: datetime, k: int = 5) -> List[Dict[str, Any]]:
        start = period_start(now, PeriodKind.MONTHLY)
        top = period_breakdown(self.storage.list_transactions(user_id), self.storage.list_categories(), start, now, k)
        return [{"category": name, "spent": total} for name, total in top]

    def alerts(self, user_id: str, now: datetime) -> List[Dict[str, Any]]:
        """Publish every budget and unpaid bill row and collect handler alerts."""
        results = []
        for row in self.budget_overview(user_id, now):
            results.extend(self.bus.publish(BUDGET_EVALUATED, row))
        for row in self.bill_overview(user_id, now):
            if not row["is_paid"]:
                results.extend(self.bus.publish(BILL_EVALUATED, row))
        alerts = [r for r in results if "alert" in r]
        if alerts:
            logger.info("%d alert(s) for user %s", len(alerts), user_id)
        return alerts
