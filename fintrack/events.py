from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

from fintrack.domain import DueState, Tier

__all__ = [
    'event_bus', 'BUDGET_EVALUATED', 'BILL_EVALUATED', 'Event', 'EventBus',
    'budget_alert_handler', 'bill_alert_handler', 'register_default_handlers',
]


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        if name not in self._subscribers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in self._subscribers[name]]

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


BUDGET_EVALUATED = "BUDGET_EVALUATED"
BILL_EVALUATED = "BILL_EVALUATED"


def _money(amount) -> str:
    return f"${amount:,.2f}"


def _days(n: int) -> str:
    return f"{n} day" if n == 1 else f"{n} days"


def budget_alert_handler(event: Event, payload: dict) -> dict:
    tier = Tier(payload.get("tier", Tier.NORMAL))
    if tier is Tier.NORMAL:
        return {}

    name = payload.get("name", "Budget")
    overage = payload.get("overage", 0)
    if overage > 0:
        message = f"{name} is over budget by {_money(overage)}"
    else:
        message = f"{name} is at {round(payload.get('percentage', 0))}% of its limit"
    return {
        "alert": message,
        "severity": "critical" if tier is Tier.CRITICAL else "warning",
        "budget_id": payload.get("budget_id"),
    }


def bill_alert_handler(event: Event, payload: dict) -> dict:
    status = DueState(payload["status"])
    name = payload.get("name", "Bill")
    amount = _money(payload.get("amount", 0))

    if status is DueState.OVERDUE:
        title = "Bill Overdue!"
        message = f"{name} is overdue by {_days(payload['overdue_by_days'])}. Amount: {amount}"
        severity = "critical"
    elif status is DueState.DUE_TODAY:
        title = "Bill Due Today!"
        message = f"{name} is due today. Amount: {amount}"
        severity = "critical"
    elif status is DueState.DUE_SOON:
        title = "Upcoming Bill"
        message = f"{name} is due in {_days(payload['days_remaining'])}. Amount: {amount}"
        severity = "warning"
    else:
        return {}

    return {"alert": message, "title": title, "severity": severity, "bill_id": payload.get("bill_id")}


def register_default_handlers(bus: "EventBus") -> "EventBus":
    bus.subscribe(BUDGET_EVALUATED, budget_alert_handler)
    bus.subscribe(BILL_EVALUATED, bill_alert_handler)
    return bus


event_bus = register_default_handlers(EventBus())
