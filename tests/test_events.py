from datetime import datetime

from fintrack.events import (
    BILL_EVALUATED, BUDGET_EVALUATED, Event, EventBus,
    bill_alert_handler, budget_alert_handler, register_default_handlers,
)


def make_event(name, payload):
    return Event(name=name, ts=datetime.now().isoformat(), payload=payload)


def test_event_bus_subscribe_and_publish():
    bus = EventBus()
    seen = []

    def handler(event: Event, payload: dict) -> dict:
        seen.append(event.name)
        return {"processed": True}

    bus.subscribe(BUDGET_EVALUATED, handler)
    results = bus.publish(BUDGET_EVALUATED, {"tier": "normal"})

    assert results == [{"processed": True}]
    assert seen == [BUDGET_EVALUATED]
    assert bus.publish("UNKNOWN", {}) == []


def test_unsubscribe():
    bus = EventBus()

    def handler(event, payload):
        return {"called": True}

    bus.subscribe(BILL_EVALUATED, handler)
    bus.unsubscribe(BILL_EVALUATED, handler)
    assert bus.publish(BILL_EVALUATED, {}) == []


def test_budget_alert_handler_tiers():
    normal = {"budget_id": "b1", "name": "Food", "tier": "normal", "percentage": 40, "overage": -60}
    warning = {"budget_id": "b1", "name": "Food", "tier": "warning", "percentage": 80, "overage": -20}
    over = {"budget_id": "b1", "name": "Food", "tier": "critical", "percentage": 100, "overage": 35.5}

    assert budget_alert_handler(make_event(BUDGET_EVALUATED, normal), normal) == {}

    w = budget_alert_handler(make_event(BUDGET_EVALUATED, warning), warning)
    assert w["severity"] == "warning"
    assert "80%" in w["alert"]

    c = budget_alert_handler(make_event(BUDGET_EVALUATED, over), over)
    assert c["severity"] == "critical"
    assert "over budget by $35.50" in c["alert"]


def test_bill_alert_handler_messages():
    overdue = {"bill_id": "bl1", "name": "Rent", "amount": 900, "status": "overdue", "days_remaining": -2, "overdue_by_days": 2}
    today = {"bill_id": "bl1", "name": "Rent", "amount": 900, "status": "due_today", "days_remaining": 0}
    soon = {"bill_id": "bl1", "name": "Rent", "amount": 900, "status": "due_soon", "days_remaining": 3}
    later = {"bill_id": "bl1", "name": "Rent", "amount": 900, "status": "upcoming", "days_remaining": 10}

    assert bill_alert_handler(make_event(BILL_EVALUATED, overdue), overdue)["alert"] == \
        "Rent is overdue by 2 days. Amount: $900.00"
    assert bill_alert_handler(make_event(BILL_EVALUATED, today), today)["title"] == "Bill Due Today!"
    assert bill_alert_handler(make_event(BILL_EVALUATED, soon), soon)["severity"] == "warning"
    assert bill_alert_handler(make_event(BILL_EVALUATED, later), later) == {}


def test_bill_alert_handler_singular_day():
    overdue = {"name": "Water", "amount": 30, "status": "overdue", "days_remaining": -1, "overdue_by_days": 1}
    soon = {"name": "Water", "amount": 30, "status": "due_soon", "days_remaining": 1}

    assert bill_alert_handler(make_event(BILL_EVALUATED, overdue), overdue)["alert"] == \
        "Water is overdue by 1 day. Amount: $30.00"
    assert bill_alert_handler(make_event(BILL_EVALUATED, soon), soon)["alert"] == \
        "Water is due in 1 day. Amount: $30.00"


def test_register_default_handlers():
    bus = register_default_handlers(EventBus())
    payload = {"name": "Rent", "amount": 10, "status": "due_today", "days_remaining": 0}
    assert bus.publish(BILL_EVALUATED, payload)[0]["severity"] == "critical"


def test_handlers_are_pure():
    payload = {"name": "Food", "tier": "warning", "percentage": 76, "overage": -24}
    before = dict(payload)
    first = budget_alert_handler(make_event(BUDGET_EVALUATED, payload), payload)
    second = budget_alert_handler(make_event(BUDGET_EVALUATED, payload), payload)
    assert first == second
    assert payload == before
