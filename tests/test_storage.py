import json
import logging
from datetime import datetime
from pathlib import Path

from fintrack.domain import Bill, Budget, PeriodKind, Transaction
from fintrack.storage import MemStorage, load_seed

SEED = Path(__file__).resolve().parent.parent / "data" / "seed.json"


def test_create_assigns_ids_and_scopes_by_user():
    store = MemStorage()
    t1 = store.create_transaction(Transaction("", "u1", 10, datetime(2024, 1, 1))).get_or_else(None)
    t2 = store.create_transaction(Transaction("", "u2", 20, datetime(2024, 1, 2))).get_or_else(None)

    assert t1.id == "1"
    assert t2.id == "2"
    assert [t.id for t in store.list_transactions("u1")] == ["1"]
    assert store.list_transactions("nobody") == []


def test_generated_ids_skip_explicit_ones():
    store = MemStorage()
    store.create_bill(Bill("1", "u1", "Rent", 900, datetime(2024, 1, 1)))
    created = store.create_bill(Bill("", "u1", "Water", 30, datetime(2024, 1, 5))).get_or_else(None)
    assert created.id == "2"
    assert len(store.list_bills("u1")) == 2


def test_invalid_budget_is_rejected_at_creation():
    store = MemStorage()
    result = store.create_budget(Budget("", "u1", "Broken", 0, PeriodKind.MONTHLY))
    assert result.is_left()
    assert store.list_budgets("u1") == []


def test_get_returns_maybe():
    store = MemStorage()
    store.create_budget(Budget("b1", "u1", "Food", 100, PeriodKind.WEEKLY))
    assert store.get_budget("b1").map(lambda b: b.name).get_or_else(None) == "Food"
    assert store.get_budget("missing").is_none()


def test_update_replaces_record_and_validates():
    store = MemStorage()
    store.create_budget(Budget("b1", "u1", "Food", 100, PeriodKind.WEEKLY))

    assert store.update_budget("b1", limit_amount=250).is_right()
    assert store.get_budget("b1").get_or_else(None).limit_amount == 250

    assert store.update_budget("b1", limit_amount=-1).is_left()
    assert store.get_budget("b1").get_or_else(None).limit_amount == 250

    assert store.update_budget("missing", limit_amount=5).get_error()["error"] == "not_found"


def test_mark_bill_paid_and_delete():
    store = MemStorage()
    store.create_bill(Bill("bl1", "u1", "Rent", 900, datetime(2024, 1, 1)))
    assert store.mark_bill_paid("bl1").get_or_else(None).is_paid
    assert store.get_bill("bl1").get_or_else(None).as_due_item().is_settled
    assert store.delete_bill("bl1")
    assert not store.delete_bill("bl1")


def test_load_seed():
    store = load_seed(str(SEED))

    assert len(store.list_categories()) >= 5
    assert len(store.list_transactions("u1")) >= 5
    assert len(store.list_budgets("u1")) == 3
    assert len(store.list_bills("u1")) == 4
    assert len(store.list_subscriptions("u1")) == 3
    assert len(store.list_goals("u1")) == 2

    sub = store.get_subscription("s2").get_or_else(None)
    assert sub.billing_cycle is PeriodKind.YEARLY
    assert sub.next_due_at == datetime(2027, 3, 12)
    assert isinstance(store.get_transaction("t1").get_or_else(None).occurred_at, datetime)


def test_duplicate_id_is_rejected_and_keeps_owner_row():
    store = MemStorage()
    store.create_bill(Bill("1", "u1", "Rent", 900, datetime(2024, 1, 1)))

    result = store.create_bill(Bill("1", "u2", "Gym", 30, datetime(2024, 1, 5)))

    assert result.is_left()
    assert result.get_error()["error"] == "duplicate_id"
    assert [b.name for b in store.list_bills("u1")] == ["Rent"]
    assert store.list_bills("u2") == []


def test_update_cannot_change_id_or_owner():
    store = MemStorage()
    store.create_bill(Bill("bl1", "u1", "Rent", 900, datetime(2024, 1, 1)))

    result = store.update_bill("bl1", id="zzz", user_id="u2")

    assert result.get_error()["error"] == "immutable_field"
    assert result.get_error()["fields"] == ["id", "user_id"]
    bill = store.get_bill("bl1").get_or_else(None)
    assert bill.id == "bl1"
    assert bill.user_id == "u1"
    assert store.list_bills("u2") == []


def test_load_seed_warns_about_rejected_rows(tmp_path, caplog):
    seed = tmp_path / "seed.json"
    seed.write_text(json.dumps({
        "budgets": [
            {"id": "b1", "user_id": "u1", "name": "Food", "limit_amount": 100, "period": "monthly"},
            {"id": "b2", "user_id": "u1", "name": "Broken", "limit_amount": 0, "period": "monthly"},
        ],
        "bills": [
            {"id": "bl1", "user_id": "u1", "name": "Rent", "amount": 900, "due_at": "2024-01-01T00:00:00"},
            {"id": "bl1", "user_id": "u2", "name": "Gym", "amount": 30, "due_at": "2024-01-05T00:00:00"},
        ],
    }), encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="fintrack.storage"):
        store = load_seed(str(seed))

    assert [b.id for b in store.list_budgets("u1")] == ["b1"]
    assert store.list_bills("u2") == []
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 2
    assert "Broken" in warnings[0].getMessage()
    assert "bl1" in warnings[1].getMessage()
