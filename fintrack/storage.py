import json
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from itertools import count
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as dup

from fintrack.domain import Bill, Budget, Category, Goal, Subscription, Transaction
from fintrack.functional import (
    Either, Left, Maybe, Nothing, Right, Some,
    validate_bill, validate_budget, validate_subscription, validate_transaction,
)
from fintrack.periods import as_period_kind

logger = logging.getLogger(__name__)

# owner and key of a stored row
IMMUTABLE_FIELDS = frozenset({"id", "user_id"})


class Storage(ABC):
    """Persistence adapter consumed by the dashboard service.

    List methods are scoped to one user and make no ordering promise.
    """

    @abstractmethod
    def list_categories(self) -> List[Category]: ...

    @abstractmethod
    def list_transactions(self, user_id: str) -> List[Transaction]: ...

    @abstractmethod
    def list_budgets(self, user_id: str) -> List[Budget]: ...

    @abstractmethod
    def list_bills(self, user_id: str) -> List[Bill]: ...

    @abstractmethod
    def list_subscriptions(self, user_id: str) -> List[Subscription]: ...

    @abstractmethod
    def list_goals(self, user_id: str) -> List[Goal]: ...


class _Table:
    """One entity map with its own serial id counter."""

    def __init__(self, validator: Optional[Callable[[Any], Either]] = None):
        self.rows: Dict[str, Any] = {}
        self._ids = count(1)
        self._validator = validator

    def _validate(self, record) -> Either[dict, Any]:
        return self._validator(record) if self._validator else Right(record)

    def _put(self, record) -> Either[dict, Any]:
        if not record.id:
            new_id = str(next(self._ids))
            while new_id in self.rows:
                new_id = str(next(self._ids))
            record = replace(record, id=new_id)
        elif record.id in self.rows:
            return Left({"error": "duplicate_id", "message": f"Id {record.id} is already taken", "id": record.id})
        self.rows[record.id] = record
        return Right(record)

    def insert(self, record) -> Either[dict, Any]:
        return self._validate(record).bind(self._put)

    def get(self, record_id: str) -> Maybe[Any]:
        if record_id in self.rows:
            return Some(self.rows[record_id])
        return Nothing()

    def update(self, record_id: str, **changes) -> Either[dict, Any]:
        if record_id not in self.rows:
            return _not_found(record_id)
        frozen = sorted(IMMUTABLE_FIELDS.intersection(changes))
        if frozen:
            return Left({"error": "immutable_field", "message": f"Cannot change {', '.join(frozen)}", "fields": frozen})
        record = replace(self.rows[record_id], **changes)
        checked = self._validate(record)
        if checked.is_right():
            self.rows[record_id] = record
        return checked

    def delete(self, record_id: str) -> bool:
        return self.rows.pop(record_id, None) is not None

    def for_user(self, user_id: str) -> list:
        return [r for r in self.rows.values() if r.user_id == user_id]


def _not_found(record_id: str) -> Either[dict, Any]:
    return Left({"error": "not_found", "message": f"No record with id {record_id}", "id": record_id})


class MemStorage(Storage):
    """In-memory map store. Records are frozen, so updates replace them."""

    def __init__(self):
        self.categories = _Table()
        self.transactions = _Table(validate_transaction)
        self.budgets = _Table(validate_budget)
        self.bills = _Table(validate_bill)
        self.subscriptions = _Table(validate_subscription)
        self.goals = _Table()

    # categories are shared between users
    def list_categories(self) -> List[Category]:
        return list(self.categories.rows.values())

    def create_category(self, c: Category) -> Either[dict, Category]:
        return self.categories.insert(c)

    def list_transactions(self, user_id: str) -> List[Transaction]:
        return self.transactions.for_user(user_id)

    def get_transaction(self, tid: str) -> Maybe[Transaction]:
        return self.transactions.get(tid)

    def create_transaction(self, t: Transaction) -> Either[dict, Transaction]:
        return self._log_insert("transaction", self.transactions.insert(t))

    def update_transaction(self, tid: str, **changes) -> Either[dict, Transaction]:
        return self.transactions.update(tid, **changes)

    def delete_transaction(self, tid: str) -> bool:
        return self.transactions.delete(tid)

    def list_budgets(self, user_id: str) -> List[Budget]:
        return self.budgets.for_user(user_id)

    def get_budget(self, bid: str) -> Maybe[Budget]:
        return self.budgets.get(bid)

    def create_budget(self, b: Budget) -> Either[dict, Budget]:
        return self._log_insert("budget", self.budgets.insert(b))

    def update_budget(self, bid: str, **changes) -> Either[dict, Budget]:
        return self.budgets.update(bid, **changes)

    def delete_budget(self, bid: str) -> bool:
        return self.budgets.delete(bid)

    def list_bills(self, user_id: str) -> List[Bill]:
        return self.bills.for_user(user_id)

    def get_bill(self, bid: str) -> Maybe[Bill]:
        return self.bills.get(bid)

    def create_bill(self, b: Bill) -> Either[dict, Bill]:
        return self._log_insert("bill", self.bills.insert(b))

    def update_bill(self, bid: str, **changes) -> Either[dict, Bill]:
        return self.bills.update(bid, **changes)

    def mark_bill_paid(self, bid: str, is_paid: bool = True) -> Either[dict, Bill]:
        return self.bills.update(bid, is_paid=is_paid)

    def delete_bill(self, bid: str) -> bool:
        return self.bills.delete(bid)

    def list_subscriptions(self, user_id: str) -> List[Subscription]:
        return self.subscriptions.for_user(user_id)

    def get_subscription(self, sid: str) -> Maybe[Subscription]:
        return self.subscriptions.get(sid)

    def create_subscription(self, s: Subscription) -> Either[dict, Subscription]:
        return self._log_insert("subscription", self.subscriptions.insert(s))

    def update_subscription(self, sid: str, **changes) -> Either[dict, Subscription]:
        return self.subscriptions.update(sid, **changes)

    def delete_subscription(self, sid: str) -> bool:
        return self.subscriptions.delete(sid)

    def list_goals(self, user_id: str) -> List[Goal]:
        return self.goals.for_user(user_id)

    def get_goal(self, gid: str) -> Maybe[Goal]:
        return self.goals.get(gid)

    def create_goal(self, g: Goal) -> Either[dict, Goal]:
        return self._log_insert("goal", self.goals.insert(g))

    def update_goal(self, gid: str, **changes) -> Either[dict, Goal]:
        return self.goals.update(gid, **changes)

    def delete_goal(self, gid: str) -> bool:
        return self.goals.delete(gid)

    @staticmethod
    def _log_insert(kind: str, result: Either) -> Either:
        if result.is_left():
            logger.info("Rejected %s: %s", kind, result.get_error()["message"])
        else:
            logger.debug("Created %s %s", kind, result.get_or_else(None).id)
        return result


def _ts(value: Optional[str]):
    return dup.isoparse(value) if value else None


def load_seed(path: str) -> MemStorage:
    """Build a MemStorage from a JSON seed file.

    Timestamps are ISO-8601 strings; periods and billing cycles are the
    lower-case PeriodKind values.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    store = MemStorage()
    results = []
    for c in data.get("categories", []):
        results.append(store.create_category(Category(**c)))
    for t in data.get("transactions", []):
        results.append(store.create_transaction(Transaction(**{**t, "occurred_at": _ts(t["occurred_at"])})))
    for b in data.get("budgets", []):
        results.append(store.create_budget(Budget(**{**b, "period": as_period_kind(b["period"])})))
    for b in data.get("bills", []):
        results.append(store.create_bill(Bill(**{**b, "due_at": _ts(b["due_at"])})))
    for s in data.get("subscriptions", []):
        results.append(store.create_subscription(Subscription(**{
            **s,
            "billing_cycle": as_period_kind(s["billing_cycle"]),
            "due_at": _ts(s["due_at"]),
            "next_due_at": _ts(s.get("next_due_at")),
        })))
    for g in data.get("goals", []):
        results.append(store.create_goal(Goal(**{**g, "target_date": _ts(g.get("target_date"))})))

    rejected = [r.get_error() for r in results if r.is_left()]
    for error in rejected:
        logger.warning("Skipped seed row in %s: %s", path, error["message"])

    logger.info(
        "Loaded seed %s: %d transactions, %d budgets, %d bills, %d subscriptions, %d rejected",
        path,
        len(store.transactions.rows),
        len(store.budgets.rows),
        len(store.bills.rows),
        len(store.subscriptions.rows),
        len(rejected),
    )
    return store
