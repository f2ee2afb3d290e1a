from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class PeriodKind(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Tier(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class DueState(str, Enum):
    SETTLED = "settled"
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    DUE_SOON = "due_soon"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    color: str = ""
    icon: str = ""


@dataclass(frozen=True)
class Transaction:
    id: str
    user_id: str
    amount: float                       # always >= 0, direction is is_outflow
    occurred_at: datetime
    is_outflow: bool = True             # expense vs income
    category_id: Optional[str] = None
    description: str = ""
    merchant: Optional[str] = None


# A budget (spending limit that resets every period)
@dataclass(frozen=True)
class Budget:
    id: str
    user_id: str
    name: str
    limit_amount: float
    period: PeriodKind
    category_id: Optional[str] = None   # None = all categories


@dataclass(frozen=True)
class DueItem:
    amount: float
    due_at: datetime
    is_settled: bool = False
    recurrence: Optional[PeriodKind] = None
    next_due_at: Optional[datetime] = None  # explicit override, subscriptions only


@dataclass(frozen=True)
class Bill:
    id: str
    user_id: str
    name: str
    amount: float
    due_at: datetime
    is_paid: bool = False
    category: str = ""
    icon: Optional[str] = None

    def as_due_item(self) -> DueItem:
        return DueItem(amount=self.amount, due_at=self.due_at, is_settled=self.is_paid)


@dataclass(frozen=True)
class Subscription:
    id: str
    user_id: str
    name: str
    amount: float
    billing_cycle: PeriodKind
    due_at: datetime                    # last known billing instant
    status: str = "active"              # active, paused, cancelled
    category: str = ""
    next_due_at: Optional[datetime] = None
    icon: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def as_due_item(self) -> DueItem:
        return DueItem(
            amount=self.amount,
            due_at=self.due_at,
            is_settled=not self.is_active,
            recurrence=self.billing_cycle,
            next_due_at=self.next_due_at,
        )


@dataclass(frozen=True)
class Goal:
    id: str
    user_id: str
    name: str
    target_amount: float
    current_amount: float = 0
    target_date: Optional[datetime] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class BudgetProgress:
    period_start: datetime
    spent: float
    limit_amount: float
    percentage: float   # capped at 100
    tier: Tier
    overage: float      # spent - limit, uncapped; positive means over budget

    @property
    def is_over_budget(self) -> bool:
        return self.overage > 0


@dataclass(frozen=True)
class DueStatus:
    status: DueState
    days_remaining: Optional[int] = None    # None when settled
    overdue_by_days: Optional[int] = None
