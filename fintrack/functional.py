from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, TypeVar

from fintrack.domain import Bill, Budget, Category, Subscription, Transaction
from fintrack.errors import ConfigurationError
from fintrack.periods import as_period_kind

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Left(self._error)

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return Left(self._error)

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def safe_category(cats: Iterable[Category], cat_id) -> Maybe[Category]:
    for cat in cats:
        if cat.id == cat_id:
            return Some(cat)
    return Nothing()


def _check_period(value, field: str) -> Either[dict, None]:
    try:
        as_period_kind(value)
    except ConfigurationError as e:
        return Left({"error": "invalid_period", "field": field, "message": str(e)})
    return Right(None)


# Form-level validation: configuration problems become Left error dicts at
# creation time instead of ConfigurationError during dashboard rendering.

def validate_budget(b: Budget) -> Either[dict, Budget]:
    if b.limit_amount is None or b.limit_amount <= 0:
        return Left({
            "error": "invalid_limit",
            "field": "limit_amount",
            "message": f"Budget '{b.name}' needs a limit greater than zero",
            "limit_amount": b.limit_amount,
        })
    return _check_period(b.period, "period").map(lambda _: b)


def validate_transaction(t: Transaction) -> Either[dict, Transaction]:
    if t.amount < 0:
        return Left({
            "error": "negative_amount",
            "field": "amount",
            "message": "Amount must be non-negative; use is_outflow for direction",
            "amount": t.amount,
        })
    return Right(t)


def validate_bill(b: Bill) -> Either[dict, Bill]:
    if b.amount < 0:
        return Left({
            "error": "negative_amount",
            "field": "amount",
            "message": f"Bill '{b.name}' cannot have a negative amount",
            "amount": b.amount,
        })
    return Right(b)


def validate_subscription(s: Subscription) -> Either[dict, Subscription]:
    if s.amount < 0:
        return Left({
            "error": "negative_amount",
            "field": "amount",
            "message": f"Subscription '{s.name}' cannot have a negative amount",
            "amount": s.amount,
        })
    if s.status not in ("active", "paused", "cancelled"):
        return Left({
            "error": "invalid_status",
            "field": "status",
            "message": f"Unknown subscription status: {s.status}",
        })
    return _check_period(s.billing_cycle, "billing_cycle").map(lambda _: s)
