from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, List


MIN_DAY = 1
MAX_DAY = 28


class LedgerError(Exception):
    pass


class InvalidDayError(LedgerError, ValueError):
    pass


class DateParseError(LedgerError, ValueError):
    pass


class OverlapError(LedgerError, ValueError):
    pass


class StorageError(LedgerError):
    pass


@dataclass(frozen=True, order=True)
class DayOfMonth:
    """Day a recurring transaction falls on. Capped at 28 so it exists in every month."""
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidDayError(f"Expected day between {MIN_DAY} and {MAX_DAY}, got {self.value!r}")
        if not MIN_DAY <= self.value <= MAX_DAY:
            raise InvalidDayError(f"Expected day between {MIN_DAY} and {MAX_DAY}, got {self.value}")

    @classmethod
    def parse(cls, text: str) -> DayOfMonth:
        try:
            value = int(text)
        except (TypeError, ValueError):
            raise InvalidDayError(f"Expected day between {MIN_DAY} and {MAX_DAY}, got {text!r}") from None
        return cls(value)

    def __int__(self):
        return self.value

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class Transaction:
    amount: Decimal
    cause: str
    date: date


@dataclass(frozen=True)
class RecurringTransaction:
    amount: Decimal
    cause: str
    day: DayOfMonth
    start_date: date
    end_date: Optional[date] = None


@dataclass
class Ledger:
    # transactions stay sorted by date; see logic.add_transaction
    transactions: List[Transaction] = field(default_factory=list)
    recurring_transactions: List[RecurringTransaction] = field(default_factory=list)


@dataclass
class Statement:
    start: date
    end: date
    opening_balance: Decimal
    transactions: List[Transaction]
    closing_balance: Decimal
