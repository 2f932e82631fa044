import bisect
import logging
from datetime import date
from decimal import Decimal
from itertools import takewhile
from typing import Iterator, List

from ledgerbook.dates import next_month, previous_occurrence, next_occurrence
from ledgerbook.models import (
    DayOfMonth, Transaction, RecurringTransaction, Ledger, Statement, OverlapError
)


logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def occurrences(recurring: RecurringTransaction, limit: date, inclusive: bool = True) -> Iterator[Transaction]:
    """Concrete transactions for every occurrence between start_date and end_date, up to limit.

    With inclusive=False an occurrence dated exactly on limit is left out.
    """
    current = previous_occurrence(recurring.day, recurring.start_date)
    if current < recurring.start_date:
        current = next_month(current)

    while current is not None:
        if recurring.end_date is not None and current > recurring.end_date:
            return
        if current > limit or (not inclusive and current == limit):
            return
        yield Transaction(amount=recurring.amount, cause=recurring.cause, date=current)
        current = next_month(current)


def _project(ledger: Ledger, on: date, inclusive: bool) -> List[Transaction]:
    if inclusive:
        result = list(takewhile(lambda t: t.date <= on, ledger.transactions))
    else:
        result = list(takewhile(lambda t: t.date < on, ledger.transactions))

    for recurring in ledger.recurring_transactions:
        result.extend(occurrences(recurring, on, inclusive=inclusive))

    result.sort(key=lambda t: t.date)
    logger.debug(f"Projected {len(result)} transactions {'on or before' if inclusive else 'before'} {on}")
    return result


def transactions_as_of(ledger: Ledger, on: date) -> List[Transaction]:
    return _project(ledger, on, inclusive=True)


def transactions_before(ledger: Ledger, on: date) -> List[Transaction]:
    return _project(ledger, on, inclusive=False)


def balance_as_of(ledger: Ledger, on: date) -> Decimal:
    return sum((t.amount for t in transactions_as_of(ledger, on)), ZERO)


def balance_strictly_before(ledger: Ledger, on: date) -> Decimal:
    return sum((t.amount for t in transactions_before(ledger, on)), ZERO)


def overlaps(a: RecurringTransaction, b: RecurringTransaction) -> bool:
    """Whether both are active on some common date. Ignores the day anchors."""
    if a.end_date is not None and b.end_date is not None:
        return a.start_date < b.end_date and b.start_date < a.end_date
    if b.end_date is not None:
        return a.start_date < b.end_date
    if a.end_date is not None:
        return b.start_date < a.end_date
    return True


def find_overlapping(ledger: Ledger, recurring: RecurringTransaction) -> List[RecurringTransaction]:
    return [
        existing for existing in ledger.recurring_transactions
        if existing.cause == recurring.cause and overlaps(existing, recurring)
    ]


def add_transaction(ledger: Ledger, transaction: Transaction) -> None:
    # after any entries on the same date, so insertion order is kept for ties
    index = bisect.bisect_right([t.date for t in ledger.transactions], transaction.date)
    ledger.transactions.insert(index, transaction)


def add_recurring_transaction(ledger: Ledger, recurring: RecurringTransaction) -> None:
    conflicts = find_overlapping(ledger, recurring)
    if conflicts:
        logger.warning(f"Rejected monthly '{recurring.cause}': overlaps {len(conflicts)} existing")
        raise OverlapError(
            f"A monthly transaction for '{recurring.cause}' is already active "
            f"from {conflicts[0].start_date}"
        )
    ledger.recurring_transactions.append(recurring)


def statement(ledger: Ledger, payday: DayOfMonth, on: date) -> Statement:
    """The payday period containing `on`: start inclusive, end exclusive."""
    start = previous_occurrence(payday, on)
    end = next_occurrence(payday, on)
    period = [t for t in transactions_before(ledger, end) if t.date >= start]

    return Statement(
        start=start,
        end=end,
        opening_balance=balance_strictly_before(ledger, start),
        transactions=period,
        closing_balance=balance_strictly_before(ledger, end),
    )
