import json
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path

from .dates import parse_date, format_date
from .models import DayOfMonth, Transaction, RecurringTransaction, Ledger, StorageError


logger = logging.getLogger(__name__)


class EnhancedJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, date):
            return format_date(obj)
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, DayOfMonth):
            return obj.value
        return super().default(obj)


def _amount(value) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"Expected a decimal amount, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Expected a decimal amount, got {value!r}") from None


def _transaction_from_dict(data: dict) -> Transaction:
    return Transaction(
        amount=_amount(data["amount"]),
        cause=str(data["cause"]),
        date=parse_date(data["date"]),
    )


def _recurring_from_dict(data: dict) -> RecurringTransaction:
    end_date = data.get("end_date")
    return RecurringTransaction(
        amount=_amount(data["amount"]),
        cause=str(data["cause"]),
        day=DayOfMonth(data["day"]),
        start_date=parse_date(data["start_date"]),
        end_date=parse_date(end_date) if end_date is not None else None,
    )


def ledger_to_dict(ledger: Ledger) -> dict:
    monthly = []
    for r in ledger.recurring_transactions:
        entry = {"amount": r.amount, "cause": r.cause, "day": r.day, "start_date": r.start_date}
        if r.end_date is not None:
            entry["end_date"] = r.end_date
        monthly.append(entry)

    return {
        "transactions": [
            {"amount": t.amount, "cause": t.cause, "date": t.date}
            for t in sorted(ledger.transactions, key=lambda t: t.date)
        ],
        "monthly_transactions": monthly,
    }


def ledger_from_dict(data: dict) -> Ledger:
    transactions = [_transaction_from_dict(t) for t in data.get("transactions", [])]
    transactions.sort(key=lambda t: t.date)
    return Ledger(
        transactions=transactions,
        recurring_transactions=[_recurring_from_dict(r) for r in data.get("monthly_transactions", [])],
    )


def load_ledger(path: Path) -> Ledger:
    path = Path(path)
    if not path.exists():
        logger.info(f"No ledger at {path}, starting empty")
        return Ledger()

    try:
        data = json.loads(path.read_text())
        ledger = ledger_from_dict(data)
    except (OSError, json.JSONDecodeError) as e:
        raise StorageError(f"Failed to read {path}: {e}") from e
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise StorageError(f"Failed to parse {path}: {e}") from e

    logger.info(
        f"Loaded {len(ledger.transactions)} transactions, "
        f"{len(ledger.recurring_transactions)} monthly transactions from {path}"
    )
    return ledger


def save_ledger(path: Path, ledger: Ledger) -> None:
    path = Path(path)
    json_str = json.dumps(ledger_to_dict(ledger), cls=EnhancedJSONEncoder, indent=2)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json_str)
    except OSError as e:
        raise StorageError(f"Failed to write {path}: {e}") from e
    logger.info(f"Saved {len(ledger.transactions)} transactions to {path}")
