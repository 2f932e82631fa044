import json
import tempfile
import unittest
from datetime import date
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

from ledgerbook.models import DayOfMonth, Transaction, RecurringTransaction, Ledger, StorageError
from ledgerbook.storage import load_ledger, save_ledger


class TestStorage(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "ledger.json"

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, data):
        self.path.write_text(json.dumps(data))

    def test_missing_file_is_empty_ledger(self):
        ledger = load_ledger(self.path)
        self.assertEqual(ledger, Ledger())
        self.assertFalse(self.path.exists())

    def test_save_and_load(self):
        ledger = Ledger(
            transactions=[Transaction(Decimal("-12.50"), "Lunch", date(2024, 3, 1))],
            recurring_transactions=[
                RecurringTransaction(Decimal("1000"), "Salary", DayOfMonth(25), date(2024, 1, 1)),
                RecurringTransaction(Decimal("-400"), "Rent", DayOfMonth(5), date(2024, 1, 5), date(2024, 12, 5)),
            ],
        )
        save_ledger(self.path, ledger)
        self.assertEqual(load_ledger(self.path), ledger)

    def test_saved_format(self):
        ledger = Ledger(
            transactions=[
                Transaction(Decimal("5"), "later", date(2024, 5, 1)),
                Transaction(Decimal("7"), "earlier", date(2024, 1, 1)),
            ],
            recurring_transactions=[
                RecurringTransaction(Decimal("1000"), "Salary", DayOfMonth(25), date(2024, 1, 1)),
            ],
        )
        save_ledger(self.path, ledger)
        data = json.loads(self.path.read_text())

        self.assertEqual([t["cause"] for t in data["transactions"]], ["earlier", "later"])
        self.assertEqual(data["transactions"][0], {"amount": "7", "cause": "earlier", "date": "2024-01-01"})
        self.assertEqual(
            data["monthly_transactions"],
            [{"amount": "1000", "cause": "Salary", "day": 25, "start_date": "2024-01-01"}],
        )

    def test_load_sorts_and_accepts_numbers(self):
        self._write({
            "transactions": [
                {"amount": 12.5, "cause": "b", "date": "2024-02-01"},
                {"amount": -3, "cause": "a", "date": "2024-01-01"},
            ],
        })
        ledger = load_ledger(self.path)
        self.assertEqual([t.cause for t in ledger.transactions], ["a", "b"])
        self.assertEqual(ledger.transactions[1].amount, Decimal("12.5"))
        self.assertEqual(ledger.recurring_transactions, [])

    def test_load_resolves_today(self):
        self._write({"transactions": [{"amount": "1", "cause": "tea", "date": "today"}]})
        with patch("ledgerbook.dates.today", return_value=date(2024, 7, 4)):
            ledger = load_ledger(self.path)
        self.assertEqual(ledger.transactions[0].date, date(2024, 7, 4))

    def test_invalid_date(self):
        self._write({"transactions": [{"amount": "1", "cause": "tea", "date": "04/07/2024"}]})
        with self.assertRaises(StorageError):
            load_ledger(self.path)

    def test_non_canonical_date(self):
        self._write({"transactions": [{"amount": "1", "cause": "tea", "date": "20240704"}]})
        with self.assertRaises(StorageError):
            load_ledger(self.path)

    def test_invalid_day(self):
        self._write({"monthly_transactions": [
            {"amount": "1", "cause": "tea", "day": 30, "start_date": "2024-01-01"}
        ]})
        with self.assertRaises(StorageError):
            load_ledger(self.path)

    def test_missing_field(self):
        self._write({"transactions": [{"amount": "1", "date": "2024-01-01"}]})
        with self.assertRaises(StorageError):
            load_ledger(self.path)

    def test_invalid_json(self):
        self.path.write_text("transactions: []")
        with self.assertRaises(StorageError):
            load_ledger(self.path)


if __name__ == "__main__":
    unittest.main()
