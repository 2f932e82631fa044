import unittest
from datetime import date
from decimal import Decimal
from itertools import islice
from unittest.mock import patch

from ledgerbook.models import (
    DayOfMonth, Transaction, RecurringTransaction, Ledger,
    InvalidDayError, DateParseError, OverlapError
)
from ledgerbook.dates import (
    parse_date, format_date, next_month, month_cursor, previous_occurrence, next_occurrence
)
from ledgerbook.logic import (
    occurrences, transactions_as_of, transactions_before, balance_as_of, balance_strictly_before,
    overlaps, find_overlapping, add_transaction, add_recurring_transaction, statement
)


def monthly(amount, day, start, end=None, cause="Salary"):
    return RecurringTransaction(
        amount=Decimal(amount), cause=cause, day=DayOfMonth(day), start_date=start, end_date=end
    )


class TestDayOfMonth(unittest.TestCase):
    def test_valid_range(self):
        self.assertEqual(DayOfMonth(1).value, 1)
        self.assertEqual(DayOfMonth(28).value, 28)
        self.assertEqual(int(DayOfMonth(15)), 15)

    def test_out_of_range(self):
        for value in (0, 29, 31, -1):
            with self.assertRaises(InvalidDayError):
                DayOfMonth(value)

    def test_rejects_non_integers(self):
        with self.assertRaises(InvalidDayError):
            DayOfMonth(True)
        with self.assertRaises(InvalidDayError):
            DayOfMonth("5")

    def test_parse(self):
        self.assertEqual(DayOfMonth.parse("7"), DayOfMonth(7))
        with self.assertRaises(InvalidDayError):
            DayOfMonth.parse("seven")
        # still a ValueError for callers that only know about those
        with self.assertRaises(ValueError):
            DayOfMonth.parse("29")


class TestDates(unittest.TestCase):
    def test_parse_and_format(self):
        self.assertEqual(parse_date("2024-02-29"), date(2024, 2, 29))
        self.assertEqual(format_date(date(2024, 3, 5)), "2024-03-05")

    def test_parse_today(self):
        with patch("ledgerbook.dates.today", return_value=date(2024, 5, 1)):
            self.assertEqual(parse_date("today"), date(2024, 5, 1))

    def test_parse_invalid(self):
        for text in ("2024-13-01", "2023-02-29", "yesterday", "", "20240105", "2024-W01-1", " 2024-01-05 ", "Today"):
            with self.assertRaises(DateParseError):
                parse_date(text)

    def test_next_month(self):
        self.assertEqual(next_month(date(2024, 1, 28)), date(2024, 2, 28))
        self.assertEqual(next_month(date(2024, 12, 10)), date(2025, 1, 10))
        self.assertIsNone(next_month(date(2024, 1, 29)))

    def test_month_cursor(self):
        dates = list(islice(month_cursor(date(2024, 11, 15)), 4))
        self.assertEqual(dates, [
            date(2024, 11, 15), date(2024, 12, 15), date(2025, 1, 15), date(2025, 2, 15)
        ])

    def test_month_cursor_until(self):
        dates = list(month_cursor(date(2024, 1, 5), until=date(2024, 4, 4)))
        self.assertEqual(dates, [date(2024, 1, 5), date(2024, 2, 5), date(2024, 3, 5)])

    def test_month_cursor_past_day_28_is_empty(self):
        self.assertEqual(list(islice(month_cursor(date(2024, 1, 31)), 3)), [])

    def test_previous_occurrence(self):
        self.assertEqual(previous_occurrence(DayOfMonth(15), date(2024, 3, 20)), date(2024, 3, 15))
        self.assertEqual(previous_occurrence(DayOfMonth(15), date(2024, 3, 15)), date(2024, 3, 15))
        self.assertEqual(previous_occurrence(DayOfMonth(15), date(2024, 3, 10)), date(2024, 2, 15))
        self.assertEqual(previous_occurrence(DayOfMonth(20), date(2024, 1, 5)), date(2023, 12, 20))

    def test_next_occurrence(self):
        self.assertEqual(next_occurrence(DayOfMonth(15), date(2024, 3, 20)), date(2024, 4, 15))
        self.assertEqual(next_occurrence(DayOfMonth(10), date(2024, 12, 10)), date(2025, 1, 10))
        self.assertEqual(next_occurrence(DayOfMonth(20), date(2024, 1, 5)), date(2024, 1, 20))

    def test_locator_composition(self):
        references = [date(2024, 1, 1), date(2024, 2, 29), date(2023, 12, 31), date(2024, 7, 14)]
        for k in range(1, 29):
            day = DayOfMonth(k)
            for d in references:
                self.assertEqual(
                    previous_occurrence(day, next_occurrence(day, d)),
                    next_month(previous_occurrence(day, d)),
                )


class TestOccurrences(unittest.TestCase):
    def test_bounded_by_end_date(self):
        rent = monthly("-500", 15, date(2024, 1, 15), date(2024, 4, 15))
        result = list(occurrences(rent, date(2024, 12, 31)))
        self.assertEqual([t.date for t in result], [
            date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15), date(2024, 4, 15)
        ])
        self.assertTrue(all(t.amount == Decimal("-500") and t.cause == "Salary" for t in result))

    def test_bounded_by_limit(self):
        rent = monthly("-500", 15, date(2024, 1, 15), date(2024, 4, 15))
        result = list(occurrences(rent, date(2024, 2, 1)))
        self.assertEqual([t.date for t in result], [date(2024, 1, 15)])

    def test_unbounded(self):
        salary = monthly("1000", 25, date(2023, 1, 25))
        result = list(occurrences(salary, date(2024, 1, 25)))
        self.assertEqual(len(result), 13)
        self.assertEqual(result[-1].date, date(2024, 1, 25))

    def test_start_after_anchor_skips_to_next_month(self):
        salary = monthly("1000", 15, date(2024, 1, 20))
        result = list(occurrences(salary, date(2024, 3, 31)))
        self.assertEqual([t.date for t in result], [date(2024, 2, 15), date(2024, 3, 15)])

    def test_limit_before_first_occurrence(self):
        salary = monthly("1000", 15, date(2024, 1, 20))
        self.assertEqual(list(occurrences(salary, date(2024, 2, 14))), [])

    def test_end_before_start(self):
        salary = monthly("1000", 15, date(2024, 5, 1), date(2024, 1, 1))
        self.assertEqual(list(occurrences(salary, date(2025, 1, 1))), [])

    def test_exclusive_limit(self):
        salary = monthly("1000", 15, date(2024, 1, 15))
        result = list(occurrences(salary, date(2024, 3, 15), inclusive=False))
        self.assertEqual([t.date for t in result], [date(2024, 1, 15), date(2024, 2, 15)])


class TestProjection(unittest.TestCase):
    def setUp(self):
        self.ledger = Ledger()
        add_transaction(self.ledger, Transaction(Decimal("200"), "Gift", date(2024, 1, 10)))
        add_transaction(self.ledger, Transaction(Decimal("-30"), "Groceries", date(2024, 2, 1)))
        add_transaction(self.ledger, Transaction(Decimal("-12.50"), "Lunch", date(2024, 3, 1)))
        add_recurring_transaction(self.ledger, monthly("1000", 1, date(2024, 1, 1)))
        add_recurring_transaction(self.ledger, monthly("-400", 5, date(2024, 1, 5), cause="Rent"))

    def test_empty_ledger(self):
        ledger = Ledger()
        self.assertEqual(balance_as_of(ledger, date(2024, 1, 1)), Decimal("0"))
        self.assertEqual(balance_strictly_before(ledger, date(2024, 1, 1)), Decimal("0"))
        self.assertEqual(transactions_as_of(ledger, date(2024, 1, 1)), [])

    def test_transactions_as_of_merges_and_sorts(self):
        result = transactions_as_of(self.ledger, date(2024, 2, 5))
        self.assertEqual([t.date for t in result], sorted(t.date for t in result))
        self.assertEqual([t.cause for t in result if t.date == date(2024, 2, 5)], ["Rent"])
        self.assertEqual(len(result), 6)

    def test_transactions_before_excludes_date(self):
        result = transactions_before(self.ledger, date(2024, 2, 5))
        self.assertNotIn(date(2024, 2, 5), [t.date for t in result])
        self.assertEqual(len(result), 5)

    def test_balances(self):
        # 1000 - 400 + 200 + 1000 - 30 - 400 + 1000 - 12.50
        self.assertEqual(balance_as_of(self.ledger, date(2024, 3, 1)), Decimal("2357.50"))
        self.assertEqual(balance_strictly_before(self.ledger, date(2024, 3, 1)), Decimal("1370"))

    def test_difference_is_amounts_on_date(self):
        for d in (date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1), date(2024, 3, 2), date(2023, 6, 1)):
            on_date = sum(
                (t.amount for t in transactions_as_of(self.ledger, d) if t.date == d), Decimal("0")
            )
            self.assertEqual(
                balance_as_of(self.ledger, d) - balance_strictly_before(self.ledger, d), on_date
            )

    def test_idempotent(self):
        first = transactions_as_of(self.ledger, date(2024, 6, 30))
        second = transactions_as_of(self.ledger, date(2024, 6, 30))
        self.assertEqual(first, second)

    def test_occurrences_do_not_touch_ledger(self):
        transactions_as_of(self.ledger, date(2030, 1, 1))
        self.assertEqual(len(self.ledger.transactions), 3)
        self.assertEqual(len(self.ledger.recurring_transactions), 2)


class TestOverlaps(unittest.TestCase):
    def test_touching_ranges_do_not_overlap(self):
        a = monthly("10", 1, date(2024, 1, 1), date(2024, 6, 1))
        b = monthly("10", 1, date(2024, 6, 1))
        self.assertFalse(overlaps(a, b))
        self.assertFalse(overlaps(b, a))

    def test_crossing_ranges_overlap(self):
        a = monthly("10", 1, date(2024, 1, 1), date(2024, 6, 1))
        b = monthly("10", 1, date(2024, 5, 31))
        self.assertTrue(overlaps(a, b))
        self.assertTrue(overlaps(b, a))

    def test_both_bounded(self):
        a = monthly("10", 1, date(2024, 1, 1), date(2024, 3, 1))
        b = monthly("10", 1, date(2024, 2, 1), date(2024, 4, 1))
        c = monthly("10", 1, date(2024, 3, 2), date(2024, 4, 1))
        self.assertTrue(overlaps(a, b))
        self.assertFalse(overlaps(a, c))

    def test_both_unbounded(self):
        a = monthly("10", 1, date(2024, 1, 1))
        b = monthly("10", 20, date(2030, 1, 1))
        self.assertTrue(overlaps(a, b))

    def test_add_recurring_rejects_same_cause_overlap(self):
        ledger = Ledger()
        add_recurring_transaction(ledger, monthly("-400", 5, date(2024, 1, 5), cause="Rent"))
        with self.assertRaises(OverlapError):
            add_recurring_transaction(ledger, monthly("-450", 5, date(2025, 1, 5), cause="Rent"))
        add_recurring_transaction(ledger, monthly("-20", 5, date(2025, 1, 5), cause="Phone"))
        self.assertEqual(len(ledger.recurring_transactions), 2)

    def test_find_overlapping_allows_handover(self):
        ledger = Ledger()
        add_recurring_transaction(ledger, monthly("-400", 5, date(2024, 1, 5), date(2024, 6, 5), cause="Rent"))
        later = monthly("-450", 5, date(2024, 6, 5), cause="Rent")
        self.assertEqual(find_overlapping(ledger, later), [])
        add_recurring_transaction(ledger, later)
        self.assertEqual(len(ledger.recurring_transactions), 2)


class TestLedgerMutation(unittest.TestCase):
    def test_add_transaction_keeps_date_order(self):
        ledger = Ledger()
        add_transaction(ledger, Transaction(Decimal("1"), "a", date(2024, 3, 1)))
        add_transaction(ledger, Transaction(Decimal("2"), "b", date(2024, 1, 1)))
        add_transaction(ledger, Transaction(Decimal("3"), "c", date(2024, 3, 1)))
        self.assertEqual([t.cause for t in ledger.transactions], ["b", "a", "c"])


class TestStatement(unittest.TestCase):
    def test_payday_period(self):
        ledger = Ledger()
        add_recurring_transaction(ledger, monthly("1000", 25, date(2024, 1, 25)))
        add_transaction(ledger, Transaction(Decimal("-50"), "Shoes", date(2024, 2, 1)))
        add_transaction(ledger, Transaction(Decimal("-20"), "Taxi", date(2024, 2, 25)))

        result = statement(ledger, DayOfMonth(25), date(2024, 2, 10))
        self.assertEqual(result.start, date(2024, 1, 25))
        self.assertEqual(result.end, date(2024, 2, 25))
        self.assertEqual(result.opening_balance, Decimal("0"))
        self.assertEqual([t.cause for t in result.transactions], ["Salary", "Shoes"])
        self.assertEqual(result.closing_balance, Decimal("950"))

    def test_period_starts_on_payday(self):
        ledger = Ledger()
        add_recurring_transaction(ledger, monthly("1000", 25, date(2024, 1, 25)))

        result = statement(ledger, DayOfMonth(25), date(2024, 2, 25))
        self.assertEqual(result.start, date(2024, 2, 25))
        self.assertEqual(result.end, date(2024, 3, 25))
        self.assertEqual(result.opening_balance, Decimal("1000"))
        self.assertEqual(result.closing_balance, Decimal("2000"))


if __name__ == "__main__":
    unittest.main()
