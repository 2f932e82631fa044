import io
import json
import tempfile
import unittest
from datetime import date
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

from ledgerbook import config
from ledgerbook.cli import LedgerCLI, parse_amount
from ledgerbook.main import main
from ledgerbook.models import Ledger


class TestLedgerCLI(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "ledger.json"
        self.out = io.StringIO()
        self.cli = LedgerCLI(self.path, ledger=Ledger(), stdout=self.out)

        patcher = patch.object(config, "CURRENCY", "£")
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self._tmp.cleanup()

    def run_cmd(self, line):
        self.out.seek(0)
        self.out.truncate()
        self.cli.onecmd(line)
        return self.out.getvalue()

    def test_parse_amount(self):
        self.assertEqual(parse_amount("12.50"), Decimal("12.50"))
        with self.assertRaises(ValueError):
            parse_amount("twelve")
        with self.assertRaises(ValueError):
            parse_amount("NaN")

    def test_add_and_spend(self):
        self.assertIn("Added £100.00", self.run_cmd("add 100 salary --on 2024-01-01"))
        self.assertIn("Spent £30.00", self.run_cmd("spend 30 'coffee beans' --on 2024-01-02"))

        self.assertEqual(self.cli.ledger.transactions[1].cause, "coffee beans")
        self.assertEqual(self.cli.ledger.transactions[1].amount, Decimal("-30"))
        self.assertIn("Balance on 2024-01-02: £70.00", self.run_cmd("balance 2024-01-02"))
        self.assertIn("Balance before 2024-01-02: £100.00", self.run_cmd("balance 2024-01-02 --before"))
        self.assertFalse(self.cli.failed)

    def test_add_writes_file(self):
        self.run_cmd("add 5 tea --on 2024-01-01")
        data = json.loads(self.path.read_text())
        self.assertEqual(data["transactions"], [{"amount": "5", "cause": "tea", "date": "2024-01-01"}])

    def test_queries_do_not_write_file(self):
        self.run_cmd("balance 2024-01-01")
        self.run_cmd("list 2024-01-01")
        self.assertFalse(self.path.exists())

    def test_add_defaults_to_today(self):
        with patch("ledgerbook.cli.today", return_value=date(2024, 8, 1)):
            self.run_cmd("add 5 tea")
        self.assertEqual(self.cli.ledger.transactions[0].date, date(2024, 8, 1))

    def test_monthly(self):
        output = self.run_cmd("monthly -400 5 Rent --from 2024-01-01 --until 2024-03-31")
        self.assertIn("Added monthly -£400.00 on day 5", output)
        self.assertIn("Balance on 2024-12-31: -£1,200.00", self.run_cmd("balance 2024-12-31"))
        self.assertIn("Rent", self.run_cmd("recurring"))

    def test_monthly_rejects_bad_day(self):
        output = self.run_cmd("monthly 100 30 Salary --from 2024-01-01")
        self.assertIn("Invalid input", output)
        self.assertTrue(self.cli.failed)
        self.assertEqual(self.cli.ledger.recurring_transactions, [])

    def test_monthly_rejects_overlap(self):
        self.run_cmd("monthly -400 5 Rent --from 2024-01-01")
        output = self.run_cmd("monthly -450 5 Rent --from 2025-01-01")
        self.assertIn("Invalid input", output)
        self.assertEqual(len(self.cli.ledger.recurring_transactions), 1)

    def test_monthly_rejects_end_before_start(self):
        output = self.run_cmd("monthly 100 1 Salary --from 2024-05-01 --until 2024-01-01")
        self.assertIn("Invalid input", output)

    def test_invalid_date(self):
        self.assertIn("Invalid input", self.run_cmd("balance 2024-02-30"))
        self.assertTrue(self.cli.failed)

    def test_negative_add_rejected(self):
        self.assertIn("Invalid input", self.run_cmd("add -5 tea"))
        self.assertEqual(self.cli.ledger.transactions, [])

    def test_statement(self):
        self.run_cmd("monthly 1000 25 Salary --from 2024-01-25")
        self.run_cmd("spend 50 Shoes --on 2024-02-01")
        output = self.run_cmd("statement 2024-02-10 --payday 25")

        self.assertIn("Period: 2024-01-25 to 2024-02-25", output)
        self.assertIn("Opening balance: £0.00", output)
        self.assertIn("Shoes", output)
        self.assertIn("Closing balance: £950.00", output)

    def test_list(self):
        self.assertIn("No transactions", self.run_cmd("list 2024-01-01"))
        self.run_cmd("monthly 1000 25 Salary --from 2024-01-25")
        output = self.run_cmd("list 2024-03-01")
        self.assertEqual(output.count("Salary"), 2)

    def test_unknown_command(self):
        self.assertIn("Unknown command: frobnicate", self.run_cmd("frobnicate now"))
        self.assertTrue(self.cli.failed)

    def test_exit(self):
        self.assertTrue(self.cli.onecmd("exit"))

    def test_end_of_input_exits(self):
        self.assertTrue(self.cli.onecmd("EOF"))
        self.assertFalse(self.cli.failed)

    def test_cmdloop_stops_at_end_of_input(self):
        cli = LedgerCLI(self.path, ledger=Ledger(), stdout=self.out)
        cli.stdin = io.StringIO("balance 2024-01-01\n")
        cli.use_rawinput = False
        cli.cmdloop(intro="")
        self.assertIn("Balance on 2024-01-01: £0.00", self.out.getvalue())
        self.assertNotIn("Unknown command", self.out.getvalue())

    def test_bad_default_payday(self):
        with patch.object(config, "DEFAULT_PAYDAY", "31"):
            self.assertIn("Invalid input", self.run_cmd("statement 2024-02-10"))
        self.assertTrue(self.cli.failed)

    def test_default_payday_from_config(self):
        with patch.object(config, "DEFAULT_PAYDAY", "10"):
            output = self.run_cmd("statement 2024-02-15")
        self.assertIn("Period: 2024-02-10 to 2024-03-10", output)

    def test_rejected_command_is_logged(self):
        with self.assertLogs("ledgerbook.cli", level="DEBUG") as logs:
            self.run_cmd("balance 2024-02-30")
        self.assertIn("Rejected command", logs.output[0])


class TestMain(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "ledger.json"
        patcher = patch.object(config, "DATA_FILE", self.path)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self._tmp.cleanup()

    def test_one_shot_commands(self):
        with patch("sys.stdout", new_callable=io.StringIO):
            self.assertEqual(main(["add", "5", "green tea", "--on", "2024-01-01"]), 0)
            self.assertEqual(main(["balance", "nonsense"]), 1)

        data = json.loads(self.path.read_text())
        self.assertEqual(data["transactions"][0]["cause"], "green tea")

    def test_unreadable_file(self):
        self.path.write_text("{not json")
        with patch("sys.stderr", new_callable=io.StringIO) as err:
            self.assertEqual(main(["balance"]), 1)
        self.assertIn("error: ledgerbook", err.getvalue())


if __name__ == "__main__":
    unittest.main()
