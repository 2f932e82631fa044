import cmd
import logging
import shlex
from decimal import Decimal, InvalidOperation
from pathlib import Path

from ledgerbook import config
from ledgerbook.dates import parse_date, format_date, today
from ledgerbook.logic import (
    add_transaction,
    add_recurring_transaction,
    balance_as_of,
    balance_strictly_before,
    transactions_as_of,
    statement,
)
from ledgerbook.models import DayOfMonth, Transaction, RecurringTransaction, Ledger, LedgerError
from ledgerbook.storage import load_ledger, save_ledger


logger = logging.getLogger(__name__)


def parse_amount(text: str) -> Decimal:
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Expected a decimal value, got {text!r}") from None
    if not amount.is_finite():
        raise ValueError(f"Expected a decimal value, got {text!r}")
    return amount


class LedgerCLI(cmd.Cmd):
    prompt = "(ledger) "

    def __init__(self, path: Path = None, ledger: Ledger = None, stdout=None):
        super().__init__(stdout=stdout)
        self.intro = "Welcome to ledgerbook. Type 'help' for commands."
        self.path = Path(path) if path is not None else config.DATA_FILE
        self.ledger = ledger if ledger is not None else load_ledger(self.path)
        self.failed = False

    def _print(self, text=""):
        print(text, file=self.stdout)

    def _money(self, amount: Decimal) -> str:
        sign = "-" if amount < 0 else ""
        return f"{sign}{config.CURRENCY}{abs(amount):,.2f}"

    def _save(self):
        save_ledger(self.path, self.ledger)

    def _run(self, action, arg):
        """Run one command, reporting bad input instead of raising."""
        try:
            action(shlex.split(arg))
            return
        except LedgerError as e:
            logger.debug(f"Rejected command {arg!r}: {e}")
            if isinstance(e, ValueError):
                self._print(f"Invalid input: {e}")
            else:
                self._print(f"Error: {e}")
        except ValueError as e:
            logger.debug(f"Rejected command {arg!r}: {e}")
            self._print(f"Invalid input: {e}")
        self.failed = True

    # ===== CORE COMMANDS =====
    def do_add(self, arg):
        """Add some money: add <amount> <cause> [--on YYYY-MM-DD|today]"""
        self._run(lambda args: self._add(args, sign=1), arg)

    def do_spend(self, arg):
        """Spend some money: spend <amount> <cause> [--on YYYY-MM-DD|today]"""
        self._run(lambda args: self._add(args, sign=-1), arg)

    def do_monthly(self, arg):
        """Add a monthly transaction: monthly <amount> <day 1-28> <cause> [--from DATE] [--until DATE]

        Use a negative amount for a monthly spend."""
        self._run(self._monthly, arg)

    def do_balance(self, arg):
        """Show the balance on a date: balance [DATE] [--before]"""
        self._run(self._balance, arg)

    def do_statement(self, arg):
        """Show the payday period around a date: statement [DATE] [--payday N]"""
        self._run(self._statement, arg)

    def do_list(self, arg):
        """List all transactions up to a date, monthly ones included: list [DATE]"""
        self._run(self._list, arg)

    def do_recurring(self, arg):
        """List monthly transactions"""
        if not self.ledger.recurring_transactions:
            self._print("No monthly transactions")
            return
        for r in self.ledger.recurring_transactions:
            until = f" until {format_date(r.end_date)}" if r.end_date else ""
            self._print(
                f"  {self._money(r.amount)} on day {r.day}: {r.cause} "
                f"(from {format_date(r.start_date)}{until})"
            )

    # ===== UTILITIES =====
    def do_exit(self, arg):
        """Exit the program"""
        self._print("Goodbye!")
        return True

    def do_EOF(self, arg):
        """Exit at end of input (Ctrl-D)"""
        self._print()
        return True

    def emptyline(self):
        pass

    def default(self, line):
        logger.debug(f"Unknown command: {line!r}")
        self._print(f"Unknown command: {line.split()[0]}")
        self.failed = True

    # ===== HANDLERS =====
    def _add(self, args, sign):
        options, positional = self._split_options(args, flags=(), valued=("--on",))
        if len(positional) < 2:
            raise ValueError("Missing required arguments (amount and cause)")

        amount = parse_amount(positional[0])
        if amount < 0:
            raise ValueError("Amount must not be negative")
        transaction = Transaction(
            amount=sign * amount,
            cause=" ".join(positional[1:]),
            date=parse_date(options["--on"]) if "--on" in options else today(),
        )
        add_transaction(self.ledger, transaction)
        self._save()

        verb = "Added" if sign > 0 else "Spent"
        self._print(f"✓ {verb} {self._money(amount)} on {format_date(transaction.date)}")

    def _monthly(self, args):
        options, positional = self._split_options(args, flags=(), valued=("--from", "--until"))
        if len(positional) < 3:
            raise ValueError("Missing required arguments (amount, day and cause)")

        recurring = RecurringTransaction(
            amount=parse_amount(positional[0]),
            day=DayOfMonth.parse(positional[1]),
            cause=" ".join(positional[2:]),
            start_date=parse_date(options["--from"]) if "--from" in options else today(),
            end_date=parse_date(options["--until"]) if "--until" in options else None,
        )
        if recurring.end_date is not None and recurring.end_date < recurring.start_date:
            raise ValueError("End date is before start date")

        add_recurring_transaction(self.ledger, recurring)
        self._save()
        self._print(f"✓ Added monthly {self._money(recurring.amount)} on day {recurring.day}")

    def _balance(self, args):
        options, positional = self._split_options(args, flags=("--before",), valued=())
        on = self._date_arg(positional)
        if "--before" in options:
            balance = balance_strictly_before(self.ledger, on)
            self._print(f"Balance before {format_date(on)}: {self._money(balance)}")
        else:
            balance = balance_as_of(self.ledger, on)
            self._print(f"Balance on {format_date(on)}: {self._money(balance)}")

    def _statement(self, args):
        options, positional = self._split_options(args, flags=(), valued=("--payday",))
        on = self._date_arg(positional)
        payday = DayOfMonth.parse(options.get("--payday", config.DEFAULT_PAYDAY))

        result = statement(self.ledger, payday, on)
        self._print(f"\n{' Statement ':-^50}")
        self._print(f"Period: {format_date(result.start)} to {format_date(result.end)}")
        self._print(f"Opening balance: {self._money(result.opening_balance)}")
        for t in result.transactions:
            self._print(f"  {format_date(t.date)}  {self._money(t.amount):>14}  {t.cause}")
        self._print(f"Closing balance: {self._money(result.closing_balance)}")

    def _list(self, args):
        on = self._date_arg(args)
        projected = transactions_as_of(self.ledger, on)
        if not projected:
            self._print("No transactions")
            return
        for t in projected:
            self._print(f"  {format_date(t.date)}  {self._money(t.amount):>14}  {t.cause}")

    # ===== HELPERS =====
    @staticmethod
    def _date_arg(positional):
        if len(positional) > 1:
            raise ValueError(f"Unexpected argument: {positional[1]}")
        return parse_date(positional[0]) if positional else today()

    @staticmethod
    def _split_options(args, flags, valued):
        """Separate --options from positional arguments"""
        options = {}
        positional = []

        i = 0
        while i < len(args):
            if args[i] in flags:
                options[args[i]] = True
                i += 1
            elif args[i] in valued:
                if i + 1 >= len(args):
                    raise ValueError(f"Missing value after {args[i]}")
                options[args[i]] = args[i + 1]
                i += 2
            elif args[i].startswith("--"):
                raise ValueError(f"Unknown flag: {args[i]}")
            else:
                positional.append(args[i])
                i += 1

        return options, positional
