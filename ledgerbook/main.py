import logging
import shlex
import sys

from ledgerbook import config
from ledgerbook.cli import LedgerCLI
from ledgerbook.models import StorageError


def main(argv=None) -> int:
    logging.basicConfig(format=config.LOG_FORMAT, level=config.get_log_level())

    if argv is None:
        argv = sys.argv[1:]

    try:
        cli = LedgerCLI(config.DATA_FILE)
    except StorageError as e:
        print(f"error: ledgerbook: {e}", file=sys.stderr)
        return 1

    if not argv:
        cli.cmdloop()
        return 0

    # one-shot: `ledgerbook spend 12.50 lunch --on today`
    cli.onecmd(shlex.join(argv))
    return 1 if cli.failed else 0


if __name__ == "__main__":
    sys.exit(main())
