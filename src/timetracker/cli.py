from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from datetime import datetime
from pathlib import Path
from typing import Sequence

from .ledger import LedgerError, apply_request
from .models import (
    DATE_FORMAT,
    TIME_FORMAT,
    Annotate,
    Config,
    ListRecent,
    PrintDay,
    Punch,
    QuittingTime,
    Repair,
    Request,
    Undo,
    normalize_message,
)
from .storage import ConfigError, LedgerFile, load_config

logger = logging.getLogger(__name__)

MISSING_FILE_MESSAGE = "A timesheet storage file must be provided"


def current_time() -> datetime:
    return datetime.now()


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timetracker",
        add_help=False,
        usage="%(prog)s [options] [file]",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """
            Punch in and out of a plain-text timesheet, one line per day.
            Without options the current time is added to today's line.
            """
        ).strip(),
    )
    parser.add_argument("file", nargs="?", help="Timesheet storage file")
    parser.add_argument(
        "-p",
        "--print",
        dest="print_date",
        nargs="?",
        const="",
        metavar="DATE",
        help="print the row for the current day (or DATE)",
    )
    parser.add_argument(
        "-m", "--message", metavar="MESSAGE", help="add a message to the current day"
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="print what the line would have looked like, but do not modify the file",
    )
    parser.add_argument(
        "-q",
        "--quitting-time",
        dest="quitting_hours",
        nargs="?",
        type=float,
        const=config.default_hours,
        metavar="HOURS",
        help=(
            "print the time you would have to stop working to meet "
            f"{config.default_hours:g} hours (or HOURS)"
        ),
    )
    parser.add_argument(
        "-r",
        "--repair",
        action="store_true",
        help="reparse all lines in the file to ensure the hours worked is correct",
    )
    parser.add_argument(
        "-l",
        "--list",
        action="store_true",
        help="list the most recent entries (limited by -c)",
    )
    parser.add_argument("-u", "--undo", action="store_true", help="undo the most recent entry")
    parser.add_argument(
        "-c",
        "--count",
        nargs="?",
        type=int,
        const=config.list_count,
        default=config.list_count,
        metavar="COUNT",
        help=f"restrict list-based functionality to the most recent COUNT (default: {config.list_count})",
    )
    parser.add_argument(
        "-h", "-?", "--help", action="help", help="brief help message"
    )
    return parser


def request_from_args(args: argparse.Namespace) -> Request:
    save = not (
        args.dry_run
        or args.print_date is not None
        or args.quitting_hours is not None
        or args.list
    )
    if args.print_date is not None:
        operation = PrintDay(args.print_date)
    elif args.quitting_hours is not None:
        operation = QuittingTime(args.quitting_hours)
    elif args.message is not None:
        operation = Annotate(normalize_message(args.message))
    elif args.repair:
        operation = Repair()
    elif args.undo:
        operation = Undo()
    elif args.list:
        operation = ListRecent(args.count)
    else:
        operation = Punch()
    return Request(operation=operation, save=save)


def configure_logging(config: Config) -> None:
    logging.basicConfig(
        level=config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Sequence[str] | None = None) -> int:
    try:
        config = load_config()
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    configure_logging(config)

    parser = build_parser(config)
    args = parser.parse_args(argv)
    if not args.file:
        print(MISSING_FILE_MESSAGE, file=sys.stderr)
        return 1

    request = request_from_args(args)
    ledger = LedgerFile(Path(args.file).expanduser())
    now = current_time()
    try:
        result = apply_request(
            ledger.read(),
            request,
            today=now.strftime(DATE_FORMAT),
            now=now.strftime(TIME_FORMAT),
        )
    except LedgerError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if result.persist:
        ledger.write(result.lines)
    if result.output:
        print("\n".join(result.output))
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
