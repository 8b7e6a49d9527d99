from __future__ import annotations

import logging
import re
from typing import Sequence

from .models import (
    Annotate,
    EntryRow,
    LedgerResult,
    ListRecent,
    Operation,
    PrintDay,
    Punch,
    QuittingTime,
    Repair,
    Request,
    Undo,
    normalize_message,
)

logger = logging.getLogger(__name__)

NOT_STARTED = "You must have started the day to calculate quitting time."
NOT_WORKING = "You must be currently working to calculate quitting time."
NOTHING_TO_UNDO = "Nothing to undo."


class LedgerError(ValueError):
    pass


def day_indexes(lines: Sequence[str], day: str) -> list[int]:
    return [index for index, line in enumerate(lines) if line.startswith(day)]


def punch(lines: Sequence[str], *, today: str, now: str) -> LedgerResult:
    updated = list(lines)
    output: list[str] = []
    for index in day_indexes(lines, today):
        updated[index] = EntryRow.from_line(lines[index]).with_punch(now).to_line()
        output.append(updated[index])
    if not output:
        output.append(EntryRow(today, "0.0", (now,)).to_line())
        updated.append(output[0])
    return LedgerResult(tuple(updated), tuple(output), persist=True)


def annotate(lines: Sequence[str], message: str, *, today: str) -> LedgerResult:
    message = normalize_message(message)
    updated = list(lines)
    output: list[str] = []
    for index in day_indexes(lines, today):
        updated[index] = EntryRow.from_line(lines[index]).with_message(message).to_line()
        output.append(updated[index])
    if not output:
        output.append(EntryRow(today, "0.0", (), message).to_line())
        updated.append(output[0])
    return LedgerResult(tuple(updated), tuple(output), persist=True)


def print_day(lines: Sequence[str], pattern: str) -> LedgerResult:
    try:
        matcher = re.compile(rf"[-\d]*{pattern}")
    except re.error as exc:
        raise LedgerError(f"Invalid date pattern {pattern!r}: {exc}") from exc
    output = tuple(line for line in lines if matcher.match(line))
    return LedgerResult(tuple(lines), output)


def quitting_time(lines: Sequence[str], hours: float, *, today: str) -> LedgerResult:
    indexes = day_indexes(lines, today)
    if not indexes:
        return LedgerResult(tuple(lines), (NOT_STARTED,), ok=False)
    row = EntryRow.from_line(lines[indexes[0]])
    if not row.is_currently_working:
        return LedgerResult(tuple(lines), (NOT_WORKING,), ok=False)
    try:
        stop = row.quitting_time(hours)
    except ValueError as exc:
        raise LedgerError(str(exc)) from exc
    return LedgerResult(tuple(lines), (stop,))


def repair(lines: Sequence[str]) -> LedgerResult:
    updated = tuple(
        EntryRow.from_line(line).repaired().to_line() if line.strip() else line
        for line in lines
    )
    return LedgerResult(updated, persist=True)


def undo(lines: Sequence[str]) -> LedgerResult:
    if not lines or not lines[-1].strip():
        return LedgerResult(tuple(lines), (NOTHING_TO_UNDO,))
    line = EntryRow.from_line(lines[-1]).without_last_punch().to_line()
    return LedgerResult(tuple(lines[:-1]) + (line,), (line,), persist=True)


def list_recent(lines: Sequence[str], count: int) -> LedgerResult:
    output = tuple(lines[-count:]) if count > 0 else ()
    return LedgerResult(tuple(lines), output)


def apply_operation(
    lines: Sequence[str], operation: Operation, *, today: str, now: str
) -> LedgerResult:
    logger.debug("Applying %s to %d lines", operation, len(lines))
    match operation:
        case PrintDay(pattern=pattern):
            return print_day(lines, pattern or today)
        case QuittingTime(hours=hours):
            return quitting_time(lines, hours, today=today)
        case Annotate(message=message):
            return annotate(lines, message, today=today)
        case Repair():
            return repair(lines)
        case Undo():
            return undo(lines)
        case ListRecent(count=count):
            return list_recent(lines, count)
        case Punch():
            return punch(lines, today=today, now=now)
    raise LedgerError(f"Unsupported operation: {operation!r}")


def apply_request(
    lines: Sequence[str], request: Request, *, today: str, now: str
) -> LedgerResult:
    result = apply_operation(lines, request.operation, today=today, now=now)
    if result.persist and not request.save:
        logger.debug("Dry run, ledger will not be written")
        return LedgerResult(result.lines, result.output, persist=False, ok=result.ok)
    return result
