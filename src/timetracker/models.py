from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = " " * 4
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"

# Runs of two or more whitespace characters, or a single tab, delimit fields.
FIELD_SPLIT_RE = re.compile(r"\s{2,}|\t")
PUNCH_RE = re.compile(r"^\d{2}:\d{2}:\d{2}$")


def is_punch(value: str) -> bool:
    return bool(PUNCH_RE.match(value))


def normalize_message(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def parse_time(value: str) -> datetime | None:
    try:
        return datetime.strptime(value, TIME_FORMAT)
    except ValueError:
        return None


def format_hours(seconds: float) -> str:
    return f"{seconds / 3600.0:.1f}"


@dataclass(frozen=True)
class EntryRow:
    """One day of the ledger.

    ``punches`` alternate clock-in / clock-out, so an odd count means the day is
    still open. ``total`` is derived from the punches whenever a row is built;
    whatever the caller passes in is overwritten.
    """

    date: str
    total: str = "0.0"
    punches: tuple[str, ...] = field(default_factory=tuple)
    message: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "punches", tuple(self.punches))
        object.__setattr__(self, "total", format_hours(self.total_seconds()))

    @classmethod
    def from_line(cls, line: str) -> EntryRow:
        fields = FIELD_SPLIT_RE.split(line.rstrip("\r\n"))
        while fields and not fields[-1]:
            fields.pop()
        if not fields:
            return cls(date="")
        date = fields[0]
        total = fields[1] if len(fields) > 1 else "0.0"
        rest = fields[2:]
        # Last field is a message unless it looks like a timestamp. A message made
        # only of HH:MM:SS text is read back as a punch.
        if rest and not is_punch(rest[-1]):
            return cls(date, total, tuple(rest[:-1]), rest[-1])
        return cls(date, total, tuple(rest), "")

    def to_line(self) -> str:
        row = [self.date, self.total]
        row.extend(self.punches)
        if self.message:
            row.append(self.message)
        return FIELD_SEPARATOR.join(row)

    def __str__(self) -> str:
        return self.to_line()

    def total_seconds(self) -> float:
        total = 0.0
        for index in range(0, len(self.punches) - 1, 2):
            clock_in = parse_time(self.punches[index])
            clock_out = parse_time(self.punches[index + 1])
            if clock_in is None or clock_out is None:
                logger.warning(
                    "Ignoring unparseable pair %s / %s on %s",
                    self.punches[index],
                    self.punches[index + 1],
                    self.date,
                )
                continue
            total += (clock_out - clock_in).total_seconds()
        return total

    def repaired(self) -> EntryRow:
        return replace(self)

    @property
    def has_started_day(self) -> bool:
        return bool(self.punches)

    @property
    def is_currently_working(self) -> bool:
        return len(self.punches) % 2 == 1

    @property
    def last_punch(self) -> str | None:
        return self.punches[-1] if self.punches else None

    def with_punch(self, punch: str) -> EntryRow:
        return replace(self, punches=self.punches + (punch,))

    def without_last_punch(self) -> EntryRow:
        return replace(self, punches=self.punches[:-1])

    def with_message(self, message: str) -> EntryRow:
        return replace(self, message=message)

    def quitting_time(self, hours: float) -> str:
        """Clock time at which the day reaches ``hours`` if work continues from the last punch.

        Callers check ``is_currently_working`` first.
        """
        last = parse_time(self.last_punch or "")
        if last is None:
            raise ValueError(f"Cannot read last punch {self.last_punch!r} on {self.date}")
        remaining = hours * 3600.0 - self.total_seconds()
        return (last + timedelta(seconds=remaining)).strftime(TIME_FORMAT)


@dataclass(frozen=True)
class Punch:
    pass


@dataclass(frozen=True)
class PrintDay:
    pattern: str


@dataclass(frozen=True)
class QuittingTime:
    hours: float


@dataclass(frozen=True)
class Annotate:
    message: str


@dataclass(frozen=True)
class Repair:
    pass


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class ListRecent:
    count: int


Operation = Punch | PrintDay | QuittingTime | Annotate | Repair | Undo | ListRecent


@dataclass(frozen=True)
class Request:
    operation: Operation
    save: bool = True


@dataclass(frozen=True)
class LedgerResult:
    lines: tuple[str, ...]
    output: tuple[str, ...] = field(default_factory=tuple)
    persist: bool = False
    ok: bool = True


@dataclass(frozen=True)
class Config:
    default_hours: float = 8.0
    list_count: int = 5
    log_level: str = "WARNING"
