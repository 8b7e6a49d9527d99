"""Plain-text punch-clock timesheet."""

__version__ = "0.1.0"
