# src/statustracker/errors.py
from __future__ import annotations

from typing import Optional


class StatusTrackerError(Exception):
    """Base class for every error raised by statustracker."""


class ConfigError(StatusTrackerError):
    pass


class ValidationError(StatusTrackerError):
    """User input that cannot be turned into a query."""


class TooBroadError(ValidationError):
    def __init__(self) -> None:
        super().__init__(
            "This command will search all projects & labels. To avoid crawling your entire "
            "JIRA instance, you must supply at least one project or a label to narrow the search."
        )


class TransportError(StatusTrackerError):
    """A request to Jira failed or returned something that is not JSON."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
