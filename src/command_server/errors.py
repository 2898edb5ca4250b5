"""Exception hierarchy for the command server."""

from __future__ import annotations


class CommandServerError(Exception):
    """Base class for all command server errors."""


class DecodeError(CommandServerError):
    """Inbound bytes could not be turned into a Request.

    The request_id is unknown at this point, so the resulting error
    response carries `request_id: null`.
    """


class CommandError(CommandServerError):
    """A structurally valid request whose command could not be executed."""


class DivisionByZeroError(CommandError):
    """Division with a zero divisor."""

    def __init__(self) -> None:
        super().__init__("division by zero")
