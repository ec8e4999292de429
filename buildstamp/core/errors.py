"""Error taxonomy for version resolution and ledger persistence.

Everything the engine raises derives from ``BuildstampError`` so the CLI can
turn any fatal condition into a non-zero exit with a readable message.
``MalformedLedgerRow`` is the one non-fatal member: ledger parsers raise it
per row and the ledger types catch it, log, and skip the row.
"""

from __future__ import annotations


class BuildstampError(RuntimeError):
    """Base class for all buildstamp failures."""


class HistoryUnavailable(BuildstampError):
    """Raised when the commit history cannot be enumerated."""


class LedgerUnavailable(BuildstampError):
    """Raised when a ledger blob cannot be fetched from the store."""


class PersistenceFailed(BuildstampError):
    """Raised when writing a ledger blob back to the store fails.

    The resolution already happened, so ``version`` holds the version that
    would have been recorded.  Callers may report it as informational.
    """

    def __init__(self, message: str, *, version: str | None = None) -> None:
        super().__init__(message)
        self.version = version


class MalformedLedgerRow(BuildstampError):
    """Raised when a single ledger row fails to parse."""

    def __init__(self, message: str, *, row: str = "", line_number: int = 0) -> None:
        super().__init__(message)
        self.row = row
        self.line_number = line_number
