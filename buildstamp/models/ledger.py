"""Ledger row and ledger log models (append-only, line-oriented CSV).

Two ledgers exist per product line:

- the open-source *patch* ledger, one row per commit:
  ``commit,buildNumber,timestamp``
- the derived-variant *suffix* ledger, one row per derived build:
  ``buildNumber,suffix,commit,timestamp``

Neither blob has a header.  Timestamps are UTC ``YYYY-MM-DD HH:MM:SS`` and are
informational only; ordering is by position in the blob.  A row is usable as
long as its leading numeric fields are: a missing or unreadable timestamp
leaves ``timestamp`` as ``None``, and trailing extra fields are ignored.

A ledger is never edited in place.  ``prepend()`` returns a new ledger whose
text is the new rows followed by the previous text verbatim, so rows that
failed to parse are carried forward untouched on republish.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from collections.abc import Iterable
from typing import ClassVar, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from buildstamp.core.errors import MalformedLedgerRow

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(value: datetime) -> str:
    """Render a timestamp the way ledger rows store it (UTC, second precision)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def _format_optional(value: datetime | None) -> str:
    return "" if value is None else format_timestamp(value)


def parse_timestamp(text: str) -> datetime:
    """Parse a ledger timestamp; naive values are taken as UTC."""
    text = text.strip()
    try:
        parsed = datetime.strptime(text, TIMESTAMP_FORMAT)
    except ValueError:
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_count(text: str, field: str, row: str, line_number: int) -> int:
    try:
        value = int(text.strip())
    except ValueError:
        raise MalformedLedgerRow(
            f"Line {line_number}: {field} {text!r} is not an integer",
            row=row,
            line_number=line_number,
        ) from None
    if value < 0:
        raise MalformedLedgerRow(
            f"Line {line_number}: {field} {value} is negative",
            row=row,
            line_number=line_number,
        )
    return value


def _parse_row_timestamp(fields: list[str], index: int, line_number: int) -> datetime | None:
    if index >= len(fields) or not fields[index]:
        return None
    try:
        return parse_timestamp(fields[index])
    except ValueError:
        logger.debug("Line %d: keeping row with unreadable timestamp %r", line_number, fields[index])
        return None


def _split_row(row: str, required: int, line_number: int) -> list[str]:
    fields = [field.strip() for field in row.split(",")]
    if len(fields) < required:
        raise MalformedLedgerRow(
            f"Line {line_number}: expected at least {required} fields, got {len(fields)}",
            row=row,
            line_number=line_number,
        )
    return fields


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


class PatchLedgerEntry(BaseModel):
    """One open-source commit mapped to the build number it shipped in."""

    model_config = ConfigDict(frozen=True)

    commit: str = Field(min_length=1)
    build_number: int = Field(ge=0)
    timestamp: datetime | None = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def parse(cls, row: str, line_number: int = 0) -> PatchLedgerEntry:
        """Parse a ``commit,buildNumber[,timestamp]`` row.

        Raises ``MalformedLedgerRow`` if the commit is empty or the build
        number is not a non-negative integer.
        """
        fields = _split_row(row, 2, line_number)
        if not fields[0]:
            raise MalformedLedgerRow(
                f"Line {line_number}: empty commit", row=row, line_number=line_number
            )
        return cls(
            commit=fields[0],
            build_number=_parse_count(fields[1], "build number", row, line_number),
            timestamp=_parse_row_timestamp(fields, 2, line_number),
        )

    def format(self) -> str:
        return f"{self.commit},{self.build_number},{_format_optional(self.timestamp)}"


class SuffixLedgerEntry(BaseModel):
    """One derived-variant build recorded against an open-source build number."""

    model_config = ConfigDict(frozen=True)

    build_number: int = Field(ge=0)
    suffix: int = Field(ge=0)
    commit: str = ""
    timestamp: datetime | None = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def parse(cls, row: str, line_number: int = 0) -> SuffixLedgerEntry:
        """Parse a ``buildNumber,suffix[,commit[,timestamp]]`` row."""
        fields = _split_row(row, 2, line_number)
        return cls(
            build_number=_parse_count(fields[0], "build number", row, line_number),
            suffix=_parse_count(fields[1], "suffix", row, line_number),
            commit=fields[2] if len(fields) > 2 else "",
            timestamp=_parse_row_timestamp(fields, 3, line_number),
        )

    def format(self) -> str:
        return (
            f"{self.build_number},{self.suffix},{self.commit},"
            f"{_format_optional(self.timestamp)}"
        )


LedgerRow = Union[PatchLedgerEntry, SuffixLedgerEntry]


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------


class _LedgerBase(BaseModel):
    """Shared behaviour for the two append-only ledger logs.

    ``entries`` holds the parsed rows in blob order (newest first by
    convention).  ``text`` is the exact blob content, including any rows that
    were skipped while parsing.
    """

    model_config = ConfigDict(frozen=True)

    text: str = ""
    skipped_rows: int = 0

    row_type: ClassVar[type[PatchLedgerEntry] | type[SuffixLedgerEntry]]

    @classmethod
    def parse(cls: type[LedgerT], text: str) -> LedgerT:
        """Parse a ledger blob, skipping (and logging) rows that fail to parse."""
        entries: list[LedgerRow] = []
        skipped = 0
        for line_number, line in enumerate(text.splitlines(), start=1):
            row = line.strip()
            if not row:
                continue
            try:
                entries.append(cls.row_type.parse(row, line_number))
            except (MalformedLedgerRow, ValueError) as exc:
                skipped += 1
                logger.warning("Skipping malformed ledger row: %s", exc)
        return cls(entries=tuple(entries), text=text, skipped_rows=skipped)

    def prepend(self: LedgerT, new_entries: Iterable[LedgerRow]) -> LedgerT:
        """Return a new ledger with ``new_entries`` in front of this one.

        The receiver is left unchanged.
        """
        rows = tuple(new_entries)
        return type(self)(
            entries=rows + self.entries,
            text=_render(rows) + self.text,
            skipped_rows=self.skipped_rows,
        )

    def to_text(self) -> str:
        return self.text

    def __len__(self) -> int:
        return len(self.entries)


LedgerT = TypeVar("LedgerT", bound=_LedgerBase)


def _render(entries: Iterable[LedgerRow]) -> str:
    return "".join(f"{entry.format()}\n" for entry in entries)


class PatchLedger(_LedgerBase):
    """The open-source patch ledger: ``commit -> build number`` rows."""

    row_type: ClassVar[type[PatchLedgerEntry]] = PatchLedgerEntry

    entries: tuple[PatchLedgerEntry, ...] = ()

    @property
    def max_build_number(self) -> int:
        return max((e.build_number for e in self.entries), default=0)


class SuffixLedger(_LedgerBase):
    """The derived-variant suffix ledger: ``build number -> suffix`` rows."""

    row_type: ClassVar[type[SuffixLedgerEntry]] = SuffixLedgerEntry

    entries: tuple[SuffixLedgerEntry, ...] = ()
