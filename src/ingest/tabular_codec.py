"""Delimited tabular text codec.

This module decodes and encodes the comma-delimited artifact format
used by raw query downloads, normalized feeds, and removal reports.
Decoding works one physical line at a time and never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from core.constants import FIELD_SEPARATOR, QUOTE_CHARACTER, ROW_SEPARATOR

_BYTE_ORDER_MARK = "\ufeff"
_QUOTE_TRIGGERS = (FIELD_SEPARATOR, QUOTE_CHARACTER, "\n")


@dataclass(frozen=True)
class DecodedTable:
    """Header plus data rows of a decoded artifact.

    Attributes:
        header: Column names from the first non-empty line.
        rows: Remaining non-empty lines as field tuples.
    """

    header: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]

    @property
    def is_empty(self) -> bool:
        """Return whether no header line was decoded."""
        return not self.header

    def column_index(self, name: str) -> int | None:
        """Return the header position of a column, if present."""
        try:
            return self.header.index(name)
        except ValueError:
            return None

    def value(self, row: Sequence[str], name: str, default: str = "") -> str:
        """Resolve a field by column name.

        Args:
            row: Decoded data row.
            name: Header column name.
            default: Value used when the column is missing, the row is
                too short, or the field is empty.

        Returns:
            Field value or default.
        """
        index = self.column_index(name)
        if index is None or index >= len(row):
            return default
        return row[index] or default


def iter_lines(text: str) -> Iterator[str]:
    """Yield trimmed, non-empty physical lines of a text payload."""
    body = text.lstrip(_BYTE_ORDER_MARK).strip()
    for line in body.split(ROW_SEPARATOR):
        stripped = line.strip()
        if stripped:
            yield stripped


def parse_line(line: str) -> list[str]:
    """Split one physical line into trimmed field values.

    A quote character toggles the quoted state. Inside a quoted span a
    doubled quote yields one literal quote. Separators inside quotes are
    kept as field content. Unbalanced quotes are tolerated.

    Args:
        line: One physical line.

    Returns:
        Field values in column order.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    index = 0
    length = len(line)
    while index < length:
        char = line[index]
        if char == QUOTE_CHARACTER:
            if in_quotes and index + 1 < length and line[index + 1] == QUOTE_CHARACTER:
                current.append(QUOTE_CHARACTER)
                index += 2
                continue
            in_quotes = not in_quotes
        elif char == FIELD_SEPARATOR and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        index += 1
    fields.append("".join(current).strip())
    return fields


def decode_rows(text: str) -> list[list[str]]:
    """Decode text into rows of field values, header row included."""
    return [parse_line(line) for line in iter_lines(text)]


def decode_table(text: str) -> DecodedTable:
    """Decode text into a header and data rows.

    Args:
        text: Artifact text.

    Returns:
        Decoded table; empty header when the text has no content.
    """
    lines = iter_lines(text)
    header_line = next(lines, None)
    if header_line is None:
        return DecodedTable(header=(), rows=())
    header = tuple(parse_line(header_line))
    rows = tuple(tuple(parse_line(line)) for line in lines)
    return DecodedTable(header=header, rows=rows)


def encode_value(value: str) -> str:
    """Quote a field value when it contains a separator, quote, or newline."""
    if any(trigger in value for trigger in _QUOTE_TRIGGERS):
        escaped = value.replace(QUOTE_CHARACTER, QUOTE_CHARACTER * 2)
        return f"{QUOTE_CHARACTER}{escaped}{QUOTE_CHARACTER}"
    return value


def encode_row(values: Iterable[str]) -> str:
    """Encode one row of values as a delimited line."""
    return FIELD_SEPARATOR.join(encode_value(value) for value in values)


def encode_rows(rows: Iterable[Iterable[str]]) -> str:
    """Encode rows as newline-joined text without a trailing newline."""
    return ROW_SEPARATOR.join(encode_row(row) for row in rows)
