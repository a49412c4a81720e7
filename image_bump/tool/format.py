"""Library for formatting output."""

from collections.abc import Generator
import sys
from typing import TextIO


PADDING = 4


def column_format_string(rows: list[list[str]]) -> str:
    """Produce a format string based on max width of columns."""
    num_cols = len(rows[0])
    widths = [0] * num_cols
    for row in rows:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(str(value)))
    return "".join([f"{{:{w+PADDING}}}" for w in widths])


def format_columns(
    headers: list[str], rows: list[list[str]]
) -> Generator[str, None, None]:
    """Print the specified output rows in a column format."""
    data = [headers] + rows
    format_string = column_format_string(data)
    if format_string:
        for row in data:
            yield format_string.format(*[str(x) for x in row]).rstrip()


def print_table(
    headers: list[str], rows: list[list[str]], file: TextIO | None = None
) -> None:
    """Print rows in a column format with upper case headers."""
    for line in format_columns([header.upper() for header in headers], rows):
        print(line, file=file or sys.stderr)


def print_updates(
    updates: dict[str, str], headers: list[str], file: TextIO | None = None
) -> None:
    """Print a table of the old and new references, sorted by old reference."""
    if not updates:
        return
    print_table(headers, [[old, new] for old, new in sorted(updates.items())], file)
