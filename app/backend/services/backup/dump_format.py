"""Text format of logical dump documents.

A dump document is plain UTF-8 SQL:

    -- Backup for <db> @ <ISO timestamp>

    CREATE DATABASE IF NOT EXISTS `<db>`;
    USE `<db>`;

    <CREATE TABLE ...>;

    INSERT INTO `<table>` (`a`, `b`) VALUES ('1', NULL);
    ...

with two blank lines after every table. Values are rendered by
`serialize_value`; `parse_insert` is its inverse and is used to check that a
dump replays to the original values.
"""

from __future__ import annotations

import base64
from datetime import date, datetime, timedelta, timezone
from typing import Any, List, Sequence, Tuple


NULL_LITERAL = "NULL"
BINARY_FUNCTION = "FROM_BASE64"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class DumpFormatError(ValueError):
    """Raised when a statement cannot be parsed back into values."""


def quote_identifier(name: str) -> str:
    """Quote a table, column or database name with backticks.

    Args:
        name: Identifier.

    Returns:
        str: Backtick-quoted identifier with embedded backticks doubled.
    """

    return "`" + str(name).replace("`", "``") + "`"


def escape_string(value: str) -> str:
    """Escape backslashes and single quotes for a single-quoted SQL literal."""

    return value.replace("\\", "\\\\").replace("'", "\\'")


def format_timestamp(value: datetime) -> str:
    """Render a datetime as fixed-width ``YYYY-MM-DD HH:MM:SS`` text.

    Timezone-aware values are converted to UTC first; sub-second precision is
    truncated.
    """

    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=0).isoformat(sep=" ", timespec="seconds")


def format_time_of_day(value: timedelta) -> str:
    """Render a MySQL TIME value (returned by the driver as timedelta)."""

    total = int(value.total_seconds())
    sign = "-" if total < 0 else ""
    total = abs(total)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"


def serialize_value(value: Any) -> str:
    """Render a column value as a SQL literal.

    Args:
        value: Value as returned by the database driver.

    Returns:
        str: SQL literal safe to embed in an INSERT statement.
    """

    if value is None:
        return NULL_LITERAL

    if isinstance(value, datetime):
        return f"'{format_timestamp(value)}'"

    if isinstance(value, date):
        return f"'{value.isoformat()}'"

    if isinstance(value, timedelta):
        return f"'{format_time_of_day(value)}'"

    if isinstance(value, (bytes, bytearray, memoryview)):
        encoded = base64.b64encode(bytes(value)).decode("ascii")
        return f"{BINARY_FUNCTION}('{encoded}')"

    if isinstance(value, bool):
        value = int(value)

    return f"'{escape_string(str(value))}'"


def format_header(database: str, generated_at: datetime) -> str:
    """Build the document header with CREATE DATABASE / USE directives."""

    if generated_at.tzinfo is None:
        generated_at = generated_at.replace(tzinfo=timezone.utc)
    stamp = generated_at.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    db = quote_identifier(database)
    return f"-- Backup for {database} @ {stamp}\n\nCREATE DATABASE IF NOT EXISTS {db};\nUSE {db};\n\n"


def format_create_table(create_statement: str) -> str:
    return f"{create_statement.rstrip().rstrip(';')};\n\n"


def format_insert(table: str, columns: Sequence[str], values: Sequence[Any]) -> str:
    """Build one INSERT statement for a row.

    Args:
        table: Table name.
        columns: Column names in the order reported by the server.
        values: Row values in the same order.

    Returns:
        str: Statement terminated by ``;\\n``.
    """

    cols = ", ".join(quote_identifier(c) for c in columns)
    vals = ", ".join(serialize_value(v) for v in values)
    return f"INSERT INTO {quote_identifier(table)} ({cols}) VALUES ({vals});\n"


class _Scanner:
    """Cursor over a single INSERT statement."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def expect(self, token: str) -> None:
        self.skip_ws()
        if not self.text.startswith(token, self.pos):
            raise DumpFormatError(f"Expected {token!r} at offset {self.pos}")
        self.pos += len(token)

    def peek(self, token: str) -> bool:
        self.skip_ws()
        return self.text.startswith(token, self.pos)

    def identifier(self) -> str:
        self.expect("`")
        out: List[str] = []
        while True:
            end = self.text.find("`", self.pos)
            if end < 0:
                raise DumpFormatError("Unterminated identifier")
            out.append(self.text[self.pos:end])
            self.pos = end + 1
            if self.text.startswith("`", self.pos):
                out.append("`")
                self.pos += 1
                continue
            return "".join(out)

    def quoted(self) -> str:
        self.expect("'")
        out: List[str] = []
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == "\\":
                if self.pos + 1 >= len(self.text):
                    break
                out.append(self.text[self.pos + 1])
                self.pos += 2
                continue
            if ch == "'":
                self.pos += 1
                return "".join(out)
            out.append(ch)
            self.pos += 1
        raise DumpFormatError("Unterminated string literal")

    def value(self) -> Any:
        if self.peek(NULL_LITERAL):
            self.pos += len(NULL_LITERAL)
            return None
        if self.peek(BINARY_FUNCTION + "("):
            self.pos += len(BINARY_FUNCTION) + 1
            encoded = self.quoted()
            self.expect(")")
            return base64.b64decode(encoded)
        return self.quoted()


def parse_value(literal: str) -> Any:
    """Parse a single literal produced by `serialize_value`.

    Returns:
        Any: None, bytes (for binary literals) or str.
    """

    scanner = _Scanner(literal)
    result = scanner.value()
    scanner.skip_ws()
    if scanner.pos != len(literal):
        raise DumpFormatError(f"Trailing characters after literal: {literal[scanner.pos:]!r}")
    return result


def parse_insert(statement: str) -> Tuple[str, List[str], List[Any]]:
    """Parse an INSERT statement produced by `format_insert`.

    Args:
        statement: One statement, with or without the trailing newline.

    Returns:
        Tuple[str, List[str], List[Any]]: Table name, column names and values.
        Temporal values come back as their text form.

    Raises:
        DumpFormatError: When the statement is not in the dump format.
    """

    scanner = _Scanner(statement)
    scanner.expect("INSERT INTO")
    table = scanner.identifier()

    columns: List[str] = []
    scanner.expect("(")
    while True:
        columns.append(scanner.identifier())
        if scanner.peek(","):
            scanner.pos += 1
            continue
        scanner.expect(")")
        break

    values: List[Any] = []
    scanner.expect("VALUES")
    scanner.expect("(")
    while True:
        values.append(scanner.value())
        if scanner.peek(","):
            scanner.pos += 1
            continue
        scanner.expect(")")
        break
    scanner.expect(";")

    if len(columns) != len(values):
        raise DumpFormatError(f"Column/value count mismatch for table {table}: {len(columns)} != {len(values)}")
    return table, columns, values
