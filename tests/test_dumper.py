"""Tests for the MySQL dumper using a scripted fake connection."""

from datetime import datetime

import pymysql
import pytest

from backend.services.backup.dump_format import parse_insert
from backend.services.backup.dumper import MySQLConfig, MySQLDumper
from backend.services.backup.errors import DumpConnectionError, DumpError, QueryError


class FakeCursor:
    def __init__(self, tables, fail_on=None):
        self.tables = tables
        self.fail_on = fail_on
        self.executed = []
        self.description = None
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql):
        self.executed.append(sql)
        if self.fail_on and self.fail_on in sql:
            raise pymysql.err.ProgrammingError(1146, "Table doesn't exist")

        if sql == "SHOW TABLES":
            self.description = (("Tables_in_db",),)
            self._rows = [(name,) for name in self.tables]
        elif sql.startswith("SHOW CREATE TABLE"):
            name = sql.split("`")[1]
            self.description = (("Table",), ("Create Table",))
            self._rows = [(name, self.tables[name]["create"])]
        elif sql.startswith("SELECT * FROM"):
            name = sql.split("`")[1]
            self.description = tuple((col,) for col in self.tables[name]["columns"])
            self._rows = list(self.tables[name]["rows"])

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.closed = False

    def cursor(self):
        return self._cursor

    def close(self):
        self.closed = True


TABLES = {
    "users": {
        "create": "CREATE TABLE `users` (`id` int, `name` varchar(20), `joined` datetime)",
        "columns": ["id", "name", "joined"],
        "rows": [
            (1, "O'Brien", datetime(2021, 3, 4, 5, 6, 7)),
            (2, None, datetime(2022, 1, 1, 0, 0, 0)),
        ],
    },
    "avatars": {
        "create": "CREATE TABLE `avatars` (`user_id` int, `img` blob)",
        "columns": ["user_id", "img"],
        "rows": [(1, b"\x89PNG")],
    },
}


def make_dumper(cursor, calls=None):
    conn = FakeConnection(cursor)

    def connect(**kwargs):
        if calls is not None:
            calls.append(kwargs)
        return conn

    return MySQLDumper(MySQLConfig(host="db", port=3307, user="backup", password="pw"), connect=connect), conn


def test_dump_contains_header_schema_and_rows_in_order():
    calls = []
    dumper, conn = make_dumper(FakeCursor(TABLES), calls)

    document = dumper.dump("shop")

    assert calls[0]["database"] == "shop"
    assert calls[0]["host"] == "db"
    assert calls[0]["port"] == 3307
    assert conn.closed

    text = document.text
    assert text.startswith("-- Backup for shop @ ")
    assert "CREATE DATABASE IF NOT EXISTS `shop`;\nUSE `shop`;" in text
    assert text.index("CREATE TABLE `users`") < text.index("INSERT INTO `users`")
    assert text.index("INSERT INTO `users`") < text.index("CREATE TABLE `avatars`")
    assert document.table_count == 2
    assert document.row_count == 3


def test_dumped_rows_replay_to_original_values():
    dumper, _ = make_dumper(FakeCursor(TABLES))

    text = dumper.dump("shop").text
    inserts = [line for line in text.splitlines() if line.startswith("INSERT INTO")]

    parsed = [parse_insert(line) for line in inserts]
    assert parsed[0] == ("users", ["id", "name", "joined"], ["1", "O'Brien", "2021-03-04 05:06:07"])
    assert parsed[1] == ("users", ["id", "name", "joined"], ["2", None, "2022-01-01 00:00:00"])
    assert parsed[2] == ("avatars", ["user_id", "img"], ["1", b"\x89PNG"])


def test_empty_database_has_only_header():
    dumper, _ = make_dumper(FakeCursor({}))

    document = dumper.dump("empty")

    assert document.table_count == 0
    assert "CREATE TABLE" not in document.text
    assert "USE `empty`;" in document.text


def test_connection_failure_raises_connection_error():
    def connect(**kwargs):
        raise pymysql.err.OperationalError(2003, "Can't connect")

    dumper = MySQLDumper(MySQLConfig(), connect=connect)

    with pytest.raises(DumpConnectionError) as exc_info:
        dumper.dump("shop")

    assert exc_info.value.database == "shop"
    assert isinstance(exc_info.value, DumpError)


def test_query_failure_raises_query_error_and_closes_connection():
    dumper, conn = make_dumper(FakeCursor(TABLES, fail_on="SELECT * FROM `avatars`"))

    with pytest.raises(QueryError) as exc_info:
        dumper.dump("shop")

    assert exc_info.value.database == "shop"
    assert "avatars" in str(exc_info.value)
    assert conn.closed
