"""Tests for the dump text format."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from backend.services.backup.dump_format import (
    DumpFormatError,
    format_create_table,
    format_header,
    format_insert,
    parse_insert,
    parse_value,
    quote_identifier,
    serialize_value,
)


class TestSerializeValue:
    def test_null(self):
        assert serialize_value(None) == "NULL"

    def test_datetime_is_truncated_to_seconds(self):
        value = datetime(2024, 1, 2, 3, 4, 5, 987654)
        assert serialize_value(value) == "'2024-01-02 03:04:05'"

    def test_aware_datetime_is_converted_to_utc(self):
        value = datetime(2024, 1, 2, 10, 0, 0, tzinfo=timezone(timedelta(hours=7)))
        assert serialize_value(value) == "'2024-01-02 03:00:00'"

    def test_date_and_time(self):
        assert serialize_value(date(2023, 12, 31)) == "'2023-12-31'"
        assert serialize_value(timedelta(hours=26, minutes=3, seconds=9)) == "'26:03:09'"
        assert serialize_value(timedelta(seconds=-90)) == "'-00:01:30'"

    def test_binary_uses_base64_function(self):
        assert serialize_value(b"\x00\xffabc") == "FROM_BASE64('AP9hYmM=')"

    def test_text_escapes_backslash_and_quote(self):
        assert serialize_value("it's a \\path") == "'it\\'s a \\\\path'"

    def test_numbers_are_quoted_text(self):
        assert serialize_value(42) == "'42'"
        assert serialize_value(Decimal("10.50")) == "'10.50'"
        assert serialize_value(True) == "'1'"


class TestRoundTrip:
    @pytest.mark.parametrize(
        "value",
        [
            None,
            "plain",
            "O'Reilly",
            "back\\slash",
            "\\'mixed\\\\'",
            "line one\nline two",
            "",
            "NULL",
            "FROM_BASE64('x')",
            b"",
            b"\x00\x01binary\xfe\xff",
        ],
    )
    def test_value_survives_serialize_then_parse(self, value):
        assert parse_value(serialize_value(value)) == value

    def test_timestamp_round_trips_at_second_precision(self):
        original = datetime(1999, 12, 31, 23, 59, 58, 123456)
        text = parse_value(serialize_value(original))
        assert datetime.strptime(text, "%Y-%m-%d %H:%M:%S") == original.replace(microsecond=0)

    def test_insert_statement_round_trip(self):
        row = [1, None, "a 'quoted' \\ value", b"\x10\x20", datetime(2020, 2, 29, 12, 0, 1)]
        statement = format_insert("orders", ["id", "note", "text", "blob", "created"], row)

        table, columns, values = parse_insert(statement)

        assert table == "orders"
        assert columns == ["id", "note", "text", "blob", "created"]
        assert values == ["1", None, "a 'quoted' \\ value", b"\x10\x20", "2020-02-29 12:00:01"]


class TestStatements:
    def test_quote_identifier_doubles_backticks(self):
        assert quote_identifier("we`ird") == "`we``ird`"

    def test_insert_preserves_column_order(self):
        statement = format_insert("t", ["b", "a"], ["2", "1"])
        assert statement == "INSERT INTO `t` (`b`, `a`) VALUES ('2', '1');\n"

    def test_header_creates_and_selects_database(self):
        header = format_header("shop", datetime(2024, 5, 17, 8, 30, tzinfo=timezone.utc))
        assert header.startswith("-- Backup for shop @ 2024-05-17T08:30:00.000Z\n")
        assert "CREATE DATABASE IF NOT EXISTS `shop`;\nUSE `shop`;\n" in header

    def test_create_table_gets_single_terminator(self):
        assert format_create_table("CREATE TABLE `t` (`id` int)") == "CREATE TABLE `t` (`id` int);\n\n"
        assert format_create_table("CREATE TABLE `t` (`id` int);") == "CREATE TABLE `t` (`id` int);\n\n"

    def test_parse_rejects_malformed_statement(self):
        with pytest.raises(DumpFormatError):
            parse_insert("INSERT INTO `t` (`a`) VALUES ('unterminated);")

    def test_parse_rejects_count_mismatch(self):
        with pytest.raises(DumpFormatError):
            parse_insert("INSERT INTO `t` (`a`, `b`) VALUES ('1');")
