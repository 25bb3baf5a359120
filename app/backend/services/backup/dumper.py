"""Logical dumps of MySQL databases.

The dumper talks to the server through PyMySQL and renders the schema and
data of every table into a single replayable SQL document (see
`backend.services.backup.dump_format`). No external ``mysqldump`` binary is
needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

import pymysql

from backend.services.backup.dump_format import (
    format_create_table,
    format_header,
    format_insert,
    quote_identifier,
)
from backend.services.backup.errors import DumpConnectionError, QueryError
from backend.services.backup.models import DumpDocument


logger = logging.getLogger(__name__)


@dataclass
class MySQLConfig:
    """Connection settings for the MySQL server.

    Attributes:
        host: Server host name.
        port: Server port.
        user: Login user.
        password: Login password.
        connect_timeout: Seconds to wait for the TCP connection.
    """

    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    connect_timeout: int = 10


class MySQLDumper:
    """Produce logical dumps of single databases."""

    def __init__(self, config: MySQLConfig, *, connect: Optional[Callable[..., Any]] = None):
        """Initialize the dumper.

        Args:
            config: Server connection settings.
            connect: Connection factory, defaults to `pymysql.connect`.
        """

        self.config = config
        self._connect = connect or pymysql.connect

    def _open(self, database: str):
        try:
            return self._connect(
                host=self.config.host,
                port=int(self.config.port),
                user=self.config.user,
                password=self.config.password,
                database=database,
                connect_timeout=self.config.connect_timeout,
                charset="utf8mb4",
            )
        except pymysql.MySQLError as exc:
            raise DumpConnectionError(database, f"connection failed: {exc}") from exc

    def dump(self, database: str) -> DumpDocument:
        """Dump schema and rows of one database.

        Tables are emitted in the order the server reports them; each table's
        CREATE statement precedes one INSERT per row.

        Args:
            database: Database name.

        Returns:
            DumpDocument: The complete dump.

        Raises:
            DumpConnectionError: When connecting fails.
            QueryError: When any query fails mid-dump.
        """

        generated_at = datetime.now(timezone.utc)
        conn = self._open(database)
        try:
            parts: List[str] = [format_header(database, generated_at)]
            row_count = 0

            with conn.cursor() as cur:
                tables = self._list_tables(cur, database)
                for table in tables:
                    parts.append(format_create_table(self._show_create(cur, database, table)))

                    self._execute(cur, database, f"SELECT * FROM {quote_identifier(table)}")
                    columns = [col[0] for col in (cur.description or ())]
                    for row in cur.fetchall():
                        parts.append(format_insert(table, columns, row))
                        row_count += 1

                    parts.append("\n\n")

            logger.debug("Dumped database=%s tables=%s rows=%s", database, len(tables), row_count)
            return DumpDocument(
                database=database,
                generated_at=generated_at,
                text="".join(parts),
                table_count=len(tables),
                row_count=row_count,
            )
        finally:
            try:
                conn.close()
            except Exception:
                logger.debug("Ignoring error while closing connection to %s", database, exc_info=True)

    def _execute(self, cur, database: str, sql: str) -> None:
        try:
            cur.execute(sql)
        except pymysql.MySQLError as exc:
            raise QueryError(database, f"query failed ({sql}): {exc}") from exc

    def _list_tables(self, cur, database: str) -> List[str]:
        self._execute(cur, database, "SHOW TABLES")
        return [str(row[0]) for row in cur.fetchall()]

    def _show_create(self, cur, database: str, table: str) -> str:
        self._execute(cur, database, f"SHOW CREATE TABLE {quote_identifier(table)}")
        row = cur.fetchone()
        if not row or len(row) < 2:
            raise QueryError(database, f"SHOW CREATE TABLE returned no definition for {table}")
        return str(row[1])
