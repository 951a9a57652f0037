from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
import time
from typing import Any

import pymysql
import pymysql.cursors

from schemachat.gui_kit.error_contract import format_actionable_error

logger = logging.getLogger("mysql_gateway")

EMPTY_RESULT_MESSAGE = "No matching data found"

# MySQL client/server error codes with a dedicated user-facing hint.
_ERROR_HINTS: dict[int, tuple[str, str]] = {
    1045: ("access denied", "check the username and password"),
    2003: ("cannot reach the database server", "check the server address and port"),
    2005: ("unknown database server host", "check the server address and port"),
    1251: ("authentication mode is not supported", "check the MySQL authentication plugin configuration"),
    2059: ("authentication mode is not supported", "check the MySQL authentication plugin configuration"),
}


def _gateway_error(field_name: str, issue: str, hint: str) -> str:
    return format_actionable_error("MySQL", field_name, issue, hint)


@dataclass(frozen=True)
class ConnectionConfig:
    host: str
    user: str
    password: str = ""
    port: int = 3306

    def redacted(self) -> dict[str, object]:
        return {"host": self.host, "user": self.user, "port": self.port}


@dataclass(frozen=True)
class ConnectionResult:
    connection_id: str
    databases: list[str]
    message: str
    timestamp: str


@dataclass(frozen=True)
class TableSource:
    table_name: str
    create_sql: str = ""
    sample_query: str = ""
    sample_rows: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class LearnedDatabase:
    database: str
    table_names: list[str] = field(default_factory=list)
    structures: list[TableSource] = field(default_factory=list)

    def ddl_sources(self) -> list[tuple[str, str]]:
        return [
            (source.table_name, source.create_sql)
            for source in self.structures
            if source.error is None and source.create_sql
        ]


@dataclass(frozen=True)
class SqlRunResult:
    rows: list[dict[str, Any]]
    count: int


def validate_connection_config(
    *,
    host_value: Any,
    user_value: Any,
    password_value: Any = "",
    port_value: Any = "",
    default_port: int = 3306,
) -> ConnectionConfig:
    if not isinstance(host_value, str) or host_value.strip() == "":
        raise ValueError(_gateway_error("Server", "server address is required", "enter a host name or IP address"))
    if not isinstance(user_value, str) or user_value.strip() == "":
        raise ValueError(_gateway_error("Username", "username is required", "enter a MySQL username"))

    port = default_port
    if not isinstance(port_value, bool):
        try:
            parsed = int(str(port_value).strip())
        except (TypeError, ValueError):
            parsed = 0
        if parsed > 0:
            port = parsed

    password = "" if password_value is None else str(password_value)
    return ConnectionConfig(host=host_value.strip(), user=user_value.strip(), password=password, port=port)


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def _error_code(exc: BaseException) -> int | None:
    args = getattr(exc, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def _error_text(exc: BaseException) -> str:
    args = getattr(exc, "args", ())
    if len(args) >= 2:
        return str(args[1])
    return str(exc)


def describe_connection_error(exc: BaseException) -> str:
    code = _error_code(exc)
    mapped = _ERROR_HINTS.get(code) if code is not None else None
    if mapped is not None:
        issue, hint = mapped
        return _gateway_error("Connect", f"{issue} (error {code})", hint)
    detail = _error_text(exc) or "database connection failed"
    return _gateway_error("Connect", detail, "verify the connection settings and that MySQL is running")


def _open_connection(
    config: ConnectionConfig,
    *,
    database: str | None = None,
    timeout: int = 10,
):
    return pymysql.connect(
        host=config.host,
        user=config.user,
        password=config.password,
        port=int(config.port),
        database=database,
        connect_timeout=timeout,
        read_timeout=timeout,
        write_timeout=timeout,
        charset="utf8mb4",
        cursorclass=pymysql.cursors.DictCursor,
    )


def connect_and_list_databases(
    config: ConnectionConfig,
    *,
    connect_timeout: int = 10,
    now: datetime | None = None,
) -> ConnectionResult:
    logger.info("Connecting to MySQL %s", config.redacted())
    try:
        conn = _open_connection(config, timeout=connect_timeout)
    except pymysql.MySQLError as exc:
        logger.error("MySQL connection failed: code=%s", _error_code(exc))
        raise ValueError(describe_connection_error(exc)) from exc

    try:
        with conn.cursor() as cursor:
            cursor.execute("SHOW DATABASES")
            rows = cursor.fetchall()
    except pymysql.MySQLError as exc:
        raise ValueError(describe_connection_error(exc)) from exc
    finally:
        conn.close()

    databases = [str(next(iter(row.values()))) for row in rows if row]
    logger.info("MySQL connection ok: %d databases on %s:%s", len(databases), config.host, config.port)
    stamp = now or datetime.now()
    return ConnectionResult(
        connection_id=str(int(time.time() * 1000)),
        databases=databases,
        message="Database connection successful",
        timestamp=stamp.isoformat(timespec="seconds"),
    )


def _learn_table(cursor, table_name: str, *, sample_row_limit: int) -> TableSource:
    quoted = quote_identifier(table_name)
    sample_query = f"SELECT * FROM {quoted} LIMIT {int(sample_row_limit)}"
    try:
        cursor.execute(f"SHOW CREATE TABLE {quoted}")
        create_row = cursor.fetchone() or {}
        create_sql = str(create_row.get("Create Table", ""))
        if not create_sql:
            return TableSource(table_name=table_name, error="not a base table (no CREATE TABLE text)")
        cursor.execute(sample_query)
        sample_rows = [dict(row) for row in cursor.fetchall()]
    except pymysql.MySQLError as exc:
        logger.warning("Failed to read table '%s': %s", table_name, exc)
        return TableSource(table_name=table_name, error=_error_text(exc))

    logger.debug("Learned table '%s' (%d sample rows)", table_name, len(sample_rows))
    return TableSource(
        table_name=table_name,
        create_sql=create_sql,
        sample_query=sample_query,
        sample_rows=sample_rows,
    )


def learn_database(
    config: ConnectionConfig,
    database: str,
    *,
    sample_row_limit: int = 3,
    connect_timeout: int = 10,
) -> LearnedDatabase:
    """Collect CREATE TABLE text and a few sample rows for every table."""

    if not isinstance(database, str) or database.strip() == "":
        raise ValueError(_gateway_error("Database", "no database selected", "choose a database before learning"))

    logger.info("Learning schema of database '%s'", database)
    try:
        conn = _open_connection(config, database=database, timeout=connect_timeout)
    except pymysql.MySQLError as exc:
        raise ValueError(describe_connection_error(exc)) from exc

    try:
        with conn.cursor() as cursor:
            cursor.execute("SHOW TABLES")
            table_names = [str(next(iter(row.values()))) for row in cursor.fetchall() if row]
            structures = [
                _learn_table(cursor, table_name, sample_row_limit=sample_row_limit)
                for table_name in table_names
            ]
    except pymysql.MySQLError as exc:
        raise ValueError(
            _gateway_error(
                "Learn database",
                f"failed to list tables of '{database}' ({_error_text(exc)})",
                "check that the user may read this database",
            )
        ) from exc
    finally:
        conn.close()

    failed = sum(1 for source in structures if source.error is not None)
    logger.info("Learned database '%s': tables=%d failed=%d", database, len(table_names), failed)
    return LearnedDatabase(database=database, table_names=table_names, structures=structures)


def run_sql(
    config: ConnectionConfig,
    database: str,
    sql: str,
    *,
    timeout: int = 15,
) -> SqlRunResult:
    statement = (sql or "").strip()
    if statement == "":
        raise ValueError(_gateway_error("Run SQL", "SQL statement is empty", "generate or enter a SQL statement first"))

    logger.info("Running SQL on '%s': %.120s", database, statement)
    try:
        conn = _open_connection(config, database=database or None, timeout=timeout)
    except pymysql.MySQLError as exc:
        raise ValueError(describe_connection_error(exc)) from exc

    try:
        with conn.cursor() as cursor:
            cursor.execute(statement)
            if cursor.description is not None:
                rows = [dict(row) for row in cursor.fetchall()]
            else:
                rows = []
                conn.commit()
    except pymysql.MySQLError as exc:
        code = _error_code(exc)
        raise ValueError(
            _gateway_error(
                "Run SQL",
                f"statement failed (error {code}: {_error_text(exc)})" if code else f"statement failed ({exc})",
                "review the generated SQL against the schema and retry",
            )
        ) from exc
    finally:
        conn.close()

    if not rows:
        return SqlRunResult(rows=[{"result": EMPTY_RESULT_MESSAGE}], count=0)
    return SqlRunResult(rows=rows, count=len(rows))
