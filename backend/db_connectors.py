"""
db_connectors.py - Unified database connection layer
Supports: PostgreSQL, Redshift, Snowflake, BigQuery, Databricks, DuckDB

Architecture
------------
BaseConnector        abstract capability set + shared DB-API plumbing
PostgresConnector    PostgreSQL via psycopg2
RedshiftConnector    Redshift via psycopg2 (SSL, schema discovery chain)
SnowflakeConnector   Snowflake via snowflake-connector-python
BigQueryConnector    BigQuery via google-cloud-bigquery (service accounts only)
DatabricksConnector  Databricks SQL warehouses via databricks-sql-connector
DuckDBConnector      DuckDB files via the duckdb package

Every connector produces the canonical shapes from schema_models.py.
Rows leave a connector as ``{column_name: value}`` dicts no matter what
the driver handed back (tuples, Row objects, mappings).
"""

import json
import os
from collections.abc import Mapping
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from loguru import logger

import settings
from catalog_fallback import FallbackChain
from connector_errors import (
    ConnectorError,
    DatabaseConnectionError,
    UserFacingError,
    classify_error,
    invalid_key_json_error,
    path_is_directory_error,
    unsupported_auth_error,
)
from resource_manager import ResourceScope, release_handle
from schema_models import (
    BigQueryConnection,
    Column,
    DBType,
    DatabricksConnection,
    DuckDBConnection,
    Field,
    PostgresConnection,
    QueryResult,
    RedshiftConnection,
    SnowflakeConnection,
)
from type_normalizer import (
    bigquery_fields,
    oid_fields,
    positional_fields,
    snowflake_type_code,
)


class _Fetched(NamedTuple):
    names: List[str]
    rows: List[Any]
    description: List[Any]
    rowcount: int


def normalize_rows(names: Sequence[str], rows: Sequence[Any]) -> List[Dict[str, Any]]:
    """Turn positional or keyed driver rows into name -> value dicts."""
    out: List[Dict[str, Any]] = []
    for row in rows:
        if isinstance(row, Mapping):
            out.append(dict(row))
        elif hasattr(row, "items") and callable(row.items):
            out.append(dict(row.items()))
        else:
            out.append(dict(zip(names, row)))
    return out


def _autoincrement_from_default(default: Any) -> bool:
    if not default:
        return False
    text = str(default).lower()
    return "nextval" in text or "identity" in text


def _int_or_zero(value: Any) -> int:
    try:
        return int(value) if value is not None else 0
    except (TypeError, ValueError):
        return 0


def _first_scalar_is_one(rows: List[Dict[str, Any]]) -> bool:
    if not rows:
        return False
    first = next(iter(rows[0].values()), None)
    return first == 1 and not isinstance(first, bool)


# ---------------------------------------------------------------------------
# Shared catalog SQL (information_schema dialects)
# ---------------------------------------------------------------------------

_IS_TABLES_SQL = (
    "SELECT table_name FROM information_schema.tables "
    "WHERE table_schema = %s AND table_type = 'BASE TABLE' "
    "ORDER BY table_name"
)

_IS_VIEWS_SQL = (
    "SELECT table_name FROM information_schema.views "
    "WHERE table_schema = %s "
    "ORDER BY table_name"
)

_IS_COLUMNS_SQL = """
    SELECT c.column_name,
           c.data_type,
           c.ordinal_position,
           c.is_nullable,
           c.character_maximum_length,
           c.numeric_precision,
           c.numeric_scale,
           c.column_default
    FROM information_schema.columns c
    WHERE c.table_schema = %s
      AND c.table_name   = %s
    ORDER BY c.ordinal_position
"""

_SF_COLUMNS_SQL = """
    SELECT COLUMN_NAME, DATA_TYPE, ORDINAL_POSITION, IS_NULLABLE,
           CHARACTER_MAXIMUM_LENGTH, NUMERIC_PRECISION, NUMERIC_SCALE, COLUMN_DEFAULT
    FROM INFORMATION_SCHEMA.COLUMNS
    WHERE TABLE_SCHEMA = %s
      AND TABLE_NAME   = %s
    ORDER BY ORDINAL_POSITION
"""

# Primary keys need the constraint + key-usage join; only the Postgres
# family exposes it reliably.
_PG_COLUMNS_SQL = """
    SELECT c.column_name,
           c.data_type,
           c.ordinal_position,
           c.is_nullable,
           c.character_maximum_length,
           c.numeric_precision,
           c.numeric_scale,
           c.column_default,
           pk.ordinal_position             AS pk_position
    FROM information_schema.columns c
    LEFT JOIN (
        SELECT kcu.column_name, kcu.ordinal_position
        FROM   information_schema.table_constraints  tc
        JOIN   information_schema.key_column_usage   kcu
               ON  kcu.constraint_name = tc.constraint_name
               AND kcu.table_schema    = tc.table_schema
               AND kcu.table_name      = tc.table_name
        WHERE  tc.constraint_type = 'PRIMARY KEY'
          AND  tc.table_schema    = %s
          AND  tc.table_name      = %s
    ) pk ON pk.column_name = c.column_name
    WHERE c.table_schema = %s
      AND c.table_name   = %s
    ORDER BY c.ordinal_position
"""


def _column_from_catalog_row(r: Dict[str, Any], index: int) -> Column:
    """Build a Column from an information_schema.columns row (lower-case keys)."""
    pk_position = _int_or_zero(r.get("pk_position"))
    precision = _int_or_zero(r.get("numeric_precision"))
    return Column(
        name=r["column_name"],
        type_name=str(r["data_type"]),
        ordinal_position=_int_or_zero(r.get("ordinal_position")) or index + 1,
        nullable=str(r.get("is_nullable", "YES")).upper() == "YES",
        primary_key=pk_position > 0,
        primary_key_sequence_id=pk_position,
        autoincrement=_autoincrement_from_default(r.get("column_default")),
        column_display_size=_int_or_zero(r.get("character_maximum_length")) or precision,
        precision=precision,
        scale=_int_or_zero(r.get("numeric_scale")),
    )


# ---------------------------------------------------------------------------
# Base connector: capability set + DB-API plumbing
# ---------------------------------------------------------------------------

class BaseConnector:
    """
    Abstract base for all database connectors.

    Capability set: connect, disconnect, list_schemas, list_tables,
    list_views, describe_columns, run_query.

    Handles are opened through ``self._scope`` so that disconnect() always
    releases them inner-to-outer, including after a half-finished connect().
    """

    engine_label = "Database"
    ping_sql = "SELECT 1 AS connection_test"
    # Whether table and view enumeration may share the session from two threads
    concurrent_enumeration = True
    # Embedded engines opened from a local file; enables the file-system error patterns
    file_backed = False

    def __init__(self, config):
        self.config = config
        self._conn = None
        self._scope = ResourceScope(self.engine_label)

    # ── Connection lifecycle ────────────────────────────────────────────────

    def _open_handles(self) -> None:
        raise NotImplementedError

    def connect(self) -> "BaseConnector":
        try:
            self._open_handles()
        except ConnectorError:
            self.disconnect()
            raise
        except Exception as exc:
            self.disconnect()
            raise self._connection_failed(exc) from exc
        logger.info(f"{self.engine_label} connected ({self.config.name or 'unnamed'})")
        return self

    def _connection_failed(self, exc: Exception) -> ConnectorError:
        classified = classify_error(exc, file_backed=self.file_backed)
        if isinstance(classified, UserFacingError):
            return classified
        return DatabaseConnectionError(f"{self.engine_label} connection failed: {exc}")

    def disconnect(self) -> None:
        if self._scope.is_open:
            self._scope.close()
            logger.debug(f"{self.engine_label} disconnected")
        self._conn = None

    @property
    def cleanup_warnings(self):
        return self._scope.cleanup_warnings

    def _require_conn(self):
        if self._conn is None:
            raise DatabaseConnectionError(
                f"{self.engine_label} connector is not connected. Call connect() first."
            )
        return self._conn

    # ── Query execution ─────────────────────────────────────────────────────

    def _new_cursor(self):
        return self._require_conn().cursor()

    def _fetch(self, sql: str, params=None) -> _Fetched:
        """Run SQL on a fresh cursor; the cursor is closed before returning."""
        cur = self._new_cursor()
        try:
            cur.execute(sql, params)
            description = list(cur.description or [])
            rows = cur.fetchall() if description else []
            names = [d[0] for d in description]
            return _Fetched(names, list(rows or []), description, getattr(cur, "rowcount", -1))
        finally:
            release_handle(cur, f"{self.engine_label} cursor")

    def execute(self, sql: str, params=None) -> List[Dict]:
        """Run SQL and return a list of row dicts."""
        fetched = self._fetch(sql, params)
        return normalize_rows(fetched.names, fetched.rows)

    def _fields(self, fetched: _Fetched) -> List[Field]:
        return positional_fields(fetched.names)

    def run_query(self, sql: str) -> QueryResult:
        """Execute caller SQL verbatim.  Driver errors propagate to the caller."""
        fetched = self._fetch(sql)
        data = normalize_rows(fetched.names, fetched.rows)
        return QueryResult.ok(data=data, fields=self._fields(fetched), row_count=len(data))

    def ping(self) -> bool:
        return _first_scalar_is_one(self.execute(self.ping_sql))

    # ── Catalog: implemented per engine ────────────────────────────────────

    def list_schemas(self) -> List[str]:
        raise NotImplementedError

    def list_tables(self, schema: str) -> List[str]:
        raise NotImplementedError

    def list_views(self, schema: str) -> List[str]:
        raise NotImplementedError

    def describe_columns(self, schema: str, table: str) -> List[Column]:
        raise NotImplementedError

    # ── Identifier quoting: subclasses may override ────────────────────────

    def _quote(self, name: str) -> str:
        """Wrap an identifier in double-quotes (ANSI SQL standard)."""
        return '"' + name.replace('"', '""') + '"'

    def _qualified_table(self, table: str, schema: Optional[str] = None) -> str:
        """Return a schema-qualified, quoted table reference."""
        if schema:
            return f"{self._quote(schema)}.{self._quote(table)}"
        return self._quote(table)


def _names(rows: List[Dict[str, Any]], key: str) -> List[str]:
    return [r[key] for r in rows if isinstance(r.get(key), str) and r.get(key)]


# ---------------------------------------------------------------------------
# PostgreSQL family
# ---------------------------------------------------------------------------

class PostgresConnector(BaseConnector):
    """
    PostgreSQL via psycopg2.

    The session runs in autocommit mode so a failed catalog query does not
    poison the ones that follow it, and caller DML/DDL is not rolled back
    on disconnect.  Field.type carries the native type OID.
    """

    engine_label = "Postgres"
    config: PostgresConnection

    def _connect_timeout(self) -> float:
        return settings.CONNECT_TIMEOUT_SECONDS

    def _connect_kwargs(self) -> Dict[str, Any]:
        return {
            "host": self.config.host,
            "port": self.config.port,
            "dbname": self.config.database,
            "user": self.config.username,
            "password": self.config.password,
            "connect_timeout": max(int(self._connect_timeout()), 1),
        }

    def _open(self, **kwargs):
        import psycopg2
        return psycopg2.connect(**kwargs)

    def _open_handles(self) -> None:
        kwargs = self._connect_kwargs()
        self._conn = self._scope.acquire(lambda: self._open(**kwargs), label="connection")
        self._conn.autocommit = True

    def _fields(self, fetched: _Fetched) -> List[Field]:
        return oid_fields(fetched.description)

    def run_query(self, sql: str) -> QueryResult:
        fetched = self._fetch(sql)
        data = normalize_rows(fetched.names, fetched.rows)
        row_count = fetched.rowcount if fetched.rowcount is not None and fetched.rowcount >= 0 else None
        return QueryResult.ok(data=data, fields=self._fields(fetched), row_count=row_count)

    def list_schemas(self) -> List[str]:
        return [self.config.schema_ or settings.POSTGRES_DEFAULT_SCHEMA]

    def list_tables(self, schema: str) -> List[str]:
        return _names(self.execute(_IS_TABLES_SQL, (schema,)), "table_name")

    def list_views(self, schema: str) -> List[str]:
        return _names(self.execute(_IS_VIEWS_SQL, (schema,)), "table_name")

    def describe_columns(self, schema: str, table: str) -> List[Column]:
        rows = self.execute(_PG_COLUMNS_SQL, (schema, table, schema, table))
        return [_column_from_catalog_row(r, i) for i, r in enumerate(rows)]


class RedshiftConnector(PostgresConnector):
    """
    Amazon Redshift via psycopg2.

    SSL is on unless the config says ``ssl: false``; a root certificate
    upgrades the mode to ``verify-ca``.  Which catalog views a role can read
    varies between deployments, so schema discovery walks a fallback chain
    and ends at the ``public`` schema.
    """

    engine_label = "Redshift"
    config: RedshiftConnection

    SCHEMA_STRATEGIES = [
        ("information_schema.schemata",
         "SELECT schema_name FROM information_schema.schemata "
         "WHERE schema_name NOT IN ('pg_catalog', 'information_schema', 'pg_toast', 'pg_temp_1')"),
        ("pg_namespace",
         "SELECT nspname AS schema_name FROM pg_namespace "
         "WHERE nspname NOT LIKE 'pg_%' AND nspname != 'information_schema'"),
        ("current_schema",
         "SELECT current_schema() AS schema_name"),
    ]

    def _connect_timeout(self) -> float:
        return settings.REDSHIFT_CONNECT_TIMEOUT_SECONDS

    def _connect_kwargs(self) -> Dict[str, Any]:
        kwargs = super()._connect_kwargs()
        if self.config.ssl is not False:
            if self.config.sslrootcert:
                kwargs["sslmode"] = "verify-ca"
                kwargs["sslrootcert"] = self.config.sslrootcert
            else:
                kwargs["sslmode"] = "require"
        return kwargs

    def _schema_query(self, sql: str):
        return lambda: _names(self.execute(sql), "schema_name")

    def schema_chain(self) -> FallbackChain:
        return FallbackChain(
            "redshift schema discovery",
            [(name, self._schema_query(sql)) for name, sql in self.SCHEMA_STRATEGIES],
        )

    def list_schemas(self) -> List[str]:
        return self.schema_chain().run_or_default([settings.REDSHIFT_FALLBACK_SCHEMA])


# ---------------------------------------------------------------------------
# Snowflake
# ---------------------------------------------------------------------------

class SnowflakeConnector(BaseConnector):
    """
    Snowflake via snowflake-connector-python.

    Design decisions
    ----------------
    * The connector's blocking API already completes linearly, so each
      connect/execute either returns or raises exactly once and the
      connection is closed exactly once by the resource scope.
    * Unquoted identifiers are stored UPPERCASE, so only the configured
      schema name is upper-cased.  Names read back from the catalog are
      used exactly as stored and quoted in DESCRIBE TABLE.
    * Column discovery falls back to ``DESCRIBE TABLE`` when the catalog
      view is not readable.  Primary keys are not resolved for Snowflake.
    """

    engine_label = "Snowflake"
    config: SnowflakeConnection

    def _default_schema(self) -> str:
        return (self.config.schema_ or settings.SNOWFLAKE_DEFAULT_SCHEMA).upper()

    def _connect_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            # Only the locator part of "<locator>.<region>..." is accepted here
            "account": self.config.account.split(".")[0],
            "user": self.config.username,
            "password": self.config.password,
            "login_timeout": settings.CONNECT_TIMEOUT_SECONDS,
            "session_parameters": {"QUERY_TAG": settings.SNOWFLAKE_QUERY_TAG},
        }
        for key in ("warehouse", "database", "role"):
            value = getattr(self.config, key)
            if value:
                kwargs[key] = value
        kwargs["schema"] = self._default_schema()
        return kwargs

    def _open(self, **kwargs):
        import snowflake.connector
        return snowflake.connector.connect(**kwargs)

    def _open_handles(self) -> None:
        kwargs = self._connect_kwargs()
        self._conn = self._scope.acquire(lambda: self._open(**kwargs), label="connection")

    def _type_name(self, type_code: Any) -> str:
        if isinstance(type_code, str):
            return type_code
        from snowflake.connector.constants import FIELD_ID_TO_NAME
        return FIELD_ID_TO_NAME.get(type_code, "UNKNOWN")

    def _fields(self, fetched: _Fetched) -> List[Field]:
        return [
            Field(name=d[0], type=snowflake_type_code(self._type_name(d[1])))
            for d in fetched.description
        ]

    def execute(self, sql: str, params=None) -> List[Dict]:
        # Snowflake returns upper-case column labels; catalog code reads lower-case
        return [
            {k.lower(): v for k, v in row.items()}
            for row in super().execute(sql, params)
        ]

    def list_schemas(self) -> List[str]:
        return [self._default_schema()]

    def _objects(self, schema: str, table_type: str) -> List[str]:
        rows = self.execute(
            "SELECT TABLE_NAME FROM INFORMATION_SCHEMA.TABLES "
            "WHERE TABLE_SCHEMA = %s AND TABLE_TYPE = %s "
            "ORDER BY TABLE_NAME",
            (schema, table_type),
        )
        return _names(rows, "table_name")

    def list_tables(self, schema: str) -> List[str]:
        return self._objects(schema, "BASE TABLE")

    def list_views(self, schema: str) -> List[str]:
        return self._objects(schema, "VIEW")

    def _catalog_columns(self, schema: str, table: str) -> List[Column]:
        rows = self.execute(_SF_COLUMNS_SQL, (schema, table))
        return [_column_from_catalog_row(r, i) for i, r in enumerate(rows)]

    def _described_columns(self, schema: str, table: str) -> List[Column]:
        rows = self.execute(f"DESCRIBE TABLE {self._qualified_table(table, schema)}")
        return [
            Column(
                name=r["name"],
                type_name=str(r["type"]),
                ordinal_position=i + 1,
                nullable=str(r.get("null?", "Y")).upper() == "Y",
                autoincrement=_autoincrement_from_default(r.get("default")),
            )
            for i, r in enumerate(rows)
        ]

    def describe_columns(self, schema: str, table: str) -> List[Column]:
        chain = FallbackChain(
            f"snowflake columns {schema}.{table}",
            [
                ("information_schema.columns", lambda: self._catalog_columns(schema, table)),
                ("describe table", lambda: self._described_columns(schema, table)),
            ],
        )
        return chain.run_or_raise()


# ---------------------------------------------------------------------------
# BigQuery
# ---------------------------------------------------------------------------

class BigQueryConnector(BaseConnector):
    """
    BigQuery via google-cloud-bigquery.

    Only service-account keys are accepted.  The method and the key JSON
    are validated before a client is built, so a bad key never causes a
    network call.  Datasets play the role of schemas.
    """

    engine_label = "BigQuery"
    ping_sql = "SELECT 1"
    config: BigQueryConnection

    def _credentials_info(self) -> Dict[str, Any]:
        if self.config.method != "service-account" or not self.config.keyfile:
            raise unsupported_auth_error()
        try:
            info = json.loads(self.config.keyfile)
        except ValueError:
            raise invalid_key_json_error() from None
        if not isinstance(info, dict):
            raise invalid_key_json_error()
        return info

    def _make_client(self, info: Dict[str, Any]):
        from google.cloud import bigquery
        from google.oauth2 import service_account

        credentials = service_account.Credentials.from_service_account_info(info)
        return bigquery.Client(
            project=self.config.project,
            credentials=credentials,
            location=self.config.location,
        )

    def _open_handles(self) -> None:
        info = self._credentials_info()
        self._conn = self._scope.acquire(lambda: self._make_client(info), label="client")

    def _job_config(self):
        if (self.config.priority or "").lower() != "batch":
            return None
        from google.cloud import bigquery
        return bigquery.QueryJobConfig(priority=bigquery.QueryPriority.BATCH)

    def execute(self, sql: str, params=None) -> List[Dict]:
        client = self._require_conn()
        job = client.query(sql, job_config=self._job_config(), location=self.config.location)
        return [dict(row.items()) for row in job.result()]

    def run_query(self, sql: str) -> QueryResult:
        data = self.execute(sql)
        return QueryResult.ok(data=data, fields=bigquery_fields(data), row_count=len(data))

    def _dataset_ref(self, schema: str) -> str:
        return f"{self.config.project}.{schema}"

    def list_schemas(self) -> List[str]:
        if self.config.dataset:
            return [self.config.dataset]
        client = self._require_conn()
        return [d.dataset_id for d in client.list_datasets(project=self.config.project)]

    def _objects(self, schema: str, table_type: str) -> List[str]:
        client = self._require_conn()
        return [
            t.table_id for t in client.list_tables(self._dataset_ref(schema))
            if t.table_type == table_type
        ]

    def list_tables(self, schema: str) -> List[str]:
        return self._objects(schema, "TABLE")

    def list_views(self, schema: str) -> List[str]:
        return self._objects(schema, "VIEW")

    def describe_columns(self, schema: str, table: str) -> List[Column]:
        client = self._require_conn()
        bq_table = client.get_table(f"{self._dataset_ref(schema)}.{table}")
        return [
            Column(
                name=f.name,
                type_name=str(f.field_type),
                ordinal_position=i + 1,
                nullable=(f.mode or "NULLABLE").upper() != "REQUIRED",
                column_display_size=_int_or_zero(getattr(f, "max_length", None)),
                precision=_int_or_zero(getattr(f, "precision", None)),
                scale=_int_or_zero(getattr(f, "scale", None)),
            )
            for i, f in enumerate(bq_table.schema)
        ]


# ---------------------------------------------------------------------------
# Databricks
# ---------------------------------------------------------------------------

class DatabricksConnector(BaseConnector):
    """
    Databricks SQL warehouse via databricks-sql-connector.

    Handles nest three deep: connection (client + session) -> cursor
    (statement).  Each statement's cursor is closed before its session.
    Column metadata comes from the result schema of a zero-row SELECT,
    so ``type_name`` is whatever the warehouse reports for the statement.
    """

    engine_label = "Databricks"
    concurrent_enumeration = False   # a Thrift session is not thread-safe
    config: DatabricksConnection

    def _server_hostname(self) -> str:
        host = self.config.host.strip()
        for prefix in ("https://", "http://"):
            if host.startswith(prefix):
                host = host[len(prefix):]
        return host.rstrip("/")

    def _connect_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "server_hostname": self._server_hostname(),
            "http_path": self.config.http_path,
            "access_token": self.config.token,
            "_socket_timeout": settings.DATABRICKS_CONNECT_TIMEOUT_SECONDS,
        }
        if self.config.catalog:
            kwargs["catalog"] = self.config.catalog
        if self.config.schema_:
            kwargs["schema"] = self.config.schema_
        return kwargs

    def _open(self, **kwargs):
        from databricks import sql
        return sql.connect(**kwargs)

    def _open_handles(self) -> None:
        kwargs = self._connect_kwargs()
        self._conn = self._scope.acquire(lambda: self._open(**kwargs), label="session")

    def _quote(self, name: str) -> str:
        return "`" + name.replace("`", "``") + "`"

    def list_schemas(self) -> List[str]:
        return [self.config.schema_ or settings.DATABRICKS_DEFAULT_SCHEMA]

    def list_views(self, schema: str) -> List[str]:
        rows = self.execute(f"SHOW VIEWS IN {self._quote(schema)}")
        return [r["viewName"] for r in rows if not r.get("isTemporary")]

    def list_tables(self, schema: str) -> List[str]:
        # SHOW TABLES lists views too; subtract them
        rows = self.execute(f"SHOW TABLES IN {self._quote(schema)}")
        names = [r["tableName"] for r in rows if not r.get("isTemporary")]
        try:
            views = set(self.list_views(schema))
        except Exception as exc:
            logger.warning(f"SHOW VIEWS IN {schema} failed, views stay in the table list: {exc}")
            return names
        return [n for n in names if n not in views]

    def describe_columns(self, schema: str, table: str) -> List[Column]:
        fetched = self._fetch(f"SELECT * FROM {self._qualified_table(table, schema)} LIMIT 0")
        columns = []
        for i, d in enumerate(fetched.description):
            name, type_code = d[0], d[1]
            precision = d[4] if len(d) > 4 else None
            scale = d[5] if len(d) > 5 else None
            null_ok = d[6] if len(d) > 6 else None
            columns.append(Column(
                name=name,
                type_name=str(type_code),
                ordinal_position=i + 1,
                nullable=null_ok is not False,
                precision=_int_or_zero(precision),
                scale=_int_or_zero(scale),
            ))
        return columns


# ---------------------------------------------------------------------------
# DuckDB
# ---------------------------------------------------------------------------

class DuckDBConnector(BaseConnector):
    """
    DuckDB via the duckdb package.

    The database file is the outer handle; a child connection is the inner
    one, and every query runs on its own cursor derived from it.  Only one
    process may hold a file for writing; the holder's PID is surfaced by
    the error classifier.
    """

    engine_label = "DuckDB"
    file_backed = True
    config: DuckDBConnection

    def _open(self, path: str):
        import duckdb
        return duckdb.connect(path)

    def _open_handles(self) -> None:
        path = self.config.database_path
        if not path:
            raise DatabaseConnectionError("DuckDB connection failed: no database path provided")
        if os.path.isdir(path):
            raise path_is_directory_error()
        instance = self._scope.acquire(lambda: self._open(path), label="instance")
        self._conn = self._scope.acquire(instance.cursor, label="connection")

    def list_schemas(self) -> List[str]:
        return [self.config.schema_ or settings.DUCKDB_DEFAULT_SCHEMA]

    def list_tables(self, schema: str) -> List[str]:
        chain = FallbackChain(
            f"duckdb tables in {schema}",
            [
                ("information_schema.tables",
                 lambda: _names(self.execute(
                     "SELECT table_name FROM information_schema.tables "
                     "WHERE table_schema = ? AND table_type = 'BASE TABLE' "
                     "ORDER BY table_name", [schema]), "table_name")),
                ("show tables",
                 lambda: _names(self.execute("SHOW TABLES"), "name")),
            ],
            accept=lambda result: True,
        )
        return chain.run_or_default([])

    def list_views(self, schema: str) -> List[str]:
        chain = FallbackChain(
            f"duckdb views in {schema}",
            [
                ("information_schema.tables",
                 lambda: _names(self.execute(
                     "SELECT table_name FROM information_schema.tables "
                     "WHERE table_schema = ? AND table_type = 'VIEW' "
                     "ORDER BY table_name", [schema]), "table_name")),
            ],
            accept=lambda result: True,
        )
        return chain.run_or_default([])

    def _catalog_columns(self, schema: str, table: str) -> List[Column]:
        rows = self.execute(_IS_COLUMNS_SQL.replace("%s", "?"), [schema, table])
        return [_column_from_catalog_row(r, i) for i, r in enumerate(rows)]

    def _described_columns(self, schema: str, table: str) -> List[Column]:
        rows = self.execute(f"DESCRIBE {self._qualified_table(table, schema)}")
        return [
            Column(
                name=r["column_name"],
                type_name=str(r["column_type"]),
                ordinal_position=i + 1,
                nullable=str(r.get("null", "YES")).upper() == "YES",
                autoincrement=_autoincrement_from_default(r.get("default")),
            )
            for i, r in enumerate(rows)
        ]

    def describe_columns(self, schema: str, table: str) -> List[Column]:
        chain = FallbackChain(
            f"duckdb columns {schema}.{table}",
            [
                ("information_schema.columns", lambda: self._catalog_columns(schema, table)),
                ("describe", lambda: self._described_columns(schema, table)),
            ],
        )
        return chain.run_or_raise()


# ---------------------------------------------------------------------------
# Connector factory
# ---------------------------------------------------------------------------

_CONNECTORS = {
    DBType.POSTGRES:    PostgresConnector,
    DBType.REDSHIFT:    RedshiftConnector,
    DBType.SNOWFLAKE:   SnowflakeConnector,
    DBType.BIGQUERY:    BigQueryConnector,
    DBType.DATABRICKS:  DatabricksConnector,
    DBType.DUCKDB:      DuckDBConnector,
}


def get_connector(config) -> BaseConnector:
    """Return the correct connector instance for config.type."""
    cls = _CONNECTORS.get(DBType(config.type))
    if not cls:
        raise ValueError(
            f"Connector for '{config.type}' is not yet implemented. "
            f"Supported types: {', '.join(m.value for m in _CONNECTORS)}"
        )
    return cls(config)
