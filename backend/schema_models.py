"""
schema_models.py - Canonical, engine-agnostic data model

Every adapter in db_connectors.py produces these shapes and nothing else.
They are also the wire contract with the calling application, so the
serialised field names (camelCase) must stay stable.

ConnectionConfig is a tagged union: the ``type`` field selects the engine
and only that engine's fields are parsed.  Unknown keys are ignored.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field as PydanticField, TypeAdapter
from pydantic.alias_generators import to_camel
from typing_extensions import Annotated


# ---------------------------------------------------------------------------
# Engine tags & connection configs
# ---------------------------------------------------------------------------

class DBType(str, Enum):
    POSTGRES    = "postgres"
    REDSHIFT    = "redshift"
    SNOWFLAKE   = "snowflake"
    BIGQUERY    = "bigquery"
    DATABRICKS  = "databricks"
    DUCKDB      = "duckdb"


class _BaseConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = ""


class PostgresConnection(_BaseConfig):
    type: Literal["postgres"] = "postgres"
    host: str
    port: int = 5432
    username: str
    password: str = ""
    database: str
    schema_: Optional[str] = PydanticField(default=None, alias="schema")


class RedshiftConnection(_BaseConfig):
    type: Literal["redshift"] = "redshift"
    host: str
    port: int = 5439
    username: str
    password: str = ""
    database: str
    schema_: Optional[str] = PydanticField(default=None, alias="schema")
    ssl: Optional[bool] = None
    sslrootcert: Optional[str] = None


class SnowflakeConnection(_BaseConfig):
    type: Literal["snowflake"] = "snowflake"
    account: str
    username: str
    password: str = ""
    warehouse: Optional[str] = None
    database: Optional[str] = None
    schema_: Optional[str] = PydanticField(default=None, alias="schema")
    role: Optional[str] = None


class BigQueryConnection(_BaseConfig):
    type: Literal["bigquery"] = "bigquery"
    project: str
    method: str = "service-account"
    keyfile: str = ""                 # service-account key, as a JSON string
    location: Optional[str] = None
    priority: Optional[str] = None    # "interactive" (default) or "batch"
    dataset: Optional[str] = None     # restrict extraction to one dataset


class DatabricksConnection(_BaseConfig):
    type: Literal["databricks"] = "databricks"
    host: str
    http_path: str = PydanticField(alias="httpPath")
    token: str
    catalog: Optional[str] = None
    schema_: Optional[str] = PydanticField(default=None, alias="schema")


class DuckDBConnection(_BaseConfig):
    type: Literal["duckdb"] = "duckdb"
    database_path: str
    schema_: str = PydanticField(default="main", alias="schema")


ConnectionConfig = Annotated[
    Union[
        PostgresConnection,
        RedshiftConnection,
        SnowflakeConnection,
        BigQueryConnection,
        DatabricksConnection,
        DuckDBConnection,
    ],
    PydanticField(discriminator="type"),
]

_config_adapter = TypeAdapter(ConnectionConfig)


def parse_connection_config(raw: Dict[str, Any]):
    """Validate a raw dict (e.g. from JSON) into the matching config model."""
    return _config_adapter.validate_python(raw)


# ---------------------------------------------------------------------------
# Canonical catalog & query result model
# ---------------------------------------------------------------------------

class _WireModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ObjectType(str, Enum):
    TABLE = "TABLE"
    VIEW  = "VIEW"


class Column(_WireModel):
    name: str
    type_name: str
    ordinal_position: int
    nullable: bool = True
    primary_key: bool = False
    primary_key_sequence_id: int = 0
    autoincrement: bool = False
    column_display_size: int = 0
    precision: int = 0
    scale: int = 0
    column_properties: List[Any] = PydanticField(default_factory=list)


class Table(_WireModel):
    name: str
    schema_: str = PydanticField(alias="schema")
    type: ObjectType
    columns: List[Column] = PydanticField(default_factory=list)

    def sorted_columns(self) -> "Table":
        """Return a copy whose columns are ordered by ordinal position."""
        ordered = sorted(self.columns, key=lambda c: c.ordinal_position)
        return self.model_copy(update={"columns": ordered})


class Field(_WireModel):
    name: str
    type: int = 0


class QueryResult(_WireModel):
    success: bool
    data: Optional[List[Dict[str, Any]]] = None
    fields: Optional[List[Field]] = None
    row_count: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: List[Dict[str, Any]], fields: List[Field],
           row_count: Optional[int] = None) -> "QueryResult":
        return cls(success=True, data=data, fields=fields, row_count=row_count)

    @classmethod
    def failed(cls, error: str) -> "QueryResult":
        return cls(success=False, error=error)


class SchemaResult(BaseModel):
    tables: List[Table] = PydanticField(default_factory=list)
