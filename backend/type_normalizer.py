"""
type_normalizer.py - Engine type names / codes -> numeric Field.type

Only Snowflake needs an explicit lookup (its codes are aligned with the
Postgres OIDs the UI already understands).  Postgres passes its native
OIDs through; DuckDB and Databricks use the column's position; BigQuery
only distinguishes numeric from everything else.
"""

from numbers import Number
from typing import Any, Dict, List, Sequence

from schema_models import Field

SNOWFLAKE_TYPE_MAP: Dict[str, int] = {
    "TEXT":          25,
    "VARCHAR":       1043,
    "CHAR":          18,
    "BOOLEAN":       16,
    "NUMBER":        1700,
    "FIXED":         1700,   # connector's wire name for NUMBER
    "FLOAT":         701,
    "REAL":          701,    # connector's wire name for FLOAT
    "INTEGER":       23,
    "INT":           23,
    "BIGINT":        20,
    "SMALLINT":      21,
    "DATE":          1082,
    "TIME":          1083,
    "TIMESTAMP_NTZ": 1114,
    "TIMESTAMP_LTZ": 1184,
    "TIMESTAMP_TZ":  1186,
    "VARIANT":       2950,
    "OBJECT":        114,
    "ARRAY":         1007,
    "BINARY":        17,
    "UNKNOWN":       0,
}


def snowflake_type_code(type_name: str) -> int:
    """Lookup by upper-cased type name; unknown names map to 0."""
    if not type_name:
        return 0
    return SNOWFLAKE_TYPE_MAP.get(type_name.upper(), 0)


def positional_fields(names: Sequence[str]) -> List[Field]:
    return [Field(name=name, type=index) for index, name in enumerate(names)]


def oid_fields(description: Sequence[Sequence[Any]]) -> List[Field]:
    """DB-API description whose type_code is already a Postgres OID."""
    return [Field(name=d[0], type=int(d[1] or 0)) for d in description]


def bigquery_fields(rows: List[Dict[str, Any]]) -> List[Field]:
    if not rows:
        return []
    first = rows[0]
    return [
        Field(
            name=name,
            type=1 if isinstance(value, Number) and not isinstance(value, bool) else 0,
        )
        for name, value in first.items()
    ]
