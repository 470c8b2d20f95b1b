"""
connector_service.py - The call boundary used by the application

    test_connection(config) -> bool
    extract_schema(config)  -> SchemaResult
    execute_query(config, sql) -> QueryResult

Every call builds its own connector, connects, does its work and
disconnects; nothing is pooled or shared between calls.  ``config`` may be
a parsed ConnectionConfig model or the raw dict the caller persisted.
"""

from typing import Any, Dict, Union

from loguru import logger

from connector_errors import UserFacingError, classify_error, error_message
from db_connectors import get_connector
from schema_extractor import SchemaExtractor
from schema_models import QueryResult, SchemaResult, parse_connection_config


def _as_config(config: Union[Dict[str, Any], Any]):
    if isinstance(config, dict):
        return parse_connection_config(config)
    return config


def test_connection(config) -> bool:
    """
    True when ``SELECT 1`` round-trips, False for ordinary failures.

    Curated conditions (a directory instead of a DuckDB file, a held file
    lock, permission or key problems) raise UserFacingError instead.
    """
    connector = get_connector(_as_config(config))
    try:
        connector.connect()
        return connector.ping()
    except Exception as exc:
        classified = classify_error(
            exc, file_backed=connector.file_backed, connection_test=True
        )
        if isinstance(classified, UserFacingError):
            logger.error(f"{connector.engine_label} connection test: {classified}")
            if classified is exc:
                raise
            raise classified from exc
        logger.warning(f"{connector.engine_label} connection test failed: {exc}")
        return False
    finally:
        connector.disconnect()


def extract_schema(config) -> SchemaResult:
    """Full catalog of the connection; raises only on total failure."""
    return SchemaExtractor.for_config(_as_config(config)).run()


def execute_query(config, sql: str) -> QueryResult:
    """Run caller SQL.  Failures come back as ``success=False``, never raised."""
    connector = None
    try:
        connector = get_connector(_as_config(config))
        connector.connect()
        return connector.run_query(sql)
    except Exception as exc:
        message = error_message(exc)
        logger.warning(f"Query failed: {message}")
        return QueryResult.failed(message)
    finally:
        if connector is not None:
            connector.disconnect()
