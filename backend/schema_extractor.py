"""
schema_extractor.py - Schema extraction pipeline

    connect -> list schemas -> (list tables || list views) per schema
            -> describe each object, one at a time -> assemble -> disconnect

Describing objects is sequential on purpose; several engines rate-limit
catalog queries.  A failed describe drops only that object.  The call as
a whole fails when connecting fails or when no schema could be enumerated.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, NamedTuple, Optional, Tuple

from loguru import logger

from connector_errors import (
    CatalogQueryError,
    PartialExtractionError,
    UserFacingError,
    classify_error,
)
from db_connectors import BaseConnector, get_connector
from schema_models import Column, ObjectType, SchemaResult, Table


class _Settled(NamedTuple):
    names: Optional[List[str]]
    error: Optional[Exception]


class SchemaListing(NamedTuple):
    schema: str
    tables: _Settled
    views: _Settled

    @property
    def failed(self) -> bool:
        return self.tables.error is not None and self.views.error is not None

    def objects(self) -> List[Tuple[str, ObjectType]]:
        pairs = [(n, ObjectType.TABLE) for n in self.tables.names or []]
        pairs += [(n, ObjectType.VIEW) for n in self.views.names or []]
        return pairs


def _call(fn: Callable[[str], List[str]], schema: str) -> _Settled:
    try:
        return _Settled(list(fn(schema)), None)
    except Exception as exc:
        return _Settled(None, exc)


def _settle(future: Future) -> _Settled:
    try:
        return _Settled(list(future.result()), None)
    except Exception as exc:
        return _Settled(None, exc)


class SchemaExtractor:
    """Runs one extraction against one connector; not reusable across calls."""

    def __init__(self, connector: BaseConnector):
        self.connector = connector
        self.partial_errors: List[PartialExtractionError] = []

    @classmethod
    def for_config(cls, config) -> "SchemaExtractor":
        return cls(get_connector(config))

    def enumerate(self, schema: str) -> SchemaListing:
        """List tables and views of *schema*; both calls settle before returning."""
        c = self.connector
        if c.concurrent_enumeration:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="catalog") as pool:
                tables_f = pool.submit(c.list_tables, schema)
                views_f = pool.submit(c.list_views, schema)
                tables, views = _settle(tables_f), _settle(views_f)
        else:
            tables, views = _call(c.list_tables, schema), _call(c.list_views, schema)

        for kind, settled in (("tables", tables), ("views", views)):
            if settled.error is not None:
                logger.warning(f"Listing {kind} in {schema} failed: {settled.error}")
        return SchemaListing(schema, tables, views)

    def describe(self, schema: str, name: str, kind: ObjectType) -> Optional[Table]:
        try:
            columns = self.connector.describe_columns(schema, name)
        except Exception as exc:
            err = PartialExtractionError(schema, name, kind.value.lower(), exc)
            logger.warning(f"{err}; skipping")
            self.partial_errors.append(err)
            return None
        named: List[Column] = [col for col in columns if col.name]
        table = Table(name=name, schema=schema, type=kind, columns=named)
        return table.sorted_columns()

    def collect(self) -> List[Table]:
        """Walk every schema of an already-connected connector."""
        listings = [self.enumerate(schema) for schema in self.connector.list_schemas()]
        if listings and all(listing.failed for listing in listings):
            cause = listings[0].tables.error
            classified = classify_error(cause)
            if isinstance(classified, UserFacingError):
                raise classified from cause
            raise CatalogQueryError(
                f"Could not enumerate tables or views: {cause}"
            ) from cause

        tables: List[Table] = []
        for listing in listings:
            if listing.failed:
                continue
            for name, kind in listing.objects():
                table = self.describe(listing.schema, name, kind)
                if table is not None:
                    tables.append(table)
        return tables

    def run(self) -> SchemaResult:
        label = self.connector.engine_label
        try:
            self.connector.connect()
        except Exception as exc:
            logger.error(f"{label} schema extraction failed to connect: {exc}")
            raise
        try:
            tables = self.collect()
        except Exception as exc:
            # e.g. BigQuery only reports a bad project when datasets are listed
            classified = classify_error(exc)
            logger.error(f"{label} schema extraction failed: {classified}")
            if classified is not exc:
                raise classified from exc
            raise
        finally:
            self.connector.disconnect()

        logger.info(
            f"{label} schema extracted: {len(tables)} objects"
            + (f", {len(self.partial_errors)} skipped" if self.partial_errors else "")
        )
        return SchemaResult(tables=tables)
