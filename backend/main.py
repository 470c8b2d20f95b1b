"""
main.py - Studio connector API
Test connections, extract catalogs and run ad-hoc SQL across six engines.
"""
from typing import Any, Dict

from fastapi import Body, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel, ValidationError
import uvicorn

import settings
from connector_errors import ConnectorError, UserFacingError, classify_error
from connector_service import execute_query, extract_schema, test_connection
from db_connectors import get_connector
from log_config import setup_logging
from schema_models import ConnectionConfig, DBType, QueryResult, SchemaResult, parse_connection_config

setup_logging(settings.LOG_LEVEL)

app = FastAPI(title="Studio Connectors", version="1.0.0")
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True,
                   allow_methods=["*"], allow_headers=["*"])


class QueryRequest(BaseModel):
    config: ConnectionConfig
    sql: str


def _parse_config(raw: Dict[str, Any]):
    try:
        return parse_connection_config(raw)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False)) from e


@app.get("/")
def root(): return {"message": "Studio Connectors API", "status": "running"}

@app.get("/health")
def health(): return {"status": "healthy"}

@app.get("/engines")
def engines(): return {"engines": [t.value for t in DBType]}


@app.post("/connections/test")
def connections_test(raw: Dict[str, Any] = Body(...)):
    config = _parse_config(raw)
    try:
        return {"success": test_connection(config)}
    except UserFacingError as e:
        raise HTTPException(status_code=400, detail=e.message)


@app.post("/schema", response_model=SchemaResult)
def schema(raw: Dict[str, Any] = Body(...)):
    config = _parse_config(raw)
    try:
        return extract_schema(config)
    except UserFacingError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ConnectorError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.exception("Unexpected schema extraction failure")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/query", response_model=QueryResult, response_model_exclude_none=True)
def query(req: QueryRequest):
    return execute_query(req.config, req.sql)


@app.post("/schemas")
def list_schemas(raw: Dict[str, Any] = Body(...)):
    """Schema names only, without describing any objects."""
    config = _parse_config(raw)
    connector = get_connector(config)
    try:
        connector.connect()
        return {"schemas": connector.list_schemas()}
    except UserFacingError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ConnectorError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        classified = classify_error(e)
        if isinstance(classified, UserFacingError):
            raise HTTPException(status_code=400, detail=classified.message)
        raise
    finally:
        connector.disconnect()


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT,
                reload=settings.API_RELOAD)
