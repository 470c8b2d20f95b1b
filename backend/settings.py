"""
settings.py - Environment-driven configuration

Values are read once at import.  A local .env file is honoured for
development; real environment variables always win.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Connection-establishment timeouts (seconds).  Query execution is not timed out.
CONNECT_TIMEOUT_SECONDS = _env_float("CONNECT_TIMEOUT_SECONDS", 5)
REDSHIFT_CONNECT_TIMEOUT_SECONDS = _env_float("REDSHIFT_CONNECT_TIMEOUT_SECONDS", 15)
DATABRICKS_CONNECT_TIMEOUT_SECONDS = _env_float("DATABRICKS_CONNECT_TIMEOUT_SECONDS", 15)

# Schema names used when the config does not name one
POSTGRES_DEFAULT_SCHEMA = os.getenv("POSTGRES_DEFAULT_SCHEMA", "public")
REDSHIFT_FALLBACK_SCHEMA = os.getenv("REDSHIFT_FALLBACK_SCHEMA", "public")
SNOWFLAKE_DEFAULT_SCHEMA = os.getenv("SNOWFLAKE_DEFAULT_SCHEMA", "PUBLIC")
DUCKDB_DEFAULT_SCHEMA = os.getenv("DUCKDB_DEFAULT_SCHEMA", "main")
DATABRICKS_DEFAULT_SCHEMA = os.getenv("DATABRICKS_DEFAULT_SCHEMA", "default")

SNOWFLAKE_QUERY_TAG = os.getenv("SNOWFLAKE_QUERY_TAG", "studio-connectors")

# HTTP surface
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = _env_int("API_PORT", 8000)
API_RELOAD = _env_bool("API_RELOAD", False)
