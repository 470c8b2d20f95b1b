"""
connector_errors.py - Error taxonomy and classifier for the connector layer

Taxonomy
--------
DatabaseConnectionError  cannot establish a session; fatal to the call
CatalogQueryError        one catalog strategy failed; next fallback runs
PartialExtractionError   one object's columns failed; object is skipped
ResourceCleanupWarning   close/release failed; logged, never raised
UserFacingError          curated condition with a fixed human message

Classification is pattern-based on the driver's message, layered over the
structured HTTP ``code`` that Google API errors carry.  Anything not
recognised passes through untouched.
"""

import re
from enum import Enum
from typing import Optional


class ConnectorError(Exception):
    """Base exception for the connector layer."""


class DatabaseConnectionError(ConnectorError, ConnectionError):
    pass


class CatalogQueryError(ConnectorError):
    def __init__(self, message: str, strategy: Optional[str] = None):
        super().__init__(message)
        self.strategy = strategy


class PartialExtractionError(ConnectorError):
    def __init__(self, schema: str, object_name: str, kind: str, cause: Exception):
        super().__init__(f"Failed to describe {kind} {schema}.{object_name}: {cause}")
        self.schema = schema
        self.object_name = object_name
        self.kind = kind
        self.__cause__ = cause


class ResourceCleanupWarning(UserWarning):
    pass


class UserErrorKind(str, Enum):
    PATH_IS_DIRECTORY       = "path_is_directory"
    LOCK_CONTENTION         = "lock_contention"
    FILE_PERMISSION_DENIED  = "file_permission_denied"
    PERMISSION_DENIED       = "permission_denied"
    NOT_FOUND               = "not_found"
    AUTHENTICATION_FAILED   = "authentication_failed"
    INVALID_KEY_JSON        = "invalid_key_json"
    UNSUPPORTED_AUTH_METHOD = "unsupported_auth_method"


class UserFacingError(ConnectorError):
    def __init__(self, kind: UserErrorKind, message: str, pid: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.pid = pid


# ---------------------------------------------------------------------------
# Fixed user-facing messages
# ---------------------------------------------------------------------------

DIRECTORY_MESSAGE = (
    "The selected path is a directory. Please select a DuckDB file (.duckdb)"
)
FILE_PERMISSION_MESSAGE = (
    "Permission denied. Please check file permissions or select a different location."
)
HTTP_403_MESSAGE = "Permission denied. Please check your credentials and project access."
HTTP_404_MESSAGE = "Project or dataset not found. Please verify your Project ID and dataset."
# Before any dataset is addressed only the project can be missing
HTTP_404_PROJECT_MESSAGE = "Project not found. Please verify your Project ID."
HTTP_401_MESSAGE = "Authentication failed. Please check your service account key."
INVALID_KEY_JSON_MESSAGE = "Invalid service account key JSON format"
UNSUPPORTED_AUTH_MESSAGE = "Only service account authentication is supported"

_PID_PATTERN = re.compile(r"PID (\d+)")

_HTTP_CODES = {
    403: (UserErrorKind.PERMISSION_DENIED, HTTP_403_MESSAGE),
    404: (UserErrorKind.NOT_FOUND, HTTP_404_MESSAGE),
    401: (UserErrorKind.AUTHENTICATION_FAILED, HTTP_401_MESSAGE),
}


def lock_contention_message(pid: str) -> str:
    return (
        f"The DuckDB file is locked by another process (PID: {pid}). "
        f"Please close any DuckDB CLI sessions or run: kill {pid}"
    )


def path_is_directory_error() -> UserFacingError:
    return UserFacingError(UserErrorKind.PATH_IS_DIRECTORY, DIRECTORY_MESSAGE)


def invalid_key_json_error() -> UserFacingError:
    return UserFacingError(UserErrorKind.INVALID_KEY_JSON, INVALID_KEY_JSON_MESSAGE)


def unsupported_auth_error() -> UserFacingError:
    return UserFacingError(UserErrorKind.UNSUPPORTED_AUTH_METHOD, UNSUPPORTED_AUTH_MESSAGE)


def _http_code(exc: BaseException) -> Optional[int]:
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return code
    # google.api_core exposes the HTTP status as an int-like ``code``
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


def classify_error(
    exc: BaseException,
    file_backed: bool = False,
    connection_test: bool = False,
) -> BaseException:
    """
    Map a raw driver exception onto the curated UserFacingError set.

    The file-system patterns (directory, lock, permission) only apply when
    *file_backed* is set, i.e. while opening an embedded database file;
    otherwise a server engine's own message is kept.  *connection_test*
    selects the project-level wording for a 404.

    Returns the original exception unchanged when nothing matches, so
    callers can always ``raise classify_error(exc) from exc``.
    """
    if isinstance(exc, UserFacingError):
        return exc

    code = _http_code(exc)
    if code == 404 and connection_test:
        return UserFacingError(UserErrorKind.NOT_FOUND, HTTP_404_PROJECT_MESSAGE)
    if code in _HTTP_CODES:
        kind, text = _HTTP_CODES[code]
        return UserFacingError(kind, text)

    if not file_backed:
        return exc

    message = str(exc)

    if "Is a directory" in message or "is a directory" in message:
        return path_is_directory_error()

    if "Conflicting lock" in message:
        match = _PID_PATTERN.search(message)
        pid = match.group(1) if match else "unknown"
        return UserFacingError(
            UserErrorKind.LOCK_CONTENTION, lock_contention_message(pid), pid=pid
        )

    if "Permission denied" in message:
        return UserFacingError(UserErrorKind.FILE_PERMISSION_DENIED, FILE_PERMISSION_MESSAGE)

    return exc


def error_message(exc: BaseException) -> str:
    """String shown to the user for a failed query."""
    classified = classify_error(exc)
    text = str(classified)
    if not text:
        return f"{type(exc).__name__} occurred during query execution"
    return text
