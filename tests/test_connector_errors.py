import pytest

from connector_errors import (
    DIRECTORY_MESSAGE,
    FILE_PERMISSION_MESSAGE,
    HTTP_401_MESSAGE,
    HTTP_403_MESSAGE,
    HTTP_404_MESSAGE,
    HTTP_404_PROJECT_MESSAGE,
    DatabaseConnectionError,
    PartialExtractionError,
    UserErrorKind,
    UserFacingError,
    classify_error,
    error_message,
)


class _GoogleStyleError(Exception):
    def __init__(self, message, code):
        super().__init__(message)
        self.code = code


def test_lock_contention_surfaces_pid():
    exc = RuntimeError(
        'IO Error: Could not set lock on file "w.duckdb": '
        "Conflicting lock is held in /usr/bin/duckdb (PID 4821) by user me."
    )
    classified = classify_error(exc, file_backed=True)
    assert isinstance(classified, UserFacingError)
    assert classified.kind is UserErrorKind.LOCK_CONTENTION
    assert classified.pid == "4821"
    assert "PID: 4821" in classified.message
    assert "kill 4821" in classified.message


def test_lock_contention_without_pid_reports_unknown():
    classified = classify_error(RuntimeError("Conflicting lock is held"), file_backed=True)
    assert classified.pid == "unknown"
    assert "PID: unknown" in str(classified)


@pytest.mark.parametrize("message", ["[Errno 21] Is a directory: '/tmp'", "path is a directory"])
def test_directory_messages(message):
    classified = classify_error(OSError(message), file_backed=True)
    assert classified.kind is UserErrorKind.PATH_IS_DIRECTORY
    assert str(classified) == DIRECTORY_MESSAGE


def test_file_permission_denied():
    classified = classify_error(OSError("[Errno 13] Permission denied: 'w.duckdb'"), file_backed=True)
    assert classified.kind is UserErrorKind.FILE_PERMISSION_DENIED
    assert classified.message == FILE_PERMISSION_MESSAGE


@pytest.mark.parametrize(
    "code, kind, message",
    [
        (403, UserErrorKind.PERMISSION_DENIED, HTTP_403_MESSAGE),
        (404, UserErrorKind.NOT_FOUND, HTTP_404_MESSAGE),
        (401, UserErrorKind.AUTHENTICATION_FAILED, HTTP_401_MESSAGE),
    ],
)
def test_http_codes(code, kind, message):
    classified = classify_error(_GoogleStyleError("api error", code))
    assert classified.kind is kind
    assert classified.message == message


def test_unrecognised_errors_pass_through():
    exc = ValueError('syntax error at or near "SELEC"')
    assert classify_error(exc) is exc
    assert classify_error(_GoogleStyleError("quota", 429)).__class__ is _GoogleStyleError
    assert error_message(exc) == 'syntax error at or near "SELEC"'


def test_error_message_for_empty_exception():
    assert error_message(KeyError()) == "KeyError occurred during query execution"


def test_taxonomy_shapes():
    assert issubclass(DatabaseConnectionError, ConnectionError)
    cause = RuntimeError("boom")
    err = PartialExtractionError("public", "orders", "table", cause)
    assert err.__cause__ is cause
    assert "public.orders" in str(err)


@pytest.mark.parametrize(
    "message",
    [
        'could not open file "/tmp" for reading: Is a directory',
        'could not open file "/etc/shadow" for reading: Permission denied',
        "Conflicting lock on relation orders (PID 77)",
    ],
)
def test_server_engine_messages_keep_their_own_text(message):
    exc = RuntimeError(message)
    assert classify_error(exc) is exc
    assert error_message(exc) == message


def test_not_found_wording_depends_on_the_call():
    exc = _GoogleStyleError("Not found: Project acme", 404)
    assert classify_error(exc).message == HTTP_404_MESSAGE
    assert classify_error(exc, connection_test=True).message == HTTP_404_PROJECT_MESSAGE
    assert classify_error(exc, connection_test=True).kind is UserErrorKind.NOT_FOUND
