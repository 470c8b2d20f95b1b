"""
resource_manager.py - Scoped acquire / guaranteed release for driver handles

Every adapter opens its connection, session, instance and cursor handles
through a ResourceScope.  Closing the scope releases them inner-to-outer,
each exactly once.  A failing close is logged as a ResourceCleanupWarning
and never replaces the error that triggered the cleanup.
"""

from typing import Any, Callable, List, Optional, TypeVar

from loguru import logger

from connector_errors import ResourceCleanupWarning

T = TypeVar("T")


def _default_close(handle: Any) -> None:
    close = getattr(handle, "close", None)
    if callable(close):
        close()


def _already_closed(handle: Any) -> bool:
    # psycopg2 uses an int, most DB-API drivers a bool, some expose is_closed()
    closed = getattr(handle, "closed", None)
    if isinstance(closed, (bool, int)) and closed:
        return True
    is_closed = getattr(handle, "is_closed", None)
    if callable(is_closed):
        try:
            return is_closed() is True
        except Exception:
            return False
    return False


def release_handle(
    handle: Any,
    label: str = "resource",
    closer: Optional[Callable[[Any], None]] = None,
) -> Optional[ResourceCleanupWarning]:
    """
    Close *handle* without ever raising.

    ``None`` and already-closed handles are a no-op.  Returns the warning
    that was logged when closing failed, otherwise None.
    """
    if handle is None or _already_closed(handle):
        return None
    try:
        (closer or _default_close)(handle)
    except Exception as exc:
        warning = ResourceCleanupWarning(f"Error closing {label}: {exc}")
        logger.warning(str(warning))
        return warning
    return None


class _Held:
    __slots__ = ("handle", "label", "closer", "released")

    def __init__(self, handle: Any, label: str, closer: Optional[Callable[[Any], None]]):
        self.handle = handle
        self.label = label
        self.closer = closer
        self.released = False


class ResourceScope:
    """
    LIFO stack of open handles.

        scope = ResourceScope("duckdb")
        instance = scope.acquire(lambda: duckdb.connect(path), label="instance")
        cursor = scope.acquire(instance.cursor, label="connection")
        ...
        scope.close()   # cursor first, then instance

    Usable as a context manager; exceptions are never suppressed.
    """

    def __init__(self, name: str = "scope"):
        self.name = name
        self._held: List[_Held] = []
        self.cleanup_warnings: List[ResourceCleanupWarning] = []

    def acquire(
        self,
        factory: Callable[[], T],
        label: str = "resource",
        closer: Optional[Callable[[T], None]] = None,
    ) -> T:
        """Create a handle via *factory* and register it for release."""
        handle = factory()
        self._held.append(_Held(handle, f"{self.name} {label}", closer))
        return handle

    def release(self, handle: Any) -> None:
        """Release one registered handle early.  Unknown handles are ignored."""
        for held in self._held:
            if held.handle is handle:
                self._release(held)
                return

    def _release(self, held: _Held) -> None:
        if held.released:
            return
        held.released = True
        warning = release_handle(held.handle, held.label, held.closer)
        if warning is not None:
            self.cleanup_warnings.append(warning)

    @property
    def is_open(self) -> bool:
        return any(not h.released for h in self._held)

    def close(self) -> None:
        """Release every handle, innermost first.  Safe to call repeatedly."""
        for held in reversed(self._held):
            self._release(held)
        self._held = [h for h in self._held if not h.released]

    def __enter__(self) -> "ResourceScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False
