"""
catalog_fallback.py - Ordered fallback chains for catalog discovery

Catalog views differ in what a given role may read, so several lookups
are expressed as an ordered list of strategies.  Each strategy is tried
in turn; the first one that succeeds *and* yields an acceptable result
wins.  Failures are logged and turned into the next attempt, never
raised out of the chain.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, Tuple, TypeVar

from loguru import logger

from connector_errors import CatalogQueryError

T = TypeVar("T")


@dataclass
class Attempt(Generic[T]):
    strategy: str
    succeeded: bool
    result: Optional[T] = None
    error: Optional[Exception] = None


@dataclass
class FallbackOutcome(Generic[T]):
    succeeded: bool
    result: Optional[T]
    strategy: Optional[str]
    attempts: List[Attempt] = field(default_factory=list)

    def errors(self) -> List[CatalogQueryError]:
        return [
            CatalogQueryError(str(a.error), strategy=a.strategy)
            for a in self.attempts if a.error is not None
        ]


def _non_empty(result: Any) -> bool:
    return bool(result)


class FallbackChain(Generic[T]):
    """
    An explicit, ordered list of ``(name, strategy)`` pairs.

    ``accept`` decides whether a successful result is good enough to stop;
    by default an empty list does not count.
    """

    def __init__(
        self,
        name: str,
        strategies: List[Tuple[str, Callable[[], T]]],
        accept: Callable[[T], bool] = _non_empty,
    ):
        self.name = name
        self.strategies = list(strategies)
        self.accept = accept

    def attempt(self, strategy_name: str, fn: Callable[[], T]) -> Attempt:
        """Run a single strategy and report its outcome."""
        try:
            result = fn()
        except Exception as exc:
            logger.warning(f"{self.name}: strategy '{strategy_name}' failed: {exc}")
            return Attempt(strategy_name, False, error=exc)
        if not self.accept(result):
            logger.debug(f"{self.name}: strategy '{strategy_name}' returned nothing")
            return Attempt(strategy_name, False, result=result)
        return Attempt(strategy_name, True, result=result)

    def run(self) -> FallbackOutcome:
        attempts: List[Attempt] = []
        for strategy_name, fn in self.strategies:
            outcome = self.attempt(strategy_name, fn)
            attempts.append(outcome)
            if outcome.succeeded:
                return FallbackOutcome(True, outcome.result, strategy_name, attempts)
        return FallbackOutcome(False, None, None, attempts)

    def run_or_default(self, default: T) -> T:
        """Run the chain; when every strategy fails or is empty, return *default*."""
        outcome = self.run()
        if outcome.succeeded:
            return outcome.result
        logger.info(f"{self.name}: all strategies exhausted, using default")
        return default

    def run_or_raise(self) -> T:
        """
        Run the chain; raise CatalogQueryError once it is exhausted.

        Unlike run_or_default, a strategy that succeeded with an empty
        result still counts as an answer when nothing else worked.
        """
        outcome = self.run()
        if outcome.succeeded:
            return outcome.result
        for a in outcome.attempts:
            if a.error is None:
                return a.result
        last = outcome.attempts[-1] if outcome.attempts else None
        raise CatalogQueryError(
            f"{self.name}: all strategies failed"
            + (f" (last error: {last.error})" if last is not None else ""),
            strategy=last.strategy if last is not None else None,
        )
