"""Retry with exponential backoff and jitter, over an ordered list of strategies."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from .errors import MissingTranscriptError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0
    backoff_factor: float = 2.0
    jitter: bool = True

    def compute_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        delay = min(self.base_delay * (self.backoff_factor ** (attempt - 1)), self.max_delay)
        if self.jitter:
            delay = delay * (0.5 + random.random() * 0.5)
        return delay


@dataclass(frozen=True)
class Strategy:
    name: str
    fn: Callable[..., Any]
    policy: RetryPolicy = field(default_factory=RetryPolicy)


def run_strategies(
    strategies: list[Strategy],
    *args: Any,
    validate: Callable[[Any], bool] = bool,
    sleep: Callable[[float], None] = time.sleep,
) -> tuple[str, Any]:
    """Try each strategy in order, retrying per its policy.

    Returns ``(strategy_name, result)`` for the first result that passes
    ``validate``. Raises MissingTranscriptError when every attempt of every
    strategy failed.
    """
    last_error: Exception | None = None

    for strategy in strategies:
        for attempt in range(strategy.policy.max_attempts):
            if attempt > 0:
                delay = strategy.policy.compute_delay(attempt)
                logger.info(
                    "Retry %d/%d for %s, waiting %.2fs",
                    attempt + 1, strategy.policy.max_attempts, strategy.name, delay,
                )
                sleep(delay)
            try:
                result = strategy.fn(*args)
            except Exception as exc:
                logger.warning("%s failed on attempt %d: %s", strategy.name, attempt + 1, exc)
                last_error = exc
                continue

            if validate(result):
                logger.info("%s succeeded on attempt %d", strategy.name, attempt + 1)
                return strategy.name, result
            logger.warning("%s returned no usable result on attempt %d", strategy.name, attempt + 1)

    message = f"all extraction methods failed: {last_error}" if last_error else "all extraction methods failed"
    raise MissingTranscriptError(message)
