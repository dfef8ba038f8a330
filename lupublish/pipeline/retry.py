"""
Bounded retry for control-plane calls.

Both the account listing and every account assignment are retried once
before giving up. What "giving up" means differs per call site: an
expired access token ends the whole publish, anything else is a
transient failure. ``with_retry`` therefore only runs attempts and
reports what happened; the policy's ``is_terminal`` predicate labels the
last error, and the caller decides what to do with it.

    result = await with_retry(
        lambda: client.assign_azure_account(app_id, account),
        RETRY_ONCE.with_terminal(is_token_expiry),
        operation_name=f"assign[{app_id}]",
        cancellation=token,
    )
    if result.success: ...
    elif result.terminal: ...
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Backoff
# =============================================================================


class BackoffStrategy(ABC):
    """Delay before a retry."""

    @abstractmethod
    def get_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        ...


@dataclass
class NoBackoff(BackoffStrategy):
    """Retry immediately."""

    def get_delay(self, attempt: int) -> float:
        return 0.0


@dataclass
class ConstantBackoff(BackoffStrategy):
    """Same delay before every retry."""

    delay: float = 1.0

    def get_delay(self, attempt: int) -> float:
        return self.delay


# =============================================================================
# Policy
# =============================================================================


@dataclass
class RetryPolicy:
    """
    How an operation is retried.

    ``max_attempts`` counts the first attempt, so 2 means "retry once".
    Only exceptions matching ``retry_on`` are retried. ``attempt_timeout``
    bounds each attempt; a timeout counts as a failed attempt.
    ``is_terminal`` is applied to the last error after the attempts are
    used up and never cuts the attempts short.
    """

    max_attempts: int = 1
    backoff: BackoffStrategy = field(default_factory=NoBackoff)
    retry_on: tuple[type[Exception], ...] = (Exception,)
    is_terminal: Callable[[Exception], bool] | None = None
    attempt_timeout: float | None = None

    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        if error is None or attempt >= self.max_attempts:
            return False
        return isinstance(error, self.retry_on)

    def get_delay(self, attempt: int) -> float:
        return self.backoff.get_delay(attempt)

    def classify(self, error: Exception | None) -> bool:
        """True if error is terminal for the caller."""
        if error is None or self.is_terminal is None:
            return False
        return self.is_terminal(error)

    def with_terminal(self, predicate: Callable[[Exception], bool]) -> RetryPolicy:
        return replace(self, is_terminal=predicate)


# The authoring API is retried once per call
RETRY_ONCE = RetryPolicy(
    max_attempts=2,
    backoff=ConstantBackoff(delay=0.5),
    attempt_timeout=60.0,
)


# =============================================================================
# Execution
# =============================================================================


@dataclass
class RetryResult:
    """What happened while running an operation under a policy."""

    success: bool
    result: Any = None
    attempts: int = 0
    total_delay: float = 0.0
    errors: list[Exception] = field(default_factory=list)
    terminal: bool = False
    cancelled: bool = False

    @property
    def final_error(self) -> Exception | None:
        return self.errors[-1] if self.errors else None

    @property
    def retried(self) -> bool:
        return self.attempts > 1


def _is_terminal(policy: RetryPolicy, error: Exception, operation_name: str) -> bool:
    try:
        return policy.classify(error)
    except Exception:
        # A broken predicate must not turn a recorded failure into a crash
        logger.exception(f"{operation_name}: terminal check failed, treating error as non-terminal")
        return False


async def _attempt(operation: Callable[[], Awaitable[T]], timeout: float | None) -> T:
    if timeout is None:
        return await operation()
    return await asyncio.wait_for(operation(), timeout=timeout)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    operation_name: str = "operation",
    *,
    on_retry: Callable[[int, Exception], None] | None = None,
    cancellation: CancellationToken | None = None,
) -> RetryResult:
    """
    Run operation until it succeeds or the policy gives up.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        policy: Attempts, backoff, per-attempt deadline, terminal predicate
        operation_name: Used in log messages
        on_retry: Called with (attempt, error) before each retry
        cancellation: Checked before every attempt; a cancelled token
            ends the loop with ``cancelled=True``

    Returns:
        RetryResult; never raises for operation failures
    """
    errors: list[Exception] = []
    total_delay = 0.0
    attempt = 0

    while True:
        if cancellation is not None and cancellation.cancelled:
            logger.info(f"{operation_name}: cancelled before attempt {attempt + 1}")
            return RetryResult(
                success=False,
                attempts=attempt,
                total_delay=total_delay,
                errors=errors,
                cancelled=True,
            )

        attempt += 1
        try:
            value = await _attempt(operation, policy.attempt_timeout)
        except Exception as e:
            errors.append(e)
            if not policy.should_retry(attempt, e):
                logger.error(f"{operation_name}: giving up after {attempt} attempt(s): {e!r}")
                return RetryResult(
                    success=False,
                    attempts=attempt,
                    total_delay=total_delay,
                    errors=errors,
                    terminal=_is_terminal(policy, e, operation_name),
                )

            delay = policy.get_delay(attempt)
            total_delay += delay
            logger.warning(
                f"{operation_name}: attempt {attempt}/{policy.max_attempts} failed "
                f"({type(e).__name__}: {e}), retrying in {delay:.2f}s"
            )
            if on_retry is not None:
                on_retry(attempt, e)
            await asyncio.sleep(delay)
        else:
            return RetryResult(
                success=True,
                result=value,
                attempts=attempt,
                total_delay=total_delay,
                errors=errors,
            )


__all__ = [
    "RETRY_ONCE",
    "BackoffStrategy",
    "ConstantBackoff",
    "NoBackoff",
    "RetryPolicy",
    "RetryResult",
    "with_retry",
]
