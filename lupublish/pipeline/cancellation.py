"""
Cooperative cancellation for publish work.

A CancellationToken is shared by every unit of work in one publish step.
Workers check it before starting each unit (and before each retry
attempt); the first worker that hits an unrecoverable condition cancels
it with the causing exception. Nothing is interrupted mid-call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class OperationCancelled(Exception):
    """Raised by raise_if_cancelled() when the token has been cancelled."""

    def __init__(self, reason: BaseException | None = None):
        self.reason = reason
        super().__init__(f"Operation cancelled: {reason}" if reason else "Operation cancelled")


@dataclass
class CancellationToken:
    """
    Shared cancellation flag.

    Example:
        token = CancellationToken()

        async def worker(item):
            if token.cancelled:
                return None
            try:
                return await do(item)
            except CredentialExpiredError as e:
                token.cancel(e)
                raise
    """

    _cancelled: bool = field(default=False, init=False)
    _reason: BaseException | None = field(default=None, init=False)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> BaseException | None:
        """Exception that triggered the cancellation, if any."""
        return self._reason

    def cancel(self, reason: BaseException | None = None) -> None:
        """Cancel the token. The first reason wins."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        logger.warning(f"Cancellation requested: {reason}")

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelled(self._reason)
