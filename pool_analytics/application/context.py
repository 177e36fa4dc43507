from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from uuid import uuid4

from pool_analytics.domain.exceptions import QueryCancelledError


class CancellationToken:
    """Caller-owned signal; once cancelled it stays cancelled."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "Query cancelled by caller.") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise QueryCancelledError(self._reason)

    async def wait(self) -> None:
        await self._event.wait()


def new_correlation_id() -> str:
    return uuid4().hex


@dataclass(frozen=True)
class RequestContext:
    """Per-request values passed explicitly down the call chain.

    Frozen so the correlation id is fixed for the lifetime of the request.
    """

    correlation_id: str = field(default_factory=new_correlation_id)
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    timeout_seconds: float | None = None

    def raise_if_cancelled(self) -> None:
        self.cancellation.raise_if_cancelled()
