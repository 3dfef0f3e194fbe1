"""Retry policy for chunk submissions.

Only ``TransientRemoteError`` (throttling, group busy, submission timeout) is
retried. Backoff is exponential with jitter and capped at ``max_delay``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from rds_params.errors import TransientRemoteError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger("rds_params.retry")

T = TypeVar("T")


class RetryPolicy(BaseModel):
    max_attempts: int = Field(default=5, ge=1, description="Attempts per chunk, including first")
    base_delay: float = Field(default=1.0, ge=0, description="Initial backoff in seconds")
    max_delay: float = Field(default=30.0, ge=0, description="Backoff ceiling in seconds")
    jitter: float = Field(default=1.0, ge=0, description="Random jitter added to each wait")

    @classmethod
    def immediate(cls, max_attempts: int = 3) -> RetryPolicy:
        """A zero-delay policy, for tests and dry runs."""
        return cls(max_attempts=max_attempts, base_delay=0, max_delay=0, jitter=0)

    def retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                multiplier=self.base_delay,
                max=self.max_delay,
                jitter=self.jitter,
            ),
            retry=retry_if_exception_type(TransientRemoteError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def call(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` until it succeeds, fails permanently, or attempts run out.

        The last exception is re-raised on exhaustion.
        """
        async for attempt in self.retrying():
            with attempt:
                return await fn()
        raise AssertionError("retry loop exited without a result")
