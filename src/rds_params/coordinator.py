"""Apply coordinator: submits planned chunks to the remote control plane in order.

Chunks go out one at a time, strictly in planner order. Transient failures
are retried per chunk through the ``RetryPolicy``; anything else stops the
pass, because later chunks may assume the effects of earlier ones. Terminal
failures are returned as ``Failed``, never raised.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import TYPE_CHECKING, Literal

from rds_params.errors import ApplyCancelledError, RemoteError, SubmissionTimeoutError
from rds_params.models import Applied, ApplyResult, ApplyState, Chunk, Failed
from rds_params.retry import RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from rds_params.client import ParameterGroupClient
    from rds_params.errors import ParamsError

logger = logging.getLogger("rds_params.coordinator")

Operation = Literal["modify", "reset"]


class ApplyCoordinator:
    """Runs one apply pass: ``planned → applying(i of n) → applied | failed``.

    A coordinator instance tracks a single pass at a time; passes against the
    same parameter group must be serialized by the caller.
    """

    def __init__(
        self,
        client: ParameterGroupClient,
        *,
        retry_policy: RetryPolicy | None = None,
        submit_timeout: float = 30.0,
    ) -> None:
        self._client = client
        self._retry_policy = retry_policy or RetryPolicy()
        self._submit_timeout = submit_timeout
        self.state = ApplyState.PLANNED
        self.progress: tuple[int, int] = (0, 0)

    async def apply(
        self,
        resource_id: str,
        chunks: Iterable[Chunk],
        *,
        cancel: asyncio.Event | None = None,
        operation: Operation = "modify",
    ) -> ApplyResult:
        """Submit every chunk, stopping at the first terminal failure.

        ``cancel`` is checked between chunks only; a submission already in
        flight is allowed to finish.
        """
        planned = list(chunks)
        total = len(planned)
        submit = self._submitter(operation)

        self.state = ApplyState.APPLYING
        self.progress = (0, total)
        submitted: list[str] = []
        pending_reboot: list[str] = []
        warnings: list[str] = []

        for index, chunk in enumerate(planned):
            if cancel is not None and cancel.is_set():
                logger.warning(
                    "Apply to %s cancelled with %d of %d chunks submitted",
                    resource_id,
                    index,
                    total,
                )
                return self._fail(index, ApplyCancelledError(index), submitted, warnings)

            self.progress = (index + 1, total)
            if chunk.oversized:
                message = (
                    f"chunk {index} holds coupled settings {chunk.names()} "
                    f"beyond the chunk size; submitting as one call"
                )
                logger.warning("%s: %s", resource_id, message)
                warnings.append(message)

            logger.info(
                "%s chunk %d/%d to %s (%d settings)",
                operation.capitalize(),
                index + 1,
                total,
                resource_id,
                len(chunk),
            )
            try:
                await self._retry_policy.call(partial(self._submit, submit, resource_id, chunk))
            except RemoteError as e:
                logger.error(
                    "Chunk %d/%d to %s failed: %s", index + 1, total, resource_id, e
                )
                return self._fail(index, e, submitted, warnings)

            submitted.extend(chunk.names())
            pending_reboot.extend(s.name for s in chunk.settings if s.needs_reboot)

        self.state = ApplyState.APPLIED
        if pending_reboot:
            logger.info(
                "%s needs a reboot for %d setting(s): %s",
                resource_id,
                len(pending_reboot),
                ", ".join(pending_reboot),
            )
        return Applied(
            pending_reboot=pending_reboot,
            submitted=submitted,
            warnings=warnings,
            chunks=total,
        )

    def _submitter(self, operation: Operation) -> Callable[[str, Chunk], Awaitable[None]]:
        match operation:
            case "modify":
                return self._client.apply_settings
            case "reset":
                return self._client.reset_settings
            case _:
                raise ValueError(f"Unknown apply operation '{operation}'")

    async def _submit(
        self,
        submit: Callable[[str, Chunk], Awaitable[None]],
        resource_id: str,
        chunk: Chunk,
    ) -> None:
        task = asyncio.ensure_future(submit(resource_id, chunk))
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self._submit_timeout)
        except TimeoutError as e:
            # A blocking SDK call keeps running in its worker thread after the
            # wait gives up. Let it settle before anything else is submitted.
            logger.warning(
                "Submission to %s exceeded %gs; waiting for the in-flight call to settle",
                resource_id,
                self._submit_timeout,
            )
            await asyncio.wait([task])
            if not task.cancelled() and task.exception() is not None:
                logger.warning(
                    "Timed-out submission to %s then failed: %s", resource_id, task.exception()
                )
            raise SubmissionTimeoutError(self._submit_timeout) from e

    def _fail(
        self,
        index: int,
        cause: ParamsError,
        submitted: list[str],
        warnings: list[str],
    ) -> Failed:
        self.state = ApplyState.FAILED
        return Failed(chunk_index=index, cause=cause, submitted=submitted, warnings=warnings)
