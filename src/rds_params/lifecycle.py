"""Parameter group lifecycle: create, update and delete flows.

An update pass:
1. Describe the observed parameter group (never cached between passes)
2. Diff desired against observed
3. Plan and submit the settings to change
4. Plan and submit resets for user settings that were removed
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

from rds_params.config import ReconcilerConfig
from rds_params.coordinator import ApplyCoordinator
from rds_params.coupling import CouplingTable, build_default_coupling_table
from rds_params.errors import NotFoundError
from rds_params.models import (
    DestroyOutcome,
    Failed,
    ParameterDiff,
    ReconcileOutcome,
    ReconcilePlan,
)
from rds_params.planner import MAX_PARAMS_PER_CHUNK, plan_chunks
from rds_params.reconciler import diff, plan_destroy

if TYPE_CHECKING:
    import asyncio

    from rds_params.client import ParameterGroupClient
    from rds_params.models import ParameterSet
    from rds_params.retry import RetryPolicy

logger = logging.getLogger("rds_params.lifecycle")


def build_plan(
    desired: ParameterSet,
    observed: ParameterSet,
    *,
    max_chunk_size: int = MAX_PARAMS_PER_CHUNK,
    coupling: CouplingTable | None = None,
) -> ReconcilePlan:
    """Compute the full submission plan for one pass without touching the remote side."""
    if coupling is None:
        coupling = build_default_coupling_table(desired.family or observed.family)

    changes = diff(desired, observed)
    observed_by_key = observed.by_key()
    reset_settings = [observed_by_key[name.lower()] for name in changes.to_reset]

    return ReconcilePlan(
        resource_id=desired.name,
        diff=changes,
        set_chunks=list(plan_chunks(changes.to_set, max_chunk_size, coupling=coupling)),
        reset_chunks=list(plan_chunks(reset_settings, max_chunk_size, coupling=coupling)),
    )


class ParameterGroupManager:
    """Drives reconciliation passes for parameter groups through a ``ParameterGroupClient``."""

    def __init__(
        self,
        client: ParameterGroupClient,
        *,
        config: ReconcilerConfig | None = None,
        coupling: CouplingTable | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        config = config or ReconcilerConfig()
        self._client = client
        self._config = config
        self._coupling = coupling
        self._retry_policy = retry_policy or config.retry

    def _coupling_for(self, desired: ParameterSet, observed: ParameterSet) -> CouplingTable:
        if self._coupling is not None:
            return self._coupling
        return build_default_coupling_table(
            desired.family or observed.family or self._config.engine_family
        )

    def _coordinator(self) -> ApplyCoordinator:
        return ApplyCoordinator(
            self._client,
            retry_policy=self._retry_policy,
            submit_timeout=self._config.submit_timeout_sec,
        )

    async def plan(self, desired: ParameterSet) -> ReconcilePlan:
        observed = await self._describe(desired.name)
        return build_plan(
            desired,
            observed,
            max_chunk_size=self._config.max_chunk_size,
            coupling=self._coupling_for(desired, observed),
        )

    async def create(
        self, desired: ParameterSet, *, cancel: asyncio.Event | None = None
    ) -> ReconcileOutcome:
        logger.info("Creating parameter group %s (family %s)", desired.name, desired.family)
        await self._retry_policy.call(partial(self._client.create_parameter_set, desired))
        return await self.update(desired, cancel=cancel)

    async def update(
        self, desired: ParameterSet, *, cancel: asyncio.Event | None = None
    ) -> ReconcileOutcome:
        """Reconcile one parameter group.

        A group that disappeared before the pass comes back as ``Failed`` with a
        ``NotFoundError`` cause so callers can treat it as already destroyed.
        """
        try:
            reconcile_plan = await self.plan(desired)
        except NotFoundError as e:
            logger.warning("Parameter group %s not found: %s", desired.name, e)
            return ReconcileOutcome(
                resource_id=desired.name,
                diff=ParameterDiff(),
                set_result=Failed(chunk_index=0, cause=e),
            )

        if reconcile_plan.is_empty:
            logger.info("Parameter group %s is up to date", desired.name)

        coordinator = self._coordinator()
        set_result = await coordinator.apply(
            desired.name, reconcile_plan.set_chunks, cancel=cancel
        )
        if isinstance(set_result, Failed) or not reconcile_plan.reset_chunks:
            return ReconcileOutcome(
                resource_id=desired.name, diff=reconcile_plan.diff, set_result=set_result
            )

        logger.info(
            "Resetting %d removed setting(s) on %s",
            len(reconcile_plan.diff.to_reset),
            desired.name,
        )
        reset_result = await self._coordinator().apply(
            desired.name, reconcile_plan.reset_chunks, cancel=cancel, operation="reset"
        )
        return ReconcileOutcome(
            resource_id=desired.name,
            diff=reconcile_plan.diff,
            set_result=set_result,
            reset_result=reset_result,
        )

    async def delete(self, desired: ParameterSet) -> DestroyOutcome:
        destroy = plan_destroy(desired)
        if not destroy.delete_remote:
            logger.info("Retaining parameter group %s on destroy", destroy.resource_id)
            return DestroyOutcome(resource_id=destroy.resource_id, deleted=False)

        try:
            await self._retry_policy.call(
                partial(self._client.delete_parameter_set, destroy.resource_id)
            )
        except NotFoundError:
            logger.info("Parameter group %s already deleted", destroy.resource_id)
            return DestroyOutcome(resource_id=destroy.resource_id, deleted=False, already_gone=True)

        logger.info("Deleted parameter group %s", destroy.resource_id)
        return DestroyOutcome(resource_id=destroy.resource_id, deleted=True)

    async def _describe(self, resource_id: str) -> ParameterSet:
        return await self._retry_policy.call(partial(self._client.describe_settings, resource_id))
