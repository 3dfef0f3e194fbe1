"""Reconciler: computes drift between a desired parameter set and the observed one."""

from __future__ import annotations

import logging

from rds_params.errors import InvalidConfigurationError
from rds_params.models import DestroyPlan, ParameterDiff, ParameterSet
from rds_params.types import Setting, SettingSource

logger = logging.getLogger("rds_params.reconciler")


def diff(desired: ParameterSet, observed: ParameterSet) -> ParameterDiff:
    """Produce the settings to submit and the names to reset.

    ``to_set`` keeps the desired declaration order. ``to_reset`` holds
    user-sourced observed settings that are no longer desired; system and
    engine-default values are outside reconciliation and never reset.
    """
    duplicates = desired.duplicate_names()
    if duplicates:
        raise InvalidConfigurationError(
            f"Parameter set '{desired.name}' declares duplicate setting(s): {', '.join(duplicates)}"
        )

    observed_by_key = observed.by_key()
    desired_keys = {s.key for s in desired.settings}

    to_set = [s for s in desired.settings if _drifted(s, observed_by_key.get(s.key))]
    to_reset = sorted(
        s.name
        for s in observed.settings
        if s.source == SettingSource.USER and s.key not in desired_keys
    )

    logger.debug(
        "Diff for %s: %d to set, %d to reset", desired.name, len(to_set), len(to_reset)
    )
    return ParameterDiff(to_set=to_set, to_reset=to_reset)


def _drifted(wanted: Setting, current: Setting | None) -> bool:
    if current is None:
        return True
    return wanted.value != current.value or wanted.apply_timing != current.apply_timing


def plan_destroy(desired: ParameterSet, resource_id: str | None = None) -> DestroyPlan:
    """Decide whether destroying the resource issues a remote delete.

    Retained parameter groups are released from local state only.
    """
    return DestroyPlan(
        resource_id=resource_id or desired.name,
        delete_remote=not desired.retain_on_destroy,
    )
