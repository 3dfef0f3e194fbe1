"""Coupling-aware reconciliation of RDS parameter groups."""

from rds_params.coordinator import ApplyCoordinator
from rds_params.coupling import CouplingTable, build_default_coupling_table
from rds_params.errors import (
    ApplyCancelledError,
    InvalidConfigurationError,
    NotFoundError,
    TransientRemoteError,
    ValidationRemoteError,
)
from rds_params.lifecycle import ParameterGroupManager, build_plan
from rds_params.models import Applied, Chunk, Failed, ParameterDiff, ParameterSet
from rds_params.planner import MAX_PARAMS_PER_CHUNK, plan_chunks
from rds_params.reconciler import diff, plan_destroy
from rds_params.retry import RetryPolicy
from rds_params.types import ApplyTiming, CoupledGroup, Setting, SettingSource

__all__ = [
    "MAX_PARAMS_PER_CHUNK",
    "Applied",
    "ApplyCancelledError",
    "ApplyCoordinator",
    "ApplyTiming",
    "Chunk",
    "CoupledGroup",
    "CouplingTable",
    "Failed",
    "InvalidConfigurationError",
    "NotFoundError",
    "ParameterDiff",
    "ParameterGroupManager",
    "ParameterSet",
    "RetryPolicy",
    "Setting",
    "SettingSource",
    "TransientRemoteError",
    "ValidationRemoteError",
    "build_default_coupling_table",
    "build_plan",
    "diff",
    "plan_chunks",
    "plan_destroy",
]
