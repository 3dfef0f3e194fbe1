"""Parameter set models: ParameterSet, Chunk, diffs, and apply results."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel

from rds_params.types import Setting, SettingSource

if TYPE_CHECKING:
    from rds_params.errors import ParamsError


class ParameterSet(BaseModel):
    name: str
    family: str | None = None
    description: str = "Managed by rds-params"
    settings: list[Setting] = []
    retain_on_destroy: bool = False

    def by_key(self) -> dict[str, Setting]:
        return {s.key: s for s in self.settings}

    def get(self, name: str) -> Setting | None:
        key = name.lower()
        for s in self.settings:
            if s.key == key:
                return s
        return None

    def duplicate_names(self) -> list[str]:
        counts = Counter(s.key for s in self.settings)
        return sorted(k for k, n in counts.items() if n > 1)

    def user_settings(self) -> list[Setting]:
        return [s for s in self.settings if s.source == SettingSource.USER]


class Chunk(BaseModel):
    settings: list[Setting]
    coupled: bool = False
    oversized: bool = False

    def names(self) -> list[str]:
        return [s.name for s in self.settings]

    def __len__(self) -> int:
        return len(self.settings)


class ParameterDiff(BaseModel):
    to_set: list[Setting] = []
    to_reset: list[str] = []

    @property
    def is_empty(self) -> bool:
        return not self.to_set and not self.to_reset

    def pending_reboot_names(self) -> list[str]:
        return [s.name for s in self.to_set if s.needs_reboot]


class ReconcilePlan(BaseModel):
    resource_id: str
    diff: ParameterDiff
    set_chunks: list[Chunk]
    reset_chunks: list[Chunk]

    @property
    def is_empty(self) -> bool:
        return self.diff.is_empty


class DestroyPlan(BaseModel):
    resource_id: str
    delete_remote: bool


class ApplyState(StrEnum):
    PLANNED = "planned"
    APPLYING = "applying"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass(frozen=True)
class Applied:
    pending_reboot: list[str] = field(default_factory=list)
    submitted: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    chunks: int = 0


@dataclass(frozen=True)
class Failed:
    """A terminal apply failure; ``chunk_index`` is zero-based."""

    chunk_index: int
    cause: ParamsError
    submitted: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


ApplyResult = Applied | Failed
ApplyPass = Literal["set", "reset"]


@dataclass(frozen=True)
class ReconcileOutcome:
    resource_id: str
    diff: ParameterDiff
    set_result: ApplyResult
    reset_result: ApplyResult | None = None

    @property
    def result(self) -> ApplyResult:
        if isinstance(self.set_result, Failed) or self.reset_result is None:
            return self.set_result
        return self.reset_result

    @property
    def failed_pass(self) -> ApplyPass | None:
        """Which pass failed, if any; chunk indexes in a ``Failed`` count from its start."""
        if isinstance(self.set_result, Failed):
            return "set"
        if isinstance(self.reset_result, Failed):
            return "reset"
        return None

    @property
    def ok(self) -> bool:
        return isinstance(self.set_result, Applied) and not isinstance(self.reset_result, Failed)

    @property
    def pending_reboot(self) -> list[str]:
        if isinstance(self.set_result, Applied):
            return self.set_result.pending_reboot
        return []


@dataclass(frozen=True)
class DestroyOutcome:
    resource_id: str
    deleted: bool
    already_gone: bool = False
