"""Setting model and the enums that describe how a setting is applied and where it came from."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator


class ApplyTiming(StrEnum):
    IMMEDIATE = "immediate"
    PENDING_REBOOT = "pending-reboot"


class SettingSource(StrEnum):
    USER = "user"
    SYSTEM = "system"
    ENGINE_DEFAULT = "engine-default"


class Setting(BaseModel):
    """A single named parameter value.

    Names are case-insensitive on the remote side; ``key`` is the normalized
    identity, ``name`` keeps the spelling the caller declared.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    apply_timing: ApplyTiming = ApplyTiming.IMMEDIATE
    source: SettingSource = SettingSource.USER

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("setting name must not be blank")
        return v

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def needs_reboot(self) -> bool:
        return self.apply_timing == ApplyTiming.PENDING_REBOOT


class CoupledGroup(BaseModel):
    """Setting names the remote API requires to be changed in the same call."""

    model_config = ConfigDict(frozen=True)

    name: str
    members: frozenset[str]

    @field_validator("members")
    @classmethod
    def _normalize_members(cls, v: frozenset[str]) -> frozenset[str]:
        members = frozenset(m.lower() for m in v)
        if len(members) < 2:
            raise ValueError("a coupled group needs at least two members")
        return members

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self.members
