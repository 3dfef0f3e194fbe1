"""Coupling table: setting names the RDS API only accepts when changed together.

MySQL-family engines reject a ``character_set_server`` change submitted in a
different call from the matching ``collation_server`` change, and PostgreSQL
validates the SSL protocol range as a pair. The table is injected into the
planner so each engine family can carry its own rules.
"""

from rds_params.types import CoupledGroup

CHARSET_COLLATION = CoupledGroup(
    name="charset-collation",
    members=frozenset({"character_set_server", "collation_server"}),
)

SSL_PROTOCOL_RANGE = CoupledGroup(
    name="ssl-protocol-range",
    members=frozenset({"ssl_min_protocol_version", "ssl_max_protocol_version"}),
)

# Family prefix → groups. Families that match no prefix get every group.
FAMILY_COUPLINGS: dict[str, list[CoupledGroup]] = {
    "mysql": [CHARSET_COLLATION],
    "mariadb": [CHARSET_COLLATION],
    "aurora-mysql": [CHARSET_COLLATION],
    "postgres": [SSL_PROTOCOL_RANGE],
    "aurora-postgresql": [SSL_PROTOCOL_RANGE],
}

ALL_GROUPS: list[CoupledGroup] = [CHARSET_COLLATION, SSL_PROTOCOL_RANGE]


class CouplingTable:
    """Registry of coupled groups, indexed by member name."""

    def __init__(self, groups: list[CoupledGroup] | None = None) -> None:
        self._groups: dict[str, CoupledGroup] = {}
        self._by_member: dict[str, CoupledGroup] = {}
        for group in groups or []:
            self.register(group)

    def register(self, group: CoupledGroup) -> None:
        if group.name in self._groups:
            raise ValueError(f"Coupled group '{group.name}' is already registered")
        for member in group.members:
            owner = self._by_member.get(member)
            if owner is not None:
                raise ValueError(f"'{member}' already belongs to coupled group '{owner.name}'")
        self._groups[group.name] = group
        for member in group.members:
            self._by_member[member] = group

    def group_for(self, name: str) -> CoupledGroup | None:
        return self._by_member.get(name.lower())

    def all_groups(self) -> list[CoupledGroup]:
        return list(self._groups.values())

    def __len__(self) -> int:
        return len(self._groups)


def groups_for_family(family: str | None) -> list[CoupledGroup]:
    if family:
        lowered = family.lower()
        # Longest prefix first so "aurora-mysql" does not fall through to a shorter match.
        for prefix in sorted(FAMILY_COUPLINGS, key=len, reverse=True):
            if lowered.startswith(prefix):
                return list(FAMILY_COUPLINGS[prefix])
    return list(ALL_GROUPS)


def build_default_coupling_table(family: str | None = None) -> CouplingTable:
    """Build the coupling table for an engine family (e.g. ``mysql8.0``, ``postgres16``)."""
    return CouplingTable(groups_for_family(family))
