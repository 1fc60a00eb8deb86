"""
Role based permission table.

Each role maps to an explicit allow-list of dotted permission strings.
ADMIN carries the wildcard entry and therefore satisfies every permission.
"""
from types import MappingProxyType
from typing import FrozenSet, Iterable, List, Mapping

from .security import UserRole

WILDCARD = "*"

DEFAULT_ROLE_PERMISSIONS: Mapping[UserRole, tuple] = MappingProxyType({
    UserRole.ADMIN: (WILDCARD,),
    UserRole.DOCTOR: (
        "patients.read",
        "patients.write",
        "appointments.read",
        "appointments.write",
        "prescriptions.write",
        "lab.request",
        "radiology.request",
        "dashboard.read",
    ),
    UserRole.NURSE: (
        "patients.read",
        "patients.write",
        "appointments.read",
        "appointments.write",
        "dashboard.read",
    ),
    UserRole.RECEPTIONIST: (
        "patients.read",
        "patients.write",
        "appointments.read",
        "appointments.write",
        "billing.read",
        "dashboard.read",
    ),
    UserRole.PHARMACIST: (
        "patients.read",
        "prescriptions.read",
        "prescriptions.dispense",
        "pharmacy.manage",
        "dashboard.read",
    ),
    UserRole.LAB_TECH: (
        "patients.read",
        "lab.read",
        "lab.write",
        "lab.results",
        "dashboard.read",
    ),
    UserRole.RADIOLOGIST: (
        "patients.read",
        "radiology.read",
        "radiology.write",
        "radiology.report",
        "dashboard.read",
    ),
    UserRole.FINANCE: (
        "patients.read",
        "billing.read",
        "billing.write",
        "reports.financial",
        "dashboard.read",
    ),
    UserRole.RESEARCHER: (
        "patients.read",
        "research.read",
        "research.write",
        "reports.research",
        "dashboard.read",
    ),
})


class PermissionPolicy:
    """Immutable role -> permission set lookup.

    The table must be total: every ``UserRole`` needs an entry, even an
    empty one. A missing role raises ``ValueError`` at construction so a bad
    table fails at startup instead of on the first request.
    """

    def __init__(self, table: Mapping[UserRole, Iterable[str]]):
        missing = [role.value for role in UserRole if role not in table]
        if missing:
            raise ValueError(f"Permission table has no entry for roles: {missing}")

        self._table = MappingProxyType({
            UserRole(role): frozenset(permissions) for role, permissions in table.items()
        })

    @classmethod
    def default(cls) -> "PermissionPolicy":
        return cls(DEFAULT_ROLE_PERMISSIONS)

    def permissions_for(self, role: UserRole) -> FrozenSet[str]:
        return self._table[UserRole(role)]

    def has_permission(self, role: UserRole, permission: str) -> bool:
        granted = self.permissions_for(role)
        return WILDCARD in granted or permission in granted

    def missing_permissions(self, role: UserRole, required: Iterable[str]) -> List[str]:
        return [permission for permission in required if not self.has_permission(role, permission)]
