"""
Request-scoped permission snapshot.

Computed fresh for every authenticated request and never persisted. Each
optional section is present only when the request carries that context:

- ``org``: the route or body names an organization
- ``invoice``: the route names an invoice
- ``report``: the route names a report
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from .common import Role


class OrgPermission(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    role: Optional[Role] = None
    create: bool = False

    def at_least(self, role: Role) -> bool:
        return self.role is not None and self.role >= role


class ResourcePermission(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    access: bool = False
    edit: bool = False
    delete: bool = False


class PermissionSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    super_admin: bool = False
    org: Optional[OrgPermission] = None
    invoice: Optional[ResourcePermission] = None
    report: Optional[ResourcePermission] = None


def resource_flags(resource_id: str, access: bool, role: Optional[Role]) -> ResourcePermission:
    """Edit needs a role above CLIENT, delete above EMPLOYEE; both need a link."""
    return ResourcePermission(
        id=resource_id,
        access=access,
        edit=access and role is not None and role > Role.CLIENT,
        delete=access and role is not None and role > Role.EMPLOYEE,
    )
