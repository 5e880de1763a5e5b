"""Authorization policy — who may touch which row.

Learn: Every rule lives here and every service calls it inline, right
after loading the row it is about to read or change:

1. Tenant isolation. A row whose company_id differs from the caller's
   is treated as if it did not exist: NotFound, never Forbidden, so a
   caller cannot probe other tenants for ids.
2. Project ownership. Inside the tenant, changing or deleting a project
   needs the ADMIN role or authorship: Forbidden otherwise (the caller
   already knows the project exists).
3. References. An id the caller points at (assignee, client, company)
   must belong to the caller's company: InvalidReference otherwise.
4. Admins cannot delete themselves.
"""

import enum
import uuid
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import ColumnElement

from tradeboard.db.models import Project, Role
from tradeboard.errors import (
    Forbidden,
    InvalidReference,
    NotFound,
    SelfDeletionForbidden,
)

if TYPE_CHECKING:
    from tradeboard.auth.dependencies import CurrentIdentity


class Action(str, enum.Enum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


def is_admin(identity: "CurrentIdentity") -> bool:
    if identity.role is Role.ADMIN:
        return True
    if identity.role is Role.USER:
        return False
    raise ValueError(f"Unknown role: {identity.role!r}")


def can_modify_project(identity: "CurrentIdentity", project: Project) -> bool:
    return is_admin(identity) or project.author_id == identity.user_id


def authorize(
    identity: "CurrentIdentity",
    action: Action,
    resource: Optional[Any],
    kind: str,
) -> Any:
    """Check `action` on `resource`; return the resource when allowed.

    `kind` names the resource in error messages ("Client", "Task", ...).
    """
    if resource is None or resource.company_id != identity.company_id:
        raise NotFound(f"{kind} not found.")

    if isinstance(resource, Project) and action in (Action.UPDATE, Action.DELETE):
        if not can_modify_project(identity, resource):
            raise Forbidden(
                f"Only the project's author or an admin can {action.value} it."
            )
    return resource


def project_scope(identity: "CurrentIdentity") -> ColumnElement[bool]:
    """WHERE clause for the projects a caller may list.

    Admins see the whole company; users see what they authored (authorship
    only exists inside one company, so the tenant filter is implied).
    """
    if is_admin(identity):
        return Project.company_id == identity.company_id
    return Project.author_id == identity.user_id


def require_same_company(
    identity: "CurrentIdentity",
    entity: Optional[Any],
    kind: str,
) -> Any:
    """A referenced row must exist in the caller's company."""
    if entity is None or entity.company_id != identity.company_id:
        raise InvalidReference(
            f"{kind} not found or does not belong to this company."
        )
    return entity


def require_own_company(identity: "CurrentIdentity", company_id: uuid.UUID) -> None:
    if company_id != identity.company_id:
        raise InvalidReference("Company not found or not accessible.")


def forbid_self_deletion(identity: "CurrentIdentity", user_id: uuid.UUID) -> None:
    if user_id == identity.user_id:
        raise SelfDeletionForbidden()
