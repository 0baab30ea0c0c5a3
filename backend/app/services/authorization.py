"""
DevCamper Backend — Authorization Policy
==========================================

What:  The only place that decides whether an authenticated identity may act.
Why:   Role and ownership rules used to be re-derived per handler; keeping
       them in one object guarantees every route applies the same semantics.
How:   Three independent checks. Routes compose the ones they need:

    require_role(identity, roles)            role-gate
    require_owner(identity, resource, ...)   ownership-gate (admin bypasses)
    ensure_can_create_bootcamp(identity, …)  single-ownership rule

    Admin bypasses ownership, but role-gates are evaluated on their own and
    an admin is only let through one if "admin" is in the required set.
"""

import logging
from typing import Iterable, Protocol
from uuid import UUID

from app.exceptions import ForbiddenError, ValidationError
from app.security import Identity

logger = logging.getLogger(__name__)


class OwnedResource(Protocol):
    id: UUID
    user_id: UUID


class AuthorizationPolicy:

    def require_role(self, identity: Identity, roles: Iterable[str]) -> None:
        allowed = set(roles)
        if identity.role not in allowed:
            logger.info("Role %s rejected (requires one of %s)", identity.role, sorted(allowed))
            raise ForbiddenError(
                f"User role {identity.role} is not authorized to access this route",
                context={"user_id": str(identity.id), "required": sorted(allowed)},
            )

    def is_owner(self, identity: Identity, resource: OwnedResource) -> bool:
        return resource.user_id == identity.id

    def require_owner(
        self,
        identity: Identity,
        resource: OwnedResource,
        action: str = "update",
        resource_name: str = "resource",
    ) -> None:
        """
        Allow iff the identity created the resource or is an admin.

        Args:
            action:        verb used in the error message ("update", "delete", ...)
            resource_name: noun used in the error message ("bootcamp", ...)
        """
        if self.is_owner(identity, resource) or identity.is_admin:
            return
        logger.info(
            "User %s denied %s on %s %s", identity.id, action, resource_name, resource.id
        )
        raise ForbiddenError(
            f"User {identity.id} is not authorized to {action} {resource_name} {resource.id}",
            context={"user_id": str(identity.id), "resource_id": str(resource.id)},
        )

    def ensure_can_create_bootcamp(self, identity: Identity, already_owns: bool) -> None:
        """
        A non-admin may own at most one bootcamp.

        The caller checks ownership and then inserts; that sequence is not
        atomic. Two concurrent creates can both pass here, and the
        bootcamps.exclusive_owner_id unique constraint rejects the second insert.
        """
        if already_owns and not identity.is_admin:
            raise ValidationError(
                f"The user with id {identity.id} has already published a bootcamp",
                context={"user_id": str(identity.id)},
            )


authorization_policy = AuthorizationPolicy()
