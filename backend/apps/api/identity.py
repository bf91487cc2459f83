"""Request identity as handed to us by the authentication collaborator.

Tokens are verified upstream (``JWTAuthentication``); this module only reads the
resulting ``request.user`` and never re-verifies anything.
"""
from dataclasses import dataclass
from typing import Any, Optional

from rest_framework.permissions import SAFE_METHODS, BasePermission

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def _is_privileged_user(user: Any) -> bool:
    return bool(getattr(user, "is_staff", False) or getattr(user, "is_superuser", False))


def resolve_actor(request) -> Optional[Actor]:
    user = getattr(request, "user", None)
    if not user or not getattr(user, "is_authenticated", False):
        return None
    user_id = getattr(user, "id", None)
    if user_id is None:
        return None
    role = ROLE_ADMIN if _is_privileged_user(user) else ROLE_USER
    return Actor(user_id=user_id, role=role)


class IsCatalogAdminOrReadOnly(BasePermission):
    """Anyone may browse the catalog; only staff accounts may change it."""

    def has_permission(self, request, view) -> bool:
        if request.method in SAFE_METHODS:
            return True
        actor = resolve_actor(request)
        return bool(actor and actor.is_admin)


class HasCustomerIdentity(BasePermission):
    """Cart endpoints need a resolved user id, not just any authenticated principal."""

    def has_permission(self, request, view) -> bool:
        return resolve_actor(request) is not None
