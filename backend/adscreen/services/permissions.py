"""Header-based role permissions for the API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional

from fastapi import Header, HTTPException

_REVIEWER = frozenset(
    {
        "analysis.create",
        "analysis.read",
        "analysis.history.read",
    }
)

ROLE_PERMISSIONS: Dict[str, FrozenSet[str]] = {
    "reviewer": _REVIEWER,
    "admin": _REVIEWER | {"admin.regulations.manage", "admin.settings.manage"},
}


@dataclass(frozen=True)
class RequestUser:
    role: str
    email: str


def has_permission(role: Optional[str], permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(role or "", frozenset())


def require_permission(permission: str) -> Callable[..., RequestUser]:
    """FastAPI dependency: 401 without identity headers, 403 without the permission."""

    def dependency(
        x_user_role: Optional[str] = Header(default=None),
        x_user_email: Optional[str] = Header(default=None),
    ) -> RequestUser:
        if not x_user_role or not x_user_email:
            raise HTTPException(status_code=401, detail="Unauthorized")
        if not has_permission(x_user_role, permission):
            raise HTTPException(status_code=403, detail="Forbidden")
        return RequestUser(role=x_user_role, email=x_user_email)

    return dependency
