from __future__ import annotations

from typing import Iterable

from schoolportal.core.errors import AuthorizationError
from schoolportal.core.settings import settings
from schoolportal.models.enums import Role
from schoolportal.models.user import User

STAFF_ROLES = frozenset({Role.TEACHER, Role.ADMIN})


def _coerce_role(value: Role | str) -> Role:
    if isinstance(value, Role):
        return value
    return Role(str(value).strip().lower())


def max_sessions_for(role: Role | str) -> int:
    """Concurrent device sessions allowed for *role*.

    Staff caps are a large finite number rather than "unlimited".
    """
    role = _coerce_role(role)
    return settings.session_limits.get(role.value, settings.session_limit_default)


def user_has_any_role(user: User, roles: Iterable[Role]) -> bool:
    return user.role in set(roles)


def is_staff(user: User) -> bool:
    return user_has_any_role(user, STAFF_ROLES)


def require_staff(user: User, message: str = "Access denied. Staff only.") -> None:
    if not is_staff(user):
        raise AuthorizationError(message)


def require_role(user: User, role: Role, message: str | None = None) -> None:
    if user.role != role:
        raise AuthorizationError(message or f"User role '{user.role.value}' is not authorized to access this route")
