"""
Authorization predicates.

All functions here are pure and total: unknown tokens or roles simply evaluate
to "not granted". Rejecting a request is the caller's job.
"""
import enum
from collections.abc import Iterable

from .permissions import Permission
from .roles import UserRole, effective_permissions


class AuthMode(str, enum.Enum):
    ANY = "any"
    ALL = "all"


def _token(permission: Permission | str) -> str:
    return permission.value if isinstance(permission, Permission) else permission


def _tokens(permissions: Iterable[Permission | str]) -> frozenset[str]:
    return frozenset(_token(p) for p in permissions)


def has_permission(granted: Iterable[Permission | str], required: Permission | str) -> bool:
    return _token(required) in _tokens(granted)


def has_any_permission(granted: Iterable[Permission | str], required: Iterable[Permission | str]) -> bool:
    """True when at least one required token is granted; an empty requirement is never satisfied."""
    held = _tokens(granted)
    return any(_token(p) in held for p in required)


def has_all_permissions(granted: Iterable[Permission | str], required: Iterable[Permission | str]) -> bool:
    """True when every required token is granted; an empty requirement is always satisfied."""
    held = _tokens(granted)
    return all(_token(p) in held for p in required)


def authorize(
    user_role: UserRole | str | None,
    required: Permission | str | Iterable[Permission | str],
    mode: AuthMode = AuthMode.ANY,
) -> bool:
    granted = effective_permissions(user_role)
    if isinstance(required, str):
        return has_permission(granted, required)
    if mode == AuthMode.ALL:
        return has_all_permissions(granted, required)
    return has_any_permission(granted, required)
