"""Role hierarchy and bearer-token resolution."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .exceptions import AuthenticationError, AuthorizationError


class Role(str, Enum):
    """Account roles, ordered Staff < Incharge < Admin."""

    STAFF = "staff"
    INCHARGE = "incharge"
    ADMIN = "admin"


ROLE_RANK: dict[Role, int] = {
    Role.STAFF: 1,
    Role.INCHARGE: 2,
    Role.ADMIN: 3,
}

RoleRequirement = Union[Role, Iterable[Role]]


def parse_role(value: str) -> Role:
    try:
        return Role(value.strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unknown role: {value!r}") from exc


def required_rank(required: RoleRequirement) -> int:
    """Return the highest rank among the acceptable roles."""

    roles = [required] if isinstance(required, Role) else list(required)
    return max((ROLE_RANK.get(role, 0) for role in roles), default=0)


def is_authorized(role: Role, required: RoleRequirement) -> bool:
    """True when ``role`` ranks at or above every acceptable role."""

    return ROLE_RANK.get(role, 0) >= required_rank(required)


def is_role_at_least(role: Role, target: Role) -> bool:
    return ROLE_RANK[role] >= ROLE_RANK[target]


@dataclass(slots=True, frozen=True)
class Principal:
    token: str
    role: Role


def resolve_principal(
    authorization: Optional[str], tokens: Mapping[str, Role]
) -> Principal:
    """Map an ``Authorization: Bearer`` header onto a configured principal."""

    if not authorization:
        raise AuthenticationError("Unauthorized")
    scheme, _, value = authorization.partition(" ")
    value = value.strip()
    if scheme.lower() != "bearer" or not value:
        raise AuthenticationError("Unauthorized")
    role = tokens.get(value)
    if role is None:
        raise AuthenticationError("Unauthorized")
    return Principal(token=value, role=role)


def ensure_role(principal: Principal, required: RoleRequirement) -> None:
    if not is_authorized(principal.role, required):
        raise AuthorizationError("Forbidden")


__all__ = [
    "Role",
    "ROLE_RANK",
    "Principal",
    "parse_role",
    "required_rank",
    "is_authorized",
    "is_role_at_least",
    "resolve_principal",
    "ensure_role",
]
