from __future__ import annotations

import pytest

from my_desk.auth import (
    Principal,
    Role,
    ensure_role,
    is_authorized,
    is_role_at_least,
    parse_role,
    resolve_principal,
)
from my_desk.exceptions import AuthenticationError, AuthorizationError

TOKENS = {"staff-token": Role.STAFF, "admin-token": Role.ADMIN}


@pytest.mark.parametrize(
    ("role", "required", "expected"),
    [
        (Role.STAFF, Role.STAFF, True),
        (Role.STAFF, Role.INCHARGE, False),
        (Role.INCHARGE, Role.STAFF, True),
        (Role.INCHARGE, [Role.STAFF, Role.ADMIN], False),
        (Role.ADMIN, [Role.INCHARGE, Role.ADMIN], True),
        (Role.INCHARGE, [Role.INCHARGE, Role.STAFF], True),
    ],
)
def test_is_authorized_uses_highest_acceptable_rank(role, required, expected):
    assert is_authorized(role, required) is expected


def test_authorization_is_monotonic():
    ordered = [Role.STAFF, Role.INCHARGE, Role.ADMIN]
    for i, role in enumerate(ordered):
        for target in ordered[: i + 1]:
            assert is_role_at_least(role, target)
        for target in ordered[i + 1:]:
            assert not is_role_at_least(role, target)


def test_parse_role():
    assert parse_role(" Admin ") is Role.ADMIN
    with pytest.raises(ValueError):
        parse_role("owner")


def test_resolve_principal():
    assert resolve_principal("Bearer staff-token", TOKENS) == Principal("staff-token", Role.STAFF)
    assert resolve_principal("bearer admin-token", TOKENS).role is Role.ADMIN
    for header in (None, "", "Bearer", "Basic staff-token", "Bearer unknown"):
        with pytest.raises(AuthenticationError):
            resolve_principal(header, TOKENS)


def test_ensure_role():
    ensure_role(Principal("t", Role.ADMIN), Role.INCHARGE)
    with pytest.raises(AuthorizationError):
        ensure_role(Principal("t", Role.STAFF), Role.INCHARGE)
