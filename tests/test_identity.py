"""Tests for caller role classification."""

import pytest

from tiered_ratelimit.services.identity import (
    Principal,
    UserPrincipal,
    classify_role,
    is_admin,
    is_premium,
)


class CapabilityPrincipal:
    """Principal that only grants roles through has_role()."""

    def __init__(self, granted: set[str]) -> None:
        self._granted = granted

    @property
    def identifier(self) -> str:
        return "cap-1"

    def role(self) -> str | None:
        return None

    def is_admin_flag(self) -> bool:
        return False

    def is_premium_flag(self) -> bool:
        return False

    def has_role(self, name: str) -> bool:
        return name in self._granted


def test_user_principal_satisfies_protocol() -> None:
    assert isinstance(UserPrincipal(user_id="1"), Principal)
    assert isinstance(CapabilityPrincipal(set()), Principal)


@pytest.mark.parametrize("role_name", ["admin", "administrator", "Admin"])
def test_admin_by_role_field(role_name: str) -> None:
    assert is_admin(UserPrincipal(user_id="1", role_name=role_name))


def test_admin_by_flag() -> None:
    assert is_admin(UserPrincipal(user_id="1", is_admin=True))


def test_admin_by_capability_hook() -> None:
    assert is_admin(CapabilityPrincipal({"admin"}))
    assert not is_admin(CapabilityPrincipal({"premium"}))


@pytest.mark.parametrize("role_name", ["premium", "pro", "paid"])
def test_premium_by_role_field(role_name: str) -> None:
    assert is_premium(UserPrincipal(user_id="1", role_name=role_name))


def test_premium_by_flag_and_roles_set() -> None:
    assert is_premium(UserPrincipal(user_id="1", is_premium=True))
    assert is_premium(UserPrincipal(user_id="1", roles=frozenset({"premium"})))


def test_absent_principal_has_no_rights() -> None:
    assert not is_admin(None)
    assert not is_premium(None)


@pytest.mark.parametrize(
    "principal, expected",
    [
        (None, "authenticated"),
        (UserPrincipal(user_id="1"), "authenticated"),
        (UserPrincipal(user_id="1", role_name="editor"), "authenticated"),
        (UserPrincipal(user_id="1", role_name="pro"), "premium"),
        (UserPrincipal(user_id="1", role_name="admin"), "admin"),
        (CapabilityPrincipal({"premium"}), "premium"),
    ],
)
def test_classify_role(principal, expected: str) -> None:
    assert classify_role(principal) == expected


def test_admin_takes_priority_over_premium() -> None:
    principal = UserPrincipal(user_id="1", role_name="premium", is_admin=True)
    assert classify_role(principal) == "admin"
