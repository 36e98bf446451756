from __future__ import annotations

import pytest

from governance.access import ADMIN_ROLE, Roles
from governance.errors import InvalidInput, Unauthorized


def test_initial_admins_and_require():
    roles = Roles(["root"])
    assert roles.is_admin("root")
    assert not roles.is_admin("")
    roles.require_role(ADMIN_ROLE, "root")
    with pytest.raises(Unauthorized) as ei:
        roles.require_role(ADMIN_ROLE, "guest")
    assert ei.value.details == {"caller": "guest", "role": ADMIN_ROLE}


def test_grant_revoke_are_idempotent():
    roles = Roles(["root"])
    assert roles.grant_role("root", ADMIN_ROLE, "ops") is True
    assert roles.grant_role("root", ADMIN_ROLE, "ops") is False
    assert roles.members(ADMIN_ROLE) == ["ops", "root"]
    assert roles.revoke_role("ops", ADMIN_ROLE, "root") is True
    assert roles.revoke_role("ops", ADMIN_ROLE, "root") is False
    assert not roles.is_admin("root")


def test_only_role_admin_may_grant():
    roles = Roles(["root"])
    with pytest.raises(Unauthorized):
        roles.grant_role("guest", ADMIN_ROLE, "guest")
    with pytest.raises(InvalidInput):
        roles.grant_role("root", ADMIN_ROLE, "")


def test_custom_role_admin_and_renounce():
    roles = Roles(["root"])
    assert roles.set_role_admin("root", "auditor", ADMIN_ROLE) is False
    roles.grant_role("root", "auditor", "eve")
    assert roles.has_role("auditor", "eve")
    assert roles.renounce_role("eve", "auditor") is True
    assert roles.renounce_role("eve", "auditor") is False


def test_dump_load():
    roles = Roles(["root"])
    roles.grant_role("root", "auditor", "eve")
    again = Roles.load(roles.dump())
    assert again.is_admin("root")
    assert again.has_role("auditor", "eve")


def test_set_role_admin_hands_over_a_role():
    roles = Roles(["root"])
    roles.grant_role("root", "auditor-admin", "ops")
    assert roles.set_role_admin("root", "auditor", "auditor-admin") is True
    roles.grant_role("ops", "auditor", "eve")
    assert roles.has_role("auditor", "eve")
    with pytest.raises(Unauthorized):
        roles.set_role_admin("eve", "auditor", "auditor")
