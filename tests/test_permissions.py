import pytest

from app.core.errors import PermissionDenied
from app.core.permissions import (
    GroupRole, can_delete_group, can_edit_group, can_manage_group_resources,
    can_manage_members, is_resource_owner, permission_flags, require, resolve_effective_role
)

GROUP = {"id": "g1", "created_by": "creator"}


def member(user_id, role):
    return {"group_id": "g1", "user_id": user_id, "role": role}


def test_creator_without_membership_row_is_owner():
    assert resolve_effective_role(GROUP, None, "creator") == GroupRole.OWNER
    assert can_edit_group(GROUP, None, "creator")
    assert can_delete_group(GROUP, None, "creator")
    assert can_manage_group_resources(GROUP, None, "creator")


def test_creator_stays_owner_whatever_their_row_says():
    assert resolve_effective_role(GROUP, member("creator", "member"), "creator") == GroupRole.OWNER


def test_outsider_has_no_role():
    assert resolve_effective_role(GROUP, None, "stranger") is None
    assert not can_manage_group_resources(GROUP, None, "stranger")
    assert resolve_effective_role(GROUP, None, None) is None


@pytest.mark.parametrize("role,edit,delete,resources,members", [
    ("owner", True, True, True, True),
    ("admin", True, False, True, False),
    ("member", False, False, True, False),
])
def test_role_matrix(role, edit, delete, resources, members):
    row = member("u1", role)
    assert can_edit_group(GROUP, row, "u1") is edit
    assert can_delete_group(GROUP, row, "u1") is delete
    assert can_manage_group_resources(GROUP, row, "u1") is resources
    assert can_manage_members(GROUP, row, "u1") is members


def test_someone_elses_membership_row_grants_nothing():
    assert resolve_effective_role(GROUP, member("u1", "owner"), "u2") is None


def test_permission_flags():
    assert permission_flags(GROUP, member("u1", "admin"), "u1") == {
        "can_edit": True,
        "can_delete": False,
        "can_manage_restaurants": True,
        "can_manage_members": False,
    }


def test_require_raises_permission_denied():
    require(True, "fine")
    with pytest.raises(PermissionDenied) as exc:
        require(False, "nope")
    assert exc.value.status_code == 403
    assert exc.value.detail == "nope"


def test_is_resource_owner():
    assert is_resource_owner({"created_by": "u1"}, "u1")
    assert not is_resource_owner({"created_by": "u1"}, "u2")
    assert not is_resource_owner({"created_by": None}, None)
    assert is_resource_owner({"uploaded_by": "u1"}, "u1", owner_field="uploaded_by")
