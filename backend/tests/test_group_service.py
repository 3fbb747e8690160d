import pytest

from splitledger.core import GroupService
from splitledger.errors import Forbidden, NotFound, ValidationError


@pytest.fixture
def group(store, users):
    return GroupService.create_group(users["alice"], {
        "name": "Flat",
        "description": "Shared flat costs",
        "members": [users["bob"], "0" * 24],
    })


def test_create_group_skips_unknown_users(users, group):
    assert group.member_ids == [users["alice"], users["bob"]]
    assert group.is_admin(users["alice"])


def test_create_group_links_new_members_as_friends(store, users):
    GroupService.create_group(users["bob"], {"name": "Band", "members": [users["dave"]]})

    assert users["dave"] in store.load_friend_set(users["bob"])
    assert users["bob"] in store.load_friend_set(users["dave"])


def test_list_and_get_groups(users, group):
    assert [g.id for g in GroupService.list_groups(users["bob"])] == [group.id]
    assert GroupService.list_groups(users["dave"]) == []

    assert GroupService.get_group(users["bob"], group.id).name == "Flat"
    with pytest.raises(Forbidden):
        GroupService.get_group(users["dave"], group.id)


def test_any_member_may_rename(users, group):
    renamed = GroupService.update_group(users["bob"], group.id, {"name": "Flat 2B"})

    assert renamed.name == "Flat 2B"
    assert renamed.description == "Shared flat costs"


def test_archive_requires_admin(users, group):
    with pytest.raises(Forbidden):
        GroupService.archive_group(users["bob"], group.id)

    archived = GroupService.archive_group(users["alice"], group.id)

    assert not archived.is_active
    assert GroupService.list_groups(users["alice"]) == []
    with pytest.raises(NotFound):
        GroupService.get_group(users["alice"], group.id)


def test_add_member_by_email(store, users, group):
    updated = GroupService.add_member(users["bob"], group.id, {"memberEmail": " Carol@Example.com "})

    assert updated.is_member(users["carol"])
    assert users["carol"] in store.load_friend_set(users["bob"])


def test_add_member_errors(users, group):
    with pytest.raises(ValidationError):
        GroupService.add_member(users["alice"], group.id, {})
    with pytest.raises(NotFound):
        GroupService.add_member(users["alice"], group.id, {"memberEmail": "nobody@example.com"})
    with pytest.raises(ValidationError):
        GroupService.add_member(users["alice"], group.id, {"userId": users["bob"]})


def test_members_remove_only_themselves(users, group):
    GroupService.add_member(users["alice"], group.id, {"userId": users["carol"]})

    with pytest.raises(Forbidden):
        GroupService.remove_member(users["bob"], group.id, users["carol"])

    updated = GroupService.remove_member(users["alice"], group.id, users["carol"])
    assert not updated.is_member(users["carol"])


def test_creator_cannot_be_removed_or_demoted(users, group):
    with pytest.raises(Forbidden):
        GroupService.leave_group(users["alice"], group.id)
    with pytest.raises(Forbidden):
        GroupService.update_member_role(users["alice"], group.id, users["alice"], "member")


def test_leave_group(users, group):
    GroupService.leave_group(users["bob"], group.id)

    with pytest.raises(ValidationError):
        GroupService.leave_group(users["bob"], group.id)


def test_promote_member(users, group):
    with pytest.raises(Forbidden):
        GroupService.update_member_role(users["bob"], group.id, users["bob"], "admin")

    updated = GroupService.update_member_role(users["alice"], group.id, users["bob"], "admin")
    assert updated.is_admin(users["bob"])


def test_plain_member_cannot_add_an_admin(users, group):
    with pytest.raises(Forbidden):
        GroupService.add_member(users["bob"], group.id, {"userId": users["dave"], "role": "admin"})

    updated = GroupService.get_group(users["alice"], group.id)
    assert not updated.is_member(users["dave"])

    added = GroupService.add_member(users["bob"], group.id, {"userId": users["dave"]})
    assert added.is_member(users["dave"])
    assert not added.is_admin(users["dave"])


def test_admin_may_add_an_admin(users, group):
    updated = GroupService.add_member(users["alice"], group.id, {"userId": users["carol"], "role": "admin"})
    assert updated.is_admin(users["carol"])
