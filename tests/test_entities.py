"""Unit tests for grouphierarchy.entities.core."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from grouphierarchy.entities import GROUP_VERSION, GroupAcl, GroupRecord
from grouphierarchy.exceptions import GroupHierarchyTooDeepError, GroupLoopError


def _group(short_id: str, *refs: str) -> GroupRecord:
    return GroupRecord(short_id=short_id, name=f"Group {short_id}", referring_groups=list(refs))


def test_group_record_defaults() -> None:
    group = GroupRecord(short_id="Root")
    assert group.version == GROUP_VERSION
    assert group.language == "en"
    assert group.active is True
    assert group.virtual is False
    assert group.referring_groups == []
    assert group.creation_date_ms > 0


def test_group_record_accepts_camel_case_payload() -> None:
    group = GroupRecord.model_validate(
        {"shortId": "B", "name": "Group B", "referringGroups": ["Root", "A"], "active": False}
    )
    assert group.short_id == "B"
    assert group.referring_groups == ["Root", "A"]
    assert group.active is False
    assert group.model_dump(by_alias=True)["referringGroups"] == ["Root", "A"]


def test_referring_groups_are_deduplicated_in_order() -> None:
    group = _group("C", "Root", "A", "Root", " A ", "")
    assert group.referring_groups == ["Root", "A"]


def test_referring_groups_reject_plain_string() -> None:
    with pytest.raises(ValidationError):
        GroupRecord(short_id="A", referring_groups="Root")


def test_blank_short_id_rejected() -> None:
    with pytest.raises(ValidationError):
        GroupRecord(short_id="   ")


def test_clone_does_not_alias_referring_groups() -> None:
    original = _group("A", "Root")
    copy = original.clone()
    copy.referring_groups.append("Other")
    assert original.referring_groups == ["Root"]
    assert copy == original.model_copy(update={"referring_groups": ["Root", "Other"]})


def test_add_under_group_inherits_parent_chain() -> None:
    root = _group("Root1")
    a = _group("A")
    a.add_under_group(root, 7)
    c = _group("C")
    c.add_under_group(a, 7)

    assert a.referring_groups == ["Root1"]
    assert c.referring_groups == ["Root1", "A"]
    assert c.modification_date_ms > 0


def test_add_under_group_across_two_hierarchies() -> None:
    max_depth = 7
    root1, root2 = _group("Root1"), _group("Root2")
    a, c, r, k, e, j = (_group(name) for name in ("A", "C", "R", "K", "E", "J"))
    a.add_under_group(root1, max_depth)
    c.add_under_group(a, max_depth)
    r.add_under_group(root2, max_depth)
    k.add_under_group(r, max_depth)
    e.add_under_group(k, max_depth)
    e.add_under_group(c, max_depth)
    j.add_under_group(e, max_depth)

    assert e.referring_groups == ["Root2", "R", "K", "Root1", "A", "C"]
    assert len(j.referring_groups) == 7

    with pytest.raises(GroupLoopError) as loop:
        a.add_under_group(c, max_depth)
    assert loop.value.code == "group-loop-detected"

    leaf = _group("L")
    with pytest.raises(GroupHierarchyTooDeepError) as too_deep:
        leaf.add_under_group(j, max_depth)
    assert too_deep.value.code == "group-hierarchy-too-deep"
    assert leaf.referring_groups == []


def test_add_under_itself_is_a_loop() -> None:
    group = _group("A", "Root")
    with pytest.raises(GroupLoopError):
        group.add_under_group(group, 5)


def test_group_acl_normalises_roles() -> None:
    acl = GroupAcl.model_validate({"group": "A", "localName": "Team A", "roles": ["read", "read", "admin"]})
    assert acl.local_name == "Team A"
    assert acl.roles == ["read", "admin"]


def test_assignment_is_validated() -> None:
    group = _group("A", "Root")
    group.referring_groups = ["Root", " Root ", "Other", ""]
    assert group.referring_groups == ["Root", "Other"]

    with pytest.raises(ValidationError):
        group.referring_groups = "Root"
    with pytest.raises(ValidationError):
        group.deletion_date_ms = -1
