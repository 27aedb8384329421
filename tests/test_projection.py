"""Tests for projecting hierarchy trees into display views."""

from __future__ import annotations

import pytest

from grouphierarchy.entities.core import GroupAcl, GroupRecord
from grouphierarchy.exceptions import HierarchyUnavailableError, InactiveGroupError
from grouphierarchy.hierarchy import (
    GroupCollection,
    HierarchyNode,
    build_from_node,
    enrich_with_acls,
    view_from_record_set,
)


def make_group(short_id: str, *refs: str, active: bool = True) -> GroupRecord:
    return GroupRecord(
        short_id=short_id,
        name=f"Group {short_id}",
        description=f"Description of {short_id}",
        referring_groups=list(refs),
        active=active,
    )


def _tree(inactive: str | None = None) -> HierarchyNode:
    collection = GroupCollection(make_group("Root", active=inactive != "Root"), 3)
    for short_id, refs in (("A", ("Root",)), ("B", ("Root", "A")), ("D", ("Root",))):
        collection.add_element(make_group(short_id, *refs, active=inactive != short_id))
    return collection.get_hierarchy()


def test_build_from_node_copies_display_fields() -> None:
    view = build_from_node(_tree())

    assert view.short_id == "Root"
    assert view.name == "Group Root"
    assert view.description == "Description of Root"
    assert [child.short_id for child in view.children] == ["A", "D"]
    assert view.children[0].children[0].short_id == "B"
    assert view.roles == []


def test_inactive_subtree_is_omitted() -> None:
    view = build_from_node(_tree(inactive="A"))

    assert [child.short_id for child in view.children] == ["D"]


def test_inactive_root_raises() -> None:
    with pytest.raises(InactiveGroupError) as excinfo:
        build_from_node(_tree(inactive="Root"))
    assert excinfo.value.code == "groups-hierarchy-inactive-group"


def test_view_from_record_set_wraps_inactive_head() -> None:
    collection = GroupCollection(make_group("Root", active=False), 3)

    with pytest.raises(HierarchyUnavailableError) as excinfo:
        view_from_record_set(collection)
    assert excinfo.value.code == "groups-hierarchy-inactive-group"
    assert isinstance(excinfo.value.__cause__, InactiveGroupError)


def test_view_from_record_set_wraps_depth_failure() -> None:
    collection = GroupCollection(make_group("Root"), 32)
    refs = ["Root"]
    for index in range(12):
        short_id = f"G{index}"
        collection.add_element(make_group(short_id, *refs))
        refs.append(short_id)

    with pytest.raises(HierarchyUnavailableError) as excinfo:
        view_from_record_set(collection)
    assert excinfo.value.code == "group-hierarchy-too-deep-possible-loop"


def test_enrich_with_acls_applies_roles_and_local_names() -> None:
    view = build_from_node(_tree())
    acls = [
        GroupAcl(group="A", local_name="My team", roles=["read", "write"]),
        GroupAcl(group="A", local_name="Ignored", roles=["admin"]),
        GroupAcl(group="D", roles=["read"]),
    ]

    enriched = enrich_with_acls(view, acls)

    assert enriched is view
    a_view, d_view = view.children
    assert a_view.name == "My team"
    assert a_view.roles == ["read", "write"]
    assert d_view.name == "Group D"
    assert d_view.roles == ["read"]
    assert view.roles == []


def test_payload_uses_camel_case() -> None:
    payload = build_from_node(_tree()).to_payload()
    assert payload["shortId"] == "Root"
    assert payload["children"][0]["shortId"] == "A"
