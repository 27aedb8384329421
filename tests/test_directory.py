"""Tests for the cached group directory."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List

import pytest

from grouphierarchy.config.policies import GroupHierarchyPolicy
from grouphierarchy.entities.core import GroupAcl, GroupRecord, now_ms
from grouphierarchy.exceptions import (
    GroupHierarchyTooDeepError,
    GroupLoopError,
    HierarchyUnavailableError,
)
from grouphierarchy.hierarchy import GroupDirectory


def make_group(short_id: str, *refs: str) -> GroupRecord:
    return GroupRecord(short_id=short_id, name=f"Group {short_id}", referring_groups=list(refs))


def sample_groups() -> List[GroupRecord]:
    return [
        make_group("Root"),
        make_group("A", "Root"),
        make_group("B", "Root", "A"),
        make_group("C", "Root", "A"),
        make_group("D", "Root"),
        make_group("E", "Root", "D"),
        make_group("Root2"),
        make_group("R", "Root2"),
    ]


@pytest.fixture()
def directory() -> GroupDirectory:
    return GroupDirectory(GroupHierarchyPolicy(max_depth=4), sample_groups())


def test_find_hierarchy_members_keeps_insertion_order(directory: GroupDirectory) -> None:
    members = directory.find_hierarchy_members("Root")
    assert [group.short_id for group in members] == ["Root", "A", "B", "C", "D", "E"]


def test_get_returns_copies(directory: GroupDirectory) -> None:
    group = directory.get("A")
    group.referring_groups.append("Mutated")
    assert directory.get("A").referring_groups == ["Root"]


def test_get_missing_group(directory: GroupDirectory) -> None:
    with pytest.raises(HierarchyUnavailableError) as excinfo:
        directory.get("missing")
    assert excinfo.value.code == "groups-get-not-found"


def test_build_collection_errors() -> None:
    directory = GroupDirectory(groups=[make_group("A", "Ghost")])

    with pytest.raises(HierarchyUnavailableError) as missing:
        directory.build_collection("Nobody")
    assert missing.value.code == "group-list-not-found"

    with pytest.raises(HierarchyUnavailableError) as headless:
        directory.build_collection("Ghost")
    assert headless.value.code == "group-list-head-less"


def test_collection_cache_hits_and_flushes(directory: GroupDirectory) -> None:
    first = directory.get_collection("Root")
    second = directory.get_collection("Root")

    assert first is not second
    assert len(first) == len(second) == 6
    stats = directory.statistics()
    assert stats["misses"] == 1
    assert stats["hits"] == 1
    assert stats["cached_hierarchies"] == 1

    directory.upsert(make_group("F", "Root", "D"))
    assert directory.statistics()["flushes"] == 1
    assert len(directory.get_collection("Root")) == 7


def test_cached_collection_is_not_shared(directory: GroupDirectory) -> None:
    handed_out = directory.get_collection("Root")
    handed_out.add_element(make_group("Temp", "Root"))
    assert "Temp" not in directory.get_collection("Root")


def test_cache_disabled_builds_every_time() -> None:
    directory = GroupDirectory(GroupHierarchyPolicy(cache_max_size=0), sample_groups())
    directory.get_collection("Root")
    directory.get_collection("Root")
    stats = directory.statistics()
    assert stats["hits"] == stats["misses"] == 0
    assert stats["cached_hierarchies"] == 0


def test_cache_evicts_least_recently_used() -> None:
    directory = GroupDirectory(GroupHierarchyPolicy(cache_max_size=1), sample_groups())
    directory.get_collection("Root")
    directory.get_collection("Root2")
    directory.get_collection("Root")
    assert directory.statistics()["misses"] == 3


def test_attach_rewrites_referring_chain(directory: GroupDirectory) -> None:
    directory.upsert(make_group("X"))
    attached = directory.attach("X", "B")

    assert attached.referring_groups == ["Root", "A", "B"]
    view = directory.get_groups_for_display(["Root"])[0]
    b_view = view.children[0].children[0]
    assert b_view.short_id == "B"
    assert [child.short_id for child in b_view.children] == ["X"]


def test_attach_enforces_limits(directory: GroupDirectory) -> None:
    with pytest.raises(GroupLoopError):
        directory.attach("A", "B")

    directory.upsert(make_group("Deep", "Root", "A", "B", "C"))
    with pytest.raises(GroupHierarchyTooDeepError):
        directory.attach("E", "Deep")
    assert directory.get("E").referring_groups == ["Root", "D"]


def test_deactivate_hides_subtree(directory: GroupDirectory) -> None:
    directory.get_collection("Root")
    deactivated = directory.deactivate("A")

    assert deactivated.active is False
    assert deactivated.deletion_date_ms > 0
    view = directory.get_groups_for_display(["Root"])[0]
    assert [child.short_id for child in view.children] == ["D"]


def test_deactivate_stamps_wall_clock_milliseconds(directory: GroupDirectory) -> None:
    before = now_ms()
    deactivated = directory.deactivate("E")
    after = now_ms()

    assert before <= deactivated.deletion_date_ms <= after
    assert directory.get("E").deletion_date_ms == deactivated.deletion_date_ms


def test_virtual_groups_are_not_stored(directory: GroupDirectory) -> None:
    virtual = GroupRecord(short_id="V", referring_groups=["Root"], virtual=True)
    directory.upsert(virtual)

    assert "V" not in directory
    assert [group.short_id for group in directory.find_hierarchy_members("Root")] == [
        "Root",
        "A",
        "B",
        "C",
        "D",
        "E",
    ]


def test_concurrent_hierarchy_requests_agree() -> None:
    directory = GroupDirectory(
        GroupHierarchyPolicy(max_depth=5),
        [
            make_group("Root1"),
            make_group("Root2"),
            make_group("A", "Root1"),
            make_group("C", "Root1", "A"),
            make_group("D", "Root1", "A", "C"),
            make_group("R", "Root2"),
            make_group("K", "Root2", "R"),
            make_group("E", "Root1", "A", "C", "Root2", "R", "K"),
            make_group("J", "Root1", "A", "C", "E", "Root2", "R", "K"),
        ],
    )
    expected = {
        head: directory.get_collection(head).get_hierarchy().to_json() for head in ("Root1", "Root2")
    }

    def render(head: str) -> str:
        return directory.get_collection(head).get_hierarchy().to_json()

    heads = ["Root1", "Root2"] * 50
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(render, heads))

    assert results == [expected[head] for head in heads]


def test_display_multiple_heads_with_acls(directory: GroupDirectory) -> None:
    acls = [GroupAcl(group="R", local_name="Remote", roles=["owner"])]

    views = directory.get_groups_for_display(["Root", "Root2"], acls)

    assert [view.short_id for view in views] == ["Root", "Root2"]
    assert views[1].children[0].name == "Remote"
    assert views[1].children[0].roles == ["owner"]


def test_display_missing_head_fails_whole_request(directory: GroupDirectory) -> None:
    with pytest.raises(HierarchyUnavailableError) as excinfo:
        directory.get_groups_for_display(["Root", "Unknown"])
    assert excinfo.value.code == "groups-not-all-found"
    assert excinfo.value.__cause__.code == "group-list-not-found"
