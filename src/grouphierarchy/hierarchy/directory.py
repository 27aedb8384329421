"""In-memory group store serving hierarchy collections through a read-through cache."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict, defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, MutableMapping, Sequence, Set

from grouphierarchy.config.policies import GroupHierarchyPolicy
from grouphierarchy.entities.core import GroupAcl, GroupRecord, now_ms
from grouphierarchy.exceptions import HierarchyUnavailableError
from grouphierarchy.utils.logging import get_logger

from .collection import GroupCollection
from .projection import HierarchyView, enrich_with_acls, view_from_record_set


@dataclass(slots=True)
class _CacheEntry:
    collection: GroupCollection
    expires_at: float


class GroupDirectory:
    """Hold group records and hand out per-request hierarchy collections.

    Records are stored and returned as clones, and every collection handed out
    is a fresh copy, so concurrent callers never observe each other's state.
    """

    def __init__(
        self,
        policy: GroupHierarchyPolicy | None = None,
        groups: Iterable[GroupRecord] = (),
    ) -> None:
        self._policy = policy or GroupHierarchyPolicy()
        self._groups: Dict[str, GroupRecord] = {}
        self._order: Dict[str, int] = {}
        self._referring_index: MutableMapping[str, Set[str]] = defaultdict(set)
        self._cache: "OrderedDict[str, _CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()
        self._stats = {"hits": 0, "misses": 0, "flushes": 0}
        self._logger = get_logger(component="group-directory")
        for group in groups:
            self.upsert(group)

    def __len__(self) -> int:
        return len(self._groups)

    def __contains__(self, short_id: object) -> bool:
        return short_id in self._groups

    @property
    def policy(self) -> GroupHierarchyPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    def upsert(self, group: GroupRecord) -> None:
        if group.virtual:
            self._logger.debug("Skipping virtual group", short_id=group.short_id)
            return
        with self._lock:
            previous = self._groups.get(group.short_id)
            if previous is not None:
                self._unindex(previous)
                self.flush_group(previous)
            stored = group.clone()
            self._groups[stored.short_id] = stored
            self._order.setdefault(stored.short_id, len(self._order))
            for ref in stored.referring_groups:
                self._referring_index[ref].add(stored.short_id)
            self.flush_group(stored)

    def get(self, short_id: str) -> GroupRecord:
        with self._lock:
            group = self._groups.get(short_id)
            if group is None:
                raise HierarchyUnavailableError(
                    f"group '{short_id}' not found", code="groups-get-not-found"
                )
            return group.clone()

    def _unindex(self, group: GroupRecord) -> None:
        for ref in group.referring_groups:
            referrers = self._referring_index.get(ref)
            if referrers is None:
                continue
            referrers.discard(group.short_id)
            if not referrers:
                del self._referring_index[ref]

    def find_hierarchy_members(self, short_id: str) -> List[GroupRecord]:
        """Return the group ``short_id`` and every group referring to it."""

        with self._lock:
            wanted = set(self._referring_index.get(short_id, ()))
            if short_id in self._groups:
                wanted.add(short_id)
            ordered = sorted(wanted, key=self._order.__getitem__)
            return [self._groups[member].clone() for member in ordered]

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------
    def build_collection(self, short_id: str) -> GroupCollection:
        members = self.find_hierarchy_members(short_id)
        if not members:
            raise HierarchyUnavailableError(
                f"no groups found for hierarchy '{short_id}'", code="group-list-not-found"
            )
        head = next((group for group in members if group.short_id == short_id), None)
        if head is None:
            raise HierarchyUnavailableError(
                f"hierarchy '{short_id}' has members but no head record",
                code="group-list-head-less",
            )
        collection = GroupCollection(head, self._policy.max_depth)
        collection.add_elements(group for group in members if group is not head)
        return collection

    def get_collection(self, short_id: str) -> GroupCollection:
        """Return a private copy of the collection headed by ``short_id``."""

        if self._policy.cache_max_size == 0:
            return self.build_collection(short_id)
        with self._lock:
            now = time.monotonic()
            entry = self._cache.get(short_id)
            if entry is not None and entry.expires_at > now:
                self._stats["hits"] += 1
                self._cache.move_to_end(short_id)
                return entry.collection.clone()
            self._stats["misses"] += 1
            collection = self.build_collection(short_id)
            self._cache[short_id] = _CacheEntry(
                collection=collection,
                expires_at=now + self._policy.cache_expiration_seconds,
            )
            self._cache.move_to_end(short_id)
            while len(self._cache) > self._policy.cache_max_size:
                evicted, _ = self._cache.popitem(last=False)
                self._logger.debug("Evicted cached hierarchy", head=evicted)
            return collection.clone()

    def flush_group(self, group: GroupRecord) -> None:
        """Drop cached hierarchies that may contain ``group``."""

        with self._lock:
            for key in (group.short_id, *group.referring_groups):
                if self._cache.pop(key, None) is not None:
                    self._stats["flushes"] += 1

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def attach(self, child_short_id: str, parent_short_id: str) -> GroupRecord:
        """Attach a group under another one, enforcing the configured max depth.

        Only the child's referring set is rewritten; groups already below the
        child keep their recorded chain.
        """

        with self._lock:
            child = self.get(child_short_id)
            parent = self.get(parent_short_id)
            child.add_under_group(parent, self._policy.max_depth)
            self.upsert(child)
            self._logger.info(
                "Attached group",
                short_id=child_short_id,
                parent=parent_short_id,
                depth=len(child.referring_groups),
            )
            return child.clone()

    def deactivate(self, short_id: str) -> GroupRecord:
        with self._lock:
            group = self.get(short_id)
            group.active = False
            group.deletion_date_ms = now_ms()
            self.upsert(group)
            self._logger.info("Deactivated group", short_id=short_id)
            return group.clone()

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def get_groups_for_display(
        self,
        short_ids: Sequence[str],
        acls: Sequence[GroupAcl] | None = None,
    ) -> List[HierarchyView]:
        """Return one projected hierarchy per head, decorated with ``acls``."""

        views: List[HierarchyView] = []
        for short_id in short_ids:
            try:
                collection = self.get_collection(short_id)
                view = view_from_record_set(collection)
            except HierarchyUnavailableError as exc:
                self._logger.warning("Hierarchy not available", head=short_id, reason=exc.code)
                raise HierarchyUnavailableError(
                    f"hierarchy '{short_id}' could not be produced",
                    code="groups-not-all-found",
                ) from exc
            if acls:
                enrich_with_acls(view, acls)
            views.append(view)
        return views

    def statistics(self) -> Dict[str, int]:
        with self._lock:
            return {
                "groups": len(self._groups),
                "cached_hierarchies": len(self._cache),
                **self._stats,
            }


__all__ = ["GroupDirectory"]
