from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from .models import DiscoveredItem, ItemStatus


def select_all(items: Iterable[DiscoveredItem]) -> None:
    for item in items:
        item.selected = True


def select_none(items: Iterable[DiscoveredItem]) -> None:
    for item in items:
        item.selected = False


def select_complete(items: Iterable[DiscoveredItem]) -> None:
    """Select only items that have a primary sidecar."""
    for item in items:
        item.selected = item.status is ItemStatus.COMPLETE


def select_inventory_ids(items: Iterable[DiscoveredItem], inventory_ids: Iterable[str]) -> None:
    wanted = set(inventory_ids)
    for item in items:
        item.selected = item.inventory_id in wanted


def selected_items(items: Iterable[DiscoveredItem]) -> list[DiscoveredItem]:
    return [item for item in items if item.selected]


def count_by_status(items: Iterable[DiscoveredItem]) -> dict[ItemStatus, int]:
    counts = Counter(item.status for item in items)
    return {status: counts.get(status, 0) for status in ItemStatus}


def group_by_inventory_id(items: Iterable[DiscoveredItem]) -> dict[str, list[DiscoveredItem]]:
    groups: dict[str, list[DiscoveredItem]] = {}
    for item in items:
        groups.setdefault(item.inventory_id, []).append(item)
    return groups
