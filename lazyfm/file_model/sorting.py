"""Deterministic entry ordering for listings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from .types import DirectoryListing, Entry, SortKey, SortPolicy


def name_sort_key(name: str) -> tuple[str, str]:
    """Case-insensitive name order with raw name as final tie-break."""
    return (name.casefold(), name)


def _primary_value(entry: Entry, key: SortKey) -> float:
    if key is SortKey.SIZE:
        return float(entry.size_bytes if entry.size_bytes is not None else -1)
    if key is SortKey.MODIFIED:
        return entry.modified_at if entry.modified_at is not None else float("-inf")
    return 0.0


def sort_entries(entries: Iterable[Entry], policy: SortPolicy) -> tuple[Entry, ...]:
    """Return ``entries`` ordered by ``policy``.

    Primary key is the configured field, tie-break is always ascending name
    order, and directory-like entries lead when ``directories_first`` is set.
    """
    # Stable sorts applied from least to most significant key.
    ordered = sorted(entries, key=lambda entry: name_sort_key(entry.name))
    if policy.key is SortKey.NAME:
        if policy.reverse:
            ordered = sorted(ordered, key=lambda entry: name_sort_key(entry.name), reverse=True)
    else:
        ordered.sort(key=lambda entry: _primary_value(entry, policy.key), reverse=policy.reverse)
    if policy.directories_first:
        ordered.sort(key=lambda entry: not entry.is_directory_like)
    return tuple(ordered)


def resort_listing(listing: DirectoryListing, policy: SortPolicy) -> DirectoryListing:
    """Return ``listing`` reordered for ``policy`` without touching disk."""
    if listing.sort_policy == policy:
        return listing
    return replace(listing, entries=sort_entries(listing.entries, policy), sort_policy=policy)


__all__ = ["name_sort_key", "sort_entries", "resort_listing"]
