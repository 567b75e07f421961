"""Domain model for scanned directories.

This package contains non-UI primitives:
- entry/listing datatypes and sort policies
- directory enumeration with per-entry error capture
- the LRU listing cache
- poll-based change signatures
"""

from __future__ import annotations

from .cache import DEFAULT_CACHE_CAPACITY, DirectoryCache
from .fs import build_entry, entry_access_error, probe_directory, scan_directory
from .sorting import name_sort_key, resort_listing, sort_entries
from .types import DirectoryListing, Entry, EntryKind, SortKey, SortPolicy
from .watch import DirectorySignature, DirectoryWatch, build_directory_signature

__all__ = [
    "DEFAULT_CACHE_CAPACITY",
    "DirectoryCache",
    "build_entry",
    "entry_access_error",
    "probe_directory",
    "scan_directory",
    "name_sort_key",
    "resort_listing",
    "sort_entries",
    "DirectoryListing",
    "Entry",
    "EntryKind",
    "SortKey",
    "SortPolicy",
    "DirectorySignature",
    "DirectoryWatch",
    "build_directory_signature",
]
