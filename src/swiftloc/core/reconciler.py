"""
Catalog reconciliation: compare extracted keys with catalog unit ids.

- missing keys: used in source, absent from every catalog file
- unused keys: present in the catalog, never referenced in source
- duplicate keys: extracted more than once (catalog ids cannot express this)
"""

from __future__ import annotations

import logging
from typing import Iterable

from .catalog import Catalog
from .extractor import ExtractedString
from .report import MissingKeyError

logger = logging.getLogger(__name__)


def find_missing_keys(strings: Iterable[ExtractedString], catalog: Catalog) -> list[MissingKeyError]:
    """Extracted strings whose key is in no catalog file, in extraction order."""
    catalog_ids = catalog.unit_ids()
    missing = [
        MissingKeyError(key=s.key, file=s.source_file, line=s.line)
        for s in strings
        if s.key not in catalog_ids
    ]
    logger.debug(f"Found {len(missing)} missing key(s)")
    return missing


def find_unused_keys(strings: Iterable[ExtractedString], catalog: Catalog) -> list[str]:
    """Catalog unit ids with no source reference, in catalog order."""
    source_keys = {s.key for s in strings}
    return [unit.id for _, unit in catalog.iter_units() if unit.id not in source_keys]


def find_duplicate_keys(strings: Iterable[ExtractedString]) -> dict[str, list[ExtractedString]]:
    """Group extracted strings by key; keep groups with more than one occurrence."""
    groups: dict[str, list[ExtractedString]] = {}
    for s in strings:
        groups.setdefault(s.key, []).append(s)
    return {key: occurrences for key, occurrences in groups.items() if len(occurrences) > 1}
