"""
Format specifier detection for localized strings.

This module provides functions to:
- Parse printf-style specifiers (%@, %d, %2$@, %.2f, %lld, %% ...)
- Resolve the effective position of each specifier
- Summarize specifier types for comparison
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

# ========================================
# 格式说明符匹配
# ========================================
# %[N$][flags][width][.precision][length]conversion
SPECIFIER_RE = re.compile(
    r"%"
    r"(?:(?P<position>\d+)\$)?"
    r"[-+0 #]*"
    r"(?:\d+|\*)?"
    r"(?:\.(?:\d+|\*))?"
    r"(?:hh|h|ll|l|L|z|j|t)?"
    r"(?P<type>[@dDiuUxXoOeEfFgGcCsSpan%])"
)


@dataclass(frozen=True)
class FormatSpecifier:
    """One format specifier found in a string."""

    raw: str
    offset: int
    type_char: str
    positional_index: Optional[int] = None

    @property
    def is_positional(self) -> bool:
        return self.positional_index is not None


def parse_specifiers(text: str) -> list[FormatSpecifier]:
    """
    Extract format specifiers in left-to-right order.

    A literal ``%%`` counts as a specifier of type ``%``.

    Args:
        text: Input text

    Returns:
        List of FormatSpecifier

    Example:
        >>> [s.raw for s in parse_specifiers("100%% complete with %d items")]
        ['%%', '%d']
    """
    specs = []
    for m in SPECIFIER_RE.finditer(text or ""):
        position = m.group("position")
        specs.append(FormatSpecifier(
            raw=m.group(0),
            offset=m.start(),
            type_char=m.group("type"),
            positional_index=int(position) if position is not None else None,
        ))
    return specs


def has_positional(specs: list[FormatSpecifier]) -> bool:
    """任一说明符使用了显式 %N$ 位置语法"""
    return any(s.is_positional for s in specs)


def position_type_map(specs: list[FormatSpecifier]) -> dict[int, str]:
    """
    Map effective position to type character.

    Explicit ``%N$`` specifiers use ``N``; the others use their 1-based
    occurrence index within ``specs``. A repeated position keeps the last
    type seen.
    """
    positions: dict[int, str] = {}
    for index, spec in enumerate(specs, 1):
        position = spec.positional_index if spec.is_positional else index
        positions[position] = spec.type_char
    return positions


def type_signature(specs: list[FormatSpecifier]) -> list[str]:
    """排序后的类型字符列表（忽略顺序，只比较多重集）"""
    return sorted(s.type_char for s in specs)
