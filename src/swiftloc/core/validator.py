"""
占位符兼容性检查器

对每个已翻译的 trans-unit 比较原文与译文的格式说明符：
1. 数量不一致 → count_mismatch
2. 任一侧含 %N$ → 按位置比较（缺失位置 / 位置类型不一致）
3. 否则比较排序后的类型多重集（允许语序调整）

每个 unit 最多报告一个问题（第一个发现的问题）。
"""

from __future__ import annotations

import logging
from typing import Optional

from ..utils.placeholder import (
    FormatSpecifier,
    has_positional,
    parse_specifiers,
    position_type_map,
    type_signature,
)
from .catalog import Catalog
from .report import PlaceholderError

logger = logging.getLogger(__name__)

COUNT_MISMATCH = "count_mismatch"
MISSING_POSITIONAL = "missing_positional"
POSITIONAL_TYPE_MISMATCH = "positional_type_mismatch"
TYPE_MISMATCH = "type_mismatch"


class PlaceholderValidator:
    """格式说明符校验器"""

    def validate(self, catalog: Catalog) -> list[PlaceholderError]:
        """
        校验整个目录

        Args:
            catalog: XLIFF 目录

        Returns:
            按目录顺序排列的错误列表（每个 unit 至多一条）
        """
        errors = []
        checked = 0
        for _, unit in catalog.iter_units():
            # 未翻译（None 或空字符串）不检查
            if not unit.target:
                continue
            checked += 1
            error = self.compare(unit.id, unit.source, unit.target)
            if error:
                errors.append(error)

        logger.debug(f"Placeholder check: {checked} translated unit(s), {len(errors)} error(s)")
        return errors

    def compare(self, key: str, source: str, target: str) -> Optional[PlaceholderError]:
        """比较单个原文 / 译文对"""
        source_specs = parse_specifiers(source)
        target_specs = parse_specifiers(target)

        if len(source_specs) != len(target_specs):
            return PlaceholderError(
                key=key,
                source=source,
                target=target,
                kind=COUNT_MISMATCH,
                message=(
                    f"Count mismatch: source has {len(source_specs)} placeholder(s), "
                    f"target has {len(target_specs)}"
                ),
                source_count=len(source_specs),
                target_count=len(target_specs),
            )

        if has_positional(source_specs) or has_positional(target_specs):
            return self._compare_positional(key, source, target, source_specs, target_specs)

        if type_signature(source_specs) != type_signature(target_specs):
            source_summary = ", ".join(s.raw for s in source_specs)
            target_summary = ", ".join(s.raw for s in target_specs)
            return PlaceholderError(
                key=key,
                source=source,
                target=target,
                kind=TYPE_MISMATCH,
                message=f"Type mismatch: source has [{source_summary}], target has [{target_summary}]",
                source_count=len(source_specs),
                target_count=len(target_specs),
            )

        return None

    def _compare_positional(
        self,
        key: str,
        source: str,
        target: str,
        source_specs: list[FormatSpecifier],
        target_specs: list[FormatSpecifier]
    ) -> Optional[PlaceholderError]:
        source_positions = position_type_map(source_specs)
        target_positions = position_type_map(target_specs)
        counts = {'source_count': len(source_specs), 'target_count': len(target_specs)}

        for position in sorted(source_positions):
            source_type = source_positions[position]
            target_type = target_positions.get(position)

            if target_type is None:
                return PlaceholderError(
                    key=key,
                    source=source,
                    target=target,
                    kind=MISSING_POSITIONAL,
                    message=f"Missing positional placeholder %{position}$ in target",
                    position=position,
                    **counts,
                )

            if source_type != target_type:
                return PlaceholderError(
                    key=key,
                    source=source,
                    target=target,
                    kind=POSITIONAL_TYPE_MISMATCH,
                    message=(
                        f"Type mismatch at position {position}: "
                        f"source is {source_type}, target is {target_type}"
                    ),
                    position=position,
                    **counts,
                )

        return None
