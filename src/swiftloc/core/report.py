"""
Report models and renderers.

Findings are plain data: validators return them, the CLI decides what
they mean for the exit code.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .extractor import ExtractedString

PASSING_SCORE = 4


def _now() -> datetime:
    return datetime.now(timezone.utc)


def render_json(payload: Any) -> str:
    """Dump a report (or its dict) as pretty JSON with sorted keys."""
    if hasattr(payload, "to_dict"):
        payload = payload.to_dict()
    return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False)


# ========================================
# 校验结果
# ========================================

@dataclass(frozen=True)
class MissingKeyError:
    key: str
    file: str
    line: int

    def to_dict(self) -> dict:
        return {'key': self.key, 'file': self.file, 'line': self.line}


@dataclass(frozen=True)
class PlaceholderError:
    """First specifier incompatibility found in one unit."""

    key: str
    source: str
    target: str
    kind: str
    message: str
    source_count: int = 0
    target_count: int = 0
    position: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            'key': self.key,
            'source': self.source,
            'target': self.target,
            'kind': self.kind,
            'error': self.message,
        }


@dataclass
class ValidationReport:
    missing_keys: list[MissingKeyError] = field(default_factory=list)
    placeholder_errors: list[PlaceholderError] = field(default_factory=list)
    unused_keys: list[str] = field(default_factory=list)
    duplicate_keys: dict[str, list[ExtractedString]] = field(default_factory=dict)
    source_language: str = "unknown"
    target_language: str = "unknown"
    validated_at: datetime = field(default_factory=_now)

    @property
    def has_errors(self) -> bool:
        # 未使用 / 重复 key 仅作提示，不计入错误
        return bool(self.missing_keys or self.placeholder_errors)

    @property
    def total_errors(self) -> int:
        return len(self.missing_keys) + len(self.placeholder_errors)

    def to_dict(self) -> dict:
        return {
            'missingKeys': [e.to_dict() for e in self.missing_keys],
            'placeholderErrors': [e.to_dict() for e in self.placeholder_errors],
            'unusedKeys': list(self.unused_keys),
            'duplicateKeys': {
                key: [{'file': s.source_file, 'line': s.line} for s in occurrences]
                for key, occurrences in self.duplicate_keys.items()
            },
            'sourceLanguage': self.source_language,
            'targetLanguage': self.target_language,
            'validatedAt': self.validated_at.isoformat(),
        }

    def render_text(self) -> str:
        lines = [
            "Validation Report",
            "=================",
            f"Source Language: {self.source_language}",
            f"Target Language: {self.target_language}",
            "",
        ]

        if self.missing_keys:
            lines.append(f"Missing Keys ({len(self.missing_keys)}):")
            for e in self.missing_keys:
                lines.append(f"  - {e.key} ({e.file}:{e.line})")
            lines.append("")

        if self.placeholder_errors:
            lines.append(f"Placeholder Errors ({len(self.placeholder_errors)}):")
            for e in self.placeholder_errors:
                lines.append(f"  - {e.key}: {e.message}")
                lines.append(f'    Source: "{e.source}"')
                lines.append(f'    Target: "{e.target}"')
            lines.append("")

        if self.unused_keys:
            lines.append(f"Unused Keys ({len(self.unused_keys)}):")
            lines.extend(f"  - {key}" for key in self.unused_keys)
            lines.append("")

        if self.duplicate_keys:
            lines.append(f"Duplicate Keys ({len(self.duplicate_keys)}):")
            for key, occurrences in self.duplicate_keys.items():
                places = ", ".join(f"{s.source_file}:{s.line}" for s in occurrences)
                lines.append(f"  - {key} ({places})")
            lines.append("")

        if self.has_errors:
            lines.append(f"Total Errors: {self.total_errors}")
        else:
            lines.append("No validation errors found.")
        return "\n".join(lines)


# ========================================
# AI 质量评审结果
# ========================================

@dataclass(frozen=True)
class QualityScores:
    meaning: int
    tone: int
    completeness: int

    @property
    def average(self) -> float:
        return (self.meaning + self.tone + self.completeness) / 3.0

    @property
    def minimum(self) -> int:
        return min(self.meaning, self.tone, self.completeness)

    def to_dict(self) -> dict:
        return {'meaning': self.meaning, 'tone': self.tone, 'completeness': self.completeness}


@dataclass(frozen=True)
class QualityResult:
    key: str
    source: str
    target: str
    scores: QualityScores
    issues: tuple[str, ...] = ()

    @property
    def is_passing(self) -> bool:
        return self.scores.minimum >= PASSING_SCORE and not self.issues

    def to_dict(self) -> dict:
        return {
            'key': self.key,
            'source': self.source,
            'target': self.target,
            'scores': self.scores.to_dict(),
            'issues': list(self.issues),
        }


@dataclass
class QualityReport:
    results: list[QualityResult]
    model: str
    analyzed_at: datetime = field(default_factory=_now)

    @property
    def average_score(self) -> float:
        all_scores = [
            score
            for r in self.results
            for score in (r.scores.meaning, r.scores.tone, r.scores.completeness)
        ]
        return sum(all_scores) / len(all_scores) if all_scores else 0.0

    @property
    def flagged(self) -> list[QualityResult]:
        return [r for r in self.results if not r.is_passing]

    @property
    def flagged_count(self) -> int:
        return len(self.flagged)

    def to_dict(self) -> dict:
        return {
            'qualityResults': [r.to_dict() for r in self.results],
            'averageScore': self.average_score,
            'flaggedTranslations': self.flagged_count,
            'analyzedAt': self.analyzed_at.isoformat(),
            'model': self.model,
        }

    def render_text(self) -> str:
        lines = [
            "AI Quality Analysis",
            "===================",
            f"Model: {self.model}",
            f"Average Score: {self.average_score:.1f}/5.0",
            f"Flagged Translations: {self.flagged_count}",
            "",
        ]
        flagged = self.flagged
        if flagged:
            lines.append("Quality Issues:")
            for r in flagged:
                lines.append(f"  - {r.key}")
                lines.append(
                    f"    Scores: meaning={r.scores.meaning} tone={r.scores.tone} "
                    f"completeness={r.scores.completeness}"
                )
                lines.extend(f"    Issue: {issue}" for issue in r.issues)
        else:
            lines.append("All translations passed quality checks.")
        return "\n".join(lines)


# ========================================
# 覆盖率
# ========================================

@dataclass(frozen=True)
class CoverageReport:
    file: str
    total: int
    translated: int
    untranslated: int

    @property
    def coverage_percent(self) -> float:
        return self.translated / self.total * 100 if self.total else 0.0

    def to_dict(self) -> dict:
        return {
            'file': self.file,
            'totalStrings': self.total,
            'translatedStrings': self.translated,
            'untranslatedStrings': self.untranslated,
            'coveragePercent': self.coverage_percent,
        }

    def render_text(self) -> str:
        return "\n".join([
            "Translation Coverage Report",
            "===========================",
            f"File: {self.file}",
            "",
            f"Total Strings: {self.total}",
            f"Translated: {self.translated}",
            f"Untranslated: {self.untranslated}",
            f"Coverage: {self.coverage_percent:.1f}%",
        ])
