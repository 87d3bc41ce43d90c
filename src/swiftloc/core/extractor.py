"""
Swift 本地化字符串提取器

识别三种调用形式：
- NSLocalizedString("key", tableName:, bundle:, value:, comment:)
- String(localized: "key", defaultValue:, table:, bundle:, locale:, comment:)
- LocalizedStringResource("key", defaultValue:, table:, locale:, bundle:, comment:)

每种形式由「调用头正则 + 参数匹配器」组成：必需的 key 字面量之后，
带标签的可选参数可以任意缺省，但必须保持声明顺序。无法匹配的调用
直接跳过，不会抛出异常。
"""

from __future__ import annotations

import bisect
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from ..utils.io import read_text_file
from ..utils.logger import FileOperationError

logger = logging.getLogger(__name__)

SWIFT_EXTENSIONS = (".swift",)

# ========================================
# 词法单元
# ========================================
# 双引号字面量：\" 及其他反斜杠转义不终止字面量，内容原样保留
STRING_LITERAL_RE = re.compile(r'"((?:[^"\\]|\\.)*)"', re.DOTALL)
LABEL_RE = re.compile(r'([A-Za-z_][A-Za-z0-9_]*)\s*:')
WHITESPACE_RE = re.compile(r'\s*')

_OPENERS = {'(': ')', '[': ']', '{': '}'}
_CLOSERS = set(_OPENERS.values())


@dataclass(frozen=True)
class ExtractedString:
    """One localizable string found in source code."""

    key: str
    default_value: str
    comment: str = ""
    table: Optional[str] = None
    source_file: str = ""
    line: int = 0

    def to_dict(self) -> dict:
        return {
            'key': self.key,
            'value': self.default_value,
            'comment': self.comment,
            'tableName': self.table,
            'sourceFile': self.source_file,
            'lineNumber': self.line,
        }


@dataclass
class ExtractionResult:
    """Strings extracted from one file or a directory tree."""

    strings: list[ExtractedString]
    source_files: list[str]
    extracted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def unique_keys(self) -> set[str]:
        return {s.key for s in self.strings}

    def to_dict(self) -> dict:
        return {
            'strings': [s.to_dict() for s in self.strings],
            'sourceFiles': list(self.source_files),
            'extractedAt': self.extracted_at.isoformat(),
        }


@dataclass(frozen=True)
class ArgSpec:
    """A labelled argument: string literal or opaque expression."""

    label: str
    literal: bool = True


@dataclass(frozen=True)
class CallSiteGrammar:
    """
    Call-site shape: head pattern, then a required key literal, then
    labelled arguments that may each be present or absent.
    """

    name: str
    head: re.Pattern
    args: tuple[ArgSpec, ...]
    required: frozenset[str] = frozenset()
    table_label: str = "table"
    default_label: Optional[str] = "defaultValue"


NS_LOCALIZED_STRING = CallSiteGrammar(
    name="NSLocalizedString",
    head=re.compile(r'(?<!\w)NSLocalizedString\s*\('),
    args=(
        ArgSpec("tableName"),
        ArgSpec("bundle", literal=False),
        ArgSpec("value"),
        ArgSpec("comment"),
    ),
    required=frozenset({"comment"}),
    table_label="tableName",
    default_label=None,
)

STRING_LOCALIZED = CallSiteGrammar(
    name="String(localized:)",
    head=re.compile(r'(?<!\w)String\s*\(\s*localized\s*:'),
    args=(
        ArgSpec("defaultValue"),
        ArgSpec("table"),
        ArgSpec("bundle", literal=False),
        ArgSpec("locale", literal=False),
        ArgSpec("comment"),
    ),
)

LOCALIZED_STRING_RESOURCE = CallSiteGrammar(
    name="LocalizedStringResource",
    head=re.compile(r'(?<!\w)LocalizedStringResource\s*\('),
    args=(
        ArgSpec("defaultValue"),
        ArgSpec("table"),
        ArgSpec("locale", literal=False),
        ArgSpec("bundle", literal=False),
        ArgSpec("comment"),
    ),
)

GRAMMARS = (NS_LOCALIZED_STRING, STRING_LOCALIZED, LOCALIZED_STRING_RESOURCE)


def _skip_ws(text: str, pos: int) -> int:
    return WHITESPACE_RE.match(text, pos).end()


def _read_literal(text: str, pos: int) -> Optional[tuple[str, int]]:
    m = STRING_LITERAL_RE.match(text, pos)
    if not m:
        return None
    return m.group(1), m.end()


def _read_expression(text: str, pos: int) -> Optional[int]:
    """
    Skip an opaque argument expression up to the next top-level ``,`` or
    ``)``. Nested brackets and string literals are stepped over.
    Returns the end offset, or None for an empty or unterminated expression.
    """
    stack: list[str] = []
    i = pos
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            lit = _read_literal(text, i)
            if lit is None:
                return None
            i = lit[1]
            continue
        if ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in _CLOSERS:
            if not stack:
                if ch != ')':
                    return None
                break
            if stack.pop() != ch:
                return None
        elif ch == ',' and not stack:
            break
        i += 1
    else:
        return None

    if not text[pos:i].strip():
        return None
    return i


def match_call_site(grammar: CallSiteGrammar, text: str, start: int) -> Optional[dict[str, str]]:
    """
    Match the argument list of one call site.

    Args:
        grammar: Call-site grammar
        text: Full source text
        start: Offset just after the grammar's head

    Returns:
        ``{"key": ..., <label>: <literal>, ...}`` or None if the call site
        does not fit the grammar
    """
    pos = _skip_ws(text, start)
    lit = _read_literal(text, pos)
    if lit is None:
        return None
    values = {"key": lit[0]}
    pos = _skip_ws(text, lit[1])

    labels = [a.label for a in grammar.args]
    next_index = 0

    while pos < len(text) and text[pos] == ',':
        pos = _skip_ws(text, pos + 1)
        m = LABEL_RE.match(text, pos)
        if not m:
            return None
        label = m.group(1)
        try:
            index = labels.index(label, next_index)
        except ValueError:
            return None
        spec = grammar.args[index]
        pos = _skip_ws(text, m.end())

        if spec.literal:
            lit = _read_literal(text, pos)
            if lit is None:
                return None
            values[label] = lit[0]
            pos = lit[1]
        else:
            end = _read_expression(text, pos)
            if end is None:
                return None
            pos = end
        pos = _skip_ws(text, pos)
        next_index = index + 1

    if pos >= len(text) or text[pos] != ')':
        return None
    if not grammar.required.issubset(values):
        return None
    return values


class LineIndex:
    """Offset → 1-based line lookup over the original text."""

    def __init__(self, text: str):
        self._newlines = [m.start() for m in re.finditer('\n', text)]

    def line_of(self, offset: int) -> int:
        return bisect.bisect_left(self._newlines, offset) + 1


class StringExtractor:
    """Pattern-based extractor for Swift localization call sites."""

    def __init__(
        self,
        extensions: Iterable[str] = SWIFT_EXTENSIONS,
        grammars: Iterable[CallSiteGrammar] = GRAMMARS
    ):
        self.extensions = tuple(e.lower() for e in extensions)
        self.grammars = tuple(grammars)

    def extract(self, text: str, source_file: str = "") -> list[ExtractedString]:
        """
        Extract localizable strings in order of appearance.

        Never raises: call sites that do not fit a grammar yield nothing.

        Args:
            text: Source text
            source_file: Path recorded on each result

        Returns:
            List of ExtractedString
        """
        if not text:
            return []

        lines = LineIndex(text)
        found: list[tuple[int, ExtractedString]] = []

        for grammar in self.grammars:
            for head in grammar.head.finditer(text):
                values = match_call_site(grammar, text, head.end())
                if values is None:
                    logger.debug(
                        f"Unmatched {grammar.name} call site at "
                        f"{source_file or '<text>'}:{lines.line_of(head.start())}"
                    )
                    continue
                key = values["key"]
                default = values.get(grammar.default_label, key) if grammar.default_label else key
                found.append((head.start(), ExtractedString(
                    key=key,
                    default_value=default,
                    comment=values.get("comment", ""),
                    table=values.get(grammar.table_label),
                    source_file=source_file,
                    line=lines.line_of(head.start()),
                )))

        found.sort(key=lambda item: item[0])
        return [s for _, s in found]

    def extract_from_path(self, path: str | Path) -> list[ExtractedString]:
        """读取单个文件并提取（文件不可读时抛出 FileOperationError）"""
        text = read_text_file(path)
        return self.extract(text, source_file=str(path))

    def is_source_file(self, path: Path) -> bool:
        return path.is_file() and path.suffix.lower() in self.extensions

    def extract_from_directory(self, root: str | Path) -> ExtractionResult:
        """
        Walk ``root`` and extract from every source file.

        Files that cannot be read are logged and skipped.

        Args:
            root: Directory to scan

        Returns:
            ExtractionResult with strings, visited files and capture time
        """
        root_path = Path(root)
        if not root_path.is_dir():
            raise FileOperationError(f"Directory not found: {root_path}", file_path=root_path)

        strings: list[ExtractedString] = []
        source_files: list[str] = []

        for path in sorted(root_path.rglob("*")):
            if not self.is_source_file(path):
                continue
            source_files.append(str(path))
            try:
                strings.extend(self.extract_from_path(path))
            except FileOperationError as e:
                logger.warning(f"Skipping unreadable file {path}: {e}")
                continue

        logger.info(f"Extracted {len(strings)} string(s) from {len(source_files)} file(s) in {root_path}")
        return ExtractionResult(strings=strings, source_files=source_files)

    def extract_from_source(self, source: str | Path) -> ExtractionResult:
        """按路径类型分派：目录递归扫描，文件直接提取"""
        p = Path(source)
        if p.is_dir():
            return self.extract_from_directory(p)
        if not p.exists():
            raise FileOperationError(f"Source path not found: {p}", file_path=p)
        return ExtractionResult(strings=self.extract_from_path(p), source_files=[str(p)])
