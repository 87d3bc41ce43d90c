"""
XLIFF 1.2 翻译目录

- 数据模型：Catalog / CatalogFile / CatalogUnit
- 生成：从提取结果创建新目录
- 合并：只追加新 key，绝不覆盖已有译文与备注
- 读写：lxml 解析与序列化，写入为原子替换
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Optional

from lxml import etree

from ..utils.io import write_bytes_file
from ..utils.logger import CatalogError, FileOperationError
from .extractor import ExtractedString
from .report import CoverageReport

logger = logging.getLogger(__name__)

XLIFF_VERSION = "1.2"
XLIFF_NAMESPACE = "urn:oasis:names:tc:xliff:document:1.2"
DEFAULT_ORIGINAL = "Localizable.strings"
DEFAULT_DATATYPE = "plaintext"


@dataclass
class CatalogUnit:
    """A trans-unit. ``target is None`` means untranslated."""

    id: str
    source: str
    target: Optional[str] = None
    note: Optional[str] = None

    @property
    def is_translated(self) -> bool:
        return bool(self.target)


@dataclass
class CatalogFile:
    original: str
    source_language: str
    target_language: str
    units: list[CatalogUnit] = field(default_factory=list)
    datatype: str = DEFAULT_DATATYPE

    def unit_ids(self) -> set[str]:
        return {u.id for u in self.units}


@dataclass
class Catalog:
    files: list[CatalogFile] = field(default_factory=list)
    version: str = XLIFF_VERSION
    xmlns: str = XLIFF_NAMESPACE

    def iter_units(self) -> Iterator[tuple[CatalogFile, CatalogUnit]]:
        for f in self.files:
            for unit in f.units:
                yield f, unit

    def unit_ids(self) -> set[str]:
        """所有文件中 trans-unit id 的并集"""
        ids: set[str] = set()
        for f in self.files:
            ids.update(f.unit_ids())
        return ids

    @property
    def source_language(self) -> str:
        return self.files[0].source_language if self.files else "unknown"

    @property
    def target_language(self) -> str:
        return self.files[0].target_language if self.files else "unknown"


def unit_from_string(string: ExtractedString) -> CatalogUnit:
    # 空注释映射为 None，序列化时整个 <note> 元素都会省略
    return CatalogUnit(
        id=string.key,
        source=string.default_value,
        target=None,
        note=string.comment or None,
    )


def generate(
    strings: Iterable[ExtractedString],
    source_language: str,
    target_language: str,
    original: str = DEFAULT_ORIGINAL
) -> Catalog:
    """
    Build a single-file catalog from extracted strings.

    Every string becomes a unit in extraction order, untranslated.
    """
    units = [unit_from_string(s) for s in strings]
    catalog_file = CatalogFile(
        original=original,
        source_language=source_language,
        target_language=target_language,
        units=units,
    )
    return Catalog(files=[catalog_file])


def merge(existing: Catalog, new_strings: Iterable[ExtractedString]) -> Catalog:
    """
    Append units for keys not already present; existing units are untouched.

    Each file of a multi-file catalog is merged independently, so new keys
    are appended to every file entry.

    Args:
        existing: Catalog to update in place
        new_strings: Freshly extracted strings

    Returns:
        The same catalog object
    """
    new_strings = list(new_strings)
    for catalog_file in existing.files:
        present = catalog_file.unit_ids()
        added = 0
        for string in new_strings:
            if string.key in present:
                continue
            catalog_file.units.append(unit_from_string(string))
            present.add(string.key)
            added += 1
        logger.info(f"Merged {added} new key(s) into '{catalog_file.original}'")
    return existing


# ========================================
# XLIFF 读写
# ========================================

def _local_name(element) -> str:
    return etree.QName(element).localname


def _children(element, name: str) -> list:
    return [c for c in element if isinstance(c.tag, str) and _local_name(c) == name]


def _child(element, name: str):
    found = _children(element, name)
    return found[0] if found else None


def _text_of(element) -> str:
    # 只取元素内的文本（忽略内联标签本身）
    return "".join(element.itertext())


def parse_catalog(data: bytes, path: Optional[str | Path] = None) -> Catalog:
    """
    Parse XLIFF bytes. Namespaced and plain documents are both accepted.

    Raises:
        CatalogError: Malformed XML or missing required structure
    """
    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=False)
    try:
        root = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise CatalogError("Malformed XLIFF document", file_path=path, cause=e) from e

    if _local_name(root) != "xliff":
        raise CatalogError(f"Unexpected root element <{_local_name(root)}>", file_path=path)

    catalog = Catalog(
        version=root.get("version", XLIFF_VERSION),
        xmlns=etree.QName(root).namespace or XLIFF_NAMESPACE,
    )

    for file_el in _children(root, "file"):
        catalog_file = CatalogFile(
            original=file_el.get("original", ""),
            source_language=file_el.get("source-language", ""),
            target_language=file_el.get("target-language", ""),
            datatype=file_el.get("datatype", DEFAULT_DATATYPE),
        )
        body = _child(file_el, "body")
        unit_parent = body if body is not None else file_el
        for unit_el in _children(unit_parent, "trans-unit"):
            unit_id = unit_el.get("id")
            if unit_id is None:
                raise CatalogError(
                    f"trans-unit without id in file '{catalog_file.original}'",
                    file_path=path,
                    line=unit_el.sourceline,
                )
            source_el = _child(unit_el, "source")
            if source_el is None:
                raise CatalogError(
                    f"trans-unit '{unit_id}' has no <source>",
                    file_path=path,
                    line=unit_el.sourceline,
                )
            target_el = _child(unit_el, "target")
            note_el = _child(unit_el, "note")
            catalog_file.units.append(CatalogUnit(
                id=unit_id,
                source=_text_of(source_el),
                target=_text_of(target_el) if target_el is not None else None,
                note=_text_of(note_el) if note_el is not None else None,
            ))
        catalog.files.append(catalog_file)

    return catalog


def serialize_catalog(catalog: Catalog) -> bytes:
    """Serialize to pretty-printed UTF-8 XLIFF with an XML declaration."""
    ns = catalog.xmlns or XLIFF_NAMESPACE

    def q(tag: str) -> str:
        return f"{{{ns}}}{tag}"

    root = etree.Element(q("xliff"), nsmap={None: ns})
    root.set("version", catalog.version)

    for catalog_file in catalog.files:
        file_el = etree.SubElement(root, q("file"))
        file_el.set("original", catalog_file.original)
        file_el.set("source-language", catalog_file.source_language)
        file_el.set("target-language", catalog_file.target_language)
        file_el.set("datatype", catalog_file.datatype)
        body = etree.SubElement(file_el, q("body"))
        for unit in catalog_file.units:
            unit_el = etree.SubElement(body, q("trans-unit"))
            unit_el.set("id", unit.id)
            etree.SubElement(unit_el, q("source")).text = unit.source
            if unit.target is not None:
                etree.SubElement(unit_el, q("target")).text = unit.target
            if unit.note is not None:
                etree.SubElement(unit_el, q("note")).text = unit.note

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)


def read(path: str | Path) -> Catalog:
    """
    Load a catalog from disk.

    Raises:
        FileOperationError: File missing or unreadable
        CatalogError: Malformed catalog
    """
    p = Path(path)
    if not p.is_file():
        raise FileOperationError(f"XLIFF file not found: {p}", file_path=p)
    try:
        data = p.read_bytes()
    except OSError as e:
        raise FileOperationError(f"Failed to read XLIFF file: {p}", file_path=p, error=str(e)) from e
    catalog = parse_catalog(data, path=p)
    logger.debug(f"Loaded {sum(len(f.units) for f in catalog.files)} unit(s) from {p}")
    return catalog


def write(catalog: Catalog, path: str | Path) -> None:
    """原子写入：要么完整替换旧文件，要么失败且旧文件保持不变"""
    try:
        data = serialize_catalog(catalog)
    except ValueError as e:
        # lxml 拒绝 XML 不允许的控制字符
        raise CatalogError("Failed to encode XLIFF document", file_path=path, cause=e) from e
    write_bytes_file(path, data)
    logger.info(f"Wrote XLIFF catalog to {path}")


def update_or_create(
    path: str | Path,
    strings: Iterable[ExtractedString],
    source_language: str,
    target_language: str,
    original: str = DEFAULT_ORIGINAL
) -> Catalog:
    """
    Merge into the catalog at ``path`` if it exists, otherwise generate a
    fresh one; then persist it.
    """
    p = Path(path)
    if p.exists():
        catalog = merge(read(p), strings)
    else:
        catalog = generate(strings, source_language, target_language, original=original)
    write(catalog, p)
    return catalog


def coverage(catalog: Catalog, file_label: str = "") -> CoverageReport:
    """统计已翻译 / 未翻译数量与覆盖率"""
    total = 0
    translated = 0
    for _, unit in catalog.iter_units():
        total += 1
        if unit.is_translated:
            translated += 1
    return CoverageReport(
        file=file_label,
        total=total,
        translated=translated,
        untranslated=total - translated,
    )
