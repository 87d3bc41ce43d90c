"""
Pytest 配置文件

为所有测试配置共享的 fixtures 和设置
"""

import sys
from pathlib import Path

import pytest

# 添加 src 目录到 Python 路径（未安装时也可直接运行测试）
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from swiftloc.core.catalog import Catalog, CatalogFile, CatalogUnit  # noqa: E402
from swiftloc.core.extractor import ExtractedString  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """避免读取开发机上的配置文件或环境变量"""
    monkeypatch.delenv("SWIFTLOC_CONFIG", raising=False)
    monkeypatch.delenv("OLLAMA_HOST", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_catalog():
    """构造单文件目录：units 为 (id, source, target, note) 元组"""
    def _make(*units, original="Localizable.strings", source_language="en", target_language="fr"):
        return Catalog(files=[CatalogFile(
            original=original,
            source_language=source_language,
            target_language=target_language,
            units=[CatalogUnit(*u) for u in units],
        )])
    return _make


@pytest.fixture
def make_string():
    def _make(key, value=None, comment="", table=None, source_file="App.swift", line=1):
        return ExtractedString(
            key=key,
            default_value=key if value is None else value,
            comment=comment,
            table=table,
            source_file=source_file,
            line=line,
        )
    return _make


@pytest.fixture
def swift_project(tmp_path):
    """一个小型 Swift 工程目录"""
    root = tmp_path / "Sources"
    (root / "Views").mkdir(parents=True)
    (root / "App.swift").write_text(
        'import SwiftUI\n'
        '\n'
        'let title = NSLocalizedString("app_title", comment: "Main window title")\n',
        encoding="utf-8",
    )
    (root / "Views" / "Home.swift").write_text(
        'struct Home: View {\n'
        '    var body: some View {\n'
        '        Text(String(localized: "home_greeting", defaultValue: "Hello, %@!", comment: "Greeting"))\n'
        '        Text(LocalizedStringResource("home_count"))\n'
        '    }\n'
        '}\n',
        encoding="utf-8",
    )
    (root / "README.md").write_text('NSLocalizedString("not_swift", comment: "ignored")\n', encoding="utf-8")
    return root
