"""
swiftloc - Swift 本地化工具集

提供 Swift 项目本地化的完整工具链：
- 字符串提取（NSLocalizedString / String(localized:) / LocalizedStringResource）
- XLIFF 目录生成与合并
- 占位符、缺失 key 校验
- AI 质量评审（Ollama）
"""

__version__ = "1.0.0"
__all__ = ["utils", "core", "cli"]
