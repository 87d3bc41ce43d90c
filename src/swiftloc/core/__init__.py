"""
swiftloc 核心模块

提取、目录合并、占位符校验、key 对账与质量评审
"""

from . import catalog
from .catalog import Catalog, CatalogFile, CatalogUnit
from .extractor import ExtractedString, ExtractionResult, StringExtractor
from .reconciler import find_duplicate_keys, find_missing_keys, find_unused_keys
from .report import CoverageReport, QualityReport, ValidationReport
from .reviewer import OllamaClient, PromptBuilder, QualityReviewer
from .validator import PlaceholderValidator

__all__ = [
    'catalog',
    'Catalog',
    'CatalogFile',
    'CatalogUnit',
    'ExtractedString',
    'ExtractionResult',
    'StringExtractor',
    'find_duplicate_keys',
    'find_missing_keys',
    'find_unused_keys',
    'CoverageReport',
    'QualityReport',
    'ValidationReport',
    'OllamaClient',
    'PromptBuilder',
    'QualityReviewer',
    'PlaceholderValidator',
]
