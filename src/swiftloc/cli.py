#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
swiftloc - 命令行入口

子命令：
- extract: 从 Swift 源码提取本地化字符串并生成 / 合并 XLIFF
- validate: 校验 XLIFF（占位符、缺失 key、AI 质量评审）
- report: 统计翻译覆盖率

用法:
    swiftloc <command> [options]
    swiftloc --help
    swiftloc <command> --help
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from . import __version__
from .core import catalog as xliff
from .core.extractor import StringExtractor
from .core.reconciler import find_duplicate_keys, find_missing_keys, find_unused_keys
from .core.report import QualityReport, ValidationReport, render_json
from .core.reviewer import OllamaClient, QualityReviewer
from .core.validator import PlaceholderValidator
from .utils.config import ToolConfig, load_config
from .utils.io import write_text_file
from .utils.logger import APIError, SwiftLocError, get_logger, setup_logger

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_QUALITY_FAILED = 2

console = Console(soft_wrap=True)


def _echo(text: str = "") -> None:
    # 报告中含有 [..]，关闭 rich markup 与高亮
    console.print(text, markup=False, highlight=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="swiftloc",
        description="Automated localization extraction and validation for Swift projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  swiftloc extract -s Sources/ -o Localizable.xliff --target-language de
  swiftloc extract -s Sources/ -o Localizable.xliff --merge
  swiftloc validate -x Localizable.xliff -s Sources/ --all
  swiftloc validate -x Localizable.xliff --quality --model llama3.2
  swiftloc report -x Localizable.xliff --format json
        """
    )
    parser.add_argument("--version", action="version", version=f"swiftloc {__version__}")
    parser.add_argument("--config", help="JSON 配置文件路径")
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")
    parser.add_argument("--log-file", help="同时写入日志文件")

    sub = parser.add_subparsers(dest="command")

    p_extract = sub.add_parser("extract", help="Extract localized strings from Swift source files")
    p_extract.add_argument("-s", "--source", required=True, help="Path to source directory or file")
    p_extract.add_argument("-o", "--output", required=True, help="Output XLIFF file path")
    p_extract.add_argument("--source-language", help="Source language code (e.g., en)")
    p_extract.add_argument("--target-language", help="Target language code (e.g., fr)")
    p_extract.add_argument("--merge", action="store_true",
                           help="Merge with existing XLIFF file instead of overwriting")
    p_extract.add_argument("--json", action="store_true", help="Output extraction results as JSON")

    p_validate = sub.add_parser("validate", help="Validate XLIFF files against source code")
    p_validate.add_argument("-x", "--xliff", required=True, help="Path to XLIFF file")
    p_validate.add_argument("-s", "--source", help="Path to source directory or file")
    p_validate.add_argument("--placeholders", action="store_true", help="Check for placeholder mismatches")
    p_validate.add_argument("--missing-keys", action="store_true", help="Check for missing keys in XLIFF")
    p_validate.add_argument("--quality", action="store_true",
                            help="Run AI-powered quality checks using Ollama")
    p_validate.add_argument("--model", help="Ollama model to use for quality checks")
    p_validate.add_argument("--batch-size", type=int,
                            help="Review translations in batches of N (0 = one request per unit)")
    p_validate.add_argument("--all", action="store_true",
                            help="Run all validation checks (excludes AI quality)")
    p_validate.add_argument("--json", action="store_true", help="Output validation results as JSON")

    p_report = sub.add_parser("report", help="Generate translation coverage reports")
    p_report.add_argument("-x", "--xliff", required=True, help="Path to XLIFF file")
    p_report.add_argument("-f", "--format", choices=["text", "json"], default="text", help="Output format")
    p_report.add_argument("-o", "--output", help="Output file path (stdout if not specified)")

    return parser


# ========================================
# 子命令
# ========================================

def cmd_extract(args: argparse.Namespace, config: ToolConfig) -> int:
    log = get_logger()
    source_language = args.source_language or config.source_language
    target_language = args.target_language or config.target_language

    extractor = StringExtractor(extensions=config.source_extensions)
    try:
        result = extractor.extract_from_source(args.source)
    except SwiftLocError as e:
        log.error(str(e))
        return EXIT_FAILURE

    if args.json:
        print(render_json(result))
    else:
        _echo(f"Extracted {len(result.strings)} string(s) from {len(result.source_files)} file(s)")
        for s in result.strings:
            _echo(f'  - {s.key}: "{s.default_value}"')

    output = Path(args.output)
    try:
        if args.merge and output.exists():
            xliff.update_or_create(output, result.strings, source_language, target_language,
                                   original=config.original_name)
            message = f"Merged into existing XLIFF: {output}"
        else:
            document = xliff.generate(result.strings, source_language, target_language,
                                      original=config.original_name)
            xliff.write(document, output)
            message = f"Generated XLIFF: {output}"
    except SwiftLocError as e:
        log.error(str(e))
        return EXIT_FAILURE

    if args.json:
        log.info(message)
    else:
        _echo()
        _echo(message)
    return EXIT_OK


def cmd_validate(args: argparse.Namespace, config: ToolConfig) -> int:
    log = get_logger()
    try:
        document = xliff.read(args.xliff)
    except SwiftLocError as e:
        log.error(str(e))
        return EXIT_FAILURE

    report = ValidationReport(
        source_language=document.source_language,
        target_language=document.target_language,
    )

    if args.all or args.missing_keys:
        if args.source:
            extractor = StringExtractor(extensions=config.source_extensions)
            try:
                result = extractor.extract_from_source(args.source)
            except SwiftLocError as e:
                log.error(str(e))
                return EXIT_FAILURE
            report.missing_keys = find_missing_keys(result.strings, document)
            report.unused_keys = find_unused_keys(result.strings, document)
            report.duplicate_keys = find_duplicate_keys(result.strings)
        else:
            log.warning("--source required for missing key validation")

    if args.all or args.placeholders:
        report.placeholder_errors = PlaceholderValidator().validate(document)

    quality: Optional[QualityReport] = None
    quality_failed = False
    if args.quality:
        model = args.model or config.ollama_model
        batch_size = args.batch_size if args.batch_size is not None else config.quality_batch_size
        log.info(f"Running AI quality analysis with model: {model}...")
        with OllamaClient(config.ollama_host, timeout=config.ollama_timeout) as client:
            reviewer = QualityReviewer(client, model=model, batch_size=max(batch_size, 0))
            try:
                quality = reviewer.review(document)
            except APIError as e:
                # 质量评审失败不影响已完成的占位符 / 缺失 key 结果
                log.error(f"Quality review failed: {e}")
                quality_failed = True

    if args.json:
        if quality is not None:
            print(render_json({'validation': report.to_dict(), 'quality': quality.to_dict()}))
        else:
            print(render_json(report))
    else:
        _echo(report.render_text())
        if quality is not None:
            _echo()
            _echo(quality.render_text())

    if quality_failed:
        return EXIT_QUALITY_FAILED
    if report.has_errors or (quality is not None and quality.flagged_count > 0):
        return EXIT_FAILURE
    return EXIT_OK


def cmd_report(args: argparse.Namespace, config: ToolConfig) -> int:
    log = get_logger()
    try:
        document = xliff.read(args.xliff)
    except SwiftLocError as e:
        log.error(str(e))
        return EXIT_FAILURE

    coverage = xliff.coverage(document, file_label=args.xliff)
    content = render_json(coverage) if args.format == "json" else coverage.render_text()

    if args.output:
        try:
            write_text_file(args.output, content + "\n")
        except SwiftLocError as e:
            log.error(str(e))
            return EXIT_FAILURE
        _echo(f"Report written to: {args.output}")
    else:
        _echo(content)
    return EXIT_OK


COMMANDS = {
    "extract": cmd_extract,
    "validate": cmd_validate,
    "report": cmd_report,
}


def main(argv: Optional[list[str]] = None) -> int:
    """主入口函数"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_OK

    log = setup_logger(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    try:
        config = load_config(args.config)
    except SwiftLocError as e:
        log.error(str(e))
        return EXIT_FAILURE

    with log.timer(f"swiftloc {args.command}"):
        try:
            return COMMANDS[args.command](args, config)
        except Exception as e:
            log.exception(f"swiftloc {args.command} unexpected error: {e}")
            raise


if __name__ == "__main__":
    sys.exit(main())
