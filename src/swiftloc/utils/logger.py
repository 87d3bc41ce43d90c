"""
Unified logging system for swiftloc.

Provides:
- Console logging through rich, optional file output
- Timing helper for long-running operations
- Custom exception hierarchy shared by every module
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_console = Console(stderr=True)


# ========================================
# 自定义异常层次结构
# ========================================

class SwiftLocError(Exception):
    """swiftloc 基础异常"""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class FileOperationError(SwiftLocError):
    """文件操作错误（路径不存在、读取、写入）"""

    def __init__(self, message: str, file_path: Optional[str | Path] = None, **kwargs):
        details = {"file_path": str(file_path) if file_path else None, **kwargs}
        super().__init__(message, details)
        self.file_path = file_path


class CatalogError(SwiftLocError):
    """XLIFF 目录结构错误（XML 损坏、缺少必要元素）"""

    def __init__(
        self,
        message: str,
        file_path: Optional[str | Path] = None,
        cause: Optional[BaseException] = None,
        **kwargs
    ):
        details = {
            "file_path": str(file_path) if file_path else None,
            "cause": str(cause) if cause else None,
            **kwargs,
        }
        super().__init__(message, details)
        self.file_path = file_path
        self.cause = cause


class ConfigurationError(SwiftLocError):
    """配置错误（缺少配置文件、无效值等）"""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        details = {"config_key": config_key, **kwargs}
        super().__init__(message, details)
        self.config_key = config_key


class APIError(SwiftLocError):
    """外部服务错误（不可达、HTTP 错误、超时）"""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        details = {"provider": provider, "status_code": status_code, **kwargs}
        super().__init__(message, details)
        self.provider = provider
        self.status_code = status_code


class ResponseParseError(APIError):
    """模型返回内容无法解析为预期的 JSON 结构"""

    def __init__(self, message: str, raw_response: str = "", **kwargs):
        super().__init__(message, provider=kwargs.pop("provider", "ollama"),
                         raw_response=raw_response[:200], **kwargs)
        self.raw_response = raw_response


# ========================================
# 日志类
# ========================================


class SwiftLocLogger:
    """Logger wrapper with convenience methods."""

    def __init__(
        self,
        name: str = "swiftloc",
        level: int = logging.INFO,
        log_file: Optional[Path] = None,
    ):
        """
        Initialize logger.

        Args:
            name: Logger name
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_file: Optional file path for log output
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if log_file else level)
        self.logger.handlers = []  # Clear existing handlers

        console_handler = RichHandler(
            console=_console,
            rich_tracebacks=True,
            markup=False,
            show_time=True,
            show_path=False
        )
        console_handler.setLevel(level)
        self.logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            file_handler.setLevel(logging.DEBUG)  # Log everything to file
            self.logger.addHandler(file_handler)

    def debug(self, msg: str, *args, **kwargs):
        self.logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self.logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self.logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self.logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        """Log exception with traceback."""
        self.logger.exception(msg, *args, **kwargs)

    @contextmanager
    def timer(self, operation: str, level: int = logging.DEBUG):
        """
        Context manager for timing operations.

        Usage:
            with logger.timer("Extracting strings"):
                ...
        """
        start = time.time()
        self.logger.log(level, f"Starting: {operation}")
        try:
            yield
        finally:
            elapsed = time.time() - start
            self.logger.log(level, f"Completed: {operation} (took {elapsed:.2f}s)")


_default_logger: Optional[SwiftLocLogger] = None


def get_logger(name: str = "swiftloc") -> SwiftLocLogger:
    """
    Get the configured logger, creating one with defaults on first use.

    Args:
        name: Logger name

    Returns:
        SwiftLocLogger instance
    """
    global _default_logger
    if _default_logger is None:
        _default_logger = SwiftLocLogger(name=name)
    return _default_logger


def setup_logger(
    name: str = "swiftloc",
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
) -> SwiftLocLogger:
    """
    Setup and configure the swiftloc logger.

    Args:
        name: Logger name
        level: Logging level
        log_file: Optional log file path

    Returns:
        Configured SwiftLocLogger instance
    """
    global _default_logger
    _default_logger = SwiftLocLogger(name=name, level=level, log_file=log_file)
    return _default_logger
