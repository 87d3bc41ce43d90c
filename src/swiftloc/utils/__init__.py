from .config import ToolConfig, load_config
from .io import ensure_parent_dir, read_text_file, write_bytes_file, write_text_file
from .logger import (
    APIError,
    CatalogError,
    ConfigurationError,
    FileOperationError,
    ResponseParseError,
    SwiftLocError,
    SwiftLocLogger,
    get_logger,
    setup_logger,
)
from .placeholder import SPECIFIER_RE, FormatSpecifier, parse_specifiers

__all__ = [
    # config
    "ToolConfig",
    "load_config",
    # io
    "ensure_parent_dir",
    "read_text_file",
    "write_bytes_file",
    "write_text_file",
    # logger / errors
    "APIError",
    "CatalogError",
    "ConfigurationError",
    "FileOperationError",
    "ResponseParseError",
    "SwiftLocError",
    "SwiftLocLogger",
    "get_logger",
    "setup_logger",
    # placeholder
    "SPECIFIER_RE",
    "FormatSpecifier",
    "parse_specifiers",
]
