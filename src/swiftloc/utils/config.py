"""
Configuration management for swiftloc.

Settings come from a JSON file and environment variables; command-line
flags override them at the CLI layer.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

from .logger import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SWIFTLOC_CONFIG"
DEFAULT_CONFIG_NAME = "swiftloc.json"


@dataclass
class ToolConfig:
    """swiftloc configuration settings."""

    # Catalog settings
    source_language: str = "en"
    target_language: str = "fr"
    original_name: str = "Localizable.strings"

    # Extraction settings
    source_extensions: list[str] = field(default_factory=lambda: [".swift"])

    # Ollama settings
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"
    ollama_timeout: int = 60
    quality_batch_size: int = 0

    def __post_init__(self):
        """Validate field values after initialization."""
        if self.ollama_timeout < 1:
            logger.warning(f"ollama_timeout must be >= 1, got {self.ollama_timeout}, using 1")
            self.ollama_timeout = 1
        if self.quality_batch_size < 0:
            logger.warning(f"quality_batch_size must be >= 0, got {self.quality_batch_size}, using 0")
            self.quality_batch_size = 0
        if not self.source_extensions:
            logger.warning("source_extensions is empty, using ['.swift']")
            self.source_extensions = [".swift"]
        self.ollama_host = self.ollama_host.rstrip("/")


def _resolve_config_path(path: Optional[str | Path]) -> Optional[Path]:
    if path is not None:
        p = Path(path)
        if not p.is_file():
            raise ConfigurationError(f"Config file not found: {p}", config_key="config")
        return p

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if not p.is_file():
            raise ConfigurationError(f"Config file not found: {p}", config_key=CONFIG_ENV_VAR)
        return p

    p = Path.cwd() / DEFAULT_CONFIG_NAME
    return p if p.is_file() else None


def load_config(path: Optional[str | Path] = None) -> ToolConfig:
    """
    Load configuration.

    Lookup order: explicit ``path``, ``$SWIFTLOC_CONFIG``, ``swiftloc.json``
    in the working directory. Unknown keys are ignored; a malformed file
    falls back to defaults with a warning.

    Args:
        path: Optional explicit config file

    Returns:
        ToolConfig instance
    """
    config_path = _resolve_config_path(path)
    data: dict = {}

    if config_path is not None:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                valid_fields = {f.name for f in fields(ToolConfig)}
                data = {k: v for k, v in loaded.items() if k in valid_fields}
                unknown = sorted(set(loaded) - valid_fields)
                if unknown:
                    logger.warning(f"Ignoring unknown config keys: {unknown}")
            else:
                logger.warning(f"Config file {config_path} is not a JSON object, using defaults")
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to load config: {e}, using defaults")
        except OSError as e:
            logger.warning(f"Config file I/O error: {e}, using defaults")

    env_host = os.environ.get("OLLAMA_HOST")
    if env_host:
        data["ollama_host"] = env_host

    try:
        return ToolConfig(**data)
    except (TypeError, AttributeError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}", config_key="config") from e
