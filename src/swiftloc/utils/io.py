"""
文件 I/O 工具函数

提供安全的文件读写功能：
- 统一的读取错误（FileOperationError）
- 原子写入（先写临时文件再重命名，失败时旧文件保持不变）
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path

from .logger import FileOperationError

# 获取模块级 logger
logger = logging.getLogger(__name__)


def ensure_parent_dir(path: str | Path) -> Path:
    """确保父目录存在"""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    return p


def read_text_file(path: str | Path, encoding: str = 'utf-8') -> str:
    """读取文本文件，失败时抛出 FileOperationError

    Args:
        path: 文件路径
        encoding: 编码

    Returns:
        文件内容
    """
    p = Path(path)
    if not p.is_file():
        raise FileOperationError(f"File not found: {p}", file_path=p)
    try:
        return p.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise FileOperationError(f"Failed to read file: {p}", file_path=p, error=str(e)) from e


def _target_mode(p: Path) -> int:
    try:
        return stat.S_IMODE(p.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_bytes_file(path: str | Path, data: bytes) -> None:
    """原子写入二进制内容

    写入同目录下的临时文件，再用 os.replace 覆盖目标。

    Args:
        path: 文件路径
        data: 文件内容
    """
    try:
        p = ensure_parent_dir(path)
        fd, tmp_path = tempfile.mkstemp(
            dir=p.parent,
            prefix=f".{p.name}.",
            suffix=".tmp"
        )
    except OSError as e:
        raise FileOperationError(f"Failed to write file: {path}", file_path=path, error=str(e)) from e

    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        # mkstemp 创建的文件权限为 0600，替换前恢复为原文件或 umask 默认权限
        os.chmod(tmp_path, _target_mode(p))
        # 原子重命名
        os.replace(tmp_path, p)
    except OSError as e:
        # 清理临时文件
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise FileOperationError(f"Failed to write file: {p}", file_path=p, error=str(e)) from e

    logger.debug(f"Wrote {len(data)} bytes to {p}")


def write_text_file(path: str | Path, text: str, encoding: str = 'utf-8') -> None:
    """原子写入文本文件"""
    write_bytes_file(path, text.encode(encoding))
