"""文件工具函数模块.

提供文件和目录操作的工具函数。
"""

from __future__ import annotations

import re
from pathlib import Path

# Windows 文件名非法字符
WINDOWS_FORBIDDEN = set('<>:"/\\|?*')


def ensure_directory(path: Path) -> Path:
    """确保目录存在.

    Args:
        path: 目录路径

    Returns:
        目录路径
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_file_extension(path: Path | str) -> str:
    """获取文件扩展名（小写）.

    Args:
        path: 文件路径

    Returns:
        小写扩展名（含点号）
    """
    return Path(path).suffix.lower()


def get_file_size(path: Path | str) -> int:
    """获取文件大小（字节）."""
    return Path(path).stat().st_size


def slugify(name: str, default: str = "card") -> str:
    """生成文件系统安全的文件名.

    Args:
        name: 原始名称
        default: 名称为空时使用的默认值

    Returns:
        小写的安全文件名（不含扩展名）
    """
    if not name:
        return default

    slug = "".join("_" if ch in WINDOWS_FORBIDDEN else ch for ch in name)
    slug = re.sub(r"[^A-Za-z0-9._-]+", "_", slug)
    slug = re.sub(r"_+", "_", slug).strip("._- ")
    return slug.lower() or default
