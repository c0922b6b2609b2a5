"""图片工具函数模块.

提供图片读取、解码、格式转换和 Data URL 编解码等工具函数。
"""

from __future__ import annotations

import base64
import io
from functools import lru_cache
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from card_designer.utils.constants import MAX_IMAGE_FILE_SIZE, SUPPORTED_IMAGE_FORMATS
from card_designer.utils.exceptions import (
    ImageDecodeError,
    ImageNotFoundError,
    ImageTooLargeError,
    UnsupportedImageFormatError,
)
from card_designer.utils.file_utils import get_file_extension, get_file_size
from card_designer.utils.logger import setup_logger

logger = setup_logger(__name__)

DATA_URL_PREFIX = "data:image/png;base64,"


def validate_image_file(path: Path | str, max_size: int = MAX_IMAGE_FILE_SIZE) -> None:
    """验证图片文件.

    Args:
        path: 图片文件路径
        max_size: 最大文件大小（字节）

    Raises:
        ImageNotFoundError: 文件不存在
        UnsupportedImageFormatError: 不支持的格式
        ImageTooLargeError: 文件过大
    """
    path = Path(path)

    if not path.exists():
        raise ImageNotFoundError(str(path))

    ext = get_file_extension(path)
    if ext not in SUPPORTED_IMAGE_FORMATS:
        raise UnsupportedImageFormatError(ext)

    size = get_file_size(path)
    if size > max_size:
        raise ImageTooLargeError(size, max_size)


def load_image(path: Path | str) -> Image.Image:
    """加载图片到内存.

    Args:
        path: 图片文件路径

    Returns:
        PIL Image 对象（RGBA 模式）

    Raises:
        ImageNotFoundError: 文件不存在
        ImageDecodeError: 文件无法解码
    """
    path = Path(path)

    if not path.exists():
        raise ImageNotFoundError(str(path))

    try:
        with Image.open(path) as img:
            img.load()  # 强制加载到内存
            return ensure_rgba(img)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.error(f"加载图片失败: {path}, {e}")
        raise ImageDecodeError(str(path), str(e)) from e


def bytes_to_image(data: bytes, source: str = "<bytes>") -> Image.Image:
    """字节数据解码为图片.

    Args:
        data: 图片字节数据
        source: 来源描述（用于错误信息）

    Returns:
        PIL Image 对象（RGBA 模式）

    Raises:
        ImageDecodeError: 数据无法解码
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return ensure_rgba(img)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(source, str(e)) from e


def ensure_rgba(image: Image.Image) -> Image.Image:
    """确保图片为 RGBA 模式."""
    if image.mode != "RGBA":
        return image.convert("RGBA")
    return image.copy()


def image_to_bytes(image: Image.Image, format: str = "PNG") -> bytes:
    """图片转字节数据.

    Args:
        image: PIL Image 对象
        format: 图片格式 (PNG, JPEG, WEBP)

    Returns:
        图片字节数据
    """
    buffer = io.BytesIO()

    if format.upper() == "JPEG" and image.mode in ("RGBA", "P"):
        image = image.convert("RGB")

    image.save(buffer, format=format.upper())
    return buffer.getvalue()


def image_to_data_url(image: Image.Image) -> str:
    """图片编码为 PNG Data URL.

    PNG 为无损格式，保证模板保存后可完整还原。
    """
    encoded = base64.b64encode(image_to_bytes(image, "PNG")).decode("ascii")
    return f"{DATA_URL_PREFIX}{encoded}"


def is_data_url(src: str) -> bool:
    """是否为 Data URL."""
    return src.startswith("data:")


@lru_cache(maxsize=32)
def _decode_data_url_cached(src: str) -> Image.Image:
    header, _, payload = src.partition(",")
    if ";base64" not in header:
        raise ImageDecodeError(header or "data:", "仅支持 base64 编码的 Data URL")
    try:
        data = base64.b64decode(payload, validate=True)
    except ValueError as e:  # binascii.Error
        raise ImageDecodeError(header, str(e)) from e
    return bytes_to_image(data, source=header)


def data_url_to_image(src: str) -> Image.Image:
    """解码 Data URL 为图片.

    解码结果会被缓存，返回副本以免调用方修改缓存。

    Raises:
        ImageDecodeError: 数据无法解码
    """
    return _decode_data_url_cached(src).copy()
