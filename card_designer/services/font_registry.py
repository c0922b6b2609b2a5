"""字体注册服务.

将字体名称解析为可渲染的字体，首次使用网络字体时按需下载。

Features:
    - 固定的内置系统字体列表（始终视为可用）
    - 任意字体名按需从字体托管服务下载（异步，不阻塞渲染）
    - 下载完成前使用系统回退字体渲染
    - 同步的 is_ready 查询，供渲染器每次绘制时使用
    - 下载失败静默回退，不重试
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import re
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import httpx
from PIL import ImageFont

from card_designer.models.card_elements import FontStyle, FontWeight
from card_designer.utils.constants import (
    DEFAULT_FONT_FAMILY,
    FONT_API_URL,
    FONT_CACHE_DIR,
    FONT_FETCH_TIMEOUT,
)
from card_designer.utils.file_utils import ensure_directory, slugify
from card_designer.utils.logger import setup_logger

logger = setup_logger(__name__)


# ===================
# 常量定义
# ===================

# 内置系统字体
SYSTEM_FONTS: tuple[str, ...] = (
    "Arial",
    "Times New Roman",
    "Courier New",
    "Georgia",
    "Verdana",
    "Comic Sans MS",
    "Impact",
    "Trebuchet MS",
    "Arial Black",
    "Palatino",
    "Garamond",
    "Bookman",
    "Tahoma",
)

# 字体选择器中提供的网络字体（需下载）
WEB_FONTS: tuple[str, ...] = (
    "Bebas Neue",
    "Roboto",
    "Open Sans",
    "Lato",
    "Montserrat",
    "Oswald",
    "Raleway",
    "Playfair Display",
    "Merriweather",
    "Permanent Marker",
    "Pacifico",
    "Dancing Script",
)

AVAILABLE_FONTS: tuple[str, ...] = SYSTEM_FONTS + WEB_FONTS

# 字体搜索路径
FONT_SEARCH_PATHS = [
    "/System/Library/Fonts/",
    "/System/Library/Fonts/Supplemental/",
    "/Library/Fonts/",
    "~/Library/Fonts/",
    "C:/Windows/Fonts/",
    "/usr/share/fonts/",
    "/usr/share/fonts/truetype/",
    "/usr/share/fonts/truetype/dejavu/",
    "/usr/share/fonts/truetype/liberation/",
]

# 系统回退字体文件
FALLBACK_FONT_FILES = [
    "Arial.ttf",
    "arial.ttf",
    "DejaVuSans.ttf",
    "LiberationSans-Regular.ttf",
    "Helvetica.ttc",
]

_FONT_FACE_RE = re.compile(r"@font-face\s*\{(.*?)\}", re.S)
_FONT_WEIGHT_RE = re.compile(r"font-weight:\s*(\d+)")
_FONT_STYLE_RE = re.compile(r"font-style:\s*(\w+)")
_FONT_URL_RE = re.compile(r"url\((['\"]?)(.*?)\1\)")

FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont
FontReadyCallback = Callable[[str], None]


class FontLoadState(str, Enum):
    """网络字体加载状态."""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class FontFace:
    """已下载的字体文件."""

    weight: FontWeight
    style: FontStyle
    path: Path


@dataclass(frozen=True)
class FontFaceSource:
    """样式表中声明的字体文件."""

    weight: FontWeight
    style: FontStyle
    url: str


# ===================
# 辅助函数
# ===================


def normalize_family(family: str) -> str:
    """规范化字体名（合并空白）."""
    return " ".join(family.split())


def parse_font_faces(css: str) -> list[FontFaceSource]:
    """解析样式表中的 @font-face 声明.

    同一字重/字形出现多次（不同 unicode-range 子集）时保留最后一个。

    Args:
        css: 样式表内容

    Returns:
        字体文件声明列表
    """
    faces: dict[tuple[FontWeight, FontStyle], FontFaceSource] = {}
    for block in _FONT_FACE_RE.findall(css):
        url_match = _FONT_URL_RE.search(block)
        if not url_match:
            continue
        weight_match = _FONT_WEIGHT_RE.search(block)
        style_match = _FONT_STYLE_RE.search(block)
        weight_value = int(weight_match.group(1)) if weight_match else 400
        weight = FontWeight.BOLD if weight_value >= 600 else FontWeight.NORMAL
        style = (
            FontStyle.ITALIC
            if style_match and style_match.group(1).lower() == "italic"
            else FontStyle.NORMAL
        )
        faces[(weight, style)] = FontFaceSource(weight, style, url_match.group(2))
    return list(faces.values())


def find_system_font(
    font_family: str,
    font_size: int,
    bold: bool = False,
    italic: bool = False,
) -> Optional[ImageFont.FreeTypeFont]:
    """在系统字体目录中查找字体.

    Args:
        font_family: 字体名称
        font_size: 字体大小
        bold: 是否粗体
        italic: 是否斜体

    Returns:
        找到的字体，未找到返回 None
    """
    compact = font_family.replace(" ", "")
    font_variants: list[str] = []

    # 粗体/斜体变体优先
    if bold and italic:
        font_variants.extend([
            f"{font_family} Bold Italic.ttf",
            f"{compact}-BoldItalic.ttf",
        ])
    elif bold:
        font_variants.extend([
            f"{font_family} Bold.ttf",
            f"{compact}-Bold.ttf",
        ])
    elif italic:
        font_variants.extend([
            f"{font_family} Italic.ttf",
            f"{compact}-Italic.ttf",
        ])

    font_variants.extend([
        f"{font_family}.ttf",
        f"{font_family}.ttc",
        f"{compact}.ttf",
        f"{compact}-Regular.ttf",
        f"{compact.lower()}.ttf",
        f"{font_family}.otf",
    ])

    # Pillow 会在系统字体目录中按文件名查找
    for variant in font_variants:
        try:
            return ImageFont.truetype(variant, font_size)
        except OSError:
            continue

    for search_path in FONT_SEARCH_PATHS:
        expanded_path = Path(search_path).expanduser()
        if not expanded_path.exists():
            continue
        for variant in font_variants:
            font_path = expanded_path / variant
            if font_path.exists():
                try:
                    return ImageFont.truetype(str(font_path), font_size)
                except OSError:
                    continue

    return None


def load_fallback_font(font_size: int) -> FontType:
    """加载系统回退字体."""
    for name in FALLBACK_FONT_FILES:
        try:
            return ImageFont.truetype(name, font_size)
        except OSError:
            continue
    return ImageFont.load_default(font_size)


# ===================
# 字体注册表
# ===================


class FontRegistry:
    """字体注册表.

    内置系统字体始终视为可用；其他字体名首次请求时在后台下载，
    下载完成前渲染器使用回退字体，完成后下一次绘制即使用新字体。

    Example:
        >>> registry = FontRegistry(cache_dir=tmp_dir)
        >>> registry.request("Lobster")  # 后台下载，立即返回
        >>> registry.is_ready("Lobster")
        False
        >>> await registry.ensure_loaded("Lobster")
        True
    """

    def __init__(
        self,
        api_url: str = FONT_API_URL,
        cache_dir: Path = FONT_CACHE_DIR,
        timeout: float = FONT_FETCH_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """初始化字体注册表.

        Args:
            api_url: 字体样式表地址（Google Fonts CSS2 兼容）
            cache_dir: 字体文件缓存目录
            timeout: 下载超时（秒）
            transport: 自定义 HTTP 传输（测试用）
        """
        self._api_url = api_url
        self._cache_dir = Path(cache_dir)
        self._timeout = timeout
        self._transport = transport

        self._lock = threading.Lock()
        self._states: dict[str, FontLoadState] = {}
        self._faces: dict[str, list[FontFace]] = {}
        self._font_cache: dict[tuple[str, int], FontType] = {}
        self._system_misses: set[tuple[str, bool, bool]] = set()
        self._pending: dict[str, concurrent.futures.Future] = {}
        self._background_tasks: set[asyncio.Task] = set()
        self._listeners: list[FontReadyCallback] = []

    # ========================
    # 查询
    # ========================

    @staticmethod
    def _key(family: str) -> str:
        return normalize_family(family).lower()

    def is_builtin(self, family: str) -> bool:
        """是否为内置系统字体."""
        key = self._key(family)
        return any(key == name.lower() for name in SYSTEM_FONTS)

    def is_ready(self, family: str) -> bool:
        """字体当前是否可直接渲染."""
        if self.is_builtin(family):
            return True
        with self._lock:
            return self._states.get(self._key(family)) == FontLoadState.READY

    def state(self, family: str) -> Optional[FontLoadState]:
        """网络字体的加载状态，从未请求过返回 None."""
        with self._lock:
            return self._states.get(self._key(family))

    def add_listener(self, callback: FontReadyCallback) -> None:
        """注册字体就绪回调（例如触发重绘）."""
        self._listeners.append(callback)

    # ========================
    # 加载
    # ========================

    def request(self, family: str) -> None:
        """请求字体（即发即忘）.

        内置字体或已请求过的字体直接返回。有运行中的事件循环时作为任务调度，
        否则在后台线程中下载。
        """
        family = normalize_family(family)
        if not family or self.is_builtin(family):
            return

        future = self._claim(family)
        if future is None:
            return

        logger.debug(f"请求网络字体: {family}")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            task = loop.create_task(self._load(family, future))
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)
        else:
            thread = threading.Thread(
                target=asyncio.run,
                args=(self._load(family, future),),
                name=f"font-loader-{self._key(family)}",
                daemon=True,
            )
            thread.start()

    def _claim(self, family: str) -> Optional[concurrent.futures.Future]:
        """登记一次下载，已请求过的字体返回 None.

        每个字体同一时间最多一个下载，完成结果通过返回的 Future 通知。
        """
        key = self._key(family)
        with self._lock:
            if key in self._states:
                return None
            self._states[key] = FontLoadState.PENDING
            future: concurrent.futures.Future = concurrent.futures.Future()
            self._pending[key] = future
            return future

    def preload_web_fonts(self) -> None:
        """预加载字体选择器中的全部网络字体."""
        for family in WEB_FONTS:
            self.request(family)

    async def ensure_loaded(self, family: str) -> bool:
        """加载字体并等待完成.

        Returns:
            字体是否可用（失败的字体不会重试）
        """
        family = normalize_family(family)
        if not family:
            return False
        if self.is_builtin(family):
            return True

        future = self._claim(family)
        if future is not None:
            return await self._load(family, future)

        # 已在下载中则等待同一个下载完成
        key = self._key(family)
        with self._lock:
            pending = self._pending.get(key)
            state = self._states.get(key)
        if pending is not None:
            return await asyncio.wrap_future(pending)
        return state == FontLoadState.READY

    async def _load(self, family: str, future: concurrent.futures.Future) -> bool:
        key = self._key(family)
        try:
            faces = await self._download(family)
        except (httpx.HTTPError, OSError, ValueError) as e:
            logger.warning(f"网络字体加载失败，使用回退字体: {family}, {e}")
            with self._lock:
                self._states[key] = FontLoadState.FAILED
                self._pending.pop(key, None)
            future.set_result(False)
            return False

        with self._lock:
            self._faces[key] = faces
            self._states[key] = FontLoadState.READY
            self._pending.pop(key, None)
        future.set_result(True)
        logger.info(f"网络字体已就绪: {family} ({len(faces)} 个字形)")

        for callback in list(self._listeners):
            try:
                callback(family)
            except Exception as e:
                logger.error(f"字体就绪回调失败: {e}")
        return True

    async def _download(self, family: str) -> list[FontFace]:
        async with httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            css = await self._fetch_stylesheet(client, family)
            sources = parse_font_faces(css)
            if not sources:
                raise ValueError(f"样式表中没有可用的字体文件: {family}")

            directory = ensure_directory(self._cache_dir / slugify(family, "font"))
            faces: list[FontFace] = []
            for source in sources:
                response = await client.get(source.url)
                response.raise_for_status()
                suffix = Path(httpx.URL(source.url).path).suffix or ".ttf"
                path = directory / f"{source.weight.value}-{source.style.value}{suffix}"
                path.write_bytes(response.content)
                faces.append(FontFace(source.weight, source.style, path))
            return faces

    async def _fetch_stylesheet(self, client: httpx.AsyncClient, family: str) -> str:
        # 先请求常规/粗体/斜体四种字形，字体不支持时退回默认字形
        variants = f"{family}:ital,wght@0,400;0,700;1,400;1,700"
        response = await client.get(self._api_url, params={"family": variants})
        if response.status_code == 400:
            response = await client.get(self._api_url, params={"family": family})
        response.raise_for_status()
        return response.text

    # ========================
    # 解析
    # ========================

    def resolve(
        self,
        family: str,
        size: int,
        weight: FontWeight = FontWeight.NORMAL,
        style: FontStyle = FontStyle.NORMAL,
    ) -> FontType:
        """解析字体，始终返回可用字体.

        未就绪的网络字体会被请求下载，本次使用回退字体。

        Args:
            family: 字体名称
            size: 像素字号
            weight: 字重
            style: 字形
        """
        size = max(1, int(round(size)))
        family = normalize_family(family) or DEFAULT_FONT_FAMILY
        key = self._key(family)

        with self._lock:
            faces = self._faces.get(key)

        if faces:
            face = self._pick_face(faces, weight, style)
            return self._truetype(str(face.path), size)

        bold = weight == FontWeight.BOLD
        italic = style == FontStyle.ITALIC
        font = self._system_font(key, family, size, bold, italic)
        if font is not None:
            return font

        if not self.is_builtin(family):
            self.request(family)
        return self._fallback(size)

    def _system_font(
        self,
        key: str,
        family: str,
        size: int,
        bold: bool,
        italic: bool,
    ) -> Optional[FontType]:
        """查找系统字体，查找结果（包括未找到）按字体和字形缓存."""
        miss_key = (key, bold, italic)
        cache_key = (f"<system>{key}:{int(bold)}{int(italic)}", size)
        with self._lock:
            if miss_key in self._system_misses:
                return None
            font = self._font_cache.get(cache_key)
        if font is not None:
            return font

        font = find_system_font(family, size, bold, italic)
        with self._lock:
            if font is None:
                self._system_misses.add(miss_key)
            else:
                self._font_cache[cache_key] = font
        return font

    def _pick_face(
        self,
        faces: list[FontFace],
        weight: FontWeight,
        style: FontStyle,
    ) -> FontFace:
        for face in faces:
            if face.weight == weight and face.style == style:
                return face
        for face in faces:
            if face.weight == weight:
                return face
        for face in faces:
            if face.weight == FontWeight.NORMAL and face.style == FontStyle.NORMAL:
                return face
        return faces[0]

    def _truetype(self, path: str, size: int) -> FontType:
        cache_key = (path, size)
        font = self._font_cache.get(cache_key)
        if font is None:
            try:
                font = ImageFont.truetype(path, size)
            except OSError as e:
                logger.warning(f"字体文件无法读取，使用回退字体: {path}, {e}")
                return self._fallback(size)
            self._font_cache[cache_key] = font
        return font

    def _fallback(self, size: int) -> FontType:
        cache_key = ("<fallback>", size)
        font = self._font_cache.get(cache_key)
        if font is None:
            font = load_fallback_font(size)
            self._font_cache[cache_key] = font
        return font


# ===================
# 全局实例
# ===================

_font_registry: Optional[FontRegistry] = None


def get_font_registry() -> FontRegistry:
    """获取全局字体注册表."""
    global _font_registry
    if _font_registry is None:
        _font_registry = FontRegistry()
    return _font_registry


def reset_font_registry() -> None:
    """重置全局字体注册表（测试用）."""
    global _font_registry
    _font_registry = None
