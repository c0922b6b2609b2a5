"""卡牌渲染引擎.

将画布文档渲染为位图，渲染器本身不持有任何状态。

Features:
    - 按绘制顺序渲染：白色底 → 背景图片 → 参考线（仅预览） → 元素
    - 文字支持多行、对齐方式和锚点
    - 文本框按单词在换行宽度内自动换行
    - 图片来源支持 PNG Data URL、本地文件和受信任的远程地址
    - 导出时图片来源无法回读则阻止导出
"""

from __future__ import annotations

from typing import Iterable, Optional

import httpx
from PIL import Image, ImageDraw

from card_designer.core.layer_ordering import paint_order
from card_designer.models.card_dimensions import CardDimension
from card_designer.models.card_document import CardDocument
from card_designer.models.card_elements import (
    ORIGIN_FACTORS,
    BackgroundImage,
    Guide,
    GuideOrientation,
    ImageElement,
    TextAlign,
    TextBoxElement,
    TextElement,
)
from card_designer.services.font_registry import FontRegistry, FontType, get_font_registry
from card_designer.utils.constants import CANVAS_BACKGROUND_COLOR, EXPORT_SCALE
from card_designer.utils.exceptions import (
    ExportBlockedError,
    ImageDecodeError,
    ImageNotFoundError,
)
from card_designer.utils.image_utils import (
    bytes_to_image,
    data_url_to_image,
    image_to_bytes,
    is_data_url,
    load_image,
)
from card_designer.utils.logger import setup_logger

logger = setup_logger(__name__)

# 远程图片下载超时（秒）
REMOTE_IMAGE_TIMEOUT = 15


# ===================
# 辅助函数
# ===================


def raster_size(dimension: CardDimension, multiplier: float) -> tuple[int, int]:
    """计算导出位图尺寸（四舍五入）."""
    return (
        max(1, round(dimension.width * multiplier)),
        max(1, round(dimension.height * multiplier)),
    )


def is_remote_source(src: str) -> bool:
    """是否为远程地址."""
    return src.startswith(("http://", "https://"))


def url_origin(url: str) -> str:
    """提取地址的来源部分（scheme://host[:port]）."""
    parsed = httpx.URL(url)
    origin = f"{parsed.scheme}://{parsed.host}"
    if parsed.port is not None:
        origin += f":{parsed.port}"
    return origin.lower()


def describe_source(src: str, limit: int = 60) -> str:
    """截断过长的来源（Data URL）用于日志和错误信息."""
    return src if len(src) <= limit else f"{src[:limit]}..."


def visible_region(
    canvas_size: tuple[int, int],
    position: tuple[int, int],
    target_size: tuple[int, int],
) -> Optional[tuple[int, int, int, int]]:
    """计算缩放后图片落在画布内的区域.

    Args:
        canvas_size: 画布像素尺寸
        position: 缩放后图片左上角（画布坐标，可为负）
        target_size: 缩放后图片尺寸

    Returns:
        画布坐标中的 (x0, y0, x1, y1)，完全在画布外返回 None
    """
    left, top = position
    x0 = max(0, left)
    y0 = max(0, top)
    x1 = min(canvas_size[0], left + target_size[0])
    y1 = min(canvas_size[1], top + target_size[1])
    if x0 >= x1 or y0 >= y1:
        return None
    return (x0, y0, x1, y1)


def wrap_words(text: str, font: FontType, max_width: float) -> list[str]:
    """按单词换行.

    保留原有换行符；单个超宽单词独占一行，不在单词内部断开。

    Args:
        text: 文字内容
        font: 字体
        max_width: 最大行宽（像素）

    Returns:
        换行后的行列表
    """
    lines: list[str] = []
    for paragraph in text.split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        current = words[0]
        for word in words[1:]:
            candidate = f"{current} {word}"
            if font.getlength(candidate) <= max_width:
                current = candidate
            else:
                lines.append(current)
                current = word
        lines.append(current)
    return lines


# ===================
# 渲染器
# ===================


class CardRenderer:
    """卡牌渲染器.

    Example:
        >>> renderer = CardRenderer()
        >>> image = renderer.render(document, multiplier=300 / 72)
        >>> image.size
        (825, 1125)
    """

    def __init__(
        self,
        font_registry: Optional[FontRegistry] = None,
        trusted_origins: Iterable[str] = (),
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        """初始化渲染器.

        Args:
            font_registry: 字体注册表，默认使用全局实例
            trusted_origins: 允许回读的远程图片来源
            http_client: 下载远程图片的 HTTP 客户端
        """
        self.font_registry = font_registry or get_font_registry()
        self.trusted_origins = {origin.rstrip("/").lower() for origin in trusted_origins}
        self._http_client = http_client

    # ========================
    # 公共接口
    # ========================

    def render(
        self,
        document: CardDocument,
        multiplier: float = 1.0,
        include_guides: bool = False,
        strict: bool = True,
    ) -> Image.Image:
        """渲染画布文档.

        Args:
            document: 画布文档（只读）
            multiplier: 渲染倍率
            include_guides: 是否绘制参考线
            strict: 图片来源无法读取时是否抛出异常（否则跳过该图片）

        Returns:
            RGBA 位图

        Raises:
            ExportBlockedError: strict 模式下图片来源无法回读
        """
        if multiplier <= 0:
            raise ValueError(f"渲染倍率必须大于 0: {multiplier}")

        size = raster_size(document.dimension, multiplier)
        image = Image.new("RGBA", size, CANVAS_BACKGROUND_COLOR)
        logger.debug(
            f"渲染画布: {document.dimension.name}, 倍率={multiplier:.4f}, "
            f"尺寸={size}, 元素={document.element_count}"
        )

        for drawable in paint_order(document, include_guides):
            try:
                image = self._render_drawable(image, drawable, multiplier)
            except ExportBlockedError:
                if strict:
                    raise
                logger.warning("预览跳过无法读取的图片")

        return image

    def render_preview(self, document: CardDocument) -> Image.Image:
        """渲染编辑预览（1 倍、含参考线、跳过无法读取的图片）."""
        return self.render(document, multiplier=1.0, include_guides=True, strict=False)

    def export_png(self, document: CardDocument, multiplier: float = EXPORT_SCALE) -> bytes:
        """导出 PNG 字节数据（不含参考线）.

        Raises:
            ExportBlockedError: 图片来源无法回读
        """
        image = self.render(document, multiplier=multiplier, include_guides=False)
        return image_to_bytes(image, "PNG")

    # ========================
    # 分派
    # ========================

    def _render_drawable(self, image: Image.Image, drawable, multiplier: float) -> Image.Image:
        if isinstance(drawable, BackgroundImage):
            return self._render_background(image, drawable, multiplier)
        elif isinstance(drawable, Guide):
            return self._render_guide(image, drawable, multiplier)
        elif isinstance(drawable, TextElement):
            # TextBoxElement 是 TextElement 的子类
            return self._render_text(image, drawable, multiplier)
        elif isinstance(drawable, ImageElement):
            return self._render_image(image, drawable, multiplier)
        else:
            logger.warning(f"未知绘制对象: {type(drawable)}")
            return image

    # ========================
    # 背景与参考线
    # ========================

    def _render_background(
        self,
        image: Image.Image,
        background: BackgroundImage,
        multiplier: float,
    ) -> Image.Image:
        source = self._load_source(background.src)
        width, height = background.rendered_size
        target_size = (max(1, round(width * multiplier)), max(1, round(height * multiplier)))
        # 居中，超出画布部分被裁剪
        left = round((image.width - target_size[0]) / 2)
        top = round((image.height - target_size[1]) / 2)
        return self._paste_scaled(image, source, (left, top), target_size)

    def _render_guide(self, image: Image.Image, guide: Guide, multiplier: float) -> Image.Image:
        draw = ImageDraw.Draw(image)
        width = max(1, round(guide.stroke_width * multiplier))
        position = round(guide.position * multiplier)
        if guide.orientation == GuideOrientation.VERTICAL:
            draw.line([(position, 0), (position, image.height)], fill=guide.stroke_color, width=width)
        else:
            draw.line([(0, position), (image.width, position)], fill=guide.stroke_color, width=width)
        return image

    # ========================
    # 文字
    # ========================

    def _render_text(
        self,
        image: Image.Image,
        element: TextElement,
        multiplier: float,
    ) -> Image.Image:
        """渲染文字或文本框.

        Args:
            image: 当前图片
            element: 文字元素
            multiplier: 渲染倍率

        Returns:
            渲染后的图片
        """
        if not element.content:
            return image

        font_px = max(1, round(element.font_size * multiplier))
        font = self.font_registry.resolve(
            element.font_family,
            font_px,
            element.font_weight,
            element.font_style,
        )

        if isinstance(element, TextBoxElement):
            block_width = element.wrap_width * multiplier
            lines = wrap_words(element.content, font, block_width)
            line_widths = [font.getlength(line) for line in lines]
        else:
            lines = element.content.split("\n")
            line_widths = [font.getlength(line) for line in lines]
            block_width = max(line_widths) if line_widths else 0

        line_px = font_px * element.line_height
        block_height = line_px * len(lines)

        left = element.x * multiplier - block_width * ORIGIN_FACTORS[element.origin_x.value]
        top = element.y * multiplier - block_height * ORIGIN_FACTORS[element.origin_y.value]

        temp = Image.new("RGBA", image.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(temp)

        # 行内垂直居中
        baseline_offset = (line_px - font_px) / 2
        for i, line in enumerate(lines):
            if not line:
                continue
            line_width = line_widths[i]
            if element.text_align == TextAlign.CENTER:
                x = left + (block_width - line_width) / 2
            elif element.text_align == TextAlign.RIGHT:
                x = left + block_width - line_width
            else:  # LEFT
                x = left
            y = top + i * line_px + baseline_offset
            draw.text((round(x), round(y)), line, font=font, fill=element.fill_color)

        return Image.alpha_composite(image, temp)

    # ========================
    # 图片
    # ========================

    def _render_image(
        self,
        image: Image.Image,
        element: ImageElement,
        multiplier: float,
    ) -> Image.Image:
        source = self._load_source(element.src)
        width, height = element.rendered_size
        target_size = (max(1, round(width * multiplier)), max(1, round(height * multiplier)))
        left, top = element.top_left(width, height)
        position = (round(left * multiplier), round(top * multiplier))
        return self._paste_scaled(image, source, position, target_size)

    def _paste_scaled(
        self,
        image: Image.Image,
        source: Image.Image,
        position: tuple[int, int],
        target_size: tuple[int, int],
    ) -> Image.Image:
        """把来源图片缩放到 target_size 后合成到 position.

        只重采样落在画布内的部分，超出画布的区域不参与缩放。
        """
        region = visible_region(image.size, position, target_size)
        if region is None:
            return image

        x0, y0, x1, y1 = region
        left, top = position
        scale_x = source.width / target_size[0]
        scale_y = source.height / target_size[1]
        box = (
            (x0 - left) * scale_x,
            (y0 - top) * scale_y,
            (x1 - left) * scale_x,
            (y1 - top) * scale_y,
        )
        visible = source.resize((x1 - x0, y1 - y0), Image.Resampling.LANCZOS, box=box)

        temp = Image.new("RGBA", image.size, (0, 0, 0, 0))
        temp.paste(visible, (x0, y0), visible)
        return Image.alpha_composite(image, temp)

    def _load_source(self, src: str) -> Image.Image:
        """读取图片来源.

        Raises:
            ExportBlockedError: 来源无法回读（不受信任的远程地址、文件缺失或数据损坏）
        """
        description = describe_source(src)
        try:
            if is_data_url(src):
                return data_url_to_image(src)
            if is_remote_source(src):
                return self._fetch_remote(src)
            return load_image(src)
        except (ImageNotFoundError, ImageDecodeError) as e:
            logger.error(f"图片来源无法读取: {description}, {e}")
            raise ExportBlockedError(description) from e

    def _fetch_remote(self, url: str) -> Image.Image:
        if url_origin(url) not in self.trusted_origins:
            logger.warning(f"远程图片来源不受信任: {url}")
            raise ExportBlockedError(url)

        try:
            if self._http_client is not None:
                response = self._http_client.get(url)
            else:
                response = httpx.get(url, timeout=REMOTE_IMAGE_TIMEOUT, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"远程图片下载失败: {url}, {e}")
            raise ExportBlockedError(url) from e

        return bytes_to_image(response.content, source=url)
