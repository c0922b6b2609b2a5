"""元素工厂.

按放置策略创建文字、文本框、图片元素和背景图片。

放置策略:
    - 文字/文本框: 画布中心、居中锚点、固定默认字号和字体；
      文本框换行宽度 = 画布宽度 - 固定边距
    - 前景图片: 缩放 = min(画布宽/图宽, 画布高/图高) × 0.5，居中于画布中心，
      保持宽高比且最多占较短边的一半
    - 背景图片: 缩放 = max(画布宽/图宽, 画布高/图高)，居中并裁剪到画布，
      保证任何边缘都没有空隙
"""

from __future__ import annotations

from PIL import Image

from card_designer.models.card_dimensions import CardDimension
from card_designer.models.card_elements import (
    DEFAULT_TEXT_CONTENT,
    DEFAULT_TEXT_FONT_SIZE,
    DEFAULT_TEXTBOX_CONTENT,
    DEFAULT_TEXTBOX_FONT_SIZE,
    BackgroundImage,
    ImageElement,
    OriginX,
    OriginY,
    TextBoxElement,
    TextElement,
)
from card_designer.utils.constants import (
    DEFAULT_FONT_FAMILY,
    FOREGROUND_IMAGE_FACTOR,
    TEXTBOX_MARGIN,
)
from card_designer.utils.image_utils import image_to_data_url


def foreground_scale(
    canvas_size: tuple[float, float],
    image_size: tuple[int, int],
) -> float:
    """计算前景图片的默认缩放（contain × 0.5）."""
    cw, ch = canvas_size
    iw, ih = image_size
    return min(cw / iw, ch / ih) * FOREGROUND_IMAGE_FACTOR


def cover_scale(
    canvas_size: tuple[float, float],
    image_size: tuple[int, int],
) -> float:
    """计算背景图片的覆盖缩放（cover）."""
    cw, ch = canvas_size
    iw, ih = image_size
    return max(cw / iw, ch / ih)


class ElementFactory:
    """元素工厂.

    只负责构建元素，不修改画布文档。

    Example:
        >>> factory = ElementFactory(get_preset("Standard"))
        >>> image = factory.create_image_from_size("data:...", 400, 300)
        >>> image.render_scale
        0.2475
    """

    def __init__(self, dimension: CardDimension) -> None:
        """初始化工厂.

        Args:
            dimension: 当前卡牌尺寸
        """
        self.dimension = dimension

    def create_text(self, content: str = DEFAULT_TEXT_CONTENT) -> TextElement:
        """创建居中的文字元素."""
        cx, cy = self.dimension.center
        return TextElement(
            content=content,
            x=cx,
            y=cy,
            origin_x=OriginX.CENTER,
            origin_y=OriginY.CENTER,
            font_family=DEFAULT_FONT_FAMILY,
            font_size=DEFAULT_TEXT_FONT_SIZE,
        )

    def create_text_box(self, content: str = DEFAULT_TEXTBOX_CONTENT) -> TextBoxElement:
        """创建居中的自动换行文本框."""
        cx, cy = self.dimension.center
        return TextBoxElement(
            content=content,
            x=cx,
            y=cy,
            origin_x=OriginX.CENTER,
            origin_y=OriginY.CENTER,
            font_family=DEFAULT_FONT_FAMILY,
            font_size=DEFAULT_TEXTBOX_FONT_SIZE,
            wrap_width=max(1.0, self.dimension.width - TEXTBOX_MARGIN),
        )

    def create_image_from_size(self, src: str, width: int, height: int) -> ImageElement:
        """根据图片原始尺寸创建前景图片元素.

        Args:
            src: 图片来源
            width: 原始宽度
            height: 原始高度
        """
        cx, cy = self.dimension.center
        return ImageElement(
            src=src,
            natural_width=width,
            natural_height=height,
            render_scale=foreground_scale(self.dimension.size, (width, height)),
            x=cx,
            y=cy,
            origin_x=OriginX.CENTER,
            origin_y=OriginY.CENTER,
        )

    def create_image(self, image: Image.Image) -> ImageElement:
        """从已解码的图片创建前景图片元素（内嵌为 PNG Data URL）."""
        return self.create_image_from_size(image_to_data_url(image), image.width, image.height)

    def create_background_from_size(self, src: str, width: int, height: int) -> BackgroundImage:
        """根据图片原始尺寸创建背景图片."""
        return BackgroundImage(
            src=src,
            natural_width=width,
            natural_height=height,
            render_scale=cover_scale(self.dimension.size, (width, height)),
        )

    def create_background(self, image: Image.Image) -> BackgroundImage:
        """从已解码的图片创建背景图片（内嵌为 PNG Data URL）."""
        return self.create_background_from_size(
            image_to_data_url(image), image.width, image.height
        )
