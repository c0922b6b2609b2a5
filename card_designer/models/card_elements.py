"""卡牌画布元素数据模型.

场景图中的可绘制元素（文字、文本框、图片）、背景图片与参考线。

Features:
    - 元素基类与子类（文字、自动换行文本框、图片）
    - 按 kind 字段区分的联合类型，支持无损序列化/反序列化
    - 每种元素可修改的属性白名单
    - 原编辑器属性名（camelCase）到字段名的映射
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, Union

from PIL import ImageColor
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from card_designer.utils.constants import (
    DEFAULT_FONT_FAMILY,
    GUIDE_STROKE_COLOR,
    GUIDE_STROKE_WIDTH,
)


# ===================
# 常量定义
# ===================

DEFAULT_TEXT_CONTENT = "New Text"
DEFAULT_TEXT_FONT_SIZE = 16
DEFAULT_TEXTBOX_CONTENT = "New text box. This will wrap automatically."
DEFAULT_TEXTBOX_FONT_SIZE = 14
DEFAULT_FILL_COLOR = "#000000"
DEFAULT_LINE_HEIGHT = 1.16


# ===================
# 枚举定义
# ===================


class ElementKind(str, Enum):
    """元素类型枚举."""

    TEXT = "text"  # 单行/多行文字
    TEXTBOX = "textbox"  # 自动换行文本框
    IMAGE = "image"  # 图片


class OriginX(str, Enum):
    """水平锚点."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class OriginY(str, Enum):
    """垂直锚点."""

    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


class FontWeight(str, Enum):
    """字重."""

    NORMAL = "normal"
    BOLD = "bold"


class FontStyle(str, Enum):
    """字形."""

    NORMAL = "normal"
    ITALIC = "italic"


class TextAlign(str, Enum):
    """文字水平对齐方式."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class GuideOrientation(str, Enum):
    """参考线方向."""

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


# 锚点对应的偏移系数（左上角 = 锚点坐标 - 尺寸 * 系数）
ORIGIN_FACTORS: dict[str, float] = {
    "left": 0.0,
    "top": 0.0,
    "center": 0.5,
    "right": 1.0,
    "bottom": 1.0,
}

# 原编辑器属性名 -> 字段名
STYLE_PROPERTY_ALIASES: dict[str, str] = {
    "left": "x",
    "top": "y",
    "originX": "origin_x",
    "originY": "origin_y",
    "text": "content",
    "fontSize": "font_size",
    "fontFamily": "font_family",
    "fontWeight": "font_weight",
    "fontStyle": "font_style",
    "fill": "fill_color",
    "textAlign": "text_align",
    "lineHeight": "line_height",
    "width": "wrap_width",
    "scale": "render_scale",
    "scaleX": "render_scale",
}


# ===================
# 辅助函数
# ===================


def generate_element_id() -> str:
    """生成唯一的元素ID.

    Returns:
        8位UUID字符串
    """
    return uuid.uuid4().hex[:8]


def normalize_color(value: str) -> str:
    """规范化颜色为 '#rrggbb'.

    接受 CSS 颜色写法（'#333'、'red'、'rgb(1,2,3)' 等）。

    Raises:
        ValueError: 无法识别的颜色
    """
    if not isinstance(value, str):
        raise ValueError(f"颜色必须为字符串，实际: {type(value).__name__}")
    r, g, b = ImageColor.getrgb(value.strip())[:3]
    return f"#{r:02x}{g:02x}{b:02x}"


def resolve_property_name(name: str) -> str:
    """将原编辑器属性名转换为字段名."""
    return STYLE_PROPERTY_ALIASES.get(name, name)


# ===================
# 元素基类
# ===================


class CardElement(BaseModel):
    """画布元素基类.

    Attributes:
        id: 元素唯一标识符（文档内唯一）
        kind: 元素类型
        x: 锚点X坐标（参考单位）
        y: 锚点Y坐标（参考单位）
        origin_x: 水平锚点
        origin_y: 垂直锚点
    """

    # 通用可修改属性
    mutable_properties: ClassVar[frozenset[str]] = frozenset(
        {"x", "y", "origin_x", "origin_y"}
    )

    id: str = Field(default_factory=generate_element_id, min_length=1, description="元素唯一ID")
    kind: ElementKind = Field(description="元素类型")

    x: float = Field(default=0.0, description="锚点X坐标")
    y: float = Field(default=0.0, description="锚点Y坐标")
    origin_x: OriginX = Field(default=OriginX.CENTER, description="水平锚点")
    origin_y: OriginY = Field(default=OriginY.CENTER, description="垂直锚点")

    model_config = ConfigDict(use_enum_values=False)  # 保留枚举对象

    @classmethod
    def accepts(cls, property_name: str) -> bool:
        """该类型元素是否支持修改指定属性."""
        return property_name in cls.mutable_properties

    def top_left(self, width: float, height: float) -> tuple[float, float]:
        """根据锚点计算元素左上角坐标.

        Args:
            width: 元素渲染宽度
            height: 元素渲染高度

        Returns:
            (left, top)
        """
        return (
            self.x - width * ORIGIN_FACTORS[self.origin_x.value],
            self.y - height * ORIGIN_FACTORS[self.origin_y.value],
        )


# ===================
# 文字元素
# ===================


class TextElement(CardElement):
    """文字元素.

    不自动换行，内容中的换行符保留为多行。

    Example:
        >>> text = TextElement(content="CARD TITLE", font_size=20)
        >>> text.kind
        <ElementKind.TEXT: 'text'>
    """

    mutable_properties: ClassVar[frozenset[str]] = CardElement.mutable_properties | {
        "content",
        "font_family",
        "font_size",
        "font_weight",
        "font_style",
        "fill_color",
        "text_align",
        "line_height",
    }

    kind: Literal[ElementKind.TEXT] = Field(default=ElementKind.TEXT, description="元素类型")

    content: str = Field(default=DEFAULT_TEXT_CONTENT, max_length=5000, description="文字内容")
    font_family: str = Field(default=DEFAULT_FONT_FAMILY, min_length=1, description="字体名称")
    font_size: int = Field(default=DEFAULT_TEXT_FONT_SIZE, ge=1, le=400, description="字号（磅）")
    font_weight: FontWeight = Field(default=FontWeight.NORMAL, description="字重")
    font_style: FontStyle = Field(default=FontStyle.NORMAL, description="字形")
    fill_color: str = Field(default=DEFAULT_FILL_COLOR, description="填充颜色")
    text_align: TextAlign = Field(default=TextAlign.LEFT, description="对齐方式")
    line_height: float = Field(default=DEFAULT_LINE_HEIGHT, ge=0.5, le=5.0, description="行高倍数")

    @field_validator("fill_color", mode="before")
    @classmethod
    def validate_fill_color(cls, v: Any) -> str:
        """验证并规范化颜色."""
        return normalize_color(v)

    @field_validator("font_family")
    @classmethod
    def strip_font_family(cls, v: str) -> str:
        """去除字体名首尾空白."""
        v = v.strip()
        if not v:
            raise ValueError("字体名称不能为空")
        return v

    @property
    def is_bold(self) -> bool:
        """是否粗体."""
        return self.font_weight == FontWeight.BOLD

    @property
    def is_italic(self) -> bool:
        """是否斜体."""
        return self.font_style == FontStyle.ITALIC


class TextBoxElement(TextElement):
    """自动换行文本框.

    内容按单词在 wrap_width 内重新排版。
    """

    mutable_properties: ClassVar[frozenset[str]] = TextElement.mutable_properties | {
        "wrap_width"
    }

    kind: Literal[ElementKind.TEXTBOX] = Field(default=ElementKind.TEXTBOX, description="元素类型")

    content: str = Field(default=DEFAULT_TEXTBOX_CONTENT, max_length=5000, description="文字内容")
    font_size: int = Field(default=DEFAULT_TEXTBOX_FONT_SIZE, ge=1, le=400, description="字号（磅）")
    wrap_width: float = Field(default=158.0, gt=0, description="换行宽度")


# ===================
# 图片元素
# ===================


class ImageElement(CardElement):
    """图片元素.

    Attributes:
        src: 图片来源（PNG Data URL、本地路径或远程地址）
        render_scale: 渲染缩放比例
        natural_width: 原始宽度（像素）
        natural_height: 原始高度（像素）
    """

    mutable_properties: ClassVar[frozenset[str]] = CardElement.mutable_properties | {
        "render_scale"
    }

    kind: Literal[ElementKind.IMAGE] = Field(default=ElementKind.IMAGE, description="元素类型")

    src: str = Field(min_length=1, description="图片来源")
    render_scale: float = Field(default=1.0, gt=0, description="渲染缩放比例")
    natural_width: int = Field(ge=1, description="原始宽度")
    natural_height: int = Field(ge=1, description="原始高度")

    @property
    def rendered_size(self) -> tuple[float, float]:
        """渲染尺寸（参考单位）."""
        return (
            self.natural_width * self.render_scale,
            self.natural_height * self.render_scale,
        )


class BackgroundImage(BaseModel):
    """全出血背景图片.

    始终居中于画布并裁剪到画布范围内。
    """

    src: str = Field(min_length=1, description="图片来源")
    render_scale: float = Field(gt=0, description="渲染缩放比例")
    natural_width: int = Field(ge=1, description="原始宽度")
    natural_height: int = Field(ge=1, description="原始高度")

    @property
    def rendered_size(self) -> tuple[float, float]:
        """渲染尺寸（参考单位）."""
        return (
            self.natural_width * self.render_scale,
            self.natural_height * self.render_scale,
        )


class Guide(BaseModel):
    """画布中心参考线.

    不可交互、不参与导出，也不会写入模板快照。
    """

    model_config = ConfigDict(frozen=True)

    id: str
    orientation: GuideOrientation
    position: float
    stroke_color: str = GUIDE_STROKE_COLOR
    stroke_width: float = GUIDE_STROKE_WIDTH


# ===================
# 元素联合类型
# ===================

AnyElement = Annotated[
    Union[TextElement, TextBoxElement, ImageElement],
    Field(discriminator="kind"),
]

ELEMENT_TYPES: dict[ElementKind, type[CardElement]] = {
    ElementKind.TEXT: TextElement,
    ElementKind.TEXTBOX: TextBoxElement,
    ElementKind.IMAGE: ImageElement,
}

_element_adapter: TypeAdapter = TypeAdapter(AnyElement)


def parse_element(data: dict[str, Any]) -> CardElement:
    """根据 kind 字段反序列化元素.

    Raises:
        pydantic.ValidationError: 数据无效或 kind 未知
    """
    return _element_adapter.validate_python(data)
