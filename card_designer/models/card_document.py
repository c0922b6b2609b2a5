"""卡牌画布文档（场景图）.

一个画布文档由一个卡牌尺寸、可选的全出血背景图片和有序的元素列表组成。
元素列表顺序即绘制顺序（z 序），背景总在所有元素之下，
中心参考线在背景之上、所有元素之下。

Features:
    - 按尺寸初始化（参考线 + 默认标题/正文）
    - 元素添加、删除、按ID查找
    - 通用属性修改（返回结果而不是抛出异常）
    - 相邻元素交换实现前移/后移
    - 无损快照导出与还原
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from card_designer.models.card_dimensions import DEFAULT_DIMENSION, CardDimension
from card_designer.models.card_elements import (
    ELEMENT_TYPES,
    AnyElement,
    BackgroundImage,
    CardElement,
    ElementKind,
    FontWeight,
    Guide,
    GuideOrientation,
    OriginX,
    OriginY,
    TextAlign,
    TextBoxElement,
    TextElement,
    generate_element_id,
    resolve_property_name,
)
from card_designer.utils.constants import (
    DEFAULT_FONT_FAMILY,
    SCENE_FORMAT_VERSION,
    TEXTBOX_MARGIN,
)
from card_designer.utils.logger import setup_logger

logger = setup_logger(__name__)


# ===================
# 默认内容
# ===================

DEFAULT_TITLE_CONTENT = "CARD TITLE"
DEFAULT_TITLE_TOP = 30
DEFAULT_TITLE_FONT_SIZE = 20
DEFAULT_BODY_CONTENT = (
    "Enter your card description here. "
    "This text will automatically wrap to fit the card width."
)
DEFAULT_BODY_TOP = 80
DEFAULT_BODY_FONT_SIZE = 12
DEFAULT_BODY_COLOR = "#333333"


class MutationResult(str, Enum):
    """属性修改结果."""

    APPLIED = "applied"  # 已修改
    UNKNOWN_ELEMENT = "unknown_element"  # 元素不存在
    NOT_APPLICABLE = "not_applicable"  # 属性不适用于该元素类型
    INVALID_VALUE = "invalid_value"  # 值未通过校验
    NO_SELECTION = "no_selection"  # 当前没有选中元素

    @property
    def ok(self) -> bool:
        """是否修改成功."""
        return self is MutationResult.APPLIED


class ReorderDirection(str, Enum):
    """层级移动方向."""

    FORWARD = "forward"  # 上移一层（靠近顶部）
    BACKWARD = "backward"  # 下移一层（靠近底部）


def build_guides(dimension: CardDimension) -> list[Guide]:
    """生成画布中心参考线（垂直 + 水平）."""
    cx, cy = dimension.center
    return [
        Guide(id="guide-vertical", orientation=GuideOrientation.VERTICAL, position=cx),
        Guide(id="guide-horizontal", orientation=GuideOrientation.HORIZONTAL, position=cy),
    ]


def build_default_elements(dimension: CardDimension) -> list[CardElement]:
    """生成默认模板内容：居中标题 + 居中正文文本框."""
    cx = dimension.width / 2
    title = TextElement(
        content=DEFAULT_TITLE_CONTENT,
        x=cx,
        y=DEFAULT_TITLE_TOP,
        origin_x=OriginX.CENTER,
        origin_y=OriginY.TOP,
        font_family=DEFAULT_FONT_FAMILY,
        font_size=DEFAULT_TITLE_FONT_SIZE,
        font_weight=FontWeight.BOLD,
        text_align=TextAlign.CENTER,
        fill_color="#000000",
    )
    body = TextBoxElement(
        content=DEFAULT_BODY_CONTENT,
        x=cx,
        y=DEFAULT_BODY_TOP,
        origin_x=OriginX.CENTER,
        origin_y=OriginY.TOP,
        wrap_width=max(1.0, dimension.width - TEXTBOX_MARGIN),
        font_family=DEFAULT_FONT_FAMILY,
        font_size=DEFAULT_BODY_FONT_SIZE,
        text_align=TextAlign.CENTER,
        fill_color=DEFAULT_BODY_COLOR,
    )
    return [title, body]


class SceneSnapshot(BaseModel):
    """场景快照.

    元素列表和背景的完整无损转储，不包含参考线。
    """

    version: str = Field(default=SCENE_FORMAT_VERSION, description="格式版本")
    background: Optional[BackgroundImage] = Field(default=None, description="背景图片")
    elements: list[AnyElement] = Field(default_factory=list, description="元素列表")


class CardDocument(BaseModel):
    """卡牌画布文档.

    Attributes:
        dimension: 卡牌尺寸
        background: 背景图片
        elements: 元素列表（顺序即 z 序，末尾在最上层）
        guides: 中心参考线（不序列化）

    Example:
        >>> doc = CardDocument.create(get_preset("Poker"))
        >>> doc.element_count
        2
        >>> element_id = doc.add_element("text", {"content": "Hello"})
        >>> doc.update_element_style(element_id, "font_size", 24)
        <MutationResult.APPLIED: 'applied'>
    """

    dimension: CardDimension = Field(default=DEFAULT_DIMENSION, description="卡牌尺寸")
    background: Optional[BackgroundImage] = Field(default=None, description="背景图片")
    elements: list[AnyElement] = Field(default_factory=list, description="元素列表")
    guides: list[Guide] = Field(default_factory=list, exclude=True, description="参考线")

    @classmethod
    def create(cls, dimension: CardDimension = DEFAULT_DIMENSION) -> "CardDocument":
        """创建并初始化文档."""
        document = cls(dimension=dimension)
        document.init(dimension)
        return document

    # ========================
    # 初始化
    # ========================

    def init(self, dimension: CardDimension) -> None:
        """按尺寸重新初始化文档.

        清空全部元素和背景，重建参考线并放入默认标题和正文。
        这是破坏性操作，已有内容不会按新尺寸缩放。

        Args:
            dimension: 新的卡牌尺寸
        """
        self.dimension = dimension
        self.background = None
        self.elements = []
        self.guides = build_guides(dimension)
        for element in build_default_elements(dimension):
            self.append_element(element)
        logger.debug(f"画布已初始化: {dimension.name} ({dimension.width}x{dimension.height})")

    # ========================
    # 查询
    # ========================

    @property
    def element_count(self) -> int:
        """元素数量."""
        return len(self.elements)

    def element_ids(self) -> list[str]:
        """按绘制顺序返回元素ID."""
        return [element.id for element in self.elements]

    def index_of(self, element_id: str) -> int:
        """获取元素在绘制顺序中的位置，不存在返回 -1."""
        for i, element in enumerate(self.elements):
            if element.id == element_id:
                return i
        return -1

    def get_element(self, element_id: str) -> Optional[CardElement]:
        """根据ID获取元素."""
        index = self.index_of(element_id)
        return self.elements[index] if index >= 0 else None

    def is_guide(self, element_id: str) -> bool:
        """ID 是否属于参考线."""
        return any(guide.id == element_id for guide in self.guides)

    # ========================
    # 元素增删
    # ========================

    def add_element(
        self,
        kind: ElementKind | str,
        initial_props: Optional[dict[str, Any]] = None,
    ) -> str:
        """创建新元素并放到最上层.

        Args:
            kind: 元素类型
            initial_props: 初始属性（支持原编辑器属性名）

        Returns:
            新元素ID

        Raises:
            ValueError: 元素类型未知
            pydantic.ValidationError: 初始属性无效
        """
        element_type = ELEMENT_TYPES[ElementKind(kind)]
        props = {
            resolve_property_name(key): value
            for key, value in (initial_props or {}).items()
            if key not in ("id", "kind")
        }
        return self.append_element(element_type(**props))

    def append_element(self, element: CardElement) -> str:
        """追加已构建的元素到最上层.

        ID 与现有元素或参考线冲突时重新分配。

        Returns:
            元素ID
        """
        if self.index_of(element.id) >= 0 or self.is_guide(element.id):
            element = element.model_copy(update={"id": self._fresh_id()})
        self.elements.append(element)
        return element.id

    def remove_element(self, element_id: str) -> bool:
        """删除元素，不存在时不做任何操作.

        Returns:
            是否删除
        """
        index = self.index_of(element_id)
        if index < 0:
            return False
        self.elements.pop(index)
        logger.debug(f"元素已删除: {element_id}")
        return True

    def _fresh_id(self) -> str:
        existing = set(self.element_ids()) | {guide.id for guide in self.guides}
        while True:
            candidate = generate_element_id()
            if candidate not in existing:
                return candidate

    # ========================
    # 属性修改
    # ========================

    def update_element_style(
        self,
        element_id: str,
        property_name: str,
        value: Any,
    ) -> MutationResult:
        """修改元素属性.

        元素不存在、属性不适用于该类型或值无效时不改变任何状态，
        也不抛出异常，通过返回值说明原因。

        Args:
            element_id: 元素ID
            property_name: 属性名（字段名或原编辑器属性名）
            value: 新值

        Returns:
            修改结果
        """
        index = self.index_of(element_id)
        if index < 0:
            logger.debug(f"修改属性失败，元素不存在: {element_id}")
            return MutationResult.UNKNOWN_ELEMENT

        element = self.elements[index]
        field_name = resolve_property_name(property_name)
        if not element.accepts(field_name):
            logger.debug(f"属性 '{property_name}' 不适用于 {element.kind.value} 元素")
            return MutationResult.NOT_APPLICABLE

        data = element.model_dump()
        data[field_name] = value
        try:
            updated = type(element).model_validate(data)
        except ValidationError as e:
            logger.debug(f"属性值无效: {property_name}={value!r}, {e.error_count()} 个错误")
            return MutationResult.INVALID_VALUE

        self.elements[index] = updated
        return MutationResult.APPLIED

    # ========================
    # 层级
    # ========================

    def reorder(self, element_id: str, direction: ReorderDirection | str) -> bool:
        """与相邻元素交换位置.

        最上层元素前移、最下层元素后移均为无操作。

        Returns:
            顺序是否改变
        """
        index = self.index_of(element_id)
        if index < 0:
            return False

        step = 1 if ReorderDirection(direction) == ReorderDirection.FORWARD else -1
        target = index + step
        if not 0 <= target < len(self.elements):
            return False

        self.elements[index], self.elements[target] = self.elements[target], self.elements[index]
        return True

    # ========================
    # 背景
    # ========================

    def set_background(self, background: BackgroundImage) -> None:
        """设置背景图片."""
        self.background = background

    def clear_background(self) -> None:
        """移除背景图片."""
        self.background = None

    # ========================
    # 快照
    # ========================

    def to_snapshot(self) -> SceneSnapshot:
        """导出场景快照（深拷贝，不含参考线）."""
        return SceneSnapshot(
            background=self.background.model_copy() if self.background else None,
            elements=[element.model_copy(deep=True) for element in self.elements],
        )

    def restore_snapshot(self, snapshot: SceneSnapshot) -> None:
        """用快照替换元素和背景.

        尺寸和参考线保持不变，调用前应先完成按尺寸的初始化。
        """
        self.elements = []
        for element in snapshot.elements:
            self.append_element(element.model_copy(deep=True))
        self.background = snapshot.background.model_copy() if snapshot.background else None
        logger.debug(f"场景快照已还原: {self.element_count} 个元素")
