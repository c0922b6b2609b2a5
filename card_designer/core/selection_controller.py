"""选中与样式控制器.

跟踪当前选中的元素（最多一个），并把样式面板的操作转换为画布文档的属性修改。

    - 文字/文本框：字号、颜色、字体、粗体/斜体、对齐方式、内容
    - 图片：缩放和锚点
    - 所有元素：位置、删除、前移/后移

不适用于当前元素类型的属性会被拒绝，不改变任何状态。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

from card_designer.core.layer_ordering import LayerOrderingService
from card_designer.models.card_document import CardDocument, MutationResult
from card_designer.models.card_elements import (
    CardElement,
    FontStyle,
    FontWeight,
    OriginX,
    OriginY,
    TextAlign,
    TextElement,
)
from card_designer.utils.logger import setup_logger

if TYPE_CHECKING:
    from card_designer.services.font_registry import FontRegistry

logger = setup_logger(__name__)

ChangeCallback = Callable[[], None]


class SelectionController:
    """选中与样式控制器.

    Example:
        >>> controller = SelectionController(document)
        >>> controller.select(title_id)
        True
        >>> controller.set_font_size(24)
        <MutationResult.APPLIED: 'applied'>
        >>> controller.set_scale(2.0)
        <MutationResult.NOT_APPLICABLE: 'not_applicable'>
    """

    def __init__(
        self,
        document: CardDocument,
        font_registry: Optional["FontRegistry"] = None,
        on_change: Optional[ChangeCallback] = None,
    ) -> None:
        """初始化控制器.

        Args:
            document: 画布文档
            font_registry: 字体注册表（修改字体时请求下载）
            on_change: 每次成功修改后的回调
        """
        self.document = document
        self.layers = LayerOrderingService(document)
        self.font_registry = font_registry
        self.on_change = on_change
        self._selected_id: Optional[str] = None

    # ========================
    # 选中
    # ========================

    @property
    def selected_id(self) -> Optional[str]:
        """当前选中的元素ID.

        元素已被删除时视为未选中。
        """
        if self._selected_id is not None and self.document.index_of(self._selected_id) < 0:
            self._selected_id = None
        return self._selected_id

    @property
    def selected_element(self) -> Optional[CardElement]:
        """当前选中的元素."""
        selected_id = self.selected_id
        return self.document.get_element(selected_id) if selected_id else None

    @property
    def has_selection(self) -> bool:
        """是否有选中的元素."""
        return self.selected_id is not None

    def select(self, element_id: str) -> bool:
        """选中元素，参考线和不存在的元素不可选中."""
        if self.document.index_of(element_id) < 0:
            logger.debug(f"无法选中元素: {element_id}")
            return False
        self._selected_id = element_id
        return True

    def deselect(self) -> None:
        """取消选中."""
        self._selected_id = None

    # ========================
    # 通用修改
    # ========================

    def set_property(self, property_name: str, value: Any) -> MutationResult:
        """修改选中元素的任意属性."""
        return self._apply({property_name: value})

    def _apply(self, updates: dict[str, Any]) -> MutationResult:
        """依次修改多个属性，任一失败则还原已修改的属性."""
        element = self.selected_element
        if element is None:
            return MutationResult.NO_SELECTION

        original = element
        for property_name, value in updates.items():
            result = self.document.update_element_style(element.id, property_name, value)
            if not result.ok:
                index = self.document.index_of(element.id)
                self.document.elements[index] = original
                return result

        self._notify()
        return MutationResult.APPLIED

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    # ========================
    # 文字样式
    # ========================

    def set_text(self, content: str) -> MutationResult:
        """修改文字内容."""
        return self._apply({"content": content})

    def set_font_size(self, size: int) -> MutationResult:
        """修改字号（整数磅值）."""
        if isinstance(size, bool) or not isinstance(size, int):
            return self._reject("font_size", size)
        return self._apply({"font_size": size})

    def set_fill_color(self, color: str) -> MutationResult:
        """修改填充颜色."""
        return self._apply({"fill_color": color})

    def set_font_family(self, family: str) -> MutationResult:
        """修改字体，可以是内置字体或任意字体名.

        非内置字体会在后台下载，下载完成前渲染使用回退字体。
        """
        result = self._apply({"font_family": family})
        if result.ok and self.font_registry is not None:
            self.font_registry.request(family)
        return result

    def set_bold(self, bold: bool) -> MutationResult:
        """设置粗体."""
        return self._apply({"font_weight": FontWeight.BOLD if bold else FontWeight.NORMAL})

    def set_italic(self, italic: bool) -> MutationResult:
        """设置斜体."""
        return self._apply({"font_style": FontStyle.ITALIC if italic else FontStyle.NORMAL})

    def toggle_bold(self) -> MutationResult:
        """切换粗体."""
        element = self.selected_element
        if not isinstance(element, TextElement):
            return self._apply({"font_weight": FontWeight.BOLD})
        return self.set_bold(not element.is_bold)

    def toggle_italic(self) -> MutationResult:
        """切换斜体."""
        element = self.selected_element
        if not isinstance(element, TextElement):
            return self._apply({"font_style": FontStyle.ITALIC})
        return self.set_italic(not element.is_italic)

    def set_text_align(self, align: TextAlign | str) -> MutationResult:
        """修改水平对齐方式."""
        return self._apply({"text_align": align})

    def set_wrap_width(self, width: float) -> MutationResult:
        """修改文本框换行宽度（仅文本框）."""
        return self._apply({"wrap_width": width})

    # ========================
    # 几何
    # ========================

    def set_scale(self, scale: float) -> MutationResult:
        """修改图片缩放（仅图片）."""
        return self._apply({"render_scale": scale})

    def set_origin(
        self,
        origin_x: Optional[OriginX | str] = None,
        origin_y: Optional[OriginY | str] = None,
    ) -> MutationResult:
        """修改锚点."""
        updates: dict[str, Any] = {}
        if origin_x is not None:
            updates["origin_x"] = origin_x
        if origin_y is not None:
            updates["origin_y"] = origin_y
        if not updates:
            return MutationResult.INVALID_VALUE
        return self._apply(updates)

    def move_to(self, x: float, y: float) -> MutationResult:
        """移动锚点位置."""
        return self._apply({"x": x, "y": y})

    # ========================
    # 删除与层级
    # ========================

    def delete_selected(self) -> bool:
        """删除选中元素并取消选中."""
        selected_id = self.selected_id
        if selected_id is None:
            return False
        removed = self.document.remove_element(selected_id)
        self._selected_id = None
        if removed:
            self._notify()
        return removed

    def bring_forward(self) -> bool:
        """选中元素上移一层."""
        selected_id = self.selected_id
        if selected_id is None:
            return False
        changed = self.layers.bring_forward(selected_id)
        if changed:
            self._notify()
        return changed

    def send_backward(self) -> bool:
        """选中元素下移一层."""
        selected_id = self.selected_id
        if selected_id is None:
            return False
        changed = self.layers.send_backward(selected_id)
        if changed:
            self._notify()
        return changed

    def _reject(self, property_name: str, value: Any) -> MutationResult:
        if not self.has_selection:
            return MutationResult.NO_SELECTION
        logger.debug(f"属性值无效: {property_name}={value!r}")
        return MutationResult.INVALID_VALUE
