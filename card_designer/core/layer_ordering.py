"""图层顺序服务.

在画布文档的 reorder 之上提供面向用户的前移/后移操作，
并给出渲染器使用的绘制顺序：背景 → 参考线 → 元素（列表顺序）。
"""

from __future__ import annotations

from typing import Iterator, Union

from card_designer.models.card_document import CardDocument, ReorderDirection
from card_designer.models.card_elements import BackgroundImage, CardElement, Guide
from card_designer.utils.logger import setup_logger

logger = setup_logger(__name__)

Drawable = Union[BackgroundImage, Guide, CardElement]


def paint_order(document: CardDocument, include_guides: bool = True) -> Iterator[Drawable]:
    """按绘制顺序遍历可绘制对象.

    Args:
        document: 画布文档
        include_guides: 是否包含参考线（导出时不包含）

    Yields:
        背景图片、参考线、元素
    """
    if document.background is not None:
        yield document.background
    if include_guides:
        yield from document.guides
    yield from document.elements


class LayerOrderingService:
    """图层顺序服务.

    参考线始终绘制在所有元素之下，不参与用户排序。
    """

    def __init__(self, document: CardDocument) -> None:
        self.document = document

    def bring_forward(self, element_id: str) -> bool:
        """上移一层，已在最上层时无操作."""
        return self._reorder(element_id, ReorderDirection.FORWARD)

    def send_backward(self, element_id: str) -> bool:
        """下移一层，已在最下层时无操作."""
        return self._reorder(element_id, ReorderDirection.BACKWARD)

    def _reorder(self, element_id: str, direction: ReorderDirection) -> bool:
        if self.document.is_guide(element_id):
            logger.debug(f"参考线不参与排序: {element_id}")
            return False
        changed = self.document.reorder(element_id, direction)
        if changed:
            logger.debug(f"图层已{'上移' if direction == ReorderDirection.FORWARD else '下移'}: {element_id}")
        return changed
