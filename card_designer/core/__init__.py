"""核心业务逻辑模块."""

from card_designer.core.layer_ordering import (
    Drawable,
    LayerOrderingService,
    paint_order,
)
from card_designer.core.selection_controller import SelectionController

__all__ = [
    # 图层顺序
    "Drawable",
    "LayerOrderingService",
    "paint_order",
    # 选中与样式
    "SelectionController",
]
