"""数据模型模块."""

from card_designer.models.card_dimensions import (
    CARD_PRESETS,
    DEFAULT_DIMENSION,
    CardDimension,
    get_preset,
    list_presets,
)
from card_designer.models.card_document import (
    CardDocument,
    MutationResult,
    ReorderDirection,
    SceneSnapshot,
)
from card_designer.models.card_elements import (
    # 枚举
    ElementKind,
    FontStyle,
    FontWeight,
    OriginX,
    OriginY,
    TextAlign,
    # 元素类
    AnyElement,
    BackgroundImage,
    CardElement,
    Guide,
    ImageElement,
    TextBoxElement,
    TextElement,
    # 辅助函数
    generate_element_id,
    parse_element,
)
from card_designer.models.card_template import CardTemplate

__all__ = [
    # 尺寸
    "CARD_PRESETS",
    "DEFAULT_DIMENSION",
    "CardDimension",
    "get_preset",
    "list_presets",
    # 文档
    "CardDocument",
    "MutationResult",
    "ReorderDirection",
    "SceneSnapshot",
    # 枚举
    "ElementKind",
    "FontStyle",
    "FontWeight",
    "OriginX",
    "OriginY",
    "TextAlign",
    # 元素类
    "AnyElement",
    "BackgroundImage",
    "CardElement",
    "Guide",
    "ImageElement",
    "TextBoxElement",
    "TextElement",
    # 辅助函数
    "generate_element_id",
    "parse_element",
    # 模板
    "CardTemplate",
]
