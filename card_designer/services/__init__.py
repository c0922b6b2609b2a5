"""服务层模块."""

from card_designer.services.card_renderer import CardRenderer, raster_size
from card_designer.services.database_service import DatabaseService
from card_designer.services.element_factory import (
    ElementFactory,
    cover_scale,
    foreground_scale,
)
from card_designer.services.font_registry import (
    AVAILABLE_FONTS,
    SYSTEM_FONTS,
    WEB_FONTS,
    FontLoadState,
    FontRegistry,
    get_font_registry,
)
from card_designer.services.template_repository import TemplateRepository
from card_designer.services.template_store import (
    InMemoryTemplateStore,
    JsonFileTemplateStore,
    SqlTemplateStore,
    TemplateStore,
    create_template_store,
)

__all__ = [
    # 渲染
    "CardRenderer",
    "raster_size",
    # 元素工厂
    "ElementFactory",
    "cover_scale",
    "foreground_scale",
    # 字体
    "AVAILABLE_FONTS",
    "SYSTEM_FONTS",
    "WEB_FONTS",
    "FontLoadState",
    "FontRegistry",
    "get_font_registry",
    # 模板
    "TemplateRepository",
    "TemplateStore",
    "InMemoryTemplateStore",
    "JsonFileTemplateStore",
    "SqlTemplateStore",
    "create_template_store",
    # 数据库
    "DatabaseService",
]
