"""应用初始化和管理."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from card_designer.utils.logger import setup_logger

if TYPE_CHECKING:
    from card_designer.core.card_designer import CardDesigner, SaveCallback
    from card_designer.models.app_settings import Settings
    from card_designer.services.font_registry import FontRegistry
    from card_designer.services.template_store import TemplateStore

logger = setup_logger(__name__)


class Application:
    """应用管理类.

    负责应用的初始化、配置加载和资源管理。

    Attributes:
        settings: 应用设置
        template_store: 模板存储
        font_registry: 字体注册表
    """

    def __init__(self, settings: Optional["Settings"] = None) -> None:
        """初始化应用管理器.

        Args:
            settings: 应用设置，默认通过配置管理器加载
        """
        self.settings = settings
        self.template_store: Optional["TemplateStore"] = None
        self.font_registry: Optional["FontRegistry"] = None
        self._main_window = None
        self._initialized: bool = False

    def initialize(self) -> None:
        """初始化应用.

        执行以下初始化步骤:
        1. 加载配置并应用日志级别
        2. 确保数据目录存在
        3. 初始化模板存储
        4. 初始化字体注册表
        """
        if self._initialized:
            logger.warning("应用已初始化，跳过重复初始化")
            return

        logger.info("开始初始化应用...")

        self._load_settings()
        self._ensure_data_directory()
        self._init_template_store()
        self._init_font_registry()

        self._initialized = True
        logger.info("应用初始化完成")

    def _load_settings(self) -> None:
        """加载应用设置."""
        from card_designer.core.config_manager import get_config
        from card_designer.utils.logger import set_log_level

        if self.settings is None:
            self.settings = get_config().settings
        set_log_level(self.settings.log_level)
        logger.debug(f"日志级别: {self.settings.log_level}")

    def _ensure_data_directory(self) -> None:
        """确保应用数据目录存在."""
        from card_designer.utils.file_utils import ensure_directory

        ensure_directory(self.settings.data_dir)
        logger.debug(f"数据目录: {self.settings.data_dir}")

    def _init_template_store(self) -> None:
        """初始化模板存储."""
        from card_designer.services.template_store import create_template_store

        self.template_store = create_template_store(self.settings)

    def _init_font_registry(self) -> None:
        """初始化字体注册表."""
        from card_designer.services.font_registry import FontRegistry

        self.font_registry = FontRegistry(
            api_url=self.settings.font_api_url,
            cache_dir=self.settings.fonts_path,
            timeout=self.settings.font_fetch_timeout,
        )
        if self.settings.preload_web_fonts:
            self.font_registry.preload_web_fonts()
            logger.info("已开始预加载网络字体")

    def create_session(self, on_save: Optional["SaveCallback"] = None) -> "CardDesigner":
        """创建并挂载编辑会话.

        Args:
            on_save: 导出产物回调

        Returns:
            已按上次使用的尺寸初始化的会话
        """
        from card_designer.core.card_designer import CardDesigner
        from card_designer.core.config_manager import get_config
        from card_designer.services.card_renderer import CardRenderer
        from card_designer.services.template_repository import TemplateRepository
        from card_designer.utils.constants import SCREEN_REFERENCE_DPI

        if not self._initialized:
            self.initialize()

        renderer = CardRenderer(
            font_registry=self.font_registry,
            trusted_origins=self.settings.trusted_image_origins,
        )
        session = CardDesigner(
            repository=TemplateRepository(self.template_store),
            renderer=renderer,
            font_registry=self.font_registry,
            on_save=on_save,
            export_multiplier=self.settings.export_dpi / SCREEN_REFERENCE_DPI,
            max_image_file_size=self.settings.max_image_file_size,
        )
        session.mount(get_config().get_last_preset())
        return session

    def show_main_window(self) -> None:
        """显示编辑窗口."""
        from card_designer.ui.designer_window import DesignerWindow

        if self._main_window is None:
            self._main_window = DesignerWindow(self.create_session())

        self._main_window.show()
        logger.info("编辑窗口已显示")

    def cleanup(self) -> None:
        """清理应用资源."""
        logger.info("开始清理应用资源...")
        if self.template_store is not None:
            self.template_store.close()
        self._main_window = None
        logger.info("应用资源清理完成")

    @property
    def is_initialized(self) -> bool:
        """返回应用是否已初始化."""
        return self._initialized
