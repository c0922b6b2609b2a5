"""配置管理器模块."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from card_designer.models.app_settings import Settings
from card_designer.models.card_dimensions import DEFAULT_DIMENSION, CardDimension, get_preset
from card_designer.utils.constants import APP_DATA_DIR
from card_designer.utils.exceptions import ConfigError, DimensionNotFoundError
from card_designer.utils.logger import setup_logger

logger = setup_logger(__name__)

# 用户配置文件名
USER_CONFIG_FILENAME = "config.json"

# 用户配置键
LAST_PRESET_KEY = "last_preset"


class ConfigManager:
    """配置管理器.

    负责应用设置的加载，以及少量用户偏好（上次使用的卡牌尺寸）的持久化。

    Attributes:
        settings: 应用设置
        config_file: 用户配置文件路径
    """

    _instance: Optional["ConfigManager"] = None

    def __new__(cls, config_file: Optional[Path] = None) -> "ConfigManager":
        """单例模式."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_file: Optional[Path] = None) -> None:
        """初始化配置管理器.

        Args:
            config_file: 用户配置文件路径，默认位于应用数据目录
        """
        if self._initialized:
            return

        self._settings: Optional[Settings] = None
        self.config_file = Path(config_file or APP_DATA_DIR / USER_CONFIG_FILENAME)
        self._initialized = True

        logger.debug(f"配置管理器初始化完成: {self.config_file}")

    @property
    def settings(self) -> Settings:
        """获取应用设置（首次访问时加载）."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    def _load_settings(self) -> Settings:
        """从环境变量和 .env 文件加载应用设置.

        Raises:
            ConfigError: 设置无效
        """
        try:
            settings = Settings()
        except ValidationError as e:
            logger.error(f"加载应用设置失败: {e}")
            raise ConfigError(f"加载应用设置失败: {e}") from e
        logger.debug(
            f"应用设置加载完成: log_level={settings.log_level}, "
            f"template_store={settings.template_store.value}"
        )
        return settings

    # ========================
    # 用户配置
    # ========================

    def save_user_config(self, config: dict[str, Any]) -> None:
        """合并并保存用户配置.

        Raises:
            ConfigError: 写入失败
        """
        existing = self._load_user_config()
        existing.update(config)
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            self.config_file.write_text(
                json.dumps(existing, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            logger.error(f"保存用户配置失败: {e}")
            raise ConfigError(f"保存用户配置失败: {e}") from e
        logger.debug("用户配置已保存")

    def _load_user_config(self) -> dict[str, Any]:
        if self.config_file.exists():
            try:
                return json.loads(self.config_file.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning(f"加载用户配置文件失败: {e}")
        return {}

    def get_user_config(self, key: str, default: Any = None) -> Any:
        """获取用户配置项."""
        return self._load_user_config().get(key, default)

    def set_user_config(self, key: str, value: Any) -> None:
        """设置用户配置项."""
        self.save_user_config({key: value})

    def get_last_preset(self) -> CardDimension:
        """上次使用的卡牌尺寸，未记录或已失效时返回默认尺寸."""
        name = self.get_user_config(LAST_PRESET_KEY)
        if not name:
            return DEFAULT_DIMENSION
        try:
            return get_preset(name)
        except DimensionNotFoundError:
            logger.warning(f"用户配置中的卡牌尺寸无效: {name}")
            return DEFAULT_DIMENSION

    def set_last_preset(self, dimension: CardDimension) -> None:
        """记录上次使用的卡牌尺寸."""
        self.set_user_config(LAST_PRESET_KEY, dimension.name)

    def reload(self) -> None:
        """重新加载应用设置."""
        self._settings = None
        logger.info("配置已重新加载")

    def reset_to_defaults(self) -> None:
        """删除用户配置文件并重新加载."""
        if self.config_file.exists():
            self.config_file.unlink()
        self.reload()
        logger.info("配置已重置为默认值")


def get_config() -> ConfigManager:
    """获取配置管理器实例."""
    return ConfigManager()


def reset_config() -> None:
    """重置配置管理器单例（测试用）."""
    ConfigManager._instance = None
