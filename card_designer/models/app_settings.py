"""应用设置模型."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from card_designer.utils.constants import (
    APP_DATA_DIR,
    DATABASE_PATH,
    FONT_API_URL,
    FONT_CACHE_DIR,
    FONT_FETCH_TIMEOUT,
    MAX_IMAGE_FILE_SIZE,
    PRINT_REFERENCE_DPI,
    TEMPLATES_DIR,
)


class TemplateStoreType(str, Enum):
    """模板存储类型."""

    MEMORY = "memory"  # 内存（进程结束即丢失）
    FILE = "file"  # JSON 文件目录
    SQLITE = "sqlite"  # SQLite 数据库


class Settings(BaseSettings):
    """应用设置.

    支持从环境变量和 .env 文件加载配置，环境变量前缀为 CARD_DESIGNER_。

    Attributes:
        log_level: 日志级别
        template_store: 模板存储类型
        templates_dir: 模板文件目录（file 存储）
        database_path: 数据库文件路径（sqlite 存储）
        font_api_url: 网络字体样式表地址
        font_fetch_timeout: 字体下载超时（秒）
        font_cache_dir: 字体缓存目录
        preload_web_fonts: 启动时是否预加载网络字体
        export_dpi: 导出分辨率
        trusted_image_origins: 允许导出时回读的远程图片来源
        max_image_file_size: 最大图片文件大小
        debug: 调试模式
    """

    model_config = SettingsConfigDict(
        env_prefix="CARD_DESIGNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="日志级别")

    # 模板存储
    template_store: TemplateStoreType = Field(
        default=TemplateStoreType.FILE,
        description="模板存储类型",
    )
    templates_dir: Optional[Path] = Field(default=None, description="模板文件目录")
    database_path: Optional[Path] = Field(default=None, description="数据库文件路径")

    # 字体
    font_api_url: str = Field(default=FONT_API_URL, description="网络字体样式表地址")
    font_fetch_timeout: float = Field(
        default=FONT_FETCH_TIMEOUT,
        gt=0,
        le=120,
        description="字体下载超时",
    )
    font_cache_dir: Optional[Path] = Field(default=None, description="字体缓存目录")
    preload_web_fonts: bool = Field(default=False, description="启动时预加载网络字体")

    # 导出
    export_dpi: int = Field(
        default=PRINT_REFERENCE_DPI,
        ge=72,
        le=1200,
        description="导出分辨率",
    )
    trusted_image_origins: list[str] = Field(
        default_factory=list,
        description="受信任的远程图片来源",
    )
    max_image_file_size: int = Field(
        default=MAX_IMAGE_FILE_SIZE,
        ge=1,
        description="最大图片文件大小",
    )

    debug: bool = Field(default=False, description="调试模式")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"无效的日志级别: {v}，有效值: {valid_levels}")
        return upper_v

    @property
    def data_dir(self) -> Path:
        """应用数据目录."""
        return APP_DATA_DIR

    @property
    def db_path(self) -> Path:
        """获取数据库路径."""
        return self.database_path or DATABASE_PATH

    @property
    def templates_path(self) -> Path:
        """获取模板目录."""
        return self.templates_dir or TEMPLATES_DIR

    @property
    def fonts_path(self) -> Path:
        """获取字体缓存目录."""
        return self.font_cache_dir or FONT_CACHE_DIR
