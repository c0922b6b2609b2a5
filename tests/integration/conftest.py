"""集成测试配置和共享 fixtures."""

from pathlib import Path
from typing import Generator

import pytest

from card_designer.core.config_manager import ConfigManager, reset_config
from card_designer.models.app_settings import Settings


@pytest.fixture
def config_manager(tmp_path: Path) -> Generator[ConfigManager, None, None]:
    """使用临时用户配置文件的配置管理器."""
    reset_config()
    manager = ConfigManager(config_file=tmp_path / "config.json")
    yield manager
    reset_config()


@pytest.fixture(params=["sqlite", "file"])
def settings(request: pytest.FixtureRequest, tmp_path: Path) -> Settings:
    """持久化模板存储的应用设置（不读取 .env，不预加载字体）."""
    return Settings(
        _env_file=None,
        template_store=request.param,
        database_path=tmp_path / "templates.db",
        templates_dir=tmp_path / "templates",
        font_cache_dir=tmp_path / "fonts",
        preload_web_fonts=False,
    )


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """导出目录."""
    output = tmp_path / "output"
    output.mkdir(parents=True, exist_ok=True)
    return output
