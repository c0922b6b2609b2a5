"""应用设置单元测试."""

import pytest
from pydantic import ValidationError

from card_designer.models.app_settings import Settings, TemplateStoreType
from card_designer.utils.constants import FONT_API_URL, TEMPLATES_DIR


class TestSettings:
    """Settings 测试类."""

    def test_defaults(self, monkeypatch):
        """测试默认值."""
        monkeypatch.delenv("CARD_DESIGNER_LOG_LEVEL", raising=False)
        settings = Settings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.template_store == TemplateStoreType.FILE
        assert settings.export_dpi == 300
        assert settings.font_api_url == FONT_API_URL
        assert settings.trusted_image_origins == []
        assert settings.templates_path == TEMPLATES_DIR

    def test_env_override(self, monkeypatch, tmp_path):
        """测试环境变量覆盖."""
        monkeypatch.setenv("CARD_DESIGNER_LOG_LEVEL", "debug")
        monkeypatch.setenv("CARD_DESIGNER_TEMPLATE_STORE", "sqlite")
        monkeypatch.setenv("CARD_DESIGNER_DATABASE_PATH", str(tmp_path / "t.db"))
        monkeypatch.setenv("CARD_DESIGNER_TRUSTED_IMAGE_ORIGINS", '["https://cdn.example.com"]')

        settings = Settings(_env_file=None)

        assert settings.log_level == "DEBUG"
        assert settings.template_store == TemplateStoreType.SQLITE
        assert settings.db_path == tmp_path / "t.db"
        assert settings.trusted_image_origins == ["https://cdn.example.com"]

    def test_invalid_log_level(self):
        """测试无效日志级别."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="LOUD")

    def test_export_dpi_range(self):
        """测试导出分辨率范围."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, export_dpi=10)
