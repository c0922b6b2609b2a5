"""卡牌设计完整流程集成测试.

覆盖 应用初始化 → 编辑 → 保存模板 → 重启应用 → 加载模板 → 导出 的流程。
"""

import io
import json

import pytest
from PIL import Image

from card_designer.app import Application
from card_designer.core.card_designer import ArtifactKind, SessionState
from card_designer.models.card_dimensions import get_preset
from card_designer.models.card_elements import ImageElement

pytestmark = pytest.mark.integration


class TestApplication:
    """应用初始化测试类."""

    def test_initialize(self, settings, config_manager):
        """测试初始化创建存储和字体注册表."""
        app = Application(settings)

        app.initialize()

        assert app.is_initialized
        assert app.template_store is not None
        assert app.font_registry is not None
        app.cleanup()

    def test_session_uses_last_preset(self, settings, config_manager):
        """测试新会话使用上次的卡牌尺寸."""
        config_manager.set_last_preset(get_preset("Jumbo"))
        app = Application(settings)

        session = app.create_session()

        assert session.dimension.name == "Jumbo"
        assert session.state == SessionState.INITIALIZED
        app.cleanup()

    def test_export_multiplier_from_dpi(self, settings, config_manager):
        """测试导出倍率由导出 DPI 决定."""
        settings.export_dpi = 144
        app = Application(settings)

        session = app.create_session()
        artifact = session.export_raster()

        with Image.open(io.BytesIO(artifact.payload)) as image:
            assert image.size == (396, 540)
        app.cleanup()


class TestTemplateWorkflow:
    """模板持久化流程测试类."""

    @pytest.mark.asyncio
    async def test_templates_survive_restart(self, settings, config_manager, sample_image_path):
        """测试模板在应用重启后仍可加载."""
        app = Application(settings)
        session = app.create_session()
        session.change_dimension("Poker")
        session.add_text("Goblin King")
        session.selection.set_font_size(28)
        await session.insert_image(sample_image_path)
        await session.set_background_image(sample_image_path)
        expected = session.document.to_snapshot()
        template = session.save_template("Goblin")
        app.cleanup()

        restarted = Application(settings)
        new_session = restarted.create_session()
        templates = new_session.list_templates()

        assert [t.id for t in templates] == [template.id]
        new_session.load_template(templates[0])
        assert new_session.dimension.name == "Poker"
        assert new_session.document.to_snapshot() == expected
        assert isinstance(new_session.document.elements[-1], ImageElement)
        restarted.cleanup()

    def test_artifacts_written(self, settings, config_manager, output_dir):
        """测试导出产物写入目录."""
        written = []
        app = Application(settings)
        session = app.create_session(on_save=lambda a: written.append(a.write_to(output_dir)))
        session.change_dimension("Square")

        session.save_template("Deck Back")
        session.export_raster(multiplier=1)
        session.export_scene_dump()

        assert [p.name for p in written] == [
            "deck_back.card-template.json",
            "card-square.png",
            "card-square.json",
        ]
        dump = json.loads((output_dir / "card-square.json").read_text(encoding="utf-8"))
        assert dump["dimension"]["name"] == "Square"
        with Image.open(output_dir / "card-square.png") as image:
            assert image.size == (252, 252)
        app.cleanup()

    def test_session_artifact_kinds(self, settings, config_manager):
        """测试产物类型."""
        kinds = []
        app = Application(settings)
        session = app.create_session(on_save=lambda a: kinds.append(a.kind))

        session.export_scene_dump()
        session.save_template("x")

        assert kinds == [ArtifactKind.SCENE_DUMP, ArtifactKind.TEMPLATE]
        app.cleanup()
