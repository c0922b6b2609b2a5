"""Pytest 配置和共享 fixtures."""

import os
import tempfile
from pathlib import Path

# 应用数据目录指向临时目录（必须在导入 card_designer 之前设置）
os.environ.setdefault("CARD_DESIGNER_HOME", tempfile.mkdtemp(prefix="card-designer-test-"))

import httpx
import pytest
from PIL import Image

from card_designer.core.card_designer import CardDesigner
from card_designer.models.card_dimensions import CardDimension, get_preset
from card_designer.models.card_document import CardDocument
from card_designer.services.card_renderer import CardRenderer
from card_designer.services.font_registry import FontRegistry


def _offline_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404, text="offline")


@pytest.fixture
def standard() -> CardDimension:
    """Standard 尺寸 (198 x 270)."""
    return get_preset("Standard")


@pytest.fixture
def square() -> CardDimension:
    """Square 尺寸 (252 x 252)."""
    return get_preset("Square")


@pytest.fixture
def document(standard: CardDimension) -> CardDocument:
    """已初始化的 Standard 画布文档."""
    return CardDocument.create(standard)


@pytest.fixture
def font_registry(tmp_path: Path) -> FontRegistry:
    """离线字体注册表（所有网络请求返回 404）."""
    return FontRegistry(
        cache_dir=tmp_path / "fonts",
        transport=httpx.MockTransport(_offline_handler),
    )


@pytest.fixture
def renderer(font_registry: FontRegistry) -> CardRenderer:
    """使用离线字体注册表的渲染器."""
    return CardRenderer(font_registry=font_registry)


@pytest.fixture
def designer(renderer: CardRenderer, font_registry: FontRegistry) -> CardDesigner:
    """已挂载的编辑会话（内存模板存储）."""
    session = CardDesigner(renderer=renderer, font_registry=font_registry)
    session.mount()
    return session


@pytest.fixture
def sample_image() -> Image.Image:
    """400 x 300 的红色图片."""
    return Image.new("RGBA", (400, 300), (255, 0, 0, 255))


@pytest.fixture
def sample_image_path(tmp_path: Path, sample_image: Image.Image) -> Path:
    """保存到磁盘的示例图片."""
    path = tmp_path / "sample.png"
    sample_image.save(path)
    return path
