"""卡牌渲染器单元测试."""

from unittest.mock import patch

import httpx
import pytest
from PIL import Image

from card_designer.models.card_dimensions import get_preset
from card_designer.models.card_document import CardDocument, ReorderDirection
from card_designer.services.card_renderer import (
    CardRenderer,
    raster_size,
    url_origin,
    visible_region,
    wrap_words,
)
from card_designer.services.element_factory import ElementFactory
from card_designer.utils.constants import EXPORT_SCALE
from card_designer.utils.exceptions import ExportBlockedError
from card_designer.utils.image_utils import bytes_to_image, image_to_bytes

WHITE = (255, 255, 255, 255)
RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
GUIDE = (224, 224, 224, 255)


class FixedWidthFont:
    """每个字符宽 10 像素的假字体."""

    def getlength(self, text: str) -> float:
        return len(text) * 10


@pytest.fixture
def empty_document(standard) -> CardDocument:
    """没有元素的 Standard 文档."""
    document = CardDocument.create(standard)
    for element_id in document.element_ids():
        document.remove_element(element_id)
    return document


def _solid(color, size=(400, 300)) -> Image.Image:
    return Image.new("RGBA", size, color)


class TestHelpers:
    """辅助函数测试类."""

    def test_raster_size_square_print(self):
        """测试 Square 按 300/72 导出为 1050x1050."""
        assert raster_size(get_preset("Square"), EXPORT_SCALE) == (1050, 1050)

    def test_raster_size_standard_print(self):
        """测试 Standard 导出尺寸."""
        assert raster_size(get_preset("Standard"), 300 / 72) == (825, 1125)

    def test_url_origin(self):
        """测试来源提取."""
        assert url_origin("https://CDN.example.com/a/b.png?x=1") == "https://cdn.example.com"
        assert url_origin("http://localhost:8080/img.png") == "http://localhost:8080"

    def test_visible_region_inside(self):
        """测试完全在画布内的区域保持不变."""
        assert visible_region((100, 100), (10, 20), (30, 40)) == (10, 20, 40, 60)

    def test_visible_region_clipped(self):
        """测试超出画布的部分被裁掉."""
        assert visible_region((100, 100), (-50, 90), (400, 30)) == (0, 90, 100, 100)

    def test_visible_region_outside(self):
        """测试完全在画布外返回 None."""
        assert visible_region((100, 100), (100, 0), (10, 10)) is None
        assert visible_region((100, 100), (-10, -10), (10, 10)) is None

    def test_wrap_words(self):
        """测试按单词换行."""
        lines = wrap_words("aaa bbb ccc dddd", FixedWidthFont(), 75)

        assert lines == ["aaa bbb", "ccc", "dddd"]

    def test_wrap_keeps_long_word(self):
        """测试超宽单词独占一行."""
        lines = wrap_words("a extraordinarily b", FixedWidthFont(), 50)

        assert lines == ["a", "extraordinarily", "b"]

    def test_wrap_preserves_newlines(self):
        """测试保留原有换行和空行."""
        lines = wrap_words("one\n\ntwo", FixedWidthFont(), 1000)

        assert lines == ["one", "", "two"]


class TestRender:
    """渲染测试类."""

    def test_export_size(self, renderer, square):
        """测试导出位图尺寸."""
        document = CardDocument.create(square)

        image = renderer.render(document, multiplier=EXPORT_SCALE)

        assert image.size == (1050, 1050)
        assert image.mode == "RGBA"

    def test_invalid_multiplier(self, renderer, document):
        """测试无效倍率."""
        with pytest.raises(ValueError):
            renderer.render(document, multiplier=0)

    def test_white_canvas(self, renderer, empty_document):
        """测试空画布为白色."""
        image = renderer.render(empty_document)

        assert image.getpixel((5, 5)) == WHITE

    def test_guides_only_in_preview(self, renderer, empty_document):
        """测试参考线只出现在预览中."""
        preview = renderer.render_preview(empty_document)
        exported = renderer.render(empty_document, include_guides=False)

        assert preview.getpixel((99, 10)) == GUIDE
        assert preview.getpixel((10, 135)) == GUIDE
        assert exported.getpixel((99, 10)) == WHITE

    def test_text_is_drawn(self, renderer, document):
        """测试默认标题被绘制."""
        image = renderer.render(document, multiplier=2)

        top_band = image.crop((0, 50, image.width, 110))
        assert top_band.getextrema()[0][0] < 255

    def test_image_placement(self, renderer, empty_document):
        """测试前景图片居中放置."""
        element = ElementFactory(empty_document.dimension).create_image(_solid(RED))
        empty_document.append_element(element)

        image = renderer.render(empty_document)

        assert image.getpixel((99, 135)) == RED
        assert image.getpixel((55, 135)) == RED
        assert image.getpixel((45, 135)) == WHITE
        assert image.getpixel((99, 95)) == WHITE

    def test_background_covers_canvas(self, renderer, empty_document):
        """测试背景图片覆盖整个画布."""
        factory = ElementFactory(empty_document.dimension)
        empty_document.set_background(factory.create_background(_solid(BLUE)))

        image = renderer.render(empty_document, multiplier=EXPORT_SCALE)

        for point in [(0, 0), (image.width - 1, 0), (0, image.height - 1), (image.width - 1, image.height - 1)]:
            assert image.getpixel(point) == BLUE

    def test_extreme_aspect_background_resizes_visible_part(self, renderer, empty_document):
        """测试极端长宽比背景只缩放画布内的部分."""
        factory = ElementFactory(empty_document.dimension)
        empty_document.set_background(factory.create_background(_solid(BLUE, size=(4000, 40))))
        original_resize = Image.Image.resize
        sizes = []

        def tracking_resize(self, size, *args, **kwargs):
            sizes.append(tuple(size))
            return original_resize(self, size, *args, **kwargs)

        with patch.object(Image.Image, "resize", autospec=True, side_effect=tracking_resize):
            image = renderer.render(empty_document, multiplier=EXPORT_SCALE)

        assert image.size == (825, 1125)
        assert sizes
        assert all(w <= image.width and h <= image.height for w, h in sizes)
        for point in [(0, 0), (image.width - 1, 0), (0, image.height - 1), (image.width - 1, image.height - 1)]:
            assert image.getpixel(point) == BLUE

    def test_image_partially_off_canvas(self, renderer, empty_document):
        """测试部分移出画布的图片仅绘制可见部分."""
        element = ElementFactory(empty_document.dimension).create_image(_solid(RED))
        empty_document.append_element(element.model_copy(update={"x": 0}))

        image = renderer.render(empty_document)

        assert image.getpixel((0, 135)) == RED
        assert image.getpixel((40, 135)) == RED
        assert image.getpixel((60, 135)) == WHITE

    def test_image_fully_off_canvas(self, renderer, empty_document):
        """测试完全移出画布的图片不影响画布."""
        element = ElementFactory(empty_document.dimension).create_image(_solid(RED))
        empty_document.append_element(element.model_copy(update={"x": -500}))

        image = renderer.render(empty_document)

        assert image.getextrema()[0] == (255, 255)

    def test_paint_order(self, renderer, empty_document):
        """测试元素列表顺序即绘制顺序."""
        factory = ElementFactory(empty_document.dimension)
        red_id = empty_document.append_element(factory.create_image(_solid(RED)))
        empty_document.append_element(factory.create_image(_solid(BLUE)))

        assert renderer.render(empty_document).getpixel((99, 135)) == BLUE

        empty_document.reorder(red_id, ReorderDirection.FORWARD)

        assert renderer.render(empty_document).getpixel((99, 135)) == RED

    def test_background_below_elements(self, renderer, empty_document):
        """测试背景在所有元素之下."""
        factory = ElementFactory(empty_document.dimension)
        empty_document.append_element(factory.create_image(_solid(RED)))
        empty_document.set_background(factory.create_background(_solid(BLUE)))

        image = renderer.render(empty_document)

        assert image.getpixel((99, 135)) == RED
        assert image.getpixel((5, 5)) == BLUE

    def test_export_png(self, renderer, square):
        """测试导出 PNG 字节."""
        data = renderer.export_png(CardDocument.create(square))

        assert data.startswith(b"\x89PNG")
        assert bytes_to_image(data).size == (1050, 1050)


class TestImageSources:
    """图片来源测试类."""

    def _add_image(self, document, src):
        element = ElementFactory(document.dimension).create_image_from_size(src, 400, 300)
        return document.append_element(element)

    def test_untrusted_remote_blocks_export(self, renderer, empty_document):
        """测试不受信任的远程图片阻止导出."""
        self._add_image(empty_document, "https://evil.example.com/a.png")

        with pytest.raises(ExportBlockedError) as exc_info:
            renderer.export_png(empty_document)

        assert "export blocked: untrusted image source" in str(exc_info.value)
        assert exc_info.value.code == "EXPORT_BLOCKED"

    def test_missing_file_blocks_export(self, renderer, empty_document, tmp_path):
        """测试缺失的图片文件阻止导出."""
        self._add_image(empty_document, str(tmp_path / "missing.png"))

        with pytest.raises(ExportBlockedError):
            renderer.render(empty_document)

    def test_file_source(self, renderer, empty_document, tmp_path):
        """测试本地文件来源."""
        path = tmp_path / "red.png"
        _solid(RED).save(path)
        self._add_image(empty_document, str(path))

        assert renderer.render(empty_document).getpixel((99, 135)) == RED

    def test_preview_skips_unreadable(self, renderer, empty_document):
        """测试预览跳过无法读取的图片."""
        self._add_image(empty_document, "https://evil.example.com/a.png")

        preview = renderer.render_preview(empty_document)

        assert preview.size == (198, 270)

    def test_trusted_remote(self, font_registry, empty_document):
        """测试受信任的远程图片."""
        png = image_to_bytes(_solid(RED), "PNG")
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=png))
        renderer = CardRenderer(
            font_registry=font_registry,
            trusted_origins=["https://cdn.example.com/"],
            http_client=httpx.Client(transport=transport),
        )
        self._add_image(empty_document, "https://cdn.example.com/cards/red.png")

        assert renderer.render(empty_document).getpixel((99, 135)) == RED

    def test_trusted_remote_http_error(self, font_registry, empty_document):
        """测试受信任来源下载失败."""
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        renderer = CardRenderer(
            font_registry=font_registry,
            trusted_origins=["https://cdn.example.com"],
            http_client=httpx.Client(transport=transport),
        )
        self._add_image(empty_document, "https://cdn.example.com/cards/red.png")

        with pytest.raises(ExportBlockedError):
            renderer.export_png(empty_document)
