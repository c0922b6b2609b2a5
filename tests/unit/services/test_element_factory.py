"""元素工厂单元测试."""

import pytest

from card_designer.models.card_dimensions import get_preset
from card_designer.models.card_elements import OriginX, OriginY, TextBoxElement
from card_designer.services.element_factory import (
    ElementFactory,
    cover_scale,
    foreground_scale,
)
from card_designer.utils.image_utils import data_url_to_image, is_data_url


@pytest.fixture
def factory(standard) -> ElementFactory:
    """Standard 尺寸的元素工厂."""
    return ElementFactory(standard)


class TestScales:
    """缩放策略测试类."""

    def test_foreground_scale(self):
        """测试前景图片缩放（contain × 0.5）."""
        assert foreground_scale((198, 270), (400, 300)) == pytest.approx(0.2475)

    def test_cover_scale_wide_image(self):
        """测试宽图覆盖缩放."""
        assert cover_scale((198, 270), (400, 300)) == pytest.approx(0.9)

    def test_cover_scale_tall_image(self):
        """测试高图覆盖缩放."""
        assert cover_scale((252, 252), (100, 400)) == pytest.approx(2.52)


class TestElementFactory:
    """ElementFactory 测试类."""

    def test_create_text(self, factory):
        """测试文字放在画布中心."""
        text = factory.create_text()

        assert (text.x, text.y) == (99, 135)
        assert text.origin_x == OriginX.CENTER
        assert text.origin_y == OriginY.CENTER
        assert text.content == "New Text"
        assert text.font_size == 16
        assert text.font_family == "Arial"

    def test_create_text_box(self, factory):
        """测试文本框换行宽度."""
        box = factory.create_text_box()

        assert isinstance(box, TextBoxElement)
        assert box.wrap_width == 158
        assert box.font_size == 14
        assert box.content == "New text box. This will wrap automatically."

    def test_create_text_box_on_jumbo(self):
        """测试不同尺寸的文本框换行宽度."""
        box = ElementFactory(get_preset("Jumbo")).create_text_box("Rules")

        assert box.wrap_width == 212
        assert box.content == "Rules"

    def test_foreground_image_placement(self, factory):
        """测试前景图片放置：198x270 画布、400x300 图片."""
        image = factory.create_image_from_size("a.png", 400, 300)

        assert image.render_scale == pytest.approx(0.2475)
        width, height = image.rendered_size
        assert width == pytest.approx(99.0)
        assert height == pytest.approx(74.25)
        assert (image.x, image.y) == (99, 135)
        assert image.origin_x == OriginX.CENTER
        assert image.origin_y == OriginY.CENTER

    def test_foreground_image_fits_half(self, factory):
        """测试前景图片最多占较短边的一半."""
        image = factory.create_image_from_size("a.png", 50, 2000)

        width, height = image.rendered_size
        assert height == pytest.approx(135)
        assert width <= 99

    def test_create_image_embeds_data_url(self, factory, sample_image):
        """测试图片内嵌为 PNG Data URL."""
        image = factory.create_image(sample_image)

        assert is_data_url(image.src)
        assert data_url_to_image(image.src).size == (400, 300)
        assert (image.natural_width, image.natural_height) == (400, 300)

    def test_background_cover(self, factory, sample_image):
        """测试背景覆盖整个画布."""
        background = factory.create_background(sample_image)

        width, height = background.rendered_size
        assert width >= 198
        assert height >= 270
        assert min(width - 198, height - 270) == pytest.approx(0)
