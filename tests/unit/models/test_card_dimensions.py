"""卡牌尺寸预设单元测试."""

import pytest
from pydantic import ValidationError

from card_designer.models.card_dimensions import (
    CARD_PRESETS,
    DEFAULT_DIMENSION,
    CardDimension,
    get_preset,
    list_presets,
)
from card_designer.utils.exceptions import DimensionNotFoundError


class TestCardPresets:
    """尺寸目录测试类."""

    @pytest.mark.parametrize(
        "name, width, height",
        [
            ("Standard", 198, 270),
            ("Poker", 180, 252),
            ("Tarot", 198, 342),
            ("Square", 252, 252),
            ("Mini", 126, 180),
            ("Jumbo", 252, 414),
        ],
    )
    def test_preset_sizes(self, name, width, height):
        """测试预设尺寸换算为参考单位."""
        preset = get_preset(name)

        assert preset.width == pytest.approx(width)
        assert preset.height == pytest.approx(height)

    def test_list_presets_order(self):
        """测试预设按目录顺序列出."""
        names = [preset.name for preset in list_presets()]

        assert names == ["Standard", "Poker", "Tarot", "Square", "Mini", "Jumbo"]

    def test_list_presets_is_copy(self):
        """测试返回列表可修改而不影响目录."""
        presets = list_presets()
        presets.clear()

        assert len(CARD_PRESETS) == 6

    def test_default_is_standard(self):
        """测试默认尺寸."""
        assert DEFAULT_DIMENSION.name == "Standard"

    def test_get_preset_by_label(self):
        """测试按显示标签获取预设."""
        preset = get_preset('Poker (2.5" x 3.5")')

        assert preset.name == "Poker"

    def test_get_unknown_preset(self):
        """测试未知预设."""
        with pytest.raises(DimensionNotFoundError) as exc_info:
            get_preset("Business")

        assert exc_info.value.code == "CONFIG_ERROR"
        assert "Business" in str(exc_info.value)


class TestCardDimension:
    """CardDimension 测试类."""

    def test_inches_and_label(self):
        """测试英寸换算和标签."""
        square = get_preset("Square")

        assert square.inches == (3.5, 3.5)
        assert square.label == 'Square (3.5" x 3.5")'

    def test_center(self):
        """测试中心点."""
        assert get_preset("Standard").center == (99.0, 135.0)

    @pytest.mark.parametrize("width, height", [(0, 100), (100, -1)])
    def test_non_positive_rejected(self, width, height):
        """测试非正尺寸被拒绝."""
        with pytest.raises(ValidationError):
            CardDimension(name="Bad", width=width, height=height)

    def test_frozen(self):
        """测试尺寸不可修改."""
        preset = get_preset("Mini")

        with pytest.raises(ValidationError):
            preset.width = 10
