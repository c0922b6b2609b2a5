"""卡牌尺寸预设.

固定的卡牌尺寸目录，尺寸以参考单位表示（1 单位 = 1/72 英寸，
与屏幕显示 1:1 对应）。选择预设是改变画布尺寸的唯一方式。
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from card_designer.utils.constants import SCREEN_REFERENCE_DPI
from card_designer.utils.exceptions import DimensionNotFoundError


class CardDimension(BaseModel):
    """卡牌尺寸.

    Attributes:
        name: 预设名称
        width: 宽度（参考单位）
        height: 高度（参考单位）

    Example:
        >>> dim = get_preset("Poker")
        >>> dim.inches
        (2.5, 3.5)
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=50, description="预设名称")
    width: float = Field(gt=0, description="宽度")
    height: float = Field(gt=0, description="高度")

    @classmethod
    def from_inches(cls, name: str, width_in: float, height_in: float) -> "CardDimension":
        """根据英寸尺寸创建."""
        return cls(
            name=name,
            width=width_in * SCREEN_REFERENCE_DPI,
            height=height_in * SCREEN_REFERENCE_DPI,
        )

    @property
    def size(self) -> tuple[float, float]:
        """(宽, 高)."""
        return (self.width, self.height)

    @property
    def center(self) -> tuple[float, float]:
        """画布中心点."""
        return (self.width / 2, self.height / 2)

    @property
    def inches(self) -> tuple[float, float]:
        """(宽, 高) 英寸."""
        return (self.width / SCREEN_REFERENCE_DPI, self.height / SCREEN_REFERENCE_DPI)

    @property
    def label(self) -> str:
        """显示用标签，如 'Poker (2.5" x 3.5")'."""
        w_in, h_in = self.inches
        return f'{self.name} ({w_in:g}" x {h_in:g}")'


CARD_PRESETS: tuple[CardDimension, ...] = (
    CardDimension.from_inches("Standard", 2.75, 3.75),
    CardDimension.from_inches("Poker", 2.5, 3.5),
    CardDimension.from_inches("Tarot", 2.75, 4.75),
    CardDimension.from_inches("Square", 3.5, 3.5),
    CardDimension.from_inches("Mini", 1.75, 2.5),
    CardDimension.from_inches("Jumbo", 3.5, 5.75),
)

DEFAULT_DIMENSION = CARD_PRESETS[0]


def list_presets() -> list[CardDimension]:
    """获取全部尺寸预设（按目录顺序）."""
    return list(CARD_PRESETS)


def get_preset(name: str) -> CardDimension:
    """根据名称获取尺寸预设.

    同时接受预设名称（'Poker'）和显示标签（'Poker (2.5" x 3.5")'）。

    Raises:
        DimensionNotFoundError: 预设不存在
    """
    for preset in CARD_PRESETS:
        if name in (preset.name, preset.label):
            return preset
    raise DimensionNotFoundError(name)
