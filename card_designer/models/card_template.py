"""卡牌模板数据模型.

模板是一个具名的持久化快照：卡牌尺寸 + 完整场景（背景与元素列表），
与任何编辑会话无关。名称不要求唯一。
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

from card_designer.models.card_dimensions import CardDimension
from card_designer.models.card_document import CardDocument, SceneSnapshot
from card_designer.models.card_elements import generate_element_id
from card_designer.utils.constants import DEFAULT_TEMPLATE_NAME


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CardTemplate(BaseModel):
    """卡牌模板.

    Attributes:
        id: 模板唯一ID（存储用，名称可重复）
        name: 模板名称
        dimension: 卡牌尺寸
        scene: 场景快照
        created_at: 创建时间

    Example:
        >>> template = CardTemplate.from_document("怪物卡", document)
        >>> restored = CardTemplate.from_json(template.to_json())
        >>> restored.scene == template.scene
        True
    """

    id: str = Field(default_factory=generate_element_id, description="模板唯一ID")
    name: str = Field(default=DEFAULT_TEMPLATE_NAME, max_length=200, description="模板名称")
    dimension: CardDimension = Field(description="卡牌尺寸")
    scene: SceneSnapshot = Field(default_factory=SceneSnapshot, description="场景快照")
    created_at: datetime = Field(default_factory=_utcnow, description="创建时间")

    @field_validator("name")
    @classmethod
    def default_blank_name(cls, v: str) -> str:
        """空白名称使用默认名称."""
        return v.strip() or DEFAULT_TEMPLATE_NAME

    @classmethod
    def from_document(cls, name: str, document: CardDocument) -> "CardTemplate":
        """从画布文档创建模板（只读取文档，不修改）."""
        return cls(
            name=name,
            dimension=document.dimension,
            scene=document.to_snapshot(),
        )

    @property
    def element_count(self) -> int:
        """元素数量."""
        return len(self.scene.elements)

    def to_dict(self) -> dict[str, Any]:
        """转换为 JSON 兼容字典."""
        return self.model_dump(mode="json")

    def to_json(self, indent: int = 2) -> str:
        """序列化为JSON字符串."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "CardTemplate":
        """从JSON字符串反序列化."""
        return cls.model_validate_json(json_str)
