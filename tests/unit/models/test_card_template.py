"""卡牌模板模型单元测试."""

import json

from card_designer.models.card_elements import BackgroundImage
from card_designer.models.card_template import CardTemplate


class TestCardTemplate:
    """CardTemplate 测试类."""

    def test_from_document(self, document):
        """测试从文档创建模板."""
        template = CardTemplate.from_document("怪物卡", document)

        assert template.name == "怪物卡"
        assert template.dimension == document.dimension
        assert template.element_count == 2
        assert template.created_at.tzinfo is not None

    def test_from_document_does_not_mutate(self, document):
        """测试创建模板不修改文档."""
        before = document.model_dump()

        CardTemplate.from_document("A", document)

        assert document.model_dump() == before

    def test_blank_name_defaults(self, document):
        """测试空白名称使用默认名称."""
        template = CardTemplate.from_document("   ", document)

        assert template.name == "Untitled Template"

    def test_json_roundtrip(self, document):
        """测试 JSON 序列化后完整还原."""
        document.add_element("textbox", {"content": "多行\n文本", "fontSize": 9})
        document.set_background(
            BackgroundImage(src="bg.png", natural_width=4, natural_height=3, render_scale=90)
        )
        template = CardTemplate.from_document("Round trip", document)

        restored = CardTemplate.from_json(template.to_json())

        assert restored == template

    def test_to_dict_is_json_compatible(self, document):
        """测试字典可直接 JSON 序列化."""
        data = CardTemplate.from_document("A", document).to_dict()

        encoded = json.dumps(data)

        assert "guides" not in encoded
        assert data["scene"]["elements"][0]["kind"] == "text"
        assert data["dimension"]["name"] == "Standard"
