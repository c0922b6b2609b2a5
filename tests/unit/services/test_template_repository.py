"""模板仓库单元测试."""

from unittest.mock import MagicMock

import pytest

from card_designer.models.card_dimensions import get_preset
from card_designer.models.card_document import CardDocument
from card_designer.services.template_repository import TemplateRepository
from card_designer.services.template_store import InMemoryTemplateStore, JsonFileTemplateStore
from card_designer.utils.exceptions import TemplateStoreError


class TestTemplateRepository:
    """TemplateRepository 测试类."""

    def test_default_store(self):
        """测试默认使用内存存储."""
        assert isinstance(TemplateRepository().store, InMemoryTemplateStore)

    def test_keeps_empty_store(self, tmp_path):
        """测试空的文件存储不会被替换."""
        store = JsonFileTemplateStore(tmp_path)

        assert TemplateRepository(store).store is store

    def test_save_appends(self, document):
        """测试保存追加新模板."""
        repository = TemplateRepository()

        first = repository.save("Card", document)
        second = repository.save("Card", document)

        assert [t.id for t in repository.list()] == [first.id, second.id]

    def test_save_does_not_mutate_document(self, document):
        """测试保存不修改文档."""
        before = document.model_dump()

        TemplateRepository().save("Card", document)

        assert document.model_dump() == before

    def test_save_excludes_guides(self, document):
        """测试快照不含参考线."""
        template = TemplateRepository().save("Card", document)

        assert "guides" not in template.to_json()
        assert template.element_count == 2

    def test_load_restores_after_ready(self, document):
        """测试在重新初始化完成后才还原快照."""
        document.add_element("text", {"content": "Saved"})
        repository = TemplateRepository()
        template = repository.save("Card", document)

        target = CardDocument.create(get_preset("Mini"))
        events: list[str] = []

        def change_dimension(dimension, on_ready=None, confirm=True):
            target.init(dimension)
            events.append("init")
            on_ready(target)
            events.append("ready")
            return True

        session = MagicMock()
        session.change_dimension.side_effect = change_dimension

        repository.load(template, session)

        assert events == ["init", "ready"]
        assert session.change_dimension.call_args.kwargs["confirm"] is False
        assert target.dimension == document.dimension
        assert target.to_snapshot() == template.scene

    def test_load_without_ready_raises(self, document):
        """测试会话未回调时报错."""
        repository = TemplateRepository()
        template = repository.save("Card", document)
        session = MagicMock()
        session.change_dimension.return_value = True

        with pytest.raises(TemplateStoreError):
            repository.load(template, session)
