"""模板仓库.

在模板存储之上提供保存和加载：
    - 保存：读取画布文档生成场景快照（不含参考线），追加为新模板
    - 加载：切换尺寸（触发画布重新初始化），在重新初始化完成的回调中还原快照
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from card_designer.models.card_dimensions import CardDimension
from card_designer.models.card_document import CardDocument
from card_designer.models.card_template import CardTemplate
from card_designer.services.template_store import InMemoryTemplateStore, TemplateStore
from card_designer.utils.exceptions import TemplateStoreError
from card_designer.utils.logger import setup_logger

logger = setup_logger(__name__)

ReadyCallback = Callable[[CardDocument], None]


class DimensionTarget(Protocol):
    """可切换尺寸的编辑会话."""

    def change_dimension(
        self,
        dimension: CardDimension,
        on_ready: Optional[ReadyCallback] = None,
        confirm: bool = True,
    ) -> bool:
        ...


class TemplateRepository:
    """模板仓库.

    Example:
        >>> repository = TemplateRepository(InMemoryTemplateStore())
        >>> template = repository.save("怪物卡", session.document)
        >>> repository.load(template, session)
    """

    def __init__(self, store: Optional[TemplateStore] = None) -> None:
        """初始化模板仓库.

        Args:
            store: 模板存储，默认使用内存存储
        """
        self.store = store if store is not None else InMemoryTemplateStore()

    def list(self) -> list[CardTemplate]:
        """按保存顺序列出全部模板."""
        return self.store.list()

    def get(self, template_id: str) -> CardTemplate:
        """根据ID获取模板.

        Raises:
            TemplateNotFoundError: 模板不存在
        """
        return self.store.get(template_id)

    def save(self, name: str, document: CardDocument) -> CardTemplate:
        """保存画布为新模板（同名不覆盖）.

        Args:
            name: 模板名称，空白时使用默认名称
            document: 画布文档（只读）

        Returns:
            已保存的模板

        Raises:
            TemplateStoreError: 保存失败
        """
        template = CardTemplate.from_document(name, document)
        self.store.append(template)
        logger.info(
            f"模板已保存: {template.name} ({template.dimension.name}, "
            f"{template.element_count} 个元素)"
        )
        return template

    def load(self, template: CardTemplate, session: DimensionTarget) -> None:
        """加载模板到编辑会话.

        先切换尺寸，画布重新初始化完成后在回调中用快照替换元素和背景。

        Args:
            template: 模板
            session: 编辑会话

        Raises:
            TemplateStoreError: 会话未完成重新初始化
        """
        restored: list[bool] = []

        def on_ready(document: CardDocument) -> None:
            document.restore_snapshot(template.scene)
            restored.append(True)

        session.change_dimension(template.dimension, on_ready=on_ready, confirm=False)
        if not restored:
            raise TemplateStoreError(f"模板加载未完成: {template.name}")

        logger.info(f"模板已加载: {template.name} ({template.id})")
