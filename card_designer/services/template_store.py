"""模板存储.

模板存储只需要两个操作：列出全部模板（按保存顺序）和追加新模板。
同名模板各自独立保存，不做去重。

实现:
    - InMemoryTemplateStore: 内存存储（测试和临时会话）
    - JsonFileTemplateStore: 每个模板一个 .card-template.json 文件
    - SqlTemplateStore: SQLite 数据库（card_templates 表）
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from card_designer.models.app_settings import Settings, TemplateStoreType
from card_designer.models.card_dimensions import CardDimension
from card_designer.models.card_document import SceneSnapshot
from card_designer.models.card_template import CardTemplate
from card_designer.models.database import CardTemplateRecord
from card_designer.services.database_service import DatabaseService
from card_designer.utils.constants import TEMPLATE_EXTENSION
from card_designer.utils.exceptions import (
    DatabaseError,
    TemplateNotFoundError,
    TemplateStoreError,
)
from card_designer.utils.file_utils import ensure_directory
from card_designer.utils.logger import setup_logger

logger = setup_logger(__name__)


class TemplateStore(ABC):
    """模板存储接口."""

    @abstractmethod
    def list(self) -> list[CardTemplate]:
        """按保存顺序返回全部模板."""

    @abstractmethod
    def append(self, template: CardTemplate) -> None:
        """追加模板.

        Raises:
            TemplateStoreError: 保存失败
        """

    def get(self, template_id: str) -> CardTemplate:
        """根据ID获取模板.

        Raises:
            TemplateNotFoundError: 模板不存在
        """
        for template in self.list():
            if template.id == template_id:
                return template
        raise TemplateNotFoundError(template_id)

    def __len__(self) -> int:
        return len(self.list())

    def close(self) -> None:
        """释放存储占用的资源."""


# ===================
# 内存存储
# ===================


class InMemoryTemplateStore(TemplateStore):
    """内存模板存储."""

    def __init__(self) -> None:
        self._templates: list[CardTemplate] = []

    def list(self) -> list[CardTemplate]:
        return [template.model_copy(deep=True) for template in self._templates]

    def append(self, template: CardTemplate) -> None:
        self._templates.append(template.model_copy(deep=True))


# ===================
# 文件存储
# ===================


class JsonFileTemplateStore(TemplateStore):
    """JSON 文件模板存储.

    每个模板保存为 <id>.card-template.json。文件中额外记录递增的
    seq 字段，列表按 seq 排序；没有 seq 的旧文件按创建时间排在最前。
    无法解析的文件记录错误后跳过。

    Example:
        >>> store = JsonFileTemplateStore(tmp_path / "templates")
        >>> store.append(template)
        >>> [t.name for t in store.list()]
        ['怪物卡']
    """

    SEQ_KEY = "seq"

    def __init__(self, templates_dir: Path) -> None:
        """初始化文件存储.

        Args:
            templates_dir: 模板目录（不存在时自动创建）
        """
        self._templates_dir = ensure_directory(Path(templates_dir))

    @property
    def templates_dir(self) -> Path:
        """模板目录."""
        return self._templates_dir

    def _get_template_path(self, template_id: str) -> Path:
        return self._templates_dir / f"{template_id}{TEMPLATE_EXTENSION}"

    def _entries(self) -> list[tuple[int, CardTemplate]]:
        entries: list[tuple[int, CardTemplate]] = []
        for file_path in self._templates_dir.glob(f"*{TEMPLATE_EXTENSION}"):
            entry = self._load_from_file(file_path)
            if entry is not None:
                entries.append(entry)
        entries.sort(key=lambda entry: (entry[0], entry[1].created_at))
        return entries

    def list(self) -> list[CardTemplate]:
        return [template for _, template in self._entries()]

    def append(self, template: CardTemplate) -> None:
        file_path = self._get_template_path(template.id)
        if file_path.exists():
            raise TemplateStoreError(f"模板文件已存在: {file_path.name}")

        entries = self._entries()
        payload = template.to_dict()
        payload[self.SEQ_KEY] = entries[-1][0] + 1 if entries else 0
        try:
            file_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"保存模板失败: {file_path}, 错误: {e}")
            raise TemplateStoreError(f"保存模板失败: {e}") from e
        logger.info(f"模板已保存: {template.name} -> {file_path.name}")

    def _load_from_file(self, file_path: Path) -> Optional[tuple[int, CardTemplate]]:
        try:
            payload = json.loads(file_path.read_text(encoding="utf-8"))
            seq = payload.pop(self.SEQ_KEY, -1) if isinstance(payload, dict) else -1
            return int(seq), CardTemplate.model_validate(payload)
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.error(f"加载模板失败: {file_path}, 错误: {e}")
            return None


# ===================
# 数据库存储
# ===================


class SqlTemplateStore(TemplateStore):
    """SQLite 模板存储.

    按自增序号保持保存顺序。
    """

    def __init__(self, database: DatabaseService) -> None:
        self._database = database
        self._database.init_db()

    def list(self) -> list[CardTemplate]:
        try:
            with self._database.session_scope() as session:
                records = (
                    session.query(CardTemplateRecord)
                    .order_by(CardTemplateRecord.seq)
                    .all()
                )
                return [self._to_template(record) for record in records]
        except DatabaseError as e:
            raise TemplateStoreError(f"读取模板失败: {e.message}") from e

    def append(self, template: CardTemplate) -> None:
        record = CardTemplateRecord(
            id=template.id,
            name=template.name,
            dimension_name=template.dimension.name,
            width=template.dimension.width,
            height=template.dimension.height,
            scene_json=template.scene.model_dump_json(),
            created_at=template.created_at.astimezone(timezone.utc).replace(tzinfo=None),
        )
        try:
            with self._database.session_scope() as session:
                session.add(record)
        except DatabaseError as e:
            raise TemplateStoreError(f"保存模板失败: {e.message}") from e
        logger.info(f"模板已保存到数据库: {template.name} ({template.id})")

    def close(self) -> None:
        self._database.close()

    @staticmethod
    def _to_template(record: CardTemplateRecord) -> CardTemplate:
        return CardTemplate(
            id=record.id,
            name=record.name,
            dimension=CardDimension(
                name=record.dimension_name,
                width=record.width,
                height=record.height,
            ),
            scene=SceneSnapshot.model_validate(json.loads(record.scene_json)),
            created_at=record.created_at.replace(tzinfo=timezone.utc),
        )


# ===================
# 工厂函数
# ===================


def create_template_store(settings: Settings) -> TemplateStore:
    """根据配置创建模板存储.

    Args:
        settings: 应用设置

    Returns:
        模板存储实例
    """
    store_type = TemplateStoreType(settings.template_store)
    if store_type == TemplateStoreType.MEMORY:
        store: TemplateStore = InMemoryTemplateStore()
    elif store_type == TemplateStoreType.SQLITE:
        store = SqlTemplateStore(DatabaseService(settings.db_path))
    else:
        store = JsonFileTemplateStore(settings.templates_path)
    logger.debug(f"模板存储: {store_type.value}")
    return store
