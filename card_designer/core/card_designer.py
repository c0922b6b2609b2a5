"""卡牌设计会话.

一个编辑会话持有画布文档、当前卡牌尺寸、选中控制器和会话状态，
并把元素工厂、图层顺序、模板仓库、渲染器和保存回调连接在一起。

状态机:
    UNINITIALIZED → INITIALIZED → EDITED → SAVED / EXPORTED
    加载模板后进入 RESTORED，下一次成功修改后进入 EDITED。
    被拒绝的修改不改变状态。
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Union

from PIL import Image

from card_designer.core.selection_controller import SelectionController
from card_designer.models.card_dimensions import DEFAULT_DIMENSION, CardDimension, get_preset
from card_designer.models.card_document import CardDocument, MutationResult
from card_designer.models.card_template import CardTemplate
from card_designer.services.card_renderer import CardRenderer
from card_designer.services.element_factory import ElementFactory
from card_designer.services.font_registry import FontRegistry
from card_designer.services.template_repository import ReadyCallback, TemplateRepository
from card_designer.utils.constants import EXPORT_SCALE, MAX_IMAGE_FILE_SIZE, TEMPLATE_EXTENSION
from card_designer.utils.file_utils import slugify
from card_designer.utils.image_utils import bytes_to_image, load_image, validate_image_file
from card_designer.utils.logger import setup_logger

logger = setup_logger(__name__)

ImageSource = Union[str, Path, bytes]


class SessionState(str, Enum):
    """会话状态."""

    UNINITIALIZED = "uninitialized"  # 尚未挂载
    INITIALIZED = "initialized"  # 已按尺寸初始化
    RESTORED = "restored"  # 已从模板还原
    EDITED = "edited"  # 已修改
    SAVED = "saved"  # 已保存为模板
    EXPORTED = "exported"  # 已导出


class ArtifactKind(str, Enum):
    """导出产物类型."""

    RASTER = "raster"  # PNG 位图
    SCENE_DUMP = "scene_dump"  # 场景 JSON
    TEMPLATE = "template"  # 模板 JSON


@dataclass
class ExportArtifact:
    """交给外部系统的导出产物.

    Attributes:
        kind: 产物类型
        payload: 内容（位图为 bytes，其余为 JSON 字符串）
        filename: 建议文件名
    """

    kind: ArtifactKind
    payload: Union[bytes, str]
    filename: str

    def write_to(self, directory: Path) -> Path:
        """写入目录并返回文件路径."""
        path = Path(directory) / self.filename
        if isinstance(self.payload, bytes):
            path.write_bytes(self.payload)
        else:
            path.write_text(self.payload, encoding="utf-8")
        return path


SaveCallback = Callable[[ExportArtifact], None]
ConfirmDiscard = Callable[[CardDimension, CardDimension], bool]


class CardDesigner:
    """卡牌设计会话.

    Example:
        >>> designer = CardDesigner()
        >>> designer.mount(get_preset("Poker"))
        >>> text_id = designer.add_text("HP 100")
        >>> designer.selection.set_font_size(24)
        <MutationResult.APPLIED: 'applied'>
        >>> artifact = designer.export_raster()
        >>> artifact.filename
        'card-poker.png'
    """

    def __init__(
        self,
        repository: Optional[TemplateRepository] = None,
        renderer: Optional[CardRenderer] = None,
        font_registry: Optional[FontRegistry] = None,
        on_save: Optional[SaveCallback] = None,
        confirm_discard: Optional[ConfirmDiscard] = None,
        export_multiplier: float = EXPORT_SCALE,
        max_image_file_size: int = MAX_IMAGE_FILE_SIZE,
    ) -> None:
        """初始化会话.

        Args:
            repository: 模板仓库，默认使用内存存储
            renderer: 渲染器
            font_registry: 字体注册表
            on_save: 导出产物回调
            confirm_discard: 切换尺寸前的确认钩子，返回 False 则取消切换
            export_multiplier: 导出倍率
            max_image_file_size: 插入图片的最大文件大小
        """
        self.repository = repository or TemplateRepository()
        self.renderer = renderer or CardRenderer(font_registry=font_registry)
        self.font_registry = font_registry or self.renderer.font_registry
        self.on_save = on_save
        self.confirm_discard = confirm_discard
        self.export_multiplier = export_multiplier
        self.max_image_file_size = max_image_file_size

        self.document = CardDocument(dimension=DEFAULT_DIMENSION)
        self.selection = SelectionController(
            self.document,
            font_registry=self.font_registry,
            on_change=self._mark_edited,
        )
        self._state = SessionState.UNINITIALIZED

    # ========================
    # 状态
    # ========================

    @property
    def state(self) -> SessionState:
        """会话状态."""
        return self._state

    @property
    def dimension(self) -> CardDimension:
        """当前卡牌尺寸."""
        return self.document.dimension

    @property
    def factory(self) -> ElementFactory:
        """当前尺寸的元素工厂."""
        return ElementFactory(self.dimension)

    def _mark_edited(self) -> None:
        self._state = SessionState.EDITED

    def _ensure_mounted(self) -> None:
        if self._state == SessionState.UNINITIALIZED:
            self.mount()

    # ========================
    # 尺寸
    # ========================

    def mount(self, dimension: Optional[CardDimension | str] = None) -> None:
        """首次挂载，按尺寸初始化画布."""
        self.change_dimension(dimension or DEFAULT_DIMENSION, confirm=False)

    def change_dimension(
        self,
        dimension: CardDimension | str,
        on_ready: Optional[ReadyCallback] = None,
        confirm: bool = True,
    ) -> bool:
        """切换卡牌尺寸.

        画布被重新初始化（已有内容丢弃，不缩放），选中被清除。
        初始化完成后调用 on_ready。

        Args:
            dimension: 新尺寸或预设名称
            on_ready: 重新初始化完成回调
            confirm: 是否调用 confirm_discard 钩子

        Returns:
            是否已切换

        Raises:
            DimensionNotFoundError: 预设名称不存在
        """
        if isinstance(dimension, str):
            dimension = get_preset(dimension)

        if (
            confirm
            and self.confirm_discard is not None
            and self._state != SessionState.UNINITIALIZED
            and not self.confirm_discard(self.dimension, dimension)
        ):
            logger.info(f"取消切换卡牌尺寸: {self.dimension.name} -> {dimension.name}")
            return False

        self.document.init(dimension)
        self.selection.deselect()
        self._state = SessionState.INITIALIZED
        logger.info(f"卡牌尺寸: {dimension.label}")

        if on_ready is not None:
            on_ready(self.document)
        return True

    # ========================
    # 添加元素
    # ========================

    def _add(self, element) -> str:
        element_id = self.document.append_element(element)
        self.selection.select(element_id)
        self._mark_edited()
        return element_id

    def add_text(self, content: Optional[str] = None) -> str:
        """在画布中心添加文字并选中."""
        self._ensure_mounted()
        element = self.factory.create_text(content) if content is not None else self.factory.create_text()
        return self._add(element)

    def add_text_box(self, content: Optional[str] = None) -> str:
        """在画布中心添加自动换行文本框并选中."""
        self._ensure_mounted()
        factory = self.factory
        element = factory.create_text_box(content) if content is not None else factory.create_text_box()
        return self._add(element)

    def add_image(self, image: Image.Image) -> str:
        """添加已解码的图片并选中."""
        self._ensure_mounted()
        return self._add(self.factory.create_image(image))

    def set_background(self, image: Image.Image) -> None:
        """设置已解码的背景图片（覆盖画布）."""
        self._ensure_mounted()
        self.document.set_background(self.factory.create_background(image))
        self._mark_edited()

    def clear_background(self) -> None:
        """移除背景图片."""
        if self.document.background is None:
            return
        self.document.clear_background()
        self._mark_edited()

    async def insert_image(self, source: ImageSource) -> str:
        """解码图片后插入为前景图片.

        解码在线程池中进行，完成前元素不存在。

        Raises:
            ImageDecodeError: 解码失败（画布不变）
            ImageNotFoundError: 文件不存在
        """
        image = await self._decode(source)
        element_id = self.add_image(image)
        logger.info(f"图片已插入: {element_id} ({image.width}x{image.height})")
        return element_id

    async def set_background_image(self, source: ImageSource) -> None:
        """解码图片后设置为背景.

        Raises:
            ImageDecodeError: 解码失败（画布不变）
        """
        image = await self._decode(source)
        self.set_background(image)
        logger.info(f"背景图片已设置: {image.width}x{image.height}")

    async def _decode(self, source: ImageSource) -> Image.Image:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.decode_image, source)

    def decode_image(self, source: ImageSource) -> Image.Image:
        """同步解码图片（阻塞，供后台线程调用），不修改画布.

        Raises:
            ImageDecodeError: 解码失败
            ImageNotFoundError: 文件不存在
        """
        if isinstance(source, bytes):
            return bytes_to_image(source)
        path = Path(source)
        validate_image_file(path, self.max_image_file_size)
        return load_image(path)

    # ========================
    # 修改
    # ========================

    def select(self, element_id: str) -> bool:
        """选中元素."""
        return self.selection.select(element_id)

    def update_style(self, element_id: str, property_name: str, value: Any) -> MutationResult:
        """修改任意元素的属性."""
        result = self.document.update_element_style(element_id, property_name, value)
        if result.ok:
            self._mark_edited()
        return result

    def remove(self, element_id: str) -> bool:
        """删除元素，选中的元素被删除时清除选中."""
        if self.selection.selected_id == element_id:
            return self.selection.delete_selected()
        removed = self.document.remove_element(element_id)
        if removed:
            self._mark_edited()
        return removed

    def bring_forward(self, element_id: str) -> bool:
        """元素上移一层."""
        changed = self.selection.layers.bring_forward(element_id)
        if changed:
            self._mark_edited()
        return changed

    def send_backward(self, element_id: str) -> bool:
        """元素下移一层."""
        changed = self.selection.layers.send_backward(element_id)
        if changed:
            self._mark_edited()
        return changed

    # ========================
    # 模板
    # ========================

    def list_templates(self) -> list[CardTemplate]:
        """列出已保存的模板."""
        return self.repository.list()

    def save_template(self, name: str) -> CardTemplate:
        """保存当前画布为模板.

        Raises:
            TemplateStoreError: 保存失败
        """
        self._ensure_mounted()
        template = self.repository.save(name, self.document)
        self._state = SessionState.SAVED
        self._emit(
            ExportArtifact(
                kind=ArtifactKind.TEMPLATE,
                payload=template.to_json(),
                filename=f"{slugify(template.name, 'template')}{TEMPLATE_EXTENSION}",
            )
        )
        return template

    def load_template(self, template: CardTemplate | str) -> None:
        """加载模板（模板对象或模板ID），替换当前画布.

        Raises:
            TemplateNotFoundError: 模板ID不存在
        """
        if isinstance(template, str):
            template = self.repository.get(template)
        self.repository.load(template, self)
        self._state = SessionState.RESTORED

    # ========================
    # 导出
    # ========================

    def render_preview(self) -> Image.Image:
        """渲染编辑预览."""
        self._ensure_mounted()
        return self.renderer.render_preview(self.document)

    def export_raster(self, multiplier: Optional[float] = None) -> ExportArtifact:
        """导出高分辨率 PNG（不含参考线）.

        Raises:
            ExportBlockedError: 图片来源无法回读（会话仍可继续使用）
        """
        self._ensure_mounted()
        payload = self.renderer.export_png(self.document, multiplier or self.export_multiplier)
        artifact = ExportArtifact(
            kind=ArtifactKind.RASTER,
            payload=payload,
            filename=f"card-{slugify(self.dimension.name)}.png",
        )
        self._state = SessionState.EXPORTED
        self._emit(artifact)
        logger.info(f"位图已导出: {artifact.filename} ({len(payload)} 字节)")
        return artifact

    def scene_dump(self) -> dict[str, Any]:
        """场景转储（与模板相同的无损结构，附带尺寸）."""
        self._ensure_mounted()
        return {
            "dimension": self.dimension.model_dump(mode="json"),
            **self.document.to_snapshot().model_dump(mode="json"),
        }

    def export_scene_dump(self) -> ExportArtifact:
        """导出场景 JSON."""
        artifact = ExportArtifact(
            kind=ArtifactKind.SCENE_DUMP,
            payload=json.dumps(self.scene_dump(), ensure_ascii=False, indent=2),
            filename=f"card-{slugify(self.dimension.name)}.json",
        )
        self._state = SessionState.EXPORTED
        self._emit(artifact)
        return artifact

    def _emit(self, artifact: ExportArtifact) -> None:
        if self.on_save is not None:
            self.on_save(artifact)
