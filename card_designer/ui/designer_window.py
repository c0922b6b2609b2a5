"""卡牌设计器窗口.

布局结构:
    ┌─────────────────────────────────────────────────────────┐
    │  工具栏：尺寸预设 / 添加元素 / 背景 / 模板 / 导出         │
    ├──────────────┬─────────────────────────┬────────────────┤
    │   元素列表    │        画布预览          │    样式面板     │
    │ (上层在前)    │                         │                │
    └──────────────┴─────────────────────────┴────────────────┘
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from PIL import Image
from PyQt6.QtCore import Qt, pyqtSignal, pyqtSlot
from PyQt6.QtGui import QColor, QImage, QPixmap
from PyQt6.QtWidgets import (
    QCheckBox,
    QColorDialog,
    QComboBox,
    QDoubleSpinBox,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSpinBox,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from card_designer.core.card_designer import CardDesigner
from card_designer.core.config_manager import get_config
from card_designer.models.card_dimensions import CardDimension, list_presets
from card_designer.models.card_document import MutationResult
from card_designer.models.card_elements import (
    CardElement,
    ImageElement,
    TextAlign,
    TextBoxElement,
    TextElement,
)
from card_designer.services.font_registry import AVAILABLE_FONTS
from card_designer.ui.image_decode_worker import ImageDecodeThread
from card_designer.utils.constants import APP_NAME, SUPPORTED_IMAGE_FORMATS
from card_designer.utils.exceptions import AppException, ExportBlockedError
from card_designer.utils.logger import setup_logger

logger = setup_logger(__name__)


# 窗口常量
WINDOW_MIN_WIDTH = 1000
WINDOW_MIN_HEIGHT = 640
PREVIEW_ZOOM = 2

IMAGE_FILTER = "图片 ({})".format(" ".join(f"*{ext}" for ext in sorted(SUPPORTED_IMAGE_FORMATS)))


def pil_to_pixmap(image: Image.Image) -> QPixmap:
    """PIL 图片转换为 QPixmap."""
    image = image.convert("RGBA")
    data = image.tobytes("raw", "RGBA")
    qimage = QImage(data, image.width, image.height, image.width * 4, QImage.Format.Format_RGBA8888)
    return QPixmap.fromImage(qimage.copy())


def describe_element(element: CardElement) -> str:
    """元素列表中的显示文字."""
    if isinstance(element, TextBoxElement):
        return f"文本框: {element.content[:24]}"
    if isinstance(element, TextElement):
        return f"文字: {element.content[:24]}"
    if isinstance(element, ImageElement):
        return f"图片: {element.natural_width}x{element.natural_height}"
    return element.kind.value


class DesignerWindow(QMainWindow):
    """卡牌设计器窗口.

    Signals:
        font_ready: 网络字体下载完成（可能来自后台线程），参数为字体名
    """

    font_ready = pyqtSignal(str)

    def __init__(self, session: CardDesigner, parent: Optional[QWidget] = None) -> None:
        """初始化窗口.

        Args:
            session: 编辑会话
            parent: 父窗口
        """
        super().__init__(parent)
        self.session = session
        self.session.confirm_discard = self._confirm_discard
        self._updating_panel = False
        self._decode_threads: list[ImageDecodeThread] = []

        self.setWindowTitle(APP_NAME)
        self.setMinimumSize(WINDOW_MIN_WIDTH, WINDOW_MIN_HEIGHT)

        self._setup_ui()
        self._connect_signals()

        self.font_ready.connect(lambda _family: self.refresh())
        self.session.font_registry.add_listener(self.font_ready.emit)

        self.refresh()

    # ========================
    # 界面
    # ========================

    def _setup_ui(self) -> None:
        toolbar = QToolBar()
        self.addToolBar(toolbar)

        self.preset_combo = QComboBox()
        for preset in list_presets():
            self.preset_combo.addItem(preset.label, preset)
        self._select_preset_item(self.session.dimension)
        toolbar.addWidget(self.preset_combo)
        toolbar.addSeparator()

        self.btn_add_text = QPushButton("添加文字")
        self.btn_add_text_box = QPushButton("添加文本框")
        self.btn_add_image = QPushButton("添加图片")
        self.btn_background = QPushButton("设置背景")
        self.btn_clear_background = QPushButton("清除背景")
        self.btn_save = QPushButton("保存模板")
        self.btn_load = QPushButton("加载模板")
        self.btn_export = QPushButton("导出 PNG")
        for button in (
            self.btn_add_text,
            self.btn_add_text_box,
            self.btn_add_image,
            self.btn_background,
            self.btn_clear_background,
            self.btn_save,
            self.btn_load,
            self.btn_export,
        ):
            toolbar.addWidget(button)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QHBoxLayout(central)

        # 元素列表
        left = QVBoxLayout()
        self.element_list = QListWidget()
        left.addWidget(QLabel("元素（上层在前）"))
        left.addWidget(self.element_list)
        order_row = QHBoxLayout()
        self.btn_forward = QPushButton("上移")
        self.btn_backward = QPushButton("下移")
        self.btn_delete = QPushButton("删除")
        order_row.addWidget(self.btn_forward)
        order_row.addWidget(self.btn_backward)
        order_row.addWidget(self.btn_delete)
        left.addLayout(order_row)
        layout.addLayout(left, 1)

        # 画布预览
        self.preview_label = QLabel()
        self.preview_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.preview_label, 3)

        # 样式面板
        panel = QWidget()
        form = QFormLayout(panel)
        self.font_family_combo = QComboBox()
        self.font_family_combo.setEditable(True)
        self.font_family_combo.addItems(AVAILABLE_FONTS)
        self.font_size_spin = QSpinBox()
        self.font_size_spin.setRange(1, 400)
        self.color_button = QPushButton("选择颜色")
        self.bold_check = QCheckBox("粗体")
        self.italic_check = QCheckBox("斜体")
        self.align_combo = QComboBox()
        for align in TextAlign:
            self.align_combo.addItem(align.value, align)
        self.scale_spin = QDoubleSpinBox()
        self.scale_spin.setRange(0.01, 20.0)
        self.scale_spin.setSingleStep(0.05)
        self.scale_spin.setDecimals(4)
        form.addRow("字体", self.font_family_combo)
        form.addRow("字号", self.font_size_spin)
        form.addRow("颜色", self.color_button)
        form.addRow(self.bold_check, self.italic_check)
        form.addRow("对齐", self.align_combo)
        form.addRow("缩放", self.scale_spin)
        layout.addWidget(panel, 1)

        self.statusBar().showMessage("就绪")

    def _connect_signals(self) -> None:
        self.preset_combo.currentIndexChanged.connect(self._on_preset_changed)
        self.btn_add_text.clicked.connect(lambda: self._run(self.session.add_text))
        self.btn_add_text_box.clicked.connect(lambda: self._run(self.session.add_text_box))
        self.btn_add_image.clicked.connect(self._on_add_image)
        self.btn_background.clicked.connect(self._on_set_background)
        self.btn_clear_background.clicked.connect(lambda: self._run(self.session.clear_background))
        self.btn_save.clicked.connect(self._on_save_template)
        self.btn_load.clicked.connect(self._on_load_template)
        self.btn_export.clicked.connect(self._on_export)

        self.element_list.currentItemChanged.connect(self._on_element_selected)
        self.btn_forward.clicked.connect(lambda: self._run(self.session.selection.bring_forward))
        self.btn_backward.clicked.connect(lambda: self._run(self.session.selection.send_backward))
        self.btn_delete.clicked.connect(lambda: self._run(self.session.selection.delete_selected))

        self.font_family_combo.currentTextChanged.connect(
            lambda family: self._style(self.session.selection.set_font_family, family)
        )
        self.font_size_spin.valueChanged.connect(
            lambda size: self._style(self.session.selection.set_font_size, size)
        )
        self.color_button.clicked.connect(self._on_pick_color)
        self.bold_check.toggled.connect(
            lambda checked: self._style(self.session.selection.set_bold, checked)
        )
        self.italic_check.toggled.connect(
            lambda checked: self._style(self.session.selection.set_italic, checked)
        )
        self.align_combo.currentIndexChanged.connect(
            lambda _index: self._style(
                self.session.selection.set_text_align, self.align_combo.currentData()
            )
        )
        self.scale_spin.valueChanged.connect(
            lambda scale: self._style(self.session.selection.set_scale, scale)
        )

    # ========================
    # 刷新
    # ========================

    def refresh(self) -> None:
        """重绘预览并同步元素列表和样式面板."""
        preview = self.session.render_preview()
        if PREVIEW_ZOOM != 1:
            preview = preview.resize(
                (preview.width * PREVIEW_ZOOM, preview.height * PREVIEW_ZOOM),
                Image.Resampling.LANCZOS,
            )
        self.preview_label.setPixmap(pil_to_pixmap(preview))
        self._refresh_element_list()
        self._refresh_style_panel()

    def _refresh_element_list(self) -> None:
        self.element_list.blockSignals(True)
        self.element_list.clear()
        selected_id = self.session.selection.selected_id
        for element in reversed(self.session.document.elements):
            item = QListWidgetItem(describe_element(element))
            item.setData(Qt.ItemDataRole.UserRole, element.id)
            self.element_list.addItem(item)
            if element.id == selected_id:
                self.element_list.setCurrentItem(item)
        self.element_list.blockSignals(False)

    def _refresh_style_panel(self) -> None:
        element = self.session.selection.selected_element
        is_text = isinstance(element, TextElement)
        is_image = isinstance(element, ImageElement)

        self._updating_panel = True
        for widget in (
            self.font_family_combo,
            self.font_size_spin,
            self.color_button,
            self.bold_check,
            self.italic_check,
            self.align_combo,
        ):
            widget.setEnabled(is_text)
        self.scale_spin.setEnabled(is_image)

        if is_text:
            self.font_family_combo.setCurrentText(element.font_family)
            self.font_size_spin.setValue(element.font_size)
            self.bold_check.setChecked(element.is_bold)
            self.italic_check.setChecked(element.is_italic)
            self.align_combo.setCurrentIndex(self.align_combo.findData(element.text_align))
        if is_image:
            self.scale_spin.setValue(element.render_scale)
        self._updating_panel = False

    def _select_preset_item(self, dimension: CardDimension) -> None:
        self.preset_combo.blockSignals(True)
        index = self.preset_combo.findText(dimension.label)
        if index >= 0:
            self.preset_combo.setCurrentIndex(index)
        self.preset_combo.blockSignals(False)

    # ========================
    # 操作
    # ========================

    def _run(self, action, *args) -> None:
        try:
            action(*args)
        except AppException as e:
            logger.error(f"操作失败: {e}")
            QMessageBox.warning(self, "操作失败", e.message)
        self.refresh()

    def _style(self, setter, value) -> None:
        if self._updating_panel:
            return
        result = setter(value)
        if result != MutationResult.APPLIED:
            self.statusBar().showMessage(f"未应用: {result.value}", 3000)
        self.refresh()

    def _confirm_discard(self, current: CardDimension, new: CardDimension) -> bool:
        answer = QMessageBox.question(
            self,
            "切换卡牌尺寸",
            f"切换到 {new.label} 会清除当前画布内容，是否继续？",
        )
        return answer == QMessageBox.StandardButton.Yes

    def _on_preset_changed(self, index: int) -> None:
        dimension = self.preset_combo.itemData(index)
        if not self.session.change_dimension(dimension):
            self._select_preset_item(self.session.dimension)
            return
        get_config().set_last_preset(dimension)
        self.refresh()

    def _on_element_selected(self, current: Optional[QListWidgetItem], _previous) -> None:
        if current is None:
            self.session.selection.deselect()
        else:
            self.session.select(current.data(Qt.ItemDataRole.UserRole))
        self._refresh_style_panel()

    def _on_pick_color(self) -> None:
        element = self.session.selection.selected_element
        initial = QColor(element.fill_color) if isinstance(element, TextElement) else QColor("#000000")
        color = QColorDialog.getColor(initial, self, "选择颜色")
        if color.isValid():
            self._style(self.session.selection.set_fill_color, color.name())

    def _ask_image_path(self, title: str) -> Optional[Path]:
        path, _ = QFileDialog.getOpenFileName(self, title, "", IMAGE_FILTER)
        return Path(path) if path else None

    def _on_add_image(self) -> None:
        path = self._ask_image_path("选择图片")
        if path is not None:
            self._start_decode(path, self._on_image_decoded)

    def _on_set_background(self) -> None:
        path = self._ask_image_path("选择背景图片")
        if path is not None:
            self._start_decode(path, self._on_background_decoded)

    def _start_decode(self, path: Path, on_decoded) -> None:
        """在后台线程解码图片，完成前画布不变."""
        thread = ImageDecodeThread(self.session.decode_image, path, parent=self)
        thread.worker.decoded.connect(on_decoded)
        thread.worker.failed.connect(self._on_decode_failed)
        thread.finished.connect(self._on_decode_thread_finished)
        self._decode_threads.append(thread)
        self.statusBar().showMessage(f"正在解码: {path.name}")
        thread.start()

    @pyqtSlot(object)
    def _on_image_decoded(self, image: Image.Image) -> None:
        self._run(self.session.add_image, image)
        self.statusBar().showMessage("图片已插入", 3000)

    @pyqtSlot(object)
    def _on_background_decoded(self, image: Image.Image) -> None:
        self._run(self.session.set_background, image)
        self.statusBar().showMessage("背景已设置", 3000)

    @pyqtSlot(object)
    def _on_decode_failed(self, error: AppException) -> None:
        self.statusBar().clearMessage()
        QMessageBox.warning(self, "图片无法读取", error.message)

    @pyqtSlot()
    def _on_decode_thread_finished(self) -> None:
        for thread in [t for t in self._decode_threads if t.isFinished()]:
            self._decode_threads.remove(thread)
            thread.deleteLater()

    def closeEvent(self, event) -> None:
        """关闭窗口前等待解码线程结束."""
        for thread in self._decode_threads:
            thread.wait()
        super().closeEvent(event)

    def _on_save_template(self) -> None:
        name, ok = QInputDialog.getText(self, "保存模板", "模板名称:")
        if ok:
            self._run(self.session.save_template, name)
            self.statusBar().showMessage("模板已保存", 3000)

    def _on_load_template(self) -> None:
        templates = self.session.list_templates()
        if not templates:
            QMessageBox.information(self, "加载模板", "还没有保存的模板")
            return
        labels = [
            f"{t.name} ({t.dimension.name}, {t.created_at:%Y-%m-%d %H:%M})" for t in templates
        ]
        label, ok = QInputDialog.getItem(self, "加载模板", "选择模板:", labels, 0, False)
        if ok:
            template = templates[labels.index(label)]
            self._run(self.session.load_template, template)
            self._select_preset_item(self.session.dimension)

    def _on_export(self) -> None:
        try:
            artifact = self.session.export_raster()
        except ExportBlockedError as e:
            QMessageBox.warning(self, "导出失败", e.message)
            return

        path, _ = QFileDialog.getSaveFileName(self, "导出 PNG", artifact.filename, "PNG (*.png)")
        if path:
            target = Path(path)
            artifact.filename = target.name
            artifact.write_to(target.parent)
            self.statusBar().showMessage(f"已导出: {target}", 5000)
