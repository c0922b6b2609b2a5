"""图片解码工作器模块.

在 Qt 后台线程中解码用户选择的图片，解码完成后通过信号把结果送回界面线程，
解码期间界面保持响应。
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from PIL import Image
from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

from card_designer.utils.exceptions import AppException
from card_designer.utils.logger import setup_logger

logger = setup_logger(__name__)

DecodeFunc = Callable[[Path], Image.Image]


class ImageDecodeWorker(QObject):
    """图片解码工作器.

    Signals:
        decoded: 解码完成信号 (PIL Image)
        failed: 解码失败信号 (AppException)
    """

    decoded = pyqtSignal(object)  # Image.Image
    failed = pyqtSignal(object)  # AppException

    def __init__(self, decode: DecodeFunc, path: Path, parent: Optional[QObject] = None) -> None:
        """初始化工作器.

        Args:
            decode: 解码函数（阻塞）
            path: 图片路径
            parent: 父对象
        """
        super().__init__(parent)
        self._decode = decode
        self._path = path

    @pyqtSlot()
    def run(self) -> None:
        """执行解码."""
        try:
            image = self._decode(self._path)
        except AppException as e:
            logger.error(f"图片解码失败: {self._path}, {e}")
            self.failed.emit(e)
            return
        self.decoded.emit(image)


class ImageDecodeThread(QThread):
    """图片解码线程.

    管理 ImageDecodeWorker 的线程生命周期，解码结束后线程自动退出。

    Example:
        >>> thread = ImageDecodeThread(session.decode_image, path, parent=window)
        >>> thread.worker.decoded.connect(window.on_image_decoded)
        >>> thread.start()
    """

    def __init__(self, decode: DecodeFunc, path: Path, parent: Optional[QObject] = None) -> None:
        """初始化解码线程.

        Args:
            decode: 解码函数（阻塞）
            path: 图片路径
            parent: 父对象
        """
        super().__init__(parent)
        self._worker = ImageDecodeWorker(decode, path)
        self._worker.moveToThread(self)

        self.started.connect(self._worker.run)
        self._worker.decoded.connect(self.quit)
        self._worker.failed.connect(self.quit)
        self.finished.connect(self._worker.deleteLater)

    @property
    def worker(self) -> ImageDecodeWorker:
        """获取工作器."""
        return self._worker
