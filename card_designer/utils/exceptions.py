"""自定义异常类."""

from __future__ import annotations


class AppException(Exception):
    """应用基础异常类.

    所有自定义异常都应继承此类。

    Attributes:
        message: 错误消息
        code: 错误代码
    """

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        """初始化异常.

        Args:
            message: 错误消息
            code: 错误代码
        """
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        """返回异常字符串表示."""
        return f"[{self.code}] {self.message}"


# ===================
# 配置相关异常
# ===================
class ConfigError(AppException):
    """配置错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


class DimensionNotFoundError(ConfigError):
    """卡牌尺寸预设不存在异常."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"卡牌尺寸预设不存在: {name}")


# ===================
# 图片处理相关异常
# ===================
class ImageProcessError(AppException):
    """图片处理错误异常."""

    def __init__(self, message: str, code: str = "IMAGE_PROCESS_ERROR") -> None:
        super().__init__(message, code)


class ImageNotFoundError(ImageProcessError):
    """图片文件未找到异常."""

    def __init__(self, path: str) -> None:
        super().__init__(f"图片文件未找到: {path}")


class UnsupportedImageFormatError(ImageProcessError):
    """不支持的图片格式异常."""

    def __init__(self, format: str) -> None:
        super().__init__(f"不支持的图片格式: {format}")


class ImageTooLargeError(ImageProcessError):
    """图片文件过大异常."""

    def __init__(self, size: int, max_size: int) -> None:
        size_mb = size / (1024 * 1024)
        max_mb = max_size / (1024 * 1024)
        super().__init__(f"图片文件过大 ({size_mb:.1f}MB)，最大允许 {max_mb:.1f}MB")


class ImageDecodeError(ImageProcessError):
    """图片解码失败异常.

    插入图片时解码失败，画布内容保持不变。
    """

    def __init__(self, source: str, reason: str = "") -> None:
        self.source = source
        msg = f"图片解码失败: {source}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg, "IMAGE_DECODE_ERROR")


# ===================
# 导出相关异常
# ===================
class ExportError(AppException):
    """导出错误异常."""

    def __init__(self, message: str, code: str = "EXPORT_ERROR") -> None:
        super().__init__(message, code)


class ExportBlockedError(ExportError):
    """导出被阻止异常.

    画布中存在无法回读的图片来源（不受信任的远程地址或不可读的文件）。
    """

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(
            f"export blocked: untrusted image source ({source})",
            "EXPORT_BLOCKED",
        )


# ===================
# 模板存储相关异常
# ===================
class TemplateStoreError(AppException):
    """模板存储错误异常."""

    def __init__(self, message: str, code: str = "TEMPLATE_STORE_ERROR") -> None:
        super().__init__(message, code)


class TemplateNotFoundError(TemplateStoreError):
    """模板未找到异常."""

    def __init__(self, template_id: str) -> None:
        super().__init__(f"模板未找到: {template_id}", "TEMPLATE_NOT_FOUND")


# ===================
# 数据库相关异常
# ===================
class DatabaseError(AppException):
    """数据库错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "DATABASE_ERROR")
