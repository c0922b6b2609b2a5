"""应用常量定义."""

import os
from pathlib import Path

# ===================
# 应用信息
# ===================
APP_NAME = "卡牌模板设计器"
APP_VERSION = "1.0.0"
APP_AUTHOR = "Yang"

# ===================
# 路径常量
# ===================
# 应用数据目录（可通过 CARD_DESIGNER_HOME 覆盖）
APP_DATA_DIR = Path(
    os.environ.get("CARD_DESIGNER_HOME", str(Path.home() / ".card-designer"))
)

# 数据库文件路径
DATABASE_PATH = APP_DATA_DIR / "templates.db"

# 模板目录
TEMPLATES_DIR = APP_DATA_DIR / "templates"

# 字体缓存目录
FONT_CACHE_DIR = APP_DATA_DIR / "fonts"

# 日志目录
LOG_DIR = APP_DATA_DIR / "logs"

# ===================
# 坐标与分辨率
# ===================
# 屏幕参考分辨率（1 参考单位 = 1/72 英寸）
SCREEN_REFERENCE_DPI = 72

# 印刷分辨率
PRINT_REFERENCE_DPI = 300

# 默认导出倍率 300/72 ≈ 4.1667
EXPORT_SCALE = PRINT_REFERENCE_DPI / SCREEN_REFERENCE_DPI

# ===================
# 画布设置
# ===================
CANVAS_BACKGROUND_COLOR = "#ffffff"

# 文本框左右边距之和
TEXTBOX_MARGIN = 40

# 前景图片最多占画布较短边的一半
FOREGROUND_IMAGE_FACTOR = 0.5

# 参考线
GUIDE_STROKE_COLOR = "#e0e0e0"
GUIDE_STROKE_WIDTH = 0.5

# ===================
# 图片设置
# ===================
SUPPORTED_IMAGE_FORMATS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".gif"}

# 最大图片文件大小 (50MB)
MAX_IMAGE_FILE_SIZE = 50 * 1024 * 1024

# ===================
# 字体设置
# ===================
DEFAULT_FONT_FAMILY = "Arial"
FONT_API_URL = "https://fonts.googleapis.com/css2"
FONT_FETCH_TIMEOUT = 15  # 秒

# ===================
# 模板设置
# ===================
DEFAULT_TEMPLATE_NAME = "Untitled Template"
TEMPLATE_EXTENSION = ".card-template.json"
SCENE_FORMAT_VERSION = "1.0"
