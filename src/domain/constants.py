"""
Domain Constants: 썸네일 스튜디오 전역 상수.

캔버스 크기, 캐시 키, 기본 레이어 값 등 시스템 전반에서 사용되는 값들.
"""

# =============================================================================
# Canvas / Export
# =============================================================================
# YouTube 권장 썸네일 해상도 (16:9)

CANVAS_WIDTH = 1280
CANVAS_HEIGHT = 720
DEFAULT_BACKGROUND_COLOR = "#ffffff"

EXPORT_FORMATS = ("png", "jpg")
EXPORT_JPEG_QUALITY = 90
EXPORT_DEFAULT_PIXEL_RATIO = 1
EXPORT_FILENAME_PREFIX = "thumbnail-"
EXPORT_FALLBACK_NAME = "custom"

# =============================================================================
# Local Key-Value Store (브라우저 localStorage 대체)
# =============================================================================

AI_THUMBNAILS_KEY = "ai_thumbnails"
AI_THUMBNAILS_CAP = 10

VARIANTS_KEY = "thumbnail_variants"
VARIANTS_CAP = 20

# =============================================================================
# Template IDs
# =============================================================================

AI_TEMPLATE_ID_PREFIX = "ai_gen_"

TEMPLATE_CATEGORIES = (
    "Technology",
    "Gaming",
    "Agriculture",
    "Cooking",
    "Travel",
    "Finance",
    "Education",
    "Vlogs",
    "Business",
    "Health",
)
ALL_CATEGORIES = "All"

THUMBNAIL_THEMES = (
    "technology",
    "gaming",
    "agriculture",
    "cooking",
    "travel",
    "finance",
    "education",
    "vlogs",
    "business",
    "health",
    "entertainment",
    "sports",
    "science",
)

# =============================================================================
# Editor
# =============================================================================

DEFAULT_LAYER_TEXT = "Click to edit"
NEW_TEXT_LAYER_TEXT = "New Text"
DUPLICATE_OFFSET = 20
DEFAULT_HISTORY_LIMIT = 100

# 타입별 생성 기본값 (add_layer). 키는 직렬화 포맷(camelCase) 기준.
LAYER_DEFAULTS: dict[str, dict] = {
    "text": {
        "text": NEW_TEXT_LAYER_TEXT,
        "x": 100,
        "y": 100,
        "fontSize": 48,
        "fontFamily": "Inter",
        "fill": "#ffffff",
        "stroke": "#000000",
        "strokeWidth": 2,
        "fontStyle": "bold",
    },
    "rect": {
        "x": 200,
        "y": 200,
        "width": 300,
        "height": 200,
        "fill": "#e5e7eb",
        "stroke": "#9ca3af",
        "strokeWidth": 2,
        "cornerRadius": 10,
    },
    "circle": {
        "x": 200,
        "y": 200,
        "width": 200,
        "height": 200,
        "fill": "#3b82f6",
        "stroke": "#1e40af",
        "strokeWidth": 2,
    },
    "star": {
        "x": 200,
        "y": 200,
        "width": 200,
        "height": 200,
        "fill": "#facc15",
        "stroke": "#ca8a04",
        "strokeWidth": 2,
        "points": 5,
    },
    "image": {
        "x": 200,
        "y": 200,
        "width": 300,
        "height": 200,
        "fit": "cover",
    },
}

# load()가 빈 목록에 넣는 기본 텍스트 레이어 (id는 생성 시 발급)
EMPTY_CANVAS_TEXT_LAYER = {
    "type": "text",
    "text": DEFAULT_LAYER_TEXT,
    "x": 100,
    "y": 100,
    "fontSize": 48,
    "fontFamily": "Inter",
    "fill": "#ffffff",
    "stroke": "#000000",
    "strokeWidth": 2,
    "fontStyle": "bold",
}

# 렌더러가 width/height 누락 시 사용하는 값
DEFAULT_SHAPE_SIZE = 100

# =============================================================================
# MIME Types
# =============================================================================

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".json": "application/json",
    ".yaml": "application/x-yaml",
}


def get_mime_type(filename: str) -> str:
    """
    파일명에서 MIME 타입 추출.

    Args:
        filename: 파일명 (확장자 포함)

    Returns:
        MIME 타입 문자열 (알 수 없으면 octet-stream)
    """
    import os

    ext = os.path.splitext(filename)[1].lower()
    return MIME_TYPES.get(ext, "application/octet-stream")
