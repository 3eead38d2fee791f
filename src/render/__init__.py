"""
Render layer: 레이어 목록 → PNG/JPEG.

역할:
- 캔버스 렌더링 + 내보내기 (Pillow)
- 내보내기 파일명 규칙
"""

from .canvas import CanvasRenderer, export_filename, parse_color

__all__ = [
    "CanvasRenderer",
    "export_filename",
    "parse_color",
]
