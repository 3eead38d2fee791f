"""
Templates layer: 템플릿 카탈로그 모듈.

역할:
- 정적 카탈로그 로드 + 갤러리 필터 (catalog.py)
- AI 프롬프트 → 템플릿 생성 + 캐시

주의: 폴더 구분
- src/templates/ → 코드 (이 모듈)
- templates/ (루트) → 데이터 저장소 (base/*.yaml)
"""

from .catalog import (
    TemplateCatalog,
    build_ai_template,
    detect_ai_style,
    validate_template_id,
)

__all__ = [
    "TemplateCatalog",
    "build_ai_template",
    "detect_ai_style",
    "validate_template_id",
]
