"""
Application Services.

역할:
- editor: 에디터 세션 (템플릿 복사본 + LayerStore)
- generation: 썸네일 생성 프록시 (제목 보정 → 프롬프트 → 이미지)
- title: 제목 보정 (원격 + 로컬 규칙)
- prompt: 이미지 프롬프트 구성
"""

from .editor import EditorSession, EditorSessionRegistry
from .generation import ThumbnailGenerationService, build_generation_service
from .prompt import build_thumbnail_prompt
from .title import basic_title_enhancement, enhance_title

__all__ = [
    "EditorSession",
    "EditorSessionRegistry",
    "ThumbnailGenerationService",
    "build_generation_service",
    "build_thumbnail_prompt",
    "basic_title_enhancement",
    "enhance_title",
]
