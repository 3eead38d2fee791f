"""
Data schemas for the thumbnail studio.

규칙:
- 직렬화 포맷은 원본 템플릿 JSON과 동일 (camelCase)
- 메모리 표현은 snake_case dataclass
- Template은 로드 후 불변: 에디터는 자신의 복사본만 수정
"""

from dataclasses import dataclass, field
from typing import Any

from src.domain.constants import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    DEFAULT_BACKGROUND_COLOR,
)
from src.domain.errors import ErrorCodes, LayerError, TemplateError
from src.domain.layers import Layer, layers_from_dicts, layers_to_dicts

# =============================================================================
# Template Schemas
# =============================================================================

@dataclass(frozen=True)
class CanvasSpec:
    """캔버스 크기와 배경."""
    width: int = CANVAS_WIDTH
    height: int = CANVAS_HEIGHT
    background_color: str = DEFAULT_BACKGROUND_COLOR

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "backgroundColor": self.background_color,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "CanvasSpec":
        data = data or {}
        return cls(
            width=int(data.get("width", CANVAS_WIDTH)),
            height=int(data.get("height", CANVAS_HEIGHT)),
            background_color=data.get("backgroundColor") or DEFAULT_BACKGROUND_COLOR,
        )


@dataclass
class TemplateMeta:
    """템플릿 메타데이터 (갤러리 표시용)."""
    tags: list[str] = field(default_factory=list)
    recommended: bool = False
    difficulty: str | None = None  # easy, medium, hard
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "tags": list(self.tags),
            "recommended": self.recommended,
            "createdAt": self.created_at,
        }
        if self.difficulty is not None:
            result["difficulty"] = self.difficulty
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "TemplateMeta":
        data = data or {}
        return cls(
            tags=list(data.get("tags", [])),
            recommended=bool(data.get("recommended", False)),
            difficulty=data.get("difficulty"),
            created_at=str(data.get("createdAt", "")),
        )


@dataclass
class Template:
    """
    템플릿 레코드.

    출처:
    - 정적 카탈로그 (templates/base/*.yaml)
    - AI 생성 캐시 (key-value store "ai_thumbnails")
    """
    id: str
    name: str
    category: str
    canvas: CanvasSpec = field(default_factory=CanvasSpec)
    layers: list[Layer] = field(default_factory=list)
    meta: TemplateMeta = field(default_factory=TemplateMeta)
    preview: str = ""
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        """JSON 직렬화용."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "preview": self.preview,
            "description": self.description,
            "canvas": self.canvas.to_dict(),
            "layers": layers_to_dicts(self.layers),
            "meta": self.meta.to_dict(),
        }

    def summary(self) -> dict[str, Any]:
        """갤러리 목록용 (layers 제외)."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "preview": self.preview,
            "description": self.description,
            "tags": list(self.meta.tags),
            "recommended": self.meta.recommended,
            "difficulty": self.meta.difficulty,
            "layer_count": len(self.layers),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Template":
        """
        직렬화 포맷 → Template.

        Raises:
            TemplateError: INVALID_TEMPLATE (필수 키 누락, 레이어 파싱 실패)
        """
        try:
            template_id = data["id"]
            name = data["name"]
        except KeyError as e:
            raise TemplateError(
                ErrorCodes.INVALID_TEMPLATE,
                message=f"Template is missing required key: {e.args[0]}",
                template_id=data.get("id"),
            ) from e

        try:
            layers = layers_from_dicts(data.get("layers") or [])
        except LayerError as e:
            raise TemplateError(
                ErrorCodes.INVALID_TEMPLATE,
                message=f"Template {template_id!r} has an invalid layer",
                template_id=template_id,
                cause=e.code,
            ) from e

        return cls(
            id=str(template_id),
            name=str(name),
            category=str(data.get("category", "")),
            canvas=CanvasSpec.from_dict(data.get("canvas")),
            layers=layers,
            meta=TemplateMeta.from_dict(data.get("meta")),
            preview=str(data.get("preview", "")),
            description=str(data.get("description", "")),
        )


# =============================================================================
# Generation Proxy Schemas
# =============================================================================

@dataclass
class GenerationRequest:
    """썸네일 생성 요청 (모두 필수)."""
    title: str
    description: str
    theme: str

    def missing_fields(self) -> list[str]:
        """비어있거나 공백뿐인 필드 목록."""
        return [
            name
            for name in ("title", "description", "theme")
            if not str(getattr(self, name) or "").strip()
        ]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerationRequest":
        def _text(key: str) -> str:
            value = data.get(key)
            return value if isinstance(value, str) else ""

        return cls(
            title=_text("title"),
            description=_text("description"),
            theme=_text("theme"),
        )


@dataclass
class GenerationResult:
    """
    썸네일 생성 응답.

    retryable: 모델 로딩 중 등 일시적 실패 (클라이언트 재시도 권장)
    status_code: HTTP 응답 코드 (envelope에는 포함하지 않음)
    """
    success: bool
    image: str | None = None  # data:image/jpeg;base64,...
    enhanced_title: str | None = None
    error: str | None = None
    error_code: str | None = None
    retryable: bool = False
    status_code: int = 200

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.image is not None:
            result["image"] = self.image
        if self.enhanced_title is not None:
            result["enhancedTitle"] = self.enhanced_title
        if self.error is not None:
            result["error"] = self.error
        if self.retryable:
            result["retryable"] = True
        return result
