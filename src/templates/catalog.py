"""
템플릿 카탈로그: 정적 카탈로그 + AI 생성 캐시 + fallback.

해석 순서 (resolve):
1. 정적 카탈로그 (templates/base/*.yaml, 파일명 순)
2. ai_gen_ prefix → key-value store "ai_thumbnails"
3. 카탈로그 첫 번째 템플릿 (fallback)

규칙:
- 템플릿은 로드 후 불변: 호출자는 복사본을 받음
- AI 캐시는 최신순, 최대 AI_THUMBNAILS_CAP개
"""

import copy
import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml

from src.core.ids import generate_ai_template_id
from src.core.kv_store import KeyValueStore, push_capped
from src.domain.constants import (
    AI_TEMPLATE_ID_PREFIX,
    AI_THUMBNAILS_CAP,
    AI_THUMBNAILS_KEY,
    ALL_CATEGORIES,
    TEMPLATE_CATEGORIES,
)
from src.domain.errors import ErrorCodes, TemplateError
from src.domain.layers import layer_from_dict
from src.domain.schemas import CanvasSpec, Template, TemplateMeta

logger = logging.getLogger(__name__)

# =============================================================================
# Template ID Validation
# =============================================================================

TEMPLATE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
TEMPLATE_ID_MAX_LENGTH = 64


def validate_template_id(template_id: str) -> None:
    """
    template_id 유효성 검증 (URL 경로 파라미터 방어).

    규칙:
    - 비어있지 않음
    - 최대 64자
    - 영문, 숫자, 밑줄, 하이픈만 허용

    Raises:
        TemplateError: INVALID_TEMPLATE_ID
    """
    if not template_id:
        raise TemplateError(
            ErrorCodes.INVALID_TEMPLATE_ID,
            message="template_id cannot be empty",
        )

    if len(template_id) > TEMPLATE_ID_MAX_LENGTH:
        raise TemplateError(
            ErrorCodes.INVALID_TEMPLATE_ID,
            message=f"template_id exceeds {TEMPLATE_ID_MAX_LENGTH} characters",
            length=len(template_id),
        )

    if not TEMPLATE_ID_PATTERN.match(template_id):
        raise TemplateError(
            ErrorCodes.INVALID_TEMPLATE_ID,
            message="template_id may contain only letters, digits, '_' and '-'",
            pattern=TEMPLATE_ID_PATTERN.pattern,
        )


# =============================================================================
# AI Template Generation
# =============================================================================

# (키워드, 카테고리, 배경색, 강조색) - 위에서부터 첫 일치
AI_CATEGORY_RULES: list[tuple[tuple[str, ...], str, str, str]] = [
    (("tech", "coding", "programming"), "Technology", "#0f172a", "#3b82f6"),
    (("gaming", "game"), "Gaming", "#1a0b2e", "#a855f7"),
    (("cooking", "recipe", "food"), "Cooking", "#7c2d12", "#f97316"),
    (("travel", "vlog"), "Travel", "#0ea5e9", "#06b6d4"),
]
AI_DEFAULT_STYLE = ("General", "#1e293b", "#3b82f6")
AI_TITLE_COLOR = "#ffffff"
AI_PREVIEW_PATH = "/templates/ai_generated.jpg"
AI_FALLBACK_SUBTITLE = "Amazing Content"


def detect_ai_style(prompt: str) -> tuple[str, str, str]:
    """
    프롬프트 키워드 → (카테고리, 배경색, 강조색).

    부분 문자열 매칭, 대소문자 무시.
    """
    lowered = prompt.lower()
    for keywords, category, background, accent in AI_CATEGORY_RULES:
        if any(keyword in lowered for keyword in keywords):
            return category, background, accent
    return AI_DEFAULT_STYLE


def build_ai_template(prompt: str, template_id: str, created_at: str) -> Template:
    """
    프롬프트 → 4레이어 템플릿 (오버레이, 제목, 부제, 강조 도형).

    - 제목: 앞 4단어 대문자
    - 부제: 5~8번째 단어 (4단어 이하면 "Amazing Content")
    """
    category, background, accent = detect_ai_style(prompt)
    words = prompt.split()
    title = " ".join(words[:4]).upper()
    subtitle = " ".join(words[4:8]) if len(words) > 4 else AI_FALLBACK_SUBTITLE

    layers = [
        layer_from_dict({
            "id": "ai_bg_overlay", "type": "rect",
            "x": 0, "y": 400, "width": 1280, "height": 320,
            "fill": "rgba(0,0,0,0.7)",
        }),
        layer_from_dict({
            "id": "ai_main_title", "type": "text", "text": title,
            "x": 80, "y": 450, "fontSize": 84, "fontFamily": "Inter",
            "fontStyle": "bold", "fill": AI_TITLE_COLOR,
            "stroke": "#000000", "strokeWidth": 4,
            "textAlign": "left", "lineHeight": 1.1,
        }),
        layer_from_dict({
            "id": "ai_subtitle", "type": "text", "text": subtitle,
            "x": 80, "y": 580, "fontSize": 36, "fontFamily": "Inter",
            "fill": accent, "textAlign": "left",
        }),
        layer_from_dict({
            "id": "ai_accent_shape", "type": "rect",
            "x": 900, "y": 100, "width": 300, "height": 200,
            "fill": accent, "cornerRadius": 20, "opacity": 0.8,
        }),
    ]

    return Template(
        id=template_id,
        name=f"AI: {title}",
        category=category,
        preview=AI_PREVIEW_PATH,
        description=f"AI-generated thumbnail for: {prompt}",
        canvas=CanvasSpec(background_color=background),
        layers=layers,
        meta=TemplateMeta(
            tags=["ai-generated", category.lower(), "optimized"],
            recommended=True,
            difficulty="easy",
            created_at=created_at,
        ),
    )


# =============================================================================
# Catalog
# =============================================================================

class TemplateCatalog:
    """
    템플릿 조회/검색/AI 생성.

    Usage:
        catalog = TemplateCatalog(Path("templates"), kv_store)
        template = catalog.resolve("tech_review")
        results = catalog.list_templates(category="Gaming", query="neon")
    """

    def __init__(
        self,
        templates_root: Path,
        kv_store: KeyValueStore,
        ai_cache_cap: int = AI_THUMBNAILS_CAP,
    ):
        """
        Args:
            templates_root: templates/ 루트 경로 (base/ 하위에 YAML)
            kv_store: AI 생성 캐시 저장소
            ai_cache_cap: AI 캐시 최대 개수
        """
        self.templates_root = Path(templates_root)
        self.base_dir = self.templates_root / "base"
        self.kv_store = kv_store
        self.ai_cache_cap = ai_cache_cap
        self._templates: list[Template] | None = None

    # =========================================================================
    # Static Catalog
    # =========================================================================

    def _load(self) -> list[Template]:
        """
        정적 카탈로그 로드 (최초 1회, 이후 캐시).

        Raises:
            TemplateError: INVALID_TEMPLATE (YAML 파싱 실패, 중복 id)
        """
        if self._templates is not None:
            return self._templates

        templates: list[Template] = []
        seen: set[str] = set()

        paths = sorted(self.base_dir.glob("*.yaml")) if self.base_dir.exists() else []
        for path in paths:
            try:
                with open(path, encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise TemplateError(
                    ErrorCodes.INVALID_TEMPLATE,
                    message=f"Failed to parse {path.name}: {e}",
                    path=str(path),
                ) from e

            if not isinstance(data, dict):
                raise TemplateError(
                    ErrorCodes.INVALID_TEMPLATE,
                    message=f"{path.name} must contain a mapping",
                    path=str(path),
                )

            template = Template.from_dict(data)
            if template.id in seen:
                raise TemplateError(
                    ErrorCodes.INVALID_TEMPLATE,
                    message=f"Duplicate template id {template.id!r}",
                    path=str(path),
                )
            seen.add(template.id)
            templates.append(template)

        logger.info(f"Loaded {len(templates)} templates from {self.base_dir}")
        self._templates = templates
        return templates

    def reload(self) -> None:
        """캐시 무효화 (다음 조회 시 다시 로드)."""
        self._templates = None

    def get(self, template_id: str) -> Template | None:
        """정적 카탈로그에서만 조회 (복사본)."""
        for template in self._load():
            if template.id == template_id:
                return copy.deepcopy(template)
        return None

    # =========================================================================
    # Resolve
    # =========================================================================

    def resolve(self, template_id: str) -> Template:
        """
        template_id → Template (복사본).

        카탈로그 → AI 캐시 → 카탈로그 첫 번째 순으로 해석.

        Raises:
            TemplateError: TEMPLATE_NOT_FOUND (카탈로그가 비어있고 해석 실패)
        """
        found = self.get(template_id)
        if found is not None:
            return found

        if template_id.startswith(AI_TEMPLATE_ID_PREFIX):
            cached = self._find_ai_template(template_id)
            if cached is not None:
                return cached

        templates = self._load()
        if not templates:
            raise TemplateError(
                ErrorCodes.TEMPLATE_NOT_FOUND,
                message=f"Template {template_id!r} not found and catalog is empty",
                template_id=template_id,
            )

        logger.info(f"Template {template_id!r} not found, falling back to {templates[0].id!r}")
        return copy.deepcopy(templates[0])

    def _find_ai_template(self, template_id: str) -> Template | None:
        for record in self.ai_templates():
            if record.get("id") == template_id:
                try:
                    return Template.from_dict(record)
                except TemplateError as e:
                    logger.warning(f"Cached AI template {template_id!r} is invalid: {e}")
                    return None
        return None

    # =========================================================================
    # Gallery
    # =========================================================================

    def categories(self) -> list[str]:
        """고정 카테고리 목록."""
        return list(TEMPLATE_CATEGORIES)

    def list_templates(
        self,
        category: str = ALL_CATEGORIES,
        query: str = "",
    ) -> list[Template]:
        """
        갤러리 필터.

        - category: "All"이면 전체, 아니면 정확히 일치
        - query: 이름 또는 태그에 대소문자 무시 부분 문자열
        """
        needle = query.strip().lower()
        results = []

        for template in self._load():
            if category and category != ALL_CATEGORIES and template.category != category:
                continue
            if needle and not (
                needle in template.name.lower()
                or any(needle in tag.lower() for tag in template.meta.tags)
            ):
                continue
            results.append(copy.deepcopy(template))

        return results

    # =========================================================================
    # AI Generation Cache
    # =========================================================================

    def ai_templates(self) -> list[dict[str, Any]]:
        """AI 캐시 레코드 (최신순, 직렬화 포맷)."""
        items = self.kv_store.get(AI_THUMBNAILS_KEY, [])
        return items if isinstance(items, list) else []

    def generate_ai_template(self, prompt: str) -> Template:
        """
        프롬프트로 템플릿 생성 후 AI 캐시 맨 앞에 저장.

        Raises:
            TemplateError: EMPTY_PROMPT
        """
        prompt = (prompt or "").strip()
        if not prompt:
            raise TemplateError(
                ErrorCodes.EMPTY_PROMPT,
                message="Prompt cannot be empty",
            )

        template = build_ai_template(
            prompt,
            template_id=generate_ai_template_id(),
            created_at=datetime.now(UTC).isoformat(),
        )

        push_capped(self.kv_store, AI_THUMBNAILS_KEY, template.to_dict(), self.ai_cache_cap)
        logger.info(f"Generated AI template {template.id} ({template.category})")
        return template
