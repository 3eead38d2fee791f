"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uvicorn src.app.main:app --reload
- 프로덕션: uvicorn src.app.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI

# Routes
from src.app.routes import editor, generate, pages, templates
from src.app.services.editor import DEFAULT_MAX_SESSIONS, EditorSessionRegistry
from src.core.kv_store import JsonFileKeyValueStore, KeyValueStore
from src.core.variants import VariantStore
from src.domain.constants import (
    AI_THUMBNAILS_CAP,
    DEFAULT_HISTORY_LIMIT,
    DUPLICATE_OFFSET,
    EXPORT_JPEG_QUALITY,
    VARIANTS_CAP,
)
from src.render.canvas import CanvasRenderer
from src.templates.catalog import TemplateCatalog

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


def _resolve_path(value: str | Path) -> Path:
    """상대 경로는 프로젝트 루트 기준."""
    path = Path(value)
    return path if path.is_absolute() else PROJECT_ROOT / path


# =============================================================================
# App Factory
# =============================================================================


def create_app(
    config_path: Path | None = None,
    templates_root: Path | None = None,
    kv_store: KeyValueStore | None = None,
) -> FastAPI:
    """
    FastAPI 앱 생성.

    Args:
        config_path: 설정 파일 (None이면 프로젝트 루트 default.yaml)
        templates_root: 템플릿 데이터 루트 (None이면 config 또는 templates/)
        kv_store: key-value 저장소 (None이면 config의 JSON 파일)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        애플리케이션 생명주기 관리.

        시작 시: .env + 설정 로드, 카탈로그/세션/저장소 초기화
        종료 시: 세션 정리 (메모리 전용)
        """
        # Startup
        load_dotenv(PROJECT_ROOT / ".env")
        config = load_config(config_path)
        app.state.config = config

        storage_config = config.get("storage", {})
        editor_config = config.get("editor", {})
        export_config = config.get("export", {})

        app.state.templates_root = templates_root or _resolve_path(
            storage_config.get("templates_root", "templates")
        )
        app.state.kv_store = kv_store or JsonFileKeyValueStore(
            _resolve_path(storage_config.get("kv_path", "data/kv_store.json"))
        )

        app.state.catalog = TemplateCatalog(
            app.state.templates_root,
            app.state.kv_store,
            ai_cache_cap=storage_config.get("ai_thumbnails_cap", AI_THUMBNAILS_CAP),
        )
        app.state.sessions = EditorSessionRegistry(
            app.state.catalog,
            history_limit=editor_config.get("history_limit", DEFAULT_HISTORY_LIMIT),
            duplicate_offset=editor_config.get("duplicate_offset", DUPLICATE_OFFSET),
            max_sessions=editor_config.get("max_sessions", DEFAULT_MAX_SESSIONS),
        )
        app.state.renderer = CanvasRenderer(
            jpeg_quality=export_config.get("jpeg_quality", EXPORT_JPEG_QUALITY),
        )
        app.state.variant_store = VariantStore(
            app.state.kv_store,
            cap=storage_config.get("variants_cap", VARIANTS_CAP),
        )

        logger.info(f"Thumbnail Studio started (templates: {app.state.templates_root})")

        yield

        # Shutdown
        logger.info(f"Shutting down with {len(app.state.sessions)} editor sessions")

    app = FastAPI(
        title="Thumbnail Studio",
        description="Template-based YouTube thumbnail editor with AI generation",
        version="0.1.0",
        lifespan=lifespan,
    )

    # =========================================================================
    # Routes
    # =========================================================================

    # 페이지 라우트 (HTML)
    app.include_router(pages.router, prefix="", tags=["Pages"])
    app.include_router(templates.router, prefix="/templates", tags=["Templates"])

    # API 라우트
    app.include_router(templates.api_router, prefix="/api/templates", tags=["Templates API"])
    app.include_router(editor.api_router, prefix="/api/editor", tags=["Editor API"])
    app.include_router(generate.api_router, prefix="/api", tags=["Generate API"])
    # 별칭: POST /generate-thumbnail
    app.include_router(generate.api_router, prefix="", tags=["Generate API"], include_in_schema=False)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """헬스 체크."""
        return {"status": "ok"}

    return app


# =============================================================================
# App Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
