"""
Templates Routes: 템플릿 갤러리 + 카탈로그 API.

- GET /templates → 갤러리 화면 (카테고리 필터 + 검색)
- API: 목록/상세/카테고리, AI 템플릿 생성
"""

import html
import json
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse

from src.domain.constants import ALL_CATEGORIES
from src.domain.errors import ErrorCodes, TemplateError
from src.templates.catalog import TemplateCatalog, validate_template_id

# Routers
router = APIRouter()  # HTML pages
api_router = APIRouter()  # API endpoints


def _catalog(request: Request) -> TemplateCatalog:
    catalog: TemplateCatalog = request.app.state.catalog
    return catalog


# =============================================================================
# Page Routes (HTML)
# =============================================================================

@router.get("", response_class=HTMLResponse)
async def gallery_page(request: Request) -> HTMLResponse:
    """템플릿 갤러리 화면."""
    categories = [ALL_CATEGORIES, *_catalog(request).categories()]
    options = "".join(
        f'<option value="{html.escape(c)}">{html.escape(c)}</option>' for c in categories
    )

    return HTMLResponse(content=f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Templates - Thumbnail Studio</title>
    <script src="https://unpkg.com/htmx.org@1.9.10"></script>
</head>
<body>
    <div class="container">
        <header>
            <h1>Templates</h1>
            <a href="/ai-generator" class="button">Generate with AI</a>
        </header>

        <form hx-get="/api/templates/gallery"
              hx-target="#template-list"
              hx-trigger="load, change, keyup changed delay:300ms from:input">
            <select name="category">{options}</select>
            <input type="search" name="q" placeholder="Search by name or tag">
        </form>

        <div id="template-list">Loading...</div>
    </div>
</body>
</html>
    """)


# =============================================================================
# API Routes
# =============================================================================

@api_router.get("")
async def list_templates(
    request: Request,
    category: str = ALL_CATEGORIES,
    q: str = "",
) -> dict[str, Any]:
    """템플릿 목록 (카테고리 정확히 일치 + 이름/태그 검색)."""
    templates = _catalog(request).list_templates(category=category, query=q)
    return {
        "templates": [template.summary() for template in templates],
        "count": len(templates),
    }


@api_router.get("/gallery", response_class=HTMLResponse)
async def gallery_fragment(
    request: Request,
    category: str = ALL_CATEGORIES,
    q: str = "",
) -> HTMLResponse:
    """
    갤러리 카드 목록 (HTML 조각).

    HTMX용 부분 렌더링.
    """
    templates = _catalog(request).list_templates(category=category, query=q)

    if not templates:
        return HTMLResponse(content="<p class='empty'>No templates match your filters.</p>")

    cards = []
    for template in templates:
        tags = " ".join(f"<span class='tag'>{html.escape(tag)}</span>" for tag in template.meta.tags)
        badge = "<span class='badge'>Recommended</span>" if template.meta.recommended else ""
        cards.append(f"""
        <li class="template-card">
            <a href="/editor/{html.escape(template.id)}">
                <img src="{html.escape(template.preview)}" alt="{html.escape(template.name)}">
                <strong>{html.escape(template.name)}</strong>
            </a>
            {badge}
            <small>{html.escape(template.category)}</small>
            <div class="tags">{tags}</div>
        </li>
        """)

    return HTMLResponse(content="<ul class='template-grid'>" + "".join(cards) + "</ul>")


@api_router.get("/categories")
async def list_categories(request: Request) -> dict[str, Any]:
    """고정 카테고리 목록."""
    return {"categories": _catalog(request).categories()}


@api_router.get("/ai")
async def list_ai_templates(request: Request) -> dict[str, Any]:
    """AI 생성 캐시 (최신순)."""
    items = _catalog(request).ai_templates()
    return {"templates": items, "count": len(items)}


@api_router.post("/ai")
async def generate_ai_template(request: Request) -> dict[str, Any]:
    """
    프롬프트 → AI 템플릿 생성 + 캐시 저장.

    Body: {"prompt": "..."}
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HTTPException(
            status_code=400,
            detail={"code": ErrorCodes.EMPTY_PROMPT, "message": "Request body must be JSON"},
        ) from e

    prompt = payload.get("prompt", "") if isinstance(payload, dict) else ""

    try:
        template = _catalog(request).generate_ai_template(str(prompt or ""))
    except TemplateError as e:
        raise HTTPException(status_code=400, detail={"code": e.code, "message": e.message}) from e

    return template.to_dict()


@api_router.get("/{template_id}")
async def get_template(request: Request, template_id: str) -> dict[str, Any]:
    """
    템플릿 상세 (카탈로그 → AI 캐시 → 첫 템플릿 fallback).
    """
    try:
        validate_template_id(template_id)
        template = _catalog(request).resolve(template_id)
    except TemplateError as e:
        status_code = 400 if e.code == ErrorCodes.INVALID_TEMPLATE_ID else 404
        raise HTTPException(status_code=status_code, detail={"code": e.code, "message": e.message}) from e

    return template.to_dict()
