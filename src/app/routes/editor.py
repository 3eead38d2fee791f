"""
Editor Routes: 에디터 세션 API (LayerStore HTTP 표면).

- 세션: 생성/조회
- 레이어: 추가/수정/복제/삭제/표시 토글/fill/선택/드래그
- 히스토리: undo/redo
- 내보내기: PNG/JPEG 다운로드
- 변형: 생성/저장/목록

존재하지 않는 layer id → 200 + changed: false (상태 그대로)
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from src.app.services.editor import EditorSession, EditorSessionRegistry
from src.core.variants import VariantStore, generate_variants
from src.domain.constants import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    EXPORT_DEFAULT_PIXEL_RATIO,
    get_mime_type,
)
from src.domain.errors import (
    ErrorCodes,
    LayerError,
    RenderError,
    SessionError,
    TemplateError,
)
from src.domain.layers import LayerType
from src.render.canvas import CanvasRenderer, export_filename

logger = logging.getLogger(__name__)

api_router = APIRouter()


# =============================================================================
# Helpers
# =============================================================================

def _session(request: Request, session_id: str) -> EditorSession:
    registry: EditorSessionRegistry = request.app.state.sessions
    try:
        return registry.get(session_id)
    except SessionError as e:
        raise HTTPException(status_code=404, detail={"code": e.code, "message": e.message}) from e


async def _json_body(request: Request) -> dict[str, Any]:
    """JSON body (없으면 빈 dict)."""
    body = await request.body()
    if not body:
        return {}
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HTTPException(
            status_code=400,
            detail={"code": "INVALID_JSON", "message": "Request body must be a JSON object"},
        ) from e
    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=400,
            detail={"code": "INVALID_JSON", "message": "Request body must be a JSON object"},
        )
    return payload


def _layer_error(e: LayerError) -> HTTPException:
    return HTTPException(status_code=400, detail={"code": e.code, "message": e.message})


# =============================================================================
# Sessions
# =============================================================================

@api_router.post("/sessions")
async def create_session(request: Request) -> dict[str, Any]:
    """
    세션 생성.

    Body: {"template_id": "..."}  (해석 실패 시 카탈로그 첫 템플릿)
    """
    payload = await _json_body(request)
    template_id = str(payload.get("template_id") or "")

    registry: EditorSessionRegistry = request.app.state.sessions
    try:
        session = registry.create(template_id)
    except TemplateError as e:
        raise HTTPException(status_code=404, detail={"code": e.code, "message": e.message}) from e

    return session.state()


@api_router.get("/sessions/{session_id}")
async def get_session(request: Request, session_id: str) -> dict[str, Any]:
    """세션 상태."""
    return _session(request, session_id).state()


# =============================================================================
# Layers
# =============================================================================

@api_router.post("/sessions/{session_id}/layers")
async def add_layer(request: Request, session_id: str) -> dict[str, Any]:
    """
    레이어 추가.

    Body: {"type": "text"|"rect"|"circle"|"star"|"image", ...params}
    image + src 없음 → 자리표시자 (둥근 회색 사각형)
    """
    session = _session(request, session_id)
    payload = await _json_body(request)
    kind = payload.pop("type", LayerType.TEXT.value)

    try:
        if kind == LayerType.IMAGE.value and not payload.get("src"):
            session.store.add_image_layer(payload)
        else:
            session.store.add_layer(kind, payload)
    except LayerError as e:
        raise _layer_error(e) from e

    return session.state(changed=True)


@api_router.patch("/sessions/{session_id}/layers/{layer_id}")
async def update_layer(request: Request, session_id: str, layer_id: str) -> dict[str, Any]:
    """레이어 필드 병합."""
    session = _session(request, session_id)
    payload = await _json_body(request)

    try:
        updated = session.store.update_layer(layer_id, payload)
    except LayerError as e:
        raise _layer_error(e) from e

    return session.state(changed=updated is not None)


@api_router.post("/sessions/{session_id}/layers/{layer_id}/duplicate")
async def duplicate_layer(request: Request, session_id: str, layer_id: str) -> dict[str, Any]:
    session = _session(request, session_id)
    duplicated = session.store.duplicate_layer(layer_id)
    return session.state(changed=duplicated is not None)


@api_router.delete("/sessions/{session_id}/layers/{layer_id}")
async def delete_layer(request: Request, session_id: str, layer_id: str) -> dict[str, Any]:
    session = _session(request, session_id)
    return session.state(changed=session.store.delete_layer(layer_id))


@api_router.post("/sessions/{session_id}/layers/{layer_id}/visibility")
async def toggle_visibility(request: Request, session_id: str, layer_id: str) -> dict[str, Any]:
    session = _session(request, session_id)
    toggled = session.store.toggle_visibility(layer_id)
    return session.state(changed=toggled is not None)


@api_router.post("/sessions/{session_id}/layers/{layer_id}/fill")
async def apply_fill(request: Request, session_id: str, layer_id: str) -> dict[str, Any]:
    """
    색상/그라디언트 적용.

    Body: {"fill": "#ff0000" | "linear-gradient(...)"}
    """
    session = _session(request, session_id)
    payload = await _json_body(request)
    fill = payload.get("fill")
    if not isinstance(fill, str) or not fill:
        raise HTTPException(
            status_code=400,
            detail={"code": ErrorCodes.INVALID_LAYER, "message": "fill must be a non-empty string"},
        )

    try:
        updated = session.store.apply_fill(layer_id, fill)
    except LayerError as e:
        raise _layer_error(e) from e

    return session.state(changed=updated is not None)


@api_router.post("/sessions/{session_id}/select")
async def select_layer(request: Request, session_id: str) -> dict[str, Any]:
    """
    선택 변경 (히스토리 기록 안 함).

    Body: {"id": "..." | null}
    """
    session = _session(request, session_id)
    payload = await _json_body(request)
    layer_id = payload.get("id")
    changed = session.store.select(str(layer_id) if layer_id is not None else None)
    return session.state(changed=changed)


@api_router.post("/sessions/{session_id}/events/drag")
async def drag_end(request: Request, session_id: str) -> dict[str, Any]:
    """
    렌더러 드래그 완료 이벤트.

    Body: {"id": "...", "x": 0, "y": 0}  (circle은 중심 좌표)
    """
    session = _session(request, session_id)
    payload = await _json_body(request)

    try:
        updated = session.store.handle_drag_end(payload)
    except (KeyError, TypeError, ValueError, LayerError) as e:
        raise HTTPException(
            status_code=400,
            detail={"code": "INVALID_EVENT", "message": "Drag event requires id, x and y"},
        ) from e

    return session.state(changed=updated is not None)


# =============================================================================
# History
# =============================================================================

@api_router.post("/sessions/{session_id}/undo")
async def undo(request: Request, session_id: str) -> dict[str, Any]:
    session = _session(request, session_id)
    return session.state(changed=session.store.undo())


@api_router.post("/sessions/{session_id}/redo")
async def redo(request: Request, session_id: str) -> dict[str, Any]:
    session = _session(request, session_id)
    return session.state(changed=session.store.redo())


# =============================================================================
# Export
# =============================================================================

@api_router.get("/sessions/{session_id}/export")
async def export_image(
    request: Request,
    session_id: str,
    format: str = "png",
) -> Response:
    """
    현재 레이어를 이미지로 내보내기 (다운로드).

    실패해도 에디터 상태는 그대로.
    """
    session = _session(request, session_id)
    renderer: CanvasRenderer = request.app.state.renderer
    export_config = request.app.state.config.get("export", {})
    fmt = format.lower()

    try:
        data = renderer.export(
            session.template.canvas,
            session.store.layers,
            fmt=fmt,
            pixel_ratio=export_config.get("pixel_ratio", EXPORT_DEFAULT_PIXEL_RATIO),
            width=export_config.get("width", CANVAS_WIDTH),
            height=export_config.get("height", CANVAS_HEIGHT),
        )
    except RenderError as e:
        if e.code == ErrorCodes.UNSUPPORTED_EXPORT_FORMAT:
            raise HTTPException(status_code=400, detail={"code": e.code, "message": e.message}) from e
        raise HTTPException(
            status_code=500,
            detail={"code": e.code, "message": "Failed to export thumbnail. Please try again."},
        ) from e

    filename = export_filename(session.template.name, fmt)
    return Response(
        content=data,
        media_type=get_mime_type(filename),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# =============================================================================
# Variants
# =============================================================================

@api_router.post("/sessions/{session_id}/variants")
async def create_variants(request: Request, session_id: str) -> dict[str, Any]:
    """
    현재 레이어의 결정론적 변형 생성 (세션 상태는 변경하지 않음).

    Body: {"count": 3}
    """
    session = _session(request, session_id)
    payload = await _json_body(request)

    try:
        count = int(payload.get("count", 3))
    except (TypeError, ValueError):
        count = 3

    variants = generate_variants(session.store.layers, count=count)
    return {"variants": [variant.to_dict() for variant in variants]}


@api_router.post("/sessions/{session_id}/variants/save")
async def save_variant(request: Request, session_id: str) -> dict[str, Any]:
    """
    현재 레이어를 변형으로 저장.

    Body: {"name": "..."}
    """
    session = _session(request, session_id)
    payload = await _json_body(request)
    name = str(payload.get("name") or session.template.name)

    variant_store: VariantStore = request.app.state.variant_store
    return variant_store.save(name, session.store.layers)


@api_router.get("/variants")
async def list_variants(request: Request) -> dict[str, Any]:
    """저장된 변형 (최신순)."""
    variant_store: VariantStore = request.app.state.variant_store
    items = variant_store.list_records()
    return {"variants": items, "count": len(items)}
