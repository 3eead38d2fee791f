"""
Generate Routes: 썸네일 생성 프록시.

- POST /api/generate-thumbnail (별칭: POST /generate-thumbnail)
- 응답 envelope: {success, image?, enhancedTitle?, error?, retryable?}
- AI_API_KEY는 요청마다 환경변수에서 확인 (.env는 시작 시 로드)
"""

import json
import logging
import os
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from src.app.services.generation import (
    build_generation_service,
    missing_key_failure,
    validation_failure,
)
from src.domain.constants import THUMBNAIL_THEMES
from src.domain.schemas import GenerationRequest, GenerationResult

logger = logging.getLogger(__name__)

api_router = APIRouter()

API_KEY_ENV = "AI_API_KEY"


def _respond(result: GenerationResult) -> JSONResponse:
    return JSONResponse(content=result.to_dict(), status_code=result.status_code)


@api_router.post("/generate-thumbnail")
async def generate_thumbnail(request: Request) -> JSONResponse:
    """
    썸네일 생성.

    - 필드 누락/공백 또는 JSON 파싱 실패 → 400
    - AI_API_KEY 없음 → 500
    - 업스트림 실패 → 업스트림 상태 코드
    - 모델 로딩 중 → 200 + retryable
    """
    try:
        payload: Any = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _respond(validation_failure())

    if not isinstance(payload, dict):
        return _respond(validation_failure())

    generation_request = GenerationRequest.from_dict(payload)
    if generation_request.missing_fields():
        return _respond(validation_failure())

    api_key = os.environ.get(API_KEY_ENV)
    if not api_key:
        logger.error(f"{API_KEY_ENV} is not configured")
        return _respond(missing_key_failure())

    factory = getattr(request.app.state, "generation_service_factory", build_generation_service)
    service = factory(request.app.state.config, api_key)
    try:
        result = await service.generate(generation_request)
    finally:
        await service.aclose()

    if result.success:
        logger.info(f"Generated thumbnail for title {generation_request.title!r}")
    return _respond(result)


@api_router.get("/generate-thumbnail/themes")
async def list_themes() -> dict[str, Any]:
    """AI 생성 화면용 테마 목록."""
    return {"themes": list(THUMBNAIL_THEMES)}
