"""
Thumbnail Generation Service: 요청 → 보정된 제목 + 이미지.

흐름:
1. 제목 보정 (원격 → 로컬 규칙 fallback)
2. 프롬프트 구성
3. 이미지 생성 (단일 시도)
4. 응답 envelope {success, image?, enhancedTitle?, error?}

에러 매핑:
- 모델 로딩 중 → 200, retryable
- 업스트림 non-2xx → 업스트림 상태 코드 그대로
- 그 외 → 500 "Internal server error"
"""

import base64
import logging
from typing import Any

import httpx

from src.app.providers.anthropic import ClaudeTitleEnhancer
from src.app.providers.base import (
    ImageParams,
    ImageProvider,
    ModelLoadingError,
    ProviderError,
    TextParams,
    TitleEnhancer,
    UpstreamHTTPError,
)
from src.app.providers.huggingface import (
    DEFAULT_BASE_URL,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_TIMEOUT,
    DEFAULT_TITLE_MODEL,
    HuggingFaceClient,
    HuggingFaceImageProvider,
    HuggingFaceTitleEnhancer,
)
from src.app.services.prompt import build_thumbnail_prompt
from src.app.services.title import enhance_title
from src.domain.errors import ErrorCodes
from src.domain.schemas import GenerationRequest, GenerationResult

logger = logging.getLogger(__name__)

# 응답 메시지 (클라이언트 표시용)
MISSING_FIELDS_MESSAGE = "Missing required fields: title, description, or theme"
MISSING_API_KEY_MESSAGE = "AI_API_KEY not configured"
MODEL_LOADING_MESSAGE = "Model is loading, please try again in a few moments"
INTERNAL_ERROR_MESSAGE = "Internal server error"


def validation_failure() -> GenerationResult:
    return GenerationResult(
        success=False,
        error=MISSING_FIELDS_MESSAGE,
        error_code=ErrorCodes.MISSING_REQUIRED_FIELD,
        status_code=400,
    )


def missing_key_failure() -> GenerationResult:
    return GenerationResult(
        success=False,
        error=MISSING_API_KEY_MESSAGE,
        error_code=ErrorCodes.CONFIG_MISSING,
        status_code=500,
    )


class ThumbnailGenerationService:
    """
    썸네일 생성 서비스.

    Usage:
        service = build_generation_service(config, api_key)
        try:
            result = await service.generate(request)
        finally:
            await service.aclose()
    """

    def __init__(
        self,
        image_provider: ImageProvider,
        title_enhancer: TitleEnhancer | None = None,
        client: HuggingFaceClient | None = None,
    ):
        """
        Args:
            image_provider: 이미지 생성 Provider
            title_enhancer: 제목 보정 Provider (None이면 로컬 규칙만)
            client: 종료 시 닫을 HTTP 클라이언트
        """
        self.image_provider = image_provider
        self.title_enhancer = title_enhancer
        self._client = client

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        썸네일 생성.

        Returns:
            GenerationResult (예외를 던지지 않음)
        """
        if request.missing_fields():
            return validation_failure()

        try:
            enhanced_title = await enhance_title(request.title, self.title_enhancer)
            prompt = build_thumbnail_prompt(enhanced_title, request.description, request.theme)
            image_bytes = await self.image_provider.generate_image(prompt)

        except ModelLoadingError:
            return GenerationResult(
                success=False,
                error=MODEL_LOADING_MESSAGE,
                error_code=ErrorCodes.MODEL_LOADING,
                retryable=True,
                status_code=200,
            )

        except UpstreamHTTPError as e:
            return GenerationResult(
                success=False,
                error=e.message,
                error_code=ErrorCodes.UPSTREAM_HTTP_ERROR,
                status_code=e.status_code,
            )

        except Exception as e:
            logger.error(f"Error generating thumbnail: {e}", exc_info=True)
            return GenerationResult(
                success=False,
                error=INTERNAL_ERROR_MESSAGE,
                error_code=ErrorCodes.INTERNAL_ERROR,
                status_code=500,
            )

        encoded = base64.b64encode(image_bytes).decode("ascii")
        return GenerationResult(
            success=True,
            image=f"data:image/jpeg;base64,{encoded}",
            enhanced_title=enhanced_title,
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()


# =============================================================================
# Factory
# =============================================================================

def _build_title_enhancer(
    ai_config: dict[str, Any],
    client: HuggingFaceClient,
) -> TitleEnhancer | None:
    """
    ai.title_provider 설정 → TitleEnhancer.

    - huggingface (기본): Hugging Face 텍스트 모델
    - anthropic: Claude (키 없으면 로컬 규칙으로 대체)
    - none: 로컬 규칙만
    """
    provider = ai_config.get("title_provider", "huggingface")

    if provider == "none":
        return None

    if provider == "anthropic":
        anthropic_config = ai_config.get("anthropic", {})
        try:
            return ClaudeTitleEnhancer(
                model=anthropic_config.get("model", "claude-haiku-4-5"),
                max_tokens=anthropic_config.get("max_tokens", 64),
            )
        except ProviderError as e:
            logger.warning(f"Claude title enhancer unavailable, using local rules: {e}")
            return None

    title_config = ai_config.get("title", {})
    return HuggingFaceTitleEnhancer(
        client,
        model=title_config.get("model", DEFAULT_TITLE_MODEL),
        params=TextParams(
            max_new_tokens=title_config.get("max_new_tokens", 20),
            temperature=title_config.get("temperature", 0.3),
        ),
    )


def build_generation_service(
    config: dict[str, Any],
    api_key: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ThumbnailGenerationService:
    """
    config (default.yaml의 ai 섹션) → ThumbnailGenerationService.

    Args:
        config: 전체 설정
        api_key: Hugging Face 토큰 (AI_API_KEY)
        transport: 테스트용 httpx transport
    """
    ai_config = config.get("ai", {})
    image_config = ai_config.get("image", {})

    client = HuggingFaceClient(
        api_key=api_key,
        base_url=ai_config.get("base_url", DEFAULT_BASE_URL),
        timeout=ai_config.get("timeout_seconds", DEFAULT_TIMEOUT),
        transport=transport,
    )

    image_provider = HuggingFaceImageProvider(
        client,
        model=image_config.get("model", DEFAULT_IMAGE_MODEL),
        params=ImageParams(
            width=image_config.get("width", 1024),
            height=image_config.get("height", 576),
            num_inference_steps=image_config.get("num_inference_steps", 4),
        ),
    )

    return ThumbnailGenerationService(
        image_provider=image_provider,
        title_enhancer=_build_title_enhancer(ai_config, client),
        client=client,
    )
