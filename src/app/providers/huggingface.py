"""
Hugging Face Inference API Provider.

- 이미지: black-forest-labs/FLUX.1-schnell (1024x576, 4 steps)
- 제목 보정: microsoft/DialoGPT-medium (짧은 응답)
- 단일 시도 (재시도/백오프 없음), 타임아웃만 적용
"""

import logging
from typing import Any

import httpx

from .base import (
    ImageParams,
    ImageProvider,
    ModelLoadingError,
    ProviderError,
    TextParams,
    TitleEnhancer,
    UpstreamHTTPError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api-inference.huggingface.co/models"
DEFAULT_IMAGE_MODEL = "black-forest-labs/FLUX.1-schnell"
DEFAULT_TITLE_MODEL = "microsoft/DialoGPT-medium"
DEFAULT_TIMEOUT = 60.0

TITLE_ENHANCEMENT_PROMPT = """Fix any spelling errors and slightly enhance this YouTube video title to make it more engaging while keeping the core meaning intact. Only return the enhanced title, nothing else:

Original title: "{title}"

Rules:
- Fix any spelling mistakes
- Keep it concise (under 60 characters if possible)
- Make it more engaging and click-worthy
- Preserve the main topic and intent
- Use proper capitalization
- Return ONLY the enhanced title, no quotes or extra text"""


class HuggingFaceClient:
    """
    Inference API 공용 HTTP 클라이언트.

    Usage:
        client = HuggingFaceClient(api_key="hf_...")
        response = await client.post("black-forest-labs/FLUX.1-schnell", payload)
        await client.aclose()
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            api_key: Bearer 토큰 (AI_API_KEY)
            base_url: 모델 엔드포인트 루트
            timeout: 요청 타임아웃 (초)
            transport: 테스트용 transport 주입 (httpx.MockTransport)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """AsyncClient (lazy init)."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http_client

    async def post(self, model: str, payload: dict[str, Any]) -> httpx.Response:
        """
        모델 엔드포인트 호출.

        Raises:
            ProviderError: UPSTREAM_TIMEOUT, UPSTREAM_CONNECTION_ERROR
        """
        url = f"{self.base_url}/{model}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            return await self.http_client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            logger.error(f"Hugging Face request timed out after {self.timeout}s: {model}")
            raise ProviderError(
                "UPSTREAM_TIMEOUT",
                f"Request to {model} timed out",
                model=model,
                timeout=self.timeout,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Hugging Face request failed: {model}: {e}")
            raise ProviderError(
                "UPSTREAM_CONNECTION_ERROR",
                f"Could not reach {model}: {e}",
                model=model,
            ) from e

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None


class HuggingFaceImageProvider(ImageProvider):
    """FLUX 텍스트 → 이미지."""

    def __init__(
        self,
        client: HuggingFaceClient,
        model: str = DEFAULT_IMAGE_MODEL,
        params: ImageParams | None = None,
    ):
        self.client = client
        self.model = model
        self.params = params or ImageParams()

    async def generate_image(self, prompt: str) -> bytes:
        """
        이미지 생성.

        응답 해석:
        - non-2xx → UpstreamHTTPError (상태 코드 + reason)
        - JSON 응답 + error에 "loading" → ModelLoadingError
        - 기타 JSON 응답 → ProviderError(UPSTREAM_INVALID_RESPONSE)
        - 그 외 → 이미지 바이트
        """
        response = await self.client.post(
            self.model,
            {"inputs": prompt, "parameters": self.params.to_dict()},
        )

        if not response.is_success:
            body = response.text
            logger.error(f"Hugging Face API error: {response.status_code} {body[:500]}")
            raise UpstreamHTTPError(
                response.status_code,
                response.reason_phrase,
                body=body,
                model=self.model,
            )

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                data = response.json()
            except ValueError:
                data = {}

            error = data.get("error") if isinstance(data, dict) else None
            if isinstance(error, str) and "loading" in error.lower():
                logger.info(f"Model {self.model} is loading")
                raise ModelLoadingError(
                    error,
                    model=self.model,
                    estimated_time=data.get("estimated_time"),
                )

            raise ProviderError(
                "UPSTREAM_INVALID_RESPONSE",
                "Expected image bytes but received JSON",
                model=self.model,
                error=error,
            )

        logger.info(f"Generated image with {self.model} ({len(response.content)} bytes)")
        return response.content


class HuggingFaceTitleEnhancer(TitleEnhancer):
    """DialoGPT 기반 제목 보정."""

    def __init__(
        self,
        client: HuggingFaceClient,
        model: str = DEFAULT_TITLE_MODEL,
        params: TextParams | None = None,
    ):
        self.client = client
        self.model = model
        self.params = params or TextParams()

    async def enhance(self, title: str) -> str | None:
        """
        제목 보정.

        non-2xx 또는 형식이 맞지 않는 응답 → None (호출자가 fallback 적용)
        """
        response = await self.client.post(
            self.model,
            {
                "inputs": TITLE_ENHANCEMENT_PROMPT.format(title=title),
                "parameters": self.params.to_dict(),
            },
        )

        if not response.is_success:
            logger.info(f"Title enhancement returned {response.status_code}; using fallback")
            return None

        try:
            data = response.json()
        except ValueError:
            return None

        if isinstance(data, list) and data and isinstance(data[0], dict):
            text = data[0].get("generated_text")
            if isinstance(text, str):
                return text.strip()
        return None
