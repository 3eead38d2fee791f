"""
test_huggingface.py - Hugging Face Provider 테스트

DoD:
- Bearer 인증 헤더, 모델 URL, 파라미터 전달
- 이미지 응답 → 바이트
- non-2xx → UpstreamHTTPError (상태 코드 유지)
- JSON + "loading" → ModelLoadingError
- 타임아웃/연결 실패 → ProviderError
- 제목 보정: generated_text 추출, 실패 시 None

업스트림 호출은 httpx.MockTransport로 대체.
"""

import json

import httpx
import pytest

from src.app.providers.base import (
    ImageParams,
    ModelLoadingError,
    ProviderError,
    UpstreamHTTPError,
)
from src.app.providers.huggingface import (
    DEFAULT_IMAGE_MODEL,
    DEFAULT_TITLE_MODEL,
    HuggingFaceClient,
    HuggingFaceImageProvider,
    HuggingFaceTitleEnhancer,
)

BASE_URL = "https://hf.test/models"


def make_client(handler) -> HuggingFaceClient:
    """MockTransport 기반 클라이언트."""
    return HuggingFaceClient(
        api_key="hf_test",
        base_url=BASE_URL,
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


# =============================================================================
# Image Provider
# =============================================================================


class TestHuggingFaceImageProvider:
    """FLUX 이미지 생성."""

    @pytest.mark.asyncio
    async def test_returns_image_bytes(self):
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"\xff\xd8jpeg", headers={"content-type": "image/jpeg"})

        client = make_client(handler)
        provider = HuggingFaceImageProvider(client)

        result = await provider.generate_image("a prompt")
        await client.aclose()

        assert result == b"\xff\xd8jpeg"
        assert captured["url"] == f"{BASE_URL}/{DEFAULT_IMAGE_MODEL}"
        assert captured["auth"] == "Bearer hf_test"
        assert captured["body"] == {
            "inputs": "a prompt",
            "parameters": {"width": 1024, "height": 576, "num_inference_steps": 4},
        }

    @pytest.mark.asyncio
    async def test_custom_params(self):
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"img")

        provider = HuggingFaceImageProvider(
            make_client(handler),
            model="custom/model",
            params=ImageParams(width=512, height=288, num_inference_steps=2),
        )

        await provider.generate_image("p")

        assert captured["body"]["parameters"]["width"] == 512

    @pytest.mark.asyncio
    async def test_non_success_raises_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="overloaded")

        provider = HuggingFaceImageProvider(make_client(handler))

        with pytest.raises(UpstreamHTTPError) as exc_info:
            await provider.generate_image("p")

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "Hugging Face API error: 503 Service Unavailable"
        assert exc_info.value.body == "overloaded"

    @pytest.mark.asyncio
    async def test_model_loading(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"error": "Model black-forest-labs/FLUX.1-schnell is currently loading", "estimated_time": 20.0},
            )

        provider = HuggingFaceImageProvider(make_client(handler))

        with pytest.raises(ModelLoadingError) as exc_info:
            await provider.generate_image("p")

        assert exc_info.value.code == "MODEL_LOADING"
        assert exc_info.value.context["estimated_time"] == 20.0

    @pytest.mark.asyncio
    async def test_other_json_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"error": "something else"})

        provider = HuggingFaceImageProvider(make_client(handler))

        with pytest.raises(ProviderError) as exc_info:
            await provider.generate_image("p")

        assert exc_info.value.code == "UPSTREAM_INVALID_RESPONSE"

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        provider = HuggingFaceImageProvider(make_client(handler))

        with pytest.raises(ProviderError) as exc_info:
            await provider.generate_image("p")

        assert exc_info.value.code == "UPSTREAM_TIMEOUT"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        provider = HuggingFaceImageProvider(make_client(handler))

        with pytest.raises(ProviderError) as exc_info:
            await provider.generate_image("p")

        assert exc_info.value.code == "UPSTREAM_CONNECTION_ERROR"

    @pytest.mark.asyncio
    async def test_single_attempt(self):
        """재시도 없음: 실패해도 호출 1회."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        provider = HuggingFaceImageProvider(make_client(handler))

        with pytest.raises(UpstreamHTTPError):
            await provider.generate_image("p")

        assert len(calls) == 1


# =============================================================================
# Title Enhancer
# =============================================================================


class TestHuggingFaceTitleEnhancer:
    """DialoGPT 제목 보정."""

    @pytest.mark.asyncio
    async def test_generated_text(self):
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=[{"generated_text": "  Best AI Tools of 2024  "}])

        enhancer = HuggingFaceTitleEnhancer(make_client(handler))

        result = await enhancer.enhance("best ai tols")

        assert result == "Best AI Tools of 2024"
        assert captured["url"].endswith(DEFAULT_TITLE_MODEL)
        assert 'Original title: "best ai tols"' in captured["body"]["inputs"]
        assert captured["body"]["parameters"] == {
            "max_new_tokens": 20,
            "temperature": 0.3,
            "return_full_text": False,
        }

    @pytest.mark.asyncio
    async def test_non_success_returns_none(self):
        enhancer = HuggingFaceTitleEnhancer(make_client(lambda request: httpx.Response(503)))

        assert await enhancer.enhance("title") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"error": "loading"}, [], [{"other": 1}], ["text"]])
    async def test_malformed_returns_none(self, payload):
        enhancer = HuggingFaceTitleEnhancer(make_client(lambda request: httpx.Response(200, json=payload)))

        assert await enhancer.enhance("title") is None


class TestHuggingFaceClient:
    @pytest.mark.asyncio
    async def test_aclose_resets_client(self):
        client = make_client(lambda request: httpx.Response(200))
        first = client.http_client

        await client.aclose()

        assert client.http_client is not first
        await client.aclose()
