"""
test_api_generate.py - 썸네일 생성 프록시 E2E 테스트

엔드포인트:
- POST /api/generate-thumbnail (별칭 POST /generate-thumbnail)
- GET /api/generate-thumbnail/themes

업스트림은 app.state.generation_service_factory 교체 + httpx.MockTransport로 대체.
"""

import base64

import httpx
import pytest

from src.app.services.generation import (
    MISSING_API_KEY_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    MODEL_LOADING_MESSAGE,
    build_generation_service,
)
from src.domain.constants import THUMBNAIL_THEMES

pytestmark = pytest.mark.e2e

VALID_BODY = {"title": "teh best ai tools", "description": "A quick review", "theme": "technology"}


def use_upstream(client, handler) -> list[httpx.Request]:
    """업스트림을 MockTransport handler로 교체. 받은 요청 목록 반환."""
    requests: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    def factory(config, api_key):
        return build_generation_service(config, api_key, transport=httpx.MockTransport(recording))

    client.app.state.generation_service_factory = factory
    return requests


def image_or_title(request: httpx.Request) -> httpx.Response:
    if "DialoGPT" in str(request.url):
        return httpx.Response(200, json=[{"generated_text": "The Best AI Tools"}])
    return httpx.Response(200, content=b"\xff\xd8img", headers={"content-type": "image/jpeg"})


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("AI_API_KEY", "hf_test")
    return "hf_test"


# =============================================================================
# Validation
# =============================================================================


class TestValidation:
    """요청 검증 (업스트림 호출 전)."""

    def test_empty_title_returns_400(self, client, api_key):
        requests = use_upstream(client, image_or_title)

        response = client.post(
            "/api/generate-thumbnail",
            json={"title": "", "description": "x", "theme": "technology"},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": MISSING_FIELDS_MESSAGE}
        assert requests == []

    @pytest.mark.parametrize("missing", ["title", "description", "theme"])
    def test_each_field_required(self, client, api_key, missing):
        body = {key: value for key, value in VALID_BODY.items() if key != missing}

        response = client.post("/api/generate-thumbnail", json=body)

        assert response.status_code == 400

    def test_malformed_json(self, client, api_key):
        response = client.post(
            "/api/generate-thumbnail",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_non_object_json(self, client, api_key):
        response = client.post("/api/generate-thumbnail", json=["title"])

        assert response.status_code == 400

    def test_missing_api_key(self, client, monkeypatch):
        monkeypatch.delenv("AI_API_KEY", raising=False)

        response = client.post("/api/generate-thumbnail", json=VALID_BODY)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": MISSING_API_KEY_MESSAGE}


# =============================================================================
# Upstream outcomes
# =============================================================================


class TestGeneration:
    """업스트림 결과 매핑."""

    def test_success(self, client, api_key):
        requests = use_upstream(client, image_or_title)

        response = client.post("/api/generate-thumbnail", json=VALID_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["enhancedTitle"] == "The Best AI Tools"
        assert data["image"] == "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8img").decode()
        assert all(request.headers["Authorization"] == "Bearer hf_test" for request in requests)

    def test_alias_route(self, client, api_key):
        use_upstream(client, image_or_title)

        response = client.post("/generate-thumbnail", json=VALID_BODY)

        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_title_fallback_when_title_model_fails(self, client, api_key):
        def handler(request: httpx.Request) -> httpx.Response:
            if "DialoGPT" in str(request.url):
                return httpx.Response(503)
            return httpx.Response(200, content=b"img", headers={"content-type": "image/jpeg"})

        use_upstream(client, handler)

        response = client.post("/api/generate-thumbnail", json=VALID_BODY)

        assert response.json()["enhancedTitle"] == "The Best AI Tools"

    def test_model_loading(self, client, api_key):
        def handler(request: httpx.Request) -> httpx.Response:
            if "DialoGPT" in str(request.url):
                return httpx.Response(503)
            return httpx.Response(200, json={"error": "Model is currently loading", "estimated_time": 20})

        use_upstream(client, handler)

        response = client.post("/api/generate-thumbnail", json=VALID_BODY)

        assert response.status_code == 200
        assert response.json() == {"success": False, "error": MODEL_LOADING_MESSAGE, "retryable": True}

    def test_upstream_error_status_passthrough(self, client, api_key):
        use_upstream(client, lambda request: httpx.Response(429))

        response = client.post("/api/generate-thumbnail", json=VALID_BODY)

        assert response.status_code == 429
        assert response.json() == {"success": False, "error": "Hugging Face API error: 429 Too Many Requests"}

    def test_connection_error_is_500(self, client, api_key):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        use_upstream(client, handler)

        response = client.post("/api/generate-thumbnail", json=VALID_BODY)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}


class TestThemes:
    def test_themes(self, client):
        response = client.get("/api/generate-thumbnail/themes")

        assert response.status_code == 200
        assert response.json()["themes"] == list(THUMBNAIL_THEMES)
