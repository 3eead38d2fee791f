"""
test_pages.py - 페이지 라우트 E2E 테스트

엔드포인트:
- GET / (랜딩)
- GET /editor/{template_id}
- GET /ai-generator
- GET /health
"""

import pytest

pytestmark = pytest.mark.e2e


class TestPages:
    def test_landing(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "Thumbnail Studio" in response.text
        assert "Layer-Based Editor" in response.text
        assert 'href="/templates"' in response.text

    def test_editor(self, client):
        response = client.get("/editor/gaming_one")

        assert response.status_code == 200
        assert 'data-template-id="gaming_one"' in response.text
        assert "/api/editor/sessions" in response.text

    def test_editor_invalid_id(self, client):
        response = client.get("/editor/bad$id")

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_TEMPLATE_ID"

    def test_ai_generator(self, client):
        response = client.get("/ai-generator")

        assert response.status_code == 200
        assert '<option value="technology">' in response.text
        assert "Tech tutorial about JavaScript arrays" in response.text
        assert "/api/generate-thumbnail" in response.text

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}
