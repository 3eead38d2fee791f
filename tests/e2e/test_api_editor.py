"""
test_api_editor.py - Editor API E2E 테스트

엔드포인트 (prefix /api/editor):
- POST /sessions, GET /sessions/{sid}
- POST/PATCH/DELETE layers, duplicate, visibility, fill, select, events/drag
- POST undo/redo
- GET export
- POST variants, POST variants/save, GET /variants
"""

import io

import pytest
from PIL import Image

pytestmark = pytest.mark.e2e


@pytest.fixture
def session(client) -> dict:
    """gaming_one 템플릿 세션."""
    response = client.post("/api/editor/sessions", json={"template_id": "gaming_one"})
    assert response.status_code == 200
    return response.json()


def url(session: dict, path: str = "") -> str:
    return f"/api/editor/sessions/{session['session_id']}{path}"


# =============================================================================
# Sessions
# =============================================================================


class TestSessions:
    def test_create(self, session):
        assert session["template_id"] == "gaming_one"
        assert session["name"] == "Neon Battle"
        assert [layer["id"] for layer in session["layers"]] == ["gaming_one_title"]
        assert session["history"]["length"] == 0
        assert session["selected_layer_id"] is None

    def test_create_unknown_template_falls_back(self, client):
        data = client.post("/api/editor/sessions", json={"template_id": "missing"}).json()

        assert data["template_id"] == "tech_one"

    def test_create_without_body(self, client):
        response = client.post("/api/editor/sessions")

        assert response.status_code == 200

    def test_get(self, client, session):
        assert client.get(url(session)).json()["session_id"] == session["session_id"]

    def test_unknown_session(self, client):
        response = client.get("/api/editor/sessions/SES-missing")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "SESSION_NOT_FOUND"

    def test_invalid_json_body(self, client):
        response = client.post(
            "/api/editor/sessions",
            content=b"{oops",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_JSON"


# =============================================================================
# Layers
# =============================================================================


class TestLayers:
    def test_add_text(self, client, session):
        data = client.post(url(session, "/layers"), json={"type": "text", "text": "Hi"}).json()

        assert data["changed"] is True
        assert len(data["layers"]) == 2
        assert data["layers"][-1]["text"] == "Hi"
        assert data["selected_layer_id"] == data["layers"][-1]["id"]
        assert data["history"]["length"] == 1

    def test_add_image_placeholder(self, client, session):
        data = client.post(url(session, "/layers"), json={"type": "image"}).json()

        assert data["layers"][-1]["type"] == "rect"
        assert data["layers"][-1]["fill"] == "#e5e7eb"

    def test_add_image_with_src(self, client, session):
        data = client.post(url(session, "/layers"), json={"type": "image", "src": "data:image/png;base64,AAAA"}).json()

        assert data["layers"][-1]["type"] == "image"

    def test_add_invalid_type(self, client, session):
        response = client.post(url(session, "/layers"), json={"type": "hexagon"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_LAYER"

    def test_update(self, client, session):
        data = client.patch(url(session, "/layers/gaming_one_title"), json={"text": "Edited"}).json()

        assert data["changed"] is True
        assert data["layers"][0]["text"] == "Edited"

    def test_update_unknown_layer_is_noop(self, client, session):
        data = client.patch(url(session, "/layers/missing"), json={"text": "x"}).json()

        assert data["changed"] is False
        assert data["history"]["length"] == 0

    def test_update_rejects_id_change(self, client, session):
        response = client.patch(url(session, "/layers/gaming_one_title"), json={"id": "other"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "IMMUTABLE_FIELD"

    def test_update_rejects_bad_value(self, client, session):
        """x="abc" → 400, 이후 duplicate/export 정상."""
        response = client.patch(url(session, "/layers/gaming_one_title"), json={"x": "abc"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_FIELD_VALUE"
        assert client.post(url(session, "/layers/gaming_one_title/duplicate")).status_code == 200
        assert client.get(url(session, "/export")).status_code == 200

    def test_update_rejects_bad_opacity(self, client, session):
        response = client.patch(url(session, "/layers/gaming_one_title"), json={"opacity": "zz"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_FIELD_VALUE"

    def test_update_layer_id_key_is_unknown_field(self, client, session):
        response = client.patch(url(session, "/layers/gaming_one_title"), json={"layer_id": "q"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "UNKNOWN_FIELD"

    def test_add_kind_key_is_unknown_field(self, client, session):
        response = client.post(url(session, "/layers"), json={"type": "rect", "kind": "x"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "UNKNOWN_FIELD"

    def test_duplicate(self, client, session):
        data = client.post(url(session, "/layers/gaming_one_title/duplicate")).json()

        original, copy_layer = data["layers"]
        assert copy_layer["id"] != original["id"]
        assert copy_layer["x"] == original["x"] + 20
        assert copy_layer["y"] == original["y"] + 20

    def test_delete(self, client, session):
        data = client.delete(url(session, "/layers/gaming_one_title")).json()

        assert data["changed"] is True
        assert data["layers"] == []

    def test_delete_unknown(self, client, session):
        data = client.delete(url(session, "/layers/missing")).json()

        assert data["changed"] is False
        assert len(data["layers"]) == 1

    def test_visibility(self, client, session):
        data = client.post(url(session, "/layers/gaming_one_title/visibility")).json()

        assert data["layers"][0]["visible"] is False

    def test_fill(self, client, session):
        gradient = "linear-gradient(90deg, #ff0000, #0000ff)"

        data = client.post(url(session, "/layers/gaming_one_title/fill"), json={"fill": gradient}).json()

        assert data["layers"][0]["fill"] == gradient

    def test_fill_missing(self, client, session):
        response = client.post(url(session, "/layers/gaming_one_title/fill"), json={})

        assert response.status_code == 400

    def test_select(self, client, session):
        data = client.post(url(session, "/select"), json={"id": "gaming_one_title"}).json()

        assert data["selected_layer_id"] == "gaming_one_title"
        assert data["history"]["length"] == 0

    def test_select_unknown(self, client, session):
        data = client.post(url(session, "/select"), json={"id": "missing"}).json()

        assert data["changed"] is False

    def test_drag(self, client, session):
        data = client.post(url(session, "/events/drag"), json={"id": "gaming_one_title", "x": 5, "y": 6}).json()

        assert (data["layers"][0]["x"], data["layers"][0]["y"]) == (5, 6)

    def test_drag_invalid_event(self, client, session):
        response = client.post(url(session, "/events/drag"), json={"id": "gaming_one_title", "x": "left"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_EVENT"

    def test_drag_non_finite_coordinate(self, client, session):
        response = client.post(url(session, "/events/drag"), json={"id": "gaming_one_title", "x": "inf", "y": 0})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_EVENT"


# =============================================================================
# History
# =============================================================================


class TestHistory:
    def test_undo_redo(self, client, session):
        client.post(url(session, "/layers"), json={"type": "text", "text": "A"})
        client.post(url(session, "/layers"), json={"type": "text", "text": "B"})

        undone = client.post(url(session, "/undo")).json()
        assert undone["changed"] is True
        assert [layer.get("text") for layer in undone["layers"]][-1] == "A"

        redone = client.post(url(session, "/redo")).json()
        assert redone["layers"][-1]["text"] == "B"
        assert redone["history"]["can_redo"] is False

    def test_undo_nothing(self, client, session):
        assert client.post(url(session, "/undo")).json()["changed"] is False


# =============================================================================
# Export
# =============================================================================


class TestExport:
    def test_png(self, client, session):
        response = client.get(url(session, "/export"), params={"format": "png"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert 'filename="thumbnail-Neon_Battle.png"' in response.headers["content-disposition"]
        assert Image.open(io.BytesIO(response.content)).size == (1280, 720)

    def test_jpg(self, client, session):
        response = client.get(url(session, "/export"), params={"format": "jpg"})

        assert response.headers["content-type"] == "image/jpeg"
        assert Image.open(io.BytesIO(response.content)).format == "JPEG"

    def test_unsupported_format(self, client, session):
        response = client.get(url(session, "/export"), params={"format": "gif"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "UNSUPPORTED_EXPORT_FORMAT"

    def test_export_does_not_change_state(self, client, session):
        client.get(url(session, "/export"))

        assert client.get(url(session)).json()["history"]["length"] == 0


# =============================================================================
# Variants
# =============================================================================


class TestVariants:
    def test_generate(self, client, session):
        data = client.post(url(session, "/variants"), json={"count": 2}).json()

        assert [variant["kind"] for variant in data["variants"]] == ["inverted", "shifted"]
        assert client.get(url(session)).json()["layers"] == session["layers"]

    def test_generate_default_count(self, client, session):
        data = client.post(url(session, "/variants")).json()

        assert len(data["variants"]) == 3

    def test_save_and_list(self, client, session):
        record = client.post(url(session, "/variants/save"), json={"name": "Mine"}).json()

        assert record["id"].startswith("variant_")
        listing = client.get("/api/editor/variants").json()
        assert listing["count"] == 1
        assert listing["variants"][0]["name"] == "Mine"

    def test_save_default_name(self, client, session):
        record = client.post(url(session, "/variants/save")).json()

        assert record["name"] == "Neon Battle"
