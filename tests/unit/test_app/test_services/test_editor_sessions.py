"""
test_editor_sessions.py - 에디터 세션 레지스트리 테스트

DoD:
- 세션 생성: 템플릿 해석 + 레이어 로드 (히스토리 없음)
- 템플릿 원본은 세션 편집에 영향받지 않음
- 없는 세션 → SESSION_NOT_FOUND
- max_sessions 초과 시 LRU 제거
"""

import pytest

from src.app.services.editor import EditorSessionRegistry
from src.domain.errors import ErrorCodes, SessionError


@pytest.fixture
def registry(catalog) -> EditorSessionRegistry:
    return EditorSessionRegistry(catalog, history_limit=5, max_sessions=3)


class TestEditorSessionRegistry:
    """세션 생성/조회/제거."""

    def test_create_loads_template_layers(self, registry):
        session = registry.create("gaming_one")

        assert session.session_id.startswith("SES-")
        assert session.template.id == "gaming_one"
        assert [layer.id for layer in session.store.layers] == ["gaming_one_title"]
        assert len(session.store.history) == 0

    def test_unknown_template_falls_back(self, registry):
        assert registry.create("unknown").template.id == "tech_one"

    def test_history_limit_applied(self, registry):
        session = registry.create("tech_one")

        assert session.store.history.max_entries == 5

    def test_edits_do_not_touch_catalog(self, registry, catalog):
        session = registry.create("tech_one")

        session.store.update_layer("tech_one_title", text="Edited")

        assert catalog.get("tech_one").layers[0].text == "Gadget Review"

    def test_get(self, registry):
        session = registry.create("tech_one")

        assert registry.get(session.session_id) is session

    def test_get_unknown(self, registry):
        with pytest.raises(SessionError) as exc_info:
            registry.get("SES-missing")

        assert exc_info.value.code == ErrorCodes.SESSION_NOT_FOUND

    def test_delete(self, registry):
        session = registry.create("tech_one")

        assert registry.delete(session.session_id) is True
        assert registry.delete(session.session_id) is False
        assert len(registry) == 0

    def test_lru_eviction(self, registry):
        """4번째 세션 생성 시 가장 오래 쓰이지 않은 세션 제거."""
        first = registry.create("tech_one")
        second = registry.create("tech_one")
        third = registry.create("tech_one")
        registry.get(first.session_id)

        registry.create("tech_one")

        assert len(registry) == 3
        registry.get(first.session_id)
        registry.get(third.session_id)
        with pytest.raises(SessionError):
            registry.get(second.session_id)


class TestEditorSessionState:
    def test_state_shape(self, registry):
        session = registry.create("cooking_one")
        session.store.add_text_layer()

        state = session.state(changed=True)

        assert state["template_id"] == "cooking_one"
        assert state["name"] == "Pasta Night"
        assert state["canvas"]["width"] == 1280
        assert len(state["layers"]) == 2
        assert state["layers"][1]["type"] == "text"
        assert state["selected_layer_id"] == session.store.layers[1].id
        assert state["history"] == {"index": 0, "length": 1, "can_undo": False, "can_redo": False}
        assert state["changed"] is True

    def test_state_without_changed(self, registry):
        assert "changed" not in registry.create("tech_one").state()
