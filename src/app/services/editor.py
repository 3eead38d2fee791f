"""
Editor Service: 에디터 세션 레지스트리.

세션 = 템플릿 복사본 + LayerStore (+ 히스토리).

규칙:
- 단일 프로세스, 단일 이벤트 루프 (세션 상태는 메모리에만 존재)
- 템플릿 원본은 변경하지 않음: store.load(template.layers)로 복사본 편집
- 세션 수가 max_sessions를 넘으면 가장 오래 쓰이지 않은 세션부터 제거
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from src.core.history import HistoryStack
from src.core.ids import generate_session_id
from src.core.layer_store import LayerStore
from src.domain.constants import DEFAULT_HISTORY_LIMIT, DUPLICATE_OFFSET
from src.domain.errors import ErrorCodes, SessionError
from src.domain.layers import layers_to_dicts
from src.domain.schemas import Template
from src.templates.catalog import TemplateCatalog

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 100


@dataclass
class EditorSession:
    """에디터 세션."""
    session_id: str
    template: Template
    store: LayerStore
    created_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def state(self, changed: bool | None = None) -> dict[str, Any]:
        """API 응답용 상태."""
        result: dict[str, Any] = {
            "session_id": self.session_id,
            "template_id": self.template.id,
            "name": self.template.name,
            "canvas": self.template.canvas.to_dict(),
            "layers": layers_to_dicts(self.store.layers),
            "selected_layer_id": self.store.selected_layer_id,
            "history": self.store.history.status(),
        }
        if changed is not None:
            result["changed"] = changed
        return result


class EditorSessionRegistry:
    """
    세션 생성/조회.

    Usage:
        registry = EditorSessionRegistry(catalog)
        session = registry.create("tech_review_bold")
        session.store.add_text_layer()
        registry.get(session.session_id)
    """

    def __init__(
        self,
        catalog: TemplateCatalog,
        history_limit: int | None = DEFAULT_HISTORY_LIMIT,
        duplicate_offset: float = DUPLICATE_OFFSET,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ):
        self.catalog = catalog
        self.history_limit = history_limit
        self.duplicate_offset = duplicate_offset
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, EditorSession] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, template_id: str) -> EditorSession:
        """
        템플릿 해석 후 세션 생성.

        Raises:
            TemplateError: TEMPLATE_NOT_FOUND (카탈로그가 비어있을 때)
        """
        template = self.catalog.resolve(template_id)

        store = LayerStore(
            history=HistoryStack(max_entries=self.history_limit),
            duplicate_offset=self.duplicate_offset,
        )
        store.load(template.layers)

        session = EditorSession(
            session_id=generate_session_id(),
            template=template,
            store=store,
        )
        self._sessions[session.session_id] = session
        self._evict()

        logger.info(f"Created editor session {session.session_id} for template {template.id}")
        return session

    def get(self, session_id: str) -> EditorSession:
        """
        세션 조회.

        Raises:
            SessionError: SESSION_NOT_FOUND
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionError(
                ErrorCodes.SESSION_NOT_FOUND,
                message=f"Editor session {session_id!r} not found",
                session_id=session_id,
            )
        self._sessions.move_to_end(session_id)
        return session

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def _evict(self) -> None:
        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.info(f"Evicted editor session {evicted_id}")
