"""
ID 생성: layer_id, ai template id, session_id

규칙:
- layer_id는 한 레이어 목록의 생애 동안 재사용 금지
- 타임스탬프 기반 + 단조 증가 보장 (같은 ms 내 연속 생성 시 충돌 방지)
"""

import threading
import time
import uuid
from collections.abc import Callable

from src.domain.constants import AI_TEMPLATE_ID_PREFIX

IdFactory = Callable[[str], str]


class MonotonicIdGenerator:
    """
    타임스탬프 기반 ID 생성기.

    포맷: {prefix}_{epoch_ms}
    같은 ms(또는 시계 역행) 시 마지막 값 + 1 사용 → 항상 증가

    Usage:
        gen = MonotonicIdGenerator()
        gen("text")  # "text_1718000000000"
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """
        Args:
            clock: 초 단위 시계 (테스트에서 고정값 주입)
        """
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next_value(self) -> int:
        """다음 단조 증가 타임스탬프 (ms)."""
        with self._lock:
            now_ms = int(self._clock() * 1000)
            value = now_ms if now_ms > self._last else self._last + 1
            self._last = value
            return value

    def __call__(self, prefix: str) -> str:
        return f"{prefix}_{self.next_value()}"


# 프로세스 공용 생성기
_default_generator = MonotonicIdGenerator()


def generate_layer_id(kind: str) -> str:
    """
    Layer ID 생성.

    포맷: {kind}_{epoch_ms} (예: text_1718000000000)

    Args:
        kind: 레이어 종류 (text, rect, image, ...)

    Returns:
        layer_id 문자열
    """
    return _default_generator(kind)


def generate_ai_template_id() -> str:
    """
    AI 생성 템플릿 ID.

    포맷: ai_gen_{epoch_ms}
    """
    return f"{AI_TEMPLATE_ID_PREFIX}{_default_generator.next_value()}"


def generate_session_id() -> str:
    """
    에디터 세션 ID 생성.

    포맷: SES-{uuid[:12]}
    """
    return f"SES-{uuid.uuid4().hex[:12]}"


def sanitize_for_filename(value: str, fallback: str = "custom") -> str:
    """
    내보내기 파일명용 정리.

    - ASCII 영숫자 외 모든 문자 → 밑줄 (문자 단위, 대소문자 유지)
    - 빈 값이면 fallback
    """
    if not value:
        return fallback

    return "".join(c if c.isascii() and c.isalnum() else "_" for c in value)
