"""
History Stack: 레이어 목록 스냅샷 기반 undo/redo.

모델:
- entries: 변경 직후 캡처한 레이어 목록의 깊은 복사본
- index: 현재 항목을 가리키는 커서 (0 <= index < len, 비어있으면 -1)

규칙:
- record만 redo 분기를 버림 (branch-and-truncate, 트리 아님)
- undo/redo는 커서 이동만 수행 → 데이터 손실 없음
- 저장된 스냅샷은 라이브 목록과 절대 aliasing 되지 않음
"""

import copy
import logging
from collections.abc import Sequence

from src.domain.errors import ErrorCodes, HistoryError
from src.domain.layers import Layer

logger = logging.getLogger(__name__)

LayerSnapshot = list[Layer]


class HistoryStack:
    """
    선형 undo/redo 스택.

    Usage:
        history = HistoryStack()
        history.record(layers)
        previous = history.undo()   # None이면 되돌릴 항목 없음
        restored = history.redo()
    """

    def __init__(self, max_entries: int | None = None):
        """
        Args:
            max_entries: 최대 보관 항목 수 (None이면 무제한).
                         초과 시 가장 오래된 항목부터 제거.

        Raises:
            HistoryError: INVALID_HISTORY_LIMIT
        """
        if max_entries is not None and max_entries < 1:
            raise HistoryError(
                ErrorCodes.INVALID_HISTORY_LIMIT,
                message="max_entries must be at least 1",
                max_entries=max_entries,
            )

        self.max_entries = max_entries
        self._entries: list[LayerSnapshot] = []
        self._index = -1

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def index(self) -> int:
        """현재 커서 (비어있으면 -1)."""
        return self._index

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    # =========================================================================
    # Mutations
    # =========================================================================

    def record(self, layers: Sequence[Layer]) -> None:
        """
        스냅샷 추가.

        1. [0, index] 이후 항목 제거 (redo 분기 폐기)
        2. 깊은 복사본 append
        3. index = 마지막
        """
        discarded = len(self._entries) - (self._index + 1)
        if discarded > 0:
            logger.debug(f"Discarding {discarded} redo entries")
            del self._entries[self._index + 1:]

        self._entries.append(copy.deepcopy(list(layers)))
        self._index = len(self._entries) - 1

        if self.max_entries is not None:
            overflow = len(self._entries) - self.max_entries
            if overflow > 0:
                del self._entries[:overflow]
                self._index -= overflow

    def undo(self) -> LayerSnapshot | None:
        """
        한 단계 되돌리기.

        Returns:
            커서가 가리키는 스냅샷의 복사본 (되돌릴 항목 없으면 None)
        """
        if not self.can_undo:
            return None

        self._index -= 1
        return self.current()

    def redo(self) -> LayerSnapshot | None:
        """
        한 단계 다시 실행.

        Returns:
            커서가 가리키는 스냅샷의 복사본 (다시 실행할 항목 없으면 None)
        """
        if not self.can_redo:
            return None

        self._index += 1
        return self.current()

    def clear(self) -> None:
        """전체 초기화."""
        self._entries.clear()
        self._index = -1

    # =========================================================================
    # Read
    # =========================================================================

    def current(self) -> LayerSnapshot | None:
        """현재 스냅샷 복사본 (비어있으면 None)."""
        if self._index < 0:
            return None
        return copy.deepcopy(self._entries[self._index])

    def entries(self) -> list[LayerSnapshot]:
        """전체 스냅샷 복사본 (테스트/디버그용)."""
        return copy.deepcopy(self._entries)

    def status(self) -> dict[str, int | bool]:
        """API 응답용 상태."""
        return {
            "index": self._index,
            "length": len(self._entries),
            "can_undo": self.can_undo,
            "can_redo": self.can_redo,
        }
