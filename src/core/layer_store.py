"""
Layer Store: 에디터의 라이브 레이어 목록 관리.

규칙:
- 목록 순서 = z-order (뒤쪽 항목이 위에 그려짐)
- load를 제외한 모든 변경은 정확히 1개의 히스토리 항목을 남김
- 존재하지 않는 id 대상 변경 → no-op (히스토리 없음, DEBUG 로그, falsy 반환)
- 선택 상태(selected_layer_id)는 undo 대상 아님
- 변경 + 스냅샷 기록은 한 메서드 안에서 끝남 (중간 끼어들기 없음)
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from src.core.history import HistoryStack
from src.core.ids import IdFactory, generate_layer_id
from src.domain.constants import (
    DEFAULT_SHAPE_SIZE,
    DUPLICATE_OFFSET,
    EMPTY_CANVAS_TEXT_LAYER,
    LAYER_DEFAULTS,
)
from src.domain.layers import (
    CircleLayer,
    Layer,
    LayerType,
    ensure_unique_ids,
    layer_from_dict,
    parse_layer_type,
    replace_fields,
)

logger = logging.getLogger(__name__)


class LayerStore:
    """
    레이어 목록 + 선택 상태 + 히스토리.

    Usage:
        store = LayerStore()
        store.load(template.layers)
        layer = store.add_text_layer()
        store.update_layer(layer.id, text="Hello")
        store.undo()
    """

    def __init__(
        self,
        history: HistoryStack | None = None,
        id_factory: IdFactory = generate_layer_id,
        duplicate_offset: float = DUPLICATE_OFFSET,
    ):
        """
        Args:
            history: 히스토리 스택 (None이면 무제한 스택 생성)
            id_factory: prefix → 고유 id (테스트에서 결정론적 생성기 주입)
            duplicate_offset: 복제 시 x/y 이동량
        """
        self.history = history if history is not None else HistoryStack()
        self._id_factory = id_factory
        self._duplicate_offset = duplicate_offset
        self._layers: list[Layer] = []
        self.selected_layer_id: str | None = None

    # =========================================================================
    # Read
    # =========================================================================

    @property
    def layers(self) -> tuple[Layer, ...]:
        """현재 레이어 목록 (읽기 전용 복사본)."""
        return tuple(self._layers)

    def __len__(self) -> int:
        return len(self._layers)

    def get(self, layer_id: str) -> Layer | None:
        """id로 레이어 조회."""
        return next((layer for layer in self._layers if layer.id == layer_id), None)

    @property
    def selected_layer(self) -> Layer | None:
        if self.selected_layer_id is None:
            return None
        return self.get(self.selected_layer_id)

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    # =========================================================================
    # Load
    # =========================================================================

    def load(self, layers: Iterable[Layer | Mapping[str, Any]]) -> None:
        """
        전체 목록 교체 (템플릿 초기 로드).

        - dict 입력은 직렬화 포맷으로 파싱
        - 누락 기본값 채움: visible=True, opacity=1, rotation=0
        - 결과가 비면 기본 텍스트 레이어 1개 생성 ("Click to edit")
        - 히스토리 기록 안 함, 선택 해제

        Raises:
            LayerError: DUPLICATE_LAYER_ID (기존 목록 유지)
        """
        normalized = ensure_unique_ids([self._normalize(item) for item in layers])

        if not normalized:
            default = {**EMPTY_CANVAS_TEXT_LAYER, "id": self._id_factory(LayerType.TEXT.value)}
            normalized = [layer_from_dict(default)]

        self._layers = normalized
        self.selected_layer_id = None

    def _normalize(self, item: Layer | Mapping[str, Any]) -> Layer:
        if isinstance(item, Mapping):
            return layer_from_dict(dict(item))

        # dataclass 기본값이 이미 적용되어 있지만 명시적 None 방어
        changes: dict[str, Any] = {}
        if item.visible is None:
            changes["visible"] = True
        if item.opacity is None:
            changes["opacity"] = 1
        if item.rotation is None:
            changes["rotation"] = 0
        return replace(item, **changes) if changes else item

    # =========================================================================
    # Create
    # =========================================================================

    def add_layer(
        self,
        kind: LayerType | str,
        params: Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> Layer:
        """
        새 레이어 추가 (목록 끝 = 최상단).

        Args:
            kind: text, rect, circle, star, image
            params: 타입 기본값 덮어쓰기 (camelCase/snake_case, 요청 body 그대로)
            **overrides: params 위에 덮어쓸 필드

        Returns:
            추가된 레이어 (선택됨)
        """
        layer_type = parse_layer_type(kind.value if isinstance(kind, LayerType) else kind)
        layer_id = self._id_factory(layer_type.value)

        base = layer_from_dict({
            **LAYER_DEFAULTS[layer_type.value],
            "id": layer_id,
            "type": layer_type.value,
        })
        patch = {**(params or {}), **overrides}
        layer = replace_fields(base, patch) if patch else base

        self._layers.append(layer)
        self.selected_layer_id = layer.id
        self._record()

        logger.debug(f"Added {layer_type.value} layer {layer.id}")
        return layer

    def add_text_layer(self, params: Mapping[str, Any] | None = None, **overrides: Any) -> Layer:
        """텍스트 레이어 추가 (48pt, 흰색, 검정 2px 외곽선, bold)."""
        return self.add_layer(LayerType.TEXT, {**(params or {}), **overrides})

    def add_image_layer(self, params: Mapping[str, Any] | None = None, **overrides: Any) -> Layer:
        """
        이미지 자리표시자 추가.

        실제 이미지가 아직 없으므로 둥근 회색 사각형으로 표시.
        """
        return self.add_layer(LayerType.RECT, {**(params or {}), **overrides})

    def add_shape_layer(
        self,
        kind: LayerType | str = LayerType.RECT,
        params: Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> Layer:
        """도형 레이어 추가 (rect, circle, star)."""
        layer_type = parse_layer_type(kind.value if isinstance(kind, LayerType) else kind)
        if layer_type not in (LayerType.RECT, LayerType.CIRCLE, LayerType.STAR):
            layer_type = LayerType.RECT
        return self.add_layer(layer_type, {**(params or {}), **overrides})

    # =========================================================================
    # Update
    # =========================================================================

    def update_layer(
        self,
        layer_id: str,
        fields: Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> Layer | None:
        """
        id가 일치하는 레이어에 패치 병합 ({...old, ...fields, ...overrides}).

        빈 패치도 히스토리를 남김.
        요청 body는 fields로 그대로 전달 (키 이름이 인자와 겹쳐도 안전).

        Returns:
            갱신된 레이어 (id 없으면 None, 변경 없음)

        Raises:
            LayerError: UNKNOWN_FIELD, IMMUTABLE_FIELD, INVALID_FIELD_VALUE
        """
        index = self._index_of(layer_id)
        if index is None:
            logger.debug(f"update_layer ignored: unknown layer id {layer_id!r}")
            return None

        updated = replace_fields(self._layers[index], {**(fields or {}), **overrides})
        self._layers = [
            updated if i == index else layer
            for i, layer in enumerate(self._layers)
        ]
        self._record()
        return updated

    def duplicate_layer(self, layer_id: str) -> Layer | None:
        """
        레이어 복제: 새 id + (x+20, y+20), 목록 끝에 추가, 선택.

        Returns:
            복제된 레이어 (id 없으면 None)
        """
        source = self.get(layer_id)
        if source is None:
            logger.debug(f"duplicate_layer ignored: unknown layer id {layer_id!r}")
            return None

        copy_layer = replace(
            source,
            id=self._id_factory(source.type.value),
            x=source.x + self._duplicate_offset,
            y=source.y + self._duplicate_offset,
        )

        self._layers.append(copy_layer)
        self.selected_layer_id = copy_layer.id
        self._record()
        return copy_layer

    def delete_layer(self, layer_id: str) -> bool:
        """
        레이어 삭제 + 선택 해제.

        Returns:
            삭제 여부 (id 없으면 False)
        """
        index = self._index_of(layer_id)
        if index is None:
            logger.debug(f"delete_layer ignored: unknown layer id {layer_id!r}")
            return False

        self._layers = [layer for i, layer in enumerate(self._layers) if i != index]
        self.selected_layer_id = None
        self._record()
        return True

    def toggle_visibility(self, layer_id: str) -> Layer | None:
        """visible 반전 (update_layer 경유)."""
        layer = self.get(layer_id)
        if layer is None:
            logger.debug(f"toggle_visibility ignored: unknown layer id {layer_id!r}")
            return None
        return self.update_layer(layer_id, visible=not layer.visible)

    def apply_fill(self, layer_id: str, fill: str) -> Layer | None:
        """
        색상 또는 그라디언트 descriptor를 fill로 설정.

        예: "#ff0000", "rgba(0,0,0,0.7)", "linear-gradient(90deg, #f00, #00f)"
        """
        return self.update_layer(layer_id, fill=fill)

    # =========================================================================
    # Selection (undo 대상 아님)
    # =========================================================================

    def select(self, layer_id: str | None) -> bool:
        """
        선택 변경.

        Returns:
            적용 여부 (존재하지 않는 id면 False)
        """
        if layer_id is None:
            self.selected_layer_id = None
            return True

        if self.get(layer_id) is None:
            logger.debug(f"select ignored: unknown layer id {layer_id!r}")
            return False

        self.selected_layer_id = layer_id
        return True

    # =========================================================================
    # Renderer Events
    # =========================================================================

    def handle_drag_end(self, event: Mapping[str, Any]) -> Layer | None:
        """
        드래그 완료 이벤트 {id, x, y} → update_layer.

        circle은 렌더러가 중심 좌표를 보내므로 좌상단으로 환산.
        """
        layer_id = str(event["id"])
        layer = self.get(layer_id)
        if layer is None:
            logger.debug(f"drag event ignored: unknown layer id {layer_id!r}")
            return None

        x = float(event["x"])
        y = float(event["y"])

        if isinstance(layer, CircleLayer):
            x -= (layer.width or DEFAULT_SHAPE_SIZE) / 2
            y -= (layer.height or DEFAULT_SHAPE_SIZE) / 2

        return self.update_layer(layer_id, x=x, y=y)

    def handle_click(self, event: Mapping[str, Any]) -> bool:
        """클릭 이벤트 {id} → 선택."""
        return self.select(str(event["id"]))

    # =========================================================================
    # Undo / Redo
    # =========================================================================

    def undo(self) -> bool:
        """
        히스토리 한 단계 되돌리기.

        Returns:
            적용 여부 (되돌릴 항목 없으면 False)
        """
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    def redo(self) -> bool:
        """히스토리 한 단계 다시 실행."""
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _index_of(self, layer_id: str) -> int | None:
        for i, layer in enumerate(self._layers):
            if layer.id == layer_id:
                return i
        return None

    def _record(self) -> None:
        self.history.record(self._layers)

    def _restore(self, snapshot: list[Layer]) -> None:
        self._layers = snapshot
        if self.selected_layer_id is not None and self.get(self.selected_layer_id) is None:
            self.selected_layer_id = None
