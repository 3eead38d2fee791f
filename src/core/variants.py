"""
썸네일 변형(variant) 생성 및 저장.

규칙:
- 결정론적 변환만 사용 (같은 입력 → 같은 출력, 난수 없음)
- 입력 레이어 목록은 변경하지 않음
- 저장소는 최신순, 최대 VARIANTS_CAP개 유지
"""

import hashlib
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any

from src.core.ids import MonotonicIdGenerator
from src.core.kv_store import KeyValueStore, push_capped
from src.domain.constants import VARIANTS_CAP, VARIANTS_KEY
from src.domain.layers import (
    Layer,
    ShapeLayer,
    TextLayer,
    layers_from_dicts,
    layers_to_dicts,
)

logger = logging.getLogger(__name__)

# 위치 흔들기 최대 폭 (px)
SHIFT_RANGE = 30

# font_swap 순환 목록
FONT_ROTATION = ("Inter", "Montserrat", "Bebas Neue", "Roboto", "Poppins")

_HEX_COLOR = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


@dataclass
class Variant:
    """변형 결과."""
    kind: str  # inverted, shifted, font_swap
    layers: list[Layer]

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "layers": layers_to_dicts(self.layers)}


# =============================================================================
# Transforms
# =============================================================================

def invert_color(value: str | None) -> str | None:
    """
    #rgb / #rrggbb 색상 반전.

    hex가 아닌 값 (rgba, gradient 등)은 그대로 반환.
    """
    if value is None:
        return None

    match = _HEX_COLOR.match(value)
    if not match:
        return value

    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)

    inverted = 0xFFFFFF ^ int(digits, 16)
    return f"#{inverted:06x}"


def stable_offset(layer_id: str, axis: str) -> int:
    """layer_id + 축 해시 → [-SHIFT_RANGE, SHIFT_RANGE] 정수."""
    digest = hashlib.sha256(f"{layer_id}:{axis}".encode()).hexdigest()
    return int(digest[:8], 16) % (2 * SHIFT_RANGE + 1) - SHIFT_RANGE


def _inverted(layer: Layer) -> Layer:
    if isinstance(layer, (TextLayer, ShapeLayer)):
        return replace(layer, fill=invert_color(layer.fill), stroke=invert_color(layer.stroke))
    return layer


def _shifted(layer: Layer) -> Layer:
    return replace(
        layer,
        x=layer.x + stable_offset(layer.id, "x"),
        y=layer.y + stable_offset(layer.id, "y"),
    )


def _font_swap(layer: Layer) -> Layer:
    if not isinstance(layer, TextLayer):
        return layer

    try:
        position = FONT_ROTATION.index(layer.font_family)
    except ValueError:
        position = -1
    return replace(layer, font_family=FONT_ROTATION[(position + 1) % len(FONT_ROTATION)])


TRANSFORMS: dict[str, Callable[[Layer], Layer]] = {
    "inverted": _inverted,
    "shifted": _shifted,
    "font_swap": _font_swap,
}


def generate_variants(layers: Sequence[Layer], count: int = 3) -> list[Variant]:
    """
    레이어 목록의 변형 생성.

    Args:
        layers: 원본 레이어 (변경되지 않음)
        count: 생성할 변형 수 (1..len(TRANSFORMS)로 제한)

    Returns:
        Variant 목록 (inverted → shifted → font_swap 순)
    """
    count = max(1, min(count, len(TRANSFORMS)))
    kinds = list(TRANSFORMS)[:count]

    return [
        Variant(kind=kind, layers=[TRANSFORMS[kind](layer) for layer in layers])
        for kind in kinds
    ]


# =============================================================================
# Storage
# =============================================================================

class VariantStore:
    """
    저장된 변형 목록 (key: thumbnail_variants).

    Usage:
        store = VariantStore(kv_store)
        record = store.save("My variant", layers)
        store.list_records()
    """

    def __init__(
        self,
        kv_store: KeyValueStore,
        cap: int = VARIANTS_CAP,
        id_factory: Callable[[str], str] | None = None,
    ):
        self.kv_store = kv_store
        self.cap = cap
        self._id_factory = id_factory or MonotonicIdGenerator()

    def save(self, name: str, layers: Sequence[Layer]) -> dict[str, Any]:
        """
        변형 저장 (맨 앞에 추가, cap 초과분 제거).

        Returns:
            저장된 레코드 {id, name, layers, createdAt}
        """
        record = {
            "id": self._id_factory("variant"),
            "name": name,
            "layers": layers_to_dicts(list(layers)),
            "createdAt": datetime.now(UTC).isoformat(),
        }
        push_capped(self.kv_store, VARIANTS_KEY, record, self.cap)
        logger.info(f"Saved variant {record['id']} ({name!r})")
        return record

    def list_records(self) -> list[dict[str, Any]]:
        """저장된 레코드 (최신순)."""
        items = self.kv_store.get(VARIANTS_KEY, [])
        return items if isinstance(items, list) else []

    def load_layers(self, variant_id: str) -> list[Layer] | None:
        """저장된 변형의 레이어 복원 (없으면 None)."""
        for record in self.list_records():
            if record.get("id") == variant_id:
                return layers_from_dicts(record.get("layers", []))
        return None
