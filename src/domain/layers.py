"""
Layer 모델: 캔버스에 그려지는 요소의 tagged union.

직렬화 포맷 (템플릿 JSON/YAML):
- 하나의 평평한 객체 + type 태그 + camelCase 선택 필드
  예: {"id": "t1", "type": "text", "text": "Hi", "fontSize": 48}

메모리 표현:
- type별 frozen dataclass (TextLayer, RectLayer, CircleLayer, StarLayer, ImageLayer)
- 타입에 없는 필드는 패치 단계에서 거부 → 잘못된 type/필드 조합 방지
- 변경은 항상 새 값 생성 (dataclasses.replace)
"""

import logging
import math
import re
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, ClassVar

from src.domain.errors import ErrorCodes, LayerError

logger = logging.getLogger(__name__)


class LayerType(str, Enum):
    """레이어 타입 태그."""
    TEXT = "text"
    IMAGE = "image"
    RECT = "rect"
    CIRCLE = "circle"
    STAR = "star"


class TextAlign(str, Enum):
    """텍스트 정렬."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class ImageFit(str, Enum):
    """이미지 맞춤 방식."""
    COVER = "cover"
    CONTAIN = "contain"
    FILL = "fill"


# =============================================================================
# Variants
# =============================================================================

@dataclass(frozen=True)
class LayerBase:
    """
    모든 레이어 공통 필드.

    x, y: 좌상단 기준 (circle도 저장은 좌상단, 렌더 시 중심으로 변환)
    """
    id: str
    x: float = 0
    y: float = 0
    width: float | None = None
    height: float | None = None
    rotation: float = 0
    opacity: float = 1
    visible: bool = True

    # Effects (직렬화 포맷 그대로 보존)
    shadow: dict[str, Any] | None = None
    effects: dict[str, Any] | None = None
    filters: dict[str, Any] | None = None

    type: ClassVar[LayerType]


@dataclass(frozen=True)
class TextLayer(LayerBase):
    """텍스트 레이어."""
    text: str = ""
    font_family: str = "Inter"
    font_size: float = 48
    font_style: str = "normal"
    fill: str = "#000000"
    stroke: str | None = None
    stroke_width: float = 0
    text_align: str = TextAlign.LEFT.value
    line_height: float | None = None

    type: ClassVar[LayerType] = LayerType.TEXT


@dataclass(frozen=True)
class ImageLayer(LayerBase):
    """이미지 레이어 (src는 URL 또는 data URI)."""
    src: str | None = None
    fit: str = ImageFit.COVER.value

    type: ClassVar[LayerType] = LayerType.IMAGE


@dataclass(frozen=True)
class ShapeLayer(LayerBase):
    """도형 공통 (fill/stroke)."""
    fill: str = "#cccccc"
    stroke: str | None = None
    stroke_width: float = 0


@dataclass(frozen=True)
class RectLayer(ShapeLayer):
    """사각형 (corner_radius로 둥근 모서리)."""
    corner_radius: float = 0

    type: ClassVar[LayerType] = LayerType.RECT


@dataclass(frozen=True)
class CircleLayer(ShapeLayer):
    """원 (반지름 = width / 2)."""

    type: ClassVar[LayerType] = LayerType.CIRCLE


@dataclass(frozen=True)
class StarLayer(ShapeLayer):
    """별 (꼭짓점 수 = points)."""
    points: int = 5

    type: ClassVar[LayerType] = LayerType.STAR


Layer = TextLayer | ImageLayer | RectLayer | CircleLayer | StarLayer

LAYER_CLASSES: dict[LayerType, type[LayerBase]] = {
    LayerType.TEXT: TextLayer,
    LayerType.IMAGE: ImageLayer,
    LayerType.RECT: RectLayer,
    LayerType.CIRCLE: CircleLayer,
    LayerType.STAR: StarLayer,
}

# fill 필드를 가진 레이어 (apply_fill 대상)
FILLABLE_TYPES = (LayerType.TEXT, LayerType.RECT, LayerType.CIRCLE, LayerType.STAR)


# =============================================================================
# Key Conversion (camelCase ↔ snake_case)
# =============================================================================

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake(key: str) -> str:
    """fontSize → font_size."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def to_camel(key: str) -> str:
    """font_size → fontSize."""
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def parse_layer_type(value: Any) -> LayerType:
    """
    type 태그 파싱.

    Raises:
        LayerError: INVALID_LAYER
    """
    try:
        return LayerType(value)
    except ValueError:
        raise LayerError(
            ErrorCodes.INVALID_LAYER,
            message=f"Unknown layer type: {value!r}",
            layer_type=value,
        ) from None


def _field_names(cls: type[LayerBase]) -> set[str]:
    return {f.name for f in fields(cls)}


def _clamp_opacity(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


# =============================================================================
# Field Validation
# =============================================================================

# 필드 종류별 허용 값
_NUMBER_FIELDS = {"x", "y", "rotation", "opacity"}
_NON_NEGATIVE_FIELDS = {"width", "height", "font_size", "stroke_width", "corner_radius", "line_height"}
_STRING_FIELDS = {"text", "font_family", "font_style", "fill", "stroke", "src"}
_CHOICE_FIELDS = {
    "text_align": {align.value for align in TextAlign},
    "fit": {fit.value for fit in ImageFit},
}
_MAPPING_FIELDS = {"shadow", "effects", "filters"}
_NULLABLE_FIELDS = {"width", "height", "stroke", "line_height", "src", "shadow", "effects", "filters"}

MIN_STAR_POINTS = 3


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _field_error(layer_id: Any, name: str, value: Any, expected: str) -> LayerError:
    return LayerError(
        ErrorCodes.INVALID_FIELD_VALUE,
        message=f"Field {to_camel(name)!r} must be {expected}, got {value!r}",
        layer_id=layer_id,
        field=to_camel(name),
    )


def validate_field(layer_id: Any, name: str, value: Any) -> Any:
    """
    단일 필드 값 검사 (snake_case 이름 기준).

    Returns:
        저장할 값 (opacity는 [0, 1]로 제한)

    Raises:
        LayerError: INVALID_FIELD_VALUE
    """
    if value is None:
        if name in _NULLABLE_FIELDS:
            return None
        raise _field_error(layer_id, name, value, "set")

    if name in _NUMBER_FIELDS:
        if not _is_number(value):
            raise _field_error(layer_id, name, value, "a finite number")
        return _clamp_opacity(value) if name == "opacity" else value

    if name in _NON_NEGATIVE_FIELDS:
        if not _is_number(value) or value < 0:
            raise _field_error(layer_id, name, value, "a non-negative number")
        return value

    if name == "points":
        if not isinstance(value, int) or isinstance(value, bool) or value < MIN_STAR_POINTS:
            raise _field_error(layer_id, name, value, f"an integer >= {MIN_STAR_POINTS}")
        return value

    if name == "visible":
        if not isinstance(value, bool):
            raise _field_error(layer_id, name, value, "a boolean")
        return value

    if name in _CHOICE_FIELDS:
        if value not in _CHOICE_FIELDS[name]:
            raise _field_error(layer_id, name, value, f"one of {sorted(_CHOICE_FIELDS[name])}")
        return value

    if name in _STRING_FIELDS:
        if not isinstance(value, str):
            raise _field_error(layer_id, name, value, "a string")
        return value

    if name in _MAPPING_FIELDS:
        if not isinstance(value, dict):
            raise _field_error(layer_id, name, value, "an object")
        return value

    return value


def ensure_unique_ids(layers: list[Layer]) -> list[Layer]:
    """
    목록 내 id 중복 검사.

    Raises:
        LayerError: DUPLICATE_LAYER_ID
    """
    seen: set[str] = set()
    for layer in layers:
        if layer.id in seen:
            raise LayerError(
                ErrorCodes.DUPLICATE_LAYER_ID,
                message=f"Layer id {layer.id!r} appears more than once",
                layer_id=layer.id,
            )
        seen.add(layer.id)
    return layers


# =============================================================================
# Serialization
# =============================================================================

def layer_from_dict(data: dict[str, Any]) -> Layer:
    """
    직렬화 포맷 → Layer.

    - None 값은 "누락"으로 취급 → dataclass 기본값 적용
      (visible=True, opacity=1, rotation=0)
    - 타입에 없는 키는 무시 (느슨한 직렬화 포맷 호환)
    - 값 타입은 필드별로 검사

    Raises:
        LayerError: INVALID_LAYER (type 누락/미지원, id 누락), INVALID_FIELD_VALUE
    """
    if "type" not in data:
        raise LayerError(
            ErrorCodes.INVALID_LAYER,
            message="Layer has no type",
            layer_id=data.get("id"),
        )
    layer_type = parse_layer_type(data["type"])

    layer_id = data.get("id")
    if not layer_id:
        raise LayerError(
            ErrorCodes.INVALID_LAYER,
            message="Layer has no id",
            layer_type=layer_type.value,
        )

    cls = LAYER_CLASSES[layer_type]
    allowed = _field_names(cls)

    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key == "type" or value is None:
            continue
        name = to_snake(key)
        if name not in allowed:
            logger.debug(f"Ignoring field {key!r} on {layer_type.value} layer {layer_id!r}")
            continue
        kwargs[name] = validate_field(layer_id, name, value)

    kwargs["id"] = str(layer_id)

    layer: Layer = cls(**kwargs)  # type: ignore[assignment]
    return layer


def layer_to_dict(layer: LayerBase) -> dict[str, Any]:
    """Layer → 직렬화 포맷 (None 필드 생략)."""
    result: dict[str, Any] = {"id": layer.id, "type": layer.type.value}
    for f in fields(layer):
        if f.name == "id":
            continue
        value = getattr(layer, f.name)
        if value is None:
            continue
        result[to_camel(f.name)] = value
    return result


def replace_fields(layer: Layer, patch: dict[str, Any]) -> Layer:
    """
    {...old, ...patch} 병합.

    camelCase/snake_case 키 모두 허용.

    Raises:
        LayerError: IMMUTABLE_FIELD (id/type 변경 시도), UNKNOWN_FIELD, INVALID_FIELD_VALUE
    """
    allowed = _field_names(type(layer))
    changes: dict[str, Any] = {}

    for key, value in patch.items():
        name = to_snake(key)

        if name == "type":
            if value != layer.type.value:
                raise LayerError(
                    ErrorCodes.IMMUTABLE_FIELD,
                    message="Layer type cannot be changed",
                    layer_id=layer.id,
                    field="type",
                )
            continue

        if name == "id":
            if value != layer.id:
                raise LayerError(
                    ErrorCodes.IMMUTABLE_FIELD,
                    message="Layer id cannot be changed",
                    layer_id=layer.id,
                    field="id",
                )
            continue

        if name not in allowed:
            raise LayerError(
                ErrorCodes.UNKNOWN_FIELD,
                message=f"Field {key!r} is not valid for {layer.type.value} layers",
                layer_id=layer.id,
                field=key,
            )

        changes[name] = validate_field(layer.id, name, value)

    return replace(layer, **changes)


def layers_from_dicts(items: list[dict[str, Any]]) -> list[Layer]:
    """
    직렬화 목록 → Layer 목록.

    Raises:
        LayerError: INVALID_LAYER, INVALID_FIELD_VALUE, DUPLICATE_LAYER_ID
    """
    return ensure_unique_ids([layer_from_dict(item) for item in items])


def layers_to_dicts(layers: list[Layer] | tuple[Layer, ...]) -> list[dict[str, Any]]:
    """Layer 목록 → 직렬화 목록."""
    return [layer_to_dict(layer) for layer in layers]
