"""Domain layer: layers, schemas, errors."""

from .errors import (
    ErrorCodes,
    HistoryError,
    LayerError,
    RenderError,
    SessionError,
    StorageError,
    TemplateError,
    ThumbnailError,
)
from .layers import (
    CircleLayer,
    ImageLayer,
    Layer,
    LayerType,
    RectLayer,
    StarLayer,
    TextLayer,
    layer_from_dict,
    layer_to_dict,
)
from .schemas import (
    CanvasSpec,
    GenerationRequest,
    GenerationResult,
    Template,
    TemplateMeta,
)

__all__ = [
    # errors
    "ThumbnailError",
    "LayerError",
    "HistoryError",
    "TemplateError",
    "StorageError",
    "RenderError",
    "SessionError",
    "ErrorCodes",
    # layers
    "Layer",
    "LayerType",
    "TextLayer",
    "ImageLayer",
    "RectLayer",
    "CircleLayer",
    "StarLayer",
    "layer_from_dict",
    "layer_to_dict",
    # schemas
    "CanvasSpec",
    "Template",
    "TemplateMeta",
    "GenerationRequest",
    "GenerationResult",
]
