"""
AI Provider Abstraction.

모델 교체 가능하게 설계.
모델명/엔드포인트는 config만 SSOT.
"""

from .anthropic import ClaudeTitleEnhancer
from .base import (
    ImageParams,
    ImageProvider,
    ModelLoadingError,
    ProviderError,
    TextParams,
    TitleEnhancer,
    UpstreamHTTPError,
)
from .huggingface import (
    HuggingFaceClient,
    HuggingFaceImageProvider,
    HuggingFaceTitleEnhancer,
)

__all__ = [
    "ImageProvider",
    "TitleEnhancer",
    "ImageParams",
    "TextParams",
    "ProviderError",
    "ModelLoadingError",
    "UpstreamHTTPError",
    "HuggingFaceClient",
    "HuggingFaceImageProvider",
    "HuggingFaceTitleEnhancer",
    "ClaudeTitleEnhancer",
]
