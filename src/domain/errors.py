"""
Error definitions for the thumbnail studio.

규칙:
- 에러는 code + context로 구조화 (로그/JSON 직렬화 가능)
- 존재하지 않는 layer id에 대한 편집은 에러가 아님 → no-op (LayerStore 참조)
- 외부 API 실패는 providers.base.ProviderError 계열로 분리
"""

from typing import Any


class ThumbnailError(Exception):
    """
    도메인 공통 에러.

    Usage:
        raise LayerError("INVALID_LAYER", layer_type="hexagon")
    """

    def __init__(self, code: str, **context: Any) -> None:
        self.code = code
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.code}] {ctx_str}" if ctx_str else f"[{self.code}]"

    @property
    def message(self) -> str:
        """사람이 읽는 메시지 (context에 message가 있으면 우선)."""
        return str(self.context.get("message", self._format_message()))

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            **self.context,
        }


class LayerError(ThumbnailError):
    """레이어 파싱/패치 에러."""


class HistoryError(ThumbnailError):
    """히스토리 스택 설정 에러."""


class TemplateError(ThumbnailError):
    """템플릿 카탈로그 에러."""


class StorageError(ThumbnailError):
    """Key-value 저장소 에러."""


class RenderError(ThumbnailError):
    """캔버스 렌더링/내보내기 에러."""


class SessionError(ThumbnailError):
    """에디터 세션 에러."""


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Layer ===
    INVALID_LAYER = "INVALID_LAYER"
    UNKNOWN_FIELD = "UNKNOWN_FIELD"
    IMMUTABLE_FIELD = "IMMUTABLE_FIELD"
    INVALID_FIELD_VALUE = "INVALID_FIELD_VALUE"
    DUPLICATE_LAYER_ID = "DUPLICATE_LAYER_ID"

    # === History ===
    INVALID_HISTORY_LIMIT = "INVALID_HISTORY_LIMIT"

    # === Template ===
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    INVALID_TEMPLATE = "INVALID_TEMPLATE"
    INVALID_TEMPLATE_ID = "INVALID_TEMPLATE_ID"
    EMPTY_PROMPT = "EMPTY_PROMPT"

    # === Storage ===
    KV_STORE_CORRUPT = "KV_STORE_CORRUPT"
    KV_STORE_LOCK_TIMEOUT = "KV_STORE_LOCK_TIMEOUT"
    KV_VALUE_NOT_SERIALIZABLE = "KV_VALUE_NOT_SERIALIZABLE"

    # === Render / Export ===
    UNSUPPORTED_EXPORT_FORMAT = "UNSUPPORTED_EXPORT_FORMAT"
    INVALID_EXPORT_SIZE = "INVALID_EXPORT_SIZE"
    RENDER_FAILED = "RENDER_FAILED"

    # === Editor session ===
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VARIANT_NOT_FOUND = "VARIANT_NOT_FOUND"

    # === Generation proxy ===
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    CONFIG_MISSING = "CONFIG_MISSING"
    MODEL_LOADING = "MODEL_LOADING"
    UPSTREAM_HTTP_ERROR = "UPSTREAM_HTTP_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
