"""
AI Provider 추상 인터페이스.

- Provider 추상화로 모델/서비스 교체 가능 (Hugging Face, Claude)
- 모델명/엔드포인트는 config (default.yaml)만 SSOT
- 네트워크 재시도 없음: 업스트림 호출은 1회
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

# =============================================================================
# Call Parameters
# =============================================================================

@dataclass
class ImageParams:
    """이미지 생성 파라미터 (16:9)."""
    width: int = 1024
    height: int = 576
    num_inference_steps: int = 4

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "num_inference_steps": self.num_inference_steps,
        }


@dataclass
class TextParams:
    """텍스트 생성 파라미터 (제목 보정용, 짧은 응답)."""
    max_new_tokens: int = 20
    temperature: float = 0.3
    return_full_text: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_new_tokens": self.max_new_tokens,
            "temperature": self.temperature,
            "return_full_text": self.return_full_text,
        }


# =============================================================================
# Provider Exceptions
# =============================================================================

class ProviderError(Exception):
    """Provider 관련 에러."""

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")


class ModelLoadingError(ProviderError):
    """모델 콜드 스타트 (잠시 후 재시도 가능)."""

    def __init__(self, message: str = "Model is loading", **context: Any) -> None:
        super().__init__("MODEL_LOADING", message, **context)


class UpstreamHTTPError(ProviderError):
    """업스트림 non-2xx 응답."""

    def __init__(self, status_code: int, reason: str, body: str = "", **context: Any) -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(
            "UPSTREAM_HTTP_ERROR",
            f"Hugging Face API error: {status_code} {reason}",
            status_code=status_code,
            **context,
        )


# =============================================================================
# Abstract Providers
# =============================================================================

class ImageProvider(ABC):
    """
    텍스트 → 이미지 Provider.

    역할: 프롬프트로 썸네일 이미지 바이트 생성
    """

    @abstractmethod
    async def generate_image(self, prompt: str) -> bytes:
        """
        이미지 생성.

        Args:
            prompt: 이미지 프롬프트

        Returns:
            이미지 바이트 (JPEG/PNG)

        Raises:
            UpstreamHTTPError: non-2xx 응답
            ModelLoadingError: 모델 로딩 중
            ProviderError: 기타 응답 형식 오류
        """
        ...


class TitleEnhancer(ABC):
    """
    제목 보정 Provider.

    역할: 맞춤법 교정 + 약간의 매력도 향상 (의미 보존)
    """

    @abstractmethod
    async def enhance(self, title: str) -> str | None:
        """
        제목 보정.

        Returns:
            보정된 제목 (쓸 만한 응답이 없으면 None)

        Raises:
            ProviderError: 호출 실패
        """
        ...
