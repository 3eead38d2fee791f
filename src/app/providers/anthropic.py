"""
Anthropic (Claude) Provider: 제목 보정.

ai.title_provider: anthropic 일 때 Hugging Face 텍스트 모델 대신 사용.
"""

import logging
import os
from typing import Any

import anthropic

from .base import ProviderError, TitleEnhancer

logger = logging.getLogger(__name__)

TITLE_SYSTEM_PROMPT = (
    "You fix spelling and lightly polish YouTube video titles. "
    "Keep the meaning, keep it under 60 characters when possible, "
    "use title capitalization, and reply with the title only."
)


class ClaudeTitleEnhancer(TitleEnhancer):
    """
    Claude API 제목 보정.

    Usage:
        enhancer = ClaudeTitleEnhancer(model="claude-haiku-4-5")
        title = await enhancer.enhance("teh best ai tools")
    """

    def __init__(
        self,
        model: str = "claude-haiku-4-5",
        api_key: str | None = None,
        max_tokens: int = 64,
        temperature: float | None = 0.3,
    ):
        """
        Args:
            model: 모델 ID (config에서 주입)
            api_key: API 키 (환경변수 MY_ANTHROPIC_KEY 또는 ANTHROPIC_API_KEY 사용 가능)
            max_tokens: 최대 토큰 수
            temperature: 샘플링 온도 (None이면 API 기본값)

        Raises:
            ProviderError: API 키가 없을 때 (fail-fast)
        """
        self.model = model
        # API 키 결정: 인자 > MY_ANTHROPIC_KEY > ANTHROPIC_API_KEY
        self.api_key = (
            api_key
            or os.environ.get("MY_ANTHROPIC_KEY")
            or os.environ.get("ANTHROPIC_API_KEY")
        )

        if not self.api_key:
            raise ProviderError(
                "ANTHROPIC_KEY_MISSING",
                "Anthropic API key is missing. "
                "Set MY_ANTHROPIC_KEY or ANTHROPIC_API_KEY.",
            )

        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client: Any = None

    def _get_client(self) -> Any:
        """Anthropic 클라이언트 (lazy init)."""
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def enhance(self, title: str) -> str | None:
        """
        제목 보정 (단일 호출).

        Raises:
            ProviderError: TITLE_ENHANCEMENT_FAILED
        """
        api_kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": TITLE_SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": f'Original title: "{title}"'}],
        }
        if self.temperature is not None:
            api_kwargs["temperature"] = self.temperature

        try:
            response = await self._get_client().messages.create(**api_kwargs)
        except anthropic.APIError as e:
            logger.warning(f"Claude title enhancement failed: {e}")
            raise ProviderError(
                "TITLE_ENHANCEMENT_FAILED",
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        if not response.content:
            return None

        text: str = getattr(response.content[0], "text", "") or ""
        return text.strip().strip('"').strip() or None

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        if isinstance(error, anthropic.APIConnectionError):
            return "Could not reach the Anthropic API."
        if isinstance(error, anthropic.RateLimitError):
            return "Anthropic rate limit exceeded."
        if isinstance(error, anthropic.AuthenticationError):
            return "Anthropic authentication failed. Check MY_ANTHROPIC_KEY."
        return f"Claude API call failed: {error}"
