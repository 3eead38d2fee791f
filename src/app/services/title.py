"""
Title Service: 썸네일 제목 보정.

1단계: 원격 보정 (Hugging Face 텍스트 모델 또는 Claude)
2단계: 응답이 없거나 길이가 맞지 않으면 로컬 규칙 보정 (결정론적)
"""

import logging
import re

from src.app.providers.base import ProviderError, TitleEnhancer

logger = logging.getLogger(__name__)

# 원격 응답 허용 길이 (배타 범위)
MIN_ENHANCED_LENGTH = 5
MAX_ENHANCED_LENGTH = 100

# 흔한 오타/표기 → 교정값 (단어 단위, 대소문자 무시)
TITLE_CORRECTIONS: dict[str, str] = {
    "tecnology": "Technology",
    "techonology": "Technology",
    "teh": "The",
    "adn": "And",
    "vs": "VS",
    "ai": "AI",
    "youtube": "YouTube",
    "youtuber": "YouTuber",
    "reciew": "Review",
    "reveiw": "Review",
    "beginer": "Beginner",
    "beginner": "Beginner",
    "ultimat": "Ultimate",
    "amzing": "Amazing",
    "incredibl": "Incredible",
}

# 첫 글자가 아니면 소문자 유지
STOPWORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
})

_CORRECTION_PATTERNS = [
    (re.compile(rf"\b{re.escape(wrong)}\b", re.IGNORECASE), correct)
    for wrong, correct in TITLE_CORRECTIONS.items()
]
_WORD = re.compile(r"\b\w+")
_PRESERVED_CASING = frozenset(TITLE_CORRECTIONS.values())


def _capitalize_word(match: re.Match[str]) -> str:
    word = match.group(0)
    lowered = word.lower()
    if lowered in STOPWORDS:
        return lowered
    # 교정 사전 표기 유지 (AI, YouTube, VS)
    if word in _PRESERVED_CASING:
        return word
    return word[:1].upper() + word[1:].lower()


def basic_title_enhancement(title: str) -> str:
    """
    로컬 규칙 보정.

    1. 교정 사전 치환 (단어 경계, 대소문자 무시)
    2. 단어별 대문자화 (불용어는 소문자)
    3. 문자열 첫 글자 대문자

    결정론적이며 멱등.
    """
    enhanced = title
    for pattern, correct in _CORRECTION_PATTERNS:
        enhanced = pattern.sub(correct, enhanced)

    enhanced = _WORD.sub(_capitalize_word, enhanced)
    return enhanced[:1].upper() + enhanced[1:]


def is_acceptable_title(candidate: str | None) -> bool:
    """원격 응답 길이 검증 (5 < len < 100)."""
    return candidate is not None and MIN_ENHANCED_LENGTH < len(candidate) < MAX_ENHANCED_LENGTH


async def enhance_title(title: str, enhancer: TitleEnhancer | None) -> str:
    """
    제목 보정 (실패해도 항상 값 반환).

    Args:
        title: 원본 제목
        enhancer: 원격 보정 Provider (None이면 로컬 규칙만)

    Returns:
        보정된 제목
    """
    if enhancer is not None:
        try:
            candidate = await enhancer.enhance(title)
        except ProviderError as e:
            logger.info(f"Title enhancement failed, using fallback: {e}")
            candidate = None

        if candidate is not None:
            candidate = candidate.strip()
        if is_acceptable_title(candidate):
            return candidate  # type: ignore[return-value]

    return basic_title_enhancement(title)
