"""
썸네일 이미지 프롬프트 구성.

규칙: 고정 템플릿에 제목/설명/테마만 치환 (순수 함수)
"""

THUMBNAIL_PROMPT_TEMPLATE = """Create a professional YouTube thumbnail with these EXACT REQUIREMENTS:

TITLE TEXT (MOST IMPORTANT): 
- Display this EXACT title prominently: "{title}"
- Make the title text LARGE, BOLD, and HIGHLY READABLE
- Use contrasting colors for maximum readability (white text with dark outline, or dark text with bright background)
- Position title in upper 60% of the image for maximum visibility
- NO spelling errors - use the title exactly as provided above

VISUAL STYLE:
- Theme: {theme}
- Description: {description}
- Professional thumbnail design for video content
- Eye-catching, click-worthy design
- High contrast colors and professional lighting
- 16:9 aspect ratio (1920x1080 recommended)
- Include relevant visual elements that match the {theme} theme

STRICT EXCLUSIONS - DO NOT INCLUDE:
- NO play button icons or triangular play symbols
- NO YouTube logo or branding
- NO UI elements (pause, stop, forward buttons)
- NO video player controls or interfaces
- NO overlay icons of any kind
- NO circular play buttons
- NO media player symbols

DESIGN PRIORITIES (in order):
1. Title text visibility and readability (HIGHEST PRIORITY)
2. Eye-catching visual design without any buttons or icons
3. Theme-appropriate graphics and colors
4. Clean, professional thumbnail aesthetics

Focus on creating a clean thumbnail image with prominent title text and thematic visuals, but absolutely NO play buttons or media control icons."""


def build_thumbnail_prompt(title: str, description: str, theme: str) -> str:
    """
    이미지 프롬프트 생성.

    Args:
        title: 보정된 제목 (그대로 표시되어야 함)
        description: 영상 설명
        theme: 테마 (technology, gaming, ...)
    """
    return THUMBNAIL_PROMPT_TEMPLATE.format(title=title, description=description, theme=theme)
