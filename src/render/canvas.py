"""
Canvas Renderer: 레이어 목록 → 래스터 이미지 (Pillow).

규칙:
- 목록 순서대로 그림 (뒤쪽 = 위)
- visible=False 레이어는 건너뜀
- circle: 저장 좌표는 좌상단, 그릴 때 중심 (x + w/2, y + h/2), 반지름 w/2
- star: 외곽 반지름 w/2, 내부 반지름 = 외곽 × 0.5
- 그라디언트 fill은 첫 번째 색상 정지점으로 근사
- 렌더는 읽기 전용: 레이어 목록을 변경하지 않음
"""

import base64
import binascii
import io
import logging
import math
import re
from collections.abc import Sequence

from PIL import Image, ImageColor, ImageDraw, ImageFont, UnidentifiedImageError

from src.core.ids import sanitize_for_filename
from src.domain.constants import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    DEFAULT_SHAPE_SIZE,
    EXPORT_DEFAULT_PIXEL_RATIO,
    EXPORT_FALLBACK_NAME,
    EXPORT_FILENAME_PREFIX,
    EXPORT_FORMATS,
    EXPORT_JPEG_QUALITY,
)
from src.domain.errors import ErrorCodes, RenderError
from src.domain.layers import (
    CircleLayer,
    ImageLayer,
    Layer,
    RectLayer,
    StarLayer,
    TextLayer,
)
from src.domain.schemas import CanvasSpec

logger = logging.getLogger(__name__)

RGBA = tuple[int, int, int, int]

STAR_INNER_RATIO = 0.5
IMAGE_PLACEHOLDER_FILL = "#e5e7eb"

_COLOR_TOKEN = re.compile(r"#[0-9a-fA-F]{3,8}\b|rgba?\([^)]*\)")
_RGBA_FUNC = re.compile(r"rgba?\(\s*([^)]*)\)")

FONT_SEARCH_SUFFIXES = ("", ".ttf", ".otf")


# =============================================================================
# Colors
# =============================================================================

def parse_color(value: str | None, default: RGBA | None = None) -> RGBA | None:
    """
    색상 문자열 → RGBA.

    지원: #rgb, #rrggbb, #rrggbbaa, rgb(...), rgba(r,g,b,a[0..1]),
    CSS 색상 이름, linear-gradient(...) (첫 색상 정지점).
    해석 실패 시 default.
    """
    if not value:
        return default

    text = value.strip()
    if "gradient" in text:
        token = _COLOR_TOKEN.search(text)
        if token is None:
            logger.debug(f"Gradient without color stops: {value!r}")
            return default
        text = token.group(0)

    func = _RGBA_FUNC.fullmatch(text)
    if func:
        parts = [p.strip() for p in func.group(1).split(",")]
        try:
            r, g, b = (int(float(p)) for p in parts[:3])
            alpha = float(parts[3]) if len(parts) > 3 else 1.0
        except (ValueError, IndexError):
            logger.debug(f"Unparseable color function: {value!r}")
            return default
        return (r, g, b, round(min(1.0, max(0.0, alpha)) * 255))

    try:
        rgb = ImageColor.getrgb(text)
    except ValueError:
        logger.debug(f"Unknown color: {value!r}")
        return default

    if len(rgb) == 4:
        return rgb  # type: ignore[return-value]
    return (*rgb, 255)  # type: ignore[return-value]


def _with_opacity(color: RGBA | None, opacity: float) -> RGBA | None:
    if color is None:
        return None
    return (color[0], color[1], color[2], round(color[3] * opacity))


# =============================================================================
# Fonts
# =============================================================================

def find_font(font_family: str | None, font_size: int, bold: bool = False) -> ImageFont.ImageFont:
    """
    폰트 검색.

    family → family.ttf → family-Bold.ttf 순으로 시도,
    모두 실패 시 Pillow 기본 폰트 (크기 지정).
    """
    candidates: list[str] = []
    if font_family:
        compact = font_family.replace(" ", "")
        if bold:
            candidates.extend(f"{name}-Bold.ttf" for name in (font_family, compact))
        candidates.extend(f"{name}{suffix}" for name in (font_family, compact) for suffix in FONT_SEARCH_SUFFIXES)

    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, font_size)
        except OSError:
            continue

    return ImageFont.load_default(size=font_size)


# =============================================================================
# Renderer
# =============================================================================

class CanvasRenderer:
    """
    레이어 목록을 Pillow 이미지로 렌더링.

    Usage:
        renderer = CanvasRenderer()
        image = renderer.render(template.canvas, store.layers)
        data = renderer.export(template.canvas, store.layers, fmt="jpg")
    """

    def __init__(self, jpeg_quality: int = EXPORT_JPEG_QUALITY):
        self.jpeg_quality = jpeg_quality

    def render(
        self,
        canvas: CanvasSpec,
        layers: Sequence[Layer],
        size: tuple[int, int] | None = None,
    ) -> Image.Image:
        """
        캔버스 렌더링.

        Args:
            canvas: 캔버스 크기/배경
            layers: 레이어 목록 (z-order)
            size: 출력 크기 (None이면 캔버스 크기). 좌표는 비율로 스케일.

        Returns:
            RGBA 이미지
        """
        out_w, out_h = size or (canvas.width, canvas.height)
        scale_x = out_w / canvas.width
        scale_y = out_h / canvas.height

        background = parse_color(canvas.background_color, (255, 255, 255, 255))
        image = Image.new("RGBA", (out_w, out_h), background)

        for layer in layers:
            if not layer.visible:
                continue
            image = self._render_layer(image, layer, scale_x, scale_y)

        return image

    def export(
        self,
        canvas: CanvasSpec,
        layers: Sequence[Layer],
        fmt: str = "png",
        pixel_ratio: float = EXPORT_DEFAULT_PIXEL_RATIO,
        width: int = CANVAS_WIDTH,
        height: int = CANVAS_HEIGHT,
    ) -> bytes:
        """
        이미지 파일 바이트 생성.

        출력 크기 = (width × pixel_ratio, height × pixel_ratio).

        Raises:
            RenderError: UNSUPPORTED_EXPORT_FORMAT, INVALID_EXPORT_SIZE, RENDER_FAILED
        """
        fmt = fmt.lower()
        if fmt not in EXPORT_FORMATS:
            raise RenderError(
                ErrorCodes.UNSUPPORTED_EXPORT_FORMAT,
                message=f"Unsupported export format: {fmt!r}",
                format=fmt,
                supported=list(EXPORT_FORMATS),
            )

        out_w = round(width * pixel_ratio)
        out_h = round(height * pixel_ratio)
        if out_w < 1 or out_h < 1:
            raise RenderError(
                ErrorCodes.INVALID_EXPORT_SIZE,
                message="Export size must be positive",
                width=out_w,
                height=out_h,
            )

        try:
            image = self.render(canvas, layers, size=(out_w, out_h))
            buffer = io.BytesIO()
            if fmt == "png":
                image.save(buffer, format="PNG")
            else:
                image.convert("RGB").save(buffer, format="JPEG", quality=self.jpeg_quality)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Export failed: {e}", exc_info=True)
            raise RenderError(
                ErrorCodes.RENDER_FAILED,
                message="Failed to export image",
                format=fmt,
            ) from e

        logger.info(f"Exported {fmt} {out_w}x{out_h} ({len(layers)} layers)")
        return buffer.getvalue()

    # =========================================================================
    # Layer Dispatch
    # =========================================================================

    def _render_layer(
        self,
        image: Image.Image,
        layer: Layer,
        scale_x: float,
        scale_y: float,
    ) -> Image.Image:
        temp = Image.new("RGBA", image.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(temp)

        match layer:
            case TextLayer():
                pivot = self._draw_text(draw, layer, scale_x, scale_y)
            case RectLayer():
                pivot = self._draw_rect(draw, layer, scale_x, scale_y)
            case CircleLayer():
                pivot = self._draw_circle(draw, layer, scale_x, scale_y)
            case StarLayer():
                pivot = self._draw_star(draw, layer, scale_x, scale_y)
            case ImageLayer():
                pivot = self._draw_image(temp, draw, layer, scale_x, scale_y)

        if layer.rotation:
            # 화면 좌표계 시계 방향 → Pillow 반시계 방향
            temp = temp.rotate(-layer.rotation, center=pivot, resample=Image.Resampling.BICUBIC)

        return Image.alpha_composite(image, temp)

    # =========================================================================
    # Drawing
    # =========================================================================

    def _draw_text(
        self,
        draw: ImageDraw.ImageDraw,
        layer: TextLayer,
        scale_x: float,
        scale_y: float,
    ) -> tuple[float, float]:
        origin = (layer.x * scale_x, layer.y * scale_y)
        if not layer.text:
            return origin

        scale = (scale_x + scale_y) / 2
        font_size = max(1, round(layer.font_size * scale))
        font = find_font(layer.font_family, font_size, bold="bold" in layer.font_style)

        fill = _with_opacity(parse_color(layer.fill, (0, 0, 0, 255)), layer.opacity)
        stroke = _with_opacity(parse_color(layer.stroke), layer.opacity)
        stroke_width = round(layer.stroke_width * scale) if stroke else 0

        line_advance = font_size * (layer.line_height or 1.0)
        box_width = layer.width * scale_x if layer.width else None

        y = origin[1]
        for line in layer.text.split("\n"):
            x = origin[0]
            if box_width is not None and layer.text_align != "left":
                line_width = draw.textlength(line, font=font)
                if layer.text_align == "center":
                    x += (box_width - line_width) / 2
                else:
                    x += box_width - line_width

            draw.text(
                (x, y),
                line,
                font=font,
                fill=fill,
                stroke_width=stroke_width,
                stroke_fill=stroke,
            )
            y += line_advance

        return origin

    def _draw_rect(
        self,
        draw: ImageDraw.ImageDraw,
        layer: RectLayer,
        scale_x: float,
        scale_y: float,
    ) -> tuple[float, float]:
        x0 = layer.x * scale_x
        y0 = layer.y * scale_y
        x1 = x0 + (layer.width or DEFAULT_SHAPE_SIZE) * scale_x
        y1 = y0 + (layer.height or DEFAULT_SHAPE_SIZE) * scale_y

        fill = _with_opacity(parse_color(layer.fill, (204, 204, 204, 255)), layer.opacity)
        outline = _with_opacity(parse_color(layer.stroke), layer.opacity)
        width = round(layer.stroke_width * scale_x) if outline else 0

        if layer.corner_radius:
            radius = round(layer.corner_radius * (scale_x + scale_y) / 2)
            draw.rounded_rectangle((x0, y0, x1, y1), radius=radius, fill=fill, outline=outline, width=width)
        else:
            draw.rectangle((x0, y0, x1, y1), fill=fill, outline=outline, width=width)

        return (x0, y0)

    def _draw_circle(
        self,
        draw: ImageDraw.ImageDraw,
        layer: CircleLayer,
        scale_x: float,
        scale_y: float,
    ) -> tuple[float, float]:
        width = layer.width or DEFAULT_SHAPE_SIZE
        height = layer.height or DEFAULT_SHAPE_SIZE
        cx = (layer.x + width / 2) * scale_x
        cy = (layer.y + height / 2) * scale_y
        radius = width / 2

        fill = _with_opacity(parse_color(layer.fill, (204, 204, 204, 255)), layer.opacity)
        outline = _with_opacity(parse_color(layer.stroke), layer.opacity)
        stroke_width = round(layer.stroke_width * scale_x) if outline else 0

        draw.ellipse(
            (cx - radius * scale_x, cy - radius * scale_y, cx + radius * scale_x, cy + radius * scale_y),
            fill=fill,
            outline=outline,
            width=stroke_width,
        )
        return (cx, cy)

    def _draw_star(
        self,
        draw: ImageDraw.ImageDraw,
        layer: StarLayer,
        scale_x: float,
        scale_y: float,
    ) -> tuple[float, float]:
        width = layer.width or DEFAULT_SHAPE_SIZE
        height = layer.height or DEFAULT_SHAPE_SIZE
        cx = (layer.x + width / 2) * scale_x
        cy = (layer.y + height / 2) * scale_y
        outer = width / 2
        inner = outer * STAR_INNER_RATIO
        points = max(2, layer.points)

        vertices = []
        for i in range(points * 2):
            radius = outer if i % 2 == 0 else inner
            # 첫 꼭짓점은 위쪽
            angle = math.pi * i / points - math.pi / 2
            vertices.append((
                cx + radius * math.cos(angle) * scale_x,
                cy + radius * math.sin(angle) * scale_y,
            ))

        fill = _with_opacity(parse_color(layer.fill, (204, 204, 204, 255)), layer.opacity)
        outline = _with_opacity(parse_color(layer.stroke), layer.opacity)
        stroke_width = round(layer.stroke_width * scale_x) if outline else 0

        draw.polygon(vertices, fill=fill, outline=outline, width=stroke_width)
        return (cx, cy)

    def _draw_image(
        self,
        temp: Image.Image,
        draw: ImageDraw.ImageDraw,
        layer: ImageLayer,
        scale_x: float,
        scale_y: float,
    ) -> tuple[float, float]:
        x0 = round(layer.x * scale_x)
        y0 = round(layer.y * scale_y)
        box_w = max(1, round((layer.width or DEFAULT_SHAPE_SIZE) * scale_x))
        box_h = max(1, round((layer.height or DEFAULT_SHAPE_SIZE) * scale_y))

        source = _decode_data_uri(layer.src)
        if source is None:
            fill = _with_opacity(parse_color(IMAGE_PLACEHOLDER_FILL), layer.opacity)
            draw.rectangle((x0, y0, x0 + box_w, y0 + box_h), fill=fill)
            return (x0, y0)

        fitted, offset = _fit_image(source.convert("RGBA"), (box_w, box_h), layer.fit)
        if layer.opacity < 1:
            alpha = fitted.getchannel("A").point(lambda a: round(a * layer.opacity))
            fitted.putalpha(alpha)

        temp.paste(fitted, (x0 + offset[0], y0 + offset[1]), fitted)
        return (x0, y0)


# =============================================================================
# Image Helpers
# =============================================================================

def _decode_data_uri(src: str | None) -> Image.Image | None:
    """
    data:image/...;base64,... → Image.

    URL/경로 등 다른 형태는 네트워크/파일 접근 없이 자리표시자로 처리.
    """
    if not src or not src.startswith("data:image/") or ";base64," not in src:
        return None

    try:
        payload = base64.b64decode(src.split(";base64,", 1)[1], validate=True)
        image = Image.open(io.BytesIO(payload))
        image.load()
        return image
    except (binascii.Error, UnidentifiedImageError, OSError) as e:
        logger.warning(f"Could not decode image layer source: {e}")
        return None


def _fit_image(
    image: Image.Image,
    box: tuple[int, int],
    fit: str,
) -> tuple[Image.Image, tuple[int, int]]:
    """
    cover/contain/fill 맞춤.

    Returns:
        (맞춘 이미지, 박스 내 오프셋)
    """
    box_w, box_h = box

    if fit == "fill":
        return image.resize(box, Image.Resampling.LANCZOS), (0, 0)

    ratio_w = box_w / image.width
    ratio_h = box_h / image.height
    ratio = max(ratio_w, ratio_h) if fit == "cover" else min(ratio_w, ratio_h)

    new_size = (max(1, round(image.width * ratio)), max(1, round(image.height * ratio)))
    resized = image.resize(new_size, Image.Resampling.LANCZOS)

    if fit == "cover":
        left = (new_size[0] - box_w) // 2
        top = (new_size[1] - box_h) // 2
        return resized.crop((left, top, left + box_w, top + box_h)), (0, 0)

    return resized, ((box_w - new_size[0]) // 2, (box_h - new_size[1]) // 2)


# =============================================================================
# Filename
# =============================================================================

def export_filename(name: str, fmt: str) -> str:
    """
    내보내기 파일명.

    thumbnail-{name의 영숫자 외 문자 → _}.{fmt}, 이름이 비면 custom.
    """
    stem = sanitize_for_filename(name, fallback=EXPORT_FALLBACK_NAME)
    return f"{EXPORT_FILENAME_PREFIX}{stem}.{fmt.lower()}"
