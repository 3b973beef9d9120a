import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np
from PIL import Image, ImageColor

from fontraster.validation import validate_image_mode
from utils.exceptions import RenderingError, ValidationError

from .font_set import FallbackChain, FontStyle
from .layout_engine import PositionedGlyph, layout_text

# Coverage at or below this is treated as empty
COVERAGE_EPSILON = float(np.finfo(np.float32).eps)

Color = Union[int, str, Sequence[int]]
PlotFn = Callable[[int, int, float], None]


def rasterize_glyph(glyph: PositionedGlyph) -> Optional[np.ndarray]:
    """
    Rasterizes a positioned glyph into a coverage mask the size of its raster box.

    Returns:
        (height, width) uint8 mask, or None for zero-area glyphs such as whitespace.

    Raises:
        RenderingError: If the font program returns a mask of the wrong shape
    """
    rect = glyph.raster_rect
    if rect.is_empty:
        return None

    # Put the box's top-left corner at mask pixel (0, 0)
    origin = (float(-rect.x), float(rect.height + rect.y))
    mask = glyph.font.rasterize_glyph(glyph.glyph_id, glyph.size, origin, rect.width, rect.height)
    if mask.shape != (rect.height, rect.width):
        raise RenderingError(
            f"Glyph {glyph.glyph_id} rasterized to {mask.shape}, expected {(rect.height, rect.width)}"
        )
    return mask


def draw_glyph(
    glyph: PositionedGlyph,
    mask: Optional[np.ndarray],
    baseline_offset: int,
    plot: PlotFn,
) -> None:
    """
    Calls `plot(px, py, alpha)` for every covered pixel of the glyph.

    Rows are walked bottom to top. Pixels with negligible coverage are skipped.
    """
    if mask is None:
        return
    x0, y0 = glyph.position
    height, width = mask.shape
    for dy in reversed(range(height)):
        row = mask[dy]
        for dx in range(width):
            alpha = float(row[dx]) / 255.0
            if alpha <= COVERAGE_EPSILON:
                continue
            plot(x0 + dx, y0 + dy + baseline_offset, alpha)


def _clamp_channel(value: float) -> int:
    return int(min(max(value, 0.0), 255.0))


def weighted_sum(pixel, color, weight_pixel: float, weight_color: float):
    """
    Blends two pixels channel by channel: `pixel * weight_pixel + color * weight_color`.

    Each channel (alpha included) is clamped to [0, 255] and truncated.
    Single-band pixels are plain ints, multi-band pixels are tuples.
    """
    if isinstance(pixel, tuple):
        return tuple(
            _clamp_channel(p * weight_pixel + c * weight_color) for p, c in zip(pixel, color)
        )
    return _clamp_channel(pixel * weight_pixel + color * weight_color)


def round_half_away_from_zero(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def resolve_color(color: Color, image: Image.Image):
    """
    Converts `color` to the pixel form of `image` (int for one band, tuple otherwise).

    Raises:
        ValidationError: If the colour cannot be matched to the image's bands
    """
    bands = len(image.getbands())
    if isinstance(color, str):
        try:
            color = ImageColor.getcolor(color, image.mode)
        except ValueError as e:
            raise ValidationError(f"Invalid color '{color}': {e}") from e

    if isinstance(color, int):
        color = (color,)
    color = tuple(int(c) for c in color)

    if bands == 4 and len(color) == 3:
        color = color + (255,)
    elif bands == 2 and len(color) == 1:
        color = color + (255,)
    if len(color) != bands:
        raise ValidationError(f"Color {color} does not match image mode '{image.mode}'")

    return color[0] if bands == 1 else color


def get_baseline_offset(chain: FallbackChain) -> int:
    """
    Vertical shift from the line box bottom to the baseline, in pixels (negative).

    Only the first font set's regular metrics are used, so fallback fonts
    of a different size or with different descents share this baseline.
    """
    first = chain.first()
    metrics = first.get_regular().metrics()
    return round_half_away_from_zero(metrics.descent / metrics.units_per_em * first.size)


@dataclass(frozen=True)
class TextBounds:
    """
    Pixel area `draw_text` may touch, relative to its (x, y) arguments.

    Covers the line box (advance by chain height) and every glyph's ink box,
    so `left` and `top` go negative when ink overhangs the origin.
    """

    left: int
    top: int
    right: int
    bottom: int
    advance: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    def shifted(self, dx: int, dy: int) -> "TextBounds":
        return TextBounds(self.left + dx, self.top + dy, self.right + dx, self.bottom + dy, self.advance)

    def union(self, other: "TextBounds") -> "TextBounds":
        return TextBounds(
            left=min(self.left, other.left),
            top=min(self.top, other.top),
            right=max(self.right, other.right),
            bottom=max(self.bottom, other.bottom),
            advance=max(self.advance, other.advance),
        )


def get_text_bounds(
    chain: FallbackChain, text: str, style: FontStyle, report_missing: bool = True
) -> TextBounds:
    """
    Measures one line the way `draw_text` would draw it, without drawing.

    Raises:
        FontError: If the chain is empty
    """
    offset = get_baseline_offset(chain)
    glyphs, advance = layout_text(chain, text, style, report_missing=report_missing)
    left, top, right, bottom = 0, 0, advance, chain.get_height()
    for glyph in glyphs:
        rect = glyph.raster_rect
        if rect.is_empty:
            continue
        x0, y0 = glyph.position
        left = min(left, x0)
        top = min(top, y0 + offset)
        right = max(right, x0 + rect.width)
        bottom = max(bottom, y0 + offset + rect.height)
    return TextBounds(left=left, top=top, right=right, bottom=bottom, advance=advance)


def draw_text(
    chain: FallbackChain,
    image: Image.Image,
    color: Color,
    x: int,
    y: int,
    style: FontStyle,
    text: str,
) -> int:
    """
    Draws one line of text onto `image` in place.

    Args:
        chain: Fonts to draw with, in fallback order.
        image: Destination Pillow image (L, LA, RGB or RGBA).
        color: Ink colour as an int, a tuple or a Pillow colour string.
        x: Left edge of the line box.
        y: Top edge of the line box.
        style: Font style for every character.
        text: Text to draw; unsupported characters are skipped.

    Returns:
        Total advance width of the text in pixels.

    Raises:
        IndexError: If a glyph pixel falls outside the image
    """
    validate_image_mode(image.mode)
    offset = get_baseline_offset(chain)
    glyphs, width = layout_text(chain, text, style)
    if not glyphs:
        return width

    ink = resolve_color(color, image)
    pixels = image.load()
    img_width, img_height = image.size

    def plot(px: int, py: int, alpha: float) -> None:
        target: Tuple[int, int] = (px + x, py + y)
        # Pillow would wrap negative indices around
        if not (0 <= target[0] < img_width and 0 <= target[1] < img_height):
            raise IndexError(f"Pixel {target} is outside the {img_width}x{img_height} image")
        pixels[target] = weighted_sum(pixels[target], ink, 1.0 - alpha, alpha)

    for glyph in glyphs:
        draw_glyph(glyph, rasterize_glyph(glyph), offset, plot)

    return width
