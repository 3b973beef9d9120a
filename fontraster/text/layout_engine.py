import math
from dataclasses import dataclass
from typing import List, Tuple

from .font_program import FontProgram, RasterRect
from .font_set import FallbackChain, FontStyle


@dataclass(frozen=True)
class PositionedGlyph:
    """A glyph placed on the line, ready to rasterize.

    `position` is the top-left corner of the glyph's raster box in top-down
    output pixels, relative to the line's drawing origin.
    """

    glyph_id: int
    font: FontProgram
    size: float
    position: Tuple[int, int]
    raster_rect: RasterRect


def get_glyph_width(font: FontProgram, glyph_id: int, size: float) -> int:
    """Advance of a glyph in whole pixels, rounded up."""
    metrics = font.metrics()
    return math.ceil(font.advance(glyph_id) * size / metrics.units_per_em)


def layout_text(
    chain: FallbackChain, text: str, style: FontStyle, report_missing: bool = True
) -> Tuple[List[PositionedGlyph], int]:
    """
    Places each character of `text` on a single line.

    Characters are taken one by one, without normalization or shaping.
    Characters no font in the chain can draw are dropped and do not move
    the cursor. Every glyph is aligned to the chain's tallest line height,
    whichever font drew it. With `report_missing` off, dropped characters
    are not sent to the chain's diagnostics.

    Returns:
        Tuple of (positioned glyphs in text order, total advance width in pixels)
    """
    if not text:
        return [], 0

    height = chain.get_height()
    delta_x = 0
    glyphs: List[PositionedGlyph] = []

    for char in text:
        resolved = chain.resolve_glyph(char, style, report=report_missing)
        if resolved is None:
            continue
        glyph_id, font_set, font = resolved

        raster_rect = font.raster_bounds(glyph_id, font_set.size)
        # Raster boxes are y-up from the baseline, output rows go down
        x = delta_x + raster_rect.x
        y = height - raster_rect.height - raster_rect.y
        delta_x += get_glyph_width(font, glyph_id, font_set.size)

        glyphs.append(
            PositionedGlyph(
                glyph_id=glyph_id,
                font=font,
                size=font_set.size,
                position=(x, y),
                raster_rect=raster_rect,
            )
        )

    return glyphs, delta_x


def get_text_length(chain: FallbackChain, text: str) -> int:
    """Width of `text` in pixels when drawn in the regular style."""
    return layout_text(chain, text, FontStyle.REGULAR)[1]
