"""
Font program capability used by layout and drawing.

A FontProgram answers four questions about one font face: which glyph draws a
character, how far a glyph advances the cursor, which pixel box a glyph covers
at a given size, and what its anti-aliased coverage looks like. Layout and
compositing only talk to this interface, so the rasterization backend can be
swapped without touching them.

Coordinate conventions:
    - Metrics and advances are in font design units.
    - RasterRect is baseline-relative with y pointing up: (x, y) is the
      bottom-left corner of the box, so y is negative for glyphs with
      descenders.
    - Coverage masks are top-down, row 0 being the top of the box.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import skia
import uharfbuzz as hb

from utils.exceptions import FontLoadError


@dataclass(frozen=True)
class FontMetrics:
    """Vertical metrics in font design units (descent is negative)."""

    ascent: float
    descent: float
    units_per_em: int


@dataclass(frozen=True)
class RasterRect:
    """Integer pixel box of a rasterized glyph, baseline-relative, y up."""

    x: int
    y: int
    width: int
    height: int

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


class FontProgram(ABC):
    """Glyph lookup, metrics and rasterization for a single font face.

    Hinting is always off and antialiasing is always grayscale.
    """

    @abstractmethod
    def glyph_for_char(self, char: str) -> Optional[int]:
        """Returns the glyph id for `char`, or None if the face has no glyph for it."""

    @abstractmethod
    def metrics(self) -> FontMetrics:
        """Returns the face's ascent, descent and units-per-em."""

    @abstractmethod
    def advance(self, glyph_id: int) -> float:
        """Returns the horizontal advance of `glyph_id` in font units."""

    @abstractmethod
    def raster_bounds(self, glyph_id: int, size: float) -> RasterRect:
        """Returns the pixel box `glyph_id` covers at `size`."""

    @abstractmethod
    def rasterize_glyph(
        self,
        glyph_id: int,
        size: float,
        origin: Tuple[float, float],
        width: int,
        height: int,
    ) -> np.ndarray:
        """
        Rasterizes `glyph_id` into a fresh (height, width) uint8 coverage mask.

        Args:
            glyph_id: Glyph to draw.
            size: Point size.
            origin: Pen position of the glyph's baseline origin inside the mask,
                    in top-down pixel coordinates.
            width: Mask width in pixels.
            height: Mask height in pixels.
        """


class SkiaFontProgram(FontProgram):
    """
    FontProgram backed by a Skia Typeface and a HarfBuzz Face over the same bytes.

    HarfBuzz answers cmap lookups, advances and vertical extents in font
    units; Skia computes glyph bounds and draws the anti-aliased coverage.
    """

    def __init__(self, font_data: bytes, index: int = 0, name: Optional[str] = None):
        # Skia does not copy the bytes, keep them alive with the program
        self._font_data = font_data
        self.name = name or "<memory>"

        try:
            skia_data = skia.Data.MakeWithoutCopy(font_data)
            self.typeface = skia.Typeface.MakeFromData(skia_data, index)
        except Exception as e:
            raise FontLoadError(f"Failed to create Skia typeface from font: {self.name}") from e
        if self.typeface is None or self.typeface.countGlyphs() == 0:
            raise FontLoadError(f"Failed to create Skia typeface from font: {self.name}")

        try:
            self.hb_face = hb.Face(font_data, index)
        except Exception as e:
            raise FontLoadError(
                f"Failed to create HarfBuzz face from font: {self.name}"
            ) from e

        if self.hb_face.upem <= 0:
            raise FontLoadError(f"Font reports invalid units per em: {self.name}")

        # Default scale is the face's upem, so every query below is in font units
        self._hb_font = hb.Font(self.hb_face)
        extents = self._hb_font.get_font_extents("ltr")
        self._metrics = FontMetrics(
            ascent=float(extents.ascender),
            descent=float(extents.descender),
            units_per_em=int(self.hb_face.upem),
        )

    def __repr__(self) -> str:
        return f"SkiaFontProgram({self.name!r})"

    def _make_font(self, size: float) -> skia.Font:
        font = skia.Font(self.typeface, size)
        font.setHinting(skia.FontHinting.kNone)
        font.setEdging(skia.Font.Edging.kAntiAlias)
        font.setSubpixel(False)
        return font

    def glyph_for_char(self, char: str) -> Optional[int]:
        return self._hb_font.get_nominal_glyph(ord(char))

    def metrics(self) -> FontMetrics:
        return self._metrics

    def advance(self, glyph_id: int) -> float:
        return float(self._hb_font.get_glyph_h_advance(glyph_id))

    def raster_bounds(self, glyph_id: int, size: float) -> RasterRect:
        bounds = self._make_font(size).getBounds([glyph_id])[0]
        if bounds.isEmpty():
            return RasterRect(0, 0, 0, 0)

        # Skia bounds are y-down around the baseline origin
        left = math.floor(bounds.left())
        right = math.ceil(bounds.right())
        top = math.floor(bounds.top())
        bottom = math.ceil(bounds.bottom())
        return RasterRect(x=left, y=-bottom, width=right - left, height=bottom - top)

    def rasterize_glyph(
        self,
        glyph_id: int,
        size: float,
        origin: Tuple[float, float],
        width: int,
        height: int,
    ) -> np.ndarray:
        pixels = np.zeros((height, width, 4), dtype=np.uint8)
        canvas = skia.Canvas(pixels)
        paint = skia.Paint(AntiAlias=True, Color=skia.ColorWHITE)

        builder = skia.TextBlobBuilder()
        builder.allocRunPos(
            self._make_font(size),
            [glyph_id],
            [skia.Point(float(origin[0]), float(origin[1]))],
        )
        text_blob = builder.make()
        if text_blob is not None:
            canvas.drawTextBlob(text_blob, 0, 0, paint)

        # White ink on a transparent canvas: alpha is the coverage
        return np.ascontiguousarray(pixels[:, :, 3])
