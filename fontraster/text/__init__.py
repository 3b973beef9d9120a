"""
Text layout and rendering modules for fontraster.

This subpackage contains modules for:
- Font programs (Skia + HarfBuzz backend) and the system font store
- Font sets and fallback chains
- Single-line layout engine
- Glyph rasterization and alpha compositing
- High-level text rendering orchestration
"""

from .drawing_engine import (
    TextBounds,
    draw_glyph,
    draw_text,
    get_baseline_offset,
    get_text_bounds,
    rasterize_glyph,
    weighted_sum,
)
from .font_manager import (
    FontHandle,
    LRUCache,
    SystemFontStore,
    describe_font_file,
    load_builtin_font_data,
    load_font_data,
)
from .font_program import FontMetrics, FontProgram, RasterRect, SkiaFontProgram
from .font_set import DiagnosticSink, FallbackChain, FontSet, FontStyle
from .layout_engine import PositionedGlyph, get_glyph_width, get_text_length, layout_text
from .text_processing import parse_styled_segments
from .text_renderer import TextRenderer

__all__ = [
    "TextBounds",
    "draw_glyph",
    "draw_text",
    "get_baseline_offset",
    "get_text_bounds",
    "rasterize_glyph",
    "weighted_sum",
    "FontHandle",
    "LRUCache",
    "SystemFontStore",
    "describe_font_file",
    "load_builtin_font_data",
    "load_font_data",
    "FontMetrics",
    "FontProgram",
    "RasterRect",
    "SkiaFontProgram",
    "DiagnosticSink",
    "FallbackChain",
    "FontSet",
    "FontStyle",
    "PositionedGlyph",
    "get_glyph_width",
    "get_text_length",
    "layout_text",
    "parse_styled_segments",
    "TextRenderer",
]
