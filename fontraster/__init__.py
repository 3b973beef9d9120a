"""
fontraster Core Package

Draws Unicode text onto raster images with an ordered list of fallback fonts.
Skia rasterizes the glyphs and HarfBuzz supplies glyph lookup and metrics.
"""

from .config import BUILTIN_FAMILY, FontRasterConfig, OutputConfig, RenderingConfig
from .text import FallbackChain, FontSet, FontStyle, TextRenderer

__version__ = "1.0.0"
__version_info__ = (1, 0, 0)
__license__ = "Apache-2.0"
__description__ = "Render text onto images with font fallback"
__all__ = [
    "BUILTIN_FAMILY",
    "FontRasterConfig",
    "OutputConfig",
    "RenderingConfig",
    "FallbackChain",
    "FontSet",
    "FontStyle",
    "TextRenderer",
]
