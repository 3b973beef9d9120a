from typing import Optional, Sequence, Tuple

from PIL import Image

from fontraster.config import BUILTIN_FAMILY, DEFAULT_FONT_SIZE, RenderingConfig
from utils.logging import log_message

from .drawing_engine import Color, TextBounds, draw_text, get_text_bounds
from .font_manager import SystemFontStore
from .font_set import DiagnosticSink, FallbackChain, FontStyle
from .layout_engine import get_text_length
from .text_processing import parse_styled_segments


class TextRenderer:
    """
    Draws text onto images with an ordered list of fallback fonts.

    Example:
        renderer = TextRenderer([("Fira Code", 27.0), ("Noto Sans CJK JP", 27.0)])
        image = Image.new("RGB", (250, 100))
        renderer.draw_text(image, (255, 0, 0), 0, 0, FontStyle.REGULAR, "Hello, world")
    """

    def __init__(
        self,
        font_list: Optional[Sequence[Tuple[str, float]]] = None,
        store=None,
        diagnostics: Optional[DiagnosticSink] = None,
        verbose: bool = False,
    ):
        if font_list is None:
            font_list = [(BUILTIN_FAMILY, DEFAULT_FONT_SIZE)]
        self.verbose = verbose
        self.store = store if store is not None else SystemFontStore(verbose=verbose)
        self.chain = FallbackChain.from_font_list(
            font_list, store=self.store, diagnostics=diagnostics, verbose=verbose
        )

    @classmethod
    def from_config(
        cls,
        rendering_cfg: RenderingConfig,
        diagnostics: Optional[DiagnosticSink] = None,
        verbose: bool = False,
    ) -> "TextRenderer":
        store = SystemFontStore(
            font_dirs=rendering_cfg.font_dirs or None,
            extra_font_dirs=rendering_cfg.extra_font_dirs,
            verbose=verbose,
        )
        return cls(rendering_cfg.fonts, store=store, diagnostics=diagnostics, verbose=verbose)

    def draw_text(
        self,
        image: Image.Image,
        color: Color,
        x: int,
        y: int,
        style: FontStyle,
        text: str,
    ) -> int:
        """Draws one line of text and returns its width in pixels."""
        return draw_text(self.chain, image, color, x, y, style, text)

    def get_text_length(self, text: str) -> int:
        return get_text_length(self.chain, text)

    def get_line_height(self) -> int:
        return self.chain.get_height()

    def measure_text(
        self,
        text: str,
        style: FontStyle,
        styled: bool = False,
        report_missing: bool = True,
    ) -> TextBounds:
        """
        Bounds of one line as `draw_text` (or `draw_styled_text` when `styled`) would draw it.

        Raises:
            FontError: If no font could be loaded
        """
        if not styled:
            return get_text_bounds(self.chain, text, style, report_missing=report_missing)

        bounds = get_text_bounds(self.chain, "", style)
        cursor_x = 0
        for segment_text, segment_style in parse_styled_segments(text):
            segment = get_text_bounds(
                self.chain, segment_text, segment_style, report_missing=report_missing
            )
            bounds = bounds.union(segment.shifted(cursor_x, 0))
            cursor_x += segment.advance
        return TextBounds(bounds.left, bounds.top, bounds.right, bounds.bottom, cursor_x)

    def measure_lines(
        self,
        lines: Sequence[str],
        style: FontStyle,
        line_spacing: float = 1.0,
        styled: bool = False,
        report_missing: bool = True,
    ) -> TextBounds:
        """
        Bounds of the block `draw_lines` would draw, relative to its (x, y).

        `advance` is the widest line's advance.
        """
        bounds = self.measure_text("", style)
        step = round(self.get_line_height() * line_spacing)
        for i, line in enumerate(lines):
            line_bounds = self.measure_text(line, style, styled=styled, report_missing=report_missing)
            bounds = bounds.union(line_bounds.shifted(0, i * step))
        return bounds

    def draw_styled_text(
        self,
        image: Image.Image,
        color: Color,
        x: int,
        y: int,
        text: str,
    ) -> int:
        """
        Draws one line containing ***bold italic***, **bold** and *italic* runs.

        Each run starts where the previous one ended. Returns the total width.
        """
        cursor_x = x
        for segment_text, style in parse_styled_segments(text):
            segment_width = self.draw_text(image, color, cursor_x, y, style, segment_text)
            log_message(
                f"Rendered '{segment_text}' ({style.value}) width={segment_width}",
                verbose=self.verbose,
            )
            cursor_x += segment_width
        return cursor_x - x

    def draw_lines(
        self,
        image: Image.Image,
        color: Color,
        x: int,
        y: int,
        style: FontStyle,
        lines: Sequence[str],
        line_spacing: float = 1.0,
        styled: bool = False,
    ) -> int:
        """
        Draws lines top to bottom, `line_height * line_spacing` apart.

        Returns:
            Width of the widest line in pixels.
        """
        if not lines:
            return 0
        step = round(self.get_line_height() * line_spacing)
        max_width = 0
        for i, line in enumerate(lines):
            line_y = y + i * step
            if styled:
                width = self.draw_styled_text(image, color, x, line_y, line)
            else:
                width = self.draw_text(image, color, x, line_y, style, line)
            max_width = max(max_width, width)
        return max_width
