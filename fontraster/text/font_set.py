import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from fontraster.config import BUILTIN_FAMILY, DEFAULT_FONT_SIZE
from fontraster.validation import validate_font_list
from utils.exceptions import FontError, MissingRegularFontError, ValidationError
from utils.logging import log_message

from .font_manager import (
    SLANT_ITALIC,
    SLANT_NORMAL,
    SystemFontStore,
    load_builtin_font_data,
)
from .font_program import FontProgram, SkiaFontProgram

WEIGHT_NORMAL = 400
WEIGHT_BOLD = 700

# Receives human-readable warnings about fonts and characters that were skipped
DiagnosticSink = Callable[[str], None]


def log_diagnostic(message: str) -> None:
    """Default diagnostic sink: forwards to the application log."""
    log_message(message, always_print=True)


class FontStyle(Enum):
    REGULAR = "regular"
    ITALIC = "italic"
    BOLD = "bold"
    BOLD_ITALIC = "bold_italic"

    @classmethod
    def from_flags(cls, bold: bool, italic: bool) -> "FontStyle":
        """Maps syntax-highlighter bold/italic flags onto a style."""
        if bold:
            return cls.BOLD_ITALIC if italic else cls.BOLD
        return cls.ITALIC if italic else cls.REGULAR

    @classmethod
    def from_name(cls, name: str) -> "FontStyle":
        """
        Parses "regular", "italic", "bold" or "bold_italic" (case-insensitive).

        Raises:
            ValidationError: For any other name
        """
        normalized = name.strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(style.value for style in cls)
            raise ValidationError(f"Unknown font style '{name}'. Must be one of: {choices}.") from None


# Only these (slant, weight) combinations are kept from a family
_STYLE_SLOTS = {
    (SLANT_NORMAL, WEIGHT_NORMAL): FontStyle.REGULAR,
    (SLANT_NORMAL, WEIGHT_BOLD): FontStyle.BOLD,
    (SLANT_ITALIC, WEIGHT_NORMAL): FontStyle.ITALIC,
    (SLANT_ITALIC, WEIGHT_BOLD): FontStyle.BOLD_ITALIC,
}


@dataclass(frozen=True)
class FontSet:
    """
    One font family at one point size, with a slot per style.

    Styles without a program fall back to the regular one.
    """

    size: float
    regular: Optional[FontProgram] = None
    italic: Optional[FontProgram] = None
    bold: Optional[FontProgram] = None
    bold_italic: Optional[FontProgram] = None

    @classmethod
    def builtin(cls, size: float = DEFAULT_FONT_SIZE) -> "FontSet":
        """
        Builds the embedded DejaVu Sans Mono set from its four packaged faces.
        """
        font_data = load_builtin_font_data()
        return cls(
            size=size,
            regular=SkiaFontProgram(font_data["regular"], name=f"{BUILTIN_FAMILY} Regular"),
            italic=SkiaFontProgram(font_data["italic"], name=f"{BUILTIN_FAMILY} Oblique"),
            bold=SkiaFontProgram(font_data["bold"], name=f"{BUILTIN_FAMILY} Bold"),
            bold_italic=SkiaFontProgram(
                font_data["bold_italic"], name=f"{BUILTIN_FAMILY} Bold Oblique"
            ),
        )

    @classmethod
    def from_name(
        cls,
        name: str,
        size: float,
        store=None,
        verbose: bool = False,
    ) -> "FontSet":
        """
        Loads a font family by name.

        Args:
            name: Family name; the reserved built-in name never touches the store.
            size: Point size, must be positive.
            store: Object with `select_family_by_name(name)` returning handles
                   that expose `slant`, `weight` and `load()`. Defaults to a
                   SystemFontStore over the platform font directories.
            verbose: Whether to log each face considered.

        Raises:
            FamilyNotFoundError: If the store has no such family
            FontLoadError: If a retained face cannot be loaded
            MissingRegularFontError: If the family has no regular face
        """
        if name == BUILTIN_FAMILY:
            return cls.builtin(size)

        if store is None:
            store = SystemFontStore(verbose=verbose)

        programs = {}
        for handle in store.select_family_by_name(name):
            style = _STYLE_SLOTS.get((handle.slant, handle.weight))
            if style is None:
                log_message(
                    f"Ignoring {name} face ({handle.slant}, weight {handle.weight})",
                    verbose=verbose,
                )
                continue
            log_message(f"Found {style.value} face for {name}: {handle}", verbose=verbose)
            programs[style] = handle.load()

        if FontStyle.REGULAR not in programs:
            raise MissingRegularFontError(f"Font family '{name}' has no regular face")

        return cls(
            size=size,
            regular=programs.get(FontStyle.REGULAR),
            italic=programs.get(FontStyle.ITALIC),
            bold=programs.get(FontStyle.BOLD),
            bold_italic=programs.get(FontStyle.BOLD_ITALIC),
        )

    def _slot(self, style: FontStyle) -> Optional[FontProgram]:
        if style is FontStyle.BOLD_ITALIC:
            return self.bold_italic
        if style is FontStyle.BOLD:
            return self.bold
        if style is FontStyle.ITALIC:
            return self.italic
        return self.regular

    def get_regular(self) -> FontProgram:
        """
        Raises:
            MissingRegularFontError: If the set was built without a regular program
        """
        if self.regular is None:
            raise MissingRegularFontError("Font set has no regular font")
        return self.regular

    def get_by_style(self, style: FontStyle) -> FontProgram:
        """Returns the program for `style`, or the regular one if that slot is empty."""
        program = self._slot(style)
        if program is None:
            return self.get_regular()
        return program

    def get_height(self) -> int:
        """Line height in pixels from the regular program's metrics."""
        metrics = self.get_regular().metrics()
        return math.ceil((metrics.ascent - metrics.descent) * self.size / metrics.units_per_em)


class FallbackChain:
    """
    Ordered font sets; each character is drawn with the first set that has a glyph for it.
    """

    def __init__(
        self,
        font_sets: Iterable[FontSet] = (),
        diagnostics: Optional[DiagnosticSink] = None,
    ):
        self._font_sets: Tuple[FontSet, ...] = tuple(font_sets)
        self.diagnostics: DiagnosticSink = diagnostics or log_diagnostic

    @classmethod
    def from_font_list(
        cls,
        font_list: Sequence[Tuple[str, float]],
        store=None,
        diagnostics: Optional[DiagnosticSink] = None,
        verbose: bool = False,
    ) -> "FallbackChain":
        """
        Loads each (family, size) entry in order.

        An entry that fails to load is reported through `diagnostics` and
        left out, so the chain may be empty.

        Raises:
            ValidationError: If the list itself is malformed
        """
        validate_font_list(font_list)
        sink = diagnostics or log_diagnostic
        if store is None:
            store = SystemFontStore(verbose=verbose)

        font_sets: List[FontSet] = []
        for name, size in font_list:
            try:
                font_sets.append(FontSet.from_name(name, float(size), store=store, verbose=verbose))
            except FontError as e:
                sink(f"Failed to load font '{name}': {e}")

        log_message(f"Loaded {len(font_sets)} of {len(font_list)} fonts", verbose=verbose)
        return cls(font_sets, diagnostics=sink)

    @classmethod
    def default(cls, diagnostics: Optional[DiagnosticSink] = None) -> "FallbackChain":
        return cls([FontSet.builtin()], diagnostics=diagnostics)

    def __len__(self) -> int:
        return len(self._font_sets)

    def __iter__(self) -> Iterator[FontSet]:
        return iter(self._font_sets)

    @property
    def font_sets(self) -> Tuple[FontSet, ...]:
        return self._font_sets

    def first(self) -> FontSet:
        """
        Raises:
            FontError: If the chain is empty
        """
        if not self._font_sets:
            raise FontError("Font chain is empty, no font could be loaded")
        return self._font_sets[0]

    def resolve_glyph(
        self, char: str, style: FontStyle, report: bool = True
    ) -> Optional[Tuple[int, FontSet, FontProgram]]:
        """
        Finds the first set whose `style` program has a glyph for `char`.

        Returns:
            (glyph_id, font_set, program), or None after reporting the miss
            (unless `report` is False).
        """
        for font_set in self._font_sets:
            program = font_set.get_by_style(style)
            glyph_id = program.glyph_for_char(char)
            if glyph_id is not None:
                return glyph_id, font_set, program
        if report:
            self.diagnostics(f"No font found for character '{char}'")
        return None

    def get_height(self) -> int:
        """
        Tallest line height among all sets.

        Raises:
            FontError: If the chain is empty
        """
        if not self._font_sets:
            raise FontError("Font chain is empty, no font could be loaded")
        return max(font_set.get_height() for font_set in self._font_sets)
