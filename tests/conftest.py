from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

import numpy as np
import pytest

from fontraster.text.font_program import FontMetrics, FontProgram, RasterRect
from fontraster.text.font_set import FallbackChain, FontSet
from utils.exceptions import FamilyNotFoundError, FontLoadError

EMPTY_RECT = RasterRect(0, 0, 0, 0)


class FakeFontProgram(FontProgram):
    """Deterministic in-memory font: every visible glyph is a solid box."""

    def __init__(
        self,
        chars: str = "Hiabc ",
        advance: Union[float, Dict[str, float]] = 600,
        ascent: float = 800,
        descent: float = -200,
        units_per_em: int = 1000,
        rect: RasterRect = RasterRect(1, 0, 4, 6),
        coverage: Union[int, np.ndarray] = 255,
        name: str = "fake",
    ):
        self.name = name
        self.glyph_ids = {char: index + 1 for index, char in enumerate(chars)}
        self.chars_by_id = {glyph_id: char for char, glyph_id in self.glyph_ids.items()}
        self._advance = advance
        self._metrics = FontMetrics(ascent=ascent, descent=descent, units_per_em=units_per_em)
        self.rect = rect
        self.coverage = coverage
        self.rasterize_calls: List[tuple] = []

    def __repr__(self):
        return f"FakeFontProgram({self.name!r})"

    def glyph_for_char(self, char: str) -> Optional[int]:
        return self.glyph_ids.get(char)

    def metrics(self) -> FontMetrics:
        return self._metrics

    def advance(self, glyph_id: int) -> float:
        if isinstance(self._advance, dict):
            return self._advance[self.chars_by_id[glyph_id]]
        return self._advance

    def raster_bounds(self, glyph_id: int, size: float) -> RasterRect:
        if self.chars_by_id[glyph_id].isspace():
            return EMPTY_RECT
        return self.rect

    def rasterize_glyph(self, glyph_id, size, origin, width, height) -> np.ndarray:
        self.rasterize_calls.append((glyph_id, size, origin, width, height))
        if isinstance(self.coverage, np.ndarray):
            return self.coverage.copy()
        return np.full((height, width), self.coverage, dtype=np.uint8)


@dataclass
class FakeHandle:
    slant: str
    weight: int
    program: Optional[FontProgram] = None
    fail: bool = False

    def load(self) -> FontProgram:
        if self.fail:
            raise FontLoadError("corrupt font file")
        return self.program


@dataclass
class FakeStore:
    families: Dict[str, List[FakeHandle]] = field(default_factory=dict)
    lookups: List[str] = field(default_factory=list)

    def select_family_by_name(self, name: str) -> List[FakeHandle]:
        self.lookups.append(name)
        if name not in self.families:
            raise FamilyNotFoundError(f"No font family named '{name}' was found")
        return list(self.families[name])


@pytest.fixture
def diagnostics() -> List[str]:
    return []


@pytest.fixture
def fake_font() -> FakeFontProgram:
    return FakeFontProgram()


@pytest.fixture
def fake_chain(fake_font, diagnostics) -> FallbackChain:
    return FallbackChain([FontSet(size=20.0, regular=fake_font)], diagnostics=diagnostics.append)
