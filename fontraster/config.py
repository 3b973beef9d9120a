import os
from dataclasses import dataclass, field
from typing import List, Tuple

BUILTIN_FAMILY = "DejaVu Sans Mono"
DEFAULT_FONT_SIZE = 26.0
FONT_DIRS_ENV_VAR = "FONTRASTER_FONT_DIRS"


def _default_fonts() -> List[Tuple[str, float]]:
    return [(BUILTIN_FAMILY, DEFAULT_FONT_SIZE)]


@dataclass
class RenderingConfig:
    """Configuration for loading fonts and drawing text."""

    fonts: List[Tuple[str, float]] = field(default_factory=_default_fonts)
    font_dirs: List[str] = field(default_factory=list)  # empty = platform font directories
    extra_font_dirs: List[str] = field(default_factory=list)  # scanned on top of font_dirs
    line_spacing: float = 1.0

    def __post_init__(self):
        # Extra font directories from the environment
        env_dirs = os.environ.get(FONT_DIRS_ENV_VAR, "")
        for font_dir in env_dirs.split(os.pathsep):
            if font_dir and font_dir not in self.font_dirs and font_dir not in self.extra_font_dirs:
                self.extra_font_dirs.append(font_dir)


@dataclass
class OutputConfig:
    """Configuration for saving output images."""

    jpeg_quality: int = 95
    png_compression: int = 6


@dataclass
class FontRasterConfig:
    """Main configuration for text rendering."""

    rendering: RenderingConfig = field(default_factory=RenderingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    verbose: bool = False
