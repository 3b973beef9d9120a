from numbers import Real
from typing import Any, Sequence

from fontraster.config import OutputConfig, RenderingConfig
from utils.exceptions import ValidationError

SUPPORTED_IMAGE_MODES = ("L", "LA", "RGB", "RGBA")


def validate_font_list(font_list: Sequence[Any]) -> None:
    """
    Validates an ordered list of (family name, point size) pairs.

    Raises:
        ValidationError: If an entry is not a pair, a name is empty,
                         or a size is not a positive number.
    """
    if isinstance(font_list, (str, bytes)):
        raise ValidationError("Font list must be a sequence of (name, size) pairs, not a string.")
    for position, entry in enumerate(font_list):
        if not isinstance(entry, (tuple, list)) or len(entry) != 2:
            raise ValidationError(f"Font entry {position} must be a (name, size) pair, got {entry!r}.")
        name, size = entry
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(f"Font entry {position} has an empty or non-string family name.")
        if isinstance(size, bool) or not isinstance(size, Real) or not float(size) > 0:
            raise ValidationError(f"Font size for '{name}' must be a positive number, got {size!r}.")


def validate_rendering_config(rendering_cfg: RenderingConfig) -> None:
    """
    Raises:
        ValidationError: If the font list or line spacing is invalid
    """
    validate_font_list(rendering_cfg.fonts)
    if not (
        isinstance(rendering_cfg.line_spacing, (int, float))
        and float(rendering_cfg.line_spacing) > 0
    ):
        raise ValidationError("Line Spacing must be a positive number.")


def validate_output_config(output_cfg: OutputConfig) -> None:
    """
    Raises:
        ValidationError: If compression settings are out of range
    """
    if not 1 <= output_cfg.jpeg_quality <= 100:
        raise ValidationError("JPEG quality must be between 1 and 100.")
    if not 0 <= output_cfg.png_compression <= 9:
        raise ValidationError("PNG compression must be between 0 and 9.")


def validate_image_mode(mode: str) -> None:
    """
    Raises:
        ValidationError: If text cannot be composited onto images of this mode
    """
    if mode not in SUPPORTED_IMAGE_MODES:
        raise ValidationError(
            f"Unsupported image mode '{mode}'. Must be one of: {', '.join(SUPPORTED_IMAGE_MODES)}."
        )
