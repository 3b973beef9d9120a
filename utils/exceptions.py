class ValidationError(ValueError):
    """Custom exception for validation errors."""

    pass


class FontError(RuntimeError):
    """Custom exception for font loading and resource failures."""

    pass


class FamilyNotFoundError(FontError):
    """Raised when the font store has no family matching the requested name."""

    pass


class FontLoadError(FontError):
    """Raised when font bytes cannot be read or turned into a font program."""

    pass


class MissingRegularFontError(FontError):
    """Raised when a font set has no regular variant to fall back on."""

    pass


class RenderingError(RuntimeError):
    """Custom exception for text rendering and drawing failures."""

    pass


class ImageProcessingError(Exception):
    """Custom exception for image operations failures."""

    pass
