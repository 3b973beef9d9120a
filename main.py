import argparse
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from fontraster.config import (BUILTIN_FAMILY, DEFAULT_FONT_SIZE,
                               FontRasterConfig, OutputConfig, RenderingConfig)
from fontraster.image_utils import (create_canvas, load_image,
                                    save_image_with_compression)
from fontraster.text import FontStyle, SystemFontStore, TextRenderer
from fontraster.validation import (validate_output_config,
                                   validate_rendering_config)
from utils.exceptions import (FontError, ImageProcessingError, RenderingError,
                              ValidationError)
from utils.logging import log_message


def parse_font_spec(value: str) -> Tuple[str, float]:
    """Parses 'Family Name:SIZE' (size optional) for --font."""
    name, sep, size = value.rpartition(":")
    if not sep:
        return value, DEFAULT_FONT_SIZE
    try:
        return name, float(size)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid font size in '{value}'") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Render text onto an image using a list of fallback fonts"
    )
    parser.add_argument("--text", type=str, default=None, help="Text to draw (use \\n for new lines)")
    parser.add_argument(
        "--output",
        type=str,
        required=False,
        help="Path to save the rendered image (required unless --measure is used)",
    )
    parser.add_argument(
        "--input",
        type=str,
        default=None,
        help="Image to draw onto (default: a blank canvas)",
    )
    parser.add_argument("--width", type=int, default=None, help="Blank canvas width (default: fit the text)")
    parser.add_argument("--height", type=int, default=None, help="Blank canvas height (default: fit the text)")
    parser.add_argument("--background", type=str, default="black", help="Blank canvas color")
    parser.add_argument(
        "--font",
        dest="fonts",
        type=parse_font_spec,
        action="append",
        default=None,
        help=f"Font family and size as NAME:SIZE, repeat for fallbacks (default: '{BUILTIN_FAMILY}:{DEFAULT_FONT_SIZE:g}')",
    )
    parser.add_argument(
        "--font-dir",
        dest="font_dirs",
        type=str,
        action="append",
        default=None,
        help="Directory to search for fonts, repeatable (default: system font directories)",
    )
    parser.add_argument(
        "--style",
        type=str,
        default="regular",
        choices=[style.value for style in FontStyle],
        help="Font style for the whole text",
    )
    parser.add_argument(
        "--styled",
        action="store_true",
        help="Interpret ***bold italic***, **bold** and *italic* markers in the text",
    )
    parser.add_argument("--color", type=str, default="white", help="Text color (name or #rrggbb)")
    parser.add_argument("-x", type=int, default=0, help="Left edge of the text")
    parser.add_argument("-y", type=int, default=0, help="Top edge of the first line")
    parser.add_argument("--line-spacing", type=float, default=1.0, help="Line height multiplier")
    parser.add_argument(
        "--measure",
        action="store_true",
        help="Print the text width and line height instead of rendering",
    )
    parser.add_argument(
        "--list-fonts",
        action="store_true",
        help="Print the font families found in the font directories and exit",
    )
    parser.add_argument("--jpeg-quality", type=int, default=95, help="JPEG quality (1-100)")
    parser.add_argument("--png-compression", type=int, default=6, help="PNG compression level (0-9)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = FontRasterConfig(
        rendering=RenderingConfig(
            fonts=args.fonts or [(BUILTIN_FAMILY, DEFAULT_FONT_SIZE)],
            font_dirs=list(args.font_dirs or []),
            line_spacing=args.line_spacing,
        ),
        output=OutputConfig(
            jpeg_quality=args.jpeg_quality,
            png_compression=args.png_compression,
        ),
        verbose=args.verbose,
    )

    try:
        validate_rendering_config(config.rendering)
        validate_output_config(config.output)
    except ValidationError as e:
        log_message(f"Invalid configuration: {e}", always_print=True)
        return 2

    if args.list_fonts:
        store = SystemFontStore(
            font_dirs=config.rendering.font_dirs or None,
            extra_font_dirs=config.rendering.extra_font_dirs,
            verbose=config.verbose,
        )
        for family in store.families():
            print(family)
        return 0

    if args.text is None:
        log_message("--text is required unless --list-fonts is used", always_print=True)
        return 2

    if not args.measure and not args.output:
        log_message("--output is required unless --measure is used", always_print=True)
        return 2

    renderer = TextRenderer.from_config(config.rendering, verbose=config.verbose)
    if len(renderer.chain) == 0:
        log_message("None of the requested fonts could be loaded.", always_print=True)
        return 1

    lines = args.text.replace("\\n", "\n").split("\n")
    style = FontStyle.from_name(args.style)

    # Missing characters are reported once, by whichever pass draws or prints
    bounds = renderer.measure_lines(
        lines,
        style,
        line_spacing=config.rendering.line_spacing,
        styled=args.styled,
        report_missing=args.measure,
    )

    if args.measure:
        print(f"width={bounds.advance} line_height={renderer.get_line_height()}")
        return 0

    x, y = args.x, args.y
    try:
        if args.input:
            image = load_image(args.input, verbose=config.verbose)
        else:
            # Ink hanging left of or above the origin pushes the text inward
            x = max(x, -bounds.left)
            y = max(y, -bounds.top)
            width = args.width or x + bounds.right
            height = args.height or y + bounds.bottom
            image = create_canvas(width, height, background=args.background)

        drawn_width = renderer.draw_lines(
            image,
            args.color,
            x,
            y,
            style,
            lines,
            line_spacing=config.rendering.line_spacing,
            styled=args.styled,
        )
        log_message(f"Drew {len(lines)} line(s), widest {drawn_width}px", verbose=config.verbose)

        output_path = save_image_with_compression(
            image,
            Path(args.output),
            jpeg_quality=config.output.jpeg_quality,
            png_compression=config.output.png_compression,
            verbose=config.verbose,
        )
    except (ValidationError, FontError, ImageProcessingError, RenderingError, IndexError) as e:
        log_message(f"Error rendering text: {e}", always_print=True)
        return 1

    log_message(f"Rendering complete. Result saved to {output_path}", always_print=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
