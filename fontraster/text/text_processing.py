import re
from typing import List, Tuple

from .font_set import FontStyle

# Markdown-like style pattern: ***bold italic***, **bold**, *italic*
STYLE_PATTERN = re.compile(r"(\*{1,3})(.*?)(\1)")

_MARKER_STYLES = {
    3: FontStyle.BOLD_ITALIC,
    2: FontStyle.BOLD,
    1: FontStyle.ITALIC,
}


def parse_styled_segments(text: str) -> List[Tuple[str, FontStyle]]:
    """
    Parses text with markdown-like style markers into segments.

    Args:
        text (str): Input text potentially containing ***bold italic***, **bold**, *italic*.

    Returns:
        List[Tuple[str, FontStyle]]: List of (segment_text, style) tuples in text order,
                                     without empty segments.
    """
    segments = []
    last_end = 0
    for match in STYLE_PATTERN.finditer(text):
        start, end = match.span()
        marker = match.group(1)
        content = match.group(2)

        if start > last_end:
            segments.append((text[last_end:start], FontStyle.REGULAR))

        segments.append((content, _MARKER_STYLES[len(marker)]))
        last_end = end

    if last_end < len(text):
        segments.append((text[last_end:], FontStyle.REGULAR))

    return [(txt, style) for txt, style in segments if txt]
