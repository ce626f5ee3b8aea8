"""Glyph width measurement and fitting for LED text."""

from __future__ import annotations

from html import escape
import math
import threading

from PIL import ImageFont

HEAVY = "heavy"
REGULAR = "regular"

MIN_FONT_SIZE = 10
DEFAULT_FONT_FACTOR = 0.78


class TextMetrics:
    """Measure rendered text widths with Pillow fonts.

    Fonts are loaded once per (size, weight) and reused. Without configured
    font files Pillow's bundled scalable default font is used for both weights.
    """

    def __init__(self, font_path: str | None = None, font_bold_path: str | None = None) -> None:
        self._font_paths = {REGULAR: font_path, HEAVY: font_bold_path or font_path}
        self._fonts: dict[tuple[int, str], ImageFont.FreeTypeFont] = {}
        self._lock = threading.Lock()

    def _font(self, size: int, weight: str) -> ImageFont.FreeTypeFont:
        key = (size, weight)
        font = self._fonts.get(key)
        if font is None:
            path = self._font_paths.get(weight)
            if path:
                font = ImageFont.truetype(path, size)
            else:
                font = ImageFont.load_default(size=size)
            self._fonts[key] = font
        return font

    def measure_width(self, text: str, size: int, weight: str = HEAVY) -> float:
        """Rendered advance width of `text` in pixels."""
        if not text:
            return 0.0
        with self._lock:
            return float(self._font(max(1, int(size)), weight).getlength(text))

    @staticmethod
    def font_size_for(available_height: float, factor: float = DEFAULT_FONT_FACTOR) -> int:
        return max(MIN_FONT_SIZE, math.floor(available_height * factor))

    def truncate_to_width(self, text: str, size: int, max_width: float) -> str:
        """Longest prefix of `text` that fits `max_width`.

        Binary search over prefix length; the empty prefix is the fallback for
        budgets too narrow for a single glyph.
        """
        if self.measure_width(text, size) <= max_width:
            return text

        fits, overflows = 0, len(text)
        while overflows - fits > 1:
            mid = (fits + overflows) // 2
            if self.measure_width(text[:mid], size) <= max_width:
                fits = mid
            else:
                overflows = mid
        return text[:fits]


def escape_text(text: str) -> str:
    """Escape &, < and > for embedding in SVG markup."""
    return escape(str(text), quote=False)


__all__ = ["HEAVY", "REGULAR", "TextMetrics", "escape_text"]
