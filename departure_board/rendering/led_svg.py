"""SVG synthesis of dot-matrix LED text with glow."""

from __future__ import annotations

import itertools
import math

from departure_board.rendering.text_metrics import escape_text

DEFAULT_TEXT_BOOST = 1.21
DEFAULT_LED_SCALE = 0.7
DEFAULT_ATTENUATE_GLOW = 0.9

HOT_COLOR = "#ffe6a3"
GLOW_COLOR = "#ffb000"
EDGE_COLOR = "#563800"
FONT_FAMILY = "'DejaVu Sans', 'Arial Black', sans-serif"

BASELINE_RATIO = 0.72
MIN_CLIP_WIDTH = 10


def _num(value: float) -> str:
    """Format a number the way it should appear in markup (no trailing .0)."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class LEDRenderer:
    """Render text as a masked, glowing grid of LED dots.

    Each call produces a standalone <svg> document whose internal ids are
    prefixed with a scope unique to this renderer instance, so several
    images can be inlined into the same page.
    """

    def __init__(
        self,
        text_boost: float = DEFAULT_TEXT_BOOST,
        led_scale: float = DEFAULT_LED_SCALE,
        attenuate_glow: float = DEFAULT_ATTENUATE_GLOW,
        scope_prefix: str = "led",
    ) -> None:
        self._text_boost = text_boost
        self._led_scale = led_scale
        self._glow = max(0.4, min(1.0, attenuate_glow or 1.0))
        self._scope_prefix = scope_prefix
        self._counter = itertools.count(1)

    @property
    def text_boost(self) -> float:
        return self._text_boost

    def dot_pitch(self, height: int) -> int:
        base_pitch = max(4, math.floor(height / 10))
        return max(3, math.floor(base_pitch * self._led_scale))

    def next_scope(self) -> str:
        return f"{self._scope_prefix}-{next(self._counter)}"

    def render(
        self,
        text: str,
        width: float,
        height: float,
        font_size: int,
        align: str = "left",
        clip_width: float | None = None,
        scope: str | None = None,
    ) -> str:
        """Return <svg> markup showing `text` on an LED dot grid."""
        if align not in ("left", "right"):
            raise ValueError(f"align must be 'left' or 'right', got {align!r}")

        pitch = self.dot_pitch(height)
        radius = max(2, math.floor(pitch * 0.40))
        padding = math.floor(pitch * 0.85)
        glyph_size = math.floor(font_size * self._text_boost)
        dilate = max(0, math.floor(radius * 0.28))
        blur = max(0.4, radius * 0.28)
        uid = scope or self.next_scope()

        if clip_width is None:
            clip_width = width - padding * 2
        clip_width = max(MIN_CLIP_WIDTH, clip_width)
        if align == "right":
            x = width - padding
            anchor = "end"
            clip_x = width - clip_width - padding
        else:
            x = padding
            anchor = "start"
            clip_x = 0
        y = height * BASELINE_RATIO

        w, h = _num(width), _num(height)
        return (
            f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {w} {h}" width="{w}" height="{h}" '
            f'preserveAspectRatio="xMidYMid meet" style="display:block">'
            f"<defs>"
            f'<pattern id="{uid}-dots" patternUnits="userSpaceOnUse" width="{pitch}" height="{pitch}">'
            f'<radialGradient id="{uid}-g" cx="50%" cy="50%" r="50%">'
            f'<stop offset="0%" stop-color="{HOT_COLOR}"/>'
            f'<stop offset="55%" stop-color="{GLOW_COLOR}"/>'
            f'<stop offset="100%" stop-color="{EDGE_COLOR}"/>'
            f"</radialGradient>"
            f'<circle cx="{radius}" cy="{radius}" r="{radius}" fill="url(#{uid}-g)"/>'
            f"</pattern>"
            f'<filter id="{uid}-dilate"><feMorphology operator="dilate" radius="{dilate}"/></filter>'
            f'<filter id="{uid}-glow" x="-12%" y="-12%" width="124%" height="124%">'
            f'<feGaussianBlur stdDeviation="{_num(blur)}" result="b"/>'
            f'<feComponentTransfer><feFuncA type="linear" slope="{_num(self._glow)}"/></feComponentTransfer>'
            f'<feMerge><feMergeNode in="b"/><feMergeNode in="SourceGraphic"/></feMerge>'
            f"</filter>"
            f'<clipPath id="{uid}-clip">'
            f'<rect x="{_num(clip_x)}" y="0" width="{_num(clip_width)}" height="{h}"/>'
            f"</clipPath>"
            f'<mask id="{uid}-mask">'
            f'<rect width="100%" height="100%" fill="black"/>'
            f'<g filter="url(#{uid}-dilate)" clip-path="url(#{uid}-clip)">'
            f'<text class="svg-text" x="{_num(x)}" y="{_num(y)}" text-anchor="{anchor}" '
            f'font-family="{FONT_FAMILY}" font-weight="900" font-size="{glyph_size}" '
            f'fill="white" letter-spacing="-0.01em" xml:space="preserve">{escape_text(text)}</text>'
            f"</g>"
            f"</mask>"
            f"</defs>"
            f'<rect width="100%" height="100%" fill="url(#{uid}-dots)" mask="url(#{uid}-mask)" '
            f'filter="url(#{uid}-glow)"/>'
            f"</svg>"
        )


__all__ = ["LEDRenderer"]
