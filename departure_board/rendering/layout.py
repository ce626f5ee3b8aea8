"""Column geometry and marquee decisions for the departure board."""

from __future__ import annotations

from dataclasses import dataclass
import math
import re

from departure_board.rendering.text_metrics import TextMetrics

LINE_CODE_MAX_CHARS = 4
LINE_CODE_SAMPLES = ("WWWW", "MMMM", "8888")
LINE_CODE_PLACEHOLDER = "—"
LINE_COLUMN_PADDING = 16

ETA_DIGIT_SAMPLES = tuple(str(digit) * 3 for digit in range(10))
ETA_TOKEN_GAP = 4
ETA_COLUMN_PADDING = 8
UNIT_LABEL = "Min"
UNIT_PADDING = 4
UNIT_WIDTH_FACTOR = 2.8

COLUMN_GAPS = 6
MIN_DESTINATION_WIDTH = 100
DESTINATION_INSET = 2

SCROLL_ACTIVATION_MARGIN = 100
SCROLL_SPEED_PX_PER_SECOND = 150
SCROLL_REPETITIONS = 100
SCROLL_EXTRA_WIDTH = 100
SCROLL_SEPARATOR = "\u00a0" * 58

STATIC = "static"
SCROLLING = "scrolling"


@dataclass(frozen=True)
class LayoutGeometry:
    """Pixel geometry of one board render."""

    row_height: int
    dot_height: int
    font_size: int
    line_column_width: int
    eta_column_width: int
    destination_width: int
    unit_width: int

    @property
    def number_width(self) -> int:
        """Width left for the minute count inside the ETA column."""
        return self.eta_column_width - self.unit_width - ETA_TOKEN_GAP


@dataclass(frozen=True)
class DestinationLayout:
    """How a destination is shown: once, truncated, or as an endless marquee."""

    mode: str
    text: str
    image_width: float
    clip_width: float
    total_width: float = 0.0
    duration_seconds: float = 0.0

    @property
    def scrolling(self) -> bool:
        return self.mode == SCROLLING


def format_line_code(line: str) -> str:
    """Alphanumeric line code, at most four characters."""
    code = re.sub(r"[^A-Za-z0-9]", "", line or "")[:LINE_CODE_MAX_CHARS]
    return code or LINE_CODE_PLACEHOLDER


class LayoutEngine:
    """Compute column widths and per-row destination layout from glyph metrics."""

    def __init__(
        self,
        metrics: TextMetrics,
        text_boost: float = 1.21,
        max_rows: int = 5,
        dot_baseline_rows: int = 6,
        unit_label: str = UNIT_LABEL,
        scroll_activation_margin: float = SCROLL_ACTIVATION_MARGIN,
        scroll_speed: float = SCROLL_SPEED_PX_PER_SECOND,
    ) -> None:
        self._metrics = metrics
        self._text_boost = text_boost
        self._max_rows = max_rows
        self._dot_baseline_rows = dot_baseline_rows
        self._unit_label = unit_label
        self._scroll_activation_margin = scroll_activation_margin
        self._scroll_speed = scroll_speed

    @property
    def metrics(self) -> TextMetrics:
        return self._metrics

    @property
    def unit_label(self) -> str:
        return self._unit_label

    def boosted(self, font_size: int) -> int:
        return math.floor(font_size * self._text_boost)

    def _widest(self, samples: tuple[str, ...], size: int) -> int:
        return math.ceil(max(self._metrics.measure_width(sample, size) for sample in samples))

    def compute_geometry(self, container_width: int, container_height: int) -> LayoutGeometry:
        dot_height = math.floor(container_height / self._dot_baseline_rows)
        font_size = self._metrics.font_size_for(dot_height)
        glyph_size = self.boosted(font_size)

        line_column_width = self._widest(LINE_CODE_SAMPLES, glyph_size) + LINE_COLUMN_PADDING

        unit_width = max(
            math.ceil(self._metrics.measure_width(self._unit_label, glyph_size)) + UNIT_PADDING,
            math.floor(font_size * UNIT_WIDTH_FACTOR),
        )
        number_width = self._widest(ETA_DIGIT_SAMPLES, glyph_size)
        eta_column_width = number_width + ETA_TOKEN_GAP + unit_width + ETA_COLUMN_PADDING

        destination_width = max(
            MIN_DESTINATION_WIDTH,
            container_width - line_column_width - eta_column_width - COLUMN_GAPS,
        )
        return LayoutGeometry(
            row_height=math.ceil(container_height / self._max_rows),
            dot_height=dot_height,
            font_size=font_size,
            line_column_width=line_column_width,
            eta_column_width=eta_column_width,
            destination_width=destination_width,
            unit_width=unit_width,
        )

    def layout_destination(self, text: str, destination_width: float, font_size: int) -> DestinationLayout:
        """Pick static or scrolling mode for a destination.

        Scrolling starts `scroll_activation_margin` before the text would be
        cut off; a width exactly on the boundary stays static.
        """
        glyph_size = self.boosted(font_size)
        text_width = self._metrics.measure_width(text, glyph_size)
        available_width = destination_width - DESTINATION_INSET

        if text_width <= destination_width - self._scroll_activation_margin:
            return DestinationLayout(
                mode=STATIC,
                text=self._metrics.truncate_to_width(text, glyph_size, available_width),
                image_width=destination_width,
                clip_width=available_width,
            )

        repeated = (text + SCROLL_SEPARATOR) * SCROLL_REPETITIONS
        total_width = self._metrics.measure_width(repeated, glyph_size)
        image_width = max(destination_width * 2, total_width + SCROLL_EXTRA_WIDTH)
        return DestinationLayout(
            mode=SCROLLING,
            text=repeated,
            image_width=image_width,
            clip_width=image_width,
            total_width=total_width,
            duration_seconds=total_width / self._scroll_speed,
        )


__all__ = [
    "DestinationLayout",
    "LayoutEngine",
    "LayoutGeometry",
    "SCROLLING",
    "STATIC",
    "format_line_code",
]
