from __future__ import annotations

import math

import pytest

from departure_board.rendering.text_metrics import TextMetrics, escape_text

SIZE = 24
SAMPLES = [
    "S+U Alexanderplatz Bhf (Berlin)",
    "Turmstr.",
    "Flughafen BER Terminal 1-2",
    "WWWWWWWWWWWW",
    "i",
]


class CountingMetrics(TextMetrics):
    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    def measure_width(self, text: str, size: int, weight: str = "heavy") -> float:
        self.calls += 1
        return super().measure_width(text, size, weight)


@pytest.fixture(scope="module")
def metrics() -> TextMetrics:
    return TextMetrics()


def test_measure_width_is_deterministic_and_grows(metrics: TextMetrics) -> None:
    first = metrics.measure_width("Turmstr.", SIZE)
    second = metrics.measure_width("Turmstr.", SIZE)

    assert first == second
    assert first > 0
    assert metrics.measure_width("Turmstr. Ost", SIZE) > first
    assert metrics.measure_width("Turmstr.", SIZE * 2) > first
    assert metrics.measure_width("", SIZE) == 0


def test_font_size_for() -> None:
    assert TextMetrics.font_size_for(60) == 46
    assert TextMetrics.font_size_for(100, factor=0.5) == 50
    assert TextMetrics.font_size_for(5) == 10
    assert TextMetrics.font_size_for(0) == 10


def test_truncate_returns_text_that_fits_unchanged(metrics: TextMetrics) -> None:
    width = metrics.measure_width("Turmstr.", SIZE)

    assert metrics.truncate_to_width("Turmstr.", SIZE, width) == "Turmstr."


@pytest.mark.parametrize("text", SAMPLES)
@pytest.mark.parametrize("fraction", [0.1, 0.33, 0.5, 0.9])
def test_truncate_gives_longest_fitting_prefix(metrics: TextMetrics, text: str, fraction: float) -> None:
    budget = metrics.measure_width(text, SIZE) * fraction

    truncated = metrics.truncate_to_width(text, SIZE, budget)

    assert text.startswith(truncated)
    assert metrics.measure_width(truncated, SIZE) <= budget
    if len(truncated) < len(text):
        assert metrics.measure_width(text[: len(truncated) + 1], SIZE) > budget


def test_truncate_zero_budget_gives_empty_string(metrics: TextMetrics) -> None:
    assert metrics.truncate_to_width("Alexanderplatz", SIZE, 0) == ""


def test_truncate_uses_logarithmic_measurements() -> None:
    counting = CountingMetrics()
    text = "Flughafen BER Terminal 1-2 via S+U Hermannstr. und Schönefeld"
    budget = counting.measure_width(text, SIZE) / 3
    counting.calls = 0

    counting.truncate_to_width(text, SIZE, budget)

    assert counting.calls <= math.ceil(math.log2(len(text))) + 1


def test_escape_text() -> None:
    assert escape_text('U8 <Wittenau> & "Ost"') == 'U8 &lt;Wittenau&gt; &amp; "Ost"'
