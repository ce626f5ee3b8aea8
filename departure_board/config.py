"""Configuration loader for the LED departure board."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Any

from dotenv import load_dotenv
import yaml

DEFAULT_ENDPOINTS = (
    "https://v6.bvg.transport.rest",
    "https://v6.vbb.transport.rest",
)


@dataclass(frozen=True)
class BoardConfig:
    """What the board shows and how often it refreshes."""

    stop_query: str
    max_rows: int = 5
    dot_baseline_rows: int = 6
    look_ahead_minutes: int = 60
    refresh_interval_ms: int = 30000


@dataclass(frozen=True)
class DisplayConfig:
    """Display geometry and LED look."""

    width: int
    height: int
    text_boost: float = 1.21
    led_scale: float = 0.7
    attenuate_glow: float = 0.9
    font_path: str | None = None
    font_bold_path: str | None = None


@dataclass(frozen=True)
class ApiConfig:
    """Upstream transit API endpoints, in priority order."""

    endpoints: tuple[str, ...] = DEFAULT_ENDPOINTS
    timeout_seconds: float = 10
    suggestion_debounce_ms: int = 300


@dataclass(frozen=True)
class FilterConfig:
    """Tolerances applied when filtering departures."""

    past_tolerance_minutes: int = 5
    stale_realtime_minutes: int = 10
    max_stale_deviation_minutes: int = 15


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str
    log_dir: str


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    board: BoardConfig
    display: DisplayConfig
    api: ApiConfig
    filter: FilterConfig
    log: LoggingConfig


def _require_key(mapping: dict[str, Any], key: str, context: str) -> Any:
    if key not in mapping:
        raise ValueError(f"Missing required key '{key}' in {context} config")
    return mapping[key]


def _section(data: dict[str, Any], key: str, required: bool = True) -> dict[str, Any]:
    if key not in data:
        if required:
            raise ValueError(f"Missing required section '{key}'")
        return {}
    section = data[key]
    if not isinstance(section, dict):
        raise ValueError(f"'{key}' config must be a mapping")
    return section


def _optional(mapping: dict[str, Any], key: str, default: Any, kind: type) -> Any:
    value = mapping.get(key, default)
    if value is None:
        return default
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for '{key}': {value!r}") from exc


def _parse_endpoints(api_section: dict[str, Any]) -> tuple[str, ...]:
    endpoints = api_section.get("endpoints", list(DEFAULT_ENDPOINTS))
    if not isinstance(endpoints, list) or not endpoints:
        raise ValueError("'api.endpoints' must be a non-empty list of base URLs")
    return tuple(str(endpoint).rstrip("/") for endpoint in endpoints)


def load_config(path: str = "config/config.yaml") -> AppConfig:
    """Load application configuration from a YAML file."""
    load_dotenv()
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise ValueError(f"Config file not found: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping at the top level")

    board_section = _section(data, "board")
    display_section = _section(data, "display")
    logging_section = _section(data, "logging")
    api_section = _section(data, "api", required=False)
    filter_section = _section(data, "filter", required=False)

    stop_query = os.environ.get("BOARD_STOP_QUERY") or _require_key(board_section, "stop_query", "board")

    board = BoardConfig(
        stop_query=str(stop_query or "").strip(),
        max_rows=_optional(board_section, "max_rows", 5, int),
        dot_baseline_rows=_optional(board_section, "dot_baseline_rows", 6, int),
        look_ahead_minutes=_optional(board_section, "look_ahead_minutes", 60, int),
        refresh_interval_ms=_optional(board_section, "refresh_interval_ms", 30000, int),
    )
    if board.max_rows < 1 or board.dot_baseline_rows < 1:
        raise ValueError("'max_rows' and 'dot_baseline_rows' must be positive")

    display = DisplayConfig(
        width=_require_key(display_section, "width", "display"),
        height=_require_key(display_section, "height", "display"),
        text_boost=_optional(display_section, "text_boost", 1.21, float),
        led_scale=_optional(display_section, "led_scale", 0.7, float),
        attenuate_glow=_optional(display_section, "attenuate_glow", 0.9, float),
        font_path=display_section.get("font_path"),
        font_bold_path=display_section.get("font_bold_path"),
    )
    if not 0.4 <= display.attenuate_glow <= 1.0:
        raise ValueError("'attenuate_glow' must be between 0.4 and 1.0")

    api = ApiConfig(
        endpoints=_parse_endpoints(api_section),
        timeout_seconds=_optional(api_section, "timeout_seconds", 10, float),
        suggestion_debounce_ms=_optional(api_section, "suggestion_debounce_ms", 300, int),
    )

    filter_config = FilterConfig(
        past_tolerance_minutes=_optional(filter_section, "past_tolerance_minutes", 5, int),
        stale_realtime_minutes=_optional(filter_section, "stale_realtime_minutes", 10, int),
        max_stale_deviation_minutes=_optional(filter_section, "max_stale_deviation_minutes", 15, int),
    )

    logging = LoggingConfig(
        level=_require_key(logging_section, "level", "logging"),
        log_dir=_require_key(logging_section, "log_dir", "logging"),
    )

    return AppConfig(board=board, display=display, api=api, filter=filter_config, log=logging)
