"""Board controller: refresh state machine tying data and rendering together."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
import logging
import threading
from typing import Callable

from departure_board.config import AppConfig
from departure_board.data.departures import FilterSettings, process_departures
from departure_board.data.pipeline import AllSourcesFailed, EmptyQuery, load_departures
from departure_board.data.transit_client import TransitClient, UpstreamError
from departure_board.rendering import (
    BoardFrame,
    LayoutEngine,
    LEDRenderer,
    TextMetrics,
    build_rows,
    compose_board,
    compose_message,
    render_page,
)
from departure_board.scheduling import RefreshLoop

logger = logging.getLogger(__name__)

IDLE = "IDLE"
LOADING = "LOADING"
ERROR = "ERROR"

CONFIG_ERROR_MESSAGE = "❌ FEHLER: Bitte Haltestelle einstellen. / ERROR: Please configure a stop. ❌"
UPSTREAM_ERROR_MESSAGE = "❌ API/Netzwerkfehler ❌\nVerbindung prüfen. / API/network error, check connection."


@dataclass(frozen=True)
class BoardState:
    """Snapshot of the refresh state machine."""

    status: str = IDLE
    last_refresh_at: datetime | None = None
    station_name: str = ""

    @property
    def is_loading(self) -> bool:
        return self.status == LOADING

    @property
    def has_error(self) -> bool:
        return self.status == ERROR


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BoardController:
    """Refresh the board for one stop and keep the latest rendered markup.

    Only one refresh runs at a time; a refresh requested while another is
    loading is dropped rather than queued.
    """

    def __init__(
        self,
        config: AppConfig,
        client: TransitClient | None = None,
        metrics: TextMetrics | None = None,
        renderer: LEDRenderer | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._config = config
        self._client = client or TransitClient(timeout_seconds=config.api.timeout_seconds)
        self._metrics = metrics or TextMetrics(config.display.font_path, config.display.font_bold_path)
        self._renderer = renderer or LEDRenderer(
            text_boost=config.display.text_boost,
            led_scale=config.display.led_scale,
            attenuate_glow=config.display.attenuate_glow,
        )
        self._layout = LayoutEngine(
            self._metrics,
            text_boost=config.display.text_boost,
            max_rows=config.board.max_rows,
            dot_baseline_rows=config.board.dot_baseline_rows,
        )
        self._filter_settings = FilterSettings(
            look_ahead_minutes=config.board.look_ahead_minutes,
            max_rows=config.board.max_rows,
            past_tolerance_minutes=config.filter.past_tolerance_minutes,
            stale_realtime_minutes=config.filter.stale_realtime_minutes,
            max_stale_deviation_minutes=config.filter.max_stale_deviation_minutes,
        )
        self._clock = clock
        self._stop_query = config.board.stop_query
        self._viewport = (config.display.width, config.display.height)
        self._state = BoardState()
        self._latest_output = ""
        self._lock = threading.Lock()
        self._loop = RefreshLoop(self.refresh, config.board.refresh_interval_ms / 1000.0)

    @property
    def state(self) -> BoardState:
        with self._lock:
            return self._state

    @property
    def client(self) -> TransitClient:
        return self._client

    @property
    def stop_query(self) -> str:
        return self._stop_query

    @property
    def latest_output(self) -> str:
        with self._lock:
            return self._latest_output

    def latest_page(self) -> str:
        """Latest markup wrapped in a standalone HTML page."""
        width, height = self._viewport
        state = self.state
        return render_page(
            self.latest_output,
            width,
            height,
            station_name=state.station_name or self._stop_query,
            refresh_seconds=self._config.board.refresh_interval_ms // 1000,
        )

    def set_stop_query(self, query: str) -> str | None:
        """Switch the board to another stop and refresh if it changed."""
        query = (query or "").strip()
        if not query or query == self._stop_query:
            return None
        logger.info("Stop query changed: %r -> %r", self._stop_query, query)
        self._stop_query = query
        return self.refresh()

    def resize(self, width: int, height: int) -> str | None:
        self._viewport = (width, height)
        return self.refresh()

    def start(self) -> None:
        """Refresh now and then every refresh_interval_ms in the background."""
        self._loop.start()

    def stop(self) -> None:
        self._loop.stop()

    def refresh(self) -> str | None:
        """Run one refresh cycle; returns the new markup, or None if one was already running."""
        with self._lock:
            if self._state.is_loading:
                logger.debug("Refresh already in progress; dropping request")
                return None
            self._state = replace(self._state, status=LOADING)

        try:
            frame, succeeded = self._load_frame()
            width, height = self._viewport
            geometry = self._layout.compute_geometry(width, height)
            markup = compose_board(frame, geometry, self._layout, self._renderer)
        except Exception:
            logger.exception("Refresh failed; showing error message")
            frame, succeeded = BoardFrame(rows=[], message=UPSTREAM_ERROR_MESSAGE, is_error=True), False
            markup = compose_message(frame.message, is_error=True)

        with self._lock:
            self._latest_output = markup
            if succeeded:
                self._state = BoardState(
                    status=IDLE,
                    last_refresh_at=self._clock(),
                    station_name=frame.station_name,
                )
            else:
                self._state = replace(self._state, status=ERROR)
        return markup

    def _load_frame(self) -> tuple[BoardFrame, bool]:
        query = self._stop_query
        try:
            batch = load_departures(
                query,
                self._config.api.endpoints,
                self._client,
                duration=self._config.board.look_ahead_minutes,
            )
        except EmptyQuery:
            logger.error("No stop configured; set board.stop_query")
            return BoardFrame(rows=[], message=CONFIG_ERROR_MESSAGE, is_error=True), False
        except (AllSourcesFailed, UpstreamError) as exc:
            logger.error("Departure refresh failed: %s", exc)
            return BoardFrame(rows=[], message=UPSTREAM_ERROR_MESSAGE, is_error=True), False

        now = self._clock()
        departures = process_departures(batch.departures, now, self._filter_settings)
        logger.info(
            "Showing %d of %d departures for %s",
            len(departures),
            len(batch.departures),
            batch.stop.name,
        )
        frame = BoardFrame(rows=build_rows(departures, now), station_name=batch.stop.name)
        return frame, True


__all__ = [
    "BoardController",
    "BoardState",
    "CONFIG_ERROR_MESSAGE",
    "ERROR",
    "IDLE",
    "LOADING",
    "UPSTREAM_ERROR_MESSAGE",
]
