from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from PyQt6.QtCore import QTimer
from PyQt6.QtGui import QImage

from core.errors import UninitializedStateError
from core.models import Candle, PlotConfig, VisibleWindow
from core.window_model import compute_window

from .kline_renderer import KlineRenderer

logger = logging.getLogger(__name__)


class KlineChart:
    """
    Live candlestick chart drawn into an offscreen QImage.

    initialize() replaces the series and draws immediately. update() merges one
    candle (replace the last one on equal time, append otherwise) and queues a
    redraw on the next frame tick; any number of updates inside one frame
    interval produce a single redraw that reads the series as it is when the
    timer fires. The empty frame drawn by the constructor is also passed to
    render_callback.
    """

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        render_callback: Optional[Callable[[QImage], None]] = None,
        config: Optional[PlotConfig] = None,
    ) -> None:
        self._config = config if config is not None else PlotConfig.from_options(options)
        self._render_callback = render_callback
        self._renderer = KlineRenderer(self._config)
        self._series: List[Candle] = []
        self._image = QImage(self._config.width, self._config.height, QImage.Format.Format_ARGB32_Premultiplied)
        self._dirty = False
        self._render_count = 0
        self._redraw_timer = QTimer()
        self._redraw_timer.setSingleShot(True)
        self._redraw_timer.timeout.connect(self._flush_redraw)
        self.draw()

    @property
    def config(self) -> PlotConfig:
        return self._config

    @property
    def image(self) -> QImage:
        return self._image

    @property
    def series(self) -> Tuple[Candle, ...]:
        return tuple(self._series)

    @property
    def render_count(self) -> int:
        return self._render_count

    @property
    def has_pending_redraw(self) -> bool:
        return self._dirty

    def set_render_callback(self, callback: Optional[Callable[[QImage], None]]) -> None:
        self._render_callback = callback

    def visible_window(self) -> VisibleWindow:
        return compute_window(self._series, self._config)

    def initialize(self, series: Iterable[Sequence[Any]]) -> None:
        self._series = [row if isinstance(row, Candle) else Candle.from_row(row) for row in series]
        self._cancel_redraw()
        self.draw()

    def update(self, candle: Sequence[Any]) -> None:
        if not self._series:
            raise UninitializedStateError()
        if not isinstance(candle, Candle):
            candle = Candle.from_row(candle)
        if candle.time == self._series[-1].time:
            self._series[-1] = candle
        else:
            self._series.append(candle)
        self._schedule_redraw()

    def flush(self) -> None:
        if self._dirty:
            self._cancel_redraw()
            self.draw()

    def draw(self) -> None:
        window = self.visible_window()
        self._renderer.render_image(self._image, window)
        self._render_count += 1
        if self._render_callback is not None:
            self._render_callback(self._image)

    def stop(self) -> None:
        self._cancel_redraw()

    def _schedule_redraw(self) -> None:
        self._dirty = True
        if not self._redraw_timer.isActive():
            self._redraw_timer.start(self._config.frame_interval_ms)

    def _cancel_redraw(self) -> None:
        self._dirty = False
        self._redraw_timer.stop()

    def _flush_redraw(self) -> None:
        if not self._dirty:
            return
        self._dirty = False
        try:
            self.draw()
        except Exception:
            # Keep the last good frame on screen; the next update schedules another attempt.
            logger.exception('kline redraw failed')
