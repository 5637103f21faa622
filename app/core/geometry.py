"""
Pixel mapping for the kline chart.

Everything here is a pure function of (value, window bounds, config). A domain
whose bounds are equal or non-finite (single candle, flat price, empty window)
maps to the centre of the plot area instead of dividing by zero.
"""

from __future__ import annotations

import math
from typing import List, NamedTuple

from .models import Candle, PlotConfig, VisibleWindow


class CandleGeometry(NamedTuple):
    x: float
    open_y: float
    high_y: float
    low_y: float
    close_y: float


def _is_degenerate(lo: float, hi: float) -> bool:
    return not (math.isfinite(lo) and math.isfinite(hi)) or hi <= lo


def map_time(t: float, window: VisibleWindow, config: PlotConfig) -> float:
    left = config.margin.left
    plot_width = config.plot_width
    if _is_degenerate(window.x_min, window.x_max):
        return left + plot_width / 2.0
    return left + (t - window.x_min) / (window.x_max - window.x_min) * plot_width


def map_price(p: float, window: VisibleWindow, config: PlotConfig) -> float:
    top = config.margin.top
    plot_height = config.plot_height
    if _is_degenerate(window.y_min, window.y_max):
        return top + plot_height / 2.0
    y = (p - window.y_min) / (window.y_max - window.y_min) * plot_height
    # Pixel rows grow downward while prices grow upward.
    return plot_height - y + top


def box_width(config: PlotConfig, count: int) -> float:
    count = max(1, count)
    return max(config.axis_length / count, config.min_box_width) - config.box_gap


def tick_values(window: VisibleWindow, tick_count: int) -> List[float]:
    if window.is_empty:
        return []
    if tick_count <= 1 or _is_degenerate(window.y_min, window.y_max):
        return [window.y_min]
    unit = (window.y_max - window.y_min) / (tick_count - 1)
    return [window.y_min + unit * i for i in range(tick_count)]


def candle_geometry(candle: Candle, window: VisibleWindow, config: PlotConfig) -> CandleGeometry:
    return CandleGeometry(
        map_time(candle.time, window, config),
        map_price(candle.open, window, config),
        map_price(candle.high, window, config),
        map_price(candle.low, window, config),
        map_price(candle.close, window, config),
    )
