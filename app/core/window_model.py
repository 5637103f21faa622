from __future__ import annotations

import math
from typing import List, Sequence

import numpy as np

from .models import Candle, PlotConfig, VisibleWindow


def visible_slice(series: Sequence[Candle], display_amount: int) -> List[Candle]:
    if display_amount <= 0 or not series:
        return []
    return list(series[-display_amount:])


def compute_window(series: Sequence[Candle], config: PlotConfig) -> VisibleWindow:
    """Derive the drawn slice and its time/price bounds. Recomputed from scratch on every draw."""
    candles = visible_slice(series, config.display_amount)
    if not candles:
        return VisibleWindow()
    arr = np.asarray(candles, dtype=np.float64)
    times = arr[:, 0]
    prices = arr[:, 1:5]
    return VisibleWindow(
        candles=tuple(candles),
        x_min=_finite_or(np.nanmin(times), math.inf),
        x_max=_finite_or(np.nanmax(times), -math.inf),
        y_min=_finite_or(np.nanmin(prices), math.inf),
        y_max=_finite_or(np.nanmax(prices), -math.inf),
    )


def _finite_or(value: float, fallback: float) -> float:
    # An all-NaN slice yields NaN from nanmin/nanmax.
    value = float(value)
    return fallback if math.isnan(value) else value
