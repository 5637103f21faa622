import math
import os
import sys
import unittest

# Allow `import core.*` like the app does when running `python app/main.py`.
REPO_ROOT = os.path.dirname(os.path.dirname(__file__))
APP_DIR = os.path.join(REPO_ROOT, "app")
if APP_DIR not in sys.path:
    sys.path.insert(0, APP_DIR)

from core.models import Candle, PlotConfig
from core.window_model import compute_window, visible_slice


def _series(n, start=0):
    # time, open, high, low, close
    return [Candle(start + i, 10 + i, 12 + i, 9 + i, 11 + i) for i in range(n)]


class VisibleSliceTests(unittest.TestCase):
    def test_slice_keeps_last_candles_in_order(self):
        series = _series(10)
        out = visible_slice(series, 3)
        self.assertEqual([c.time for c in out], [7, 8, 9])

    def test_short_series_is_returned_whole(self):
        series = _series(2)
        self.assertEqual(visible_slice(series, 100), series)

    def test_non_positive_amount_is_empty(self):
        self.assertEqual(visible_slice(_series(5), 0), [])


class ComputeWindowTests(unittest.TestCase):
    def test_window_never_exceeds_display_amount(self):
        cfg = PlotConfig(display_amount=5)
        for n in (0, 1, 4, 5, 6, 250):
            window = compute_window(_series(n), cfg)
            self.assertLessEqual(window.count, 5)
            self.assertEqual(window.count, min(n, 5))

    def test_bounds_cover_visible_slice_only(self):
        cfg = PlotConfig(display_amount=3)
        window = compute_window(_series(10), cfg)
        self.assertEqual(window.x_min, 7)
        self.assertEqual(window.x_max, 9)
        # lows of candle 7 and highs of candle 9
        self.assertEqual(window.y_min, 16)
        self.assertEqual(window.y_max, 21)

    def test_price_bounds_use_all_four_prices(self):
        cfg = PlotConfig()
        window = compute_window([Candle(1, 5, 8, 2, 6), Candle(2, 6, 7, 3, 9)], cfg)
        self.assertEqual(window.y_min, 2)
        self.assertEqual(window.y_max, 9)

    def test_empty_series_has_infinite_bounds(self):
        window = compute_window([], PlotConfig())
        self.assertTrue(window.is_empty)
        self.assertEqual(window.y_max, -math.inf)
        self.assertEqual(window.y_min, math.inf)
        self.assertEqual(window.x_max, -math.inf)
        self.assertEqual(window.x_min, math.inf)

    def test_window_is_recomputed_from_current_series(self):
        cfg = PlotConfig(display_amount=2)
        series = _series(3)
        first = compute_window(series, cfg)
        series.append(Candle(3, 100, 120, 90, 110))
        second = compute_window(series, cfg)
        self.assertEqual(first.y_max, 14)
        self.assertEqual(second.y_max, 120)
        self.assertEqual(first.count, 2)


if __name__ == "__main__":
    unittest.main()
