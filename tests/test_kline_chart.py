import os
import sys
import unittest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Allow `import core.*` like the app does when running `python app/main.py`.
REPO_ROOT = os.path.dirname(os.path.dirname(__file__))
APP_DIR = os.path.join(REPO_ROOT, "app")
if APP_DIR not in sys.path:
    sys.path.insert(0, APP_DIR)

from PyQt6.QtTest import QTest
from PyQt6.QtWidgets import QApplication

from core.errors import UninitializedStateError
from core.models import Candle
from ui.charts.kline_chart import KlineChart


class KlineChartTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = QApplication.instance() or QApplication([])

    def setUp(self):
        self.frames = []
        self.chart = KlineChart({"width": 320, "height": 200, "displayAmount": 5}, render_callback=self.frames.append)

    def tearDown(self):
        self.chart.stop()

    def _init(self):
        self.chart.initialize([(98, 9, 11, 8, 10), (99, 10, 11, 9, 10.5), (100, 10, 12, 9, 11)])

    def test_construction_draws_empty_frame(self):
        self.assertEqual(self.chart.render_count, 1)
        self.assertEqual(self.chart.image.width(), 320)
        self.assertEqual(self.chart.image.height(), 200)

    def test_construction_frame_reaches_callback(self):
        self.assertEqual(len(self.frames), 1)
        self.assertIs(self.frames[0], self.chart.image)

    def test_initialize_draws_synchronously(self):
        frames_before = len(self.frames)
        self._init()
        self.assertEqual(self.chart.render_count, 2)
        self.assertEqual(len(self.frames), frames_before + 1)
        self.assertEqual(self.chart.series[-1], Candle(100, 10, 12, 9, 11))

    def test_update_before_initialize_fails_without_drawing(self):
        with self.assertRaises(UninitializedStateError):
            self.chart.update((100, 10, 12, 9, 11))
        self.assertFalse(self.chart.has_pending_redraw)
        QTest.qWait(50)
        self.assertEqual(self.chart.render_count, 1)
        self.assertEqual(self.chart.series, ())

    def test_same_time_replaces_last_candle(self):
        self._init()
        self.chart.update((100, 10, 13, 9, 12))
        self.assertEqual(len(self.chart.series), 3)
        self.assertEqual(self.chart.series[-1], Candle(100, 10, 13, 9, 12))

    def test_new_time_appends(self):
        self._init()
        self.chart.update((101, 11, 14, 10, 13))
        self.assertEqual(len(self.chart.series), 4)
        self.assertEqual(self.chart.series[-1], Candle(101, 11, 14, 10, 13))

    def test_burst_of_updates_coalesces_into_one_redraw(self):
        self._init()
        before = self.chart.render_count
        for i in range(5):
            self.chart.update((100, 10, 12 + i, 9, 11 + i))
        self.chart.update((101, 11, 14, 10, 13))
        self.assertTrue(self.chart.has_pending_redraw)
        self.assertEqual(self.chart.render_count, before)
        QTest.qWait(self.chart.config.frame_interval_ms * 6)
        self.assertEqual(self.chart.render_count, before + 1)
        self.assertFalse(self.chart.has_pending_redraw)
        # The redraw read the series as of fire time.
        self.assertEqual(self.chart.visible_window().candles[-1], Candle(101, 11, 14, 10, 13))

    def test_flush_draws_pending_frame_immediately(self):
        self._init()
        before = self.chart.render_count
        self.chart.update((101, 11, 14, 10, 13))
        self.chart.flush()
        self.assertEqual(self.chart.render_count, before + 1)
        self.assertFalse(self.chart.has_pending_redraw)
        QTest.qWait(self.chart.config.frame_interval_ms * 3)
        self.assertEqual(self.chart.render_count, before + 1)

    def test_flush_without_pending_is_noop(self):
        self._init()
        before = self.chart.render_count
        self.chart.flush()
        self.assertEqual(self.chart.render_count, before)

    def test_initialize_supersedes_pending_redraw(self):
        self._init()
        self.chart.update((101, 11, 14, 10, 13))
        self._init()
        self.assertFalse(self.chart.has_pending_redraw)
        self.assertEqual(len(self.chart.series), 3)

    def test_visible_window_capped_by_display_amount(self):
        self._init()
        for t in range(101, 120):
            self.chart.update((t, 10, 12, 9, 11))
        self.assertEqual(len(self.chart.series), 22)
        window = self.chart.visible_window()
        self.assertEqual(window.count, 5)
        self.assertEqual(window.x_max, 119)

    def test_single_candle_series_renders(self):
        self.chart.initialize([(100, 10, 12, 9, 11)])
        self.assertEqual(self.chart.render_count, 2)


if __name__ == "__main__":
    unittest.main()
