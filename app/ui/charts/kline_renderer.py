from __future__ import annotations

import math

import pyqtgraph as pg
from PyQt6.QtCore import QLineF, QRectF, Qt
from PyQt6.QtGui import QFont, QImage, QPainter, QTextOption

from core.geometry import box_width, candle_geometry, map_price, tick_values
from core.models import PlotConfig, VisibleWindow


class KlineRenderer:
    """
    Full-frame painter for the kline chart.

    Each render() repaints the whole canvas in a fixed order: background, price
    axis line, price ticks and labels, then one body+wick glyph per visible candle.
    No state survives between frames except the pens/brushes built from the config.
    """

    def __init__(self, config: PlotConfig) -> None:
        self.config = config
        self._background = pg.mkBrush(config.background_color)
        self._bullish = pg.mkBrush(config.bullish_color)
        self._bearish = pg.mkBrush(config.bearish_color)
        self._axis_pen = pg.mkPen(config.axis_color, width=config.axis_line_width)
        self._label_pen = pg.mkPen(config.label_color)
        self._font = QFont(config.label_font_family)
        self._font.setPixelSize(config.label_font_px)
        self._label_option = QTextOption(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter)
        self._label_option.setWrapMode(QTextOption.WrapMode.NoWrap)

    def render_image(self, image: QImage, window: VisibleWindow) -> int:
        painter = QPainter(image)
        try:
            return self.render(painter, window)
        finally:
            painter.end()

    def render(self, painter: QPainter, window: VisibleWindow) -> int:
        self._draw_background(painter)
        self._draw_axis(painter)
        if window.is_empty:
            return 0
        self._draw_ticks(painter, window)
        return self._draw_candles(painter, window)

    def _draw_background(self, painter: QPainter) -> None:
        cfg = self.config
        painter.fillRect(QRectF(0, 0, cfg.width, cfg.height), self._background)

    def _draw_axis(self, painter: QPainter) -> None:
        cfg = self.config
        x = cfg.axis_x
        painter.setPen(self._axis_pen)
        painter.drawLine(QLineF(x, 0, x, cfg.height))

    def _draw_ticks(self, painter: QPainter, window: VisibleWindow) -> None:
        cfg = self.config
        tick_x = cfg.axis_x
        label_x = tick_x + cfg.tick_width + cfg.tick_label_gap
        label_w = max(1.0, cfg.width - label_x)
        label_h = cfg.label_font_px * 2
        painter.setFont(self._font)
        for tick in tick_values(window, cfg.tick_count):
            tick_y = map_price(tick, window, cfg)
            painter.setPen(self._label_pen)
            painter.drawText(
                QRectF(label_x, tick_y - label_h / 2.0, label_w, label_h),
                f"{tick:.{cfg.label_precision}f}",
                self._label_option,
            )
            painter.setPen(self._axis_pen)
            painter.drawLine(QLineF(tick_x, tick_y, tick_x + cfg.tick_width, tick_y))

    def _draw_candles(self, painter: QPainter, window: VisibleWindow) -> int:
        cfg = self.config
        bw = box_width(cfg, window.count)
        ww = cfg.wick_width
        drawn = 0
        for candle in window.candles:
            x, open_y, high_y, low_y, close_y = candle_geometry(candle, window, cfg)
            if not all(math.isfinite(v) for v in (x, open_y, high_y, low_y, close_y)):
                continue
            # Smaller y is a higher price, so close_y < open_y is an up candle.
            brush = self._bullish if close_y < open_y else self._bearish
            painter.fillRect(QRectF(x, min(open_y, close_y), bw, abs(close_y - open_y)), brush)
            painter.fillRect(
                QRectF(x + bw / 2.0 - ww / 2.0, min(high_y, low_y), ww, abs(high_y - low_y)),
                brush,
            )
            drawn += 1
        return drawn
