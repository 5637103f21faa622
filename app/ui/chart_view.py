import logging
import threading
from typing import List, Optional

import websocket
from PyQt6.QtCore import QThread, Qt, pyqtSignal
from PyQt6.QtGui import QImage, QPainter
from PyQt6.QtWidgets import QHBoxLayout, QLabel, QVBoxLayout, QWidget

from core.data_providers import binance
from core.errors import FeedError, UninitializedStateError
from core.models import Candle, PlotConfig
from .charts.kline_chart import KlineChart

logger = logging.getLogger(__name__)


class HistoryFetchWorker(QThread):
    data_ready = pyqtSignal(list)
    error = pyqtSignal(str)

    def __init__(self, symbol: str, interval: str, limit: int) -> None:
        super().__init__()
        self.symbol = symbol
        self.interval = interval
        self.limit = limit

    def run(self) -> None:
        try:
            candles = binance.fetch_klines(self.symbol, self.interval, self.limit)
            self.data_ready.emit(candles)
        except Exception as exc:
            self.error.emit(str(exc))


class LiveKlineWorker(QThread):
    kline = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(self, symbol: str, interval: str, reconnect_delay_s: float = 2.0) -> None:
        super().__init__()
        self.symbol = symbol
        self.interval = interval
        self.reconnect_delay_s = reconnect_delay_s
        self._stop = False
        self._ws: Optional[websocket.WebSocketApp] = None
        # Guards _stop and _ws against stop() from the GUI thread.
        self._ws_lock = threading.Lock()
        self._stopped = threading.Event()

    def stop(self) -> None:
        with self._ws_lock:
            self._stop = True
            ws = self._ws
        self._stopped.set()
        if ws is None:
            return
        try:
            ws.close()
        except Exception:
            logger.debug('websocket close failed', exc_info=True)

    def _make_socket(self, url: str, on_open, on_message, on_error) -> websocket.WebSocketApp:
        return websocket.WebSocketApp(url, on_open=on_open, on_message=on_message, on_error=on_error)

    def _open_socket(self, url: str, on_open, on_message, on_error) -> Optional[websocket.WebSocketApp]:
        with self._ws_lock:
            if self._stop:
                return None
            self._ws = self._make_socket(url, on_open, on_message, on_error)
            return self._ws

    def run(self) -> None:
        url = binance.stream_url(self.symbol, self.interval)

        def on_open(ws):
            # run_forever resets keep_running, so a close() that landed before the connect is lost.
            if self._stop:
                ws.close()

        def on_message(ws, message):
            if self._stop:
                return
            try:
                candle = binance.parse_kline_message(message)
            except FeedError as exc:
                self.error.emit(str(exc))
                return
            if candle is not None:
                self.kline.emit(candle)

        def on_error(ws, err):
            if not self._stop:
                self.error.emit(f'Live stream error: {err}')

        while True:
            ws = self._open_socket(url, on_open, on_message, on_error)
            if ws is None:
                break
            if not self._stop:
                ws.run_forever(ping_interval=20, ping_timeout=10)
            if self._stopped.wait(self.reconnect_delay_s):
                break


class KlineCanvas(QWidget):
    def __init__(self, config: PlotConfig) -> None:
        super().__init__()
        self._image: Optional[QImage] = None
        self.setFixedSize(config.width, config.height)

    def set_image(self, image: QImage) -> None:
        self._image = image
        self.update()

    def paintEvent(self, event) -> None:
        if self._image is None:
            return
        painter = QPainter(self)
        try:
            painter.drawImage(0, 0, self._image)
        finally:
            painter.end()


class ChartView(QWidget):
    def __init__(
        self,
        symbol: str = 'BTCUSDT',
        interval: str = '1m',
        options: Optional[dict] = None,
        error_sink=None,
    ) -> None:
        super().__init__()
        self.symbol = binance.normalize_symbol(symbol)
        self.interval = interval
        self.error_sink = error_sink
        self._history_worker: Optional[HistoryFetchWorker] = None
        self._live_worker: Optional[LiveKlineWorker] = None

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        header = QWidget()
        header.setObjectName('TopToolbar')
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(6, 6, 6, 4)
        self.title_label = QLabel(f'{self.symbol} · {self.interval}')
        self.status_label = QLabel('Loading…')
        header_layout.addWidget(self.title_label)
        header_layout.addStretch(1)
        header_layout.addWidget(self.status_label)
        layout.addWidget(header)

        self.chart = KlineChart(options)
        self.canvas = KlineCanvas(self.chart.config)
        self.chart.set_render_callback(self.canvas.set_image)
        self.canvas.set_image(self.chart.image)
        layout.addWidget(self.canvas, alignment=Qt.AlignmentFlag.AlignCenter)

    def start(self) -> None:
        self.load_history()
        self.start_live()

    def load_history(self) -> None:
        if self._history_worker is not None and self._history_worker.isRunning():
            return
        worker = HistoryFetchWorker(self.symbol, self.interval, self.chart.config.display_amount)
        worker.data_ready.connect(self._on_history_ready)
        worker.error.connect(self._on_error)
        self._history_worker = worker
        worker.start()

    def start_live(self) -> None:
        self.stop_live()
        worker = LiveKlineWorker(self.symbol, self.interval)
        worker.kline.connect(self._on_live_kline)
        worker.error.connect(self._on_error)
        self._live_worker = worker
        worker.start()

    def stop_live(self) -> None:
        if self._live_worker is None:
            return
        self._live_worker.stop()
        self._live_worker.wait(2000)
        self._live_worker = None

    def shutdown(self) -> None:
        self.stop_live()
        self.chart.stop()
        if self._history_worker is not None:
            self._history_worker.wait(2000)

    def _on_history_ready(self, candles: List[Candle]) -> None:
        if not candles:
            self._on_error(f'No history returned for {self.symbol} {self.interval}')
            return
        self.chart.initialize(candles)
        self.status_label.setText(f'{len(candles)} candles')
        logger.info('initialized %s %s with %d candles', self.symbol, self.interval, len(candles))

    def _on_live_kline(self, candle: Candle) -> None:
        try:
            self.chart.update(candle)
        except UninitializedStateError:
            # History has not landed yet; the initial fetch covers this candle.
            logger.debug('dropping live kline before history load: %s', candle)
            return
        self.status_label.setText(f'{candle.close:.2f}')

    def _on_error(self, message: str) -> None:
        logger.warning('%s', message)
        if self.error_sink is not None:
            self.error_sink.append_error(message)
