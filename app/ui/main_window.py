from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QMainWindow

from .chart_view import ChartView
from .error_dock import ErrorDock


class MainWindow(QMainWindow):
    def __init__(self, symbol: str = 'BTCUSDT', interval: str = '1m', options: Optional[dict] = None) -> None:
        super().__init__()
        self.setWindowTitle('Kline Chart')

        self.error_dock = ErrorDock()
        self.chart_view = ChartView(symbol=symbol, interval=interval, options=options, error_sink=self.error_dock)
        self.setCentralWidget(self.chart_view)
        self.addDockWidget(Qt.DockWidgetArea.BottomDockWidgetArea, self.error_dock)

    def showEvent(self, event) -> None:
        super().showEvent(event)
        if not getattr(self, '_started', False):
            self._started = True
            self.chart_view.start()

    def closeEvent(self, event) -> None:
        self.chart_view.shutdown()
        super().closeEvent(event)
