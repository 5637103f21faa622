import argparse
import faulthandler
import logging
import os
import sys
import traceback
from typing import Optional

from PyQt6.QtWidgets import QApplication

from ui.main_window import MainWindow

_FAULT_LOG_HANDLE = None

logger = logging.getLogger(__name__)


def _install_exception_logging() -> None:
    log_path = os.path.join(os.path.dirname(__file__), "exception.log")

    def _hook(exc_type, exc_value, exc_tb):
        logger.critical("unhandled exception", exc_info=(exc_type, exc_value, exc_tb))
        try:
            with open(log_path, "a", encoding="utf-8") as handle:
                handle.write("\n=== Unhandled Exception ===\n")
                traceback.print_exception(exc_type, exc_value, exc_tb, file=handle)
        except OSError:
            pass
    sys.excepthook = _hook

    import threading

    def _thread_hook(args):
        _hook(args.exc_type, args.exc_value, args.exc_traceback)
    threading.excepthook = _thread_hook


def _enable_faulthandler() -> None:
    global _FAULT_LOG_HANDLE
    log_path = os.path.join(os.path.dirname(__file__), "faulthandler.log")
    try:
        # Overwrite each run so logs reflect the current crash, not stale history.
        _FAULT_LOG_HANDLE = open(log_path, "w", encoding="utf-8")
        _FAULT_LOG_HANDLE.write(f"pid={os.getpid()}\n")
        _FAULT_LOG_HANDLE.flush()
        faulthandler.enable(_FAULT_LOG_HANDLE, all_threads=True)
    except OSError:
        faulthandler.enable(all_threads=True)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Live Binance candlestick chart.")
    ap.add_argument("--symbol", default="BTCUSDT", help="Symbol, e.g. BTCUSDT")
    ap.add_argument("--interval", default="1m", help="Kline interval, e.g. 1m, 5m, 1h")
    ap.add_argument("--display-amount", type=int, default=100, help="Number of candles kept on screen")
    ap.add_argument("--width", type=int, default=800)
    ap.add_argument("--height", type=int, default=600)
    ap.add_argument("--log-level", default="INFO")
    return ap


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _enable_faulthandler()
    _install_exception_logging()

    options = {
        "width": args.width,
        "height": args.height,
        "displayAmount": args.display_amount,
    }
    app = QApplication(sys.argv[:1])
    window = MainWindow(symbol=args.symbol, interval=args.interval, options=options)
    window.show()
    return app.exec()


if __name__ == '__main__':
    sys.exit(main())
