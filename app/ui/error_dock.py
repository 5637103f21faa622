import time

from PyQt6.QtGui import QTextCursor
from PyQt6.QtWidgets import QDockWidget, QPlainTextEdit


class ErrorDock(QDockWidget):
    """
    Feed error log shown next to the chart.

    A reconnecting socket reports the same failure over and over, so a message
    equal to the previous one rewrites the last line with a repeat count instead
    of adding a new line. Old lines fall off once max_lines is reached.
    """

    def __init__(self, max_lines: int = 500) -> None:
        super().__init__('Feed errors')
        self.setObjectName('ErrorDock')
        self._last_message = None
        self._repeats = 0

        self.view = QPlainTextEdit()
        self.view.setReadOnly(True)
        self.view.setMaximumBlockCount(max_lines)
        self.view.setPlaceholderText('No feed errors.')
        self.setWidget(self.view)

    def append_error(self, message: str) -> None:
        stamp = time.strftime('%H:%M:%S')
        if message == self._last_message:
            self._repeats += 1
            self._replace_last_line(f"[{stamp}] {message} (x{self._repeats})")
            return
        self._last_message = message
        self._repeats = 1
        self.view.appendPlainText(f"[{stamp}] {message}")

    def clear_errors(self) -> None:
        self._last_message = None
        self._repeats = 0
        self.view.clear()

    def _replace_last_line(self, line: str) -> None:
        cursor = self.view.textCursor()
        cursor.movePosition(QTextCursor.MoveOperation.End)
        cursor.movePosition(QTextCursor.MoveOperation.StartOfBlock, QTextCursor.MoveMode.KeepAnchor)
        cursor.insertText(line)
