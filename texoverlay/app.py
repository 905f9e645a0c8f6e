"""Qt editor that shows rendered TeX fragments over its own text."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QFontDatabase, QFontMetrics, QPixmap, QTextCursor
from PySide6.QtWidgets import QApplication, QLabel, QMainWindow, QMessageBox, QPlainTextEdit

from texoverlay.config import RendererConfig
from texoverlay.errors import TexOverlayError, ToolchainExecutionError
from texoverlay.pipeline import RenderPipeline
from texoverlay.session import DocumentSession
from texoverlay.toolchain import LatexToolchain

LOGGER = logging.getLogger(__name__)


class EditorHost:
    """Host adapter over a QPlainTextEdit; annotations are pixmap labels."""

    def __init__(self, editor: QPlainTextEdit, status: Callable[[str], None] | None = None):
        self.editor = editor
        self._status = status
        self._labels: list[tuple[int, QLabel]] = []
        # Scrolling moves the text under the labels, so follow it.
        editor.updateRequest.connect(lambda _rect, _dy: self._reposition_labels())

    def text(self) -> str:
        return self.editor.toPlainText()

    def font_pixel_height(self) -> float:
        metrics = QFontMetrics(self.editor.font())
        return metrics.height() * self.editor.devicePixelRatioF()

    def add_image_annotation(self, start: int, end: int, image_path: Path, scale: float = 1.0) -> None:
        pixmap = QPixmap(str(image_path))
        if pixmap.isNull():
            raise ToolchainExecutionError(f"Could not load rendered image {image_path}")
        # Images are rasterized in device pixels; show them at logical size.
        pixmap.setDevicePixelRatio(self.editor.devicePixelRatioF() / (scale or 1.0))

        for existing_start, existing in [item for item in self._labels if item[0] == start]:
            existing.deleteLater()
            self._labels.remove((existing_start, existing))

        label = QLabel(self.editor.viewport())
        label.setPixmap(pixmap)
        label.setAutoFillBackground(True)
        label.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents, True)
        label.adjustSize()
        self._labels.append((start, label))
        self._place_label(start, label)
        label.show()

    def remove_fragment_annotations(self) -> None:
        for _start, label in self._labels:
            label.hide()
            label.deleteLater()
        self._labels.clear()

    def show_message(self, text: str) -> None:
        if self._status is not None:
            self._status(text)

    @contextmanager
    def preserve_state(self) -> Iterator[None]:
        position = self.editor.textCursor().position()
        anchor = self.editor.textCursor().anchor()
        read_only = self.editor.isReadOnly()
        try:
            yield
        finally:
            cursor = self.editor.textCursor()
            length = len(self.editor.toPlainText())
            cursor.setPosition(min(anchor, length))
            cursor.setPosition(min(position, length), QTextCursor.MoveMode.KeepAnchor)
            self.editor.setTextCursor(cursor)
            self.editor.setReadOnly(read_only)

    def _place_label(self, start: int, label: QLabel) -> None:
        cursor = QTextCursor(self.editor.document())
        cursor.setPosition(min(start, self.editor.document().characterCount() - 1))
        rect = self.editor.cursorRect(cursor)
        label.move(rect.left(), rect.top())

    def _reposition_labels(self) -> None:
        for start, label in self._labels:
            self._place_label(start, label)


class TexOverlayWindow(QMainWindow):
    def __init__(self, path: Path | None, config: RendererConfig):
        super().__init__()
        self.path = path
        self.editor = QPlainTextEdit()
        self.editor.setFont(QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont))
        if path is not None:
            self.editor.setPlainText(path.read_text(encoding="utf-8", errors="replace"))
        self.setCentralWidget(self.editor)

        self.host = EditorHost(self.editor, status=lambda text: self.statusBar().showMessage(text, 4000))
        pipeline = RenderPipeline(LatexToolchain(config), config)
        self.session = DocumentSession(self.host, pipeline)

        self.setWindowTitle(f"texoverlay - {path.name}" if path is not None else "texoverlay")
        self.resize(1100, 800)

        menu = self.menuBar().addMenu("Math")
        for label, shortcut, handler in (
            ("Preview", "F5", self._preview),
            ("Preview Selection", "Shift+F5", self._preview_selection),
            ("Remove Previews", "Escape", self._remove),
            ("Toggle Previews", "Ctrl+T", self._toggle),
        ):
            action = QAction(label, self)
            action.setShortcut(shortcut)
            action.triggered.connect(handler)
            menu.addAction(action)

        missing = pipeline.toolchain.missing_programs()
        if missing:
            self.statusBar().showMessage(f"Not found in PATH: {', '.join(missing)}")
        else:
            self.statusBar().showMessage("Ready")

    def _run(self, title: str, operation: Callable[[], object]) -> None:
        QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
        try:
            operation()
        except TexOverlayError as exc:
            LOGGER.error("%s failed: %s", title, exc)
            QMessageBox.critical(self, f"{title} failed", str(exc))
        finally:
            QApplication.restoreOverrideCursor()

    def _preview(self) -> None:
        self._run("Preview", self.session.preview)

    def _preview_selection(self) -> None:
        cursor = self.editor.textCursor()
        if not cursor.hasSelection():
            QMessageBox.information(self, "No selection", "Select the text whose math should be rendered.")
            return
        beg, end = cursor.selectionStart(), cursor.selectionEnd()
        self._run("Preview", lambda: self.session.preview_region(beg, end))

    def _remove(self) -> None:
        self._run("Remove", self.session.remove)

    def _toggle(self) -> None:
        self._run("Toggle", self.session.toggle)


def run_editor(path: Path | None, config: RendererConfig) -> int:
    app = QApplication(sys.argv)
    app.setApplicationName("texoverlay")
    window = TexOverlayWindow(path, config)
    window.show()
    return app.exec()
