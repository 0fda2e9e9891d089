"""
Image Editor: local PySide6 UI
- Gemini API key comes from the API_KEY environment variable (or .env)
- Flow: load image (default URL or file) -> describe the edit -> Generate Image
- PySide6, requests, Pillow, google-genai required

Usage (local):
  > export API_KEY=...
  > python main.py
"""

from __future__ import annotations  # forward references in type hints

import asyncio  # controller coroutines are scheduled on the Qt-driven loop
import logging
import sys
from typing import Optional

from PIL import ImageQt  # PIL -> Qt image conversion

from PySide6 import QtAsyncio  # asyncio event loop backed by the Qt event loop
from PySide6.QtCore import Qt
from PySide6.QtGui import QPixmap, QImage
from PySide6.QtWidgets import (
    QApplication, QWidget, QSplitter, QVBoxLayout, QHBoxLayout, QLabel,
    QPushButton, QTextEdit, QFileDialog, QMessageBox, QStackedLayout
)

from imgedit import EditorController, EditorState, ImageCodec, ImageData, ImageEditClient
from imgedit.config import Settings, configure_logging, get_settings

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = "Image will appear here"
FILE_FILTER = "Images (*.png *.jpg *.jpeg *.webp)"

# ----------------------------- image panel ------------------------------------
class ImagePanel(QWidget):  # titled image slot with placeholder and busy overlay
    def __init__(self, title: str, busy_text: str, parent: Optional[QWidget] = None):
        super().__init__(parent)
        layout = QVBoxLayout(self)
        header = QLabel(f"<b>{title}</b>"); header.setAlignment(Qt.AlignCenter)
        header.setStyleSheet("font-size:16px;")

        self.view = QLabel(PLACEHOLDER_TEXT)  # shows the pixmap, or the placeholder text
        self.view.setAlignment(Qt.AlignCenter)
        self.view.setMinimumSize(320, 320)
        self.view.setStyleSheet("border: 2px dashed #555; color: #888;")

        self.overlay = QLabel(busy_text)  # shown instead of the view while busy
        self.overlay.setAlignment(Qt.AlignCenter)
        self.overlay.setStyleSheet("background: rgba(0,0,0,150); color: #eee; font-weight: bold;")

        self.stack = QStackedLayout()
        self.stack.addWidget(self.view); self.stack.addWidget(self.overlay)
        layout.addWidget(header); layout.addLayout(self.stack, 1)

        self.image: Optional[ImageData] = None  # currently displayed image
        self.pixmap: Optional[QPixmap] = None

    def set_image(self, image: Optional[ImageData]) -> None:
        if image is self.image:  # same object, nothing to redraw
            return
        self.image = image
        if image is None:
            self.pixmap = None
            self.view.clear(); self.view.setText(PLACEHOLDER_TEXT)
            return
        try:
            pil_img = image.to_pil().convert("RGBA")
        except Exception as e:  # undecodable bytes still count as an image in state
            logger.error("Cannot display %r: %s", image, e)
            self.pixmap = None
            self.view.clear(); self.view.setText(f"Cannot display {image.mime_type}")
            return
        self.pixmap = QPixmap.fromImage(QImage(ImageQt.ImageQt(pil_img)))
        self._rescale()

    def set_busy(self, busy: bool) -> None:
        self.stack.setCurrentWidget(self.overlay if busy else self.view)

    def resizeEvent(self, event):  # keep the pixmap fitted to the panel
        super().resizeEvent(event)
        self._rescale()

    def _rescale(self) -> None:
        if self.pixmap is not None:
            self.view.setPixmap(self.pixmap.scaled(self.view.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation))

# ----------------------------- controls panel ---------------------------------
class ControlsPanel(QWidget):  # upload -> prompt -> generate, plus the error box
    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        layout = QVBoxLayout(self)
        title = QLabel("<b>Controls</b>"); title.setStyleSheet("font-size:16px;")
        layout.addWidget(title)

        # (1) image choice
        layout.addWidget(QLabel("1. Choose an Image"))
        r1 = QHBoxLayout()
        self.btn_upload = QPushButton("Upload a file")
        self.btn_save = QPushButton("Save result"); self.btn_save.setEnabled(False)
        r1.addWidget(self.btn_upload); r1.addWidget(self.btn_save); r1.addStretch(1)
        layout.addLayout(r1)
        layout.addWidget(QLabel("<small>PNG or JPG</small>"))

        # (2) edit instruction
        layout.addWidget(QLabel("2. Describe Your Edit"))
        self.txt_prompt = QTextEdit()
        self.txt_prompt.setPlaceholderText("e.g., Add a retro filter, make it black and white, remove the car in the background...")
        self.txt_prompt.setFixedHeight(100)
        self.btn_generate = QPushButton("Generate Image")
        layout.addWidget(self.txt_prompt); layout.addWidget(self.btn_generate)

        # (3) error box
        self.lbl_error = QLabel(); self.lbl_error.setWordWrap(True)
        self.lbl_error.setStyleSheet("background:#5c1d1d; border:1px solid #b33; color:#fbb; padding:6px;")
        self.lbl_error.hide()
        layout.addWidget(self.lbl_error)
        layout.addStretch(1)

    def set_error(self, message: Optional[str]) -> None:
        if message:
            self.lbl_error.setText(f"<b>An error occurred:</b><br>{message}"); self.lbl_error.show()
        else:
            self.lbl_error.clear(); self.lbl_error.hide()

# ----------------------------- main window ------------------------------------
class MainWindow(QWidget):  # left: controls, right: original and edited images
    def __init__(self, controller: EditorController):
        super().__init__()
        self.setWindowTitle("Gemini Image Editor")
        self.resize(1400, 800)
        self.controller = controller

        self.controls = ControlsPanel()
        self.original = ImagePanel("Original", "Loading...")
        self.edited = ImagePanel("Edited", "Generating...")
        images = QWidget(); row = QHBoxLayout(images)
        row.addWidget(self.original, 1); row.addWidget(self.edited, 1)

        splitter = QSplitter(Qt.Horizontal)
        splitter.addWidget(self.controls); splitter.addWidget(images)
        splitter.setSizes([420, 980])

        self.status = QLabel("status: idle")
        root = QVBoxLayout(self)
        root.addWidget(splitter, 1); root.addWidget(self.status)

        # signals
        self.controls.btn_upload.clicked.connect(self.choose_file)
        self.controls.btn_save.clicked.connect(self.save_result)
        self.controls.btn_generate.clicked.connect(self.generate)
        self.controls.txt_prompt.textChanged.connect(self.on_prompt_changed)

        self._tasks: set = set()  # strong refs so running coroutines are not collected
        self.controller.subscribe(self.render)
        self.render(self.controller.state)

    def render(self, state: EditorState) -> None:  # state -> widgets, nothing else
        self.original.set_image(state.source_image); self.original.set_busy(state.source_loading)
        self.edited.set_image(state.edited_image); self.edited.set_busy(state.editing)
        self.controls.txt_prompt.setEnabled(state.prompt_enabled)
        self.controls.btn_generate.setEnabled(state.can_submit)
        self.controls.btn_generate.setText("Generating..." if state.editing else "Generate Image")
        self.controls.btn_save.setEnabled(state.edited_image is not None)
        self.controls.set_error(state.error)
        self.status.setText(f"status: {describe_status(state)}")

    def run(self, coro) -> None:  # schedule a controller coroutine on the running loop
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def choose_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Choose an image", filter=FILE_FILTER)
        if not path:
            return
        self.run(self.controller.select_file(path))

    def on_prompt_changed(self) -> None:
        self.controller.set_prompt(self.controls.txt_prompt.toPlainText())

    def generate(self) -> None:
        self.run(self.controller.submit())

    def save_result(self) -> None:
        image = self.controller.state.edited_image
        if image is None:
            QMessageBox.information(self, "Notice", "There is no edited image to save.")
            return
        path, _ = QFileDialog.getSaveFileName(self, "Save result", filter="PNG (*.png);;JPEG (*.jpg *.jpeg)")
        if not path:
            return
        try:
            save_image(image, path)
        except (OSError, ValueError) as e:
            QMessageBox.critical(self, "Error", f"Saving failed: {e}")
            return
        self.status.setText(f"status: saved {path}")


def describe_status(state: EditorState) -> str:
    if state.source_loading:
        return "loading image..."
    if state.editing:
        return "generating..."
    if state.error:
        return "error"
    return "idle"


def save_image(image: ImageData, path: str) -> None:
    pil_img = image.to_pil()
    if path.lower().endswith(".png"):
        pil_img.save(path, format="PNG")
    else:  # JPEG has no alpha channel
        pil_img.convert("RGB").save(path, format="JPEG")


def build_controller(settings: Settings) -> EditorController:
    codec = ImageCodec(timeout=settings.request_timeout, max_size=settings.max_image_bytes)
    edit_client = ImageEditClient.from_settings(settings)
    return EditorController(codec, edit_client, default_image_url=settings.default_image_url)

# ----------------------------- entry point ------------------------------------
def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = QApplication(sys.argv)
    window = MainWindow(build_controller(settings))
    window.show()
    # the loop starts with the default image download and keeps serving UI events
    QtAsyncio.run(window.controller.load_default(), keep_running=True, quit_qapp=True)
    sys.exit(0)


if __name__ == "__main__":
    run()
