from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QWidget, QVBoxLayout, QSplitter, QPushButton, QLineEdit, QSizePolicy

from config import DEFAULT_COLUMNS, DEFAULT_ROWS, MAX_GRID
from Controller.GridController import GridController
from .gridCanvas import GridCanvas
from .panel import Panel


class GridCutterGUI(QWidget):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Image Grid Cutter")
        self._init_ui()
        self.controller = GridController(self)

    def _init_ui(self):
        self.setAutoFillBackground(True)
        self.setMinimumSize(900, 600)

        # Left: image + grid, right: grid settings and actions
        mainSplitter = QSplitter(Qt.Orientation.Horizontal)

        self.imagePanel = Panel("Image")
        self.controlsPanel = Panel("Grid Settings")
        mainSplitter.addWidget(self.imagePanel)
        mainSplitter.addWidget(self.controlsPanel)
        mainSplitter.setStretchFactor(0, 3)
        mainSplitter.setStretchFactor(1, 1)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(mainSplitter)

        self._setup_toolbars()
        self._setup_canvas()
        self._setup_status()

    # ------- Helper function to build the toolBar Buttons -------
    def _setup_toolbars(self):
        self.imagePanel.add_toolbar_buttons({
            "Open Image": self._btn("Open Image"),
            "Clear Image": self._btn("Upload Different Image"),
            "Download Zip": self._btn("Download Zip"),
        })
        self.imagePanel.toolbarButtons["Open Image"].setToolTip(
            "Choose an image file. Alternatively drag & drop an image onto the canvas.")
        self.imagePanel.toolbarButtons["Clear Image"].setToolTip(
            "Removes the current image and its grid so that another image can be loaded.")
        self.imagePanel.toolbarButtons["Download Zip"].setToolTip(
            "Saves the cut pieces of the last 'Cut Image' run as one ZIP file \n"
            "(image_1.png, image_2.png, ... in row-major order).")
        self.imagePanel.toolbarButtons["Download Zip"].setEnabled(False)

        self.controlsPanel.add_grid_spinboxes(
            with_labels=True,
            grid_range=(1, MAX_GRID),
            rows_default=DEFAULT_ROWS,
            columns_default=DEFAULT_COLUMNS,
        )

    def _setup_canvas(self):
        self.canvas = GridCanvas("Drag & Drop an image here")
        self.imagePanel.set_content(self.canvas)

    def _setup_status(self):
        container = QWidget()
        v = QVBoxLayout(container)
        v.setContentsMargins(8, 4, 8, 8)
        v.setSpacing(6)

        self.resetGridButton = self._btn("Reset Grid")
        self.resetGridButton.setToolTip("Moves every grid line back to its evenly spaced default position.")
        self.cutButton = self._btn("Cut Image")
        self.cutButton.setToolTip("Cuts the image along the grid lines on this machine.")
        self.serverButton = self._btn("Process on Server (Faster for large images)")
        self.serverButton.setToolTip(
            "Sends the image to the extraction server and saves the returned ZIP file. \n"
            "If the server cannot be reached, the image is cut on this machine instead.")
        for btn in (self.resetGridButton, self.cutButton, self.serverButton):
            btn.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
            v.addWidget(btn)

        self.statusLine = QLineEdit()
        self.statusLine.setReadOnly(True)
        self.statusLine.setPlaceholderText("Load an image to start")
        self.statusLine.setFixedHeight(22)
        self.statusLine.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        self.statusLine.setStyleSheet("QLineEdit { background:#1e1e1e; color:#d8d8d8; padding:2px 6px; }")
        v.addWidget(self.statusLine)
        v.addStretch(1)

        self.controlsPanel.set_content(container)

    @staticmethod
    def _btn(text: str) -> QPushButton:
        btn = QPushButton(text)
        btn.setMinimumHeight(36)
        return btn

    def set_busy(self, busy: bool):
        # Processing indicator: disable every action while an extraction runs
        for btn in (self.resetGridButton, self.cutButton, self.serverButton):
            btn.setEnabled(not busy)
        self.imagePanel.toolbarButtons["Open Image"].setEnabled(not busy)
        self.imagePanel.toolbarButtons["Clear Image"].setEnabled(not busy)
