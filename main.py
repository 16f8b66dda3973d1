# main.py
import argparse
import logging
import sys

from PyQt6.QtWidgets import QApplication

from logging_config import setup_logging
from View.gui import GridCutterGUI


def main():
    ap = argparse.ArgumentParser(description="Cut an image into grid cells")
    ap.add_argument("image", nargs="?", default=None, help="Image to open on start (optional)")
    ap.add_argument("--log-level", default="INFO")
    ap.add_argument("--log-file", default=None)
    args, qt_args = ap.parse_known_args()

    setup_logging(getattr(logging, args.log_level.upper(), logging.INFO), args.log_file)

    app = QApplication([sys.argv[0], *qt_args])
    win = GridCutterGUI()
    if args.image:
        win.controller.load_image(args.image)

    win.showMaximized()
    sys.exit(app.exec())

if __name__ == "__main__":
    main()
