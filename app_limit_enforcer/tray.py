import logging
import threading

import pystray
from PIL import Image, ImageDraw

from .config import APP_NAME, LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


class TrayController:
    def __init__(self, title: str, on_show, on_exit):
        self._title = title
        self._on_show = on_show
        self._on_exit = on_exit

        self._icon = None
        self._thread = None
        self._running = False

    def _make_icon_image(self) -> Image.Image:
        img = Image.new("RGB", (64, 64), color=(40, 40, 40))
        draw = ImageDraw.Draw(img)
        draw.ellipse((8, 8, 56, 56), fill=(52, 152, 219))
        draw.line((32, 32, 32, 16), fill=(245, 245, 245), width=5)
        draw.line((32, 32, 44, 38), fill=(245, 245, 245), width=5)
        return img

    def ensure_running(self) -> None:
        if self._icon is not None and self._running:
            return

        def on_show(icon, item):
            self._on_show()

        def on_exit(icon, item):
            self._on_exit()

        menu = pystray.Menu(
            pystray.MenuItem("Show", on_show, default=True),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Exit", on_exit),
        )

        self._icon = pystray.Icon(APP_NAME, self._make_icon_image(), self._title, menu)

        def run_icon():
            self._running = True
            try:
                self._icon.run()
            finally:
                self._running = False

        self._thread = threading.Thread(target=run_icon, name="TrayIcon", daemon=True)
        self._thread.start()

    def notify(self, title: str, message: str) -> None:
        if self._icon is None or not self._running:
            return
        try:
            self._icon.notify(message, title)
        except Exception:
            logger.exception("Tray notification failed")

    def stop(self) -> None:
        if self._icon is None:
            return
        try:
            self._icon.stop()
        except Exception:
            logger.exception("Tray stop failed")
        self._icon = None
