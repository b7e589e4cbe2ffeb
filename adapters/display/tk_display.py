from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FixedDisplayDevice:
    dpi_y: float | None = None

    def logical_dpi_y(self) -> float | None:
        return self.dpi_y


class TkDisplayDevice:
    """Asks the Tk screen for its vertical resolution, once."""

    def __init__(self) -> None:
        self._probed = False
        self._dpi_y: float | None = None

    def logical_dpi_y(self) -> float | None:
        if not self._probed:
            self._dpi_y = self._probe()
            self._probed = True
        return self._dpi_y

    @staticmethod
    def _probe() -> float | None:
        try:
            import tkinter as tk
        except ImportError:
            logger.debug("tkinter unavailable; no display DPI")
            return None
        try:
            root = tk.Tk()
        except tk.TclError as exc:
            logger.debug("No display available: %s", exc)
            return None
        try:
            root.withdraw()
            dpi_y = float(root.winfo_fpixels("1i"))
        finally:
            root.destroy()
        logger.debug("Display reports %.1f DPI", dpi_y)
        return dpi_y if dpi_y > 0 else None
