from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .config import RecorderConfig

if TYPE_CHECKING:
    from playwright.sync_api import Browser

logger = logging.getLogger("mcp.recorder.launcher")


@dataclass
class LaunchResult:
    started: bool
    message: str
    mode: str = "launch"


class BrowserLauncher:
    """Owns the Playwright driver and the browser recordings are made in.

    Playwright's sync API is thread-affine: call everything from the dispatch thread.
    """

    def __init__(self, config: RecorderConfig | None = None) -> None:
        self.config = config or RecorderConfig.from_env()
        self._playwright: Any | None = None
        self._browser: Browser | None = None

    def is_running(self) -> bool:
        browser = self._browser
        if browser is None:
            return False
        try:
            return bool(browser.is_connected())
        except Exception:
            return False

    @property
    def browser(self) -> Browser:
        if self._browser is None:
            raise RuntimeError("browser is not running; call ensure_running() first")
        return self._browser

    def _start_driver(self) -> Any:
        if self._playwright is None:
            from playwright.sync_api import sync_playwright

            self._playwright = sync_playwright().start()
        return self._playwright

    def ensure_running(self) -> LaunchResult:
        mode = self.config.mode
        if self.is_running():
            return LaunchResult(started=False, message="Browser already running", mode=mode)

        # A disconnected browser (crash, remote closed) is dropped and relaunched.
        self._browser = None
        pw = self._start_driver()
        if mode == "attach":
            self._browser = pw.chromium.connect_over_cdp(self.config.cdp_url)
            message = f"Attached to {self.config.cdp_url}"
        else:
            engine = getattr(pw, self.config.browser_name)
            self._browser = engine.launch(headless=self.config.headless)
            message = f"Launched {self.config.browser_name} (headless={self.config.headless})"
        logger.info("browser_ready mode=%s %s", mode, message)
        return LaunchResult(started=True, message=message, mode=mode)

    def stop(self) -> bool:
        """Best-effort close of the browser and the Playwright driver."""
        stopped = False
        if self._browser is not None:
            with contextlib.suppress(Exception):
                self._browser.close()
                stopped = True
            self._browser = None
        if self._playwright is not None:
            with contextlib.suppress(Exception):
                self._playwright.stop()
            self._playwright = None
        return stopped
