"""Process-wide owner of the shared Playwright browser.

One BrowserManager per process. acquire() starts Playwright and Chromium on
first use and hands out the same browser afterwards; reset() tears both down
so the next acquire() starts fresh. Only these two methods mutate the handle.
"""

import asyncio
import signal
from typing import Any, Callable, Optional

from loguru import logger
from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

DEFAULT_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
]

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class BrowserManager:
    """Lazily started, resettable shared browser handle."""

    def __init__(
        self,
        headless: bool = True,
        launch_args: Optional[list[str]] = None,
        playwright_factory: Callable[[], Any] = async_playwright,
    ):
        """Initialize the manager without starting anything.

        Args:
            headless: Whether to run Chromium headless
            launch_args: Chromium command-line flags
            playwright_factory: Callable returning an object with an async
                start() (async_playwright by default)
        """
        self.headless = headless
        self.launch_args = list(DEFAULT_LAUNCH_ARGS if launch_args is None else launch_args)
        self._playwright_factory = playwright_factory
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()
        self._shutdown_tasks: set[asyncio.Task] = set()
        self.launch_count = 0
        self.reset_count = 0

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    async def acquire(self) -> Browser:
        """Return the shared browser, launching it on first use.

        A browser that has disconnected (crash, killed process) is discarded
        and relaunched.

        Returns:
            Connected Playwright Browser
        """
        async with self._lock:
            if self._browser is not None and not self._browser.is_connected():
                logger.warning("Shared browser disconnected, relaunching")
                await self._teardown()

            if self._browser is None:
                playwright = await self._playwright_factory().start()
                try:
                    browser = await playwright.chromium.launch(
                        headless=self.headless,
                        args=self.launch_args,
                    )
                except BaseException:
                    # A failed launch must not leave the driver process running
                    try:
                        await playwright.stop()
                    except PlaywrightError as e:
                        logger.debug(f"Ignoring Playwright stop error after failed launch: {e}")
                    raise

                self._playwright = playwright
                self._browser = browser
                self.launch_count += 1
                logger.info(f"Browser launched (headless={self.headless})")

            return self._browser

    async def reset(self) -> None:
        """Close and discard the browser; safe to call when nothing is running."""
        async with self._lock:
            if self._browser is None and self._playwright is None:
                return
            await self._teardown()
            self.reset_count += 1
            logger.info("Browser closed and discarded")

    async def _teardown(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None

        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as e:
                logger.debug(f"Ignoring browser close error (already closed?): {e}")
        if playwright is not None:
            try:
                await playwright.stop()
            except PlaywrightError as e:
                logger.debug(f"Ignoring Playwright stop error: {e}")

    def install_signal_handlers(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        task: Optional[asyncio.Task] = None,
    ) -> None:
        """Close the shared browser when the process receives SIGINT/SIGTERM.

        Must be called from inside the running event loop unless a loop is
        passed explicitly.

        Args:
            loop: Event loop to register on (defaults to the running loop)
            task: Task cancelled once the browser is closed (defaults to the
                calling task)
        """
        loop = loop or asyncio.get_running_loop()
        if task is None:
            task = asyncio.current_task(loop)

        async def _shutdown(signum: int) -> None:
            logger.warning(f"Received signal {signum}, closing browser")
            await self.reset()
            if task is not None and not task.done():
                task.cancel()

        def _on_signal(signum: int) -> None:
            shutdown = loop.create_task(_shutdown(signum))
            self._shutdown_tasks.add(shutdown)
            shutdown.add_done_callback(self._shutdown_tasks.discard)

        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, _on_signal, sig)
            except (NotImplementedError, RuntimeError) as e:
                # add_signal_handler is unavailable on Windows event loops
                logger.debug(f"Cannot install handler for {sig}: {e}")

    async def __aenter__(self) -> "BrowserManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.reset()
