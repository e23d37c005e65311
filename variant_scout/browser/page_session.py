"""One browser tab used to load and read a single product page.

Lifecycle: CREATED -> NAVIGATED -> CONTENT_VERIFIED -> EXTRACTED -> CLOSED,
or CREATED -> NAVIGATED -> BLOCKED. Use it as an async context manager so
the tab is closed on every exit path.
"""

import random
from enum import Enum
from typing import Optional

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Route
from playwright.async_api import TimeoutError as PlaywrightTimeout

from variant_scout.browser.block_detection import (
    BlockKind,
    PageSnapshot,
    classify_blocks,
    raise_for_block,
)
from variant_scout.browser.extraction import (
    DISCOVERY_SCRIPT,
    SNAPSHOT_SCRIPT,
    TITLE_SCRIPT,
    discover_candidates,
    extract_shade,
    parse_identifier_from_url,
)
from variant_scout.browser.lifecycle import BrowserManager
from variant_scout.errors import BlockedError, ExtractionError, NavigationError
from variant_scout.models import (
    SCRIPT_LABEL,
    CandidatePage,
    CandidateRef,
    ReferencePageData,
)

BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media"})

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 Chrome/118.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_4) AppleWebKit/537.36 Chrome/120.0.0.0 Safari/537.36",
]


class SessionState(str, Enum):
    CREATED = "created"
    NAVIGATED = "navigated"
    CONTENT_VERIFIED = "content_verified"
    EXTRACTED = "extracted"
    BLOCKED = "blocked"
    CLOSED = "closed"


def random_user_agent() -> str:
    """Pick a desktop Chrome user agent from the fixed pool."""
    return random.choice(USER_AGENTS)


async def filter_resources(route: Route) -> None:
    """Abort image/stylesheet/font/media loads and let everything else through."""
    try:
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()
    except PlaywrightError as e:
        # The page may close while requests are still in flight
        logger.debug(f"Request interception error for {route.request.url}: {e}")


class PageSession:
    """Navigation, block verification and extraction for one product page."""

    def __init__(self, browser_manager: BrowserManager, user_agent: Optional[str] = None):
        self.browser_manager = browser_manager
        self.user_agent = user_agent or random_user_agent()
        self.state = SessionState.CREATED
        self.url: str = ""
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise ExtractionError("Page session is not open")
        return self._page

    async def open(self, url: str, timeout_ms: int) -> None:
        """Open a tab and navigate to url.

        Args:
            url: Product page URL
            timeout_ms: Navigation timeout in milliseconds

        Raises:
            NavigationError: On timeout or network failure
        """
        self.url = url
        browser = await self.browser_manager.acquire()

        try:
            self._page = await browser.new_page(user_agent=self.user_agent)
            self._page.set_default_navigation_timeout(timeout_ms)
            await self._page.route("**/*", filter_resources)
            logger.debug(f"Navigating to {url} (UA: {self.user_agent})")
            await self._page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeout as e:
            raise NavigationError(f"Timed out loading {url} after {timeout_ms}ms") from e
        except PlaywrightError as e:
            raise NavigationError(f"Failed to load {url}: {e}") from e

        self.state = SessionState.NAVIGATED

    async def snapshot(self) -> PageSnapshot:
        """Read the block-detection signals from the rendered page."""
        data = await self.page.evaluate(SNAPSHOT_SCRIPT)
        return PageSnapshot(
            body_text=data.get("bodyText") or "",
            title=data.get("title") or "",
            has_content=bool(data.get("hasContent")),
        )

    async def verify_content(self) -> bool:
        """Check the page for CAPTCHA, challenge and bot-block pages.

        Returns:
            Whether the product marker is present

        Raises:
            BlockedError: When the page is blocked (session moves to BLOCKED)
        """
        classification = classify_blocks(await self.snapshot())

        try:
            raise_for_block(classification, self.url)
        except BlockedError:
            self.state = SessionState.BLOCKED
            raise

        if classification.kind is not BlockKind.NONE:
            logger.debug(
                f"Tolerating {classification.kind.value} signal on {self.url}: product content present"
            )

        self.state = SessionState.CONTENT_VERIFIED
        return classification.has_content

    async def extract_reference(self) -> ReferencePageData:
        """Read identifier, title, shade and candidate list from the reference page.

        Raises:
            ExtractionError: If the page URL carries no product identifier
        """
        identifier = parse_identifier_from_url(self.page.url) or parse_identifier_from_url(
            self.url
        )
        if not identifier:
            raise ExtractionError(f"No product identifier in URL: {self.url}")

        title = await self.page.evaluate(TITLE_SCRIPT)
        raw = await self.page.evaluate(DISCOVERY_SCRIPT)
        shade = await extract_shade(self.page)

        self.state = SessionState.EXTRACTED
        return ReferencePageData(
            identifier=identifier,
            title=title or "",
            shade=shade,
            candidates=discover_candidates(raw or {}),
        )

    async def extract_candidate(self, ref: CandidateRef) -> CandidatePage:
        """Read title and shade from a candidate page.

        Falls back to the discovery-time label when the page shows no shade.

        Raises:
            ExtractionError: If the page has no product title
        """
        title = await self.page.evaluate(TITLE_SCRIPT)
        if not title:
            raise ExtractionError(f"No product title on {self.url}")

        shade = await extract_shade(self.page)
        if not shade and ref.label and ref.label != SCRIPT_LABEL:
            shade = ref.label

        self.state = SessionState.EXTRACTED
        return CandidatePage(identifier=ref.identifier, title=title, shade=shade)

    async def close(self) -> None:
        """Close the tab. Safe to call more than once."""
        page, self._page = self._page, None
        if page is not None:
            try:
                await page.close()
            except PlaywrightError as e:
                logger.debug(f"Ignoring page close error for {self.url}: {e}")
        if self.state is not SessionState.BLOCKED:
            self.state = SessionState.CLOSED

    async def __aenter__(self) -> "PageSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
