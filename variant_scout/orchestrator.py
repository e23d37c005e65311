"""Orchestrator for resolving a product's variant family.

Loads the reference page, discovers candidate identifiers, fetches and
matches candidates in small concurrent batches, then deduplicates and orders
the accepted variants.
"""

import asyncio
from typing import Awaitable, Callable, Iterator, Optional, Sequence

from loguru import logger
from playwright.async_api import Error as PlaywrightError

from variant_scout.browser.lifecycle import BrowserManager
from variant_scout.browser.page_session import PageSession
from variant_scout.config import ScraperConfig
from variant_scout.errors import ExtractionError, VariantScoutError
from variant_scout.matching.attribute_parser import extract_pack_quantity
from variant_scout.matching.match_decider import decide_match
from variant_scout.models import (
    CandidateRef,
    ProductUrl,
    ReferenceItem,
    ReferencePageData,
    VariantResult,
)

SessionFactory = Callable[[BrowserManager], PageSession]


def batched(items: Sequence[CandidateRef], size: int) -> Iterator[list[CandidateRef]]:
    """Yield consecutive slices of at most size items."""
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def select_candidates(
    candidates: list[CandidateRef], reference_identifier: str
) -> list[CandidateRef]:
    """Drop the reference itself and repeated identifiers, keeping discovery order."""
    seen = {reference_identifier}
    selected = []
    for ref in candidates:
        if ref.identifier in seen:
            continue
        seen.add(ref.identifier)
        selected.append(ref)
    return selected


def dedupe_results(results: list[VariantResult]) -> list[VariantResult]:
    """Keep the first result for every identifier."""
    seen: set[str] = set()
    unique = []
    for result in results:
        if result.identifier in seen:
            continue
        seen.add(result.identifier)
        unique.append(result)
    return unique


def sort_by_pack_quantity(results: list[VariantResult]) -> list[VariantResult]:
    """Stable sort by ascending pack quantity (ties keep discovery order)."""
    return sorted(results, key=lambda result: result.pack_quantity)


class VariantOrchestrator:
    """Coordinates reference loading, candidate fetching and matching."""

    def __init__(
        self,
        browser_manager: BrowserManager,
        config: Optional[ScraperConfig] = None,
        session_factory: SessionFactory = PageSession,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize orchestrator.

        Args:
            browser_manager: Shared browser owner
            config: Timeouts, batch size and delays
            session_factory: Builds a PageSession for each page load
            sleep: Sleep coroutine (injectable for tests)
        """
        self.browser_manager = browser_manager
        self.config = config or ScraperConfig()
        self._session_factory = session_factory
        self._sleep = sleep

    async def find_variants(self, url: str, long_description: str = "") -> list[VariantResult]:
        """Resolve every accepted variant of the product at url.

        Args:
            url: Reference product page URL
            long_description: Canonical description of the reference item

        Returns:
            Deduplicated results ordered by pack quantity; the reference
            item is always included with is_main=True

        Raises:
            BlockedError: If the reference page is blocked
            NavigationError: If the reference page fails to load
            ExtractionError: If the reference page has no product content
        """
        logger.info(f"Starting variant scrape for: {url[:80]}...")

        page_data = await self._load_reference(url)
        reference = ReferenceItem(
            title=page_data.title,
            shade=page_data.shade,
            long_description=long_description or "",
        )

        results = [
            VariantResult(
                identifier=page_data.identifier,
                title=page_data.title,
                shade=page_data.shade,
                url=ProductUrl(self.config.product_url(page_data.identifier)),
                pack_quantity=extract_pack_quantity(page_data.title) or 1,
                is_main=True,
                note="Main product",
            )
        ]
        logger.info(f"Main: {page_data.identifier} | Shade: {page_data.shade}")

        candidates = select_candidates(page_data.candidates, page_data.identifier)
        logger.info(f"Found {len(candidates)} potential variants to check")

        for batch in batched(candidates, self.config.batch_size):
            batch_results = await asyncio.gather(
                *(self._check_candidate(reference, ref) for ref in batch)
            )
            for result in batch_results:
                if result is not None:
                    results.append(result)
                    logger.success(f"  ✓ Added: {result.identifier} - Shade: {result.shade}")
            await self._sleep(self.config.batch_delay)

        ordered = sort_by_pack_quantity(dedupe_results(results))
        logger.info(f"Done! Found {len(ordered)} unique products")
        return ordered

    async def _load_reference(self, url: str) -> ReferencePageData:
        async with self._session_factory(self.browser_manager) as session:
            logger.info("Loading main page...")
            await session.open(url, self.config.reference_timeout_ms)

            if not await session.verify_content():
                raise ExtractionError("Page loaded but no product content found")

            await self._sleep(self.config.settle_delay)
            logger.info("Extracting variants from page...")
            return await session.extract_reference()

    async def _check_candidate(
        self, reference: ReferenceItem, ref: CandidateRef
    ) -> Optional[VariantResult]:
        """Fetch and match one candidate; any page failure means no result."""
        url = self.config.product_url(ref.identifier)

        try:
            async with self._session_factory(self.browser_manager) as session:
                await session.open(url, self.config.candidate_timeout_ms)
                await session.verify_content()
                page = await session.extract_candidate(ref)
        except (VariantScoutError, PlaywrightError) as e:
            logger.warning(f"  ✗ Error checking {ref.identifier}: {e}")
            return None
        except Exception as e:
            logger.exception(f"  ✗ Unexpected error checking {ref.identifier}: {e}")
            return None

        logger.info(f"  Checking: {ref.identifier} - Shade: {page.shade!r}")
        decision = decide_match(reference, page)
        for event in decision.trace:
            logger.debug(f"    [{event.stage}] {event.detail}")

        if not decision.accepted:
            logger.info(f"  Rejected {ref.identifier}: {decision.reason}")
            return None

        return VariantResult(
            identifier=ref.identifier,
            title=page.title,
            shade=page.shade,
            url=ProductUrl(url),
            pack_quantity=extract_pack_quantity(page.title) or 1,
        )
