"""Retry supervisor around the variant orchestrator.

The supervisor is the only place that resets the shared browser or waits
between attempts; lower layers only raise classified errors.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from loguru import logger

from variant_scout.browser.lifecycle import BrowserManager
from variant_scout.config import ScraperConfig
from variant_scout.errors import BlockedError, ValidationError
from variant_scout.models import VariantResult
from variant_scout.orchestrator import VariantOrchestrator
from variant_scout.utils.retry_handler import retry_with_backoff


class RetrySupervisor:
    """Runs the orchestrator with bounded retries and browser resets."""

    def __init__(
        self,
        orchestrator: VariantOrchestrator,
        browser_manager: BrowserManager,
        config: Optional[ScraperConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.orchestrator = orchestrator
        self.browser_manager = browser_manager
        self.config = config or orchestrator.config
        self._sleep = sleep

    async def _on_failure(self, error: Exception, attempt: int, final: bool) -> None:
        # Blocked attempts reset; the final attempt resets once if it has not already
        if isinstance(error, BlockedError):
            logger.warning(
                f"Blocking detected on attempt {attempt} ({type(error).__name__}), "
                "resetting browser for a clean retry"
            )
            await self.browser_manager.reset()
        elif final:
            await self.browser_manager.reset()

    async def run(self, url: str, long_description: str = "") -> list[VariantResult]:
        """Resolve the variant family of url, retrying failed runs.

        Args:
            url: Reference product page URL
            long_description: Canonical description of the reference item

        Returns:
            Ordered variant results

        Raises:
            ValidationError: Immediately, without retrying
            ExhaustedRetries: When every attempt failed
        """
        return await retry_with_backoff(
            lambda: self.orchestrator.find_variants(url, long_description),
            max_attempts=self.config.max_retries,
            base_delay=self.config.retry_base_delay,
            max_delay=self.config.retry_max_delay,
            on_failure=self._on_failure,
            give_up_on=(ValidationError,),
            sleep=self._sleep,
        )
