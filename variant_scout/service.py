"""Request/response boundary for the variant finder.

Validates the inbound request record before any browser work and shapes
results and failures into the outbound payloads.
"""

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse

from loguru import logger

from variant_scout.browser.lifecycle import BrowserManager
from variant_scout.config import ScraperConfig, config_from_env
from variant_scout.errors import ExhaustedRetries, ValidationError
from variant_scout.orchestrator import VariantOrchestrator
from variant_scout.supervisor import RetrySupervisor


@dataclass(frozen=True)
class VariantRequest:
    """Inbound request: reference page URL and optional long description."""

    url: str
    long_description: str = ""

    @classmethod
    def from_payload(cls, payload: Optional[dict[str, Any]]) -> "VariantRequest":
        """Validate a request payload.

        Accepts ``longDesc`` or ``long_description`` for the description.

        Raises:
            ValidationError: If url is missing or not an http(s) URL
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be an object")

        url = payload.get("url")
        if not url or not isinstance(url, str):
            raise ValidationError("URL required")

        parsed = urlparse(url.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError(f"Invalid URL: {url}")

        long_description = payload.get("longDesc") or payload.get("long_description") or ""
        if not isinstance(long_description, str):
            raise ValidationError("longDesc must be a string")

        return cls(url=url.strip(), long_description=long_description)


def build_supervisor(
    config: Optional[ScraperConfig] = None,
    browser_manager: Optional[BrowserManager] = None,
) -> RetrySupervisor:
    """Wire browser manager, orchestrator and supervisor together."""
    config = config or config_from_env()
    browser_manager = browser_manager or BrowserManager(headless=config.headless)
    orchestrator = VariantOrchestrator(browser_manager, config)
    return RetrySupervisor(orchestrator, browser_manager, config)


async def handle_scrape_request(
    payload: Optional[dict[str, Any]], supervisor: RetrySupervisor
) -> list[dict[str, Any]]:
    """Validate payload, resolve variants and serialize the results.

    Raises:
        ValidationError: For a malformed request (no browser work done)
        ExhaustedRetries: When every attempt failed
    """
    request = VariantRequest.from_payload(payload)
    results = await supervisor.run(request.url, request.long_description)
    return [result.to_dict() for result in results]


def error_payload(error: Exception) -> dict[str, str]:
    """Human-readable error body for a failed request."""
    if isinstance(error, ExhaustedRetries) and error.last_error is not None:
        message = str(error.last_error)
    else:
        message = str(error)
    logger.debug(f"Returning error payload: {message}")
    return {"error": message}
