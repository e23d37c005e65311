"""Runtime configuration for variant discovery.

Defaults live on ScraperConfig; config_from_env() lets deployments override
them with VARIANT_SCOUT_* environment variables.
"""

import os
from dataclasses import dataclass, fields
from typing import Optional

from loguru import logger

from variant_scout.errors import ValidationError

ENV_PREFIX = "VARIANT_SCOUT_"


@dataclass
class ScraperConfig:
    """Configuration for one retailer's variant scraper."""

    base_url: str = "https://www.amazon.com"
    reference_timeout_ms: int = 45000
    candidate_timeout_ms: int = 25000
    settle_delay: float = 2.0  # seconds to let the reference page render
    batch_size: int = 3  # candidates fetched concurrently
    batch_delay: float = 0.7  # seconds between candidate batches
    max_retries: int = 3
    retry_base_delay: float = 4.0
    retry_max_delay: float = 60.0
    headless: bool = True

    def product_url(self, identifier: str) -> str:
        """Build the canonical product URL for an identifier."""
        return f"{self.base_url.rstrip('/')}/dp/{identifier}"


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() not in ("false", "0", "no", "off")


def config_from_env(environ: Optional[dict[str, str]] = None) -> ScraperConfig:
    """Build a ScraperConfig, overriding defaults from environment variables.

    Each field maps to ``VARIANT_SCOUT_<FIELD_NAME>`` (e.g.
    ``VARIANT_SCOUT_MAX_RETRIES``). The plain ``HEADLESS`` variable is also
    honoured for the headless flag.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Populated configuration

    Raises:
        ValidationError: If a numeric override cannot be parsed
    """
    environ = os.environ if environ is None else environ
    config = ScraperConfig()

    headless = environ.get("HEADLESS")
    if headless is not None:
        config.headless = _parse_bool(headless)

    for config_field in fields(ScraperConfig):
        key = f"{ENV_PREFIX}{config_field.name.upper()}"
        raw = environ.get(key)
        if raw is None:
            continue

        current = getattr(config, config_field.name)
        try:
            if isinstance(current, bool):
                value = _parse_bool(raw)
            elif isinstance(current, int):
                value = int(raw)
            elif isinstance(current, float):
                value = float(raw)
            else:
                value = raw
        except ValueError as e:
            raise ValidationError(f"Invalid value for {key}: {raw!r}") from e

        setattr(config, config_field.name, value)
        logger.debug(f"Config override {config_field.name}={value!r} from {key}")

    return config
