"""Error kinds raised while resolving a variant family.

Lower layers only classify failures by raising one of these; the retry
supervisor decides what to do with them.
"""

from typing import Optional


class VariantScoutError(Exception):
    """Base class for all variant discovery errors."""


class ValidationError(VariantScoutError, ValueError):
    """Missing or malformed input. Never retried."""


class BlockedError(VariantScoutError):
    """An anti-automation defense prevented content retrieval."""


class CaptchaDetected(BlockedError):
    """A CAPTCHA challenge page was served."""


class ChallengeDetected(BlockedError):
    """An anti-bot interstitial (e.g. "checking your browser") was served."""


class BotDetectionTriggered(BlockedError):
    """A generic bot-block message was served without product content."""


class NavigationError(VariantScoutError):
    """Timeout or network failure while loading a page."""


class ExtractionError(VariantScoutError):
    """The page loaded but expected content markers are absent."""


class ExhaustedRetries(VariantScoutError):
    """Raised once the retry budget is spent."""

    def __init__(self, last_error: Optional[BaseException], attempts: int):
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"All {attempts} attempts failed: {last_error}")
