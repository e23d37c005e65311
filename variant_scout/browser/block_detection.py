"""Classify rendered pages for anti-automation blocking.

classify_blocks() is a pure function over a PageSnapshot. It never raises:
the tolerated "bot message but real content" case is a value, and
raise_for_block() turns fatal classifications into exceptions.
"""

from dataclasses import dataclass
from enum import Enum

from variant_scout.errors import (
    BlockedError,
    BotDetectionTriggered,
    CaptchaDetected,
    ChallengeDetected,
)

CAPTCHA_BODY_MARKERS = ["enter the characters", "type the characters"]
CAPTCHA_TITLE_MARKERS = ["captcha"]
CHALLENGE_BODY_MARKERS = ["checking your browser", "cloudflare"]
CHALLENGE_TITLE_MARKERS = ["just a moment"]
BOT_BLOCK_BODY_MARKERS = ["sorry, we just need to make sure", "robot", "automated access"]


class BlockKind(str, Enum):
    NONE = "none"
    CAPTCHA = "captcha"
    CHALLENGE = "challenge"
    BOT_BLOCK = "bot_block"


@dataclass(frozen=True)
class PageSnapshot:
    """Text signals read from a rendered page."""

    body_text: str
    title: str
    has_content: bool


@dataclass(frozen=True)
class BlockClassification:
    kind: BlockKind
    has_content: bool

    @property
    def is_fatal(self) -> bool:
        """CAPTCHA and challenge pages always fail; bot messages only without content."""
        if self.kind in (BlockKind.CAPTCHA, BlockKind.CHALLENGE):
            return True
        return self.kind is BlockKind.BOT_BLOCK and not self.has_content


def classify_blocks(snapshot: PageSnapshot) -> BlockClassification:
    """Classify a page snapshot.

    Args:
        snapshot: Body text, title and product-marker presence of the page

    Returns:
        The most severe block kind found, with the content signal
    """
    body = snapshot.body_text.lower()
    title = snapshot.title.lower()

    if any(m in body for m in CAPTCHA_BODY_MARKERS) or any(
        m in title for m in CAPTCHA_TITLE_MARKERS
    ):
        kind = BlockKind.CAPTCHA
    elif any(m in body for m in CHALLENGE_BODY_MARKERS) or any(
        m in title for m in CHALLENGE_TITLE_MARKERS
    ):
        kind = BlockKind.CHALLENGE
    elif any(m in body for m in BOT_BLOCK_BODY_MARKERS):
        kind = BlockKind.BOT_BLOCK
    else:
        kind = BlockKind.NONE

    return BlockClassification(kind=kind, has_content=snapshot.has_content)


def raise_for_block(classification: BlockClassification, url: str = "") -> None:
    """Raise the BlockedError subtype matching a fatal classification.

    Raises:
        CaptchaDetected: CAPTCHA page
        ChallengeDetected: anti-bot interstitial
        BotDetectionTriggered: bot-block message with no product content
    """
    if not classification.is_fatal:
        return

    error_types: dict[BlockKind, tuple[type[BlockedError], str]] = {
        BlockKind.CAPTCHA: (CaptchaDetected, "CAPTCHA detected - request blocked"),
        BlockKind.CHALLENGE: (ChallengeDetected, "anti-bot challenge detected"),
        BlockKind.BOT_BLOCK: (BotDetectionTriggered, "bot detection triggered - IP flagged"),
    }
    error_type, message = error_types[classification.kind]
    raise error_type(f"{message}: {url}" if url else message)
