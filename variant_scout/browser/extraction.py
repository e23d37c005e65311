"""Retailer extraction rules for product pages.

The in-page scripts only read raw DOM data; parsing, fallbacks and
deduplication happen in Python so each rule can be unit-tested without a
browser. Selectors are retailer-specific and expected to change.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from loguru import logger
from playwright.async_api import Page

from variant_scout.models import (
    ASIN,
    MAX_LABEL_LENGTH,
    SCRIPT_LABEL,
    CandidateRef,
)

PRODUCT_MARKER_SELECTOR = "#productTitle"

IDENTIFIER_IN_URL_PATTERN = re.compile(r"/dp/([A-Z0-9]{10})")
IDENTIFIER_PATTERN = re.compile(r"[A-Z0-9]{10}")
SCRIPT_LITERAL_PATTERNS = [
    re.compile(r"dimensionValuesDisplayData[^{]*(\{[^}]+\})"),
    re.compile(r"asinVariationValues[^{]*(\{[^}]+\})"),
]
COLOR_LABEL_PATTERN = re.compile(r"color:\s*([^\n]+)", re.IGNORECASE)

SNAPSHOT_SCRIPT = """
() => ({
    bodyText: document.body ? document.body.innerText : "",
    title: document.title || "",
    hasContent: !!document.querySelector("#productTitle"),
})
"""

TITLE_SCRIPT = """
() => {
    const node = document.querySelector("#productTitle");
    return node ? (node.textContent || "").trim() : "";
}
"""

DISCOVERY_SCRIPT = """
() => {
    const readItems = (selector, useTitleAttr) =>
        Array.from(document.querySelectorAll(selector)).map(li => ({
            identifier: li.getAttribute("data-defaultasin") || "",
            label: (li.textContent || "").trim()
                || (useTitleAttr ? li.getAttribute("title") || "" : ""),
        }));
    const scripts = Array.from(document.querySelectorAll("script"))
        .map(s => s.textContent || "")
        .filter(t => t.includes("dimensionValuesDisplayData") || t.includes("asinVariationValues"));
    return {
        listItems: readItems("li[data-defaultasin]", true),
        variationItems: readItems("[id^='variation_'] li", false),
        scripts: scripts,
    };
}
"""


def parse_identifier_from_url(url: str) -> Optional[ASIN]:
    """Extract the product identifier from a product URL.

    Args:
        url: Product URL (e.g., "https://www.amazon.com/Widget/dp/B000000001/ref=x")

    Returns:
        Identifier or None if the URL has no /dp/ segment
    """
    match = IDENTIFIER_IN_URL_PATTERN.search(url or "")
    return ASIN(match.group(1)) if match else None


def find_script_identifiers(script_text: str) -> list[str]:
    """Find identifiers inside variation literals embedded in a script.

    Only the first literal per key is read; each is a flat ``{...}`` object.
    """
    identifiers: list[str] = []
    for pattern in SCRIPT_LITERAL_PATTERNS:
        match = pattern.search(script_text)
        if match:
            identifiers.extend(IDENTIFIER_PATTERN.findall(match.group(1)))
    return identifiers


def _refs_from_items(items: list[dict[str, Any]]) -> list[CandidateRef]:
    return [
        CandidateRef(ASIN(item["identifier"]), (item.get("label") or "")[:MAX_LABEL_LENGTH])
        for item in items
        if item.get("identifier")
    ]


def _from_list_items(raw: dict[str, Any]) -> list[CandidateRef]:
    return _refs_from_items(raw.get("listItems") or [])


def _from_variation_regions(raw: dict[str, Any]) -> list[CandidateRef]:
    return _refs_from_items(raw.get("variationItems") or [])


def _from_script_literals(raw: dict[str, Any]) -> list[CandidateRef]:
    return [
        CandidateRef(ASIN(identifier), SCRIPT_LABEL)
        for script in raw.get("scripts") or []
        for identifier in find_script_identifiers(script)
    ]


DISCOVERY_STRATEGIES: tuple[Callable[[dict[str, Any]], list[CandidateRef]], ...] = (
    _from_list_items,
    _from_variation_regions,
    _from_script_literals,
)


def discover_candidates(raw: dict[str, Any]) -> list[CandidateRef]:
    """Merge candidate identifiers from every discovery strategy.

    Args:
        raw: Result of DISCOVERY_SCRIPT (listItems, variationItems, scripts)

    Returns:
        Candidates in discovery order, first occurrence of each identifier kept
    """
    seen: set[str] = set()
    candidates: list[CandidateRef] = []

    for strategy in DISCOVERY_STRATEGIES:
        for ref in strategy(raw):
            if ref.identifier in seen:
                continue
            seen.add(ref.identifier)
            candidates.append(ref)

    return candidates


def parse_color_label(row_text: str) -> str:
    """Read the value after "Color:" in a detail row's text."""
    match = COLOR_LABEL_PATTERN.search(row_text or "")
    return match.group(1).strip() if match else ""


def parse_selected_swatch(text: str) -> str:
    """Selected swatch text, ignoring the "Select" placeholder."""
    text = (text or "").strip()
    return "" if text == "Select" else text


@dataclass(frozen=True)
class ShadeStrategy:
    """One place on the page a shade label can be read from."""

    name: str
    script: str
    parse: Callable[[str], str] = str.strip


SHADE_STRATEGIES: tuple[ShadeStrategy, ...] = (
    ShadeStrategy(
        name="overview_color_row",
        script="""
        () => {
            const row = document.querySelector("tr.po-color, .po-color_name");
            const cell = row ? row.querySelector("td.po-break-word, span.po-break-word") : null;
            return cell ? (cell.textContent || "") : "";
        }
        """,
    ),
    ShadeStrategy(
        name="color_label_row",
        script="""
        () => {
            for (const row of document.querySelectorAll("tr, .a-section")) {
                const text = row.textContent || "";
                if (text.toLowerCase().includes("color:")) return text;
            }
            return "";
        }
        """,
        parse=parse_color_label,
    ),
    ShadeStrategy(
        name="selected_swatch",
        script="""
        () => {
            const node = document.querySelector("#variation_color_name .selection");
            return node ? (node.textContent || "") : "";
        }
        """,
        parse=parse_selected_swatch,
    ),
)


async def extract_shade(
    page: Page, strategies: tuple[ShadeStrategy, ...] = SHADE_STRATEGIES
) -> str:
    """Read the shade label using the first strategy that yields text.

    Args:
        page: Loaded product page
        strategies: Ordered strategies to try

    Returns:
        Shade label, or empty string if no strategy found one
    """
    for strategy in strategies:
        raw = await page.evaluate(strategy.script)
        shade = strategy.parse(raw or "")
        if shade:
            logger.debug(f"Shade {shade!r} found via {strategy.name}")
            return shade
    return ""
