"""Pure functions for parsing product attributes from listing text.

Every function here is a testable, composable transformation with no side
effects. Callers normalize text with normalize_text() first unless stated
otherwise.
"""

import re

PACK_QUANTITY_PATTERNS = [
    re.compile(r"pack\s*of\s*(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s*-?\s*pack", re.IGNORECASE),
    re.compile(r"(\d+)\s*-?\s*count", re.IGNORECASE),
    re.compile(r"(\d+)\s*-?\s*ct\b", re.IGNORECASE),
    re.compile(r"(\d+)\s*-?\s*pk\b", re.IGNORECASE),
    re.compile(r",\s*(\d+)\s*(?:pack|count|ct|pk)", re.IGNORECASE),
]

# Compound shade with a trailing shade code, e.g. "light/medium 530"
SHADE_WITH_CODE_PATTERN = re.compile(r"\b([a-z]+/[a-z]+)\s*-?\s*(\d{3})\b", re.IGNORECASE)
# Shade code followed by one or two words, e.g. "530 light medium"
CODE_WITH_SHADE_PATTERN = re.compile(r"\b(\d{2,3})\s+([a-z]+(?:\s+[a-z]+)?)\b", re.IGNORECASE)
# Bare compound shade, e.g. "light/medium"
COMPOUND_SHADE_PATTERN = re.compile(r"\b([a-z]+/[a-z]+)\b", re.IGNORECASE)

COLOR_IGNORED_TERMS = [
    "cruelty free",
    "oil free",
    "fragrance free",
    "paraben free",
    "gluten free",
    "alcohol free",
    "talc free",
    "sugar free",
    "count",
    "pack",
    "pcs",
    "ounce",
    "oz",
    "fl oz",
    "metric",
]

# Units end at a word boundary so "12 large" is not read as 12 litres
SIZE_PATTERNS = [
    (r"(\d+\.?\d*)\s*(?:(?:inch(?:es)?|in)\b|\")", "inch"),
    (r"(\d+\.?\d*)\s*(?:oz|ounces?)\b", "ounce"),
    (r"(\d+\.?\d*)\s*(?:qt|quarts?)\b", "quart"),
    (r"(\d+\.?\d*)\s*(?:l|liters?|litres?)\b", "liter"),
    (r"(\d+\.?\d*)\s*(?:cups?)\b", "cup"),
    (r"(\d+\.?\d*)\s*(?:pieces?|pcs|pc)\b", "piece"),
]

SCENT_WORDS = [
    "lavender",
    "vanilla",
    "lemon",
    "citrus",
    "unscented",
    "fresh",
    "rose",
    "ocean",
    "coconut",
    "mint",
    "eucalyptus",
    "floral",
    "linen",
    "berry",
    "pine",
    "apple",
    "cucumber",
    "melon",
    "sandalwood",
    "jasmine",
    "chamomile",
]

SHAPE_WORDS = [
    "star",
    "flower",
    "round",
    "square",
    "oval",
    "heart",
    "hex",
    "rectangle",
    "diamond",
    "triangle",
]

PRODUCT_TYPE_WORDS = [
    # kitchen tools
    "spoon", "spatula", "turner", "ladle", "whisk", "tongs", "fork",
    "knife", "peeler", "grater", "slicer", "masher", "strainer", "colander",
    # cookware
    "wok", "pan", "pot", "skillet", "griddle", "saucepan", "stockpot",
    "mitt", "glove", "holder", "trivet", "rack",
    # tableware
    "bowl", "plate", "cup", "mug", "glass", "jar", "container",
    # cleaning
    "brush", "scrubber", "sponge", "cleaner",
    # tool variants
    "basting", "slotted", "solid", "oversized", "short", "scraper",
    # cosmetics
    "cream", "foundation", "powder", "concealer", "lipstick", "mascara",
]

KEYWORD_STOPWORDS = [
    "the", "and", "for", "with", "of", "in", "to", "see", "available", "options",
    "from", "kitchen", "safe", "perfect", "pack", "count", "ea", "mini", "premium",
    "stainless", "steel", "handle", "nonstick", "carbon", "coated", "durable",
]

MAX_KEYWORDS = 6

_INTEGER_PATTERN = re.compile(r"\b\d+\b")
# Whole word only: "minimalist" and "aluminium" are not mini
_MINI_PATTERN = re.compile(r"\bmini\b")


def normalize_text(text: str | None) -> str:
    """Normalize listing text for attribute matching.

    Lower-cases, strips percentages ("0.5%"), replaces punctuation other than
    "." and "/" with spaces and collapses whitespace.

    Args:
        text: Raw title, shade or description text

    Returns:
        Normalized text (empty string for None)
    """
    if not text:
        return ""

    cleaned = text.lower()
    cleaned = re.sub(r"\d+(?:\.\d+)?\s*%", "", cleaned)
    cleaned = re.sub(r"[^\w\s./]", " ", cleaned, flags=re.ASCII)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip()


def extract_pack_quantity(text: str | None) -> int:
    """Extract the pack quantity from listing text.

    Args:
        text: Listing text (e.g., "Pack of 4 Widgets", "Widget 3-Pack")

    Returns:
        Pack quantity, or 0 when the text does not mention one
    """
    if not text:
        return 0

    for pattern in PACK_QUANTITY_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))

    return 0


def extract_color_phrases(text: str) -> list[str]:
    """Extract shade/color phrases from normalized text.

    Three pattern families are applied in order: compound shade with a
    3-digit code (emits the compound and the full phrase), shade code
    followed by one or two words, and bare compounds not already captured.
    Phrases containing marketing terms ("oil free", "pack", ...) are dropped.

    Args:
        text: Normalized text

    Returns:
        Phrases in discovery order
    """
    phrases: list[str] = []

    for match in SHADE_WITH_CODE_PATTERN.finditer(text):
        phrases.append(match.group(1).lower().strip())
        phrases.append(match.group(0).lower().strip())

    for match in CODE_WITH_SHADE_PATTERN.finditer(text):
        phrases.append(match.group(0).lower().strip())

    for match in COMPOUND_SHADE_PATTERN.finditer(text):
        compound = match.group(1).lower()
        if compound not in phrases:
            phrases.append(compound)

    return [
        phrase
        for phrase in phrases
        if not any(term in phrase for term in COLOR_IGNORED_TERMS)
    ]


def extract_attribute_set(text: str, vocabulary: list[str]) -> list[str]:
    """Return the vocabulary entries that occur in text.

    Args:
        text: Normalized text
        vocabulary: Words to look for (e.g., SCENT_WORDS)

    Returns:
        Matching entries, in vocabulary order
    """
    return [word for word in vocabulary if word in text]


def extract_sizes(text: str) -> list[str]:
    """Extract numeric size tokens followed by a unit.

    Args:
        text: Normalized text (e.g., "12 oz mug 4 inch")

    Returns:
        Numeric substrings grouped by unit family (e.g., ["4", "12"])
    """
    sizes: list[str] = []

    for pattern, _unit in SIZE_PATTERNS:
        for match in re.finditer(pattern, text, re.IGNORECASE):
            sizes.append(match.group(1))

    return sizes


def extract_integers(text: str) -> list[int]:
    """Return every bare integer in text, in order."""
    return [int(token) for token in _INTEGER_PATTERN.findall(text)]


def extract_meaningful_numbers(
    text: str,
    sizes: list[str],
    pack_quantity: int,
    color_phrases: list[str],
) -> list[int]:
    """Isolate model/shade numbers from text.

    Removes the pack quantity, integers equal to a size value and integers
    that are part of a recognized color phrase.

    Args:
        text: Normalized text
        sizes: Size tokens from extract_sizes()
        pack_quantity: Pack quantity (0 when unspecified)
        color_phrases: Phrases from extract_color_phrases()

    Returns:
        Remaining integers in order
    """
    numbers = extract_integers(text)

    if pack_quantity:
        numbers = [n for n in numbers if n != pack_quantity]

    size_values = {float(size) for size in sizes}
    numbers = [n for n in numbers if float(n) not in size_values]

    phrase_numbers = {n for phrase in color_phrases for n in extract_integers(phrase)}
    return [n for n in numbers if n not in phrase_numbers]


def contains_mini(text: str) -> bool:
    """Check whether the word "mini" appears in normalized text."""
    return bool(_MINI_PATTERN.search(text))


def split_compound_phrases(phrases: list[str]) -> tuple[list[str], list[str]]:
    """Split color phrases into (compound, single) lists."""
    compounds = [phrase for phrase in phrases if "/" in phrase]
    singles = [phrase for phrase in phrases if "/" not in phrase]
    return compounds, singles


def extract_keywords(text: str) -> list[str]:
    """Pick the brand/keyword words used for the residual overlap check.

    Args:
        text: Normalized reference text

    Returns:
        Up to MAX_KEYWORDS words longer than 2 characters that are not
        stopwords, product types or shapes
    """
    ignored = set(KEYWORD_STOPWORDS) | set(PRODUCT_TYPE_WORDS) | set(SHAPE_WORDS)
    words = [word for word in text.split(" ") if len(word) > 2 and word not in ignored]
    return words[:MAX_KEYWORDS]
