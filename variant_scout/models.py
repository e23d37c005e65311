"""Type definitions for variant discovery.

Identifiers use branded types (NewType) so an ASIN is never mixed up with
an arbitrary string or a URL.
"""

from dataclasses import dataclass, field
from typing import Any, NewType

# Branded types for type safety
ASIN = NewType("ASIN", str)
ProductUrl = NewType("ProductUrl", str)

# Label given to identifiers found only inside embedded script literals
SCRIPT_LABEL = "from script"
MAX_LABEL_LENGTH = 100


@dataclass(frozen=True)
class ReferenceItem:
    """The product whose variant family is being resolved."""

    title: str = ""
    shade: str = ""
    long_description: str = ""


@dataclass(frozen=True)
class CandidateRef:
    """A discovered, not yet fetched, potential variant."""

    identifier: ASIN
    label: str = ""


@dataclass(frozen=True)
class CandidatePage:
    """Content read from a candidate's product page."""

    identifier: ASIN
    title: str
    shade: str = ""


@dataclass
class ReferencePageData:
    """Structured content of the reference product page."""

    identifier: ASIN
    title: str
    shade: str
    candidates: list[CandidateRef] = field(default_factory=list)


@dataclass
class VariantResult:
    """An accepted member of the variant family."""

    identifier: ASIN
    title: str
    shade: str
    url: ProductUrl
    pack_quantity: int = 1
    is_main: bool = False
    note: str = "Variant"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the response record shape."""
        return {
            "asin": self.identifier,
            "title": self.title,
            "shade": self.shade,
            "url": self.url,
            "packQty": self.pack_quantity,
            "isMain": self.is_main,
            "notes": self.note,
        }
