"""Decide whether a candidate page belongs to the reference product family.

The decider is a pure function of two text records. Shade, scent, shape and
size are exact attributes; model numbers, product types and brand keywords
are containment/overlap checks that tolerate extra marketing text on the
candidate side.

Diagnostics are returned in MatchDecision.trace instead of being logged
here, so callers choose where (and whether) they go.
"""

from dataclasses import dataclass, field
from typing import Callable, TypeVar

from variant_scout.matching.attribute_parser import (
    PRODUCT_TYPE_WORDS,
    SCENT_WORDS,
    SHAPE_WORDS,
    contains_mini,
    extract_attribute_set,
    extract_color_phrases,
    extract_keywords,
    extract_meaningful_numbers,
    extract_pack_quantity,
    extract_sizes,
    normalize_text,
    split_compound_phrases,
)
from variant_scout.models import CandidatePage, ReferenceItem

T = TypeVar("T")

PRODUCT_TYPE_MIN_RATIO = 0.5
KEYWORD_MIN_RATIO = 0.6
KEYWORD_SOURCE_MIN_LENGTH = 5


@dataclass(frozen=True)
class TraceEvent:
    """One diagnostic step recorded while deciding a match."""

    stage: str
    detail: str


@dataclass
class MatchDecision:
    """Outcome of comparing a candidate against the reference."""

    accepted: bool
    reason: str
    trace: list[TraceEvent] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.accepted


@dataclass(frozen=True)
class _ReferenceTexts:
    long_description: str
    title: str
    shade: str

    def first_non_empty(self, extractor: Callable[[str], list[T]]) -> list[T]:
        """Apply extractor to long description, then title, then shade."""
        result: list[T] = []
        for text in (self.long_description, self.title, self.shade):
            result = extractor(text)
            if result:
                break
        return result


def _same_attribute_set(reference: list[str], candidate: list[str]) -> bool:
    """Exact set comparison of attribute lists (order-insensitive)."""
    if not reference:
        return True
    if not candidate:
        return False
    return sorted(reference) == sorted(candidate)


def _check_shades(
    reference_phrases: list[str], candidate_phrases: list[str]
) -> tuple[bool, str]:
    if not candidate_phrases:
        return False, f"reference requires shade {reference_phrases}, candidate has no shade info"

    ref_compounds, ref_singles = split_compound_phrases(reference_phrases)
    var_compounds, var_singles = split_compound_phrases(candidate_phrases)

    if ref_compounds:
        for ref_compound in ref_compounds:
            if any(ref_compound in var_compound for var_compound in var_compounds):
                return True, f"compound shade match {ref_compound!r}"
        return False, (
            f"compound shade {ref_compounds} not found in candidate compounds {var_compounds}"
        )

    for ref_single in ref_singles:
        if ref_single not in var_singles:
            return False, f"shade {ref_single!r} not found in candidate shades {var_singles}"
    return True, "single shade match"


def decide_match(reference: ReferenceItem, candidate: CandidatePage) -> MatchDecision:
    """Compare a candidate page against the reference item.

    Checks run in order (mini/regular, shade, scent, shape, model numbers,
    size, product type, brand keywords); the first failing check rejects.

    Args:
        reference: Reference item (title, shade, long description)
        candidate: Candidate page content

    Returns:
        MatchDecision with the accept/reject outcome, the reason and a trace
    """
    trace: list[TraceEvent] = []

    def reject(stage: str, reason: str) -> MatchDecision:
        trace.append(TraceEvent(stage, f"rejected: {reason}"))
        return MatchDecision(False, f"{stage}: {reason}", trace)

    if not candidate.title:
        return reject("title", "candidate has no title")

    ref = _ReferenceTexts(
        long_description=normalize_text(reference.long_description),
        title=normalize_text(reference.title),
        shade=normalize_text(reference.shade),
    )
    candidate_text = f"{normalize_text(candidate.title)} {normalize_text(candidate.shade)}"
    trace.append(TraceEvent("input", f"candidate text {candidate_text[:80]!r}"))

    # Mini vs regular products must agree
    reference_is_mini = contains_mini(ref.title or ref.long_description)
    candidate_is_mini = contains_mini(candidate_text)
    if reference_is_mini != candidate_is_mini:
        kinds = {True: "mini", False: "regular"}
        return reject(
            "mini",
            f"reference is {kinds[reference_is_mini]}, candidate is {kinds[candidate_is_mini]}",
        )

    ref_colors = ref.first_non_empty(extract_color_phrases)
    var_colors = extract_color_phrases(candidate_text)
    trace.append(TraceEvent("shade", f"reference {ref_colors} | candidate {var_colors}"))
    if ref_colors:
        ok, detail = _check_shades(ref_colors, var_colors)
        if not ok:
            return reject("shade", detail)
        trace.append(TraceEvent("shade", detail))

    ref_scents = ref.first_non_empty(lambda text: extract_attribute_set(text, SCENT_WORDS))
    var_scents = extract_attribute_set(candidate_text, SCENT_WORDS)
    trace.append(TraceEvent("scent", f"reference {ref_scents} | candidate {var_scents}"))
    if not _same_attribute_set(ref_scents, var_scents):
        return reject("scent", f"reference {ref_scents}, candidate {var_scents}")

    ref_shapes = ref.first_non_empty(lambda text: extract_attribute_set(text, SHAPE_WORDS))
    var_shapes = extract_attribute_set(candidate_text, SHAPE_WORDS)
    trace.append(TraceEvent("shape", f"reference {ref_shapes} | candidate {var_shapes}"))
    if not _same_attribute_set(ref_shapes, var_shapes):
        return reject("shape", f"reference {ref_shapes}, candidate {var_shapes}")

    ref_sizes = ref.first_non_empty(extract_sizes)
    var_sizes = extract_sizes(candidate_text)

    ref_pack = (
        extract_pack_quantity(ref.long_description)
        or extract_pack_quantity(ref.title)
        or 1
    )
    var_pack = extract_pack_quantity(candidate_text) or 1

    ref_numbers = ref.first_non_empty(
        lambda text: extract_meaningful_numbers(text, ref_sizes, ref_pack, ref_colors)
    )
    var_numbers = extract_meaningful_numbers(candidate_text, var_sizes, var_pack, var_colors)
    trace.append(TraceEvent("model", f"reference {ref_numbers} | candidate {var_numbers}"))
    missing = [n for n in ref_numbers if n not in var_numbers]
    if missing:
        return reject("model", f"reference requires {missing[0]}, candidate has {var_numbers}")

    trace.append(TraceEvent("size", f"reference {ref_sizes} | candidate {var_sizes}"))
    if not _same_attribute_set(ref_sizes, var_sizes):
        return reject("size", f"reference {ref_sizes}, candidate {var_sizes}")

    ref_types = ref.first_non_empty(lambda text: extract_attribute_set(text, PRODUCT_TYPE_WORDS))
    if ref_types:
        var_types = extract_attribute_set(candidate_text, PRODUCT_TYPE_WORDS)
        shared = [word for word in ref_types if word in var_types]
        ratio = len(shared) / len(ref_types)
        if ratio < PRODUCT_TYPE_MIN_RATIO:
            return reject("product_type", f"reference {ref_types}, candidate {var_types}")
        trace.append(TraceEvent("product_type", f"overlap {ratio:.0%}"))

    keyword_source = (
        ref.long_description
        if len(ref.long_description) > KEYWORD_SOURCE_MIN_LENGTH
        else ref.title
    )
    keywords = extract_keywords(keyword_source)
    found = [word for word in keywords if word in candidate_text]
    if keywords and len(found) / len(keywords) < KEYWORD_MIN_RATIO:
        return reject("keywords", f"only {len(found)}/{len(keywords)} keywords matched")

    trace.append(TraceEvent("accepted", "product, shade and brand match"))
    return MatchDecision(True, "accepted", trace)


def is_matching_product(reference: ReferenceItem, candidate: CandidatePage) -> bool:
    """Return True when the candidate belongs to the reference product family."""
    return decide_match(reference, candidate).accepted
