"""Unit tests for the variant orchestrator.

Page sessions are replaced by an in-memory fake keyed by URL, so these tests
exercise discovery, batching, matching and ordering without a browser.
"""

from typing import Any, Optional

import pytest
from playwright.async_api import Error as PlaywrightError

from variant_scout.config import ScraperConfig
from variant_scout.errors import (
    CaptchaDetected,
    ExtractionError,
    NavigationError,
)
from variant_scout.models import (
    ASIN,
    CandidatePage,
    CandidateRef,
    ProductUrl,
    ReferencePageData,
    VariantResult,
)
from variant_scout.orchestrator import (
    VariantOrchestrator,
    batched,
    dedupe_results,
    select_candidates,
    sort_by_pack_quantity,
)

REFERENCE_URL = "https://www.amazon.com/dp/B0REF00001"


def product_url(identifier: str) -> str:
    return f"https://www.amazon.com/dp/{identifier}"


class FakeSession:
    """Stands in for PageSession; failures are configured per URL and stage."""

    def __init__(self, pages: dict[str, dict[str, Any]]):
        self.pages = pages
        self.url = ""
        self.timeout_ms: Optional[int] = None
        self.closed = False

    def _fail_at(self, stage: str) -> None:
        failure = self.pages.get(self.url, {}).get("fail")
        if failure and failure[0] == stage:
            raise failure[1]

    async def open(self, url: str, timeout_ms: int) -> None:
        self.url = url
        self.timeout_ms = timeout_ms
        self._fail_at("open")

    async def verify_content(self) -> bool:
        self._fail_at("verify")
        return self.pages[self.url].get("content", True)

    async def extract_reference(self) -> ReferencePageData:
        self._fail_at("extract")
        return self.pages[self.url]["data"]

    async def extract_candidate(self, ref: CandidateRef) -> CandidatePage:
        self._fail_at("extract")
        return self.pages[self.url]["data"]

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def candidate_page(identifier: str, title: str) -> dict[str, Any]:
    return {"data": CandidatePage(identifier=ASIN(identifier), title=title)}


def reference_page(candidates: list[str]) -> dict[str, Any]:
    return {
        "data": ReferencePageData(
            identifier=ASIN("B0REF00001"),
            title="Acme Travel Mug 12 oz",
            shade="",
            candidates=[CandidateRef(ASIN(c)) for c in candidates],
        )
    }


def make_orchestrator(pages: dict[str, dict[str, Any]]):
    sessions: list[FakeSession] = []
    delays: list[float] = []

    def session_factory(browser_manager) -> FakeSession:
        session = FakeSession(pages)
        sessions.append(session)
        return session

    async def sleep(delay: float) -> None:
        delays.append(delay)

    orchestrator = VariantOrchestrator(
        browser_manager=object(),
        config=ScraperConfig(),
        session_factory=session_factory,
        sleep=sleep,
    )
    return orchestrator, sessions, delays


@pytest.fixture
def family_pages() -> dict[str, dict[str, Any]]:
    return {
        REFERENCE_URL: reference_page(
            [
                "B0CAND0001",
                "B0CAND0002",
                "B0REF00001",
                "B0CAND0001",
                "B0CAND0003",
                "B0CAND0004",
                "B0CAND0005",
                "B0CAND0006",
            ]
        ),
        product_url("B0CAND0001"): candidate_page("B0CAND0001", "Acme Travel Mug 12 oz, Pack of 3"),
        product_url("B0CAND0002"): candidate_page("B0CAND0002", "Acme Travel Mug 12 oz, Pack of 2"),
        product_url("B0CAND0003"): {"fail": ("open", NavigationError("Timed out"))},
        product_url("B0CAND0004"): {"fail": ("verify", CaptchaDetected("blocked"))},
        product_url("B0CAND0005"): candidate_page("B0CAND0005", "Acme Travel Mug 16 oz"),
        product_url("B0CAND0006"): {"fail": ("extract", PlaywrightError("Target closed"))},
    }


@pytest.mark.unit
class TestFindVariants:
    """Test the full reference-to-results flow."""

    @pytest.mark.asyncio
    async def test_accepted_variants_ordered_by_pack(self, family_pages):
        """Main first, then accepted variants by ascending pack quantity."""
        orchestrator, _, _ = make_orchestrator(family_pages)

        results = await orchestrator.find_variants(REFERENCE_URL)

        assert [r.to_dict() for r in results] == [
            {
                "asin": "B0REF00001",
                "title": "Acme Travel Mug 12 oz",
                "shade": "",
                "url": "https://www.amazon.com/dp/B0REF00001",
                "packQty": 1,
                "isMain": True,
                "notes": "Main product",
            },
            {
                "asin": "B0CAND0002",
                "title": "Acme Travel Mug 12 oz, Pack of 2",
                "shade": "",
                "url": "https://www.amazon.com/dp/B0CAND0002",
                "packQty": 2,
                "isMain": False,
                "notes": "Variant",
            },
            {
                "asin": "B0CAND0001",
                "title": "Acme Travel Mug 12 oz, Pack of 3",
                "shade": "",
                "url": "https://www.amazon.com/dp/B0CAND0001",
                "packQty": 3,
                "isMain": False,
                "notes": "Variant",
            },
        ]

    @pytest.mark.asyncio
    async def test_batches_timeouts_and_cleanup(self, family_pages):
        """Six unique candidates run in two batches and every session is closed."""
        orchestrator, sessions, delays = make_orchestrator(family_pages)

        await orchestrator.find_variants(REFERENCE_URL)

        assert delays == [2.0, 0.7, 0.7]
        assert len(sessions) == 7
        assert all(session.closed for session in sessions)
        assert sessions[0].timeout_ms == 45000
        assert {session.timeout_ms for session in sessions[1:]} == {25000}
        assert REFERENCE_URL not in [session.url for session in sessions[1:]]

    @pytest.mark.asyncio
    async def test_reference_block_propagates(self):
        """A blocked reference page fails the attempt."""
        pages = {REFERENCE_URL: {"fail": ("verify", CaptchaDetected("blocked"))}}
        orchestrator, sessions, _ = make_orchestrator(pages)

        with pytest.raises(CaptchaDetected):
            await orchestrator.find_variants(REFERENCE_URL)

        assert sessions[0].closed

    @pytest.mark.asyncio
    async def test_reference_without_content(self):
        """A reference page without the product marker is an extraction error."""
        pages = {REFERENCE_URL: {**reference_page([]), "content": False}}
        orchestrator, _, _ = make_orchestrator(pages)

        with pytest.raises(ExtractionError, match="no product content"):
            await orchestrator.find_variants(REFERENCE_URL)

    @pytest.mark.asyncio
    async def test_no_candidates_returns_main_only(self):
        """The reference is always part of the result."""
        orchestrator, _, delays = make_orchestrator({REFERENCE_URL: reference_page([])})

        results = await orchestrator.find_variants(REFERENCE_URL)

        assert [r.identifier for r in results] == ["B0REF00001"]
        assert results[0].is_main is True
        assert delays == [2.0]

    @pytest.mark.asyncio
    async def test_pack_ties_keep_discovery_order(self):
        """Equal pack quantities keep the main item first, then discovery order."""
        pages = {
            REFERENCE_URL: reference_page(["B0CAND0002", "B0CAND0007", "B0CAND0008"]),
            product_url("B0CAND0002"): candidate_page("B0CAND0002", "Acme Travel Mug 12 oz, Pack of 2"),
            product_url("B0CAND0007"): candidate_page("B0CAND0007", "Acme Travel Mug 12 oz"),
            product_url("B0CAND0008"): candidate_page("B0CAND0008", "Acme Travel Mug 12 oz Gift"),
        }
        orchestrator, _, _ = make_orchestrator(pages)

        results = await orchestrator.find_variants(REFERENCE_URL)

        assert [r.identifier for r in results] == [
            "B0REF00001",
            "B0CAND0007",
            "B0CAND0008",
            "B0CAND0002",
        ]

    @pytest.mark.asyncio
    async def test_unexpected_candidate_error_skips_only_that_candidate(self):
        """Any exception on a candidate page leaves the rest of its batch intact."""
        pages = {
            REFERENCE_URL: reference_page(["B0CAND0009", "B0CAND0002"]),
            product_url("B0CAND0009"): {"fail": ("extract", KeyError("listItems"))},
            product_url("B0CAND0002"): candidate_page("B0CAND0002", "Acme Travel Mug 12 oz, Pack of 2"),
        }
        orchestrator, sessions, _ = make_orchestrator(pages)

        results = await orchestrator.find_variants(REFERENCE_URL)

        assert [r.identifier for r in results] == ["B0REF00001", "B0CAND0002"]
        assert all(session.closed for session in sessions)

    @pytest.mark.asyncio
    async def test_repeat_runs_are_identical(self, family_pages):
        """Same pages give the same results."""
        orchestrator, _, _ = make_orchestrator(family_pages)

        first = await orchestrator.find_variants(REFERENCE_URL)
        second = await orchestrator.find_variants(REFERENCE_URL)

        assert first == second


@pytest.mark.unit
class TestHelpers:
    """Test candidate selection and result ordering helpers."""

    def test_batched(self):
        refs = [CandidateRef(ASIN(f"B00000000{i}")) for i in range(7)]

        sizes = [len(batch) for batch in batched(refs, 3)]

        assert sizes == [3, 3, 1]

    def test_select_candidates(self):
        """Reference and repeated identifiers are skipped."""
        refs = [
            CandidateRef(ASIN("B000000002"), "Blue"),
            CandidateRef(ASIN("B000000001")),
            CandidateRef(ASIN("B000000002"), "again"),
            CandidateRef(ASIN("B000000003")),
        ]

        result = select_candidates(refs, "B000000001")

        assert result == [CandidateRef(ASIN("B000000002"), "Blue"), CandidateRef(ASIN("B000000003"))]

    def test_dedupe_and_sort(self):
        """First result per identifier is kept before a stable pack sort."""

        def result(identifier: str, pack: int, note: str = "Variant") -> VariantResult:
            return VariantResult(
                identifier=ASIN(identifier),
                title="",
                shade="",
                url=ProductUrl(product_url(identifier)),
                pack_quantity=pack,
                note=note,
            )

        results = [result("A", 1, "Main product"), result("B", 2), result("A", 3), result("C", 1)]

        ordered = sort_by_pack_quantity(dedupe_results(results))

        assert [(r.identifier, r.pack_quantity) for r in ordered] == [("A", 1), ("C", 1), ("B", 2)]
