"""
Competitor Selection Pipeline (example producer)

Three traced steps over mock data:
1. keyword_generation  - mock LLM keyword extraction from the product title
2. candidate_search    - mock catalog search returning 50 candidates
3. apply_filters       - price band, rating and review filters, then pick the
                         qualified candidate with the most reviews (rating breaks ties)

Fully deterministic. Real LLM or catalog calls are out of scope.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..core.tracer import StepRecord, XRayTracer
from .mock_data import Product, get_candidate_products, get_reference_product

logger = logging.getLogger(__name__)

PIPELINE_NAME = "competitor_selection"

# Filter thresholds
PRICE_MIN_FACTOR = 0.5
PRICE_MAX_FACTOR = 2.0
MIN_RATING = 3.8
MIN_REVIEWS = 100

SEARCH_LIMIT = 50
SEARCH_TOTAL_RESULTS = 2847


class CompetitorSelectionError(Exception):
    """Pipeline could not select a competitor"""
    pass


@dataclass
class FilterResult:
    passed: bool
    detail: str


@dataclass
class CandidateEvaluation:
    asin: str
    title: str
    metrics: Dict[str, Any]
    filter_results: Dict[str, FilterResult]
    qualified: bool

    def to_dict(self) -> Dict[str, Any]:
        # Key names consumed by the trace viewer
        return {
            "asin": self.asin,
            "title": self.title,
            "metrics": self.metrics,
            "filterResults": {
                name: {"passed": result.passed, "detail": result.detail}
                for name, result in self.filter_results.items()
            },
            "qualified": self.qualified,
        }


class CompetitorSelectionPipeline:
    """
    Finds the best competitor for a reference product and traces every step.

    On any failure the execution is marked FAILED:<message> and the error is
    re-raised so the caller can report it.
    """

    def __init__(
        self,
        tracer: XRayTracer,
        reference_product: Optional[Product] = None,
        candidates: Optional[List[Product]] = None,
    ):
        self.tracer = tracer
        self.reference_product = reference_product or get_reference_product()
        self.candidates = candidates

    def run(self) -> str:
        """
        Run the pipeline.

        Returns:
            The execution id of the recorded trace
        """
        product = self.reference_product
        execution_id = self.tracer.start_execution({
            "referenceProduct": product,
            "pipeline": PIPELINE_NAME,
        })
        logger.info(f"Starting competitor selection for product: {product.title}")

        try:
            keywords = self._generate_keywords(execution_id, product)
            candidates = self._search_candidates(execution_id, keywords)
            selected = self._apply_filters_and_select(execution_id, candidates, product)
        except Exception as e:
            logger.exception("Competitor selection failed")
            self.tracer.fail_execution(execution_id, str(e))
            raise

        self.tracer.end_execution(execution_id)
        logger.info(f"Competitor selection completed. Selected: {selected.title}")
        return execution_id

    # ========================================================================
    # STEP 1: Keyword generation (mock LLM)
    # ========================================================================

    def _generate_keywords(self, execution_id: str, product: Product) -> List[str]:
        keywords = extract_keywords(product)

        self.tracer.record_step(execution_id, StepRecord(
            step_name="keyword_generation",
            input={
                "product_title": product.title,
                "category": product.category,
            },
            output={
                "keywords": keywords,
                "model": "gpt-4-mock",
            },
            reasoning="Extracted key product attributes: material (stainless steel), "
                      "capacity (32oz), feature (insulated)",
        ))
        return keywords

    # ========================================================================
    # STEP 2: Candidate search (mock API)
    # ========================================================================

    def _search_candidates(self, execution_id: str, keywords: List[str]) -> List[Product]:
        candidates = self.candidates if self.candidates is not None else get_candidate_products()

        self.tracer.record_step(execution_id, StepRecord(
            step_name="candidate_search",
            input={
                "keyword": keywords[0],
                "limit": SEARCH_LIMIT,
            },
            output={
                "total_results": SEARCH_TOTAL_RESULTS,
                "candidates_fetched": len(candidates),
                "candidates": candidates,
            },
            reasoning=f"Fetched top {len(candidates)} results by relevance; "
                      f"{SEARCH_TOTAL_RESULTS} total matches found",
        ))
        return candidates

    # ========================================================================
    # STEP 3: Filters and selection
    # ========================================================================

    def _apply_filters_and_select(
        self,
        execution_id: str,
        candidates: List[Product],
        reference: Product,
    ) -> Product:
        min_price = reference.price * PRICE_MIN_FACTOR
        max_price = reference.price * PRICE_MAX_FACTOR

        evaluations = [
            evaluate_candidate(candidate, min_price, max_price, MIN_RATING, MIN_REVIEWS)
            for candidate in candidates
        ]
        qualified = [
            candidate
            for candidate, evaluation in zip(candidates, evaluations)
            if evaluation.qualified
        ]

        selected = select_best_match(qualified)

        self.tracer.record_step(execution_id, StepRecord(
            step_name="apply_filters",
            input={
                "candidates_count": len(candidates),
                "reference_product": reference,
            },
            output={
                "total_evaluated": len(candidates),
                "passed": len(qualified),
                "failed": len(candidates) - len(qualified),
                "selected_competitor": selected,
            },
            reasoning=(
                f"Applied price (${min_price:.2f}-${max_price:.2f}), rating ({MIN_RATING:.1f}+), "
                f"and review count ({MIN_REVIEWS}+) filters. "
                f"Narrowed candidates from {len(candidates)} to {len(qualified)}. "
                f"Selected '{selected.title}' (highest review count: {selected.reviews}, "
                f"rating: {selected.rating:.1f}★)"
            ),
            metadata={
                "filters_applied": {
                    "price_range": {
                        "min": min_price,
                        "max": max_price,
                        "rule": "0.5x - 2x of reference price",
                    },
                    "min_rating": {
                        "value": MIN_RATING,
                        "rule": "Must be at least 3.8 stars",
                    },
                    "min_reviews": {
                        "value": MIN_REVIEWS,
                        "rule": "Must have at least 100 reviews",
                    },
                },
                "evaluations": evaluations,
            },
        ))
        return selected


def extract_keywords(product: Product) -> List[str]:
    """Mock LLM keyword extraction"""
    title = product.title.lower()
    keywords = ["stainless steel water bottle insulated"]

    if "32oz" in title or "30oz" in title:
        keywords.append("vacuum insulated bottle 32oz")
    else:
        keywords.append("insulated water bottle")

    return keywords


def evaluate_candidate(
    candidate: Product,
    min_price: float,
    max_price: float,
    min_rating: float,
    min_reviews: int,
) -> CandidateEvaluation:
    price = candidate.price

    passes_price = min_price <= price <= max_price
    if passes_price:
        price_detail = f"${price:.2f} is within ${min_price:.2f}-${max_price:.2f}"
    elif price < min_price:
        price_detail = f"${price:.2f} is below minimum ${min_price:.2f}"
    else:
        price_detail = f"${price:.2f} is above maximum ${max_price:.2f}"

    passes_rating = candidate.rating >= min_rating
    rating_detail = (
        f"{candidate.rating:.1f} >= {min_rating:.1f}"
        if passes_rating
        else f"{candidate.rating:.1f} < {min_rating:.1f} threshold"
    )

    passes_reviews = candidate.reviews >= min_reviews
    reviews_detail = (
        f"{candidate.reviews} >= {min_reviews}"
        if passes_reviews
        else f"{candidate.reviews} < {min_reviews} minimum"
    )

    return CandidateEvaluation(
        asin=candidate.asin,
        title=candidate.title,
        metrics={
            "price": candidate.price,
            "rating": candidate.rating,
            "reviews": candidate.reviews,
        },
        filter_results={
            "price_range": FilterResult(passes_price, price_detail),
            "min_rating": FilterResult(passes_rating, rating_detail),
            "min_reviews": FilterResult(passes_reviews, reviews_detail),
        },
        qualified=passes_price and passes_rating and passes_reviews,
    )


def select_best_match(qualified: List[Product]) -> Product:
    """Most reviews wins, rating breaks ties"""
    if not qualified:
        raise CompetitorSelectionError("No qualified products found")
    return max(qualified, key=lambda product: (product.reviews, product.rating))
