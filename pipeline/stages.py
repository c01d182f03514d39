"""
Pipeline Stages
===============
One async adapter per stage. Each reads the state built so far, calls
its collaborator or engine, and returns Ok(value, summary). Failures are
raised; the orchestrator turns them into Degraded / Fatal.

Each soft stage also has a placeholder builder used when it fails.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from config import Cfg
from core.errors import HardStageFailure
from core.text_signals import TextSignalExtractor
from evaluation.platform_metrics import assess_catalog_eligibility, derive_platform_metrics
from evaluation.platform_scoring import recommend_platforms
from extraction.ai_extractor import VisionAnalyzer
from extraction.content_optimizer import ContentOptimizer
from marketplaces.catalog import CatalogLookup, UnconfiguredCatalog
from marketplaces.comparables import ComparablePriceLookup, NullComparableLookup
from marketplaces.publisher import PlatformPublisher, build_payload, generate_listing_id, publish_listing
from models.item import CONDITION_LABELS, ListingDraft
from models.platform import PLATFORM_NAMES, EligibilityResult, Platform, PlatformRecommendation
from models.pricing import EstimateSource, PriceEstimate, PriceValidation
from models.workflow import (
    SLOT_ELIGIBILITY,
    SLOT_PRICE_RANGE,
    SLOT_PRICE_VALIDATION,
    SLOT_VISION,
    SLOT_CONTENT,
    WorkflowInput,
    WorkflowState,
)
from pipeline.decision_gates import (
    STAGE_CONTENT,
    STAGE_ELIGIBILITY,
    STAGE_PLATFORMS,
    STAGE_PRICE_RANGE,
    STAGE_PRICE_VALIDATION,
    STAGE_PUBLISHING,
    STAGE_VISION,
    Ok,
)
from pricing.depreciation import is_premium_brand
from pricing.market_pricing import analyze_observed_prices, collect_price_samples, generate_search_query
from pricing.valuation import (
    assess_price_position,
    build_price_estimate,
    estimate_used_price,
    fallback_estimate,
    format_price_range,
    suggest_price_range,
)
from utils_logging import log_debug
from utils_text import format_nok


@dataclass
class PipelineDeps:
    """Collaborators for one orchestrator. Shared by runs, holds no run state."""
    vision: VisionAnalyzer
    content: ContentOptimizer
    comparables: ComparablePriceLookup = field(default_factory=NullComparableLookup)
    catalog: CatalogLookup = field(default_factory=UnconfiguredCatalog)
    publishers: Dict[Platform, PlatformPublisher] = field(default_factory=dict)
    extractor: Optional[TextSignalExtractor] = None
    current_year: Optional[int] = None


def _draft(state: WorkflowState) -> ListingDraft:
    return state.result(SLOT_VISION)


def _vision_estimate(draft: ListingDraft, cfg: Cfg) -> PriceEstimate:
    """The vision model's own price, spread into a modeled estimate."""
    if draft.suggested_price > 0:
        estimate = build_price_estimate(draft.suggested_price, draft.price_confidence, EstimateSource.MODELED)
        estimate.insights = ["AI suggested price (market check unavailable)"]
        return estimate
    return fallback_estimate(cfg.valuation.fallback_price)


def _current_estimate(state: WorkflowState, cfg: Cfg) -> PriceEstimate:
    validation = state.result(SLOT_PRICE_VALIDATION)
    if validation is not None and validation.estimate is not None:
        return validation.estimate
    return _vision_estimate(_draft(state), cfg)


# ----------------------------------------------------------------------
# Stage 1 - vision analysis (hard)
# ----------------------------------------------------------------------

async def run_vision(inp: WorkflowInput, state: WorkflowState, deps: PipelineDeps, cfg: Cfg) -> Ok:
    draft = await deps.vision.analyze(inp.image_ref, inp.hints, inp.language)
    label = CONDITION_LABELS.get(inp.language, CONDITION_LABELS["nb-NO"])[draft.attributes.condition]
    category = draft.category or "uncategorized"
    return Ok(draft, f"Identified {draft.title} ({category}, {label.lower()})")


# ----------------------------------------------------------------------
# Stage 2 - price validation (soft)
# ----------------------------------------------------------------------

async def run_price_validation(inp: WorkflowInput, state: WorkflowState, deps: PipelineDeps, cfg: Cfg) -> Ok:
    draft = _draft(state)
    attrs = draft.attributes.copy()
    query = generate_search_query(attrs)

    bounds = None
    if draft.suggested_price > 0:
        low, high = cfg.valuation.comparable_bounds
        bounds = (draft.suggested_price * low, draft.suggested_price * high)

    listings = await deps.comparables.search(query, attrs.category or None, bounds)
    estimate = analyze_observed_prices(collect_price_samples(listings, bounds))

    if estimate is None:
        log_debug(f"No comparables for '{query}', using depreciation model")
        estimate = estimate_used_price(
            category=attrs.category,
            condition=attrs.condition,
            new_price=draft.estimated_new_price,
            age_hint=draft.age_hint,
            premium_brand=is_premium_brand(attrs.brand),
            direct_estimate=draft.suggested_price or None,
            confidence=draft.price_confidence,
            region_adjustment=cfg.valuation.region_adjustment,
            fallback_price=cfg.valuation.fallback_price,
            current_year=deps.current_year,
            extractor=deps.extractor,
        )

    position, recommendation = ("market_range", "good")
    if draft.suggested_price > 0:
        position, recommendation = assess_price_position(draft.suggested_price, estimate)

    validation = PriceValidation(
        success=True,
        estimate=estimate,
        search_query=query,
        price_position=position,
        recommendation=recommendation,
    )
    return Ok(validation, validation.summary)


def price_validation_placeholder(inp: WorkflowInput, state: WorkflowState, cfg: Cfg, reason: str) -> PriceValidation:
    draft = _draft(state)
    return PriceValidation(
        success=False,
        estimate=_vision_estimate(draft, cfg),
        search_query=generate_search_query(draft.attributes),
        error=reason,
    )


# ----------------------------------------------------------------------
# Stage 3 - catalog eligibility (soft)
# ----------------------------------------------------------------------

async def run_eligibility(inp: WorkflowInput, state: WorkflowState, deps: PipelineDeps, cfg: Cfg) -> Ok:
    attrs = _draft(state).attributes.copy()
    price = _current_estimate(state, cfg).market_price
    match = await deps.catalog.lookup(attrs)

    eligibility = assess_catalog_eligibility(attrs, price, match.found, match.can_list, Platform.AMAZON)
    if match.reason:
        eligibility.reasons.append(match.reason)
    return Ok(eligibility, eligibility.summary)


def eligibility_placeholder(inp: WorkflowInput, state: WorkflowState, cfg: Cfg, reason: str) -> EligibilityResult:
    return EligibilityResult(platform=Platform.AMAZON, available=False, error=reason)


# ----------------------------------------------------------------------
# Stage 4 - platform ranking (soft)
# ----------------------------------------------------------------------

async def run_platform_ranking(inp: WorkflowInput, state: WorkflowState, deps: PipelineDeps, cfg: Cfg) -> Ok:
    attrs = _draft(state).attributes.copy()
    estimate = _current_estimate(state, cfg)
    eligibility = state.result(SLOT_ELIGIBILITY)

    metrics = derive_platform_metrics(attrs, estimate, eligibility)
    recommendation = recommend_platforms(metrics, inp.preferences, cfg.scoring.recommend_threshold)

    top = recommendation.ranked[0]
    names = ", ".join(PLATFORM_NAMES[p] for p in recommendation.primary)
    return Ok(recommendation, f"Recommended {names} (top score {top.score}/100)")


def platform_ranking_placeholder(inp: WorkflowInput, state: WorkflowState, cfg: Cfg, reason: str) -> PlatformRecommendation:
    return PlatformRecommendation(ranked=[], primary=list(inp.target_platforms), fallback_used=True)


# ----------------------------------------------------------------------
# Stage 5 - price range (hard)
# ----------------------------------------------------------------------

async def run_price_range(inp: WorkflowInput, state: WorkflowState, deps: PipelineDeps, cfg: Cfg) -> Ok:
    estimate = _current_estimate(state, cfg)
    recommendation = suggest_price_range(estimate, inp.preferences.strategy)
    return Ok(recommendation,
              f"Recommended price {format_nok(recommendation.recommended_price)} "
              f"(range {format_price_range(recommendation)})")


# ----------------------------------------------------------------------
# Stage 6 - listing copy (hard)
# ----------------------------------------------------------------------

async def run_content(inp: WorkflowInput, state: WorkflowState, deps: PipelineDeps, cfg: Cfg) -> Ok:
    listing = await deps.content.optimize(
        _draft(state),
        state.result(SLOT_PRICE_RANGE),
        list(state.target_platforms),
        inp.preferences.strategy,
        inp.language,
    )
    return Ok(listing, f"Listing ready: {listing.title}")


# ----------------------------------------------------------------------
# Stage 7 - publishing (hard when every platform fails)
# ----------------------------------------------------------------------

async def run_publishing(inp: WorkflowInput, state: WorkflowState, deps: PipelineDeps, cfg: Cfg) -> Ok:
    listing = state.result(SLOT_CONTENT)
    attrs = _draft(state).attributes
    payload = build_payload(listing, generate_listing_id(), inp.image_ref,
                            attrs.category, attrs.condition.value)

    platforms = list(state.target_platforms)
    result = await publish_listing(payload, platforms, deps.publishers)

    if not result.success:
        errors = "; ".join(f"{PLATFORM_NAMES[p.platform]}: {p.error}" for p in result.platforms)
        raise HardStageFailure(STAGE_PUBLISHING, f"Publishing failed on every platform ({errors})")

    summary = f"Published to {len(result.published)} of {len(platforms)} platforms"
    if result.failed:
        summary += " (failed: " + ", ".join(PLATFORM_NAMES[p] for p in result.failed) + ")"
    return Ok(result, summary)


STAGE_RUNNERS = {
    STAGE_VISION: run_vision,
    STAGE_PRICE_VALIDATION: run_price_validation,
    STAGE_ELIGIBILITY: run_eligibility,
    STAGE_PLATFORMS: run_platform_ranking,
    STAGE_PRICE_RANGE: run_price_range,
    STAGE_CONTENT: run_content,
    STAGE_PUBLISHING: run_publishing,
}

STAGE_PLACEHOLDERS = {
    STAGE_PRICE_VALIDATION: price_validation_placeholder,
    STAGE_ELIGIBILITY: eligibility_placeholder,
    STAGE_PLATFORMS: platform_ranking_placeholder,
}
