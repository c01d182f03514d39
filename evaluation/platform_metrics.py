"""
Platform Metrics
================
Per-platform market metrics for one item, derived fresh from the item and
its price estimate. Nothing here is cached across items.

Also scores catalog eligibility for platforms that gate listings (Amazon).
"""

from typing import List, Optional

from models.item import Condition, ItemAttributes
from models.platform import EligibilityResult, FeeStructure, Platform, PlatformMetrics
from models.pricing import EstimateSource, PriceEstimate
from pricing.depreciation import resolve_category

FINN_LISTING_FEE = 49.0
FACEBOOK_TRANSACTION_RATE = 0.05
AMAZON_TRANSACTION_RATES = {
    "electronics": 0.08,
    "default": 0.15,
}

FINN_DEFAULT_COMPETITORS = 10
FACEBOOK_COMPETITORS = 15
AMAZON_COMPETITORS = 25

ELIGIBILITY_RECOMMEND_THRESHOLD = 0.6


def _finn_metrics(item: ItemAttributes, estimate: PriceEstimate, category: str) -> PlatformMetrics:
    market = estimate.market_price

    if estimate.estimate_source == EstimateSource.OBSERVED and estimate.sample_size > 0:
        competitors = estimate.sample_size
        # Average above the typical listing sells slower
        if market <= estimate.median_price:
            days = 5.0
        elif market <= estimate.median_price * 1.1:
            days = 7.0
        else:
            days = 14.0
    else:
        competitors = FINN_DEFAULT_COMPETITORS
        days = 7.0

    suitability = 0.8
    if category == "electronics":
        suitability += 0.1
        days *= 0.8
    elif category == "furniture":
        days *= 1.3

    return PlatformMetrics(
        platform=Platform.FINN,
        average_price=market,
        price_range_min=estimate.price_range.min,
        price_range_max=estimate.price_range.max,
        competitor_count=competitors,
        estimated_days_to_sale=days,
        fees=FeeStructure(listing_fee=FINN_LISTING_FEE, transaction_fee_rate=0.0),
        market_suitability=min(1.0, suitability),
        confidence=estimate.confidence,
    )


def facebook_suitability(item: ItemAttributes, category: str, price: int) -> float:
    score = 0.7
    if category in ("furniture", "sports"):
        score += 0.2
    if price < 2000:
        score += 0.1
    elif price > 10000:
        score -= 0.1
    if item.condition == Condition.USED_FAIR:
        score += 0.1
    return max(0.0, min(1.0, score))


def _facebook_metrics(item: ItemAttributes, estimate: PriceEstimate, category: str) -> PlatformMetrics:
    price = round(estimate.market_price * 0.9)
    return PlatformMetrics(
        platform=Platform.FACEBOOK,
        average_price=price,
        price_range_min=round(estimate.price_range.min * 0.9),
        price_range_max=round(estimate.price_range.max * 0.9),
        competitor_count=FACEBOOK_COMPETITORS,
        estimated_days_to_sale=3.0 if category == "furniture" else 5.0,
        fees=FeeStructure(listing_fee=0.0, transaction_fee_rate=FACEBOOK_TRANSACTION_RATE),
        market_suitability=facebook_suitability(item, category, price),
        confidence=estimate.confidence * 0.9,
    )


def _amazon_metrics(estimate: PriceEstimate, category: str, eligibility: EligibilityResult) -> PlatformMetrics:
    rate = AMAZON_TRANSACTION_RATES.get(category, AMAZON_TRANSACTION_RATES["default"])
    return PlatformMetrics(
        platform=Platform.AMAZON,
        average_price=round(estimate.market_price * 1.1),
        price_range_min=round(estimate.price_range.min * 1.1),
        price_range_max=round(estimate.price_range.max * 1.1),
        competitor_count=AMAZON_COMPETITORS,
        estimated_days_to_sale=14.0,
        fees=FeeStructure(listing_fee=0.0, transaction_fee_rate=rate),
        market_suitability=eligibility.suitability,
        confidence=eligibility.suitability,
    )


def derive_platform_metrics(
    item: ItemAttributes,
    estimate: PriceEstimate,
    eligibility: Optional[EligibilityResult] = None,
) -> List[PlatformMetrics]:
    """
    Metrics for every platform the item can go on, in declaration order.

    Amazon is only included when the eligibility check reported it available.
    """
    category = resolve_category(item.category)

    metrics = [
        _finn_metrics(item, estimate, category),
        _facebook_metrics(item, estimate, category),
    ]
    if eligibility is not None and eligibility.available and eligibility.platform == Platform.AMAZON:
        metrics.append(_amazon_metrics(estimate, category, eligibility))

    total_competitors = sum(m.competitor_count for m in metrics)
    for m in metrics:
        m.market_share = (m.competitor_count / total_competitors * 100) if total_competitors else 0.0

    return metrics


def assess_catalog_eligibility(
    item: ItemAttributes,
    price: int,
    catalog_match: bool,
    can_list: bool,
    platform: Platform = Platform.AMAZON,
) -> EligibilityResult:
    """
    Suitability for a catalog-gated marketplace.

    0.3 base, +0.3 new/like new, +0.2 brand, +0.2 catalog match,
    +0.3 seller may list, +0.1 price above 50. Recommended from 0.6.
    """
    score = 0.3
    reasons = []

    if item.condition in (Condition.NEW, Condition.LIKE_NEW):
        score += 0.3
        reasons.append("Condition suits marketplace standards")
    else:
        reasons.append("Used condition limits marketplace appeal")
    if item.brand:
        score += 0.2
        reasons.append(f"Branded item ({item.brand})")
    if catalog_match:
        score += 0.2
        reasons.append("Found in product catalog")
    if can_list:
        score += 0.3
        reasons.append("Seller may list in this category")
    else:
        reasons.append("Category requires approval")
    if price > 50:
        score += 0.1

    score = min(1.0, score)
    return EligibilityResult(
        platform=platform,
        available=can_list,
        suitability=score,
        recommended=can_list and score >= ELIGIBILITY_RECOMMEND_THRESHOLD,
        reasons=reasons,
    )
