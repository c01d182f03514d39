"""
Valuation Engine
================
Used-price estimates for items without observed comparables, and the
recommended asking-price range per selling strategy.

Flow:
1. New price known   → depreciate with the category model
2. No new price      → use the direct used-price estimate from the vision model
3. Neither           → configured fallback price, confidence 0.1
4. Apply the regional market adjustment
5. Spread into conservative / market / optimistic and a wider display range
"""

from typing import Optional, Tuple

from core.errors import ValidationError
from core.text_signals import TextSignalExtractor
from models.item import Condition
from models.platform import SellingStrategy
from models.pricing import (
    DepreciationInfo,
    EstimateSource,
    PriceEstimate,
    PriceRange,
    PriceRangeRecommendation,
    PriceSuggestions,
)
from pricing.depreciation import calculate_depreciation, parse_age_to_years, resolve_category
from utils_logging import log_debug
from utils_text import format_nok

DEFAULT_REGION_ADJUSTMENT = 1.1
DEFAULT_FALLBACK_PRICE = 1000

# Modeled estimates never claim more than this
MAX_MODELED_CONFIDENCE = 0.5
FALLBACK_CONFIDENCE = 0.1
MAX_RANGE_CONFIDENCE = 0.8

CONSERVATIVE_FACTOR = 0.85
OPTIMISTIC_FACTOR = 1.15
DISPLAY_MIN_FACTOR = 0.8
DISPLAY_MAX_FACTOR = 1.3


def build_price_estimate(
    price: int,
    confidence: float,
    source: EstimateSource = EstimateSource.MODELED,
    sample_size: int = 0,
) -> PriceEstimate:
    """Spreads a single price into the standard three-point estimate."""
    if price <= 0:
        raise ValidationError(f"Cannot build a price estimate from {price}", fields=["price"])
    if source == EstimateSource.MODELED:
        confidence = min(confidence, MAX_MODELED_CONFIDENCE)
    return PriceEstimate(
        average_price=price,
        median_price=price,
        price_range=PriceRange(
            min=round(price * DISPLAY_MIN_FACTOR),
            max=round(price * DISPLAY_MAX_FACTOR),
        ),
        sample_size=sample_size,
        confidence=max(0.0, min(1.0, confidence)),
        suggestions=PriceSuggestions(
            conservative=round(price * CONSERVATIVE_FACTOR),
            market=price,
            optimistic=round(price * OPTIMISTIC_FACTOR),
        ),
        estimate_source=source,
    )


def fallback_estimate(fallback_price: int = DEFAULT_FALLBACK_PRICE) -> PriceEstimate:
    """Last-resort estimate when nothing about the price is known."""
    return PriceEstimate(
        average_price=fallback_price,
        median_price=fallback_price,
        price_range=PriceRange(min=round(fallback_price * 0.5), max=round(fallback_price * 2.0)),
        sample_size=0,
        confidence=FALLBACK_CONFIDENCE,
        suggestions=PriceSuggestions(
            conservative=round(fallback_price * 0.8),
            market=fallback_price,
            optimistic=round(fallback_price * 1.2),
        ),
        estimate_source=EstimateSource.MODELED,
        insights=["Could not estimate price", "Manual market check recommended"],
    )


def estimate_used_price(
    category: Optional[str],
    condition: Condition,
    new_price: Optional[int] = None,
    age_hint: Optional[str] = None,
    premium_brand: bool = False,
    direct_estimate: Optional[int] = None,
    confidence: float = MAX_MODELED_CONFIDENCE,
    region_adjustment: float = DEFAULT_REGION_ADJUSTMENT,
    fallback_price: int = DEFAULT_FALLBACK_PRICE,
    current_year: Optional[int] = None,
    extractor: Optional[TextSignalExtractor] = None,
) -> PriceEstimate:
    """
    Modeled used-price estimate.

    Args:
        category: Free-text category, resolved to a depreciation model
        condition: Item condition
        new_price: Retail price of the item new (NOK), if known
        age_hint: Free-text age ("2 år", "2019", "vintage")
        premium_brand: Apply the category's brand-premium offset
        direct_estimate: Used price to fall back to when new_price is missing
        confidence: Caller's confidence, capped at 0.5
        region_adjustment: Multiplier applied to the final figure

    Returns:
        PriceEstimate with sample_size 0 and estimate_source MODELED
    """
    insights = ["Price estimated with depreciation model"]
    depreciation = None

    if new_price and new_price > 0:
        age_years = parse_age_to_years(age_hint, current_year, extractor)
        rate, breakdown = calculate_depreciation(category, condition, age_years, premium_brand)
        base_price = round(new_price * (1 - rate))
        depreciation = DepreciationInfo(
            rate=rate,
            category=resolve_category(category),
            estimated_age_years=age_years,
            breakdown=breakdown,
        )
        insights.extend(breakdown)
        log_debug(f"Depreciation {rate:.0%}: {new_price} → {base_price} NOK")
    elif direct_estimate and direct_estimate > 0:
        base_price = int(direct_estimate)
        insights.append("Direct used-price estimate (new price not found)")
    else:
        return fallback_estimate(fallback_price)

    final_price = round(base_price * region_adjustment)
    if final_price <= 0:
        return fallback_estimate(fallback_price)

    if new_price:
        insights.append(f"New price: {format_nok(new_price)} → used: {format_nok(final_price)}")
    insights.append(f"Regional adjustment ×{region_adjustment}")

    estimate = build_price_estimate(final_price, confidence, EstimateSource.MODELED)
    estimate.depreciation = depreciation
    estimate.new_price = new_price if new_price else None
    estimate.insights = insights
    return estimate.validate()


def assess_price_position(price: int, estimate: PriceEstimate) -> Tuple[str, str]:
    """
    Where a price sits relative to the market.

    Returns:
        (position, recommendation): below_market/increase, above_market/decrease
        or market_range/good
    """
    if price < estimate.suggestions.conservative:
        return ("below_market", "increase")
    if price > estimate.suggestions.optimistic:
        return ("above_market", "decrease")
    return ("market_range", "good")


def suggest_price_range(estimate: PriceEstimate, strategy: SellingStrategy) -> PriceRangeRecommendation:
    """
    Recommended asking price per strategy.

    quick_sale → conservative, market_price → market, maximize_profit → optimistic.
    The range always spans conservative..optimistic.
    """
    s = estimate.suggestions
    if strategy == SellingStrategy.QUICK_SALE:
        recommended = s.conservative
        reasoning = "Priced below market for a quick sale"
    elif strategy == SellingStrategy.MAXIMIZE_PROFIT:
        recommended = s.optimistic
        reasoning = "Priced above market; expect a longer sale"
    else:
        recommended = s.market
        reasoning = "Priced at market level"

    if estimate.estimate_source == EstimateSource.OBSERVED:
        reasoning += f" ({estimate.sample_size} comparable listings)"
    else:
        reasoning += " (modeled estimate, no comparable listings)"

    rec = PriceRangeRecommendation(
        min_price=s.conservative,
        max_price=s.optimistic,
        recommended_price=recommended,
        strategy=strategy.value,
        confidence=min(estimate.confidence, MAX_RANGE_CONFIDENCE),
        reasoning=reasoning,
        estimate=estimate,
    )
    validate_price_range(rec)
    return rec


def validate_price_range(rec: PriceRangeRecommendation) -> PriceRangeRecommendation:
    if rec.min_price <= 0:
        raise ValidationError("Minimum price must be positive", fields=["min_price"])
    if rec.min_price > rec.max_price:
        raise ValidationError("Minimum price above maximum price", fields=["min_price", "max_price"])
    if not rec.min_price <= rec.recommended_price <= rec.max_price:
        raise ValidationError("Recommended price outside range", fields=["recommended_price"])
    return rec


def format_price_range(rec: PriceRangeRecommendation) -> str:
    """"2 338 - 3 163 NOK"."""
    low = format_nok(rec.min_price).replace(" NOK", "")
    return f"{low} - {format_nok(rec.max_price)}"
