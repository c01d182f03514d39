"""
Market pricing module - price estimates from observed comparable listings.
"""

import statistics
from typing import Iterable, List, Optional, Tuple

from models.item import ItemAttributes
from models.pricing import (
    ComparableListing,
    EstimateSource,
    PriceEstimate,
    PriceRange,
    PriceSuggestions,
)

MIN_SAMPLES = 1
FULL_CONFIDENCE_SAMPLES = 20
LIMITED_DATA_SAMPLES = 10
FALLBACK_QUERY = "brukt"


def generate_search_query(attributes: ItemAttributes) -> str:
    """
    Search query for the comparable-price lookup.

    brand + series (or model) + model number + up to two specs + colour.
    Falls back to the category, then to "brukt".
    """
    parts: List[str] = []
    if attributes.brand:
        parts.append(attributes.brand)
    if attributes.series:
        parts.append(attributes.series)
    elif attributes.model:
        parts.append(attributes.model)
    if attributes.model_number:
        parts.append(attributes.model_number)
    parts.extend(attributes.technical_specs[:2])
    if attributes.color:
        parts.append(attributes.color)

    # Drop repeated words ("Apple iPhone iPhone 13")
    words: List[str] = []
    seen = set()
    for part in parts:
        for word in str(part).split():
            if word.lower() not in seen:
                seen.add(word.lower())
                words.append(word)

    query = " ".join(words).strip()
    if len(query) < 3:
        query = (attributes.category or "").strip()
    if len(query) < 3:
        query = FALLBACK_QUERY
    return query


def collect_price_samples(
    listings: Iterable[ComparableListing],
    bounds: Optional[Tuple[float, float]] = None,
) -> List[int]:
    """Keeps positive prices inside bounds (inclusive)."""
    samples = []
    rejected = 0
    for listing in listings:
        price = listing.price
        if not price or price <= 0:
            rejected += 1
            continue
        if bounds and not (bounds[0] <= price <= bounds[1]):
            rejected += 1
            continue
        samples.append(int(price))
    if rejected:
        print(f"         Valid samples: {len(samples)}, Rejected: {rejected}")
    return samples


def analyze_observed_prices(prices: List[int]) -> Optional[PriceEstimate]:
    """
    Price estimate from observed comparable prices.

    confidence = (min(n / 20, 1) + max(0, 1 - coefficient_of_variation)) / 2

    Returns None if there are no usable prices.
    """
    samples = sorted(p for p in prices if p and p > 0)
    if len(samples) < MIN_SAMPLES:
        return None

    n = len(samples)
    average = round(statistics.mean(samples))
    median = round(statistics.median(samples))
    stdev = statistics.pstdev(samples) if n > 1 else 0.0
    cv = stdev / average if average else 1.0

    sample_confidence = min(n / FULL_CONFIDENCE_SAMPLES, 1.0)
    variance_confidence = max(0.0, 1.0 - cv)
    confidence = (sample_confidence + variance_confidence) / 2

    conservative = round(average * 0.85)
    optimistic = round(average * 1.15)

    insights = [f"Based on {n} comparable listings"]
    if n < LIMITED_DATA_SAMPLES:
        insights.append(f"Limited market data ({n} prices found)")
    if cv > 0.5:
        insights.append("Large price spread between listings")

    estimate = PriceEstimate(
        average_price=average,
        median_price=median,
        price_range=PriceRange(
            min=min(samples[0], conservative),
            max=max(samples[-1], optimistic),
        ),
        sample_size=n,
        confidence=confidence,
        suggestions=PriceSuggestions(
            conservative=conservative,
            market=average,
            optimistic=optimistic,
        ),
        estimate_source=EstimateSource.OBSERVED,
        insights=insights,
    )
    return estimate.validate()
