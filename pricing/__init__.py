"""Valuation engine: depreciation models, modeled and observed price estimates."""

from .depreciation import (
    calculate_depreciation,
    parse_age_to_years,
    resolve_category,
    is_premium_brand,
)

from .market_pricing import (
    analyze_observed_prices,
    collect_price_samples,
    generate_search_query,
)

from .valuation import (
    assess_price_position,
    build_price_estimate,
    estimate_used_price,
    suggest_price_range,
)

__all__ = [
    'calculate_depreciation',
    'parse_age_to_years',
    'resolve_category',
    'is_premium_brand',
    'analyze_observed_prices',
    'collect_price_samples',
    'generate_search_query',
    'assess_price_position',
    'build_price_estimate',
    'estimate_used_price',
    'suggest_price_range',
]
