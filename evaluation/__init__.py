"""Platform scoring: per-platform metrics, strategy weights and ranking."""

from .platform_metrics import (
    assess_catalog_eligibility,
    derive_platform_metrics,
)

from .strategy import (
    get_score_weights,
    determine_strategy_text,
)

from .platform_scoring import (
    rank_platforms,
    recommend_platforms,
    score_platform,
)

__all__ = [
    'assess_catalog_eligibility',
    'derive_platform_metrics',
    'get_score_weights',
    'determine_strategy_text',
    'rank_platforms',
    'recommend_platforms',
    'score_platform',
]
