"""AI-backed extraction: vision analysis and listing copy."""

from .ai_extractor import VisionAnalyzer
from .content_optimizer import (
    ContentOptimizer,
    determine_target_platform,
    validate_optimized_listing,
)

__all__ = [
    'VisionAnalyzer',
    'ContentOptimizer',
    'determine_target_platform',
    'validate_optimized_listing',
]
