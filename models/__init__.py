"""
Models Package - Listing Pipeline Data Contracts
=================================================
Dataclasses shared by valuation, scoring, negotiation and the orchestrator.
"""

from models.item import Condition, ItemAttributes, ListingDraft
from models.pricing import (
    EstimateSource,
    PriceEstimate,
    PriceRange,
    PriceRangeRecommendation,
    PriceSuggestions,
    PriceValidation,
)
from models.platform import (
    Platform,
    PlatformMetrics,
    PlatformScore,
    SellingStrategy,
    UserPreferences,
)
from models.workflow import WorkflowInput, WorkflowPhase, WorkflowResult, WorkflowState
from models.chat import ChatAction, ChatContext, ChatResponse

__all__ = [
    'Condition',
    'ItemAttributes',
    'ListingDraft',
    'EstimateSource',
    'PriceEstimate',
    'PriceRange',
    'PriceRangeRecommendation',
    'PriceSuggestions',
    'PriceValidation',
    'Platform',
    'PlatformMetrics',
    'PlatformScore',
    'SellingStrategy',
    'UserPreferences',
    'WorkflowInput',
    'WorkflowPhase',
    'WorkflowResult',
    'WorkflowState',
    'ChatAction',
    'ChatContext',
    'ChatResponse',
]
