"""
Pricing Data Model
==================
Price estimates, validation results and recommended price ranges.

INVARIANT: min ≤ conservative ≤ market ≤ optimistic ≤ max
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from core.errors import ValidationError


class EstimateSource(Enum):
    """Where a price estimate came from"""
    OBSERVED = "observed"   # comparable listings
    MODELED = "modeled"     # depreciation model / direct estimate


@dataclass
class PriceRange:
    min: int
    max: int

    def to_dict(self) -> Dict[str, Any]:
        return {"min": self.min, "max": self.max}


@dataclass
class PriceSuggestions:
    conservative: int
    market: int
    optimistic: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conservative": self.conservative,
            "market": self.market,
            "optimistic": self.optimistic,
        }


@dataclass
class DepreciationInfo:
    rate: float
    category: str
    estimated_age_years: float
    breakdown: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rate": self.rate,
            "category": self.category,
            "estimated_age_years": self.estimated_age_years,
            "breakdown": list(self.breakdown),
        }


@dataclass
class PriceEstimate:
    """Used-price estimate for one item."""

    average_price: int
    median_price: int
    price_range: PriceRange
    sample_size: int
    confidence: float
    suggestions: PriceSuggestions
    estimate_source: EstimateSource
    depreciation: Optional[DepreciationInfo] = None
    new_price: Optional[int] = None
    insights: List[str] = field(default_factory=list)

    @property
    def market_price(self) -> int:
        return self.suggestions.market

    def is_ordered(self) -> bool:
        s = self.suggestions
        return self.price_range.min <= s.conservative <= s.market <= s.optimistic <= self.price_range.max

    def validate(self) -> "PriceEstimate":
        """Raises ValidationError if the ordering or confidence bounds are broken."""
        if not self.is_ordered():
            s = self.suggestions
            raise ValidationError(
                f"Price estimate out of order: {self.price_range.min} / {s.conservative} / "
                f"{s.market} / {s.optimistic} / {self.price_range.max}",
                fields=["price_range", "suggestions"],
            )
        if not 0.0 <= self.confidence <= 1.0:
            raise ValidationError(f"Confidence {self.confidence} outside [0, 1]", fields=["confidence"])
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average_price": self.average_price,
            "median_price": self.median_price,
            "price_range": self.price_range.to_dict(),
            "sample_size": self.sample_size,
            "confidence": round(self.confidence, 3),
            "suggestions": self.suggestions.to_dict(),
            "estimate_source": self.estimate_source.value,
            "depreciation": self.depreciation.to_dict() if self.depreciation else None,
            "new_price": self.new_price,
            "insights": list(self.insights),
        }


@dataclass
class PriceValidation:
    """Result of checking the vision price against the market."""

    success: bool
    estimate: Optional[PriceEstimate] = None
    search_query: str = ""
    price_position: str = "unknown"     # below_market | market_range | above_market
    recommendation: str = "good"        # increase | decrease | good
    error: Optional[str] = None

    @property
    def summary(self) -> str:
        if not self.success or self.estimate is None:
            return "Price validation failed, using AI suggested price"
        e = self.estimate
        source = "comparables" if e.estimate_source == EstimateSource.OBSERVED else "depreciation model"
        return (f"Market price {e.market_price} NOK from {source} "
                f"({self.price_position.replace('_', ' ')})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "estimate": self.estimate.to_dict() if self.estimate else None,
            "search_query": self.search_query,
            "price_position": self.price_position,
            "recommendation": self.recommendation,
            "error": self.error,
            "summary": self.summary,
        }


@dataclass
class PriceRangeRecommendation:
    """Recommended asking price for the listing."""

    min_price: int
    max_price: int
    recommended_price: int
    strategy: str
    confidence: float
    reasoning: str = ""
    estimate: Optional[PriceEstimate] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_price": self.min_price,
            "max_price": self.max_price,
            "recommended_price": self.recommended_price,
            "strategy": self.strategy,
            "confidence": round(self.confidence, 3),
            "reasoning": self.reasoning,
            "estimate": self.estimate.to_dict() if self.estimate else None,
        }


@dataclass
class ComparableListing:
    """One observed listing returned by the comparable-price lookup."""
    title: str
    price: int
    url: str = ""
    condition: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "price": self.price,
            "url": self.url,
            "condition": self.condition,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ComparableListing":
        return ComparableListing(
            title=data.get("title", ""),
            price=int(round(float(data.get("price") or 0))),
            url=data.get("url", ""),
            condition=data.get("condition"),
        )
