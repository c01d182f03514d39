"""
Platform Data Model
===================
Marketplaces, their per-run metrics, seller preferences and scores.

PlatformMetrics are derived fresh per item and never cached across items.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Platform(Enum):
    """Supported marketplaces. Declaration order breaks score ties."""
    FINN = "finn"
    FACEBOOK = "facebook"
    AMAZON = "amazon"


PLATFORM_ORDER = {p: i for i, p in enumerate(Platform)}

PLATFORM_NAMES = {
    Platform.FINN: "FINN.no",
    Platform.FACEBOOK: "Facebook Marketplace",
    Platform.AMAZON: "Amazon",
}


class SellingStrategy(Enum):
    QUICK_SALE = "quick_sale"
    MARKET_PRICE = "market_price"
    MAXIMIZE_PROFIT = "maximize_profit"


class Timeframe(Enum):
    URGENT = "urgent"
    NORMAL = "normal"
    FLEXIBLE = "flexible"


class ExperienceLevel(Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


class RiskTolerance(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class UserPreferences:
    """How the seller wants to sell."""
    strategy: SellingStrategy = SellingStrategy.MARKET_PRICE
    timeframe: Timeframe = Timeframe.NORMAL
    experience_level: ExperienceLevel = ExperienceLevel.INTERMEDIATE
    risk_tolerance: RiskTolerance = RiskTolerance.MEDIUM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "timeframe": self.timeframe.value,
            "experience_level": self.experience_level.value,
            "risk_tolerance": self.risk_tolerance.value,
        }


@dataclass
class FeeStructure:
    listing_fee: float = 0.0
    transaction_fee_rate: float = 0.0

    def total(self, price: float) -> float:
        """Total fees for selling at price."""
        return self.listing_fee + price * self.transaction_fee_rate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "listing_fee": self.listing_fee,
            "transaction_fee_rate": self.transaction_fee_rate,
        }


@dataclass
class PlatformMetrics:
    """Market metrics for one platform, for one item."""
    platform: Platform
    average_price: int
    price_range_min: int
    price_range_max: int
    competitor_count: int
    estimated_days_to_sale: float
    fees: FeeStructure
    market_suitability: float
    confidence: float = 0.5
    market_share: float = 0.0   # percent of competitors across platforms

    @property
    def total_fees(self) -> float:
        return self.fees.total(self.average_price)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform.value,
            "average_price": self.average_price,
            "price_range": {"min": self.price_range_min, "max": self.price_range_max},
            "competitor_count": self.competitor_count,
            "estimated_days_to_sale": round(self.estimated_days_to_sale, 1),
            "fees": self.fees.to_dict(),
            "total_fees": round(self.total_fees, 2),
            "market_suitability": round(self.market_suitability, 3),
            "confidence": round(self.confidence, 3),
            "market_share": round(self.market_share, 1),
        }


@dataclass
class SubScores:
    """Unweighted sub-scores, each within its cap."""
    market: float = 0.0        # ≤ 25
    competition: float = 0.0   # ≤ 25
    fees: float = 0.0          # ≤ 20
    time: float = 0.0          # ≤ 15
    risk: float = 0.0          # ≤ 15
    experience: float = 0.0    # ≤ 10

    def to_dict(self) -> Dict[str, float]:
        return {
            "market": round(self.market, 2),
            "competition": round(self.competition, 2),
            "fees": round(self.fees, 2),
            "time": round(self.time, 2),
            "risk": round(self.risk, 2),
            "experience": round(self.experience, 2),
        }


@dataclass
class PlatformScore:
    platform: Platform
    score: int
    sub_scores: SubScores
    pros: List[str] = field(default_factory=list)
    cons: List[str] = field(default_factory=list)
    reasoning: str = ""
    estimated_revenue: float = 0.0
    estimated_days_to_sale: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform.value,
            "name": PLATFORM_NAMES[self.platform],
            "score": self.score,
            "sub_scores": self.sub_scores.to_dict(),
            "pros": list(self.pros),
            "cons": list(self.cons),
            "reasoning": self.reasoning,
            "estimated_revenue": round(self.estimated_revenue),
            "estimated_days_to_sale": round(self.estimated_days_to_sale, 1),
        }


@dataclass
class EligibilityResult:
    """Catalog / approval check for a platform that gates listings."""
    platform: Platform
    available: bool
    suitability: float = 0.0
    recommended: bool = False
    reasons: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def summary(self) -> str:
        name = PLATFORM_NAMES[self.platform]
        if self.error:
            return f"{name} eligibility check failed"
        if not self.available:
            return f"{name} not available for this item"
        verdict = "recommended" if self.recommended else "possible"
        return f"{name} {verdict} (suitability {self.suitability:.0%})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform.value,
            "available": self.available,
            "suitability": round(self.suitability, 3),
            "recommended": self.recommended,
            "reasons": list(self.reasons),
            "error": self.error,
            "summary": self.summary,
        }


@dataclass
class PlatformRecommendation:
    ranked: List[PlatformScore]
    primary: List[Platform]
    summary: Dict[str, Any] = field(default_factory=dict)
    fallback_used: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ranked": [s.to_dict() for s in self.ranked],
            "primary": [p.value for p in self.primary],
            "summary": dict(self.summary),
            "fallback_used": self.fallback_used,
        }
