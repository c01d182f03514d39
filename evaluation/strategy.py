"""
Selling strategy weights for platform scoring.

Strategy and seller profile only reweight the six sub-scores; the sub-score
formulas themselves live in evaluation.platform_scoring and never look at
preferences except for the urgency, tolerance and experience bonuses they define.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

from models.platform import ExperienceLevel, SellingStrategy, Timeframe, UserPreferences


@dataclass(frozen=True)
class ScoreWeights:
    market: float = 1.0
    competition: float = 1.0
    fees: float = 1.0
    time: float = 1.0
    risk: float = 1.0
    experience: float = 1.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "market": self.market,
            "competition": self.competition,
            "fees": self.fees,
            "time": self.time,
            "risk": self.risk,
            "experience": self.experience,
        }


STRATEGY_WEIGHTS = {
    SellingStrategy.QUICK_SALE: {"time": 1.5, "competition": 1.3, "fees": 0.8},
    SellingStrategy.MARKET_PRICE: {},
    SellingStrategy.MAXIMIZE_PROFIT: {"market": 1.4, "fees": 1.3, "time": 0.7},
}

STRATEGY_TEXT = {
    SellingStrategy.QUICK_SALE: "Prioritize fast sale over maximum price",
    SellingStrategy.MARKET_PRICE: "Balance price and speed at market level",
    SellingStrategy.MAXIMIZE_PROFIT: "Focus on maximizing profit, accept longer sale time",
}


def get_score_weights(preferences: UserPreferences) -> ScoreWeights:
    """
    Weight vector for the seller's preferences.

    Base 1.0 each; strategy overrides first, then urgency and beginner overrides.
    """
    weights = dict(ScoreWeights().to_dict())
    weights.update(STRATEGY_WEIGHTS.get(preferences.strategy, {}))

    if preferences.timeframe == Timeframe.URGENT:
        weights["time"] = 1.5
    if preferences.experience_level == ExperienceLevel.BEGINNER:
        weights["experience"] = 1.3
        weights["risk"] = 1.2

    return ScoreWeights(**weights)


def determine_strategy_text(preferences: UserPreferences) -> Tuple[str, str]:
    """
    Returns:
        Tuple of (strategy, human-readable description)
    """
    return (preferences.strategy.value, STRATEGY_TEXT[preferences.strategy])
