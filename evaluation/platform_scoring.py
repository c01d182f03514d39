"""
Platform Scoring Engine
=======================
0-100 suitability score per marketplace from six capped sub-scores:

    market ≤25, competition ≤25, fees ≤20, time ≤15, risk ≤15, experience ≤10

Each sub-score is a pure function of the platform's metrics (plus the
seller's urgency / tolerance / experience for its bonus terms). The selling
strategy only changes the weights. The weighted sum is rounded and clamped
to [0, 100].

Ranking is descending by score; ties keep platform declaration order.
"""

from typing import Any, Dict, List, Optional, Tuple

from evaluation.strategy import ScoreWeights, determine_strategy_text, get_score_weights
from models.platform import (
    PLATFORM_NAMES,
    PLATFORM_ORDER,
    ExperienceLevel,
    Platform,
    PlatformMetrics,
    PlatformRecommendation,
    PlatformScore,
    RiskTolerance,
    SubScores,
    Timeframe,
    UserPreferences,
)
from utils_logging import log_debug

MARKET_CAP = 25.0
COMPETITION_CAP = 25.0
FEE_CAP = 20.0
TIME_CAP = 15.0
RISK_CAP = 15.0
EXPERIENCE_CAP = 10.0

COMPETITION_POINTS = {"low": 25.0, "medium": 18.0, "high": 12.0}

BASE_RISK = {
    Platform.FINN: 2,
    Platform.FACEBOOK: 5,
    Platform.AMAZON: 7,
}
DEFAULT_BASE_RISK = 5

DIFFICULTY = {
    Platform.FINN: 2,
    Platform.FACEBOOK: 3,
    Platform.AMAZON: 8,
}
DEFAULT_DIFFICULTY = 5

MAX_PROS = 4
MAX_CONS = 3

PLATFORM_PROS = {
    Platform.FINN: ["Norway's largest marketplace", "High buyer trust", "Good for higher-priced items"],
    Platform.FACEBOOK: ["No listing fees", "Large local audience", "Quick to publish"],
    Platform.AMAZON: ["Reaches buyers across the Nordics", "Buyers pay full price", "Professional checkout"],
}

PLATFORM_CONS = {
    Platform.FINN: ["Listing fee required"],
    Platform.FACEBOOK: ["Many no-show buyers", "Heavy haggling"],
    Platform.AMAZON: ["Strict condition standards", "Complex seller setup", "High commission"],
}


# ==============================================================================
# SUB-SCORES
# ==============================================================================

def competition_level(competitor_count: int) -> str:
    if competitor_count < 5:
        return "low"
    if competitor_count < 15:
        return "medium"
    return "high"


def fee_percent(metrics: PlatformMetrics) -> Optional[float]:
    if metrics.average_price <= 0:
        return None
    return metrics.total_fees / metrics.average_price * 100


def market_score(metrics: PlatformMetrics) -> float:
    share = min(10.0, metrics.market_share / 2)
    price = min(10.0, metrics.average_price / 1000)
    confidence = max(0.0, min(1.0, metrics.confidence)) * 5
    return max(0.0, min(MARKET_CAP, share + price + confidence))


def competition_score(metrics: PlatformMetrics) -> float:
    return COMPETITION_POINTS[competition_level(metrics.competitor_count)]


def fee_score(metrics: PlatformMetrics) -> float:
    pct = fee_percent(metrics)
    if pct is None:
        return 10.0
    if pct < 5:
        return 20.0
    if pct < 10:
        return 15.0
    if pct < 15:
        return 10.0
    return 5.0


def time_score(metrics: PlatformMetrics, timeframe: Timeframe) -> float:
    days = metrics.estimated_days_to_sale
    score = max(0.0, 15.0 - days)
    if timeframe == Timeframe.URGENT and days <= 3:
        score += 5
    elif timeframe == Timeframe.FLEXIBLE and days <= 10:
        score += 2
    return min(TIME_CAP, score)


def risk_score(metrics: PlatformMetrics, tolerance: RiskTolerance) -> float:
    base = BASE_RISK.get(metrics.platform, DEFAULT_BASE_RISK)
    confidence = max(0.0, min(1.0, metrics.confidence))
    score = min(RISK_CAP, confidence * 5 + (10 - base))
    if tolerance == RiskTolerance.LOW and base <= 3:
        score += 3
    elif tolerance == RiskTolerance.HIGH and base >= 7:
        score += 2
    return max(0.0, min(RISK_CAP, score))


def experience_score(platform: Platform, level: ExperienceLevel) -> float:
    difficulty = DIFFICULTY.get(platform, DEFAULT_DIFFICULTY)
    if level == ExperienceLevel.BEGINNER:
        return float(max(0, 10 - difficulty))
    if level == ExperienceLevel.INTERMEDIATE:
        return 8.0 if difficulty <= 6 else 5.0
    return 8.0


def calculate_sub_scores(metrics: PlatformMetrics, preferences: UserPreferences) -> SubScores:
    return SubScores(
        market=market_score(metrics),
        competition=competition_score(metrics),
        fees=fee_score(metrics),
        time=time_score(metrics, preferences.timeframe),
        risk=risk_score(metrics, preferences.risk_tolerance),
        experience=experience_score(metrics.platform, preferences.experience_level),
    )


def combine_scores(sub: SubScores, weights: ScoreWeights) -> int:
    """Weighted sum, rounded, clamped to [0, 100]."""
    total = (
        sub.market * weights.market
        + sub.competition * weights.competition
        + sub.fees * weights.fees
        + sub.time * weights.time
        + sub.risk * weights.risk
        + sub.experience * weights.experience
    )
    return int(max(0, min(100, round(total))))


# ==============================================================================
# EXPLANATIONS
# ==============================================================================

def reasoning_band(score: int) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Poor"


def generate_pros_cons(metrics: PlatformMetrics) -> Tuple[List[str], List[str]]:
    pros: List[str] = []
    cons: List[str] = []

    level = competition_level(metrics.competitor_count)
    if level == "low":
        pros.append("Few competing listings")
    elif level == "high":
        cons.append(f"Many competing listings ({metrics.competitor_count})")

    if metrics.estimated_days_to_sale <= 5:
        pros.append(f"Fast expected sale (~{metrics.estimated_days_to_sale:.0f} days)")
    elif metrics.estimated_days_to_sale > 10:
        cons.append(f"Slow expected sale (~{metrics.estimated_days_to_sale:.0f} days)")

    pct = fee_percent(metrics)
    if pct is not None and pct < 5:
        pros.append("Low fees")
    elif pct is not None and pct >= 10:
        cons.append(f"High fees ({pct:.0f}% of price)")

    pros.extend(PLATFORM_PROS.get(metrics.platform, []))
    cons.extend(PLATFORM_CONS.get(metrics.platform, []))

    # De-duplicate while keeping order
    pros = list(dict.fromkeys(pros))[:MAX_PROS]
    cons = list(dict.fromkeys(cons))[:MAX_CONS]
    return pros, cons


def generate_reasoning(metrics: PlatformMetrics, score: int, sub: SubScores) -> str:
    name = PLATFORM_NAMES[metrics.platform]
    strongest = max(sub.to_dict().items(), key=lambda kv: kv[1])[0]
    return (f"{reasoning_band(score)} match: {name} scores {score}/100, "
            f"strongest on {strongest}")


# ==============================================================================
# SCORING & RANKING
# ==============================================================================

def score_platform(
    metrics: PlatformMetrics,
    preferences: UserPreferences,
    weights: Optional[ScoreWeights] = None,
) -> PlatformScore:
    weights = weights or get_score_weights(preferences)
    sub = calculate_sub_scores(metrics, preferences)
    score = combine_scores(sub, weights)
    pros, cons = generate_pros_cons(metrics)

    log_debug(f"{metrics.platform.value}: {score} {sub.to_dict()}")

    return PlatformScore(
        platform=metrics.platform,
        score=score,
        sub_scores=sub,
        pros=pros,
        cons=cons,
        reasoning=generate_reasoning(metrics, score, sub),
        estimated_revenue=max(0.0, metrics.average_price - metrics.total_fees),
        estimated_days_to_sale=metrics.estimated_days_to_sale,
    )


def rank_platforms(metrics: List[PlatformMetrics], preferences: UserPreferences) -> List[PlatformScore]:
    """Scores every platform and sorts descending; ties keep declaration order."""
    weights = get_score_weights(preferences)
    ordered = sorted(metrics, key=lambda m: PLATFORM_ORDER[m.platform])
    scores = [score_platform(m, preferences, weights) for m in ordered]
    return sorted(scores, key=lambda s: -s.score)


def summarize_recommendations(
    ranked: List[PlatformScore],
    primary: List[Platform],
    preferences: UserPreferences,
) -> Dict[str, Any]:
    if not ranked:
        return {
            "top_platform": None,
            "average_score": 0,
            "total_potential_revenue": 0,
            "recommended_strategy": determine_strategy_text(preferences)[1],
        }
    return {
        "top_platform": ranked[0].platform.value,
        "average_score": round(sum(s.score for s in ranked) / len(ranked)),
        "total_potential_revenue": round(sum(s.estimated_revenue for s in ranked if s.platform in primary)),
        "recommended_strategy": determine_strategy_text(preferences)[1],
    }


def recommend_platforms(
    metrics: List[PlatformMetrics],
    preferences: UserPreferences,
    threshold: float = 60.0,
) -> PlatformRecommendation:
    """
    Ranked scores plus the primary platforms to list on.

    Primary = every platform at or above threshold, or the top platform alone.
    """
    ranked = rank_platforms(metrics, preferences)
    primary = [s.platform for s in ranked if s.score >= threshold]
    if not primary and ranked:
        primary = [ranked[0].platform]
    return PlatformRecommendation(
        ranked=ranked,
        primary=primary,
        summary=summarize_recommendations(ranked, primary, preferences),
    )
