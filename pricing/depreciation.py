"""
Depreciation Models
===================
Category-specific parameters that turn a new-item price into an expected
used price.

    total = initial + age_years × yearly + (1 − condition_multiplier) − brand_offset

clamped to [MIN_DEPRECIATION, MAX_DEPRECIATION]. An item never keeps more
than 90% or less than 10% of its new value.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from core.text_signals import TextSignalExtractor, get_default_extractor
from models.item import Condition
from utils_text import contains_any


MIN_DEPRECIATION = 0.10
MAX_DEPRECIATION = 0.90

# Condition buckets, index into DepreciationModel.condition_multipliers
BUCKETS = ("mint", "excellent", "good", "fair", "poor")

CONDITION_BUCKET = {
    Condition.NEW: "mint",
    Condition.LIKE_NEW: "excellent",
    Condition.USED_GOOD: "good",
    Condition.USED_FAIR: "fair",
    Condition.FOR_PARTS: "poor",
}


@dataclass(frozen=True)
class DepreciationModel:
    initial: float
    yearly: float
    condition_multipliers: Tuple[float, float, float, float, float]
    brand_premium: float = 1.0

    def condition_multiplier(self, condition: Condition) -> float:
        return self.condition_multipliers[BUCKETS.index(CONDITION_BUCKET[condition])]

    @property
    def brand_offset(self) -> float:
        return (self.brand_premium - 1.0) * 0.1


DEPRECIATION_MODELS: Dict[str, DepreciationModel] = {
    "electronics": DepreciationModel(0.35, 0.15, (0.95, 0.85, 0.75, 0.60, 0.40), brand_premium=1.1),
    "luxury": DepreciationModel(0.20, 0.08, (0.90, 0.80, 0.70, 0.55, 0.35), brand_premium=1.2),
    "fashion": DepreciationModel(0.60, 0.10, (0.85, 0.70, 0.55, 0.40, 0.25), brand_premium=1.1),
    "furniture": DepreciationModel(0.40, 0.08, (0.90, 0.80, 0.70, 0.55, 0.35)),
    "sports": DepreciationModel(0.30, 0.12, (0.90, 0.80, 0.70, 0.55, 0.35)),
    "default": DepreciationModel(0.30, 0.10, (0.90, 0.80, 0.70, 0.55, 0.35)),
}

# Free-text category names (Norwegian + English) → model key
CATEGORY_KEYWORDS = {
    "electronics": [
        "electronics", "elektronikk", "mobil", "mobiltelefon", "telefon", "phone", "smartphone",
        "data", "datamaskin", "computer", "laptop", "pc", "nettbrett", "tablet", "tv",
        "lyd", "audio", "hodetelefoner", "headphones", "kamera", "camera", "gaming",
        "spillkonsoll", "console",
    ],
    "luxury": [
        "luxury", "luksus", "klokke", "klokker", "watch", "watches", "smykker", "jewelry",
        "jewellery", "designer", "veske", "handbag",
    ],
    "fashion": [
        "fashion", "mote", "klær", "clothing", "clothes", "sko", "shoes", "jakke", "jacket",
        "kjole", "dress",
    ],
    "furniture": [
        "furniture", "møbler", "møbel", "interiør", "interior", "sofa", "stol", "chair",
        "bord", "table", "seng", "bed", "hjem", "home",
    ],
    "sports": [
        "sports", "sport", "fritid", "friluftsliv", "outdoor", "sykkel", "bike", "bicycle",
        "trening", "fitness", "ski", "golf",
    ],
}

PREMIUM_BRANDS = [
    "apple", "bang & olufsen", "b&o", "bose", "sonos", "leica", "hasselblad",
    "rolex", "omega", "tag heuer", "cartier", "louis vuitton", "gucci", "prada",
    "hermès", "hermes", "chanel", "dior", "canada goose", "moncler", "arc'teryx",
    "vitra", "fritz hansen", "eames", "stressless",
]


def resolve_category(category: Optional[str]) -> str:
    """Maps a free-text category ("Elektronikk", "Møbler", ...) to a model key."""
    if not category:
        return "default"
    text = category.lower().strip()
    if text in DEPRECIATION_MODELS:
        return text
    for key, keywords in CATEGORY_KEYWORDS.items():
        if contains_any(text, keywords):
            return key
    return "default"


def is_premium_brand(brand: Optional[str]) -> bool:
    if not brand:
        return False
    return contains_any(brand, PREMIUM_BRANDS)


def parse_age_to_years(
    age_hint: Optional[str],
    current_year: Optional[int] = None,
    extractor: Optional[TextSignalExtractor] = None,
) -> float:
    """Free-text age hint → years, via the configured text-signal extractor."""
    return (extractor or get_default_extractor()).parse_age_years(age_hint, current_year)


def calculate_depreciation(
    category: Optional[str],
    condition: Condition,
    age_years: float,
    premium_brand: bool = False,
) -> Tuple[float, List[str]]:
    """
    Total depreciation fraction for an item, clamped to [0.10, 0.90].

    Returns:
        (total_depreciation, breakdown lines)
    """
    key = resolve_category(category)
    model = DEPRECIATION_MODELS[key]
    age = max(0.0, float(age_years))

    initial = model.initial
    aging = age * model.yearly
    wear = 1.0 - model.condition_multiplier(condition)
    total = initial + aging + wear

    breakdown = [
        f"Category model: {key}",
        f"Initial depreciation: {initial:.0%}",
        f"Age {age:g} years × {model.yearly:.0%}/year: {aging:.0%}",
        f"Condition {condition.value}: {wear:.0%}",
    ]

    if premium_brand and model.brand_offset > 0:
        total -= model.brand_offset
        breakdown.append(f"Premium brand: -{model.brand_offset:.0%}")

    clamped = max(MIN_DEPRECIATION, min(MAX_DEPRECIATION, total))
    if clamped != total:
        breakdown.append(f"Clamped {total:.0%} → {clamped:.0%}")
    breakdown.append(f"Total depreciation: {clamped:.0%}")

    return clamped, breakdown
