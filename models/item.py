"""
Item Data Model
===============
What the vision stage knows about the photographed item.

RULES:
- ItemAttributes is produced once by the vision stage and never mutated.
- Downstream stages receive copies (dataclasses.replace).
- Technical specs keep their extraction order.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Condition(Enum):
    """Item condition as reported to buyers"""
    NEW = "new"
    LIKE_NEW = "like_new"
    USED_GOOD = "used_good"
    USED_FAIR = "used_fair"
    FOR_PARTS = "for_parts"

    @staticmethod
    def parse(value: Any) -> "Condition":
        if isinstance(value, Condition):
            return value
        try:
            return Condition(str(value).strip().lower())
        except ValueError:
            return Condition.USED_GOOD


CONDITION_LABELS = {
    "nb-NO": {
        Condition.NEW: "Ny",
        Condition.LIKE_NEW: "Som ny",
        Condition.USED_GOOD: "Pent brukt",
        Condition.USED_FAIR: "Brukt",
        Condition.FOR_PARTS: "Til deler",
    },
    "en-US": {
        Condition.NEW: "New",
        Condition.LIKE_NEW: "Like new",
        Condition.USED_GOOD: "Used - good",
        Condition.USED_FAIR: "Used - fair",
        Condition.FOR_PARTS: "For parts",
    },
}


def _clamp01(value: Any) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(1.0, v))


@dataclass(frozen=True)
class ItemAttributes:
    """Structured attributes of one item, as seen on the photo."""

    category: str = ""
    condition: Condition = Condition.USED_GOOD
    brand: Optional[str] = None
    model: Optional[str] = None
    model_number: Optional[str] = None
    series: Optional[str] = None
    color: Optional[str] = None
    technical_specs: Tuple[str, ...] = ()

    brand_confidence: float = 0.0
    model_confidence: float = 0.0

    def copy(self, **changes) -> "ItemAttributes":
        """Returns a copy, optionally with changed fields."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "category": self.category,
            "condition": self.condition.value,
            "brand": self.brand,
            "model": self.model,
            "model_number": self.model_number,
            "series": self.series,
            "color": self.color,
            "technical_specs": list(self.technical_specs),
            "brand_confidence": self.brand_confidence,
            "model_confidence": self.model_confidence,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ItemAttributes":
        """Create from dictionary."""
        specs = data.get("technical_specs") or []
        if isinstance(specs, str):
            specs = [specs]
        return ItemAttributes(
            category=data.get("category") or "",
            condition=Condition.parse(data.get("condition", "used_good")),
            brand=data.get("brand") or None,
            model=data.get("model") or None,
            model_number=data.get("model_number") or None,
            series=data.get("series") or None,
            color=data.get("color") or None,
            technical_specs=tuple(str(s) for s in specs if s),
            brand_confidence=_clamp01(data.get("brand_confidence", 0.0)),
            model_confidence=_clamp01(data.get("model_confidence", 0.0)),
        )


@dataclass
class ListingDraft:
    """
    Output of the vision/description service.

    suggested_price is the vision model's raw used-price estimate in NOK.
    estimated_new_price is the retail price if the model recognised it.
    """

    title: str
    description: str
    attributes: ItemAttributes
    category_confidence: float = 0.0
    suggested_price: int = 0
    estimated_new_price: Optional[int] = None
    price_confidence: float = 0.0
    price_basis: str = ""
    age_hint: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    language: str = "nb-NO"

    @property
    def category(self) -> str:
        return self.attributes.category

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "category": {
                "primary": self.attributes.category,
                "confidence": self.category_confidence,
            },
            "attributes": self.attributes.to_dict(),
            "pricing": {
                "suggested_price_nok": self.suggested_price,
                "estimated_new_price_nok": self.estimated_new_price,
                "confidence": self.price_confidence,
                "basis": self.price_basis,
            },
            "age_hint": self.age_hint,
            "tags": list(self.tags),
            "language": self.language,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ListingDraft":
        """Create from the vision service's JSON (nested category/pricing blocks)."""
        category = data.get("category") or {}
        if isinstance(category, str):
            category = {"primary": category}
        pricing = data.get("pricing") or {}

        attrs = dict(data.get("attributes") or {})
        attrs.setdefault("category", category.get("primary", ""))

        new_price = pricing.get("estimated_new_price_nok")
        return ListingDraft(
            title=(data.get("title") or "").strip(),
            description=(data.get("description") or "").strip(),
            attributes=ItemAttributes.from_dict(attrs),
            category_confidence=_clamp01(category.get("confidence", 0.0)),
            suggested_price=int(round(float(pricing.get("suggested_price_nok") or 0))),
            estimated_new_price=int(round(float(new_price))) if new_price else None,
            price_confidence=_clamp01(pricing.get("confidence", 0.0)),
            price_basis=pricing.get("basis") or "",
            age_hint=data.get("age_hint") or None,
            tags=[str(t) for t in (data.get("tags") or []) if t],
            language=data.get("language") or "nb-NO",
        )
