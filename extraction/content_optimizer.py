"""
Content Optimizer - Final Listing Copy
======================================
Writes the listing title, description, tags and selling points for the
target platform(s).

Limits: title ≤ 80, description ≤ 1500, tags ≤ 10, selling points ≤ 7.
Without an AI client the copy is composed from the vision draft.
"""

from typing import Any, Dict, List, Optional

from core.ai_client import AIClient, extract_json
from core.errors import ValidationError
from extraction.ai_prompt import CONTENT_SYSTEM_PROMPT, generate_content_prompt
from models.item import CONDITION_LABELS, ListingDraft
from models.platform import Platform, SellingStrategy
from models.pricing import PriceRangeRecommendation
from models.workflow import OptimizedListing
from utils_logging import log_debug
from utils_text import format_nok, normalize_whitespace, truncate_text

MAX_TITLE_LENGTH = 80
MAX_DESCRIPTION_LENGTH = 1500
MAX_TAGS = 10
MAX_SELLING_POINTS = 7


def determine_target_platform(platforms: List[Platform], strategy: SellingStrategy) -> str:
    """finn | facebook | amazon | both."""
    if len(platforms) == 1:
        return platforms[0].value
    if Platform.AMAZON in platforms and strategy == SellingStrategy.MAXIMIZE_PROFIT:
        return Platform.AMAZON.value
    return "both"


def _clean_list(values: Any, limit: int) -> List[str]:
    if not isinstance(values, list):
        return []
    cleaned = []
    seen = set()
    for v in values:
        text = normalize_whitespace(str(v)) if v is not None else ""
        if text and text.lower() not in seen:
            seen.add(text.lower())
            cleaned.append(text)
    return cleaned[:limit]


def _trim_description(text: str) -> str:
    text = text.strip()
    if len(text) <= MAX_DESCRIPTION_LENGTH:
        return text
    return truncate_text(text, MAX_DESCRIPTION_LENGTH)


def build_optimized_listing(
    data: Dict[str, Any],
    price: int,
    target_platform: str,
    language: str,
) -> OptimizedListing:
    """Trims model output to the listing limits."""
    return OptimizedListing(
        title=truncate_text(normalize_whitespace(data.get("title") or ""), MAX_TITLE_LENGTH),
        description=_trim_description(data.get("description") or ""),
        price=price,
        tags=_clean_list(data.get("tags"), MAX_TAGS),
        selling_points=_clean_list(data.get("selling_points"), MAX_SELLING_POINTS),
        target_platform=target_platform,
        language=language,
    )


def validate_optimized_listing(listing: OptimizedListing) -> OptimizedListing:
    if not listing.title:
        raise ValidationError("Listing title is empty", fields=["title"])
    if not listing.description:
        raise ValidationError("Listing description is empty", fields=["description"])
    if listing.price <= 0:
        raise ValidationError("Listing price must be positive", fields=["price"])
    return listing


def compose_from_draft(draft: ListingDraft, price: int, target_platform: str, language: str) -> OptimizedListing:
    """Listing copy without an AI call."""
    attrs = draft.attributes
    labels = CONDITION_LABELS.get(language, CONDITION_LABELS["nb-NO"])
    condition = labels[attrs.condition]

    points = []
    if attrs.brand:
        points.append(attrs.brand if not attrs.model else f"{attrs.brand} {attrs.model}")
    points.append(condition)
    points.extend(attrs.technical_specs)
    if attrs.color:
        points.append(attrs.color)

    if language == "en-US":
        footer = f"Condition: {condition}. Price: {format_nok(price)}."
    else:
        footer = f"Tilstand: {condition}. Pris: {format_nok(price)}."
    description = f"{draft.description}\n\n{footer}".strip()

    return build_optimized_listing(
        {
            "title": draft.title,
            "description": description,
            "tags": draft.tags,
            "selling_points": points,
        },
        price,
        target_platform,
        language,
    )


class ContentOptimizer:
    """Copy writer backed by the AI client."""

    def __init__(self, ai_client: Optional[AIClient] = None, max_tokens: int = 1000):
        self.ai_client = ai_client
        self.max_tokens = max_tokens

    async def optimize(
        self,
        draft: ListingDraft,
        price: PriceRangeRecommendation,
        platforms: List[Platform],
        strategy: SellingStrategy,
        language: str = "nb-NO",
    ) -> OptimizedListing:
        """
        Raises:
            ExternalServiceError: AI failure
            ValidationError: the copy came back without title or description
        """
        target = determine_target_platform(platforms, strategy)

        if self.ai_client is None:
            log_debug("No AI client, composing listing from draft")
            return validate_optimized_listing(
                compose_from_draft(draft, price.recommended_price, target, language)
            )

        raw = await self.ai_client.call_ai(
            prompt=generate_content_prompt(draft, price, [p.value for p in platforms], target, language),
            max_tokens=self.max_tokens,
            system=CONTENT_SYSTEM_PROMPT,
            step="content_generation",
        )
        listing = build_optimized_listing(extract_json(raw), price.recommended_price, target, language)
        return validate_optimized_listing(listing)
