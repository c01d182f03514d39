"""
AI Prompts - Vision Analysis & Listing Copy
============================================
System and user prompts for the vision service and the copy writer.

CRITICAL: Prices are NOK. The model must not invent brands or models it
cannot see; uncertainty is a valid answer.
"""

from typing import List, Optional

from models.item import ListingDraft
from models.pricing import PriceRangeRecommendation

LANGUAGE_NAMES = {
    "nb-NO": "Norwegian (bokmål)",
    "en-US": "English",
}


# System prompt is IMMUTABLE - used for all vision calls
VISION_SYSTEM_PROMPT = """You analyse product photos for second-hand marketplace listings in Norway.

CRITICAL RULES (NEVER VIOLATE):

1. NO HALLUCINATIONS
   - Only name a brand or model if it is visible or unmistakable
   - If unsure → null and confidence < 0.6
   - Uncertainty is NOT a failure

2. CONDITION
   - One of: new, like_new, used_good, used_fair, for_parts
   - Judge only from what the photo shows

3. PRICES
   - All prices in NOK for the Norwegian second-hand market
   - suggested_price_nok is a realistic used price
   - estimated_new_price_nok is the retail price new, or null if unknown

OUTPUT FORMAT:
Return ONLY valid JSON, no markdown, no explanation."""


VISION_OUTPUT_SCHEMA = """{
  "title": "short listing title",
  "description": "2-4 sentence listing description",
  "category": {"primary": "Elektronikk", "confidence": 0.9},
  "attributes": {
    "brand": "Apple" | null,
    "model": "iPhone 13" | null,
    "model_number": null,
    "series": null,
    "color": "blue" | null,
    "condition": "used_good",
    "technical_specs": ["128GB"],
    "brand_confidence": 0.9,
    "model_confidence": 0.8
  },
  "pricing": {
    "suggested_price_nok": 4500,
    "estimated_new_price_nok": 9990 | null,
    "confidence": 0.6,
    "basis": "what the estimate is based on"
  },
  "age_hint": "2 years" | null,
  "tags": ["iphone", "apple", "mobil"]
}"""


def generate_vision_prompt(hints: Optional[str], language: str) -> str:
    """User prompt for one photo."""
    language_name = LANGUAGE_NAMES.get(language, LANGUAGE_NAMES["nb-NO"])
    prompt = f"""Analyse the product in the photo and prepare a marketplace listing.

Write title, description and tags in {language_name}.
"""
    if hints:
        prompt += f"""
SELLER NOTES (trust these over the photo for age and condition):
{hints.strip()}
"""
    prompt += f"""
Return JSON:
{VISION_OUTPUT_SCHEMA}"""
    return prompt


CONTENT_SYSTEM_PROMPT = """You write second-hand marketplace listings that sell.

RULES:
- Honest: never claim features or condition not in the input
- Title at most 80 characters, description at most 1500 characters
- At most 10 tags and 7 selling points
- Never mention a lowest acceptable price

Return ONLY valid JSON, no markdown."""


def generate_content_prompt(
    draft: ListingDraft,
    price: PriceRangeRecommendation,
    platforms: List[str],
    target_platform: str,
    language: str,
) -> str:
    """User prompt for the copy writer."""
    language_name = LANGUAGE_NAMES.get(language, LANGUAGE_NAMES["nb-NO"])
    attrs = draft.attributes
    specs = ", ".join(attrs.technical_specs) or "-"

    return f"""Write the final listing in {language_name} for: {", ".join(platforms)} (style for: {target_platform}).

ITEM:
- Title draft: {draft.title}
- Description draft: {draft.description}
- Category: {attrs.category or "-"}
- Brand: {attrs.brand or "-"}
- Model: {attrs.model or "-"}
- Condition: {attrs.condition.value}
- Colour: {attrs.color or "-"}
- Specs: {specs}

PRICE: {price.recommended_price} NOK ({price.strategy})

Return JSON:
{{
  "title": "...",
  "description": "...",
  "tags": ["..."],
  "selling_points": ["..."]
}}"""
