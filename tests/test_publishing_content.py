"""
Tests for Listing Copy and Publishing
=====================================
Copy limits, target platform choice, vision parsing, payload validation
and per-platform failure isolation.
"""

import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import asyncio
import json
import random
import re

import pytest

from core.errors import ExternalServiceError, ValidationError
from extraction.ai_extractor import VisionAnalyzer
from extraction.content_optimizer import (
    MAX_TAGS,
    MAX_TITLE_LENGTH,
    ContentOptimizer,
    build_optimized_listing,
    determine_target_platform,
    validate_optimized_listing,
)
from marketplaces.publisher import (
    ListingPayload,
    StubPublisher,
    estimate_publishing_time,
    generate_listing_id,
    publish_listing,
    validate_listing_payload,
)
from models.item import Condition, ItemAttributes, ListingDraft
from models.platform import Platform, SellingStrategy
from models.workflow import OptimizedListing
from pricing.valuation import build_price_estimate, suggest_price_range


class FakeAI:
    """Answers every call with a canned response."""

    def __init__(self, response):
        self.response = response
        self.prompts = []

    async def call_ai(self, prompt, max_tokens=800, image=None, system=None, step="unknown"):
        self.prompts.append((step, image))
        return self.response


def make_draft():
    return ListingDraft(
        title="Stressless stol",
        description="Godt brukt lenestol i skinn.",
        attributes=ItemAttributes(category="furniture", condition=Condition.USED_FAIR,
                                  brand="Stressless", color="Brun"),
        suggested_price=4000,
        tags=["stol", "skinn"],
    )


def test_target_platform():
    print("\n=== TEST: Target Platform ===")

    assert determine_target_platform([Platform.FINN], SellingStrategy.MARKET_PRICE) == "finn"
    assert determine_target_platform([Platform.FINN, Platform.FACEBOOK], SellingStrategy.QUICK_SALE) == "both"
    assert determine_target_platform([Platform.FINN, Platform.AMAZON], SellingStrategy.MAXIMIZE_PROFIT) == "amazon"
    assert determine_target_platform([Platform.FINN, Platform.AMAZON], SellingStrategy.MARKET_PRICE) == "both"

    print("✅ PASSED: target platforms")


def test_listing_limits():
    print("\n=== TEST: Listing Limits ===")

    listing = build_optimized_listing(
        {
            "title": "Nydelig " * 30,
            "description": "Linje en.\n\nLinje to.",
            "tags": [f"tag{i}" for i in range(15)] + ["tag1", "TAG2"],
            "selling_points": ["Solid", "solid", "", "Skinn"],
        },
        price=4000,
        target_platform="finn",
        language="nb-NO",
    )

    assert len(listing.title) <= MAX_TITLE_LENGTH, f"❌ Title length {len(listing.title)}"
    assert listing.description == "Linje en.\n\nLinje to.", "❌ Line breaks lost"
    assert len(listing.tags) == MAX_TAGS
    assert listing.selling_points == ["Solid", "Skinn"], f"❌ {listing.selling_points}"

    with pytest.raises(ValidationError):
        validate_optimized_listing(OptimizedListing(title="", description="x", price=100))
    with pytest.raises(ValidationError):
        validate_optimized_listing(OptimizedListing(title="Stol", description="x", price=0))

    print(f"✅ PASSED: title {len(listing.title)} chars, {len(listing.tags)} tags")


def test_content_without_ai_uses_draft():
    print("\n=== TEST: Copy Without AI ===")

    price = suggest_price_range(build_price_estimate(4000, 0.5), SellingStrategy.MARKET_PRICE)
    listing = asyncio.run(ContentOptimizer(None).optimize(
        make_draft(), price, [Platform.FINN, Platform.FACEBOOK], SellingStrategy.MARKET_PRICE, "nb-NO"))

    assert listing.title == "Stressless stol"
    assert listing.price == price.recommended_price == 4000
    assert "Tilstand: Brukt" in listing.description, f"❌ {listing.description}"
    assert listing.target_platform == "both"

    print(f"✅ PASSED: {listing.title}")


def test_content_with_ai_response():
    print("\n=== TEST: Copy With AI ===")

    ai = FakeAI('```json\n' + json.dumps({
        "title": "Stressless lenestol i brunt skinn",
        "description": "Klassisk lenestol. Hentes i Oslo.",
        "tags": ["stressless", "lenestol"],
        "selling_points": ["Ekte skinn"],
    }) + '\n```')
    price = suggest_price_range(build_price_estimate(4000, 0.5), SellingStrategy.QUICK_SALE)
    listing = asyncio.run(ContentOptimizer(ai).optimize(
        make_draft(), price, [Platform.FINN], SellingStrategy.QUICK_SALE, "nb-NO"))

    assert listing.title == "Stressless lenestol i brunt skinn"
    assert listing.price == price.recommended_price
    assert listing.target_platform == "finn"
    assert ai.prompts == [("content_generation", None)]

    print(f"✅ PASSED: {listing.title} @ {listing.price}")


def test_vision_analyzer_parses_draft():
    print("\n=== TEST: Vision Parsing ===")

    ai = FakeAI(json.dumps({
        "title": "iPhone 13 128GB",
        "description": "Pent brukt.",
        "category": {"primary": "electronics", "confidence": 0.92},
        "attributes": {"brand": "Apple", "model": "iPhone 13", "condition": "like_new",
                       "technical_specs": ["128GB"]},
        "pricing": {"suggested_price_nok": 6500, "estimated_new_price_nok": 9990, "confidence": 0.8},
        "age_hint": "1 år",
    }))
    draft = asyncio.run(VisionAnalyzer(ai).analyze("https://example.com/p.jpg", "kjøpt i fjor"))

    assert draft.title == "iPhone 13 128GB"
    assert draft.category == "electronics"
    assert draft.attributes.condition == Condition.LIKE_NEW
    assert draft.attributes.technical_specs == ("128GB",)
    assert draft.suggested_price == 6500 and draft.estimated_new_price == 9990
    assert ai.prompts == [("vision_analysis", "https://example.com/p.jpg")]

    with pytest.raises(ExternalServiceError) as info:
        asyncio.run(VisionAnalyzer(FakeAI('{"title": ""}')).analyze("https://example.com/p.jpg"))
    assert info.value.kind == "unknown"

    with pytest.raises(ExternalServiceError) as info:
        asyncio.run(VisionAnalyzer(None).analyze("https://example.com/p.jpg"))
    assert info.value.kind == "config"

    print(f"✅ PASSED: {draft.title}")


def test_listing_id_and_publish_time():
    print("\n=== TEST: Listing Id & Publish Time ===")

    listing_id = generate_listing_id(random.Random(3))
    assert re.match(r"^listing_\d+_[a-z0-9]{9}$", listing_id), f"❌ {listing_id}"

    assert estimate_publishing_time([Platform.FINN, Platform.FACEBOOK]) == (3, 8)
    assert estimate_publishing_time(list(Platform)) == (6, 18)
    assert estimate_publishing_time([]) == (0, 0)

    print(f"✅ PASSED: {listing_id}")


def test_payload_validation():
    print("\n=== TEST: Payload Validation ===")

    good = ListingPayload(listing_id="listing_1_abc", title="Stol", description="Fin stol", price=500)
    validate_listing_payload(good, [Platform.FINN])

    bad = ListingPayload(listing_id="listing_1_abc", title="", description="x" * 2001, price=0)
    with pytest.raises(ValidationError) as info:
        validate_listing_payload(bad, [])
    assert info.value.fields == ["title", "description", "price", "platforms"], f"❌ {info.value.fields}"

    print("✅ PASSED: payload problems reported together")


def test_publish_isolates_failures():
    print("\n=== TEST: Publish Isolation ===")

    payload = ListingPayload(listing_id="listing_1_abc", title="Stol", description="Fin stol", price=500)
    finn = StubPublisher(Platform.FINN, "https://www.finn.no/bap/forsale/ad.html?finnkode=")
    publishers = {
        Platform.FINN: finn,
        Platform.FACEBOOK: StubPublisher(Platform.FACEBOOK, "", fail_with="Facebook is down"),
    }
    result = asyncio.run(publish_listing(payload, list(Platform), publishers))

    assert result.success
    assert result.published == [Platform.FINN]
    assert result.failed == [Platform.FACEBOOK, Platform.AMAZON]
    finn_result = result.platforms[0]
    assert finn_result.platform_id.startswith("finn_")
    assert finn_result.platform_url.endswith(finn_result.platform_id)
    assert finn_result.estimated_minutes == (2, 5)
    assert "No publisher configured" in result.platforms[2].error
    assert finn.submitted == [payload]

    print(f"✅ PASSED: {result.to_dict()['platforms'][0]['platform_url']}")


if __name__ == "__main__":
    print("\n" + "="*60)
    print("RUNNING PUBLISHING / CONTENT TESTS")
    print("="*60)

    test_target_platform()
    test_listing_limits()
    test_content_without_ai_uses_draft()
    test_content_with_ai_response()
    test_vision_analyzer_parses_draft()
    test_listing_id_and_publish_time()
    test_payload_validation()
    test_publish_isolates_failures()

    print("\n" + "="*60)
    print("✅ ALL PUBLISHING / CONTENT TESTS PASSED")
    print("="*60)
