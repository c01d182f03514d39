"""
Platform Publishers
===================
One submit() per target platform. Each platform fails on its own: one
platform's error never fails the others.

Publish-time estimates (minutes): finn 2-5, facebook 1-3, amazon 3-10.
"""

import asyncio
import random
import string
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.errors import ExternalServiceError, ValidationError, to_service_error
from models.platform import PLATFORM_NAMES, Platform
from models.workflow import OptimizedListing, PlatformPublishResult, PublishResult
from utils_logging import log_info, log_warning

MAX_PAYLOAD_TITLE = 100
MAX_PAYLOAD_DESCRIPTION = 2000

PUBLISH_MINUTES = {
    Platform.FINN: (2, 5),
    Platform.FACEBOOK: (1, 3),
    Platform.AMAZON: (3, 10),
}

ID_PREFIX = {
    Platform.FINN: "finn",
    Platform.FACEBOOK: "fb",
    Platform.AMAZON: "amz",
}


@dataclass
class ListingPayload:
    listing_id: str
    title: str
    description: str
    price: int
    images: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    category: str = ""
    condition: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "listing_id": self.listing_id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "images": list(self.images),
            "tags": list(self.tags),
            "category": self.category,
            "condition": self.condition,
        }


@dataclass
class SubmitReceipt:
    platform_id: str
    platform_url: str


def generate_listing_id(rng: Optional[random.Random] = None) -> str:
    """listing_<ms timestamp>_<9 random chars>"""
    rng = rng or random
    suffix = "".join(rng.choice(string.ascii_lowercase + string.digits) for _ in range(9))
    return f"listing_{int(time.time() * 1000)}_{suffix}"


def estimate_publishing_time(platforms: List[Platform]) -> Tuple[int, int]:
    """Total (min, max) minutes when publishing to all platforms."""
    low = sum(PUBLISH_MINUTES[p][0] for p in platforms)
    high = sum(PUBLISH_MINUTES[p][1] for p in platforms)
    return (low, high)


def validate_listing_payload(payload: ListingPayload, platforms: List[Platform]):
    """Raises ValidationError listing every problem found."""
    problems = []
    fields = []
    if not payload.title.strip():
        problems.append("title is empty")
        fields.append("title")
    elif len(payload.title) > MAX_PAYLOAD_TITLE:
        problems.append(f"title longer than {MAX_PAYLOAD_TITLE} characters")
        fields.append("title")
    if not payload.description.strip():
        problems.append("description is empty")
        fields.append("description")
    elif len(payload.description) > MAX_PAYLOAD_DESCRIPTION:
        problems.append(f"description longer than {MAX_PAYLOAD_DESCRIPTION} characters")
        fields.append("description")
    if payload.price <= 0:
        problems.append("price must be positive")
        fields.append("price")
    if not platforms:
        problems.append("no target platform")
        fields.append("platforms")
    if problems:
        raise ValidationError("Invalid listing: " + "; ".join(problems), fields=fields)


def build_payload(listing: OptimizedListing, listing_id: str, image_ref: str = "",
                  category: str = "", condition: str = "") -> ListingPayload:
    return ListingPayload(
        listing_id=listing_id,
        title=listing.title,
        description=listing.description,
        price=listing.price,
        images=[image_ref] if image_ref else [],
        tags=list(listing.tags),
        category=category,
        condition=condition,
    )


class PlatformPublisher(ABC):
    platform: Platform

    @abstractmethod
    async def submit(self, payload: ListingPayload) -> SubmitReceipt:
        """Raises ExternalServiceError on failure."""
        ...


class StubPublisher(PlatformPublisher):
    """Accepts every listing and returns a made-up id. fail_with simulates a rejection."""

    def __init__(self, platform: Platform, base_url: str, fail_with: Optional[str] = None):
        self.platform = platform
        self.base_url = base_url
        self.fail_with = fail_with
        self.submitted: List[ListingPayload] = []

    async def submit(self, payload: ListingPayload) -> SubmitReceipt:
        if self.fail_with:
            raise ExternalServiceError(self.fail_with, service=self.platform.value)
        self.submitted.append(payload)
        platform_id = f"{ID_PREFIX[self.platform]}_{int(time.time() * 1000)}"
        return SubmitReceipt(platform_id=platform_id, platform_url=f"{self.base_url}{platform_id}")


def build_stub_publishers(base_urls: Mapping[str, str]) -> Dict[Platform, PlatformPublisher]:
    return {p: StubPublisher(p, base_urls.get(p.value, "")) for p in Platform}


async def _publish_one(
    publisher: Optional[PlatformPublisher],
    platform: Platform,
    payload: ListingPayload,
) -> PlatformPublishResult:
    if publisher is None:
        return PlatformPublishResult(platform=platform, success=False,
                                     error=f"No publisher configured for {PLATFORM_NAMES[platform]}")
    try:
        receipt = await publisher.submit(payload)
    except (ExternalServiceError, ValidationError) as e:
        log_warning(f"{PLATFORM_NAMES[platform]} publishing failed: {e}")
        return PlatformPublishResult(platform=platform, success=False, error=str(e))
    except Exception as e:
        err = to_service_error(e, platform.value)
        log_warning(f"{PLATFORM_NAMES[platform]} publishing failed ({err.kind}): {e}")
        return PlatformPublishResult(platform=platform, success=False, error=str(err))

    log_info(f"   📤 Published to {PLATFORM_NAMES[platform]}: {receipt.platform_url}")
    return PlatformPublishResult(
        platform=platform,
        success=True,
        platform_id=receipt.platform_id,
        platform_url=receipt.platform_url,
        estimated_minutes=PUBLISH_MINUTES[platform],
    )


async def publish_listing(
    payload: ListingPayload,
    platforms: List[Platform],
    publishers: Mapping[Platform, PlatformPublisher],
) -> PublishResult:
    """
    Dispatches the payload to every platform concurrently.

    Raises:
        ValidationError: payload rejected before any submit
    """
    validate_listing_payload(payload, platforms)
    results = await asyncio.gather(*[
        _publish_one(publishers.get(p), p, payload) for p in platforms
    ])
    return PublishResult(listing_id=payload.listing_id, platforms=list(results))
