"""External marketplace collaborators: comparable prices, catalog checks, publishing."""

from .catalog import CatalogLookup, CatalogMatch, StaticCatalog, UnconfiguredCatalog
from .comparables import ComparablePriceLookup, InMemoryComparableLookup, NullComparableLookup
from .publisher import (
    ListingPayload,
    PlatformPublisher,
    StubPublisher,
    build_stub_publishers,
    estimate_publishing_time,
    generate_listing_id,
    publish_listing,
    validate_listing_payload,
)

__all__ = [
    'CatalogLookup',
    'CatalogMatch',
    'StaticCatalog',
    'UnconfiguredCatalog',
    'ComparablePriceLookup',
    'InMemoryComparableLookup',
    'NullComparableLookup',
    'ListingPayload',
    'PlatformPublisher',
    'StubPublisher',
    'build_stub_publishers',
    'estimate_publishing_time',
    'generate_listing_id',
    'publish_listing',
    'validate_listing_payload',
]
