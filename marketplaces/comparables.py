"""
Comparable-Price Lookup
=======================
search(query, category_hint, price_bounds) → observed listings.

Zero results is a normal answer (the valuation engine then models the
price); only transport problems raise.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

from models.pricing import ComparableListing


class ComparablePriceLookup(ABC):

    @abstractmethod
    async def search(
        self,
        query: str,
        category_hint: Optional[str] = None,
        price_bounds: Optional[Tuple[float, float]] = None,
    ) -> List[ComparableListing]:
        ...


class NullComparableLookup(ComparablePriceLookup):
    """No marketplace search configured: always zero comparables."""

    async def search(self, query, category_hint=None, price_bounds=None) -> List[ComparableListing]:
        return []


class InMemoryComparableLookup(ComparablePriceLookup):
    """Fixed set of listings, matched on query words."""

    def __init__(self, listings: Iterable[ComparableListing]):
        self.listings = list(listings)

    async def search(self, query, category_hint=None, price_bounds=None) -> List[ComparableListing]:
        words = [w.lower() for w in query.split() if len(w) > 1]
        found = []
        for listing in self.listings:
            title = listing.title.lower()
            if words and not any(w in title for w in words):
                continue
            if price_bounds and not (price_bounds[0] <= listing.price <= price_bounds[1]):
                continue
            found.append(listing)
        return found
