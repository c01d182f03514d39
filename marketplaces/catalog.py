"""
Catalog Eligibility
===================
Catalog/approval check for marketplaces that gate listings (Amazon).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from models.item import ItemAttributes


@dataclass
class CatalogMatch:
    found: bool
    can_list: bool
    reason: Optional[str] = None


class CatalogLookup(ABC):

    @abstractmethod
    async def lookup(self, item: ItemAttributes) -> CatalogMatch:
        ...


class UnconfiguredCatalog(CatalogLookup):
    """No seller API credentials: the marketplace is unavailable."""

    async def lookup(self, item: ItemAttributes) -> CatalogMatch:
        return CatalogMatch(found=False, can_list=False, reason="catalog API not configured")


class StaticCatalog(CatalogLookup):
    """Answers from fixed brand and category lists."""

    def __init__(self, known_brands=(), listable_categories=()):
        self.known_brands = {b.lower() for b in known_brands}
        self.listable_categories = {c.lower() for c in listable_categories}

    async def lookup(self, item: ItemAttributes) -> CatalogMatch:
        found = bool(item.brand) and item.brand.lower() in self.known_brands
        can_list = (item.category or "").lower() in self.listable_categories
        return CatalogMatch(found=found, can_list=can_list,
                            reason=None if can_list else "category requires approval")
