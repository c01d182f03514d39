"""
Counter-Offer Calculator
========================
Decides accept / escalate / counter for a numeric buyer offer.

    offer ≥ listing                        → accept (0.95)
    floor ≤ offer < listing, ≥ auto-accept → accept (0.9)
    floor ≤ offer < listing, < auto-accept → escalate, offer unchanged (0.7)
    offer < floor                          → counter (0.8)

INVARIANT: floor ≤ counter ≤ listing. The agent never accepts below the
auto-accept threshold on its own.
"""

from dataclasses import dataclass
from typing import Optional

from config import NegotiationConf
from models.chat import BuyerType, ChatAction, ChatContext

# Share of the gap (listing - offer) added on top of the offer
GAP_SHARE = {
    BuyerType.LOWBALLER: 0.6,
    BuyerType.SERIOUS: 0.4,
    BuyerType.BARGAINER: 0.5,
    BuyerType.UNKNOWN: 0.5,
}

CONFIDENCE_FULL_PRICE = 0.95
CONFIDENCE_AUTO_ACCEPT = 0.9
CONFIDENCE_ESCALATE = 0.7
CONFIDENCE_COUNTER = 0.8


@dataclass(frozen=True)
class NegotiationTerms:
    """Seller's envelope for one listing, with defaults filled in."""
    listing_price: int
    floor_price: int
    auto_accept_threshold: int
    max_discount_percent: float
    require_seller_approval: bool = False


@dataclass
class OfferDecision:
    action: ChatAction
    amount: int
    confidence: float
    reason: str


def resolve_terms(context: ChatContext, conf: Optional[NegotiationConf] = None) -> NegotiationTerms:
    """
    Fills in floor, auto-accept and max discount from config ratios when the
    listing does not set them. Floor and auto-accept are kept inside [0, listing].
    """
    conf = conf or NegotiationConf()
    listing = context.listing.price
    settings = context.settings

    floor = context.listing.floor_price
    if floor is None:
        floor = round(listing * conf.default_floor_ratio)
    floor = max(0, min(listing, floor))

    auto_accept = settings.auto_accept_threshold
    if auto_accept is None:
        auto_accept = round(listing * conf.default_auto_accept_ratio)
    auto_accept = max(floor, min(listing, auto_accept))

    max_discount = settings.max_discount_percent
    if max_discount is None:
        max_discount = conf.default_max_discount_percent

    return NegotiationTerms(
        listing_price=listing,
        floor_price=floor,
        auto_accept_threshold=auto_accept,
        max_discount_percent=max(0.0, min(100.0, max_discount)),
        require_seller_approval=settings.require_seller_approval,
    )


def clamp_to_envelope(amount: float, terms: NegotiationTerms) -> int:
    return int(max(terms.floor_price, min(terms.listing_price, round(amount))))


def calculate_counter_offer(offer: int, terms: NegotiationTerms, buyer_type: BuyerType) -> int:
    """offer + gap × share, clamped to [floor, listing]."""
    gap = terms.listing_price - offer
    share = GAP_SHARE.get(buyer_type, GAP_SHARE[BuyerType.UNKNOWN])
    return clamp_to_envelope(offer + gap * share, terms)


def bargain_counter(terms: NegotiationTerms) -> int:
    """Counter for "can you go lower?" without an amount: the maximum discount."""
    discounted = terms.listing_price * (1 - terms.max_discount_percent / 100)
    return clamp_to_envelope(discounted, terms)


def decide_offer(offer: int, terms: NegotiationTerms, buyer_type: BuyerType) -> OfferDecision:
    if offer >= terms.listing_price:
        return OfferDecision(
            action=ChatAction.ACCEPT_OFFER,
            amount=offer,
            confidence=CONFIDENCE_FULL_PRICE,
            reason="offer_at_or_above_listing_price",
        )

    if offer >= terms.floor_price:
        if offer >= terms.auto_accept_threshold and not terms.require_seller_approval:
            return OfferDecision(
                action=ChatAction.ACCEPT_OFFER,
                amount=offer,
                confidence=CONFIDENCE_AUTO_ACCEPT,
                reason="offer_above_auto_accept_threshold",
            )
        reason = ("seller_approval_required" if terms.require_seller_approval
                  and offer >= terms.auto_accept_threshold else "offer_below_auto_accept_threshold")
        return OfferDecision(
            action=ChatAction.ESCALATE,
            amount=offer,
            confidence=CONFIDENCE_ESCALATE,
            reason=reason,
        )

    return OfferDecision(
        action=ChatAction.COUNTER_OFFER,
        amount=calculate_counter_offer(offer, terms, buyer_type),
        confidence=CONFIDENCE_COUNTER,
        reason="offer_below_floor",
    )
