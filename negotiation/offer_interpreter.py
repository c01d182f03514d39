"""
Offer Interpreter
=================
Reads one buyer message into a MessageAnalysis: intent, offer amount,
risk flags, buyer type and negotiation style.
"""

from typing import Optional

from core.text_signals import TextSignalExtractor, get_default_extractor
from models.chat import BuyerType, MessageAnalysis, MessageIntent, NegotiationStyle

LOWBALL_RATIO = 0.7
SERIOUS_RATIO = 0.9


def classify_buyer(offer_amount: Optional[int], listing_price: int) -> BuyerType:
    """Buyer type from how far the offer sits below the listing price."""
    if not offer_amount or listing_price <= 0:
        return BuyerType.UNKNOWN
    ratio = offer_amount / listing_price
    if ratio < LOWBALL_RATIO:
        return BuyerType.LOWBALLER
    if ratio >= SERIOUS_RATIO:
        return BuyerType.SERIOUS
    return BuyerType.BARGAINER


def interpret_message(
    message: str,
    listing_price: int,
    extractor: Optional[TextSignalExtractor] = None,
) -> MessageAnalysis:
    extractor = extractor or get_default_extractor()

    offer = extractor.extract_offer(message)
    intent = extractor.classify_intent(message, has_offer=offer is not None)
    buyer_type = classify_buyer(offer, listing_price)
    if buyer_type == BuyerType.UNKNOWN and intent == MessageIntent.BARGAIN:
        buyer_type = BuyerType.BARGAINER

    return MessageAnalysis(
        intent=intent,
        offer_amount=offer,
        risk_flags=extractor.risk_flags(message),
        buyer_type=buyer_type,
        style=NegotiationStyle.HESITANT if extractor.is_hesitant(message) else NegotiationStyle.DIRECT,
        language=extractor.detect_language(message),
    )
