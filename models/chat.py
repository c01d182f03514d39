"""
Chat Data Model
===============
Buyer conversations and the agent's replies.

ChatContext is owned by the caller. The negotiation state machine reads it
and returns a ChatResponse; it never appends to the history itself.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from models.item import Condition


class ChatAction(Enum):
    RESPOND = "respond"
    ACCEPT_OFFER = "accept_offer"
    COUNTER_OFFER = "counter_offer"
    ESCALATE = "escalate"
    DECLINE = "decline"


class MessageIntent(Enum):
    GREETING = "greeting"
    COMPLIMENT = "compliment"
    AVAILABILITY = "availability"
    QUESTION = "question"
    BARGAIN = "bargain"
    OFFER = "offer"
    OTHER = "other"


class BuyerType(Enum):
    LOWBALLER = "lowballer"
    BARGAINER = "bargainer"
    SERIOUS = "serious"
    UNKNOWN = "unknown"


class NegotiationStyle(Enum):
    DIRECT = "direct"
    HESITANT = "hesitant"


@dataclass(frozen=True)
class ChatMessage:
    role: str      # "buyer" | "agent" | "seller"
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ChatMessage":
        return ChatMessage(role=data.get("role", "buyer"), content=data.get("content", ""))


@dataclass(frozen=True)
class ListingSnapshot:
    title: str
    price: int
    floor_price: Optional[int] = None
    condition: Condition = Condition.USED_GOOD
    description: str = ""
    language: Optional[str] = None   # None: follow the buyer's language

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "price": self.price,
            "floor_price": self.floor_price,
            "condition": self.condition.value,
            "description": self.description,
            "language": self.language,
        }


@dataclass(frozen=True)
class NegotiationSettings:
    max_discount_percent: Optional[float] = None
    auto_accept_threshold: Optional[int] = None
    require_seller_approval: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_discount_percent": self.max_discount_percent,
            "auto_accept_threshold": self.auto_accept_threshold,
            "require_seller_approval": self.require_seller_approval,
        }


@dataclass(frozen=True)
class ChatContext:
    listing: ListingSnapshot
    settings: NegotiationSettings = field(default_factory=NegotiationSettings)
    history: Tuple[ChatMessage, ...] = ()

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ChatContext":
        listing = data.get("listing") or {}
        settings = data.get("settings") or {}
        floor = listing.get("floor_price")
        auto_accept = settings.get("auto_accept_threshold")
        max_discount = settings.get("max_discount_percent")
        return ChatContext(
            listing=ListingSnapshot(
                title=listing.get("title", ""),
                price=int(listing.get("price", 0)),
                floor_price=int(floor) if floor is not None else None,
                condition=Condition.parse(listing.get("condition", "used_good")),
                description=listing.get("description", ""),
                language=listing.get("language"),
            ),
            settings=NegotiationSettings(
                max_discount_percent=float(max_discount) if max_discount is not None else None,
                auto_accept_threshold=int(auto_accept) if auto_accept is not None else None,
                require_seller_approval=bool(settings.get("require_seller_approval", False)),
            ),
            history=tuple(ChatMessage.from_dict(m) for m in data.get("history") or []),
        )


@dataclass
class MessageAnalysis:
    """What the offer interpreter read out of one buyer message."""
    intent: MessageIntent
    offer_amount: Optional[int] = None
    risk_flags: List[str] = field(default_factory=list)
    buyer_type: BuyerType = BuyerType.UNKNOWN
    style: NegotiationStyle = NegotiationStyle.DIRECT
    language: str = "no"   # "no" | "en"

    @property
    def is_risky(self) -> bool:
        return "scam" in self.risk_flags

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "offer_amount": self.offer_amount,
            "risk_flags": list(self.risk_flags),
            "buyer_type": self.buyer_type.value,
            "style": self.style.value,
            "language": self.language,
        }


@dataclass
class ChatResponse:
    reply: str
    action: ChatAction
    confidence: float
    offer_amount: Optional[int] = None
    should_notify_seller: bool = False
    escalation_reason: Optional[str] = None
    analysis: Optional[MessageAnalysis] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "reply": self.reply,
            "action": self.action.value,
            "confidence": self.confidence,
            "should_notify_seller": self.should_notify_seller,
        }
        if self.offer_amount is not None:
            data["offer_amount"] = self.offer_amount
        if self.escalation_reason:
            data["escalation_reason"] = self.escalation_reason
        if self.analysis is not None:
            data["analysis"] = self.analysis.to_dict()
        return data


@dataclass
class SellerNotification:
    title: str
    message: str
    urgency: str          # low | medium | high
    action: ChatAction
    offer_amount: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "message": self.message,
            "urgency": self.urgency,
            "action": self.action.value,
            "offer_amount": self.offer_amount,
        }
