"""
Negotiation State Machine
=========================
One buyer message in, one ChatResponse out:

1. Offer interpreter → intent, amount, risk flags, buyer type
2. Risk override     → "local cash pickup only" + escalate
3. Offer             → counter-offer calculator (accept / escalate / counter)
4. Bargain           → counter at the maximum discount
5. Anything else     → templated reply
6. Long conversation → notify seller regardless of intent

Stateless between turns: everything it knows comes from the ChatContext,
which it never modifies.
"""

import random
from typing import Optional

from config import NegotiationConf
from core.text_signals import TextSignalExtractor, get_default_extractor
from models.chat import (
    ChatAction,
    ChatContext,
    ChatResponse,
    MessageAnalysis,
    MessageIntent,
    SellerNotification,
)
from negotiation.counter_offer import (
    CONFIDENCE_COUNTER,
    NegotiationTerms,
    bargain_counter,
    decide_offer,
    resolve_terms,
)
from negotiation.offer_interpreter import interpret_message
from negotiation.responses import INTENT_TEMPLATE, counter_template, render_reply
from utils_logging import log_debug, log_error, log_info
from utils_text import format_nok

CONFIDENCE_RISK = 0.9
CONFIDENCE_TEMPLATE = 0.8


class NegotiationStateMachine:
    """Buyer chat agent for one seller configuration."""

    def __init__(
        self,
        conf: Optional[NegotiationConf] = None,
        extractor: Optional[TextSignalExtractor] = None,
        rng: Optional[random.Random] = None,
    ):
        self.conf = conf or NegotiationConf()
        self.extractor = extractor or get_default_extractor()
        self.rng = rng or random.Random()

    def process_message(self, context: ChatContext, message: str) -> ChatResponse:
        """Handles one inbound buyer message. Never raises."""
        try:
            response = self._respond(context, message)
        except Exception as e:
            log_error(f"Chat agent failed: {e}")
            language = context.listing.language or "no"
            return ChatResponse(
                reply=render_reply("error", language, context.listing.title, context.listing.price, rng=self.rng),
                action=ChatAction.ESCALATE,
                confidence=0.0,
                should_notify_seller=True,
                escalation_reason=f"agent_error: {e}",
            )

        log_info(f"   💬 {response.action.value} (confidence {response.confidence:.2f})")
        return response

    def _respond(self, context: ChatContext, message: str) -> ChatResponse:
        listing = context.listing
        terms = resolve_terms(context, self.conf)
        analysis = interpret_message(message, listing.price, self.extractor)
        language = listing.language or analysis.language

        log_debug(f"Message analysis: {analysis.to_dict()}")

        if analysis.is_risky:
            response = ChatResponse(
                reply=self._render("scam", language, context),
                action=ChatAction.ESCALATE,
                confidence=CONFIDENCE_RISK,
                should_notify_seller=True,
                escalation_reason="risk: scam pattern in buyer message",
            )
        elif analysis.intent == MessageIntent.OFFER and analysis.offer_amount is not None:
            response = self._handle_offer(context, terms, analysis, language)
        elif analysis.intent == MessageIntent.BARGAIN:
            counter = bargain_counter(terms)
            response = ChatResponse(
                reply=self._render("bargain", language, context, counter=counter),
                action=ChatAction.COUNTER_OFFER,
                confidence=CONFIDENCE_COUNTER,
                offer_amount=counter,
            )
        else:
            key = INTENT_TEMPLATE.get(analysis.intent, "other")
            response = ChatResponse(
                reply=self._render(key, language, context),
                action=ChatAction.RESPOND,
                confidence=CONFIDENCE_TEMPLATE,
            )

        if len(context.history) > self.conf.escalation_message_count:
            response.should_notify_seller = True
            if not response.escalation_reason:
                response.escalation_reason = f"long conversation ({len(context.history)} messages)"

        response.analysis = analysis
        return response

    def _handle_offer(
        self,
        context: ChatContext,
        terms: NegotiationTerms,
        analysis: MessageAnalysis,
        language: str,
    ) -> ChatResponse:
        offer = analysis.offer_amount
        decision = decide_offer(offer, terms, analysis.buyer_type)

        if decision.action == ChatAction.ACCEPT_OFFER:
            key = "accept_full" if offer >= terms.listing_price else "accept"
            return ChatResponse(
                reply=self._render(key, language, context, offer=offer),
                action=ChatAction.ACCEPT_OFFER,
                confidence=decision.confidence,
                offer_amount=decision.amount,
                should_notify_seller=True,
            )

        if decision.action == ChatAction.ESCALATE:
            return ChatResponse(
                reply=self._render("escalate", language, context, offer=offer),
                action=ChatAction.ESCALATE,
                confidence=decision.confidence,
                offer_amount=decision.amount,
                should_notify_seller=True,
                escalation_reason=f"{decision.reason}: {format_nok(offer)}",
            )

        return ChatResponse(
            reply=self._render(counter_template(analysis.buyer_type), language, context,
                               offer=offer, counter=decision.amount),
            action=ChatAction.COUNTER_OFFER,
            confidence=decision.confidence,
            offer_amount=decision.amount,
        )

    def _render(self, key: str, language: str, context: ChatContext,
                offer: Optional[int] = None, counter: Optional[int] = None) -> str:
        listing = context.listing
        return render_reply(key, language, listing.title, listing.price, listing.condition,
                            offer=offer, counter=counter, rng=self.rng)


def create_seller_notification(context: ChatContext, message: str, response: ChatResponse) -> Optional[SellerNotification]:
    """Notification for the seller, or None if the response does not need one."""
    if not response.should_notify_seller:
        return None

    reason = response.escalation_reason or ""
    if reason.startswith("risk"):
        urgency = "high"
    elif response.offer_amount is not None:
        urgency = "medium"
    else:
        urgency = "low"

    if response.action == ChatAction.ACCEPT_OFFER:
        title = f"Offer accepted: {format_nok(response.offer_amount)}"
    elif response.offer_amount is not None:
        title = f"New offer: {format_nok(response.offer_amount)}"
    else:
        title = f"Buyer message about {context.listing.title}"

    return SellerNotification(
        title=title,
        message=f'Buyer: "{message}"\nAgent: "{response.reply}"' + (f"\nReason: {reason}" if reason else ""),
        urgency=urgency,
        action=response.action,
        offer_amount=response.offer_amount,
    )
