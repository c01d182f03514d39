"""Buyer negotiation: offer interpreter, counter-offer calculator, state machine."""

from .offer_interpreter import interpret_message, classify_buyer
from .counter_offer import decide_offer, calculate_counter_offer, resolve_terms
from .state_machine import NegotiationStateMachine, create_seller_notification

__all__ = [
    'interpret_message',
    'classify_buyer',
    'decide_offer',
    'calculate_counter_offer',
    'resolve_terms',
    'NegotiationStateMachine',
    'create_seller_notification',
]
