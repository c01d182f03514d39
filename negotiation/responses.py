"""
Response Templates
==================
Buyer-facing replies in Norwegian ("no") and English ("en").

Template choice goes through an injectable random.Random so tests can pin it.
The floor price is never part of any template.
"""

import random
from typing import Dict, List, Optional

from models.chat import BuyerType, MessageIntent
from models.item import CONDITION_LABELS, Condition
from utils_text import format_nok

TEMPLATES: Dict[str, Dict[str, List[str]]] = {
    "no": {
        "greeting": [
            "Hei! Takk for interessen for {title}. Den er fortsatt tilgjengelig. Hva lurer du på?",
            "Hei! Ja, {title} er fortsatt til salgs. Si fra om du har spørsmål.",
        ],
        "compliment": [
            "Takk! Det er en fin {title_lower}, godt tatt vare på og klar for ny eier. Interessert i å kjøpe?",
        ],
        "availability": [
            "Ja, den er fortsatt tilgjengelig! Prisen er {price}.",
            "Hei! Den er ledig. Når passer det å se på den?",
        ],
        "question": [
            "Takk for interessen for {title}! Den er i tilstand: {condition}. Prisen er {price}. Spør gjerne om mer.",
        ],
        "other": [
            "Takk for meldingen! {title} koster {price}. Gi beskjed om du er interessert.",
            "Hei! Si gjerne fra om du vil se {title} eller har spørsmål.",
        ],
        "accept_full": [
            "Perfekt! {offer} er riktig pris. Når passer det å hente?",
        ],
        "accept": [
            "{offer} høres bra ut! Deal. Når kan du hente?",
            "Det går fint med {offer}. Når passer det for deg?",
        ],
        "escalate": [
            "Takk for budet på {offer}. La meg tenke på det, så kommer jeg tilbake til deg.",
        ],
        "counter_lowballer": [
            "{offer} er dessverre for lavt. Jeg kan møte deg på {counter}, lavere enn det går jeg ikke.",
        ],
        "counter_serious": [
            "Takk for budet! {offer} er litt lavt for meg. Kunne du tenke deg {counter}?",
        ],
        "counter": [
            "Takk for budet! {offer} er litt lavt. Hva med {counter}?",
            "Takk for budet! Kan du møte meg på {counter}?",
        ],
        "bargain": [
            "Jeg forstår at du vil forhandle. Jeg kan gå ned til {counter}. Hva synes du?",
        ],
        "scam": [
            "Takk for meldingen. Jeg selger kun lokalt med kontant betaling ved henting. Er du interessert i det?",
        ],
        "error": [
            "Beklager, noe gikk galt. Selgeren svarer deg så snart som mulig.",
        ],
    },
    "en": {
        "greeting": [
            "Hi! Thanks for your interest in {title}. It's still available. What would you like to know?",
            "Hi! Yes, {title} is still for sale. Let me know if you have any questions.",
        ],
        "compliment": [
            "Thanks! It's a nice {title_lower}, well looked after and ready for a new owner. Interested?",
        ],
        "availability": [
            "Yes, it's still available! The price is {price}.",
            "Hi! It's available. When would you like to see it?",
        ],
        "question": [
            "Thanks for your interest in {title}! Condition: {condition}. The price is {price}. Feel free to ask more.",
        ],
        "other": [
            "Thanks for your message! {title} is {price}. Let me know if you're interested.",
        ],
        "accept_full": [
            "Perfect! {offer} works. When can you pick it up?",
        ],
        "accept": [
            "{offer} sounds good, deal! When can you pick it up?",
        ],
        "escalate": [
            "Thanks for your offer of {offer}. Let me think about it and get back to you.",
        ],
        "counter_lowballer": [
            "Sorry, {offer} is too low. I can meet you at {counter}, and that's as low as I can go.",
        ],
        "counter_serious": [
            "Thanks for the offer! {offer} is a bit low for me. Could you do {counter}?",
        ],
        "counter": [
            "Thanks for the offer! {offer} is a bit low. How about {counter}?",
        ],
        "bargain": [
            "I understand you'd like a better price. I can go down to {counter}. What do you think?",
        ],
        "scam": [
            "Thanks for your message. I only sell locally, cash on pickup. Are you interested in that?",
        ],
        "error": [
            "Sorry, something went wrong. The seller will get back to you as soon as possible.",
        ],
    },
}

INTENT_TEMPLATE = {
    MessageIntent.GREETING: "greeting",
    MessageIntent.COMPLIMENT: "compliment",
    MessageIntent.AVAILABILITY: "availability",
    MessageIntent.QUESTION: "question",
    MessageIntent.OTHER: "other",
}


def language_key(language: Optional[str]) -> str:
    """Maps "nb-NO" / "en-US" / "no" / "en" to a template key."""
    if language and language.lower().startswith("en"):
        return "en"
    return "no"


def counter_template(buyer_type: BuyerType) -> str:
    if buyer_type == BuyerType.LOWBALLER:
        return "counter_lowballer"
    if buyer_type == BuyerType.SERIOUS:
        return "counter_serious"
    return "counter"


def render_reply(
    key: str,
    language: str,
    title: str,
    price: int,
    condition: Condition = Condition.USED_GOOD,
    offer: Optional[int] = None,
    counter: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> str:
    lang = language_key(language)
    options = TEMPLATES[lang].get(key) or TEMPLATES[lang]["other"]
    template = (rng or random).choice(options)
    labels = CONDITION_LABELS["en-US" if lang == "en" else "nb-NO"]
    return template.format(
        title=title,
        title_lower=title.lower(),
        price=format_nok(price),
        condition=labels[condition].lower(),
        offer=format_nok(offer) if offer is not None else "",
        counter=format_nok(counter) if counter is not None else "",
    )
