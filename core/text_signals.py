"""
Text Signal Extraction
======================
Heuristic readers for free text written by buyers and vision models:
offer amounts, message intent, scam signals, language and item age.

The negotiation state machine and the valuation engine only talk to the
TextSignalExtractor interface; NordicTextSignalExtractor is the regex
implementation for Norwegian and English.

All methods are deterministic and side-effect free.
"""

import re
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from models.chat import MessageIntent
from utils_text import contains_any, normalize_whitespace, parse_amount


DEFAULT_AGE_YEARS = 2.0
VINTAGE_AGE_YEARS = 20.0
RETRO_AGE_YEARS = 15.0
MIN_PLAUSIBLE_YEAR = 1950
MAX_BARE_AGE_YEARS = 50


class TextSignalExtractor(ABC):
    """Interface for reading structured signals out of free text."""

    @abstractmethod
    def extract_offer(self, text: str) -> Optional[int]:
        """Numeric offer amount in the message, or None."""

    @abstractmethod
    def classify_intent(self, text: str, has_offer: bool = False) -> MessageIntent:
        """Intent tag of the message."""

    @abstractmethod
    def risk_flags(self, text: str) -> List[str]:
        """Risk flags: "scam", "low_effort"."""

    @abstractmethod
    def detect_language(self, text: str) -> str:
        """"no" or "en"."""

    @abstractmethod
    def is_hesitant(self, text: str) -> bool:
        """True if the buyer hedges."""

    @abstractmethod
    def parse_age_years(self, text: Optional[str], current_year: Optional[int] = None) -> float:
        """Item age in years from a free-text hint."""


# ==============================================================================
# NORWEGIAN / ENGLISH RULES
# ==============================================================================

# "7000", "7 000", "7.000", "7k"
_AMOUNT = r"(\d{1,3}(?:[ . ]\d{3})+|\d+(?:[.,]\d+)?\s*k\b|\d+)"

OFFER_PATTERNS = [
    _AMOUNT + r"\s*(?:kr\b|kroner\b|nok\b|,-)",
    r"\bkan du ta\s+" + _AMOUNT,
    r"\btar du\s+" + _AMOUNT,
    r"\bjeg byr\s+" + _AMOUNT,
    r"\bbyr\s+" + _AMOUNT,
    r"\bkan betale\s+" + _AMOUNT,
    r"\bhva med\s+" + _AMOUNT,
    r"\bbud\s*(?:på|:)?\s*" + _AMOUNT,
    _AMOUNT + r"\s*i kontanter",
    r"\bwould you (?:take|accept)\s+" + _AMOUNT,
    r"\b(?:i can|i could|i'll|i will|i'd)\s+(?:offer|pay|do|give)\s+" + _AMOUNT,
    r"\boffer(?: is|ing)?\s*:?\s*" + _AMOUNT,
    r"\bhow about\s+" + _AMOUNT,
    _AMOUNT + r"\s*(?:cash|kontant)",
    r"^\s*" + _AMOUNT + r"\s*\??\s*$",
]

GREETING_PATTERN = r"^(hei|hallo|heisann|hey|hi|hello|god (?:morgen|dag|kveld)|good (?:morning|afternoon|evening))\b"

COMPLIMENT_KEYWORDS = [
    "fin", "fint", "flott", "nydelig", "pen", "lekker", "kul",
    "nice", "beautiful", "looks great", "love it", "awesome", "gorgeous",
]

BARGAIN_KEYWORDS = [
    "kan du gå ned", "gå ned i pris", "lavere pris", "bedre pris", "rabatt",
    "litt billigere", "siste pris", "laveste pris", "prutes", "prute",
    "lowest price", "best price", "last price", "discount", "go lower",
    "cheaper", "negotiable", "any flexibility", "lower the price",
]

AVAILABILITY_KEYWORDS = [
    "ledig", "tilgjengelig", "fortsatt til salgs", "til salgs fortsatt", "er den solgt",
    "still available", "is it available", "available", "still for sale", "sold yet",
]

QUESTION_START = r"^(hva|hvor|hvordan|hvorfor|når|hvilken|hvilke|er den|er det|har den|har du|fungerer|virker|" \
                 r"what|where|how|why|when|which|is it|is there|does it|do you|can you tell)\b"

SCAM_KEYWORDS = [
    "western union", "moneygram", "overpay", "more money", "agent", "shipping",
    "courier", "paypal friends", "verification code", "bekreftelseskode",
    "send money", "money order", "cashier check",
]

LOW_EFFORT_PATTERN = r"^(siste pris|laveste|last price|lowest|price|pris|\?+)\s*\??$"

HESITANT_KEYWORDS = [
    "kanskje", "lurer på", "hvis det går", "muligens", "om mulig", "tenkte kanskje",
    "maybe", "perhaps", "wondering", "if possible", "would it be possible", "not sure",
]

NORWEGIAN_WORDS = {
    "jeg", "du", "er", "det", "kan", "hei", "ikke", "og", "på", "med", "hva", "pris",
    "den", "til", "har", "takk", "ta", "vil", "hvor", "fortsatt", "gå", "ned", "kroner",
}

ENGLISH_WORDS = {
    "i", "you", "is", "it", "the", "can", "hi", "hello", "not", "and", "with", "what",
    "price", "have", "thanks", "take", "would", "where", "still", "available", "offer",
}

_NUM = r"(\d+(?:[.,]\d+)?)"
MONTH_PATTERN = _NUM + r"\s*(?:måneder|måned|mnd|months?|mos?)\b"
YEAR_PATTERN = _NUM + r"\s*(?:år|aar|years?|yrs?|y\.?o\.?)(?!\w)"
HALF_YEAR_PATTERN = r"\b(?:et halvt år|halvt år|half a year|six months)\b"
ONE_YEAR_PATTERN = r"\b(?:ett|et|one|a|an) (?:år|year)\b"
NEW_PATTERN = r"\b(?:ny|nytt|nye|new|brand new|ubrukt|unused|aldri brukt|never used)\b"
FOUR_DIGIT_YEAR = r"\b(1[89]\d{2}|20\d{2})\b"


def _to_float(raw: str) -> float:
    return float(raw.replace(",", "."))


class NordicTextSignalExtractor(TextSignalExtractor):
    """Norwegian and English regex heuristics."""

    def extract_offer(self, text: str) -> Optional[int]:
        t = normalize_whitespace(text).lower()
        if not t:
            return None
        for pattern in OFFER_PATTERNS:
            m = re.search(pattern, t)
            if m:
                amount = parse_amount(m.group(1))
                if amount and amount > 0:
                    return amount
        return None

    def classify_intent(self, text: str, has_offer: bool = False) -> MessageIntent:
        t = normalize_whitespace(text).lower()
        if has_offer:
            return MessageIntent.OFFER
        if contains_any(t, BARGAIN_KEYWORDS):
            return MessageIntent.BARGAIN
        if contains_any(t, AVAILABILITY_KEYWORDS):
            return MessageIntent.AVAILABILITY
        if re.search(QUESTION_START, t) or "?" in t:
            # "Hei, er den ledig?" is caught above; plain greetings with a question are questions
            return MessageIntent.QUESTION
        if contains_any(t, COMPLIMENT_KEYWORDS):
            return MessageIntent.COMPLIMENT
        if re.search(GREETING_PATTERN, t):
            return MessageIntent.GREETING
        return MessageIntent.OTHER

    def risk_flags(self, text: str) -> List[str]:
        t = normalize_whitespace(text).lower()
        flags = []
        if contains_any(t, SCAM_KEYWORDS):
            flags.append("scam")
        if re.match(LOW_EFFORT_PATTERN, t):
            flags.append("low_effort")
        return flags

    def detect_language(self, text: str) -> str:
        words = re.findall(r"[a-zæøå']+", (text or "").lower())
        no_count = sum(1 for w in words if w in NORWEGIAN_WORDS)
        en_count = sum(1 for w in words if w in ENGLISH_WORDS)
        if re.search(r"[æøå]", (text or "").lower()):
            no_count += 1
        return "en" if en_count > no_count else "no"

    def is_hesitant(self, text: str) -> bool:
        return contains_any(text, HESITANT_KEYWORDS)

    def parse_age_years(self, text: Optional[str], current_year: Optional[int] = None) -> float:
        """
        Free-text age hint → years.

        "6 måneder" → 0.5, "2 years" / "2år" → 2, "2015" → current year - 2015,
        "vintage"/"klassisk" → 20, "retro" → 15, "ny"/"new" → 0, anything else → 2.
        """
        if not text:
            return DEFAULT_AGE_YEARS
        t = normalize_whitespace(text).lower()
        year_now = current_year or date.today().year

        if re.search(HALF_YEAR_PATTERN, t):
            return 0.5

        if re.search(ONE_YEAR_PATTERN, t):
            return 1.0

        m = re.search(MONTH_PATTERN, t)
        if m:
            return round(_to_float(m.group(1)) / 12.0, 4)

        m = re.search(YEAR_PATTERN, t)
        if m and _to_float(m.group(1)) <= MAX_BARE_AGE_YEARS:
            return _to_float(m.group(1))

        if re.search(r"\b(?:vintage|klassisk|classic)\b", t):
            return VINTAGE_AGE_YEARS
        if re.search(r"\bretro\b", t):
            return RETRO_AGE_YEARS

        m = re.search(FOUR_DIGIT_YEAR, t)
        if m:
            year = int(m.group(1))
            if MIN_PLAUSIBLE_YEAR <= year <= year_now:
                return float(year_now - year)

        if re.search(NEW_PATTERN, t):
            return 0.0

        m = re.search(_NUM, t)
        if m and _to_float(m.group(1)) <= MAX_BARE_AGE_YEARS:
            return _to_float(m.group(1))

        return DEFAULT_AGE_YEARS


_default_extractor: TextSignalExtractor = NordicTextSignalExtractor()


def get_default_extractor() -> TextSignalExtractor:
    return _default_extractor
