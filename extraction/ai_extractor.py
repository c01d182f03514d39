"""
AI Extractor - Vision Analysis with Claude/OpenAI
==================================================
Turns one product photo into a ListingDraft (item attributes plus the
vision model's raw price estimate).

CRITICAL: Failures are raised as classified ExternalServiceError. An empty
or unparseable answer is kind "unknown", never a half-filled draft.
"""

from typing import Optional

from core.ai_client import AIClient, extract_json
from core.errors import ExternalServiceError
from extraction.ai_prompt import VISION_SYSTEM_PROMPT, generate_vision_prompt
from models.item import ListingDraft
from utils_logging import log_debug


class VisionAnalyzer:
    """Vision/description service backed by the AI client."""

    def __init__(self, ai_client: Optional[AIClient], max_tokens: int = 1200):
        self.ai_client = ai_client
        self.max_tokens = max_tokens

    async def analyze(self, image_ref: str, hints: Optional[str] = None, language: str = "nb-NO") -> ListingDraft:
        """
        Analyse one photo.

        Args:
            image_ref: Image URL or base64 data URI
            hints: Free-text seller notes
            language: Listing language (nb-NO | en-US)

        Raises:
            ExternalServiceError: classified AI failure or unusable answer
        """
        if self.ai_client is None:
            raise ExternalServiceError("Vision service not configured: no AI client", kind="config", service="vision")

        raw = await self.ai_client.call_ai(
            prompt=generate_vision_prompt(hints, language),
            max_tokens=self.max_tokens,
            image=image_ref,
            system=VISION_SYSTEM_PROMPT,
            step="vision_analysis",
        )
        data = extract_json(raw)
        data.setdefault("language", language)

        draft = ListingDraft.from_dict(data)
        if not draft.title:
            raise ExternalServiceError("Vision response without a title", kind="unknown", service="vision")

        log_debug(f"Vision draft: {draft.title} | {draft.category} | {draft.suggested_price} NOK")
        return draft
