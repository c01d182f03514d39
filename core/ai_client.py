"""
Core AI client - unified AI call wrapper.

Claude PRIMARY, OpenAI fallback. Supports text and vision (image URL or
base64 data URI). Every failure leaves this module as a classified
ExternalServiceError so the orchestrator and the caller can tell auth,
rate-limit, timeout and network problems apart.

Retries (rate limits only) are decided here via runtime_mode, never by
the orchestrator.
"""

import asyncio
import json
import os
import re
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import anthropic
import openai
from dotenv import load_dotenv

from config import AIConf
from core.errors import ExternalServiceError, classify_error, to_service_error
from runtime_mode import ModeConfig, get_mode_config, is_budget_exceeded, retry_delay, should_retry
from utils_logging import LOG_LEVEL_INFO, get_log_level, log_warning

_DATA_URI = re.compile(r"^data:(image/[a-zA-Z0-9.+-]+);base64,(.+)$", re.S)


@dataclass
class RunSpend:
    """AI calls and cost of one workflow run."""
    cost_usd: float = 0.0
    calls: List[Dict[str, Any]] = field(default_factory=list)


# Each asyncio task sees its own run; concurrent runs never share a ledger
_CURRENT_RUN_SPEND: ContextVar[Optional[RunSpend]] = ContextVar("current_run_spend", default=None)


def start_run_spend() -> RunSpend:
    """Opens a fresh spend ledger for the workflow run in the current task."""
    spend = RunSpend()
    _CURRENT_RUN_SPEND.set(spend)
    return spend


def _claude_image_block(image: str) -> Dict[str, Any]:
    m = _DATA_URI.match(image)
    if m:
        return {"type": "image", "source": {"type": "base64", "media_type": m.group(1), "data": m.group(2)}}
    return {"type": "image", "source": {"type": "url", "url": image}}


def extract_json(text: Optional[str]) -> Dict[str, Any]:
    """
    Pulls the first JSON object out of a model response (with or without ```json fences).

    Raises:
        ExternalServiceError(kind="unknown") if no valid object is found
    """
    if not text:
        raise ExternalServiceError("Empty AI response", kind="unknown", service="ai")
    json_match = re.search(r"\{.*\}", text, re.DOTALL)
    if not json_match:
        raise ExternalServiceError("No JSON object in AI response", kind="unknown", service="ai")
    try:
        data = json.loads(json_match.group(0))
    except json.JSONDecodeError as e:
        raise ExternalServiceError(f"Invalid JSON in AI response: {e}", kind="unknown", service="ai", cause=e)
    if not isinstance(data, dict):
        raise ExternalServiceError("AI response JSON is not an object", kind="unknown", service="ai")
    return data


class AIClient:
    """
    Async AI access shared by every run of a process.

    Cost and the budget stop apply to the run opened with start_run_spend()
    in the calling task; calls outside any run are booked on the client.
    """

    def __init__(
        self,
        conf: AIConf,
        mode: Optional[ModeConfig] = None,
        claude_client=None,
        openai_client=None,
    ):
        self.conf = conf
        self.mode = mode or get_mode_config("test")
        self._claude = claude_client
        self._openai = openai_client
        self._own_spend = RunSpend()

    @classmethod
    def from_env(cls, conf: AIConf, mode: Optional[ModeConfig] = None) -> Optional["AIClient"]:
        """
        Builds clients from ANTHROPIC_API_KEY / OPENAI_API_KEY (.env supported).

        Returns None if neither key is set.
        """
        load_dotenv()
        mode = mode or get_mode_config("test")
        timeout = mode.request_timeout_sec

        claude_client = None
        openai_client = None
        anthropic_key = os.getenv("ANTHROPIC_API_KEY")
        openai_key = os.getenv("OPENAI_API_KEY")

        if anthropic_key:
            # Retries are handled in call_ai
            claude_client = anthropic.AsyncAnthropic(api_key=anthropic_key, timeout=timeout, max_retries=0)
        if openai_key:
            openai_client = openai.AsyncOpenAI(api_key=openai_key, timeout=timeout, max_retries=0)

        if not claude_client and not openai_client:
            log_warning("No AI API keys configured (ANTHROPIC_API_KEY / OPENAI_API_KEY)")
            return None

        return cls(conf, mode, claude_client=claude_client, openai_client=openai_client)

    @property
    def available(self) -> bool:
        return self._claude is not None or self._openai is not None

    # ------------------------------------------------------------------
    # Cost tracking
    # ------------------------------------------------------------------

    @property
    def spend(self) -> RunSpend:
        return _CURRENT_RUN_SPEND.get() or self._own_spend

    @property
    def run_cost_usd(self) -> float:
        return self.spend.cost_usd

    @run_cost_usd.setter
    def run_cost_usd(self, value: float):
        self.spend.cost_usd = value

    @property
    def calls(self) -> List[Dict[str, Any]]:
        return self.spend.calls

    def add_cost(self, amount: float, step: str, provider: str, model: str, call_type: str = "text"):
        spend = self.spend
        spend.cost_usd += amount
        spend.calls.append({"step": step, "provider": provider, "model": model,
                            "call_type": call_type, "cost_usd": amount})

    def is_budget_exceeded(self) -> bool:
        return is_budget_exceeded(self.mode, self.run_cost_usd)

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def _log_decision(self, step: str, provider: str, model: str, call_type: str, reason: str):
        if get_log_level() < LOG_LEVEL_INFO:
            return
        print(f"\nAI_CALL_DECISION:")
        print(f"  step: {step}")
        print(f"  runtime_mode: {self.mode.mode.value}")
        print(f"  provider: {provider}")
        print(f"  model: {model}")
        print(f"  call_type: {call_type}")
        print(f"  reason: {reason}")

    def _log_failure(self, step: str, provider: str, model: str, error: ExternalServiceError, action: str):
        if get_log_level() < LOG_LEVEL_INFO:
            return
        print(f"\nAI_FAILURE:")
        print(f"  step: {step}")
        print(f"  provider: {provider}")
        print(f"  model: {model}")
        print(f"  error_type: {error.kind}")
        print(f"  error_message: {str(error)[:100]}")
        print(f"  action_taken: {action}")

    async def _call_claude(
        self,
        prompt: str,
        max_tokens: int,
        image: Optional[str],
        system: Optional[str],
        step: str,
    ) -> str:
        model = self.conf.claude_model_vision if image else self.conf.claude_model_fast
        call_type = "vision" if image else "text"
        self._log_decision(step, "claude", model, call_type, "AI_ENABLED")

        if image:
            content: Any = [_claude_image_block(image), {"type": "text", "text": prompt}]
        else:
            content = prompt

        kwargs: Dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": self.conf.temperature,
            "messages": [{"role": "user", "content": content}],
        }
        if system:
            kwargs["system"] = system

        try:
            response = await self._claude.messages.create(**kwargs)
        except Exception as e:
            err = to_service_error(e, "claude")
            self._log_failure(step, "claude", model, err, "raise")
            raise err

        self.add_cost(self.conf.pricing.get(call_type, 0.0), step, "claude", model, call_type)

        parts = [block.text for block in response.content if hasattr(block, "text")]
        text = "\n".join(parts).strip()
        if not text:
            raise ExternalServiceError("Empty response from Claude", kind="unknown", service="claude")
        return text

    async def _call_openai(
        self,
        prompt: str,
        max_tokens: int,
        image: Optional[str],
        system: Optional[str],
        step: str,
    ) -> str:
        model = self.conf.openai_model_vision if image else self.conf.openai_model
        call_type = "vision" if image else "text"
        self._log_decision(step, "openai", model, call_type, "OPENAI_FALLBACK" if self._claude else "AI_ENABLED")

        messages: List[Dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        if image:
            messages.append({
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": image}},
                ],
            })
        else:
            messages.append({"role": "user", "content": prompt})

        try:
            response = await self._openai.chat.completions.create(
                model=model,
                messages=messages,
                temperature=self.conf.temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            err = to_service_error(e, "openai")
            self._log_failure(step, "openai", model, err, "raise")
            raise err

        self.add_cost(self.conf.pricing.get(call_type, 0.0), step, "openai", model, call_type)

        text = (response.choices[0].message.content or "").strip()
        if not text:
            raise ExternalServiceError("Empty response from OpenAI", kind="unknown", service="openai")
        return text

    async def _with_retries(self, call, *args) -> str:
        retries = 0
        while True:
            try:
                return await call(*args)
            except ExternalServiceError as e:
                if e.kind == "rate_limit" and should_retry(self.mode, retries):
                    delay = retry_delay(self.mode, retries)
                    print(f"   ⏳ Rate limited, retry {retries + 1}/{self.mode.max_retries} in {delay:.1f}s")
                    await asyncio.sleep(delay)
                    retries += 1
                    continue
                raise

    async def call_ai(
        self,
        prompt: str,
        max_tokens: int = 800,
        image: Optional[str] = None,
        system: Optional[str] = None,
        step: str = "unknown",
    ) -> str:
        """
        Unified AI call with automatic provider selection.

        Uses Claude if available, falls back to OpenAI.

        Raises:
            ExternalServiceError: classified failure of the last provider tried
        """
        if not self.available:
            raise ExternalServiceError("AI client not configured: no API keys", kind="config", service="ai")
        if self.is_budget_exceeded():
            raise ExternalServiceError(
                f"AI budget exceeded (${self.run_cost_usd:.2f} ≥ ${self.mode.max_run_cost_usd:.2f})",
                kind="rate_limit",
                service="ai",
            )

        last_error: Optional[ExternalServiceError] = None

        if self._claude and self.conf.provider == "claude":
            try:
                return await self._with_retries(self._call_claude, prompt, max_tokens, image, system, step)
            except ExternalServiceError as e:
                last_error = e
                if not self._openai:
                    raise
                log_warning(f"Claude failed ({e.kind}), falling back to OpenAI")

        if self._openai:
            try:
                return await self._with_retries(self._call_openai, prompt, max_tokens, image, system, step)
            except ExternalServiceError as e:
                last_error = e

        if self._claude and self.conf.provider != "claude":
            return await self._with_retries(self._call_claude, prompt, max_tokens, image, system, step)

        if last_error is not None:
            raise last_error
        raise ExternalServiceError("No AI provider available", kind="config", service="ai")


__all__ = ["AIClient", "RunSpend", "extract_json", "start_run_spend", "classify_error"]
