"""
Runtime Mode - test vs. prod
============================
Everything that differs between a local test run and a production run
lives in ModeConfig. Other modules read the flags; none of them branch
on the mode name.
"""

from enum import Enum
from dataclasses import dataclass


class RuntimeMode(Enum):
    TEST = "test"
    PROD = "prod"


@dataclass(frozen=True)
class ModeConfig:
    """Flags consulted by the AI client and the CLI."""
    mode: RuntimeMode

    # A missing API key is fatal only when live AI is expected
    use_live_ai: bool

    # Retries happen inside the AI client, never around whole stages
    retry_enabled: bool
    max_retries: int
    retry_backoff_sec: float
    request_timeout_sec: float

    # Spend ceiling per workflow run
    max_run_cost_usd: float
    enforce_budget: bool


_MODES = {
    RuntimeMode.TEST: ModeConfig(
        mode=RuntimeMode.TEST,
        use_live_ai=False,
        retry_enabled=False,
        max_retries=0,
        retry_backoff_sec=0.0,
        request_timeout_sec=30.0,
        max_run_cost_usd=0.20,
        enforce_budget=True,
    ),
    RuntimeMode.PROD: ModeConfig(
        mode=RuntimeMode.PROD,
        use_live_ai=True,
        retry_enabled=True,
        max_retries=2,
        retry_backoff_sec=2.0,
        request_timeout_sec=60.0,
        max_run_cost_usd=1.00,
        enforce_budget=True,
    ),
}


def get_mode_config(mode: str) -> ModeConfig:
    """
    Looks up the flags for "test" or "prod".

    Raises:
        ValueError: for any other mode name
    """
    try:
        return _MODES[RuntimeMode(mode)]
    except ValueError:
        raise ValueError(f"Invalid mode: {mode}. Must be 'test' or 'prod'") from None


def should_retry(mode_config: ModeConfig, retry_count: int) -> bool:
    """True while retry number retry_count + 1 is still allowed."""
    return mode_config.retry_enabled and retry_count < mode_config.max_retries


def retry_delay(mode_config: ModeConfig, retry_count: int) -> float:
    """Exponential backoff in seconds before retry number retry_count + 1."""
    return mode_config.retry_backoff_sec * (2 ** retry_count)


def is_budget_exceeded(mode_config: ModeConfig, current_cost: float) -> bool:
    if not mode_config.enforce_budget:
        return False
    return current_cost >= mode_config.max_run_cost_usd
