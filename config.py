"""
Config Loader
=============
Loads configuration from configs/config.yaml with support for:
- Runtime mode and log level
- AI settings (Claude PRIMARY, OpenAI fallback)
- Valuation settings (regional adjustment, fallback price)
- Platform scoring settings
- Negotiation defaults (floor / auto-accept ratios, escalation length)
- Workflow defaults (platforms, language, timeouts)
- Publishing settings
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from utils_logging import log_info


@dataclass
class RuntimeConf:
    """Runtime mode settings"""
    mode: str = "test"  # "test" or "prod"
    log_level: str = "info"


@dataclass
class AIConf:
    """AI settings - Claude PRIMARY, OpenAI fallback"""
    provider: str = "claude"  # "claude" or "openai"

    claude_model_fast: str = "claude-haiku-4-5"
    claude_model_vision: str = "claude-sonnet-4-5"
    openai_model: str = "gpt-4o-mini"
    openai_model_vision: str = "gpt-4o"

    temperature: float = 0.2
    max_tokens_vision: int = 1500
    max_tokens_text: int = 1200

    # USD per call, used for run cost tracking
    pricing: Dict[str, float] = field(default_factory=lambda: {
        "text": 0.002,
        "vision": 0.005,
    })


@dataclass
class ValuationConf:
    """Valuation engine settings"""
    region_adjustment: float = 1.1
    fallback_price: int = 1000
    comparable_bounds: List[float] = field(default_factory=lambda: [0.5, 2.0])


@dataclass
class ScoringConf:
    """Platform scoring settings"""
    recommend_threshold: float = 60.0


@dataclass
class NegotiationConf:
    """Negotiation defaults used when a listing omits them"""
    escalation_message_count: int = 5
    default_floor_ratio: float = 0.8
    default_auto_accept_ratio: float = 0.9
    default_max_discount_percent: float = 15.0


@dataclass
class WorkflowConf:
    """Workflow defaults"""
    default_platforms: List[str] = field(default_factory=lambda: ["finn", "facebook"])
    language: str = "nb-NO"
    timeout_sec: float = 300.0
    stage_timeout_sec: Optional[float] = 60.0


@dataclass
class PublishingConf:
    """Publishing settings"""
    base_urls: Dict[str, str] = field(default_factory=lambda: {
        "finn": "https://www.finn.no/bap/forsale/ad.html?finnkode=",
        "facebook": "https://www.facebook.com/marketplace/item/",
        "amazon": "https://www.amazon.se/dp/",
    })


@dataclass
class Cfg:
    """Main configuration container"""
    runtime: RuntimeConf = field(default_factory=RuntimeConf)
    ai: AIConf = field(default_factory=AIConf)
    valuation: ValuationConf = field(default_factory=ValuationConf)
    scoring: ScoringConf = field(default_factory=ScoringConf)
    negotiation: NegotiationConf = field(default_factory=NegotiationConf)
    workflow: WorkflowConf = field(default_factory=WorkflowConf)
    publishing: PublishingConf = field(default_factory=PublishingConf)


def default_config() -> Cfg:
    """Built-in defaults, identical to the shipped configs/config.yaml."""
    return Cfg()


def _find_config_path() -> str:
    config_paths = [
        "configs/config.yaml",
        "config.yaml",
        os.path.join(os.path.dirname(__file__), "configs/config.yaml"),
    ]
    for path in config_paths:
        if os.path.exists(path):
            return path
    raise FileNotFoundError(f"Config file not found in: {config_paths}")


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Loads configuration from YAML file.

    Searches for config in multiple locations unless a path is given:
    1. configs/config.yaml (relative to working dir)
    2. config.yaml (relative to working dir)
    3. configs/config.yaml (relative to this file)
    """
    config_path = path or _find_config_path()
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Config file not found: {config_path}")

    log_info(f"📁 Loading config from: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        y = yaml.safe_load(f) or {}

    return parse_config(y)


def parse_config(y: Dict[str, Any]) -> Cfg:
    """Builds a Cfg from an already-parsed YAML mapping. Missing keys keep defaults."""
    d = Cfg()

    runtime = y.get("runtime", {}) or {}
    ai = y.get("ai", {}) or {}
    valuation = y.get("valuation", {}) or {}
    scoring = y.get("scoring", {}) or {}
    negotiation = y.get("negotiation", {}) or {}
    workflow = y.get("workflow", {}) or {}
    publishing = y.get("publishing", {}) or {}

    stage_timeout = workflow.get("stage_timeout_sec", d.workflow.stage_timeout_sec)

    return Cfg(
        runtime=RuntimeConf(
            mode=runtime.get("mode", d.runtime.mode),
            log_level=runtime.get("log_level", d.runtime.log_level),
        ),
        ai=AIConf(
            provider=ai.get("provider", d.ai.provider),
            claude_model_fast=ai.get("claude_model_fast", d.ai.claude_model_fast),
            claude_model_vision=ai.get("claude_model_vision", d.ai.claude_model_vision),
            openai_model=ai.get("openai_model", d.ai.openai_model),
            openai_model_vision=ai.get("openai_model_vision", d.ai.openai_model_vision),
            temperature=float(ai.get("temperature", d.ai.temperature)),
            max_tokens_vision=int(ai.get("max_tokens_vision", d.ai.max_tokens_vision)),
            max_tokens_text=int(ai.get("max_tokens_text", d.ai.max_tokens_text)),
            pricing={**d.ai.pricing, **(ai.get("pricing") or {})},
        ),
        valuation=ValuationConf(
            region_adjustment=float(valuation.get("region_adjustment", d.valuation.region_adjustment)),
            fallback_price=int(valuation.get("fallback_price", d.valuation.fallback_price)),
            comparable_bounds=[float(b) for b in valuation.get("comparable_bounds", d.valuation.comparable_bounds)],
        ),
        scoring=ScoringConf(
            recommend_threshold=float(scoring.get("recommend_threshold", d.scoring.recommend_threshold)),
        ),
        negotiation=NegotiationConf(
            escalation_message_count=int(negotiation.get("escalation_message_count", d.negotiation.escalation_message_count)),
            default_floor_ratio=float(negotiation.get("default_floor_ratio", d.negotiation.default_floor_ratio)),
            default_auto_accept_ratio=float(negotiation.get("default_auto_accept_ratio", d.negotiation.default_auto_accept_ratio)),
            default_max_discount_percent=float(negotiation.get("default_max_discount_percent", d.negotiation.default_max_discount_percent)),
        ),
        workflow=WorkflowConf(
            default_platforms=list(workflow.get("default_platforms", d.workflow.default_platforms)),
            language=workflow.get("language", d.workflow.language),
            timeout_sec=float(workflow.get("timeout_sec", d.workflow.timeout_sec)),
            stage_timeout_sec=float(stage_timeout) if stage_timeout is not None else None,
        ),
        publishing=PublishingConf(
            base_urls={**d.publishing.base_urls, **(publishing.get("base_urls") or {})},
        ),
    )


def print_config_summary(cfg: Cfg):
    """Prints a summary of loaded configuration"""
    print("\n" + "=" * 60)
    print("📋 Configuration Summary")
    print("=" * 60)
    print(f"  Runtime mode:     {cfg.runtime.mode.upper()}")
    print(f"  Log level:        {cfg.runtime.log_level}")
    print(f"  AI Provider:      {cfg.ai.provider.upper()}")
    if cfg.ai.provider == "claude":
        print(f"  Claude Fast:      {cfg.ai.claude_model_fast}")
        print(f"  Claude Vision:    {cfg.ai.claude_model_vision}")
    else:
        print(f"  OpenAI Model:     {cfg.ai.openai_model}")
    print("-" * 60)
    print(f"  Region adj.:      ×{cfg.valuation.region_adjustment}")
    print(f"  Fallback price:   {cfg.valuation.fallback_price} NOK")
    print(f"  Recommend score:  ≥{cfg.scoring.recommend_threshold:.0f}")
    print(f"  Floor ratio:      {cfg.negotiation.default_floor_ratio:.0%}")
    print(f"  Auto-accept:      {cfg.negotiation.default_auto_accept_ratio:.0%}")
    print(f"  Platforms:        {', '.join(cfg.workflow.default_platforms)}")
    print(f"  Language:         {cfg.workflow.language}")
    print(f"  Run timeout:      {cfg.workflow.timeout_sec:.0f}s")
    print("=" * 60 + "\n")
