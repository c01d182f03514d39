"""
Tests for Error Classification, Config, Input Validation and the AI Client
==========================================================================
"""

import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import asyncio
from types import SimpleNamespace

import pytest

from config import AIConf, default_config, load_config, parse_config
from core.ai_client import AIClient, extract_json
from core.errors import (
    ExternalServiceError,
    HardStageFailure,
    SoftStageFailure,
    ValidationError,
    classify_error,
    error_payload,
)
from core.validation import parse_platforms, parse_workflow_input
from models.platform import Platform, SellingStrategy, Timeframe
from runtime_mode import get_mode_config, is_budget_exceeded, retry_delay, should_retry

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


class StatusError(Exception):
    def __init__(self, message, status_code):
        super().__init__(message)
        self.status_code = status_code


def test_error_classification():
    print("\n=== TEST: Error Classification ===")

    cases = [
        (ExternalServiceError("whatever", kind="auth"), "auth"),
        (asyncio.TimeoutError(), "timeout"),
        (ConnectionError("reset"), "network"),
        (Exception("Rate limit exceeded"), "rate_limit"),
        (Exception("Invalid API key provided"), "auth"),
        (Exception("Request timed out"), "timeout"),
        (Exception("getaddrinfo ENOTFOUND api.example.com"), "network"),
        (StatusError("nope", 429), "rate_limit"),
        (StatusError("nope", 401), "auth"),
        (Exception("boom"), "unknown"),
    ]
    for exc, expected in cases:
        kind = classify_error(exc)
        assert kind == expected, f"❌ {exc!r} → {kind}, expected {expected}"

    assert ExternalServiceError("x", kind="rate_limit").retryable
    assert not ExternalServiceError("x", kind="auth").retryable
    assert ExternalServiceError("x", kind="bogus").kind == "unknown"

    print(f"✅ PASSED: {len(cases)} errors classified")


def test_error_payloads():
    print("\n=== TEST: Error Payloads ===")

    validation = error_payload(ValidationError("Image is required", fields=["image_ref"]))
    assert validation == {"error": "Image is required", "kind": "validation", "status": 400,
                          "fields": ["image_ref"]}, f"❌ {validation}"

    hard = error_payload(HardStageFailure("vision_analysis", "timeout", cause=asyncio.TimeoutError()))
    assert hard["kind"] == "timeout" and hard["status"] == 408, f"❌ {hard}"
    assert hard["stage"] == "vision_analysis"

    soft = error_payload(SoftStageFailure("price_validation", "down",
                                          cause=ExternalServiceError("down", kind="network")))
    assert soft["kind"] == "network" and soft["status"] == 503, f"❌ {soft}"

    bare = error_payload(HardStageFailure("publishing", "all platforms failed"))
    assert bare["kind"] == "unknown" and bare["status"] == 500

    print("✅ PASSED: payloads")


def test_default_config_matches_shipped_yaml():
    print("\n=== TEST: Shipped Config ===")

    shipped = load_config(os.path.join(ROOT, "configs", "config.yaml"))
    defaults = default_config()

    assert shipped == defaults, "❌ configs/config.yaml drifted from the built-in defaults"
    assert shipped.valuation.region_adjustment == 1.1
    assert shipped.workflow.default_platforms == ["finn", "facebook"]

    print("✅ PASSED: YAML == defaults")


def test_parse_config_overrides():
    print("\n=== TEST: Config Overrides ===")

    cfg = parse_config({
        "runtime": {"mode": "prod"},
        "valuation": {"region_adjustment": 1.0},
        "workflow": {"stage_timeout_sec": None, "default_platforms": ["finn"]},
        "ai": {"pricing": {"vision": 0.01}},
    })

    assert cfg.runtime.mode == "prod"
    assert cfg.valuation.region_adjustment == 1.0
    assert cfg.valuation.fallback_price == 1000
    assert cfg.workflow.stage_timeout_sec is None
    assert cfg.workflow.default_platforms == ["finn"]
    assert cfg.ai.pricing["vision"] == 0.01
    assert cfg.ai.pricing["text"] == default_config().ai.pricing["text"]

    assert parse_config({}) == default_config()

    print("✅ PASSED: overrides applied, missing keys default")


def test_runtime_modes():
    print("\n=== TEST: Runtime Modes ===")

    test_mode = get_mode_config("test")
    prod_mode = get_mode_config("prod")

    assert not test_mode.use_live_ai and prod_mode.use_live_ai
    assert not should_retry(test_mode, 0)
    assert should_retry(prod_mode, 1) and not should_retry(prod_mode, 2)
    assert retry_delay(prod_mode, 0) == 2.0 and retry_delay(prod_mode, 1) == 4.0
    assert is_budget_exceeded(test_mode, 0.25) and not is_budget_exceeded(prod_mode, 0.25)

    with pytest.raises(ValueError):
        get_mode_config("staging")

    print("✅ PASSED: test / prod")


def test_parse_workflow_input():
    print("\n=== TEST: Workflow Input ===")

    inp = parse_workflow_input({"image_url": "https://example.com/sofa.jpg", "strategy": "quick_sale",
                                "timeframe": "URGENT"})
    assert inp.image_ref == "https://example.com/sofa.jpg"
    assert inp.preferences.strategy == SellingStrategy.QUICK_SALE
    assert inp.preferences.timeframe == Timeframe.URGENT
    assert inp.target_platforms == [Platform.FINN, Platform.FACEBOOK]
    assert inp.language == "nb-NO"
    assert not inp.auto_publish

    custom = parse_workflow_input({"image_ref": "data:image/png;base64,AAAA",
                                   "target_platforms": "finn, amazon, finn", "language": "en-US"})
    assert custom.target_platforms == [Platform.FINN, Platform.AMAZON]
    assert custom.language == "en-US"

    assert parse_platforms(["Facebook"]) == [Platform.FACEBOOK]

    print("✅ PASSED: input parsed")


def test_invalid_workflow_input():
    print("\n=== TEST: Invalid Workflow Input ===")

    bad_inputs = [
        ({}, "image_ref"),
        ({"image_ref": "ftp://example.com/a.jpg"}, "image_ref"),
        ({"image_ref": "https://x/a.jpg", "strategy": "fast"}, "user_preference"),
        ({"image_ref": "https://x/a.jpg", "target_platforms": []}, "target_platforms"),
        ({"image_ref": "https://x/a.jpg", "target_platforms": ["ebay"]}, "target_platforms"),
        ({"image_ref": "https://x/a.jpg", "language": "de-DE"}, "language"),
    ]
    for data, field_name in bad_inputs:
        with pytest.raises(ValidationError) as info:
            parse_workflow_input(data)
        assert field_name in info.value.fields, f"❌ {data}: {info.value.fields}"

    print(f"✅ PASSED: {len(bad_inputs)} inputs rejected")


def test_invalid_input_reports_every_problem():
    print("\n=== TEST: All Input Problems Together ===")

    with pytest.raises(ValidationError) as info:
        parse_workflow_input({
            "image_ref": "ftp://example.com/a.jpg",
            "strategy": "fast",
            "timeframe": "yesterday",
            "target_platforms": ["ebay"],
            "language": "de-DE",
        })

    fields = info.value.fields
    assert fields == ["user_preference", "timeframe", "target_platforms", "image_ref", "language"], f"❌ {fields}"
    assert "ebay" in str(info.value) and "de-DE" in str(info.value)

    print(f"✅ PASSED: {fields}")


def test_extract_json():
    print("\n=== TEST: JSON Extraction ===")

    fenced = 'Here you go:\n```json\n{"title": "Sofa", "tags": ["grå"]}\n```'
    assert extract_json(fenced) == {"title": "Sofa", "tags": ["grå"]}

    for text in ("", "no json here", "{not: valid}"):
        with pytest.raises(ExternalServiceError) as info:
            extract_json(text)
        assert info.value.kind == "unknown"

    print("✅ PASSED: fenced JSON parsed, garbage rejected")


def test_ai_client_falls_back_to_openai():
    """Claude network failure → OpenAI answers, cost tracked per provider call."""
    print("\n=== TEST: AI Fallback ===")

    async def claude_create(**kwargs):
        raise ConnectionError("connection reset by peer")

    async def openai_create(**kwargs):
        message = SimpleNamespace(content='{"ok": true}')
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    claude = SimpleNamespace(messages=SimpleNamespace(create=claude_create))
    gpt = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=openai_create)))
    client = AIClient(AIConf(), get_mode_config("test"), claude_client=claude, openai_client=gpt)

    text = asyncio.run(client.call_ai("hei", step="content_generation"))

    assert text == '{"ok": true}', f"❌ {text}"
    assert [c["provider"] for c in client.calls] == ["openai"]
    assert client.run_cost_usd == AIConf().pricing["text"]

    print("✅ PASSED: OpenAI fallback")


def test_ai_client_without_providers():
    print("\n=== TEST: AI Client Not Configured ===")

    client = AIClient(AIConf())
    with pytest.raises(ExternalServiceError) as info:
        asyncio.run(client.call_ai("hei"))
    assert info.value.kind == "config"

    print("✅ PASSED: kind=config")


def test_ai_client_budget():
    print("\n=== TEST: AI Budget ===")

    client = AIClient(AIConf(), get_mode_config("test"), claude_client=object())
    client.run_cost_usd = 0.5
    with pytest.raises(ExternalServiceError) as info:
        asyncio.run(client.call_ai("hei"))
    assert info.value.kind == "rate_limit"

    print("✅ PASSED: budget stops the call")


if __name__ == "__main__":
    print("\n" + "="*60)
    print("RUNNING ERROR / CONFIG / VALIDATION TESTS")
    print("="*60)

    test_error_classification()
    test_error_payloads()
    test_default_config_matches_shipped_yaml()
    test_parse_config_overrides()
    test_runtime_modes()
    test_parse_workflow_input()
    test_invalid_workflow_input()
    test_invalid_input_reports_every_problem()
    test_extract_json()
    test_ai_client_falls_back_to_openai()
    test_ai_client_without_providers()
    test_ai_client_budget()

    print("\n" + "="*60)
    print("✅ ALL ERROR / CONFIG / VALIDATION TESTS PASSED")
    print("="*60)
