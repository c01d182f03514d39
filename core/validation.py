"""
Input Validation
================
Turns caller input into a WorkflowInput. Everything is checked here,
before any external call is made.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from core.errors import ValidationError
from models.platform import (
    ExperienceLevel,
    Platform,
    RiskTolerance,
    SellingStrategy,
    Timeframe,
    UserPreferences,
)
from models.workflow import WorkflowInput

SUPPORTED_LANGUAGES = ("nb-NO", "en-US")
IMAGE_PREFIXES = ("http://", "https://", "data:image/")


def _parse_enum(enum_cls: Type[Enum], value: Any, field_name: str, default: Enum) -> Enum:
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"Invalid {field_name} '{value}' (allowed: {allowed})", fields=[field_name])


def parse_platforms(values: Any, field_name: str = "target_platforms") -> List[Platform]:
    if isinstance(values, str):
        values = [v for v in values.split(",") if v.strip()]
    platforms: List[Platform] = []
    for v in values or []:
        p = _parse_enum(Platform, v, field_name, None)
        if p is not None and p not in platforms:
            platforms.append(p)
    return platforms


def _input_problems(inp: WorkflowInput) -> List[Tuple[str, str]]:
    problems = []
    if not inp.image_ref or not inp.image_ref.strip():
        problems.append(("image_ref", "image is required"))
    elif not inp.image_ref.startswith(IMAGE_PREFIXES):
        problems.append(("image_ref", "image must be an http(s) URL or a base64 data URI"))
    if not inp.target_platforms:
        problems.append(("target_platforms", "at least one default platform is required"))
    if inp.language not in SUPPORTED_LANGUAGES:
        problems.append(("language", f"unsupported language '{inp.language}'"))
    return problems


def _raise_problems(problems: List[Tuple[str, str]]):
    if problems:
        raise ValidationError("Invalid request: " + "; ".join(p for _, p in problems),
                              fields=[f for f, _ in problems])


def validate_workflow_input(inp: WorkflowInput) -> WorkflowInput:
    """Raises ValidationError listing every problem of an unusable request."""
    _raise_problems(_input_problems(inp))
    return inp


def parse_workflow_input(
    data: Dict[str, Any],
    default_platforms: Optional[List[str]] = None,
    default_language: str = "nb-NO",
) -> WorkflowInput:
    """
    Builds a validated WorkflowInput from a plain dict.

    Accepted keys: image_ref (or image_url / image_base64), hints,
    user_preference (or strategy), timeframe, experience_level,
    risk_tolerance, target_platforms, auto_publish, language.
    """
    problems: List[Tuple[str, str]] = []

    def parsed(fallback, parse, *args):
        try:
            return parse(*args)
        except ValidationError as e:
            problems.extend((f, str(e)) for f in e.fields)
            return fallback

    image_ref = data.get("image_ref") or data.get("image_url") or data.get("image_base64") or ""

    preferences = UserPreferences(
        strategy=parsed(SellingStrategy.MARKET_PRICE, _parse_enum, SellingStrategy,
                        data.get("user_preference", data.get("strategy")), "user_preference",
                        SellingStrategy.MARKET_PRICE),
        timeframe=parsed(Timeframe.NORMAL, _parse_enum, Timeframe, data.get("timeframe"),
                         "timeframe", Timeframe.NORMAL),
        experience_level=parsed(ExperienceLevel.INTERMEDIATE, _parse_enum, ExperienceLevel,
                                data.get("experience_level"), "experience_level",
                                ExperienceLevel.INTERMEDIATE),
        risk_tolerance=parsed(RiskTolerance.MEDIUM, _parse_enum, RiskTolerance, data.get("risk_tolerance"),
                              "risk_tolerance", RiskTolerance.MEDIUM),
    )

    if "target_platforms" in data:
        platforms = parsed([], parse_platforms, data.get("target_platforms"))
    else:
        platforms = parsed([], parse_platforms, default_platforms or ["finn", "facebook"])

    inp = WorkflowInput(
        image_ref=str(image_ref).strip(),
        hints=(data.get("hints") or None),
        preferences=preferences,
        target_platforms=platforms,
        auto_publish=bool(data.get("auto_publish", False)),
        language=data.get("language") or default_language,
    )

    # An unknown platform is already reported; an empty list only when none were rejected
    seen = {f for f, _ in problems}
    problems.extend(p for p in _input_problems(inp) if p[0] not in seen)
    _raise_problems(problems)
    return inp
