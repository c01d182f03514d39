"""
Workflow Data Model
===================
State, inputs and results of one listing run.

RULES:
- WorkflowState is owned by exactly one run and never shared.
- Result slots are write-once.
- steps and errors are append-only.
- target_platforms is set by the platform-ranking stage at most once.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from models.platform import Platform, UserPreferences


class WorkflowPhase(Enum):
    ANALYSIS = "analysis"
    PRICING = "pricing"
    PLATFORM_SELECTION = "platform_selection"
    OPTIMIZATION = "optimization"
    PUBLISHING = "publishing"
    COMPLETED = "completed"
    ERROR = "error"


# Result slots, in stage order
SLOT_VISION = "vision"
SLOT_PRICE_VALIDATION = "price_validation"
SLOT_ELIGIBILITY = "eligibility"
SLOT_PLATFORMS = "platform_recommendation"
SLOT_PRICE_RANGE = "price_range"
SLOT_CONTENT = "content"
SLOT_PUBLISHING = "publishing"

RESULT_SLOTS = (
    SLOT_VISION,
    SLOT_PRICE_VALIDATION,
    SLOT_ELIGIBILITY,
    SLOT_PLATFORMS,
    SLOT_PRICE_RANGE,
    SLOT_CONTENT,
    SLOT_PUBLISHING,
)


def _serialize(value: Any) -> Any:
    if value is None:
        return None
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    return value


@dataclass(frozen=True)
class StepRecord:
    """One entry of the step log."""
    tool: str
    success: bool
    duration_ms: int
    summary: str
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool": self.tool,
            "success": self.success,
            "duration_ms": self.duration_ms,
            "summary": self.summary,
            "degraded": self.degraded,
        }


@dataclass
class WorkflowInput:
    """What the caller asks for."""
    image_ref: str
    hints: Optional[str] = None
    preferences: UserPreferences = field(default_factory=UserPreferences)
    target_platforms: List[Platform] = field(default_factory=lambda: [Platform.FINN, Platform.FACEBOOK])
    auto_publish: bool = False
    language: str = "nb-NO"

    def to_dict(self) -> Dict[str, Any]:
        image = self.image_ref
        if image.startswith("data:"):
            image = image[:40] + "..."
        return {
            "image_ref": image,
            "hints": self.hints,
            "preferences": self.preferences.to_dict(),
            "target_platforms": [p.value for p in self.target_platforms],
            "auto_publish": self.auto_publish,
            "language": self.language,
        }


@dataclass
class WorkflowState:
    """Accumulator for one run. Transitions go through pipeline.decision_gates.apply_outcome."""
    phase: WorkflowPhase = WorkflowPhase.ANALYSIS
    target_platforms: Tuple[Platform, ...] = ()
    targets_locked: bool = False
    results: Dict[str, Any] = field(default_factory=dict)
    steps: Tuple[StepRecord, ...] = ()
    errors: Tuple[str, ...] = ()

    def result(self, slot: str) -> Any:
        return self.results.get(slot)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "target_platforms": [p.value for p in self.target_platforms],
            "results": {slot: _serialize(self.results.get(slot)) for slot in RESULT_SLOTS},
            "steps": [s.to_dict() for s in self.steps],
            "errors": list(self.errors),
        }


@dataclass
class OptimizedListing:
    """Final listing copy."""
    title: str
    description: str
    price: int
    tags: List[str] = field(default_factory=list)
    selling_points: List[str] = field(default_factory=list)
    target_platform: str = "both"   # finn | facebook | amazon | both
    language: str = "nb-NO"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "tags": list(self.tags),
            "selling_points": list(self.selling_points),
            "target_platform": self.target_platform,
            "language": self.language,
        }


@dataclass
class PlatformPublishResult:
    platform: Platform
    success: bool
    platform_id: Optional[str] = None
    platform_url: Optional[str] = None
    error: Optional[str] = None
    estimated_minutes: Tuple[int, int] = (0, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform.value,
            "success": self.success,
            "platform_id": self.platform_id,
            "platform_url": self.platform_url,
            "error": self.error,
            "estimated_minutes": list(self.estimated_minutes),
        }


@dataclass
class PublishResult:
    listing_id: str
    platforms: List[PlatformPublishResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return any(p.success for p in self.platforms)

    @property
    def published(self) -> List[Platform]:
        return [p.platform for p in self.platforms if p.success]

    @property
    def failed(self) -> List[Platform]:
        return [p.platform for p in self.platforms if not p.success]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "listing_id": self.listing_id,
            "success": self.success,
            "platforms": [p.to_dict() for p in self.platforms],
        }


@dataclass
class WorkflowResult:
    """What the caller gets back. Always returned, never raised."""
    phase: WorkflowPhase
    success: bool
    summary: str
    needs_user_input: bool
    next_action: Optional[str]
    workflow_text: str
    steps: List[StepRecord]
    state: WorkflowState
    error: Optional[Dict[str, Any]] = None

    def to_dict(self, include_state: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "workflow_text": self.workflow_text,
            "steps": [s.to_dict() for s in self.steps],
        }
        if include_state:
            data["workflow_state"] = self.state.to_dict()
        result = {
            "success": self.success,
            "phase": self.phase.value,
            "summary": self.summary,
            "needs_user_input": self.needs_user_input,
            "next_action": self.next_action,
            "data": data,
        }
        if self.error:
            result["error"] = self.error
        return result
