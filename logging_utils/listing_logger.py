"""
Listing Logger - Per-Run Step & Cost Tracking
==============================================
Detailed logging for one listing run: step records, the human-readable
workflow text shown to the seller, AI calls with cost.

CRITICAL: The workflow text is append-only. Its last non-empty line is the
run summary.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional


class ListingProcessingLog:
    """Detailed logging for one listing run."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        self.steps: List[Dict[str, Any]] = []
        self.lines: List[str] = []
        self.ai_calls: List[Dict[str, Any]] = []
        self.costs = {
            "vision": 0.0,
            "text": 0.0,
            "total": 0.0,
        }

    def log_step(self, step_name: str, **kwargs):
        """Log a pipeline step."""
        self.steps.append({
            "step": step_name,
            "timestamp": datetime.now().isoformat(),
            **kwargs
        })

    def append_text(self, line: str):
        """Append one line to the workflow text."""
        self.lines.append(line)

    def log_ai_call(self, purpose: str, model: str, cost_usd: float, call_type: str = "text"):
        """Log an AI call with cost."""
        self.ai_calls.append({
            "purpose": purpose,
            "model": model,
            "cost_usd": cost_usd,
            "timestamp": datetime.now().isoformat()
        })
        bucket = "vision" if call_type == "vision" else "text"
        self.costs[bucket] += cost_usd
        self.costs["total"] += cost_usd

    def log_escalation(self, from_phase: str, to_phase: str, reason: str):
        """Log a phase transition."""
        self.log_step("escalation",
                      from_phase=from_phase,
                      to_phase=to_phase,
                      reason=reason)

    def log_skip(self, reason: str):
        """Log a skipped stage."""
        self.log_step("skip", reason=reason)

    @property
    def workflow_text(self) -> str:
        return "\n".join(self.lines)

    def last_line(self) -> Optional[str]:
        for line in reversed(self.lines):
            if line.strip():
                return line.strip()
        return None

    def summary(self) -> Dict[str, Any]:
        """Generate summary of processing."""
        return {
            "run_id": self.run_id,
            "total_steps": len(self.steps),
            "ai_calls": len(self.ai_calls),
            "costs": self.costs,
            "steps": self.steps,
            "summary": self.last_line(),
        }

    def print_summary(self):
        """Print human-readable summary."""
        print(f"\n{'='*60}")
        print(f"Run: {self.run_id}")
        print(f"{'='*60}")
        print(f"Steps: {len(self.steps)}")
        print(f"AI Calls: {len(self.ai_calls)}")
        print(f"Total Cost: ${self.costs['total']:.4f}")
        print(f"  - Vision: ${self.costs['vision']:.4f}")
        print(f"  - Text:   ${self.costs['text']:.4f}")

        if self.lines:
            print(f"\nWorkflow:")
            for line in self.lines:
                print(f"  {line}")
