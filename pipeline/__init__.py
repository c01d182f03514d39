"""
Pipeline Package - Listing Workflow Orchestration
==================================================
Stage outcomes, stage adapters and the workflow orchestrator.
"""

from pipeline.decision_gates import (
    Degraded,
    Fatal,
    Ok,
    STAGE_ORDER,
    STAGE_POLICY,
    apply_outcome,
)
from pipeline.pipeline_runner import WorkflowOrchestrator, build_orchestrator
from pipeline.stages import PipelineDeps

__all__ = [
    'Degraded',
    'Fatal',
    'Ok',
    'STAGE_ORDER',
    'STAGE_POLICY',
    'apply_outcome',
    'WorkflowOrchestrator',
    'build_orchestrator',
    'PipelineDeps',
]
