"""
Pipeline Runner - Listing Workflow Orchestrator
================================================
Runs the seven stages for one photo, strictly in order:

1. Vision analysis       (hard)
2. Price validation      (soft → AI suggested price)
3. Catalog eligibility   (soft → platform unavailable)
4. Platform ranking      (soft → caller's default platforms)
5. Price range           (hard)
6. Listing copy          (hard)
7. Publishing            (only with auto_publish)

CRITICAL: run() always returns a WorkflowResult. Stage errors are caught
and classified here and never bubble past this module. Retries belong to
the collaborators' clients, never to the orchestrator.
"""

import asyncio
import time
import uuid
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from config import Cfg
from core.ai_client import AIClient, RunSpend, start_run_spend
from core.errors import (
    StageFailure,
    ValidationError,
    HardStageFailure,
    SoftStageFailure,
    classify_error,
    error_payload,
)
from core.text_signals import TextSignalExtractor
from core.validation import validate_workflow_input
from extraction.ai_extractor import VisionAnalyzer
from extraction.content_optimizer import ContentOptimizer
from logging_utils.listing_logger import ListingProcessingLog
from logging_utils.run_logger import RunLogger
from marketplaces.catalog import CatalogLookup
from marketplaces.comparables import ComparablePriceLookup
from marketplaces.publisher import PlatformPublisher, build_stub_publishers
from models.platform import PLATFORM_NAMES, Platform
from models.workflow import SLOT_PUBLISHING, WorkflowInput, WorkflowPhase, WorkflowResult, WorkflowState
from pipeline.decision_gates import (
    ABORT,
    STAGE_NUMBER,
    STAGE_ORDER,
    STAGE_PUBLISHING,
    Degraded,
    Fatal,
    Ok,
    StageOutcome,
    apply_outcome,
    enter_stage,
    is_hard,
    next_action_for,
)
from pipeline.stages import STAGE_PLACEHOLDERS, STAGE_RUNNERS, PipelineDeps
from runtime_mode import ModeConfig, get_mode_config
from utils_logging import log_banner, log_error, log_info, log_warning


def _failure_reason(exc: BaseException, stage_timeout: Optional[float]) -> str:
    if isinstance(exc, StageFailure):
        return exc.reason
    kind = classify_error(exc)
    if kind == "timeout" and stage_timeout and not str(exc):
        return f"timeout: no answer within {stage_timeout:g}s"
    return f"{kind}: {exc}" if str(exc) else kind


class WorkflowOrchestrator:
    """Sequences the listing stages. One instance serves many concurrent runs."""

    def __init__(self, cfg: Cfg, deps: PipelineDeps):
        self.cfg = cfg
        self.deps = deps
        self.stage_timeout = cfg.workflow.stage_timeout_sec or None

    async def _invoke(self, stage: str, inp: WorkflowInput, state: WorkflowState) -> Ok:
        call = STAGE_RUNNERS[stage](inp, state, self.deps, self.cfg)
        if self.stage_timeout:
            return await asyncio.wait_for(call, timeout=self.stage_timeout)
        return await call

    def _failure_outcome(self, stage: str, inp: WorkflowInput, state: WorkflowState, exc: Exception) -> StageOutcome:
        reason = _failure_reason(exc, self.stage_timeout)

        if is_hard(stage) or isinstance(exc, HardStageFailure):
            failure = exc if isinstance(exc, HardStageFailure) else HardStageFailure(stage, reason, cause=exc)
            return Fatal(reason=reason, failure=failure)

        placeholder = STAGE_PLACEHOLDERS[stage](inp, state, self.cfg, reason)
        return Degraded(placeholder=placeholder, reason=reason,
                        failure=SoftStageFailure(stage, reason, cause=exc))

    async def _run_stage(self, stage: str, inp: WorkflowInput, state: WorkflowState,
                         log: ListingProcessingLog, spend: RunSpend) -> Tuple[WorkflowState, str, StageOutcome]:
        start = time.monotonic()
        calls_before = len(spend.calls)
        try:
            outcome: StageOutcome = await self._invoke(stage, inp, state)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            outcome = self._failure_outcome(stage, inp, state, e)
        duration_ms = int((time.monotonic() - start) * 1000)

        state, decision = apply_outcome(state, stage, outcome, duration_ms)
        number = STAGE_NUMBER[stage]

        if isinstance(outcome, Ok):
            log.log_step(stage, success=True, duration_ms=duration_ms, summary=outcome.summary)
            log.append_text(f"Step {number} Complete: {outcome.summary}")
        elif isinstance(outcome, Degraded):
            log_warning(f"Step {number} ({stage}) degraded: {outcome.reason}")
            log.log_step(stage, success=False, degraded=True, duration_ms=duration_ms, reason=outcome.reason)
            log.append_text(f"Step {number} Warning: {outcome.reason}")
        else:
            log_error(f"Step {number} ({stage}) failed: {outcome.reason}")
            log.log_step(stage, success=False, duration_ms=duration_ms, reason=outcome.reason)
            log.append_text(f"Workflow failed: {stage}: {outcome.reason}")

        for call in spend.calls[calls_before:]:
            log.log_ai_call(stage, call["model"], call["cost_usd"], call["call_type"])

        return state, decision, outcome

    def _result(
        self,
        state: WorkflowState,
        log: ListingProcessingLog,
        auto_publish: bool,
        error: Optional[Dict] = None,
    ) -> WorkflowResult:
        failed = state.phase == WorkflowPhase.ERROR
        return WorkflowResult(
            phase=state.phase,
            success=not failed,
            summary=log.last_line() or "",
            needs_user_input=not failed and not auto_publish,
            next_action=next_action_for(state.phase, auto_publish),
            workflow_text=log.workflow_text,
            steps=list(state.steps),
            state=state,
            error=error,
        )

    async def run_with_log(self, inp: WorkflowInput, run_id: Optional[str] = None) -> Tuple[WorkflowResult, ListingProcessingLog]:
        run_id = run_id or f"run_{uuid.uuid4().hex[:12]}"
        log = ListingProcessingLog(run_id)
        spend = start_run_spend()
        state = WorkflowState(target_platforms=tuple(inp.target_platforms))

        # Input problems surface before any external call
        try:
            validate_workflow_input(inp)
        except ValidationError as e:
            log_error(f"Invalid workflow input: {e}")
            log.log_step("input_validation", success=False, reason=str(e))
            log.append_text(f"Workflow failed: input_validation: {e}")
            state = WorkflowState(phase=WorkflowPhase.ERROR, target_platforms=state.target_platforms,
                                  errors=(f"input_validation: {e}",))
            return self._result(state, log, inp.auto_publish, error_payload(e)), log

        log_info(f"🚀 Workflow {run_id} started ({inp.language}, auto_publish={inp.auto_publish})")

        for stage in STAGE_ORDER:
            if stage == STAGE_PUBLISHING and not inp.auto_publish:
                log.log_skip("auto_publish disabled")
                break

            previous = state.phase
            state = enter_stage(state, stage)
            if state.phase != previous:
                log.log_escalation(previous.value, state.phase.value, stage)

            state, decision, outcome = await self._run_stage(stage, inp, state, log, spend)
            if decision == ABORT:
                failure = outcome.failure or HardStageFailure(stage, outcome.reason)
                return self._result(state, log, inp.auto_publish, error_payload(failure)), log

        # === COMPLETION ===
        if inp.auto_publish:
            state = replace(state, phase=WorkflowPhase.COMPLETED)
            published = state.result(SLOT_PUBLISHING).published
            names = ", ".join(PLATFORM_NAMES[p] for p in published)
            log.append_text(f"Workflow Complete: Published to {names}")
        else:
            log.append_text("Workflow Complete: Ready for user confirmation before publishing")

        log_info(f"✅ Workflow {run_id}: {log.last_line()}")
        return self._result(state, log, inp.auto_publish), log

    async def run(self, inp: WorkflowInput, run_id: Optional[str] = None) -> WorkflowResult:
        result, _ = await self.run_with_log(inp, run_id)
        return result

    async def run_batch(self, inputs: List[WorkflowInput], batch_id: Optional[str] = None) -> Tuple[List[WorkflowResult], RunLogger]:
        """
        Runs independent listings concurrently. Each run owns its own state.

        Returns:
            (results in input order, run_logger)
        """
        batch_id = batch_id or f"batch_{uuid.uuid4().hex[:8]}"
        run_logger = RunLogger(batch_id, total_listings=len(inputs))

        log_banner(f"🚀 PROCESSING {len(inputs)} LISTINGS")

        outputs = await asyncio.gather(*[
            self.run_with_log(inp, run_id=f"{batch_id}_{i}") for i, inp in enumerate(inputs, 1)
        ])

        results = []
        for result, log in outputs:
            run_logger.record_result(result, log)
            results.append(result)

        run_logger.finalize_run()
        return results, run_logger


def build_orchestrator(
    cfg: Cfg,
    mode: Optional[ModeConfig] = None,
    ai_client: Optional[AIClient] = None,
    comparables: Optional[ComparablePriceLookup] = None,
    catalog: Optional[CatalogLookup] = None,
    publishers: Optional[Dict[Platform, PlatformPublisher]] = None,
    extractor: Optional[TextSignalExtractor] = None,
) -> WorkflowOrchestrator:
    """Wires the orchestrator with the AI client from the environment and stub marketplaces."""
    mode = mode or get_mode_config(cfg.runtime.mode)
    if ai_client is None:
        ai_client = AIClient.from_env(cfg.ai, mode)
    if ai_client is None and mode.use_live_ai:
        log_warning("PROD mode without AI keys: vision analysis will fail")

    deps = PipelineDeps(
        vision=VisionAnalyzer(ai_client, max_tokens=cfg.ai.max_tokens_vision),
        content=ContentOptimizer(ai_client, max_tokens=cfg.ai.max_tokens_text),
        publishers=publishers if publishers is not None else build_stub_publishers(cfg.publishing.base_urls),
        extractor=extractor,
    )
    if comparables is not None:
        deps.comparables = comparables
    if catalog is not None:
        deps.catalog = catalog

    return WorkflowOrchestrator(cfg, deps)
