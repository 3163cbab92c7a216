"""
Intake Orchestrator

Drives the fixed five-stage sequence for one intake session:

    pending → classified → matter_done → contact_done → scored → decided
                                              └──→ failed (missing contact)

Model and parse failures stay inside a stage: they are retried up to the
stage's attempt budget and then replaced by the stage's documented default,
marking the result degraded. Only ContactInfoMissing and ConfigurationError
reach the caller.
"""

import logging
from typing import List, Optional, Tuple
from uuid import uuid4

from legal_intake.config import IntakeConfig
from legal_intake.errors import ModelUnavailable, ParseFailure, ValidationFailure
from legal_intake.intake.lifecycle import FAIL_TRIGGER, IntakeLifecycle
from legal_intake.intake.models import (
    FailureKind,
    IntakeResult,
    IntakeSession,
    IntakeState,
    StageFailure,
    StageOutcome,
    StageStatus,
)
from legal_intake.intake.parser import StageParser
from legal_intake.intake.redaction import redact
from legal_intake.intake.stages import IntakeStage, default_stages
from legal_intake.llm.base import LLMProvider

logger = logging.getLogger(__name__)


class IntakeOrchestrator:
    """
    Legal intake pipeline

    The orchestrator holds no per-session state; one instance (and its
    provider) can serve any number of concurrent sessions.
    """

    def __init__(
        self,
        llm_provider: LLMProvider,
        config: Optional[IntakeConfig] = None,
        parser: Optional[StageParser] = None,
    ):
        self.llm = llm_provider
        self.config = config or IntakeConfig()
        self.stages: Tuple[IntakeStage, ...] = default_stages(parser)

    async def run_intake(
        self,
        message: str,
        team_id: str,
        session_id: Optional[str] = None,
    ) -> IntakeResult:
        """
        Run the full intake pipeline on an already security-filtered message.

        Raises:
            ContactInfoMissing: contact extraction found no name or channel
            ConfigurationError: deployment misconfiguration
        """
        session = IntakeSession(
            session_id=session_id or str(uuid4()),
            team_id=team_id,
            message=message,
        )
        lifecycle = IntakeLifecycle()
        state = IntakeState()
        failures: List[StageFailure] = []
        outcomes: List[StageOutcome] = []
        adjustments: List[str] = []

        logger.info(f"[{session.session_id}] Intake started for team {team_id}")

        for stage in self.stages:
            outcome, notes = await self._run_stage(stage, session, state, failures)
            outcomes.append(outcome)
            adjustments.extend(notes)
            state = stage.advance(state, outcome.record)
            lifecycle.fire(stage.trigger_for(outcome))

            try:
                stage.validate(outcome.record, session)
            except ValidationFailure as e:
                lifecycle.fire(FAIL_TRIGGER)
                e.state = lifecycle.state
                e.stage_failures = tuple(failures)
                logger.warning(
                    f"[{session.session_id}] Intake {lifecycle.state} at {stage.name.value}: {e.message}"
                )
                raise

        degraded = any(o.degraded for o in outcomes)
        result = IntakeResult(
            session=session,
            classification=state.classification,
            matter=state.matter,
            contact=state.contact,
            quality=state.quality,
            action=state.action,
            degraded=degraded,
            stage_failures=tuple(failures),
            outcomes=tuple(outcomes),
            adjustments=tuple(adjustments),
            state=lifecycle.state,
        )

        logger.info(
            f"[{session.session_id}] Intake {lifecycle.state}: "
            f"{result.classification.workflow.value} → {result.action.action.value} "
            f"(priority {result.action.priority.value}, degraded={degraded})"
        )
        return result

    async def _run_stage(
        self,
        stage: IntakeStage,
        session: IntakeSession,
        state: IntakeState,
        failures: List[StageFailure],
    ) -> Tuple[StageOutcome, List[str]]:
        """Run one stage under its retry, threshold and fallback policy."""
        if not stage.should_run(state):
            record = stage.placeholder(session, state)
            logger.info(f"[{session.session_id}] {stage.name.value}: short-circuited")
            return StageOutcome(stage.name, record, StageStatus.SKIPPED, attempts=0), []

        max_attempts = stage.max_attempts(self.config)
        record = None
        rejected = None
        attempts = 0

        for attempt in range(1, max_attempts + 1):
            attempts = attempt
            prompt = stage.build_prompt(session, state)
            try:
                raw = await self.llm.complete(
                    prompt,
                    context={"team_id": session.team_id, "stage": stage.name.value},
                    timeout_seconds=self.config.timeout_seconds,
                )
                candidate = stage.parse(raw)
            except ModelUnavailable as e:
                failures.append(StageFailure(stage.name, FailureKind.MODEL_UNAVAILABLE, e.message, attempt))
                logger.warning(
                    f"[{session.session_id}] {stage.name.value} attempt {attempt}/{max_attempts}: "
                    f"model unavailable ({e.message})"
                )
                continue
            except ParseFailure as e:
                failures.append(StageFailure(stage.name, FailureKind.PARSE_FAILURE, e.message, attempt))
                logger.warning(
                    f"[{session.session_id}] {stage.name.value} attempt {attempt}/{max_attempts}: "
                    f"{e.error_code} ({e.message})"
                )
                continue

            reason = stage.accept(candidate, self.config)
            if reason:
                failures.append(StageFailure(stage.name, FailureKind.LOW_CONFIDENCE, reason, attempt))
                logger.warning(f"[{session.session_id}] {stage.name.value}: {reason}")
                rejected = candidate
                break

            record = candidate
            break

        status = StageStatus.COMPLETED
        if record is None:
            record = stage.fallback(session, state, self.config, rejected)
            status = StageStatus.FALLBACK
            logger.warning(f"[{session.session_id}] {stage.name.value}: using fallback record")

        record, notes = stage.finalize(record, state, self.config)
        for note in notes:
            logger.info(f"[{session.session_id}] {stage.name.value}: {note}")

        logger.debug(
            f"[{session.session_id}] {stage.name.value} {status.value}: "
            f"{redact(record.to_dict())}"
        )
        return StageOutcome(stage.name, record, status, attempts=attempts), notes
