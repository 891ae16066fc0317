"""
3-Stage Research Pipeline.

1. SOURCES: find official PDF documents, then verify every link
2. REPORT: draft an equity analyst report from the verified sources
3. MEMO: turn the report into an investment memo

Stages run strictly in order. A failed stage ends the run; a revoked
credential resets to idle and asks the caller to re-authorize.
"""

from __future__ import annotations

import asyncio
from typing import Callable

from erpro.exceptions import (
    AuthorizationRevokedError,
    GenerationError,
    HistoryStoreError,
    RunInProgressError,
)
from erpro.llm.stages import GenerationStage
from erpro.logging import get_logger, log_context
from erpro.types import (
    Artifact,
    HistoryEntry,
    ResearchStep,
    RunState,
    RunStateSnapshot,
    StageKey,
)
from erpro.verification.links import LinkVerifier
from erpro.workspace.history import RunHistoryStore

logger = get_logger(__name__)

DEFAULT_ERROR_MESSAGE = "An error occurred during research."

StateCallback = Callable[[RunStateSnapshot], None]


class PipelineOrchestrator:
    """Runs sources -> report -> memo for one subject at a time.

    Observers registered with ``subscribe`` receive a read-only snapshot
    after every transition. The live RunState never leaves this class.
    """

    def __init__(
        self,
        stages: GenerationStage,
        verifier: LinkVerifier,
        history_store: RunHistoryStore,
        url_suffix: str = ".pdf",
        on_update: StateCallback | None = None,
        on_reauthorize: Callable[[], None] | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            stages: Generation collaborator for all three stages.
            verifier: Link verifier applied to the sources output.
            history_store: Store updated after each completed run.
            url_suffix: Suffix of links to verify.
            on_update: Optional observer for state snapshots.
            on_reauthorize: Called when the credential has been revoked.
        """
        self.stages = stages
        self.verifier = verifier
        self.history_store = history_store
        self.url_suffix = url_suffix
        self.on_reauthorize = on_reauthorize

        self._state = RunState()
        self._observers: list[StateCallback] = []
        if on_update is not None:
            self._observers.append(on_update)

        self._history = history_store.load()

    @property
    def state(self) -> RunStateSnapshot:
        """Read-only snapshot of the current run state."""
        return self._state.snapshot()

    @property
    def history(self) -> list[HistoryEntry]:
        """Recent completed runs, most recent first."""
        return list(self._history)

    def subscribe(self, callback: StateCallback) -> None:
        """Register an observer for state snapshots."""
        self._observers.append(callback)

    def _publish(self) -> None:
        snapshot = self._state.snapshot()
        for callback in self._observers:
            try:
                callback(snapshot)
            except Exception as e:
                # Observer failures never change the run outcome
                logger.error("State observer failed", error=str(e), step=snapshot.step.value)

    async def run(self, subject_name: str) -> RunStateSnapshot:
        """Run the full pipeline for a subject.

        Args:
            subject_name: Company to research.

        Returns:
            Terminal snapshot: COMPLETED, FAILED, or IDLE after a revoked
            credential.

        Raises:
            ValueError: If the subject name is empty.
            RunInProgressError: If a run is already in progress.
        """
        subject = subject_name.strip()
        if not subject:
            raise ValueError("Subject name must not be empty")
        if self._state.is_processing:
            raise RunInProgressError(
                "A run is already in progress",
                {"subject": self._state.subject_name},
            )

        self._state = RunState.create(subject)
        self._publish()

        with log_context(run_id=self._state.run_id):
            logger.info("Starting research run", subject=subject)
            try:
                await self._run_stages(subject)
            except AuthorizationRevokedError:
                logger.warning("Credential revoked, re-authorization required")
                self._to_idle()
                if self.on_reauthorize is not None:
                    self.on_reauthorize()
            except GenerationError as e:
                logger.error("Research run failed", error=str(e))
                self._fail(e.message or DEFAULT_ERROR_MESSAGE)
            except asyncio.CancelledError:
                logger.warning("Research run cancelled")
                self._to_idle()
                raise
            finally:
                if self._state.is_processing:
                    logger.error("Research run aborted", step=self._state.step.value)
                    self._fail(DEFAULT_ERROR_MESSAGE)

        return self.state

    async def _run_stages(self, subject: str) -> None:
        sources = await self._generate(StageKey.SOURCES, subject)
        with log_context(stage=StageKey.SOURCES.value):
            annotated = await self.verifier.verify(sources, self.url_suffix)
        self._advance(Artifact.create(StageKey.SOURCES, subject, annotated), ResearchStep.DRAFTING_REPORT)

        report = await self._generate(StageKey.REPORT, subject, annotated)
        self._advance(Artifact.create(StageKey.REPORT, subject, report), ResearchStep.DRAFTING_MEMO)

        memo = await self._generate(StageKey.MEMO, subject, report)
        self._complete(Artifact.create(StageKey.MEMO, subject, memo))

    async def _generate(self, stage: StageKey, subject: str, context: str | None = None) -> str:
        """Call one stage, normalising any failure to GenerationError."""
        with log_context(stage=stage.value):
            logger.info("Stage started")
            try:
                text = await self.stages.generate(stage, subject, context)
            except GenerationError:
                raise
            except Exception as e:
                raise GenerationError(str(e) or DEFAULT_ERROR_MESSAGE, {"stage": stage.value}) from e
            logger.info("Stage complete", chars=len(text))
            return text

    def _advance(self, artifact: Artifact, next_step: ResearchStep) -> None:
        self._state.artifacts = [*self._state.artifacts, artifact]
        self._state.step = next_step
        self._publish()

    def _complete(self, artifact: Artifact) -> None:
        self._state.artifacts = [*self._state.artifacts, artifact]
        self._state.step = ResearchStep.COMPLETED
        self._state.is_processing = False
        self._publish()

        try:
            self._history = self.history_store.save(self._state.subject_name, self._state.artifacts)
        except HistoryStoreError as e:
            # The run itself succeeded; only persistence is lost
            logger.error("Failed to save run history", error=str(e))

        logger.info("Research run complete", artifacts=len(self._state.artifacts))

    def _fail(self, message: str) -> None:
        self._state.step = ResearchStep.FAILED
        self._state.error = message
        self._state.is_processing = False
        self._publish()

    def _to_idle(self) -> None:
        self._state.step = ResearchStep.IDLE
        self._state.artifacts = []
        self._state.error = None
        self._state.is_processing = False
        self._publish()

    def reset(self) -> None:
        """Return to an empty idle state.

        Raises:
            RunInProgressError: If a run is in progress.
        """
        if self._state.is_processing:
            raise RunInProgressError("Cannot reset while a run is in progress")
        self._state = RunState()
        self._publish()

    def open_history(self, entry: HistoryEntry) -> RunStateSnapshot:
        """Show a stored run as the current, completed state.

        Raises:
            RunInProgressError: If a run is in progress.
        """
        if self._state.is_processing:
            raise RunInProgressError("Cannot open history while a run is in progress")
        self._state = RunState(
            subject_name=entry.subject_name,
            step=ResearchStep.COMPLETED,
            artifacts=list(entry.artifacts),
        )
        self._publish()
        return self.state
