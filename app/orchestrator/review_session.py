from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from app.agents.analysis_agent import ArchitectureAnalysisAgent
from app.agents.image_intake import ImageIntake, IncomingFile, IntakeSource
from app.agents.refinement_agent import RefinementAgent
from app.domain.review_models import (
    LOADING_PHASES,
    CompleteState,
    ErrorState,
    IdleState,
    LoadingPhase,
    ScanningState,
    SelectedImage,
    UIState,
)

ProgressCallback = Callable[[str, str, dict], Awaitable[None]]

logger = logging.getLogger(__name__)


class ScanInProgressError(RuntimeError):
    pass


class RefinementInProgressError(RuntimeError):
    pass


class ReviewSession:
    """
    Presentation state for one browser session.

    Idle -> Scanning on image intake, Scanning -> Complete | Error when the
    analysis returns, Complete -> Complete on refinement, any -> Idle on reset.
    Results that land after a reset are dropped.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        analyzer: Optional[ArchitectureAnalysisAgent] = None,
        refiner: Optional[RefinementAgent] = None,
        intake: Optional[ImageIntake] = None,
        phases: Sequence[LoadingPhase] = LOADING_PHASES,
    ) -> None:
        self.session_id = session_id or str(uuid.uuid4())
        self._analyzer = analyzer or ArchitectureAnalysisAgent()
        self._refiner = refiner or RefinementAgent()
        self._intake = intake or ImageIntake()
        self._phases = list(phases)

        self._state: UIState = IdleState()
        # ScanningState whose analysis is in flight; a reset starts a fresh one
        self._scan_state: Optional[ScanningState] = None

    # ==============================================================
    # READ ACCESS
    # ==============================================================

    @property
    def state(self) -> UIState:
        return self._state

    @property
    def result_markdown(self) -> str:
        return self._state.markdown if isinstance(self._state, CompleteState) else ""

    @property
    def selected_image(self) -> Optional[SelectedImage]:
        if isinstance(self._state, (ScanningState, CompleteState)):
            return self._state.image
        return None

    @property
    def is_refining(self) -> bool:
        return isinstance(self._state, CompleteState) and self._state.is_refining

    def snapshot(self) -> Dict[str, Any]:
        image = self.selected_image
        return {
            "session_id": self.session_id,
            "status": self._state.status.value,
            "result": self.result_markdown,
            "has_image": image is not None,
            "filename": image.filename if image else None,
            "is_refining": self.is_refining,
            "error": self._state.message if isinstance(self._state, ErrorState) else None,
        }

    # ==============================================================
    # TRANSITIONS
    # ==============================================================

    def select_image(
        self,
        files: Sequence[IncomingFile],
        source: IntakeSource = IntakeSource.PICK,
    ) -> bool:
        if not isinstance(self._state, IdleState):
            logger.info(
                "[%s] Image ignored: session is %s",
                self.session_id,
                self._state.status.value,
            )
            return False

        image = self._intake.accept(files, source, self.session_id)
        if image is None:
            return False

        self._state = ScanningState(image=image)
        logger.info("[%s] idle -> scanning", self.session_id)
        return True

    async def scan(self, progress_cb: Optional[ProgressCallback] = None) -> UIState:
        state = self._state
        if not isinstance(state, ScanningState):
            raise RuntimeError(f"Cannot scan from state {state.status.value}")
        if self._scan_state is state:
            raise ScanInProgressError("An analysis is already running for this session")

        self._scan_state = state
        ticker = asyncio.create_task(self._tick_phases(progress_cb)) if progress_cb else None

        try:
            outcome = await self._analyzer.run(state.image, self.session_id)
            next_state: UIState = CompleteState(image=state.image, markdown=outcome.markdown)
            logger.info(
                "[%s] scanning -> complete (source=%s)",
                self.session_id,
                outcome.source.value,
            )
        except Exception as e:
            logger.exception("[%s] scanning -> error", self.session_id)
            next_state = ErrorState(message=str(e) or e.__class__.__name__)
        finally:
            if self._scan_state is state:
                self._scan_state = None
            if ticker is not None:
                ticker.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await ticker

        if self._state is not state:
            logger.info("[%s] Discarding analysis result after reset", self.session_id)
            return self._state

        self._state = next_state
        return self._state

    async def refine(self, feedback: str) -> bool:
        """
        Returns False when there is nothing to refine (no image / not complete).
        Raises ValueError on blank feedback and RefinementInProgressError when
        another refinement is in flight.
        """
        state = self._state
        if not isinstance(state, CompleteState) or not state.image.data:
            logger.info("[%s] Refinement ignored: no completed analysis", self.session_id)
            return False
        if state.is_refining:
            raise RefinementInProgressError("A refinement is already in progress")
        if not feedback or not feedback.strip():
            raise ValueError("Feedback must not be empty")

        refining = replace(state, is_refining=True)
        self._state = refining

        markdown = state.markdown
        try:
            outcome = await self._refiner.run(state.image, state.markdown, feedback, self.session_id)
            markdown = outcome.markdown
            logger.info(
                "[%s] Refinement finished (source=%s)",
                self.session_id,
                outcome.source.value,
            )
        except Exception:
            logger.exception("[%s] Refinement error", self.session_id)
        finally:
            if self._state is refining:
                self._state = replace(refining, markdown=markdown, is_refining=False)
            else:
                logger.info("[%s] Discarding refinement result after reset", self.session_id)

        return True

    def reset(self) -> UIState:
        previous = self._state.status.value
        self._state = IdleState()
        logger.info("[%s] %s -> idle (reset)", self.session_id, previous)
        return self._state

    # ==============================================================
    # INTERNAL HELPERS
    # ==============================================================

    async def _tick_phases(self, progress_cb: ProgressCallback) -> None:
        total = len(self._phases)
        for idx, phase in enumerate(self._phases):
            await progress_cb(
                "scanning",
                "in_progress",
                {"phase": phase.text, "index": idx, "total": total},
            )
            if idx < total - 1:
                await asyncio.sleep(phase.duration_ms / 1000)
