from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Optional, Tuple

from app.domain.review_models import (
    AnalysisMode,
    AnalysisOutcome,
    AnalysisRequest,
    AnalysisResult,
    FailureKind,
    ResultSource,
)
from app.prompts.demo_responses import MOCK_RESPONSE
from app.prompts.prompt_registry import PromptRegistry

logger = logging.getLogger(__name__)


class RecoveryAction(str, Enum):
    DEMO_MOCK = "demo_mock"
    DEMO_ANNOTATE_PRIOR = "demo_annotate_prior"
    SUBSTITUTE_MOCK = "substitute_mock"
    REVERT_TO_PRIOR = "revert_to_prior"


RECOVERY_POLICY: Dict[Tuple[AnalysisMode, FailureKind], RecoveryAction] = {
    (AnalysisMode.INITIAL, FailureKind.CREDENTIAL_ABSENT): RecoveryAction.DEMO_MOCK,
    (AnalysisMode.INITIAL, FailureKind.TRANSPORT): RecoveryAction.SUBSTITUTE_MOCK,
    (AnalysisMode.INITIAL, FailureKind.EMPTY_RESPONSE): RecoveryAction.SUBSTITUTE_MOCK,
    (AnalysisMode.REFINE, FailureKind.CREDENTIAL_ABSENT): RecoveryAction.DEMO_ANNOTATE_PRIOR,
    (AnalysisMode.REFINE, FailureKind.TRANSPORT): RecoveryAction.REVERT_TO_PRIOR,
    (AnalysisMode.REFINE, FailureKind.EMPTY_RESPONSE): RecoveryAction.REVERT_TO_PRIOR,
}

_SOURCES = {
    RecoveryAction.DEMO_MOCK: ResultSource.DEMO,
    RecoveryAction.DEMO_ANNOTATE_PRIOR: ResultSource.DEMO,
    RecoveryAction.SUBSTITUTE_MOCK: ResultSource.FALLBACK,
    RecoveryAction.REVERT_TO_PRIOR: ResultSource.REVERTED,
}


def demo_refinement_note(feedback: str) -> str:
    template = PromptRegistry.get("architecture_refinement", "v1")["messages"]["demo_note_template"]
    return template.format(feedback=feedback)


def recover(
    request: AnalysisRequest,
    failure: FailureKind,
    error: Optional[str] = None,
) -> AnalysisOutcome:
    """
    Map a failure to the result shown to the user.
    Never raises for a known (mode, failure) pair.
    """
    action = RECOVERY_POLICY[(request.mode, failure)]

    if action in (RecoveryAction.DEMO_MOCK, RecoveryAction.SUBSTITUTE_MOCK):
        markdown = MOCK_RESPONSE
    elif action is RecoveryAction.DEMO_ANNOTATE_PRIOR:
        markdown = (request.prior_result or "") + "\n\n" + demo_refinement_note(request.feedback or "")
    else:
        markdown = request.prior_result or ""

    logger.info(
        "Recovery applied: mode=%s failure=%s action=%s",
        request.mode.value,
        failure.value,
        action.value,
    )

    return AnalysisOutcome(
        result=AnalysisResult(markdown=markdown),
        source=_SOURCES[action],
        failure=failure,
        error=error,
    )
