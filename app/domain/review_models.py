from dataclasses import dataclass, field
from typing import List, Optional, Union
from enum import Enum


class AnalysisMode(str, Enum):
    INITIAL = "initial"
    REFINE = "refine"


class ResultSource(str, Enum):
    LIVE = "live"            # model answered
    DEMO = "demo"            # no credential configured
    FALLBACK = "fallback"    # mock substituted after a failure
    REVERTED = "reverted"    # prior result kept after a failure


class FailureKind(str, Enum):
    CREDENTIAL_ABSENT = "credential_absent"
    TRANSPORT = "transport"
    EMPTY_RESPONSE = "empty_response"


class UIStatus(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class SelectedImage:
    filename: str
    content_type: str        # e.g. "image/png"
    data: bytes


@dataclass(frozen=True)
class AnalysisRequest:
    """Built fresh for every model call, never stored."""
    image_bytes: bytes
    mime_type: str
    mode: AnalysisMode
    prior_result: Optional[str] = None
    feedback: Optional[str] = None

    @classmethod
    def initial(cls, image: SelectedImage) -> "AnalysisRequest":
        return cls(image_bytes=image.data, mime_type=image.content_type, mode=AnalysisMode.INITIAL)

    @classmethod
    def refinement(cls, image: SelectedImage, prior_result: str, feedback: str) -> "AnalysisRequest":
        return cls(
            image_bytes=image.data,
            mime_type=image.content_type,
            mode=AnalysisMode.REFINE,
            prior_result=prior_result,
            feedback=feedback,
        )


@dataclass(frozen=True)
class AnalysisResult:
    markdown: str


@dataclass(frozen=True)
class AnalysisOutcome:
    """
    Result type returned at the orchestration boundary.
    `failure` is set whenever the result did not come from the model.
    """
    result: AnalysisResult
    source: ResultSource
    failure: Optional[FailureKind] = None
    error: Optional[str] = None

    @property
    def markdown(self) -> str:
        return self.result.markdown


# ---------------------------------------------------------------------------
# UI state (tagged union)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IdleState:
    status: UIStatus = field(default=UIStatus.IDLE, init=False)


@dataclass(frozen=True)
class ScanningState:
    image: SelectedImage
    status: UIStatus = field(default=UIStatus.SCANNING, init=False)


@dataclass(frozen=True)
class CompleteState:
    image: SelectedImage
    markdown: str
    is_refining: bool = False
    status: UIStatus = field(default=UIStatus.COMPLETE, init=False)


@dataclass(frozen=True)
class ErrorState:
    message: str = ""
    status: UIStatus = field(default=UIStatus.ERROR, init=False)


UIState = Union[IdleState, ScanningState, CompleteState, ErrorState]


# ---------------------------------------------------------------------------
# Scanning indicator
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LoadingPhase:
    text: str
    duration_ms: int


LOADING_PHASES: List[LoadingPhase] = [
    LoadingPhase("Identifying Components...", 1500),
    LoadingPhase("Mapping Data Flow...", 1500),
    LoadingPhase("Simulating Traffic Spike...", 2000),
    LoadingPhase("Checking for Single Points of Failure...", 2000),
    LoadingPhase("Analyzing Security Posture...", 1500),
    LoadingPhase("Drafting Report...", 1500),
]


@dataclass
class RenderedReport:
    html: str
    diagrams: List[str] = field(default_factory=list)
    stability_score: Optional[int] = None
    summary: Optional[str] = None
