from __future__ import annotations

import logging
import asyncio
import json
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, Response, StreamingResponse

from app.agents.formatting_agent import FormattingAgent
from app.agents.image_intake import IncomingFile, IntakeSource, parse_data_url
from app.models.api_requests import Base64ScanRequest, RefineRequest
from app.models.api_responses import RenderedReportDTO, SessionStateDTO
from app.orchestrator.review_session import (
    RefinementInProgressError,
    ReviewSession,
)
from app.orchestrator.session_registry import SessionRegistry

router = APIRouter(tags=["review"])
logger = logging.getLogger(__name__)

INDEX_HTML = Path(__file__).resolve().parents[1] / "web" / "index.html"

_registry = SessionRegistry()
_formatter = FormattingAgent()


def sse_event(event: str, data: dict) -> str:
    """
    Format an SSE event.
    """
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


# -----------------------------------------------------------
# Dependencies
# -----------------------------------------------------------
def get_session_registry() -> SessionRegistry:
    return _registry


def get_session(
    x_session_id: Optional[str] = Header(None),
    registry: SessionRegistry = Depends(get_session_registry),
) -> ReviewSession:
    return registry.get(x_session_id)


def get_formatter() -> FormattingAgent:
    return _formatter


# -----------------------------------------------------------
# Page + state
# -----------------------------------------------------------
@router.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    return HTMLResponse(INDEX_HTML.read_text(encoding="utf-8"))


@router.get("/session", response_model=SessionStateDTO)
async def get_state(session: ReviewSession = Depends(get_session)):
    return session.snapshot()


@router.post("/reset", response_model=SessionStateDTO)
async def reset(session: ReviewSession = Depends(get_session)):
    session.reset()
    return session.snapshot()


# -----------------------------------------------------------
# Scan (SSE)
# -----------------------------------------------------------
def _scan_stream(request: Request, session: ReviewSession, files: List[IncomingFile], source: IntakeSource):
    """
    Streams loading phases while the analysis runs, then the final state.
    """
    if not session.select_image(files, source):
        async def ignored():
            yield sse_event("ignored", session.snapshot())

        return StreamingResponse(ignored(), media_type="text/event-stream")

    queue: asyncio.Queue[str | None] = asyncio.Queue()

    async def progress_cb(stage: str, status: str, payload: dict):
        event_payload = {
            "stage": stage,
            "status": status,
            "payload": payload,
        }
        await queue.put(sse_event("stage", event_payload))

    async def run_scan():
        try:
            await session.scan(progress_cb=progress_cb)
            await queue.put(sse_event("final", session.snapshot()))
        except Exception as e:
            logger.exception("[%s] Scan stream failed", session.session_id)
            await queue.put(sse_event("error", {"message": str(e)}))
        finally:
            await queue.put(None)

    asyncio.create_task(run_scan())

    async def event_generator():
        try:
            while True:
                if await request.is_disconnected():
                    break
                chunk = await queue.get()
                if chunk is None:
                    break
                yield chunk
        except asyncio.CancelledError:
            pass

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
    )


@router.post("/scan")
async def scan_upload(
    request: Request,
    file: Optional[UploadFile] = File(None),
    source: IntakeSource = Form(IntakeSource.PICK),
    session: ReviewSession = Depends(get_session),
):
    files: List[IncomingFile] = []
    if file is not None:
        files.append(
            IncomingFile(
                filename=file.filename or "diagram",
                content_type=file.content_type,
                data=await file.read(),
            )
        )
    return _scan_stream(request, session, files, source)


@router.post("/scan/base64")
async def scan_base64(
    request: Request,
    body: Base64ScanRequest,
    session: ReviewSession = Depends(get_session),
):
    try:
        data, content_type = parse_data_url(body.image_data_url)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    files = [IncomingFile(filename=body.filename, content_type=content_type, data=data)]
    return _scan_stream(request, session, files, body.source)


# -----------------------------------------------------------
# Refinement
# -----------------------------------------------------------
@router.post("/refine", response_model=SessionStateDTO)
async def refine(body: RefineRequest, session: ReviewSession = Depends(get_session)):
    try:
        await session.refine(body.feedback)
    except RefinementInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.snapshot()


# -----------------------------------------------------------
# Report
# -----------------------------------------------------------
@router.get("/report", response_model=RenderedReportDTO)
async def get_report(
    session: ReviewSession = Depends(get_session),
    formatter: FormattingAgent = Depends(get_formatter),
):
    if not session.result_markdown:
        raise HTTPException(status_code=404, detail="No analysis available")

    rendered = formatter.render(session.result_markdown)
    return RenderedReportDTO(
        html=rendered.html,
        diagrams=rendered.diagrams,
        stability_score=rendered.stability_score,
        summary=rendered.summary,
    )


@router.get("/report/download")
async def download_report(
    session: ReviewSession = Depends(get_session),
    formatter: FormattingAgent = Depends(get_formatter),
):
    if not session.result_markdown:
        raise HTTPException(status_code=404, detail="No analysis available")

    filename, content = formatter.export(session.result_markdown)
    return Response(
        content=content,
        media_type="text/markdown",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
