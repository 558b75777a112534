from typing import List, Optional
from pydantic import BaseModel


class SessionStateDTO(BaseModel):
    session_id: str
    status: str                 # idle | scanning | complete | error
    result: str
    has_image: bool
    filename: Optional[str] = None
    is_refining: bool
    error: Optional[str] = None


class RenderedReportDTO(BaseModel):
    html: str
    diagrams: List[str]
    stability_score: Optional[int] = None
    summary: Optional[str] = None
