from pydantic import BaseModel, Field

from app.agents.image_intake import IntakeSource


class RefineRequest(BaseModel):
    """Follow-up context typed by the user under the report."""
    feedback: str = Field(..., description="Free-text correction or extra context.")


class Base64ScanRequest(BaseModel):
    """Alternative to the multipart upload for clients that already hold a data URL."""
    image_data_url: str = Field(
        ...,
        description="data:image/<type>;base64,... or a raw base64 string (assumed PNG)."
    )
    filename: str = "diagram"
    source: IntakeSource = IntakeSource.PICK
