from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from app.domain.review_models import SelectedImage

logger = logging.getLogger(__name__)


class IntakeSource(str, Enum):
    DROP = "drop"
    PICK = "pick"


@dataclass(frozen=True)
class IncomingFile:
    filename: str
    content_type: Optional[str]
    data: bytes


class ImageIntake:
    """
    ImageIntake
    -----------
    - Takes the first file of a drop or picker event
    - Ignores anything whose declared type is not image/*
    - No size or dimension checks
    - NEVER throws
    """

    def accept(
        self,
        files: Sequence[IncomingFile],
        source: IntakeSource = IntakeSource.PICK,
        session_id: Optional[str] = None,
    ) -> Optional[SelectedImage]:
        if not files:
            logger.info("[%s] Intake (%s): no file in payload", session_id, source.value)
            return None

        candidate = files[0]
        content_type = (candidate.content_type or "").strip().lower()

        if not content_type.startswith("image/"):
            logger.info(
                "[%s] Intake (%s): ignored %r with content type %r",
                session_id,
                source.value,
                candidate.filename,
                candidate.content_type,
            )
            return None

        logger.info(
            "[%s] Intake (%s): accepted %r (%s, %d bytes)",
            session_id,
            source.value,
            candidate.filename,
            content_type,
            len(candidate.data),
        )
        return SelectedImage(
            filename=candidate.filename or "diagram",
            content_type=content_type,
            data=candidate.data,
        )


def parse_data_url(data_url: str) -> Tuple[bytes, str]:
    """
    Convert a data URL or raw base64 string into image bytes.

    Accepts:
    - data:image/png;base64,...
    - raw base64 string (assumes PNG)

    Raises ValueError on any decoding issue.
    """
    if not isinstance(data_url, str):
        raise ValueError("Image payload must be a string")

    if data_url.startswith("data:"):
        header, _, b64_part = data_url.partition(",")

        if ";base64" not in header:
            raise ValueError("Data URL is not base64-encoded")

        content_type = header[len("data:"): header.index(";base64")]
        base64_str = b64_part.strip()
    else:
        content_type = "image/png"
        base64_str = data_url.strip()

    try:
        image_bytes = base64.b64decode(base64_str, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Image payload is not valid base64") from e

    if not image_bytes:
        raise ValueError("Decoded image is empty")

    return image_bytes, content_type
