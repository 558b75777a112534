from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from openai import AzureOpenAI
from starlette.concurrency import run_in_threadpool

from app.config.settings import Settings
from app.domain.review_models import SelectedImage

logger = logging.getLogger(__name__)


class EmptyGenerationError(RuntimeError):
    """The model answered without any text."""


@dataclass(frozen=True)
class EncodedImage:
    mime_type: str
    base64_data: str         # no data-URI prefix

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_data}"


def strip_data_url_prefix(value: str) -> str:
    """Return the base64 part of `data:<mime>;base64,<payload>` (or the value unchanged)."""
    if value.startswith("data:"):
        comma_idx = value.find(",")
        if comma_idx != -1:
            return value[comma_idx + 1:]
    return value


async def encode_image(image: SelectedImage) -> EncodedImage:
    def _encode() -> str:
        return strip_data_url_prefix(base64.b64encode(image.data).decode("ascii"))

    payload = await run_in_threadpool(_encode)
    return EncodedImage(mime_type=image.content_type, base64_data=payload)


class GenerationClient(Protocol):
    async def generate(
        self,
        system_prompt: str,
        image: EncodedImage,
        user_text: str,
        temperature: float,
    ) -> str:
        ...


class AzureOpenAIGenerationClient:
    """
    AzureOpenAIGenerationClient
    ---------------------------
    - One multimodal chat completion per call
    - No retry; SDK default timeouts apply
    - Raises EmptyGenerationError on an empty answer
    """

    def __init__(self, settings: Settings, client: Optional[AzureOpenAI] = None) -> None:
        self._deployment = settings.AZURE_OPENAI_CHAT_DEPLOYMENT_NAME
        self._client = client or AzureOpenAI(
            api_key=settings.AZURE_OPENAI_API_KEY,
            api_version=settings.AZURE_OPENAI_API_VERSION,
            azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
        )

    async def generate(
        self,
        system_prompt: str,
        image: EncodedImage,
        user_text: str,
        temperature: float,
    ) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {
                "role": "user",
                "content": [
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": image.to_data_url(),
                            "detail": "high",
                        },
                    },
                    {"type": "text", "text": user_text},
                ],
            },
        ]

        logger.debug(
            "Generation request: deployment=%s prompt_len=%d image_mime=%s",
            self._deployment,
            len(user_text),
            image.mime_type,
        )

        # The SDK client is synchronous; keep the event loop free.
        response = await run_in_threadpool(
            self._client.chat.completions.create,
            model=self._deployment,
            messages=messages,
            temperature=temperature,
        )

        text = response.choices[0].message.content if response.choices else None
        if not text or not text.strip():
            raise EmptyGenerationError("Empty response from model")
        return text
