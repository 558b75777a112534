# -*- coding: utf-8 -*-
"""Shared pytest fixtures."""

from __future__ import annotations

import base64
from typing import List, Optional

import pytest

from app.agents.analysis_agent import ArchitectureAnalysisAgent
from app.agents.image_intake import IncomingFile
from app.agents.refinement_agent import RefinementAgent
from app.config.settings import Settings
from app.domain.review_models import SelectedImage
from app.orchestrator.review_session import ReviewSession


PNG_1X1_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/x8AAwMCAO7+fJ8AAAAASUVORK5CYII="
)


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeGenerationClient:
    """Stands in for the Azure OpenAI client; returns `text` or raises `error`."""

    def __init__(self, text: str = "", error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.calls: list = []

    async def generate(self, system_prompt, image, user_text, temperature):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "image": image,
                "user_text": user_text,
                "temperature": temperature,
            }
        )
        if self.error is not None:
            raise self.error
        return self.text

    def factory(self, settings: Settings) -> "FakeGenerationClient":
        return self


def demo_settings() -> Settings:
    return Settings(AZURE_OPENAI_API_KEY=None, _env_file=None)


def live_settings() -> Settings:
    return Settings(
        AZURE_OPENAI_API_KEY="test-key",
        AZURE_OPENAI_ENDPOINT="https://example.openai.azure.com",
        _env_file=None,
    )


@pytest.fixture
def png_image() -> SelectedImage:
    return SelectedImage(filename="diagram.png", content_type="image/png", data=PNG_1X1_BYTES)


@pytest.fixture
def png_file() -> IncomingFile:
    return IncomingFile(filename="diagram.png", content_type="image/png", data=PNG_1X1_BYTES)


@pytest.fixture
def pdf_file() -> IncomingFile:
    return IncomingFile(filename="spec.pdf", content_type="application/pdf", data=b"%PDF-1.7")


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def demo_session(sleep: RecordingSleep) -> ReviewSession:
    return ReviewSession(
        session_id="test",
        analyzer=ArchitectureAnalysisAgent(sleep=sleep, settings_loader=demo_settings),
        refiner=RefinementAgent(sleep=sleep, settings_loader=demo_settings),
        phases=[],
    )
