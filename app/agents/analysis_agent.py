from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from app.agents.fallback_policy import recover
from app.config.settings import Settings, load_settings
from app.domain.review_models import (
    AnalysisOutcome,
    AnalysisRequest,
    AnalysisResult,
    FailureKind,
    ResultSource,
    SelectedImage,
)
from app.prompts.prompt_registry import PromptRegistry
from app.services.generation_client import (
    AzureOpenAIGenerationClient,
    EmptyGenerationError,
    GenerationClient,
    encode_image,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Settings], GenerationClient]
Sleep = Callable[[float], Awaitable[None]]


class ArchitectureAnalysisAgent:
    """
    ArchitectureAnalysisAgent
    -------------------------
    - Demo mode when no credential is configured (canned report after a delay)
    - One model call otherwise, no retry
    - NEVER throws on model failure: the canned report is substituted
    """

    def __init__(
        self,
        client_factory: ClientFactory = AzureOpenAIGenerationClient,
        sleep: Sleep = asyncio.sleep,
        settings_loader: Callable[[], Settings] = load_settings,
    ) -> None:
        self._client_factory = client_factory
        self._sleep = sleep
        self._settings_loader = settings_loader

        prompt = PromptRegistry.get("architecture_analysis", "v1")
        self._system_prompt = PromptRegistry.system_prompt(prompt)
        self._user_text = prompt["messages"]["user"]
        self._temperature = prompt["model"]["temperature"]

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    async def run(self, image: SelectedImage, session_id: Optional[str] = None) -> AnalysisOutcome:
        request = AnalysisRequest.initial(image)
        settings = self._settings_loader()

        if not settings.has_credential:
            logger.warning("[%s] No API credential found. Running in demo mode.", session_id)
            await self._sleep(settings.DEMO_ANALYSIS_DELAY_MS / 1000)
            return recover(request, FailureKind.CREDENTIAL_ABSENT)

        try:
            client = self._client_factory(settings)
            encoded = await encode_image(image)

            text = await client.generate(
                self._system_prompt,
                encoded,
                self._user_text,
                self._temperature,
            )
            if not text:
                raise EmptyGenerationError("Empty response from model")

            logger.info("[%s] Analysis completed. response_len=%d", session_id, len(text))
            return AnalysisOutcome(result=AnalysisResult(markdown=text), source=ResultSource.LIVE)

        except EmptyGenerationError as e:
            logger.warning("[%s] Model returned an empty analysis", session_id)
            return recover(request, FailureKind.EMPTY_RESPONSE, str(e))

        except Exception as e:
            logger.exception("[%s] Analysis call failed", session_id)
            return recover(request, FailureKind.TRANSPORT, str(e))
