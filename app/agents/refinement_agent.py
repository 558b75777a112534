from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from app.agents.analysis_agent import ClientFactory, Sleep
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
    encode_image,
)

logger = logging.getLogger(__name__)


class RefinementAgent:
    """
    RefinementAgent
    ---------------
    Re-submits the image with the previous report and the user's feedback.

    - Demo mode appends a note to the previous report
    - On model failure the previous report is returned unchanged
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

        prompt = PromptRegistry.get("architecture_refinement", "v1")
        self._system_prompt = PromptRegistry.system_prompt(prompt)
        self._user_template = prompt["messages"]["user_template"]
        self._temperature = prompt["model"]["temperature"]

    def build_prompt(self, prior_markdown: str, feedback: str) -> str:
        return self._user_template.format(prior_markdown=prior_markdown, feedback=feedback)

    async def run(
        self,
        image: SelectedImage,
        prior_markdown: str,
        feedback: str,
        session_id: Optional[str] = None,
    ) -> AnalysisOutcome:
        if not feedback or not feedback.strip():
            raise ValueError("Refinement feedback must not be empty")

        request = AnalysisRequest.refinement(image, prior_markdown, feedback)
        settings = self._settings_loader()

        if not settings.has_credential:
            logger.warning("[%s] No API credential found. Demo refinement.", session_id)
            await self._sleep(settings.DEMO_REFINEMENT_DELAY_MS / 1000)
            return recover(request, FailureKind.CREDENTIAL_ABSENT)

        try:
            client = self._client_factory(settings)
            encoded = await encode_image(image)

            text = await client.generate(
                self._system_prompt,
                encoded,
                self.build_prompt(prior_markdown, feedback),
                self._temperature,
            )
            if not text:
                raise EmptyGenerationError("Empty response from model")

            logger.info("[%s] Refinement completed. response_len=%d", session_id, len(text))
            return AnalysisOutcome(result=AnalysisResult(markdown=text), source=ResultSource.LIVE)

        except EmptyGenerationError as e:
            logger.warning("[%s] Model returned an empty refinement; keeping previous report", session_id)
            return recover(request, FailureKind.EMPTY_RESPONSE, str(e))

        except Exception as e:
            logger.exception("[%s] Refinement call failed; keeping previous report", session_id)
            return recover(request, FailureKind.TRANSPORT, str(e))
