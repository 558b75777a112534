# -*- coding: utf-8 -*-
"""Tests for the refinement loop."""

from __future__ import annotations

import pytest

from app.agents.refinement_agent import RefinementAgent
from app.domain.review_models import FailureKind, ResultSource
from app.prompts.demo_responses import MOCK_RESPONSE

from conftest import FakeGenerationClient, demo_settings, live_settings


FEEDBACK = "We use DynamoDB, not Postgres"


@pytest.mark.asyncio
async def test_demo_refinement_appends_feedback_note(png_image, sleep) -> None:
    agent = RefinementAgent(sleep=sleep, settings_loader=demo_settings)

    outcome = await agent.run(png_image, MOCK_RESPONSE, FEEDBACK)

    assert outcome.source is ResultSource.DEMO
    assert outcome.markdown.startswith(MOCK_RESPONSE)
    suffix = outcome.markdown[len(MOCK_RESPONSE):]
    assert FEEDBACK in suffix
    assert "Demo Mode" in suffix
    assert sleep.calls == [2.0]


@pytest.mark.asyncio
async def test_demo_refinement_annotates_previous_report_not_the_mock(png_image, sleep) -> None:
    agent = RefinementAgent(sleep=sleep, settings_loader=demo_settings)
    prior = "## Earlier report\nStability Score: 40/100"

    outcome = await agent.run(png_image, prior, "Add a Redis layer")

    assert outcome.markdown.startswith(prior)
    assert MOCK_RESPONSE not in outcome.markdown
    assert "Add a Redis layer" in outcome.markdown


@pytest.mark.asyncio
async def test_live_refinement_embeds_prior_and_feedback(png_image, sleep) -> None:
    client = FakeGenerationClient(text="## Revised report")
    agent = RefinementAgent(client_factory=client.factory, sleep=sleep, settings_loader=live_settings)

    outcome = await agent.run(png_image, MOCK_RESPONSE, FEEDBACK)

    assert outcome.source is ResultSource.LIVE
    assert outcome.markdown == "## Revised report"

    call = client.calls[0]
    assert MOCK_RESPONSE in call["user_text"]
    assert FEEDBACK in call["user_text"]
    assert "mermaid" in call["user_text"].lower()
    assert call["temperature"] == 0.2
    assert "StackSentinel" in call["system_prompt"]


@pytest.mark.asyncio
async def test_prior_markdown_with_braces_is_embedded_verbatim(png_image, sleep) -> None:
    client = FakeGenerationClient(text="ok")
    agent = RefinementAgent(client_factory=client.factory, sleep=sleep, settings_loader=live_settings)
    prior = "```mermaid\ngraph TD\n  A{Decision} --> B\n```"

    await agent.run(png_image, prior, "use {braces}")

    assert prior in client.calls[0]["user_text"]
    assert "use {braces}" in client.calls[0]["user_text"]


@pytest.mark.asyncio
async def test_transport_failure_reverts_to_prior_byte_for_byte(png_image, sleep) -> None:
    client = FakeGenerationClient(error=TimeoutError("read timed out"))
    agent = RefinementAgent(client_factory=client.factory, sleep=sleep, settings_loader=live_settings)
    prior = "## Previous\n\nkeep me exactly  \n"

    outcome = await agent.run(png_image, prior, FEEDBACK)

    assert outcome.markdown == prior
    assert outcome.source is ResultSource.REVERTED
    assert outcome.failure is FailureKind.TRANSPORT


@pytest.mark.asyncio
async def test_empty_response_reverts_to_prior(png_image, sleep) -> None:
    client = FakeGenerationClient(text="")
    agent = RefinementAgent(client_factory=client.factory, sleep=sleep, settings_loader=live_settings)

    outcome = await agent.run(png_image, "prior", FEEDBACK)

    assert outcome.markdown == "prior"
    assert outcome.failure is FailureKind.EMPTY_RESPONSE


@pytest.mark.asyncio
@pytest.mark.parametrize("feedback", ["", "   ", "\n\t"])
async def test_blank_feedback_is_rejected(png_image, sleep, feedback) -> None:
    agent = RefinementAgent(sleep=sleep, settings_loader=demo_settings)

    with pytest.raises(ValueError):
        await agent.run(png_image, "prior", feedback)

    assert sleep.calls == []
