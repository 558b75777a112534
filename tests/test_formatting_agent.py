# -*- coding: utf-8 -*-
"""Tests for report rendering and export."""

from __future__ import annotations

from app.agents.formatting_agent import FormattingAgent, extract_stability_score, extract_summary
from app.prompts.demo_responses import MOCK_RESPONSE


def test_mock_report_renders_headers_and_lists() -> None:
    rendered = FormattingAgent().render(MOCK_RESPONSE)

    assert "<h2>" in rendered.html
    assert "<h3>" in rendered.html
    assert "<li>" in rendered.html
    assert "StackSentinel Analysis" in rendered.html


def test_mermaid_fence_becomes_hydration_block() -> None:
    rendered = FormattingAgent().render(MOCK_RESPONSE)

    assert len(rendered.diagrams) == 1
    assert rendered.diagrams[0].startswith("graph TD")
    assert '<pre class="mermaid">' in rendered.html
    assert "```" not in rendered.html
    assert "TOKEN" not in rendered.html


def test_diagram_source_is_html_escaped() -> None:
    report = "## R\n\n```mermaid\ngraph TD\n  A --> B[\"<script>\"]\n```\n"

    rendered = FormattingAgent().render(report)

    assert "<script>" not in rendered.html
    assert "&lt;script&gt;" in rendered.html
    assert rendered.diagrams == ['graph TD\n  A --> B["<script>"]']


def test_multiple_diagrams_keep_order() -> None:
    report = "```mermaid\ngraph TD\nA-->B\n```\n\ntext\n\n```mermaid\ngraph LR\nC-->D\n```"

    rendered = FormattingAgent().render(report)

    assert rendered.diagrams == ["graph TD\nA-->B", "graph LR\nC-->D"]
    assert rendered.html.index("A--&gt;B") < rendered.html.index("C--&gt;D")


def test_report_without_diagram() -> None:
    rendered = FormattingAgent().render("## Only text")

    assert rendered.diagrams == []
    assert rendered.stability_score is None


def test_score_and_summary_are_extracted() -> None:
    rendered = FormattingAgent().render(MOCK_RESPONSE)

    assert rendered.stability_score == 15
    assert rendered.summary.startswith("A ticking time bomb")


def test_score_uses_the_verdict_line() -> None:
    report = "Cut errors 50/100 requests\n\n### 4. The Verdict\n* **Stability Score:** 72/100"
    assert extract_stability_score(report) == 72


def test_out_of_range_score_is_ignored() -> None:
    assert extract_stability_score("Stability Score: 140/100") is None
    assert extract_summary("no summary here") is None


def test_export_is_byte_identical() -> None:
    report = "## Ünïcode report\n\r\ntrailing  \n"

    filename, content = FormattingAgent().export(report)

    assert filename == "StackSentinel_Analysis.md"
    assert content == report.encode("utf-8")


def test_score_does_not_match_inside_longer_number() -> None:
    assert extract_stability_score("Stability Score: 1000/100") is None
    assert extract_stability_score("Stability Score: 2100/100, revised 64/100") == 64
