from __future__ import annotations

import html
import logging
import re
from typing import List, Optional, Tuple

from markdown2 import markdown

from app.config.settings import settings
from app.domain.review_models import RenderedReport

logger = logging.getLogger(__name__)

_MERMAID_FENCE = re.compile(r"```[ \t]*mermaid[ \t]*\r?\n([\s\S]*?)```", re.IGNORECASE)
_SCORE = re.compile(r"(?<!\d)(\d{1,3})\s*/\s*100")
_SUMMARY = re.compile(r"One-Line Summary:\**\s*(.+)", re.IGNORECASE)

_PLACEHOLDER = "STACKSENTINELDIAGRAM{}TOKEN"

MARKDOWN_EXTRAS = ["fenced-code-blocks", "tables", "cuddled-lists"]


class FormattingAgent:
    """
    FormattingAgent
    ----------------
    - Markdown report -> HTML for the browser
    - Mermaid fences become <pre class="mermaid"> blocks hydrated client side
    - Export of the held report, byte for byte
    """

    def render(self, report_markdown: str) -> RenderedReport:
        diagrams: List[str] = []

        def _stash(match: re.Match) -> str:
            diagrams.append(match.group(1).strip())
            return "\n\n" + _PLACEHOLDER.format(len(diagrams) - 1) + "\n\n"

        body = _MERMAID_FENCE.sub(_stash, report_markdown or "")
        rendered = markdown(body, extras=MARKDOWN_EXTRAS)

        for idx, source in enumerate(diagrams):
            token = _PLACEHOLDER.format(idx)
            block = f'<pre class="mermaid">{html.escape(source)}</pre>'
            rendered = rendered.replace(f"<p>{token}</p>", block).replace(token, block)

        return RenderedReport(
            html=rendered,
            diagrams=diagrams,
            stability_score=extract_stability_score(report_markdown),
            summary=extract_summary(report_markdown),
        )

    def export(self, report_markdown: str) -> Tuple[str, bytes]:
        return settings.REPORT_FILENAME, report_markdown.encode("utf-8")


def extract_stability_score(report_markdown: str) -> Optional[int]:
    """Last `N/100` in the report, or None. Values above 100 are rejected."""
    matches = _SCORE.findall(report_markdown or "")
    if not matches:
        return None

    score = int(matches[-1])
    if score > 100:
        logger.warning("Ignoring out of range stability score: %d", score)
        return None
    return score


def extract_summary(report_markdown: str) -> Optional[str]:
    match = _SUMMARY.search(report_markdown or "")
    if not match:
        return None
    return match.group(1).strip().strip("*").strip() or None
