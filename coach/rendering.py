"""Markdown rendering for analysis text."""

from typing import Any

import markdown  # type: ignore[import-untyped]

MARKDOWN_EXTENSIONS = [
    'markdown.extensions.fenced_code',
    'markdown.extensions.tables',
    'markdown.extensions.nl2br',
    'markdown.extensions.sane_lists',
]


def markdown_to_html(text: Any) -> str:
    """Render markdown ``text`` to an HTML fragment; empty input gives ``''``."""
    if not text:
        return ''
    return markdown.markdown(str(text), extensions=MARKDOWN_EXTENSIONS)


def with_rendered_analysis(session_data: dict) -> dict:
    """Add ``detailedAnalysisHtml`` next to a session's markdown feedback."""
    feedback = dict(session_data.get('feedback') or {})
    feedback['detailedAnalysisHtml'] = markdown_to_html(feedback.get('detailedAnalysis'))
    return {**session_data, 'feedback': feedback}
