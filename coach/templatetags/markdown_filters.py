"""Template filters for Markdown rendering."""

from typing import Any

from django import template
from django.utils.safestring import SafeString, mark_safe

from ..rendering import markdown_to_html

register = template.Library()


@register.filter  # type: ignore[misc]
def render_markdown(text: Any) -> SafeString:
    """
    Convert an analysis written in Markdown to HTML.

    Args:
        text: The raw markdown text, typically ``feedback.detailedAnalysis``

    Returns:
        HTML-safe string with rendered markdown
    """
    return mark_safe(markdown_to_html(text))
