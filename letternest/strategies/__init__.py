"""Newsletter template strategies, looked up by their URL key."""

from typing import Dict, Optional

from letternest.strategies.base import NewsletterTemplate, Palette, format_issue_date
from letternest.strategies.creative_showcase import CREATIVE_SHOWCASE
from letternest.strategies.modern_clean import MODERN_CLEAN
from letternest.strategies.twin_focus import TWIN_FOCUS

TEMPLATES: Dict[str, NewsletterTemplate] = {
    template.key: template
    for template in (MODERN_CLEAN, TWIN_FOCUS, CREATIVE_SHOWCASE)
}


def get_template(key: str) -> Optional[NewsletterTemplate]:
    """Return the template registered under ``key``, if any."""
    return TEMPLATES.get(key)


__all__ = [
    "CREATIVE_SHOWCASE",
    "MODERN_CLEAN",
    "NewsletterTemplate",
    "Palette",
    "TEMPLATES",
    "TWIN_FOCUS",
    "format_issue_date",
    "get_template",
]
