"""Template strategy: everything that differs between newsletter variants."""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List


@dataclass(frozen=True)
class Palette:
    """Colours applied by the HTML renderer."""

    text: str = "#1a202c"
    heading: str = "#2d3748"
    accent: str = "#3182ce"
    muted: str = "#4a5568"
    background: str = "#f7fafc"
    card: str = "#ffffff"
    heading_sizes: Dict[int, str] = field(default_factory=lambda: {
        1: "30px", 2: "24px", 3: "20px", 4: "17px", 5: "15px", 6: "14px",
    })


@dataclass(frozen=True)
class NewsletterTemplate:
    """Prompt set and rendering choices for one newsletter variant.

    Prompt strings are ``str.format`` templates. Available fields:
    ``{posts}`` for the analysis prompt, ``{analysis}`` and ``{date}`` for
    the markdown prompt, ``{markdown}`` for the enhancement prompt, and
    ``{display_name}`` everywhere.
    """

    key: str
    display_name: str
    sender_name: str
    subject: str
    analysis_system_prompt: str
    analysis_user_prompt: str
    markdown_system_prompt: str
    markdown_user_prompt: str
    enhancement_system_prompt: str
    enhancement_user_prompt: str
    analysis_temperature: float = 0.6
    markdown_temperature: float = 0.2
    enhancement_temperature: float = 0.1
    enrichment_theme_limit: int = 2
    palette: Palette = field(default_factory=Palette)
    layout: str = "newsletter.html.j2"
    tagline: str = "Curated from your bookmarks"

    def _fill(self, prompt: str, **values: str) -> str:
        return prompt.format(display_name=self.display_name, **values)

    def analysis_messages(self, posts: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self._fill(self.analysis_system_prompt, posts=posts)},
            {"role": "user", "content": self._fill(self.analysis_user_prompt, posts=posts)},
        ]

    def markdown_messages(self, analysis: str, issue_date: date) -> List[Dict[str, str]]:
        values = {"analysis": analysis, "date": format_issue_date(issue_date)}
        return [
            {"role": "system", "content": self._fill(self.markdown_system_prompt, **values)},
            {"role": "user", "content": self._fill(self.markdown_user_prompt, **values)},
        ]

    def enhancement_messages(self, markdown: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self._fill(self.enhancement_system_prompt, markdown=markdown)},
            {"role": "user", "content": self._fill(self.enhancement_user_prompt, markdown=markdown)},
        ]

    def subject_for(self, issue_date: date) -> str:
        return self.subject.format(display_name=self.display_name, date=format_issue_date(issue_date))


def format_issue_date(issue_date: date) -> str:
    """Long-form date such as "March 5, 2025"."""
    return f"{issue_date:%B} {issue_date.day}, {issue_date.year}"
