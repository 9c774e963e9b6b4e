"""Newsletter rendering: markdown cleanup, HTML conversion and CSS inlining."""

import re
from datetime import date
from pathlib import Path
from typing import Optional

import markdown
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup
from premailer import Premailer

from letternest.infrastructure.config import get_templates_dir
from letternest.infrastructure.logging import LoggerMixin
from letternest.models.email import EmailContent
from letternest.strategies import NewsletterTemplate, format_issue_date

FENCE_PATTERN = re.compile(r"^```(?:markdown|html)?\s*([\s\S]*?)\s*```$", re.IGNORECASE)
CONTENT_START_PATTERN = re.compile(r"(^|\n)(#+\s.*|<h[1-6].*>|<div.*>)")
MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]


def clean_markdown(text: str) -> str:
    """Strip a wrapping code fence and any chatter before the first heading or block."""
    cleaned = FENCE_PATTERN.sub(r"\1", text.strip()).strip()

    first_line = next((line.strip() for line in cleaned.splitlines() if line.strip()), "")
    if first_line and not first_line.startswith(("#", "<h1", "<div")):
        match = CONTENT_START_PATTERN.search(cleaned)
        if match and match.start() > 0:
            cleaned = cleaned[match.start():].strip()
    return cleaned


def markdown_to_html(text: str) -> str:
    """Convert newsletter markdown (which may embed raw HTML blocks) to HTML."""
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS, output_format="html")


class NewsletterRenderer(LoggerMixin):
    """Turns final markdown into an email-ready, CSS-inlined HTML document."""

    def __init__(self, templates_dir: Optional[Path] = None, base_url: Optional[str] = None):
        self.templates_dir = templates_dir or get_templates_dir()
        self.base_url = base_url
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render_html(self, markdown_text: str, template: NewsletterTemplate, issue_date: date) -> str:
        body = markdown_to_html(markdown_text)
        layout = self.jinja_env.get_template(template.layout)
        html = layout.render(
            body=Markup(body),
            palette=template.palette,
            display_name=template.display_name,
            tagline=template.tagline,
            issue_date=format_issue_date(issue_date),
            subject=template.subject_for(issue_date),
        )
        return self._inline_css(html)

    def render_email(
        self,
        markdown_text: str,
        template: NewsletterTemplate,
        from_email: str,
        issue_date: Optional[date] = None,
    ) -> EmailContent:
        """Render the email, with the markdown itself as the plaintext part."""
        issue_date = issue_date or date.today()
        html = self.render_html(markdown_text, template, issue_date)
        self.logger.info("Newsletter rendered", template=template.key, html_length=len(html))
        return EmailContent(
            subject=template.subject_for(issue_date),
            html=html,
            text=markdown_text,
            from_email=from_email,
            from_name=template.sender_name,
            tags=[{"name": "template", "value": template.key}],
        )

    def _inline_css(self, html_content: str) -> str:
        """Inline CSS styles for better email client compatibility."""
        try:
            return Premailer(
                html_content,
                base_url=self.base_url,
                remove_classes=False,
                keep_style_tags=False,
                strip_important=False,
            ).transform()
        except Exception as e:
            self.logger.warning("Failed to inline CSS, using original HTML", error=str(e))
            return html_content
