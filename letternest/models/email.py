"""Email content models."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class EmailContent:
    """Rendered newsletter ready for the email API."""

    subject: str
    html: str
    text: str
    from_email: str
    from_name: str
    reply_to: Optional[str] = None
    tags: List[Dict[str, str]] = field(default_factory=list)

    @property
    def sender(self) -> str:
        """RFC 5322 style "Name <address>" sender."""
        return f"{self.from_name} <{self.from_email}>"
