"""
Email template rendering.

Stored templates use ``{{variableName}}`` placeholders and nothing else: no
loops, no conditionals. A placeholder with no value in the variable map is
left in the output exactly as written.
"""
import os
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple
from jinja2 import Environment, FileSystemLoader, select_autoescape
from app.core.config import settings

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")
LINE_BREAKS = re.compile(r"[\r\n]+")

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "templates", "email")

_layout_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
)


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: Optional[str] = None


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def replace_variables(template: str, variables: Mapping[str, Any]) -> str:
    """Substitute every {{name}} that has a non-null value; keep the rest verbatim."""
    def _sub(match: "re.Match[str]") -> str:
        value = variables.get(match.group(1))
        if value is None:
            return match.group(0)
        return _stringify(value)

    return PLACEHOLDER_PATTERN.sub(_sub, template or "")


def parse_variables(template: str) -> List[str]:
    """Distinct placeholder names in order of first appearance."""
    seen: Dict[str, None] = {}
    for name in PLACEHOLDER_PATTERN.findall(template or ""):
        seen.setdefault(name, None)
    return list(seen)


def validate_template(template: str) -> Tuple[bool, List[str]]:
    errors = []
    if template.count("{{") != template.count("}}"):
        errors.append("Mismatched template brackets: {{ and }} count differs")
    if re.search(r"\{\{\s*\}\}", template):
        errors.append("Empty variable name found: {{}}")
    return len(errors) == 0, errors


def default_variables(recipient_name: str = "", recipient_email: str = "") -> Dict[str, Any]:
    return {
        "appName": settings.APP_NAME,
        "appUrl": settings.APP_URL,
        "currentYear": datetime.now().year,
        "recipientName": recipient_name,
        "recipientEmail": recipient_email,
    }


def wrap_in_layout(content: str) -> str:
    layout = _layout_env.get_template("base.html")
    return layout.render(content=content, app_name=settings.APP_NAME)


def render_template(template: Any, variables: Mapping[str, Any], with_layout: bool = True) -> RenderedEmail:
    """
    Render a template record (anything with ``subject``, ``html_body`` and an
    optional ``text_body``) against ``variables`` layered over the defaults.
    """
    merged = {**default_variables(), **dict(variables)}
    # Subjects become a mail header and must stay on one line
    subject = LINE_BREAKS.sub(" ", replace_variables(template.subject, merged)).strip()
    body = replace_variables(template.html_body, merged)
    text_body = getattr(template, "text_body", None)
    return RenderedEmail(
        subject=subject,
        html=wrap_in_layout(body) if with_layout else body,
        text=replace_variables(text_body, merged) if text_body else None,
    )


# Used by the preview endpoint when the caller does not supply a value
SAMPLE_VARIABLES: Dict[str, Any] = {
    "recipientName": "John Doe",
    "recipientEmail": "john.doe@example.com",
    "employeeName": "John Doe",
    "leaveType": "Annual Leave",
    "startDate": "2024-01-15",
    "endDate": "2024-01-17",
    "days": 3,
    "reason": "Family vacation",
    "approverName": "Jane Smith",
    "rejectionReason": "Team capacity constraints",
    "requestType": "Asset",
    "subject": "New laptop request",
    "response": "Approved, please collect from IT",
    "typeLabel": "Important",
    "title": "Office closure notice",
    "preview": "The office will be closed on Friday for maintenance...",
    "publishedBy": "HR Department",
    "birthdayPerson": "Alice Johnson",
    "department": "Engineering",
    "years": 5,
    "assetName": "MacBook Pro 14",
    "assetTag": "AST-0042",
    "category": "Laptop",
    "assignedBy": "IT Admin",
    "returnedBy": "John Doe",
    "condition": "Good",
    "email": "john.doe@example.com",
    "employeeId": "EMP-001",
    "resetLink": "http://localhost:3000/reset-password?token=sample",
    "senderName": "Jane Smith",
    "message": "Thanks for the great work on the release!",
    "content": "<p>This is a sample message.</p>",
}
