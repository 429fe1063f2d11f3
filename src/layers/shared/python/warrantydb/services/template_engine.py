"""Placeholder substitution for email templates.

``{{name}}`` placeholders are replaced literally. Names are case-sensitive.
A placeholder with no supplied value stays in the output verbatim so a
partial variable set still yields a readable message.
"""

from dataclasses import dataclass

from warrantydb.models.email_template import PLACEHOLDER_PATTERN, EmailTemplate


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    body: str


def render_text(text: str, variables: dict[str, str]) -> str:
    """Substitute every known ``{{key}}`` in ``text``."""

    def _replace(match) -> str:
        key = match.group(1)
        if key in variables:
            return str(variables[key])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, text)


def render(template: EmailTemplate, variables: dict[str, str]) -> RenderedMessage:
    """Render subject and body of ``template``."""
    return RenderedMessage(
        subject=render_text(template.subject, variables),
        body=render_text(template.body, variables),
    )


def missing_variables(template: EmailTemplate, variables: dict[str, str]) -> list[str]:
    """Placeholders in ``template`` that ``variables`` does not cover."""
    return [name for name in template.placeholders() if name not in variables]
