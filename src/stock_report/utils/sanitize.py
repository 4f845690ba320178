"""Text sanitization for provider free-text fields."""

import re

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def sanitize_text(text: str | None, max_length: int = 500) -> str | None:
    """
    Sanitize untrusted text fields before they reach a report.

    Removes control characters, escapes table pipes and truncates to
    max_length. Apply to: name, description, sector, industry, headlines.

    Args:
        text: Text to sanitize (may be None)
        max_length: Maximum length before truncation

    Returns:
        Sanitized text or None if input was None
    """
    if text is None:
        return None

    text = _CONTROL_CHARS.sub(" ", str(text))
    # Pipes would break markdown table cells
    text = text.replace("|", "\\|")

    if len(text) > max_length:
        text = text[:max_length] + "..."

    return text.strip()


def first_sentence(text: str | None) -> str | None:
    """First sentence of a description (split on ". "), with its period."""
    cleaned = sanitize_text(text, max_length=2000)
    if not cleaned:
        return None
    head = cleaned.split(". ", 1)[0].rstrip(".")
    return f"{head}." if head else None
