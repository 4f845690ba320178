"""Write-once report persistence."""

import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Lowercase, non-alphanumeric runs to "-", trimmed; "report" when empty."""
    slug = _SLUG_PATTERN.sub("-", title.lower()).strip("-")
    return slug or "report"


def report_filename(title: str, now: datetime | None = None) -> str:
    """``<slug>-<timestamp>.md`` where the timestamp is ISO-8601 UTC with ':' and '.' replaced."""
    now = now or datetime.now(timezone.utc)
    timestamp = now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"
    return f"{slugify(title)}-{timestamp}.md"


def save_report(content: str, title: str, directory: str | None = None) -> tuple[Path, str]:
    """
    Write a report file once.

    The file is opened in exclusive-create mode, so an existing report is
    never overwritten.

    Args:
        content: Markdown body
        title: Human title, slugified into the filename
        directory: Target directory (default: REPORTS_DIR or "reports")

    Returns:
        Tuple of (path, filename)

    Raises:
        FileExistsError: If a report with the same name already exists
    """
    if directory is None:
        directory = os.environ.get("REPORTS_DIR", "reports")
    report_dir = Path(directory)
    report_dir.mkdir(parents=True, exist_ok=True)

    filename = report_filename(title)
    path = report_dir / filename
    with path.open("x", encoding="utf-8") as handle:
        handle.write(content)

    logger.info(f"Saved report {path}")
    return path, filename
