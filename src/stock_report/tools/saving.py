"""Report saving shared by the report tools."""

import logging
from typing import Any

from stock_report.reports.storage import save_report

logger = logging.getLogger(__name__)


def attach_saved_report(result: dict[str, Any], content: str, title: str, warnings: list[str]) -> None:
    """
    Save a report and record where it went.

    On success ``report_path`` and ``filename`` are added to ``result``. A
    failed write leaves the report unsaved and appends a warning instead;
    the content is still returned to the caller.
    """
    try:
        path, filename = save_report(content, title)
    except OSError as e:
        logger.warning(f"Report not saved ({title}): {e}")
        warnings.append(f"Report not saved: {e}")
        return
    result["report_path"] = str(path)
    result["filename"] = filename
