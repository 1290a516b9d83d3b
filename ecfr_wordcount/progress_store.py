"""
Durable checkpoint storage for the word-count crawl

Writes progress.json, the auto-refreshing status.html rendered from it, and
the final word_count_report.json, all under one data directory.
"""

import html
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import settings
from ecfr_wordcount.models import CrawlProgress, CrawlStatus, ReportRow

logger = logging.getLogger(__name__)


class ProgressStoreError(Exception):
    """Custom exception for checkpoint storage operations"""
    pass


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def timestamp() -> str:
    return utc_now().isoformat()


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def elapsed_minutes(progress: CrawlProgress, now: Optional[datetime] = None) -> int:
    started = _parse_timestamp(progress.start_time)
    if started is None:
        return 0
    now = now or utc_now()
    return max(0, round((now - started).total_seconds() / 60))


def summarize_progress(progress: CrawlProgress, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Read-only projection of a checkpoint for monitoring"""
    return {
        'status': progress.status.value,
        'percentComplete': progress.percent_complete,
        'currentAgency': progress.current_agency,
        'startTime': progress.start_time,
        'lastUpdateTime': progress.last_save_time,
        'totalAgencies': progress.total_agencies,
        'completedAgencies': progress.completed_agencies,
        'elapsedMinutes': elapsed_minutes(progress, now),
    }


_STATUS_PAGE = """<!DOCTYPE html>
<html>
<head>
  <title>Agency Word Count Progress</title>
  <meta http-equiv="refresh" content="{refresh}">
  <style>
    body {{ font-family: Arial, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; }}
    .progress-bar-container {{ width: 100%; background-color: #f0f0f0; border-radius: 4px; margin: 10px 0; }}
    .progress-bar {{ height: 24px; background-color: #4CAF50; border-radius: 4px; text-align: center;
                    line-height: 24px; color: white; }}
    .agency {{ margin: 20px 0; padding: 10px; border: 1px solid #ddd; border-radius: 4px; }}
    .status {{ padding: 10px; border-radius: 4px; margin-bottom: 20px; font-weight: bold; }}
    .running {{ background-color: #e7f3ff; color: #0066cc; }}
    .completed {{ background-color: #e6ffe6; color: #006600; }}
    .error {{ background-color: #ffebe6; color: #cc0000; }}
  </style>
</head>
<body>
  <h1>Agency Word Count Progress</h1>
  <div class="status {status_class}">Status: {status}</div>
{error}  <div class="progress-bar-container">
    <div class="progress-bar" style="width: {percent}%;">{percent}% Complete</div>
  </div>
  <p>Currently processing: {current}</p>
  <p>Elapsed time: {elapsed} minutes</p>
  <p>Agencies completed: {completed} / {total}</p>
  <h2>Agency Details</h2>
{agencies}
</body>
</html>
"""

_AGENCY_BLOCK = """  <div class="agency">
    <h3>{name}</h3>
    <div class="progress-bar-container">
      <div class="progress-bar" style="width: {percent}%;">{percent}%</div>
    </div>
    <p>Words counted: {words:,}</p>
    <p>Parts processed: {completed} / {total}</p>
  </div>"""


def render_status_html(progress: CrawlProgress, now: Optional[datetime] = None) -> str:
    """Render the human-viewable status page for a checkpoint"""
    if progress.status in (CrawlStatus.COMPLETED, CrawlStatus.ERROR):
        status_class = progress.status.value
    else:
        status_class = 'running'

    agencies = "\n".join(
        _AGENCY_BLOCK.format(
            name=html.escape(name),
            percent=agency.percent_complete,
            words=agency.word_count,
            completed=agency.completed_parts,
            total=agency.total_parts,
        )
        for name, agency in progress.agencies_progress.items()
    )
    error = ""
    if progress.status is CrawlStatus.ERROR and progress.error:
        error = f"  <p>Error: {html.escape(progress.error)}</p>\n"

    return _STATUS_PAGE.format(
        refresh=settings.STATUS_REFRESH_SECONDS,
        status_class=status_class,
        status=progress.status.value.capitalize(),
        error=error,
        percent=progress.percent_complete,
        current=html.escape(progress.current_agency or 'Not started'),
        elapsed=elapsed_minutes(progress, now),
        completed=progress.completed_agencies,
        total=progress.total_agencies,
        agencies=agencies,
    )


class ProgressStore:
    """File-backed checkpoint of a crawl"""

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir or settings.DATA_DIR)
        self.progress_path = self.data_dir / settings.PROGRESS_FILENAME
        self.status_path = self.data_dir / settings.STATUS_FILENAME
        self.report_path = self.data_dir / settings.REPORT_FILENAME

    def _ensure_data_dir(self):
        """Create data directory if it doesn't exist"""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _write_atomic(self, path: Path, content: str):
        tmp_path = path.with_name(path.name + '.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            f.write(content)
        os.replace(tmp_path, path)

    def load(self) -> Optional[CrawlProgress]:
        """Load the stored checkpoint, or None if no crawl has started"""
        if not self.progress_path.exists():
            return None
        try:
            with open(self.progress_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return CrawlProgress.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Unreadable checkpoint {self.progress_path}: {e}")
            raise ProgressStoreError(f"Failed to load checkpoint {self.progress_path}: {e}")

    def save(self, progress: CrawlProgress) -> None:
        """Overwrite the checkpoint and regenerate the status page"""
        progress.last_save_time = timestamp()
        try:
            self._ensure_data_dir()
            self._write_atomic(self.progress_path, json.dumps(progress.to_dict(), indent=2))
            self._write_atomic(self.status_path, render_status_html(progress))
        except OSError as e:
            logger.error(f"Checkpoint write failed: {e}")
            raise ProgressStoreError(f"Failed to save checkpoint {self.progress_path}: {e}")

    def write_report(self, rows: List[ReportRow]) -> Path:
        try:
            self._ensure_data_dir()
            self._write_atomic(self.report_path, json.dumps([row.to_dict() for row in rows], indent=2))
        except OSError as e:
            raise ProgressStoreError(f"Failed to write report {self.report_path}: {e}")
        logger.info(f"Report written to {self.report_path}")
        return self.report_path

    def load_report(self) -> Optional[List[ReportRow]]:
        if not self.report_path.exists():
            return None
        try:
            with open(self.report_path, 'r', encoding='utf-8') as f:
                return [ReportRow.from_dict(row) for row in json.load(f)]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise ProgressStoreError(f"Failed to load report {self.report_path}: {e}")
