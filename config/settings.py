"""
Configuration settings for the eCFR word-count crawler
"""

import os
from pathlib import Path

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data" / "word-counts-small"
LOGS_DIR = PROJECT_ROOT / "logs"

# Persisted files (all live under DATA_DIR)
PROGRESS_FILENAME = "progress.json"
STATUS_FILENAME = "status.html"
REPORT_FILENAME = "word_count_report.json"

# eCFR API settings
ECFR_API_BASE = "https://www.ecfr.gov/api"
REFERENCE_DATE = "2023-01-01"  # snapshot date for structure and full-text lookups
AGENCIES_ENDPOINT = "admin/v1/agencies.json"
CORRECTIONS_ENDPOINT = "admin/v1/corrections.json"

# HTTP settings
REQUEST_TIMEOUT = 60
MAX_RETRIES = 5
RETRY_DELAY = 1  # seconds, for non rate-limit failures
MAX_JITTER = 1.0  # seconds added on top of 2 ** attempt when rate limited
USER_AGENT = "eCFR-WordCount/1.0 (Educational/Research Purpose)"

# Rate limiting
DELAY_BETWEEN_PARTS = 2  # seconds

# Crawl settings
DEFAULT_AGENCY_COUNT = 5
AGENCY_ORDER = "smallest"  # or "largest"

# Sampled word count (no checkpoint)
SAMPLE_AGENCY_LIMIT = 5
SAMPLE_REFERENCES_PER_AGENCY = 2
SAMPLE_PARTS_PER_TITLE = 2

# Logging settings
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Progress tracking
SHOW_PROGRESS = True
STATUS_REFRESH_SECONDS = 5

# Environment-specific overrides
if os.getenv("ECFR_DEBUG"):
    LOG_LEVEL = "DEBUG"

if os.getenv("ECFR_DATA_DIR"):
    DATA_DIR = Path(os.getenv("ECFR_DATA_DIR"))

if os.getenv("ECFR_API_BASE"):
    ECFR_API_BASE = os.getenv("ECFR_API_BASE").rstrip("/")

if os.getenv("ECFR_REFERENCE_DATE"):
    REFERENCE_DATE = os.getenv("ECFR_REFERENCE_DATE")

if os.getenv("ECFR_PART_DELAY"):
    DELAY_BETWEEN_PARTS = float(os.getenv("ECFR_PART_DELAY"))
