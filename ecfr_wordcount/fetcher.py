"""
Rate-limited HTTP fetcher for the eCFR API
Retries rate-limited and failed requests, and short-circuits on 404
"""

import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import requests

from config import settings

logger = logging.getLogger(__name__)


class FetchStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one fetch.

    NOT_FOUND means the resource definitely does not exist. EXHAUSTED means
    the retry budget ran out and the resource may well exist.
    """
    status: FetchStatus
    payload: Any = None

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.OK


class RateLimitedFetcher:
    """Issues GET requests against the eCFR API with backoff"""

    def __init__(self, base_url: Optional[str] = None,
                 session: Optional[requests.Session] = None,
                 max_retries: Optional[int] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.base_url = (base_url or settings.ECFR_API_BASE).rstrip('/')
        self.session = session or self._create_session()
        self.max_retries = settings.MAX_RETRIES if max_retries is None else max_retries
        self._sleep = sleep

    def _create_session(self) -> requests.Session:
        """Create configured requests session"""
        session = requests.Session()
        session.headers.update({
            'User-Agent': settings.USER_AGENT,
            'Accept-Encoding': 'gzip, deflate'
        })
        return session

    @staticmethod
    def backoff_delay(attempt: int) -> float:
        """Seconds to wait after the given (zero-based) rate-limited attempt"""
        return 2 ** attempt + random.uniform(0, settings.MAX_JITTER)

    def fetch_result(self, endpoint: str, expect_text: bool = False,
                     params: Optional[Dict[str, Any]] = None) -> FetchResult:
        """Fetch a resource relative to the API base.

        Rate-limit (429) and other failures share one attempt budget: 429
        waits 2**attempt seconds plus jitter, anything else waits
        RETRY_DELAY. A 404 returns immediately, and the final failed
        attempt returns without waiting.
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        accept = 'text/xml, application/xml, */*' if expect_text else 'application/json'

        attempt = 0
        while attempt < self.max_retries:
            logger.debug(f"Requesting {url} (attempt {attempt + 1})")
            try:
                response = self.session.get(
                    url,
                    params=params,
                    headers={'Accept': accept},
                    timeout=settings.REQUEST_TIMEOUT
                )

                if response.status_code == 429:
                    if attempt < self.max_retries - 1:
                        delay = self.backoff_delay(attempt)
                        logger.warning(f"Rate limited on {endpoint}, waiting {delay:.1f}s before retry")
                        self._sleep(delay)
                    else:
                        logger.warning(f"Rate limited on {endpoint}")
                    attempt += 1
                    continue

                if response.status_code == 404:
                    logger.info(f"Resource not found: {endpoint}")
                    return FetchResult(FetchStatus.NOT_FOUND)

                response.raise_for_status()
                payload = response.text if expect_text else response.json()
                return FetchResult(FetchStatus.OK, payload)

            except (requests.exceptions.RequestException, ValueError) as e:
                logger.warning(f"Error fetching {endpoint} (attempt {attempt + 1}): {e}")
                if attempt < self.max_retries - 1:
                    self._sleep(settings.RETRY_DELAY)
                attempt += 1

        logger.error(f"Max retries exceeded for {endpoint}")
        return FetchResult(FetchStatus.EXHAUSTED)

    def fetch(self, endpoint: str, expect_text: bool = False,
              params: Optional[Dict[str, Any]] = None) -> Any:
        """Fetch a resource and return its payload, or None if unavailable"""
        return self.fetch_result(endpoint, expect_text=expect_text, params=params).payload

    def close(self):
        """Clean up resources"""
        if self.session:
            self.session.close()
