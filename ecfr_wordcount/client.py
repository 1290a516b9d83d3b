"""
eCFR API client
Endpoint wrappers and response-shape parsing for the agency listing,
title structure, full text, corrections and version history endpoints
"""

import logging
from typing import Any, Dict, List, Optional

from config import settings
from ecfr_wordcount.fetcher import FetchResult, RateLimitedFetcher
from ecfr_wordcount.models import AgencyDescriptor, CfrReference

logger = logging.getLogger(__name__)


class ECFRClientError(Exception):
    """Raised when a required upstream resource is unavailable or malformed"""
    pass


def _coerce_title(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_agencies(payload: Any) -> List[AgencyDescriptor]:
    """Parse the agency listing into descriptors.

    The payload must be an object with an ``agencies`` list. Entries without
    a name are dropped; reference titles that are not numbers become None.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get('agencies'), list):
        raise ECFRClientError("Malformed agency listing: expected an 'agencies' list")

    agencies = []
    for entry in payload['agencies']:
        if not isinstance(entry, dict) or not entry.get('name'):
            logger.debug(f"Skipping malformed agency entry: {entry!r}")
            continue

        references = []
        for ref in entry.get('cfr_references') or []:
            if not isinstance(ref, dict):
                continue
            chapter = ref.get('chapter')
            references.append(CfrReference(
                title=_coerce_title(ref.get('title')),
                chapter=str(chapter) if chapter is not None else None
            ))

        agencies.append(AgencyDescriptor(
            name=entry['name'],
            slug=entry.get('slug') or "",
            cfr_references=references
        ))
    return agencies


def parse_structure_parts(payload: Any) -> List[str]:
    """Identifiers of the first-level structural children of a title.

    Any missing level of the expected ``children[0].children`` shape means
    the title has no parts, so an empty list is returned rather than raising.
    """
    if not isinstance(payload, dict):
        return []
    children = payload.get('children')
    if not isinstance(children, list) or not children or not isinstance(children[0], dict):
        return []
    nodes = children[0].get('children')
    if not isinstance(nodes, list):
        return []

    identifiers: List[str] = []
    for node in nodes:
        if not isinstance(node, dict) or node.get('identifier') in (None, ""):
            continue
        identifier = str(node['identifier'])
        if identifier not in identifiers:
            identifiers.append(identifier)
    return identifiers


class ECFRClient:
    """Typed access to the eCFR endpoints used by the crawler"""

    def __init__(self, fetcher: Optional[RateLimitedFetcher] = None,
                 reference_date: Optional[str] = None):
        self.fetcher = fetcher or RateLimitedFetcher()
        self.reference_date = reference_date or settings.REFERENCE_DATE

    def get_agencies(self) -> List[AgencyDescriptor]:
        result = self.fetcher.fetch_result(settings.AGENCIES_ENDPOINT)
        if not result.ok:
            raise ECFRClientError(f"Agency listing unavailable ({result.status.value})")
        return parse_agencies(result.payload)

    def get_structure(self, title: int) -> FetchResult:
        return self.fetcher.fetch_result(
            f"versioner/v1/structure/{self.reference_date}/title-{title}.json"
        )

    def get_part_text(self, title: int, part: str) -> FetchResult:
        return self.fetcher.fetch_result(
            f"versioner/v1/full/{self.reference_date}/title-{title}.xml",
            expect_text=True,
            params={'part': part}
        )

    def get_corrections(self, date: Optional[str] = None) -> List[Dict[str, Any]]:
        """Corrections listing as of a date (defaults to the reference date)"""
        result = self.fetcher.fetch_result(
            settings.CORRECTIONS_ENDPOINT,
            params={'date': date or self.reference_date}
        )
        if not result.ok:
            raise ECFRClientError(f"Corrections listing unavailable ({result.status.value})")
        if not isinstance(result.payload, dict):
            raise ECFRClientError("Malformed corrections listing")
        return result.payload.get('ecfr_corrections') or []

    def get_title_versions(self, title: int, since: Optional[str] = None) -> List[Dict[str, Any]]:
        """Content versions of a title, optionally issued on or after a date"""
        params = {'issue_date[gte]': since} if since else None
        result = self.fetcher.fetch_result(
            f"versioner/v1/versions/title-{title}.json",
            params=params
        )
        if not result.ok:
            raise ECFRClientError(f"Versions for title {title} unavailable ({result.status.value})")
        if not isinstance(result.payload, dict):
            raise ECFRClientError(f"Malformed versions listing for title {title}")
        return result.payload.get('content_versions') or []

    def close(self):
        self.fetcher.close()
