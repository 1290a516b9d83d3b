"""
Histograms over eCFR corrections and title version history
"""

from collections import Counter
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional


def _parse_date(value: Any) -> Optional[date]:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value[:10], '%Y-%m-%d').date()
    except ValueError:
        return None


def corrections_by_year(corrections: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Count corrections per year of their ``error_corrected`` date"""
    counts: Counter = Counter()
    for correction in corrections:
        corrected = _parse_date(correction.get('error_corrected'))
        if corrected is not None:
            counts[str(corrected.year)] += 1
    return [{'year': year, 'count': counts[year]} for year in sorted(counts)]


def title_changes_by_month(versions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Count content versions per YYYY-MM of their ``issue_date``"""
    counts: Counter = Counter()
    for version in versions:
        issued = _parse_date(version.get('issue_date'))
        if issued is not None:
            counts[issued.strftime('%Y-%m')] += 1
    return [{'month': month, 'count': counts[month]} for month in sorted(counts)]


def default_changes_since(today: Optional[date] = None) -> str:
    """January 1st two years back, the default window for title changes"""
    today = today or date.today()
    return f"{today.year - 2}-01-01"
