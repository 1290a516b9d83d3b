"""
Cross-agency reconciliation of crawl results into the final report
"""

from typing import Dict, List, Mapping

from ecfr_wordcount.models import AgencyProgress, ReportRow


def build_title_usage(agencies_progress: Mapping[str, AgencyProgress]) -> Dict[str, List[str]]:
    """Map each title to the agencies with a titles entry for it, in first-seen order"""
    usage: Dict[str, List[str]] = {}
    for name, agency in agencies_progress.items():
        for title in agency.titles:
            usage.setdefault(title, []).append(name)
    return usage


def shared_titles(title_usage: Mapping[str, List[str]]) -> Dict[str, List[str]]:
    return {title: names for title, names in title_usage.items() if len(names) > 1}


def shared_regulations_note(agency: str, titles: List[str], title_usage: Mapping[str, List[str]]) -> str:
    shares = []
    for title in titles:
        others = [name for name in title_usage[title] if name != agency]
        if others:
            shares.append(f"Title {title} (shared with {', '.join(others)})")
    if not shares:
        return ""
    return f"Shares regulations with other agencies: {'; '.join(shares)}"


def reconcile(agencies_progress: Mapping[str, AgencyProgress]) -> List[ReportRow]:
    """Build report rows, largest word count first"""
    usage = build_title_usage(agencies_progress)

    rows = []
    for name, agency in agencies_progress.items():
        titles = list(agency.titles)
        note = shared_regulations_note(name, titles, usage)
        rows.append(ReportRow(
            agency=name,
            word_count=agency.word_count,
            parts_processed=agency.completed_parts,
            titles=titles,
            shared_regulations=bool(note),
            shared_regulations_note=note,
        ))

    return sorted(rows, key=lambda row: row.word_count, reverse=True)
