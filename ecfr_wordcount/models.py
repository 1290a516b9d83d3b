"""
Data models for the word-count crawl

The checkpoint is a tree of progress records keyed by identifier:
CrawlProgress -> AgencyProgress (by agency name) -> TitleProgress (by title
number) -> PartProgress (by part identifier). Each record converts to and from
the camelCase JSON layout of progress.json.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class CrawlStatus(str, Enum):
    """Lifecycle state of a crawl"""
    INITIALIZING = "initializing"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class CfrReference:
    """Pointer from an agency to a CFR title it administers"""
    title: Optional[int]
    chapter: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'title': self.title}
        if self.chapter is not None:
            data['chapter'] = self.chapter
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CfrReference":
        return cls(title=data.get('title'), chapter=data.get('chapter'))


@dataclass
class AgencyDescriptor:
    """An agency as selected for the crawl"""
    name: str
    slug: str = ""
    cfr_references: List[CfrReference] = field(default_factory=list)

    @property
    def reference_count(self) -> int:
        return len(self.cfr_references)

    def title_numbers(self) -> List[int]:
        """Distinct referenced titles, in reference order"""
        titles: List[int] = []
        for ref in self.cfr_references:
            if ref.title is not None and ref.title not in titles:
                titles.append(ref.title)
        return titles

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'slug': self.slug,
            'cfr_references': [ref.to_dict() for ref in self.cfr_references],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgencyDescriptor":
        return cls(
            name=data['name'],
            slug=data.get('slug') or "",
            cfr_references=[CfrReference.from_dict(ref) for ref in data.get('cfr_references') or []],
        )


@dataclass
class PartProgress:
    completed: bool = False
    word_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {'completed': self.completed, 'wordCount': self.word_count}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PartProgress":
        return cls(completed=bool(data.get('completed')), word_count=int(data.get('wordCount') or 0))


@dataclass
class TitleProgress:
    completed: bool = False
    parts: Dict[str, PartProgress] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'parts': {part_id: part.to_dict() for part_id, part in self.parts.items()},
            'completed': self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TitleProgress":
        parts = data.get('parts') or {}
        return cls(
            completed=bool(data.get('completed')),
            parts={str(part_id): PartProgress.from_dict(part) for part_id, part in parts.items()},
        )


@dataclass
class AgencyProgress:
    slug: str = ""
    completed_parts: int = 0
    total_parts: int = 0
    word_count: int = 0
    completed: bool = False
    titles: Dict[str, TitleProgress] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'completedParts': self.completed_parts,
            'totalParts': self.total_parts,
            'wordCount': self.word_count,
            'titles': {title: progress.to_dict() for title, progress in self.titles.items()},
            'slug': self.slug,
            'completed': self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgencyProgress":
        titles = data.get('titles') or {}
        return cls(
            slug=data.get('slug') or "",
            completed_parts=int(data.get('completedParts') or 0),
            total_parts=int(data.get('totalParts') or 0),
            word_count=int(data.get('wordCount') or 0),
            completed=bool(data.get('completed')),
            titles={str(title): TitleProgress.from_dict(progress) for title, progress in titles.items()},
        )

    @property
    def percent_complete(self) -> int:
        if self.total_parts <= 0:
            return 0
        return round(self.completed_parts / self.total_parts * 100)


@dataclass
class CrawlProgress:
    """Root checkpoint object, persisted whole on every save"""
    status: CrawlStatus = CrawlStatus.INITIALIZING
    agencies: Optional[List[AgencyDescriptor]] = None
    total_agencies: int = 0
    completed_agencies: int = 0
    current_agency: str = ""
    agencies_progress: Dict[str, AgencyProgress] = field(default_factory=dict)
    start_time: Optional[str] = None
    last_save_time: Optional[str] = None
    end_time: Optional[str] = None
    error: Optional[str] = None

    @property
    def percent_complete(self) -> int:
        if self.total_agencies <= 0:
            return 0
        return round(self.completed_agencies / self.total_agencies * 100)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'totalAgencies': self.total_agencies,
            'completedAgencies': self.completed_agencies,
            'currentAgency': self.current_agency,
            'agenciesProgress': {
                name: progress.to_dict() for name, progress in self.agencies_progress.items()
            },
            'startTime': self.start_time,
            'lastSaveTime': self.last_save_time,
            'status': self.status.value,
        }
        if self.agencies is not None:
            data['agencies'] = [agency.to_dict() for agency in self.agencies]
        if self.end_time is not None:
            data['endTime'] = self.end_time
        if self.status is CrawlStatus.ERROR and self.error is not None:
            data['error'] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrawlProgress":
        agencies = data.get('agencies')
        progress = data.get('agenciesProgress') or {}
        return cls(
            status=CrawlStatus(data.get('status') or CrawlStatus.INITIALIZING.value),
            agencies=None if agencies is None else [AgencyDescriptor.from_dict(a) for a in agencies],
            total_agencies=int(data.get('totalAgencies') or 0),
            completed_agencies=int(data.get('completedAgencies') or 0),
            current_agency=data.get('currentAgency') or "",
            agencies_progress={name: AgencyProgress.from_dict(p) for name, p in progress.items()},
            start_time=data.get('startTime'),
            last_save_time=data.get('lastSaveTime'),
            end_time=data.get('endTime'),
            error=data.get('error'),
        )


@dataclass
class ReportRow:
    """One agency's line in the final word-count report"""
    agency: str
    word_count: int
    parts_processed: int
    titles: List[str]
    shared_regulations: bool
    shared_regulations_note: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'agency': self.agency,
            'wordCount': self.word_count,
            'partsProcessed': self.parts_processed,
            'titles': list(self.titles),
            'sharedRegulations': self.shared_regulations,
            'sharedRegulationsNote': self.shared_regulations_note,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportRow":
        return cls(
            agency=data['agency'],
            word_count=int(data.get('wordCount') or 0),
            parts_processed=int(data.get('partsProcessed') or 0),
            titles=[str(t) for t in data.get('titles') or []],
            shared_regulations=bool(data.get('sharedRegulations')),
            shared_regulations_note=data.get('sharedRegulationsNote') or "",
        )


@dataclass
class SampleRow:
    """One agency's word count from a sampled, uncheckpointed run"""
    agency: str
    word_count: int = 0
    sections_examined: int = 0
    titles_examined: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'agency': self.agency,
            'wordCount': self.word_count,
            'sectionsExamined': self.sections_examined,
            'titlesExamined': list(self.titles_examined),
            'measurementUnit': "words in regulatory text",
            'note': "Sample count of words in actual regulatory text for selected parts",
        }
