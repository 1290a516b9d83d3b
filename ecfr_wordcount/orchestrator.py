"""
Resumable crawl of agencies -> CFR titles -> structural parts

Every completed unit of work is checkpointed before the next one starts, so
an interrupted crawl picks up where it stopped on the next run.
"""

import logging
import time
from typing import Callable, List, Optional

from tqdm import tqdm

from config import settings
from ecfr_wordcount.client import ECFRClient, parse_structure_parts
from ecfr_wordcount.fetcher import FetchStatus
from ecfr_wordcount.models import (
    AgencyDescriptor, AgencyProgress, CrawlProgress, CrawlStatus, PartProgress,
    ReportRow, TitleProgress
)
from ecfr_wordcount.progress_store import ProgressStore, ProgressStoreError, elapsed_minutes, timestamp
from ecfr_wordcount.reconciler import reconcile
from ecfr_wordcount.word_counter import count_words

logger = logging.getLogger(__name__)

AGENCY_ORDERS = ('smallest', 'largest')


class CrawlError(Exception):
    """Raised when a crawl ends in the error state"""
    pass


def select_agencies(agencies: List[AgencyDescriptor], count: int,
                    order: str = 'smallest') -> List[AgencyDescriptor]:
    """Agencies with at least one CFR reference, ordered by reference count"""
    if order not in AGENCY_ORDERS:
        raise ValueError(f"Unknown agency order: {order}")
    candidates = [agency for agency in agencies if agency.reference_count > 0]
    candidates.sort(key=lambda agency: agency.reference_count, reverse=(order == 'largest'))
    return candidates[:count]


class CrawlOrchestrator:
    """Walks the agency tree and owns the crawl checkpoint"""

    def __init__(self, client: ECFRClient, store: ProgressStore,
                 part_delay: Optional[float] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 order: str = settings.AGENCY_ORDER,
                 show_progress: bool = settings.SHOW_PROGRESS):
        self.client = client
        self.store = store
        self.part_delay = settings.DELAY_BETWEEN_PARTS if part_delay is None else part_delay
        self._sleep = sleep
        self.order = order
        self.show_progress = show_progress
        self.progress: Optional[CrawlProgress] = None

    def _checkpoint(self):
        self.store.save(self.progress)

    def _initialize(self):
        progress = self.store.load()
        if progress is None:
            logger.info("No checkpoint found, starting a new crawl")
            progress = CrawlProgress(start_time=timestamp())
            self.progress = progress
            self._checkpoint()
        else:
            logger.info("Resuming previous run...")
            self.progress = progress

    def run(self, target_agency_count: int = settings.DEFAULT_AGENCY_COUNT) -> List[ReportRow]:
        """Crawl (or resume) and return the final report rows.

        Raises CrawlError once the error state has been persisted.
        """
        try:
            self._initialize()
            self.progress.status = CrawlStatus.RUNNING
            self.progress.error = None
            self._checkpoint()

            if self.progress.agencies is None:
                self._select(target_agency_count)

            with tqdm(total=len(self.progress.agencies), desc="Processing agencies",
                      disable=not self.show_progress) as pbar:
                for agency in self.progress.agencies:
                    pbar.set_description(f"Processing {agency.name[:40]}")
                    self._process_agency(agency)
                    pbar.update(1)

            pending = self.progress.total_agencies - self.progress.completed_agencies
            if pending > 0:
                raise CrawlError(
                    f"{pending} of {self.progress.total_agencies} agencies have pending work; "
                    f"rerun to resume"
                )

            report = reconcile(self.progress.agencies_progress)
            self.store.write_report(report)

            self.progress.status = CrawlStatus.COMPLETED
            self.progress.current_agency = ""
            self.progress.end_time = timestamp()
            self._checkpoint()

            logger.info(f"Word count complete! {len(report)} agencies reported")
            logger.info(f"Total elapsed time: {elapsed_minutes(self.progress)} minutes")
            return report

        except Exception as e:
            logger.error(f"Error running word count: {e}")
            self._record_error(e)
            if isinstance(e, CrawlError):
                raise
            raise CrawlError(str(e)) from e

    def _record_error(self, error: Exception):
        if self.progress is None:
            return
        self.progress.status = CrawlStatus.ERROR
        self.progress.error = str(error)
        try:
            self._checkpoint()
        except ProgressStoreError as save_error:
            logger.error(f"Could not persist error state: {save_error}")

    def _select(self, count: int):
        logger.info("Getting all agencies...")
        selected = select_agencies(self.client.get_agencies(), count, self.order)
        self.progress.agencies = selected
        self.progress.total_agencies = len(selected)
        self._checkpoint()
        logger.info(f"Selected {len(selected)} {self.order} agencies: "
                    f"{', '.join(agency.name for agency in selected)}")

    def _process_agency(self, agency: AgencyDescriptor):
        logger.info(f"Processing agency: {agency.name}")
        self.progress.current_agency = agency.name

        agency_progress = self.progress.agencies_progress.get(agency.name)
        if agency_progress is None:
            agency_progress = AgencyProgress(slug=agency.slug)
            self.progress.agencies_progress[agency.name] = agency_progress

        if agency_progress.completed:
            logger.info(f"Agency {agency.name} already completed, skipping")
            return

        titles = [str(title) for title in agency.title_numbers()]
        for title in titles:
            title_progress = agency_progress.titles.get(title)
            if title_progress is not None and title_progress.completed:
                logger.info(f"Title {title} already processed for {agency.name}, skipping")
                continue
            if title_progress is None:
                title_progress = TitleProgress()
                agency_progress.titles[title] = title_progress

            try:
                self._process_title(title, title_progress, agency_progress)
            except ProgressStoreError:
                raise
            except Exception as e:
                logger.error(f"Error processing title {title} for {agency.name}: {e}")

        if all(agency_progress.titles[title].completed for title in titles):
            agency_progress.completed = True
            self.progress.completed_agencies += 1
            self._checkpoint()
            logger.info(f"Agency {agency.name} completed: {agency_progress.word_count:,} words")
        else:
            logger.warning(f"Agency {agency.name} has pending titles, will retry on next run")

    def _process_title(self, title: str, title_progress: TitleProgress,
                       agency_progress: AgencyProgress):
        logger.info(f"Getting structure for title {title}")
        result = self.client.get_structure(int(title))

        if result.status is FetchStatus.EXHAUSTED:
            logger.warning(f"Structure for title {title} unavailable, leaving it pending")
            return

        parts = parse_structure_parts(result.payload) if result.ok else []
        if not parts:
            logger.info(f"No parts found for title {title}")
            title_progress.completed = True
            self._checkpoint()
            return

        new_parts = [part for part in parts if part not in title_progress.parts]
        for part in new_parts:
            title_progress.parts[part] = PartProgress()
        agency_progress.total_parts += len(new_parts)
        self._checkpoint()

        for part in parts:
            part_progress = title_progress.parts[part]
            if part_progress.completed:
                logger.debug(f"Part {part} already processed for title {title}, skipping")
                continue

            try:
                self._process_part(title, part, part_progress, agency_progress)
            except ProgressStoreError:
                raise
            except Exception as e:
                logger.error(f"Error processing XML for title {title}, part {part}: {e}")

            self._sleep(self.part_delay)

        if all(title_progress.parts[part].completed for part in parts):
            title_progress.completed = True
            self._checkpoint()

    def _process_part(self, title: str, part: str, part_progress: PartProgress,
                      agency_progress: AgencyProgress):
        logger.debug(f"Processing title {title}, part {part}")
        result = self.client.get_part_text(int(title), part)

        if result.status is FetchStatus.EXHAUSTED:
            logger.warning(f"Text for title {title}, part {part} unavailable, leaving it pending")
            return

        word_count = count_words(result.payload) if result.ok else 0
        part_progress.word_count = word_count
        part_progress.completed = True
        agency_progress.word_count += word_count
        agency_progress.completed_parts += 1
        self._checkpoint()

        logger.info(f"Title {title}, part {part}: {word_count} words")
