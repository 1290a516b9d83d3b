"""
Sampled word count across the first few agencies

A quick, uncheckpointed estimate: a handful of agencies in upstream order, a
couple of CFR references each and the first parts of every title.
"""

import logging
from typing import Any, Dict, Optional

from config import settings
from ecfr_wordcount.client import ECFRClient, parse_structure_parts
from ecfr_wordcount.models import AgencyDescriptor, SampleRow
from ecfr_wordcount.word_counter import count_words

logger = logging.getLogger(__name__)


def sample_agency(client: ECFRClient, agency: AgencyDescriptor,
                  reference_limit: int, part_limit: int) -> SampleRow:
    """Count words in the first parts of an agency's first CFR references.

    Parts whose text is missing or unavailable add no words and are not
    counted as examined.
    """
    row = SampleRow(agency=agency.name)

    for reference in agency.cfr_references[:reference_limit]:
        title = reference.title
        if title is None or title in row.titles_examined:
            continue

        try:
            structure = client.get_structure(title)
        except Exception as e:
            logger.error(f"Error processing title {title} for agency {agency.name}: {e}")
            continue
        if not structure.ok:
            logger.info(f"Structure for title {title} unavailable ({structure.status.value}), skipping")
            continue

        row.titles_examined.append(title)
        for part in parse_structure_parts(structure.payload)[:part_limit]:
            try:
                text = client.get_part_text(title, part)
            except Exception as e:
                logger.error(f"Error processing part {part} for title {title}: {e}")
                continue

            if not text.ok:
                logger.info(f"Text for title {title}, part {part} unavailable ({text.status.value})")
                continue
            row.word_count += count_words(text.payload)
            row.sections_examined += 1

    return row


def sample_word_counts(client: ECFRClient,
                       agency_limit: Optional[int] = None,
                       reference_limit: Optional[int] = None,
                       part_limit: Optional[int] = None) -> Dict[str, Any]:
    """Sampled word counts for the first agencies of the upstream listing"""
    agency_limit = settings.SAMPLE_AGENCY_LIMIT if agency_limit is None else agency_limit
    reference_limit = settings.SAMPLE_REFERENCES_PER_AGENCY if reference_limit is None else reference_limit
    part_limit = settings.SAMPLE_PARTS_PER_TITLE if part_limit is None else part_limit

    agencies = client.get_agencies()[:agency_limit]
    rows = []
    for agency in agencies:
        logger.info(f"Sampling agency: {agency.name}")
        rows.append(sample_agency(client, agency, reference_limit, part_limit))

    return {
        'agencies': [row.to_dict() for row in rows],
        'metadata': {
            'measurement': "This count represents the number of words in the actual regulatory "
                           "text associated with each agency",
            'sampleSize': f"First {reference_limit} CFR references and {part_limit} parts per title "
                          f"for each of the first {agency_limit} agencies",
            'date': client.reference_date,
        },
    }
