"""
Unit tests for the sampled word count
"""

import unittest

from fakes import FakeECFRClient, make_agency
from config import settings
from ecfr_wordcount.fetcher import FetchResult, FetchStatus
from ecfr_wordcount.sampler import sample_agency, sample_word_counts


def sample_client():
    return FakeECFRClient(
        agencies=[
            make_agency("Agency A", 1, 2, 3),
            make_agency("No References"),
            make_agency("Agency C", 4),
            make_agency("Agency D", 4, 4, 1),
            make_agency("Agency E", None, 1),
            make_agency("Agency F", 1),
        ],
        structures={1: ['10', '11', '12'], 3: ['30'], 4: ['40']},
        texts={
            (1, '10'): "<P>one two three</P>",
            (3, '30'): "<P>never sampled</P>",
            (4, '40'): "four words in text",
        },
    )


class TestSampleWordCounts(unittest.TestCase):
    """Test cases for the sampled word count"""

    def setUp(self):
        self.client = sample_client()

    def test_first_agencies_in_upstream_order(self):
        results = sample_word_counts(self.client)

        names = [row['agency'] for row in results['agencies']]
        self.assertEqual(len(names), settings.SAMPLE_AGENCY_LIMIT)
        self.assertEqual(names, ["Agency A", "No References", "Agency C", "Agency D", "Agency E"])
        self.assertEqual(self.client.agency_calls, 1)

    def test_reference_and_part_limits(self):
        results = sample_word_counts(self.client)
        agency_a = results['agencies'][0]

        self.assertNotIn(3, self.client.structure_calls)
        self.assertIn((1, '10'), self.client.text_calls)
        self.assertIn((1, '11'), self.client.text_calls)
        self.assertNotIn((1, '12'), self.client.text_calls)
        self.assertEqual(agency_a['titlesExamined'], [1])
        self.assertEqual(agency_a['wordCount'], 3)

    def test_missing_part_adds_no_words(self):
        row = sample_agency(self.client, self.client.agencies[0], 2, 2)

        self.assertEqual(row.word_count, 3)
        self.assertEqual(row.sections_examined, 1)

    def test_missing_structure_not_examined(self):
        row = sample_agency(self.client, make_agency("Only Missing", 2), 2, 2)

        self.assertEqual(row.titles_examined, [])
        self.assertEqual(row.word_count, 0)
        self.assertEqual(self.client.text_calls, [])

    def test_agency_without_references(self):
        results = sample_word_counts(self.client)
        row = results['agencies'][1]

        self.assertEqual(row['wordCount'], 0)
        self.assertEqual(row['sectionsExamined'], 0)
        self.assertEqual(row['titlesExamined'], [])

    def test_repeated_title_counted_once(self):
        row = sample_agency(self.client, self.client.agencies[3], 2, 2)

        self.assertEqual(row.titles_examined, [4])
        self.assertEqual(row.word_count, 4)
        self.assertEqual(self.client.text_calls, [(4, '40')])

    def test_untitled_reference_skipped(self):
        row = sample_agency(self.client, self.client.agencies[4], 2, 2)

        self.assertEqual(row.titles_examined, [1])
        self.assertEqual(self.client.structure_calls, [1])

    def test_exhausted_and_failing_parts(self):
        self.client.texts[(1, '10')] = FetchResult(FetchStatus.EXHAUSTED)

        def flaky(title, part):
            raise RuntimeError("connection reset")

        client = FakeECFRClient(agencies=[make_agency("Z", 4)], structures={4: ['40']})
        client.get_part_text = flaky

        exhausted = sample_agency(self.client, self.client.agencies[0], 1, 1)
        failing = sample_agency(client, client.agencies[0], 1, 1)

        self.assertEqual((exhausted.word_count, exhausted.sections_examined), (0, 0))
        self.assertEqual(exhausted.titles_examined, [1])
        self.assertEqual((failing.word_count, failing.sections_examined), (0, 0))
        self.assertEqual(failing.titles_examined, [4])

    def test_custom_limits_and_metadata(self):
        results = sample_word_counts(self.client, agency_limit=1, reference_limit=1, part_limit=1)

        self.assertEqual(len(results['agencies']), 1)
        self.assertEqual(self.client.text_calls, [(1, '10')])
        self.assertEqual(results['metadata']['date'], settings.REFERENCE_DATE)
        row = results['agencies'][0]
        self.assertEqual(row['measurementUnit'], "words in regulatory text")
        self.assertEqual(row['sectionsExamined'], 1)


if __name__ == '__main__':
    unittest.main()
