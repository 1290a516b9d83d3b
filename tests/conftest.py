"""
Pytest configuration and fixtures for eCFR word-count tests
"""

import pytest
import tempfile
import shutil
from pathlib import Path

from fakes import two_agency_client
from ecfr_wordcount.progress_store import ProgressStore


@pytest.fixture
def temp_dir():
    """Create a temporary directory for a single test"""
    temp_dir = Path(tempfile.mkdtemp(prefix="ecfr_wordcount_test_"))
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def store(temp_dir):
    return ProgressStore(temp_dir / "word-counts")


@pytest.fixture
def crawl_client():
    return two_agency_client()


@pytest.fixture
def sample_part_xml():
    return '''<?xml version="1.0" encoding="UTF-8" ?>
<DIV5 N="1" TYPE="PART">
<HEAD>PART 1—DEFINITIONS</HEAD>
<DIV8 N="§ 1.1" TYPE="SECTION">
<HEAD>§ 1.1 Test definitions.</HEAD>
<P>This section contains test definitions.</P>
</DIV8>
</DIV5>'''


def pytest_configure(config):
    """Configure pytest markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "network: mark test as requiring network access")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on location"""
    for item in items:
        if "test_cli" in item.nodeid or "test_orchestrator" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
