from pathlib import Path

import pytest

SAMPLE_DATA = Path(__file__).resolve().parents[2] / 'sample_data'


@pytest.fixture(autouse=True)
def _inline_commits(settings):
    # Worker threads open their own DB connections, which can't see the
    # test transaction; decide rows inline unless a test opts back in.
    settings.SHEETFEED_COMMIT_WORKERS = 1
    settings.SHEETFEED_RELAY_URL = None
    settings.SHEETFEED_ACCESS_WINDOW = None


@pytest.fixture
def sample_csv():
    return SAMPLE_DATA / 'daily_entries.csv'
