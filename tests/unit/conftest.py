"""
Pytest configuration for unit tests.

Provides document fixtures and an offline fetch service shared by all
unit tests. No unit test touches the network.
"""

from pathlib import Path

import pytest

from dwca_extensions.config import ParserSettings, reset_config
from dwca_extensions.errors import FetchError


FIXTURES_DIR = Path(__file__).parent.parent / 'fixtures'

SEX_URL = 'http://rs.gbif.org/vocabulary/gbif/sex.xml'
EXTENSION_URL = 'http://rs.gbif.org/extension/dwc/occurrence_identifier.xml'


class FakeFetcher:
    """In-memory fetch service that records every requested URL."""

    def __init__(self, documents=None):
        self.documents = dict(documents or {})
        self.calls = []

    def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        if url not in self.documents:
            raise FetchError(url, "404 Not Found", status_code=404)
        return self.documents[url]


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Drop cached settings and DWCA_* environment variables around every test."""
    for name in (
        'DWCA_HTTP_TIMEOUT',
        'DWCA_USER_AGENT',
        'DWCA_PREFETCH_THESAURI',
        'DWCA_STRICT_NAMESPACE',
        'DWCA_ALLOW_UNKNOWN_TERMS',
        'DWCA_TERMS_FILE',
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def settings():
    """Default settings, ignoring any .env file in the working directory."""
    return ParserSettings(_env_file=None)


@pytest.fixture
def extension_xml() -> bytes:
    return (FIXTURES_DIR / 'occurrence_identifier.xml').read_bytes()


@pytest.fixture
def sex_xml() -> bytes:
    return (FIXTURES_DIR / 'sex.xml').read_bytes()


@pytest.fixture
def fake_fetcher(sex_xml):
    """Fetcher serving the sex vocabulary at its rs.gbif.org URL."""
    return FakeFetcher({SEX_URL: sex_xml})
