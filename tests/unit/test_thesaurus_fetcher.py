"""
Unit tests for the thesaurus fetch service (requests mocked).
"""

from unittest.mock import Mock

import pytest
import requests

from dwca_extensions.config import ParserSettings
from dwca_extensions.errors import FetchError
from dwca_extensions.services.thesaurus_fetcher import ThesaurusFetcher

from conftest import FIXTURES_DIR, SEX_URL


@pytest.fixture
def session():
    session = Mock()
    response = Mock()
    response.content = b'<thesaurus/>'
    response.raise_for_status = Mock()
    session.get.return_value = response
    return session


@pytest.fixture
def fetcher(session):
    settings = ParserSettings(_env_file=None, http_timeout=7.5, user_agent='test-agent/0.1')
    return ThesaurusFetcher(settings=settings, session=session)


class TestHttpFetch:

    def test_returns_response_bytes(self, fetcher, session):
        assert fetcher.fetch(SEX_URL) == b'<thesaurus/>'
        session.get.assert_called_once_with(SEX_URL, timeout=7.5, allow_redirects=True)

    def test_http_error_carries_status(self, fetcher, session):
        session.get.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError(
            '404 Client Error', response=Mock(status_code=404)
        )

        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch(SEX_URL)

        assert exc_info.value.status_code == 404
        assert exc_info.value.url == SEX_URL

    def test_timeout(self, fetcher, session):
        session.get.side_effect = requests.exceptions.Timeout()

        with pytest.raises(FetchError, match='timed out after 7.5s'):
            fetcher.fetch(SEX_URL)

    def test_connection_error(self, fetcher, session):
        session.get.side_effect = requests.exceptions.ConnectionError('refused')

        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch(SEX_URL)

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)

    def test_default_session_headers(self):
        settings = ParserSettings(_env_file=None, user_agent='test-agent/0.1')

        fetcher = ThesaurusFetcher(settings=settings)

        assert fetcher.session.headers['User-Agent'] == 'test-agent/0.1'
        fetcher.close()


class TestLocalFetch:

    def test_file_url(self, fetcher, session):
        path = FIXTURES_DIR / 'sex.xml'

        content = fetcher.fetch(path.resolve().as_uri())

        assert content == path.read_bytes()
        session.get.assert_not_called()

    def test_plain_path(self, fetcher):
        path = FIXTURES_DIR / 'sex.xml'

        assert fetcher.fetch(str(path)) == path.read_bytes()

    def test_missing_file(self, fetcher, tmp_path):
        with pytest.raises(FetchError):
            fetcher.fetch(str(tmp_path / 'absent.xml'))

    def test_unsupported_scheme(self, fetcher):
        with pytest.raises(FetchError, match="unsupported URL scheme 'ftp'"):
            fetcher.fetch('ftp://rs.gbif.org/vocabulary/gbif/sex.xml')
