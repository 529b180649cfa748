"""
Thesaurus Fetch Service

Retrieves raw document bytes for thesaurus (and extension) URLs:
- http/https through a shared requests.Session
- file:// URLs and plain filesystem paths read from disk
- Fail-fast: every failure is raised as FetchError, no retries
"""

import logging
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import unquote, urlparse

import requests
from requests import Session

from dwca_extensions.config import ParserSettings, get_settings
from dwca_extensions.errors import FetchError

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Anything that can turn a URL into document bytes."""

    def fetch(self, url: str) -> bytes:
        ...


class ThesaurusFetcher:
    """
    Blocking document fetcher with timeout and User-Agent from settings.

    Usage:
        fetcher = ThesaurusFetcher()
        content = fetcher.fetch('http://rs.gbif.org/vocabulary/gbif/sex.xml')
    """

    def __init__(
        self,
        settings: Optional[ParserSettings] = None,
        session: Optional[Session] = None
    ):
        """
        Initialize fetcher.

        Args:
            settings: Runtime settings (timeout, User-Agent)
            session: Pre-configured session (a new one is created otherwise)
        """
        self.settings = settings or get_settings()
        self.session = session or self._create_session()

    def _create_session(self) -> Session:
        session = Session()
        session.headers.update({
            'User-Agent': self.settings.user_agent,
            'Accept': 'application/xml, text/xml, */*'
        })
        return session

    def fetch(self, url: str) -> bytes:
        """
        Fetch a document.

        Args:
            url: http(s) URL, file:// URL or filesystem path

        Returns:
            Raw document bytes

        Raises:
            FetchError: On any transport or HTTP error
        """
        parsed = urlparse(url)
        if parsed.scheme in ('http', 'https'):
            return self._fetch_http(url)
        if parsed.scheme == 'file':
            return self._read_file(url, Path(unquote(parsed.path)))
        if parsed.scheme == '' or len(parsed.scheme) == 1:
            # Plain path (a one-letter scheme is a Windows drive)
            return self._read_file(url, Path(url))
        raise FetchError(url, f"unsupported URL scheme '{parsed.scheme}'")

    def _fetch_http(self, url: str) -> bytes:
        logger.debug(f"Fetching {url}")
        try:
            response = self.session.get(
                url,
                timeout=self.settings.http_timeout,
                allow_redirects=True
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"HTTP error fetching {url}: {status} - {e}")
            raise FetchError(url, str(e), status_code=status) from e
        except requests.exceptions.Timeout as e:
            logger.error(f"Timeout fetching {url} after {self.settings.http_timeout}s")
            raise FetchError(url, f"timed out after {self.settings.http_timeout}s") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed for {url}: {e}")
            raise FetchError(url, str(e)) from e

        logger.info(f"Fetched {url}: {len(response.content)} bytes")
        return response.content

    def _read_file(self, url: str, path: Path) -> bytes:
        try:
            content = path.read_bytes()
        except OSError as e:
            logger.error(f"Cannot read {path}: {e}")
            raise FetchError(url, str(e)) from e
        logger.debug(f"Read {path}: {len(content)} bytes")
        return content

    def close(self) -> None:
        self.session.close()
