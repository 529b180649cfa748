"""
High-level entry points for loading extensions and vocabularies.

- parse_extension / parse_vocabulary: parse a document already in hand
- ExtensionLoader: fetch extension documents by URL and parse them,
  one at a time or concurrently

Design:
- Every parse gets its own engine and thesaurus cache (nothing is shared
  between worker threads except the fetch service)
- Batch loading is resilient: one failing URL does not stop the others
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional
import logging

from dwca_extensions.config import ParserSettings, get_settings
from dwca_extensions.errors import ExtensionParseError, FetchError
from dwca_extensions.models.extension import Extension
from dwca_extensions.models.vocabulary import Vocabulary
from dwca_extensions.parsers.extension_parser import ExtensionParser
from dwca_extensions.parsers.vocabulary_parser import VocabularyParser
from dwca_extensions.parsers.xml_parser import Source
from dwca_extensions.services.thesaurus_fetcher import Fetcher, ThesaurusFetcher

logger = logging.getLogger(__name__)


def parse_extension(
    source: Source,
    url: Optional[str] = None,
    dev: bool = False,
    vocabularies: Optional[Mapping[str, Vocabulary]] = None,
    fetcher: Optional[Fetcher] = None
) -> Extension:
    """
    Parse an extension definition document.

    Args:
        source: Document bytes, path or binary file object
        url: Source URL, stored on the Extension
        dev: Mark the extension as a development version
        vocabularies: Pre-built vocabularies keyed by thesaurus URL
        fetcher: Fetch service for thesaurus URLs

    Returns:
        Extension with properties and attached vocabularies

    Raises:
        DocumentSyntaxError: If the document is malformed
        ThesaurusResolutionError: If a referenced thesaurus cannot be resolved

    Example:
        >>> ext = parse_extension(Path('tests/fixtures/extension.xml'))
        >>> ext.name
        'Occurrence_Identifier'
    """
    return ExtensionParser(fetcher=fetcher).parse(source, url=url, dev=dev, vocabularies=vocabularies)


def parse_vocabulary(source: Source, url: Optional[str] = None) -> Vocabulary:
    """
    Parse a thesaurus document.

    Raises:
        DocumentSyntaxError: If the document is malformed
    """
    return VocabularyParser().parse(source, url=url)


@dataclass
class LoadFailure:
    """A URL that could not be loaded."""
    url: str
    error: str
    error_type: str


@dataclass
class LoadResult:
    """Outcome of a batch load."""
    extensions: List[Extension] = field(default_factory=list)
    failures: List[LoadFailure] = field(default_factory=list)

    @property
    def stats(self) -> Dict[str, int]:
        return {
            'loaded': len(self.extensions),
            'failed': len(self.failures),
            'properties': sum(len(ext.properties) for ext in self.extensions),
        }


class ExtensionLoader:
    """
    Fetches and parses extension documents by URL.

    Usage:
        loader = ExtensionLoader()
        ext = loader.load('http://rs.gbif.org/extension/gbif/1.0/vernacularname.xml')

        result = loader.load_many(urls, max_workers=4)
        print(result.stats)
    """

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        parser: Optional[ExtensionParser] = None,
        settings: Optional[ParserSettings] = None
    ):
        """
        Initialize loader.

        Args:
            fetcher: Fetch service used for extension and thesaurus URLs
            parser: Extension parser (built around `fetcher` if omitted)
            settings: Runtime settings
        """
        self.settings = settings or get_settings()
        self.fetcher = fetcher or ThesaurusFetcher(self.settings)
        self.parser = parser or ExtensionParser(fetcher=self.fetcher, settings=self.settings)

    def load(
        self,
        url: str,
        dev: bool = False,
        vocabularies: Optional[Mapping[str, Vocabulary]] = None
    ) -> Extension:
        """
        Fetch one extension document and parse it.

        Raises:
            FetchError: If the extension document cannot be fetched
            ExtensionParseError: If parsing fails
        """
        logger.info(f"Loading extension {url}")
        content = self.fetcher.fetch(url)
        return self.parser.parse(content, url=url, dev=dev, vocabularies=vocabularies)

    def load_many(
        self,
        urls: Iterable[str],
        dev: bool = False,
        max_workers: int = 4
    ) -> LoadResult:
        """
        Load several extensions concurrently.

        Args:
            urls: Extension URLs (duplicates are loaded once)
            dev: Mark all extensions as development versions
            max_workers: Thread pool size

        Returns:
            LoadResult with extensions sorted by row type and URL, plus failures
        """
        unique_urls = list(dict.fromkeys(urls))
        result = LoadResult()

        if not unique_urls:
            return result

        logger.info(f"Loading {len(unique_urls)} extensions with {max_workers} workers")

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_url = {
                executor.submit(self.load, url, dev): url
                for url in unique_urls
            }

            for future in as_completed(future_to_url):
                url = future_to_url[future]
                try:
                    result.extensions.append(future.result())
                except (FetchError, ExtensionParseError) as e:
                    logger.error(f"Failed to load extension {url}: {e}")
                    result.failures.append(
                        LoadFailure(url=url, error=str(e), error_type=type(e).__name__)
                    )

        result.extensions.sort()
        result.failures.sort(key=lambda f: f.url)

        logger.info(
            f"Extension load complete: {result.stats['loaded']} loaded, "
            f"{result.stats['failed']} failed"
        )
        return result
