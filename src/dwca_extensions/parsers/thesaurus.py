"""
Thesaurus reference resolution for one extension parse.

A ThesaurusResolver is the resolution scope of a single extension document:
it owns the URL → Vocabulary cache, so a thesaurus referenced by several
properties is fetched and parsed once and the same Vocabulary instance is
attached to each of them. Resolvers are never shared between parses.

State machine per reference:
    NOT_STARTED → RESOLVING → ATTACHED → IDLE → (next reference) RESOLVING ...
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional

from dwca_extensions.errors import ThesaurusResolutionError
from dwca_extensions.models.vocabulary import Vocabulary

if TYPE_CHECKING:
    from dwca_extensions.parsers.vocabulary_parser import VocabularyParser
    from dwca_extensions.services.thesaurus_fetcher import Fetcher

logger = logging.getLogger(__name__)


class ResolutionState(str, Enum):
    NOT_STARTED = 'not_started'
    RESOLVING = 'resolving'
    ATTACHED = 'attached'
    IDLE = 'idle'


class ThesaurusResolver:
    """
    Resolves thesaurus URLs to Vocabulary objects within one parse.

    Args:
        fetcher: Object with fetch(url) -> bytes
        vocabulary_parser: Parser for fetched thesaurus documents
        vocabularies: Pre-built vocabularies keyed by URL (seed the cache)
        source_url: URL of the enclosing extension (for error messages)

    Example:
        >>> resolver = ThesaurusResolver(fetcher, VocabularyParser())
        >>> vocab = resolver.resolve('http://rs.gbif.org/vocabulary/gbif/sex.xml')
        >>> resolver.resolve('http://rs.gbif.org/vocabulary/gbif/sex.xml') is vocab
        True
        >>> resolver.fetch_count
        1
    """

    def __init__(
        self,
        fetcher: 'Fetcher',
        vocabulary_parser: 'VocabularyParser',
        vocabularies: Optional[Mapping[str, Vocabulary]] = None,
        source_url: Optional[str] = None
    ):
        self.fetcher = fetcher
        self.vocabulary_parser = vocabulary_parser
        self.source_url = source_url
        self.cache: Dict[str, Vocabulary] = dict(vocabularies or {})
        self.state = ResolutionState.NOT_STARTED
        self.transitions: List[ResolutionState] = [self.state]
        self.fetch_count = 0
        self.attached_count = 0

    def resolve(self, url: str) -> Vocabulary:
        """
        Return the Vocabulary for a URL, fetching and parsing it on first use.

        Args:
            url: Thesaurus URL as written in the document

        Returns:
            Cached or freshly parsed Vocabulary

        Raises:
            ThesaurusResolutionError: If the document cannot be fetched or parsed
        """
        cached = self.cache.get(url)
        if cached is not None:
            logger.debug(f"Reusing cached thesaurus {url}")
            return cached

        self._transition(ResolutionState.RESOLVING)
        logger.info(f"Resolving thesaurus {url}")

        try:
            content = self.fetcher.fetch(url)
            self.fetch_count += 1
            vocabulary = self.vocabulary_parser.parse(content, url=url)
        except Exception as e:
            logger.error(
                f"Thesaurus {url} referenced from {self.source_url or '<stream>'} "
                f"could not be resolved: {e}"
            )
            raise ThesaurusResolutionError(
                f"Cannot resolve thesaurus {url}: {e}",
                thesaurus_url=url,
                url=self.source_url
            ) from e

        self.cache[url] = vocabulary
        logger.debug(
            f"Thesaurus {url} parsed: '{vocabulary.title}' with {len(vocabulary.concepts)} concepts"
        )
        return vocabulary

    def attach(self, target: Any, url: str, field: str = 'vocabulary') -> Vocabulary:
        """
        Resolve a URL and set the Vocabulary on `target`.

        Args:
            target: Object on top of the construction stack
            url: Thesaurus URL
            field: Attribute of target receiving the Vocabulary

        Returns:
            The attached Vocabulary
        """
        vocabulary = self.resolve(url)
        setattr(target, field, vocabulary)
        self._transition(ResolutionState.ATTACHED)
        self.attached_count += 1
        self._transition(ResolutionState.IDLE)
        return vocabulary

    def prefetch(self, urls: Iterable[str]) -> List[Vocabulary]:
        """
        Resolve a batch of URLs up front (first pass of two-pass parsing).

        Args:
            urls: Thesaurus URLs in document order (duplicates allowed)

        Returns:
            Vocabularies in the order of the distinct URLs
        """
        resolved = []
        seen = set()
        for url in urls:
            if url in seen:
                continue
            seen.add(url)
            resolved.append(self.resolve(url))
        if resolved:
            self._transition(ResolutionState.IDLE)
        return resolved

    def _transition(self, state: ResolutionState) -> None:
        self.state = state
        self.transitions.append(state)
