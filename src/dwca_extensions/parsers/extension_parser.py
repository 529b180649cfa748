"""
Parser for Darwin Core extension definition documents.

Document shape:
    <extension title=".." name=".." namespace=".." rowType=".." relation=".."
               description=".." subject="..">
      <property qualName=".." name=".." namespace=".." group=".." type=".."
                required="true" relation=".." description=".." examples=".."
                columnLength="255" thesaurus="http://.../vocab.xml"/>
    </extension>

Every `thesaurus` URL is resolved into a Vocabulary during the parse. Within
one parse each distinct URL is fetched once and the same Vocabulary instance
is attached to every property that references it.
"""

import logging
from typing import Mapping, Optional

from dwca_extensions.config import EXTENSION_NAMESPACE, ParserSettings
from dwca_extensions.models.extension import Extension, ExtensionProperty
from dwca_extensions.models.vocabulary import Vocabulary
from dwca_extensions.parsers.engine import RuleEngine
from dwca_extensions.parsers.rules import AttachChild, Create, ResolveThesaurus
from dwca_extensions.parsers.thesaurus import ThesaurusResolver
from dwca_extensions.parsers.vocabulary_parser import VocabularyParser
from dwca_extensions.parsers.xml_parser import (
    DocumentParser,
    ParseResult,
    Source,
    collect_attribute_values,
    open_source,
)
from dwca_extensions.services.thesaurus_fetcher import Fetcher, ThesaurusFetcher
from dwca_extensions.terms import TermRegistry, get_term_registry
from dwca_extensions.validators import term_coercer, to_bool, to_int, to_name, to_url

logger = logging.getLogger(__name__)


class ExtensionParser(DocumentParser):
    """
    Builds an Extension from an extension definition document.

    The parser itself holds no per-document state; each call to parse()
    gets its own engine, construction stack and thesaurus cache.

    Args:
        fetcher: Fetch service for thesaurus URLs (defaults to ThesaurusFetcher)
        term_registry: Registry resolving the rowType attribute
        vocabulary_parser: Parser for referenced thesaurus documents
        settings: Runtime settings (prefetch_thesauri, strict_namespace, ...)
        trace: Record fired rules in ParseResult.trace

    Example:
        >>> parser = ExtensionParser()
        >>> ext = parser.parse(xml_bytes, url='http://rs.gbif.org/extension/gbif/1.0/description.xml')
        >>> ext.row_type.prefixed_name
        'gbif:Description'
    """

    namespace = EXTENSION_NAMESPACE

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        term_registry: Optional[TermRegistry] = None,
        vocabulary_parser: Optional[VocabularyParser] = None,
        settings: Optional[ParserSettings] = None,
        trace: bool = False
    ):
        super().__init__(settings=settings, trace=trace)
        self.fetcher = fetcher or ThesaurusFetcher(self.settings)
        self.term_registry = term_registry or get_term_registry()
        self.vocabulary_parser = vocabulary_parser or VocabularyParser(settings=self.settings)

    def create_root(self) -> Extension:
        return Extension()

    def register_rules(self, engine: RuleEngine) -> None:
        engine.add_attribute_setter('*/extension', 'title', 'title')
        engine.add_attribute_setter('*/extension', 'name', 'name', to_name)
        engine.add_attribute_setter('*/extension', 'namespace', 'namespace')
        engine.add_attribute_setter('*/extension', 'rowType', 'row_type', term_coercer(self.term_registry))
        engine.add_attribute_setter('*/extension', 'relation', 'link', to_url)
        engine.add_attribute_setter('*/extension', 'description', 'description')
        engine.add_attribute_setter('*/extension', 'subject', 'subject')

        engine.register('*/property', Create(ExtensionProperty))
        engine.add_attribute_setter('*/property', 'qualName', 'qualname')
        engine.add_attribute_setter('*/property', 'name', 'name')
        engine.add_attribute_setter('*/property', 'namespace', 'namespace')
        engine.add_attribute_setter('*/property', 'group', 'group')
        engine.add_attribute_setter('*/property', 'type', 'type')
        engine.add_attribute_setter('*/property', 'required', 'required', to_bool)
        engine.add_attribute_setter('*/property', 'relation', 'link', to_url)
        engine.add_attribute_setter('*/property', 'description', 'description')
        engine.add_attribute_setter('*/property', 'examples', 'examples')
        engine.add_attribute_setter('*/property', 'columnLength', 'column_length', to_int)
        engine.register('*/property', ResolveThesaurus('thesaurus', 'vocabulary'))
        engine.register('*/property', AttachChild('add_property'))

    def new_resolver(
        self,
        url: Optional[str] = None,
        vocabularies: Optional[Mapping[str, Vocabulary]] = None
    ) -> ThesaurusResolver:
        """Create the resolution scope for one parse."""
        return ThesaurusResolver(
            self.fetcher,
            self.vocabulary_parser,
            vocabularies=vocabularies,
            source_url=url
        )

    def parse(
        self,
        source: Source,
        url: Optional[str] = None,
        dev: bool = False,
        vocabularies: Optional[Mapping[str, Vocabulary]] = None
    ) -> Extension:
        """
        Parse an extension document.

        Args:
            source: Document bytes, path or binary file object
            url: Source URL, stored on the Extension
            dev: Mark the extension as a development version
            vocabularies: Pre-built vocabularies keyed by thesaurus URL

        Returns:
            Fully built Extension

        Raises:
            DocumentSyntaxError: If the document is malformed
            ThesaurusResolutionError: If a referenced thesaurus cannot be resolved
        """
        return self.parse_extension(source, url=url, dev=dev, vocabularies=vocabularies).document

    def parse_extension(
        self,
        source: Source,
        url: Optional[str] = None,
        dev: bool = False,
        vocabularies: Optional[Mapping[str, Vocabulary]] = None
    ) -> ParseResult:
        """Like parse(), but returns a ParseResult with data errors and trace."""
        resolver = self.new_resolver(url, vocabularies)

        if self.settings.prefetch_thesauri:
            source = _read_bytes(source)
            urls = collect_attribute_values(source, 'property', 'thesaurus', url=url)
            logger.debug(f"Prefetching {len(set(urls))} thesauri for {url or '<stream>'}")
            resolver.prefetch(urls)

        root = Extension(url=url, dev=dev)
        result = self.parse_document(source, url=url, root=root, resolver=resolver)

        logger.info(
            f"Parsed extension '{result.document.name}' from {url or '<stream>'}: "
            f"{len(result.document.properties)} properties, "
            f"{resolver.fetch_count} thesauri fetched"
        )
        return result


def _read_bytes(source: Source) -> bytes:
    """Read a source fully so it can be scanned twice."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    stream = open_source(source)
    try:
        return stream.read()
    finally:
        if stream is not source:
            stream.close()
