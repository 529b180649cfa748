"""
Low-level XML reading for definition documents.

Documents are read with lxml's iterparse (start/end events) so rules fire
while the document streams in:
1. Element names are reduced to local names before matching
2. Attributes are passed as-is ('{uri}name' keys for namespaced attributes)
3. Entity resolution and network access are disabled in the reader
4. Processed elements are cleared to keep memory flat on large documents
"""

import io
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Iterator, List, Optional, Tuple, Union

from lxml import etree

from dwca_extensions.config import ParserSettings, get_settings
from dwca_extensions.errors import DataError, DocumentSyntaxError
from dwca_extensions.parsers.engine import RuleEngine, get_attribute
from dwca_extensions.parsers.thesaurus import ThesaurusResolver

logger = logging.getLogger(__name__)

Source = Union[bytes, bytearray, str, Path, IO[bytes]]

_XML_DECLARATION = re.compile(r'^\s*<\?xml[^>]*\?>')


@dataclass
class ParseResult:
    """
    Outcome of one parse.

    Attributes:
        document: Root object built from the document
        data_errors: Non-fatal coercion failures, in document order
        trace: Fired rules as (event, path, pattern, rule type name) tuples, if tracing was on
    """
    document: Any
    data_errors: List[DataError] = field(default_factory=list)
    trace: Optional[List[Tuple[str, str, str, str]]] = None


def open_source(source: Source) -> IO[bytes]:
    """
    Turn a document source into a binary stream.

    Args:
        source: Raw bytes, a binary file object, a filesystem path,
            or a str holding XML markup (starting with '<'). Markup is
            already decoded, so its XML declaration is dropped and the
            text is re-encoded as UTF-8.

    Returns:
        Binary file object positioned at the start of the document
    """
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    if isinstance(source, str) and source.lstrip().startswith('<'):
        return io.BytesIO(_XML_DECLARATION.sub('', source, count=1).encode('utf-8'))
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Document not found: {path}")
        return open(path, 'rb')
    if hasattr(source, 'read'):
        return source
    raise TypeError(f"Unsupported document source: {type(source).__name__}")


def iter_events(source: Source, url: Optional[str] = None) -> Iterator[Tuple[str, etree._Element]]:
    """
    Stream (event, element) pairs for every element start and end.

    Raises:
        DocumentSyntaxError: If the document is not well-formed XML
    """
    stream = open_source(source)
    close = stream is not source
    try:
        context = etree.iterparse(
            stream,
            events=('start', 'end'),
            resolve_entities=False,
            no_network=True,
            remove_comments=True,
            remove_pis=True
        )
        for event, elem in context:
            yield event, elem
            if event == 'end':
                elem.clear(keep_tail=True)
                while elem.getprevious() is not None:
                    del elem.getparent()[0]
    except etree.XMLSyntaxError as e:
        line, column = e.position if e.position else (e.lineno, None)
        logger.error(f"Malformed XML in {url or '<stream>'}: {e.msg}")
        raise DocumentSyntaxError(
            f"Malformed XML: {e.msg}",
            url=url,
            line=line,
            column=column
        ) from e
    finally:
        if close:
            stream.close()


def collect_attribute_values(
    source: Source,
    element: str,
    attribute: str,
    url: Optional[str] = None
) -> List[str]:
    """
    Collect non-blank attribute values of all elements with a given local name.

    Used as the lightweight first pass of two-pass parsing.

    Args:
        source: Document source (bytes, path or binary file object)
        element: Local element name, e.g. 'property'
        attribute: Attribute local name, e.g. 'thesaurus'
        url: Source URL for error messages

    Returns:
        Stripped values in document order (duplicates kept)

    Example:
        >>> collect_attribute_values(xml_bytes, 'property', 'thesaurus')
        ['http://rs.gbif.org/vocabulary/gbif/sex.xml']
    """
    values = []
    for event, elem in iter_events(source, url):
        if event != 'start' or etree.QName(elem).localname != element:
            continue
        value = get_attribute(elem.attrib, attribute)
        if value is not None and value.strip():
            values.append(value.strip())
    return values


class DocumentParser:
    """
    Base class for rule-driven document parsers.

    Subclasses declare the rule namespace, the root object factory and the
    rule wiring; parse() builds a fresh RuleEngine for every call, so one
    parser instance can be used from several threads.

    Args:
        settings: Runtime settings (defaults to get_settings())
        trace: Record fired rules in ParseResult.trace
    """

    namespace: str = ''

    def __init__(self, settings: Optional[ParserSettings] = None, trace: bool = False):
        self.settings = settings or get_settings()
        self.trace = trace

    def create_root(self) -> Any:
        raise NotImplementedError

    def register_rules(self, engine: RuleEngine) -> None:
        raise NotImplementedError

    def build_engine(
        self,
        url: Optional[str] = None,
        resolver: Optional[ThesaurusResolver] = None
    ) -> RuleEngine:
        engine = RuleEngine(
            namespace=self.namespace,
            strict_namespace=self.settings.strict_namespace,
            resolver=resolver,
            source=url,
            trace=self.trace
        )
        self.register_rules(engine)
        return engine

    def parse(self, source: Source, url: Optional[str] = None) -> Any:
        """Parse a document and return its root object."""
        return self.parse_document(source, url=url).document

    def parse_document(
        self,
        source: Source,
        url: Optional[str] = None,
        root: Any = None,
        resolver: Optional[ThesaurusResolver] = None
    ) -> ParseResult:
        """
        Parse a document and report data errors alongside the result.

        Args:
            source: Document bytes, path or binary file object
            url: Source URL (used in errors and logs)
            root: Pre-built root object (defaults to create_root())
            resolver: Thesaurus resolver for ResolveThesaurus rules

        Returns:
            ParseResult holding the root object

        Raises:
            DocumentSyntaxError: Malformed XML
            ThesaurusResolutionError: A referenced thesaurus failed
            RuleConfigurationError: Rules left the construction stack unbalanced
        """
        engine = self.build_engine(url, resolver)
        engine.start_document(self.create_root() if root is None else root)

        for event, elem in iter_events(source, url):
            qname = etree.QName(elem)
            if event == 'start':
                engine.start_element(qname.localname, qname.namespace, elem.attrib)
            else:
                engine.end_element(qname.localname, qname.namespace)

        document = engine.end_document()
        logger.debug(
            f"Parsed {type(document).__name__} from {url or '<stream>'} "
            f"({len(engine.data_errors)} data errors)"
        )
        return ParseResult(document=document, data_errors=list(engine.data_errors), trace=engine.trace)
