"""
Unit tests for extension document parsing.

Covers the end-to-end behaviour of one parse: attribute coercion,
property order and back-references, thesaurus resolution with per-parse
caching, two-pass prefetching and namespace handling.
"""

import io
from unittest.mock import Mock

import pytest

from dwca_extensions.config import ParserSettings
from dwca_extensions.errors import (
    DocumentSyntaxError,
    FetchError,
    RuleConfigurationError,
    ThesaurusResolutionError,
)
from dwca_extensions.models.extension import Extension
from dwca_extensions.parsers.extension_parser import ExtensionParser
from dwca_extensions.parsers.vocabulary_parser import VocabularyParser
from dwca_extensions.terms import TermRegistry

from conftest import EXTENSION_URL, FIXTURES_DIR, SEX_URL, FakeFetcher


VOCAB_URL = 'http://example.org/vocab.xml'

ALIVE_VOCABULARY = b"""<?xml version="1.0" encoding="UTF-8"?>
<thesaurus xmlns="http://rs.gbif.org/thesaurus/" xmlns:dc="http://purl.org/dc/terms/" dc:title="Status">
  <concept dc:identifier="alive">
    <preferred><term xml:lang="en" dc:title="Alive"/></preferred>
  </concept>
</thesaurus>
"""

SCENARIO_A = b"""<?xml version="1.0" encoding="UTF-8"?>
<extension xmlns="http://rs.gbif.org/extension/"
           name="Occurrence Identifier" rowType="http://rs.tdwg.org/dwc/terms/Occurrence">
  <property qualName="http://rs.tdwg.org/dwc/terms/locality" name="Locality" required="false"/>
</extension>
"""

PREFIXED_EXTENSION = """<?xml version="1.0" encoding="UTF-8"?>
<{prefix}extension {declaration}="http://rs.gbif.org/extension/"
    name="Prefixed" rowType="http://rs.tdwg.org/dwc/terms/Occurrence">
  <{prefix}property qualName="http://rs.tdwg.org/dwc/terms/locality" name="locality"
      group="Location" required="false" columnLength="255"/>
  <{prefix}property qualName="http://rs.tdwg.org/dwc/terms/sex" name="sex"
      group="Occurrence" required="true"/>
</{prefix}extension>
"""


def make_parser(fetcher=None, **settings) -> ExtensionParser:
    return ExtensionParser(
        fetcher=fetcher or FakeFetcher(),
        term_registry=TermRegistry(allow_unknown=False),
        settings=ParserSettings(_env_file=None, **settings)
    )


def property_document(*properties: str) -> bytes:
    body = '\n'.join(properties)
    return (
        '<extension xmlns="http://rs.gbif.org/extension/" name="Test" '
        'rowType="http://rs.tdwg.org/dwc/terms/Occurrence">\n'
        f'{body}\n'
        '</extension>'
    ).encode('utf-8')


class TestExtensionAttributes:
    """Scenario A and the rest of the extension-level wiring."""

    def test_name_whitespace_replaced_and_required_false(self):
        ext = make_parser().parse(SCENARIO_A)

        assert ext.name == 'Occurrence_Identifier'
        assert len(ext.properties) == 1
        assert ext.properties[0].required is False
        assert ext.properties[0].name == 'Locality'

    def test_row_type_resolved_through_registry(self):
        ext = make_parser().parse(SCENARIO_A)

        assert ext.row_type.prefixed_name == 'dwc:Occurrence'
        assert ext.row_type_name == 'http://rs.tdwg.org/dwc/terms/Occurrence'

    def test_namespaced_extension_attributes(self, extension_xml, fake_fetcher):
        ext = make_parser(fake_fetcher).parse(extension_xml, url=EXTENSION_URL)

        assert ext.title == 'Occurrence Identifier'
        assert ext.namespace == 'http://rs.tdwg.org/dwc/terms/'
        assert ext.link == 'http://rs.tdwg.org/dwc/terms/index.htm'
        assert ext.description == 'Alternative identifiers of an occurrence record.'
        assert ext.subject == 'Occurrence'

    def test_url_and_dev_flag_stored(self):
        ext = make_parser().parse(SCENARIO_A, url=EXTENSION_URL, dev=True)

        assert ext.url == EXTENSION_URL
        assert ext.dev is True
        assert ext.core is False

    def test_unknown_row_type_is_data_error(self):
        document = b'<extension name="X" rowType="http://example.org/terms/Widget"/>'

        result = make_parser().parse_extension(document)

        assert result.document.row_type is None
        assert result.document.name == 'X'
        assert [e.field for e in result.data_errors] == ['row_type']

    def test_unknown_row_type_allowed_by_registry(self):
        document = b'<extension rowType="http://example.org/terms/Widget"/>'
        parser = ExtensionParser(fetcher=FakeFetcher(), term_registry=TermRegistry(allow_unknown=True))

        ext = parser.parse(document)

        assert ext.row_type.qualified_name == 'http://example.org/terms/Widget'
        assert ext.row_type.known is False


class TestPropertyAttributes:

    def test_all_property_fields(self, extension_xml, fake_fetcher):
        locality = make_parser(fake_fetcher).parse(extension_xml).properties[0]

        assert locality.qualname == 'http://rs.tdwg.org/dwc/terms/locality'
        assert locality.name == 'Locality'
        assert locality.namespace == 'http://rs.tdwg.org/dwc/terms/'
        assert locality.group == 'Location'
        assert locality.type == 'string'
        assert locality.required is False
        assert locality.column_length == 255
        assert locality.link == 'http://rs.tdwg.org/dwc/terms/locality'
        assert locality.description == 'The specific description of the place.'
        assert locality.examples == 'Bariloche, 25 km NNE via Ruta Nacional 40'
        assert locality.vocabulary is None

    def test_property_order_preserved(self, extension_xml, fake_fetcher):
        ext = make_parser(fake_fetcher).parse(extension_xml)

        assert [p.name for p in ext.properties] == ['Locality', 'occurrenceID', 'sex', 'establishmentMeans']
        assert ext.properties[1].required is True

    def test_back_references(self, extension_xml, fake_fetcher):
        ext = make_parser(fake_fetcher).parse(extension_xml)

        assert all(p.extension is ext for p in ext.properties)

    def test_invalid_relation_leaves_link_empty(self):
        """Scenario D: a bad URL is not fatal and other fields are still set."""
        document = property_document(
            '<property qualName="http://rs.tdwg.org/dwc/terms/sex" name="sex" '
            'group="Occurrence" required="true" relation="this is not a url"/>'
        )

        result = make_parser().parse_extension(document)

        prop = result.document.properties[0]
        assert prop.link is None
        assert prop.qualname == 'http://rs.tdwg.org/dwc/terms/sex'
        assert prop.name == 'sex'
        assert prop.group == 'Occurrence'
        assert prop.required is True
        assert [e.field for e in result.data_errors] == ['link']

    @pytest.mark.parametrize('attribute,field', [
        ('required="sometimes"', 'required'),
        ('columnLength="wide"', 'column_length'),
    ])
    def test_bad_boolean_and_integer_are_not_fatal(self, attribute, field):
        document = property_document(f'<property name="sex" {attribute}/>')

        result = make_parser().parse_extension(document)

        prop = result.document.properties[0]
        assert prop.name == 'sex'
        assert prop.required is False
        assert prop.column_length is None
        assert [e.field for e in result.data_errors] == [field]


class TestThesaurusResolution:

    def test_vocabulary_attached(self):
        """Scenario B."""
        fetcher = FakeFetcher({VOCAB_URL: ALIVE_VOCABULARY})
        document = property_document(f'<property name="status" thesaurus="{VOCAB_URL}"/>')

        ext = make_parser(fetcher).parse(document)

        vocab = ext.properties[0].vocabulary
        assert vocab is not None
        assert vocab.concepts[0].preferred_terms[0].title == 'Alive'
        assert ext.properties[0].has_vocabulary

    def test_malformed_thesaurus_aborts_parse(self):
        """Scenario C: no Extension at all, not a partial one."""
        fetcher = FakeFetcher({VOCAB_URL: b'<thesaurus><concept></thesaurus>'})
        document = property_document(f'<property name="status" thesaurus="{VOCAB_URL}"/>')

        with pytest.raises(ThesaurusResolutionError) as exc_info:
            make_parser(fetcher).parse(document, url=EXTENSION_URL)

        error = exc_info.value
        assert error.thesaurus_url == VOCAB_URL
        assert error.url == EXTENSION_URL
        assert isinstance(error.__cause__, DocumentSyntaxError)

    def test_unreachable_thesaurus_aborts_parse(self):
        document = property_document(f'<property name="status" thesaurus="{VOCAB_URL}"/>')

        with pytest.raises(ThesaurusResolutionError) as exc_info:
            make_parser(FakeFetcher()).parse(document)

        assert isinstance(exc_info.value.__cause__, FetchError)

    def test_same_url_fetched_once_and_instance_shared(self, extension_xml, fake_fetcher):
        ext = make_parser(fake_fetcher).parse(extension_xml)

        sex, establishment_means = ext.properties[2], ext.properties[3]
        assert fake_fetcher.calls == [SEX_URL]
        assert sex.vocabulary is not None
        assert sex.vocabulary is establishment_means.vocabulary
        assert sex.vocabulary.title == 'Sex'

    def test_cache_is_per_parse(self, extension_xml, fake_fetcher):
        parser = make_parser(fake_fetcher)

        first = parser.parse(extension_xml)
        second = parser.parse(extension_xml)

        assert fake_fetcher.calls == [SEX_URL, SEX_URL]
        assert first.properties[2].vocabulary is not second.properties[2].vocabulary

    def test_seeded_vocabularies_are_not_fetched(self, extension_xml, sex_xml):
        fetcher = FakeFetcher()
        seeded = VocabularyParser().parse(sex_xml)

        ext = make_parser(fetcher).parse(extension_xml, vocabularies={SEX_URL: seeded})

        assert fetcher.calls == []
        assert ext.properties[2].vocabulary is seeded

    def test_document_without_references_never_fetches(self):
        fetcher = Mock(spec=['fetch'])

        make_parser(fetcher).parse(SCENARIO_A)

        fetcher.fetch.assert_not_called()


class TestPrefetch:
    """Two-pass mode: resolve every thesaurus before the rule pass."""

    def test_same_result_as_on_demand(self, extension_xml, sex_xml):
        on_demand = make_parser(FakeFetcher({SEX_URL: sex_xml})).parse(extension_xml, url=EXTENSION_URL)
        fetcher = FakeFetcher({SEX_URL: sex_xml})

        prefetched = make_parser(fetcher, prefetch_thesauri=True).parse(extension_xml, url=EXTENSION_URL)

        assert fetcher.calls == [SEX_URL]
        assert prefetched == on_demand
        assert [p.name for p in prefetched.properties] == [p.name for p in on_demand.properties]
        assert prefetched.properties[2].vocabulary == on_demand.properties[2].vocabulary
        assert prefetched.properties[2].vocabulary is prefetched.properties[3].vocabulary

    def test_prefetch_reads_file_objects_once(self, extension_xml, fake_fetcher):
        ext = make_parser(fake_fetcher, prefetch_thesauri=True).parse(io.BytesIO(extension_xml))

        assert len(ext.properties) == 4
        assert fake_fetcher.calls == [SEX_URL]

    def test_prefetch_from_path(self, fake_fetcher):
        ext = make_parser(fake_fetcher, prefetch_thesauri=True).parse(
            FIXTURES_DIR / 'occurrence_identifier.xml'
        )

        assert ext.properties[2].has_vocabulary

    def test_prefetch_failure_aborts_before_rule_pass(self, extension_xml):
        with pytest.raises(ThesaurusResolutionError):
            make_parser(FakeFetcher(), prefetch_thesauri=True).parse(extension_xml)


class TestNamespaces:

    def test_elements_without_namespace(self):
        document = b'<extension name="Plain"><property name="a"/></extension>'

        ext = make_parser().parse(document)

        assert ext.name == 'Plain'
        assert [p.name for p in ext.properties] == ['a']

    def test_foreign_namespace_matches_by_default(self):
        document = (
            b'<x:extension xmlns:x="http://example.org/other/" name="Foreign">'
            b'<x:property name="a"/></x:extension>'
        )

        ext = make_parser().parse(document)

        assert ext.name == 'Foreign'
        assert len(ext.properties) == 1

    def test_strict_namespace_ignores_foreign_elements(self):
        document = (
            b'<extension xmlns="http://rs.gbif.org/extension/" name="Own">'
            b'<x:property xmlns:x="http://example.org/other/" name="foreign"/>'
            b'<property name="own"/>'
            b'</extension>'
        )

        ext = make_parser(strict_namespace=True).parse(document)

        assert ext.name == 'Own'
        assert [p.name for p in ext.properties] == ['own']

    @pytest.mark.parametrize('strict', [False, True])
    @pytest.mark.parametrize('document', [
        PREFIXED_EXTENSION.format(prefix='e:', declaration='xmlns:e'),
        PREFIXED_EXTENSION.format(prefix='ns0:', declaration='xmlns:ns0'),
        PREFIXED_EXTENSION.format(prefix='', declaration='xmlns'),
    ], ids=['e-prefix', 'ns0-prefix', 'default-namespace'])
    def test_prefix_choice_does_not_change_result(self, document, strict):
        ext = make_parser(strict_namespace=strict).parse(document.encode('utf-8'))

        assert ext.name == 'Prefixed'
        assert [
            (p.qualname, p.name, p.group, p.required, p.column_length)
            for p in ext.properties
        ] == [
            ('http://rs.tdwg.org/dwc/terms/locality', 'locality', 'Location', False, 255),
            ('http://rs.tdwg.org/dwc/terms/sex', 'sex', 'Occurrence', True, None),
        ]


class TestParseResult:

    def test_trace_records_fired_rules(self):
        parser = ExtensionParser(
            fetcher=FakeFetcher(),
            term_registry=TermRegistry(allow_unknown=False),
            settings=ParserSettings(_env_file=None),
            trace=True
        )

        result = parser.parse_extension(SCENARIO_A)

        property_rules = [
            (event, rule) for event, path, pattern, rule in result.trace
            if path == 'extension/property'
        ]
        assert property_rules[0] == ('start', 'Create')
        assert property_rules[-1] == ('end', 'AttachChild')

    def test_trace_off_by_default(self):
        assert make_parser().parse_extension(SCENARIO_A).trace is None

    def test_malformed_extension(self):
        with pytest.raises(DocumentSyntaxError):
            make_parser().parse(b'<extension><property></extension>')

    def test_parses_are_independent(self, extension_xml, fake_fetcher):
        parser = make_parser(fake_fetcher)

        first = parser.parse(extension_xml, url=EXTENSION_URL)
        second = parser.parse(extension_xml, url=EXTENSION_URL)

        assert isinstance(first, Extension)
        assert first == second
        assert first is not second
        assert all(p.extension is second for p in second.properties)

    def test_repeated_parse_gives_identical_content(self, extension_xml, fake_fetcher):
        parser = make_parser(fake_fetcher)

        first = parser.parse(extension_xml, url=EXTENSION_URL)
        second = parser.parse(extension_xml, url=EXTENSION_URL)

        assert first.modified is None
        assert first.model_dump() == second.model_dump()

    def test_nested_property_is_configuration_error(self):
        document = property_document('<property name="outer"><property name="inner"/></property>')

        with pytest.raises(RuleConfigurationError, match='add_property') as exc_info:
            make_parser().parse(document, url='http://example.org/nested.xml')

        assert exc_info.value.url == 'http://example.org/nested.xml'
