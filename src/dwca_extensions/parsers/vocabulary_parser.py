"""
Parser for GBIF thesaurus (vocabulary) documents.

Document shape:
    <thesaurus title=".." description=".." relation=".." URI="..">
      <concept relation=".." description=".." URI=".." identifier="..">
        <preferred><term lang="en" title="Alive"/></preferred>
        <alternative><term lang="de" title="Lebend"/></alternative>
      </concept>
    </thesaurus>

Attributes may carry any namespace prefix (dc:title, dc:URI, ...).
"""

from typing import Optional

from dwca_extensions.config import VOCABULARY_NAMESPACE
from dwca_extensions.models.vocabulary import Vocabulary, VocabularyConcept, VocabularyTerm
from dwca_extensions.parsers.engine import RuleEngine
from dwca_extensions.parsers.rules import AttachChild, Create
from dwca_extensions.parsers.xml_parser import DocumentParser, Source
from dwca_extensions.validators import to_url


class VocabularyParser(DocumentParser):
    """
    Builds a Vocabulary from a thesaurus document.

    Example:
        >>> vocab = VocabularyParser().parse(Path('tests/fixtures/sex.xml'))
        >>> vocab.concepts[0].get_preferred_term('en').title
        'Female'
    """

    namespace = VOCABULARY_NAMESPACE

    def create_root(self) -> Vocabulary:
        return Vocabulary()

    def register_rules(self, engine: RuleEngine) -> None:
        engine.add_attribute_setter('*/thesaurus', 'title', 'title')
        engine.add_attribute_setter('*/thesaurus', 'description', 'description')
        engine.add_attribute_setter('*/thesaurus', 'relation', 'link', to_url)
        engine.add_attribute_setter('*/thesaurus', 'URI', 'uri')

        engine.register('*/concept', Create(VocabularyConcept))
        engine.add_attribute_setter('*/concept', 'relation', 'link', to_url)
        engine.add_attribute_setter('*/concept', 'description', 'description')
        engine.add_attribute_setter('*/concept', 'URI', 'uri')
        engine.add_attribute_setter('*/concept', 'identifier', 'identifier')
        engine.register('*/concept', AttachChild('add_concept'))

        for group, method in (
            ('preferred', 'add_preferred_term'),
            ('alternative', 'add_alternative_term'),
        ):
            pattern = f'*/{group}/term'
            engine.register(pattern, Create(VocabularyTerm))
            engine.add_attribute_setter(pattern, 'lang', 'lang')
            engine.add_attribute_setter(pattern, 'title', 'title')
            engine.register(pattern, AttachChild(method))

    def parse(self, source: Source, url: Optional[str] = None) -> Vocabulary:
        """
        Parse a thesaurus document.

        Args:
            source: Document bytes, path or binary file object
            url: Source URL (used in errors and logs)

        Returns:
            Vocabulary with concepts and terms in document order

        Raises:
            DocumentSyntaxError: If the document is malformed
        """
        return super().parse(source, url=url)
