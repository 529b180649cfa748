"""
dwca-extensions: Darwin Core extension and GBIF thesaurus parsing library.

Main package exports for user-facing API.
"""

from dwca_extensions.api import ExtensionLoader, parse_extension, parse_vocabulary
from dwca_extensions.errors import (
    DataError,
    DocumentSyntaxError,
    ExtensionParseError,
    FetchError,
    RuleConfigurationError,
    ThesaurusResolutionError,
)
from dwca_extensions.models import Extension, ExtensionProperty, Vocabulary, VocabularyConcept, VocabularyTerm
from dwca_extensions.parsers import ExtensionParser, VocabularyParser

__all__ = [
    'parse_extension',
    'parse_vocabulary',
    'ExtensionLoader',
    'ExtensionParser',
    'VocabularyParser',
    'Extension',
    'ExtensionProperty',
    'Vocabulary',
    'VocabularyConcept',
    'VocabularyTerm',
    'ExtensionParseError',
    'DocumentSyntaxError',
    'ThesaurusResolutionError',
    'RuleConfigurationError',
    'DataError',
    'FetchError',
]
