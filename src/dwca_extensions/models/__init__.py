"""
Pydantic models for extension and vocabulary documents.

All objects are created while a document is parsed; the parse owns
them until it returns the root object to the caller.
"""

from dwca_extensions.models.term import Term
from dwca_extensions.models.vocabulary import Vocabulary, VocabularyConcept, VocabularyTerm
from dwca_extensions.models.extension import Extension, ExtensionProperty

__all__ = [
    'Term',
    'Vocabulary',
    'VocabularyConcept',
    'VocabularyTerm',
    'Extension',
    'ExtensionProperty',
]
