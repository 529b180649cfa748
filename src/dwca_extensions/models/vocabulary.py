"""
Pydantic models for GBIF thesaurus (vocabulary) documents.

Structure:
- Vocabulary: root of a thesaurus document
- VocabularyConcept: one controlled value, with preferred and alternative terms
- VocabularyTerm: a title in one language
"""

from pydantic import BaseModel, Field
from typing import Optional, List


DEFAULT_LANGUAGE = 'en'


class VocabularyTerm(BaseModel):
    """A display title of a concept in one language."""

    lang: Optional[str] = Field(
        default=None,
        description="Language tag",
        examples=["en"]
    )

    title: Optional[str] = Field(
        default=None,
        description="Display title",
        examples=["Alive"]
    )


class VocabularyConcept(BaseModel):
    """
    A single controlled value of a vocabulary.

    Preferred and alternative terms keep document order.

    Example:
        >>> concept = VocabularyConcept(identifier='alive')
        >>> concept.add_preferred_term(VocabularyTerm(lang='en', title='Alive'))
        >>> concept.get_preferred_term('de').title
        'Alive'
    """

    link: Optional[str] = Field(default=None, description="Documentation URL")
    description: Optional[str] = Field(default=None)
    uri: Optional[str] = Field(default=None, description="Canonical URI of the concept")
    identifier: Optional[str] = Field(default=None, description="Concept identifier")
    preferred_terms: List[VocabularyTerm] = Field(default_factory=list)
    alternative_terms: List[VocabularyTerm] = Field(default_factory=list)

    def add_preferred_term(self, term: VocabularyTerm) -> None:
        self.preferred_terms.append(term)

    def add_alternative_term(self, term: VocabularyTerm) -> None:
        self.alternative_terms.append(term)

    def get_preferred_term(self, lang: str = DEFAULT_LANGUAGE) -> Optional[VocabularyTerm]:
        """
        Preferred term in the requested language.

        Falls back to English, then to the first preferred term.

        Args:
            lang: Language tag (case-insensitive)

        Returns:
            Matching VocabularyTerm or None if the concept has no preferred terms
        """
        for wanted in (lang, DEFAULT_LANGUAGE):
            for term in self.preferred_terms:
                if term.lang and term.lang.lower() == wanted.lower():
                    return term
        return self.preferred_terms[0] if self.preferred_terms else None

    def matches(self, value: str) -> bool:
        """True if value equals identifier, URI, or any term title (case-insensitive)."""
        needle = value.strip().lower()
        candidates = [self.identifier, self.uri]
        candidates.extend(t.title for t in self.preferred_terms)
        candidates.extend(t.title for t in self.alternative_terms)
        return any(c is not None and c.lower() == needle for c in candidates)


class Vocabulary(BaseModel):
    """
    Root object of a thesaurus document.

    Example:
        >>> vocab = Vocabulary(title='Establishment Means')
        >>> vocab.add_concept(VocabularyConcept(identifier='native'))
        >>> vocab.find_concept('NATIVE').identifier
        'native'
    """

    title: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    link: Optional[str] = Field(default=None, description="Documentation URL")
    uri: Optional[str] = Field(default=None, description="Canonical URI of the vocabulary")
    concepts: List[VocabularyConcept] = Field(default_factory=list)

    def add_concept(self, concept: VocabularyConcept) -> None:
        self.concepts.append(concept)

    def find_concept(self, value: Optional[str]) -> Optional[VocabularyConcept]:
        """
        Find a concept by identifier, URI, or any preferred/alternative title.

        Args:
            value: Lookup value (case-insensitive)

        Returns:
            First matching concept in document order, or None
        """
        if not value or not value.strip():
            return None
        for concept in self.concepts:
            if concept.matches(value):
                return concept
        return None

    def __str__(self) -> str:
        return f"{self.title} ({len(self.concepts)} concepts)"
