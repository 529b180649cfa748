"""
Pydantic models for Darwin Core extension definitions.

Schema Design:
- Extension is the root of one definition document
- ExtensionProperty keeps a weak back-reference to its Extension
  (the Extension owns its properties, never the other way round)
- Identity of an Extension is (row_type, url)
"""

import weakref
from datetime import datetime
from functools import total_ordering
from typing import Optional, List, Union

from pydantic import BaseModel, Field, PrivateAttr

from .term import Term
from .vocabulary import Vocabulary


class ExtensionProperty(BaseModel):
    """
    A single column/term definition of an extension.

    Example:
        >>> prop = ExtensionProperty(
        ...     qualname='http://rs.tdwg.org/dwc/terms/locality',
        ...     name='locality',
        ...     required=False
        ... )
        >>> prop.extension is None
        True
    """

    qualname: Optional[str] = Field(
        default=None,
        description="Qualified term name",
        examples=["http://rs.tdwg.org/dwc/terms/locality"]
    )
    name: Optional[str] = Field(default=None, examples=["locality"])
    namespace: Optional[str] = Field(default=None, examples=["http://rs.tdwg.org/dwc/terms/"])
    group: Optional[str] = Field(default=None, examples=["Location"])
    type: Optional[str] = Field(default=None, description="Declared data type", examples=["string"])
    required: bool = Field(default=False)
    link: Optional[str] = Field(default=None, description="Documentation URL")
    description: Optional[str] = Field(default=None)
    examples: Optional[str] = Field(default=None, description="Example values as free text")
    column_length: Optional[int] = Field(default=None, description="Maximum column length")
    vocabulary: Optional[Vocabulary] = Field(
        default=None,
        description="Thesaurus attached through the 'thesaurus' attribute"
    )

    _extension: Optional[weakref.ReferenceType] = PrivateAttr(default=None)

    @property
    def extension(self) -> Optional['Extension']:
        """Owning extension, or None if detached or already collected."""
        if self._extension is None:
            return None
        return self._extension()

    def attach_to(self, extension: 'Extension') -> None:
        self._extension = weakref.ref(extension)

    @property
    def has_vocabulary(self) -> bool:
        return self.vocabulary is not None

    def __str__(self) -> str:
        return self.qualname or self.name or '<unnamed property>'


@total_ordering
class Extension(BaseModel):
    """
    A Darwin Core extension definition.

    Equality and hashing use (row_type, url) only. Sorting is by the row type's
    qualified name, then by source URL.

    Example:
        >>> ext = Extension(url='http://rs.gbif.org/extension/dwc/occurrence.xml')
        >>> ext.add_property(ExtensionProperty(qualname='http://rs.tdwg.org/dwc/terms/locality'))
        >>> ext.get_property('HTTP://RS.TDWG.ORG/DWC/TERMS/LOCALITY').extension is ext
        True
    """

    title: Optional[str] = Field(default=None, description="Human readable title")
    name: Optional[str] = Field(
        default=None,
        description="Table, file and XML tag name; whitespace replaced by underscores",
        examples=["Occurrence_Identifier"]
    )
    url: Optional[str] = Field(default=None, description="Source URL of the definition document")
    row_type: Optional[Term] = Field(default=None)
    subject: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    namespace: Optional[str] = Field(default=None)
    link: Optional[str] = Field(default=None, description="Documentation URL")
    installed: bool = Field(default=False)
    core: bool = Field(default=False, description="Whether this is the dataset's core record type")
    dev: bool = Field(default=False, description="Development (unstable) definition")
    modified: Optional[datetime] = Field(default=None, description="Last modification time, set by the caller")
    properties: List[ExtensionProperty] = Field(default_factory=list)

    def add_property(self, prop: ExtensionProperty) -> None:
        prop.attach_to(self)
        self.properties.append(prop)

    def get_property(self, term: Union[str, Term, None]) -> Optional[ExtensionProperty]:
        """
        Find a property by qualified name (case-insensitive).

        Args:
            term: Qualified name string or Term

        Returns:
            First matching property in document order, or None
        """
        if term is None:
            return None
        if isinstance(term, Term):
            term = term.qualified_name
        needle = term.lower()
        for prop in self.properties:
            if prop.qualname is not None and prop.qualname.lower() == needle:
                return prop
        return None

    def has_property(self, term: Union[str, Term, None]) -> bool:
        return self.get_property(term) is not None

    @property
    def row_type_name(self) -> str:
        return self.row_type.qualified_name if self.row_type else ''

    def _identity(self) -> tuple:
        return (self.row_type, self.url)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Extension):
            return NotImplemented
        return self._identity() == other._identity()

    def __lt__(self, other: 'Extension') -> bool:
        if not isinstance(other, Extension):
            return NotImplemented
        return (self.row_type_name, self.url or '') < (other.row_type_name, other.url or '')

    def __hash__(self) -> int:
        return hash(self._identity())

    def __str__(self) -> str:
        return f"Extension(name={self.name}, rowType={self.row_type})"
