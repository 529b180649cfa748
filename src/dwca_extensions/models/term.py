"""
Term identifier model.

A Term is what the term registry hands back when resolving a qualified name
such as 'http://rs.tdwg.org/dwc/terms/Occurrence' or 'dwc:Occurrence'.
"""

from typing import Optional
from pydantic import BaseModel, Field


class Term(BaseModel):
    """
    Canonical term identifier.

    Attributes:
        namespace: Namespace URI, including its trailing separator
        simple_name: Local term name within the namespace
        prefix: Conventional prefix for the namespace (None for unknown namespaces)
        known: False for ad-hoc terms created outside the catalogue

    Example:
        >>> term = Term(namespace='http://rs.tdwg.org/dwc/terms/', simple_name='Occurrence', prefix='dwc')
        >>> term.qualified_name
        'http://rs.tdwg.org/dwc/terms/Occurrence'
        >>> term.prefixed_name
        'dwc:Occurrence'
    """

    namespace: str = Field(
        ...,
        description="Namespace URI",
        examples=["http://rs.tdwg.org/dwc/terms/"]
    )

    simple_name: str = Field(
        ...,
        min_length=1,
        description="Local term name",
        examples=["Occurrence"]
    )

    prefix: Optional[str] = Field(
        default=None,
        description="Namespace prefix",
        examples=["dwc"]
    )

    known: bool = Field(
        default=True,
        description="Whether the term is listed in the catalogue"
    )

    model_config = {
        "frozen": True
    }

    @property
    def qualified_name(self) -> str:
        """Full URI of the term."""
        return f"{self.namespace}{self.simple_name}"

    @property
    def prefixed_name(self) -> str:
        """Prefixed form, falling back to the qualified name."""
        if self.prefix:
            return f"{self.prefix}:{self.simple_name}"
        return self.qualified_name

    def __str__(self) -> str:
        return self.prefixed_name
