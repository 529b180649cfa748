"""
Exception hierarchy for extension and vocabulary parsing.

Fatal errors (abort the parse, no partial object is returned):
- DocumentSyntaxError: the XML itself is malformed
- ThesaurusResolutionError: a referenced thesaurus could not be fetched or parsed
- RuleConfigurationError: a rule set left the construction stack unbalanced

Non-fatal errors:
- DataError: an attribute value could not be coerced; the field stays absent

Transport:
- FetchError: raised by fetch services, wrapped by the resolver
"""

from typing import Optional


class ExtensionParseError(Exception):
    """
    Base exception for fatal parse failures.

    Args:
        message: Human-readable error description
        url: Source URL of the document being parsed (if known)
        line: 1-based line number reported by the XML reader (if known)
        column: 1-based column number reported by the XML reader (if known)
    """

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None
    ):
        self.message = message
        self.url = url
        self.line = line
        self.column = column
        super().__init__(message)

    def __str__(self) -> str:
        location = []
        if self.url:
            location.append(f'in "{self.url}"')
        if self.line is not None:
            position = f"line {self.line}"
            if self.column is not None:
                position += f", column {self.column}"
            location.append(position)

        if not location:
            return self.message
        return f"{self.message} ({', '.join(location)})"


class DocumentSyntaxError(ExtensionParseError):
    """Malformed XML that the tokenizer cannot read."""


class ThesaurusResolutionError(ExtensionParseError):
    """
    A thesaurus referenced from an extension could not be fetched or parsed.

    Args:
        message: Human-readable error description
        thesaurus_url: URL of the thesaurus that failed
        url: Source URL of the enclosing extension document
    """

    def __init__(
        self,
        message: str,
        *,
        thesaurus_url: str,
        url: Optional[str] = None
    ):
        self.thesaurus_url = thesaurus_url
        super().__init__(message, url=url)


class RuleConfigurationError(ExtensionParseError):
    """A rule set is inconsistent (e.g. a Create without a matching AttachChild)."""


class DataError(ValueError):
    """
    An attribute value could not be coerced to its semantic type.

    Never escapes a parse: the engine records it and leaves the field absent.

    Args:
        field: Target field name
        value: Raw attribute value
        reason: Why coercion failed
    """

    def __init__(self, field: str, value: Optional[str], reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Cannot set {field} from {value!r}: {reason}")


class FetchError(Exception):
    """
    A document could not be retrieved.

    Args:
        url: URL that was requested
        reason: Transport-level description of the failure
        status_code: HTTP status code if a response was received
    """

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {reason}")
