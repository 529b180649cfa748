"""
Attribute coercers used by InvokeSetter rules.

Each coercer takes the raw attribute string and returns the value for the
target field, or raises ValueError when the string cannot be converted.
The rule engine turns that ValueError into a non-fatal DataError and leaves
the field absent. Absent attributes never reach a coercer.
"""

import re
from typing import Any, Callable

from pydantic import AnyUrl, TypeAdapter, ValidationError

from dwca_extensions.terms import TermRegistry

Coercer = Callable[[str], Any]

_url_adapter = TypeAdapter(AnyUrl)
_bool_adapter = TypeAdapter(bool)
_int_adapter = TypeAdapter(int)

_WHITESPACE = re.compile(r'\s')


def _first_error(error: ValidationError) -> str:
    errors = error.errors(include_url=False)
    return errors[0]['msg'] if errors else str(error)


def to_text(value: str) -> str:
    """Pass the raw string through unchanged."""
    return value


def to_name(value: str) -> str:
    """
    Replace every whitespace character with an underscore.

    Example:
        >>> to_name('Occurrence Identifier')
        'Occurrence_Identifier'
    """
    return _WHITESPACE.sub('_', value)


def to_url(value: str) -> str:
    """
    Validate an absolute URL.

    Returns:
        The stripped URL string

    Raises:
        ValueError: If the value is not an absolute URL

    Example:
        >>> to_url('http://rs.gbif.org/terms/')
        'http://rs.gbif.org/terms/'
        >>> to_url('not a url')  # Raises ValueError
    """
    candidate = value.strip()
    try:
        _url_adapter.validate_python(candidate)
    except ValidationError as e:
        raise ValueError(f"invalid URL: {_first_error(e)}") from e
    return candidate


def to_bool(value: str) -> bool:
    """
    Parse a boolean ('true'/'false', 'yes'/'no', '1'/'0', 'on'/'off', ...).

    Raises:
        ValueError: If the value is not a recognised boolean literal
    """
    try:
        return _bool_adapter.validate_python(value.strip().lower())
    except ValidationError as e:
        raise ValueError(f"invalid boolean: {_first_error(e)}") from e


def to_int(value: str) -> int:
    """
    Parse an integer.

    Raises:
        ValueError: If the value is not an integer literal
    """
    try:
        return _int_adapter.validate_python(value.strip())
    except ValidationError as e:
        raise ValueError(f"invalid integer: {_first_error(e)}") from e


def term_coercer(registry: TermRegistry) -> Coercer:
    """
    Build a coercer resolving qualified names through a term registry.

    Args:
        registry: Registry used for lookups

    Returns:
        Coercer returning a Term, raising ValueError if the name is unknown
    """
    def to_term(value: str):
        term = registry.find_term(value)
        if term is None:
            raise ValueError("unknown term")
        return term

    return to_term
