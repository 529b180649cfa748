"""
User-facing API for parsing and loading extension definitions.
"""

from dwca_extensions.api.loader import (
    ExtensionLoader,
    LoadFailure,
    LoadResult,
    parse_extension,
    parse_vocabulary,
)

__all__ = [
    'ExtensionLoader',
    'LoadFailure',
    'LoadResult',
    'parse_extension',
    'parse_vocabulary',
]
