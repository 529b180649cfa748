"""
Service layer for dwca-extensions.

- ThesaurusFetcher: retrieves thesaurus and extension documents over HTTP or from disk
- Fetcher: protocol accepted wherever a fetch service can be injected
"""

from dwca_extensions.services.thesaurus_fetcher import Fetcher, ThesaurusFetcher

__all__ = [
    'Fetcher',
    'ThesaurusFetcher',
]
