"""
Term registry for resolving qualified names to canonical terms.

Backed by the term catalogue in data/terms.yaml (see config.TermsConfig).
Accepted input forms:
- full URI:       'http://rs.tdwg.org/dwc/terms/Occurrence'
- prefixed name:  'dwc:Occurrence'
- simple name:    'Occurrence' (only if unambiguous in the catalogue)
"""

import logging
from typing import Dict, List, Optional, Tuple

from dwca_extensions.config import TermsConfig, get_settings, get_terms_config
from dwca_extensions.models.term import Term

logger = logging.getLogger(__name__)


class TermRegistry:
    """
    Lookup of known terms by URI, prefixed name or simple name.

    Example:
        >>> registry = TermRegistry()
        >>> registry.find_term('dwc:Occurrence').qualified_name
        'http://rs.tdwg.org/dwc/terms/Occurrence'
        >>> registry.find_term('http://example.org/terms/Unknown') is None
        True
    """

    def __init__(
        self,
        config: Optional[TermsConfig] = None,
        allow_unknown: Optional[bool] = None
    ):
        """
        Initialize registry.

        Args:
            config: Term catalogue (defaults to the packaged catalogue)
            allow_unknown: Create ad-hoc terms for well-formed URIs that are not
                in the catalogue (defaults to DWCA_ALLOW_UNKNOWN_TERMS)
        """
        self.config = config or get_terms_config()
        self.allow_unknown = (
            get_settings().allow_unknown_terms if allow_unknown is None else allow_unknown
        )

        self._by_uri: Dict[str, Term] = {}
        self._by_simple_name: Dict[str, List[Term]] = {}

        for prefix, names in self.config.terms.items():
            namespace = self.config.namespace_for(prefix)
            if namespace is None:
                logger.warning(f"Term catalogue lists terms for undeclared prefix '{prefix}'")
                continue
            for name in names:
                term = Term(namespace=namespace, simple_name=name, prefix=prefix)
                self._by_uri[term.qualified_name.lower()] = term
                self._by_simple_name.setdefault(name.lower(), []).append(term)

        logger.debug(f"Term registry loaded with {len(self._by_uri)} terms")

    def __len__(self) -> int:
        return len(self._by_uri)

    def find_term(self, value: Optional[str]) -> Optional[Term]:
        """
        Resolve a qualified name to a Term.

        Args:
            value: URI, prefixed name or simple name

        Returns:
            Matching Term, an ad-hoc Term when unknown terms are allowed,
            or None if the value cannot be resolved
        """
        if value is None:
            return None
        value = value.strip()
        if not value or any(c.isspace() for c in value):
            return None

        if '://' in value:
            term = self._by_uri.get(value.lower())
            if term is not None:
                return term
            return self._unknown_term(value)

        if ':' in value:
            prefix, _, name = value.partition(':')
            namespace = self.config.namespace_for(prefix)
            if namespace is None or not name:
                return None
            term = self._by_uri.get(f"{namespace}{name}".lower())
            if term is not None:
                return term
            if self.allow_unknown:
                return Term(namespace=namespace, simple_name=name, prefix=prefix, known=False)
            return None

        candidates = self._by_simple_name.get(value.lower(), [])
        if len(candidates) == 1:
            return candidates[0]
        if len(candidates) > 1:
            logger.debug(
                f"Simple name '{value}' is ambiguous: {[t.prefixed_name for t in candidates]}"
            )
        return None

    def _unknown_term(self, uri: str) -> Optional[Term]:
        if not self.allow_unknown:
            return None

        namespace, name = _split_uri(uri)
        if not name:
            return None

        prefix = None
        for known_prefix, known_namespace in self.config.namespaces.items():
            if known_namespace.lower() == namespace.lower():
                prefix = known_prefix
                break

        return Term(namespace=namespace, simple_name=name, prefix=prefix, known=False)


def _split_uri(uri: str) -> Tuple[str, str]:
    """Split a URI into namespace (with separator) and local name."""
    for separator in ('#', '/'):
        idx = uri.rfind(separator)
        if idx != -1 and idx > uri.find('://') + 2:
            return uri[:idx + 1], uri[idx + 1:]
    return uri, ''


# Singleton pattern - loaded once, cached forever
_registry: Optional[TermRegistry] = None


def get_term_registry() -> TermRegistry:
    """
    Get global term registry (lazy-loaded singleton).

    Returns:
        Singleton TermRegistry built from the packaged catalogue
    """
    global _registry
    if _registry is None:
        _registry = TermRegistry()
    return _registry
