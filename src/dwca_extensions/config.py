"""
Configuration management using Pydantic Settings.

Two configuration objects are provided:
- TermsConfig: term catalogue automatically loaded from data/terms.yaml
- ParserSettings: runtime settings loaded from environment variables / .env

Both are exposed through lazy-loaded singletons (get_terms_config, get_settings).
"""

from pathlib import Path
from typing import Dict, List, Optional
import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


EXTENSION_NAMESPACE = "http://rs.gbif.org/extension/"
VOCABULARY_NAMESPACE = "http://rs.gbif.org/thesaurus/"


class TermsConfig(BaseSettings):
    """
    Term catalogue automatically loaded from data/terms.yaml.

    The catalogue backs the term registry used to resolve the `rowType`
    attribute of extension documents.

    Attributes:
        namespaces: Mapping of prefix → namespace URI (e.g. 'dwc' → 'http://rs.tdwg.org/dwc/terms/')
        terms: Mapping of prefix → list of known simple term names

    Example:
        >>> config = TermsConfig()
        >>> config.namespaces['dwc']
        'http://rs.tdwg.org/dwc/terms/'
        >>> 'Occurrence' in config.terms['dwc']
        True
    """

    namespaces: Dict[str, str] = Field(
        default_factory=dict,
        description="Known term namespaces keyed by prefix"
    )
    terms: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Known simple term names keyed by namespace prefix"
    )

    model_config = SettingsConfigDict(
        extra='ignore'
    )

    @model_validator(mode='before')
    @classmethod
    def load_yaml_config(cls, data: dict) -> dict:
        """
        Load the catalogue from data/terms.yaml if not already provided.

        Runs before field validation and only reads the YAML file when no
        values were passed in (tests may pass their own catalogue).
        """
        if data:
            return data

        terms_path = get_settings().terms_file or Path(__file__).parent / 'data' / 'terms.yaml'
        terms_path = Path(terms_path)

        if not terms_path.exists():
            raise FileNotFoundError(
                f"Term catalogue not found at {terms_path}. "
                f"Set DWCA_TERMS_FILE or reinstall the package."
            )

        with open(terms_path, 'r', encoding='utf-8') as f:
            yaml_data = yaml.safe_load(f) or {}

        return {
            'namespaces': yaml_data.get('namespaces', {}),
            'terms': yaml_data.get('terms', {})
        }

    def namespace_for(self, prefix: str) -> Optional[str]:
        """Return the namespace URI bound to a prefix, or None."""
        return self.namespaces.get(prefix)


class ParserSettings(BaseSettings):
    """
    Runtime settings loaded from environment variables.

    Environment Variables (prefix DWCA_, also read from .env):
        DWCA_HTTP_TIMEOUT: Seconds before a thesaurus fetch times out
        DWCA_USER_AGENT: User-Agent header sent with thesaurus fetches
        DWCA_PREFETCH_THESAURI: Resolve all thesaurus references in a first pass
        DWCA_STRICT_NAMESPACE: Only match elements in the rule namespace
        DWCA_ALLOW_UNKNOWN_TERMS: Accept row types that are not in the catalogue
        DWCA_TERMS_FILE: Alternative term catalogue YAML file

    Example:
        >>> settings = get_settings()
        >>> settings.http_timeout
        30.0
    """

    http_timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout in seconds for thesaurus fetches"
    )

    user_agent: str = Field(
        default="dwca-extensions/1.0",
        description="User-Agent header for thesaurus fetches"
    )

    prefetch_thesauri: bool = Field(
        default=False,
        description="Collect and resolve all thesaurus references before the rule pass"
    )

    strict_namespace: bool = Field(
        default=False,
        description="Restrict rule matching to the document type's namespace"
    )

    allow_unknown_terms: bool = Field(
        default=False,
        description="Resolve row types outside the term catalogue to ad-hoc terms"
    )

    terms_file: Optional[Path] = Field(
        default=None,
        description="Path to an alternative term catalogue"
    )

    model_config = SettingsConfigDict(
        env_prefix='DWCA_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )


# Singleton pattern - loaded once, cached forever
_settings: Optional[ParserSettings] = None
_terms_config: Optional[TermsConfig] = None


def get_settings() -> ParserSettings:
    """
    Get global settings instance (lazy-loaded singleton).

    Returns:
        Singleton ParserSettings instance

    Example:
        >>> settings = get_settings()
        >>> settings is get_settings()
        True
    """
    global _settings
    if _settings is None:
        _settings = ParserSettings()
    return _settings


def get_terms_config() -> TermsConfig:
    """
    Get global term catalogue (lazy-loaded singleton).

    Returns:
        Singleton TermsConfig instance
    """
    global _terms_config
    if _terms_config is None:
        _terms_config = TermsConfig()
    return _terms_config


def reset_config() -> None:
    """Drop cached settings and catalogue so the next access reloads them."""
    global _settings, _terms_config
    _settings = None
    _terms_config = None
