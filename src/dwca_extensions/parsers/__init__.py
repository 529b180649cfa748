"""
Rule-driven XML parsing for extension and thesaurus documents.

- Path patterns ('*/property') select elements by local name
- Rules (Create, CaptureAttribute, InvokeSetter, AttachChild, ResolveThesaurus)
  build the object graph on an explicit construction stack
- Thesaurus references are resolved once per URL per parse
"""

from .path_matcher import PathMatcher, PathPattern, compile_pattern
from .rules import AttachChild, CaptureAttribute, Create, InvokeSetter, ResolveThesaurus, Rule, RuleKind
from .stack import ConstructionStack
from .engine import RuleEngine, get_attribute
from .thesaurus import ResolutionState, ThesaurusResolver
from .xml_parser import DocumentParser, ParseResult, collect_attribute_values
from .vocabulary_parser import VocabularyParser
from .extension_parser import ExtensionParser

__all__ = [
    # Matching
    'PathMatcher',
    'PathPattern',
    'compile_pattern',
    # Rules and engine
    'AttachChild',
    'CaptureAttribute',
    'Create',
    'InvokeSetter',
    'ResolveThesaurus',
    'Rule',
    'RuleKind',
    'ConstructionStack',
    'RuleEngine',
    'get_attribute',
    # Thesaurus resolution
    'ResolutionState',
    'ThesaurusResolver',
    # Document parsers
    'DocumentParser',
    'ParseResult',
    'collect_attribute_values',
    'VocabularyParser',
    'ExtensionParser',
]
