"""
Rule dispatch over a stream of element events.

The RuleEngine keeps three pieces of per-parse state:
- the element path (local names from the root to the current element)
- one frame of staged call parameters per open element
- the ConstructionStack of objects being built

It can be driven by any event source (see xml_parser.DocumentParser) or
directly from tests via start_document / start_element / end_element /
end_document.
"""

import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Tuple

from dwca_extensions.errors import DataError, RuleConfigurationError
from dwca_extensions.parsers.path_matcher import PathMatcher
from dwca_extensions.parsers.rules import (
    RULE_TYPES,
    AttachChild,
    CaptureAttribute,
    Create,
    InvokeSetter,
    ResolveThesaurus,
    Rule,
    RuleKind,
)
from dwca_extensions.parsers.stack import ConstructionStack
from dwca_extensions.parsers.thesaurus import ThesaurusResolver
from dwca_extensions.validators import Coercer, to_text

logger = logging.getLogger(__name__)

Frame = Dict[str, Deque[Optional[str]]]


def get_attribute(attributes: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """
    Look up an attribute by local name, ignoring any namespace.

    An unqualified attribute wins over a namespaced one of the same local name.

    Example:
        >>> get_attribute({'{http://purl.org/dc/terms/}title': 'Sex'}, 'title')
        'Sex'
    """
    if not attributes:
        return None
    if name in attributes:
        return attributes[name]
    for key, value in attributes.items():
        if key.startswith('{') and key.rpartition('}')[2] == name:
            return value
    return None


class RuleEngine:
    """
    Dispatches registered rules on element start/end events.

    Rules registered under the same pattern fire in registration order; when
    several patterns match the same element, rules fire in the global order
    in which they were registered.

    Args:
        namespace: Rule namespace URI of the document type
        strict_namespace: Only fire rules for elements in `namespace` (or in no
            namespace). By default elements match by local name alone.
        resolver: Thesaurus resolver for ResolveThesaurus rules
        source: Document URL, used in log messages
        trace: Record every fired rule in `self.trace` as
            (event, path, pattern, rule type name) tuples

    Example:
        >>> engine = RuleEngine()
        >>> engine.add_attribute_setter('*/thesaurus', 'title', 'title')
        >>> engine.start_document(Vocabulary())
        >>> engine.start_element('thesaurus', attributes={'title': 'Sex'})
        >>> engine.end_element('thesaurus')
        >>> engine.end_document().title
        'Sex'
    """

    def __init__(
        self,
        namespace: Optional[str] = None,
        strict_namespace: bool = False,
        resolver: Optional[ThesaurusResolver] = None,
        source: Optional[str] = None,
        trace: bool = False
    ):
        self.namespace = namespace
        self.strict_namespace = strict_namespace
        self.resolver = resolver
        self.source = source

        self.matcher = PathMatcher()
        self.stack = ConstructionStack()
        self.path: List[str] = []
        self.data_errors: List[DataError] = []
        self.trace: Optional[List[Tuple[str, str, str, str]]] = [] if trace else None

        self._rules: List[Tuple[str, Rule]] = []
        self._frames: List[Frame] = []
        self._match_cache: Dict[Tuple[str, ...], List[Tuple[str, Rule]]] = {}

        self._handlers: Dict[type, Callable[[str, Any, Optional[Mapping[str, str]], Frame], None]] = {
            Create: self._on_create,
            CaptureAttribute: self._on_capture_attribute,
            ResolveThesaurus: self._on_resolve_thesaurus,
            InvokeSetter: self._on_invoke_setter,
            AttachChild: self._on_attach_child,
        }

    # === Registration ===

    def register(self, pattern: str, rule: Rule) -> None:
        """
        Bind a rule to a path pattern.

        Raises:
            TypeError: If rule is not one of the rule variants
            ValueError: If the pattern is malformed
        """
        if not isinstance(rule, RULE_TYPES):
            raise TypeError(f"Unsupported rule type: {type(rule).__name__}")
        self.matcher.compile(pattern)
        self._rules.append((pattern, rule))
        self._match_cache.clear()

    def add_attribute_setter(
        self,
        pattern: str,
        attribute: str,
        field: str,
        coercer: Coercer = to_text
    ) -> None:
        """Register a CaptureAttribute / InvokeSetter pair for one field."""
        self.register(pattern, CaptureAttribute(attribute))
        self.register(pattern, InvokeSetter(field, coercer))

    def rules_for(self, pattern: str) -> List[Rule]:
        """Rules bound to exactly this pattern string, in registration order."""
        return [rule for p, rule in self._rules if p == pattern]

    @property
    def patterns(self) -> List[str]:
        seen: Dict[str, None] = {}
        for pattern, _ in self._rules:
            seen.setdefault(pattern)
        return list(seen)

    # === Event interface ===

    def start_document(self, root: Any) -> None:
        """Reset per-parse state and push the root object."""
        self.stack.clear()
        self.path.clear()
        self._frames.clear()
        self.data_errors.clear()
        if self.trace is not None:
            self.trace.clear()
        self.stack.push(root)
        logger.debug(f"Start parsing {self.source or '<stream>'} into {type(root).__name__}")

    def start_element(
        self,
        name: str,
        namespace: Optional[str] = None,
        attributes: Optional[Mapping[str, str]] = None
    ) -> None:
        self.path.append(name)
        frame: Frame = {}
        self._frames.append(frame)

        for pattern, rule in self._matched(namespace, RuleKind.ON_ENTER):
            self._fire('start', pattern, rule, attributes, frame)

    def end_element(self, name: str, namespace: Optional[str] = None) -> None:
        if not self.path or self.path[-1] != name:
            raise RuleConfigurationError(
                f"Unbalanced end of element '{name}' at /{'/'.join(self.path)}",
                url=self.source
            )

        frame = self._frames[-1]
        for pattern, rule in self._matched(namespace, RuleKind.ON_EXIT):
            self._fire('end', pattern, rule, None, frame)

        self._frames.pop()
        self.path.pop()

    def end_document(self) -> Any:
        """
        Finish the parse and return the root object.

        Raises:
            RuleConfigurationError: If objects other than the root remain on the stack
        """
        if self.path:
            raise RuleConfigurationError(
                f"Document ended inside /{'/'.join(self.path)}",
                url=self.source
            )
        if len(self.stack) != 1:
            raise RuleConfigurationError(
                f"Construction stack not balanced at end of document: {self.stack!r}",
                url=self.source
            )
        if self.data_errors:
            logger.debug(
                f"Parsed {self.source or '<stream>'} with {len(self.data_errors)} data error(s)"
            )
        return self.stack.bottom

    # === Dispatch ===

    def _matched(self, namespace: Optional[str], kind: RuleKind) -> List[Tuple[str, Rule]]:
        if self.strict_namespace and namespace not in (None, '', self.namespace):
            return []

        key = tuple(self.path)
        matched = self._match_cache.get(key)
        if matched is None:
            matched = [
                (pattern, rule) for pattern, rule in self._rules
                if self.matcher.matches(pattern, self.path)
            ]
            self._match_cache[key] = matched

        return [(pattern, rule) for pattern, rule in matched if rule.kind is kind]

    def _fire(
        self,
        event: str,
        pattern: str,
        rule: Rule,
        attributes: Optional[Mapping[str, str]],
        frame: Frame
    ) -> None:
        if self.trace is not None:
            self.trace.append((event, '/'.join(self.path), pattern, type(rule).__name__))
        self._handlers[type(rule)](pattern, rule, attributes, frame)

    def _on_create(self, pattern: str, rule: Create, attributes, frame: Frame) -> None:
        self.stack.push(rule.factory())

    def _on_capture_attribute(self, pattern: str, rule: CaptureAttribute, attributes, frame: Frame) -> None:
        frame.setdefault(pattern, deque()).append(get_attribute(attributes, rule.attribute))

    def _on_resolve_thesaurus(self, pattern: str, rule: ResolveThesaurus, attributes, frame: Frame) -> None:
        url = get_attribute(attributes, rule.attribute)
        if url is None or not url.strip():
            return
        if self.resolver is None:
            raise RuleConfigurationError(
                f"Element /{'/'.join(self.path)} references thesaurus {url} "
                f"but no resolver is configured",
                url=self.source
            )
        self.resolver.attach(self.stack.peek(), url.strip(), rule.target)

    def _on_invoke_setter(self, pattern: str, rule: InvokeSetter, attributes, frame: Frame) -> None:
        staged = frame.get(pattern)
        value = staged.popleft() if staged else None
        if value is None:
            return

        try:
            coerced = rule.coercer(value)
        except ValueError as e:
            error = DataError(rule.field, value, str(e))
            self.data_errors.append(error)
            logger.warning(
                f"{error} at /{'/'.join(self.path)} in {self.source or '<stream>'}; field left empty"
            )
            return

        target = self.stack.peek()
        try:
            setattr(target, rule.field, coerced)
        except (AttributeError, ValueError) as e:
            raise RuleConfigurationError(
                f"Cannot set '{rule.field}' on {type(target).__name__} at /{'/'.join(self.path)}: {e}",
                url=self.source
            ) from e

    def _on_attach_child(self, pattern: str, rule: AttachChild, attributes, frame: Frame) -> None:
        if len(self.stack) < 2:
            raise RuleConfigurationError(
                f"Nothing to attach at /{'/'.join(self.path)}: {self.stack!r}",
                url=self.source
            )
        parent = self.stack.peek(1)
        add = getattr(parent, rule.method, None)
        if not callable(add):
            raise RuleConfigurationError(
                f"{type(self.stack.peek()).__name__} at /{'/'.join(self.path)} cannot be attached: "
                f"{type(parent).__name__} has no method '{rule.method}'",
                url=self.source
            )
        add(self.stack.pop())
