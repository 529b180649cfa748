"""
Path pattern matching against the live element stack.

Patterns are '/'-separated local element names:
- '*/property'       suffix match: any path ending in 'property'
- '*/preferred/term' suffix match on the last two elements
- '*'                matches every element
- 'thesaurus/concept' absolute match from the document root

Namespace prefixes and URIs never take part in matching; callers pass
local names only.
"""

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

WILDCARD = '*'
SEPARATOR = '/'


@dataclass(frozen=True)
class PathPattern:
    """A compiled pattern: the literal steps plus whether it is anchored at the root."""
    source: str
    steps: Tuple[str, ...]
    anchored: bool

    def matches(self, path: Sequence[str]) -> bool:
        if self.anchored:
            return tuple(path) == self.steps
        if not self.steps:
            return len(path) > 0
        if len(path) < len(self.steps):
            return False
        return tuple(path[-len(self.steps):]) == self.steps


def compile_pattern(pattern: str) -> PathPattern:
    """
    Compile a pattern string.

    Args:
        pattern: Pattern such as '*/property'

    Returns:
        Compiled PathPattern

    Raises:
        ValueError: If the pattern is empty or uses '*' anywhere but the first step
    """
    if not pattern or not pattern.strip():
        raise ValueError("Pattern must not be empty")

    parts = [p for p in pattern.strip().split(SEPARATOR) if p]
    if not parts:
        raise ValueError(f"Pattern has no steps: {pattern!r}")

    anchored = parts[0] != WILDCARD
    steps = tuple(parts if anchored else parts[1:])

    if WILDCARD in steps:
        raise ValueError(
            f"Wildcard is only allowed as the first step, got: {pattern!r}"
        )

    return PathPattern(source=pattern, steps=steps, anchored=anchored)


class PathMatcher:
    """
    Matches element paths against wildcard patterns.

    Compiled patterns are cached per matcher instance.

    Example:
        >>> matcher = PathMatcher()
        >>> matcher.matches('*/property', ['extension', 'property'])
        True
        >>> matcher.matches('*/property', ['root', 'group', 'extension', 'property'])
        True
        >>> matcher.matches('extension/property', ['root', 'extension', 'property'])
        False
    """

    def __init__(self):
        self._compiled: Dict[str, PathPattern] = {}

    def compile(self, pattern: str) -> PathPattern:
        compiled = self._compiled.get(pattern)
        if compiled is None:
            compiled = compile_pattern(pattern)
            self._compiled[pattern] = compiled
        return compiled

    def matches(self, pattern: str, path: Sequence[str]) -> bool:
        """
        Check whether the element path matches a pattern.

        Args:
            pattern: Pattern string
            path: Local element names from the root to the current element

        Returns:
            True if the current location matches
        """
        return self.compile(pattern).matches(path)
