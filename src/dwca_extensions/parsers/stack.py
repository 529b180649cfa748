"""
Explicit construction stack for in-progress objects.
"""

from typing import Any, Iterator, List


class ConstructionStack:
    """
    Last-in-first-out sequence of objects being built.

    The bottom entry is the document root pushed before parsing starts;
    Create rules push children, AttachChild rules pop them.

    Example:
        >>> stack = ConstructionStack()
        >>> stack.push('root')
        >>> stack.push('child')
        >>> stack.peek(), stack.peek(1)
        ('child', 'root')
        >>> stack.pop()
        'child'
        >>> stack.bottom
        'root'
    """

    def __init__(self):
        self._items: List[Any] = []

    def push(self, obj: Any) -> None:
        self._items.append(obj)

    def pop(self) -> Any:
        if not self._items:
            raise IndexError("pop from empty construction stack")
        return self._items.pop()

    def peek(self, depth: int = 0) -> Any:
        """
        Return the object `depth` entries below the top without removing it.

        Raises:
            IndexError: If the stack holds fewer than depth + 1 objects
        """
        if depth < 0 or depth >= len(self._items):
            raise IndexError(
                f"construction stack has {len(self._items)} entries, cannot peek at depth {depth}"
            )
        return self._items[-1 - depth]

    @property
    def bottom(self) -> Any:
        if not self._items:
            raise IndexError("construction stack is empty")
        return self._items[0]

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        """Iterate from bottom to top."""
        return iter(list(self._items))

    def __repr__(self) -> str:
        names = [type(item).__name__ for item in self._items]
        return f"ConstructionStack({names})"
