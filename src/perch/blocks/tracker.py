"""Traversal stack of the blocks currently being rendered.

During a request the stack always equals the path from the root block to
the block that is executing. A block pushes its identity when its
``render()`` starts and pops it on every way out (normal return, skip,
exception, request halt), so ``enter()`` is a context manager.
"""

from collections.abc import Iterator
from contextlib import contextmanager


class PathTracker:
    """Request-scoped stack of block identities, root first."""

    __slots__ = ("_stack",)

    def __init__(self) -> None:
        self._stack: list[str] = []

    @property
    def stack(self) -> tuple[str, ...]:
        return tuple(self._stack)

    @property
    def depth(self) -> int:
        return len(self._stack)

    def push(self, identity: str) -> tuple[str, ...]:
        """Push *identity* and return the resulting path."""
        self._stack.append(identity)
        return tuple(self._stack)

    def pop(self) -> str:
        if not self._stack:
            msg = "PathTracker.pop() called on an empty stack"
            raise IndexError(msg)
        return self._stack.pop()

    @contextmanager
    def enter(self, identity: str) -> Iterator[tuple[str, ...]]:
        """Push *identity* for the duration of the block, then restore the stack.

        On exit the stack is truncated to its pre-entry length.
        """
        before = len(self._stack)
        path = self.push(identity)
        try:
            yield path
        finally:
            del self._stack[before:]

    def __repr__(self) -> str:
        return f"PathTracker({'.'.join(self._stack)!r})"
