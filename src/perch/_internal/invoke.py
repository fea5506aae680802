"""Await-if-needed calls for user callables.

Page functions, error handlers, and lifecycle hooks may each be plain
functions or coroutine functions.
"""

import inspect
from collections.abc import Iterable
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *handler* and await the result if it is awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


async def run_hooks(hooks: Iterable[Any]) -> None:
    """Invoke argument-less hooks in order."""
    for hook in hooks:
        await invoke(hook)
