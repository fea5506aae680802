"""Ajax and action handler registration.

Handlers are marked with ``@ajax`` / ``@action``. The decorators only
attach a marker; ``HandlerTable.build`` collects the markers along a block
type's MRO when the class is created, so a misspelled or duplicated
handler name fails at import time instead of on the first request::

    class Cart(Block, name="cart"):
        @ajax
        def count(self, data):
            return {"count": len(self.items)}

        @action(name="add")
        def add_item(self, data):
            self.items.append(data["sku"])
            return {"added": "1"}

Handlers take the request input (routing keys removed) as their only
argument, or no argument at all.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, overload

from perch.errors import ConfigurationError
from perch.routing.classify import CallKind

MARKER_ATTR = "__perch_handlers__"


@dataclass(frozen=True, slots=True)
class HandlerEntry:
    """A registered handler: the attribute to call and how to call it."""

    kind: CallKind
    name: str
    attribute: str
    takes_input: bool


def _mark(kind: CallKind, func: Callable[..., Any], name: str | None) -> Callable[..., Any]:
    markers = list(getattr(func, MARKER_ATTR, []))
    markers.append((kind, name or func.__name__))
    setattr(func, MARKER_ATTR, markers)
    return func


@overload
def ajax(func: Callable[..., Any], /) -> Callable[..., Any]: ...
@overload
def ajax(*, name: str | None = None) -> Callable[[Callable[..., Any]], Callable[..., Any]]: ...


def ajax(func: Callable[..., Any] | None = None, /, *, name: str | None = None) -> Any:
    """Register a method as the ajax handler ``name`` (defaults to the method name)."""
    if func is not None:
        return _mark(CallKind.AJAX, func, None)
    return lambda f: _mark(CallKind.AJAX, f, name)


@overload
def action(func: Callable[..., Any], /) -> Callable[..., Any]: ...
@overload
def action(*, name: str | None = None) -> Callable[[Callable[..., Any]], Callable[..., Any]]: ...


def action(func: Callable[..., Any] | None = None, /, *, name: str | None = None) -> Any:
    """Register a method as the action handler ``name`` (defaults to the method name)."""
    if func is not None:
        return _mark(CallKind.ACTION, func, None)
    return lambda f: _mark(CallKind.ACTION, f, name)


def _takes_input(owner: type, attribute: str, func: Callable[..., Any]) -> bool:
    params = [
        p
        for p in inspect.signature(func).parameters.values()
        if p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
    ]
    # First parameter is ``self``
    positional = params[1:]
    if len(positional) > 1 and all(p.default is p.empty for p in positional[1:]):
        msg = (
            f"{owner.__name__}.{attribute} takes {len(positional)} arguments; "
            "block handlers accept only the request input."
        )
        raise ConfigurationError(msg)
    return bool(positional)


@dataclass(frozen=True, slots=True)
class HandlerTable:
    """Per-block-type handler lookup, keyed by call kind then handler name."""

    entries: Mapping[CallKind, Mapping[str, HandlerEntry]]

    def lookup(self, kind: CallKind, name: str) -> HandlerEntry | None:
        return self.entries.get(kind, {}).get(name)

    def names(self, kind: CallKind) -> tuple[str, ...]:
        return tuple(sorted(self.entries.get(kind, {})))

    @classmethod
    def build(cls, owner: type) -> HandlerTable:
        """Collect handler markers from *owner* and its bases, root first.

        A subclass entry replaces a base entry with the same name.

        Raises:
            ConfigurationError: One class registers the same name twice for
                the same call kind, or a handler has an unsupported signature.
        """
        merged: dict[CallKind, dict[str, HandlerEntry]] = {
            CallKind.AJAX: {},
            CallKind.ACTION: {},
        }
        for klass in reversed(owner.__mro__):
            own: dict[tuple[CallKind, str], str] = {}
            for attribute, func in vars(klass).items():
                markers = getattr(func, MARKER_ATTR, None) if inspect.isfunction(func) else None
                if not markers:
                    continue
                for kind, name in markers:
                    key = (kind, name)
                    if key in own:
                        msg = (
                            f"{klass.__name__} registers {kind.value} handler {name!r} "
                            f"twice ({own[key]} and {attribute})."
                        )
                        raise ConfigurationError(msg)
                    own[key] = attribute
                    merged[kind][name] = HandlerEntry(
                        kind=kind,
                        name=name,
                        attribute=attribute,
                        takes_input=_takes_input(klass, attribute, func),
                    )
        return cls(
            entries=MappingProxyType(
                {kind: MappingProxyType(table) for kind, table in merged.items()}
            )
        )
