"""Request classification — render, ajax call, or action call.

Inspects the routing parameters of an incoming request and produces a
``BlockCall``: what kind of request it is, which block path it addresses,
which handler it names, and the payload that handler will receive.

Routing parameters:

- ``ui``: dot-separated block path (``layout.store.cart``)
- ``ajax``: ajax handler short name (GET or POST)
- ``action``: action handler short name (POST only)

These keys never reach a handler's payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from perch.http.request import Request

ROUTING_KEYS: frozenset[str] = frozenset({"ui", "ajax", "action"})
PATH_SEPARATOR = "."


class CallKind(Enum):
    RENDER = "render"
    AJAX = "ajax"
    ACTION = "action"


@dataclass(frozen=True, slots=True)
class BlockCall:
    """A classified request, as seen by every block in the tree.

    Attributes:
        kind: Render, ajax call, or action call.
        path: Requested block identities, root first. Empty for renders.
        function: Requested handler short name (``reload``, ``save``...).
        payload: Request input with the routing keys stripped.
    """

    kind: CallKind = CallKind.RENDER
    path: tuple[str, ...] = ()
    function: str = ""
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def routed(self) -> bool:
        """True for ajax and action calls: requests addressed to one block."""
        return self.kind is not CallKind.RENDER

    @property
    def path_string(self) -> str:
        return PATH_SEPARATOR.join(self.path)

    def segment_at(self, depth: int) -> str | None:
        """The identity requested at *depth* (1-based), or None past the end."""
        if 1 <= depth <= len(self.path):
            return self.path[depth - 1]
        return None

    def on_path(self, depth: int, identity: str) -> bool:
        """Whether a block with *identity* at *depth* lies on the requested path."""
        return self.segment_at(depth) == identity

    def is_target(self, depth: int) -> bool:
        """Whether *depth* is the dispatch depth (the last requested segment)."""
        return self.routed and depth == len(self.path)


RENDER = BlockCall()


def split_path(value: str) -> tuple[str, ...]:
    """Split a dotted block path into identities, ignoring empty segments."""
    return tuple(segment for segment in value.split(PATH_SEPARATOR) if segment)


def classify(request: Request, *, ajax_enabled: bool) -> BlockCall:
    """Classify *request* into a ``BlockCall``.

    An ajax call carries ``ajax`` and ``ui`` and is only recognized while
    *ajax_enabled* (global ajax mode, or a block's debug override). An
    action call is a POST whose form carries ``ui`` and ``action``.
    Anything else is a plain render.

    For POST requests the form must already have been read.
    """
    fields = request.input

    if request.is_post and fields.get("ui") and fields.get("action"):
        return BlockCall(
            kind=CallKind.ACTION,
            path=split_path(fields["ui"]),
            function=fields["action"],
            payload=fields.to_dict(exclude=ROUTING_KEYS),
        )

    if ajax_enabled and fields.get("ui") and fields.get("ajax"):
        return BlockCall(
            kind=CallKind.AJAX,
            path=split_path(fields["ui"]),
            function=fields["ajax"],
            payload=fields.to_dict(exclude=ROUTING_KEYS),
        )

    return RENDER
