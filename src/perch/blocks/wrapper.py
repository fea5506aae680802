"""Wrapper markup — the addressable container around a block's view.

The container carries everything client code needs to call the block
back: its type and instance id, and its dot-path in the tree::

    <div id="ui_mini" class="ui ui_cart ui_mini" data-ui-name="cart"
         data-ui-id="mini" data-ui-path="layout.cart">...</div>
"""

from __future__ import annotations

import html
from collections.abc import Mapping
from typing import Any


def _attribute(name: str, value: Any) -> str:
    return f'{html.escape(str(name), quote=True)}="{html.escape(str(value), quote=True)}"'


def wrapper_header(
    *,
    name: str,
    path_string: str,
    block_id: str | None = None,
    classes: str = "",
    attributes: Mapping[str, Any] | None = None,
    ajax_url: str | None = None,
) -> str:
    """Opening tag of a block wrapper.

    Args:
        name: The block type's declared name.
        path_string: The block's dot-path in the current tree.
        block_id: Explicit instance id, if any.
        classes: Extra CSS classes, space separated.
        attributes: Arbitrary extra attributes, emitted last.
        ajax_url: Base URL for ajax calls (``data-ui-url``), only set on the
            block at the requested dispatch depth.
    """
    css = ["ui", f"ui_{name}"]
    if block_id:
        css.append(f"ui_{block_id}")
    if classes:
        css.append(classes.strip())

    parts: list[str] = []
    if block_id:
        parts.append(_attribute("id", f"ui_{block_id}"))
    parts.append(_attribute("class", " ".join(css)))
    parts.append(_attribute("data-ui-name", name))
    parts.append(_attribute("data-ui-id", block_id or ""))
    parts.append(_attribute("data-ui-path", path_string))
    if ajax_url is not None:
        parts.append(_attribute("data-ui-url", ajax_url))
    for key, value in (attributes or {}).items():
        parts.append(_attribute(key, value))
    return f"<div {' '.join(parts)}>"


def wrapper_footer() -> str:
    """Closing tag matching ``wrapper_header``."""
    return "</div>"
