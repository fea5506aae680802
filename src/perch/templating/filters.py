"""Template filters and globals registered on every perch kida Environment.

The block helpers build the routing parameters a view needs to call its
own block back::

    <a href="?{{ block | ajax_query("reload") }}">Refresh</a>

    <form method="post">
      {{ block | action_fields("add") }}
      <input name="sku">
    </form>
"""

import html
from typing import Any
from urllib.parse import quote, urlencode

from kida.utils.html import Markup

from perch.blocks.assets import AssetSlots


def attr(value: Any, name: str) -> str | Markup:
    """Output an HTML attribute when value is truthy, else empty string.

    Example:
        <a href="{{ href }}"{{ cls | attr("class") }}>{{ text }}</a>
    """
    if not value:
        return ""
    return Markup(f' {name}="{html.escape(str(value), quote=True)}"')


def qs(base: str, **params: Any) -> str:
    """Append query-string parameters to a URL, omitting falsy values.

    Example:
        {{ "/shop" | qs(page=page + 1, q=search) }}  → "/shop?page=3&q=pens"
    """
    filtered = {k: str(v) for k, v in params.items() if v}
    if not filtered:
        return base
    sep = "&" if "?" in base else "?"
    return f"{base}{sep}{urlencode(filtered, quote_via=quote)}"


def ajax_query(block: Any, function: str = "reload", **params: Any) -> str:
    """Query string addressing an ajax handler on *block*.

    Example:
        {{ block | ajax_query("count") }}  → "ui=layout.cart&ajax=count"
    """
    query = {"ui": block.path_string, "ajax": function}
    query.update({k: str(v) for k, v in params.items()})
    return urlencode(query, quote_via=quote)


def action_fields(block: Any, function: str) -> Markup:
    """Hidden form inputs routing a POST to an action handler on *block*."""
    path = html.escape(block.path_string, quote=True)
    name = html.escape(function, quote=True)
    return Markup(
        f'<input type="hidden" name="ui" value="{path}">'
        f'<input type="hidden" name="action" value="{name}">'
    )


BUILTIN_GLOBALS: dict[str, Any] = {
    "assets": AssetSlots(),
}


# All built-in perch filters, registered automatically on every env.
BUILTIN_FILTERS: dict[str, Any] = {
    "action_fields": action_fields,
    "ajax_query": ajax_query,
    "attr": attr,
    "qs": qs,
}
