"""Turn ``"module:attribute"`` strings into App instances for the CLI."""

import importlib

from perch.app import App


def resolve_app(import_string: str) -> App:
    """Import and return the App named by *import_string*.

    ``"mysite"`` means ``"mysite:app"``. If the attribute is a plain
    callable rather than an App it is called as a factory.

    Raises:
        ModuleNotFoundError: The module does not import.
        AttributeError: The module has no such attribute.
        TypeError: The factory failed, or the result is not an App.
    """
    module_name, _, attribute = import_string.partition(":")
    target = getattr(importlib.import_module(module_name), attribute or "app")

    if isinstance(target, App):
        return target
    if not callable(target):
        msg = f"{import_string!r} resolved to {type(target).__name__}, not a perch.App instance"
        raise TypeError(msg)

    try:
        built = target()
    except Exception as exc:
        msg = f"App factory {import_string!r} raised an error: {exc}"
        raise TypeError(msg) from exc
    if not isinstance(built, App):
        msg = f"{import_string!r} returned {type(built).__name__}, not a perch.App instance"
        raise TypeError(msg)
    return built
