"""Kida-backed view rendering.

A block's view lives beside the block's module, so views are addressed
by ``(directory, file name)`` rather than by a name on one global search
path. ``KidaViewRenderer`` keeps one kida Environment per view directory,
created on first use and reused for the lifetime of the app.
"""

import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Protocol

from kida import Environment, FileSystemLoader

from perch.config import AppConfig
from perch.templating.filters import BUILTIN_FILTERS, BUILTIN_GLOBALS


class ViewRenderer(Protocol):
    """Renders a view file with a mapping of names to values."""

    def render(self, directory: Path, name: str, context: Mapping[str, Any]) -> str: ...


class KidaViewRenderer:
    """ViewRenderer using one kida Environment per view directory.

    Built-in filters and globals are registered on every environment,
    followed by the user's (which may override built-ins).
    """

    __slots__ = ("_config", "_envs", "_filters", "_globals", "_lock")

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        filters: Mapping[str, Callable[..., Any]] | None = None,
        globals_: Mapping[str, Any] | None = None,
    ) -> None:
        self._config = config or AppConfig()
        self._filters = dict(filters or {})
        self._globals = dict(globals_ or {})
        self._envs: dict[Path, Environment] = {}
        self._lock = threading.Lock()

    def environment(self, directory: Path) -> Environment:
        """Return the environment rooted at *directory*, creating it once."""
        key = Path(directory).resolve()
        env = self._envs.get(key)
        if env is not None:
            return env
        with self._lock:
            env = self._envs.get(key)
            if env is None:
                env = self._create_environment(key)
                self._envs[key] = env
        return env

    def render(self, directory: Path, name: str, context: Mapping[str, Any]) -> str:
        template = self.environment(directory).get_template(name)
        return template.render(dict(context))

    def _create_environment(self, directory: Path) -> Environment:
        config = self._config
        env = Environment(
            loader=FileSystemLoader(str(directory)),
            autoescape=config.autoescape,
            auto_reload=config.debug,
            trim_blocks=config.trim_blocks,
            lstrip_blocks=config.lstrip_blocks,
        )

        env.update_filters(BUILTIN_FILTERS)
        if self._filters:
            env.update_filters(self._filters)

        for name, value in BUILTIN_GLOBALS.items():
            env.add_global(name, value)
        for name, value in self._globals.items():
            env.add_global(name, value)

        return env
