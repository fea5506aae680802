"""Page table — maps request paths to the functions that build root blocks.

Pages are registered during setup and frozen into a lookup dict when the
app freezes. Matching is exact (after trailing-slash normalization): page
routing proper belongs to the host site, perch only needs to find the
function that composes the block tree for a URL.
"""

from dataclasses import dataclass

from perch._internal.types import PageFunction
from perch.errors import ConfigurationError, MethodNotAllowed, NotFound


@dataclass(frozen=True, slots=True)
class Page:
    """A frozen page definition."""

    path: str
    function: PageFunction
    methods: frozenset[str]
    name: str | None = None


def normalize_path(path: str) -> str:
    """``"/shop/"`` → ``"/shop"``; the root stays ``"/"``."""
    stripped = "/" + path.strip("/")
    return stripped


class PageTable:
    """Exact-path page lookup. Mutable until ``compile()``."""

    __slots__ = ("_compiled", "_pages")

    def __init__(self) -> None:
        self._pages: dict[str, Page] = {}
        self._compiled = False

    def add(self, page: Page) -> None:
        if self._compiled:
            msg = "Cannot add pages after the page table is compiled."
            raise RuntimeError(msg)
        key = normalize_path(page.path)
        if key in self._pages:
            msg = f"Duplicate page path {key!r}."
            raise ConfigurationError(msg)
        self._pages[key] = page

    def compile(self) -> None:
        self._compiled = True

    @property
    def pages(self) -> tuple[Page, ...]:
        return tuple(self._pages.values())

    def match(self, method: str, path: str) -> Page:
        """Return the page for *path*.

        Raises:
            NotFound: No page is registered for the path.
            MethodNotAllowed: The page does not accept *method*.
        """
        page = self._pages.get(normalize_path(path))
        if page is None:
            raise NotFound(f"No page for {path!r}")
        if method not in page.methods and not (method == "HEAD" and "GET" in page.methods):
            raise MethodNotAllowed(page.methods)
        return page
