"""Request routing: page lookup for the app, call classification for blocks."""

from perch.routing.classify import BlockCall, CallKind, classify
from perch.routing.pages import Page, PageTable

__all__ = ["BlockCall", "CallKind", "Page", "PageTable", "classify"]
