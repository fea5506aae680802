"""Request middleware: the ``(request, next)`` protocol and static file serving."""

from perch.middleware.protocol import Middleware, Next
from perch.middleware.static import StaticFiles

__all__ = ["Middleware", "Next", "StaticFiles"]
