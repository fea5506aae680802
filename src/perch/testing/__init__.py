"""Test utilities for perch applications.

Provides an async test client with ajax/action helpers and response
assertions::

    from perch.testing import TestClient, assert_json, assert_redirect
"""

from perch.testing.assertions import (
    assert_contains,
    assert_json,
    assert_not_contains,
    assert_redirect,
)
from perch.testing.client import TestClient

__all__ = [
    "TestClient",
    "assert_contains",
    "assert_json",
    "assert_not_contains",
    "assert_redirect",
]
