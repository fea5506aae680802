"""Assertion helpers for block responses.

Each assertion produces a clear error message on failure.
"""

from typing import Any

from perch.http.response import JSON_CONTENT_TYPE, Response


def assert_json(response: Response, expected: Any = None, *, status: int = 200) -> Any:
    """Assert the response is a JSON body (an ajax call result) and return it.

    With *expected*, the decoded body must equal it.
    """
    assert response.status == status, (
        f"Expected status {status}, got {response.status}.\n"
        f"Response body: {response.text[:500]}"
    )
    assert response.content_type.startswith(JSON_CONTENT_TYPE), (
        f"Expected a JSON response, got content type {response.content_type!r}"
    )
    data = response.json()
    if expected is not None:
        assert data == expected, f"Expected JSON {expected!r}, got {data!r}"
    return data


def assert_redirect(response: Response, location: str | None = None, *, status: int = 303) -> str:
    """Assert the response redirects (an action call result) and return the target."""
    assert response.status == status, (
        f"Expected redirect status {status}, got {response.status}.\n"
        f"Response body: {response.text[:500]}"
    )
    target = response.header("location")
    assert target is not None, "Redirect response has no Location header"
    if location is not None:
        assert target == location, f"Expected redirect to {location!r}, got {target!r}"
    assert response.text == "", "Redirect response unexpectedly carries a body"
    return target


def assert_contains(response: Response, text: str) -> None:
    """Assert the response body contains the given text."""
    assert text in response.text, (
        f"Response does not contain {text!r}.\nResponse body: {response.text[:500]}"
    )


def assert_not_contains(response: Response, text: str) -> None:
    """Assert the response body does **not** contain the given text."""
    assert text not in response.text, (
        f"Response unexpectedly contains {text!r}.\nResponse body: {response.text[:500]}"
    )
