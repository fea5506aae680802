"""Write a perch ``Response`` to the ASGI ``send`` channel."""

from perch._internal.asgi import Send
from perch.http.response import Response

# 1xx, 204 and 304 never carry a body
_BODYLESS = frozenset({204, 304})


def _encode_headers(response: Response, length: int) -> list[tuple[bytes, bytes]]:
    pairs = [("content-type", response.content_type)]
    pairs.extend((name.lower(), value) for name, value in response.headers)
    encoded = [
        (name.encode("latin-1"), value.encode("latin-1"))
        for name, value in pairs
        if name != "content-length"
    ]
    encoded.append((b"content-length", str(length).encode("latin-1")))
    return encoded


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Send the start and body messages for *response*.

    A ``HEAD`` response keeps the content-length of the matching GET but
    sends an empty body.
    """
    status = response.status
    body = b"" if status < 200 or status in _BODYLESS else response.body_bytes
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": _encode_headers(response, len(body)),
        }
    )
    await send({"type": "http.response.body", "body": b"" if head else body})
