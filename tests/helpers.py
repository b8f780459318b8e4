"""Shared builders for provider stream fixtures."""

import json

import httpx


def sse_chunk(content: str) -> str:
    """One OpenAI-style streaming chunk as an SSE `data:` line."""
    payload = {"choices": [{"index": 0, "delta": {"content": content}}]}
    return f"data: {json.dumps(payload)}\n\n"


def sse_body(fragments, done: bool = True) -> bytes:
    body = "".join(sse_chunk(fragment) for fragment in fragments)
    if done:
        body += "data: [DONE]\n\n"
    return body.encode("utf-8")


def streaming_transport(fragments, status_code: int = 200, recorder=None) -> httpx.MockTransport:
    """Transport answering every request with an SSE body of `fragments`.

    `recorder`, when given, receives each `httpx.Request` for inspection.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if recorder is not None:
            recorder.append(request)
        return httpx.Response(
            status_code,
            headers={"Content-Type": "text/event-stream"},
            content=sse_body(fragments),
        )

    return httpx.MockTransport(handler)


def error_transport(status_code: int, body=None, headers=None) -> httpx.MockTransport:
    """Transport answering every request with a JSON provider error."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=body or {}, headers=headers or {})

    return httpx.MockTransport(handler)
