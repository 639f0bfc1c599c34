#!/usr/bin/env python3
"""tweetwire quickstart -- offline walkthrough.

Demonstrates the core workflow against a local mock server:

1. Build a client that signs with OAuth 1.0a.
2. Post a status (form body, signed).
3. Search with a declarative parameter model and ``json_path``.
4. Handle an API error.
5. Read a filter stream as typed messages.

Run:
    python examples/quickstart.py
"""
from __future__ import annotations

import asyncio
import json
import logging

import httpx

from tweetwire import (
    ApiError,
    ApiParameters,
    AsyncClient,
    AsyncTransport,
    Client,
    ConnectionOptions,
    SyncTransport,
)
from tweetwire.streaming.messages import StatusMessage

STREAM_LINES = [
    {"friends": [12, 783214]},
    {"text": "python 3.13 released", "id": 1, "timestamp_ms": "1700000000000"},
    {"limit": {"track": 12}},
    {"disconnect": {"code": 4, "stream_name": "quickstart", "reason": "stall"}},
]


def mock_server(request: httpx.Request) -> httpx.Response:
    """A tiny stand-in for the API hosts."""
    path = request.url.path
    if path == "/1.1/statuses/update.json":
        return httpx.Response(200, text=json.dumps({"id": 1, "text": "hello world"}))
    if path == "/1.1/search/tweets.json":
        body = {"statuses": [{"id": 2, "text": request.url.params["q"]}], "search_metadata": {}}
        return httpx.Response(
            200,
            text=json.dumps(body),
            headers={
                "x-rate-limit-limit": "180",
                "x-rate-limit-remaining": "179",
                "x-rate-limit-reset": "1700000900",
            },
        )
    if path == "/1.1/statuses/filter.json":
        lines = "\r\n".join(json.dumps(line) for line in STREAM_LINES)
        return httpx.Response(200, text=lines + "\r\n")
    return httpx.Response(
        404, text='{"errors":[{"code":34,"message":"Sorry, that page does not exist."}]}'
    )


class SearchParameters(ApiParameters):
    q: str
    count: int | None = None
    include_entities: bool | None = None


def main() -> None:
    logging.basicConfig(level=logging.WARNING)
    transport = SyncTransport(transport=httpx.MockTransport(mock_server))
    options = ConnectionOptions(user_agent="quickstart/1.0")

    # -- Step 1: Build a signing client ---------------------------------------
    with Client.from_oauth1(
        "consumer-key", "consumer-secret", "access-token", "access-token-secret",
        options=options, transport=transport,
    ) as client:
        print(f"[1] {client!r}")

        # -- Step 2: Post a status --------------------------------------------
        posted = client.post("statuses/update", status="hello world")
        print(f"[2] Posted status {posted.data['id']}")

        # -- Step 3: Search ---------------------------------------------------
        found = client.get(
            "search/tweets",
            SearchParameters(q="python", count=10, include_entities=False),
            json_path="statuses",
        )
        print(f"[3] Found {len(found.data)} statuses; "
              f"{found.rate_limit.remaining}/{found.rate_limit.limit} calls left")

        # -- Step 4: API errors -----------------------------------------------
        try:
            client.get("statuses/show/{id}", id=404)
        except ApiError as exc:
            print(f"[4] {exc.status_code}: {exc.errors[0].code} {exc.message}")

        # -- Step 5: Stream ---------------------------------------------------
        with client.stream("filter", track="python") as messages:
            for message in messages:
                if isinstance(message, StatusMessage):
                    print(f"[5] Status {message.id}: {message.text}")
                else:
                    print(f"[5] {message.message_type}")


async def async_main() -> None:
    transport = AsyncTransport(transport=httpx.MockTransport(mock_server))
    async with AsyncClient.from_bearer("bearer-token", transport=transport) as client:
        found = await client.get("search/tweets", q="asyncio", json_path="statuses.0.text")
        print(f"[6] Async search returned {found.data!r}")


if __name__ == "__main__":
    main()
    asyncio.run(async_main())
