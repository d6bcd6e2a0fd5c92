"""HTTP helpers shared by the ingestion adapters."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, List

import httpx

from dynval.errors import FetchError


async def get_response(client: httpx.AsyncClient, url: str, *, source: str) -> httpx.Response:
    """GET ``url``; transport errors and non-200 statuses raise ``FetchError``."""

    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        raise FetchError(source, f"request failed: {exc}") from exc
    if response.status_code != 200:
        raise FetchError(source, f"unexpected status {response.status_code}", status_code=response.status_code)
    return response


async def get_json(client: httpx.AsyncClient, url: str, *, source: str) -> Any:
    response = await get_response(client, url, source=source)
    try:
        return response.json()
    except ValueError as exc:
        raise FetchError(source, f"invalid JSON body: {exc}") from exc


async def gather_all(*aws: Awaitable[Any]) -> List[Any]:
    """Like ``asyncio.gather`` but siblings are cancelled and awaited when one fails."""

    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
