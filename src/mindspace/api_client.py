"""HTTP client helpers for talking to the forum REST backend."""

from typing import Any

import httpx

from mindspace.core.config import Settings, get_settings


def create_http_client(settings: Settings | None = None) -> httpx.AsyncClient:
    """Create the shared HTTP client for API requests."""
    settings = settings or get_settings()
    return httpx.AsyncClient(
        base_url=settings.api_url,
        timeout=settings.api_timeout,
        headers={"X-Request-Source": settings.request_source},
    )


def _get_headers(token: str | None) -> dict[str, str]:
    """Get auth headers for API requests. Anonymous reads send none."""
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


def _json_or_none(response: httpx.Response) -> Any:
    """Decode a JSON body, treating an empty body (e.g. 204) as None."""
    if not response.content:
        return None
    return response.json()


async def api_get(
    client: httpx.AsyncClient,
    path: str,
    token: str | None = None,
    params: dict[str, Any] | None = None,
) -> Any:
    """Make a GET request to the API, authenticated when a token is given."""
    response = await client.get(
        path,
        params=params,
        headers=_get_headers(token),
    )
    response.raise_for_status()
    return _json_or_none(response)


async def api_post(
    client: httpx.AsyncClient,
    path: str,
    token: str | None = None,
    json: dict[str, Any] | None = None,
) -> Any:
    """Make a POST request to the API."""
    response = await client.post(
        path,
        json=json,
        headers=_get_headers(token),
    )
    response.raise_for_status()
    return _json_or_none(response)


async def api_put(
    client: httpx.AsyncClient,
    path: str,
    token: str,
    json: dict[str, Any],
) -> Any:
    """Make an authenticated PUT request to the API."""
    response = await client.put(
        path,
        json=json,
        headers=_get_headers(token),
    )
    response.raise_for_status()
    return _json_or_none(response)


async def api_delete(
    client: httpx.AsyncClient,
    path: str,
    token: str,
) -> Any:
    """Make an authenticated DELETE request to the API."""
    response = await client.delete(
        path,
        headers=_get_headers(token),
    )
    response.raise_for_status()
    return _json_or_none(response)


def unwrap(body: Any, key: str) -> Any:
    """
    Return ``body[key]`` for enveloped responses, else the body itself.

    The backend wraps most payloads (``{"threads": [...]}``,
    ``{"thread": {...}}``) but a bare body is accepted as well.
    """
    if isinstance(body, dict) and key in body:
        return body[key]
    return body
