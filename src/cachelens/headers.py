"""Request header assembly."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

import httpx

from cachelens.config import Config
from cachelens.errors import NotDefinedError


class SessionTokenProvider(Protocol):
    """Looks up the session token stored under a cookie name."""

    async def __call__(self, cookie_name: str) -> str | None: ...


def cookie_jar_provider(cookies: httpx.Cookies) -> SessionTokenProvider:
    """Read session tokens from an httpx cookie jar."""

    async def provider(cookie_name: str) -> str | None:
        return cookies.get(cookie_name)

    return provider


def static_token_provider(token: str | None) -> SessionTokenProvider:
    """Always return ``token``."""

    async def provider(cookie_name: str) -> str | None:
        return token

    return provider


async def get_headers(
    config: Config,
    *,
    auth: bool | None = None,
    custom_headers: Mapping[str, str] | None = None,
    session: SessionTokenProvider | None = None,
) -> dict[str, str]:
    """Build request headers, adding credentials when the request needs them.

    Raises:
        NotDefinedError: If a setting needed for authentication is missing,
            or no session token can be found.
    """
    if not isinstance(config.default_auth_requests, bool):
        raise NotDefinedError(
            "Default auth requests is not defined",
            "Make sure you have set default_auth_requests in your config file",
        )

    headers = {"Content-Type": "application/json", **(custom_headers or {})}

    needs_auth = config.default_auth_requests if auth is None else auth
    if not needs_auth:
        return headers

    cookie_name = config.session_cookie_name
    if not isinstance(cookie_name, str):
        raise NotDefinedError(
            "Session cookie name is not defined",
            "Make sure you have set session_cookie_name in your config file",
        )

    token = await session(cookie_name) if session is not None else None
    if not token:
        raise NotDefinedError(
            "Access token is not defined",
            "Pass auth=False for non-authenticated requests, otherwise make sure "
            "session_cookie_name matches the name of your session cookie",
        )

    token_verb = config.token_verb
    if not isinstance(token_verb, str):
        raise NotDefinedError(
            "Token verb is not defined",
            "Make sure you have set token_verb in your config file",
        )

    return {
        **headers,
        "Authorization": f"{token_verb} {token}",
        "Cookie": f"{cookie_name}={token}",
    }
