"""discord_client.py – Discord REST API Wrapper

Purpose
-------
Encapsulates every outbound call the service makes to the Discord REST API so
that authorisation, base URL, timeouts and error mapping live in one place.

Endpoints used
--------------
* ``GET  /channels/{channel_id}/messages`` – one page of channel history.
* ``PATCH /webhooks/{application_id}/{token}/messages/@original`` – replace
  the deferred "thinking…" placeholder with the real response.
* ``PUT  /applications/{application_id}/commands`` – bulk-overwrite the
  global slash commands (idempotent).

Error policy
------------
Non-2xx responses raise :class:`DiscordAPIError`; transport failures surface
as the underlying :class:`requests.RequestException`.  Nothing is retried
here – callers decide whether a failure is fatal for their request.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional
import json
import logging

import requests

from framed_stats.config import Settings
from framed_stats.models import Message, MessagePage, RateLimit

__all__ = [
    "DiscordAPIError",
    "DiscordClient",
    "USER_AGENT",
]

logger = logging.getLogger(__name__)

USER_AGENT = "DiscordBot (https://github.com/framed-stats/framed-stats, 1.0.0)"
MAX_PAGE_SIZE = 100


class DiscordAPIError(RuntimeError):
    """Raised when Discord answers with a non-success status code."""

    def __init__(self, status: int, endpoint: str, body: Any = None):
        self.status = status
        self.endpoint = endpoint
        self.body = body
        super().__init__(f"Discord API {endpoint} failed with HTTP {status}: {body}")


class DiscordClient:
    """Thin, synchronous wrapper around a :class:`requests.Session`."""

    def __init__(
        self,
        token: Optional[str],
        *,
        base_url: str = "https://discord.com/api/v10",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Content-Type": "application/json; charset=UTF-8",
            "User-Agent": USER_AGENT,
        }
        if token:
            self.headers["Authorization"] = f"Bot {token}"

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "DiscordClient":
        return cls(
            settings.discord_token,
            base_url=settings.api_base_url,
            timeout=settings.request_timeout,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> requests.Response:
        """Issue *method* against *endpoint* (relative to the API base URL)."""
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        logger.debug("%s %s params=%s", method, url, dict(params or {}))
        response = self.session.request(
            method,
            url,
            headers=self.headers,
            params=params,
            data=json.dumps(body) if body is not None else None,
            timeout=self.timeout,
        )
        if not 200 <= response.status_code < 300:
            try:
                detail = response.json()
            except ValueError:
                detail = response.text
            logger.error(
                "Discord API %s %s returned HTTP %s", method, endpoint, response.status_code
            )
            raise DiscordAPIError(response.status_code, endpoint, detail)
        return response

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_channel_messages(
        self,
        channel_id: str,
        *,
        before: Optional[str] = None,
        limit: int = MAX_PAGE_SIZE,
    ) -> MessagePage:
        """Return up to *limit* messages older than *before*, newest first."""
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        params: Dict[str, Any] = {"limit": limit}
        if before is not None:
            params["before"] = before
        response = self.request("GET", f"channels/{channel_id}/messages", params=params)
        messages = [Message.from_payload(item) for item in response.json()]
        return MessagePage(messages=messages, rate_limit=RateLimit.from_headers(response.headers))

    def edit_original_response(self, application_id: str, token: str, content: str) -> Dict[str, Any]:
        """Replace the deferred placeholder of an interaction with *content*."""
        response = self.request(
            "PATCH",
            f"webhooks/{application_id}/{token}/messages/@original",
            body={"content": content},
        )
        return response.json()

    def bulk_overwrite_global_commands(
        self, application_id: str, commands: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """Replace every global command of *application_id* with *commands*."""
        response = self.request("PUT", f"applications/{application_id}/commands", body=commands)
        return response.json()
