"""Expo push API client."""
from __future__ import annotations

import logging
import re
from typing import Any

import httpx

logger = logging.getLogger(__name__)

EXPO_CHUNK_SIZE = 100

_EXPO_TOKEN_RE = re.compile(r"^Expo(nent)?PushToken\[.+\]$")


class PushDeliveryError(Exception):
    """Every chunk of a push batch failed to reach the Expo API."""


def is_expo_push_token(token: str) -> bool:
    return bool(token) and _EXPO_TOKEN_RE.match(token) is not None


def _chunks(items: list[Any], size: int) -> list[list[Any]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class ExpoPushSender:
    """Hand notifications to the Expo push service in chunks of 100."""

    def __init__(
        self,
        url: str,
        *,
        access_token: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self._url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = headers

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def send(
        self,
        tokens: list[str],
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> int:
        valid = [t for t in dict.fromkeys(tokens) if is_expo_push_token(t)]
        skipped = len(tokens) - len(valid)
        if skipped:
            logger.warning("Skipping %d non-Expo push token(s)", skipped)
        if not valid:
            return 0

        messages = [
            {"to": token, "sound": "default", "title": title, "body": body, "data": data or {}}
            for token in valid
        ]
        chunks = _chunks(messages, EXPO_CHUNK_SIZE)
        delivered = 0
        failed_chunks = 0
        for chunk in chunks:
            try:
                response = await self._client.post(self._url, json=chunk, headers=self._headers)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                failed_chunks += 1
                logger.error("Expo push chunk of %d failed: %s", len(chunk), exc)
                continue
            delivered += len(chunk)
            self._log_ticket_errors(response)

        if failed_chunks == len(chunks):
            raise PushDeliveryError(f"all {failed_chunks} push chunk(s) failed")
        return delivered

    @staticmethod
    def _log_ticket_errors(response: httpx.Response) -> None:
        try:
            tickets = response.json().get("data") or []
        except ValueError:
            logger.warning("Expo push response is not JSON")
            return
        for ticket in tickets:
            if isinstance(ticket, dict) and ticket.get("status") == "error":
                logger.warning(
                    "Expo push ticket error: %s (%s)",
                    ticket.get("message"),
                    (ticket.get("details") or {}).get("error"),
                )
