import json
from datetime import datetime
from typing import Protocol

import httpx
from loguru import logger

MAX_QUERY_LENGTH = 280


class NluClient(Protocol):
    async def query_text(self, message: str, timestamp: datetime) -> dict: ...

    async def query_voice(self, voice: bytes, timestamp: datetime) -> dict: ...


class WitClient:
    """Thin async client for the Wit.ai message and speech endpoints.

    Errors are not retried; an HTTP failure propagates to the caller.
    """

    def __init__(
        self,
        token: str,
        url: str = "https://api.wit.ai",
        version: str = "20200612",
        client: httpx.AsyncClient | None = None,
    ):
        self.token = token
        self.url = url.rstrip("/")
        self.version = version
        self.client = client or httpx.AsyncClient(timeout=30)

    def _params(self, timestamp: datetime) -> dict:
        return {
            "v": self.version,
            "context": json.dumps({"reference_time": timestamp.isoformat()}),
        }

    def _headers(self, content_type: str) -> dict:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": content_type,
            "Accept": "application/json",
        }

    async def query_text(self, message: str, timestamp: datetime) -> dict:
        params = self._params(timestamp)
        params["q"] = message[:MAX_QUERY_LENGTH]

        response = await self.client.get(
            f"{self.url}/message",
            params=params,
            headers=self._headers("application/json"),
        )
        response.raise_for_status()

        data = response.json()
        logger.debug("Wit response: {}", data)
        return data

    # Voice must already be audio/mpeg; Wit's OGG support is unreliable.
    async def query_voice(self, voice: bytes, timestamp: datetime) -> dict:
        response = await self.client.post(
            f"{self.url}/speech",
            params=self._params(timestamp),
            headers=self._headers("audio/mpeg"),
            content=voice,
        )
        response.raise_for_status()

        data = response.json()
        logger.debug("Wit speech response: {}", data)
        return data

    async def aclose(self) -> None:
        await self.client.aclose()
