"""Kaspa public REST API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

DEFAULT_REST_URL = "https://api.kaspa.org"


class ChainSummaryClient(Protocol):
    """Interface for a REST-sourced chain summary."""

    async def get_blockdag_summary(self) -> dict[str, object]:
        """Return the public block DAG summary."""


@dataclass
class HttpxKaspaRestClient(ChainSummaryClient):
    """HTTPX-backed Kaspa REST client."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str = DEFAULT_REST_URL) -> "HttpxKaspaRestClient":
        """Create a REST client with a managed httpx session."""
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def get_blockdag_summary(self) -> dict[str, object]:
        """Fetch the block DAG summary."""
        response = await self.http_client.get(
            f"{self.base_url}/info/blockdag", timeout=10
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
