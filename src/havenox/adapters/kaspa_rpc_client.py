"""Kaspa JSON-RPC client with endpoint fallback and bounded retries."""

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from havenox.domain.errors import RpcFailure

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "http://127.0.0.1:18110"
DEFAULT_FALLBACK_RPC_URL = "https://api.kaspa.org"


class LedgerClient(Protocol):
    """Interface for ledger node queries."""

    async def get_chain_info(self) -> dict[str, object]:
        """Return the node's block DAG summary."""

    async def validate_address(self, address: str) -> dict[str, object]:
        """Return the node's validation result for an address."""

    async def verify_message(
        self, address: str, signature: str, message: str
    ) -> dict[str, object]:
        """Return the node's verdict on a signed message."""


class RpcAttemptError(Exception):
    """A single RPC attempt failed and may be retried."""


@dataclass(frozen=True)
class RetryPolicy:
    """Per-endpoint retry budget with linear backoff."""

    max_retries: int = 3
    backoff_base_seconds: float = 0.3

    def delay_for(self, attempt: int) -> float:
        """Return the wait before the attempt following ``attempt``."""
        return self.backoff_base_seconds * attempt


@dataclass
class RetryCursor:
    """Walks (endpoint index, attempt) pairs until the budget is spent."""

    endpoint_count: int
    policy: RetryPolicy
    endpoint_index: int = 0
    attempt: int = 1

    @property
    def exhausted(self) -> bool:
        return self.endpoint_index >= self.endpoint_count

    def record_failure(self) -> float:
        """Advance past a failed attempt and return the delay to apply."""
        if self.attempt < self.policy.max_retries:
            delay = self.policy.delay_for(self.attempt)
            self.attempt += 1
            return delay
        self.endpoint_index += 1
        self.attempt = 1
        return 0.0


@dataclass
class HttpxKaspaRpcClient(LedgerClient):
    """HTTPX-backed Kaspa RPC client."""

    endpoints: list[str]
    http_client: httpx.AsyncClient
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    timeout: float = 10
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    fallback_calls: int = 0
    _request_ids: Iterator[int] = field(
        default_factory=lambda: itertools.count(1), init=False, repr=False
    )

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        url: str = DEFAULT_RPC_URL,
        fallback_url: str = DEFAULT_FALLBACK_RPC_URL,
        max_retries: int = 3,
        backoff_base_seconds: float = 0.3,
        timeout: float = 10,
    ) -> "HttpxKaspaRpcClient":
        """Create an RPC client with a managed httpx session."""
        return cls(
            endpoints=[url, fallback_url],
            http_client=httpx.AsyncClient(),
            retry_policy=RetryPolicy(
                max_retries=max_retries, backoff_base_seconds=backoff_base_seconds
            ),
            timeout=timeout,
        )

    async def call(
        self, method: str, params: dict[str, object] | None = None
    ) -> object:
        """Call an RPC method, falling back across endpoints on failure."""
        cursor = RetryCursor(len(self.endpoints), self.retry_policy)
        last_error: Exception | None = None
        while not cursor.exhausted:
            endpoint = self.endpoints[cursor.endpoint_index]
            try:
                result = await self._send(endpoint, method, params or {})
            except (httpx.HTTPError, RpcAttemptError, ValueError) as exc:
                last_error = exc
                logger.debug(
                    "Kaspa RPC attempt failed",
                    extra={
                        "endpoint": endpoint,
                        "method": method,
                        "attempt": cursor.attempt,
                        "error": str(exc),
                    },
                )
                delay = cursor.record_failure()
                if delay > 0:
                    await self.sleep(delay)
                continue
            if cursor.endpoint_index > 0:
                self.fallback_calls += 1
                logger.warning(
                    "Using fallback Kaspa RPC endpoint %s",
                    endpoint,
                    extra={"method": method},
                )
            return result
        raise RpcFailure(last_error)

    async def get_chain_info(self) -> dict[str, object]:
        """Return the block DAG summary."""
        return _as_dict(await self.call("getBlockDagInfo"))

    async def validate_address(self, address: str) -> dict[str, object]:
        """Validate a single address."""
        return _as_dict(await self.call("validateAddresses", {"addresses": [address]}))

    async def verify_message(
        self, address: str, signature: str, message: str
    ) -> dict[str, object]:
        """Ask the node to verify a signed message."""
        return _as_dict(
            await self.call(
                "messageVerify",
                {"address": address, "signature": signature, "message": message},
            )
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _send(
        self, endpoint: str, method: str, params: dict[str, object]
    ) -> object:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params,
        }
        response = await self.http_client.post(
            endpoint, json=payload, timeout=self.timeout
        )
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise RpcAttemptError("Malformed RPC response")
        error = body.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            raise RpcAttemptError(str(message or error))
        return body.get("result")


def _as_dict(result: object) -> dict[str, object]:
    return result if isinstance(result, dict) else {}
