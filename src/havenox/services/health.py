"""Chain connectivity health check."""

import logging
from dataclasses import dataclass

import httpx

from havenox.adapters.kaspa_rest_client import ChainSummaryClient
from havenox.adapters.kaspa_rpc_client import LedgerClient
from havenox.domain.errors import RpcFailure

logger = logging.getLogger(__name__)


@dataclass
class ChainHealthService:
    """Reports ledger connectivity, degrading to the public REST summary."""

    ledger_client: LedgerClient
    summary_client: ChainSummaryClient

    async def check(self) -> dict[str, object]:
        """Return a health payload; never raises for chain outages."""
        try:
            info = await self.ledger_client.get_chain_info()
        except RpcFailure:
            logger.warning("Kaspa RPC unavailable, using REST summary")
        else:
            return {"status": "ok", "rpc": "connected", "dag": info}

        try:
            summary = await self.summary_client.get_blockdag_summary()
        except (httpx.HTTPError, ValueError):
            logger.exception("Kaspa REST summary unavailable")
            return {"status": "ok", "rpc": "unavailable", "dag": None}
        return {"status": "ok", "rpc": "rest-fallback", "dag": summary}
