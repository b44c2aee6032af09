"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from havenox.adapters.json_tent_repository import JsonFileTentRepository
from havenox.adapters.kaspa_rest_client import HttpxKaspaRestClient
from havenox.adapters.kaspa_rpc_client import HttpxKaspaRpcClient
from havenox.adapters.sendgrid_client import HttpxSendGridClient, is_sendgrid_configured
from havenox.adapters.supabase_tent_repository import SupabaseTentRepository
from havenox.config import Settings
from havenox.services.broadcast import BroadcastCoordinator
from havenox.services.health import ChainHealthService
from havenox.services.tents import TentRepository, TentService
from havenox.services.verification import VerificationService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    broadcast_coordinator: BroadcastCoordinator
    tent_service: TentService
    verification_service: VerificationService
    health_service: ChainHealthService
    close_resources: Callable[[], Awaitable[None]]


def build_tent_repository(settings: Settings) -> TentRepository:
    """Create the configured tent store."""
    if settings.tent_store == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase tent store requires url and service key")
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseTentRepository(client)
    if settings.tent_store == "file":
        return JsonFileTentRepository(Path(settings.tent_store_path))
    raise ValueError(f"Unknown tent store: {settings.tent_store}")


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    rpc_client = HttpxKaspaRpcClient.create(
        url=resolved_settings.kaspa_rpc_url,
        fallback_url=resolved_settings.kaspa_fallback_rpc_url,
        max_retries=resolved_settings.rpc_max_retries,
        backoff_base_seconds=resolved_settings.rpc_backoff_base_seconds,
        timeout=resolved_settings.rpc_timeout_seconds,
    )
    rest_client = HttpxKaspaRestClient.create(resolved_settings.kaspa_rest_url)
    mail_client: HttpxSendGridClient | None = None
    if is_sendgrid_configured(
        resolved_settings.sendgrid_api_key, resolved_settings.sendgrid_from
    ):
        mail_client = HttpxSendGridClient.create(
            api_key=resolved_settings.sendgrid_api_key or "",
            sender=resolved_settings.sendgrid_from or "",
        )
    broadcast_coordinator = BroadcastCoordinator()
    tent_service = TentService(
        repository=build_tent_repository(resolved_settings),
        broadcaster=broadcast_coordinator,
        mail_client=mail_client,
        frontend_base_url=resolved_settings.frontend_base_url,
    )
    verification_service = VerificationService(rpc_client)
    health_service = ChainHealthService(
        ledger_client=rpc_client, summary_client=rest_client
    )

    async def close_resources() -> None:
        broadcast_coordinator.close()
        await rpc_client.close()
        await rest_client.close()
        if mail_client is not None:
            await mail_client.close()

    return AppContainer(
        settings=resolved_settings,
        broadcast_coordinator=broadcast_coordinator,
        tent_service=tent_service,
        verification_service=verification_service,
        health_service=health_service,
        close_resources=close_resources,
    )
