"""Shared test fixtures."""

from dataclasses import dataclass, field
from uuid import UUID

import pytest

from havenox.adapters.kaspa_rest_client import ChainSummaryClient
from havenox.adapters.kaspa_rpc_client import LedgerClient
from havenox.adapters.sendgrid_client import MailClient
from havenox.config import Settings
from havenox.containers import AppContainer
from havenox.domain.errors import ConflictError, NotificationError, RpcFailure
from havenox.domain.tents import Tent
from havenox.services.broadcast import BroadcastCoordinator
from havenox.services.health import ChainHealthService
from havenox.services.tents import TentRepository, TentService
from havenox.services.verification import VerificationService


@dataclass
class InMemoryTentRepository(TentRepository):
    """In-memory tent repository for tests."""

    tents: dict[UUID, Tent] = field(default_factory=dict)
    writes: int = 0

    def create_tent(self, tent: Tent) -> Tent:
        self.tents[tent.id] = tent
        self.writes += 1
        return tent

    def get_tent(self, tent_id: UUID) -> Tent | None:
        return self.tents.get(tent_id)

    def save_tent(self, tent: Tent, expected_version: int) -> Tent:
        stored = self.tents.get(tent.id)
        if stored is None or stored.version != expected_version:
            raise ConflictError(f"stale write for {tent.id}")
        self.tents[tent.id] = tent
        self.writes += 1
        return tent

    def list_tents(self) -> list[Tent]:
        return list(self.tents.values())


@dataclass
class FakeLedgerClient(LedgerClient):
    """Fake ledger client returning canned node responses."""

    chain_info: dict[str, object] = field(
        default_factory=lambda: {"networkName": "kaspa-mainnet", "blockCount": 10}
    )
    address_valid: bool = True
    signature_valid: bool = True
    unavailable: bool = False
    calls: list[str] = field(default_factory=list)

    async def get_chain_info(self) -> dict[str, object]:
        self.calls.append("getBlockDagInfo")
        if self.unavailable:
            raise RpcFailure(RuntimeError("connection refused"))
        return self.chain_info

    async def validate_address(self, address: str) -> dict[str, object]:
        self.calls.append("validateAddresses")
        if self.unavailable:
            raise RpcFailure(RuntimeError("connection refused"))
        return {"entries": [{"address": address, "isValid": self.address_valid}]}

    async def verify_message(
        self, address: str, signature: str, message: str
    ) -> dict[str, object]:
        self.calls.append("messageVerify")
        if self.unavailable:
            raise RpcFailure(RuntimeError("connection refused"))
        return {"isValid": self.signature_valid}


@dataclass
class FakeSummaryClient(ChainSummaryClient):
    """Fake REST summary client."""

    summary: dict[str, object] = field(
        default_factory=lambda: {"networkName": "kaspa-mainnet", "source": "rest"}
    )
    error: Exception | None = None

    async def get_blockdag_summary(self) -> dict[str, object]:
        if self.error is not None:
            raise self.error
        return self.summary


@dataclass
class FakeMailClient(MailClient):
    """Fake mail client that records outgoing emails."""

    sent: list[tuple[str, str, str]] = field(default_factory=list)
    fail: bool = False

    async def send_email(self, to: str, subject: str, html: str) -> None:
        self.sent.append((to, subject, html))
        if self.fail:
            raise NotificationError("SendGrid delivery failed: 401")


@dataclass
class RecordingConnection:
    """Connection that records every event it receives."""

    id: str
    events: list[dict[str, object]] = field(default_factory=list)
    broken: bool = False

    async def send_json(self, event: dict[str, object]) -> None:
        if self.broken:
            raise ConnectionResetError("socket closed")
        self.events.append(event)

    def of_type(self, event_type: str) -> list[dict[str, object]]:
        return [event for event in self.events if event["type"] == event_type]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        tent_store="file",
        tent_store_path=str(tmp_path / "tents.json"),
        frontend_base_url="https://app.havenox.test",
    )


@pytest.fixture
def tent_repository() -> InMemoryTentRepository:
    return InMemoryTentRepository()


@pytest.fixture
def ledger_client() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture
def mail_client() -> FakeMailClient:
    return FakeMailClient()


@pytest.fixture
def container(
    settings: Settings,
    tent_repository: InMemoryTentRepository,
    ledger_client: FakeLedgerClient,
    mail_client: FakeMailClient,
) -> AppContainer:
    coordinator = BroadcastCoordinator()
    tent_service = TentService(
        repository=tent_repository,
        broadcaster=coordinator,
        mail_client=mail_client,
        frontend_base_url=settings.frontend_base_url,
    )

    async def close_resources() -> None:
        coordinator.close()

    return AppContainer(
        settings=settings,
        broadcast_coordinator=coordinator,
        tent_service=tent_service,
        verification_service=VerificationService(ledger_client),
        health_service=ChainHealthService(
            ledger_client=ledger_client, summary_client=FakeSummaryClient()
        ),
        close_resources=close_resources,
    )
