"""
Pytest configuration and shared fixtures for the test suite.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from minter.config import MinterConfig
from minter.engine.matcher import ChainEvent
from minter.node.interface import (
    ChainHead,
    ExtrinsicStatus,
    NodeInterface,
    StatusKind,
)
from minter.tx.signer import TransactionSigner


BOT_ADDRESS = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> MinterConfig:
    """Create a test configuration."""
    return MinterConfig(
        bot_key="//Alice",
        ws_endpoint="ws://127.0.0.1:9944",
        collection_count=1,
        token_count_per_collection=1000,
        token_count_in_batch=100,
        max_attempts=11,
        retry_backoff_seconds=0,
        inclusion_timeout_seconds=5,
        supports_sufficiency_param=False,
        log_level="DEBUG",
    )


# ============================================================================
# Mock Node Interface
# ============================================================================

@dataclass
class MockExtrinsic:
    """Signed extrinsic as produced by the mock node."""
    call: dict
    keypair: Any
    era_current: int
    era_period: int


def block_hash_for(number: int) -> str:
    return f"0x{number:064x}"


class MockNodeInterface(NodeInterface):
    """
    Mock node interface for testing.

    Every submitted extrinsic goes ready -> inBlock in a new block, unless
    ``fail_when`` matches its call, in which case it reports
    ``failure_status`` instead.
    """

    def __init__(self, first_collection_id: int = 42, ss58_format: Optional[int] = 42):
        self.next_collection_id = first_collection_id
        self._ss58_format = ss58_format
        self.block_number = 100
        self.known_types: set = set()
        self.calls: List[dict] = []
        self.submitted: List[MockExtrinsic] = []
        self.fail_when: Optional[Callable[[dict], bool]] = None
        self.failure_status = StatusKind.INVALID
        self.emit_collection_created = True
        self.dispatch_failure = False
        self._events: Dict[str, List[ChainEvent]] = {}
        self._blocks: Dict[str, int] = {}
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    @property
    def ss58_format(self) -> Optional[int]:
        return self._ss58_format

    async def get_chain_head(self) -> ChainHead:
        return ChainHead(number=self.block_number, hash=block_hash_for(self.block_number))

    async def get_block_number(self, block_hash: str) -> int:
        return self._blocks[block_hash]

    async def has_type(self, type_name: str) -> bool:
        return type_name in self.known_types

    async def compose_call(self, module: str, function: str, params: dict) -> Any:
        call = {"module": module, "function": function, "params": params}
        self.calls.append(call)
        return call

    async def sign_extrinsic(self, call, keypair, era_current, era_period) -> Any:
        return MockExtrinsic(call, keypair, era_current, era_period)

    async def watch_extrinsic(self, extrinsic):
        self.submitted.append(extrinsic)
        yield ExtrinsicStatus(StatusKind.READY)

        if self.fail_when is not None and self.fail_when(extrinsic.call):
            yield ExtrinsicStatus(self.failure_status)
            return

        self.block_number += 1
        block_hash = block_hash_for(self.block_number)
        self._blocks[block_hash] = self.block_number
        self._events[block_hash] = self._events_for(extrinsic.call)
        yield ExtrinsicStatus(StatusKind.IN_BLOCK, block_hash=block_hash)

    async def get_extrinsic_events(self, extrinsic, block_hash: str) -> List[ChainEvent]:
        return self._events[block_hash]

    def _events_for(self, call: dict) -> List[ChainEvent]:
        events = [ChainEvent("Balances", "Withdraw", (BOT_ADDRESS, 1_000))]

        if self.dispatch_failure:
            events.append(ChainEvent("System", "ExtrinsicFailed", ({"Module": {"index": 40}},)))
            return events

        if call["function"] == "create_collection" and self.emit_collection_created:
            events.append(ChainEvent("MultiTokens", "CollectionCreated", (self.next_collection_id, BOT_ADDRESS)))
            self.next_collection_id += 1
        elif call["function"] == "batch_mint":
            collection_id = call["params"]["collection_id"]
            for recipient in call["params"]["recipients"]:
                token_id = recipient["params"]["CreateToken"]["token_id"]
                events.append(ChainEvent("MultiTokens", "TokenCreated", (collection_id, token_id, BOT_ADDRESS)))

        events.append(ChainEvent("System", "ExtrinsicSuccess", ({"weight": 1},)))
        return events

    def batch_mint_calls(self) -> List[dict]:
        """Composed batch_mint calls, in order."""
        return [c for c in self.calls if c["function"] == "batch_mint"]


def first_token_id(call: dict) -> int:
    return call["params"]["recipients"][0]["params"]["CreateToken"]["token_id"]


@pytest.fixture
def mock_node() -> MockNodeInterface:
    """Create a mock node interface."""
    return MockNodeInterface()


# ============================================================================
# Test Signer
# ============================================================================

@pytest.fixture
def mock_signer() -> TransactionSigner:
    """Create a signer stand-in that needs no key material."""
    signer = MagicMock(spec=TransactionSigner)
    signer.keypair = MagicMock(name="keypair")
    signer.address = BOT_ADDRESS
    signer.is_loaded = True
    return signer
