"""
Abstract interface for Substrate node integration.

Defines the contract for blockchain access that all node adapters must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncGenerator, List, Optional

from minter.engine.matcher import ChainEvent


@dataclass
class ChainHead:
    """Current chain head information."""
    number: int
    hash: str


class StatusKind(str, Enum):
    """Extrinsic lifecycle states reported by author_submitAndWatchExtrinsic."""
    FUTURE = "future"
    READY = "ready"
    BROADCAST = "broadcast"
    IN_BLOCK = "inBlock"
    RETRACTED = "retracted"
    FINALITY_TIMEOUT = "finalityTimeout"
    FINALIZED = "finalized"
    USURPED = "usurped"
    DROPPED = "dropped"
    INVALID = "invalid"


_INCLUDED = {StatusKind.IN_BLOCK, StatusKind.FINALIZED}
_ERRORS = {
    StatusKind.DROPPED,
    StatusKind.INVALID,
    StatusKind.USURPED,
    StatusKind.FINALITY_TIMEOUT,
}


@dataclass
class ExtrinsicStatus:
    """One update of an extrinsic's status stream."""

    kind: StatusKind
    block_hash: Optional[str] = None

    @property
    def is_included(self) -> bool:
        """The extrinsic is in a block (possibly finalized)."""
        return self.kind in _INCLUDED

    @property
    def is_error(self) -> bool:
        """The extrinsic will not be included."""
        return self.kind in _ERRORS

    @property
    def is_terminal(self) -> bool:
        return self.is_included or self.is_error

    @classmethod
    def from_rpc(cls, result: Any) -> "ExtrinsicStatus":
        """
        Parse a status notification.

        Plain states arrive as strings ("ready"), states carrying a block
        hash as single-key objects ({"inBlock": "0x..."}).
        """
        if isinstance(result, str):
            return cls(StatusKind(result))

        if isinstance(result, dict) and len(result) == 1:
            key, value = next(iter(result.items()))
            kind = StatusKind(key)
            return cls(kind, block_hash=value if isinstance(value, str) else None)

        raise ValueError(f"Unrecognised extrinsic status: {result!r}")


class NodeInterface(ABC):
    """
    Abstract interface for Substrate node access.

    This interface defines all blockchain operations needed by the minter:
    - Chain head queries
    - Call composition and extrinsic signing
    - Extrinsic submission with status tracking
    - Event retrieval
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the node.

        Raises:
            NodeConnectionError: If connection cannot be established
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the node."""
        pass

    @property
    @abstractmethod
    def ss58_format(self) -> Optional[int]:
        """Address format announced by the chain, None if unknown."""
        pass

    @abstractmethod
    async def get_chain_head(self) -> ChainHead:
        """
        Get the current best block.

        Returns:
            Number and hash of the chain head
        """
        pass

    @abstractmethod
    async def get_block_number(self, block_hash: str) -> int:
        """Get the number of the block with the given hash."""
        pass

    @abstractmethod
    async def has_type(self, type_name: str) -> bool:
        """
        Check whether the runtime registers a type.

        Args:
            type_name: Fully qualified type path

        Returns:
            True if the type is known to the current runtime
        """
        pass

    @abstractmethod
    async def compose_call(self, module: str, function: str, params: dict) -> Any:
        """
        Encode a runtime call.

        Args:
            module: Pallet name (e.g. "MultiTokens")
            function: Call name (e.g. "batch_mint")
            params: Call arguments

        Returns:
            Opaque call object accepted by sign_extrinsic
        """
        pass

    @abstractmethod
    async def sign_extrinsic(
        self,
        call: Any,
        keypair: Any,
        era_current: int,
        era_period: int,
    ) -> Any:
        """
        Sign a call into a mortal extrinsic.

        The nonce is chosen by the node (next unused index of the signer,
        including pending pool transactions).

        Args:
            call: Call returned by compose_call
            keypair: Signing keypair
            era_current: Block number the mortality window starts from
            era_period: Length of the mortality window in blocks

        Returns:
            Opaque signed extrinsic
        """
        pass

    @abstractmethod
    def watch_extrinsic(self, extrinsic: Any) -> AsyncGenerator[ExtrinsicStatus, None]:
        """
        Broadcast an extrinsic and stream its status updates.

        The stream ends after the first terminal status.

        Raises:
            TransactionSubmitError: If the broadcast is rejected or the
                connection fails while watching
        """
        pass

    @abstractmethod
    async def get_extrinsic_events(self, extrinsic: Any, block_hash: str) -> List[ChainEvent]:
        """
        Get the events triggered by an extrinsic.

        Args:
            extrinsic: The submitted extrinsic
            block_hash: Block the extrinsic was included in

        Returns:
            Events in emission order
        """
        pass


class NodeConnectionError(Exception):
    """Raised when connection to node fails."""
    pass


class TransactionSubmitError(Exception):
    """Raised when extrinsic submission fails."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.retryable = retryable
        self.attempts = 1


class DispatchError(TransactionSubmitError):
    """Raised when an included extrinsic failed to execute (System.ExtrinsicFailed)."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message, error_code=error_code, retryable=False)


class InclusionLookupError(TransactionSubmitError):
    """Raised when an extrinsic is in a block but its events cannot be fetched."""

    def __init__(self, message: str, block_hash: Optional[str] = None):
        super().__init__(message, error_code="lookup", retryable=False)
        self.block_hash = block_hash
