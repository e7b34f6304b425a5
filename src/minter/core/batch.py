"""
Mint batch model.

Represents one range of tokens minted in a single batch_mint extrinsic.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from minter.engine.planner import BatchPlanEntry


def _now() -> datetime:
    return datetime.now(timezone.utc)


class BatchStatus(str, Enum):
    """Status of a mint batch."""
    PENDING = "pending"           # Planned, not yet submitted
    SUBMITTED = "submitted"       # Extrinsic in flight
    MINTED = "minted"             # Included in a block
    FAILED = "failed"             # Failed after retries


@dataclass
class MintBatch:
    """
    A batch of tokens minted together.

    Attributes:
        collection_id: Collection the tokens are created in
        entry: Token id range of the batch
        status: Current processing status
        block_hash: Block the extrinsic was included in
        block_number: Number of that block
        attempts: Submissions it took (or that were spent, on failure)
        tokens_created: MultiTokens.TokenCreated events the extrinsic emitted
        error_message: Cause of the failure, if any
    """

    collection_id: int
    entry: BatchPlanEntry
    status: BatchStatus = BatchStatus.PENDING

    # Inclusion info
    block_hash: Optional[str] = None
    block_number: Optional[int] = None
    attempts: int = 0
    tokens_created: Optional[int] = None

    # Timestamps
    created_at: datetime = field(default_factory=_now)
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Error tracking
    error_message: Optional[str] = None

    def __post_init__(self):
        """Validate after initialization."""
        if isinstance(self.status, str):
            self.status = BatchStatus(self.status)

    @property
    def size(self) -> int:
        """Get the number of tokens in this batch."""
        return self.entry.length

    @property
    def first_token_id(self) -> int:
        return self.entry.start_offset

    @property
    def last_token_id(self) -> int:
        return self.entry.end_offset

    @property
    def succeeded(self) -> bool:
        return self.status == BatchStatus.MINTED

    def mark_submitted(self) -> None:
        """Mark batch as submitted."""
        self.status = BatchStatus.SUBMITTED
        self.submitted_at = _now()

    def mark_minted(
        self,
        block_hash: Optional[str],
        block_number: Optional[int],
        attempts: int,
        tokens_created: Optional[int] = None,
    ) -> None:
        """Mark batch as included in a block."""
        self.status = BatchStatus.MINTED
        self.block_hash = block_hash
        self.block_number = block_number
        self.attempts = attempts
        self.tokens_created = tokens_created
        self.completed_at = _now()

    def mark_failed(self, error: str, attempts: int = 0) -> None:
        """Mark batch as failed."""
        self.status = BatchStatus.FAILED
        self.error_message = error
        self.attempts = attempts
        self.completed_at = _now()

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "collection_id": self.collection_id,
            "first_token_id": self.first_token_id,
            "last_token_id": self.last_token_id,
            "size": self.size,
            "status": self.status.value,
            "block_hash": self.block_hash,
            "block_number": self.block_number,
            "attempts": self.attempts,
            "tokens_created": self.tokens_created,
            "created_at": self.created_at.isoformat(),
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "error_message": self.error_message,
        }

    def __repr__(self) -> str:
        return (
            f"MintBatch(collection={self.collection_id}, tokens={self.entry}, "
            f"status={self.status.value})"
        )
