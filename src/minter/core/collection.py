"""
Collection run model.

Tracks the progress of one collection through creation and minting, and
aggregates the outcome of a whole run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from minter.core.batch import BatchStatus, MintBatch


class CollectionStatus(str, Enum):
    """Status of a collection within a run."""
    CREATING = "creating"         # create_collection in flight
    MINTING = "minting"           # Identifier known, batches being minted
    DONE = "done"                 # Every batch processed
    FAILED = "failed"             # Creation failed


@dataclass
class CollectionRun:
    """
    One collection of a run.

    Attributes:
        index: 1-based position of the collection in the run
        collection_id: Identifier assigned by the chain, once created
        status: Current state
        batches: Batches processed so far, in submission order
    """

    index: int
    collection_id: Optional[int] = None
    status: CollectionStatus = CollectionStatus.CREATING
    batches: List[MintBatch] = field(default_factory=list)
    error_message: Optional[str] = None

    @property
    def minted_batches(self) -> List[MintBatch]:
        return [b for b in self.batches if b.status == BatchStatus.MINTED]

    @property
    def failed_batches(self) -> List[MintBatch]:
        return [b for b in self.batches if b.status == BatchStatus.FAILED]

    @property
    def minted_tokens(self) -> int:
        return sum(b.size for b in self.minted_batches)

    def mark_created(self, collection_id: int) -> None:
        self.collection_id = collection_id
        self.status = CollectionStatus.MINTING

    def mark_done(self) -> None:
        self.status = CollectionStatus.DONE

    def mark_failed(self, error: str) -> None:
        self.status = CollectionStatus.FAILED
        self.error_message = error

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "index": self.index,
            "collection_id": self.collection_id,
            "status": self.status.value,
            "minted_tokens": self.minted_tokens,
            "error_message": self.error_message,
            "batches": [b.to_dict() for b in self.batches],
        }


@dataclass
class RunReport:
    """Outcome of a full run."""

    collections: List[CollectionRun] = field(default_factory=list)

    @property
    def batches(self) -> List[MintBatch]:
        return [b for c in self.collections for b in c.batches]

    @property
    def succeeded(self) -> int:
        """Number of batches minted."""
        return sum(len(c.minted_batches) for c in self.collections)

    @property
    def failed(self) -> int:
        """Number of batches that failed after retries."""
        return sum(len(c.failed_batches) for c in self.collections)

    @property
    def is_complete(self) -> bool:
        """Every collection was created and every batch minted."""
        return (
            all(c.status == CollectionStatus.DONE for c in self.collections)
            and self.failed == 0
        )

    def to_dict(self) -> dict:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "collections": [c.to_dict() for c in self.collections],
        }
