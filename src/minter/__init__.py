"""
Substrate Batch Minter

Creates MultiTokens collections and mints their tokens in size-bounded
batch_mint extrinsics, signed by a single bot account.
"""

__version__ = "0.1.0"

from minter.core.orchestrator import CollectionCreationError, MintOrchestrator
from minter.core.batch import MintBatch, BatchStatus
from minter.core.collection import CollectionRun, CollectionStatus, RunReport

__all__ = [
    "MintOrchestrator",
    "CollectionCreationError",
    "MintBatch",
    "BatchStatus",
    "CollectionRun",
    "CollectionStatus",
    "RunReport",
]
