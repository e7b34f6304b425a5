"""
Core minter components.

This module contains the per-batch and per-collection outcome records and
the orchestrator driving a full run.
"""

from minter.core.batch import BatchStatus, MintBatch
from minter.core.collection import CollectionRun, CollectionStatus, RunReport
from minter.core.orchestrator import CollectionCreationError, MintOrchestrator

__all__ = [
    "BatchStatus",
    "MintBatch",
    "CollectionRun",
    "CollectionStatus",
    "RunReport",
    "CollectionCreationError",
    "MintOrchestrator",
]
