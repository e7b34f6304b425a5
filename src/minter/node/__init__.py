"""
Node Integration Layer.

Provides abstracted access to Substrate chain data and extrinsic submission.
"""

from minter.node.interface import (
    ChainHead,
    DispatchError,
    ExtrinsicStatus,
    InclusionLookupError,
    NodeConnectionError,
    NodeInterface,
    StatusKind,
    TransactionSubmitError,
)
from minter.node.substrate import SubstrateAdapter

__all__ = [
    "ChainHead",
    "DispatchError",
    "ExtrinsicStatus",
    "InclusionLookupError",
    "NodeConnectionError",
    "NodeInterface",
    "StatusKind",
    "TransactionSubmitError",
    "SubstrateAdapter",
]
