"""
Batch Planner - splits a token range into bounded batches.

Each batch becomes one batch_mint extrinsic, so the batch size bounds the
extrinsic size and block weight.
"""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class BatchPlanEntry:
    """
    A contiguous range of token ids minted in one extrinsic.

    Attributes:
        start_offset: First token id of the range (1-based)
        length: Number of tokens in the range
    """

    start_offset: int
    length: int

    def __post_init__(self):
        if self.start_offset < 1:
            raise ValueError(f"start_offset must be >= 1, got {self.start_offset}")
        if self.length < 1:
            raise ValueError(f"length must be >= 1, got {self.length}")

    @property
    def end_offset(self) -> int:
        """Last token id of the range (inclusive)."""
        return self.start_offset + self.length - 1

    @property
    def token_ids(self) -> range:
        """Token ids covered by this entry."""
        return range(self.start_offset, self.start_offset + self.length)

    def __str__(self) -> str:
        return f"{self.start_offset}..{self.end_offset}"


def plan_batches(total: int, max_batch_size: int) -> List[BatchPlanEntry]:
    """
    Compute the batches covering token ids 1..total.

    Full batches of ``max_batch_size`` come first, followed by one batch
    holding the remainder, if any. Entries are contiguous and never overlap.

    Args:
        total: Number of tokens to mint
        max_batch_size: Maximum number of tokens per batch

    Returns:
        Entries in ascending offset order (empty when total is 0)
    """
    if total < 0:
        raise ValueError(f"total must be >= 0, got {total}")
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be >= 1, got {max_batch_size}")

    full_batches, remainder = divmod(total, max_batch_size)

    entries = [
        BatchPlanEntry(start_offset=index * max_batch_size + 1, length=max_batch_size)
        for index in range(full_batches)
    ]
    if remainder > 0:
        entries.append(
            BatchPlanEntry(start_offset=full_batches * max_batch_size + 1, length=remainder)
        )

    return entries
