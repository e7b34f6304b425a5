"""
Transaction module.

Handles call construction, signing, and submission.
"""

from minter.tx.builder import MintCreateToken, MintMint, MintRecipient, MultiTokensCallBuilder
from minter.tx.signer import TransactionSigner
from minter.tx.submitter import SubmissionExhaustedError, SubmissionReceipt, TransactionSubmitter

__all__ = [
    "MintCreateToken",
    "MintMint",
    "MintRecipient",
    "MultiTokensCallBuilder",
    "TransactionSigner",
    "SubmissionExhaustedError",
    "SubmissionReceipt",
    "TransactionSubmitter",
]
