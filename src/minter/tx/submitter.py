"""
Transaction Submitter - signs, submits and tracks extrinsics.

Provides three layers:
- submit_once: one signed broadcast, resolved on inclusion or failure
- submit_with_retry: bounded retry around submit_once
- submit_for_event: submit_with_retry plus extraction of a required event
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, List, Optional

import structlog

from minter.config import MinterConfig
from minter.engine.matcher import (
    EXTRINSIC_FAILED,
    EXTRINSIC_SUCCESS,
    ChainEvent,
    EventDescriptor,
    find_event,
    find_event_or_raise,
)
from minter.node.interface import (
    DispatchError,
    ExtrinsicStatus,
    InclusionLookupError,
    NodeConnectionError,
    NodeInterface,
    StatusKind,
    TransactionSubmitError,
)

logger = structlog.get_logger(__name__)


class SubmissionExhaustedError(Exception):
    """Raised when an extrinsic failed on every allowed attempt."""

    def __init__(self, attempts: int, last_error: Optional[Exception] = None):
        super().__init__(f"unable to send transaction after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


@dataclass
class SubmissionReceipt:
    """
    Outcome of a successfully included extrinsic.

    Attributes:
        events: Events triggered by the extrinsic, in emission order
        block_hash: Block the extrinsic was included in
        block_number: Number of that block
        finalized: Whether the block was already finalized when reported
        attempts: Number of submissions it took
    """

    events: List[ChainEvent] = field(default_factory=list)
    block_hash: Optional[str] = None
    block_number: Optional[int] = None
    finalized: bool = False
    attempts: int = 1


class TransactionSubmitter:
    """
    Submits extrinsics signed by the minter's keypair.

    Nonces are left to the node, which is only safe while submissions from
    one signer are serialized: callers must await each submission before
    starting the next.
    """

    def __init__(self, node: NodeInterface, config: MinterConfig):
        """
        Initialize the submitter.

        Args:
            node: Node interface used for signing and submission
            config: Minter configuration
        """
        self.node = node
        self.config = config

    async def submit_once(self, keypair: Any, call: Any) -> SubmissionReceipt:
        """
        Sign and submit a call, waiting until it is in a block.

        Exactly one extrinsic is broadcast per call.

        Args:
            keypair: Signing keypair
            call: Encoded runtime call

        Returns:
            Receipt with the extrinsic's events

        Raises:
            TransactionSubmitError: If the broadcast fails, the extrinsic is
                rejected, times out, or fails to execute
            InclusionLookupError: If the extrinsic is in a block whose
                events cannot be fetched
        """
        try:
            head = await self.node.get_chain_head()
            extrinsic = await self.node.sign_extrinsic(
                call,
                keypair,
                era_current=head.number,
                era_period=self.config.mortality_period,
            )
        except NodeConnectionError as e:
            raise TransactionSubmitError(str(e)) from e

        try:
            status = await asyncio.wait_for(
                self._await_inclusion(extrinsic),
                timeout=self.config.inclusion_timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise TransactionSubmitError(
                f"Extrinsic not included within {self.config.inclusion_timeout_seconds}s",
                error_code="timeout",
            )

        receipt = await self._fetch_receipt(extrinsic, status)

        failed = find_event(receipt.events, EXTRINSIC_FAILED)
        if failed is not None:
            raise DispatchError(
                f"Extrinsic failed in block {status.block_hash}: {failed.data}",
                error_code="ExtrinsicFailed",
            )
        if find_event(receipt.events, EXTRINSIC_SUCCESS) is None:
            logger.warning("extrinsic_outcome_unknown", block_hash=status.block_hash)

        return receipt

    async def _fetch_receipt(self, extrinsic: Any, status: ExtrinsicStatus) -> SubmissionReceipt:
        """
        Look up the events and block number of an included extrinsic.

        The extrinsic has already executed, so lookups are repeated against
        the same block and never lead to another broadcast.

        Raises:
            InclusionLookupError: If every lookup failed
        """
        max_attempts = self.config.max_attempts
        last_error: Optional[NodeConnectionError] = None

        for attempt in range(max_attempts):
            try:
                events = await self.node.get_extrinsic_events(extrinsic, status.block_hash)
                block_number = await self.node.get_block_number(status.block_hash)
            except NodeConnectionError as e:
                last_error = e
                logger.warning(
                    "inclusion_lookup_failed",
                    block_hash=status.block_hash,
                    attempt=attempt + 1,
                    max_attempts=max_attempts,
                    error=str(e),
                )
                if attempt + 1 < max_attempts:
                    delay = self.config.retry_delay(attempt)
                    if delay > 0:
                        await asyncio.sleep(delay)
                continue

            return SubmissionReceipt(
                events=events,
                block_hash=status.block_hash,
                block_number=block_number,
                finalized=status.kind == StatusKind.FINALIZED,
            )

        raise InclusionLookupError(
            f"Extrinsic included in block {status.block_hash} but its events "
            f"could not be fetched: {last_error}",
            block_hash=status.block_hash,
        )

    async def _await_inclusion(self, extrinsic: Any) -> ExtrinsicStatus:
        """Consume the status stream up to the first terminal status."""
        stream = self.node.watch_extrinsic(extrinsic)
        try:
            async for status in stream:
                if status.is_included:
                    return status
                if status.is_error:
                    raise TransactionSubmitError(
                        f"transaction error: {status.kind.value}",
                        error_code=status.kind.value,
                    )
        finally:
            await stream.aclose()

        raise TransactionSubmitError("Status stream ended before the extrinsic was included")

    async def submit_with_retry(
        self,
        keypair: Any,
        call: Any,
        max_attempts: Optional[int] = None,
    ) -> SubmissionReceipt:
        """
        Submit a call, retrying transient failures.

        Args:
            keypair: Signing keypair
            call: Encoded runtime call
            max_attempts: Attempt ceiling (defaults to config.max_attempts)

        Returns:
            Receipt of the successful attempt

        Raises:
            SubmissionExhaustedError: If every attempt failed
            TransactionSubmitError: If a failure is not retryable
        """
        max_attempts = max_attempts or self.config.max_attempts
        last_error: Optional[TransactionSubmitError] = None

        for attempt in range(max_attempts):
            try:
                receipt = await self.submit_once(keypair, call)
            except TransactionSubmitError as e:
                if not e.retryable:
                    e.attempts = attempt + 1
                    raise
                last_error = e
                logger.warning(
                    "submission_attempt_failed",
                    attempt=attempt + 1,
                    max_attempts=max_attempts,
                    error=str(e),
                )
                if attempt + 1 < max_attempts:
                    delay = self.config.retry_delay(attempt)
                    if delay > 0:
                        await asyncio.sleep(delay)
                continue

            receipt.attempts = attempt + 1
            return receipt

        raise SubmissionExhaustedError(max_attempts, last_error)

    async def submit_for_event(
        self,
        keypair: Any,
        call: Any,
        descriptor: EventDescriptor,
    ) -> ChainEvent:
        """
        Submit a call and return one event it must have emitted.

        Raises:
            EventNotFoundError: If the extrinsic succeeded without the event
        """
        receipt = await self.submit_with_retry(keypair, call)
        return find_event_or_raise(receipt.events, descriptor)
