"""
Mint Orchestrator.

Creates collections and mints their tokens batch by batch.
"""

from typing import Callable, List, Optional

import structlog

from minter.config import MinterConfig
from minter.core.batch import MintBatch
from minter.core.collection import CollectionRun, RunReport
from minter.engine.matcher import COLLECTION_CREATED, TOKEN_CREATED, EventNotFoundError
from minter.engine.planner import BatchPlanEntry, plan_batches
from minter.node.interface import NodeInterface, TransactionSubmitError
from minter.node.substrate import SubstrateAdapter
from minter.tx.builder import MultiTokensCallBuilder
from minter.tx.signer import TransactionSigner
from minter.tx.submitter import SubmissionExhaustedError, TransactionSubmitter

logger = structlog.get_logger(__name__)


class CollectionCreationError(Exception):
    """Raised when a collection could not be created; aborts the run."""

    def __init__(self, index: int, cause: Exception):
        super().__init__(f"Failed to create collection {index}: {cause}")
        self.index = index
        self.cause = cause


class MintOrchestrator:
    """
    Main minting orchestrator.

    For each collection:
    - submits create_collection and waits for MultiTokens.CollectionCreated
    - splits the token range into batches of at most token_count_in_batch
    - submits one batch_mint per batch, in ascending token id order

    A batch that fails after retries is recorded and skipped; a collection
    that cannot be created aborts the run. Only one extrinsic is in flight
    at any time.

    Usage:
        ```python
        orchestrator = MintOrchestrator(load_config())
        report = await orchestrator.run()
        ```
    """

    def __init__(
        self,
        config: MinterConfig,
        node: Optional[NodeInterface] = None,
        signer: Optional[TransactionSigner] = None,
        submitter: Optional[TransactionSubmitter] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Validated minter configuration
            node: Custom node interface (a SubstrateAdapter if not provided)
            signer: Signer with a loaded key (loaded from config if not provided)
            submitter: Custom submitter
        """
        self.config = config
        self.node = node or SubstrateAdapter(config)

        self._signer = signer
        self._submitter = submitter
        self._builder: Optional[MultiTokensCallBuilder] = None

        # State
        self._initialized = False
        self._plan: List[BatchPlanEntry] = []

        # Callbacks
        self._on_collection_created: Optional[Callable[[CollectionRun], None]] = None
        self._on_batch_minted: Optional[Callable[[MintBatch], None]] = None
        self._on_batch_failed: Optional[Callable[[MintBatch], None]] = None

    async def initialize(self) -> None:
        """
        Connect to the node and prepare components.

        Runtime capabilities are probed here, once.
        """
        if self._initialized:
            return

        logger.info("minter_initializing", endpoint=self.config.ws_endpoint)

        await self.node.connect()

        if self._signer is None:
            self._signer = TransactionSigner(self.config)
            self._signer.load_from_config(self.node.ss58_format)

        supports_sufficiency = self.config.supports_sufficiency_param
        if supports_sufficiency is None:
            supports_sufficiency = await self.node.has_type(self.config.sufficiency_type_name)

        self._builder = MultiTokensCallBuilder(self.node, supports_sufficiency)

        if self._submitter is None:
            self._submitter = TransactionSubmitter(self.node, self.config)

        self._plan = plan_batches(
            self.config.token_count_per_collection,
            self.config.token_count_in_batch,
        )

        self._initialized = True
        logger.info(
            "minter_initialized",
            address=self._signer.address,
            collections=self.config.collection_count,
            tokens_per_collection=self.config.token_count_per_collection,
            batches_per_collection=len(self._plan),
            supports_sufficiency_param=supports_sufficiency,
        )

    async def shutdown(self) -> None:
        """Disconnect from the node."""
        await self.node.disconnect()
        self._initialized = False
        logger.info("minter_shutdown")

    async def run(self) -> RunReport:
        """
        Create every collection and mint its tokens.

        Returns:
            Report of every collection and batch

        Raises:
            CollectionCreationError: If a collection could not be created
        """
        report = RunReport()

        try:
            if not self._initialized:
                await self.initialize()

            for index in range(1, self.config.collection_count + 1):
                collection = CollectionRun(index=index)
                report.collections.append(collection)

                await self._create_collection(collection)

                for entry in self._plan:
                    await self._mint_batch(collection, entry)

                collection.mark_done()
                logger.info(
                    "collection_done",
                    index=index,
                    collection_id=collection.collection_id,
                    minted_batches=len(collection.minted_batches),
                    failed_batches=len(collection.failed_batches),
                )
        finally:
            await self.shutdown()

        logger.info(
            "minting_completed",
            succeeded=report.succeeded,
            failed=report.failed,
        )
        return report

    async def _create_collection(self, collection: CollectionRun) -> None:
        """Create a collection and record the identifier assigned by the chain."""
        logger.info("creating_collection", index=collection.index)

        call = await self._builder.create_collection(
            max_token_count=self.config.token_count_per_collection,
            max_token_supply=self.config.max_token_supply,
            force_single_mint=self.config.force_single_mint,
        )

        try:
            event = await self._submitter.submit_for_event(
                self._signer.keypair,
                call,
                COLLECTION_CREATED,
            )
        except (TransactionSubmitError, SubmissionExhaustedError, EventNotFoundError) as e:
            collection.mark_failed(str(e))
            logger.error("collection_creation_failed", index=collection.index, error=str(e))
            raise CollectionCreationError(collection.index, e) from e

        collection.mark_created(int(event.data[0]))
        logger.info(
            "collection_created",
            index=collection.index,
            collection_id=collection.collection_id,
        )

        if self._on_collection_created:
            self._on_collection_created(collection)

    async def _mint_batch(self, collection: CollectionRun, entry: BatchPlanEntry) -> bool:
        """
        Mint one batch of tokens.

        Args:
            collection: Collection being minted (already created)
            entry: Token id range of the batch

        Returns:
            True if the batch was minted, False if it failed
        """
        batch = MintBatch(collection_id=collection.collection_id, entry=entry)
        collection.batches.append(batch)

        recipients = self._builder.build_batch_recipients(
            account_id=self._signer.address,
            collection_id=collection.collection_id,
            entry=entry,
            initial_supply=self.config.initial_supply,
            unit_price=self.config.unit_price,
        )
        call = await self._builder.batch_mint(collection.collection_id, recipients)

        batch.mark_submitted()
        try:
            receipt = await self._submitter.submit_with_retry(self._signer.keypair, call)

        except SubmissionExhaustedError as e:
            batch.mark_failed(str(e), attempts=e.attempts)
            self._batch_failed(batch)
            return False

        except TransactionSubmitError as e:
            batch.mark_failed(str(e), attempts=e.attempts)
            self._batch_failed(batch)
            return False

        tokens_created = sum(1 for event in receipt.events if TOKEN_CREATED.matches(event))
        batch.mark_minted(
            receipt.block_hash,
            receipt.block_number,
            receipt.attempts,
            tokens_created=tokens_created,
        )
        logger.info(
            "batch_minted",
            collection_id=batch.collection_id,
            first_token_id=batch.first_token_id,
            last_token_id=batch.last_token_id,
            block_number=batch.block_number,
            attempts=batch.attempts,
            tokens_created=tokens_created,
        )
        if tokens_created != batch.size:
            logger.warning(
                "token_count_mismatch",
                collection_id=batch.collection_id,
                first_token_id=batch.first_token_id,
                expected=batch.size,
                created=tokens_created,
            )

        if self._on_batch_minted:
            self._on_batch_minted(batch)
        return True

    def _batch_failed(self, batch: MintBatch) -> None:
        logger.error(
            "batch_mint_failed",
            collection_id=batch.collection_id,
            first_token_id=batch.first_token_id,
            last_token_id=batch.last_token_id,
            error=batch.error_message,
        )
        if self._on_batch_failed:
            self._on_batch_failed(batch)

    # Public API methods

    @property
    def plan(self) -> List[BatchPlanEntry]:
        """Batches minted into every collection."""
        return list(self._plan)

    # Callback registration

    def on_collection_created(self, callback: Callable[[CollectionRun], None]) -> None:
        """Register callback for collection creation events."""
        self._on_collection_created = callback

    def on_batch_minted(self, callback: Callable[[MintBatch], None]) -> None:
        """Register callback for minted batches."""
        self._on_batch_minted = callback

    def on_batch_failed(self, callback: Callable[[MintBatch], None]) -> None:
        """Register callback for failed batches."""
        self._on_batch_failed = callback
