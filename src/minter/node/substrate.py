"""
Substrate node adapter.

Provides blockchain access via the node's JSON-RPC WebSocket interface,
using substrate-interface for metadata, SCALE encoding and signing.
"""

import asyncio
from functools import partial
from typing import Any, AsyncGenerator, Callable, List, Optional

import structlog
from substrateinterface import ExtrinsicReceipt, SubstrateInterface
from substrateinterface.exceptions import SubstrateRequestException
from websocket import WebSocketException

from minter.config import MinterConfig
from minter.engine.matcher import ChainEvent
from minter.node.interface import (
    ChainHead,
    ExtrinsicStatus,
    NodeConnectionError,
    NodeInterface,
    TransactionSubmitError,
)

logger = structlog.get_logger(__name__)

_TRANSPORT_ERRORS = (SubstrateRequestException, WebSocketException, ConnectionError, OSError)

_STREAM_END = object()


def _clear_read_timeout(substrate: SubstrateInterface) -> None:
    """
    Drop the socket timeout once the handshake is done.

    websocket-client applies ``timeout`` to every recv; after connecting,
    waits are bounded by the submitter's inclusion timeout only.
    """
    if substrate.websocket is not None:
        substrate.websocket.settimeout(None)


def event_from_record(record: dict) -> ChainEvent:
    """
    Convert a decoded System.Events record into a ChainEvent.

    Named event fields are flattened into positional data, keeping their
    declaration order.
    """
    event = record.get("event") or record
    attributes = event.get("attributes")

    if attributes is None:
        data = ()
    elif isinstance(attributes, dict):
        data = tuple(attributes.values())
    elif isinstance(attributes, (list, tuple)):
        data = tuple(attributes)
    else:
        data = (attributes,)

    return ChainEvent(
        module=event["module_id"],
        name=event["event_id"],
        data=data,
        extrinsic_index=record.get("extrinsic_idx"),
    )


class SubstrateAdapter(NodeInterface):
    """
    Substrate WebSocket adapter.

    substrate-interface is synchronous; every call runs in a worker thread.
    The underlying socket is shared, so callers must not issue requests
    concurrently (the orchestrator keeps a single extrinsic in flight).
    """

    def __init__(self, config: MinterConfig):
        """
        Initialize the adapter.

        Args:
            config: Minter configuration
        """
        self.config = config
        self.url = config.ws_endpoint
        self._substrate: Optional[SubstrateInterface] = None
        self._ss58_format: Optional[int] = None
        self._stale = False

    async def connect(self) -> None:
        """Open the WebSocket connection and load chain properties."""
        if self._substrate is not None:
            return

        try:
            self._substrate, self._ss58_format = await asyncio.to_thread(self._open)
        except Exception as e:
            raise NodeConnectionError(f"Failed to connect to {self.url}: {e}") from e

        logger.info("node_connected", url=self.url, ss58_format=self._ss58_format)

    def _open(self):
        substrate = SubstrateInterface(
            url=self.url,
            ws_options={"timeout": self.config.connection_timeout_seconds},
        )
        _clear_read_timeout(substrate)
        properties = substrate.properties or {}
        ss58_format = properties.get("ss58Format", substrate.ss58_format)
        return substrate, ss58_format

    def _reopen(self) -> None:
        self._substrate.connect_websocket()
        _clear_read_timeout(self._substrate)

    async def disconnect(self) -> None:
        """Close the WebSocket connection."""
        if self._substrate:
            await asyncio.to_thread(self._substrate.close)
            self._substrate = None
            logger.info("node_disconnected")

    @property
    def ss58_format(self) -> Optional[int]:
        return self._ss58_format

    async def _ensure_connected(self) -> None:
        if self._substrate is None:
            await self.connect()

        if self._stale:
            try:
                await asyncio.to_thread(self._reopen)
            except _TRANSPORT_ERRORS as e:
                raise NodeConnectionError(f"Failed to reconnect to {self.url}: {e}") from e
            self._stale = False
            logger.info("node_reconnected", url=self.url)

    async def _run(self, func: Callable, *args, **kwargs) -> Any:
        """Run a blocking substrate-interface call in a worker thread."""
        await self._ensure_connected()
        return await asyncio.to_thread(func, *args, **kwargs)

    async def get_chain_head(self) -> ChainHead:
        try:
            return await self._run(self._get_chain_head)
        except _TRANSPORT_ERRORS as e:
            raise NodeConnectionError(f"Failed to fetch chain head: {e}") from e

    def _get_chain_head(self) -> ChainHead:
        block_hash = self._substrate.get_chain_head()
        number = self._substrate.get_block_number(block_hash)
        return ChainHead(number=number, hash=block_hash)

    async def get_block_number(self, block_hash: str) -> int:
        try:
            return await self._run(lambda: self._substrate.get_block_number(block_hash))
        except _TRANSPORT_ERRORS as e:
            raise NodeConnectionError(f"Failed to fetch block {block_hash}: {e}") from e

    async def has_type(self, type_name: str) -> bool:
        try:
            return await self._run(self._has_type, type_name)
        except _TRANSPORT_ERRORS as e:
            raise NodeConnectionError(f"Failed to load runtime metadata: {e}") from e

    def _has_type(self, type_name: str) -> bool:
        self._substrate.init_runtime()
        return self._substrate.runtime_config.get_decoder_class(type_name) is not None

    async def compose_call(self, module: str, function: str, params: dict) -> Any:
        try:
            return await self._run(
                partial(
                    self._substrate.compose_call,
                    call_module=module,
                    call_function=function,
                    call_params=params,
                )
            )
        except _TRANSPORT_ERRORS as e:
            raise NodeConnectionError(f"Failed to compose {module}.{function}: {e}") from e

    async def sign_extrinsic(
        self,
        call: Any,
        keypair: Any,
        era_current: int,
        era_period: int,
    ) -> Any:
        try:
            return await self._run(
                partial(
                    self._substrate.create_signed_extrinsic,
                    call=call,
                    keypair=keypair,
                    era={"current": era_current, "period": era_period},
                )
            )
        except _TRANSPORT_ERRORS as e:
            raise TransactionSubmitError(f"Failed to sign extrinsic: {e}") from e

    async def watch_extrinsic(self, extrinsic: Any) -> AsyncGenerator[ExtrinsicStatus, None]:
        """
        Submit via author_submitAndWatchExtrinsic and relay status updates.

        The subscription runs in a worker thread; its notifications are
        handed to the event loop through a queue.
        """
        try:
            await self._ensure_connected()
        except NodeConnectionError as e:
            raise TransactionSubmitError(str(e)) from e

        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()

        def on_status(status: ExtrinsicStatus) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, status)

        def on_done(fut: asyncio.Future) -> None:
            # Mark the worker's error as retrieved, even for an abandoned watch.
            if not fut.cancelled():
                fut.exception()
            queue.put_nowait(_STREAM_END)

        future = loop.run_in_executor(None, self._subscribe, extrinsic, on_status)
        future.add_done_callback(on_done)

        terminal_seen = False
        try:
            while True:
                item = await queue.get()
                if item is _STREAM_END:
                    error = future.exception()
                    if error is not None:
                        raise TransactionSubmitError(
                            f"Extrinsic submission failed: {error}",
                            error_code=type(error).__name__,
                        ) from error
                    return

                terminal_seen = terminal_seen or item.is_terminal
                yield item
        finally:
            if not future.done():
                if terminal_seen:
                    try:
                        await future
                    except _TRANSPORT_ERRORS as e:
                        logger.debug("unwatch_failed", error=str(e))
                else:
                    # Abandoned mid-subscription: the worker is blocked on the socket.
                    self._stale = True
                    self._substrate.close()

    def _subscribe(self, extrinsic: Any, on_status: Callable[[ExtrinsicStatus], None]) -> Any:
        def result_handler(message, update_nr, subscription_id):
            status = ExtrinsicStatus.from_rpc(message["params"]["result"])
            logger.debug("extrinsic_status", status=status.kind.value, block_hash=status.block_hash)
            on_status(status)
            if status.is_terminal:
                self._substrate.rpc_request("author_unwatchExtrinsic", [subscription_id])
                return status

        return self._substrate.rpc_request(
            "author_submitAndWatchExtrinsic",
            [str(extrinsic.data)],
            result_handler=result_handler,
        )

    async def get_extrinsic_events(self, extrinsic: Any, block_hash: str) -> List[ChainEvent]:
        try:
            records = await self._run(self._get_event_records, extrinsic, block_hash)
        except _TRANSPORT_ERRORS as e:
            raise NodeConnectionError(f"Failed to fetch events in {block_hash}: {e}") from e
        return [event_from_record(record) for record in records]

    def _get_event_records(self, extrinsic: Any, block_hash: str) -> List[dict]:
        receipt = ExtrinsicReceipt(
            substrate=self._substrate,
            extrinsic_hash=f"0x{extrinsic.extrinsic_hash.hex()}",
            block_hash=block_hash,
        )
        return [record.value for record in receipt.triggered_events]
