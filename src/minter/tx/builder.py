"""
Call Builder - constructs MultiTokens pallet calls.

Turns collection descriptors and mint items into runtime calls ready to be
signed and submitted.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

import structlog

from minter.engine.planner import BatchPlanEntry
from minter.node.interface import NodeInterface

logger = structlog.get_logger(__name__)

PALLET = "MultiTokens"


@dataclass
class Royalty:
    """Royalty paid to a beneficiary on market sales."""
    beneficiary: str
    percentage: int

    def to_params(self) -> dict:
        return {"beneficiary": self.beneficiary, "percentage": self.percentage}


@dataclass
class TokenAssetId:
    """A (collection, token) pair identifying an asset."""
    collection_id: int
    token_id: int

    def to_params(self) -> dict:
        return {"collection_id": self.collection_id, "token_id": self.token_id}


@dataclass
class MintCreateToken:
    """
    Creates a new token and mints its initial supply.

    Attributes:
        token_id: Id of the token within its collection
        initial_supply: Amount minted to the recipient
        attributes: Ordered (key, value) pairs stored on the token
        unit_price: Optional unit price
        cap: Optional supply cap
        listing_forbidden: Forbid marketplace listings
    """

    token_id: int
    initial_supply: int
    attributes: List[Tuple[str, str]] = field(default_factory=list)
    unit_price: Optional[int] = None
    cap: Optional[int] = None
    listing_forbidden: bool = False

    def to_params(self, supports_sufficiency_param: bool = False) -> dict:
        params = {
            "token_id": self.token_id,
            "initial_supply": self.initial_supply,
            "cap": {"Supply": self.cap} if self.cap is not None else None,
            "listing_forbidden": self.listing_forbidden,
            "attributes": [{"key": key, "value": value} for key, value in self.attributes],
        }
        if self.unit_price is not None:
            if supports_sufficiency_param:
                params["sufficiency"] = {"Insufficient": {"unit_price": self.unit_price}}
            else:
                params["unit_price"] = self.unit_price
        return {"CreateToken": params}


@dataclass
class MintMint:
    """Mints more of an existing token."""

    token_id: int
    amount: int
    unit_price: Optional[int] = None

    def to_params(self, supports_sufficiency_param: bool = False) -> dict:
        params = {"token_id": self.token_id, "amount": self.amount}
        if self.unit_price is not None:
            params["unit_price"] = self.unit_price
        return {"Mint": params}


MintParams = Union[MintCreateToken, MintMint]


@dataclass
class MintRecipient:
    """One entry of a batch_mint call."""
    account_id: str
    params: MintParams


def token_attributes(token_id: int, collection_id: int) -> List[Tuple[str, str]]:
    """Default attributes attached to every minted token."""
    return [
        ("id", str(token_id)),
        ("name", f"test-{token_id}"),
        ("description", f"test-{token_id}"),
        ("collectionId", str(collection_id)),
    ]


class MultiTokensCallBuilder:
    """
    Builds calls for the MultiTokens pallet.

    Whether CreateToken takes a sufficiency param depends on the runtime
    version; it is decided once at startup and passed in here.
    """

    def __init__(self, node: NodeInterface, supports_sufficiency_param: bool = False):
        """
        Initialize the builder.

        Args:
            node: Node interface used to encode calls
            supports_sufficiency_param: Emit ``sufficiency`` instead of ``unit_price``
        """
        self.node = node
        self.supports_sufficiency_param = supports_sufficiency_param

    async def create_collection(
        self,
        max_token_count: Optional[int] = None,
        max_token_supply: Optional[int] = None,
        force_single_mint: bool = False,
        royalty: Optional[Royalty] = None,
        explicit_royalty_currencies: Optional[List[TokenAssetId]] = None,
    ) -> Any:
        """
        Build a create_collection call.

        Args:
            max_token_count: Maximum number of tokens in the collection
            max_token_supply: Maximum supply of each token
            force_single_mint: Whether tokens may only be minted once
            royalty: Collection-wide market royalty
            explicit_royalty_currencies: Currencies royalties may be paid in

        Returns:
            Encoded call
        """
        descriptor = {
            "policy": {
                "mint": {
                    "max_token_count": max_token_count,
                    "max_token_supply": max_token_supply,
                    "force_single_mint": force_single_mint,
                },
                "market": {
                    "royalty": royalty.to_params() if royalty else None,
                },
            },
            "explicit_royalty_currencies": [
                currency.to_params() for currency in explicit_royalty_currencies or []
            ],
        }
        return await self.node.compose_call(PALLET, "create_collection", {"descriptor": descriptor})

    async def batch_mint(self, collection_id: int, recipients: List[MintRecipient]) -> Any:
        """
        Build a batch_mint call.

        Args:
            collection_id: Collection to mint into
            recipients: Mint items and their recipients

        Returns:
            Encoded call
        """
        logger.debug("building_batch_mint", collection_id=collection_id, size=len(recipients))

        return await self.node.compose_call(
            PALLET,
            "batch_mint",
            {
                "collection_id": collection_id,
                "recipients": [
                    {
                        "account_id": recipient.account_id,
                        "params": recipient.params.to_params(self.supports_sufficiency_param),
                    }
                    for recipient in recipients
                ],
            },
        )

    async def mint(self, recipient: str, collection_id: int, token: MintMint) -> Any:
        """
        Build a mint call topping up an existing token.

        Args:
            recipient: Account receiving the tokens
            collection_id: Collection of the token
            token: Token id and amount

        Returns:
            Encoded call
        """
        return await self.node.compose_call(
            PALLET,
            "mint",
            {
                "recipient": recipient,
                "collection_id": collection_id,
                "params": token.to_params(self.supports_sufficiency_param),
            },
        )

    def build_batch_recipients(
        self,
        account_id: str,
        collection_id: int,
        entry: BatchPlanEntry,
        initial_supply: int = 1,
        unit_price: Optional[int] = None,
    ) -> List[MintRecipient]:
        """
        Create one CreateToken item per token id of a plan entry.

        Args:
            account_id: Account receiving every token
            collection_id: Collection the tokens belong to
            entry: Token id range to create
            initial_supply: Supply minted for each token
            unit_price: Optional unit price for each token

        Returns:
            Fresh recipients, in token id order
        """
        return [
            MintRecipient(
                account_id=account_id,
                params=MintCreateToken(
                    token_id=token_id,
                    initial_supply=initial_supply,
                    attributes=token_attributes(token_id, collection_id),
                    unit_price=unit_price,
                ),
            )
            for token_id in entry.token_ids
        ]
