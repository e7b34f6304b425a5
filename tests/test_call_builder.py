"""
Test suite for MultiTokens call construction.
"""

import pytest

from minter.engine.planner import BatchPlanEntry
from minter.tx.builder import (
    MintCreateToken,
    MintMint,
    MintRecipient,
    MultiTokensCallBuilder,
    Royalty,
    TokenAssetId,
    token_attributes,
)

from conftest import BOT_ADDRESS


@pytest.fixture
def builder(mock_node) -> MultiTokensCallBuilder:
    return MultiTokensCallBuilder(mock_node)


class TestCreateCollection:
    """Tests for create_collection calls."""

    @pytest.mark.asyncio
    async def test_descriptor_shape(self, builder):
        call = await builder.create_collection(max_token_count=1000, max_token_supply=1)

        assert call["module"] == "MultiTokens"
        assert call["function"] == "create_collection"
        assert call["params"] == {
            "descriptor": {
                "policy": {
                    "mint": {
                        "max_token_count": 1000,
                        "max_token_supply": 1,
                        "force_single_mint": False,
                    },
                    "market": {"royalty": None},
                },
                "explicit_royalty_currencies": [],
            }
        }

    @pytest.mark.asyncio
    async def test_royalty_and_currencies(self, builder):
        call = await builder.create_collection(
            royalty=Royalty(beneficiary=BOT_ADDRESS, percentage=10_000_000),
            explicit_royalty_currencies=[TokenAssetId(collection_id=0, token_id=0)],
        )

        descriptor = call["params"]["descriptor"]
        assert descriptor["policy"]["market"]["royalty"] == {
            "beneficiary": BOT_ADDRESS,
            "percentage": 10_000_000,
        }
        assert descriptor["explicit_royalty_currencies"] == [{"collection_id": 0, "token_id": 0}]


class TestBatchMint:
    """Tests for batch_mint calls."""

    @pytest.mark.asyncio
    async def test_recipients_in_token_order(self, builder):
        recipients = builder.build_batch_recipients(BOT_ADDRESS, 7, BatchPlanEntry(start_offset=11, length=3))

        call = await builder.batch_mint(7, recipients)

        assert call["function"] == "batch_mint"
        assert call["params"]["collection_id"] == 7
        assert [r["account_id"] for r in call["params"]["recipients"]] == [BOT_ADDRESS] * 3
        assert [r["params"]["CreateToken"]["token_id"] for r in call["params"]["recipients"]] == [11, 12, 13]

    def test_recipients_are_fresh(self, builder):
        entry = BatchPlanEntry(start_offset=1, length=2)

        first = builder.build_batch_recipients(BOT_ADDRESS, 1, entry)
        second = builder.build_batch_recipients(BOT_ADDRESS, 1, entry)

        assert first == second
        assert first[0] is not second[0]
        assert first[0].params.attributes is not second[0].params.attributes

    def test_recipient_attributes(self, builder):
        [recipient] = builder.build_batch_recipients(
            BOT_ADDRESS, 3, BatchPlanEntry(start_offset=9, length=1), initial_supply=5
        )

        assert recipient.params.initial_supply == 5
        assert recipient.params.attributes == token_attributes(9, 3)
        assert recipient.params.attributes[1] == ("name", "test-9")


class TestSufficiency:
    """Tests for the runtime-dependent unit price encoding."""

    def test_plain_create_token(self):
        params = MintCreateToken(token_id=1, initial_supply=1).to_params()["CreateToken"]

        assert "unit_price" not in params
        assert "sufficiency" not in params
        assert params["cap"] is None

    def test_unit_price_without_sufficiency_support(self):
        params = MintCreateToken(token_id=1, initial_supply=1, unit_price=10).to_params(False)

        assert params["CreateToken"]["unit_price"] == 10
        assert "sufficiency" not in params["CreateToken"]

    def test_unit_price_with_sufficiency_support(self):
        params = MintCreateToken(token_id=1, initial_supply=1, unit_price=10).to_params(True)

        assert params["CreateToken"]["sufficiency"] == {"Insufficient": {"unit_price": 10}}
        assert "unit_price" not in params["CreateToken"]

    def test_supply_cap(self):
        params = MintCreateToken(token_id=1, initial_supply=1, cap=100).to_params()

        assert params["CreateToken"]["cap"] == {"Supply": 100}

    @pytest.mark.asyncio
    async def test_builder_flag_applies_to_batch(self, mock_node):
        builder = MultiTokensCallBuilder(mock_node, supports_sufficiency_param=True)
        recipients = builder.build_batch_recipients(
            BOT_ADDRESS, 1, BatchPlanEntry(start_offset=1, length=2), unit_price=3
        )

        call = await builder.batch_mint(1, recipients)

        for recipient in call["params"]["recipients"]:
            assert recipient["params"]["CreateToken"]["sufficiency"] == {"Insufficient": {"unit_price": 3}}


class TestMint:
    """Tests for mint calls topping up existing tokens."""

    @pytest.mark.asyncio
    async def test_mint_existing_token(self, builder):
        call = await builder.mint(BOT_ADDRESS, 42, MintMint(token_id=5, amount=10))

        assert call["function"] == "mint"
        assert call["params"] == {
            "recipient": BOT_ADDRESS,
            "collection_id": 42,
            "params": {"Mint": {"token_id": 5, "amount": 10}},
        }

    @pytest.mark.asyncio
    async def test_mint_items_in_batch(self, builder):
        call = await builder.batch_mint(
            42, [MintRecipient(account_id=BOT_ADDRESS, params=MintMint(token_id=1, amount=2, unit_price=4))]
        )

        assert call["params"]["recipients"][0]["params"] == {
            "Mint": {"token_id": 1, "amount": 2, "unit_price": 4}
        }
