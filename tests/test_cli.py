"""
Test suite for the command-line interface.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from minter.cli import (
    EXIT_BATCHES_FAILED,
    EXIT_COLLECTION_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_OK,
    create_parser,
    run_minter,
    show_plan,
)
from minter.core.batch import MintBatch
from minter.core.collection import CollectionRun, RunReport
from minter.core.orchestrator import CollectionCreationError
from minter.engine.planner import BatchPlanEntry
from minter.node.interface import NodeConnectionError


def report_with(*outcomes: bool) -> RunReport:
    """Report of one collection whose batches succeeded or failed in order."""
    collection = CollectionRun(index=1)
    collection.mark_created(42)
    for number, succeeded in enumerate(outcomes):
        batch = MintBatch(collection_id=42, entry=BatchPlanEntry(start_offset=number * 100 + 1, length=100))
        if succeeded:
            batch.mark_minted("0x01", 101 + number, attempts=1)
        else:
            batch.mark_failed("unable to send transaction after 11 attempts", attempts=11)
        collection.batches.append(batch)
    collection.mark_done()
    return RunReport(collections=[collection])


def patched_orchestrator(**run_kwargs):
    orchestrator = MagicMock()
    orchestrator.run = AsyncMock(**run_kwargs)
    return patch("minter.cli.MintOrchestrator", return_value=orchestrator)


class TestParser:
    """Tests for argument parsing."""

    def test_run_overrides(self):
        args = create_parser().parse_args(
            ["run", "--endpoint", "ws://node:9944", "--tokens", "500", "--batch-size", "250"]
        )

        assert args.command == "run"
        assert args.endpoint == "ws://node:9944"
        assert args.tokens == 500
        assert args.batch_size == 250
        assert args.collections is None
        assert args.log_json is None

    def test_plan_defaults(self):
        args = create_parser().parse_args(["plan"])

        assert args.tokens == 1000
        assert args.batch_size == 100


class TestShowPlan:
    """Tests for the plan command."""

    def test_prints_batches(self, capsys):
        args = create_parser().parse_args(["plan", "--tokens", "1000", "--batch-size", "300"])

        assert show_plan(args) == EXIT_OK

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "4 batch(es) for 1000 token(s):"
        assert lines[1].split(": ")[1] == "tokens 1..300 (300)"
        assert lines[4].split(": ")[1] == "tokens 901..1000 (100)"

    def test_invalid_batch_size(self, capsys):
        args = create_parser().parse_args(["plan", "--batch-size", "0"])

        assert show_plan(args) == EXIT_CONFIG_ERROR
        assert "max_batch_size" in capsys.readouterr().err


class TestRunMinter:
    """Tests for mapping run outcomes to exit codes."""

    @pytest.mark.asyncio
    async def test_success(self, test_config):
        with patched_orchestrator(return_value=report_with(True, True)):
            assert await run_minter(test_config) == EXIT_OK

    @pytest.mark.asyncio
    async def test_failed_batches(self, test_config):
        with patched_orchestrator(return_value=report_with(True, False, True)):
            assert await run_minter(test_config) == EXIT_BATCHES_FAILED

    @pytest.mark.asyncio
    async def test_connection_error(self, test_config):
        with patched_orchestrator(side_effect=NodeConnectionError("refused")):
            assert await run_minter(test_config) == EXIT_CONNECTION_ERROR

    @pytest.mark.asyncio
    async def test_collection_creation_error(self, test_config):
        error = CollectionCreationError(1, RuntimeError("invalid"))

        with patched_orchestrator(side_effect=error):
            assert await run_minter(test_config) == EXIT_COLLECTION_ERROR

    @pytest.mark.asyncio
    async def test_writes_report(self, test_config, tmp_path):
        path = tmp_path / "report.json"

        with patched_orchestrator(return_value=report_with(True, False)):
            await run_minter(test_config, str(path))

        data = json.loads(path.read_text())
        assert data["succeeded"] == 1
        assert data["failed"] == 1
