"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from regtest_explorer.cli.main import cli
from regtest_explorer.core.explorer import BlockExplorer
from tests.conftest import ADDRESS_B


@pytest.fixture
def run(config, funded_node):
    """Invoke the CLI against the fake node."""
    runner = CliRunner()
    config.log_level = "ERROR"

    def invoke(*args):
        with patch("regtest_explorer.cli.main.BlockExplorer",
                   side_effect=lambda cfg: BlockExplorer(cfg, rpc_client=funded_node)):
            return runner.invoke(cli, list(args), obj={"config": config})

    return invoke


def test_chain(run):
    result = run("chain")

    assert result.exit_code == 0
    assert json.loads(result.stdout)["chain"] == "regtest"


def test_blocks(run):
    result = run("blocks", "--limit", "2")

    assert [block["height"] for block in json.loads(result.stdout)] == [3, 2]


def test_transaction(run):
    result = run("tx", "t0" * 32)

    assert result.exit_code == 0
    assert json.loads(result.stdout)["fee"] == "1.00000000"


def test_address(run):
    result = run("address", ADDRESS_B)

    assert json.loads(result.stdout)["balance"] == "14.00000000"


def test_fees_with_target(run):
    result = run("fees", "--target", "2")

    assert json.loads(result.stdout)["blocks"] == 2


def test_not_found_exits_nonzero(run):
    result = run("tx", "ab" * 32)

    assert result.exit_code == 1


def test_invalid_amount_exits_nonzero(run):
    result = run("send", ADDRESS_B, "0")

    assert result.exit_code == 1


def test_send(run, funded_node):
    result = run("send", ADDRESS_B, "2")

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"txid": "e" * 64}
    assert funded_node.sent == [(ADDRESS_B, 2.0)]


def test_test_connection(run):
    result = run("test-connection")

    assert result.exit_code == 0
    assert "successful" in result.output


def test_version():
    result = CliRunner().invoke(cli, ["version"])

    assert result.exit_code == 0
    assert "Regtest Explorer v1.0.0" in result.output
