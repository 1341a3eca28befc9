"""Tests for input resolution and fee calculation."""

from decimal import Decimal

import pytest

from regtest_explorer.core.enricher import TransactionEnricher, calculate_fee
from regtest_explorer.core.exceptions import NodeUnavailableError
from regtest_explorer.models.blockchain import ResolvedInput
from tests.conftest import ADDRESS_A, ADDRESS_B, make_tx


@pytest.fixture
def enricher(funded_node):
    return TransactionEnricher(funded_node)


class TestEnrich:

    def test_fee_from_resolved_inputs(self, funded_node, enricher):
        raw_tx = enricher.fetch_transaction("t0" * 32)
        block = enricher.parser.parse_block(funded_node._rpc_getblock(funded_node.blocks[3]["hash"], 1))

        tx = enricher.enrich(raw_tx, block)

        assert tx.total_input == Decimal("15")
        assert tx.total_output == Decimal("14")
        assert tx.fee == Decimal("1.00000000")
        assert [i.value for i in tx.inputs] == [Decimal("10"), Decimal("5")]
        assert all(i.address == ADDRESS_A for i in tx.inputs)
        assert tx.block_height == 3
        assert tx.confirmed

    def test_coinbase_fee_is_zero(self, enricher):
        tx = enricher.enrich(enricher.fetch_transaction("c1" * 32))

        assert tx.is_coinbase
        assert tx.fee == Decimal("0")
        assert tx.total_input == Decimal("0")
        assert tx.inputs[0].is_coinbase

    def test_coinbase_inputs_not_looked_up(self, funded_node, enricher):
        enricher.enrich(enricher.fetch_transaction("c1" * 32))

        assert funded_node.calls_to("getrawtransaction") == [["c1" * 32, True]]

    def test_unresolved_input_makes_fee_unknown(self, funded_node, enricher):
        funded_node.failing_txids.add("p0" * 32)

        tx = enricher.enrich(enricher.fetch_transaction("t0" * 32))

        assert tx.fee is None
        assert not tx.fee_known
        assert tx.inputs[0].txid == "p0" * 32
        assert tx.inputs[0].value is None

    def test_missing_output_index_unresolved(self, funded_node, enricher):
        funded_node.add_to_mempool(make_tx("m0" * 32, [("p0" * 32, 7)], [(ADDRESS_B, "1")]))

        tx = enricher.enrich(enricher.fetch_transaction("m0" * 32))

        assert tx.fee is None

    def test_negative_fee_reported_unknown(self, funded_node, enricher):
        funded_node.add_to_mempool(make_tx("m1" * 32, [("p0" * 32, 1)], [(ADDRESS_B, "6")]))

        tx = enricher.enrich(enricher.fetch_transaction("m1" * 32))

        assert tx.fee is None

    def test_unconfirmed_uses_given_timestamp(self, funded_node, enricher):
        funded_node.add_to_mempool(make_tx("m2" * 32, [("p0" * 32, 1)], [(ADDRESS_B, "4")]))

        tx = enricher.enrich(enricher.fetch_transaction("m2" * 32), timestamp=1234)

        assert tx.time == 1234
        assert tx.block_height is None
        assert not tx.confirmed
        assert tx.fee == Decimal("1")

    def test_node_unavailable_propagates(self, funded_node, enricher):
        raw_tx = enricher.fetch_transaction("t0" * 32)

        def unavailable(*args):
            raise NodeUnavailableError("down")

        funded_node._rpc_getrawtransaction = unavailable

        with pytest.raises(NodeUnavailableError):
            enricher.enrich(raw_tx)


class TestParallelResolution:

    def test_order_preserved(self, funded_node):
        enricher = TransactionEnricher(funded_node, parallel=True, max_workers=2)
        raw_tx = enricher.fetch_transaction("t0" * 32)

        resolved = enricher.resolve_inputs(raw_tx.vin)

        assert [r.vout for r in resolved] == [0, 1]
        assert [r.value for r in resolved] == [Decimal("10"), Decimal("5")]


class TestCalculateFee:

    def test_all_resolved(self):
        inputs = [ResolvedInput(is_coinbase=False, value=Decimal("2"))]
        assert calculate_fee(False, inputs, Decimal("2"), Decimal("1.5")) == Decimal("0.5")

    def test_coinbase_never_subtracts(self):
        inputs = [ResolvedInput(is_coinbase=True)]
        assert calculate_fee(True, inputs, Decimal("0"), Decimal("50")) == Decimal("0")

    def test_unresolved(self):
        inputs = [ResolvedInput(is_coinbase=False, txid="ab" * 32, vout=0)]
        assert calculate_fee(False, inputs, Decimal("0"), Decimal("1")) is None
