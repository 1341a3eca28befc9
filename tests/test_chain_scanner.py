"""Tests for bounded backward chain walking."""

import pytest

from regtest_explorer.core.chain_scanner import ChainScanner
from tests.conftest import MINER, FakeNode, make_coinbase


@pytest.fixture
def scanner(node):
    node.mine(5)
    return ChainScanner(node)


class TestIterBlocks:

    def test_newest_first_within_bound(self, scanner):
        heights = [block.height for block in scanner.iter_blocks(3)]

        assert heights == [5, 4, 3]

    def test_stops_at_genesis(self, scanner):
        heights = [block.height for block in scanner.iter_blocks(100)]

        assert heights == [5, 4, 3, 2, 1, 0]

    def test_zero_blocks(self, node, scanner):
        assert list(scanner.iter_blocks(0)) == []
        assert node.calls_to("getblockcount") == []

    def test_negative_tip(self, scanner):
        assert list(scanner.iter_blocks(10, tip_height=-1)) == []

    def test_explicit_tip(self, scanner):
        heights = [block.height for block in scanner.iter_blocks(2, tip_height=2)]

        assert heights == [2, 1]

    def test_genesis_only_chain(self, config):
        fresh = FakeNode(config)
        fresh.add_block([make_coinbase("00" * 32, MINER)])

        blocks = list(ChainScanner(fresh).iter_blocks(10))

        assert [block.height for block in blocks] == [0]


class TestScan:

    def test_transaction_limit(self, scanner):
        pairs = list(scanner.scan(50, max_transactions=2))

        assert [block.height for block, _ in pairs] == [5, 4]

    def test_duplicate_txids_yielded_once(self, node):
        duplicate = make_coinbase("dd" * 32, MINER)
        node.add_block([duplicate])
        node.add_block([duplicate])

        txids = [tx.txid for _, tx in ChainScanner(node).scan(10)]

        assert txids.count("dd" * 32) == 1

    def test_non_positive_transaction_limit(self, node, scanner):
        assert list(scanner.scan(50, max_transactions=0)) == []
        assert node.calls_to("getblockhash") == []

    def test_fresh_seen_set_per_call(self, scanner):
        first = [tx.txid for _, tx in scanner.scan(2)]
        second = [tx.txid for _, tx in scanner.scan(2)]

        assert first == second
