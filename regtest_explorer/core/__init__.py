"""Derivation engine components."""

from regtest_explorer.core.explorer import BlockExplorer
from regtest_explorer.core.rpc_client import BitcoinRPCClient
from regtest_explorer.core.transaction_parser import TransactionParser
from regtest_explorer.core.enricher import TransactionEnricher
from regtest_explorer.core.chain_scanner import ChainScanner
from regtest_explorer.core.paginator import RecentActivityPaginator
from regtest_explorer.core.address_indexer import AddressIndexer
from regtest_explorer.core.mempool import MempoolEnricher
from regtest_explorer.core.fee_advisor import FeeAdvisor
from regtest_explorer.core.retarget import RetargetProjector

__all__ = [
    "BlockExplorer",
    "BitcoinRPCClient",
    "TransactionParser",
    "TransactionEnricher",
    "ChainScanner",
    "RecentActivityPaginator",
    "AddressIndexer",
    "MempoolEnricher",
    "FeeAdvisor",
    "RetargetProjector",
]
