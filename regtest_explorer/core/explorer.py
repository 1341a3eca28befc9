"""Block explorer facade over the derivation engine."""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union
import structlog

from regtest_explorer.models.config import ExplorerConfig
from regtest_explorer.models.blockchain import (
    AddressView, BlockSummary, ChainInfo, EnrichedTransaction,
    FeeRecommendation, FeeTier, RawBlock, RetargetProjection, TransactionPage
)
from regtest_explorer.core.rpc_client import BitcoinRPCClient
from regtest_explorer.core.transaction_parser import TransactionParser
from regtest_explorer.core.enricher import TransactionEnricher
from regtest_explorer.core.chain_scanner import ChainScanner
from regtest_explorer.core.paginator import RecentActivityPaginator
from regtest_explorer.core.address_indexer import AddressIndexer
from regtest_explorer.core.mempool import MempoolEnricher
from regtest_explorer.core.fee_advisor import FeeAdvisor
from regtest_explorer.core.retarget import RetargetProjector
from regtest_explorer.utils.bitcoin import is_height_reference, to_btc

logger = structlog.get_logger(__name__)


class BlockExplorer:
    """Derived views of a regtest node, one method per dashboard query.

    Holds no derived state: every call reads what it needs from the node.
    """

    def __init__(self, config: ExplorerConfig, rpc_client: Optional[BitcoinRPCClient] = None):
        self.config = config
        self.logger = logger.bind(component="block_explorer")

        # Initialize components
        self.rpc_client = rpc_client or BitcoinRPCClient(config)
        self.parser = TransactionParser()
        self.enricher = TransactionEnricher(
            self.rpc_client,
            self.parser,
            parallel=config.enable_parallel_resolution,
            max_workers=config.resolution_workers
        )
        self.scanner = ChainScanner(self.rpc_client, self.parser)
        self.paginator = RecentActivityPaginator(
            self.scanner, self.enricher, config.scan_max_blocks
        )
        self.address_indexer = AddressIndexer(
            self.rpc_client, self.scanner, self.enricher, config.address_history_window
        )
        self.mempool = MempoolEnricher(
            self.rpc_client, self.enricher, config.mempool_max_transactions
        )
        self.fee_advisor = FeeAdvisor(self.rpc_client, config.fee_fallback_sat_per_vbyte)
        self.retarget_projector = RetargetProjector(
            self.rpc_client,
            self.scanner,
            interval=config.retarget_interval,
            target_block_time=config.target_block_time,
            min_sample=config.retarget_min_sample,
            sample_size=config.retarget_sample_size,
            change_min=config.retarget_change_min,
            change_max=config.retarget_change_max
        )

        self.logger.debug("Block explorer initialized")

    def get_chain_info(self) -> ChainInfo:
        info = self.rpc_client.get_blockchain_info()
        return ChainInfo(
            chain=info.get('chain', ''),
            blocks=info.get('blocks', 0),
            best_block_hash=info.get('bestblockhash', ''),
            difficulty=Decimal(str(info.get('difficulty', 0))),
            median_time=info.get('mediantime', 0),
            size_on_disk=info.get('size_on_disk', 0)
        )

    def list_blocks(self, limit: Optional[int] = None) -> List[BlockSummary]:
        """Most recent blocks, newest first."""
        if limit is None:
            limit = self.config.block_list_limit
        if limit < 1:
            raise ValueError("limit must be at least 1")

        return [
            self.parser.summarize_block(block)
            for block in self.scanner.iter_blocks(limit, verbosity=1)
        ]

    def get_block(self, height_or_hash: Union[int, str]) -> RawBlock:
        """Block with transaction bodies, by height or hash."""
        if is_height_reference(height_or_hash):
            block_hash = self.rpc_client.get_block_hash(int(height_or_hash))
        else:
            block_hash = height_or_hash

        return self.parser.parse_block(self.rpc_client.get_block(block_hash, 2))

    def get_address_view(self, address: str) -> AddressView:
        if not address or not address.strip():
            raise ValueError("address must not be empty")
        return self.address_indexer.get_address_view(address.strip())

    def list_transactions(self, limit: Optional[int] = None, offset: int = 0) -> TransactionPage:
        if limit is None:
            limit = self.config.transaction_page_size
        return self.paginator.page(limit, offset)

    def get_transaction(self, txid: str) -> EnrichedTransaction:
        """
        One transaction, confirmed or unconfirmed.

        Confirmed transactions take height and time from their block header;
        mempool transactions get no block and the current time.
        """
        tx_data = self.rpc_client.get_raw_transaction(txid, True)
        raw_tx = self.parser.parse_transaction(tx_data)

        block_hash = tx_data.get('blockhash')
        if not block_hash:
            return self.enricher.enrich(raw_tx)

        header = self.parser.parse_block(self.rpc_client.get_block(block_hash, 1))
        return self.enricher.enrich(raw_tx, header)

    def list_mempool(self) -> List[EnrichedTransaction]:
        return self.mempool.list_transactions()

    def list_mempool_entries(self) -> Dict[str, Any]:
        return self.mempool.get_entries()

    def get_mempool_info(self) -> Dict[str, Any]:
        return self.mempool.get_info()

    def get_fee_recommendation(self) -> FeeRecommendation:
        return self.fee_advisor.get_recommendation()

    def estimate_fee(self, target: int) -> FeeTier:
        return self.fee_advisor.estimate(target)

    def get_retarget_projection(self) -> RetargetProjection:
        return self.retarget_projector.project()

    def broadcast_raw_transaction(self, tx_hex: str) -> str:
        """Broadcast a signed transaction and return its txid."""
        tx_hex = (tx_hex or '').strip()
        if not tx_hex:
            raise ValueError("transaction hex must not be empty")
        try:
            bytes.fromhex(tx_hex)
        except ValueError:
            raise ValueError("transaction hex is not valid hexadecimal")

        txid = self.rpc_client.send_raw_transaction(tx_hex)
        self.logger.info("Transaction broadcast", txid=txid)
        return txid

    def send_funds(self, address: str, amount: Union[Decimal, float, str]) -> str:
        """Pay ``amount`` BTC from the node wallet to ``address``."""
        if not address or not address.strip():
            raise ValueError("address must not be empty")

        try:
            value = to_btc(amount)
        except InvalidOperation:
            raise ValueError(f"amount is not a number: {amount!r}")
        if not value.is_finite() or value <= 0:
            raise ValueError("amount must be positive")

        txid = self.rpc_client.send_to_address(address.strip(), value)
        self.logger.info("Funds sent", address=address, amount=str(value), txid=txid)
        return txid

    def test_connection(self) -> bool:
        return self.rpc_client.test_connection()

    def close(self):
        self.rpc_client.close()
