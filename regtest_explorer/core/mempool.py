"""Unconfirmed transaction views."""

from typing import Any, Dict, List
import structlog

from regtest_explorer.core.enricher import TransactionEnricher
from regtest_explorer.core.exceptions import RPCMethodError
from regtest_explorer.core.rpc_client import BitcoinRPCClient
from regtest_explorer.models.blockchain import EnrichedTransaction
from regtest_explorer.utils.time import current_unix_time

logger = structlog.get_logger(__name__)


class MempoolEnricher:
    """Enrich mempool transactions the same way as confirmed ones."""

    def __init__(self, rpc_client: BitcoinRPCClient, enricher: TransactionEnricher,
                 max_transactions: int):
        self.rpc_client = rpc_client
        self.enricher = enricher
        self.max_transactions = max_transactions
        self.logger = logger.bind(component="mempool_enricher")

    def list_transactions(self) -> List[EnrichedTransaction]:
        """
        Enrich up to ``max_transactions`` mempool transactions.

        A transaction that cannot be fetched (typically because it was mined
        between listing and fetching) is skipped.
        """
        txids = self.rpc_client.get_raw_mempool(False)
        now = current_unix_time()

        transactions = []
        for txid in txids[:self.max_transactions]:
            try:
                raw_tx = self.enricher.fetch_transaction(txid)
            except RPCMethodError as e:
                self.logger.info("Mempool transaction left the pool", txid=txid, error=str(e))
                continue

            transactions.append(self.enricher.enrich(raw_tx, timestamp=now))

        self.logger.info("Mempool enriched",
                         pool_size=len(txids),
                         returned=len(transactions))
        return transactions

    def get_entries(self) -> Dict[str, Any]:
        """Verbose mempool entries keyed by txid."""
        return self.rpc_client.get_raw_mempool(True)

    def get_info(self) -> Dict[str, Any]:
        return self.rpc_client.get_mempool_info()
