"""Backward chain walking from the current tip."""

from typing import Iterator, Optional, Set, Tuple
import structlog

from regtest_explorer.core.rpc_client import BitcoinRPCClient
from regtest_explorer.core.transaction_parser import TransactionParser
from regtest_explorer.models.blockchain import RawBlock, RawTransaction

logger = structlog.get_logger(__name__)


class ChainScanner:
    """Walk blocks from the tip downward within a bounded depth.

    There is no index behind this: every call re-reads the blocks it needs,
    so ``max_blocks`` is the cost ceiling of every derived view built on it.
    Nothing is shared between calls; two calls may see different tips.
    """

    def __init__(self, rpc_client: BitcoinRPCClient,
                 parser: Optional[TransactionParser] = None):
        self.rpc_client = rpc_client
        self.parser = parser or TransactionParser()
        self.logger = logger.bind(component="chain_scanner")

    def get_tip_height(self) -> int:
        return self.rpc_client.get_block_count()

    def fetch_block(self, height: int, verbosity: int = 2) -> RawBlock:
        block_hash = self.rpc_client.get_block_hash(height)
        return self.parser.parse_block(self.rpc_client.get_block(block_hash, verbosity))

    def iter_blocks(self, max_blocks: int, tip_height: Optional[int] = None,
                    verbosity: int = 2) -> Iterator[RawBlock]:
        """
        Yield blocks tip, tip-1, ... down to height 0 or ``max_blocks`` blocks.

        Args:
            max_blocks: Upper bound on blocks fetched
            tip_height: Height to start from (read from the node when None)
            verbosity: 2 to include transaction bodies, 1 for headers and txids
        """
        if max_blocks <= 0:
            return

        if tip_height is None:
            tip_height = self.get_tip_height()
        if tip_height < 0:
            return

        lowest = max(0, tip_height - max_blocks + 1)
        for height in range(tip_height, lowest - 1, -1):
            yield self.fetch_block(height, verbosity)

    def scan(self, max_blocks: int, max_transactions: Optional[int] = None,
             tip_height: Optional[int] = None) -> Iterator[Tuple[RawBlock, RawTransaction]]:
        """
        Yield (block, transaction) pairs newest first.

        Stops at height 0, after ``max_blocks`` blocks, or once
        ``max_transactions`` pairs have been produced, whichever comes first.
        A transaction id is yielded at most once per call.
        """
        if max_transactions is not None and max_transactions <= 0:
            return

        seen_txids: Set[str] = set()
        produced = 0
        blocks_scanned = 0

        for block in self.iter_blocks(max_blocks, tip_height):
            blocks_scanned += 1
            for raw_tx in block.transactions:
                if raw_tx.txid in seen_txids:
                    self.logger.warning("Duplicate transaction in scan window",
                                        txid=raw_tx.txid,
                                        height=block.height)
                    continue
                seen_txids.add(raw_tx.txid)

                yield block, raw_tx
                produced += 1

                if max_transactions is not None and produced >= max_transactions:
                    self.logger.debug("Scan satisfied transaction limit",
                                      blocks_scanned=blocks_scanned,
                                      transactions=produced)
                    return

        self.logger.debug("Scan finished",
                          blocks_scanned=blocks_scanned,
                          transactions=produced)
