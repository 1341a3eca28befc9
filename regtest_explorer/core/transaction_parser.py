"""Transaction and block parsing from node JSON."""

from decimal import Decimal
from typing import Dict, Any
import structlog

from regtest_explorer.models.blockchain import (
    RawBlock, RawTransaction, BlockSummary
)
from regtest_explorer.utils.bitcoin import parse_vout, parse_vin

logger = structlog.get_logger(__name__)


class TransactionParser:
    """Parse Bitcoin Core block and transaction JSON into typed values."""

    def __init__(self):
        self.logger = logger.bind(component="transaction_parser")

    def parse_transaction(self, tx_data: Dict[str, Any]) -> RawTransaction:
        """Parse a single verbose transaction."""
        txid = tx_data['txid']

        inputs = [parse_vin(vin) for vin in tx_data.get('vin', [])]
        outputs = [parse_vout(vout) for vout in tx_data.get('vout', [])]

        size = tx_data.get('size', 0)
        return RawTransaction(
            txid=txid,
            hash=tx_data.get('hash', txid),
            size=size,
            vsize=tx_data.get('vsize', size),
            weight=tx_data.get('weight', size * 4),
            vin=inputs,
            vout=outputs,
            version=tx_data.get('version', 0),
            locktime=tx_data.get('locktime', 0)
        )

    def parse_block(self, block_data: Dict[str, Any]) -> RawBlock:
        """
        Parse a block.

        Transaction bodies are only present at verbosity 2; at verbosity 1 the
        ``tx`` list holds txids and the block carries no transactions.
        """
        raw_txs = block_data.get('tx', [])
        transactions = [
            self.parse_transaction(tx) for tx in raw_txs if isinstance(tx, dict)
        ]

        block = RawBlock(
            height=block_data['height'],
            hash=block_data['hash'],
            time=block_data['time'],
            size=block_data.get('size', 0),
            tx_count=block_data.get('nTx', len(raw_txs)),
            difficulty=Decimal(str(block_data.get('difficulty', 0))),
            transactions=transactions,
            weight=block_data.get('weight'),
            version=block_data.get('version'),
            merkleroot=block_data.get('merkleroot'),
            nonce=block_data.get('nonce'),
            bits=block_data.get('bits'),
            previousblockhash=block_data.get('previousblockhash'),
            nextblockhash=block_data.get('nextblockhash')
        )

        self.logger.debug("Parsed block",
                          height=block.height,
                          tx_count=block.tx_count,
                          with_bodies=bool(transactions))
        return block

    def summarize_block(self, block: RawBlock) -> BlockSummary:
        return BlockSummary(
            height=block.height,
            hash=block.hash,
            time=block.time,
            size=block.size,
            tx_count=block.tx_count,
            difficulty=block.difficulty
        )
