"""Transaction enrichment: input resolution, totals and fees."""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import List, Optional, Sequence
import structlog

from regtest_explorer.core.exceptions import RPCMethodError
from regtest_explorer.core.rpc_client import BitcoinRPCClient
from regtest_explorer.core.transaction_parser import TransactionParser
from regtest_explorer.models.blockchain import (
    EnrichedTransaction, RawBlock, RawTransaction, ResolvedInput, TxInput
)
from regtest_explorer.utils.bitcoin import to_btc
from regtest_explorer.utils.time import current_unix_time

logger = structlog.get_logger(__name__)


class TransactionEnricher:
    """Resolve every input of a transaction to the output it spends.

    Each non-coinbase input costs one ``getrawtransaction`` round-trip. An
    input whose funding transaction cannot be fetched is kept in the result
    without address or value, which makes the fee unknown.
    """

    def __init__(self, rpc_client: BitcoinRPCClient,
                 parser: Optional[TransactionParser] = None,
                 parallel: bool = False, max_workers: int = 4):
        self.rpc_client = rpc_client
        self.parser = parser or TransactionParser()
        self.parallel = parallel
        self.max_workers = max_workers
        self.logger = logger.bind(component="transaction_enricher")

    def fetch_transaction(self, txid: str) -> RawTransaction:
        """Fetch and parse a transaction by id."""
        return self.parser.parse_transaction(self.rpc_client.get_raw_transaction(txid, True))

    def resolve_input(self, tx_input: TxInput) -> ResolvedInput:
        """Resolve one input. Coinbase inputs are never looked up."""
        if tx_input.is_coinbase:
            return ResolvedInput(is_coinbase=True)

        unresolved = ResolvedInput(is_coinbase=False, txid=tx_input.txid, vout=tx_input.vout)
        if tx_input.txid is None or tx_input.vout is None:
            return unresolved

        try:
            funding_tx = self.fetch_transaction(tx_input.txid)
        except RPCMethodError as e:
            self.logger.warning("Funding transaction unavailable",
                                txid=tx_input.txid,
                                vout=tx_input.vout,
                                error=str(e))
            return unresolved

        funding_output = next(
            (output for output in funding_tx.vout if output.n == tx_input.vout), None
        )
        if funding_output is None:
            self.logger.warning("Funding output index missing",
                                txid=tx_input.txid,
                                vout=tx_input.vout)
            return unresolved

        return ResolvedInput(
            is_coinbase=False,
            txid=tx_input.txid,
            vout=tx_input.vout,
            address=funding_output.address,
            value=funding_output.value
        )

    def resolve_inputs(self, inputs: Sequence[TxInput]) -> List[ResolvedInput]:
        """Resolve inputs, keeping source order."""
        if self.parallel and len(inputs) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                return list(executor.map(self.resolve_input, inputs))

        return [self.resolve_input(tx_input) for tx_input in inputs]

    def enrich(self, raw_tx: RawTransaction, block: Optional[RawBlock] = None,
               timestamp: Optional[int] = None) -> EnrichedTransaction:
        """
        Build an EnrichedTransaction.

        Args:
            raw_tx: Parsed transaction
            block: Containing block, or None for unconfirmed transactions
            timestamp: Time to report when there is no block (defaults to now)
        """
        resolved = self.resolve_inputs(raw_tx.vin)

        total_output = sum((output.value for output in raw_tx.vout), to_btc(0))
        total_input = sum(
            (tx_input.value for tx_input in resolved if tx_input.value is not None), to_btc(0)
        )

        is_coinbase = raw_tx.is_coinbase
        fee = calculate_fee(is_coinbase, resolved, total_input, total_output)
        if fee is None and not is_coinbase and all(tx_input.resolved for tx_input in resolved):
            self.logger.warning("Negative fee treated as unknown",
                                txid=raw_tx.txid,
                                total_input=str(total_input),
                                total_output=str(total_output))

        if block is not None:
            time, height, block_hash = block.time, block.height, block.hash
        else:
            time = timestamp if timestamp is not None else current_unix_time()
            height, block_hash = None, None

        return EnrichedTransaction(
            txid=raw_tx.txid,
            hash=raw_tx.hash,
            size=raw_tx.size,
            vsize=raw_tx.vsize,
            weight=raw_tx.weight,
            inputs=resolved,
            outputs=list(raw_tx.vout),
            total_input=total_input,
            total_output=total_output,
            fee=fee,
            is_coinbase=is_coinbase,
            time=time,
            block_height=height,
            block_hash=block_hash
        )


def calculate_fee(is_coinbase: bool, inputs: Sequence[ResolvedInput],
                  total_input: Decimal, total_output: Decimal) -> Optional[Decimal]:
    """Fee of a transaction, or None when it cannot be known.

    Coinbase transactions pay no fee. A negative difference can only come from
    missing input data and is reported as unknown.
    """
    if is_coinbase:
        return to_btc(0)

    if not all(tx_input.resolved for tx_input in inputs):
        return None

    fee = total_input - total_output
    if fee < 0:
        return None
    return fee
