"""Address balance and history derivation."""

from decimal import Decimal
from typing import Any, Dict, List, Tuple
import structlog

from regtest_explorer.core.chain_scanner import ChainScanner
from regtest_explorer.core.enricher import TransactionEnricher
from regtest_explorer.core.exceptions import AddressScanError
from regtest_explorer.core.rpc_client import BitcoinRPCClient
from regtest_explorer.models.blockchain import (
    AddressTransaction, AddressView, RawTransaction, UTXOEntry
)
from regtest_explorer.utils.bitcoin import to_btc

logger = structlog.get_logger(__name__)


class AddressIndexer:
    """Answer "what is this address's balance and history".

    Balance and UTXOs come from a single ``scantxoutset`` and are always
    exact. History comes from a separate walk over the most recent
    ``history_window`` blocks, so it can miss activity older than the window
    and need not add up to the balance. The view reports the window it used.
    """

    def __init__(self, rpc_client: BitcoinRPCClient, scanner: ChainScanner,
                 enricher: TransactionEnricher, history_window: int):
        self.rpc_client = rpc_client
        self.scanner = scanner
        self.enricher = enricher
        self.history_window = history_window
        self.logger = logger.bind(component="address_indexer")

    def get_address_view(self, address: str) -> AddressView:
        balance, utxos = self.scan_utxos(address)

        tip_height = self.scanner.get_tip_height()
        history = self.collect_history(address, tip_height)

        self.logger.info("Address view built",
                         address=address,
                         utxo_count=len(utxos),
                         history_entries=len(history),
                         tip_height=tip_height)

        return AddressView(
            address=address,
            balance=balance,
            utxo_count=len(utxos),
            utxos=utxos,
            transactions=history,
            tip_height=tip_height,
            history_window=self.history_window,
            history_from_height=max(0, tip_height - self.history_window + 1)
        )

    def scan_utxos(self, address: str) -> Tuple[Decimal, List[UTXOEntry]]:
        """Current balance and UTXOs from one UTXO set scan."""
        result = self.rpc_client.scan_tx_out_set(address)

        if not result or not result.get('success'):
            self.logger.error("UTXO set scan unsuccessful", address=address)
            raise AddressScanError(f"Failed to scan UTXO set for address {address}")

        utxos = [self._parse_unspent(unspent) for unspent in result.get('unspents') or []]
        balance = to_btc(result.get('total_amount', 0))
        return balance, utxos

    def collect_history(self, address: str, tip_height: int) -> List[AddressTransaction]:
        """Transactions in the history window that change the address balance."""
        history = []

        for block, raw_tx in self.scanner.scan(self.history_window, tip_height=tip_height):
            net = self._incoming(address, raw_tx) - self._outgoing(address, raw_tx)
            if net == 0:
                continue

            history.append(AddressTransaction(
                txid=raw_tx.txid,
                time=block.time,
                block_height=block.height,
                type='incoming' if net > 0 else 'outgoing',
                amount=net,
                confirmations=tip_height - block.height + 1
            ))

        # Newest first; sort is stable so scan order breaks ties
        history.sort(key=lambda entry: entry.time, reverse=True)
        return history

    def _incoming(self, address: str, raw_tx: RawTransaction) -> Decimal:
        return sum(
            (output.value for output in raw_tx.vout if output.address == address), to_btc(0)
        )

    def _outgoing(self, address: str, raw_tx: RawTransaction) -> Decimal:
        if raw_tx.is_coinbase:
            return to_btc(0)

        resolved = self.enricher.resolve_inputs(raw_tx.vin)
        return sum(
            (tx_input.value for tx_input in resolved
             if tx_input.address == address and tx_input.value is not None),
            to_btc(0)
        )

    @staticmethod
    def _parse_unspent(unspent: Dict[str, Any]) -> UTXOEntry:
        return UTXOEntry(
            txid=unspent['txid'],
            vout=unspent['vout'],
            script_pub_key=unspent.get('scriptPubKey', ''),
            desc=unspent.get('desc', ''),
            amount=to_btc(unspent.get('amount', 0)),
            height=unspent.get('height', 0)
        )
