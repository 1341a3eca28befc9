"""Blockchain data models for the explorer.

All values are derived per request from node queries and never persisted.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from dataclasses import dataclass, field


@dataclass
class TxInput:
    """Transaction input as reported by the node."""
    is_coinbase: bool
    txid: Optional[str] = None
    vout: Optional[int] = None
    sequence: int = 0


@dataclass
class TxOutput:
    """Transaction output as reported by the node."""
    n: int
    value: Decimal
    address: Optional[str]
    script_type: str


@dataclass
class RawTransaction:
    """Raw transaction data from Bitcoin Core RPC."""
    txid: str
    hash: str
    size: int
    vsize: int
    weight: int
    vin: List[TxInput]
    vout: List[TxOutput]
    version: int = 0
    locktime: int = 0

    @property
    def is_coinbase(self) -> bool:
        return any(tx_input.is_coinbase for tx_input in self.vin)


@dataclass
class RawBlock:
    """Raw block data from Bitcoin Core RPC."""
    height: int
    hash: str
    time: int
    size: int
    tx_count: int
    difficulty: Decimal
    transactions: List[RawTransaction] = field(default_factory=list)
    weight: Optional[int] = None
    version: Optional[int] = None
    merkleroot: Optional[str] = None
    nonce: Optional[int] = None
    bits: Optional[str] = None
    previousblockhash: Optional[str] = None
    nextblockhash: Optional[str] = None


@dataclass
class BlockSummary:
    """Block header fields shown in block lists."""
    height: int
    hash: str
    time: int
    size: int
    tx_count: int
    difficulty: Decimal


@dataclass
class ResolvedInput:
    """Transaction input with its funding output resolved where possible."""
    is_coinbase: bool
    txid: Optional[str] = None
    vout: Optional[int] = None
    address: Optional[str] = None
    value: Optional[Decimal] = None

    @property
    def resolved(self) -> bool:
        return self.is_coinbase or self.value is not None


@dataclass
class EnrichedTransaction:
    """Transaction with resolved inputs, totals and fee.

    ``fee`` is ``None`` when it cannot be known (an input could not be
    resolved). Coinbase transactions always carry a fee of exactly zero.
    """
    txid: str
    hash: str
    size: int
    vsize: int
    weight: int
    inputs: List[ResolvedInput]
    outputs: List[TxOutput]
    total_input: Decimal
    total_output: Decimal
    fee: Optional[Decimal]
    is_coinbase: bool
    time: int
    block_height: Optional[int] = None
    block_hash: Optional[str] = None

    @property
    def fee_known(self) -> bool:
        return self.fee is not None

    @property
    def confirmed(self) -> bool:
        return self.block_hash is not None


@dataclass
class TransactionPage:
    """One page of recent transactions, newest first."""
    transactions: List[EnrichedTransaction]
    offset: int
    limit: int
    has_more: bool


@dataclass
class UTXOEntry:
    """Unspent output owned by an address, from a UTXO set scan."""
    txid: str
    vout: int
    script_pub_key: str
    desc: str
    amount: Decimal
    height: int


@dataclass
class AddressTransaction:
    """Address history entry. ``amount`` is the signed net effect."""
    txid: str
    time: int
    block_height: int
    type: str
    amount: Decimal
    confirmations: int


@dataclass
class AddressView:
    """Address balance, UTXOs and recent history.

    Balance and UTXOs come from one UTXO set scan and are exact. History only
    covers blocks ``history_from_height`` .. ``tip_height``.
    """
    address: str
    balance: Decimal
    utxo_count: int
    utxos: List[UTXOEntry]
    transactions: List[AddressTransaction]
    tip_height: int
    history_window: int
    history_from_height: int


@dataclass
class FeeTier:
    """Fee recommendation for one confirmation target."""
    sat_per_vbyte: int
    blocks: int
    eta: str
    estimated: bool = True


@dataclass
class FeeRecommendation:
    fast: FeeTier
    medium: FeeTier
    slow: FeeTier


@dataclass
class RetargetProjection:
    """Projection of the next difficulty adjustment."""
    current_height: int
    difficulty: float
    next_retarget_height: int
    remaining_blocks: int
    progress_percent: float
    estimated_change_percent: float = 0.0
    average_block_time: Optional[float] = None
    sample_size: int = 0
    estimated_retarget_time: Optional[datetime] = None
    network_hashrate_ths: float = 0.0


@dataclass
class ChainInfo:
    chain: str
    blocks: int
    best_block_hash: str
    difficulty: Decimal
    median_time: int
    size_on_disk: int
