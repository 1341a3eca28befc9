"""Bitcoin-specific utility functions."""

import math
import re
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Optional, Dict, Any, Union

from regtest_explorer.models.blockchain import TxInput, TxOutput

# Satoshis per Bitcoin
SATOSHIS_PER_BTC = Decimal('100000000')

# Smallest representable amount
BTC_QUANTUM = Decimal('0.00000001')

# Minutes per block used for human ETAs
MINUTES_PER_BLOCK = 10

HEIGHT_PATTERN = re.compile(r'^\d+$')


def to_btc(value: Union[int, float, str, Decimal, None]) -> Decimal:
    """Normalize an RPC amount to a Decimal with 8 fractional digits."""
    if value is None:
        return Decimal('0').quantize(BTC_QUANTUM)
    return Decimal(str(value)).quantize(BTC_QUANTUM, rounding=ROUND_HALF_EVEN)


def btc_per_kvb_to_sat_per_vbyte(feerate: Union[float, str, Decimal]) -> Decimal:
    """Convert a node fee rate (BTC per 1000 vbytes) to sat/vB."""
    return Decimal(str(feerate)) * SATOSHIS_PER_BTC / Decimal('1000')


def recommended_sat_per_vbyte(sat_per_vbyte: Decimal, floor: int = 1) -> int:
    """Round a fee rate up to a whole sat/vB, never below ``floor``."""
    return max(floor, math.ceil(sat_per_vbyte))


def format_eta(blocks: int) -> str:
    """Human ETA for confirmation within ``blocks`` blocks."""
    minutes = blocks * MINUTES_PER_BLOCK
    if minutes < 60:
        return f"~{minutes} min"
    hours = minutes // 60
    return f"~{hours} hour{'s' if hours > 1 else ''}"


def is_height_reference(reference: Union[int, str]) -> bool:
    """True when a block reference is a height rather than a hash."""
    if isinstance(reference, int):
        return True
    return bool(HEIGHT_PATTERN.match(reference))


def output_address(script_pub_key: Dict[str, Any]) -> Optional[str]:
    """Owning address of an output script, if the node could decode one."""
    address = script_pub_key.get('address')
    if address:
        return address

    # Bitcoin Core < 22 reports a list instead
    addresses = script_pub_key.get('addresses') or []
    return addresses[0] if addresses else None


def parse_vout(vout_data: Dict[str, Any]) -> TxOutput:
    """Parse transaction output data."""
    script_pub_key = vout_data.get('scriptPubKey', {})

    return TxOutput(
        n=vout_data.get('n', 0),
        value=to_btc(vout_data.get('value', 0)),
        address=output_address(script_pub_key),
        script_type=script_pub_key.get('type', 'nonstandard')
    )


def parse_vin(vin_data: Dict[str, Any]) -> TxInput:
    """Parse transaction input data."""
    # Coinbase transaction
    if 'coinbase' in vin_data:
        return TxInput(
            is_coinbase=True,
            sequence=vin_data.get('sequence', 0)
        )

    # Regular transaction input
    return TxInput(
        is_coinbase=False,
        txid=vin_data.get('txid'),
        vout=vin_data.get('vout'),
        sequence=vin_data.get('sequence', 0)
    )
