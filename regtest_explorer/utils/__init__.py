"""Utility functions and helpers."""

from regtest_explorer.utils.logging import setup_logging
from regtest_explorer.utils.bitcoin import (
    to_btc,
    format_eta,
    btc_per_kvb_to_sat_per_vbyte,
)
from regtest_explorer.utils.time import get_current_utc, current_unix_time

__all__ = [
    "setup_logging",
    "to_btc",
    "format_eta",
    "btc_per_kvb_to_sat_per_vbyte",
    "get_current_utc",
    "current_unix_time",
]
