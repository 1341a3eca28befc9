"""
Regtest Block Explorer

Derived views (blocks, transactions with fees, address balances and history,
mempool, fee advice, difficulty projection) of a local Bitcoin Core regtest
node, computed on demand without any index or database.
"""

__version__ = "1.0.0"
__description__ = "On-demand block explorer engine for Bitcoin Core regtest nodes"

from regtest_explorer.core.explorer import BlockExplorer
from regtest_explorer.core.rpc_client import BitcoinRPCClient
from regtest_explorer.models.config import ExplorerConfig

__all__ = [
    "BlockExplorer",
    "BitcoinRPCClient",
    "ExplorerConfig",
]
