"""Pytest configuration and fixtures for regtest explorer tests."""

import copy
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from regtest_explorer.core.exceptions import error_from_response
from regtest_explorer.core.rpc_client import BitcoinRPCClient
from regtest_explorer.models.config import ExplorerConfig

REGTEST_DIFFICULTY = Decimal("4.656542373906925E-10")
GENESIS_TIME = 1296688602
BLOCK_INTERVAL = 600

ADDRESS_A = "bcrt1qaddressa0000000000000000000000000000"
ADDRESS_B = "bcrt1qaddressb0000000000000000000000000000"
MINER = "bcrt1qminer00000000000000000000000000000000"


# ============================================================================
# TRANSACTION BUILDERS
# ============================================================================

def make_output(n: int, address: Optional[str], value) -> Dict[str, Any]:
    script_pub_key = {"type": "witness_v0_keyhash" if address else "nulldata"}
    if address:
        script_pub_key["address"] = address
    return {"value": Decimal(str(value)), "n": n, "scriptPubKey": script_pub_key}


def make_coinbase(txid: str, address: str, value="50") -> Dict[str, Any]:
    return {
        "txid": txid,
        "hash": txid,
        "version": 2,
        "size": 168,
        "vsize": 141,
        "weight": 564,
        "locktime": 0,
        "vin": [{"coinbase": "0101", "sequence": 4294967295}],
        "vout": [make_output(0, address, value)],
    }


def make_tx(txid: str, inputs: Sequence[Tuple[str, int]],
            outputs: Sequence[Tuple[Optional[str], Any]]) -> Dict[str, Any]:
    return {
        "txid": txid,
        "hash": txid,
        "version": 2,
        "size": 222,
        "vsize": 141,
        "weight": 561,
        "locktime": 0,
        "vin": [
            {"txid": prev_txid, "vout": vout, "sequence": 4294967293}
            for prev_txid, vout in inputs
        ],
        "vout": [make_output(n, address, value) for n, (address, value) in enumerate(outputs)],
    }


# ============================================================================
# FAKE NODE
# ============================================================================

class FakeNode(BitcoinRPCClient):
    """In-memory regtest node answering the RPC methods the explorer uses."""

    def __init__(self, config: ExplorerConfig):
        super().__init__(config)
        self.blocks: List[Dict[str, Any]] = []
        self.transactions: Dict[str, Dict[str, Any]] = {}
        self.mempool: List[str] = []
        self.fee_estimates: Dict[int, Any] = {}
        self.failing_txids = set()
        self.scan_failure = False
        self.sent: List[Tuple[str, Any]] = []
        self.calls: List[Tuple[str, List[Any]]] = []

    # -- chain building ---------------------------------------------------

    def add_block(self, transactions: Sequence[Dict[str, Any]],
                  time: Optional[int] = None) -> Dict[str, Any]:
        height = len(self.blocks)
        block_hash = f"{height:064x}"
        if time is None:
            time = GENESIS_TIME + height * BLOCK_INTERVAL

        block = {
            "hash": block_hash,
            "height": height,
            "time": time,
            "size": 250 + 200 * len(transactions),
            "weight": 1000,
            "version": 536870912,
            "merkleroot": "00" * 32,
            "nonce": height,
            "bits": "207fffff",
            "difficulty": REGTEST_DIFFICULTY,
            "nTx": len(transactions),
            "tx": [copy.deepcopy(tx) for tx in transactions],
        }
        if self.blocks:
            block["previousblockhash"] = self.blocks[-1]["hash"]
            self.blocks[-1]["nextblockhash"] = block_hash
        self.blocks.append(block)

        for tx in transactions:
            self.transactions[tx["txid"]] = dict(copy.deepcopy(tx), blockhash=block_hash)
            if tx["txid"] in self.mempool:
                self.mempool.remove(tx["txid"])
        return block

    def mine(self, count: int = 1, address: str = MINER) -> None:
        for _ in range(count):
            height = len(self.blocks)
            self.add_block([make_coinbase(f"cb{height:062d}", address)])

    def add_to_mempool(self, tx: Dict[str, Any]) -> None:
        self.transactions[tx["txid"]] = copy.deepcopy(tx)
        self.mempool.append(tx["txid"])

    # -- RPC dispatch -----------------------------------------------------

    def call(self, method: str, params: Optional[List[Any]] = None, retry: bool = True) -> Any:
        params = list(params or [])
        self.calls.append((method, params))
        handler = getattr(self, f"_rpc_{method}")
        return handler(*params)

    def calls_to(self, method: str) -> List[List[Any]]:
        return [params for name, params in self.calls if name == method]

    def _rpc_getblockcount(self):
        return len(self.blocks) - 1

    def _rpc_getblockhash(self, height):
        if height < 0 or height >= len(self.blocks):
            raise error_from_response(-8, "Block height out of range")
        return self.blocks[height]["hash"]

    def _rpc_getblock(self, block_hash, verbosity=1):
        block = next((b for b in self.blocks if b["hash"] == block_hash), None)
        if block is None:
            raise error_from_response(-5, "Block not found")

        result = copy.deepcopy(block)
        result["confirmations"] = len(self.blocks) - block["height"]
        if verbosity == 1:
            result["tx"] = [tx["txid"] for tx in block["tx"]]
        return result

    def _rpc_getrawtransaction(self, txid, verbose=True):
        if txid in self.failing_txids or txid not in self.transactions:
            raise error_from_response(-5, "No such mempool or blockchain transaction")
        return copy.deepcopy(self.transactions[txid])

    def _rpc_scantxoutset(self, action, descriptors):
        address = descriptors[0][len("addr("):-1]
        if address.startswith("invalid"):
            raise error_from_response(-5, f"Invalid address: {address}")
        if self.scan_failure:
            return {"success": False}

        spent = {
            (vin["txid"], vin["vout"])
            for block in self.blocks for tx in block["tx"] for vin in tx["vin"]
            if "coinbase" not in vin
        }
        unspents = []
        for block in self.blocks:
            for tx in block["tx"]:
                for vout in tx["vout"]:
                    if vout["scriptPubKey"].get("address") != address:
                        continue
                    if (tx["txid"], vout["n"]) in spent:
                        continue
                    unspents.append({
                        "txid": tx["txid"],
                        "vout": vout["n"],
                        "scriptPubKey": "0014" + "ab" * 20,
                        "desc": f"addr({address})#checksum",
                        "amount": vout["value"],
                        "coinbase": "coinbase" in tx["vin"][0],
                        "height": block["height"],
                    })

        return {
            "success": True,
            "txouts": 100,
            "height": len(self.blocks) - 1,
            "bestblock": self.blocks[-1]["hash"],
            "unspents": unspents,
            "total_amount": sum((u["amount"] for u in unspents), Decimal("0")),
        }

    def _rpc_getrawmempool(self, verbose=False):
        if not verbose:
            return list(self.mempool)
        return {
            txid: {"vsize": self.transactions[txid]["vsize"], "fees": {"base": Decimal("0.00001")}}
            for txid in self.mempool
        }

    def _rpc_getmempoolinfo(self):
        return {"loaded": True, "size": len(self.mempool), "bytes": 141 * len(self.mempool)}

    def _rpc_getblockchaininfo(self):
        tip = self.blocks[-1]
        return {
            "chain": "regtest",
            "blocks": tip["height"],
            "headers": tip["height"],
            "bestblockhash": tip["hash"],
            "difficulty": REGTEST_DIFFICULTY,
            "mediantime": tip["time"],
            "size_on_disk": 4096,
        }

    def _rpc_estimatesmartfee(self, conf_target):
        estimate = self.fee_estimates.get(conf_target)
        if isinstance(estimate, Exception):
            raise estimate
        if estimate is None:
            return {"errors": ["Insufficient data or no feerate found"], "blocks": 0}
        return estimate

    def _rpc_sendrawtransaction(self, tx_hex):
        return "f" * 64

    def _rpc_sendtoaddress(self, address, amount):
        self.sent.append((address, amount))
        return "e" * 64


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def config():
    """Explorer configuration without retry delays."""
    return ExplorerConfig(
        _env_file=None,
        bitcoin_rpc_retry_delay=0,
        scan_max_blocks=50,
        address_history_window=100,
        mempool_max_transactions=50,
    )


@pytest.fixture
def node(config):
    """Fake node holding only the genesis block."""
    fake = FakeNode(config)
    fake.add_block([make_coinbase("00" * 32, MINER)])
    return fake


@pytest.fixture
def funded_node(node):
    """
    Chain where ADDRESS_A owns P:0 (10) and P:1 (5), then spends both in T.

    Heights: 1 coinbase to A, 2 P (A -> A 10, A 5), 3 T (P:0 + P:1 -> B 14).
    """
    node.add_block([make_coinbase("c1" * 32, ADDRESS_A, "15")])
    node.add_block([
        make_coinbase("c2" * 32, MINER),
        make_tx("p0" * 32, [("c1" * 32, 0)], [(ADDRESS_A, "10"), (ADDRESS_A, "5")]),
    ])
    node.add_block([
        make_coinbase("c3" * 32, MINER),
        make_tx("t0" * 32, [("p0" * 32, 0), ("p0" * 32, 1)], [(ADDRESS_B, "14")]),
    ])
    return node
