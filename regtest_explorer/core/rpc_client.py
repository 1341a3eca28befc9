"""Bitcoin Core RPC client (the node gateway)."""

import time
from decimal import Decimal
from typing import Dict, Any, Optional, List, Union
import requests
import structlog

from regtest_explorer.models.config import ExplorerConfig
from regtest_explorer.core.exceptions import (
    NodeUnavailableError, error_from_response
)
from regtest_explorer.utils.metrics import metrics

logger = structlog.get_logger(__name__)


class BitcoinRPCClient:
    """Bitcoin Core JSON-RPC client.

    Every node query goes through :meth:`call`. Connection-level failures are
    retried a bounded number of times; error objects returned by the node are
    raised immediately as :class:`RPCMethodError` (or its not-found subclass).
    """

    def __init__(self, config: ExplorerConfig):
        self.config = config
        self.session = requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'User-Agent': 'regtest-explorer/1.0.0'
        })

        self.rpc_url = config.bitcoin_rpc_url
        self.auth = (config.bitcoin_rpc_user, config.bitcoin_rpc_password)

        logger.info("Bitcoin RPC client initialized",
                    host=config.bitcoin_rpc_host,
                    port=config.bitcoin_rpc_port)

    def call(self, method: str, params: Optional[List[Any]] = None, retry: bool = True) -> Any:
        """
        Send one RPC request and return its decoded result.

        Args:
            method: RPC method name
            params: Positional parameters
            retry: Retry connection-level failures. Wallet and broadcast calls
                pass False: a timed-out request may already have been applied.
        """
        if params is None:
            params = []

        payload = {
            "jsonrpc": "1.0",
            "id": "regtest-explorer",
            "method": method,
            "params": params
        }

        attempts = self.config.bitcoin_rpc_retry_attempts if retry else 1
        for attempt in range(attempts):
            started = time.perf_counter()
            try:
                response = self.session.post(
                    self.rpc_url,
                    json=payload,
                    auth=self.auth,
                    timeout=self.config.bitcoin_rpc_timeout
                )
            except requests.RequestException as e:
                metrics.rpc_calls.labels(method=method, outcome="unavailable").inc()
                logger.warning("RPC request failed",
                               method=method,
                               attempt=attempt + 1,
                               error=str(e))

                if attempt == attempts - 1:
                    raise NodeUnavailableError(
                        f"Bitcoin node unreachable after {attempts} attempts: {e}"
                    ) from e

                time.sleep(self.config.bitcoin_rpc_retry_delay)
                continue
            finally:
                metrics.rpc_duration.labels(method=method).observe(time.perf_counter() - started)

            return self._decode_response(method, response)

        raise NodeUnavailableError("Unexpected error in RPC request")

    def _decode_response(self, method: str, response: requests.Response) -> Any:
        if response.status_code in (401, 403):
            metrics.rpc_calls.labels(method=method, outcome="unavailable").inc()
            raise NodeUnavailableError(
                f"Bitcoin node rejected credentials (HTTP {response.status_code})",
                code=response.status_code
            )

        try:
            data = response.json(parse_float=Decimal)
        except ValueError as e:
            metrics.rpc_calls.labels(method=method, outcome="unavailable").inc()
            raise NodeUnavailableError(
                f"Undecodable RPC response (HTTP {response.status_code})",
                code=response.status_code
            ) from e

        error = data.get('error') if isinstance(data, dict) else None
        if error:
            metrics.rpc_calls.labels(method=method, outcome="error").inc()
            logger.debug("RPC error response",
                         method=method,
                         code=error.get('code'),
                         message=error.get('message'))
            raise error_from_response(error.get('code'), error.get('message', 'Unknown RPC error'))

        if response.status_code >= 400:
            metrics.rpc_calls.labels(method=method, outcome="unavailable").inc()
            raise NodeUnavailableError(
                f"Bitcoin node returned HTTP {response.status_code}",
                code=response.status_code
            )

        metrics.rpc_calls.labels(method=method, outcome="ok").inc()
        return data.get('result')

    def get_blockchain_info(self) -> Dict[str, Any]:
        """Get blockchain information."""
        return self.call("getblockchaininfo")

    def get_block_count(self) -> int:
        """Get the current block height."""
        return self.call("getblockcount")

    def get_block_hash(self, height: int) -> str:
        """Get block hash by height."""
        return self.call("getblockhash", [height])

    def get_block(self, block_hash: str, verbosity: int = 2) -> Dict[str, Any]:
        """
        Get block data by hash.

        Args:
            block_hash: Block hash
            verbosity: 1=json with txids, 2=json with tx details
        """
        return self.call("getblock", [block_hash, verbosity])

    def get_raw_transaction(self, txid: str, verbose: bool = True) -> Dict[str, Any]:
        """Get raw transaction data (verbose JSON by default)."""
        return self.call("getrawtransaction", [txid, verbose])

    def scan_tx_out_set(self, address: str) -> Dict[str, Any]:
        """Scan the UTXO set for outputs paying to ``address``."""
        return self.call("scantxoutset", ["start", [f"addr({address})"]])

    def get_mempool_info(self) -> Dict[str, Any]:
        """Get mempool information."""
        return self.call("getmempoolinfo")

    def get_raw_mempool(self, verbose: bool = False) -> Union[Dict[str, Any], List[str]]:
        """Get raw mempool transactions."""
        return self.call("getrawmempool", [verbose])

    def estimate_smart_fee(self, conf_target: int) -> Dict[str, Any]:
        """Estimate fee rate (BTC/kvB) for confirmation within ``conf_target`` blocks."""
        return self.call("estimatesmartfee", [conf_target])

    def send_raw_transaction(self, tx_hex: str) -> str:
        """Broadcast a signed raw transaction."""
        return self.call("sendrawtransaction", [tx_hex], retry=False)

    def send_to_address(self, address: str, amount: Decimal) -> str:
        """Pay ``amount`` BTC to ``address`` from the node wallet."""
        return self.call("sendtoaddress", [address, float(amount)], retry=False)

    def test_connection(self) -> bool:
        """Test RPC connection."""
        try:
            info = self.get_blockchain_info()
            logger.info("RPC connection successful",
                        chain=info.get('chain'),
                        blocks=info.get('blocks'))
            return True
        except NodeUnavailableError as e:
            logger.error("RPC connection failed", error=str(e))
            return False

    def close(self):
        """Close the RPC session."""
        self.session.close()
        logger.info("RPC client session closed")
