"""
Callback-style RPC transport.

``CallbackTransport`` is the shape the session layer depends on. ``Web3CallbackTransport``
implements it over a ``web3.Web3`` client, running each blocking JSON-RPC request on a
worker pool and reporting ``callback(error, result)`` from the worker thread.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Protocol, runtime_checkable

import web3
from web3 import Web3

logger = logging.getLogger(__name__)

NodeCallback = Callable[[Any, Any], None]

# JSON-RPC methods behind the named queries
CLIENT_VERSION = "web3_clientVersion"
NET_VERSION = "net_version"
PROTOCOL_VERSION = "eth_protocolVersion"
WHISPER_VERSION = "shh_version"
ACCOUNTS = "eth_accounts"

ETH_METHODS = {
    "get_accounts": ACCOUNTS,
    "estimate_gas": "eth_estimateGas",
    "get_block": "eth_getBlockByNumber",
    "send_transaction": "eth_sendTransaction",
    "get_balance": "eth_getBalance",
}

PERSONAL_METHODS = {
    "lock_account": "personal_lockAccount",
    "new_account": "personal_newAccount",
    "unlock_account": "personal_unlockAccount",
}


@runtime_checkable
class CallbackTransport(Protocol):
    """Queries the session layer issues against a node."""

    api_version: str

    def get_node(self, callback: NodeCallback) -> None: ...
    def get_network(self, callback: NodeCallback) -> None: ...
    def get_ethereum(self, callback: NodeCallback) -> None: ...
    def get_whisper(self, callback: NodeCallback) -> None: ...
    def get_accounts(self, callback: NodeCallback) -> None: ...
    def request(self, method: str, params: List[Any], callback: NodeCallback) -> None: ...
    def close(self) -> None: ...


class Web3CallbackTransport:
    """
    Callback transport over a web3.py client.

    Usage:
        transport = Web3CallbackTransport(Web3(Web3.HTTPProvider(url)))
        transport.get_network(lambda error, result: ...)
    """

    def __init__(self, w3: Web3, max_workers: int = 4):
        self.w3 = w3
        self.api_version = web3.__version__
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="web3-rpc")

    def request(self, method: str, params: List[Any], callback: NodeCallback) -> None:
        """Submit a raw JSON-RPC request; the callback fires from a worker thread."""
        def run():
            try:
                result = self.w3.manager.request_blocking(method, params)
            except Exception as e:
                logger.debug(f"[Transport] {method} failed: {e}")
                callback(e, None)
                return
            callback(None, result)

        self._executor.submit(run)

    def get_node(self, callback: NodeCallback) -> None:
        self.request(CLIENT_VERSION, [], callback)

    def get_network(self, callback: NodeCallback) -> None:
        self.request(NET_VERSION, [], callback)

    def get_ethereum(self, callback: NodeCallback) -> None:
        self.request(PROTOCOL_VERSION, [], callback)

    def get_whisper(self, callback: NodeCallback) -> None:
        self.request(WHISPER_VERSION, [], callback)

    def get_accounts(self, callback: NodeCallback) -> None:
        self.request(ACCOUNTS, [], callback)

    def close(self) -> None:
        self._executor.shutdown(wait=False)


def create_transport(w3: Web3, max_workers: Optional[int] = None) -> Web3CallbackTransport:
    """Default transport factory used by Web3Service."""
    return Web3CallbackTransport(w3, max_workers=max_workers or 4)
