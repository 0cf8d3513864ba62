"""
Signing identities for a Web3Service.

``LocalSigner`` signs with a private key held in-process (eth_account).
``NodeSigner`` delegates to an account the node itself manages and unlocks.
"""
from dataclasses import dataclass
from typing import Any, Dict

from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from web3 import Web3


@dataclass
class LocalSigner:
    account: LocalAccount
    w3: Web3

    @property
    def address(self) -> str:
        return self.account.address

    def sign_message(self, text: str):
        return self.account.sign_message(encode_defunct(text=text))

    def sign_transaction(self, tx: Dict[str, Any]):
        return self.account.sign_transaction(tx)

    def send_transaction(self, tx: Dict[str, Any]):
        """Sign locally and submit the raw transaction. Returns the tx hash."""
        signed = self.sign_transaction(tx)
        return self.w3.eth.send_raw_transaction(signed.raw_transaction)


@dataclass
class NodeSigner:
    address: str
    w3: Web3

    def send_transaction(self, tx: Dict[str, Any]):
        """Submit through eth_sendTransaction; the node signs. Returns the tx hash."""
        return self.w3.eth.send_transaction({**tx, "from": self.address})
