"""
Dummy account addresses for building throwaway transactions against dev chains.
"""
from itertools import cycle
from typing import Iterable, Optional

# Default accounts of the Hardhat / Anvil dev mnemonic
DEFAULT_DEV_ADDRESSES = [
    "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
    "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
    "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC",
    "0x90F79bf6EB2c4f870365E785982E1f101E93b906",
    "0x15d34AAf54267DB7D7c367839AAf71A00a2C6A65",
]


class DummyAccountProvider:
    """Hands out addresses round-robin."""

    def __init__(self, addresses: Optional[Iterable[str]] = None):
        self.addresses = list(addresses or DEFAULT_DEV_ADDRESSES)
        if not self.addresses:
            raise ValueError("DummyAccountProvider needs at least one address")
        self._next = cycle(self.addresses)

    def next_address(self) -> str:
        return next(self._next)

    def reset(self):
        self._next = cycle(self.addresses)
