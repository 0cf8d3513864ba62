"""
Web3 Session Services
"""

from .session_state import VersionInfo, Disconnected, Connected, Authenticated, SessionState
from .web3_service import Web3Service, CONNECTION_TIMER, AUTHENTICATION_TIMER
from .signers import LocalSigner, NodeSigner
from .accounts import DummyAccountProvider

__all__ = [
    "VersionInfo",
    "Disconnected",
    "Connected",
    "Authenticated",
    "SessionState",
    "Web3Service",
    "CONNECTION_TIMER",
    "AUTHENTICATION_TIMER",
    "LocalSigner",
    "NodeSigner",
    "DummyAccountProvider",
]
