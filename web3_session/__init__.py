"""
web3-session
Connection and authentication lifecycle for a remote Ethereum node.
"""

from .infrastructure import (
    ConfigurationError,
    PreconditionError,
    TransportError,
    Web3Settings,
    Web3SessionConfig,
    HttpProviderConfig,
    InfuraProviderConfig,
    LocalTestProviderConfig,
    TimerService,
)
from .services import Web3Service, VersionInfo

__all__ = [
    "Web3Service",
    "VersionInfo",
    "Web3Settings",
    "Web3SessionConfig",
    "HttpProviderConfig",
    "InfuraProviderConfig",
    "LocalTestProviderConfig",
    "TimerService",
    "ConfigurationError",
    "PreconditionError",
    "TransportError",
]

__version__ = "0.1.0"
