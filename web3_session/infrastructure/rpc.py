# infrastructure/rpc.py
"""
Provider resolution for the Web3 session layer.
Maps a provider descriptor to a concrete endpoint and web3 provider.
"""
from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from .config import (
    ProviderConfig,
    HttpProviderConfig,
    InfuraProviderConfig,
    LocalTestProviderConfig,
)
from .errors import ConfigurationError


INFURA_URL_TEMPLATE = "https://{network}.infura.io/{api_key}"

# Reserved for test transports (ganache / hardhat style nodes)
TEST_NODE_URL = "http://127.0.0.1:2000"


@dataclass(frozen=True)
class EndpointRef:
    """Concrete transport address derived from a provider descriptor"""
    url: str


def resolve_endpoint(descriptor: ProviderConfig) -> EndpointRef:
    """Resolve a provider descriptor to an endpoint. Pure, no I/O."""
    if isinstance(descriptor, HttpProviderConfig):
        return EndpointRef(descriptor.url)
    if isinstance(descriptor, InfuraProviderConfig):
        return EndpointRef(INFURA_URL_TEMPLATE.format(
            network=descriptor.network,
            api_key=descriptor.api_key,
        ))
    if isinstance(descriptor, LocalTestProviderConfig):
        return EndpointRef(TEST_NODE_URL)

    provider_type = getattr(descriptor, "type", descriptor)
    raise ConfigurationError(
        f"Illegal web3 provider type: {getattr(provider_type, 'value', provider_type)}"
    )


def build_http_provider(endpoint: EndpointRef, timeout: Optional[int] = 10) -> Web3.HTTPProvider:
    """Create the web3 HTTP provider for an endpoint."""
    request_kwargs = {"timeout": timeout} if timeout else {}
    return Web3.HTTPProvider(endpoint.url, request_kwargs=request_kwargs)
