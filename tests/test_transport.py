"""
Web3 Callback Transport Tests
Runs the transport against a mocked web3 client

Run: python -m pytest tests/test_transport.py -v
"""

import asyncio
from unittest.mock import MagicMock

import pytest
import web3

from web3_session.infrastructure.callbacks import Fallback, callback_future
from web3_session.infrastructure.transport import (
    CallbackTransport,
    Web3CallbackTransport,
)


@pytest.fixture
def mock_w3():
    w3 = MagicMock()
    w3.manager.request_blocking.side_effect = lambda method, params: {
        "web3_clientVersion": "Geth/v1.13.0",
        "net_version": "1",
        "eth_protocolVersion": "0x41",
        "eth_accounts": ["0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"],
    }[method]
    return w3


@pytest.fixture
def transport(mock_w3):
    transport = Web3CallbackTransport(mock_w3, max_workers=2)
    yield transport
    transport.close()


class TestWeb3CallbackTransport:

    def test_satisfies_protocol(self, transport):
        assert isinstance(transport, CallbackTransport)
        assert transport.api_version == web3.__version__

    @pytest.mark.asyncio
    async def test_named_queries_map_to_rpc_methods(self, transport, mock_w3):
        node = await asyncio.wait_for(callback_future(transport.get_node), timeout=2)
        network = await asyncio.wait_for(callback_future(transport.get_network), timeout=2)
        ethereum = await asyncio.wait_for(callback_future(transport.get_ethereum), timeout=2)
        accounts = await asyncio.wait_for(callback_future(transport.get_accounts), timeout=2)

        assert node == "Geth/v1.13.0"
        assert network == "1"
        assert ethereum == "0x41"
        assert accounts == ["0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"]

        methods = [c.args[0] for c in mock_w3.manager.request_blocking.call_args_list]
        assert methods == ["web3_clientVersion", "net_version", "eth_protocolVersion", "eth_accounts"]

    @pytest.mark.asyncio
    async def test_rpc_failure_is_reported_through_callback(self, transport):
        # shh_version is not in the mocked node's method table
        with pytest.raises(KeyError):
            await asyncio.wait_for(callback_future(transport.get_whisper), timeout=2)

    @pytest.mark.asyncio
    async def test_rpc_failure_with_fallback(self, transport):
        whisper = await asyncio.wait_for(
            callback_future(transport.get_whisper, Fallback(None)), timeout=2
        )
        assert whisper is None

    @pytest.mark.asyncio
    async def test_raw_request_passes_params(self, mock_w3):
        mock_w3.manager.request_blocking.side_effect = None
        mock_w3.manager.request_blocking.return_value = "0x10"
        transport = Web3CallbackTransport(mock_w3)
        try:
            result = await asyncio.wait_for(
                callback_future(lambda cb: transport.request("eth_getBalance", ["0xabc", "latest"], cb)),
                timeout=2,
            )
        finally:
            transport.close()

        assert result == "0x10"
        mock_w3.manager.request_blocking.assert_called_once_with("eth_getBalance", ["0xabc", "latest"])
