"""
Pytest Configuration for web3-session Tests

Run all tests: python -m pytest tests/ -v
Run without timer tests: python -m pytest tests/ -v -m "not slow"
"""

import logging

import pytest

from web3_session.services.web3_service import Web3Service


# =============================================================================
# TEST DOUBLES
# =============================================================================

class FakeTransport:
    """
    Scriptable callback transport.

    Answers each query through ``callback(error, result)`` from ``responses``.
    Names listed in ``failures`` report that error instead; names listed in
    ``raises`` raise synchronously before any callback. ``hold_next(name)`` keeps
    the next reply for that query in flight until ``release(name, result)``.
    """

    api_version = "7.0.0-test"

    def __init__(self, node="v1", network="42", ethereum="eth1", whisper="shh-2", accounts=None):
        self.responses = {
            "node": node,
            "network": network,
            "ethereum": ethereum,
            "whisper": whisper,
            "accounts": list(accounts or []),
        }
        self.failures = {}
        self.raises = {}
        self.rpc_results = {}
        self.held = set()
        self.pending = {}
        self.calls = []
        self.requests = []
        self.closed = False

    def _answer(self, name, callback):
        self.calls.append(name)
        if name in self.raises:
            raise self.raises[name]
        if name in self.held:
            self.held.discard(name)
            self.pending.setdefault(name, []).append(callback)
            return
        if name in self.failures:
            callback(self.failures[name], None)
            return
        callback(None, self.responses[name])

    def hold_next(self, name):
        self.held.add(name)

    def release(self, name, result):
        for callback in self.pending.pop(name, []):
            callback(None, result)

    def get_node(self, callback):
        self._answer("node", callback)

    def get_network(self, callback):
        self._answer("network", callback)

    def get_ethereum(self, callback):
        self._answer("ethereum", callback)

    def get_whisper(self, callback):
        self._answer("whisper", callback)

    def get_accounts(self, callback):
        self._answer("accounts", callback)

    def request(self, method, params, callback):
        self.requests.append((method, params))
        callback(None, self.rpc_results.get(method))

    def close(self):
        self.closed = True


class RecordingTimer:
    """Timer collaborator that records timers instead of scheduling them"""

    def __init__(self):
        self.active = {}
        self.created = []
        self.cancelled = []
        self.stopped = False

    def create_timer(self, name, interval_ms, recurring, on_tick):
        self.created.append(name)
        self.active[name] = {"interval_ms": interval_ms, "recurring": recurring, "on_tick": on_tick}

    def cancel_timer(self, name):
        if name in self.active:
            del self.active[name]
            self.cancelled.append(name)
            return True
        return False

    def is_active(self, name):
        return name in self.active

    def shutdown(self):
        self.stopped = True
        self.active.clear()


# =============================================================================
# FIXTURES - Shared across all test files
# =============================================================================

@pytest.fixture
def fake_transport():
    """Transport for a node on network 42 with no accounts"""
    return FakeTransport()


@pytest.fixture
def recording_timer():
    return RecordingTimer()


@pytest.fixture
def test_logger():
    return logging.getLogger("Web3ServiceTest")


@pytest.fixture
def make_service(fake_transport, recording_timer, test_logger):
    """Factory for initialized services wired to the fake transport"""
    def make(settings=None, **kwargs):
        kwargs.setdefault("timer", recording_timer)
        kwargs.setdefault("logger", test_logger)
        kwargs.setdefault("transport_factory", lambda w3, max_workers: fake_transport)
        service = Web3Service(**kwargs)
        service.initialize(settings or {"provider": {"type": "test"}})
        return service
    return make


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture
def test_addresses():
    return {
        "primary": "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
        "secondary": "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
    }


# =============================================================================
# MARKERS
# =============================================================================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "slow: marks tests that wait on real timers"
    )
