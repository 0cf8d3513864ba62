"""
Session State, Dummy Accounts and Error Tracking Tests

Run: python -m pytest tests/test_session_state.py -v
"""

import pytest

from web3_session.infrastructure.errors import (
    ErrorCode,
    ErrorTracker,
    PreconditionError,
    TransportError,
)
from web3_session.services.accounts import DEFAULT_DEV_ADDRESSES, DummyAccountProvider
from web3_session.services.session_state import (
    Authenticated,
    Connected,
    Disconnected,
    VersionInfo,
    as_text,
)

CONNECTED_VERSION = VersionInfo(api="7.0.0", node="v1", network="42", ethereum="eth1")


class TestSessionState:

    def test_disconnected_has_no_network(self):
        with pytest.raises(ValueError):
            Disconnected(CONNECTED_VERSION)

    def test_connected_requires_network(self):
        with pytest.raises(ValueError):
            Connected(VersionInfo(node="v1"))

    def test_authenticated_requires_account(self):
        with pytest.raises(ValueError):
            Authenticated(CONNECTED_VERSION, "")

    def test_authenticated_is_connected(self):
        state = Authenticated(CONNECTED_VERSION, "0xABC")
        assert isinstance(state, Connected)

    def test_downgrade_keeps_version(self):
        state = Authenticated(CONNECTED_VERSION, "0xABC").downgrade()

        assert type(state) is Connected
        assert state.version == CONNECTED_VERSION

    def test_without_network_keeps_other_fields(self):
        version = CONNECTED_VERSION.without_network()

        assert version.network is None
        assert version.node == "v1"
        assert Disconnected(version).version.api == "7.0.0"

    def test_as_text(self):
        assert as_text(42) == "42"
        assert as_text(None) is None


class TestDummyAccountProvider:

    def test_round_robin(self):
        provider = DummyAccountProvider(["0x1", "0x2"])
        assert [provider.next_address() for _ in range(3)] == ["0x1", "0x2", "0x1"]

    def test_reset(self):
        provider = DummyAccountProvider()
        provider.next_address()
        provider.reset()
        assert provider.next_address() == DEFAULT_DEV_ADDRESSES[0]

    def test_empty_list_falls_back_to_dev_accounts(self):
        assert DummyAccountProvider([]).addresses == DEFAULT_DEV_ADDRESSES


class TestErrorTracker:

    def test_counts_by_type(self):
        tracker = ErrorTracker()
        tracker.track(RuntimeError("boom"), "connect")
        tracker.track(TransportError("Web3 is not authenticated", method="eth_accounts"), "authenticate")
        tracker.track(RuntimeError("again"), "connect")

        stats = tracker.get_stats()

        assert stats["total_errors"] == 3
        assert stats["error_counts"] == {"RuntimeError": 2, "TransportError": 1}
        assert stats["recent_errors"][1]["code"] == ErrorCode.TRANSPORT_ERROR.value
        assert stats["recent_errors"][1]["traceback"] is None
        assert stats["recent_errors"][1]["details"]["method"] == "eth_accounts"

    def test_history_is_capped(self):
        tracker = ErrorTracker(max_errors=2)
        for i in range(5):
            tracker.track(RuntimeError(str(i)), "check_connection")

        assert [e["message"] for e in tracker.errors] == ["3", "4"]
        assert tracker.get_stats()["total_errors"] == 5

    def test_clear(self):
        tracker = ErrorTracker()
        tracker.track(RuntimeError("boom"))
        tracker.clear()
        assert tracker.get_stats()["total_errors"] == 0

    def test_error_payload(self):
        payload = PreconditionError("Default account is unavailable when not authenticated.").to_dict()

        assert payload["success"] is False
        assert payload["error"]["code"] == "PRECONDITION_FAILED"
