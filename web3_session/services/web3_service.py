"""
Web3 Service
Connection and authentication lifecycle for a remote Ethereum node.

Features:
- Connect: concurrent version queries, connection health check
- Authenticate: first node account, authentication health check
- Health checks only ever downgrade state (disconnect / deauthenticate)
- Query failures during connect/authenticate are logged, never raised
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from eth_account import Account
from web3 import Web3

from web3_session.infrastructure.callbacks import Fallback, callback_future, promisify_methods
from web3_session.infrastructure.config import (
    LocalTestProviderConfig,
    Web3SessionConfig,
    Web3Settings,
    get_config,
    normalize_settings,
)
from web3_session.infrastructure.errors import (
    ConfigurationError,
    ErrorTracker,
    PreconditionError,
    TransportError,
)
from web3_session.infrastructure.rpc import build_http_provider, resolve_endpoint
from web3_session.infrastructure.timer import TimerService
from web3_session.infrastructure.transport import (
    ACCOUNTS,
    ETH_METHODS,
    NET_VERSION,
    PERSONAL_METHODS,
    CallbackTransport,
    create_transport,
)
from web3_session.services.accounts import DummyAccountProvider
from web3_session.services.session_state import (
    Authenticated,
    Connected,
    Disconnected,
    SessionState,
    VersionInfo,
    as_text,
)
from web3_session.services.signers import LocalSigner, NodeSigner

CONNECTION_TIMER = "web3CheckConnectionStatus"
AUTHENTICATION_TIMER = "web3CheckAuthenticationStatus"

TransportFactory = Callable[[Web3, int], CallbackTransport]


class Web3Service:
    """
    Tracks whether a node is reachable (connected) and exposes a usable
    account (authenticated).

    Usage:
        service = Web3Service()
        service.initialize({"provider": {"type": "http", "url": "http://localhost:8545"}})

        await service.connect()
        await service.authenticate()

        service.network_id()       # 1
        service.default_account()  # "0x..."
    """

    def __init__(
        self,
        name: str = "web3",
        logger: Optional[logging.Logger] = None,
        timer: Optional[TimerService] = None,
        transport_factory: Optional[TransportFactory] = None,
        config: Optional[Web3SessionConfig] = None,
    ):
        self.name = name
        self.log = logger or logging.getLogger("Web3Service")
        self._owns_timer = timer is None
        self.timer = timer or TimerService()
        self.config = config or Web3SessionConfig()
        self.errors = ErrorTracker()

        self._transport_factory = transport_factory or create_transport
        self._transport: Optional[CallbackTransport] = None
        self._web3: Optional[Web3] = None
        self._local_signer: Optional[LocalSigner] = None
        self._dummy_accounts = DummyAccountProvider()
        self._state: SessionState = Disconnected()
        self._listeners: Dict[str, List[Callable[["Web3Service"], Any]]] = {
            "connected": [],
            "disconnected": [],
            "authenticated": [],
            "deauthenticated": [],
        }

        self.eth = None
        self.personal = None

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    @classmethod
    def build_test_service(cls, **kwargs) -> "Web3Service":
        """Service bound to the local test node."""
        service = cls(**kwargs)
        service.initialize(Web3Settings(use_preset_provider=True, provider=LocalTestProviderConfig()))
        return service

    @classmethod
    def build_remote_service(cls, **kwargs) -> "Web3Service":
        """Service configured from the environment (see Web3SessionConfig.from_env)."""
        config = kwargs.pop("config", None) or get_config()
        service = cls(config=config, **kwargs)
        service.initialize(config.settings)
        return service

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize(self, settings=None, preset_provider=None):
        """
        Build the web3 client and callback transport for the configured provider.

        Args:
            settings: Web3Settings, a plain dict, or None for defaults
            preset_provider: web3 provider supplied by the host environment, used
                instead of ``settings.provider`` when ``use_preset_provider`` is set
        """
        if self._web3 is not None:
            raise PreconditionError(f"Service '{self.name}' is already initialized")

        settings = normalize_settings(settings)
        endpoint = resolve_endpoint(settings.provider)

        if settings.use_preset_provider and preset_provider is not None:
            provider = preset_provider
            self.log.info("[Web3] Using preset provider supplied by the host")
        else:
            provider = build_http_provider(endpoint, self.config.transport.request_timeout)
            self.log.info(f"[Web3] Provider endpoint: {settings.provider.type.value}")

        account = None
        if settings.private_key:
            try:
                account = Account.from_key(settings.private_key)
            except Exception as e:
                raise ConfigurationError(f"Invalid private key: {type(e).__name__}")

        w3 = Web3(provider)
        transport = self._transport_factory(w3, self.config.transport.max_workers)

        self._web3 = w3
        self._transport = transport
        self.eth = promisify_methods(transport, ETH_METHODS)
        self.personal = promisify_methods(transport, PERSONAL_METHODS)

        if account is not None:
            self._local_signer = LocalSigner(account, w3)
            self.log.info(f"[Web3] Local signer: {account.address}")

    def _require_transport(self) -> CallbackTransport:
        if self._transport is None:
            raise PreconditionError(f"Service '{self.name}' is not initialized")
        return self._transport

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """
        Query node, network, protocol and whisper versions concurrently.

        Returns True once connected. Any failure of the first three queries is
        logged and leaves the state unchanged; whisper is optional.
        """
        transport = self._require_transport()

        try:
            node, network, ethereum, whisper = await asyncio.gather(
                callback_future(transport.get_node),
                callback_future(transport.get_network),
                callback_future(transport.get_ethereum),
                callback_future(transport.get_whisper, Fallback(None)),
            )
            if not as_text(network):
                raise TransportError("Node did not report a network ID", method=NET_VERSION)
        except Exception as e:
            self._report(e, "connect")
            return False

        version = VersionInfo(
            api=as_text(transport.api_version),
            node=as_text(node),
            network=as_text(network),
            ethereum=as_text(ethereum),
            whisper=as_text(whisper),
        )

        state = self._state
        if isinstance(state, Authenticated) and state.version.network == version.network:
            self._transition(Authenticated(version, state.account))
        else:
            if isinstance(state, Authenticated):
                self.timer.cancel_timer(AUTHENTICATION_TIMER)
            self._transition(Connected(version))

        self.timer.create_timer(
            CONNECTION_TIMER,
            self.config.timers.connection_check_ms,
            True,
            self.check_connection,
        )

        self.log.info(f"Web3 version: {version.to_dict()}")
        return True

    async def check_connection(self) -> bool:
        """
        One connection health-check tick. Disconnects if the node is gone or switched networks.

        The verdict is about the state seen when the tick started; a session
        re-established while the tick was in flight is left alone.
        """
        observed = self._state
        if not isinstance(observed, Connected):
            return False

        connected = await self._is_still_connected(observed)
        if not connected and self._state is observed:
            self.log.warning("[Web3] Connection lost, disconnecting")
            self.disconnect()
        return connected

    async def _is_still_connected(self, observed: Connected) -> bool:
        transport = self._require_transport()
        try:
            # node version is queried for parity only
            _, network = await asyncio.gather(
                callback_future(transport.get_node),
                callback_future(transport.get_network),
            )
        except Exception as e:
            self.errors.track(e, "check_connection")
            return False

        return bool(as_text(network)) and as_text(network) == observed.version.network

    def disconnect(self):
        """Drop to Disconnected: clears the network id and any account, stops both health checks."""
        self.timer.cancel_timer(AUTHENTICATION_TIMER)
        self.timer.cancel_timer(CONNECTION_TIMER)

        if not self.is_connected():
            return

        self._transition(Disconnected(self._state.version.without_network()))
        self.log.info("[Web3] Disconnected")

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def authenticate(self) -> bool:
        """
        Use the node's first account.

        Raises PreconditionError when not connected. Query failures and empty
        account lists are logged and leave the state unchanged.
        """
        transport = self._require_transport()
        if not self.is_connected():
            raise PreconditionError("Cannot authenticate while disconnected. Call connect() first.")

        observed = self._state
        self.log.info("Web3 is authenticating...")

        try:
            accounts = await callback_future(transport.get_accounts)
            if not isinstance(accounts, (list, tuple)) or len(accounts) < 1 or not accounts[0]:
                raise TransportError("Web3 is not authenticated", method=ACCOUNTS)
        except Exception as e:
            self._report(e, "authenticate")
            return False

        if self._state is not observed:
            self.log.warning("[Web3] Session changed while authenticating, discarding accounts")
            return False

        account = accounts[0]
        self._transition(Authenticated(self._state.version, account))

        self.timer.create_timer(
            AUTHENTICATION_TIMER,
            self.config.timers.authentication_check_ms,
            True,
            self.check_authentication,
        )

        self.log.info(f"[Web3] Authenticated as {account}")
        return True

    async def check_authentication(self) -> bool:
        """One authentication health-check tick. Deauthenticates if the account is gone or changed."""
        observed = self._state
        if not isinstance(observed, Authenticated):
            return False

        authenticated = await self._is_still_authenticated(observed)
        if not authenticated and self._state is observed:
            self.log.warning("[Web3] Account no longer available, deauthenticating")
            self.deauthenticate()
        return authenticated

    async def _is_still_authenticated(self, observed: Authenticated) -> bool:
        transport = self._require_transport()
        try:
            accounts = await callback_future(transport.get_accounts)
        except Exception as e:
            self.errors.track(e, "check_authentication")
            return False

        return (
            isinstance(accounts, (list, tuple))
            and len(accounts) > 0
            and accounts[0] == observed.account
        )

    def deauthenticate(self):
        """Drop back to Connected and stop the authentication health check."""
        self.timer.cancel_timer(AUTHENTICATION_TIMER)

        if isinstance(self._state, Authenticated):
            self._transition(self._state.downgrade())
            self.log.info("[Web3] Deauthenticated")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    def is_initialized(self) -> bool:
        return self._transport is not None

    def is_connected(self) -> bool:
        return isinstance(self._state, Connected)

    def is_authenticated(self) -> bool:
        return isinstance(self._state, Authenticated)

    def version(self) -> VersionInfo:
        return self._state.version

    def get_network(self) -> Optional[str]:
        return self._state.version.network

    def network_id(self) -> int:
        network = self.get_network()
        if network is None:
            raise PreconditionError("Cannot resolve network ID. Are you connected?")
        try:
            return int(network)
        except ValueError:
            raise PreconditionError(f"Cannot resolve network ID from '{network}'")

    def default_account(self) -> str:
        if not isinstance(self._state, Authenticated):
            raise PreconditionError("Default account is unavailable when not authenticated.")
        return self._state.account

    def web3(self) -> Web3:
        """The web3 client the transport runs on."""
        if self._web3 is None:
            raise PreconditionError(f"Service '{self.name}' is not initialized")
        return self._web3

    def signer(self):
        """Local signer when a private key was configured, otherwise the node's default account."""
        if self._local_signer is not None:
            return self._local_signer
        return NodeSigner(self.default_account(), self.web3())

    def dummy_transaction(self) -> Dict[str, Any]:
        return {
            "from": self._dummy_accounts.next_address(),
            "to": self._dummy_accounts.next_address(),
            "value": Web3.to_wei(Decimal("0.01"), "ether"),
        }

    def error_stats(self) -> Dict:
        return self.errors.get_stats()

    # ------------------------------------------------------------------
    # State listeners
    # ------------------------------------------------------------------

    def on_connected(self, callback: Callable[["Web3Service"], Any]):
        self._listeners["connected"].append(callback)
        return self

    def on_disconnected(self, callback: Callable[["Web3Service"], Any]):
        self._listeners["disconnected"].append(callback)
        return self

    def on_authenticated(self, callback: Callable[["Web3Service"], Any]):
        self._listeners["authenticated"].append(callback)
        return self

    def on_deauthenticated(self, callback: Callable[["Web3Service"], Any]):
        self._listeners["deauthenticated"].append(callback)
        return self

    def _transition(self, new_state: SessionState):
        old_state = self._state
        self._state = new_state

        was_connected = isinstance(old_state, Connected)
        was_authenticated = isinstance(old_state, Authenticated)
        now_connected = isinstance(new_state, Connected)
        now_authenticated = isinstance(new_state, Authenticated)

        events = []
        if was_authenticated and not now_authenticated:
            events.append("deauthenticated")
        if was_connected and not now_connected:
            events.append("disconnected")
        if now_connected and not was_connected:
            events.append("connected")
        if now_authenticated and not was_authenticated:
            events.append("authenticated")

        for event in events:
            for listener in self._listeners[event]:
                try:
                    listener(self)
                except Exception as e:
                    self.log.error(f"[Web3] {event} listener failed: {e}")

    def _report(self, error: Exception, operation: str):
        self.errors.track(error, operation)
        self.log.error(f"[Web3] {operation} failed: {error}")

    def shutdown(self):
        """Stop health checks, release the transport's workers and stop a scheduler this service created."""
        self.timer.cancel_timer(AUTHENTICATION_TIMER)
        self.timer.cancel_timer(CONNECTION_TIMER)
        if self._transport is not None:
            self._transport.close()
        if self._owns_timer:
            self.timer.shutdown()


# ============================================
# CLI TEST
# ============================================

if __name__ == "__main__":
    from web3_session.infrastructure.config import configure_logging

    async def test():
        print("=== Web3Service Test ===\n")
        configure_logging()

        service = Web3Service.build_remote_service()

        if not await service.connect():
            print("Could not connect, see log")
            return

        print(f"Version: {service.version().to_dict()}")
        print(f"Network ID: {service.network_id()}")

        if await service.authenticate():
            print(f"Default account: {service.default_account()}")
        else:
            print("Node exposes no accounts")

        service.shutdown()

    asyncio.run(test())
