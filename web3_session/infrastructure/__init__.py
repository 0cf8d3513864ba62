"""
Web3 Session Infrastructure Module
Configuration, errors, provider resolution, transport and timers
"""

from .errors import (
    Web3SessionError,
    ConfigurationError,
    TransportError,
    PreconditionError,
    ErrorCode,
    ErrorTracker,
)

from .config import (
    Web3SessionConfig,
    Web3Settings,
    TimerConfig,
    TransportConfig,
    MonitoringConfig,
    ProviderType,
    ProviderConfig,
    HttpProviderConfig,
    InfuraProviderConfig,
    LocalTestProviderConfig,
    SecretsManager,
    normalize_settings,
    get_config,
    reload_config,
    configure_logging,
)

from .rpc import (
    EndpointRef,
    resolve_endpoint,
    build_http_provider,
)

from .callbacks import (
    Fallback,
    CallOutcome,
    callback_outcome,
    callback_future,
    promisify_methods,
)

from .transport import (
    CallbackTransport,
    Web3CallbackTransport,
)

from .timer import (
    TimerService,
    TimerHandle,
)

__all__ = [
    # Errors
    "Web3SessionError",
    "ConfigurationError",
    "TransportError",
    "PreconditionError",
    "ErrorCode",
    "ErrorTracker",

    # Config
    "Web3SessionConfig",
    "Web3Settings",
    "TimerConfig",
    "TransportConfig",
    "MonitoringConfig",
    "ProviderType",
    "ProviderConfig",
    "HttpProviderConfig",
    "InfuraProviderConfig",
    "LocalTestProviderConfig",
    "SecretsManager",
    "normalize_settings",
    "get_config",
    "reload_config",
    "configure_logging",

    # Provider resolution
    "EndpointRef",
    "resolve_endpoint",
    "build_http_provider",

    # Callbacks
    "Fallback",
    "CallOutcome",
    "callback_outcome",
    "callback_future",
    "promisify_methods",

    # Transport
    "CallbackTransport",
    "Web3CallbackTransport",

    # Timers
    "TimerService",
    "TimerHandle",
]
