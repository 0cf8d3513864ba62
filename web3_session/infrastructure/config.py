"""
Configuration Management for the Web3 session layer
Environment-based configuration with secrets handling

Features:
- Provider descriptors (HTTP, Infura, local test node)
- Settings normalization with field-by-field defaults
- Environment loading (.env supported)
- Secrets management for the signing key
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from enum import Enum

from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_NODE_URL = "https://sai-service.makerdao.com/node"


# ============================================
# PROVIDER DESCRIPTORS
# ============================================

class ProviderType(str, Enum):
    HTTP = "http"
    INFURA = "infura"
    TEST = "test"


@dataclass(frozen=True)
class ProviderConfig:
    """Base class for provider descriptors"""


@dataclass(frozen=True)
class HttpProviderConfig(ProviderConfig):
    """Node reachable at a literal HTTP(S) URL"""
    url: str = DEFAULT_NODE_URL
    type: ProviderType = field(default=ProviderType.HTTP, init=False)


@dataclass(frozen=True)
class InfuraProviderConfig(ProviderConfig):
    """Hosted Infura gateway for a named network"""
    network: str = "mainnet"
    api_key: str = ""
    type: ProviderType = field(default=ProviderType.INFURA, init=False)


@dataclass(frozen=True)
class LocalTestProviderConfig(ProviderConfig):
    """Local test node on the loopback interface"""
    type: ProviderType = field(default=ProviderType.TEST, init=False)


def provider_from_dict(data: Dict[str, Any]) -> ProviderConfig:
    """Build a provider descriptor from a plain dict ({"type": "http", "url": ...})"""
    raw_type = data.get("type", ProviderType.HTTP)
    try:
        provider_type = ProviderType(raw_type)
    except ValueError:
        raise ConfigurationError(
            f"Illegal web3 provider type: {raw_type}",
            {"provider": dict(data)}
        )

    if provider_type == ProviderType.HTTP:
        return HttpProviderConfig(url=data.get("url", DEFAULT_NODE_URL))
    if provider_type == ProviderType.INFURA:
        return InfuraProviderConfig(
            network=data.get("network", "mainnet"),
            api_key=data.get("api_key") or data.get("infura_api_key", ""),
        )
    return LocalTestProviderConfig()


# ============================================
# SETTINGS
# ============================================

@dataclass
class Web3Settings:
    """Settings passed to Web3Service.initialize()"""
    use_preset_provider: bool = True
    provider: ProviderConfig = field(default_factory=HttpProviderConfig)
    private_key: Optional[str] = None

    def __repr__(self) -> str:
        # Never leak the key through logs
        key = "***" if self.private_key else None
        return (
            f"Web3Settings(use_preset_provider={self.use_preset_provider}, "
            f"provider={self.provider!r}, private_key={key})"
        )


def normalize_settings(settings: Union[Web3Settings, Dict[str, Any], None]) -> Web3Settings:
    """
    Apply defaults to settings, one field at a time.

    Accepts None, a Web3Settings or a plain dict. Fields the caller set are
    kept as given; only missing fields get their default.
    """
    if settings is None:
        return Web3Settings()

    if isinstance(settings, Web3Settings):
        return Web3Settings(
            use_preset_provider=(
                True if settings.use_preset_provider is None else settings.use_preset_provider
            ),
            provider=settings.provider or HttpProviderConfig(),
            private_key=settings.private_key,
        )

    if not isinstance(settings, dict):
        raise ConfigurationError(f"Unsupported settings object: {type(settings).__name__}")

    provider = settings.get("provider")
    if provider is None:
        provider = HttpProviderConfig()
    elif isinstance(provider, dict):
        provider = provider_from_dict(provider)

    use_preset = settings.get("use_preset_provider")
    return Web3Settings(
        use_preset_provider=True if use_preset is None else bool(use_preset),
        provider=provider,
        private_key=settings.get("private_key"),
    )


# ============================================
# SERVICE CONFIGURATION
# ============================================

@dataclass
class TimerConfig:
    """Health-check intervals in milliseconds"""
    connection_check_ms: int = 500
    authentication_check_ms: int = 300


@dataclass
class TransportConfig:
    """RPC transport configuration"""
    request_timeout: int = 10
    max_workers: int = 4


@dataclass
class MonitoringConfig:
    """Monitoring configuration"""
    log_level: str = "INFO"


@dataclass
class Web3SessionConfig:
    """Main configuration"""
    settings: Web3Settings = field(default_factory=Web3Settings)
    timers: TimerConfig = field(default_factory=TimerConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @classmethod
    def from_env(cls) -> "Web3SessionConfig":
        """Create configuration from environment variables (and .env)"""
        load_dotenv()

        provider = provider_from_dict({
            "type": os.environ.get("WEB3_PROVIDER_TYPE", ProviderType.HTTP.value).lower(),
            "url": os.environ.get("WEB3_PROVIDER_URL", DEFAULT_NODE_URL),
            "network": os.environ.get("INFURA_NETWORK", "mainnet"),
            "api_key": os.environ.get("INFURA_API_KEY", ""),
        })

        config = cls(
            settings=Web3Settings(
                use_preset_provider=os.environ.get("WEB3_USE_PRESET_PROVIDER", "true").lower() == "true",
                provider=provider,
                private_key=SecretsManager().get("WEB3_PRIVATE_KEY"),
            ),
        )

        try:
            config.timers = TimerConfig(
                connection_check_ms=int(os.environ.get("WEB3_CONNECTION_CHECK_MS", "500")),
                authentication_check_ms=int(os.environ.get("WEB3_AUTH_CHECK_MS", "300")),
            )
            config.transport = TransportConfig(
                request_timeout=int(os.environ.get("WEB3_REQUEST_TIMEOUT", "10")),
                max_workers=int(os.environ.get("WEB3_MAX_WORKERS", "4")),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}")

        config.monitoring = MonitoringConfig(
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )

        return config

    def to_dict(self) -> Dict:
        """Convert to dictionary (hiding secrets)"""
        def sanitize(obj):
            if isinstance(obj, dict):
                return {
                    k: sanitize(v) for k, v in obj.items()
                    if "key" not in k.lower() and "secret" not in k.lower()
                }
            elif hasattr(obj, '__dataclass_fields__'):
                return sanitize({k: getattr(obj, k) for k in obj.__dataclass_fields__})
            elif isinstance(obj, Enum):
                return obj.value
            else:
                return obj

        return sanitize(self)


# ============================================
# SECRETS MANAGEMENT
# ============================================

class SecretsManager:
    """
    Holds secrets read from the environment.
    Values are never logged.
    """

    SECRET_KEYS = [
        "WEB3_PRIVATE_KEY",
        "INFURA_API_KEY",
    ]

    def __init__(self):
        self._secrets: Dict[str, str] = {}
        self._load_from_env()

    def _load_from_env(self):
        for key in self.SECRET_KEYS:
            value = os.environ.get(key)
            if value:
                self._secrets[key] = value

    def get(self, key: str, default: str = None) -> Optional[str]:
        return self._secrets.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._secrets


# ============================================
# GLOBAL INSTANCE
# ============================================

_config: Optional[Web3SessionConfig] = None


def get_config() -> Web3SessionConfig:
    """Get the global configuration (loaded on first use)"""
    global _config
    if _config is None:
        _config = Web3SessionConfig.from_env()
        logger.info(f"Configuration loaded, provider: {_config.settings.provider.type.value}")
    return _config


def reload_config() -> Web3SessionConfig:
    """Reload configuration from environment"""
    global _config
    _config = Web3SessionConfig.from_env()
    logger.info("Configuration reloaded")
    return _config


def configure_logging(config: Optional[Web3SessionConfig] = None):
    """Apply the configured log level to the root logger"""
    config = config or get_config()
    logging.basicConfig(level=getattr(logging, config.monitoring.log_level, logging.INFO))
