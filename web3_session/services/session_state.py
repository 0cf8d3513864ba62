"""
Session state: what is currently known about the node connection.

The state is one of three variants. ``Authenticated`` always carries the version
record of the connection it was established on, so an account can only be held
while connected.
"""
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class VersionInfo:
    """Version facts reported by the node. None means unknown."""
    api: Optional[str] = None
    node: Optional[str] = None
    network: Optional[str] = None
    ethereum: Optional[str] = None
    whisper: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)

    def without_network(self) -> "VersionInfo":
        return replace(self, network=None)


@dataclass(frozen=True)
class Disconnected:
    version: VersionInfo = field(default_factory=VersionInfo)

    def __post_init__(self):
        if self.version.network is not None:
            raise ValueError("Disconnected state cannot carry a network id")


@dataclass(frozen=True)
class Connected:
    version: VersionInfo

    def __post_init__(self):
        if self.version.network is None:
            raise ValueError("Connected state requires a network id")


@dataclass(frozen=True)
class Authenticated(Connected):
    account: str = ""

    def __post_init__(self):
        super().__post_init__()
        if not self.account:
            raise ValueError("Authenticated state requires an account")

    def downgrade(self) -> Connected:
        return Connected(self.version)


SessionState = Union[Disconnected, Connected, Authenticated]


def as_text(value: Any) -> Optional[str]:
    """Normalize a reported version value to str, keeping None."""
    return None if value is None else str(value)
