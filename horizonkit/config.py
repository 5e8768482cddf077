"""
Client configuration for Horizonkit.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_HORIZON_URL = "https://horizon.stellar.org"
DEFAULT_CONFIG_DOCUMENT = "stellar.toml"


@dataclass
class ClientConfig:
    """Configuration shared by the Horizon client and the federation resolver."""

    horizon_url: str = DEFAULT_HORIZON_URL

    # Seconds; None disables the transport timeout.
    timeout: Optional[float] = 30.0

    client_name: str = "horizonkit"
    client_version: str = "0.3.0"

    config_document: str = DEFAULT_CONFIG_DOCUMENT

    extra_headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.horizon_url = self.horizon_url.rstrip("/")

    @property
    def headers(self) -> dict[str, str]:
        headers = {
            "X-Client-Name": self.client_name,
            "X-Client-Version": self.client_version,
        }
        headers.update(self.extra_headers)
        return headers

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create configuration from environment variables."""
        timeout = os.environ.get("HORIZON_TIMEOUT")
        return cls(
            horizon_url=os.environ.get("HORIZON_URL", DEFAULT_HORIZON_URL),
            timeout=float(timeout) if timeout else 30.0,
        )
