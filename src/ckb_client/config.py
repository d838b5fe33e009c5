"""
Client configuration.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Mapping, Optional

MAINNET_PUBLIC_URL = "https://mainnet.ckb.dev/"
TESTNET_PUBLIC_URL = "https://testnet.ckb.dev/"


@dataclass
class ClientConfig:
    """Configuration for a CKB node client."""

    url: str
    network: str = "testnet"
    timeout: float = 30.0
    cache_ttl: float = 30.0
    cache_max_entries: int = 1024
    debug: bool = False
    user_agent: str = "ckb-client-python/0.1.0"

    def __post_init__(self):
        if self.network not in ("mainnet", "testnet"):
            raise ValueError(f"Unsupported network: {self.network}")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @classmethod
    def for_network(cls, network: str, **kwargs) -> ClientConfig:
        """Configuration pointing at the public node of ``network``."""
        url = MAINNET_PUBLIC_URL if network == "mainnet" else TESTNET_PUBLIC_URL
        return cls(url=url, network=network, **kwargs)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> ClientConfig:
        """
        Build a configuration from environment variables.

        Reads CKB_NETWORK (default "testnet"), CKB_RPC_URL (default: the
        network's public node), CKB_RPC_TIMEOUT and CKB_CACHE_TTL (seconds).
        """
        env = os.environ if environ is None else environ
        network = env.get("CKB_NETWORK", "testnet")
        url = env.get("CKB_RPC_URL") or (
            MAINNET_PUBLIC_URL if network == "mainnet" else TESTNET_PUBLIC_URL
        )
        return cls(
            url=url,
            network=network,
            timeout=float(env.get("CKB_RPC_TIMEOUT", 30.0)),
            cache_ttl=float(env.get("CKB_CACHE_TTL", 30.0)),
            debug=env.get("CKB_DEBUG", "").lower() in ("1", "true", "yes"),
        )
