"""
Configuration management for NFT Deck
"""

import os
from typing import List, Optional
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv

from .exceptions import ConfigurationError

# Load environment variables
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)

DEFAULT_IPFS_GATEWAYS = [
    "https://nftstorage.link/ipfs/",
    "https://w3s.link/ipfs/",
    "https://ipfs.io/ipfs/",
]


@dataclass
class Config:
    """Main configuration class"""

    alchemy_api_key: Optional[str] = None
    alchemy_base_url: str = "https://{chain}.g.alchemy.com"
    rpc_url: Optional[str] = None

    # Indexing API
    cache_ttl: float = 30.0
    page_size: int = 100
    max_pages: int = 25
    timeout: int = 30
    max_retries: int = 3

    # Media relay
    media_timeout: float = 15.0
    media_max_bytes: int = 20 * 1024 * 1024  # 20MB safety cap
    media_max_redirects: int = 3

    ipfs_gateways: List[str] = field(default_factory=lambda: list(DEFAULT_IPFS_GATEWAYS))

    # Server
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    port: int = 8080

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables"""

        def get_list(key_name: str) -> List[str]:
            """Comma-separated values"""
            value = os.getenv(key_name, "")
            return [v.strip() for v in value.split(",") if v.strip()]

        gateways = [g if g.endswith("/") else g + "/" for g in get_list("IPFS_GATEWAYS")]

        return cls(
            alchemy_api_key=(os.getenv("ALCHEMY_KEY") or os.getenv("ALCHEMY_API_KEY") or "").strip() or None,
            alchemy_base_url=os.getenv("ALCHEMY_BASE_URL", "https://{chain}.g.alchemy.com"),
            rpc_url=(os.getenv("RPC_URL") or "").strip() or None,
            cache_ttl=float(os.getenv("CACHE_TTL", "30")),
            page_size=int(os.getenv("PAGE_SIZE", "100")),
            max_pages=int(os.getenv("MAX_PAGES", "25")),
            timeout=int(os.getenv("TIMEOUT", "30")),
            max_retries=int(os.getenv("MAX_RETRIES", "3")),
            media_timeout=float(os.getenv("MEDIA_TIMEOUT", "15")),
            media_max_bytes=int(os.getenv("MEDIA_MAX_BYTES", str(20 * 1024 * 1024))),
            media_max_redirects=int(os.getenv("MEDIA_MAX_REDIRECTS", "3")),
            ipfs_gateways=gateways or list(DEFAULT_IPFS_GATEWAYS),
            cors_origins=get_list("CORS_ORIGINS") or ["*"],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=int(os.getenv("PORT", "8080")),
        )

    def get_rpc_url(self) -> str:
        """JSON-RPC endpoint used for ENS resolution on Ethereum mainnet"""
        if self.rpc_url:
            return self.rpc_url
        if self.alchemy_api_key:
            return f"https://eth-mainnet.g.alchemy.com/v2/{self.alchemy_api_key}"
        raise ConfigurationError(
            "RPC_URL is not set. It is required for ENS resolution on Ethereum mainnet.",
            hint="Server is missing RPC_URL for ENS resolution. Add it to .env, or use a 0x… address.",
        )


# Global config instance
config = Config.from_env()
