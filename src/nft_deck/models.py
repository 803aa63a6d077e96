"""
Normalized Pydantic models for NFT cards
"""

from typing import Optional, List, Dict, Any
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Chain(str, Enum):
    """Supported blockchain networks"""
    ETHEREUM = "eth-mainnet"
    BASE = "base-mainnet"
    CELO = "celo-mainnet"
    POLYGON = "polygon-mainnet"
    ARBITRUM = "arb-mainnet"
    OPTIMISM = "opt-mainnet"

    @classmethod
    def from_string(cls, chain_str: str) -> "Chain":
        """Convert string to Chain enum, raising ValueError for unknown networks"""
        chain_str = (chain_str or "").lower().strip()
        for member in cls:
            if member.value == chain_str:
                return member
        mapping = {
            "eth": cls.ETHEREUM,
            "ethereum": cls.ETHEREUM,
            "base": cls.BASE,
            "celo": cls.CELO,
            "polygon": cls.POLYGON,
            "matic": cls.POLYGON,
            "arbitrum": cls.ARBITRUM,
            "arb": cls.ARBITRUM,
            "optimism": cls.OPTIMISM,
            "op": cls.OPTIMISM,
        }
        if chain_str not in mapping:
            raise ValueError(f"Unsupported chain: {chain_str!r}")
        return mapping[chain_str]

    @property
    def host_segment(self) -> str:
        return CHAIN_HOST_SEGMENT[self]

    @property
    def explorer_base_url(self) -> str:
        return CHAIN_EXPLORER_BASE_URL[self]

    @property
    def label(self) -> str:
        return CHAIN_LABEL[self]


# Upstream indexing API host segment ({chain}.g.alchemy.com)
CHAIN_HOST_SEGMENT: Dict[Chain, str] = {
    Chain.ETHEREUM: "eth-mainnet",
    Chain.BASE: "base-mainnet",
    Chain.CELO: "celo-mainnet",
    Chain.POLYGON: "polygon-mainnet",
    Chain.ARBITRUM: "arb-mainnet",
    Chain.OPTIMISM: "opt-mainnet",
}

CHAIN_EXPLORER_BASE_URL: Dict[Chain, str] = {
    Chain.ETHEREUM: "https://etherscan.io",
    Chain.BASE: "https://basescan.org",
    Chain.CELO: "https://celoscan.io",
    Chain.POLYGON: "https://polygonscan.com",
    Chain.ARBITRUM: "https://arbiscan.io",
    Chain.OPTIMISM: "https://optimistic.etherscan.io",
}

CHAIN_LABEL: Dict[Chain, str] = {
    Chain.ETHEREUM: "Ethereum",
    Chain.BASE: "Base",
    Chain.CELO: "Celo",
    Chain.POLYGON: "Polygon",
    Chain.ARBITRUM: "Arbitrum",
    Chain.OPTIMISM: "Optimism",
}

DEFAULT_CHAIN = Chain.ETHEREUM


class NftAttribute(BaseModel):
    """NFT trait/attribute, keys kept in their metadata spelling"""
    trait_type: Optional[str] = None
    display_type: Optional[str] = None
    value: Any = None


class NftCard(BaseModel):
    """Canonical card for one owned NFT"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    id: str
    chain: Chain
    contract_address: str
    token_id: str

    collection_name: Optional[str] = None
    token_name: Optional[str] = None
    description: Optional[str] = None
    artist: Optional[str] = None

    # Media
    image_url: Optional[str] = None
    image_fallback_urls: List[str] = Field(default_factory=list)
    animation_url: Optional[str] = None
    animation_fallback_urls: List[str] = Field(default_factory=list)

    attributes: List[NftAttribute] = Field(default_factory=list)

    external_url: Optional[str] = None
    explorer_url: Optional[str] = None


class OwnedNftsResult(BaseModel):
    """Raw records collected from every page of the indexing API"""
    records: List[Dict[str, Any]] = Field(default_factory=list)
    truncated: bool = False
    warnings: List[str] = Field(default_factory=list)


class CardsResponse(BaseModel):
    """Response for a wallet cards query"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    chain: Chain
    wallet_input: str
    resolved_address: str
    count: int
    cards: List[NftCard]
    truncated: bool = False
    warnings: List[str] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """JSON body; ``truncated`` and ``warnings`` only appear when set"""
        data = self.model_dump(mode="json", by_alias=True)
        if not data.get("truncated"):
            data.pop("truncated", None)
        if not data.get("warnings"):
            data.pop("warnings", None)
        return data
