"""API clients for NFT data providers and name resolution"""

from .alchemy import AlchemyClient
from .base import BaseAPIClient
from .ens import EnsResolver, NameResolver

__all__ = ["AlchemyClient", "BaseAPIClient", "EnsResolver", "NameResolver"]
