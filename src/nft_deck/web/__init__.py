"""HTTP surface for NFT Deck"""

from .app import app

__all__ = ["app"]
