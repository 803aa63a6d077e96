"""
NFT Deck - Multi-chain NFT cards with a guarded media relay
"""

__version__ = "1.0.0"
__author__ = "NFT Deck Team"

from .deck import NftDeck
from .models import NftCard, CardsResponse, Chain

__all__ = ["NftDeck", "NftCard", "CardsResponse", "Chain"]
