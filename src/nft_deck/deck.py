"""
Main NFT Deck service
"""

from typing import Optional
from loguru import logger

from .clients.ens import EnsResolver, NameResolver
from .config import Config, config
from .exceptions import InvalidWalletError
from .fetcher import OwnedNftFetcher
from .models import CardsResponse, Chain
from .normalizer import Normalizer
from .utils import is_ens_name, validate_ethereum_address

INVALID_WALLET_MESSAGE = "Invalid wallet. Enter a 0x… address or an ENS name like vitalik.eth."


class NftDeck:
    """Wallet input -> owned NFTs -> cards"""

    def __init__(
        self,
        config_instance: Optional[Config] = None,
        fetcher: Optional[OwnedNftFetcher] = None,
        resolver: Optional[NameResolver] = None,
    ):
        self.config = config_instance or config
        self.fetcher = fetcher or OwnedNftFetcher(config_instance=self.config)
        self.resolver = resolver or EnsResolver(cfg=self.config)
        self.normalizer = Normalizer()

    async def resolve_wallet(self, wallet_input: str) -> str:
        """Address for a 0x… address or ENS name; InvalidWalletError otherwise"""
        wallet_input = (wallet_input or "").strip()
        if not wallet_input:
            raise InvalidWalletError("Wallet input cannot be empty.")

        if is_ens_name(wallet_input):
            address = await self.resolver.resolve(wallet_input)
            if not address:
                raise InvalidWalletError(INVALID_WALLET_MESSAGE)
            logger.info(f"Resolved {wallet_input} to {address}")
            wallet_input = address

        is_valid, checksum_address = validate_ethereum_address(wallet_input)
        if not is_valid:
            raise InvalidWalletError(INVALID_WALLET_MESSAGE)
        return checksum_address

    async def get_cards(self, chain: Chain, wallet_input: str, hide_spam: bool = True) -> CardsResponse:
        """Every owned NFT on ``chain`` as canonical cards, in upstream order"""
        wallet_input = (wallet_input or "").strip()
        resolved_address = await self.resolve_wallet(wallet_input)

        result = await self.fetcher.fetch_owned_nfts(chain, resolved_address.lower(), hide_spam=hide_spam)
        cards = self.normalizer.normalize_owned_nfts(chain, result.records)

        return CardsResponse(
            chain=chain,
            wallet_input=wallet_input,
            resolved_address=resolved_address,
            count=len(cards),
            cards=cards,
            truncated=result.truncated,
            warnings=list(result.warnings),
        )
