"""
Paginated retrieval of every NFT an owner holds on one chain
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple
from loguru import logger

from .clients.alchemy import AlchemyClient
from .config import Config, config as default_config
from .exceptions import UpstreamHTTPError
from .models import Chain, OwnedNftsResult
from .storage import StorageAdapter, get_storage_adapter

TRUNCATED_WARNING = "Result set may be truncated due to pagination limits."
SPAM_FILTER_WARNING = "Spam filtering is not available for this Alchemy plan/network; showing all NFTs."

_SPAM_FILTER_STATUSES = {400, 401, 403}
_SPAM_FILTER_KEYWORDS = ("excludefilters", "spam", "paid tier", "paid plan", "upgrade")


def is_spam_filter_unsupported(err: BaseException) -> bool:
    """
    True when the upstream rejected the spam-exclusion filter for this plan/network

    Matches on provider wording; a reworded error is not recognized and
    surfaces as a regular upstream failure.
    """
    if not isinstance(err, UpstreamHTTPError):
        return False
    if err.status not in _SPAM_FILTER_STATUSES:
        return False
    text = f"{err} {err.body}".lower()
    return any(keyword in text for keyword in _SPAM_FILTER_KEYWORDS)


def owned_nfts_cache_key(chain: Chain, owner: str, hide_spam: bool) -> str:
    return f"alchemy:getNFTsForOwner:{Chain(chain).value}:{owner.lower()}:{'hide' if hide_spam else 'show'}"


class OwnedNftFetcher:
    """Fetch all owned NFTs with page cap, spam-filter fallback and TTL caching"""

    def __init__(
        self,
        client: Optional[AlchemyClient] = None,
        storage: Optional[StorageAdapter] = None,
        config_instance: Optional[Config] = None,
    ):
        self.config = config_instance or default_config
        self.client = client or AlchemyClient.from_config(self.config)
        self.storage = storage or get_storage_adapter()
        self.page_size = self.config.page_size
        self.max_pages = self.config.max_pages
        self.cache_ttl = self.config.cache_ttl

    async def fetch_owned_nfts(self, chain: Chain, owner: str, hide_spam: bool = True) -> OwnedNftsResult:
        """Raw records for every page, cached per (chain, owner, spam flag)"""
        owner = owner.lower()
        cache_key = owned_nfts_cache_key(chain, owner, hide_spam)

        async def loader() -> OwnedNftsResult:
            return await self._fetch_with_fallback(chain, owner, hide_spam)

        return await self.storage.get_or_set(cache_key, self.cache_ttl, loader)

    async def _fetch_with_fallback(self, chain: Chain, owner: str, hide_spam: bool) -> OwnedNftsResult:
        warnings: List[str] = []
        try:
            records, truncated = await self._fetch_all_pages(chain, owner, hide_spam)
        except UpstreamHTTPError as e:
            if not (hide_spam and is_spam_filter_unsupported(e)):
                raise
            logger.warning(f"Spam filter rejected on {Chain(chain).value} ({e.status}); retrying without it")
            warnings.append(SPAM_FILTER_WARNING)
            records, truncated = await self._fetch_all_pages(chain, owner, hide_spam=False)

        if truncated:
            warnings.append(TRUNCATED_WARNING)

        logger.info(
            f"Fetched {len(records)} NFTs from {Chain(chain).value} for {owner}"
            f"{' (truncated)' if truncated else ''}"
        )
        return OwnedNftsResult(records=records, truncated=truncated, warnings=warnings)

    async def _fetch_all_pages(self, chain: Chain, owner: str, hide_spam: bool) -> Tuple[List[Dict[str, Any]], bool]:
        """Follow pageKey until it runs out or the page cap is hit"""
        records: List[Dict[str, Any]] = []
        page_key: Optional[str] = None
        truncated = False

        for page in range(self.max_pages):
            if page:
                # Let a cancelled request stop between pages
                await asyncio.sleep(0)

            response = await self.client.get_owned_nfts_page(
                chain,
                owner,
                page_key=page_key,
                hide_spam=hide_spam,
                page_size=self.page_size,
            )
            records.extend(response.get("ownedNfts") or [])
            logger.debug(f"Page {page + 1} for {owner} on {Chain(chain).value}: {len(records)} records so far")

            page_key = response.get("pageKey")
            if not page_key:
                break
            if page == self.max_pages - 1:
                logger.warning(f"Page cap of {self.max_pages} reached for {owner} on {Chain(chain).value}")
                truncated = True

        return records, truncated
