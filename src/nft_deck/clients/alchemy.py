"""Alchemy NFT API client for EVM chains"""

from typing import Dict, Any, Optional, List, Tuple
from loguru import logger

from .base import BaseAPIClient
from ..config import Config, config as default_config
from ..exceptions import ConfigurationError
from ..models import Chain


class AlchemyClient(BaseAPIClient):
    """Alchemy NFT API v3 client"""

    provider_name = "Alchemy"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30,
        max_retries: int = 3,
        **kwargs: Any,
    ):
        super().__init__(base_url or "https://{chain}.g.alchemy.com", timeout=timeout, max_retries=max_retries, **kwargs)
        self._api_key = api_key

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None) -> "AlchemyClient":
        cfg = cfg or default_config
        return cls(
            api_key=cfg.alchemy_api_key,
            base_url=cfg.alchemy_base_url,
            timeout=cfg.timeout,
            max_retries=cfg.max_retries,
        )

    def get_api_key(self) -> str:
        """API key; raises ConfigurationError when the server has none"""
        if not self._api_key:
            raise ConfigurationError(
                "ALCHEMY_KEY is not set on the server.",
                hint="Server is missing ALCHEMY_KEY. Add it to .env and restart the server.",
            )
        return self._api_key

    def _endpoint_url(self, chain: Chain, endpoint: str) -> str:
        base = self.base_url.format(chain=Chain(chain).host_segment).rstrip("/")
        return f"{base}/nft/v3/{self.get_api_key()}/{endpoint}"

    async def get_owned_nfts_page(
        self,
        chain: Chain,
        owner: str,
        page_key: Optional[str] = None,
        hide_spam: bool = False,
        page_size: int = 100,
    ) -> Dict[str, Any]:
        """
        Fetch one page of ``getNFTsForOwner``

        Returns:
            {"ownedNfts": [...], "pageKey": str or None}

        Raises:
            UpstreamHTTPError on a non-2xx response
        """
        url = self._endpoint_url(chain, "getNFTsForOwner")
        params: List[Tuple[str, str]] = [
            ("owner", owner),
            ("withMetadata", "true"),
            ("pageSize", str(page_size)),
        ]
        if page_key:
            params.append(("pageKey", page_key))
        if hide_spam:
            params.append(("excludeFilters[]", "SPAM"))

        response = await self._request("GET", url, params=params)
        if not isinstance(response, dict):
            logger.warning(f"Alchemy getNFTsForOwner returned a non-object body on {Chain(chain).value}")
            response = {}

        owned_nfts = response.get("ownedNfts")
        page_key_next = response.get("pageKey")
        return {
            "ownedNfts": owned_nfts if isinstance(owned_nfts, list) else [],
            "pageKey": page_key_next if isinstance(page_key_next, str) and page_key_next else None,
        }
