"""ENS name resolution for human-readable wallet names"""

from abc import ABC, abstractmethod
from typing import Optional
from loguru import logger
from web3 import AsyncWeb3, AsyncHTTPProvider

from ..config import Config, config as default_config


class NameResolver(ABC):
    """resolve(name) -> address or None"""

    @abstractmethod
    async def resolve(self, name: str) -> Optional[str]:
        """
        Resolve a name to an address

        Returns None when the name has no address. Transport failures and
        missing configuration raise.
        """
        pass


class EnsResolver(NameResolver):
    """ENS resolver on Ethereum mainnet through a JSON-RPC endpoint"""

    def __init__(self, rpc_url: Optional[str] = None, cfg: Optional[Config] = None):
        self._rpc_url = rpc_url
        self._config = cfg or default_config
        self._web3: Optional[AsyncWeb3] = None

    def _get_client(self) -> AsyncWeb3:
        if self._web3 is None:
            rpc_url = self._rpc_url or self._config.get_rpc_url()
            self._web3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        return self._web3

    async def resolve(self, name: str) -> Optional[str]:
        client = self._get_client()
        try:
            address = await client.ens.address(name)
        except ValueError as e:
            # Malformed names (idna/normalization failures) cannot resolve
            logger.debug(f"ENS name rejected: {name}: {e}")
            return None
        if not address:
            logger.info(f"ENS name has no address: {name}")
            return None
        return str(address)
