import pytest

from nft_deck.config import Config
from nft_deck.storage import MemoryStorage

from fakes import FakeTimer


@pytest.fixture
def fake_timer():
    return FakeTimer()


@pytest.fixture
def storage(fake_timer):
    return MemoryStorage(timer=fake_timer)


@pytest.fixture
def test_config():
    return Config(
        alchemy_api_key="test-key",
        rpc_url="http://localhost:8545",
        cache_ttl=30.0,
        page_size=100,
        max_pages=3,
        max_retries=1,
    )
