import httpx
import pytest
import pytest_asyncio

from fake_api import API_PREFIX, FakeBackend
from masterygraph.main import create_app
from masterygraph.services.cache.query_cache import QueryCache

BASE_URL = "http://testserver"


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def cache():
    return QueryCache(stale_time=60)


@pytest_asyncio.fixture
async def app(backend, cache):
    """AppContext talking to the fake backend in-process."""
    client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=backend.build_app()),
        base_url=BASE_URL,
    )
    context = create_app(client=client, base_url=f"{BASE_URL}{API_PREFIX}", cache=cache)
    yield context
    await client.aclose()
