# Centralized pytest configuration file (fixtures, hooks, plugins, etc.)
import pytest
from asgi_lifespan import LifespanManager
from httpx import AsyncClient, ASGITransport
from redis.asyncio import Redis

from vanityurls.config import load_config
from vanityurls.handler import VanityHandler
from vanityurls.main import application as vanity_app
from vanityurls.rate_limit import RateLimiter
from vanityurls.testing.fake_limiter import FakeRateLimiter


DEFAULT_CONFIG = (
    "host: example.com\n"
    "cache_max_age: 3600\n"
    "paths:\n"
    "  /portmidi:\n"
    "    repo: https://github.com/rakyll/portmidi\n"
    "  /gopdf:\n"
    "    repo: https://bitbucket.org/zombiezen/gopdf\n"
    "    vcs: hg\n"
)


@pytest.fixture
async def redis_client():
    """Real Redis client for integration testing"""
    redis = Redis.from_url('redis://localhost:6379', decode_responses=True)

    # Verify Redis is running
    try:
        await redis.ping()
    except Exception as e:
        await redis.aclose()
        pytest.skip(f'Redis not available: {e}')

    yield redis

    # Cleanup
    await redis.flushdb()
    await redis.aclose()


@pytest.fixture
async def rate_limiter(redis_client):
    """Real rate limiter for integration testing"""
    limiter = RateLimiter(redis_client)
    await limiter.load()

    yield limiter


@pytest.fixture
def fake_limiter() -> FakeRateLimiter:
    return FakeRateLimiter()


@pytest.fixture
async def vanity_client(fake_limiter: FakeRateLimiter):
    """Client for the vanity app, serving DEFAULT_CONFIG with a fake limiter"""
    # State set before startup so the lifespan neither reads a config file
    # nor connects to Redis.
    vanity_app.state.vanity = VanityHandler(load_config(DEFAULT_CONFIG))
    vanity_app.state.limiter = fake_limiter

    async with LifespanManager(vanity_app):
        transport = ASGITransport(app=vanity_app)
        async with AsyncClient(
                transport=transport,
                base_url="http://vanity.test") as client:
            yield client
