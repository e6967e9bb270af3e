import asyncio
import logging
import signal
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, Response, HTTPException
from fastapi.templating import Jinja2Templates
from redis.asyncio import Redis

from .config import VanityConfig, ConfigError, load_config_file, settings
from .handler import VanityHandler
from .logger import configure_logging
from .rate_limit import RateLimiter

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=Path(__file__).parent / 'templates')


def reload_rules(app: FastAPI, config: VanityConfig) -> VanityHandler:
    """
    Build a handler for `config` and swap it in.

    Requests already holding the previous handler finish with it.
    """
    handler = VanityHandler(config)
    app.state.vanity = handler
    logger.info('Serving %d paths and %d path rules',
                len(handler.rules.literals), len(handler.rules.templated))
    return handler


def reload_from_file(app: FastAPI, path: str | Path) -> None:
    """Reload on SIGHUP; a bad file keeps the current rules in service."""
    try:
        reload_rules(app, load_config_file(path))
    except (OSError, ConfigError):
        logger.exception('Reload of %s failed; keeping current configuration', path)


def _watch_sighup(app: FastAPI) -> bool:
    try:
        asyncio.get_running_loop().add_signal_handler(
            signal.SIGHUP, reload_from_file, app, settings.config_path)
    except (AttributeError, NotImplementedError, RuntimeError):
        # No SIGHUP on this platform, or not running in the main thread.
        return False
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown logic."""
    #---- Startup ----
    if not hasattr(app.state, 'vanity'):
        reload_rules(app, load_config_file(settings.config_path))

    if not hasattr(app.state, 'limiter'):
        app.state.limiter = None
        if settings.redis_url:
            redis = Redis.from_url(settings.redis_url)
            try:
                logger.info('Redis ping successful: %s', await redis.ping())

                limiter = RateLimiter(redis)
                await limiter.load()
            except Exception:
                await redis.aclose()
                raise

            app.state.redis = redis
            app.state.limiter = limiter

    watching = _watch_sighup(app)

    try:
        yield
    finally:
        #---- Shutdown ----
        if watching:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGHUP)
        if hasattr(app.state, 'redis'):
            await app.state.redis.aclose()

application = FastAPI(lifespan=lifespan)


async def check_rate_limit(request: Request) -> dict[str, str]:
    """Consume a token for the client; returns headers for the response."""
    limiter = getattr(request.app.state, 'limiter', None)
    if limiter is None:
        return {}

    client = request.headers.get('x-api-key') or (request.client.host if request.client else 'unknown')
    key = f'rl:{client}:vanity'

    allowed, remaining = await limiter.allow(
        key, capacity=settings.rate_limit_capacity, rate=settings.rate_limit_rate)
    if not allowed:
        logger.warning('Rate limit exceeded for %s', client)
        raise HTTPException(status_code=429, detail='Rate limit exceeded')
    return {'x-ratelimit-remaining': str(int(remaining))}


@application.api_route(
    path='/{path:path}',
    methods=['GET', 'HEAD'],
)
async def vanity(path: str, request: Request) -> Response:
    headers = await check_rate_limit(request)

    handler: VanityHandler = request.app.state.vanity
    host = handler.host(request.headers.get('host', ''))
    current = '/' + path

    found = handler.resolve(host, current)
    if found is None:
        if current == '/':
            headers['Cache-Control'] = handler.cache_control
            return templates.TemplateResponse(
                request, 'index.html',
                {'host': host, 'imports': handler.index(host)},
                headers=headers,
            )
        raise HTTPException(status_code=404, detail='Unknown import path', headers=headers)

    headers['Cache-Control'] = handler.cache_control
    return templates.TemplateResponse(
        request, 'vanity.html', {'vanity': found}, headers=headers)


def run() -> None:
    import uvicorn

    configure_logging(settings.log_level)
    uvicorn.run(
        'vanityurls.main:application',
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
