import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
import sentry_sdk
from fastapi import FastAPI
from sqlalchemy import text

from socialgraph.config import settings
from socialgraph.database import engine

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize Sentry
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        send_default_pii=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: verify DB connection and connect Redis
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    app.state.redis = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    await app.state.redis.ping()

    yield

    # Shutdown
    await app.state.redis.close()
    await engine.dispose()


app = FastAPI(
    title="Socialgraph API",
    version="0.1.0",
    lifespan=lifespan,
)

from socialgraph.middleware.rate_limit import RateLimitMiddleware  # noqa: E402

app.add_middleware(RateLimitMiddleware)

from socialgraph.middleware.error_handler import register_error_handlers  # noqa: E402

register_error_handlers(app)

# Routers
from socialgraph.routers.friends import router as friends_router  # noqa: E402
from socialgraph.routers.posts import router as posts_router  # noqa: E402
from socialgraph.routers.users import router as users_router  # noqa: E402

app.include_router(users_router)
app.include_router(friends_router)
app.include_router(posts_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
