"""
Tripcast FastAPI service -- trip records plus the forecast -> clothing pipeline.

Entrypoint: uvicorn services.tripcast.main:app --host 0.0.0.0 --port 8000
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from sqlalchemy.ext.asyncio import async_sessionmaker

from services.tripcast.config import settings
from services.tripcast.db.engine import create_engine, create_schema
from services.tripcast.jobs.base import PipelineContext
from services.tripcast.jobs.runner import InProcessJobRunner
from services.tripcast.middleware.sentry import setup_sentry
from services.tripcast.routers import health, trips
from services.tripcast.weather.provider import TomorrowWeatherProvider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    setup_sentry()

    engine = create_engine()
    if settings.environment == "development":
        await create_schema(engine)

    # expire_on_commit=False: NullPool returns connection after commit,
    # lazy load on closed connection would fail without this.
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    runner = InProcessJobRunner()

    app.state.settings = settings
    app.state.db_engine = engine
    app.state.db_session_factory = session_factory
    app.state.job_runner = runner
    app.state.pipeline = PipelineContext(
        session_factory=session_factory,
        provider=TomorrowWeatherProvider(),
        runner=runner,
    )

    yield

    if runner.pending:
        logger.info("Waiting for %d in-flight job(s) before shutdown", runner.pending)
        await runner.drain()
    await engine.dispose()


app = FastAPI(
    title="Tripcast API",
    version=settings.app_version,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url=None,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(trips.router)


# Request ID injection
@app.middleware("http")
async def request_envelope_middleware(request: Request, call_next) -> Response:
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response
