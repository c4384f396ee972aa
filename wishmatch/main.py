import asyncio
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager, suppress
from importlib.metadata import version as pkg_version

import uvicorn
from fastapi import FastAPI, Request, Response, status

from wishmatch.api import compare_router, health_router, resolve_router
from wishmatch.config import configure_logging, settings
from wishmatch.services.oracle_resolver import OracleBackend, get_oracle_backend

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": settings.allowed_origin,
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


async def _warm_resolver(backend: OracleBackend) -> None:
    try:
        await backend.ensure_ready()
    except Exception:
        # Lookups retry the build on demand
        logger.exception("Resolver warm-up failed")


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    configure_logging()

    warm_up: asyncio.Task[None] | None = None
    if settings.warm_resolver_on_startup:
        warm_up = asyncio.create_task(_warm_resolver(get_oracle_backend()))

    yield

    if warm_up is not None and not warm_up.done():
        warm_up.cancel()
        with suppress(asyncio.CancelledError):
            await warm_up


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    version=pkg_version("wishmatch"),
    lifespan=lifespan,
)

app.include_router(compare_router)
app.include_router(health_router)
app.include_router(resolve_router)


@app.middleware("http")
async def cors(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Answer every OPTIONS request with 204 and put CORS headers on all responses."""
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)

    logger.info("%s %s", request.method, request.url.path)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


def run() -> None:
    """CLI entry point: serve the API with uvicorn."""
    configure_logging()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
