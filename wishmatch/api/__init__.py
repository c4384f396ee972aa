from wishmatch.api.compare import router as compare_router
from wishmatch.api.health import router as health_router
from wishmatch.api.resolve import router as resolve_router

__all__ = [
    "compare_router",
    "health_router",
    "resolve_router",
]
