"""
Oracle Resolution Service.

Resolves raw card names to oracle-backed identities (oracle id, images,
reference price). Two backends exist and exactly one is active per process,
chosen by settings.resolver_mode:

- LocalIndexBackend: looks names up in the in-memory reference index built
  from the Scryfall bulk dataset.
- RemoteResolverBackend: delegates to another wishmatch process over HTTP
  and caches answers in-process.

INVARIANTS:
1. A miss is a ResolutionResult without an oracle id, never an exception
2. The reference index is built at most once at a time (shared task)
3. Concurrent lookups of one uncached name share one remote call
4. Remote transport failures degrade to "unresolved"; malformed remote
   payloads raise ResolverResponseError
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from wishmatch.config import settings
from wishmatch.models.failure import ResolverResponseError
from wishmatch.models.oracle import ResolutionResult
from wishmatch.models.resolver_wire import OracleData, ResolveBatchResponse
from wishmatch.services.card_database import load_card_database
from wishmatch.services.reference_index import ReferenceIndex, build_reference_index

logger = logging.getLogger(__name__)

IndexLoader = Callable[[], Awaitable[ReferenceIndex]]


class OracleBackend(Protocol):
    """Capability shared by both resolution modes."""

    @property
    def ready(self) -> bool:
        """True once lookups can be answered without initialization."""
        ...

    @property
    def miss_count(self) -> int:
        """Unique names without an identity in the last priming pass."""
        ...

    async def ensure_ready(self) -> None: ...

    async def resolve(self, name: str) -> ResolutionResult: ...

    async def resolve_batch(self, names: Iterable[str]) -> dict[str, ResolutionResult]: ...

    async def prime(self, names: Iterable[str]) -> None: ...


def _unique_names(names: Iterable[str]) -> list[str]:
    """Trimmed, non-empty, deduplicated names in first-seen order."""
    return list(dict.fromkeys(name.strip() for name in names if name and name.strip()))


# =============================================================================
# LOCAL INDEX
# =============================================================================


async def load_reference_index(data_dir: Path | None = None) -> ReferenceIndex:
    """Load the bulk dataset and build the reference index from it."""
    records = await load_card_database(data_dir)
    return await asyncio.to_thread(build_reference_index, records)


class LocalIndexBackend:
    """Resolves names against the in-memory reference index."""

    def __init__(self, loader: IndexLoader = load_reference_index) -> None:
        self._loader = loader
        self._index: ReferenceIndex | None = None
        self._building: asyncio.Task[ReferenceIndex] | None = None
        self._misses: set[str] = set()

    @property
    def ready(self) -> bool:
        return self._index is not None

    @property
    def miss_count(self) -> int:
        return len(self._misses)

    async def _build(self) -> ReferenceIndex:
        try:
            index = await self._loader()
        except BaseException:
            # Let a later call retry; current waiters all see this error
            self._building = None
            raise
        self._index = index
        self._building = None
        return index

    async def get_index(self) -> ReferenceIndex:
        """
        Return the reference index, building it on first use.

        Concurrent first callers await the same build.

        Raises:
            CardDatabaseError: If the dataset cannot be loaded
        """
        if self._index is not None:
            return self._index
        if self._building is None:
            logger.info("Building reference index")
            self._building = asyncio.create_task(self._build())
        return await asyncio.shield(self._building)

    async def ensure_ready(self) -> None:
        await self.get_index()

    async def resolve(self, name: str) -> ResolutionResult:
        index = await self.get_index()
        return index.lookup(name)

    async def resolve_batch(self, names: Iterable[str]) -> dict[str, ResolutionResult]:
        index = await self.get_index()
        results = {name: index.lookup(name) for name in _unique_names(names)}
        self._misses = {name for name, result in results.items() if not result.resolved}
        return results

    async def prime(self, names: Iterable[str]) -> None:
        await self.resolve_batch(names)


# =============================================================================
# REMOTE RESOLVER
# =============================================================================


def _parse_single(payload: Any) -> ResolutionResult:
    try:
        return OracleData.model_validate(payload).to_result()
    except ValidationError as e:
        raise ResolverResponseError("Malformed response from oracle resolver", detail=str(e)) from e


def _parse_batch(payload: Any) -> dict[str, ResolutionResult]:
    try:
        batch = ResolveBatchResponse.model_validate(payload)
    except ValidationError as e:
        raise ResolverResponseError(
            "Malformed batch response from oracle resolver", detail=str(e)
        ) from e
    return {item.name.strip(): item.to_result() for item in batch.results if item.name.strip()}


class RemoteResolverBackend:
    """
    Resolves names through a remote wishmatch resolver.

    Answers are cached by the trimmed raw name, so repeated lookups of the
    same literal string cost one network call per process.
    """

    def __init__(self, base_url: str, timeout: float | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._cache: dict[str, ResolutionResult] = {}
        self._inflight: dict[str, asyncio.Task[None]] = {}
        self._misses: set[str] = set()

    @property
    def ready(self) -> bool:
        return True

    @property
    def miss_count(self) -> int:
        return len(self._misses)

    def cached(self, name: str) -> ResolutionResult | None:
        """Cached result for a name, None if never resolved."""
        return self._cache.get(name.strip())

    async def ensure_ready(self) -> None:
        return None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            headers={"User-Agent": settings.user_agent},
        )

    def _track(self, keys: list[str], task: asyncio.Task[None]) -> None:
        for key in keys:
            self._inflight[key] = task

        def _untrack(done: asyncio.Task[None]) -> None:
            for key in keys:
                if self._inflight.get(key) is done:
                    del self._inflight[key]

        task.add_done_callback(_untrack)

    async def _fetch_single(self, key: str) -> None:
        try:
            async with self._client() as client:
                response = await client.get(f"{self._base_url}/resolve", params={"name": key})
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Oracle resolver responded %d for %r, treating as unresolved",
                e.response.status_code,
                key,
            )
            if e.response.is_client_error:
                # The resolver rejected the name itself; asking again won't help
                self._cache[key] = ResolutionResult.unresolved()
            return
        except httpx.HTTPError as e:
            logger.warning("Oracle resolver unreachable for %r, treating as unresolved: %s", key, e)
            return
        except ValueError as e:
            raise ResolverResponseError(
                "Malformed response from oracle resolver", detail=str(e)
            ) from e

        self._cache[key] = _parse_single(payload)

    async def _fetch_batch(self, keys: list[str]) -> None:
        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self._base_url}/resolve-batch",
                    json={"names": keys},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            logger.warning("Batch oracle resolver failed for %d names: %s", len(keys), e)
            return
        except ValueError as e:
            raise ResolverResponseError(
                "Malformed batch response from oracle resolver", detail=str(e)
            ) from e

        results = _parse_batch(payload)
        misses = 0
        for key in keys:
            result = results.get(key)
            if result is not None and result.resolved:
                self._cache[key] = result
            else:
                misses += 1
                self._misses.add(key)
                self._cache[key] = ResolutionResult.unresolved()

        logger.info("Primed oracle cache: %d names, %d misses", len(keys), misses)

    async def resolve(self, name: str) -> ResolutionResult:
        """
        Resolve one name, using the cache when possible.

        Raises:
            ResolverResponseError: If the resolver returns a malformed payload
        """
        key = name.strip()
        if not key:
            return ResolutionResult.unresolved()

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Oracle cache hit for %r", key)
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._fetch_single(key))
            self._track([key], task)
        await asyncio.shield(task)

        return self._cache.get(key, ResolutionResult.unresolved())

    async def prime(self, names: Iterable[str]) -> None:
        """
        Resolve many names with one batch call.

        Cached misses are retried; cached hits and names already being
        fetched are not requested again. The miss counter is reset first.

        Raises:
            ResolverResponseError: If the resolver returns a malformed payload
        """
        self._misses.clear()

        waiting: list[asyncio.Task[None]] = []
        waited_keys: list[str] = []
        missing: list[str] = []
        for key in _unique_names(names):
            cached = self._cache.get(key)
            if cached is not None and not cached.resolved:
                del self._cache[key]
                cached = None
            if cached is not None:
                continue
            task = self._inflight.get(key)
            if task is not None:
                waiting.append(task)
                waited_keys.append(key)
            else:
                missing.append(key)

        if missing:
            task = asyncio.create_task(self._fetch_batch(missing))
            self._track(missing, task)
            waiting.append(task)

        for task in dict.fromkeys(waiting):
            await asyncio.shield(task)

        # Names answered by another caller's fetch count here too
        for key in waited_keys:
            cached = self._cache.get(key)
            if cached is not None and not cached.resolved:
                self._misses.add(key)

    async def resolve_batch(self, names: Iterable[str]) -> dict[str, ResolutionResult]:
        """
        Resolve many names; names the batch call could not answer are misses.

        Raises:
            ResolverResponseError: If the resolver returns a malformed payload
        """
        keys = _unique_names(names)
        await self.prime(keys)
        return {key: self._cache.get(key, ResolutionResult.unresolved()) for key in keys}


# =============================================================================
# PROCESS-WIDE ACCESS
# =============================================================================

_backend: OracleBackend | None = None


def create_oracle_backend() -> OracleBackend:
    """
    Create the backend selected by settings.

    Raises:
        ValueError: If remote mode is selected without a resolver URL
    """
    if settings.resolver_mode == "remote":
        if not settings.oracle_resolver_url:
            raise ValueError("ORACLE_RESOLVER_URL must be set when RESOLVER_MODE=remote")
        logger.info("Using remote oracle resolver at %s", settings.oracle_resolver_url)
        return RemoteResolverBackend(settings.oracle_resolver_url)
    return LocalIndexBackend()


def get_oracle_backend() -> OracleBackend:
    """Return the process-wide backend, creating it on first use."""
    global _backend
    if _backend is None:
        _backend = create_oracle_backend()
    return _backend


def set_oracle_backend(backend: OracleBackend | None) -> None:
    """Replace (or with None, drop) the process-wide backend."""
    global _backend
    _backend = backend


async def resolve_name(name: str) -> ResolutionResult:
    """Resolve one name with the process-wide backend."""
    return await get_oracle_backend().resolve(name)


async def resolve_names(names: Iterable[str]) -> dict[str, ResolutionResult]:
    """Resolve many names with the process-wide backend."""
    return await get_oracle_backend().resolve_batch(names)
