"""
Oracle resolver endpoints.

Lets other wishmatch processes (RESOLVER_MODE=remote) share this process's
reference index instead of each loading the bulk dataset.
"""

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError

from wishmatch.models.resolver_wire import (
    NamedOracleData,
    OracleData,
    ResolveBatchRequest,
    ResolveBatchResponse,
)
from wishmatch.services.listing_sanitizer import sanitize_listing_name
from wishmatch.services.oracle_resolver import OracleBackend, get_oracle_backend

logger = logging.getLogger(__name__)

router = APIRouter(tags=["resolver"])


@router.get(
    "/resolve",
    response_model=OracleData,
    response_model_exclude_none=True,
)
async def resolve(
    backend: Annotated[OracleBackend, Depends(get_oracle_backend)],
    name: str | None = None,
) -> OracleData:
    """
    Resolve one card name.

    The name is sanitized first, so raw listing lines are accepted. An
    unknown name is not an error: the response simply has no oracleId.
    """
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing name query param",
        )

    sanitized = sanitize_listing_name(name)
    if not sanitized:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Empty name after sanitization",
        )

    try:
        result = await backend.resolve(sanitized)
    except Exception as e:
        logger.exception("Resolver failed for %r", sanitized)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to resolve card",
        ) from e

    return OracleData.from_result(result)


async def _read_batch_request(request: Request) -> ResolveBatchRequest:
    body = await request.body()
    try:
        return ResolveBatchRequest.model_validate(json.loads(body or b"{}"))
    except (ValueError, ValidationError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid batch request",
        ) from e


@router.post(
    "/resolve-batch",
    response_model=ResolveBatchResponse,
    response_model_exclude_none=True,
)
async def resolve_batch(
    request: Request,
    backend: Annotated[OracleBackend, Depends(get_oracle_backend)],
) -> ResolveBatchResponse:
    """
    Resolve many card names.

    Names are deduplicated and sanitized. Only resolved names are returned,
    each under the name exactly as it was sent (trimmed).
    """
    batch = await _read_batch_request(request)

    sanitized_by_name: dict[str, str] = {}
    for raw in batch.names:
        key = (raw or "").strip()
        if not key or key in sanitized_by_name:
            continue
        sanitized = sanitize_listing_name(key)
        if sanitized:
            sanitized_by_name[key] = sanitized

    try:
        results = await backend.resolve_batch(sanitized_by_name.values())
    except Exception as e:
        logger.exception("Batch resolver failed for %d names", len(sanitized_by_name))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to resolve batch",
        ) from e

    resolved: list[NamedOracleData] = []
    for key, sanitized in sanitized_by_name.items():
        result = results.get(sanitized)
        if result is not None and result.resolved:
            resolved.append(
                NamedOracleData(
                    name=key,
                    oracle_id=result.oracle_id,
                    image_urls=list(result.image_urls),
                    eur_price=result.eur_price,
                )
            )

    logger.info("Resolved batch: %d names, %d resolved", len(sanitized_by_name), len(resolved))
    return ResolveBatchResponse(results=resolved)
