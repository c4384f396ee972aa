"""
Card database service.

Keeps a trimmed local copy of Scryfall's default-cards bulk data up to date
and loads it for the reference index.

Persisted state (both JSON, in settings.data_dir):
- scryfall-default-cards.json: array of projected records
- scryfall-default-cards.meta.json: {"updatedAt": ..., "downloadedAt": ...}
"""

import asyncio
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, TextIO, TypedDict

import httpx
import ijson

from wishmatch.config import CARD_DATA_FILENAME, CARD_META_FILENAME, settings
from wishmatch.models.failure import CardDatabaseError, PayloadFormatError, SourceFetchError
from wishmatch.parsers.scryfall import (
    BulkMetadata,
    ScryfallCard,
    load_reference_records,
    project_card,
)

logger = logging.getLogger(__name__)


class StoredMetadata(TypedDict):
    """Marker written after a successful download."""

    updatedAt: str
    downloadedAt: str


def card_data_path(data_dir: Path | None = None) -> Path:
    return (data_dir or settings.data_dir) / CARD_DATA_FILENAME


def card_meta_path(data_dir: Path | None = None) -> Path:
    return (data_dir or settings.data_dir) / CARD_META_FILENAME


def read_stored_metadata(data_dir: Path | None = None) -> StoredMetadata | None:
    """
    Read the local metadata marker.

    Returns:
        Stored metadata, or None if missing or unreadable
    """
    path = card_meta_path(data_dir)
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable card metadata at %s: %s", path, e)
        return None
    if not isinstance(data, dict) or "updatedAt" not in data:
        return None
    return StoredMetadata(
        updatedAt=str(data["updatedAt"]),
        downloadedAt=str(data.get("downloadedAt", "")),
    )


def _parse_timestamp(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def is_newer(remote_updated_at: str, local: StoredMetadata | None) -> bool:
    """True if the remote bulk file is newer than the local copy."""
    if local is None:
        return True
    remote_ts = _parse_timestamp(remote_updated_at)
    local_ts = _parse_timestamp(local["updatedAt"])
    if remote_ts is None or local_ts is None:
        return remote_updated_at != local["updatedAt"]
    return remote_ts > local_ts


async def fetch_bulk_metadata(client: httpx.AsyncClient) -> BulkMetadata:
    """
    Fetch the default-cards bulk metadata object.

    Raises:
        SourceFetchError: If the request fails
        PayloadFormatError: If the payload lacks updated_at/download_uri
    """
    try:
        response = await client.get(settings.bulk_metadata_url)
        response.raise_for_status()
        data: Any = response.json()
    except httpx.HTTPStatusError as e:
        raise SourceFetchError(
            f"Failed to fetch Scryfall metadata ({e.response.status_code})"
        ) from e
    except httpx.HTTPError as e:
        raise SourceFetchError("Failed to fetch Scryfall metadata", detail=str(e)) from e
    except ValueError as e:
        raise PayloadFormatError("Unexpected Scryfall metadata format", detail=str(e)) from e

    if (
        not isinstance(data, dict)
        or not isinstance(data.get("updated_at"), str)
        or not isinstance(data.get("download_uri"), str)
    ):
        raise PayloadFormatError("Unexpected Scryfall metadata format")

    return BulkMetadata(
        type=str(data.get("type", "default_cards")),
        updated_at=data["updated_at"],
        download_uri=data["download_uri"],
    )


def _write_projected(out: TextIO, parsed: list[Any], written: int) -> int:
    """Append projected records to an open JSON array and clear the buffer."""
    for raw in parsed:
        if isinstance(raw, dict):
            if written:
                out.write(",")
            json.dump(project_card(raw), out, ensure_ascii=False)
            written += 1
    del parsed[:]
    return written


async def download_card_database(
    client: httpx.AsyncClient,
    metadata: BulkMetadata,
    data_dir: Path | None = None,
) -> Path:
    """
    Stream the bulk file, projecting each record as it arrives.

    Only projected records are written, so the full bulk file (~500MB) is
    never held in memory. The output is written to a temporary file and
    renamed into place, so a failed download leaves any previous copy intact.

    Args:
        client: HTTP client
        metadata: Bulk metadata with download_uri and updated_at
        data_dir: Directory for persisted state. Defaults to settings.data_dir

    Returns:
        Path to the trimmed dataset

    Raises:
        SourceFetchError: If the download fails
        CardDatabaseError: If the payload is not a JSON array of cards
    """
    output_path = card_data_path(data_dir)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    partial_path = output_path.with_name(output_path.name + ".part")

    written = 0
    try:
        async with client.stream(
            "GET",
            metadata["download_uri"],
            timeout=settings.bulk_download_timeout_seconds,
        ) as response:
            response.raise_for_status()

            parsed = ijson.sendable_list()
            parser = ijson.items_coro(parsed, "item", use_float=True)

            is_array: bool | None = None
            with open(partial_path, "w", encoding="utf-8") as out:
                out.write("[")
                async for chunk in response.aiter_bytes(8192):
                    if is_array is None and chunk.strip():
                        is_array = chunk.lstrip().startswith(b"[")
                        if not is_array:
                            raise CardDatabaseError("Scryfall bulk data is not a JSON array.")
                    parser.send(chunk)
                    written = _write_projected(out, parsed, written)
                if is_array is None:
                    raise CardDatabaseError("Scryfall bulk data is empty.")
                parser.close()
                written = _write_projected(out, parsed, written)
                out.write("]")
    except httpx.HTTPStatusError as e:
        partial_path.unlink(missing_ok=True)
        raise SourceFetchError(
            f"Failed to download Scryfall data ({e.response.status_code})"
        ) from e
    except httpx.HTTPError as e:
        partial_path.unlink(missing_ok=True)
        raise SourceFetchError("Failed to download Scryfall data", detail=str(e)) from e
    except ijson.JSONError as e:
        partial_path.unlink(missing_ok=True)
        raise CardDatabaseError("Scryfall bulk data is corrupted.", detail=str(e)) from e
    except CardDatabaseError:
        partial_path.unlink(missing_ok=True)
        raise

    partial_path.replace(output_path)

    stored = StoredMetadata(
        updatedAt=metadata["updated_at"],
        downloadedAt=datetime.now(UTC).isoformat(),
    )
    with open(card_meta_path(data_dir), "w", encoding="utf-8") as f:
        json.dump(stored, f, indent=2)

    logger.info("Stored %d Scryfall records at %s", written, output_path)
    return output_path


async def ensure_card_database(data_dir: Path | None = None) -> Path:
    """
    Make sure a current trimmed dataset exists locally.

    If Scryfall metadata cannot be fetched but a local copy exists, the
    stale copy is used.

    Returns:
        Path to the trimmed dataset

    Raises:
        CardDatabaseError: If no usable dataset can be obtained
    """
    data_path = card_data_path(data_dir)
    local_meta = read_stored_metadata(data_dir)

    async with httpx.AsyncClient(
        timeout=settings.http_timeout_seconds,
        headers={"User-Agent": settings.user_agent},
        follow_redirects=True,
    ) as client:
        try:
            remote_meta = await fetch_bulk_metadata(client)
        except (SourceFetchError, PayloadFormatError) as e:
            if data_path.exists():
                logger.warning("Scryfall metadata unavailable, using local copy: %s", e)
                return data_path
            raise CardDatabaseError(
                "Card database unavailable: no local copy and Scryfall is unreachable.",
                detail=str(e),
            ) from e

        if data_path.exists() and not is_newer(remote_meta["updated_at"], local_meta):
            logger.debug("Local card database is current (%s)", remote_meta["updated_at"])
            return data_path

        logger.info("Updating Scryfall bulk data (updated_at=%s)", remote_meta["updated_at"])
        try:
            return await download_card_database(client, remote_meta, data_dir)
        except SourceFetchError as e:
            raise CardDatabaseError(
                "Card database download failed.",
                detail=str(e),
            ) from e


async def load_card_database(data_dir: Path | None = None) -> list[ScryfallCard]:
    """
    Ensure the dataset is current, then load its records.

    Raises:
        CardDatabaseError: If the dataset is unavailable or corrupted
    """
    path = await ensure_card_database(data_dir)
    return await asyncio.to_thread(load_reference_records, path)
