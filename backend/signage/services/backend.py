"""Choose and hold the repository/blob store pair configured for this process."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config import Settings, settings
from ..errors import RepositoryError
from ..utils.supabase_client import SupabaseClient
from .repository import InMemoryRepository, SignageRepository
from .storage import BlobStore, InMemoryBlobStore, SupabaseBlobStore

logger = logging.getLogger(__name__)


@dataclass
class Backend:
    repository: SignageRepository
    blob_store: BlobStore
    client: Optional[SupabaseClient] = None

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()


def build_backend(config: Settings) -> Backend:
    if config.backend == "supabase":
        client = SupabaseClient(config.supabase_url, config.supabase_key, timeout=config.request_timeout_seconds)
        from .supabase_repository import SupabaseRepository

        return Backend(
            repository=SupabaseRepository(client),
            blob_store=SupabaseBlobStore(client, config.storage_bucket),
            client=client,
        )

    repository = InMemoryRepository()
    blob_store = InMemoryBlobStore()
    if config.seed_file:
        repository = InMemoryRepository.from_json(config.seed_file)
        for path in _seed_storage_objects(config.seed_file):
            blob_store.put(path)
        logger.info("loaded in-memory seed from %s", config.seed_file)
    return Backend(repository=repository, blob_store=blob_store)


def _seed_storage_objects(seed_file: str) -> list[str]:
    try:
        raw = json.loads(Path(seed_file).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise RepositoryError(f"cannot read seed file {seed_file}: {exc}") from exc
    objects = raw.get("storage_objects", []) if isinstance(raw, dict) else []
    return [str(path) for path in objects if isinstance(path, str)]


_backend: Optional[Backend] = None


def get_backend() -> Backend:
    global _backend
    if _backend is None:
        _backend = build_backend(settings)
    return _backend


def set_backend(backend: Optional[Backend]) -> None:
    """Swap the process backend (tests, embedding)."""
    global _backend
    _backend = backend


async def close_backend() -> None:
    global _backend
    if _backend is not None:
        await _backend.aclose()
        _backend = None
