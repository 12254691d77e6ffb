"""Blob store boundary: turns storage paths into time-limited signed URLs."""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Dict, Optional, Protocol
from urllib.parse import quote

import httpx

from ..config import settings
from ..errors import ResolutionError
from ..utils.supabase_client import SupabaseClient


class BlobStore(Protocol):
    async def create_signed_url(self, storage_path: str, expires_in: int) -> str:
        """Return a fetchable URL valid for ``expires_in`` seconds; raise ``ResolutionError`` otherwise."""
        ...


class SupabaseBlobStore:
    def __init__(self, client: SupabaseClient, bucket: Optional[str] = None) -> None:
        self._client = client
        self._bucket = bucket or settings.storage_bucket

    async def create_signed_url(self, storage_path: str, expires_in: int) -> str:
        try:
            return await self._client.create_signed_url(self._bucket, storage_path, expires_in)
        except (httpx.HTTPError, ValueError) as exc:
            raise ResolutionError(f"could not sign {storage_path}: {exc}") from exc


class InMemoryBlobStore:
    """Signs known object paths with an HMAC so URLs look and expire like real ones."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000/storage",
        *,
        secret: str = "local-signing-key",
        objects: Optional[Dict[str, bytes]] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._secret = secret.encode("utf-8")
        self._objects: Dict[str, bytes] = dict(objects or {})

    def put(self, storage_path: str, data: bytes = b"") -> None:
        self._objects[storage_path] = data

    async def create_signed_url(self, storage_path: str, expires_in: int) -> str:
        if storage_path not in self._objects:
            raise ResolutionError(f"object not found: {storage_path}")
        expires_at = int(time.time()) + int(expires_in)
        message = f"{storage_path}:{expires_at}".encode("utf-8")
        token = hmac.new(self._secret, message, hashlib.sha256).hexdigest()
        return f"{self._base_url}/{quote(storage_path)}?expires={expires_at}&token={token}"
