"""Thin async client for the hosted Supabase REST endpoints (PostgREST + Storage)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from ..config import settings



class SupabaseClient:
    """Shares one ``httpx.AsyncClient`` between table reads and storage signing."""

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        base_url = (url or settings.supabase_url or "").rstrip("/")
        api_key = key or settings.supabase_key
        if not base_url or not api_key:
            raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set to use the supabase backend")
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout if timeout is not None else settings.request_timeout_seconds,
            transport=transport,
        )

    async def select(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        """Run a PostgREST select; raises ``httpx.HTTPError`` on transport or status failures."""
        response = await self._client.get(f"/rest/v1/{table}", params=params)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, list):
            raise ValueError(f"unexpected response shape from table {table!r}")
        return data

    async def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        object_path = quote(path.lstrip("/"), safe="/")
        response = await self._client.post(
            f"/storage/v1/object/sign/{bucket}/{object_path}",
            json={"expiresIn": expires_in},
        )
        response.raise_for_status()
        data = response.json()
        signed = None
        if isinstance(data, dict):
            signed = data.get("signedURL") or data.get("signedUrl")
        if not isinstance(signed, str) or not signed:
            raise ValueError("storage response did not include a signed URL")
        if signed.startswith("http://") or signed.startswith("https://"):
            return signed
        return f"{self.base_url}/storage/v1/{signed.lstrip('/')}"

    async def aclose(self) -> None:
        await self._client.aclose()
