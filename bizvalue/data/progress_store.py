import copy
import uuid
from typing import Dict, Optional

import httpx

from .base import ProgressRecord, ProgressStore, StoreError
from ..core.config import settings

# Rows shared by every MemoryStore instance, keyed by user/session
_ROWS: Dict[str, ProgressRecord] = {}

class MemoryStore(ProgressStore):
    """
    In-process stand-in for the valuations table. Upserts by key, so one
    wizard row per user, like the real table's unique user_id.
    """
    async def load(self, key: str) -> Optional[ProgressRecord]:
        row = _ROWS.get(key)
        return copy.deepcopy(row) if row else None

    async def save(self, key: str, record: ProgressRecord) -> ProgressRecord:
        stored = copy.deepcopy(record)
        existing = _ROWS.get(key)
        stored.valuation_id = stored.valuation_id or (existing.valuation_id if existing else None) or str(uuid.uuid4())
        _ROWS[key] = stored
        return copy.deepcopy(stored)

    @staticmethod
    def reset() -> None:
        _ROWS.clear()

class HttpStore(ProgressStore):
    """
    Client for a PostgREST-style row API exposing a `valuations` table
    (columns: id, user_id, type, input, result, created_at).
    """
    def __init__(self, base_url: str, api_key: str | None = None):
        self.base_url = base_url.rstrip("/")
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["apikey"] = api_key
            self.headers["Authorization"] = f"Bearer {api_key}"

    async def load(self, key: str) -> Optional[ProgressRecord]:
        try:
            async with httpx.AsyncClient(timeout=10, headers=self.headers) as client:
                r = await client.get(
                    f"{self.base_url}/valuations",
                    params={"user_id": f"eq.{key}", "select": "id,input,result",
                            "order": "created_at.desc", "limit": 1},
                )
                r.raise_for_status()
                rows = r.json()
        except httpx.HTTPError as exc:
            raise StoreError(f"load failed for {key}") from exc
        if not rows:
            return None
        row = rows[0]
        return ProgressRecord(
            input=row.get("input") if isinstance(row.get("input"), dict) else {},
            result=row.get("result") if isinstance(row.get("result"), dict) else {},
            valuation_id=row.get("id"),
        )

    async def save(self, key: str, record: ProgressRecord) -> ProgressRecord:
        body = {"user_id": key, "type": "wizard_progress", "input": record.input, "result": record.result}
        try:
            async with httpx.AsyncClient(timeout=10, headers=self.headers) as client:
                r = await client.post(
                    f"{self.base_url}/valuations",
                    params={"on_conflict": "user_id"},
                    json=body,
                    headers={"Prefer": "resolution=merge-duplicates,return=representation"},
                )
                r.raise_for_status()
                rows = r.json() if r.content else []
        except httpx.HTTPError as exc:
            raise StoreError(f"save failed for {key}") from exc
        valuation_id = rows[0].get("id") if rows else record.valuation_id
        return ProgressRecord(input=record.input, result=record.result, valuation_id=valuation_id)

def progress_store() -> ProgressStore:
    """
    Factory picks mock or http based on env flags.
    """
    if settings.STORE_PROVIDER == "http" and settings.STORE_BASE_URL:
        return HttpStore(settings.STORE_BASE_URL, settings.STORE_API_KEY)
    return MemoryStore()
