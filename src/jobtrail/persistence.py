"""Persistence services backing the job store and resume autosave.

Two implementations share the same async interface:

* :class:`JsonFileService` keeps everything in a local JSON document.
* :class:`SupabaseService` talks to the ``jobs`` and ``resumes`` tables of a
  Supabase project over its PostgREST endpoint.

Both run their blocking I/O in a worker thread so callers on the event loop
only ever suspend at these calls.
"""
from __future__ import annotations

import asyncio
import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol
from uuid import uuid4

import requests

from .log import get_logger

log = get_logger(__name__)


class PersistenceError(RuntimeError):
    """Raised when the backing store rejects or fails a write/read."""


class JobService(Protocol):
    async def create(self, record: Dict[str, Any]) -> str: ...

    async def update(self, job_id: str, record: Dict[str, Any]) -> None: ...

    async def delete(self, job_id: str) -> None: ...

    async def list(self) -> List[Dict[str, Any]]: ...


class ResumeService(Protocol):
    async def load_resume(self) -> Optional[Dict[str, Any]]: ...

    async def save_resume(self, record: Dict[str, Any]) -> None: ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class JsonFileService:
    """Persist job rows and the resume document to a JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"jobs": [], "resume": None}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read {self.path}: {exc}") from exc
        data.setdefault("jobs", [])
        data.setdefault("resume", None)
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            self.path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Could not write {self.path}: {exc}") from exc

    def _create(self, record: Dict[str, Any]) -> str:
        with self._lock:
            data = self._read()
            job_id = uuid4().hex
            row = dict(record, id=job_id, created_at=_now())
            data["jobs"].append(row)
            self._write(data)
        return job_id

    def _update(self, job_id: str, record: Dict[str, Any]) -> None:
        with self._lock:
            data = self._read()
            for row in data["jobs"]:
                if row.get("id") == job_id:
                    row.update({key: value for key, value in record.items() if key not in {"id", "created_at"}})
                    break
            else:
                raise PersistenceError(f"No job row with id {job_id}")
            self._write(data)

    def _delete(self, job_id: str) -> None:
        with self._lock:
            data = self._read()
            data["jobs"] = [row for row in data["jobs"] if row.get("id") != job_id]
            self._write(data)

    def _list(self) -> List[Dict[str, Any]]:
        with self._lock:
            rows = list(self._read()["jobs"])
        # ties on created_at fall back to insertion order
        ordered = sorted(enumerate(rows), key=lambda pair: (pair[1].get("created_at") or "", pair[0]), reverse=True)
        return [row for _, row in ordered]

    def _load_resume(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._read()["resume"]

    def _save_resume(self, record: Dict[str, Any]) -> None:
        with self._lock:
            data = self._read()
            data["resume"] = dict(record)
            self._write(data)

    async def create(self, record: Dict[str, Any]) -> str:
        return await asyncio.to_thread(self._create, record)

    async def update(self, job_id: str, record: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._update, job_id, record)

    async def delete(self, job_id: str) -> None:
        await asyncio.to_thread(self._delete, job_id)

    async def list(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._list)

    async def load_resume(self) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._load_resume)

    async def save_resume(self, record: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._save_resume, record)


class SupabaseService:
    """Supabase (PostgREST) implementation of the job and resume services."""

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        user_id: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ) -> None:
        if not url or not api_key:
            raise ValueError("A Supabase URL and API key are required")
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.api_key = api_key
        self.user_id = user_id
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self, *, representation: bool = False) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if representation:
            headers["Prefer"] = "return=representation"
        return headers

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Dict[str, str]] = None,
        payload: Optional[Dict[str, Any]] = None,
        representation: bool = False,
    ) -> Any:
        url = f"{self.base_url}/{table}"
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=payload,
                headers=self._headers(representation=representation),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise PersistenceError(f"Supabase {method} {table} failed: {exc}") from exc
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise PersistenceError(f"Supabase {method} {table} returned invalid JSON") from exc

    def _with_owner(self, record: Dict[str, Any]) -> Dict[str, Any]:
        if self.user_id:
            return dict(record, user_id=self.user_id)
        return dict(record)

    def _create(self, record: Dict[str, Any]) -> str:
        rows = self._request("POST", "jobs", payload=self._with_owner(record), representation=True)
        if not rows or not rows[0].get("id"):
            raise PersistenceError("Supabase insert returned no id")
        return str(rows[0]["id"])

    def _update(self, job_id: str, record: Dict[str, Any]) -> None:
        self._request("PATCH", "jobs", params={"id": f"eq.{job_id}"}, payload=record)

    def _delete(self, job_id: str) -> None:
        self._request("DELETE", "jobs", params={"id": f"eq.{job_id}"})

    def _list(self) -> List[Dict[str, Any]]:
        return self._request("GET", "jobs", params={"select": "*", "order": "created_at.desc"}) or []

    def _load_resume(self) -> Optional[Dict[str, Any]]:
        rows = self._request("GET", "resumes", params={"select": "*", "limit": "1"}) or []
        return rows[0] if rows else None

    def _save_resume(self, record: Dict[str, Any]) -> None:
        rows = self._request("GET", "resumes", params={"select": "id", "limit": "1"}) or []
        payload = self._with_owner(record)
        if rows:
            self._request("PATCH", "resumes", params={"id": f"eq.{rows[0]['id']}"}, payload=payload)
        else:
            self._request("POST", "resumes", payload=payload)

    async def create(self, record: Dict[str, Any]) -> str:
        return await asyncio.to_thread(self._create, record)

    async def update(self, job_id: str, record: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._update, job_id, record)

    async def delete(self, job_id: str) -> None:
        await asyncio.to_thread(self._delete, job_id)

    async def list(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._list)

    async def load_resume(self) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._load_resume)

    async def save_resume(self, record: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._save_resume, record)
