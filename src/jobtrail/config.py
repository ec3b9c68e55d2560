"""Environment-driven settings for the tracker."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .log import get_logger
from .persistence import JsonFileService, SupabaseService

log = get_logger(__name__)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _env_float(key: str, default: float) -> float:
    raw = _env(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring non-numeric %s=%r, using %s", key, raw, default)
        return default


@dataclass
class Settings:
    """Runtime configuration resolved from the environment (and ``.env``)."""

    data_path: Path = Path("jobtrail_data.json")
    inbox_path: Path = Path("jobtrail_inbox.json")
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_user_id: Optional[str] = None
    openai_api_key: Optional[str] = None
    model: str = "gpt-4o-mini"
    image_model: str = "gpt-image-1"
    autosave_delay: float = 2.0
    generation_timeout: float = 60.0

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        return cls(
            data_path=Path(_env("JOBTRAIL_DATA_PATH", "jobtrail_data.json")),
            inbox_path=Path(_env("JOBTRAIL_INBOX_PATH", "jobtrail_inbox.json")),
            supabase_url=_env("SUPABASE_URL") or None,
            supabase_key=_env("SUPABASE_KEY") or None,
            supabase_user_id=_env("SUPABASE_USER_ID") or None,
            openai_api_key=_env("OPENAI_API_KEY") or _env("JOBTRAIL_OPENAI_KEY") or None,
            model=_env("JOBTRAIL_MODEL", "gpt-4o-mini"),
            image_model=_env("JOBTRAIL_IMAGE_MODEL", "gpt-image-1"),
            autosave_delay=_env_float("JOBTRAIL_AUTOSAVE_DELAY", 2.0),
            generation_timeout=_env_float("JOBTRAIL_GENERATION_TIMEOUT", 60.0),
        )

    @property
    def uses_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    def build_service(self):
        """Return the remote Supabase service when configured, else the local JSON file."""

        if self.uses_supabase:
            log.info("Using Supabase persistence at %s", self.supabase_url)
            return SupabaseService(
                self.supabase_url,  # type: ignore[arg-type]
                self.supabase_key,  # type: ignore[arg-type]
                user_id=self.supabase_user_id,
            )
        log.debug("Using local JSON persistence at %s", self.data_path)
        return JsonFileService(self.data_path)
