import os
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def _load_dotenv_if_present() -> None:
    try:
        from dotenv import load_dotenv
    except Exception:
        return
    # Try load from project root and backend dir to be flexible
    here = os.path.dirname(__file__)
    backend_dir = os.path.abspath(os.path.join(here, ".."))
    project_root = os.path.abspath(os.path.join(backend_dir, ".."))
    # Load root first, then backend/.env (later does not override earlier by default)
    load_dotenv(dotenv_path=os.path.join(project_root, ".env"), override=False)
    load_dotenv(dotenv_path=os.path.join(backend_dir, ".env"), override=False)


_load_dotenv_if_present()


DEFAULT_PLACEHOLDER_IMAGE_URL = (
    "https://images.pexels.com/photos/4386431/pexels-photo-4386431.jpeg"
    "?auto=compress&cs=tinysrgb&w=1920&h=1080"
)


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


@dataclass
class Settings:
    # "memory" keeps everything in-process; "supabase" reads the hosted tables
    backend: str = os.getenv("SIGNAGE_BACKEND", "memory")
    supabase_url: Optional[str] = os.getenv("SUPABASE_URL")
    supabase_key: Optional[str] = os.getenv("SUPABASE_KEY")
    storage_bucket: str = os.getenv("SIGNAGE_STORAGE_BUCKET", "content-files")
    signed_url_expiry: int = int(os.getenv("SIGNAGE_SIGNED_URL_EXPIRY", "3600"))
    media_timeout_seconds: float = _env_float("SIGNAGE_MEDIA_TIMEOUT_SECONDS", "10")
    request_timeout_seconds: float = _env_float("SIGNAGE_REQUEST_TIMEOUT_SECONDS", "15")
    timezone: str = os.getenv("SIGNAGE_TIMEZONE", "UTC")
    # 0 disables periodic re-resolution; sessions resolve on mount/refresh only
    refresh_interval_seconds: float = _env_float("SIGNAGE_REFRESH_INTERVAL_SECONDS", "0")
    placeholder_image_url: str = os.getenv("SIGNAGE_PLACEHOLDER_IMAGE_URL", DEFAULT_PLACEHOLDER_IMAGE_URL)
    seed_file: Optional[str] = os.getenv("SIGNAGE_SEED_FILE")
    log_level: str = os.getenv("SIGNAGE_LOG_LEVEL", "INFO")

    def __post_init__(self) -> None:
        self.backend = (self.backend or "memory").strip().lower()
        if self.backend not in {"memory", "supabase"}:
            raise ValueError(f"SIGNAGE_BACKEND must be 'memory' or 'supabase', got {self.backend!r}")
        self.timezone = (self.timezone or "UTC").strip()
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"SIGNAGE_TIMEZONE is not a known time zone: {self.timezone!r}") from exc
        if self.supabase_url:
            self.supabase_url = self.supabase_url.rstrip("/")
        if self.seed_file:
            here = os.path.dirname(__file__)
            backend_dir = os.path.abspath(os.path.join(here, ".."))
            project_root = os.path.abspath(os.path.join(backend_dir, ".."))
            p_expanded = os.path.expanduser(self.seed_file)
            if not os.path.isabs(p_expanded):
                p_expanded = os.path.abspath(os.path.join(project_root, p_expanded))
            self.seed_file = p_expanded


settings = Settings()
