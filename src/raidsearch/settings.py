"""Configuration helpers for RAiD search."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_DOWNLOAD_DIR = Path.home() / "raid-downloads"
DEFAULT_ENDPOINTS = ["https://api.datacite.org/dois"]
DEFAULT_ARTIFACT_TEMPLATE = "https://static.prod.raid.org.au/raids/{identifier}.download/"


class Settings(BaseModel):
    """Runtime configuration loaded from env vars with sensible defaults."""

    endpoints: list[str] = Field(default_factory=lambda: list(DEFAULT_ENDPOINTS))
    namespace_domain: str = "raid.org.au"
    page_size: int = 10000
    resolver_base_url: str = "https://raid.org"
    organisation_base_url: str = "https://ror.org"
    organisation_marker: str = "ror.org"
    artifact_url_template: str = DEFAULT_ARTIFACT_TEMPLATE
    download_dir: Path = Field(default_factory=lambda: DEFAULT_DOWNLOAD_DIR)
    pacing_delay: float = 1.0
    cleanup_delay: float = 0.1
    request_timeout: float = 30.0
    reset_artifacts_per_search: bool = False
    log_level: str = "INFO"

    def ensure_directories(self) -> None:
        """Create the download directory if it is missing."""
        self.download_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def load(cls) -> "Settings":
        load_dotenv()
        endpoints = [
            entry.strip()
            for entry in os.environ.get("RAIDSEARCH_ENDPOINTS", "").split(",")
            if entry.strip()
        ]
        return cls(
            endpoints=endpoints or list(DEFAULT_ENDPOINTS),
            namespace_domain=os.environ.get("RAIDSEARCH_NAMESPACE_DOMAIN", "raid.org.au"),
            page_size=int(os.environ.get("RAIDSEARCH_PAGE_SIZE", "10000")),
            resolver_base_url=os.environ.get("RAIDSEARCH_RESOLVER_URL", "https://raid.org"),
            organisation_base_url=os.environ.get(
                "RAIDSEARCH_ORGANISATION_URL", "https://ror.org"
            ),
            organisation_marker=os.environ.get("RAIDSEARCH_ORGANISATION_MARKER", "ror.org"),
            artifact_url_template=os.environ.get(
                "RAIDSEARCH_ARTIFACT_TEMPLATE", DEFAULT_ARTIFACT_TEMPLATE
            ),
            download_dir=Path(os.environ.get("RAIDSEARCH_DOWNLOAD_DIR", DEFAULT_DOWNLOAD_DIR)),
            pacing_delay=float(os.environ.get("RAIDSEARCH_PACING_DELAY", "1.0")),
            cleanup_delay=float(os.environ.get("RAIDSEARCH_CLEANUP_DELAY", "0.1")),
            request_timeout=float(os.environ.get("RAIDSEARCH_TIMEOUT", "30")),
            reset_artifacts_per_search=_env_flag("RAIDSEARCH_RESET_PER_SEARCH"),
            log_level=os.environ.get("RAIDSEARCH_LOG_LEVEL", "INFO"),
        )


def _env_flag(key: str) -> bool:
    return os.environ.get(key, "").strip().lower() in {"1", "true", "yes", "on"}


def get_settings() -> Settings:
    """Convenience accessor for lazy modules."""
    settings = Settings.load()
    settings.ensure_directories()
    return settings
