"""Application configuration.

Single source of truth for all configuration values.
Loads from environment variables with .env file support.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# =============================================================================
# VERSION - Read from pyproject.toml (single source of truth)
# =============================================================================


def _get_version() -> str:
    """Read version - prefer pyproject.toml, fall back to installed metadata."""
    try:
        import tomllib

        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            with open(pyproject_path, "rb") as f:
                data = tomllib.load(f)
                return data.get("project", {}).get("version", "0.0.0")
    except (OSError, ValueError):
        pass

    try:
        from importlib.metadata import PackageNotFoundError, version

        return version("streamarr")
    except PackageNotFoundError:
        pass

    return "0.0.0"


VERSION = _get_version()


# =============================================================================
# ENVIRONMENT
# =============================================================================

load_dotenv()

BASE_DIR = Path(__file__).parent.parent.parent
DATA_DIR = BASE_DIR / "data"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


class Config:
    """Runtime settings read from the environment.

    Values are resolved when the instance is created, so tests can patch
    the environment and build a fresh Config.
    """

    def __init__(self):
        # Storage
        self.database_path = Path(os.getenv("DATABASE_PATH", DATA_DIR / "streamarr.db"))
        self.stream_cache_path = Path(
            os.getenv("STREAM_CACHE_PATH", DATA_DIR / "stream-url-storage.json")
        )
        self.db_timeout_seconds = _env_float("DB_TIMEOUT_SECONDS", 5.0)

        # Upstream stream URL template
        self.stream_url_domain = os.getenv("STREAM_URL_DOMAIN", "vpt.pixelsport.to")
        self.stream_url_port = _env_int("STREAM_URL_PORT", 443)
        self.stream_url_path = os.getenv("STREAM_URL_PATH", "psportsgate/psportsgate100").strip(
            "/"
        )
        self.legacy_stream_domains = _env_list("LEGACY_STREAM_DOMAINS", ("vp.pixelsport.to",))

        # HTTP server
        self.api_host = os.getenv("API_HOST", "0.0.0.0")
        self.api_port = _env_int("API_PORT", 9196)

        # Logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_dir = Path(os.getenv("LOG_DIR", BASE_DIR / "logs"))
        self.log_json = os.getenv("LOG_FORMAT", "text").strip().lower() == "json"

    def __repr__(self) -> str:
        return (
            f"Config(database_path={self.database_path}, "
            f"stream_cache_path={self.stream_cache_path}, "
            f"stream_url_domain={self.stream_url_domain})"
        )


_config: Config | None = None


def get_config() -> Config:
    """Get the process-wide config, creating it on first use."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() re-reads the environment."""
    global _config
    _config = None
