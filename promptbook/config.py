"""
Configuration for PromptBook, read from environment variables.

A .env file in the working directory (or the path in PROMPTBOOK_ENV_FILE)
is loaded first when present.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

DEFAULT_CONTENT_DIR = "content"
DEFAULT_ARCHIVE_DIR = "skills"
DEFAULT_PORT = 3000
DEFAULT_WORKERS = 4
DEFAULT_SITE_TITLE = "AI Prompts for Coding"


@dataclass(frozen=True)
class Settings:
    content_dir: Path = Path(DEFAULT_CONTENT_DIR)
    archive_dir: Path = Path(DEFAULT_ARCHIVE_DIR)
    build_workers: int = DEFAULT_WORKERS
    log_level: str = "INFO"
    cors_origins: str = "*"
    port: int = DEFAULT_PORT
    site_title: str = DEFAULT_SITE_TITLE

    @property
    def allowed_origins(self) -> List[str]:
        if self.cors_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def load_env(env_file: Optional[Path] = None) -> bool:
    """Load a .env file if present. Returns True if one was loaded."""
    env_path = Path(env_file or os.environ.get("PROMPTBOOK_ENV_FILE", ".env"))
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"Loaded environment from {env_path}")
        return True
    return False


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build Settings from the environment (after loading .env)."""
    load_env(env_file)

    return Settings(
        content_dir=Path(os.environ.get("CONTENT_DIR", DEFAULT_CONTENT_DIR)),
        archive_dir=Path(os.environ.get("ARCHIVE_DIR", DEFAULT_ARCHIVE_DIR)),
        build_workers=int(os.environ.get("CATALOG_BUILD_WORKERS", str(DEFAULT_WORKERS))),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        cors_origins=os.environ.get("CORS_ORIGINS", "*"),
        port=int(os.environ.get("PORT", str(DEFAULT_PORT))),
        site_title=os.environ.get("SITE_TITLE", DEFAULT_SITE_TITLE),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
