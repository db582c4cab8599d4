from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_PORT = 3001

ALLOWED_ORIGINS: tuple[str, ...] = (
    "https://hobbit-quiz.vercel.app",
    "http://localhost:8080",
)
ALLOWED_METHODS: tuple[str, ...] = ("GET", "POST", "PATCH", "DELETE", "OPTIONS")
ALLOWED_HEADERS: tuple[str, ...] = ("Content-Type", "Authorization", "x-admin-token")


def _getenv_opt_str(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return value


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def async_database_url(url: str) -> str:
    """Rewrite a plain postgres URL to the asyncpg driver form."""
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


@dataclass(frozen=True)
class AdminConfig:
    admin_password: Optional[str] = None
    admin_token: Optional[str] = None
    database_url: Optional[str] = None
    port: int = DEFAULT_PORT
    update_webhook_url: Optional[str] = None
    delete_webhook_url: Optional[str] = None

    @property
    def admin_configured(self) -> bool:
        return bool(self.admin_password or self.admin_token)


def load_config(env_file: Optional[Path] = None) -> AdminConfig:
    # Values already present in the process environment win over .env.
    load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True), override=False)
    return AdminConfig(
        admin_password=_getenv_opt_str("ADMIN_PASSWORD"),
        admin_token=_getenv_opt_str("ADMIN_TOKEN"),
        database_url=_getenv_opt_str("DATABASE_URL"),
        port=_getenv_int("PORT", DEFAULT_PORT),
        update_webhook_url=_getenv_opt_str("N8N_WEBHOOK_UPDATE_URL"),
        delete_webhook_url=_getenv_opt_str("N8N_WEBHOOK_DELETE_URL"),
    )
