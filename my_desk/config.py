"""Configuration helpers for My Desk."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .auth import Role, parse_role

DEFAULT_API_BASE = "http://localhost:4000"


@dataclass(slots=True)
class ServerSettings:
    """Runtime configuration for the Remote Store API."""

    data_dir: Path
    inward_dir: Path
    outward_dir: Path
    api_tokens: Dict[str, Role]
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass(slots=True)
class ClientSettings:
    """Runtime configuration for the migrating client."""

    api_base: str
    api_token: str
    local_db_path: Path
    http_timeout: float = 10.0


def _load_env(env_file: Optional[str]) -> None:
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()


def parse_api_tokens(raw: str) -> Dict[str, Role]:
    """Parse ``token:role`` pairs separated by commas."""

    tokens: Dict[str, Role] = {}
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        token, sep, role = chunk.rpartition(":")
        if not sep or not token:
            raise RuntimeError(f"Invalid MYDESK_API_TOKENS entry: {chunk!r}")
        tokens[token.strip()] = parse_role(role)
    return tokens


def load_server_settings(env_file: str | None = None) -> ServerSettings:
    """Load API server settings from the environment."""

    _load_env(env_file)

    data_dir = Path(os.getenv("MYDESK_DATA_DIR", "profile")).expanduser()
    inward_dir = Path(os.getenv("INWARD_DIR", str(data_dir / "inward"))).expanduser()
    outward_dir = Path(os.getenv("OUTWARD_DIR", str(data_dir / "outward"))).expanduser()

    raw_tokens = os.getenv("MYDESK_API_TOKENS")
    if not raw_tokens:
        raise RuntimeError("MYDESK_API_TOKENS must be configured")
    api_tokens = parse_api_tokens(raw_tokens)
    if not api_tokens:
        raise RuntimeError("MYDESK_API_TOKENS must contain at least one token")

    origins = [
        origin.strip()
        for origin in os.getenv("MYDESK_CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]

    return ServerSettings(
        data_dir=data_dir,
        inward_dir=inward_dir,
        outward_dir=outward_dir,
        api_tokens=api_tokens,
        cors_origins=origins or ["*"],
    )


def load_client_settings(env_file: str | None = None) -> ClientSettings:
    """Load migrating-client settings from the environment."""

    _load_env(env_file)

    api_token = os.getenv("MYDESK_API_TOKEN")
    if not api_token:
        raise RuntimeError("MYDESK_API_TOKEN must be configured")

    return ClientSettings(
        api_base=os.getenv("MYDESK_API_BASE", DEFAULT_API_BASE).rstrip("/"),
        api_token=api_token,
        local_db_path=Path(os.getenv("MYDESK_LOCAL_DB", "mydesk_local.db")).expanduser(),
        http_timeout=float(os.getenv("MYDESK_HTTP_TIMEOUT", "10")),
    )


__all__ = [
    "ServerSettings",
    "ClientSettings",
    "parse_api_tokens",
    "load_server_settings",
    "load_client_settings",
]
