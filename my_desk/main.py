"""Entrypoints for the My Desk server, client migration and offline import."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path
from typing import Optional, Sequence

import uvicorn

from .api import create_app
from .client import RemoteClient
from .config import ClientSettings, load_client_settings, load_server_settings
from .importer import import_snapshot, load_snapshot
from .local_store import LocalStore
from .reconciler import MigrationReport, Reconciler, run_startup_migration
from .remote_store import RemoteStore

logger = logging.getLogger("my_desk")


def _configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "info").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler()],
    )


def run() -> None:
    _configure_logging()
    env_file = os.getenv("MYDESK_ENV")
    settings = load_server_settings(env_file)
    app = create_app(settings)
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "4000")),
        log_level=os.getenv("LOG_LEVEL", "info"),
    )


async def migrate_local_data(settings: ClientSettings) -> MigrationReport:
    local = LocalStore(settings.local_db_path)
    async with RemoteClient(
        settings.api_base, settings.api_token, timeout=settings.http_timeout
    ) as client:
        reconciler = Reconciler(
            local,
            client,
            on_busy=lambda active: logger.info("Migration %s", "started" if active else "done"),
        )
        return await run_startup_migration(local, reconciler)


def migrate() -> None:
    _configure_logging()
    settings = load_client_settings(os.getenv("MYDESK_ENV"))
    report = asyncio.run(migrate_local_data(settings))
    if not report.ran:
        logger.info("Local data was already migrated")
        return
    for outcome in report.outcomes.values():
        logger.info(
            "%s: created=%s skipped=%s failed=%s%s",
            outcome.name,
            outcome.created,
            outcome.skipped,
            outcome.failed,
            f" fetch_error={outcome.fetch_error}" if outcome.fetch_error else "",
        )


def import_local(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Import a My Desk local export JSON into the server data directory."
    )
    parser.add_argument("snapshot", type=Path, help="path to the export JSON file")
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="server data directory (defaults to the configured MYDESK_DATA_DIR)",
    )
    args = parser.parse_args(argv)

    _configure_logging()
    if args.data_dir is not None:
        store = RemoteStore(args.data_dir)
    else:
        settings = load_server_settings(os.getenv("MYDESK_ENV"))
        store = RemoteStore(settings.data_dir, settings.inward_dir, settings.outward_dir)
    report = import_snapshot(load_snapshot(args.snapshot), store)
    for key, value in report.as_dict().items():
        print(f"{key}: {value}")


if __name__ == "__main__":  # pragma: no cover
    run()
