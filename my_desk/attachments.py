"""Attachment persistence for register documents."""

from __future__ import annotations

import base64
import binascii
import logging
import re
import time
from pathlib import Path
from typing import Callable, Collection, Optional, Tuple

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]+")
_DATA_URL_MARKER = "base64,"
# Extra attempts after the timestamp suffix also collides.
_MAX_SUFFIX_ATTEMPTS = 100


def _millis() -> int:
    return int(time.time() * 1000)


def safe_filename(name: Optional[str], *, clock: Callable[[], int] = _millis) -> str:
    """Sanitise the stem of ``name`` and keep its extension."""

    raw = Path(name or "").name
    if not raw:
        raw = f"attachment_{clock()}"
    path = Path(raw)
    return f"{_UNSAFE_CHARS.sub('_', path.stem)}{path.suffix}"


def decode_data_url(data_url: Optional[str]) -> Optional[bytes]:
    """Decode the payload of a ``data:...;base64,`` URL."""

    if not data_url:
        return None
    idx = data_url.find(_DATA_URL_MARKER)
    if idx == -1:
        return None
    try:
        return base64.b64decode(data_url[idx + len(_DATA_URL_MARKER):])
    except (binascii.Error, ValueError):
        return None


def _is_reserved(filename: str, reserved: Collection[str]) -> bool:
    return filename.casefold() in {name.casefold() for name in reserved}


def _write_exclusive(path: Path, payload: bytes) -> bool:
    try:
        with path.open("xb") as handle:
            handle.write(payload)
    except FileExistsError:
        return False
    return True


def store_attachment(
    directory: Path,
    name: Optional[str],
    data_url: Optional[str],
    *,
    clock: Callable[[], int] = _millis,
    reserved: Collection[str] = (),
) -> Tuple[str, int]:
    """Write a decoded attachment under ``directory`` without clobbering files.

    A taken or ``reserved`` name gets the current millisecond timestamp
    inserted before the extension. Returns the stored file name and its byte
    size.
    """

    payload = decode_data_url(data_url)
    if payload is None:
        raise ValidationError("Invalid document data")

    directory.mkdir(parents=True, exist_ok=True)
    filename = safe_filename(name, clock=clock)
    if not _is_reserved(filename, reserved) and _write_exclusive(directory / filename, payload):
        return filename, len(payload)

    base = Path(filename)
    stamped = f"{base.stem}_{clock()}"
    candidate = f"{stamped}{base.suffix}"
    for attempt in range(_MAX_SUFFIX_ATTEMPTS):
        if not _is_reserved(candidate, reserved) and _write_exclusive(
            directory / candidate, payload
        ):
            logger.info("Stored %s as %s to avoid a name collision", filename, candidate)
            return candidate, len(payload)
        candidate = f"{stamped}_{attempt + 1}{base.suffix}"
    raise ValidationError(f"Could not allocate a file name for {filename}")


def remove_attachment(
    directory: Path, name: Optional[str], *, reserved: Collection[str] = ()
) -> None:
    """Best-effort removal of a stored attachment; reserved names are kept."""

    if not name:
        return
    path = directory / Path(name).name
    if _is_reserved(path.name, reserved):
        logger.warning("Refusing to remove reserved file %s", path)
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Failed to remove attachment %s: %s", path, exc)


__all__ = ["safe_filename", "decode_data_url", "store_attachment", "remove_attachment"]
