"""Remembering a node to reuse when a command is given no node ID."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from .errors import RnaclError
from .ledger import Ledger
from .node import NodeId

log = logging.getLogger(__name__)

REUSE_FILE_NAME = ".rnacl_reuse_node"
DEFAULT_REUSE_DURATION = timedelta(minutes=5)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def reuse_node_path() -> Path:
    """Return the file in the user's home directory that records the reused node."""
    try:
        home = Path.home()
    except (RuntimeError, KeyError) as exc:
        raise RnaclError(
            "user has no home directory. cannot get file path for node reuse."
        ) from exc
    return home / REUSE_FILE_NAME


def _encode_time(moment: datetime) -> dict[str, int]:
    delta = moment.astimezone(timezone.utc) - _EPOCH
    micros = delta // timedelta(microseconds=1)
    secs, rest = divmod(micros, 1_000_000)
    return {"secs_since_epoch": secs, "nanos_since_epoch": rest * 1000}


def _decode_time(data: Any) -> datetime:
    secs = data["secs_since_epoch"]
    nanos = data["nanos_since_epoch"]
    if not isinstance(secs, int) or not isinstance(nanos, int):
        raise ValueError("time fields must be integers")
    return _EPOCH + timedelta(seconds=secs, microseconds=nanos // 1000)


def _resolve_path(path: str | os.PathLike[str] | None) -> Path:
    return Path(path) if path is not None else reuse_node_path()


def get_reused(ledger: Ledger, path: str | os.PathLike[str] | None = None) -> NodeId | None:
    """Return the reused node of ``ledger``, if one is set and has not expired."""
    path = _resolve_path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None

    try:
        data = json.loads(content)
        ledger_dir = Path(data["ledger_dir"])
        node_id = data["node_id"]
        if not isinstance(node_id, str):
            raise ValueError("node_id must be a string")
        expire = _decode_time(data["expire"])
    except (ValueError, KeyError, TypeError) as exc:
        raise RnaclError(f"invalid reuse node file {path}: {exc}") from exc

    if expire < datetime.now(timezone.utc):
        log.info("reuse node expired, removing it")
        remove_reused(path)
        return None
    if ledger_dir != ledger.dir:
        return None
    return NodeId(node_id)


def set_reused(
    ledger: Ledger,
    node_id: NodeId,
    expire: datetime | None = None,
    path: str | os.PathLike[str] | None = None,
) -> None:
    """Record ``node_id`` as the reused node of ``ledger`` until ``expire``."""
    path = _resolve_path(path)
    if expire is None:
        expire = datetime.now(timezone.utc) + DEFAULT_REUSE_DURATION
    record = {
        "ledger_dir": str(ledger.dir),
        "node_id": str(node_id),
        "expire": _encode_time(expire),
    }
    log.info("reusing node at %s with %s", path, node_id)
    path.write_text(json.dumps(record, separators=(",", ":")), encoding="utf-8")


def remove_reused(path: str | os.PathLike[str] | None = None) -> None:
    """Forget the reused node; the record must exist."""
    path = _resolve_path(path)
    log.info("removing reuse node at %s", path)
    path.unlink()