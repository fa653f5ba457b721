"""The on-disk ledger: nodes, their files, and stored snapshots."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import (
    AmbiguousNodeIdError,
    DependencyNodeNotFoundError,
    LedgerError,
    LedgerExistsError,
    LedgerNotDirectoryError,
    LedgerNotFoundError,
    NodeError,
    NodePathExistsError,
    NodePathNotFoundError,
    NoSuchNodeIdError,
)
from .node import Node, NodeId
from .registry import Registry
from .sample import Batch
from .snapshot import Snapshot, SnapshotEntry

log = logging.getLogger(__name__)

LEDGER_DIR_NAME = ".rnacl"


@dataclass(frozen=True)
class Ledger:
    """A ledger rooted at its ``.rnacl`` directory."""

    dir: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "dir", Path(self.dir))

    # Paths

    @staticmethod
    def ledger_dir(path: str | os.PathLike[str]) -> Path:
        """Return where the ledger directory of ``path`` lives."""
        return Path(path) / LEDGER_DIR_NAME

    @staticmethod
    def is_ledger_dir(path: str | os.PathLike[str]) -> bool:
        """Tell whether ``path`` is an existing ledger directory."""
        path = Path(path)
        return path.name == LEDGER_DIR_NAME and path.is_dir()

    @property
    def nodes_dir(self) -> Path:
        return self.dir / "nodes"

    @property
    def snapshots_dir(self) -> Path:
        return self.dir / "snapshots"

    @property
    def snapshot_baseline_path(self) -> Path:
        return self.snapshots_dir / "baseline.json"

    @property
    def snapshot_pending_path(self) -> Path:
        return self.snapshots_dir / "pending.json"

    def node_path(self, node_id: NodeId | str) -> Path:
        """Return the file that holds the node with ``node_id``."""
        return self.nodes_dir / str(node_id)

    # Finding and creating

    @classmethod
    def find_for_working_dir(cls, working_dir: str | os.PathLike[str]) -> Ledger:
        """Return the ledger found in ``working_dir`` or its nearest ancestor."""
        working_dir = Path(working_dir)
        for ancestor in (working_dir, *working_dir.parents):
            try:
                children = sorted(ancestor.iterdir())
            except OSError:
                continue
            for child in children:
                if cls.is_ledger_dir(child):
                    return cls(child)
        raise LedgerNotFoundError(working_dir)

    @classmethod
    def create(cls, working_dir: str | os.PathLike[str]) -> Ledger:
        """Set up a new ledger directory inside ``working_dir``."""
        ledger = cls(cls.ledger_dir(working_dir))
        if ledger.dir.exists():
            if ledger.dir.is_dir():
                raise LedgerExistsError(ledger.dir)
            raise LedgerNotDirectoryError(ledger.dir)

        for directory in (ledger.dir, ledger.nodes_dir, ledger.snapshots_dir):
            log.info("creating %s", directory)
            directory.mkdir()
        for snapshot_path in (ledger.snapshot_baseline_path, ledger.snapshot_pending_path):
            log.info("creating %s", snapshot_path)
            snapshot_path.write_text("{}", encoding="utf-8")
        return ledger

    # Nodes

    def _node_files(self) -> list[Path]:
        files = []
        with os.scandir(self.nodes_dir) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                try:
                    is_file = entry.is_file(follow_symlinks=False)
                except OSError as exc:
                    log.warning("cannot check file type: %s", exc)
                    continue
                if is_file:
                    files.append(Path(entry.path))
                else:
                    log.warning("non-file node entry ignored: %s", entry.path)
        return files

    def node_ids(self) -> list[NodeId]:
        """Return the IDs of every node file in the ledger."""
        return [NodeId.for_path(path) for path in self._node_files()]

    def resolve_node_id(self, node_id: str) -> NodeId:
        """Resolve a full node ID or a unique prefix of one."""
        node_ids = self.node_ids()
        for candidate in node_ids:
            if str(candidate) == node_id:
                return candidate
        matches = [candidate for candidate in node_ids if str(candidate).startswith(node_id)]
        if not matches:
            raise NoSuchNodeIdError(node_id)
        if len(matches) > 1:
            raise AmbiguousNodeIdError(node_id)
        return matches[0]

    def resolve_node(self, node_id: str) -> Node:
        """Load the node named by a full ID or a unique prefix."""
        return self.load_node_for_id(self.resolve_node_id(node_id))

    def load_nodes(self) -> list[Node]:
        """Load every readable node, skipping (and logging) broken ones."""
        nodes = []
        for path in self._node_files():
            try:
                nodes.append(self.load_node_for_path(path))
            except NodeError as exc:
                log.warning("failed to load node %s: %s", path, exc)
        return nodes

    def load_node_for_path(self, path: str | os.PathLike[str]) -> Node:
        """Load the node stored at ``path``; its ID is the file name."""
        path = Path(path)
        if not path.exists():
            raise NodePathNotFoundError(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise NodeError(str(exc)) from exc
        try:
            return Node.from_json(json.loads(text), NodeId.for_path(path))
        except ValueError as exc:
            raise NodeError(f"invalid node file {path}: {exc}") from exc

    def load_node_for_id(self, node_id: NodeId) -> Node:
        """Load the node with exactly ``node_id``."""
        return self.load_node_for_path(self.node_path(node_id))

    def save_node(self, node: Node) -> None:
        """Overwrite the file of an existing node."""
        path = self.node_path(node.id)
        if not path.exists():
            raise NodePathNotFoundError(path)
        _write_node(path, node)

    def add_node(self, node: Node) -> None:
        """Store a new node; its file must not exist yet."""
        path = self.node_path(node.id)
        if path.exists():
            raise NodePathExistsError(path)
        _write_node(path, node)
        self.save_node(node)

    def remove_node(self, node_id: NodeId) -> None:
        """Delete the file of the node with ``node_id``."""
        path = self.node_path(node_id)
        if not path.exists():
            raise NodePathNotFoundError(path)
        try:
            path.unlink()
        except OSError as exc:
            raise NodeError(str(exc)) from exc

    # Snapshots

    def capture_snapshot(self, registry: Registry | None = None) -> Snapshot:
        """Evaluate every node's pipeline and record it with its dependencies' batches."""
        evaluated: dict[NodeId, tuple[list[NodeId], Batch]] = {
            node.id: (list(node.dependencies), node.pipeline.eval(registry))
            for node in self.load_nodes()
        }

        def dependency_batches(dep_ids: list[NodeId]) -> dict[NodeId, Batch]:
            batches = {}
            for dep_id in dep_ids:
                try:
                    batches[dep_id] = Batch(list(evaluated[dep_id][1].samples))
                except KeyError:
                    raise DependencyNodeNotFoundError(dep_id) from None
            return batches

        return Snapshot(
            {
                node_id: SnapshotEntry(Batch(list(batch.samples)), dependency_batches(deps))
                for node_id, (deps, batch) in evaluated.items()
            }
        )

    def _load_snapshot(self, path: Path) -> Snapshot:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise LedgerError(str(exc)) from exc
        try:
            return Snapshot.from_json(json.loads(text))
        except ValueError as exc:
            raise LedgerError(f"invalid snapshot {path}: {exc}") from exc

    def _save_snapshot(self, path: Path, snapshot: Snapshot) -> None:
        try:
            path.write_text(_dump_pretty(snapshot.to_json()), encoding="utf-8")
        except OSError as exc:
            raise LedgerError(str(exc)) from exc

    def load_pending_snapshot(self) -> Snapshot:
        return self._load_snapshot(self.snapshot_pending_path)

    def save_pending_snapshot(self, snapshot: Snapshot) -> None:
        self._save_snapshot(self.snapshot_pending_path, snapshot)

    def load_baseline_snapshot(self) -> Snapshot:
        return self._load_snapshot(self.snapshot_baseline_path)

    def save_baseline_snapshot(self, snapshot: Snapshot) -> None:
        self._save_snapshot(self.snapshot_baseline_path, snapshot)


def _dump_pretty(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def _write_node(path: Path, node: Node) -> None:
    try:
        path.write_text(_dump_pretty(node.to_json()), encoding="utf-8")
    except OSError as exc:
        raise NodeError(str(exc)) from exc