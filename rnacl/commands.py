"""The actions behind each command of the command-line tool."""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, TextIO

from . import ui
from .errors import RnaclError
from .ledger import Ledger
from .node import Node, NodeId
from .operation import Operation
from .pipeline import Stage
from .registry import Registry, default_registry
from .reuse import get_reused, remove_reused, set_reused
from .sample import Batch


class CommandError(RnaclError):
    """A command cannot act on the arguments it was given."""


def _compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def _pretty(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _parse_options(text: str | None) -> Any:
    if text is None:
        return None
    try:
        return json.loads(text)
    except ValueError as exc:
        raise CommandError(f"invalid options: {exc}") from exc


class Session:
    """The context commands run in: working directory, registry and streams."""

    def __init__(
        self,
        cwd: str | os.PathLike[str] | None = None,
        registry: Registry | None = None,
        out: TextIO | None = None,
        stdin: TextIO | None = None,
        reuse_path: str | os.PathLike[str] | None = None,
    ) -> None:
        self.cwd = Path(cwd) if cwd is not None else None
        self.registry = registry if registry is not None else default_registry()
        self.out = out
        self.stdin = stdin
        self.reuse_path = Path(reuse_path) if reuse_path is not None else None

    # Helpers

    def _print(self, text: str) -> None:
        print(text, file=self.out if self.out is not None else sys.stdout)

    def _working_dir(self) -> Path:
        return self.cwd if self.cwd is not None else Path.cwd()

    def ledger(self) -> Ledger:
        """Return the ledger of the working directory."""
        return Ledger.find_for_working_dir(self._working_dir())

    def _explicit_or_reused(self, ledger: Ledger, node_id: str | None) -> str:
        reused = get_reused(ledger, self.reuse_path)
        if node_id is not None and node_id != "-":
            return node_id
        if reused is not None:
            return str(reused)
        raise CommandError("node ID not specified, and not reusing")

    def resolve_node_id(self, ledger: Ledger, node_id: str | None) -> NodeId:
        """Resolve an ID or prefix, falling back to the reused node for None or '-'."""
        return ledger.resolve_node_id(self._explicit_or_reused(ledger, node_id))

    def resolve_node(self, ledger: Ledger, node_id: str | None) -> Node:
        """Load a node named like ``resolve_node_id`` accepts."""
        return ledger.resolve_node(self._explicit_or_reused(ledger, node_id))

    # Ledger

    def init_ledger(self, directory: str | os.PathLike[str] | None = None) -> Ledger:
        """Create a ledger in ``directory`` or the working directory."""
        return Ledger.create(directory if directory is not None else self._working_dir())

    # Nodes

    def reuse_node(
        self,
        node_id: str | None = None,
        unset: bool = False,
        duration: timedelta | None = None,
    ) -> NodeId | None:
        """Set, clear or show the reused node."""
        ledger = self.ledger()
        if node_id is not None:
            resolved = ledger.resolve_node_id(node_id)
            self._print(str(resolved))
            expire = datetime.now(timezone.utc) + duration if duration is not None else None
            set_reused(ledger, resolved, expire, self.reuse_path)
            return resolved

        current = get_reused(ledger, self.reuse_path)
        if unset:
            if current is None:
                ui.error("no reuse node set")
                return None
            self._print(str(current))
            remove_reused(self.reuse_path)
            return current

        if current is None:
            print("no reuse node set", file=sys.stderr)
        else:
            self._print(str(current))
        return current

    def add_node(
        self, node_id: str | None = None, description: str | None = None, no_use: bool = False
    ) -> Node:
        """Create a node and, unless told not to, reuse it."""
        node = Node(
            id=NodeId(node_id) if node_id is not None else NodeId.random(),
            description=description,
        )
        ledger = self.ledger()
        ledger.add_node(node)
        self._print(str(node.id))
        if not no_use:
            set_reused(ledger, node.id, None, self.reuse_path)
        return node

    def edit_node(
        self,
        node_id: str | None = None,
        description: str | None = None,
        unset_description: bool = False,
    ) -> Node:
        """Change or remove a node's description."""
        ledger = self.ledger()
        node = self.resolve_node(ledger, node_id)
        if description is not None:
            node.description = description
        if unset_description:
            node.description = None
        ledger.save_node(node)
        self._print(str(node.id))
        return node

    def remove_node(self, node_id: str | None = None) -> NodeId:
        """Delete a node."""
        ledger = self.ledger()
        resolved = self.resolve_node_id(ledger, node_id)
        ledger.remove_node(resolved)
        self._print(str(resolved))
        return resolved

    def list_nodes(self) -> list[Node]:
        """Print each node's ID and description."""
        nodes = self.ledger().load_nodes()
        width = max((len(str(node.id)) for node in nodes), default=0)
        for node in nodes:
            self._print(f"{str(node.id):<{width}}  {node.description if node.description is not None else '-'}")
        return nodes

    def show_node(self, node_id: str | None = None, raw: bool = False, path: bool = False) -> Node:
        """Print a node's details, its raw JSON, or its file path."""
        if raw and path:
            raise CommandError("'raw' and 'path' cannot be used together")
        ledger = self.ledger()
        node = self.resolve_node(ledger, node_id)
        if raw:
            self._print(_pretty(node.to_json()))
        elif path:
            self._print(str(ledger.node_path(node.id)))
        else:
            self._print(
                f"{node.id}\n"
                f"description: {node.description if node.description is not None else 'none'}\n"
                f"dependencies: {' '.join(str(dep) for dep in node.dependencies)}\n"
                f"stages: {len(node.pipeline)}"
            )
        return node

    # Dependencies

    def add_dependencies(
        self,
        node_ids: Iterable[str],
        dependencies: Iterable[str] = (),
        sources: Iterable[str] = (),
        mirror: bool = False,
    ) -> list[Node]:
        """Add dependencies to each of ``node_ids``.

        New dependencies are the named ones, every dependency of the ``sources``
        nodes, and, with ``mirror``, the dependents themselves. A node never
        depends on itself and never twice on the same node.
        """
        ledger = self.ledger()
        dependents = [self.resolve_node_id(ledger, node_id) for node_id in node_ids]
        if not dependents:
            raise CommandError("at least one node ID is required")

        new_dependencies = [self.resolve_node_id(ledger, dep) for dep in dependencies]
        for source in sources:
            new_dependencies.extend(self.resolve_node(ledger, source).dependencies)
        if mirror:
            new_dependencies.extend(dependents)

        updated = []
        for dependent in dependents:
            node = ledger.load_node_for_id(dependent)
            for dep in new_dependencies:
                if dep != dependent and dep not in node.dependencies:
                    ui_log_dependency(dependent, dep)
                    node.dependencies.append(dep)
            ledger.save_node(node)
            updated.append(node)
        return updated

    def remove_dependencies(self) -> Ledger:
        """Check that a ledger is present; removing dependencies takes no arguments yet."""
        return self.ledger()

    # Operations

    def eval_operation(self, operation_id: str, head: bool = False, options: str | None = None) -> Batch:
        """Run one operation on a batch read from stdin, or on an empty batch."""
        parsed = _parse_options(options)
        operation = self.registry.resolve(operation_id)
        if head:
            batch = Batch()
        else:
            stream = self.stdin if self.stdin is not None else sys.stdin
            try:
                batch = Batch.from_json(json.loads(stream.read()))
            except ValueError as exc:
                raise CommandError(f"invalid input batch: {exc}") from exc
        output = operation.eval(batch, parsed)
        self._print(_pretty(output.to_json()))
        return output

    def list_operations(self) -> dict[str, Operation]:
        """Print every registered operation with its description."""
        ops = dict(sorted(self.registry.all_ops().items()))
        width = max((len(op_id) for op_id in ops), default=0)
        for op_id, operation in ops.items():
            self._print(f"{op_id:<{width}}  {operation.description}")
        return ops

    # Pipelines

    def push_stage(
        self,
        node_id: str,
        operation_id: str,
        options: str | None = None,
        index: int | None = None,
    ) -> Node:
        """Add a stage to a node's pipeline."""
        ledger = self.ledger()
        node = self.resolve_node(ledger, node_id)
        self.registry.resolve(operation_id)
        node.pipeline.add(Stage(operation_id, _parse_options(options)), index)
        ledger.save_node(node)
        return node

    def pop_stage(
        self, node_id: str | None = None, index: int | None = None, all_stages: bool = False
    ) -> list[Stage]:
        """Remove the last stage, the stage at ``index``, or every stage."""
        if all_stages and index is not None:
            raise CommandError("'all' and 'index' cannot be used together")
        ledger = self.ledger()
        node = self.resolve_node(ledger, node_id)
        if not node.pipeline.stages:
            raise CommandError("empty pipeline")

        if all_stages:
            removed = list(node.pipeline.stages)
            node.pipeline.stages.clear()
        else:
            removed = [node.pipeline.remove(index)]
        ledger.save_node(node)

        for stage in removed:
            ui.info(f"removed operation '{stage.operation_id}' with options '{_compact(stage.options)}'")
        return removed

    def eval_pipeline(
        self,
        node_id: str | None = None,
        show: Sequence[int] | None = None,
        show_all: bool = False,
        indices: Sequence[int] | None = None,
    ) -> Batch:
        """Evaluate a node's pipeline, printing the chosen stages' outputs.

        Without ``show`` or ``show_all`` only the last stage's output is printed.
        """
        if show_all and show is not None:
            raise CommandError("'show' and 'show_all' cannot be used together")
        ledger = self.ledger()
        node = self.resolve_node(ledger, node_id)
        stage_len = len(node.pipeline)

        selected = [
            (index, stage)
            for index, stage in enumerate(node.pipeline.stages)
            if indices is None or index in indices
        ]
        if not selected:
            raise CommandError("empty pipeline")

        batch = Batch()
        for index, stage in selected:
            ui.info(f"{index}  {stage.operation_id}  {_compact(stage.options)}")
            batch = stage.eval(batch, self.registry)
            if (
                show_all
                or (show is not None and index in show)
                or (show is None and index == stage_len - 1)
            ):
                self._print(_pretty(batch.to_json()))
        return batch

    def list_pipeline(self, node_id: str | None = None) -> list[Stage]:
        """Print each stage's operation and options."""
        node = self.resolve_node(self.ledger(), node_id)
        for stage in node.pipeline:
            self._print(f"{stage.operation_id}  {_compact(stage.options)}")
        return list(node.pipeline.stages)


def ui_log_dependency(node_id: NodeId, dependency: NodeId) -> None:
    import logging

    logging.getLogger(__name__).info("adding dependency to %s: %s", node_id, dependency)