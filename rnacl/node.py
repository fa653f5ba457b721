"""Nodes: a described pipeline with dependencies on other nodes."""

from __future__ import annotations

import os
import random as _random
import secrets
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .pipeline import Pipeline


@dataclass(frozen=True, order=True)
class NodeId:
    """Identifier of a node; also the name of its file in the ledger."""

    value: str

    def __str__(self) -> str:
        return self.value

    @classmethod
    def for_path(cls, path: str | os.PathLike[str]) -> NodeId:
        """Return the ID of the node stored at ``path``."""
        name = Path(path).name
        if not name:
            raise ValueError(f"node path has no file name: {path}")
        return cls(name)

    @classmethod
    def random(cls, rng: _random.Random | None = None) -> NodeId:
        """Return a new ID of four random bytes in hex."""
        data = rng.randbytes(4) if rng is not None else secrets.token_bytes(4)
        return cls(data.hex())


@dataclass
class Node:
    """A node in the ledger."""

    id: NodeId = field(default_factory=NodeId.random)
    description: str | None = None
    dependencies: list[NodeId] = field(default_factory=list)
    pipeline: Pipeline = field(default_factory=Pipeline)

    def to_json(self) -> dict[str, Any]:
        """Return the node as a JSON object; the ID is not stored."""
        return {
            "description": self.description,
            "dependencies": [str(dep) for dep in self.dependencies],
            "pipeline": self.pipeline.to_json(),
        }

    @classmethod
    def from_json(cls, data: Any, node_id: NodeId | None = None) -> Node:
        """Build a node from a JSON object, giving it ``node_id`` or a random ID."""
        if not isinstance(data, Mapping):
            raise ValueError("node must be a JSON object")
        description = data.get("description")
        if description is not None and not isinstance(description, str):
            raise ValueError("node description must be a string or null")
        try:
            dependencies = data["dependencies"]
            pipeline = data["pipeline"]
        except KeyError as exc:
            raise ValueError(f"node is missing field {exc.args[0]!r}") from exc
        if not isinstance(dependencies, list) or not all(isinstance(d, str) for d in dependencies):
            raise ValueError("node dependencies must be a list of strings")
        return cls(
            id=node_id if node_id is not None else NodeId.random(),
            description=description,
            dependencies=[NodeId(dep) for dep in dependencies],
            pipeline=Pipeline.from_json(pipeline),
        )