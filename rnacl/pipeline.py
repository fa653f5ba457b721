"""Pipelines: ordered stages, each applying a registered operation."""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import StageIndexError
from .registry import Registry, default_registry
from .sample import Batch


@dataclass
class Stage:
    """One step of a pipeline: an operation ID and its JSON options."""

    operation_id: str
    options: Any = None

    def eval(self, batch: Batch, registry: Registry | None = None) -> Batch:
        """Apply this stage's operation to ``batch``."""
        registry = registry if registry is not None else default_registry()
        return registry.resolve(self.operation_id).eval(batch, self.options)

    def to_json(self) -> dict[str, Any]:
        """Return the stage as a JSON object."""
        return {"operation_id": self.operation_id, "options": copy.deepcopy(self.options)}

    @classmethod
    def from_json(cls, data: Any) -> Stage:
        """Build a stage from a JSON object."""
        if not isinstance(data, Mapping):
            raise ValueError("stage must be a JSON object")
        try:
            operation_id = data["operation_id"]
            options = data["options"]
        except KeyError as exc:
            raise ValueError(f"stage is missing field {exc.args[0]!r}") from exc
        if not isinstance(operation_id, str):
            raise ValueError("stage operation_id must be a string")
        return cls(operation_id, copy.deepcopy(options))


@dataclass
class Pipeline:
    """An ordered list of stages evaluated from an empty batch."""

    stages: list[Stage] = field(default_factory=list)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.stages)

    def __len__(self) -> int:
        return len(self.stages)

    def add(self, stage: Stage, index: int | None = None) -> None:
        """Insert ``stage`` at ``index``, or append it when no index is given."""
        if index is None:
            self.stages.append(stage)
            return
        if index < 0 or index > len(self.stages):
            raise StageIndexError(index, len(self.stages))
        self.stages.insert(index, stage)

    def remove(self, index: int | None = None) -> Stage:
        """Remove and return the stage at ``index``, or the last one."""
        if index is None:
            if not self.stages:
                raise StageIndexError(0, 0)
            return self.stages.pop()
        if index < 0 or index >= len(self.stages):
            raise StageIndexError(index, len(self.stages))
        return self.stages.pop(index)

    def eval(self, registry: Registry | None = None) -> Batch:
        """Feed an empty batch through every stage in turn."""
        batch = Batch()
        for stage in self.stages:
            batch = stage.eval(batch, registry)
        return batch

    def to_json(self) -> list[dict[str, Any]]:
        """Return the pipeline as a JSON array of stages."""
        return [stage.to_json() for stage in self.stages]

    @classmethod
    def from_json(cls, data: Any) -> Pipeline:
        """Build a pipeline from a JSON array of stages."""
        if not isinstance(data, list):
            raise ValueError("pipeline must be a JSON array")
        return cls([Stage.from_json(stage) for stage in data])