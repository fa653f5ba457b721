"""Samples, their traces, and batches of samples."""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Trace:
    """Metadata recording one step that produced or changed a sample."""

    values: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        """Return the trace as a JSON object."""
        return copy.deepcopy(self.values)

    @classmethod
    def from_json(cls, data: Any) -> Trace:
        """Build a trace from a JSON object."""
        if not isinstance(data, Mapping):
            raise ValueError("trace must be a JSON object")
        return cls(copy.deepcopy(dict(data)))


@dataclass
class Sample:
    """A piece of content together with the traces of how it came to be."""

    content: str
    traces: list[Trace] = field(default_factory=list)

    def transform(self, func: Callable[[str], tuple[Trace, str]]) -> Sample:
        """Return a new sample whose content is rewritten by ``func``.

        ``func`` receives the content and returns a trace and the new content;
        the trace is appended to the existing ones.
        """
        trace, content = func(self.content)
        return Sample(content, [*self.traces, trace])

    def to_json(self) -> dict[str, Any]:
        """Return the sample as a JSON object."""
        return {
            "traces": [trace.to_json() for trace in self.traces],
            "content": self.content,
        }

    @classmethod
    def from_json(cls, data: Any) -> Sample:
        """Build a sample from a JSON object."""
        if not isinstance(data, Mapping):
            raise ValueError("sample must be a JSON object")
        try:
            traces = data["traces"]
            content = data["content"]
        except KeyError as exc:
            raise ValueError(f"sample is missing field {exc.args[0]!r}") from exc
        if not isinstance(content, str):
            raise ValueError("sample content must be a string")
        if not isinstance(traces, list):
            raise ValueError("sample traces must be a list")
        return cls(content, [Trace.from_json(trace) for trace in traces])


@dataclass
class Batch:
    """An ordered collection of samples."""

    samples: list[Sample] = field(default_factory=list)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples)

    def __len__(self) -> int:
        return len(self.samples)

    def transform(self, func: Callable[[Sample], Sample | None]) -> Batch:
        """Map every sample through ``func``, dropping those it maps to None."""
        return Batch([result for sample in self.samples if (result := func(sample)) is not None])

    def to_json(self) -> list[dict[str, Any]]:
        """Return the batch as a JSON array."""
        return [sample.to_json() for sample in self.samples]

    @classmethod
    def from_json(cls, data: Any) -> Batch:
        """Build a batch from a JSON array."""
        if not isinstance(data, list):
            raise ValueError("batch must be a JSON array")
        return cls([Sample.from_json(sample) for sample in data])