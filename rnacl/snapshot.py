"""Snapshots of every node's output and the differences between them."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .node import NodeId
from .sample import Batch, Sample


class SamplePresence(enum.Enum):
    """Which side of a comparison a sample appears on."""

    ONLY_BEFORE = "only_before"
    ONLY_AFTER = "only_after"
    BOTH = "both"


def _copy_batch(batch: Batch | None) -> Batch | None:
    return None if batch is None else Batch(list(batch.samples))


@dataclass
class BatchDiff:
    """The same batch as seen in two snapshots; either side may be absent."""

    before: Batch | None = None
    after: Batch | None = None

    def sample_diff(self) -> list[tuple[Sample, SamplePresence]]:
        """Pair every sample with where it appears.

        Samples from before come first, in order; samples only found after follow.
        """
        samples_before = self.before.samples if self.before is not None else []
        samples_after = self.after.samples if self.after is not None else []

        result = [
            (sample, SamplePresence.BOTH if sample in samples_after else SamplePresence.ONLY_BEFORE)
            for sample in samples_before
        ]
        for sample in samples_after:
            if not any(existing == sample for existing, _ in result):
                result.append((sample, SamplePresence.ONLY_AFTER))
        return result


@dataclass
class SnapshotEntry:
    """A node's output batch and the batches of its dependencies."""

    batch: Batch = field(default_factory=Batch)
    dependencies: dict[NodeId, Batch] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        """Return the entry as a JSON object."""
        return {
            "batch": self.batch.to_json(),
            "dependencies": {str(node_id): batch.to_json() for node_id, batch in self.dependencies.items()},
        }

    @classmethod
    def from_json(cls, data: Any) -> SnapshotEntry:
        """Build an entry from a JSON object."""
        if not isinstance(data, Mapping):
            raise ValueError("snapshot entry must be a JSON object")
        try:
            batch = data["batch"]
            dependencies = data["dependencies"]
        except KeyError as exc:
            raise ValueError(f"snapshot entry is missing field {exc.args[0]!r}") from exc
        if not isinstance(dependencies, Mapping):
            raise ValueError("snapshot entry dependencies must be a JSON object")
        return cls(
            Batch.from_json(batch),
            {NodeId(key): Batch.from_json(value) for key, value in dependencies.items()},
        )


@dataclass
class Snapshot:
    """The entries of every node at one moment, keyed by node ID."""

    entries: dict[NodeId, SnapshotEntry] = field(default_factory=dict)

    def diff(self, before: Snapshot) -> dict[NodeId, tuple[BatchDiff, list[tuple[NodeId, BatchDiff]]]]:
        """Compare ``before`` with this snapshot, node by node.

        Each node present in either snapshot maps to the diff of its own batch and
        the diffs of every dependency batch recorded on either side.
        """
        before_entries = before.entries
        after_entries = self.entries
        node_ids = list(dict.fromkeys([*before_entries, *after_entries]))

        result: dict[NodeId, tuple[BatchDiff, list[tuple[NodeId, BatchDiff]]]] = {}
        for node_id in node_ids:
            entry_before = before_entries.get(node_id)
            entry_after = after_entries.get(node_id)
            present = [entry for entry in (entry_before, entry_after) if entry is not None]
            dep_ids = list(dict.fromkeys(dep for entry in present for dep in entry.dependencies))

            dep_diffs = [
                (
                    dep_id,
                    BatchDiff(
                        before=_copy_batch(entry_before.dependencies.get(dep_id)) if entry_before else None,
                        after=_copy_batch(entry_after.dependencies.get(dep_id)) if entry_after else None,
                    ),
                )
                for dep_id in dep_ids
            ]
            own_diff = BatchDiff(
                before=_copy_batch(entry_before.batch) if entry_before else None,
                after=_copy_batch(entry_after.batch) if entry_after else None,
            )
            result[node_id] = (own_diff, dep_diffs)
        return result

    def to_json(self) -> dict[str, Any]:
        """Return the snapshot as a JSON object keyed by node ID."""
        return {str(node_id): entry.to_json() for node_id, entry in self.entries.items()}

    @classmethod
    def from_json(cls, data: Any) -> Snapshot:
        """Build a snapshot from a JSON object keyed by node ID."""
        if not isinstance(data, Mapping):
            raise ValueError("snapshot must be a JSON object")
        return cls({NodeId(key): SnapshotEntry.from_json(value) for key, value in data.items()})