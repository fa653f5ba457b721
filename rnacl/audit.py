"""Auditing node outputs against the baseline, and acknowledging changes."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from typing import TextIO

from . import ui
from .commands import CommandError, Session
from .node import NodeId
from .sample import Batch
from .snapshot import BatchDiff, SamplePresence, Snapshot, SnapshotEntry


def _print(session: Session, text: str) -> None:
    print(text, file=session.out if session.out is not None else sys.stdout)


def audit(session: Session, dry: bool = False) -> dict[NodeId, list[str]]:
    """Evaluate every node, compare with the baseline and report what needs acking.

    Returns the attributes of each node that is dirty or stale. Unless ``dry``,
    the captured snapshot becomes the pending one.
    """
    ledger = session.ledger()
    captured = ledger.capture_snapshot(session.registry)
    baseline = ledger.load_baseline_snapshot()

    unacked: dict[NodeId, list[str]] = {}
    diffs = captured.diff(baseline)
    for node_id, (own_diff, dep_diffs) in sorted(diffs.items(), key=lambda item: item[0]):
        samples = own_diff.sample_diff()
        removed = sum(1 for _, presence in samples if presence is SamplePresence.ONLY_BEFORE)
        added = sum(1 for _, presence in samples if presence is SamplePresence.ONLY_AFTER)

        attributes = []
        if removed or added:
            attributes.append(f"dirty (-{removed} +{added})")

        stale = sum(
            1
            for _, dep_diff in dep_diffs
            if any(presence is not SamplePresence.BOTH for _, presence in dep_diff.sample_diff())
        )
        if stale:
            attributes.append(f"stale ({stale})")

        if attributes:
            unacked[node_id] = attributes
            _print(session, f"{node_id}: {', '.join(attributes)}")

    ui.info("ok!" if not unacked else f"{len(unacked)} not ack'd")

    if not dry:
        ledger.save_pending_snapshot(captured)
    return unacked


def _apply(
    diff: BatchDiff,
    batch: Batch,
    ack_all: bool,
    ask: Callable[[], bool],
    out: TextIO | None,
) -> None:
    for sample, presence in diff.sample_diff():
        if presence is SamplePresence.BOTH:
            continue
        if not ack_all:
            ui.display_sample_diff(sample, presence, out)
            if not ask():
                continue
        if presence is SamplePresence.ONLY_BEFORE:
            batch.samples[:] = [existing for existing in batch.samples if existing != sample]
        else:
            batch.samples.append(sample)


def ack(
    session: Session,
    node_ids: Iterable[str] = (),
    dependencies: Iterable[str] = (),
    ack_all: bool = False,
    prompt: Callable[[], bool] | None = None,
) -> Snapshot:
    """Move differences between the pending snapshot and the baseline into the baseline.

    Without ``node_ids`` every node of the pending snapshot is acked. With
    ``dependencies`` the recorded batches of those dependency nodes are acked
    instead of the node's own batch. Unless ``ack_all``, ``prompt`` is asked
    about every changed sample. Returns the saved baseline.
    """
    ledger = session.ledger()
    explicit = [session.resolve_node_id(ledger, node_id) for node_id in node_ids]
    dep_ids = [session.resolve_node_id(ledger, dep) for dep in dependencies]

    pending = ledger.load_pending_snapshot()
    baseline = ledger.load_baseline_snapshot()
    diffs = pending.diff(baseline)
    ask = prompt if prompt is not None else (lambda: ask_ack(session.stdin, session.out))

    targets = explicit or list(pending.entries)
    for node_id in targets:
        try:
            own_diff, dep_diffs = diffs.pop(node_id)
        except KeyError:
            raise CommandError("node absent in both pending and baseline snapshot") from None

        entry = baseline.entries.setdefault(node_id, SnapshotEntry())
        if not dep_ids:
            _apply(own_diff, entry.batch, ack_all, ask, session.out)
            continue

        by_dep = dict(dep_diffs)
        for dep_id in dep_ids:
            _print(session, f"dependency: {dep_id}")
            dep_diff = by_dep.get(dep_id)
            if dep_diff is None:
                raise CommandError(f"node {node_id} records no dependency {dep_id}")
            _apply(dep_diff, entry.dependencies.setdefault(dep_id, Batch()), ack_all, ask, session.out)

    ledger.save_baseline_snapshot(baseline)
    return baseline


def ask_ack(stdin: TextIO | None = None, out: TextIO | None = None) -> bool:
    """Ask whether to ack until the answer is 'y' or 'n'."""
    stdin = stdin if stdin is not None else sys.stdin
    out = out if out is not None else sys.stdout
    while True:
        print("ack? y/n: ", file=out)
        line = stdin.readline()
        if not line:
            raise CommandError("no answer given: end of input")
        choice = line.strip()
        if choice == "y":
            return True
        if choice == "n":
            return False
        ui.warn(f"invalid input '{choice}'")