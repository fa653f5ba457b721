"""Operations that ship with the command-line tool."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from .errors import OperationError
from .operation import Operation
from .registry import Registry, default_registry
from .sample import Batch, Sample, Trace

HEADS_NUMS_ID = "heads.nums"
INCREMENT_ID = "increment"

_INTEGER = re.compile(r"[+-]?[0-9]+")


def _option(options: Any, key: str) -> Any:
    if not isinstance(options, Mapping) or key not in options:
        raise OperationError(f"missing option '{key}'")
    return options[key]


def _json_text(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def heads_nums(batch: Batch, options: Any) -> Batch:
    """Produce two samples holding the JSON text of options 'a' and 'b'.

    The input batch is ignored; this operation starts a pipeline.
    """
    return Batch(
        [
            Sample(
                _json_text(_option(options, source)),
                [Trace({"_op": HEADS_NUMS_ID, "src": source})],
            )
            for source in ("a", "b")
        ]
    )


def increment(batch: Batch, options: Any) -> Batch:
    """Add the integer option 'amount' to every sample's integer content."""
    amount = _option(options, "amount")
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise OperationError("option 'amount' must be an integer")

    def bump(sample: Sample) -> Sample:
        if not _INTEGER.fullmatch(sample.content):
            raise OperationError(f"sample content is not an integer: {sample.content!r}")
        value = int(sample.content)
        return sample.transform(lambda _content: (Trace({"_op": INCREMENT_ID}), str(value + amount)))

    return batch.transform(bump)


def register_builtin_ops(registry: Registry | None = None) -> Registry:
    """Register the built-in operations and return the registry used."""
    if registry is None:
        registry = default_registry()
    registry.register(HEADS_NUMS_ID, Operation("two numbers, 'a' and 'b'", heads_nums))
    registry.register(INCREMENT_ID, Operation("increment all inputs by 'amount'", increment))
    return registry