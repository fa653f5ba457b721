"""Named operations that turn one batch into another."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .errors import OperationError
from .sample import Batch

OperationFunction = Callable[[Batch, Any], Batch]


@dataclass(frozen=True, eq=False)
class Operation:
    """A described function from a batch and JSON options to a new batch."""

    description: str
    function: OperationFunction

    def eval(self, batch: Batch, options: Any = None) -> Batch:
        """Run the operation on ``batch`` with ``options``."""
        try:
            return self.function(batch, options)
        except OSError as exc:
            raise OperationError(str(exc)) from exc