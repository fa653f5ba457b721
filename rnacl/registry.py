"""Registry of operations, with a process-wide default instance."""

from __future__ import annotations

import logging
import threading

from .errors import OperationExistsError, OperationNotFoundError
from .operation import Operation

log = logging.getLogger(__name__)


class Registry:
    """Thread-safe mapping from operation IDs to operations."""

    def __init__(self) -> None:
        self._ops: dict[str, Operation] = {}
        self._lock = threading.RLock()

    def __contains__(self, op_id: object) -> bool:
        with self._lock:
            return op_id in self._ops

    def __len__(self) -> int:
        with self._lock:
            return len(self._ops)

    def register(self, op_id: str, operation: Operation) -> None:
        """Add ``operation`` under ``op_id``; an ID can be registered once only."""
        with self._lock:
            if op_id in self._ops:
                log.warning(
                    "an operation with ID '%s' is already registered, ignoring registration",
                    op_id,
                )
                raise OperationExistsError(op_id)
            log.info("registering operation '%s'", op_id)
            self._ops[op_id] = operation

    def resolve(self, op_id: str) -> Operation:
        """Return the operation registered under ``op_id``."""
        with self._lock:
            try:
                return self._ops[op_id]
            except KeyError:
                raise OperationNotFoundError(op_id) from None

    def all_ops(self) -> dict[str, Operation]:
        """Return a copy of every registered operation, keyed by ID."""
        with self._lock:
            return dict(self._ops)


_DEFAULT_REGISTRY = Registry()


def default_registry() -> Registry:
    """Return the process-wide registry."""
    return _DEFAULT_REGISTRY


def register_op(op_id: str, operation: Operation) -> None:
    """Register an operation in the process-wide registry."""
    _DEFAULT_REGISTRY.register(op_id, operation)


def resolve_op(op_id: str) -> Operation:
    """Look up an operation in the process-wide registry."""
    return _DEFAULT_REGISTRY.resolve(op_id)


def all_ops() -> dict[str, Operation]:
    """Return every operation in the process-wide registry."""
    return _DEFAULT_REGISTRY.all_ops()