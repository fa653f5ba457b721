"""Exception hierarchy for ledgers, nodes, operations, pipelines and the registry."""

from __future__ import annotations

import os
from pathlib import Path


class RnaclError(Exception):
    """Base class of every error raised by the package."""


class LedgerError(RnaclError):
    """A ledger could not be found, created or used."""


class LedgerNotFoundError(LedgerError):
    """No ledger directory exists at or above a working directory."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        super().__init__(f"no ledger found at {self.path}")


class LedgerExistsError(LedgerError):
    """A ledger is already initialized at the requested place."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        super().__init__(f"ledger already initialized at {self.path}")


class LedgerNotDirectoryError(LedgerError):
    """The ledger path exists but is not a directory."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        super().__init__(f"path already exists, but is not a directory: {self.path}")


class DependencyNodeNotFoundError(LedgerError):
    """A node depends on a node that the ledger does not hold."""

    def __init__(self, node_id: object) -> None:
        self.node_id = node_id
        super().__init__(f"dependency node could not be found: {node_id}")


class NodeError(RnaclError):
    """A node could not be found, stored or resolved."""


class NodePathExistsError(NodeError):
    """A node file already exists where a new node should go."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        super().__init__(f"node already exists at {self.path}")


class NodePathNotFoundError(NodeError):
    """No node file exists at a path."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        super().__init__(f"node not found at {self.path}")


class NoSuchNodeIdError(NodeError):
    """No node matches an ID or ID prefix."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"node not found: {node_id}")


class AmbiguousNodeIdError(NodeError):
    """More than one node matches an ID prefix."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"ambiguous node ID: {node_id}")


class OperationError(RnaclError):
    """An operation failed while it was evaluated."""


class PipelineError(RnaclError):
    """A pipeline could not be changed or evaluated."""


class EmptyPipelineError(PipelineError):
    """The pipeline has no stages."""

    def __init__(self) -> None:
        super().__init__("pipeline is empty")


class StageIndexError(PipelineError):
    """A stage index lies outside the pipeline."""

    def __init__(self, index: int, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__(f"index {index} is larger than pipeline's length {length}")


class RegistryError(RnaclError):
    """An operation could not be registered or looked up."""


class OperationExistsError(RegistryError):
    """An operation with the same ID is already registered."""

    def __init__(self, op_id: str) -> None:
        self.op_id = op_id
        super().__init__(f"operation with same ID already exists: {op_id}")


class OperationNotFoundError(RegistryError):
    """No operation is registered under an ID."""

    def __init__(self, op_id: str) -> None:
        self.op_id = op_id
        super().__init__(f"operation not found in registry: {op_id}")