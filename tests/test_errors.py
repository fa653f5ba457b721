import pytest

from rnacl.errors import (
    AmbiguousNodeIdError,
    DependencyNodeNotFoundError,
    EmptyPipelineError,
    LedgerError,
    LedgerExistsError,
    LedgerNotDirectoryError,
    LedgerNotFoundError,
    NodeError,
    NodePathExistsError,
    NodePathNotFoundError,
    NoSuchNodeIdError,
    OperationExistsError,
    OperationNotFoundError,
    PipelineError,
    RegistryError,
    RnaclError,
    StageIndexError,
)


def test_ledger_path_messages(tmp_path):
    assert str(LedgerNotFoundError(tmp_path)) == f"no ledger found at {tmp_path}"
    assert str(LedgerExistsError(tmp_path)) == f"ledger already initialized at {tmp_path}"
    assert (
        str(LedgerNotDirectoryError(tmp_path))
        == f"path already exists, but is not a directory: {tmp_path}"
    )


def test_ledger_errors_keep_path(tmp_path):
    with pytest.raises(LedgerError) as info:
        raise LedgerNotFoundError(str(tmp_path))
    assert info.value.path == tmp_path


def test_dependency_node_not_found_message():
    err = DependencyNodeNotFoundError("abcd")
    assert str(err) == "dependency node could not be found: abcd"
    assert err.node_id == "abcd"


def test_node_path_messages(tmp_path):
    assert str(NodePathExistsError(tmp_path)) == f"node already exists at {tmp_path}"
    assert str(NodePathNotFoundError(tmp_path)) == f"node not found at {tmp_path}"


def test_node_id_errors_caught_as_node_error():
    missing = NoSuchNodeIdError("ab")
    assert str(missing) == "node not found: ab"
    assert missing.node_id == "ab"
    assert issubclass(NoSuchNodeIdError, NodeError)

    ambiguous = AmbiguousNodeIdError("a")
    assert str(ambiguous) == "ambiguous node ID: a"
    assert issubclass(AmbiguousNodeIdError, NodeError)


def test_pipeline_errors():
    assert str(EmptyPipelineError()) == "pipeline is empty"
    err = StageIndexError(5, 2)
    assert (err.index, err.length) == (5, 2)
    assert str(err) == "index 5 is larger than pipeline's length 2"
    with pytest.raises(PipelineError):
        raise err


def test_registry_errors():
    exists = OperationExistsError("inc")
    assert str(exists) == "operation with same ID already exists: inc"
    assert issubclass(OperationExistsError, RegistryError)

    not_found = OperationNotFoundError("inc")
    assert str(not_found) == "operation not found in registry: inc"
    assert not_found.op_id == "inc"
    assert issubclass(OperationNotFoundError, RnaclError)