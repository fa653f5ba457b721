import io
import json
from datetime import timedelta

import pytest

from rnacl.builtin_ops import register_builtin_ops
from rnacl.commands import CommandError, Session
from rnacl.errors import (
    AmbiguousNodeIdError,
    LedgerExistsError,
    LedgerNotFoundError,
    OperationNotFoundError,
)
from rnacl.node import NodeId
from rnacl.registry import Registry
from rnacl.reuse import get_reused
from rnacl.sample import Batch


@pytest.fixture
def session(tmp_path):
    work = tmp_path / "work"
    work.mkdir()
    registry = register_builtin_ops(Registry())
    s = Session(cwd=work, registry=registry, out=io.StringIO(), reuse_path=tmp_path / "reuse.json")
    s.init_ledger()
    return s


def take_output(s):
    text = s.out.getvalue()
    s.out.seek(0)
    s.out.truncate()
    return text


def test_init_twice_fails(session):
    with pytest.raises(LedgerExistsError):
        session.init_ledger()


def test_no_ledger(tmp_path):
    other = tmp_path / "other"
    other.mkdir()
    s = Session(cwd=other, registry=Registry(), out=io.StringIO(), reuse_path=tmp_path / "r.json")
    with pytest.raises(LedgerNotFoundError):
        s.ledger()
    with pytest.raises(LedgerNotFoundError):
        s.remove_dependencies()


def test_add_node_prints_and_reuses(session):
    node = session.add_node("abcd", "first")
    assert take_output(session) == "abcd\n"
    ledger = session.ledger()
    assert ledger.node_ids() == [NodeId("abcd")]
    assert ledger.load_node_for_id(node.id).description == "first"
    assert get_reused(ledger, session.reuse_path) == NodeId("abcd")


def test_add_node_no_use(session):
    session.add_node("abcd", no_use=True)
    assert get_reused(session.ledger(), session.reuse_path) is None


def test_add_node_random_id(session):
    node = session.add_node(no_use=True)
    assert session.ledger().node_ids() == [node.id]
    assert len(str(node.id)) == 8


def test_edit_with_reused_node(session):
    session.add_node("abcd")
    node = session.edit_node("-", description="changed")
    assert node.id == NodeId("abcd")
    assert session.ledger().load_node_for_id(NodeId("abcd")).description == "changed"
    session.edit_node(None, unset_description=True)
    assert session.ledger().load_node_for_id(NodeId("abcd")).description is None


def test_edit_without_node_or_reuse(session):
    with pytest.raises(CommandError):
        session.edit_node(None, description="x")


def test_prefix_resolution(session):
    session.add_node("abc1", no_use=True)
    session.add_node("abd2", no_use=True)
    ledger = session.ledger()
    assert session.resolve_node_id(ledger, "abc") == NodeId("abc1")
    with pytest.raises(AmbiguousNodeIdError):
        session.resolve_node_id(ledger, "ab")


def test_remove_node(session):
    session.add_node("abcd", no_use=True)
    take_output(session)
    assert session.remove_node("abcd") == NodeId("abcd")
    assert take_output(session) == "abcd\n"
    assert session.ledger().node_ids() == []


def test_list_nodes(session):
    session.add_node("a", "first", no_use=True)
    session.add_node("bbb", no_use=True)
    take_output(session)
    session.list_nodes()
    assert sorted(take_output(session).splitlines()) == ["a    first", "bbb  -"]


def test_show_node_views(session):
    node = session.add_node("abcd")
    take_output(session)
    session.show_node()
    assert take_output(session) == "abcd\ndescription: none\ndependencies: \nstages: 0\n"
    session.show_node("abcd", raw=True)
    assert json.loads(take_output(session)) == node.to_json()
    session.show_node("abcd", path=True)
    assert take_output(session).strip() == str(session.ledger().node_path(node.id))


def test_add_dependencies(session):
    for name in ("n1", "n2", "n3"):
        session.add_node(name, no_use=True)
    session.add_dependencies(["n1"], ["n2", "n1"])
    ledger = session.ledger()
    assert ledger.load_node_for_id(NodeId("n1")).dependencies == [NodeId("n2")]

    session.add_dependencies(["n3"], sources=["n1"])
    assert ledger.load_node_for_id(NodeId("n3")).dependencies == [NodeId("n2")]


def test_add_dependencies_mirror(session):
    for name in ("n1", "n2"):
        session.add_node(name, no_use=True)
    session.add_dependencies(["n1", "n2"], mirror=True)
    ledger = session.ledger()
    assert ledger.load_node_for_id(NodeId("n1")).dependencies == [NodeId("n2")]
    assert ledger.load_node_for_id(NodeId("n2")).dependencies == [NodeId("n1")]


def test_push_unknown_operation(session):
    session.add_node("abcd")
    with pytest.raises(OperationNotFoundError):
        session.push_stage("abcd", "nope")


def test_push_invalid_options(session):
    session.add_node("abcd")
    with pytest.raises(CommandError):
        session.push_stage("abcd", "increment", "{not json")


def test_push_and_list_pipeline(session):
    session.add_node("abcd")
    session.push_stage("abcd", "heads.nums", '{"b": 2, "a": 1}')
    take_output(session)
    stages = session.list_pipeline()
    assert [s.operation_id for s in stages] == ["heads.nums"]
    assert take_output(session) == 'heads.nums  {"a":1,"b":2}\n'


def test_eval_pipeline(session):
    session.add_node("abcd")
    session.push_stage("-", "heads.nums", '{"a": 1, "b": 2}')
    session.push_stage("-", "increment", '{"amount": 3}')
    take_output(session)
    batch = session.eval_pipeline()
    assert [int(s.content) for s in batch] == [1 + 3, 2 + 3]
    assert json.loads(take_output(session)) == batch.to_json()


def test_eval_pipeline_indices_and_show(session):
    session.add_node("abcd")
    session.push_stage("-", "heads.nums", '{"a": 1, "b": 2}')
    session.push_stage("-", "increment", '{"amount": 3}')
    take_output(session)
    batch = session.eval_pipeline(indices=[0])
    assert [s.content for s in batch] == ["1", "2"]
    assert take_output(session) == ""

    session.eval_pipeline(show=[0])
    assert json.loads(take_output(session)) == batch.to_json()

    with pytest.raises(CommandError):
        session.eval_pipeline(indices=[7])


def test_pop_stage(session):
    session.add_node("abcd")
    with pytest.raises(CommandError):
        session.pop_stage()
    session.push_stage("-", "heads.nums", '{"a": 1, "b": 2}')
    session.push_stage("-", "increment", '{"amount": 3}')
    removed = session.pop_stage()
    assert [s.operation_id for s in removed] == ["increment"]
    assert len(session.ledger().load_node_for_id(NodeId("abcd")).pipeline) == 1


def test_pop_all_stages(session):
    session.add_node("abcd")
    session.push_stage("-", "heads.nums", '{"a": 1, "b": 2}')
    session.push_stage("-", "increment", '{"amount": 3}')
    removed = session.pop_stage(all_stages=True)
    assert len(removed) == 2
    assert len(session.ledger().load_node_for_id(NodeId("abcd")).pipeline) == 0


def test_eval_operation_head(session):
    output = session.eval_operation("heads.nums", head=True, options='{"a": 1, "b": 2}')
    assert [s.content for s in output] == ["1", "2"]
    assert json.loads(take_output(session)) == output.to_json()


def test_eval_operation_from_stdin(session):
    start = session.eval_operation("heads.nums", head=True, options='{"a": 1, "b": 2}')
    session.stdin = io.StringIO(json.dumps(start.to_json()))
    output = session.eval_operation("increment", options='{"amount": 1}')
    assert [int(s.content) for s in output] == [int(s.content) + 1 for s in start]


def test_eval_operation_bad_stdin(session):
    session.stdin = io.StringIO("not json")
    with pytest.raises(CommandError):
        session.eval_operation("increment", options='{"amount": 1}')


def test_list_operations(session):
    ops = session.list_operations()
    assert set(ops) == {"heads.nums", "increment"}
    lines = take_output(session).splitlines()
    assert lines[0] == "heads.nums  two numbers, 'a' and 'b'"


def test_reuse_node_set_show_unset(session):
    session.add_node("abcd", no_use=True)
    take_output(session)
    assert session.reuse_node("ab", duration=timedelta(minutes=1)) == NodeId("abcd")
    assert session.reuse_node() == NodeId("abcd")
    assert session.reuse_node(unset=True) == NodeId("abcd")
    assert take_output(session) == "abcd\nabcd\nabcd\n"
    assert session.reuse_node() is None


def test_remove_dependencies_returns_ledger(session):
    assert session.remove_dependencies().dir == session.ledger().dir
    assert isinstance(session.remove_dependencies().dir, type(session.ledger().dir)) and Batch() == Batch()