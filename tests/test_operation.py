import pytest

from rnacl.errors import OperationError
from rnacl.operation import Operation
from rnacl.sample import Batch, Sample, Trace


def test_eval_passes_batch_and_options():
    seen = []

    def func(batch, options):
        seen.append((batch, options))
        return Batch([*batch.samples, Sample(str(options["n"]), [Trace({"_op": "t"})])])

    op = Operation("adds one sample", func)
    start = Batch([Sample("a", [Trace({"_op": "s"})])])
    result = op.eval(start, {"n": 5})
    assert [s.content for s in result] == ["a", "5"]
    assert seen == [(start, {"n": 5})]
    assert op.description == "adds one sample"


def test_eval_default_options_is_none():
    op = Operation("echo", lambda batch, options: Batch([Sample(repr(options))]))
    assert op.eval(Batch()).samples[0].content == "None"


def test_eval_wraps_os_errors():
    def failing(batch, options):
        raise FileNotFoundError("missing input")

    with pytest.raises(OperationError) as info:
        Operation("fails", failing).eval(Batch(), None)
    assert "missing input" in str(info.value)
    assert isinstance(info.value.__cause__, FileNotFoundError)


def test_eval_leaves_other_errors_alone():
    def failing(batch, options):
        raise KeyError("amount")

    with pytest.raises(KeyError):
        Operation("fails", failing).eval(Batch(), {})