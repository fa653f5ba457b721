import json

import pytest

from rnacl.errors import OperationNotFoundError, StageIndexError
from rnacl.operation import Operation
from rnacl.pipeline import Pipeline, Stage
from rnacl.registry import Registry
from rnacl.sample import Batch, Sample, Trace


@pytest.fixture
def registry():
    reg = Registry()
    reg.register(
        "emit",
        Operation(
            "emit the 'value' option",
            lambda batch, options: Batch([Sample(options["value"], [Trace({"_op": "emit"})])]),
        ),
    )
    reg.register(
        "append",
        Operation(
            "append the 'suffix' option",
            lambda batch, options: batch.transform(
                lambda s: s.transform(lambda c: (Trace({"_op": "append"}), c + options["suffix"]))
            ),
        ),
    )
    return reg


def test_eval_runs_stages_in_order(registry):
    pipeline = Pipeline(
        [Stage("emit", {"value": "1"}), Stage("append", {"suffix": "x"}), Stage("append", {"suffix": "y"})]
    )
    result = pipeline.eval(registry)
    assert [s.content for s in result] == ["1xy"]
    assert [t.values["_op"] for t in result.samples[0].traces] == ["emit", "append", "append"]


def test_eval_empty_pipeline_gives_empty_batch(registry):
    assert Pipeline().eval(registry) == Batch()


def test_eval_unknown_operation(registry):
    with pytest.raises(OperationNotFoundError):
        Pipeline([Stage("missing")]).eval(registry)


def test_stage_eval_single(registry):
    out = Stage("emit", {"value": "v"}).eval(Batch(), registry)
    assert out.samples[0].content == "v"


def test_add_appends_and_inserts():
    pipeline = Pipeline()
    pipeline.add(Stage("a"))
    pipeline.add(Stage("c"))
    pipeline.add(Stage("b"), 1)
    pipeline.add(Stage("d"), 3)
    assert [s.operation_id for s in pipeline] == ["a", "b", "c", "d"]


def test_add_out_of_range():
    pipeline = Pipeline([Stage("a")])
    with pytest.raises(StageIndexError) as info:
        pipeline.add(Stage("b"), 2)
    assert (info.value.index, info.value.length) == (2, 1)
    assert len(pipeline) == 1


def test_remove_last_and_indexed():
    pipeline = Pipeline([Stage("a"), Stage("b"), Stage("c")])
    assert pipeline.remove().operation_id == "c"
    assert pipeline.remove(0).operation_id == "a"
    assert [s.operation_id for s in pipeline] == ["b"]


def test_remove_from_empty():
    with pytest.raises(StageIndexError) as info:
        Pipeline().remove()
    assert (info.value.index, info.value.length) == (0, 0)


@pytest.mark.parametrize("index", [2, 5])
def test_remove_out_of_range(index):
    pipeline = Pipeline([Stage("a"), Stage("b")])
    with pytest.raises(StageIndexError):
        pipeline.remove(index)
    assert len(pipeline) == 2


def test_stage_json_fields():
    assert Stage("increment", {"amount": 1}).to_json() == {
        "operation_id": "increment",
        "options": {"amount": 1},
    }


def test_pipeline_round_trip():
    pipeline = Pipeline([Stage("heads.nums", {"a": 1, "b": 2}), Stage("increment", None)])
    data = json.loads(json.dumps(pipeline.to_json()))
    assert Pipeline.from_json(data) == pipeline


@pytest.mark.parametrize("data", [{"stages": []}, [{"options": None}], [{"operation_id": 3, "options": None}]])
def test_pipeline_from_json_rejects_malformed(data):
    with pytest.raises(ValueError):
        Pipeline.from_json(data)