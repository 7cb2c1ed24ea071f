import pytest

from pipetemplate.errors import MalformedStage
from pipetemplate.models import decode_stages
from pipetemplate.stages.graph import build_stages


def _stages(raw):
    return build_stages(decode_stages(raw))


def test_single_stage_no_dependencies():
    out = _stages([{"type": "deploy", "refId": "1", "name": "Deploy", "requisiteStageRefIds": []}])
    assert len(out) == 1
    assert out[0].id == "deploy1"
    assert out[0].depends_on == []
    assert out[0].config == {}


def test_depends_on_translated_through_stage_ids():
    out = _stages([
        {"type": "bake", "refId": "1", "name": "Bake"},
        {"type": "deploy", "refId": "2", "name": "Deploy", "requisiteStageRefIds": ["1"]},
    ])
    assert out[1].depends_on == ["bake1"]
    assert out[0].depends_on == []


def test_depends_on_follows_requisite_order_and_drops_dangling():
    raw = [
        {"type": "bake", "refId": "1", "name": "Bake"},
        {"type": "wait", "refId": "2", "name": "Wait"},
        {"type": "deploy", "refId": "3", "name": "Deploy", "requisiteStageRefIds": ["2", "missing", "1"]},
    ]
    out = _stages(raw)
    assert out[2].depends_on == ["wait2", "bake1"]


def test_forward_references_resolve():
    out = _stages([
        {"type": "deploy", "refId": "2", "name": "Deploy", "requisiteStageRefIds": ["1"]},
        {"type": "bake", "refId": "1", "name": "Bake"},
    ])
    assert [s.id for s in out] == ["deploy2", "bake1"]
    assert out[0].depends_on == ["bake1"]


def test_repeated_requisite_collapses():
    out = _stages([
        {"type": "bake", "refId": "1", "name": "Bake"},
        {"type": "deploy", "refId": "2", "name": "Deploy", "requisiteStageRefIds": ["1", "1"]},
    ])
    assert out[1].depends_on == ["bake1"]


def test_null_requisites_treated_as_empty():
    out = _stages([{"type": "wait", "refId": "1", "name": "Wait", "requisiteStageRefIds": None, "waitTime": 5}])
    assert out[0].depends_on == []
    assert out[0].config == {"waitTime": 5}


def test_stage_config_passthrough():
    out = _stages([{
        "type": "manualJudgment",
        "refId": "9",
        "name": "Approve",
        "judgmentInputs": [],
        "notifications": [{"type": "slack"}],
        "stageEnabled": {"expression": "true", "type": "expression"},
    }])
    assert out[0].config == {
        "judgmentInputs": [],
        "notifications": [{"type": "slack"}],
        "stageEnabled": {"expression": "true", "type": "expression"},
    }
    assert out[0].to_dict()["dependsOn"] == []


@pytest.mark.parametrize("missing", ["type", "refId", "name"])
def test_missing_required_field_raises(missing):
    stage = {"type": "deploy", "refId": "1", "name": "Deploy"}
    del stage[missing]
    with pytest.raises(MalformedStage) as exc:
        decode_stages([stage])
    assert exc.value.index == 0
    assert exc.value.field == missing


def test_non_string_field_raises():
    with pytest.raises(MalformedStage) as exc:
        decode_stages([
            {"type": "bake", "refId": "1", "name": "Bake"},
            {"type": "deploy", "refId": 2, "name": "Deploy"},
        ])
    assert exc.value.index == 1
    assert exc.value.field == "refId"


def test_non_mapping_stage_raises():
    with pytest.raises(MalformedStage):
        decode_stages(["not a stage"])


def test_duplicate_ref_id_first_stage_wins():
    out = _stages([
        {"type": "bake", "refId": "1", "name": "Bake"},
        {"type": "jenkins", "refId": "1", "name": "Build"},
        {"type": "deploy", "refId": "2", "name": "Deploy", "requisiteStageRefIds": ["1"]},
    ])
    assert [s.id for s in out] == ["bake1", "jenkins1", "deploy2"]
    assert out[2].depends_on == ["bake1"]
