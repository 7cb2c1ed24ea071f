import pytest
import yaml

from pipetemplate.converter import GENERATED_TEMPLATE_HEADER
from pipetemplate.utils import load_config, load_document, redact_secrets, render_template_yaml, write_output


def test_render_template_yaml_keeps_key_order_and_header():
    doc = {"schema": "1", "id": "app-x", "metadata": {"name": "x"}, "stages": []}
    text = render_template_yaml(doc, GENERATED_TEMPLATE_HEADER)
    assert text.startswith("# GENERATED BY pipetemplate\n")
    body = text[len(GENERATED_TEMPLATE_HEADER):]
    assert body.splitlines()[0] == "schema: '1'"
    assert list(yaml.safe_load(text)) == ["schema", "id", "metadata", "stages"]


def test_write_output_file(tmp_path):
    target = tmp_path / "out" / "template.yml"
    assert write_output("a: 1\n", str(target)) == str(target)
    assert target.read_text(encoding="utf-8") == "a: 1\n"


def test_write_output_stdout(capsys):
    assert write_output("a: 1\n", "-") is None
    assert capsys.readouterr().out == "a: 1\n"


def test_load_document_json_and_yaml(tmp_path):
    j = tmp_path / "p.json"
    j.write_text('{"application": "myapp"}', encoding="utf-8")
    y = tmp_path / "p.yaml"
    y.write_text("application: myapp\n", encoding="utf-8")
    assert load_document(str(j)) == load_document(str(y)) == {"application": "myapp"}


def test_load_config_validates(tmp_path):
    good = tmp_path / "good.yaml"
    good.write_text("spinnaker:\n  endpoint: https://gate.example\n  timeout: 15\n", encoding="utf-8")
    assert load_config(str(good))["spinnaker"]["timeout"] == 15

    bad = tmp_path / "bad.yaml"
    bad.write_text("spinnaker:\n  insecure: 'yes'\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Config validation error"):
        load_config(str(bad))


def test_load_config_absent():
    assert load_config(None) == {}


def test_redact_secrets():
    s = "Authorization: Bearer eyJhbGciOi.abc.def and Basic dXNlcjpwYXNz"
    out = redact_secrets(s)
    assert "eyJhbGciOi" not in out and "dXNlcjpwYXNz" not in out
    assert redact_secrets("token is s3cr3t-value", "s3cr3t-value") == "token is ***"
