from pipetemplate.stages.ids import stage_id, template_id


def test_template_id_strips_non_word_chars():
    assert template_id("myapp", "Deploy App!") == "myapp-DeployApp"
    assert template_id("myapp", "deploy_to-prod (v2)") == "myapp-deploy_toprodv2"


def test_template_id_degenerate_inputs():
    assert template_id("", "") == "-"
    assert template_id("app", "!!!") == "app-"


def test_template_id_keeps_only_ascii_word_chars():
    tid = template_id("app", "Déploy ünïcode 1")
    name_part = tid.split("-", 1)[1]
    assert name_part == "Dployncode1"
    assert all(c.isascii() and (c.isalnum() or c == "_") for c in name_part)


def test_stage_id_is_plain_concatenation():
    assert stage_id("deploy", "1") == "deploy1"
    assert stage_id("bake", "") == "bake"
    # no separator, so distinct pairs can collide
    assert stage_id("foo1", "23") == stage_id("foo", "123")
