import pytest

from sbedit.block import Block
from sbedit.block_input import BlockInput, CustomBlockArgument
from sbedit.data import Variable
from sbedit.id_oracle import IdOracle
from sbedit.project import Project
from sbedit.script import Script, derive_script_name
from sbedit.target import Sprite, Stage


def _script():
    reporter = Block("operator_add", {"NUM1": BlockInput("number", 1), "NUM2": BlockInput("number", 2)})
    say = Block("looks_say", {"MESSAGE": BlockInput("block", reporter)})
    loop = Block("control_forever", {"SUBSTACK": BlockInput("blocks", [say])})
    hat = Block("event_whenflagclicked")
    return Script([hat, loop]), hat, loop, say, reporter


def test_walk_is_depth_first():
    script, hat, loop, say, reporter = _script()
    assert script.flatten() == [hat, loop, say, reporter]
    assert loop.blocks == [loop, say, reporter]


def test_script_hat_and_body():
    script, hat, loop, _, _ = _script()
    assert script.hat is hat
    assert script.body == [loop]
    assert Script([loop]).hat is None


def test_script_names():
    _, hat, loop, _, _ = _script()
    assert derive_script_name([hat]) == "when_green_flag_clicked"
    receive = Block("event_whenbroadcastreceived", {"BROADCAST_OPTION": BlockInput("broadcast", "go")})
    assert derive_script_name([receive]) == "when_i_receive_go"
    define = Block("procedures_definition", {
        "ARGUMENTS": BlockInput("customBlockArguments", [
            CustomBlockArgument("label", "jump"),
            CustomBlockArgument("numberOrString", "h"),
        ]),
    })
    assert derive_script_name([define]) == "jump"
    assert derive_script_name([loop]) == "forever"
    assert Script([hat], name="custom").name == "custom"


def test_target_queries():
    script, _, _, say, _ = _script()
    sprite = Sprite("Cat", scripts=[script], variables=[Variable("speed", 5)])
    assert sprite.get_block(say.id) is say
    assert sprite.get_block("missing") is None
    assert sprite.block_index()[say.id] is say
    assert sprite.get_variable("speed").value == 5
    assert sprite.get_variable("nope") is None
    assert sprite.get_list("nope") is None


def test_project_sprite_lookup():
    cat, dog = Sprite("Cat"), Sprite("Dog")
    project = Project(Stage(), [cat, dog])
    assert project.targets == [project.stage, cat, dog]
    assert project.sprite("Dog") is dog
    assert project.sprite(0) is cat
    assert project.sprite(5) is None
    assert project.sprite(True) is None
    assert cat.project is project

    bird = project.add_sprite(Sprite("Bird"))
    assert bird.project is project
    project.remove_sprite(cat)
    assert cat.project is None
    assert project.sprite("Cat") is None


def test_validation():
    with pytest.raises(ValueError):
        Sprite("Cat", rotation_style="sideways")
    with pytest.raises(ValueError):
        Variable("v", mode="huge")


def test_id_oracle_skips_reserved():
    oracle = IdOracle(["id_1", "id_3", None])
    assert oracle.fresh() == "id_2"
    assert oracle.fresh() == "id_4"
    assert "id_1" in oracle
    assert oracle.fresh("arg") == "arg_5"
    oracle.reserve("x_6")
    assert oracle.fresh("x") == "x_7"
