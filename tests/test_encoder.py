import json

from sbedit.block import Block
from sbedit.block_input import BlockInput, Color, CustomBlockArgument
from sbedit.data import List as ListData
from sbedit.data import Variable
from sbedit.diagnostics import DiagnosticCollector
from sbedit.project import Project
from sbedit.sb3_encoder import EncodeOptions, project_to_sb3_json
from sbedit.script import Script
from sbedit.target import Sprite, Stage


def _encode(*scripts, variables=None, stage_variables=None, collector=None, options=EncodeOptions()):
    sprite = Sprite("Cat", scripts=list(scripts), variables=variables or [])
    stage = Stage(variables=stage_variables or [])
    project = Project(stage, [sprite])
    data = project_to_sb3_json(project, options, collector)
    return data, data["targets"][1]["blocks"]


def _flag(*body):
    return Script([Block("event_whenflagclicked"), *body])


def test_stack_links_and_top_level_position():
    hat = Block("event_whenflagclicked")
    move = Block("motion_movesteps", {"STEPS": BlockInput("number", 5)})
    _, blocks = _encode(Script([hat, move], x=30, y=-40))
    assert blocks[hat.id]["topLevel"] is True
    assert (blocks[hat.id]["x"], blocks[hat.id]["y"]) == (30, -40)
    assert blocks[hat.id]["next"] == move.id
    assert blocks[move.id]["parent"] == hat.id
    assert blocks[move.id]["topLevel"] is False
    assert "x" not in blocks[move.id]
    assert blocks[move.id]["inputs"]["STEPS"] == [1, [4, 5]]


def test_menu_literal_gets_shadow_block():
    goto = Block("motion_goto", {"TO": BlockInput("goToTarget", "_mouse_")})
    _, blocks = _encode(_flag(goto))
    status, shadow_id = blocks[goto.id]["inputs"]["TO"]
    assert status == 1
    shadow = blocks[shadow_id]
    assert shadow["opcode"] == "motion_goto_menu"
    assert shadow["shadow"] is True
    assert shadow["parent"] == goto.id
    assert shadow["fields"] == {"TO": ["_mouse_", None]}


def test_reporter_in_literal_slot_keeps_default_shadow():
    join = Block("operator_join", {"STRING1": BlockInput("string", "a"), "STRING2": BlockInput("string", "b")})
    say = Block("looks_say", {"MESSAGE": BlockInput("block", join)})
    _, blocks = _encode(_flag(say))
    assert blocks[say.id]["inputs"]["MESSAGE"] == [3, join.id, [10, "Hello!"]]
    assert blocks[join.id]["parent"] == say.id


def test_boolean_and_substack_slots():
    empty_if = Block("control_if", {"CONDITION": BlockInput("boolean", False), "SUBSTACK": BlockInput("blocks", [])})
    true_if = Block("control_if", {"CONDITION": BlockInput("boolean", True), "SUBSTACK": BlockInput("blocks", [])})
    _, blocks = _encode(_flag(empty_if, true_if))
    assert blocks[empty_if.id]["inputs"] == {}
    status, not_id = blocks[true_if.id]["inputs"]["CONDITION"]
    assert status == 2
    assert blocks[not_id]["opcode"] == "operator_not"
    assert blocks[not_id]["inputs"] == {}
    assert blocks[not_id]["parent"] == true_if.id


def test_substack_chain():
    show, hide = Block("looks_show"), Block("looks_hide")
    loop = Block("control_forever", {"SUBSTACK": BlockInput("blocks", [show, hide])})
    _, blocks = _encode(_flag(loop))
    assert blocks[loop.id]["inputs"]["SUBSTACK"] == [2, show.id]
    assert blocks[show.id]["parent"] == loop.id
    assert blocks[show.id]["next"] == hide.id
    assert blocks[hide.id]["parent"] == show.id


def test_color_and_fields():
    pen = Block("pen_setPenColorToColor", {"COLOR": BlockInput("color", Color(255, 0, 0))})
    stop = Block("control_stop", {"STOP_OPTION": BlockInput("stopMenu", "this script")})
    stop.mutation = {"tagName": "mutation", "children": [], "hasnext": "false"}
    data, blocks = _encode(_flag(pen, stop))
    assert blocks[pen.id]["inputs"]["COLOR"] == [1, [9, "#ff0000"]]
    assert blocks[stop.id]["fields"] == {"STOP_OPTION": ["this script", None]}
    assert blocks[stop.id]["mutation"]["hasnext"] == "false"
    assert data["extensions"] == ["pen"]


def test_variable_fields_resolve_local_then_stage():
    local = Variable("speed", 1)
    shared = Variable("score", 0)
    set_local = Block("data_setvariableto", {"VARIABLE": BlockInput("variable", "speed"), "VALUE": BlockInput("string", "3")})
    set_shared = Block("data_changevariableby", {"VARIABLE": BlockInput("variable", "score"), "VALUE": BlockInput("number", 1)})
    _, blocks = _encode(_flag(set_local, set_shared), variables=[local], stage_variables=[shared])
    assert blocks[set_local.id]["fields"]["VARIABLE"] == ["speed", local.id]
    assert blocks[set_shared.id]["fields"]["VARIABLE"] == ["score", shared.id]


def test_unresolved_variable_warns_and_gets_an_id():
    collector = DiagnosticCollector()
    block = Block("data_setvariableto", {"VARIABLE": BlockInput("variable", "ghost"), "VALUE": BlockInput("string", "1")})
    _, blocks = _encode(_flag(block), collector=collector)
    name, var_id = blocks[block.id]["fields"]["VARIABLE"]
    assert name == "ghost"
    assert var_id
    warnings = [d for d in collector.all_diagnostics if "ghost" in d.message]
    assert warnings and warnings[0].block_id == block.id


def test_slot_without_metadata_is_skipped():
    collector = DiagnosticCollector()
    move = Block("motion_movesteps", {"STEPS": BlockInput("number", 5), "BOGUS": BlockInput("number", 1)})
    _, blocks = _encode(_flag(move), collector=collector)
    assert "BOGUS" not in blocks[move.id]["inputs"]
    assert collector.has_warnings()


def _definition(proccode, arguments, warp=False):
    return Block("procedures_definition", {
        "PROCCODE": BlockInput("string", proccode),
        "ARGUMENTS": BlockInput("customBlockArguments", arguments),
        "WARP": BlockInput("boolean", warp),
    })


def _call(proccode, values):
    return Block("procedures_call", {
        "PROCCODE": BlockInput("string", proccode),
        "INPUTS": BlockInput("customBlockInputValues", values),
    })


def test_definition_prototype():
    define = _definition("jump %n if %b", [
        CustomBlockArgument("label", "jump"),
        CustomBlockArgument("numberOrString", "height", 10),
        CustomBlockArgument("label", "if"),
        CustomBlockArgument("boolean", "really"),
    ], warp=True)
    _, blocks = _encode(Script([define]))
    status, proto_id = blocks[define.id]["inputs"]["custom_block"]
    assert status == 1
    proto = blocks[proto_id]
    assert proto["opcode"] == "procedures_prototype"
    assert proto["shadow"] is True
    assert proto["parent"] == define.id
    mutation = proto["mutation"]
    arg_ids = json.loads(mutation["argumentids"])
    assert json.loads(mutation["argumentnames"]) == ["height", "really"]
    assert json.loads(mutation["argumentdefaults"]) == [10, "false"]
    assert mutation["warp"] == "true"
    assert list(proto["inputs"]) == arg_ids
    reporters = [blocks[proto["inputs"][arg_id][1]] for arg_id in arg_ids]
    assert [r["opcode"] for r in reporters] == ["argument_reporter_string_number", "argument_reporter_boolean"]
    assert [r["fields"]["VALUE"][0] for r in reporters] == ["height", "really"]


def test_call_uses_definition_argument_ids():
    define = _definition("greet %s", [CustomBlockArgument("label", "greet"), CustomBlockArgument("numberOrString", "who")])
    call = _call("greet %s", [BlockInput("string", "world")])
    _, blocks = _encode(Script([define]), _flag(call))
    proto = blocks[blocks[define.id]["inputs"]["custom_block"][1]]
    mutation = blocks[call.id]["mutation"]
    assert mutation["proccode"] == "greet %s"
    assert mutation["argumentids"] == proto["mutation"]["argumentids"]
    assert mutation["warp"] == "false"
    arg_id = json.loads(mutation["argumentids"])[0]
    assert blocks[call.id]["inputs"] == {arg_id: [1, [10, "world"]]}


def test_call_to_undefined_block_is_dropped_and_relinked():
    collector = DiagnosticCollector()
    hat = Block("event_whenflagclicked")
    call = _call("missing", [])
    show = Block("looks_show")
    _, blocks = _encode(Script([hat, call, show]), collector=collector)
    assert call.id not in blocks
    assert blocks[hat.id]["next"] == show.id
    assert blocks[show.id]["parent"] == hat.id
    assert collector.has_errors()


def test_duplicate_block_ids_are_renamed():
    collector = DiagnosticCollector()
    first = Block("looks_show", id="same")
    second = Block("looks_hide", id="same")
    _, blocks = _encode(_flag(first, second), collector=collector)
    opcodes = sorted(b["opcode"] for b in blocks.values() if isinstance(b, dict))
    assert opcodes == ["event_whenflagclicked", "looks_hide", "looks_show"]
    assert collector.has_warnings()


def test_loose_reporter_stays_compressed():
    speed = Variable("speed", 1)
    reporter = Block("data_variable", {"VARIABLE": BlockInput("variable", "speed")})
    _, blocks = _encode(Script([reporter], x=7, y=8), variables=[speed])
    assert blocks[reporter.id] == [12, "speed", speed.id, 7, 8]


def test_target_payload_and_monitors():
    stage = Stage(variables=[Variable("score", 3, cloud=True)], lists=[ListData("items", ["a"], width=120)])
    sprite = Sprite("Cat", x=5, rotation_style="none", is_draggable=True, variables=[Variable("hp", 9, mode="slider")])
    project = Project(stage, [sprite], tempo=120, video_on=True)
    data = project_to_sb3_json(project, EncodeOptions(agent="sbedit-tests"))

    stage_data, cat_data = data["targets"]
    assert stage_data["isStage"] is True
    assert list(stage_data["variables"].values()) == [["score", 3, True]]
    assert list(stage_data["lists"].values()) == [["items", ["a"]]]
    assert stage_data["tempo"] == 120
    assert stage_data["videoState"] == "on"
    assert cat_data["rotationStyle"] == "don't rotate"
    assert cat_data["draggable"] is True
    assert cat_data["x"] == 5
    assert data["meta"] == {"semver": "3.0.0", "agent": "sbedit-tests"}

    monitors = {m["opcode"] + ":" + str(m["spriteName"]): m for m in data["monitors"]}
    assert monitors["data_variable:None"]["params"] == {"VARIABLE": "score"}
    assert monitors["data_variable:Cat"]["mode"] == "slider"
    assert monitors["data_listcontents:None"]["width"] == 120
    assert monitors["data_listcontents:None"]["height"] == 0

    quiet = project_to_sb3_json(project, EncodeOptions(include_monitors=False))
    assert quiet["monitors"] == []
    assert "agent" not in quiet["meta"]
