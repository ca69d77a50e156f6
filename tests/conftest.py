import asyncio
import copy
import io
from typing import Any, Dict

import pytest
from PIL import Image

from sbedit.block import Block
from sbedit.block_input import BlockInput, Color, CustomBlockArgument
from sbedit.diagnostics import DiagnosticCollector
from sbedit.sb3_decoder import project_from_sb3_json

BACKDROP_MD5 = "cd21514d0531fdffb22204e0ec5ed84a"
CAT_MD5 = "bcf454acf82e4504149f7ffe07081dbc"
POP_MD5 = "83a9787d4cb6f3b7632b4ddfebf74367"

BACKDROP_SVG = (
    b'<svg xmlns="http://www.w3.org/2000/svg" width="480" height="360">'
    b'<rect width="480" height="360" fill="#fff"/></svg>'
)


def make_png(width: int = 4, height: int = 2) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), (255, 0, 0, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


def _block(opcode, parent=None, next_id=None, inputs=None, fields=None, shadow=False, top=False, **extra):
    data = {
        "opcode": opcode,
        "next": next_id,
        "parent": parent,
        "inputs": inputs or {},
        "fields": fields or {},
        "shadow": shadow,
        "topLevel": top,
    }
    data.update(extra)
    return data


def build_project_json() -> Dict[str, Any]:
    stage_blocks = {
        "s_hat": _block("event_whenflagclicked", next_id="s_bc", top=True, x=0, y=0),
        "s_bc": _block("event_broadcast", parent="s_hat",
                       inputs={"BROADCAST_INPUT": [1, [11, "go", "bc_go"]]}),
    }
    cat_blocks = {
        "c_hat": _block("event_whenbroadcastreceived", next_id="c_move", top=True, x=10, y=20,
                        fields={"BROADCAST_OPTION": ["go", "bc_go"]}),
        "c_move": _block("motion_movesteps", parent="c_hat", next_id="c_goto",
                         inputs={"STEPS": [3, [12, "speed", "var_speed"], [4, "10"]]}),
        "c_goto": _block("motion_goto", parent="c_move", next_id="c_if",
                         inputs={"TO": [1, "c_goto_menu"]}),
        "c_goto_menu": _block("motion_goto_menu", parent="c_goto", shadow=True,
                              fields={"TO": ["_mouse_", None]}),
        "c_if": _block("control_if", parent="c_goto", next_id="c_call",
                       inputs={"CONDITION": [2, "c_gt"], "SUBSTACK": [2, "c_say"]}),
        "c_gt": _block("operator_gt", parent="c_if",
                       inputs={"OPERAND1": [3, [12, "score", "var_score"], [10, ""]],
                               "OPERAND2": [1, [10, "50"]]}),
        "c_say": _block("looks_say", parent="c_if",
                        inputs={"MESSAGE": [3, "c_add", [10, "hi"]]}),
        "c_add": _block("operator_add", parent="c_say",
                        inputs={"NUM1": [1, [4, "1"]], "NUM2": [1, [4, "2"]]}),
        "c_call": _block("procedures_call", parent="c_if",
                         inputs={"arg_b": [2, "c_not"], "arg_n": [1, [10, "7"]]},
                         mutation={"tagName": "mutation", "children": [], "proccode": "jump %n if %b",
                                   "argumentids": '["arg_n", "arg_b"]', "warp": "false"}),
        "c_not": _block("operator_not", parent="c_call"),
        "d_hat": _block("procedures_definition", next_id="d_body", top=True, x=300, y=0,
                        inputs={"custom_block": [1, "d_proto"]}),
        "d_proto": _block("procedures_prototype", parent="d_hat", shadow=True,
                          inputs={"arg_n": [1, "d_arg_n"], "arg_b": [1, "d_arg_b"]},
                          mutation={"tagName": "mutation", "children": [], "proccode": "jump %n if %b",
                                    "argumentids": '["arg_n", "arg_b"]',
                                    "argumentnames": '["height", "really"]',
                                    "argumentdefaults": '["", "false"]', "warp": "true"}),
        "d_arg_n": _block("argument_reporter_string_number", parent="d_proto", shadow=True,
                          fields={"VALUE": ["height", None]}),
        "d_arg_b": _block("argument_reporter_boolean", parent="d_proto", shadow=True,
                          fields={"VALUE": ["really", None]}),
        "d_body": _block("motion_changeyby", parent="d_hat",
                         inputs={"DY": [3, "d_height", [4, "10"]]}),
        "d_height": _block("argument_reporter_string_number", parent="d_body",
                           fields={"VALUE": ["height", None]}),
        "x_ext": _block("someext_doThing", top=True, x=0, y=400,
                        inputs={"ARG": [1, "x_menu"], "N": [1, [4, "3"]]},
                        fields={"MODE": ["fast", None]}),
        "x_menu": _block("someext_menu_thing", parent="x_ext", shadow=True,
                         fields={"thing": ["a", None]}),
        "loose": [12, "speed", "var_speed", 50, 60],
    }
    return {
        "targets": [
            {
                "isStage": True,
                "name": "Stage",
                "variables": {"var_score": ["score", 0]},
                "lists": {"list_items": ["items", ["a", "b"]]},
                "broadcasts": {"bc_go": "go"},
                "blocks": stage_blocks,
                "comments": {},
                "currentCostume": 0,
                "costumes": [{
                    "name": "backdrop1",
                    "assetId": BACKDROP_MD5,
                    "md5ext": f"{BACKDROP_MD5}.svg",
                    "dataFormat": "svg",
                    "rotationCenterX": 240,
                    "rotationCenterY": 180,
                }],
                "sounds": [],
                "volume": 100,
                "layerOrder": 0,
                "tempo": 90,
                "videoTransparency": 50,
                "videoState": "off",
                "textToSpeechLanguage": None,
            },
            {
                "isStage": False,
                "name": "Cat",
                "variables": {"var_speed": ["speed", 5]},
                "lists": {},
                "broadcasts": {},
                "blocks": cat_blocks,
                "comments": {},
                "currentCostume": 0,
                "costumes": [{
                    "name": "cat-a",
                    "assetId": CAT_MD5,
                    "md5ext": f"{CAT_MD5}.png",
                    "dataFormat": "png",
                    "bitmapResolution": 2,
                }],
                "sounds": [{
                    "name": "pop",
                    "assetId": POP_MD5,
                    "md5ext": f"{POP_MD5}.wav",
                    "dataFormat": "wav",
                    "rate": 48000,
                    "sampleCount": 1123,
                }],
                "volume": 80,
                "layerOrder": 1,
                "visible": True,
                "x": 12,
                "y": -7,
                "size": 150,
                "direction": 45,
                "draggable": True,
                "rotationStyle": "left-right",
            },
        ],
        "monitors": [
            {"id": "var_score", "mode": "large", "opcode": "data_variable",
             "params": {"VARIABLE": "score"}, "spriteName": None, "value": 0,
             "width": 0, "height": 0, "x": 5, "y": 6, "visible": True,
             "sliderMin": 0, "sliderMax": 100, "isDiscrete": True},
            {"id": "list_items", "mode": "list", "opcode": "data_listcontents",
             "params": {"LIST": "items"}, "spriteName": None, "value": ["a", "b"],
             "width": 100, "height": 200, "x": 0, "y": 40, "visible": False},
        ],
        "extensions": [],
        "meta": {"semver": "3.0.0", "vm": "0.2.0", "agent": ""},
    }


def build_assets() -> Dict[str, bytes]:
    return {
        f"{BACKDROP_MD5}.svg": BACKDROP_SVG,
        f"{CAT_MD5}.png": make_png(4, 2),
        f"{POP_MD5}.wav": b"RIFF\x00\x00\x00\x00WAVE",
    }


def decode(project_json, assets=None, collector=None):
    assets = build_assets() if assets is None else assets

    def fetch(request):
        return assets[request.md5ext]

    return asyncio.run(project_from_sb3_json(project_json, fetch, collector))


def shape(value: Any) -> Any:
    """Id-free structure of model values, for comparing decoded projects."""
    if isinstance(value, Block):
        data = {
            "opcode": value.opcode,
            "inputs": {k: shape(v) for k, v in value.inputs.items()},
            "obscured": {k: shape(v) for k, v in value.obscured.items()},
        }
        if not value.is_known_block:
            data["raw_inputs"] = value.raw_inputs
            data["raw_fields"] = value.raw_fields
        return data
    if isinstance(value, BlockInput):
        return (value.type, shape(value.value))
    if isinstance(value, CustomBlockArgument):
        return (value.type, value.name, value.default_value)
    if isinstance(value, Color):
        return value.to_hex()
    if isinstance(value, list):
        return [shape(item) for item in value]
    return value


def script_shapes(target):
    return [(s.x, s.y, shape(s.blocks)) for s in target.scripts]


@pytest.fixture
def project_json():
    return copy.deepcopy(build_project_json())


@pytest.fixture
def assets():
    return build_assets()


@pytest.fixture
def collector():
    return DiagnosticCollector()


@pytest.fixture
def project(project_json, collector):
    return decode(project_json, collector=collector)
