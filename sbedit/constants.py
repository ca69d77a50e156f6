"""Constants shared by the sb3 decoder and encoder."""

from typing import Any, Dict, List

# Input status codes (first element of every wire input array)
INPUT_SAME_BLOCK_SHADOW = 1
INPUT_BLOCK_NO_SHADOW = 2
INPUT_DIFF_BLOCK_SHADOW = 3

# Primitive type codes used in compressed input values
MATH_NUM_PRIMITIVE = 4
POSITIVE_NUM_PRIMITIVE = 5
WHOLE_NUM_PRIMITIVE = 6
INTEGER_NUM_PRIMITIVE = 7
ANGLE_NUM_PRIMITIVE = 8
COLOR_PICKER_PRIMITIVE = 9
TEXT_PRIMITIVE = 10
BROADCAST_PRIMITIVE = 11
VAR_PRIMITIVE = 12
LIST_PRIMITIVE = 13

NUMBER_PRIMITIVES = {
    MATH_NUM_PRIMITIVE,
    POSITIVE_NUM_PRIMITIVE,
    WHOLE_NUM_PRIMITIVE,
    INTEGER_NUM_PRIMITIVE,
}

# Boolean and substack inputs never carry a shadow; they are stored with
# INPUT_BLOCK_NO_SHADOW or omitted entirely when empty.
BOOLEAN_OR_SUBSTACK = INPUT_BLOCK_NO_SHADOW

DEFAULT_BROADCAST_MESSAGE = "message1"

# Opcodes of blocks that only ever exist as the compressed [12, ...] / [13, ...] form
VARIABLE_REPORTER = "data_variable"
LIST_REPORTER = "data_listcontents"

PROCEDURE_DEFINITION = "procedures_definition"
PROCEDURE_PROTOTYPE = "procedures_prototype"
PROCEDURE_CALL = "procedures_call"

ARGUMENT_REPORTER_FOR_TYPE: Dict[str, str] = {
    "numberOrString": "argument_reporter_string_number",
    "boolean": "argument_reporter_boolean",
}

# Wire rotation style names and their model counterparts
ROTATION_STYLE_FROM_SB3: Dict[str, str] = {
    "all around": "normal",
    "left-right": "leftRight",
    "don't rotate": "none",
}
ROTATION_STYLE_TO_SB3: Dict[str, str] = {v: k for k, v in ROTATION_STYLE_FROM_SB3.items()}

# Defaults used when a variable or list has no monitor in the save file
DEFAULT_VARIABLE_MONITOR: Dict[str, Any] = {
    "mode": "default",
    "visible": False,
    "x": 0,
    "y": 0,
    "width": 0,
    "height": 0,
    "sliderMin": 0,
    "sliderMax": 100,
    "isDiscrete": True,
}

DEFAULT_LIST_MONITOR: Dict[str, Any] = {
    "mode": "list",
    "visible": False,
    "x": 0,
    "y": 0,
    "width": 0,
    "height": 0,
}

SB3_SEMVER = "3.0.0"

# Bitmap formats whose pixel size can be probed to find a missing rotation center
BITMAP_FORMATS: List[str] = ["png", "jpg", "jpeg", "gif", "bmp", "webp"]
