from typing import Any, Dict, Tuple, Union

from .block_input import Color, DefaultInput
from .constants import (
    ANGLE_NUM_PRIMITIVE,
    BOOLEAN_OR_SUBSTACK,
    BROADCAST_PRIMITIVE,
    COLOR_PICKER_PRIMITIVE,
    INTEGER_NUM_PRIMITIVE,
    MATH_NUM_PRIMITIVE,
    POSITIVE_NUM_PRIMITIVE,
    TEXT_PRIMITIVE,
    WHOLE_NUM_PRIMITIVE,
)

HAT_OPCODES = frozenset({
    "event_whenflagclicked",
    "event_whenkeypressed",
    "event_whenthisspriteclicked",
    "event_whenstageclicked",
    "event_whenbackdropswitchesto",
    "event_whengreaterthan",
    "event_whenbroadcastreceived",
    "control_start_as_clone",
    "procedures_definition",
})

# Slot shapes and initial values of every known opcode, as (type, initial).
# Initials are what a fresh block from the palette carries.
_BLOCK_INPUTS: Dict[str, Dict[str, Tuple[str, Any]]] = {
    # Motion
    "motion_movesteps": {"STEPS": ("number", 10)},
    "motion_turnright": {"DEGREES": ("number", 15)},
    "motion_turnleft": {"DEGREES": ("number", 15)},
    "motion_goto": {"TO": ("goToTarget", "_random_")},
    "motion_gotoxy": {"X": ("number", 0), "Y": ("number", 0)},
    "motion_glideto": {"SECS": ("number", 1), "TO": ("goToTarget", "_random_")},
    "motion_glidesecstoxy": {"SECS": ("number", 1), "X": ("number", 0), "Y": ("number", 0)},
    "motion_pointindirection": {"DIRECTION": ("angle", 90)},
    "motion_pointtowards": {"TOWARDS": ("pointTowardsTarget", "_mouse_")},
    "motion_changexby": {"DX": ("number", 10)},
    "motion_setx": {"X": ("number", 0)},
    "motion_changeyby": {"DY": ("number", 10)},
    "motion_sety": {"Y": ("number", 0)},
    "motion_ifonedgebounce": {},
    "motion_setrotationstyle": {"STYLE": ("rotationStyle", "left-right")},
    "motion_xposition": {},
    "motion_yposition": {},
    "motion_direction": {},

    # Looks
    "looks_sayforsecs": {"MESSAGE": ("string", "Hello!"), "SECS": ("number", 2)},
    "looks_say": {"MESSAGE": ("string", "Hello!")},
    "looks_thinkforsecs": {"MESSAGE": ("string", "Hmm..."), "SECS": ("number", 2)},
    "looks_think": {"MESSAGE": ("string", "Hmm...")},
    "looks_switchcostumeto": {"COSTUME": ("costume", "costume1")},
    "looks_nextcostume": {},
    "looks_switchbackdropto": {"BACKDROP": ("backdrop", "backdrop1")},
    "looks_switchbackdroptoandwait": {"BACKDROP": ("backdrop", "backdrop1")},
    "looks_nextbackdrop": {},
    "looks_changesizeby": {"CHANGE": ("number", 10)},
    "looks_setsizeto": {"SIZE": ("number", 100)},
    "looks_changeeffectby": {"EFFECT": ("graphicEffect", "COLOR"), "CHANGE": ("number", 25)},
    "looks_seteffectto": {"EFFECT": ("graphicEffect", "COLOR"), "VALUE": ("number", 0)},
    "looks_cleargraphiceffects": {},
    "looks_show": {},
    "looks_hide": {},
    "looks_gotofrontback": {"FRONT_BACK": ("frontBackMenu", "front")},
    "looks_goforwardbackwardlayers": {
        "FORWARD_BACKWARD": ("forwardBackwardMenu", "forward"),
        "NUM": ("number", 1),
    },
    "looks_costumenumbername": {"NUMBER_NAME": ("costumeNumberName", "number")},
    "looks_backdropnumbername": {"NUMBER_NAME": ("costumeNumberName", "number")},
    "looks_size": {},
    "looks_hideallsprites": {},
    "looks_changestretchby": {"CHANGE": ("number", 10)},
    "looks_setstretchto": {"STRETCH": ("number", 0)},

    # Sound
    "sound_playuntildone": {"SOUND_MENU": ("sound", "pop")},
    "sound_play": {"SOUND_MENU": ("sound", "pop")},
    "sound_stopallsounds": {},
    "sound_changeeffectby": {"EFFECT": ("soundEffect", "PITCH"), "VALUE": ("number", 10)},
    "sound_seteffectto": {"EFFECT": ("soundEffect", "PITCH"), "VALUE": ("number", 0)},
    "sound_cleareffects": {},
    "sound_changevolumeby": {"VOLUME": ("number", -10)},
    "sound_setvolumeto": {"VOLUME": ("number", 100)},
    "sound_volume": {},

    # Events
    "event_whenflagclicked": {},
    "event_whenkeypressed": {"KEY_OPTION": ("key", "space")},
    "event_whenthisspriteclicked": {},
    "event_whenstageclicked": {},
    "event_whenbackdropswitchesto": {"BACKDROP": ("backdrop", "backdrop1")},
    "event_whengreaterthan": {
        "WHENGREATERTHANMENU": ("greaterThanMenu", "LOUDNESS"),
        "VALUE": ("number", 10),
    },
    "event_whenbroadcastreceived": {"BROADCAST_OPTION": ("broadcast", "message1")},
    "event_broadcast": {"BROADCAST_INPUT": ("broadcast", "message1")},
    "event_broadcastandwait": {"BROADCAST_INPUT": ("broadcast", "message1")},

    # Control
    "control_wait": {"DURATION": ("number", 1)},
    "control_repeat": {"TIMES": ("number", 10), "SUBSTACK": ("blocks", [])},
    "control_forever": {"SUBSTACK": ("blocks", [])},
    "control_if": {"CONDITION": ("boolean", False), "SUBSTACK": ("blocks", [])},
    "control_if_else": {
        "CONDITION": ("boolean", False),
        "SUBSTACK": ("blocks", []),
        "SUBSTACK2": ("blocks", []),
    },
    "control_wait_until": {"CONDITION": ("boolean", False)},
    "control_repeat_until": {"CONDITION": ("boolean", False), "SUBSTACK": ("blocks", [])},
    "control_while": {"CONDITION": ("boolean", False), "SUBSTACK": ("blocks", [])},
    "control_for_each": {
        "VARIABLE": ("variable", "i"),
        "VALUE": ("number", 10),
        "SUBSTACK": ("blocks", []),
    },
    "control_all_at_once": {"SUBSTACK": ("blocks", [])},
    "control_stop": {"STOP_OPTION": ("stopMenu", "all")},
    "control_start_as_clone": {},
    "control_create_clone_of": {"CLONE_OPTION": ("cloneTarget", "_myself_")},
    "control_delete_this_clone": {},

    # Sensing
    "sensing_touchingobject": {"TOUCHINGOBJECTMENU": ("touchingTarget", "_mouse_")},
    "sensing_touchingcolor": {"COLOR": ("color", Color(0x99, 0x66, 0xFF))},
    "sensing_coloristouchingcolor": {
        "COLOR": ("color", Color(0x99, 0x66, 0xFF)),
        "COLOR2": ("color", Color(0xFF, 0xAB, 0x19)),
    },
    "sensing_distanceto": {"DISTANCETOMENU": ("distanceToMenu", "_mouse_")},
    "sensing_askandwait": {"QUESTION": ("string", "What's your name?")},
    "sensing_answer": {},
    "sensing_keypressed": {"KEY_OPTION": ("key", "space")},
    "sensing_mousedown": {},
    "sensing_mousex": {},
    "sensing_mousey": {},
    "sensing_setdragmode": {"DRAG_MODE": ("dragModeMenu", "draggable")},
    "sensing_loudness": {},
    "sensing_loud": {},
    "sensing_timer": {},
    "sensing_resettimer": {},
    "sensing_of": {
        "PROPERTY": ("propertyOfMenu", "backdrop #"),
        "OBJECT": ("target", "_stage_"),
    },
    "sensing_current": {"CURRENTMENU": ("currentMenu", "YEAR")},
    "sensing_dayssince2000": {},
    "sensing_username": {},
    "sensing_userid": {},

    # Operators
    "operator_add": {"NUM1": ("number", ""), "NUM2": ("number", "")},
    "operator_subtract": {"NUM1": ("number", ""), "NUM2": ("number", "")},
    "operator_multiply": {"NUM1": ("number", ""), "NUM2": ("number", "")},
    "operator_divide": {"NUM1": ("number", ""), "NUM2": ("number", "")},
    "operator_random": {"FROM": ("number", 1), "TO": ("number", 10)},
    "operator_gt": {"OPERAND1": ("string", ""), "OPERAND2": ("string", "50")},
    "operator_lt": {"OPERAND1": ("string", ""), "OPERAND2": ("string", "50")},
    "operator_equals": {"OPERAND1": ("string", ""), "OPERAND2": ("string", "50")},
    "operator_and": {"OPERAND1": ("boolean", False), "OPERAND2": ("boolean", False)},
    "operator_or": {"OPERAND1": ("boolean", False), "OPERAND2": ("boolean", False)},
    "operator_not": {"OPERAND": ("boolean", False)},
    "operator_join": {"STRING1": ("string", "apple "), "STRING2": ("string", "banana")},
    "operator_letter_of": {"LETTER": ("number", 1), "STRING": ("string", "apple")},
    "operator_length": {"STRING": ("string", "apple")},
    "operator_contains": {"STRING1": ("string", "apple"), "STRING2": ("string", "a")},
    "operator_mod": {"NUM1": ("number", ""), "NUM2": ("number", "")},
    "operator_round": {"NUM": ("number", "")},
    "operator_mathop": {"OPERATOR": ("mathopMenu", "abs"), "NUM": ("number", "")},

    # Data
    "data_variable": {"VARIABLE": ("variable", "my variable")},
    "data_setvariableto": {"VARIABLE": ("variable", "my variable"), "VALUE": ("string", "0")},
    "data_changevariableby": {"VARIABLE": ("variable", "my variable"), "VALUE": ("number", 1)},
    "data_showvariable": {"VARIABLE": ("variable", "my variable")},
    "data_hidevariable": {"VARIABLE": ("variable", "my variable")},
    "data_listcontents": {"LIST": ("list", "my list")},
    "data_addtolist": {"ITEM": ("string", "thing"), "LIST": ("list", "my list")},
    "data_deleteoflist": {"INDEX": ("number", 1), "LIST": ("list", "my list")},
    "data_deletealloflist": {"LIST": ("list", "my list")},
    "data_insertatlist": {
        "ITEM": ("string", "thing"),
        "INDEX": ("number", 1),
        "LIST": ("list", "my list"),
    },
    "data_replaceitemoflist": {
        "INDEX": ("number", 1),
        "LIST": ("list", "my list"),
        "ITEM": ("string", "thing"),
    },
    "data_itemoflist": {"INDEX": ("number", 1), "LIST": ("list", "my list")},
    "data_itemnumoflist": {"ITEM": ("string", "thing"), "LIST": ("list", "my list")},
    "data_lengthoflist": {"LIST": ("list", "my list")},
    "data_listcontainsitem": {"LIST": ("list", "my list"), "ITEM": ("string", "thing")},
    "data_showlist": {"LIST": ("list", "my list")},
    "data_hidelist": {"LIST": ("list", "my list")},

    # Custom blocks
    "procedures_definition": {
        "PROCCODE": ("string", ""),
        "ARGUMENTS": ("customBlockArguments", []),
        "WARP": ("boolean", False),
    },
    "procedures_call": {
        "PROCCODE": ("string", ""),
        "INPUTS": ("customBlockInputValues", []),
    },
    "argument_reporter_string_number": {"VALUE": ("string", "")},
    "argument_reporter_boolean": {"VALUE": ("string", "")},

    # Extension: music
    "music_playDrumForBeats": {"DRUM": ("musicDrum", "1"), "BEATS": ("number", 0.25)},
    "music_restForBeats": {"BEATS": ("number", 0.25)},
    "music_playNoteForBeats": {"NOTE": ("number", 60), "BEATS": ("number", 0.25)},
    "music_setInstrument": {"INSTRUMENT": ("musicInstrument", "1")},
    "music_setTempo": {"TEMPO": ("number", 60)},
    "music_changeTempo": {"TEMPO": ("number", 20)},
    "music_getTempo": {},
    "music_midiPlayDrumForBeats": {"DRUM": ("number", 1), "BEATS": ("number", 0.25)},
    "music_midiSetInstrument": {"INSTRUMENT": ("number", 1)},

    # Extension: pen
    "pen_clear": {},
    "pen_stamp": {},
    "pen_penDown": {},
    "pen_penUp": {},
    "pen_setPenColorToColor": {"COLOR": ("color", Color(0x99, 0x66, 0xFF))},
    "pen_changePenColorParamBy": {
        "COLOR_PARAM": ("penColorParam", "color"),
        "VALUE": ("number", 10),
    },
    "pen_setPenColorParamTo": {
        "COLOR_PARAM": ("penColorParam", "color"),
        "VALUE": ("number", 50),
    },
    "pen_changePenSizeBy": {"SIZE": ("number", 1)},
    "pen_setPenSizeTo": {"SIZE": ("number", 1)},
    "pen_setPenShadeToNumber": {"SHADE": ("number", 50)},
    "pen_changePenShadeBy": {"SHADE": ("number", 10)},
    "pen_setPenHueToNumber": {"HUE": ("number", 0)},
    "pen_changePenHueBy": {"HUE": ("number", 10)},
}

KNOWN_BLOCK_INPUTS: Dict[str, Dict[str, DefaultInput]] = {
    opcode: {slot: DefaultInput(shape, initial) for slot, (shape, initial) in slots.items()}
    for opcode, slots in _BLOCK_INPUTS.items()
}

# Slots stored as [value, id?] fields rather than inputs, per opcode.
# Menu shadow opcodes appear here too: their single field holds the menu choice.
FIELD_TYPE_MAP: Dict[str, Dict[str, str]] = {
    "motion_setrotationstyle": {"STYLE": "rotationStyle"},
    "motion_pointtowards_menu": {"TOWARDS": "pointTowardsTarget"},
    "motion_glideto_menu": {"TO": "goToTarget"},
    "motion_goto_menu": {"TO": "goToTarget"},
    "motion_align_scene": {"ALIGNMENT": "scrollAlignment"},
    "looks_costume": {"COSTUME": "costume"},
    "looks_gotofrontback": {"FRONT_BACK": "frontBackMenu"},
    "looks_goforwardbackwardlayers": {"FORWARD_BACKWARD": "forwardBackwardMenu"},
    "looks_changeeffectby": {"EFFECT": "graphicEffect"},
    "looks_seteffectto": {"EFFECT": "graphicEffect"},
    "looks_backdropnumbername": {"NUMBER_NAME": "costumeNumberName"},
    "looks_costumenumbername": {"NUMBER_NAME": "costumeNumberName"},
    "looks_backdrops": {"BACKDROP": "backdrop"},
    "sound_seteffectto": {"EFFECT": "soundEffect"},
    "sound_changeeffectby": {"EFFECT": "soundEffect"},
    "sound_sounds_menu": {"SOUND_MENU": "sound"},
    "event_whenkeypressed": {"KEY_OPTION": "key"},
    "event_whenbackdropswitchesto": {"BACKDROP": "backdrop"},
    "event_whengreaterthan": {"WHENGREATERTHANMENU": "greaterThanMenu"},
    "event_whenbroadcastreceived": {"BROADCAST_OPTION": "broadcast"},
    "event_broadcast_menu": {"BROADCAST_OPTION": "broadcast"},
    "control_stop": {"STOP_OPTION": "stopMenu"},
    "control_create_clone_of_menu": {"CLONE_OPTION": "cloneTarget"},
    "control_for_each": {"VARIABLE": "variable"},
    "sensing_touchingobjectmenu": {"TOUCHINGOBJECTMENU": "touchingTarget"},
    "sensing_distancetomenu": {"DISTANCETOMENU": "distanceToMenu"},
    "sensing_keyoptions": {"KEY_OPTION": "key"},
    "sensing_setdragmode": {"DRAG_MODE": "dragModeMenu"},
    "sensing_of": {"PROPERTY": "propertyOfMenu"},
    "sensing_of_object_menu": {"OBJECT": "target"},
    "sensing_current": {"CURRENTMENU": "currentMenu"},
    "operator_mathop": {"OPERATOR": "mathopMenu"},
    "data_variable": {"VARIABLE": "variable"},
    "data_setvariableto": {"VARIABLE": "variable"},
    "data_changevariableby": {"VARIABLE": "variable"},
    "data_showvariable": {"VARIABLE": "variable"},
    "data_hidevariable": {"VARIABLE": "variable"},
    "data_listcontents": {"LIST": "list"},
    "data_addtolist": {"LIST": "list"},
    "data_deleteoflist": {"LIST": "list"},
    "data_deletealloflist": {"LIST": "list"},
    "data_insertatlist": {"LIST": "list"},
    "data_replaceitemoflist": {"LIST": "list"},
    "data_itemoflist": {"LIST": "list"},
    "data_itemnumoflist": {"LIST": "list"},
    "data_lengthoflist": {"LIST": "list"},
    "data_listcontainsitem": {"LIST": "list"},
    "data_showlist": {"LIST": "list"},
    "data_hidelist": {"LIST": "list"},
    "argument_reporter_string_number": {"VALUE": "string"},
    "argument_reporter_boolean": {"VALUE": "string"},
    "note": {"NOTE": "number"},
    # Uncompressed forms of the literal shadows
    "math_number": {"NUM": "number"},
    "math_positive_number": {"NUM": "number"},
    "math_whole_number": {"NUM": "number"},
    "math_integer": {"NUM": "number"},
    "math_angle": {"NUM": "angle"},
    "colour_picker": {"COLOUR": "color"},
    "text": {"TEXT": "string"},
    "pen_menu_colorParam": {"colorParam": "penColorParam"},
    "music_menu_DRUM": {"DRUM": "musicDrum"},
    "music_menu_INSTRUMENT": {"INSTRUMENT": "musicInstrument"},
    "videoSensing_menu_ATTRIBUTE": {"ATTRIBUTE": "videoSensingAttribute"},
    "videoSensing_menu_SUBJECT": {"SUBJECT": "videoSensingSubject"},
    "videoSensing_menu_VIDEO_STATE": {"VIDEO_STATE": "videoSensingVideoState"},
    "wedo2_menu_MOTOR_ID": {"MOTOR_ID": "wedo2MotorId"},
    "wedo2_menu_MOTOR_DIRECTION": {"MOTOR_DIRECTION": "wedo2MotorDirection"},
    "wedo2_menu_TILT_DIRECTION": {"TILT_DIRECTION": "wedo2TiltDirection"},
    "wedo2_menu_TILT_DIRECTION_ANY": {"TILT_DIRECTION_ANY": "wedo2TiltDirectionAny"},
}

InputKind = Union[int, str]

# How each input slot is written on the wire: a primitive code for compressed
# literal shadows, a shadow opcode for menu shadows, or BOOLEAN_OR_SUBSTACK for
# slots that never carry a shadow. Procedure blocks are serialized separately.
INPUT_KIND_MAP: Dict[str, Dict[str, InputKind]] = {
    "motion_movesteps": {"STEPS": MATH_NUM_PRIMITIVE},
    "motion_turnright": {"DEGREES": MATH_NUM_PRIMITIVE},
    "motion_turnleft": {"DEGREES": MATH_NUM_PRIMITIVE},
    "motion_pointindirection": {"DIRECTION": ANGLE_NUM_PRIMITIVE},
    "motion_pointtowards": {"TOWARDS": "motion_pointtowards_menu"},
    "motion_gotoxy": {"X": MATH_NUM_PRIMITIVE, "Y": MATH_NUM_PRIMITIVE},
    "motion_goto": {"TO": "motion_goto_menu"},
    "motion_glidesecstoxy": {
        "SECS": MATH_NUM_PRIMITIVE,
        "X": MATH_NUM_PRIMITIVE,
        "Y": MATH_NUM_PRIMITIVE,
    },
    "motion_glideto": {"SECS": MATH_NUM_PRIMITIVE, "TO": "motion_glideto_menu"},
    "motion_changexby": {"DX": MATH_NUM_PRIMITIVE},
    "motion_setx": {"X": MATH_NUM_PRIMITIVE},
    "motion_changeyby": {"DY": MATH_NUM_PRIMITIVE},
    "motion_sety": {"Y": MATH_NUM_PRIMITIVE},
    "motion_ifonedgebounce": {},
    "motion_setrotationstyle": {},
    "motion_xposition": {},
    "motion_yposition": {},
    "motion_direction": {},
    "looks_sayforsecs": {"MESSAGE": TEXT_PRIMITIVE, "SECS": MATH_NUM_PRIMITIVE},
    "looks_say": {"MESSAGE": TEXT_PRIMITIVE},
    "looks_thinkforsecs": {"MESSAGE": TEXT_PRIMITIVE, "SECS": MATH_NUM_PRIMITIVE},
    "looks_think": {"MESSAGE": TEXT_PRIMITIVE},
    "looks_show": {},
    "looks_hide": {},
    "looks_switchcostumeto": {"COSTUME": "looks_costume"},
    "looks_nextcostume": {},
    "looks_nextbackdrop": {},
    "looks_switchbackdropto": {"BACKDROP": "looks_backdrops"},
    "looks_switchbackdroptoandwait": {"BACKDROP": "looks_backdrops"},
    "looks_changeeffectby": {"CHANGE": MATH_NUM_PRIMITIVE},
    "looks_seteffectto": {"VALUE": MATH_NUM_PRIMITIVE},
    "looks_changesizeby": {"CHANGE": MATH_NUM_PRIMITIVE},
    "looks_setsizeto": {"SIZE": MATH_NUM_PRIMITIVE},
    "looks_cleargraphiceffects": {},
    "looks_gotofrontback": {},
    "looks_goforwardbackwardlayers": {"NUM": INTEGER_NUM_PRIMITIVE},
    "looks_costumenumbername": {},
    "looks_backdropnumbername": {},
    "looks_size": {},
    "looks_hideallsprites": {},
    "looks_changestretchby": {"CHANGE": MATH_NUM_PRIMITIVE},
    "looks_setstretchto": {"STRETCH": MATH_NUM_PRIMITIVE},
    "sound_play": {"SOUND_MENU": "sound_sounds_menu"},
    "sound_playuntildone": {"SOUND_MENU": "sound_sounds_menu"},
    "sound_stopallsounds": {},
    "sound_changeeffectby": {"VALUE": MATH_NUM_PRIMITIVE},
    "sound_seteffectto": {"VALUE": MATH_NUM_PRIMITIVE},
    "sound_cleareffects": {},
    "sound_changevolumeby": {"VOLUME": MATH_NUM_PRIMITIVE},
    "sound_setvolumeto": {"VOLUME": MATH_NUM_PRIMITIVE},
    "sound_volume": {},
    "event_whenflagclicked": {},
    "event_whenkeypressed": {},
    "event_whenstageclicked": {},
    "event_whenthisspriteclicked": {},
    "event_whenbackdropswitchesto": {},
    "event_whengreaterthan": {"VALUE": MATH_NUM_PRIMITIVE},
    "event_whenbroadcastreceived": {},
    "event_broadcast": {"BROADCAST_INPUT": BROADCAST_PRIMITIVE},
    "event_broadcastandwait": {"BROADCAST_INPUT": BROADCAST_PRIMITIVE},
    "control_wait": {"DURATION": POSITIVE_NUM_PRIMITIVE},
    "control_repeat": {"TIMES": WHOLE_NUM_PRIMITIVE, "SUBSTACK": BOOLEAN_OR_SUBSTACK},
    "control_forever": {"SUBSTACK": BOOLEAN_OR_SUBSTACK},
    "control_if": {"CONDITION": BOOLEAN_OR_SUBSTACK, "SUBSTACK": BOOLEAN_OR_SUBSTACK},
    "control_if_else": {
        "CONDITION": BOOLEAN_OR_SUBSTACK,
        "SUBSTACK": BOOLEAN_OR_SUBSTACK,
        "SUBSTACK2": BOOLEAN_OR_SUBSTACK,
    },
    "control_wait_until": {"CONDITION": BOOLEAN_OR_SUBSTACK},
    "control_repeat_until": {"CONDITION": BOOLEAN_OR_SUBSTACK, "SUBSTACK": BOOLEAN_OR_SUBSTACK},
    "control_while": {"CONDITION": BOOLEAN_OR_SUBSTACK, "SUBSTACK": BOOLEAN_OR_SUBSTACK},
    "control_for_each": {"VALUE": MATH_NUM_PRIMITIVE, "SUBSTACK": BOOLEAN_OR_SUBSTACK},
    "control_all_at_once": {"SUBSTACK": BOOLEAN_OR_SUBSTACK},
    "control_stop": {},
    "control_start_as_clone": {},
    "control_create_clone_of": {"CLONE_OPTION": "control_create_clone_of_menu"},
    "control_delete_this_clone": {},
    "sensing_touchingobject": {"TOUCHINGOBJECTMENU": "sensing_touchingobjectmenu"},
    "sensing_touchingcolor": {"COLOR": COLOR_PICKER_PRIMITIVE},
    "sensing_coloristouchingcolor": {
        "COLOR": COLOR_PICKER_PRIMITIVE,
        "COLOR2": COLOR_PICKER_PRIMITIVE,
    },
    "sensing_distanceto": {"DISTANCETOMENU": "sensing_distancetomenu"},
    "sensing_askandwait": {"QUESTION": TEXT_PRIMITIVE},
    "sensing_answer": {},
    "sensing_keypressed": {"KEY_OPTION": "sensing_keyoptions"},
    "sensing_mousedown": {},
    "sensing_mousex": {},
    "sensing_mousey": {},
    "sensing_setdragmode": {},
    "sensing_loudness": {},
    "sensing_loud": {},
    "sensing_timer": {},
    "sensing_resettimer": {},
    "sensing_of": {"OBJECT": "sensing_of_object_menu"},
    "sensing_current": {},
    "sensing_dayssince2000": {},
    "sensing_username": {},
    "sensing_userid": {},
    "operator_add": {"NUM1": MATH_NUM_PRIMITIVE, "NUM2": MATH_NUM_PRIMITIVE},
    "operator_subtract": {"NUM1": MATH_NUM_PRIMITIVE, "NUM2": MATH_NUM_PRIMITIVE},
    "operator_multiply": {"NUM1": MATH_NUM_PRIMITIVE, "NUM2": MATH_NUM_PRIMITIVE},
    "operator_divide": {"NUM1": MATH_NUM_PRIMITIVE, "NUM2": MATH_NUM_PRIMITIVE},
    "operator_random": {"FROM": MATH_NUM_PRIMITIVE, "TO": MATH_NUM_PRIMITIVE},
    "operator_lt": {"OPERAND1": TEXT_PRIMITIVE, "OPERAND2": TEXT_PRIMITIVE},
    "operator_equals": {"OPERAND1": TEXT_PRIMITIVE, "OPERAND2": TEXT_PRIMITIVE},
    "operator_gt": {"OPERAND1": TEXT_PRIMITIVE, "OPERAND2": TEXT_PRIMITIVE},
    "operator_and": {"OPERAND1": BOOLEAN_OR_SUBSTACK, "OPERAND2": BOOLEAN_OR_SUBSTACK},
    "operator_or": {"OPERAND1": BOOLEAN_OR_SUBSTACK, "OPERAND2": BOOLEAN_OR_SUBSTACK},
    "operator_not": {"OPERAND": BOOLEAN_OR_SUBSTACK},
    "operator_join": {"STRING1": TEXT_PRIMITIVE, "STRING2": TEXT_PRIMITIVE},
    "operator_letter_of": {"LETTER": WHOLE_NUM_PRIMITIVE, "STRING": TEXT_PRIMITIVE},
    "operator_length": {"STRING": TEXT_PRIMITIVE},
    "operator_contains": {"STRING1": TEXT_PRIMITIVE, "STRING2": TEXT_PRIMITIVE},
    "operator_mod": {"NUM1": MATH_NUM_PRIMITIVE, "NUM2": MATH_NUM_PRIMITIVE},
    "operator_round": {"NUM": MATH_NUM_PRIMITIVE},
    "operator_mathop": {"NUM": MATH_NUM_PRIMITIVE},
    "data_variable": {},
    "data_setvariableto": {"VALUE": TEXT_PRIMITIVE},
    "data_changevariableby": {"VALUE": MATH_NUM_PRIMITIVE},
    "data_showvariable": {},
    "data_hidevariable": {},
    "data_listcontents": {},
    "data_addtolist": {"ITEM": TEXT_PRIMITIVE},
    "data_deleteoflist": {"INDEX": INTEGER_NUM_PRIMITIVE},
    "data_deletealloflist": {},
    "data_insertatlist": {"INDEX": INTEGER_NUM_PRIMITIVE, "ITEM": TEXT_PRIMITIVE},
    "data_replaceitemoflist": {"INDEX": INTEGER_NUM_PRIMITIVE, "ITEM": TEXT_PRIMITIVE},
    "data_itemoflist": {"INDEX": INTEGER_NUM_PRIMITIVE},
    "data_itemnumoflist": {"ITEM": TEXT_PRIMITIVE},
    "data_lengthoflist": {},
    "data_listcontainsitem": {"ITEM": TEXT_PRIMITIVE},
    "data_showlist": {},
    "data_hidelist": {},
    "argument_reporter_boolean": {},
    "argument_reporter_string_number": {},
    "music_playDrumForBeats": {"DRUM": "music_menu_DRUM", "BEATS": MATH_NUM_PRIMITIVE},
    "music_restForBeats": {"BEATS": MATH_NUM_PRIMITIVE},
    "music_playNoteForBeats": {"NOTE": "note", "BEATS": MATH_NUM_PRIMITIVE},
    "music_setInstrument": {"INSTRUMENT": "music_menu_INSTRUMENT"},
    "music_setTempo": {"TEMPO": MATH_NUM_PRIMITIVE},
    "music_changeTempo": {"TEMPO": MATH_NUM_PRIMITIVE},
    "music_getTempo": {},
    "music_midiPlayDrumForBeats": {"DRUM": MATH_NUM_PRIMITIVE, "BEATS": MATH_NUM_PRIMITIVE},
    "music_midiSetInstrument": {"INSTRUMENT": MATH_NUM_PRIMITIVE},
    "pen_clear": {},
    "pen_stamp": {},
    "pen_penDown": {},
    "pen_penUp": {},
    "pen_setPenColorToColor": {"COLOR": COLOR_PICKER_PRIMITIVE},
    "pen_changePenColorParamBy": {"COLOR_PARAM": "pen_menu_colorParam", "VALUE": MATH_NUM_PRIMITIVE},
    "pen_setPenColorParamTo": {"COLOR_PARAM": "pen_menu_colorParam", "VALUE": MATH_NUM_PRIMITIVE},
    "pen_changePenSizeBy": {"SIZE": MATH_NUM_PRIMITIVE},
    "pen_setPenSizeTo": {"SIZE": MATH_NUM_PRIMITIVE},
    "pen_setPenShadeToNumber": {"SHADE": MATH_NUM_PRIMITIVE},
    "pen_changePenShadeBy": {"SHADE": MATH_NUM_PRIMITIVE},
    "pen_setPenHueToNumber": {"HUE": MATH_NUM_PRIMITIVE},
    "pen_changePenHueBy": {"HUE": MATH_NUM_PRIMITIVE},
}

# Blocks that wrap one or two substacks
C_BLOCKS = frozenset({
    "control_forever",
    "control_repeat",
    "control_repeat_until",
    "control_while",
    "control_for_each",
    "control_all_at_once",
    "control_if",
    "control_if_else",
})

# Mapping of opcodes to scratchblocks format strings.
# Keys are opcodes, values are format strings using slot names.
OPCODE_MAP: Dict[str, str] = {
    # Events
    "event_whenflagclicked": "when green flag clicked",
    "event_whenkeypressed": "when [{KEY_OPTION} v] key pressed",
    "event_whenthisspriteclicked": "when this sprite clicked",
    "event_whenstageclicked": "when stage clicked",
    "event_whenbackdropswitchesto": "when backdrop switches to [{BACKDROP} v]",
    "event_whengreaterthan": "when [{WHENGREATERTHANMENU} v] > {VALUE}",
    "event_whenbroadcastreceived": "when I receive [{BROADCAST_OPTION} v]",
    "event_broadcast": "broadcast {BROADCAST_INPUT}",
    "event_broadcastandwait": "broadcast {BROADCAST_INPUT} and wait",

    # Motion
    "motion_movesteps": "move {STEPS} steps",
    "motion_turnright": "turn right {DEGREES} degrees",
    "motion_turnleft": "turn left {DEGREES} degrees",
    "motion_goto": "go to {TO}",
    "motion_gotoxy": "go to x: {X} y: {Y}",
    "motion_glideto": "glide {SECS} secs to {TO}",
    "motion_glidesecstoxy": "glide {SECS} secs to x: {X} y: {Y}",
    "motion_pointindirection": "point in direction {DIRECTION}",
    "motion_pointtowards": "point towards {TOWARDS}",
    "motion_changexby": "change x by {DX}",
    "motion_setx": "set x to {X}",
    "motion_changeyby": "change y by {DY}",
    "motion_sety": "set y to {Y}",
    "motion_ifonedgebounce": "if on edge, bounce",
    "motion_setrotationstyle": "set rotation style [{STYLE} v]",
    "motion_xposition": "(x position)",
    "motion_yposition": "(y position)",
    "motion_direction": "(direction)",

    # Looks
    "looks_sayforsecs": "say {MESSAGE} for {SECS} seconds",
    "looks_say": "say {MESSAGE}",
    "looks_thinkforsecs": "think {MESSAGE} for {SECS} seconds",
    "looks_think": "think {MESSAGE}",
    "looks_switchcostumeto": "switch costume to {COSTUME}",
    "looks_nextcostume": "next costume",
    "looks_switchbackdropto": "switch backdrop to {BACKDROP}",
    "looks_switchbackdroptoandwait": "switch backdrop to {BACKDROP} and wait",
    "looks_nextbackdrop": "next backdrop",
    "looks_changesizeby": "change size by {CHANGE}",
    "looks_setsizeto": "set size to {SIZE} %",
    "looks_changeeffectby": "change [{EFFECT} v] effect by {CHANGE}",
    "looks_seteffectto": "set [{EFFECT} v] effect to {VALUE}",
    "looks_cleargraphiceffects": "clear graphic effects",
    "looks_show": "show",
    "looks_hide": "hide",
    "looks_gotofrontback": "go to [{FRONT_BACK} v] layer",
    "looks_goforwardbackwardlayers": "go [{FORWARD_BACKWARD} v] {NUM} layers",
    "looks_costumenumbername": "(costume [{NUMBER_NAME} v])",
    "looks_backdropnumbername": "(backdrop [{NUMBER_NAME} v])",
    "looks_size": "(size)",

    # Sound
    "sound_playuntildone": "play sound {SOUND_MENU} until done",
    "sound_play": "start sound {SOUND_MENU}",
    "sound_stopallsounds": "stop all sounds",
    "sound_changeeffectby": "change [{EFFECT} v] effect by {VALUE}",
    "sound_seteffectto": "set [{EFFECT} v] effect to {VALUE}",
    "sound_changevolumeby": "change volume by {VOLUME}",
    "sound_setvolumeto": "set volume to {VOLUME} %",
    "sound_cleareffects": "clear sound effects",
    "sound_volume": "(volume)",

    # Control
    "control_wait": "wait {DURATION} seconds",
    "control_repeat": "repeat {TIMES}",
    "control_forever": "forever",
    "control_if": "if {CONDITION} then",
    "control_if_else": "if {CONDITION} then",
    "control_wait_until": "wait until {CONDITION}",
    "control_repeat_until": "repeat until {CONDITION}",
    "control_while": "while {CONDITION}",
    "control_for_each": "for each [{VARIABLE} v] in {VALUE}",
    "control_all_at_once": "all at once",
    "control_stop": "stop [{STOP_OPTION} v]",
    "control_start_as_clone": "when I start as a clone",
    "control_create_clone_of": "create clone of {CLONE_OPTION}",
    "control_delete_this_clone": "delete this clone",

    # Sensing
    "sensing_touchingobject": "<touching {TOUCHINGOBJECTMENU} ?>",
    "sensing_touchingcolor": "<touching color {COLOR} ?>",
    "sensing_coloristouchingcolor": "<color {COLOR} is touching {COLOR2} ?>",
    "sensing_distanceto": "(distance to {DISTANCETOMENU})",
    "sensing_askandwait": "ask {QUESTION} and wait",
    "sensing_answer": "(answer)",
    "sensing_keypressed": "<key {KEY_OPTION} pressed?>",
    "sensing_mousedown": "<mouse down?>",
    "sensing_mousex": "(mouse x)",
    "sensing_mousey": "(mouse y)",
    "sensing_setdragmode": "set drag mode [{DRAG_MODE} v]",
    "sensing_loudness": "(loudness)",
    "sensing_loud": "<loud?>",
    "sensing_timer": "(timer)",
    "sensing_resettimer": "reset timer",
    "sensing_of": "([{PROPERTY} v] of {OBJECT})",
    "sensing_current": "(current [{CURRENTMENU} v])",
    "sensing_dayssince2000": "(days since 2000)",
    "sensing_username": "(username)",
    "sensing_userid": "(user id)",

    # Operators
    "operator_add": "({NUM1} + {NUM2})",
    "operator_subtract": "({NUM1} - {NUM2})",
    "operator_multiply": "({NUM1} * {NUM2})",
    "operator_divide": "({NUM1} / {NUM2})",
    "operator_random": "(pick random {FROM} to {TO})",
    "operator_gt": "<{OPERAND1} > {OPERAND2}>",
    "operator_lt": "<{OPERAND1} < {OPERAND2}>",
    "operator_equals": "<{OPERAND1} = {OPERAND2}>",
    "operator_and": "<{OPERAND1} and {OPERAND2}>",
    "operator_or": "<{OPERAND1} or {OPERAND2}>",
    "operator_not": "<not {OPERAND}>",
    "operator_join": "(join {STRING1} {STRING2})",
    "operator_letter_of": "(letter {LETTER} of {STRING})",
    "operator_length": "(length of {STRING})",
    "operator_contains": "<{STRING1} contains {STRING2} ?>",
    "operator_mod": "({NUM1} mod {NUM2})",
    "operator_round": "(round {NUM})",
    "operator_mathop": "([{OPERATOR} v] of {NUM})",

    # Variables
    "data_variable": "({VARIABLE})",
    "data_setvariableto": "set [{VARIABLE} v] to {VALUE}",
    "data_changevariableby": "change [{VARIABLE} v] by {VALUE}",
    "data_showvariable": "show variable [{VARIABLE} v]",
    "data_hidevariable": "hide variable [{VARIABLE} v]",
    "data_listcontents": "({LIST} :: list)",
    "data_addtolist": "add {ITEM} to [{LIST} v]",
    "data_deleteoflist": "delete {INDEX} of [{LIST} v]",
    "data_deletealloflist": "delete all of [{LIST} v]",
    "data_insertatlist": "insert {ITEM} at {INDEX} of [{LIST} v]",
    "data_replaceitemoflist": "replace item {INDEX} of [{LIST} v] with {ITEM}",
    "data_itemoflist": "(item {INDEX} of [{LIST} v])",
    "data_itemnumoflist": "(item # of {ITEM} in [{LIST} v])",
    "data_lengthoflist": "(length of [{LIST} v])",
    "data_listcontainsitem": "<[{LIST} v] contains {ITEM} ?>",
    "data_showlist": "show list [{LIST} v]",
    "data_hidelist": "hide list [{LIST} v]",

    # Custom Blocks (Procedures)
    "argument_reporter_string_number": "({VALUE})",
    "argument_reporter_boolean": "<{VALUE}>",

    # Music
    "music_playDrumForBeats": "play drum {DRUM} for {BEATS} beats",
    "music_restForBeats": "rest for {BEATS} beats",
    "music_playNoteForBeats": "play note {NOTE} for {BEATS} beats",
    "music_setInstrument": "set instrument to {INSTRUMENT}",
    "music_setTempo": "set tempo to {TEMPO}",
    "music_changeTempo": "change tempo by {TEMPO}",
    "music_getTempo": "(tempo)",
    "music_midiPlayDrumForBeats": "play drum {DRUM} for {BEATS} beats",
    "music_midiSetInstrument": "set instrument to {INSTRUMENT}",

    # Pen
    "pen_clear": "erase all",
    "pen_stamp": "stamp",
    "pen_penDown": "pen down",
    "pen_penUp": "pen up",
    "pen_setPenColorToColor": "set pen color to {COLOR}",
    "pen_changePenColorParamBy": "change pen {COLOR_PARAM} by {VALUE}",
    "pen_setPenColorParamTo": "set pen {COLOR_PARAM} to {VALUE}",
    "pen_changePenSizeBy": "change pen size by {SIZE}",
    "pen_setPenSizeTo": "set pen size to {SIZE}",
    "pen_setPenShadeToNumber": "set pen shade to {SHADE}",
    "pen_changePenShadeBy": "change pen shade by {SHADE}",
    "pen_setPenHueToNumber": "set pen color to {HUE}",
    "pen_changePenHueBy": "change pen color by {HUE}",
}
