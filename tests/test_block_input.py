from dataclasses import fields

import pytest

from sbedit.block_input import BlockInput, Color, CustomBlockArgument, DefaultInput
from sbedit.constants import BOOLEAN_OR_SUBSTACK, BROADCAST_PRIMITIVE, MATH_NUM_PRIMITIVE
from sbedit.opcode_utils import (
    coerce_number,
    default_input,
    field_type,
    input_kind,
    is_hat,
    is_known_opcode,
    make_default_input,
    optional_to_number,
    shape_of,
    split_proccode,
)
from sbedit.opcodes import FIELD_TYPE_MAP, INPUT_KIND_MAP, KNOWN_BLOCK_INPUTS


def test_unknown_input_type_rejected():
    with pytest.raises(ValueError):
        BlockInput("banana", 1)


def test_nested_blocks_of_each_kind():
    from sbedit.block import Block

    a, b = Block("motion_movesteps"), Block("looks_show")
    assert BlockInput("block", a).nested_blocks == [a]
    assert BlockInput("blocks", [a, b]).nested_blocks == [a, b]
    values = BlockInput("customBlockInputValues", [BlockInput("block", b), BlockInput("string", "x")])
    assert values.nested_blocks == [b]
    assert BlockInput("number", 3).nested_blocks == []


def test_color_hex():
    color = Color.from_hex("#9966FF")
    assert color == Color(0x99, 0x66, 0xFF)
    assert color.to_hex() == "#9966ff"
    assert Color.from_hex("#fff") == Color(255, 255, 255)
    with pytest.raises(ValueError):
        Color.from_hex("#12")


def test_custom_block_argument_defaults():
    assert CustomBlockArgument("boolean", "flag").default_value is False
    assert CustomBlockArgument("numberOrString", "n").default_value == ""
    assert CustomBlockArgument("label", "jump", "ignored").default_value is None
    with pytest.raises(ValueError):
        CustomBlockArgument("color", "c")


def test_default_input_make_copies_lists():
    default = DefaultInput("blocks", [])
    first, second = default.make(), default.make()
    first.value.append("x")
    assert second.value == []


def test_tables_cover_every_known_slot():
    for opcode, slots in KNOWN_BLOCK_INPUTS.items():
        if opcode.startswith("procedures_"):
            continue
        for slot in slots:
            assert slot in INPUT_KIND_MAP.get(opcode, {}) or slot in FIELD_TYPE_MAP.get(opcode, {}), (opcode, slot)


def test_opcode_lookups():
    assert is_hat("event_whenflagclicked")
    assert not is_hat("motion_movesteps")
    assert is_known_opcode("motion_movesteps")
    assert not is_known_opcode("someext_doThing")
    assert default_input("motion_movesteps", "STEPS") == DefaultInput("number", 10)
    assert make_default_input("motion_movesteps", "STEPS") == BlockInput("number", 10)
    assert make_default_input("motion_movesteps", "NOPE") is None
    assert shape_of("control_if", "SUBSTACK") == "blocks"
    assert field_type("data_setvariableto", "VARIABLE") == "variable"
    assert input_kind("motion_movesteps", "STEPS") == MATH_NUM_PRIMITIVE
    assert input_kind("control_if", "CONDITION") == BOOLEAN_OR_SUBSTACK
    assert input_kind("event_broadcast", "BROADCAST_INPUT") == BROADCAST_PRIMITIVE
    assert input_kind("motion_goto", "TO") == "motion_goto_menu"


def test_default_input_copies_list_initials():
    default = default_input("control_if", "SUBSTACK")
    assert [f.name for f in fields(DefaultInput)] == ["type", "initial"]
    first, second = default.make(), default.make()
    first.value.append("x")
    assert second == BlockInput("blocks", [])
    assert default.initial == []


def test_number_coercion():
    assert coerce_number("10") == 10
    assert isinstance(coerce_number("10"), int)
    assert coerce_number("2.5") == 2.5
    assert coerce_number(" ") is None
    assert coerce_number("nan") is None
    assert coerce_number(True) is None
    assert optional_to_number("abc") == "abc"
    assert optional_to_number("") == ""
    assert optional_to_number("-3") == -3


def test_split_proccode():
    assert split_proccode("jump %n if %b") == ["jump", "%n", "if", "%b"]
    assert split_proccode("say %s") == ["say", "%s"]
    assert split_proccode(r"100\% done %n") == [r"100\% done", "%n"]
