"""Opcode-related lookups over the static tables."""

import math
import re
from typing import Any, List, Optional

from .block_input import BlockInput, DefaultInput
from .opcodes import FIELD_TYPE_MAP, HAT_OPCODES, INPUT_KIND_MAP, KNOWN_BLOCK_INPUTS, InputKind

# Argument placeholders in a proc-code; a backslash escapes the percent sign
PROCCODE_ARG_RE = re.compile(r"(?<!\\)(%[nsb])")


def is_hat(opcode: str) -> bool:
    return opcode in HAT_OPCODES


def is_known_opcode(opcode: str) -> bool:
    return opcode in KNOWN_BLOCK_INPUTS


def default_input(opcode: str, slot: str) -> Optional[DefaultInput]:
    """Return the documented shape and initial value of a slot, or None."""
    return KNOWN_BLOCK_INPUTS.get(opcode, {}).get(slot)


def shape_of(opcode: str, slot: str) -> Optional[str]:
    """Return the input type a slot of a known opcode holds."""
    default = default_input(opcode, slot)
    if default is not None:
        return default.type
    return FIELD_TYPE_MAP.get(opcode, {}).get(slot)


def field_type(opcode: str, field_name: str) -> Optional[str]:
    return FIELD_TYPE_MAP.get(opcode, {}).get(field_name)


def input_kind(opcode: str, slot: str) -> Optional[InputKind]:
    return INPUT_KIND_MAP.get(opcode, {}).get(slot)


def make_default_input(opcode: str, slot: str) -> Optional[BlockInput]:
    default = default_input(opcode, slot)
    return default.make() if default is not None else None


def coerce_number(val: Any) -> Optional[float]:
    """Try to convert a wire value to a number, returning None if not possible."""
    if isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        return val
    if not isinstance(val, str):
        return None
    text = val.strip()
    if not text:
        return None
    try:
        num = float(text)
    except ValueError:
        return None
    if math.isnan(num) or math.isinf(num):
        return None
    if "." not in text and "e" not in text.lower() and num.is_integer():
        return int(num)
    return num


def optional_to_number(val: Any) -> Any:
    """Return ``val`` as a number when it reads as one, else unchanged."""
    num = coerce_number(val)
    return val if num is None else num


def split_proccode(proccode: str) -> List[str]:
    """Split ``"letter %n of %s"`` into ``["letter", "%n", "of", "%s"]``."""
    parts = [part.strip() for part in PROCCODE_ARG_RE.split(proccode)]
    return [part for part in parts if part]
