"""Typed values a block slot can hold.

Every slot of a decoded block holds a ``BlockInput``: a ``type`` tag drawn from
the closed vocabulary below plus a ``value`` whose Python type depends on the
tag. Nested blocks use the ``block`` (single reporter) and ``blocks``
(substack) tags; literals use the scalar and menu tags.
"""

from dataclasses import dataclass
from typing import Any, List


# Tags whose value is a plain scalar
SCALAR_TYPES = {"number", "angle", "string", "boolean", "broadcast", "variable", "list"}

# Tags whose value is one of a closed set of menu choices (stored as str)
MENU_TYPES = {
    "costume",
    "backdrop",
    "graphicEffect",
    "sound",
    "soundEffect",
    "goToTarget",
    "pointTowardsTarget",
    "rotationStyle",
    "scrollAlignment",
    "penColorParam",
    "musicDrum",
    "musicInstrument",
    "videoSensingAttribute",
    "videoSensingSubject",
    "videoSensingVideoState",
    "wedo2MotorId",
    "wedo2MotorDirection",
    "wedo2TiltDirection",
    "wedo2TiltDirectionAny",
    "wedo2Op",
    "key",
    "greaterThanMenu",
    "stopMenu",
    "target",
    "cloneTarget",
    "touchingTarget",
    "distanceToMenu",
    "dragModeMenu",
    "propertyOfMenu",
    "currentMenu",
    "mathopMenu",
    "frontBackMenu",
    "forwardBackwardMenu",
    "costumeNumberName",
}

BLOCK_TYPES = {"block", "blocks"}

CUSTOM_BLOCK_TYPES = {"customBlockArguments", "customBlockInputValues"}

INPUT_TYPES = SCALAR_TYPES | MENU_TYPES | BLOCK_TYPES | CUSTOM_BLOCK_TYPES | {"color"}

ARGUMENT_TYPES = ("label", "numberOrString", "boolean")


@dataclass(frozen=True)
class Color:
    """An RGB color stored on the wire as ``#rrggbb``."""
    r: int
    g: int
    b: int

    @classmethod
    def from_hex(cls, text: str) -> "Color":
        digits = text.lstrip("#")
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return cls(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


@dataclass
class CustomBlockArgument:
    """One piece of a custom block's signature: a label or a typed argument."""
    type: str
    name: str
    default_value: Any = None

    def __post_init__(self) -> None:
        if self.type not in ARGUMENT_TYPES:
            raise ValueError(f"Unknown custom block argument type: {self.type}")
        if self.type == "label":
            self.default_value = None
        elif self.default_value is None:
            self.default_value = False if self.type == "boolean" else ""


@dataclass
class BlockInput:
    type: str
    value: Any = None

    def __post_init__(self) -> None:
        if self.type not in INPUT_TYPES:
            raise ValueError(f"Unknown block input type: {self.type}")

    @property
    def is_block(self) -> bool:
        return self.type in BLOCK_TYPES

    @property
    def nested_blocks(self) -> List[Any]:
        """Blocks held directly by this input, in order."""
        if self.type == "block":
            return [self.value] if self.value is not None else []
        if self.type == "blocks":
            return list(self.value or [])
        if self.type == "customBlockInputValues":
            nested: List[Any] = []
            for item in self.value or []:
                nested.extend(item.nested_blocks)
            return nested
        return []


@dataclass
class DefaultInput:
    """Shape and documented initial value of one slot of a known opcode."""
    type: str
    initial: Any = None

    def make(self) -> BlockInput:
        initial = self.initial
        if isinstance(initial, list):
            initial = list(initial)
        return BlockInput(self.type, initial)
