from dataclasses import dataclass, field
from typing import List, Optional

from .block import Block


def _input_value(block: Block, slot: str) -> str:
    value = block.inputs.get(slot)
    return "" if value is None or value.value is None else str(value.value)


def derive_script_name(blocks: List[Block]) -> str:
    """Build a readable identifier for a script from its first block."""
    if not blocks:
        return ""
    first = blocks[0]
    if first.opcode == "event_whenflagclicked":
        return "when_green_flag_clicked"
    if first.opcode == "event_whenbroadcastreceived":
        return f"when_i_receive_{_input_value(first, 'BROADCAST_OPTION')}"
    if first.opcode == "event_whenkeypressed":
        return f"when_key_{_input_value(first, 'KEY_OPTION')}_pressed"
    if first.opcode == "procedures_definition":
        arguments = first.inputs.get("ARGUMENTS")
        labels = [arg.name for arg in (arguments.value if arguments else []) if arg.type == "label"]
        return "_".join(labels)
    return "_".join(first.opcode.split("_")[1:])


@dataclass(eq=False)
class Script:
    """A top-level stack: an optional hat followed by its body blocks."""
    blocks: List[Block] = field(default_factory=list)
    x: float = 0
    y: float = 0
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.name is None:
            self.name = derive_script_name(self.blocks)

    @property
    def hat(self) -> Optional[Block]:
        return script_hat(self)

    @property
    def body(self) -> List[Block]:
        return script_body(self)

    def flatten(self) -> List[Block]:
        return flatten_script(self)


def script_hat(script: Script) -> Optional[Block]:
    if script.blocks and script.blocks[0].is_hat:
        return script.blocks[0]
    return None


def script_body(script: Script) -> List[Block]:
    return [block for block in script.blocks if not block.is_hat]


def flatten_script(script: Script) -> List[Block]:
    """Every block of the script: each stack block followed by its nested blocks."""
    flat: List[Block] = []
    for block in script.blocks:
        flat.extend(block.walk())
    return flat
