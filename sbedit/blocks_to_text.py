import string
from typing import Any, Dict, List

from .block import Block
from .block_input import MENU_TYPES, BlockInput, Color
from .constants import PROCEDURE_CALL, PROCEDURE_DEFINITION
from .opcode_utils import split_proccode
from .opcodes import C_BLOCKS, FIELD_TYPE_MAP, OPCODE_MAP
from .project import Project
from .target import Target


def format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_input(value: BlockInput) -> str:
    """Render a slot value the way scratchblocks writes it inline."""
    if value.type in ("number", "angle"):
        return f"({format_number(value.value)})"
    if value.type == "color":
        hex_value = value.value.to_hex() if isinstance(value.value, Color) else value.value
        return f"[{hex_value}]"
    if value.type == "boolean":
        return "<not <>>" if value.value else "<>"
    if value.type == "broadcast" or value.type in MENU_TYPES:
        return f"[{value.value} v]"
    if value.type == "block":
        return generate_block_code(value.value).strip()
    if value.type == "blocks":
        return generate_block_code(value.value[0]).strip() if value.value else ""
    if value.type in ("variable", "list"):
        return str(value.value)
    return f"[{value.value}]"


def render_field(value: BlockInput) -> str:
    if isinstance(value.value, Color):
        return value.value.to_hex()
    if value.type in ("number", "angle"):
        return format_number(value.value)
    return str(value.value)


def render_definition(block: Block) -> str:
    proccode = block.inputs["PROCCODE"].value if "PROCCODE" in block.inputs else ""
    arguments = block.inputs.get("ARGUMENTS")
    parts: List[str] = []
    for arg in (arguments.value if arguments else []):
        if arg.type == "label":
            parts.append(arg.name.strip())
        elif arg.type == "boolean":
            parts.append(f"<{arg.name}>")
        else:
            parts.append(f"({arg.name})")
    text = "define " + " ".join(p for p in parts if p) if parts else f"define {proccode}"
    warp = block.inputs.get("WARP")
    if warp is not None and warp.value:
        text += " #norefresh"
    return text


def render_call(block: Block) -> str:
    proccode = block.inputs["PROCCODE"].value if "PROCCODE" in block.inputs else ""
    given = block.inputs.get("INPUTS")
    values = list(given.value) if given is not None else []
    parts: List[str] = []
    for part in split_proccode(proccode):
        if part in ("%s", "%n", "%b"):
            parts.append(render_input(values.pop(0)) if values else ("<>" if part == "%b" else "[]"))
        elif part.strip():
            parts.append(part.strip())
    return " ".join(parts)


def generate_block_code(block: Block, indent_level: int = 0) -> str:
    indent = "    " * indent_level

    if block.opcode == PROCEDURE_DEFINITION:
        return f"{indent}{render_definition(block)}\n"
    if block.opcode == PROCEDURE_CALL:
        return f"{indent}{render_call(block)}\n"

    format_str = OPCODE_MAP.get(block.opcode, f"UNKNOWN_BLOCK_{block.opcode}")
    fields = FIELD_TYPE_MAP.get(block.opcode, {})

    args: Dict[str, str] = {}
    for name, value in block.inputs.items():
        if value.type == "blocks" and block.opcode in C_BLOCKS:
            continue
        args[name] = render_field(value) if name in fields else render_input(value)

    required_keys = [fname for _, fname, _, _ in string.Formatter().parse(format_str) if fname]
    for key in required_keys:
        if key not in args:
            args[key] = "<>" if ("OPERAND" in key or "CONDITION" in key) else ""
    result = f"{indent}{format_str.format(**args)}\n"

    if block.opcode in C_BLOCKS:
        result += generate_stack_code(_substack(block, "SUBSTACK"), indent_level + 1)
        if block.opcode == "control_if_else":
            result += f"{indent}else\n"
            result += generate_stack_code(_substack(block, "SUBSTACK2"), indent_level + 1)
        result += f"{indent}end\n"

    return result


def _substack(block: Block, slot: str) -> List[Block]:
    value = block.inputs.get(slot)
    return value.nested_blocks if value is not None else []


def generate_stack_code(stack: List[Block], indent_level: int = 0) -> str:
    return "".join(generate_block_code(block, indent_level) for block in stack)


def generate_target_code(target: Target) -> str:
    scripts = sorted(target.scripts, key=lambda s: (s.y, s.x))
    lines: List[str] = []
    for script in scripts:
        lines.append(generate_stack_code(script.blocks))
        lines.append("\n")
    return "".join(lines).rstrip() + "\n" if lines else ""


def generate_project_code(project: Project) -> str:
    """Render every target's scripts, each under a ``// name`` heading."""
    sections = []
    for target in project.targets:
        sections.append(f"// {target.name}\n{generate_target_code(target)}")
    return "\n".join(sections)
