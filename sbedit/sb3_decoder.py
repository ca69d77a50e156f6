"""Decode sb3 project.json data into the program model.

Each target stores its blocks as a flat dict keyed by block id. Scripts are
rebuilt by starting at every non-shadow top-level block and following the
``next`` links; slots are expanded from the compressed wire forms:

- ``[4..8, value]`` number and angle literals, ``[9, "#rrggbb"]`` colors,
  ``[10, text]`` strings and ``[11, name, id]`` broadcasts become literals
- ``[12, name, id]`` / ``[13, name, id]`` become ``data_variable`` /
  ``data_listcontents`` reporter blocks
- a shadow block id is collapsed into its parent: menu shadows become the
  slot's value, ``procedures_prototype`` shadows unpack into PROCCODE,
  ARGUMENTS and WARP
- status 3 inputs keep their hidden shadow value in ``Block.obscured``

Asset payloads are fetched through a caller-supplied function; every fetch
for the project runs concurrently and any failure aborts the decode.
"""

import asyncio
import copy
import inspect
import json
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple, Union

from .assets import AssetRequest, Costume, Sound, as_bytes, fill_rotation_center
from .block import Block
from .block_input import BlockInput, Color, CustomBlockArgument
from .constants import (
    ANGLE_NUM_PRIMITIVE,
    BROADCAST_PRIMITIVE,
    COLOR_PICKER_PRIMITIVE,
    DEFAULT_LIST_MONITOR,
    DEFAULT_VARIABLE_MONITOR,
    INPUT_DIFF_BLOCK_SHADOW,
    LIST_PRIMITIVE,
    LIST_REPORTER,
    NUMBER_PRIMITIVES,
    PROCEDURE_CALL,
    PROCEDURE_PROTOTYPE,
    ROTATION_STYLE_FROM_SB3,
    TEXT_PRIMITIVE,
    VAR_PRIMITIVE,
    VARIABLE_REPORTER,
)
from .data import VARIABLE_MODES, Variable
from .data import List as ListData
from .diagnostics import DiagnosticCollector, DiagnosticContext
from .errors import AssetRetrievalError, ProjectParseError
from .id_oracle import IdOracle
from .opcode_utils import (
    coerce_number,
    field_type,
    is_known_opcode,
    make_default_input,
    optional_to_number,
    shape_of,
    split_proccode,
)
from .opcodes import KNOWN_BLOCK_INPUTS
from .project import Project
from .script import Script
from .target import Sprite, Stage

AssetFetcher = Callable[[AssetRequest], Union[bytes, Awaitable[bytes]]]

# proccode -> (argument ids, argument kinds) in declaration order
ProcedureTable = Dict[str, Tuple[List[str], List[str]]]


def _parse_json_list(text: Any) -> List[Any]:
    if isinstance(text, list):
        return list(text)
    if not text:
        return []
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError):
        return []
    return parsed if isinstance(parsed, list) else []


def _argument_kinds(proccode: str) -> List[str]:
    return ["boolean" if part == "%b" else "numberOrString"
            for part in split_proccode(proccode) if part in ("%s", "%n", "%b")]


def is_empty_not(block: Block) -> bool:
    """True for a childless ``operator_not``, the wire form of a literal true."""
    if block.opcode != "operator_not" or block.obscured:
        return False
    operand = block.inputs.get("OPERAND")
    return operand is None or (operand.type == "boolean" and operand.value is False)


def collect_procedures(blocks: Dict[str, Any]) -> ProcedureTable:
    """Index every custom block prototype of a target by its proc-code."""
    table: ProcedureTable = {}
    for raw in blocks.values():
        if not isinstance(raw, dict) or raw.get("opcode") != PROCEDURE_PROTOTYPE:
            continue
        mutation = raw.get("mutation") or {}
        proccode = mutation.get("proccode", "")
        arg_ids = [str(a) for a in _parse_json_list(mutation.get("argumentids"))]
        table[proccode] = (arg_ids, _argument_kinds(proccode))
    return table


class TargetDecoder:
    """Rebuilds the scripts of one target from its flat block dict."""

    def __init__(self, blocks: Dict[str, Any], ctx: DiagnosticContext) -> None:
        self.raw_blocks = blocks
        self.ctx = ctx
        self.oracle = IdOracle(blocks.keys(), prefix="reporter")
        self.procedures = collect_procedures(blocks)
        self._active: Set[str] = set()

    def decode_scripts(self) -> List[Script]:
        scripts: List[Script] = []
        for block_id, raw in self.raw_blocks.items():
            if isinstance(raw, list):
                script = self._decode_loose_reporter(block_id, raw)
                if script is not None:
                    scripts.append(script)
                continue
            if not isinstance(raw, dict) or not raw.get("topLevel") or raw.get("shadow"):
                continue
            stack = self.decode_stack(block_id, None)
            if stack:
                scripts.append(Script(blocks=stack, x=raw.get("x") or 0, y=raw.get("y") or 0))
        return scripts

    def _decode_loose_reporter(self, block_id: str, raw: List[Any]) -> Optional[Script]:
        # Top-level variable and list reporters are stored as [12|13, name, id, x, y]
        if len(raw) < 3 or raw[0] not in (VAR_PRIMITIVE, LIST_PRIMITIVE):
            self.ctx.warning(f"Skipping unrecognized top-level entry {raw!r}", block_id)
            return None
        block = self._data_reporter(raw[0], raw[1], None)
        block.id = block_id
        x = raw[3] if len(raw) > 3 else 0
        y = raw[4] if len(raw) > 4 else 0
        return Script(blocks=[block], x=x or 0, y=y or 0)

    def decode_stack(self, block_id: str, parent_id: Optional[str]) -> List[Block]:
        """Decode ``block_id`` and every block after it in its ``next`` chain."""
        stack: List[Block] = []
        seen: Set[str] = set()
        current: Optional[str] = block_id
        parent = parent_id
        while current is not None:
            if current in seen or current in self._active:
                self.ctx.error(f"Cycle in block chain at '{current}', chain cut", parent)
                break
            raw = self.raw_blocks.get(current)
            if not isinstance(raw, dict):
                self.ctx.error(f"Missing block '{current}' referenced", parent)
                break
            seen.add(current)
            proccode = (raw.get("mutation") or {}).get("proccode", "")
            if raw.get("opcode") == PROCEDURE_CALL and proccode not in self.procedures:
                # Skipped without moving ``parent``; the next block links to the last kept one
                self.ctx.error(f"Call to undefined custom block '{proccode}' skipped", current)
                current = raw.get("next")
                continue
            block = self.decode_block(current, parent)
            if stack:
                stack[-1].next = block.id
            stack.append(block)
            parent = current
            current = raw.get("next")
        if stack:
            stack[-1].next = None
        return stack

    def decode_block(self, block_id: str, parent_id: Optional[str]) -> Block:
        raw = self.raw_blocks[block_id]
        opcode = raw.get("opcode", "")
        block = Block(opcode=opcode, id=block_id, parent=parent_id, next=raw.get("next"))
        if raw.get("mutation") is not None:
            block.mutation = copy.deepcopy(raw["mutation"])

        self._active.add(block_id)
        try:
            inputs: Dict[str, BlockInput] = {}
            for slot, wire in (raw.get("inputs") or {}).items():
                inputs.update(self.decode_input(block, slot, wire))
            for name, value in (raw.get("fields") or {}).items():
                inputs[name] = self.decode_field(opcode, name, value)
        finally:
            self._active.discard(block_id)

        if not is_known_opcode(opcode):
            self.ctx.info(f"Unknown opcode '{opcode}' kept as-is", block_id)
            block.raw_inputs = copy.deepcopy(raw.get("inputs") or {})
            block.raw_fields = copy.deepcopy(raw.get("fields") or {})
            block.raw_shadows = self._referenced_shadows(raw.get("inputs") or {})
            block.inputs = inputs
            return block

        if opcode == PROCEDURE_CALL:
            inputs = self._decode_call(block, raw, inputs)

        for slot in KNOWN_BLOCK_INPUTS[opcode]:
            if slot not in inputs:
                inputs[slot] = make_default_input(opcode, slot)

        for slot, value in inputs.items():
            if shape_of(opcode, slot) == "boolean" and value.type == "block" and is_empty_not(value.value):
                inputs[slot] = BlockInput("boolean", True)

        block.inputs = inputs
        return block

    def decode_input(self, block: Block, slot: str, wire: Any) -> Dict[str, BlockInput]:
        if not isinstance(wire, list) or not wire:
            self.ctx.warning(f"Malformed input '{slot}' on {block.opcode}", block.id)
            return {}
        if wire[0] == INPUT_DIFF_BLOCK_SHADOW and len(wire) > 2 and wire[2] is not None:
            hidden = self.decode_value(block, slot, wire[2]).get(slot)
            if hidden is not None and not hidden.is_block:
                block.obscured[slot] = hidden
        return self.decode_value(block, slot, wire[1] if len(wire) > 1 else None)

    def decode_value(self, block: Block, slot: str, value: Any) -> Dict[str, BlockInput]:
        if value is None:
            return {}
        if isinstance(value, list):
            decoded = self.decode_primitive(block, value)
            return {slot: decoded} if decoded is not None else {}
        if not isinstance(value, str):
            self.ctx.warning(f"Malformed value in input '{slot}'", block.id)
            return {}

        raw = self.raw_blocks.get(value)
        if raw is None:
            self.ctx.warning(f"Input '{slot}' references missing block '{value}'", block.id)
            return {}
        if isinstance(raw, list):
            decoded = self.decode_primitive(block, raw)
            return {slot: decoded} if decoded is not None else {}
        if raw.get("shadow") and not raw.get("next"):
            return self.collapse_shadow(block, slot, raw)

        stack = self.decode_stack(value, block.id)
        if not stack:
            return {}
        if shape_of(block.opcode, slot) == "blocks" or len(stack) > 1:
            return {slot: BlockInput("blocks", stack)}
        return {slot: BlockInput("block", stack[0])}

    def decode_primitive(self, block: Block, value: List[Any]) -> Optional[BlockInput]:
        code = value[0]
        payload = value[1] if len(value) > 1 else ""
        if code in NUMBER_PRIMITIVES:
            return BlockInput("number", optional_to_number(payload))
        if code == ANGLE_NUM_PRIMITIVE:
            return BlockInput("angle", optional_to_number(payload))
        if code == COLOR_PICKER_PRIMITIVE:
            try:
                return BlockInput("color", Color.from_hex(str(payload)))
            except ValueError:
                self.ctx.warning(f"Invalid color '{payload}' kept as text", block.id)
                return BlockInput("string", payload)
        if code == TEXT_PRIMITIVE:
            return BlockInput("string", payload)
        if code == BROADCAST_PRIMITIVE:
            return BlockInput("broadcast", payload)
        if code in (VAR_PRIMITIVE, LIST_PRIMITIVE):
            return BlockInput("block", self._data_reporter(code, payload, block.id))
        self.ctx.warning(f"Unknown primitive type {code}", block.id)
        return BlockInput("string", payload)

    def _data_reporter(self, code: int, name: str, parent_id: Optional[str]) -> Block:
        if code == VAR_PRIMITIVE:
            opcode, slot, kind = VARIABLE_REPORTER, "VARIABLE", "variable"
        else:
            opcode, slot, kind = LIST_REPORTER, "LIST", "list"
        return Block(
            opcode=opcode,
            inputs={slot: BlockInput(kind, name)},
            id=self.oracle.fresh(),
            parent=parent_id,
        )

    def decode_field(self, opcode: str, name: str, value: Any) -> BlockInput:
        field_value = value[0] if isinstance(value, list) and value else value
        kind = field_type(opcode, name) or shape_of(opcode, name) or "string"
        return self._typed_literal(kind, field_value)

    def _typed_literal(self, kind: str, value: Any) -> BlockInput:
        if kind in ("number", "angle"):
            return BlockInput(kind, optional_to_number(value))
        if kind == "color" and isinstance(value, str):
            try:
                return BlockInput("color", Color.from_hex(value))
            except ValueError:
                self.ctx.warning(f"Invalid color '{value}' kept as text")
                return BlockInput("string", value)
        return BlockInput(kind, value)

    def collapse_shadow(self, block: Block, slot: str, shadow: Dict[str, Any]) -> Dict[str, BlockInput]:
        """Copy a shadow block's content down into the block that holds it."""
        if shadow.get("opcode") == PROCEDURE_PROTOTYPE:
            return self.unpack_prototype(shadow)

        fields = shadow.get("fields") or {}
        inputs = shadow.get("inputs") or {}
        if len(fields) == 1 and not inputs:
            name, value = next(iter(fields.items()))
            decoded = self.decode_field(shadow.get("opcode", ""), name, value)
            if field_type(shadow.get("opcode", ""), name) is None:
                kind = shape_of(block.opcode, slot)
                if kind is not None and not kind.startswith(("block", "custom")):
                    decoded = self._typed_literal(kind, decoded.value)
            return {slot: decoded}

        merged: Dict[str, BlockInput] = {}
        for name, wire in inputs.items():
            merged.update(self.decode_input(block, name, wire))
        for name, value in fields.items():
            merged[name] = self.decode_field(shadow.get("opcode", ""), name, value)
        return merged

    def unpack_prototype(self, prototype: Dict[str, Any]) -> Dict[str, BlockInput]:
        mutation = prototype.get("mutation") or {}
        proccode = mutation.get("proccode", "")
        names = _parse_json_list(mutation.get("argumentnames"))
        defaults = _parse_json_list(mutation.get("argumentdefaults"))

        arguments: List[CustomBlockArgument] = []
        for part in split_proccode(proccode):
            if part in ("%s", "%n"):
                name = names.pop(0) if names else ""
                default = defaults.pop(0) if defaults else ""
                arguments.append(CustomBlockArgument("numberOrString", name, optional_to_number(default)))
            elif part == "%b":
                name = names.pop(0) if names else ""
                default = defaults.pop(0) if defaults else "false"
                arguments.append(CustomBlockArgument("boolean", name, default in ("true", True)))
            else:
                arguments.append(CustomBlockArgument("label", part))

        return {
            "PROCCODE": BlockInput("string", proccode),
            "ARGUMENTS": BlockInput("customBlockArguments", arguments),
            "WARP": BlockInput("boolean", mutation.get("warp") in ("true", True)),
        }

    def _decode_call(self, block: Block, raw: Dict[str, Any], call_inputs: Dict[str, BlockInput]) -> Dict[str, BlockInput]:
        mutation = raw.get("mutation") or {}
        proccode = mutation.get("proccode", "")
        call_ids = [str(a) for a in _parse_json_list(mutation.get("argumentids"))]

        def_ids, kinds = self.procedures[proccode]
        order = def_ids if all(key in def_ids for key in call_inputs) else call_ids

        values: List[BlockInput] = []
        obscured: Dict[str, BlockInput] = {}
        for index, arg_id in enumerate(order):
            kind = kinds[index] if index < len(kinds) else "numberOrString"
            value = call_inputs.get(arg_id)
            if value is None:
                value = BlockInput("boolean", False) if kind == "boolean" else BlockInput("string", "")
            elif kind == "boolean" and value.type == "block" and is_empty_not(value.value):
                value = BlockInput("boolean", True)
            elif kind == "numberOrString" and value.type == "string" and coerce_number(value.value) is not None:
                value = BlockInput("number", coerce_number(value.value))
            values.append(value)
            if arg_id in block.obscured:
                obscured[str(index)] = block.obscured[arg_id]
        # Hidden shadows of call arguments are keyed by argument position
        block.obscured = obscured

        return {
            "PROCCODE": BlockInput("string", proccode),
            "INPUTS": BlockInput("customBlockInputValues", values),
        }

    def _referenced_shadows(self, inputs: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        """Wire dicts of the shadow blocks an opaque block's inputs point at."""
        found: Dict[str, Dict[str, Any]] = {}
        pending = [inputs]
        while pending:
            for wire in pending.pop().values():
                if not isinstance(wire, list):
                    continue
                for ref in wire[1:]:
                    raw = self.raw_blocks.get(ref) if isinstance(ref, str) else None
                    if isinstance(raw, dict) and raw.get("shadow") and ref not in found:
                        found[ref] = copy.deepcopy(raw)
                        pending.append(raw.get("inputs") or {})
        return found


def decode_variables(target: Dict[str, Any], monitors: Dict[str, Dict[str, Any]], ctx: DiagnosticContext) -> List[Variable]:
    variables: List[Variable] = []
    for var_id, payload in (target.get("variables") or {}).items():
        if not isinstance(payload, list) or len(payload) < 2:
            ctx.warning(f"Malformed variable entry '{var_id}' skipped")
            continue
        name, value = payload[0], payload[1]
        cloud = len(payload) >= 3 and payload[2] is True
        monitor = monitors.get(var_id)
        if monitor is None:
            ctx.info(f"Variable '{name}' has no monitor, using defaults")
            monitor = DEFAULT_VARIABLE_MONITOR
        mode = monitor.get("mode", "default")
        variables.append(Variable(
            name=name,
            value=value,
            id=var_id,
            cloud=cloud,
            visible=bool(monitor.get("visible", False)),
            mode=mode if mode in VARIABLE_MODES else "default",
            x=monitor.get("x") or 0,
            y=monitor.get("y") or 0,
            slider_min=monitor.get("sliderMin", 0),
            slider_max=monitor.get("sliderMax", 100),
            is_discrete=monitor.get("isDiscrete", True),
        ))
    return variables


def decode_lists(target: Dict[str, Any], monitors: Dict[str, Dict[str, Any]], ctx: DiagnosticContext) -> List[ListData]:
    lists: List[ListData] = []
    for list_id, payload in (target.get("lists") or {}).items():
        if not isinstance(payload, list) or len(payload) < 2:
            ctx.warning(f"Malformed list entry '{list_id}' skipped")
            continue
        name, value = payload[0], payload[1]
        monitor = monitors.get(list_id)
        if monitor is None:
            ctx.info(f"List '{name}' has no monitor, using defaults")
            monitor = DEFAULT_LIST_MONITOR
        lists.append(ListData(
            name=name,
            value=value or [],
            id=list_id,
            visible=bool(monitor.get("visible", False)),
            x=monitor.get("x") or 0,
            y=monitor.get("y") or 0,
            width=monitor.get("width") or None,
            height=monitor.get("height") or None,
        ))
    return lists


async def fetch_asset(get_asset_data: AssetFetcher, request: AssetRequest) -> bytes:
    try:
        data = get_asset_data(request)
        if inspect.isawaitable(data):
            data = await data
    except AssetRetrievalError:
        raise
    except Exception as exc:
        raise AssetRetrievalError(
            f"Could not retrieve {request.kind} '{request.name}' of '{request.sprite_name}'",
            str(exc),
            request,
        ) from exc
    if data is None:
        raise AssetRetrievalError(
            f"No data for {request.kind} '{request.name}' of '{request.sprite_name}'",
            request.md5ext,
            request,
        )
    return as_bytes(data)


def _asset_requests(target: Dict[str, Any]) -> List[AssetRequest]:
    requests = []
    for kind, key in (("costume", "costumes"), ("sound", "sounds")):
        for entry in target.get(key) or []:
            requests.append(AssetRequest(
                kind=kind,
                name=entry.get("name", ""),
                md5=entry.get("assetId", ""),
                ext=entry.get("dataFormat", ""),
                sprite_name=target.get("name", ""),
            ))
    return requests


def _build_assets(target: Dict[str, Any], payloads: List[bytes], ctx: DiagnosticContext) -> Tuple[List[Costume], List[Sound]]:
    remaining = iter(payloads)
    costumes: List[Costume] = []
    for entry in target.get("costumes") or []:
        costume = Costume(
            name=entry.get("name", ""),
            md5=entry.get("assetId", ""),
            ext=entry.get("dataFormat", ""),
            asset=next(remaining),
            bitmap_resolution=entry.get("bitmapResolution"),
            center_x=entry.get("rotationCenterX"),
            center_y=entry.get("rotationCenterY"),
        )
        if fill_rotation_center(costume):
            ctx.info(f"Costume '{costume.name}' has no rotation center, centered on its image")
        costumes.append(costume)
    sounds: List[Sound] = []
    for entry in target.get("sounds") or []:
        sounds.append(Sound(
            name=entry.get("name", ""),
            md5=entry.get("assetId", ""),
            ext=entry.get("dataFormat", ""),
            asset=next(remaining),
            sample_count=entry.get("sampleCount"),
            sample_rate=entry.get("rate"),
        ))
    return costumes, sounds


def validate_project_json(project_json: Any) -> Dict[str, Any]:
    """Return the stage target dict, raising ProjectParseError on bad input."""
    if not isinstance(project_json, dict):
        raise ProjectParseError("Project data is not a JSON object")
    targets = project_json.get("targets")
    if not isinstance(targets, list) or not targets:
        raise ProjectParseError("Project has no targets")
    for target in targets:
        if not isinstance(target, dict):
            raise ProjectParseError("Project target is not a JSON object")
    stages = [t for t in targets if t.get("isStage")]
    if not stages:
        raise ProjectParseError("Project has no stage target")
    return stages[0]


async def project_from_sb3_json(
    project_json: Dict[str, Any],
    get_asset_data: AssetFetcher,
    collector: Optional[DiagnosticCollector] = None,
) -> Project:
    """Decode a parsed project.json into a Project.

    ``get_asset_data`` is called once per costume and sound with an
    ``AssetRequest`` and returns the payload bytes, directly or as an
    awaitable. Diagnostics for each target are added to ``collector``.
    """
    stage_data = validate_project_json(project_json)
    targets = [stage_data] + [t for t in project_json["targets"] if not t.get("isStage")]
    monitors = {
        m.get("id"): m
        for m in project_json.get("monitors") or []
        if isinstance(m, dict)
    }

    per_target = [_asset_requests(t) for t in targets]
    fetched = await asyncio.gather(*(
        fetch_asset(get_asset_data, request) for requests in per_target for request in requests
    ))

    decoded = []
    offset = 0
    for target_data, requests in zip(targets, per_target):
        ctx = DiagnosticContext(target_name=target_data.get("name", "Stage"))
        payloads = list(fetched[offset:offset + len(requests)])
        offset += len(requests)
        costumes, sounds = _build_assets(target_data, payloads, ctx)
        blocks = target_data.get("blocks") or {}
        common = dict(
            name=target_data.get("name", ""),
            costumes=costumes,
            costume_number=target_data.get("currentCostume", 0),
            sounds=sounds,
            scripts=TargetDecoder(blocks, ctx).decode_scripts(),
            variables=decode_variables(target_data, monitors, ctx),
            lists=decode_lists(target_data, monitors, ctx),
            volume=target_data.get("volume", 100),
            layer_order=target_data.get("layerOrder", 0),
        )
        if target_data.get("isStage"):
            decoded.append(Stage(**common))
        else:
            style = target_data.get("rotationStyle", "all around")
            if style not in ROTATION_STYLE_FROM_SB3:
                ctx.warning(f"Unknown rotation style '{style}', using 'all around'")
            decoded.append(Sprite(
                **common,
                x=target_data.get("x", 0),
                y=target_data.get("y", 0),
                size=target_data.get("size", 100),
                direction=target_data.get("direction", 90),
                rotation_style=ROTATION_STYLE_FROM_SB3.get(style, "normal"),
                is_draggable=bool(target_data.get("draggable", False)),
                visible=bool(target_data.get("visible", True)),
            ))
        if collector is not None:
            collector.add_context_diagnostics(ctx)

    return Project(
        stage=decoded[0],
        sprites=decoded[1:],
        tempo=stage_data.get("tempo", 60),
        video_on=stage_data.get("videoState") == "on",
        video_alpha=stage_data.get("videoTransparency", 50),
        text_to_speech_language=stage_data.get("textToSpeechLanguage"),
    )
