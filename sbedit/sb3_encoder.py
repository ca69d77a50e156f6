"""Encode the program model back into sb3 project.json data.

The encoder re-derives everything the wire format compresses away: literal
slots get a shadow (an inline primitive or a menu shadow block), a block
placed in a literal slot keeps a hidden shadow behind it, variable and list
reporters collapse to ``[12|13, name, id]``, custom block definitions get a
``procedures_prototype`` shadow with fresh argument ids, and broadcast
messages get ids assigned in name order.
"""

import copy
import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

from .block import Block
from .block_input import BlockInput, Color
from .constants import (
    ARGUMENT_REPORTER_FOR_TYPE,
    BOOLEAN_OR_SUBSTACK,
    BROADCAST_PRIMITIVE,
    COLOR_PICKER_PRIMITIVE,
    DEFAULT_BROADCAST_MESSAGE,
    INPUT_BLOCK_NO_SHADOW,
    INPUT_DIFF_BLOCK_SHADOW,
    INPUT_SAME_BLOCK_SHADOW,
    LIST_PRIMITIVE,
    LIST_REPORTER,
    PROCEDURE_CALL,
    PROCEDURE_DEFINITION,
    PROCEDURE_PROTOTYPE,
    ROTATION_STYLE_TO_SB3,
    SB3_SEMVER,
    TEXT_PRIMITIVE,
    VAR_PRIMITIVE,
    VARIABLE_REPORTER,
)
from .diagnostics import DiagnosticCollector, DiagnosticContext
from .id_oracle import IdOracle
from .opcode_utils import make_default_input
from .opcodes import FIELD_TYPE_MAP, INPUT_KIND_MAP, InputKind
from .project import Project
from .target import Target

# Opcode prefixes of blocks that need an extension loaded
EXTENSION_PREFIXES: Dict[str, str] = {
    "pen": "pen",
    "music": "music",
    "text2speech": "text2speech",
    "translate": "translate",
    "videoSensing": "videoSensing",
    "ev3": "ev3",
    "microbit": "microbit",
    "wedo2": "wedo2",
    "makeymakey": "makeymakey",
    "boost": "boost",
    "gdxfor": "gdxfor",
}


class EncodeOptions(NamedTuple):
    include_monitors: bool = True
    semver: str = SB3_SEMVER
    agent: str = ""


@dataclass
class ProcedureArgument:
    id: str
    name: str
    type: str
    default: Any


@dataclass
class ProcedureData:
    arguments: List[ProcedureArgument]
    warp: bool


def _wire_bool(value: bool) -> str:
    return "true" if value else "false"


def _input_ids(raw_inputs: Dict[str, Any]) -> Iterable[str]:
    for wire in raw_inputs.values():
        if isinstance(wire, list):
            for ref in wire[1:]:
                if isinstance(ref, str):
                    yield ref


class BroadcastTable:
    """Broadcast message name to id mapping, ids assigned in name order."""

    def __init__(self, names: Iterable[str], oracle: IdOracle) -> None:
        self.oracle = oracle
        self.ids: Dict[str, str] = {}
        for name in sorted(set(names)):
            self.id_for(name)

    def id_for(self, name: str) -> str:
        if name not in self.ids:
            self.ids[name] = self.oracle.fresh("broadcast")
        return self.ids[name]

    @property
    def default_name(self) -> str:
        return min(self.ids) if self.ids else DEFAULT_BROADCAST_MESSAGE

    def to_sb3(self) -> Dict[str, str]:
        return {self.ids[name]: name for name in sorted(self.ids)}


def collect_broadcast_names(project: Project) -> List[str]:
    names: List[str] = []
    for target in project.targets:
        for block in target.blocks:
            for value in list(block.inputs.values()) + list(block.obscured.values()):
                if value.type == "broadcast" and value.value is not None:
                    names.append(str(value.value))
                elif value.type == "customBlockInputValues":
                    names.extend(str(v.value) for v in value.value if v.type == "broadcast")
            for ref in (block.raw_inputs or {}).values():
                if isinstance(ref, list):
                    for item in ref[1:]:
                        if isinstance(item, list) and len(item) > 1 and item[0] == BROADCAST_PRIMITIVE:
                            names.append(str(item[1]))
    return names


def collect_reserved_ids(project: Project) -> List[str]:
    reserved: List[str] = []
    for target in project.targets:
        for block in target.blocks:
            reserved.append(block.id)
            reserved.extend(block.raw_shadows)
            reserved.extend(_input_ids(block.raw_inputs or {}))
        reserved.extend(v.id for v in target.variables)
        reserved.extend(lst.id for lst in target.lists)
    return reserved


def used_extensions(project: Project) -> List[str]:
    found = set()
    for target in project.targets:
        for block in target.blocks:
            prefix = block.opcode.split("_", 1)[0]
            if prefix in EXTENSION_PREFIXES:
                found.add(EXTENSION_PREFIXES[prefix])
    return sorted(found)


class TargetEncoder:
    """Serializes one target's scripts into a flat block dict."""

    def __init__(
        self,
        target: Target,
        stage: Target,
        oracle: IdOracle,
        broadcasts: BroadcastTable,
        ctx: DiagnosticContext,
    ) -> None:
        self.target = target
        self.stage = stage
        self.oracle = oracle
        self.broadcasts = broadcasts
        self.ctx = ctx
        self.blocks: Dict[str, Dict[str, Any]] = {}
        self.unresolved: Dict[str, str] = {}
        self.procedures = self.collect_procedures()

    def collect_procedures(self) -> Dict[str, ProcedureData]:
        procedures: Dict[str, ProcedureData] = {}
        for script in self.target.scripts:
            hat = script.hat
            if hat is None or hat.opcode != PROCEDURE_DEFINITION:
                continue
            proccode = hat.inputs["PROCCODE"].value if "PROCCODE" in hat.inputs else ""
            if proccode in procedures:
                self.ctx.warning(f"Duplicate definition of custom block '{proccode}' ignored", hat.id)
                continue
            arguments = []
            declared = hat.inputs.get("ARGUMENTS")
            for arg in (declared.value if declared else []):
                if arg.type == "label":
                    continue
                arguments.append(ProcedureArgument(
                    id=self.oracle.fresh("arg"),
                    name=arg.name,
                    type=arg.type,
                    default=_wire_bool(bool(arg.default_value)) if arg.type == "boolean" else arg.default_value,
                ))
            warp = hat.inputs.get("WARP")
            procedures[proccode] = ProcedureData(arguments, bool(warp.value) if warp else False)
        return procedures

    def encode(self) -> Dict[str, Dict[str, Any]]:
        for script in self.target.scripts:
            self.serialize_stack(script.blocks, None, top_level=True, x=script.x, y=script.y)
        return self.blocks

    def _claim_id(self, block: Block) -> str:
        if block.id and block.id not in self.blocks:
            return block.id
        new_id = self.oracle.fresh()
        self.ctx.warning(f"Duplicate block id '{block.id}' renamed to '{new_id}'", block.id)
        return new_id

    def serialize_stack(
        self,
        stack: List[Block],
        parent_id: Optional[str],
        top_level: bool = False,
        x: float = 0,
        y: float = 0,
    ) -> Optional[str]:
        """Write a chain of blocks and return the id of its first block."""
        kept: List[Block] = []
        for block in stack:
            if block.opcode == PROCEDURE_CALL and self._proccode(block) not in self.procedures:
                self.ctx.error(f"Call to undefined custom block '{self._proccode(block)}' skipped", block.id)
                continue
            kept.append(block)

        ids: List[str] = []
        for block in kept:
            block_id = self._claim_id(block)
            # Reserve the slot now so nested blocks cannot take the same id
            self.blocks[block_id] = {}
            ids.append(block_id)

        for index, block in enumerate(kept):
            self.serialize_block(
                block,
                ids[index],
                parent_id if index == 0 else ids[index - 1],
                ids[index + 1] if index + 1 < len(ids) else None,
                top_level and index == 0,
                x,
                y,
            )
        return ids[0] if ids else None

    @staticmethod
    def _proccode(block: Block) -> str:
        proccode = block.inputs.get("PROCCODE")
        return proccode.value if proccode is not None else ""

    def serialize_block(
        self,
        block: Block,
        block_id: str,
        parent_id: Optional[str],
        next_id: Optional[str],
        top_level: bool,
        x: float,
        y: float,
    ) -> None:
        outer_block = self.ctx.current_block_id
        self.ctx.set_block(block.id)
        mutation = copy.deepcopy(block.mutation) if block.mutation is not None else None

        if top_level and block.is_known_block and block.opcode in (VARIABLE_REPORTER, LIST_REPORTER):
            # Loose reporters keep the compressed [12|13, name, id, x, y] form
            self.blocks[block_id] = self.data_primitive(block) + [x, y]
            self.ctx.set_block(outer_block)
            return

        if not block.is_known_block:
            inputs, fields = self.serialize_opaque(block, block_id)
        elif block.opcode == PROCEDURE_DEFINITION:
            inputs, fields = self.serialize_definition(block, block_id), {}
            mutation = None
        elif block.opcode == PROCEDURE_CALL:
            inputs, mutation = self.serialize_call(block, block_id)
            fields = {}
        else:
            inputs, fields = self.serialize_known(block, block_id)

        obj: Dict[str, Any] = {
            "opcode": block.opcode,
            "next": next_id,
            "parent": parent_id,
            "inputs": inputs,
            "fields": fields,
            "shadow": False,
            "topLevel": top_level,
        }
        if mutation is not None:
            obj["mutation"] = mutation
        if top_level:
            obj["x"] = x
            obj["y"] = y
        self.blocks[block_id] = obj
        self.ctx.set_block(outer_block)

    def serialize_known(self, block: Block, block_id: str):
        kinds = INPUT_KIND_MAP.get(block.opcode, {})
        field_types = FIELD_TYPE_MAP.get(block.opcode, {})
        for slot in block.inputs:
            if slot not in kinds and slot not in field_types:
                self.ctx.warning(f"No wire metadata for input '{slot}' on {block.opcode}, input skipped")

        fields: Dict[str, Any] = {}
        for name in field_types:
            value = block.inputs.get(name) or make_default_input(block.opcode, name)
            if value is not None:
                fields[name] = self.serialize_field(value)

        inputs: Dict[str, Any] = {}
        for slot, kind in kinds.items():
            value = block.inputs.get(slot) or make_default_input(block.opcode, slot)
            if value is None:
                continue
            fallback = block.obscured.get(slot)
            if fallback is None and kind != BROADCAST_PRIMITIVE:
                fallback = make_default_input(block.opcode, slot)
            wire = self.serialize_input(block_id, kind, value, fallback)
            if wire is not None:
                inputs[slot] = wire
        return inputs, fields

    def serialize_field(self, value: BlockInput) -> List[Any]:
        """Fields are stored as a plain [value, id] pair."""
        if value.type == "variable":
            return [value.value, self.resolve_data_id(value.value, "variable")]
        if value.type == "list":
            return [value.value, self.resolve_data_id(value.value, "list")]
        if value.type == "broadcast":
            return [value.value, self.broadcasts.id_for(str(value.value))]
        if isinstance(value.value, Color):
            return [value.value.to_hex(), None]
        return [value.value, None]

    def resolve_data_id(self, name: str, kind: str) -> str:
        """Find a variable or list id by name, sprite-local first, then Stage."""
        for target in (self.target, self.stage):
            found = target.get_variable(name) if kind == "variable" else target.get_list(name)
            if found is not None:
                return found.id
        key = f"{kind}:{name}"
        if key not in self.unresolved:
            self.unresolved[key] = self.oracle.fresh(kind)
            self.ctx.warning(f"Unresolved {kind} '{name}'")
        return self.unresolved[key]

    def serialize_input(
        self,
        parent_id: str,
        kind: InputKind,
        value: BlockInput,
        fallback: Optional[BlockInput],
    ) -> Optional[List[Any]]:
        if kind == BOOLEAN_OR_SUBSTACK:
            return self.serialize_boolean_or_substack(parent_id, value)

        if value.type in ("block", "blocks"):
            nested = value.nested_blocks
            if not nested:
                return [INPUT_SAME_BLOCK_SHADOW, self.shadow_value(parent_id, kind, fallback)]
            shadow = self.shadow_value(parent_id, kind, fallback)
            reporter = nested[0]
            if len(nested) == 1 and reporter.opcode in (VARIABLE_REPORTER, LIST_REPORTER):
                return [INPUT_DIFF_BLOCK_SHADOW, self.data_primitive(reporter), shadow]
            first = self.serialize_stack(nested, parent_id)
            if first is None:
                return [INPUT_SAME_BLOCK_SHADOW, shadow]
            return [INPUT_DIFF_BLOCK_SHADOW, first, shadow]

        return [INPUT_SAME_BLOCK_SHADOW, self.shadow_value(parent_id, kind, value)]

    def serialize_boolean_or_substack(self, parent_id: str, value: BlockInput) -> Optional[List[Any]]:
        # Boolean and substack slots carry no shadow; empty ones are omitted
        if value.type in ("block", "blocks"):
            first = self.serialize_stack(value.nested_blocks, parent_id)
            return [INPUT_BLOCK_NO_SHADOW, first] if first else None
        if value.type == "boolean" and value.value is True:
            not_id = self.oracle.fresh()
            self.blocks[not_id] = {
                "opcode": "operator_not",
                "next": None,
                "parent": parent_id,
                "inputs": {},
                "fields": {},
                "shadow": False,
                "topLevel": False,
            }
            return [INPUT_BLOCK_NO_SHADOW, not_id]
        return None

    def data_primitive(self, reporter: Block) -> List[Any]:
        if reporter.opcode == VARIABLE_REPORTER:
            name = reporter.inputs["VARIABLE"].value if "VARIABLE" in reporter.inputs else ""
            return [VAR_PRIMITIVE, name, self.resolve_data_id(name, "variable")]
        name = reporter.inputs["LIST"].value if "LIST" in reporter.inputs else ""
        return [LIST_PRIMITIVE, name, self.resolve_data_id(name, "list")]

    def shadow_value(self, parent_id: str, kind: InputKind, value: Optional[BlockInput]) -> Any:
        raw = None if value is None else value.value
        if isinstance(kind, int):
            if kind == BROADCAST_PRIMITIVE:
                name = str(raw) if raw not in (None, "") else self.broadcasts.default_name
                return [BROADCAST_PRIMITIVE, name, self.broadcasts.id_for(name)]
            if kind == COLOR_PICKER_PRIMITIVE and isinstance(raw, Color):
                return [kind, raw.to_hex()]
            if isinstance(raw, Color):
                raw = raw.to_hex()
            return [kind, "" if raw is None else raw]

        # Menu shadow block with a single field holding the choice
        shadow_id = self.oracle.fresh()
        field_name = next(iter(FIELD_TYPE_MAP.get(kind, {"VALUE": "string"})))
        self.blocks[shadow_id] = {
            "opcode": kind,
            "next": None,
            "parent": parent_id,
            "inputs": {},
            "fields": {field_name: [raw, None]},
            "shadow": True,
            "topLevel": False,
        }
        return shadow_id

    def serialize_definition(self, block: Block, block_id: str) -> Dict[str, Any]:
        proccode = self._proccode(block)
        data = self.procedures.get(proccode) or ProcedureData([], False)
        prototype_id = self.oracle.fresh()

        prototype_inputs: Dict[str, Any] = {}
        for arg in data.arguments:
            shadow_id = self.oracle.fresh()
            self.blocks[shadow_id] = {
                "opcode": ARGUMENT_REPORTER_FOR_TYPE[arg.type],
                "next": None,
                "parent": prototype_id,
                "inputs": {},
                "fields": {"VALUE": [arg.name, None]},
                "shadow": True,
                "topLevel": False,
            }
            prototype_inputs[arg.id] = [INPUT_SAME_BLOCK_SHADOW, shadow_id]

        self.blocks[prototype_id] = {
            "opcode": PROCEDURE_PROTOTYPE,
            "next": None,
            "parent": block_id,
            "inputs": prototype_inputs,
            "fields": {},
            "shadow": True,
            "topLevel": False,
            "mutation": {
                "tagName": "mutation",
                "children": [],
                "proccode": proccode,
                "argumentids": json.dumps([arg.id for arg in data.arguments]),
                "argumentnames": json.dumps([arg.name for arg in data.arguments]),
                "argumentdefaults": json.dumps([arg.default for arg in data.arguments]),
                "warp": _wire_bool(data.warp),
            },
        }
        return {"custom_block": [INPUT_SAME_BLOCK_SHADOW, prototype_id]}

    def serialize_call(self, block: Block, block_id: str):
        proccode = self._proccode(block)
        data = self.procedures[proccode]
        mutation = {
            "tagName": "mutation",
            "children": [],
            "proccode": proccode,
            "argumentids": json.dumps([arg.id for arg in data.arguments]),
            "warp": _wire_bool(data.warp),
        }

        given = block.inputs.get("INPUTS")
        values = list(given.value) if given is not None else []
        if len(values) != len(data.arguments):
            self.ctx.warning(
                f"Call to '{proccode}' passes {len(values)} arguments, definition takes {len(data.arguments)}"
            )

        inputs: Dict[str, Any] = {}
        for index, arg in enumerate(data.arguments):
            if arg.type == "boolean":
                kind: InputKind = BOOLEAN_OR_SUBSTACK
                placeholder = BlockInput("boolean", False)
            else:
                kind = TEXT_PRIMITIVE
                placeholder = BlockInput("string", "")
            value = values[index] if index < len(values) else placeholder
            fallback = block.obscured.get(str(index)) or placeholder
            wire = self.serialize_input(block_id, kind, value, fallback)
            if wire is not None:
                inputs[arg.id] = wire
        return inputs, mutation

    def serialize_opaque(self, block: Block, block_id: str):
        inputs = self._rewrite_broadcast_ids(copy.deepcopy(block.raw_inputs or {}))
        fields = copy.deepcopy(block.raw_fields or {})
        for shadow_id, shadow in block.raw_shadows.items():
            shadow = copy.deepcopy(shadow)
            if shadow.get("parent") not in block.raw_shadows:
                shadow["parent"] = block_id
            shadow["inputs"] = self._rewrite_broadcast_ids(shadow.get("inputs") or {})
            self.blocks[shadow_id] = shadow

        referenced = set(_input_ids(block.raw_inputs or {}))
        for value in block.inputs.values():
            nested = value.nested_blocks
            if nested and nested[0].id in referenced:
                self.serialize_stack(nested, block_id)
        return inputs, fields

    def _rewrite_broadcast_ids(self, raw_inputs: Dict[str, Any]) -> Dict[str, Any]:
        for wire in raw_inputs.values():
            if not isinstance(wire, list):
                continue
            for item in wire[1:]:
                if isinstance(item, list) and len(item) > 2 and item[0] == BROADCAST_PRIMITIVE:
                    item[2] = self.broadcasts.id_for(str(item[1]))
        return raw_inputs


def serialize_costumes(target: Target) -> List[Dict[str, Any]]:
    costumes = []
    for costume in target.costumes:
        entry: Dict[str, Any] = {
            "name": costume.name,
            "dataFormat": costume.ext,
            "assetId": costume.md5,
            "md5ext": costume.md5ext,
            "rotationCenterX": costume.center_x if costume.center_x is not None else 0,
            "rotationCenterY": costume.center_y if costume.center_y is not None else 0,
        }
        if costume.bitmap_resolution is not None:
            entry["bitmapResolution"] = costume.bitmap_resolution
        costumes.append(entry)
    return costumes


def serialize_sounds(target: Target) -> List[Dict[str, Any]]:
    return [
        {
            "name": sound.name,
            "assetId": sound.md5,
            "dataFormat": sound.ext,
            "format": "",
            "rate": sound.sample_rate or 0,
            "sampleCount": sound.sample_count or 0,
            "md5ext": sound.md5ext,
        }
        for sound in target.sounds
    ]


def build_monitors(target: Target) -> List[Dict[str, Any]]:
    sprite_name = None if target.is_stage else target.name
    monitors: List[Dict[str, Any]] = []
    for variable in target.variables:
        monitors.append({
            "id": variable.id,
            "mode": variable.mode,
            "opcode": VARIABLE_REPORTER,
            "params": {"VARIABLE": variable.name},
            "spriteName": sprite_name,
            "value": variable.value,
            "width": 0,
            "height": 0,
            "x": variable.x,
            "y": variable.y,
            "visible": variable.visible,
            "sliderMin": variable.slider_min,
            "sliderMax": variable.slider_max,
            "isDiscrete": variable.is_discrete,
        })
    for lst in target.lists:
        monitors.append({
            "id": lst.id,
            "mode": "list",
            "opcode": LIST_REPORTER,
            "params": {"LIST": lst.name},
            "spriteName": sprite_name,
            "value": lst.value,
            "width": lst.width or 0,
            "height": lst.height or 0,
            "x": lst.x,
            "y": lst.y,
            "visible": lst.visible,
        })
    return monitors


def serialize_target(target: Target, blocks: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    variables: Dict[str, List[Any]] = {}
    for variable in target.variables:
        payload: List[Any] = [variable.name, variable.value]
        if variable.cloud:
            payload.append(True)
        variables[variable.id] = payload
    return {
        "isStage": target.is_stage,
        "name": target.name,
        "variables": variables,
        "lists": {lst.id: [lst.name, list(lst.value)] for lst in target.lists},
        "broadcasts": {},
        "blocks": blocks,
        "comments": {},
        "currentCostume": target.costume_number,
        "costumes": serialize_costumes(target),
        "sounds": serialize_sounds(target),
        "volume": target.volume,
        "layerOrder": target.layer_order,
    }


def project_to_sb3_json(
    project: Project,
    options: EncodeOptions = EncodeOptions(),
    collector: Optional[DiagnosticCollector] = None,
) -> Dict[str, Any]:
    """Encode a Project as a project.json dict.

    Recoverable problems (calls to undefined custom blocks, unresolved
    variable names, slots with no wire metadata) are skipped and reported
    to ``collector``.
    """
    oracle = IdOracle(collect_reserved_ids(project))
    broadcasts = BroadcastTable(collect_broadcast_names(project), oracle)

    targets: List[Dict[str, Any]] = []
    monitors: List[Dict[str, Any]] = []
    for target in project.targets:
        ctx = DiagnosticContext(target_name=target.name)
        blocks = TargetEncoder(target, project.stage, oracle, broadcasts, ctx).encode()
        data = serialize_target(target, blocks)
        if target.is_stage:
            data.update({
                "tempo": project.tempo,
                "videoTransparency": project.video_alpha,
                "videoState": "on" if project.video_on else "off",
                "textToSpeechLanguage": project.text_to_speech_language,
            })
        else:
            data.update({
                "visible": target.visible,
                "x": target.x,
                "y": target.y,
                "size": target.size,
                "direction": target.direction,
                "draggable": target.is_draggable,
                "rotationStyle": ROTATION_STYLE_TO_SB3[target.rotation_style],
            })
        targets.append(data)
        if options.include_monitors:
            monitors.extend(build_monitors(target))
        if collector is not None:
            collector.add_context_diagnostics(ctx)

    # Broadcasts live on the stage; filled last so defaults registered while
    # encoding are included
    targets[0]["broadcasts"] = broadcasts.to_sb3()

    meta: Dict[str, Any] = {"semver": options.semver}
    if options.agent:
        meta["agent"] = options.agent
    return {
        "targets": targets,
        "monitors": monitors,
        "extensions": used_extensions(project),
        "meta": meta,
    }
