"""The Block node of the program model.

A block is identified by ``id`` within its target. ``parent`` and ``next`` are
ids, not references; nested reporter and substack blocks are held by value in
the ``block`` / ``blocks`` inputs. Blocks whose opcode is not in the static
table are *opaque*: their wire slot maps are kept in ``raw_inputs`` /
``raw_fields`` / ``mutation`` so they can be written back unchanged.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .block_input import BlockInput
from .opcode_utils import is_hat, is_known_opcode
from .utils import gen_id


@dataclass(eq=False)
class Block:
    opcode: str
    inputs: Dict[str, BlockInput] = field(default_factory=dict)
    id: str = field(default_factory=lambda: gen_id("block"))
    parent: Optional[str] = None
    next: Optional[str] = None
    # Literal shadow values hidden behind a block placed in the slot
    obscured: Dict[str, BlockInput] = field(default_factory=dict)
    # Opaque blocks only
    raw_inputs: Optional[Dict[str, Any]] = None
    raw_fields: Optional[Dict[str, Any]] = None
    mutation: Optional[Dict[str, Any]] = None
    raw_shadows: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def is_hat(self) -> bool:
        return is_hat(self.opcode)

    @property
    def is_known_block(self) -> bool:
        return is_known_opcode(self.opcode)

    def nested_blocks(self) -> List["Block"]:
        """Blocks held directly in this block's slots, in slot order."""
        nested: List[Block] = []
        for value in self.inputs.values():
            nested.extend(value.nested_blocks)
        return nested

    def walk(self) -> Iterator["Block"]:
        """Yield this block, then every nested block depth-first."""
        yield self
        for child in self.nested_blocks():
            yield from child.walk()

    @property
    def blocks(self) -> List["Block"]:
        return list(self.walk())

    def __repr__(self) -> str:
        return f"Block({self.opcode!r}, id={self.id!r})"
