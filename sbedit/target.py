from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from .assets import Costume, Sound
from .block import Block
from .data import List as ListData
from .data import Variable
from .script import Script

if TYPE_CHECKING:
    from .project import Project


ROTATION_STYLES = ("normal", "leftRight", "none")


@dataclass(eq=False)
class Target:
    name: str
    costumes: List[Costume] = field(default_factory=list)
    costume_number: int = 0
    sounds: List[Sound] = field(default_factory=list)
    scripts: List[Script] = field(default_factory=list)
    variables: List[Variable] = field(default_factory=list)
    lists: List[ListData] = field(default_factory=list)
    volume: float = 100
    layer_order: int = 0
    project: Optional["Project"] = field(default=None, repr=False)

    is_stage = False

    @property
    def blocks(self) -> List[Block]:
        """Every block of every script, nested blocks included."""
        result: List[Block] = []
        for script in self.scripts:
            result.extend(script.flatten())
        return result

    def block_index(self) -> Dict[str, Block]:
        return {block.id: block for block in self.blocks}

    def get_block(self, block_id: str) -> Optional[Block]:
        for block in self.blocks:
            if block.id == block_id:
                return block
        return None

    def get_variable(self, name: str) -> Optional[Variable]:
        for variable in self.variables:
            if variable.name == name:
                return variable
        return None

    def get_list(self, name: str) -> Optional[ListData]:
        for lst in self.lists:
            if lst.name == name:
                return lst
        return None


@dataclass(eq=False)
class Stage(Target):
    name: str = "Stage"

    is_stage = True


@dataclass(eq=False)
class Sprite(Target):
    x: float = 0
    y: float = 0
    size: float = 100
    direction: float = 90
    rotation_style: str = "normal"
    is_draggable: bool = False
    visible: bool = True

    def __post_init__(self) -> None:
        if self.rotation_style not in ROTATION_STYLES:
            raise ValueError(f"Unknown rotation style: {self.rotation_style}")
