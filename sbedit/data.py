from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .utils import gen_id

ScalarValue = Union[str, float, int, bool]

VARIABLE_MODES = ("default", "slider", "large")


@dataclass(eq=False)
class Variable:
    name: str
    value: ScalarValue = 0
    id: str = field(default_factory=lambda: gen_id("var"))
    cloud: bool = False
    visible: bool = True
    mode: str = "default"
    x: float = 0
    y: float = 0
    slider_min: float = 0
    slider_max: float = 100
    is_discrete: bool = True

    def __post_init__(self) -> None:
        if self.mode not in VARIABLE_MODES:
            raise ValueError(f"Unknown variable monitor mode: {self.mode}")


@dataclass(eq=False)
class List:
    name: str
    value: Any = field(default_factory=list)
    id: str = field(default_factory=lambda: gen_id("list"))
    visible: bool = True
    x: float = 0
    y: float = 0
    # None lets the player size the monitor to its contents
    width: Optional[float] = None
    height: Optional[float] = None

    def __post_init__(self) -> None:
        self.value = list(self.value)
