from dataclasses import dataclass, field
from typing import List, Optional, Union

from .target import Sprite, Stage, Target


@dataclass(eq=False)
class Project:
    stage: Stage = field(default_factory=Stage)
    sprites: List[Sprite] = field(default_factory=list)
    tempo: float = 60
    video_on: bool = False
    video_alpha: float = 50
    text_to_speech_language: Optional[str] = None

    def __post_init__(self) -> None:
        self.stage.project = self
        for sprite in self.sprites:
            sprite.project = self

    @property
    def targets(self) -> List[Target]:
        return [self.stage, *self.sprites]

    def sprite(self, key: Union[str, int]) -> Optional[Sprite]:
        """Look a sprite up by name or by index."""
        if isinstance(key, str):
            for sprite in self.sprites:
                if sprite.name == key:
                    return sprite
            return None
        if isinstance(key, int) and not isinstance(key, bool):
            if 0 <= key < len(self.sprites):
                return self.sprites[key]
        return None

    def add_sprite(self, sprite: Sprite) -> Sprite:
        sprite.project = self
        self.sprites.append(sprite)
        return sprite

    def remove_sprite(self, sprite: Sprite) -> None:
        self.sprites.remove(sprite)
        sprite.project = None
