import io
import re
from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from .constants import BITMAP_FORMATS
from .utils import gen_id


class AssetRequest(NamedTuple):
    """What the decoder asks the asset-retrieval collaborator for."""
    kind: str  # "costume" or "sound"
    name: str
    md5: str
    ext: str
    sprite_name: str

    @property
    def md5ext(self) -> str:
        return f"{self.md5}.{self.ext}" if self.ext else self.md5


@dataclass(eq=False)
class Costume:
    name: str
    md5: str
    ext: str
    asset: Optional[bytes] = None
    bitmap_resolution: Optional[float] = None
    center_x: Optional[float] = None
    center_y: Optional[float] = None
    id: str = field(default_factory=lambda: gen_id("costume"))

    @property
    def data_format(self) -> str:
        return self.ext

    @property
    def md5ext(self) -> str:
        return f"{self.md5}.{self.ext}"


@dataclass(eq=False)
class Sound:
    name: str
    md5: str
    ext: str
    asset: Optional[bytes] = None
    sample_count: Optional[int] = None
    sample_rate: Optional[int] = None
    id: str = field(default_factory=lambda: gen_id("sound"))

    @property
    def data_format(self) -> str:
        return self.ext

    @property
    def md5ext(self) -> str:
        return f"{self.md5}.{self.ext}"


def probe_image_size(data: bytes, ext: str) -> Optional[Tuple[float, float]]:
    ext = ext.lower()

    if ext in BITMAP_FORMATS:
        try:
            with Image.open(io.BytesIO(data)) as img:
                w, h = img.size
                return float(w), float(h)
        except (UnidentifiedImageError, OSError):
            return None

    if ext == "svg":
        content = data[:2000].decode("utf-8", errors="ignore")
        width_match = re.search(r"width=\"([0-9.]+)", content)
        height_match = re.search(r"height=\"([0-9.]+)", content)
        if width_match and height_match:
            return float(width_match.group(1)), float(height_match.group(1))
        viewbox_match = re.search(r"viewBox=\"[0-9.-]+ [0-9.-]+ ([0-9.]+) ([0-9.]+)\"", content)
        if viewbox_match:
            return float(viewbox_match.group(1)), float(viewbox_match.group(2))

    return None


def fill_rotation_center(costume: Costume) -> bool:
    """Center a costume that has no rotation center on its image.

    Returns True when the center was derived from the image data.
    """
    if costume.center_x is not None and costume.center_y is not None:
        return False
    if not isinstance(costume.asset, (bytes, bytearray)):
        return False
    size = probe_image_size(bytes(costume.asset), costume.ext)
    if size is None:
        return False
    costume.center_x = size[0] / 2
    costume.center_y = size[1] / 2
    return True


def as_bytes(data: Any) -> bytes:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")
    raise TypeError(f"Asset data must be bytes, got {type(data).__name__}")
