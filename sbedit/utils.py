import os
from itertools import count


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


_id_counter = count(1)


def gen_id(prefix: str = "id") -> str:
    """Return a process-unique id for model objects created without one."""
    return f"{prefix}_{next(_id_counter)}"
