from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def read_json(path: str | Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def write_json_atomic(path: str | Path, payload: Any) -> None:
    """Write JSON next to ``path`` and rename over it.

    Readers never observe a partially written file.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        os.replace(tmp_name, p)
    except BaseException:
        remove_if_exists(tmp_name)
        raise


def remove_if_exists(path: str | Path) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
