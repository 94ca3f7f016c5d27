"""Input/output helpers."""
from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


def ensure_output_dirs(paths: List[Path]) -> None:
    for folder in paths:
        folder.mkdir(parents=True, exist_ok=True)


def temp_path_for(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


def remove_temp_file(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("Could not remove temp file %s: %s", path, exc)


def atomic_copy(src: Path, dst: Path) -> None:
    """Copy ``src`` over ``dst`` through a temp file and a rename."""
    tmp = temp_path_for(dst)
    try:
        with open(src, 'rb') as reader, open(tmp, 'wb') as writer:
            shutil.copyfileobj(reader, writer)
        os.replace(tmp, dst)
    except OSError:
        remove_temp_file(tmp)
        raise
