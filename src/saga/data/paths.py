"""Where the JSON story and power definitions are read from."""
from __future__ import annotations

import os
from pathlib import Path

DATA_DIR_ENV = "SAGA_DATA_DIR"


def get_repo_root() -> Path:
    """Checkout root; the shipped definitions sit beside ``src/``."""
    return Path(__file__).resolve().parents[3]


def get_definitions_path(base_path: Path | str | None = None) -> Path:
    """Resolve the definitions directory.

    An explicit ``base_path`` wins, then ``$SAGA_DATA_DIR``, then the shipped
    ``data/definitions`` directory.
    """
    if base_path is not None:
        return Path(base_path)
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return get_repo_root() / "data" / "definitions"
