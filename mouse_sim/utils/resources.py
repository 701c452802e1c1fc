from __future__ import annotations

from pathlib import Path

RESOURCE_ROOT = Path(__file__).resolve().parents[1] / "resources"


def resource_path(*parts: str) -> str:
    """Path to a file shipped under ``mouse_sim/resources``."""
    path = RESOURCE_ROOT.joinpath(*parts)
    if not path.exists():
        raise FileNotFoundError(f"No bundled resource at {path}")
    return str(path)
