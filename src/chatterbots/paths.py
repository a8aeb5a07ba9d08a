"""
Path helpers for repository layout.

Layout:
- data/state/: instance/user state files (gitignored)
- logs/: server logs (gitignored)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path


@lru_cache(maxsize=1)
def repo_root() -> Path:
    # This file lives at src/chatterbots/paths.py -> parents: chatterbots/ -> src/ -> repo root
    return Path(__file__).resolve().parents[2]


def resolve_repo_path(path: Path) -> Path:
    """Anchor relative paths at the repository root."""
    if path.is_absolute():
        return path
    return repo_root() / path


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)
