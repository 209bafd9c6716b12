from __future__ import annotations

"""
tiermint.version — package version.

Resolution order:
1. ``$TIERMINT_VERSION`` verbatim (release pipelines pin it).
2. ``BASE_VERSION`` plus a PEP 440 local segment built from
   ``git describe --always --dirty`` when running from a checkout,
   e.g. ``0.1.0+git.1a2b3c4`` or ``0.1.0+git.1a2b3c4.dirty``.
3. ``BASE_VERSION``.
"""

import os
import re
import subprocess
from pathlib import Path
from typing import Optional

BASE_VERSION = "0.1.0"

_LOCAL_ILLEGAL = re.compile(r"[^0-9A-Za-z]+")


def _describe(cwd: Path) -> Optional[str]:
    try:
        raw = subprocess.run(
            ["git", "describe", "--always", "--dirty", "--abbrev=7"],
            cwd=cwd,
            capture_output=True,
            check=True,
            text=True,
        ).stdout
    except (OSError, subprocess.CalledProcessError):
        return None
    return raw.strip() or None


def local_segment(describe: str) -> str:
    """Turn ``git describe`` output into a PEP 440 local version segment."""
    parts = [p for p in _LOCAL_ILLEGAL.split(describe.lstrip("v")) if p]
    if parts and not parts[0].startswith("g"):
        parts.insert(0, "git")
    return ".".join(parts)


def resolve_version(cwd: Optional[Path] = None) -> str:
    pinned = os.getenv("TIERMINT_VERSION")
    if pinned:
        return pinned
    desc = _describe(cwd or Path(__file__).resolve().parent)
    return f"{BASE_VERSION}+{local_segment(desc)}" if desc else BASE_VERSION


__version__ = resolve_version()

__all__ = ["BASE_VERSION", "__version__", "local_segment", "resolve_version"]
