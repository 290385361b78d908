"""Put the ``src`` layout on ``sys.path`` for source deployments.

Cloud Functions uploads the repository as-is and imports ``main.py`` from the
root, so the ``deploybot`` package under ``src`` must be importable without an
installed distribution.
"""

from __future__ import annotations

from pathlib import Path
import sys

_SRC_DIR = Path(__file__).resolve().parent / "src"
_SRC_STR = str(_SRC_DIR)
while _SRC_STR in sys.path:
    sys.path.remove(_SRC_STR)
sys.path.insert(0, _SRC_STR)

__all__ = ["_SRC_DIR"]
