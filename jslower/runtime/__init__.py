"""Runtime library for generated programs.

`prelude.py` is both importable (tests, embedding) and copied verbatim into
every program the Python backend emits.
"""

from __future__ import annotations

from pathlib import Path

from .prelude import *  # noqa: F403
from .prelude import __all__ as _prelude_all

PRELUDE_PATH = Path(__file__).parent / "prelude.py"


def prelude_source() -> str:
    """Return the prelude text exactly as it is emitted into generated programs."""
    return PRELUDE_PATH.read_text(encoding="utf-8")


__all__ = [*_prelude_all, "PRELUDE_PATH", "prelude_source"]
