"""Lowering diagnostics."""

from __future__ import annotations


class LoweringError(Exception):
    """Construct outside the supported subset. Aborts the whole pass."""

    def __init__(self, msg: str, node_type: str | None = None):
        super().__init__(msg)
        self.msg = msg
        self.node_type = node_type
