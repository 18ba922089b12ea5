# =============================================================================
# results.py — Explicit outcome of a block load or a save session
# =============================================================================
#
#   Ok(byte_count)     — the operation ran; byte_count may be short
#   EndOfStream()      — input exhausted before a single byte was recovered
#   IoFailure(reason)  — the underlying stream raised; session aborted
#
# Callers branch with isinstance() or on the `ok` / `eof` flags.
# =============================================================================

from __future__ import annotations
from typing import NamedTuple, Union


class Ok(NamedTuple):
    byte_count: int

    ok  = True
    eof = False


class EndOfStream(NamedTuple):
    ok  = False
    eof = True

    @property
    def byte_count(self) -> int:
        return 0


class IoFailure(NamedTuple):
    reason: str

    ok  = False
    eof = False

    @property
    def byte_count(self) -> int:
        return 0


Result = Union[Ok, EndOfStream, IoFailure]
