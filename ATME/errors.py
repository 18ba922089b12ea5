# =============================================================================
# errors.py — ATME exception types
# =============================================================================
#
#   TapeError            — base for everything ATME raises
#   ConfigurationError   — bad session settings; raised at session open only
#   StreamError          — the underlying byte stream failed (read or write)
#
# A StreamError never escapes a session: LoadSession / SaveSession turn it
# into an IoFailure result (see results.py). DecodeIncomplete is not an
# exception at all: a short block is reported as a short byte count.
# =============================================================================


class TapeError(Exception):
    """Base class for ATME errors."""


class ConfigurationError(TapeError, ValueError):
    """Invalid session configuration (sample rate, bit depth, channels...)."""


class StreamError(TapeError, OSError):
    """I/O failure on the stream a session owns."""
