"""
Error kinds raised by the scrambling pipeline.

Each one also derives from the built-in a caller would naturally catch, so
``except FileNotFoundError`` around ``start()`` keeps working.
"""


class ScrambleError(Exception):
    """Base class for every error raised by vidscramble."""


class SourceOpenError(ScrambleError, FileNotFoundError):
    """The input video cannot be opened."""


class SinkOpenError(ScrambleError, OSError):
    """The output writer cannot be opened once the frame geometry is known."""


class DecodeReadError(ScrambleError):
    """A single frame failed to decode."""


class SinkWriteError(ScrambleError):
    """A single frame failed to persist."""


class KeyParseError(ScrambleError, ValueError):
    """Operator-entered key text is not a valid signed 64-bit integer."""


class FrameGeometryError(ScrambleError, ValueError):
    """A frame does not match the geometry the output sink was opened with."""


class PipelineBusyError(ScrambleError, RuntimeError):
    """``start()`` was called while a run is still active."""
