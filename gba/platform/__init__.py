"""Platform abstraction layer (subprocess execution)."""

from .process import ProcessError, run, stream_lines

__all__ = ["ProcessError", "run", "stream_lines"]
