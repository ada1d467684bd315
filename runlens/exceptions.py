"""Exception hierarchy for runlens."""


class RunLensError(Exception):
    """Base exception for all runlens errors."""


class ReadError(RunLensError):
    """Raised when an input folder cannot be listed or history cannot be read."""


class OutputWriteError(RunLensError):
    """Raised when a report or rendered output cannot be written."""


class CaptureError(RunLensError):
    """Raised when a screenshot or browser log capture fails."""


class ConfigError(RunLensError):
    """Raised when configuration is invalid."""
