"""
Engine exceptions.

The learning components never raise for business conditions; these are
raised only at the edges, where caller-supplied snapshots are loaded.
"""


class MedqError(Exception):
    """Base class for medq-engine errors."""
    pass


class InputFileError(MedqError):
    """Raised when an input snapshot cannot be read or has the wrong shape."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")
