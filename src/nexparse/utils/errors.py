"""
Error types for nexparse

Every problem with the input data is reported as a NexusError carrying the
position of the offending token. Mistakes made by calling code (bad indices,
wrong argument types) raise the ordinary Python exceptions instead.
"""

from typing import Optional

from ..core.models import FilePosition, Token


class NexusError(Exception):
    """Data error found while reading a NEXUS document"""

    def __init__(self, message: str, position: Optional[FilePosition] = None):
        self.message = message
        self.position = position or FilePosition()
        super().__init__(str(self))

    @classmethod
    def at(cls, message: str, token: Optional[Token]) -> "NexusError":
        """Build an error located at token"""
        return cls(message, token.position if token is not None else None)

    @property
    def offset(self) -> int:
        return self.position.offset

    @property
    def line(self) -> int:
        return self.position.line

    @property
    def column(self) -> int:
        return self.position.column

    def __str__(self) -> str:
        if self.position.line:
            return f"{self.message} (line {self.position.line}, column {self.position.column})"
        return self.message


class LabelNotFoundError(NexusError):
    """A label could not be resolved to a row or column number"""
