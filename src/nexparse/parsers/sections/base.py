"""
Common behaviour of NEXUS section readers

A section is found by the dispatcher through its id, reset, and then asked to
read its own body up to and including END; (or ENDBLOCK;).
"""

from typing import List, Optional

from ...core.models import ReadOptions, SectionKind, Token
from ...utils.errors import NexusError
from ...utils.logging import NexusLogger
from ..tokenizer import Tokenizer


class NexusSection:
    """Base class for everything the SectionDispatcher can route to"""

    kind: SectionKind

    def __init__(self):
        self.enabled = True
        self.is_empty = True
        self.skipped_commands: List[str] = []

    @property
    def id(self) -> str:
        return self.kind.value

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def read(self, tokenizer: Tokenizer) -> None:
        """Read the section body; the dispatcher has consumed 'BEGIN name'"""
        raise NotImplementedError

    def reset(self) -> None:
        """Return to the freshly constructed state"""
        self.is_empty = True
        self.skipped_commands = []

    def report(self) -> str:
        """Human-readable summary of the stored contents"""
        raise NotImplementedError

    def char_label_to_number(self, label: str) -> int:
        """1-based column number of label, 0 if unknown"""
        return 0

    def taxon_label_to_number(self, label: str) -> int:
        """1-based row number of label, 0 if unknown"""
        return 0

    def skipping_command(self, command: str) -> None:
        self.skipped_commands.append(command)
        NexusLogger.warning(f"Skipping unknown command ({command}) in {self.id} section")

    # Helpers shared by the concrete sections

    def _next(self, tokenizer: Tokenizer, options: Optional[ReadOptions] = None) -> Token:
        token = tokenizer.next(options)
        if token.at_eof:
            raise NexusError.at(f"Unexpected end of file in {self.id} section", token)
        return token

    def _expect(self, tokenizer: Tokenizer, expected: str, context: str) -> Token:
        token = self._next(tokenizer)
        if not token.equals(expected):
            raise NexusError.at(
                f"Expecting '{expected}' {context} but found {token.text} instead", token
            )
        return token

    def _expect_semicolon(self, tokenizer: Tokenizer, context: str) -> None:
        self._expect(tokenizer, ";", context)

    def _read_positive_int(self, tokenizer: Tokenizer, name: str) -> int:
        """Read '= n' with n > 0"""
        self._expect(tokenizer, "=", f"after {name}")
        token = self._next(tokenizer)
        if not token.text.isdigit() or int(token.text) <= 0:
            raise NexusError.at(f"{name} should be greater than zero ({token.text} was specified)", token)
        return int(token.text)

    def _skip_command(self, tokenizer: Tokenizer, command: Token) -> None:
        """Skip an unrecognized command through its terminating semicolon"""
        self.skipping_command(command.text)
        while True:
            token = tokenizer.next()
            if token.at_eof:
                raise NexusError.at(f"Unexpected end of file while skipping {command.text} command", token)
            if token.equals(";"):
                return
