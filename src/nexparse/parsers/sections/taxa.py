"""TAXA section: the registry of row labels"""

from typing import List

from ...core.models import SectionKind
from ...utils.errors import LabelNotFoundError, NexusError
from ...writers.report_writer import ReportWriter
from ..tokenizer import Tokenizer
from .base import NexusSection


class TaxaSection(NexusSection):
    """Reads DIMENSIONS NTAX and TAXLABELS and stores the taxon labels"""

    kind = SectionKind.TAXA

    def __init__(self):
        super().__init__()
        self.ntax = 0
        self._labels: List[str] = []

    def reset(self) -> None:
        super().reset()
        self.ntax = 0
        self._labels = []

    def read(self, tokenizer: Tokenizer) -> None:
        """Read the section body through END;

        Raises:
            NexusError: On malformed commands or a label count that does not
                match NTAX
        """
        self.is_empty = False
        self._expect_semicolon(tokenizer, "after TAXA block name")

        while True:
            token = self._next(tokenizer)
            if token.equals("DIMENSIONS"):
                self._handle_dimensions(tokenizer)
            elif token.equals("TAXLABELS"):
                self._handle_taxlabels(tokenizer, token)
            elif token.equals("END") or token.equals("ENDBLOCK"):
                self._expect_semicolon(tokenizer, "after END or ENDBLOCK command")
                return
            else:
                self._skip_command(tokenizer, token)

    def _handle_dimensions(self, tokenizer: Tokenizer) -> None:
        token = self._next(tokenizer)
        if not token.equals("NTAX"):
            raise NexusError.at(f"Expecting NTAX keyword but found {token.text} instead", token)
        self.ntax = self._read_positive_int(tokenizer, "NTAX")
        self._expect_semicolon(tokenizer, "to terminate DIMENSIONS command")

    def _handle_taxlabels(self, tokenizer: Tokenizer, command) -> None:
        if self.ntax <= 0:
            raise NexusError.at("NTAX must be specified before TAXLABELS command", command)
        for _ in range(self.ntax):
            token = self._next(tokenizer)
            if token.equals(";"):
                raise NexusError.at(
                    f"Expecting {self.ntax} taxon labels but found only {len(self._labels)}", token
                )
            if self.is_defined(token.text):
                raise NexusError.at(f"Taxon label {token.text} has already been defined", token)
            self._labels.append(token.text)
        self._expect_semicolon(tokenizer, "to terminate TAXLABELS command")

    # Registry

    @property
    def count(self) -> int:
        return len(self._labels)

    @property
    def labels(self) -> List[str]:
        return list(self._labels)

    def label(self, i: int) -> str:
        return self._labels[i]

    def add_label(self, label: str) -> int:
        """Append a label and return its 0-based index"""
        self.is_empty = False
        self._labels.append(label)
        self.ntax = max(self.ntax, len(self._labels))
        return len(self._labels) - 1

    def change_label(self, i: int, label: str) -> None:
        self._labels[i] = label

    def find(self, label: str) -> int:
        """0-based index of label (case-insensitive)

        Raises:
            LabelNotFoundError: If no taxon has that label
        """
        wanted = label.upper()
        for i, existing in enumerate(self._labels):
            if existing.upper() == wanted:
                return i
        raise LabelNotFoundError(f"Could not find taxon named {label} among stored taxon labels")

    def is_defined(self, label: str) -> bool:
        wanted = label.upper()
        return any(existing.upper() == wanted for existing in self._labels)

    @property
    def max_label_length(self) -> int:
        return max((len(label) for label in self._labels), default=0)

    def taxon_label_to_number(self, label: str) -> int:
        try:
            return self.find(label) + 1
        except LabelNotFoundError:
            return 0

    def report(self) -> str:
        return ReportWriter().write_taxa(self)
