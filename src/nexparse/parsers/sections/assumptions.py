"""
ASSUMPTIONS section

Stores named character sets, taxon sets and exclusion sets. Character-based
sets are resolved against the matrix section that most recently finished
reading a MATRIX, through the ExclusionTarget it registers here.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set

from ...core.models import SectionKind, Token
from ...utils.errors import NexusError
from ...utils.logging import NexusLogger
from ...writers.report_writer import ReportWriter
from ..range_set import RangeSetParser
from ..tokenizer import Tokenizer
from .base import NexusSection
from .taxa import TaxaSection


@dataclass
class ExclusionTarget:
    """What a matrix section exposes to the assumptions reader"""
    owner: object                               # the registering section
    total_columns: int                          # NCHAR before elimination
    resolve_label: Callable[[str], int]         # column label -> 1-based number, 0 if unknown
    apply_exclusion: Callable[[Set[int]], int]  # original indices -> number newly excluded


class AssumptionsSection(NexusSection):
    """Reads CHARSET, TAXSET and EXSET commands"""

    kind = SectionKind.ASSUMPTIONS

    def __init__(self, taxa: TaxaSection):
        super().__init__()
        self.taxa = taxa
        self.target: Optional[ExclusionTarget] = None
        self.charsets: Dict[str, Set[int]] = {}
        self.taxsets: Dict[str, Set[int]] = {}
        self.exsets: Dict[str, Set[int]] = {}
        self.default_charset: Optional[str] = None
        self.default_taxset: Optional[str] = None
        self.default_exset: Optional[str] = None

    def reset(self) -> None:
        # The registered target belongs to the matrix section and survives a reset
        super().reset()
        self.charsets = {}
        self.taxsets = {}
        self.exsets = {}
        self.default_charset = None
        self.default_taxset = None
        self.default_exset = None

    def attach_target(self, target: ExclusionTarget) -> None:
        self.target = target

    def detach_target(self, owner: object) -> None:
        """Forget the target if owner registered it"""
        if self.target is not None and self.target.owner is owner:
            self.target = None

    def read(self, tokenizer: Tokenizer) -> None:
        self.is_empty = False
        self._expect_semicolon(tokenizer, "after ASSUMPTIONS block name")

        while True:
            token = self._next(tokenizer)
            if token.equals("CHARSET"):
                self._handle_set(tokenizer, token, self.charsets, "default_charset")
            elif token.equals("TAXSET"):
                self._handle_set(tokenizer, token, self.taxsets, "default_taxset")
            elif token.equals("EXSET"):
                name = self._handle_set(tokenizer, token, self.exsets, "default_exset")
                if self.default_exset == name:
                    changed = self.apply_exclusion_set(name)
                    NexusLogger.info(f"Default exclusion set {name} excluded {changed} character(s)")
            elif token.equals("END") or token.equals("ENDBLOCK"):
                self._expect_semicolon(tokenizer, "after END or ENDBLOCK command")
                return
            else:
                self._skip_command(tokenizer, token)

    def _handle_set(self, tokenizer: Tokenizer, command: Token, store: Dict[str, Set[int]], default_attr: str) -> str:
        """Read '[*] name = set;' into store and return the name"""
        token = self._next(tokenizer)
        is_default = token.equals("*")
        if is_default:
            token = self._next(tokenizer)
        if token.punctuation:
            raise NexusError.at(f"Expecting a set name after {command.text} but found {token.text}", token)
        name = token.text
        self._expect(tokenizer, "=", f"after {command.text} name")

        if command.equals("TAXSET"):
            if self.taxa.count == 0:
                raise NexusError.at("A TAXA or DATA section must precede a TAXSET command", command)
            parser = RangeSetParser(tokenizer, self.taxa.count, self.taxa.taxon_label_to_number, "taxon")
        else:
            if self.target is None:
                raise NexusError.at(
                    f"A CHARACTERS or DATA section must precede the {command.text.upper()} command", command
                )
            parser = RangeSetParser(
                tokenizer, self.target.total_columns, self.target.resolve_label, "character"
            )

        indices, terminated = parser.parse()
        if not terminated:
            raise NexusError.at(f"Expecting ';' to terminate {command.text} command", command)

        store[name] = indices
        if is_default:
            setattr(self, default_attr, name)
        return name

    def apply_exclusion_set(self, name: str) -> int:
        """Exclude the characters of a stored EXSET from the matrix

        Returns:
            Number of characters whose state actually changed
        """
        if name not in self.exsets:
            raise KeyError(f"No exclusion set named {name}")
        if self.target is None:
            return 0
        return self.target.apply_exclusion(self.exsets[name])

    @property
    def charset_names(self) -> List[str]:
        return list(self.charsets)

    @property
    def taxset_names(self) -> List[str]:
        return list(self.taxsets)

    @property
    def exset_names(self) -> List[str]:
        return list(self.exsets)

    def report(self) -> str:
        return ReportWriter().write_assumptions(self)
