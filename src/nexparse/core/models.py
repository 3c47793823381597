"""
Data models for nexparse

This module contains the small value types shared by the tokenizer, the
section parsers and the public API.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


@dataclass(frozen=True)
class FilePosition:
    """Location of a character in the input"""
    offset: int = 0   # UTF-8 bytes consumed before this character
    line: int = 0     # 1-based, 0 when unknown
    column: int = 0   # 1-based, 0 when unknown

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


@dataclass(frozen=True)
class ReadOptions:
    """Options that apply to a single Tokenizer.next() call"""
    save_command_comments: bool = False   # return [&...] comments as tokens
    parenthetical: bool = False           # (...) is one token
    curly_bracketed: bool = False         # {...} is one token
    double_quoted: bool = False           # "..." is one token
    single_character: bool = False        # next non-blank character only
    newline_is_token: bool = False        # end of line comes back as a token
    tilde_is_punctuation: bool = False
    special_punctuation: Optional[str] = None
    hyphen_not_punctuation: bool = False


DEFAULT_OPTIONS = ReadOptions()


@dataclass
class Token:
    """One semantic unit pulled from the input"""
    text: str
    position: FilePosition
    at_eof: bool = False
    at_eol: bool = False
    punctuation: bool = False
    whitespace: bool = False

    def upper(self) -> str:
        return self.text.upper()

    def equals(self, other: str, respect_case: bool = False) -> bool:
        """Compare token text with other, ignoring case unless respect_case"""
        if respect_case:
            return self.text == other
        return self.text.upper() == other.upper()

    def begins(self, prefix: str, respect_case: bool = False) -> bool:
        """True if the token text starts with prefix"""
        if respect_case:
            return self.text.startswith(prefix)
        return self.text.upper().startswith(prefix.upper())

    def abbreviation(self, keyword: str) -> bool:
        """Check whether the token is an allowed abbreviation of keyword

        The capitalized prefix of keyword is the shortest accepted form, so
        "EQuate" accepts "EQ", "EQU" and "EQUATE" but not "E".

        Args:
            keyword: Keyword with its mandatory part in upper case

        Returns:
            True if the token abbreviates keyword
        """
        required = 0
        while required < len(keyword) and keyword[required].isupper():
            required += 1
        text = self.text.upper()
        if len(text) < required or len(text) > len(keyword):
            return False
        return keyword.upper().startswith(text)

    @property
    def is_plus_minus(self) -> bool:
        return self.text in ("+", "-")


class DataType(Enum):
    """Kinds of character data a matrix section can hold"""
    STANDARD = "standard"
    DNA = "dna"
    RNA = "rna"
    NUCLEOTIDE = "nucleotide"
    PROTEIN = "protein"
    CONTINUOUS = "continuous"

    @property
    def is_nucleotide(self) -> bool:
        return self in (DataType.DNA, DataType.RNA, DataType.NUCLEOTIDE)


class SectionKind(Enum):
    """Closed set of section kinds the dispatcher can route to"""
    TAXA = "TAXA"
    CHARACTERS = "CHARACTERS"
    DATA = "DATA"
    ASSUMPTIONS = "ASSUMPTIONS"


@dataclass
class NexusDocument:
    """Result of parsing a NEXUS document"""
    taxa: Any                       # TaxaSection
    characters: Any                 # CharactersSection
    data: Any                       # DataSection
    assumptions: Any                # AssumptionsSection
    completed: bool = False         # dispatcher ran to the end without errors
    errors: List[Any] = field(default_factory=list)           # NexusError instances
    comments: List[str] = field(default_factory=list)         # [!...] output comments
    skipped_sections: List[str] = field(default_factory=list)

    @property
    def matrix(self):
        """The matrix section that was read, DATA taking precedence"""
        if self.data is not None and self.data.cells is not None:
            return self.data
        if self.characters is not None and self.characters.cells is not None:
            return self.characters
        return None

    @property
    def sections(self) -> list:
        return [s for s in (self.taxa, self.characters, self.data, self.assumptions) if s is not None]
