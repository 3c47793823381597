"""
CHARACTERS and DATA sections

Reads the discrete character matrix together with the commands that describe
it (DIMENSIONS, FORMAT, ELIMINATE and the label commands). Columns removed by
ELIMINATE keep their original numbers in the file but are never stored; the
column IndexMap translates between the two numberings. Exclusion and deletion
only switch columns and rows off, the data stays in place.
"""

from typing import Dict, Iterable, List, Optional, Set

from ...core.cells import CellKind, CellStore
from ...core.indexing import ActiveSet, IndexMap
from ...core.models import DataType, ReadOptions, SectionKind, Token
from ...utils.datatypes import MAX_STATES, DataTypeDefaults
from ...utils.errors import LabelNotFoundError, NexusError
from ...utils.logging import NexusLogger
from ...writers.report_writer import ReportWriter
from ..range_set import RangeSetParser
from ..tokenizer import Tokenizer, strip_whitespace
from .assumptions import AssumptionsSection, ExclusionTarget
from .base import NexusSection
from .taxa import TaxaSection

REMOVED = IndexMap.REMOVED


class CharactersSection(NexusSection):
    """Reader for BEGIN CHARACTERS; ... END;"""

    kind = SectionKind.CHARACTERS
    implies_new_taxa = False

    MISSING_CODE = -2
    GAP_CODE = -3

    def __init__(
        self,
        taxa: TaxaSection,
        assumptions: Optional[AssumptionsSection] = None,
        datatypes: Optional[DataTypeDefaults] = None,
    ):
        super().__init__()
        self.taxa = taxa
        self.assumptions = assumptions
        self.datatypes = datatypes or DataTypeDefaults()
        self.reset()

    def reset(self) -> None:
        super().reset()
        self.ntax = 0
        self.ntax_total = 0
        self.nchar = 0
        self.nchar_total = 0
        self.new_taxa = self.implies_new_taxa

        self.datatype = DataType.STANDARD
        self.symbols = self.datatypes.symbols(DataType.STANDARD)
        self.equates: Dict[str, str] = self.datatypes.equates(DataType.STANDARD)
        self.missing = "?"
        self.gap: Optional[str] = None
        self.match_char: Optional[str] = None
        self.respect_case = False
        self.labels = True
        self.tokens = False
        self.transposing = False
        self.interleaving = False

        self.eliminated: Set[int] = set()
        self.column_map: Optional[IndexMap] = None
        self.row_map: Optional[IndexMap] = None
        self.cells: Optional[CellStore] = None
        self.active_columns: Optional[ActiveSet] = None
        self.active_rows: Optional[ActiveSet] = None

        self._original_char_labels: List[str] = []   # indexed by original column
        self.char_labels: List[str] = []              # indexed by current column
        self.state_labels: Dict[int, List[str]] = {}  # current column -> state names
        self._labels_predefined = False

        if self.assumptions is not None:
            self.assumptions.detach_target(self)

    def read(self, tokenizer: Tokenizer) -> None:
        """Read the section body through END;

        Raises:
            NexusError: On the first problem found in the section
        """
        self.is_empty = False
        self._expect_semicolon(tokenizer, f"after {self.id} block name")
        if not self.new_taxa:
            self.ntax = self.taxa.count
            self.ntax_total = self.taxa.count

        handlers = {
            "DIMENSIONS": self._handle_dimensions,
            "FORMAT": self._handle_format,
            "ELIMINATE": self._handle_eliminate,
            "TAXLABELS": self._handle_taxlabels,
            "CHARLABELS": self._handle_charlabels,
            "CHARSTATELABELS": self._handle_charstatelabels,
            "STATELABELS": self._handle_statelabels,
            "MATRIX": self._handle_matrix,
        }
        while True:
            token = self._next(tokenizer)
            command = token.upper()
            if command in ("END", "ENDBLOCK"):
                self._handle_end(tokenizer)
                return
            handler = handlers.get(command)
            if handler is None:
                self._skip_command(tokenizer, token)
            else:
                handler(tokenizer, token)

    # Commands

    def _handle_dimensions(self, tokenizer: Tokenizer, command: Token) -> None:
        if self.column_map is not None or self.cells is not None:
            raise NexusError.at("DIMENSIONS must precede ELIMINATE, character labels and MATRIX", command)

        ntax_given = False
        while True:
            token = self._next(tokenizer)
            if token.equals("NEWTAXA"):
                self.new_taxa = True
                self.taxa.reset()
            elif token.equals("NTAX"):
                self.ntax = self._read_positive_int(tokenizer, "NTAX")
                ntax_given = True
            elif token.equals("NCHAR"):
                self.nchar = self._read_positive_int(tokenizer, "NCHAR")
            elif token.equals(";"):
                break
            else:
                raise NexusError.at(f"Unexpected {token.text} in DIMENSIONS command", token)

        if self.nchar == 0:
            raise NexusError.at("NCHAR must be specified in the DIMENSIONS command", command)
        self.nchar_total = self.nchar

        if self.new_taxa:
            if not ntax_given:
                raise NexusError.at("NTAX must be specified when NEWTAXA is in effect", command)
            self.ntax_total = self.ntax
        else:
            self.ntax_total = self.taxa.count
            if not ntax_given:
                self.ntax = self.ntax_total
            elif self.ntax > self.ntax_total:
                raise NexusError.at(
                    f"NTAX in {self.id} block must be less than or equal to NTAX in TAXA block", command
                )

    def _handle_format(self, tokenizer: Tokenizer, command: Token) -> None:
        seen_other = False
        seen_case_dependent = False

        while True:
            token = self._next(tokenizer)
            if token.equals(";"):
                break

            if token.equals("DATATYPE"):
                if seen_other:
                    raise NexusError.at("DATATYPE must be the first subcommand of the FORMAT command", token)
                self._expect(tokenizer, "=", "after DATATYPE")
                value = self._next(tokenizer)
                try:
                    self.datatype = DataType(value.text.lower())
                except ValueError:
                    raise NexusError.at(
                        f"{value.text} is not a valid DATATYPE within a {self.id} block", value
                    ) from None
                self.symbols = self.datatypes.symbols(self.datatype)
                self.equates = self.datatypes.equates(self.datatype)
                if self.datatype is DataType.CONTINUOUS:
                    self.tokens = True
            elif token.equals("RESPECTCASE"):
                if seen_case_dependent:
                    raise NexusError.at(
                        "RESPECTCASE must be specified before MISSING, GAP, SYMBOLS, and MATCHCHAR in FORMAT command",
                        token,
                    )
                self.respect_case = True
            elif token.equals("MISSING"):
                self.missing = self._read_format_char(tokenizer, "MISSING")
                seen_case_dependent = True
            elif token.equals("GAP"):
                self.gap = self._read_format_char(tokenizer, "GAP")
                seen_case_dependent = True
            elif token.equals("MATCHCHAR"):
                self.match_char = self._read_format_char(tokenizer, "MATCHCHAR")
                seen_case_dependent = True
            elif token.equals("SYMBOLS"):
                self._read_symbols(tokenizer)
                seen_case_dependent = True
            elif token.equals("EQUATE"):
                self._read_equates(tokenizer)
            elif token.equals("LABELS"):
                self.labels = True
            elif token.equals("NOLABELS"):
                self.labels = False
            elif token.equals("TRANSPOSE"):
                self.transposing = True
            elif token.equals("INTERLEAVE"):
                self.interleaving = True
            elif token.equals("TOKENS"):
                self.tokens = True
            elif token.equals("NOTOKENS"):
                if self.datatype is DataType.CONTINUOUS:
                    raise NexusError.at("TOKENS must be in effect for DATATYPE=CONTINUOUS", token)
                self.tokens = False
            elif token.equals("ITEMS"):
                self._expect(tokenizer, "=", "after ITEMS")
                value = self._next(tokenizer)
                if not value.equals("STATES"):
                    raise NexusError.at("Sorry, only ITEMS=STATES supported at this time", value)
            elif token.equals("STATESFORMAT"):
                self._expect(tokenizer, "=", "after STATESFORMAT")
                value = self._next(tokenizer)
                if not value.equals("STATESPRESENT"):
                    raise NexusError.at("Sorry, only STATESFORMAT=STATESPRESENT supported at this time", value)
            else:
                NexusLogger.warning(f"Ignoring unknown FORMAT subcommand {token.text} in {self.id} section")
            seen_other = True

        if self.tokens and self.datatype.is_nucleotide:
            raise NexusError.at("TOKENS not allowed when DATATYPE is DNA, RNA or NUCLEOTIDE", command)
        for name, ch in (("MISSING", self.missing), ("GAP", self.gap), ("MATCHCHAR", self.match_char)):
            if ch is not None and not self.tokens and self._symbol_index(ch) >= 0:
                raise NexusError.at(f"{name} symbol ({ch}) is also listed among the state symbols", command)

    def _read_format_char(self, tokenizer: Tokenizer, name: str) -> str:
        self._expect(tokenizer, "=", f"after {name}")
        token = self._next(tokenizer)
        if len(token.text) != 1:
            raise NexusError.at(
                f"{name} symbol should be a single character, but {token.text} was specified", token
            )
        if token.punctuation and not token.is_plus_minus:
            raise NexusError.at(
                f"{name} symbol specified cannot be a punctuation token ({token.text} was specified)", token
            )
        if token.whitespace:
            raise NexusError.at(f"{name} symbol specified cannot be a whitespace character", token)
        return token.text

    def _read_symbols(self, tokenizer: Tokenizer) -> None:
        self._expect(tokenizer, "=", "after SYMBOLS")
        token = self._next(tokenizer, ReadOptions(double_quoted=True))
        added = strip_whitespace(token.text)
        if not self.respect_case:
            added = added.upper()

        base = self.datatypes.symbols(self.datatype)[:self.datatypes.predefined_count(self.datatype)]
        for position, ch in enumerate(added):
            if self._find(base, ch) >= 0:
                raise NexusError.at(
                    f"The symbol {ch} listed in SYMBOLS command has already been predefined for this datatype",
                    token,
                )
            if self._find(added[:position], ch) >= 0:
                raise NexusError.at(f"The symbol {ch} is listed more than once in SYMBOLS command", token)

        symbols = base + added
        if len(symbols) > MAX_STATES:
            raise NexusError.at(
                f"Too many symbols specified ({len(symbols)}); at most {MAX_STATES} states are allowed", token
            )
        self.symbols = symbols

    def _read_equates(self, tokenizer: Tokenizer) -> None:
        self._expect(tokenizer, "=", "after EQUATE")
        self._expect(tokenizer, '"', "after EQUATE=")

        while True:
            key = self._next(tokenizer)
            if key.text == '"':
                return
            if len(key.text) != 1:
                raise NexusError.at(f"EQUATE symbol must be a single character ({key.text} was specified)", key)
            if key.text == "^":
                raise NexusError.at("EQUATE symbol cannot be the ^ character", key)
            if key.punctuation and not key.is_plus_minus:
                raise NexusError.at(f"EQUATE symbol cannot be a punctuation character ({key.text})", key)
            if key.text in (self.missing, self.gap, self.match_char):
                raise NexusError.at(
                    f"EQUATE symbol cannot be the missing, gap or match character ({key.text})", key
                )
            if self._symbol_index(key.text) >= 0:
                raise NexusError.at(f"EQUATE symbol ({key.text}) is already a valid state symbol", key)

            self._expect(tokenizer, "=", f"after EQUATE symbol {key.text}")
            value = self._next(tokenizer, ReadOptions(parenthetical=True, curly_bracketed=True))
            if value.punctuation:
                raise NexusError.at(f"Invalid EQUATE value ({value.text}) for symbol {key.text}", value)
            self.equates[key.text] = value.text

    def _handle_eliminate(self, tokenizer: Tokenizer, command: Token) -> None:
        if self.nchar_total == 0:
            raise NexusError.at("NCHAR must be specified before the ELIMINATE command", command)
        if any(self._original_char_labels) or self.state_labels:
            raise NexusError.at(
                "The ELIMINATE command must appear before character (or character state) labels are specified",
                command,
            )
        if self.column_map is not None:
            raise NexusError.at(
                "Only one ELIMINATE command is allowed, and it must appear before the MATRIX command", command
            )

        parser = RangeSetParser(tokenizer, self.nchar_total, self.char_label_to_number, "character")
        indices, terminated = parser.parse()
        if not terminated:
            raise NexusError.at("Expecting ';' to terminate ELIMINATE command", command)
        if len(indices) >= self.nchar_total:
            raise NexusError.at("The ELIMINATE command cannot remove every character", command)

        self.eliminated = indices
        self.column_map = IndexMap.from_removed(self.nchar_total, indices)
        self.nchar = self.column_map.count
        NexusLogger.debug(f"{self.id}: eliminated {len(indices)} character(s), {self.nchar} remain")

    def _handle_taxlabels(self, tokenizer: Tokenizer, command: Token) -> None:
        if not self.new_taxa:
            raise NexusError.at(
                f"NEWTAXA must have been specified in DIMENSIONS command to use the TAXLABELS command in a "
                f"{self.id} block",
                command,
            )
        if self.ntax == 0:
            raise NexusError.at("NTAX must be specified before TAXLABELS command", command)

        while True:
            token = self._next(tokenizer)
            if token.equals(";"):
                break
            if self.taxa.count >= self.ntax:
                raise NexusError.at("Number of taxon labels exceeds NTAX specified in DIMENSIONS command", token)
            if self.taxa.is_defined(token.text):
                raise NexusError.at(f"Taxon label {token.text} has already been defined", token)
            self.taxa.add_label(token.text)

        # The matrix must now use these labels instead of defining new ones
        self.new_taxa = False

    def _ensure_column_map(self, command: Token) -> IndexMap:
        if self.column_map is None:
            if self.nchar_total == 0:
                raise NexusError.at(f"NCHAR must be specified before the {command.text} command", command)
            self.column_map = IndexMap.identity(self.nchar_total)
        return self.column_map

    def _store_char_labels(self, originals: List[str]) -> None:
        padded = originals + [""] * (self.nchar_total - len(originals))
        self._original_char_labels = padded
        self.char_labels = [
            label for original, label in enumerate(padded) if not self.column_map.is_removed(original)
        ]

    def _handle_charlabels(self, tokenizer: Tokenizer, command: Token) -> None:
        self._ensure_column_map(command)
        originals: List[str] = []
        while True:
            token = self._next(tokenizer)
            if token.equals(";"):
                break
            if len(originals) >= self.nchar_total:
                raise NexusError.at(
                    "Number of character labels exceeds NCHAR specified in DIMENSIONS command", token
                )
            originals.append(token.text)
        self._store_char_labels(originals)

    def _read_character_number(self, token: Token, last: int, command: str) -> int:
        if not token.text.isdigit() or not last < int(token.text) <= self.nchar_total:
            raise NexusError.at(
                f"Invalid character number ({token.text}) found in {command} command "
                "(either out of range or not interpretable as an integer)",
                token,
            )
        return int(token.text)

    def _handle_charstatelabels(self, tokenizer: Tokenizer, command: Token) -> None:
        column_map = self._ensure_column_map(command)
        originals = [""] * self.nchar_total
        self.state_labels = {}

        last = 0
        token = self._next(tokenizer)
        while not token.equals(";"):
            number = self._read_character_number(token, last, "CHARSTATELABELS")
            last = number

            token = self._next(tokenizer)
            if token.text not in ("/", ",", ";"):
                originals[number - 1] = token.text
                token = self._next(tokenizer)

            states: List[str] = []
            if token.text == "/":
                token = self._next(tokenizer)
                while token.text not in (",", ";"):
                    states.append(token.text)
                    token = self._next(tokenizer)
            elif token.text not in (",", ";"):
                raise NexusError.at(
                    f"Expecting ',' or ';' after label of character {number} but found {token.text} instead",
                    token,
                )

            current = column_map.current(number - 1)
            if current != REMOVED and states:
                self.state_labels[current] = states

            if token.equals(","):
                token = self._next(tokenizer)

        self._store_char_labels(originals)

    def _handle_statelabels(self, tokenizer: Tokenizer, command: Token) -> None:
        column_map = self._ensure_column_map(command)
        token = self._next(tokenizer)
        while not token.equals(";"):
            number = self._read_character_number(token, 0, "STATELABELS")
            states: List[str] = []
            token = self._next(tokenizer)
            while token.text not in (",", ";"):
                states.append(token.text)
                token = self._next(tokenizer)

            current = column_map.current(number - 1)
            if current != REMOVED:
                self.state_labels[current] = states

            if token.equals(","):
                token = self._next(tokenizer)

    def _handle_end(self, tokenizer: Tokenizer) -> None:
        self._expect_semicolon(tokenizer, "after END or ENDBLOCK command")
        if not any(self.char_labels) and self.state_labels and self.column_map is not None:
            self.char_labels = [
                f"Character {self.column_map.original(j) + 1}" for j in range(self.column_map.count)
            ]

    # MATRIX

    def _handle_matrix(self, tokenizer: Tokenizer, command: Token) -> None:
        if self.ntax == 0:
            raise NexusError.at(
                f"Must precede {self.id} block with a TAXA block or specify NEWTAXA and NTAX in the "
                "DIMENSIONS command",
                command,
            )
        if self.nchar_total == 0:
            raise NexusError.at("NCHAR must be specified in the DIMENSIONS command before MATRIX", command)
        if self.datatype is DataType.CONTINUOUS:
            raise NexusError.at("Continuous characters in a MATRIX are not supported", command)

        column_map = self._ensure_column_map(command)
        self.cells = CellStore(self.ntax, column_map.count)
        self.active_rows = ActiveSet(self.ntax)
        self.active_columns = ActiveSet(column_map.count)
        self._labels_predefined = any(self._original_char_labels)
        if not self._labels_predefined:
            self._original_char_labels = [""] * self.nchar_total

        positions = [REMOVED] * max(self.ntax_total, self.ntax)
        if self.transposing:
            for i in range(self.ntax):
                positions[i] = i
            self._read_pages(tokenizer, self.nchar_total, self.ntax, False, positions)
        else:
            self._read_pages(tokenizer, self.ntax, self.nchar_total, True, positions)
        self.row_map = IndexMap(positions)

        if not self._labels_predefined and any(self._original_char_labels):
            self._store_char_labels(self._original_char_labels)

        self._expect_semicolon(tokenizer, "to terminate MATRIX command")
        NexusLogger.debug(f"{self.id}: read {self.ntax} x {self.nchar} matrix")

        if self.assumptions is not None:
            self.assumptions.attach_target(
                ExclusionTarget(self, self.nchar_total, self.char_label_to_number, self.apply_exclusion)
            )

    def _read_pages(self, tokenizer: Tokenizer, lines: int, width: int, by_row: bool, positions: List[int]) -> None:
        """Read the matrix body one interleave page at a time.

        Each line holds one row (or one column when transposed) and covers
        the same span of the other dimension as every other line of its page.
        Without INTERLEAVE there is a single page covering everything.
        """
        first = 0
        page = 0
        while first < width:
            page_end: Optional[int] = None
            for line in range(lines):
                if self.labels:
                    if by_row:
                        self._read_row_label(tokenizer, line, page, positions)
                    else:
                        self._read_column_label(tokenizer, line, page)
                elif by_row and page == 0:
                    positions[line] = line

                stop = width if page_end is None else page_end
                reached = self._read_line(tokenizer, line, first, stop, by_row)

                if page_end is None:
                    if reached == first:
                        raise NexusError(
                            f"No data found for {self._line_name(line, by_row)} in interleave page {page + 1}",
                            tokenizer.position,
                        )
                    page_end = reached
                elif reached != page_end:
                    raise NexusError(
                        "Each line within an interleave page must comprise the same number of characters",
                        tokenizer.position,
                    )
                elif page_end < width:
                    self._expect_line_end(tokenizer)
            first = page_end
            page += 1

    def _line_name(self, line: int, by_row: bool) -> str:
        return f"taxon {line + 1}" if by_row else f"character {line + 1}"

    def _expect_line_end(self, tokenizer: Tokenizer) -> None:
        token = tokenizer.next(ReadOptions(newline_is_token=True))
        if not token.at_eol:
            raise NexusError.at(
                "Each line within an interleave page must comprise the same number of characters", token
            )

    def _read_row_label(self, tokenizer: Tokenizer, i: int, page: int, positions: List[int]) -> None:
        token = self._next(tokenizer)
        if token.equals(";"):
            raise NexusError.at(f"Unexpected ';' in MATRIX: expecting data for {self.ntax} taxa", token)
        label = token.text

        if page == 0 and self.new_taxa:
            if self.taxa.is_defined(label):
                raise NexusError.at(f"Data for this taxon ({label}) has already been saved", token)
            self.taxa.add_label(label)
            positions[i] = i
            return

        try:
            found = self.taxa.find(label)
        except LabelNotFoundError as e:
            raise LabelNotFoundError.at(e.message, token) from e

        if page == 0:
            if positions[found] != REMOVED:
                raise NexusError.at(f"Data for this taxon ({label}) has already been saved", token)
            if found != i:
                raise NexusError.at(
                    f"Relative order of taxa must be the same in both the TAXA and {self.id} blocks", token
                )
            positions[found] = i
        elif positions[found] != i:
            raise NexusError.at("Ordering of taxa must be identical to that in first interleave page", token)

    def _read_column_label(self, tokenizer: Tokenizer, c: int, page: int) -> None:
        token = self._next(tokenizer)
        if token.equals(";"):
            raise NexusError.at(
                f"Unexpected ';' in MATRIX: expecting data for {self.nchar_total} characters", token
            )
        label = token.text

        if page > 0:
            if self._original_char_labels[c].upper() != label.upper():
                raise NexusError.at(
                    "Ordering of characters must be identical to that in first interleave page", token
                )
        elif self._labels_predefined:
            found = self._find_char_label(label)
            if found < 0:
                raise LabelNotFoundError.at(
                    f"Could not find character named {label} among stored character labels", token
                )
            if found != c:
                raise NexusError.at("Relative order of characters must match the order of CHARLABELS", token)
        else:
            if self._find_char_label(label, limit=c) >= 0:
                raise NexusError.at(f"Data for this character ({label}) has already been saved", token)
            self._original_char_labels[c] = label

    def _read_line(self, tokenizer: Tokenizer, line: int, first: int, stop: int, by_row: bool) -> int:
        """Read states for positions first..stop-1 of one line; returns where it stopped"""
        position = first
        while position < stop:
            if by_row:
                i, original = line, position
            else:
                i, original = position, line
            if not self._read_next_state(tokenizer, i, self.column_map.current(original), original):
                return position
            position += 1
        return position

    def _read_next_state(self, tokenizer: Tokenizer, i: int, j: int, original: int) -> bool:
        """Read one cell; returns False if the end of an interleaved line was reached"""
        if self.tokens:
            options = ReadOptions(newline_is_token=self.interleaving)
        else:
            options = ReadOptions(
                parenthetical=True,
                curly_bracketed=True,
                single_character=True,
                newline_is_token=self.interleaving,
            )
        token = tokenizer.next(options)
        if token.at_eol:
            return False
        if token.at_eof:
            raise NexusError.at("Unexpected end of file encountered", token)
        if token.equals(";"):
            raise NexusError.at(
                f"Unexpected ';' in MATRIX: expecting state for taxon {i + 1}, character {original + 1}", token
            )

        if j == REMOVED:
            if self.tokens and token.text in ("(", "{"):
                self._read_token_group(tokenizer, token, j, original)
            return True

        if self.tokens:
            self._store_token_state(tokenizer, token, i, j, original)
            return True

        text = self._equate_for(token.text)
        if len(text) == 1:
            self._store_symbol(token, text, i, j, original)
        else:
            self._store_group(token, text, i, j, original)
        return True

    def _state_error(self, token: Token, state: str, i: int, original: int) -> NexusError:
        return NexusError.at(
            f"State specified ({state}) for taxon {i + 1}, character {original + 1}, "
            "not found in list of valid symbols",
            token,
        )

    def _store_symbol(self, token: Token, ch: str, i: int, j: int, original: int) -> None:
        if ch == self.missing:
            self.cells.set_missing(i, j)
        elif self.match_char is not None and ch == self.match_char:
            if i == 0:
                raise NexusError.at("The match character cannot be used in the first taxon of the matrix", token)
            self.cells.copy_cell(i, j, 0)
        elif self.gap is not None and ch == self.gap:
            self.cells.set_gap(i, j)
        else:
            k = self._symbol_index(ch)
            if k < 0:
                raise self._state_error(token, ch, i, original)
            self.cells.set_state(i, j, k)

    def _store_group(self, token: Token, text: str, i: int, j: int, original: int) -> None:
        """Store a (..) polymorphic or {..} uncertain set of symbols"""
        if text[0] not in "({" or text[-1] != (")" if text[0] == "(" else "}"):
            raise self._state_error(token, text, i, original)
        inner = strip_whitespace(text[1:-1])
        if not inner:
            raise NexusError.at(f"Empty set of states ({text}) for taxon {i + 1}, character {original + 1}", token)
        if inner[0] == "~" or inner[-1] == "~":
            raise NexusError.at(f"{text} does not represent a valid range of states", token)

        states: List[int] = []
        in_range = False
        for ch in inner:
            if ch == "~":
                if in_range:
                    raise NexusError.at(f"{text} does not represent a valid range of states", token)
                in_range = True
                continue
            k = self._symbol_index(ch)
            if k < 0:
                raise self._state_error(token, ch, i, original)
            if in_range:
                if k <= states[-1]:
                    raise NexusError.at("Last state in specified range must be greater than the first", token)
                states.extend(range(states[-1] + 1, k + 1))
                in_range = False
            else:
                states.append(k)

        self._store_states(i, j, states, text[0] == "(")

    def _store_states(self, i: int, j: int, states: List[int], polymorphic: bool) -> None:
        self.cells.set_state(i, j, states[0])
        for k in states[1:]:
            self.cells.add_state(i, j, k)
        self.cells.set_polymorphic(i, j, polymorphic)

    def _store_token_state(self, tokenizer: Tokenizer, token: Token, i: int, j: int, original: int) -> None:
        text = token.text
        if text == self.missing:
            self.cells.set_missing(i, j)
        elif self.gap is not None and text == self.gap:
            self.cells.set_gap(i, j)
        elif self.match_char is not None and text == self.match_char:
            if i == 0:
                raise NexusError.at("The match character cannot be used in the first taxon of the matrix", token)
            self.cells.copy_cell(i, j, 0)
        elif text in ("(", "{"):
            states = self._read_token_group(tokenizer, token, j, original)
            self._store_states(i, j, states, text == "(")
        else:
            self.cells.set_state(i, j, self._token_state_index(token, j, original))

    def _read_token_group(self, tokenizer: Tokenizer, opener: Token, j: int, original: int) -> List[int]:
        """Read state names up to the closing bracket; eliminated columns just skip them"""
        closer = ")" if opener.text == "(" else "}"
        options = ReadOptions(tilde_is_punctuation=True)
        states: List[int] = []
        in_range = False
        while True:
            token = self._next(tokenizer, options)
            if token.text == closer:
                break
            if token.text in (")", "}", ";"):
                raise NexusError.at(f"Expecting '{closer}' to close set of states but found {token.text}", token)
            if j == REMOVED:
                continue
            if token.text == "~":
                if not states or in_range:
                    raise NexusError.at(
                        "Tilde character ('~') cannot precede the first state in a range", token
                    )
                in_range = True
                continue
            k = self._token_state_index(token, j, original)
            if in_range:
                if k <= states[-1]:
                    raise NexusError.at("Last state in specified range must be greater than the first", token)
                states.extend(range(states[-1] + 1, k + 1))
                in_range = False
            else:
                states.append(k)

        if in_range:
            raise NexusError.at(
                f"Range of states still being specified when '{closer}' encountered", opener
            )
        if j != REMOVED and not states:
            raise NexusError.at(f"Empty set of states for character {original + 1}", opener)
        return states

    def _token_state_index(self, token: Token, j: int, original: int) -> int:
        names = self.state_labels.get(j)
        if not names:
            raise NexusError.at(f"No states were defined for character {original + 1}", token)
        for k, name in enumerate(names):
            if token.equals(name, self.respect_case):
                return k
        raise NexusError.at(f"Character state {token.text} not defined for character {original + 1}", token)

    # Symbol helpers

    def _find(self, alphabet: str, ch: str) -> int:
        if self.respect_case:
            return alphabet.find(ch)
        return alphabet.upper().find(ch.upper())

    def _symbol_index(self, ch: str) -> int:
        return self._find(self.symbols, ch)

    def _equate_for(self, text: str) -> str:
        if text in self.equates:
            return self.equates[text]
        if not self.respect_case:
            for key, value in self.equates.items():
                if key.upper() == text.upper():
                    return value
        return text

    def _find_char_label(self, label: str, limit: Optional[int] = None) -> int:
        wanted = label.upper()
        for original, existing in enumerate(self._original_char_labels[:limit]):
            if existing and existing.upper() == wanted:
                return original
        return -1

    # Queries

    def _require_matrix(self) -> CellStore:
        if self.cells is None:
            raise ValueError(f"No MATRIX has been read into the {self.id} section")
        return self.cells

    def state_symbol(self, i: int, j: int, k: int = 0) -> str:
        """Display form of the k-th state of a cell"""
        cell = self._require_matrix().cell(i, j)
        if cell.kind is CellKind.MISSING:
            return self.missing
        if cell.kind is CellKind.GAP:
            return self.gap or "-"
        state = cell.states[k]
        if self.tokens:
            return self.state_labels[j][state]
        return self.symbols[state]

    def cell_text(self, i: int, j: int) -> str:
        """Display form of a whole cell, using (..) for polymorphism and {..} for uncertainty"""
        cell = self._require_matrix().cell(i, j)
        if cell.kind is not CellKind.MULTI:
            return self.state_symbol(i, j)
        separator = " " if self.tokens else ""
        inner = separator.join(self.state_symbol(i, j, k) for k in range(len(cell.states)))
        return f"({inner})" if cell.polymorphic else f"{{{inner}}}"

    def internal_state(self, i: int, j: int, k: int = 0) -> int:
        """State index, or MISSING_CODE / GAP_CODE"""
        cell = self._require_matrix().cell(i, j)
        if cell.kind is CellKind.MISSING:
            return self.MISSING_CODE
        if cell.kind is CellKind.GAP:
            return self.GAP_CODE
        return self.cells.state(i, j, k)

    def num_states(self, i: int, j: int) -> int:
        return self._require_matrix().num_states(i, j)

    def is_missing(self, i: int, j: int) -> bool:
        return self._require_matrix().is_missing(i, j)

    def is_gap(self, i: int, j: int) -> bool:
        return self._require_matrix().is_gap(i, j)

    def is_polymorphic(self, i: int, j: int) -> bool:
        return self._require_matrix().is_polymorphic(i, j)

    def observed_state_count(self, j: int) -> int:
        return self._require_matrix().observed_states(j)

    def max_observed_state_count(self) -> int:
        """Largest observed state count over all columns, never less than 2"""
        cells = self._require_matrix()
        return max([2] + [cells.observed_states(j) for j in range(cells.ncols)])

    # Index translation

    def _require_column_map(self) -> IndexMap:
        if self.column_map is None:
            raise ValueError(f"No columns have been laid out in the {self.id} section")
        return self.column_map

    def _require_row_map(self) -> IndexMap:
        if self.row_map is None:
            raise ValueError(f"No MATRIX rows have been read into the {self.id} section")
        return self.row_map

    @staticmethod
    def _check_index(index: int, size: int, what: str) -> None:
        if not 0 <= index < size:
            raise IndexError(f"{what} index {index} out of range 0..{size - 1}")

    def current_column(self, original: int) -> int:
        return self._require_column_map().current(original)

    def original_column(self, current: int) -> int:
        return self._require_column_map().original(current)

    def current_row(self, original: int) -> int:
        return self._require_row_map().current(original)

    def original_row(self, current: int) -> int:
        return self._require_row_map().original(current)

    def is_eliminated(self, original: int) -> bool:
        self._check_index(original, self.nchar_total, "Original character")
        return original in self.eliminated

    @property
    def num_eliminated(self) -> int:
        return len(self.eliminated)

    def column_label(self, j: int) -> str:
        """Label of current column j, "" when it has none"""
        self._check_index(j, self.nchar, "Character")
        return self.char_labels[j] if j < len(self.char_labels) else ""

    def state_label(self, j: int, k: int) -> str:
        """Label of state k in current column j, "" when it has none"""
        self._check_index(j, self.nchar, "Character")
        self._check_index(k, MAX_STATES, "State")
        names = self.state_labels.get(j, [])
        return names[k] if k < len(names) else ""

    def row_label(self, i: int) -> str:
        """Taxon label of current row i, "" while NEWTAXA labels are still unread"""
        if self.row_map is not None:
            original = self.row_map.original(i)
        else:
            self._check_index(i, self.ntax, "Taxon")
            original = i
        return self.taxa.label(original) if original < self.taxa.count else ""

    def char_label_to_number(self, label: str) -> int:
        return self._find_char_label(label) + 1

    def taxon_label_to_number(self, label: str) -> int:
        return self.taxa.taxon_label_to_number(label)

    # Exclusion and deletion

    def _columns(self) -> ActiveSet:
        self._require_matrix()
        return self.active_columns

    def _rows(self) -> ActiveSet:
        self._require_matrix()
        return self.active_rows

    def exclude_column(self, j: int) -> int:
        return int(self._columns().set(j, False))

    def include_column(self, j: int) -> int:
        return int(self._columns().set(j, True))

    def delete_row(self, i: int) -> int:
        return int(self._rows().set(i, False))

    def restore_row(self, i: int) -> int:
        return int(self._rows().set(i, True))

    @staticmethod
    def _to_current(index_map: IndexMap, originals: Iterable[int]) -> List[int]:
        currents = (index_map.current(o) for o in originals)
        return [c for c in currents if c != REMOVED]

    def apply_exclusion(self, originals: Iterable[int]) -> int:
        """Exclude columns given by original index; returns how many changed"""
        return self._columns().deactivate(self._to_current(self.column_map, originals))

    def apply_inclusion(self, originals: Iterable[int]) -> int:
        return self._columns().activate(self._to_current(self.column_map, originals))

    def apply_deletion(self, originals: Iterable[int]) -> int:
        """Delete rows given by original taxon index; returns how many changed"""
        return self._rows().deactivate(self._to_current(self.row_map, originals))

    def apply_restoration(self, originals: Iterable[int]) -> int:
        return self._rows().activate(self._to_current(self.row_map, originals))

    def is_active_column(self, j: int) -> bool:
        return self._columns().is_active(j)

    def is_excluded(self, j: int) -> bool:
        return not self.is_active_column(j)

    def is_active_row(self, i: int) -> bool:
        return self._rows().is_active(i)

    def is_deleted(self, i: int) -> bool:
        return not self.is_active_row(i)

    @property
    def num_active_columns(self) -> int:
        return self._columns().active_count

    @property
    def num_active_rows(self) -> int:
        return self._rows().active_count

    def report(self) -> str:
        return ReportWriter().write_characters(self)


class DataSection(CharactersSection):
    """BEGIN DATA; behaves like CHARACTERS with NEWTAXA always in effect"""

    kind = SectionKind.DATA
    implies_new_taxa = True

    def reset(self) -> None:
        super().reset()
        self.taxa.reset()
