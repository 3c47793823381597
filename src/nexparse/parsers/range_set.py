"""
Range-set parser

Reads the set notation used by ELIMINATE, CHARSET, TAXSET and EXSET:

    1 3 5-9 12-.\\2 ALL label

Numbers in the input are 1-based; the resulting index set is 0-based.
"""

from typing import Callable, NamedTuple, Optional, Set

from ..core.models import Token
from ..utils.errors import LabelNotFoundError, NexusError
from .tokenizer import Tokenizer


class ParsedSet(NamedTuple):
    """Indices read from a set specification"""
    indices: Set[int]
    terminated: bool  # True if the set ended with ';', False for ','


class RangeSetParser:
    """Parses one set specification from a tokenizer"""

    def __init__(
        self,
        tokenizer: Tokenizer,
        maximum: int,
        resolver: Optional[Callable[[str], int]] = None,
        element: str = "element",
    ):
        """
        Args:
            tokenizer: Source of tokens, positioned at the first set element
            maximum: Largest valid 1-based number
            resolver: Maps a label to its 1-based number, or 0 if unknown
            element: Word used for the set members in error messages
        """
        self.tokenizer = tokenizer
        self.maximum = maximum
        self.resolver = resolver
        self.element = element
        self.indices: Set[int] = set()

    def parse(self) -> ParsedSet:
        """Read elements up to and including ',' or ';'

        Returns:
            ParsedSet with the 0-based indices and the terminator kind

        Raises:
            NexusError: On misplaced range syntax, out-of-range numbers or
                end of input
            LabelNotFoundError: When a label cannot be resolved
        """
        self.indices = set()
        first: Optional[int] = None
        last: Optional[int] = None
        in_range = False

        while True:
            token = self.tokenizer.next()
            if token.at_eof:
                raise NexusError.at("Unexpected end of file in set specification", token)
            text = token.text

            if text == "-":
                if in_range or first is None:
                    raise NexusError.at("The symbol '-' is out of place here", token)
                in_range = True
            elif text == ".":
                if not in_range or last is not None:
                    raise NexusError.at("The symbol '.' can only be used to end a range", token)
                last = self.maximum
            elif text == "\\":
                if not in_range or last is None:
                    raise NexusError.at("The symbol '\\' can only follow a range", token)
                modulus = self._read_modulus()
                self._add_range(first, last, modulus, token)
                first, last, in_range = None, None, False
            elif in_range and last is None:
                last = self._value(token)
            else:
                if in_range:
                    self._add_range(first, last, 1, token)
                elif first is not None:
                    self._add_range(first, first, 1, token)
                first, last, in_range = None, None, False

                if text == ";":
                    return ParsedSet(self.indices, True)
                if text == ",":
                    return ParsedSet(self.indices, False)
                if token.equals("ALL"):
                    self._add_range(1, self.maximum, 1, token)
                else:
                    first = self._value(token)

    def _read_modulus(self) -> int:
        token = self.tokenizer.next()
        if not token.text.isdigit() or int(token.text) <= 0:
            raise NexusError.at(
                f"Expecting a positive number after '\\' but found {token.text} instead", token
            )
        return int(token.text)

    def _value(self, token: Token) -> int:
        """Turn a number or label into a 1-based number"""
        if token.punctuation:
            raise NexusError.at(f"Unexpected '{token.text}' in set specification", token)
        if token.text.isdigit():
            return int(token.text)
        number = self.resolver(token.text) if self.resolver else 0
        if number <= 0:
            raise LabelNotFoundError.at(
                f"Set element ({token.text}) not a number and not a valid {self.element} label", token
            )
        return number

    def _add_range(self, first: int, last: int, modulus: int, token: Token) -> None:
        if first < 1 or last > self.maximum or first > last:
            raise NexusError.at(
                f"{self.element.capitalize()} number out of range (or range incorrectly specified) "
                "in set specification", token
            )
        for number in range(first, last + 1, modulus):
            self.indices.add(number - 1)
