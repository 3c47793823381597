"""
NEXUS tokenizer

Pulls one token at a time from a text stream. Comments, quoting and
whitespace are handled here so that section parsers only ever see semantic
tokens. Behaviour that the original format leaves to the caller (reading a
parenthesized group as one token, treating newlines as tokens, and so on) is
selected per call through ReadOptions.
"""

import io
from typing import Callable, List, Optional, TextIO

from ..core.models import DEFAULT_OPTIONS, FilePosition, ReadOptions, Token
from ..utils.errors import NexusError

WHITESPACE = " \t\n"
PUNCTUATION = "()[]{}/\\,;:=*'\"`+-<>"


def is_punctuation(ch: str, options: ReadOptions = DEFAULT_OPTIONS) -> bool:
    """Check whether ch is a punctuation character under options"""
    if not ch:
        return False
    if ch == "-" and options.hyphen_not_punctuation:
        return False
    if ch == "~" and options.tilde_is_punctuation:
        return True
    if options.special_punctuation and ch == options.special_punctuation:
        return True
    return ch in PUNCTUATION


def is_whitespace(ch: str, options: ReadOptions = DEFAULT_OPTIONS) -> bool:
    """Check whether ch is whitespace under options"""
    if ch == "\n" and options.newline_is_token:
        return False
    return ch != "" and ch in WHITESPACE


def strip_whitespace(text: str) -> str:
    """Remove every blank, tab and newline from text"""
    return "".join(ch for ch in text if ch not in WHITESPACE)


def blanks_to_underscores(text: str) -> str:
    """Turn blanks back into underscores for writing labels out"""
    return text.replace(" ", "_")


class Tokenizer:
    """Reads NEXUS tokens from a text stream"""

    def __init__(self, stream: TextIO, comment_sink: Optional[Callable[[str], None]] = None):
        self._stream = stream
        self._comment_sink = comment_sink

        self._lookahead = ""                       # raw character read while folding \r\n
        self._saved: Optional[str] = None          # pushed-back character
        self._saved_position = FilePosition()
        self._last_position = FilePosition()

        self._offset = 0
        self._line = 1
        self._column = 1
        self.at_eof = False

    @classmethod
    def from_string(cls, text: str, comment_sink: Optional[Callable[[str], None]] = None) -> "Tokenizer":
        return cls(io.StringIO(text), comment_sink)

    @property
    def position(self) -> FilePosition:
        """Position of the next character to be read"""
        return FilePosition(self._offset, self._line, self._column)

    def _raw(self) -> str:
        if self._lookahead:
            ch, self._lookahead = self._lookahead, ""
            return ch
        return self._stream.read(1)

    def _read_char(self) -> str:
        """Read one character, folding every newline convention into '\\n'.

        Returns an empty string at end of input.
        """
        self._last_position = self.position
        ch = self._raw()
        if ch == "":
            self.at_eof = True
            return ""

        self._offset += len(ch.encode("utf-8"))
        if ch == "\r":
            following = self._raw()
            if following == "\n":
                self._offset += 1
            else:
                self._lookahead = following
            ch = "\n"

        if ch == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    def _push_back(self, ch: str, position: FilePosition) -> None:
        self._saved = ch
        self._saved_position = position

    def _next_char(self):
        """Return the saved character if there is one, otherwise read"""
        if self._saved is not None:
            ch, position = self._saved, self._saved_position
            self._saved = None
            return ch, position
        ch = self._read_char()
        return ch, self._last_position

    def next(self, options: Optional[ReadOptions] = None) -> Token:
        """Pull the next token.

        Args:
            options: Reading options for this call only

        Returns:
            Token; at end of input the token is empty and at_eof is set

        Raises:
            NexusError: On unterminated comments, quotes and groups, or a
                lone single quote inside a word
        """
        opts = options or DEFAULT_OPTIONS
        buf: List[str] = []
        start: Optional[FilePosition] = None
        at_eol = False

        while True:
            if opts.single_character and buf:
                break

            ch, pos = self._next_char()
            if ch == "":
                break
            if start is None and not is_whitespace(ch, opts):
                start = pos

            if ch == "\n" and opts.newline_is_token:
                if buf:
                    self._push_back(ch, pos)
                else:
                    buf.append(ch)
                    at_eol = True
                break
            elif is_whitespace(ch, opts):
                if buf:
                    break
            elif ch == "_":
                buf.append(" ")
            elif ch == "[":
                command = self._read_comment(opts, pos)
                if command is not None:
                    buf.append(command)
                if buf:
                    break
                start = None
            elif ch == "(" and opts.parenthetical:
                if buf:
                    self._push_back(ch, pos)
                else:
                    buf.append(ch)
                    self._read_group(buf, "(", ")", pos)
                break
            elif ch == "{" and opts.curly_bracketed:
                if buf:
                    self._push_back(ch, pos)
                else:
                    buf.append(ch)
                    self._read_group(buf, "{", "}", pos)
                break
            elif ch == '"' and opts.double_quoted:
                if buf:
                    self._push_back(ch, pos)
                else:
                    self._read_double_quoted(buf, pos)
                break
            elif ch == "'":
                if buf:
                    # Inside an unquoted word only a doubled quote is allowed
                    following = self._read_char()
                    if following != "'":
                        raise NexusError("Expecting second single quote character", self._last_position)
                    buf.append("'")
                else:
                    self._read_quoted(buf, pos)
                    break
            elif is_punctuation(ch, opts):
                if buf:
                    self._push_back(ch, pos)
                else:
                    buf.append(ch)
                break
            else:
                buf.append(ch)

        text = "".join(buf)
        if start is None:
            start = self.position
        return Token(
            text=text,
            position=start,
            at_eof=self.at_eof and not buf,
            at_eol=at_eol,
            punctuation=len(text) == 1 and is_punctuation(text, opts),
            whitespace=len(text) == 1 and text in WHITESPACE,
        )

    def _read_comment(self, opts: ReadOptions, start: FilePosition) -> Optional[str]:
        """Consume a comment whose opening bracket was already read.

        Returns the command text for [&...] comments when they are being
        saved, otherwise None.
        """
        first = self._read_char()
        if first == "":
            raise NexusError("Unexpected end of file inside comment", start)

        printing = first == "!"
        command = first == "&" and opts.save_command_comments
        text: List[str] = ["&"] if command else []
        level = 1

        ch = first
        if not (printing or first == "&"):
            if ch == "[":
                level += 1
            elif ch == "]":
                level -= 1

        while level > 0:
            ch = self._read_char()
            if ch == "":
                raise NexusError("Unexpected end of file inside comment", start)
            if ch == "[":
                level += 1
            elif ch == "]":
                level -= 1
                if level == 0:
                    break
            if printing or command:
                text.append(ch)

        if printing:
            if self._comment_sink is not None:
                self._comment_sink("".join(text))
            return None
        if command:
            return "".join(text)
        return None

    def _read_group(self, buf: List[str], opener: str, closer: str, start: FilePosition) -> None:
        """Copy a balanced (...) or {...} group into buf"""
        level = 1
        while level > 0:
            ch = self._read_char()
            if ch == "":
                raise NexusError(f"Unexpected end of file looking for matching '{closer}'", start)
            if ch == "[":
                self._read_comment(DEFAULT_OPTIONS, self._last_position)
                continue
            if ch == opener:
                level += 1
            elif ch == closer:
                level -= 1
            buf.append(" " if ch == "_" else ch)

    def _read_double_quoted(self, buf: List[str], start: FilePosition) -> None:
        while True:
            ch = self._read_char()
            if ch == "":
                raise NexusError("Unexpected end of file inside double-quoted token", start)
            if ch == '"':
                return
            buf.append(ch)

    def _read_quoted(self, buf: List[str], start: FilePosition) -> None:
        """Copy a single-quoted word; '' stands for one literal quote"""
        while True:
            ch = self._read_char()
            if ch == "":
                raise NexusError("Unexpected end of file inside quoted token", start)
            if ch != "'":
                buf.append(ch)
                continue
            following = self._read_char()
            if following == "'":
                buf.append("'")
                continue
            if following != "":
                self._push_back(following, self._last_position)
            return
