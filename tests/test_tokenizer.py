"""Tests for the NEXUS tokenizer"""

import pytest
from nexparse.core.models import ReadOptions
from nexparse.parsers.tokenizer import Tokenizer, blanks_to_underscores, strip_whitespace
from nexparse.utils.errors import NexusError


def pull_all(text, options=None, sink=None):
    tokenizer = Tokenizer.from_string(text, sink)
    result = []
    while True:
        token = tokenizer.next(options)
        if token.at_eof:
            return result
        result.append(token.text)


class TestWordsAndPunctuation:
    """Plain words, punctuation and blanks"""

    def test_punctuation_is_split_off(self):
        """Punctuation characters come back as single tokens"""
        assert pull_all("DIMENSIONS ntax=4;") == ["DIMENSIONS", "ntax", "=", "4", ";"]

    def test_underscore_becomes_blank(self):
        """Underscores outside quotes stand for blanks"""
        assert pull_all("Homo_sapiens x") == ["Homo sapiens", "x"]

    def test_hyphen_is_punctuation_by_default(self):
        assert pull_all("1-5") == ["1", "-", "5"]

    def test_hyphen_joins_word_when_requested(self):
        """With hyphen_not_punctuation a hyphen stays inside the word; a lone one is its own token"""
        options = ReadOptions(hyphen_not_punctuation=True)
        assert pull_all("a-b -", options) == ["a-b", "-"]

    def test_plus_is_always_punctuation(self):
        """hyphen_not_punctuation frees only the hyphen"""
        options = ReadOptions(hyphen_not_punctuation=True)
        assert pull_all("+5", options) == ["+", "5"]
        assert pull_all("-5 a+b", options) == ["-5", "a", "+", "b"]

    def test_tilde_only_punctuation_on_request(self):
        assert pull_all("A~C") == ["A~C"]
        assert pull_all("A~C", ReadOptions(tilde_is_punctuation=True)) == ["A", "~", "C"]

    def test_special_punctuation(self):
        """A nominated character is punctuation for that call only"""
        assert pull_all("a.b") == ["a.b"]
        assert pull_all("a.b", ReadOptions(special_punctuation=".")) == ["a", ".", "b"]

    def test_punctuation_flag(self):
        tokenizer = Tokenizer.from_string("; x")
        assert tokenizer.next().punctuation is True
        assert tokenizer.next().punctuation is False

    def test_eof_token(self):
        tokenizer = Tokenizer.from_string("   ")
        token = tokenizer.next()
        assert token.at_eof
        assert token.text == ""


class TestQuoting:
    """Single and double quotes"""

    def test_doubled_quote_inside_quoted_word(self):
        """'a''b' is the word a'b"""
        assert pull_all("'a''b'") == ["a'b"]

    def test_quoted_word_keeps_blanks_and_underscores(self):
        assert pull_all("'Homo sapiens' 'a_b' x") == ["Homo sapiens", "a_b", "x"]

    def test_doubled_quote_inside_plain_word(self):
        assert pull_all("ab''c") == ["ab'c"]

    def test_single_quote_inside_plain_word_is_an_error(self):
        with pytest.raises(NexusError, match="second single quote"):
            pull_all("ab'c")

    def test_unterminated_quote(self):
        with pytest.raises(NexusError):
            pull_all("'abc")

    def test_double_quoted_token(self):
        options = ReadOptions(double_quoted=True)
        assert pull_all('"0 1 2" x', options) == ["0 1 2", "x"]

    def test_double_quote_is_punctuation_otherwise(self):
        assert pull_all('"R=A"') == ['"', "R", "=", "A", '"']


class TestComments:
    """Bracketed comments"""

    def test_comment_is_skipped(self):
        assert pull_all("a [a comment] b") == ["a", "b"]

    def test_nested_comment(self):
        """Comments nest, and a comment ends a word"""
        assert pull_all("a[outer [inner] still outer]b") == ["a", "b"]

    def test_empty_comment(self):
        assert pull_all("[]x") == ["x"]

    def test_output_comment_goes_to_sink(self):
        received = []
        assert pull_all("[!hello world] x", sink=received.append) == ["x"]
        assert received == ["hello world"]

    def test_command_comment_saved_on_request(self):
        tokenizer = Tokenizer.from_string("[&SHOWALL] x")
        assert tokenizer.next(ReadOptions(save_command_comments=True)).text == "&SHOWALL"
        assert tokenizer.next().text == "x"

    def test_command_comment_discarded_by_default(self):
        assert pull_all("[&SHOWALL] x") == ["x"]

    def test_unterminated_comment(self):
        """End of input inside a comment is reported at the opening bracket"""
        tokenizer = Tokenizer.from_string("x [never closed")
        assert tokenizer.next().text == "x"
        with pytest.raises(NexusError) as info:
            tokenizer.next()
        assert info.value.line == 1
        assert info.value.column == 3


class TestGroupsAndModes:
    """Per-call options used by the matrix reader"""

    def test_parenthetical_group(self):
        options = ReadOptions(parenthetical=True)
        assert pull_all("(0 1) 2", options) == ["(0 1)", "2"]

    def test_curly_group(self):
        options = ReadOptions(curly_bracketed=True)
        assert pull_all("{AG}C", options) == ["{AG}", "C"]

    def test_unterminated_group(self):
        with pytest.raises(NexusError):
            pull_all("(0 1", ReadOptions(parenthetical=True))

    def test_single_character(self):
        options = ReadOptions(single_character=True)
        assert pull_all("0?1  10", options) == ["0", "?", "1", "1", "0"]

    def test_newline_as_token(self):
        tokenizer = Tokenizer.from_string("ab\ncd")
        options = ReadOptions(newline_is_token=True)
        first = tokenizer.next(options)
        newline = tokenizer.next(options)
        second = tokenizer.next(options)
        assert first.text == "ab"
        assert newline.at_eol and newline.text == "\n"
        assert second.text == "cd"

    def test_newline_is_whitespace_by_default(self):
        assert pull_all("ab\ncd") == ["ab", "cd"]


class TestPositions:
    """Offset, line and column bookkeeping"""

    def test_token_positions(self):
        tokenizer = Tokenizer.from_string("#NEXUS\nBEGIN TAXA;")
        nexus = tokenizer.next()
        begin = tokenizer.next()
        taxa = tokenizer.next()
        assert (nexus.position.offset, nexus.position.line, nexus.position.column) == (0, 1, 1)
        assert (begin.position.offset, begin.position.line, begin.position.column) == (7, 2, 1)
        assert (taxa.position.offset, taxa.position.line, taxa.position.column) == (13, 2, 7)

    def test_crlf_counts_as_one_newline(self):
        tokenizer = Tokenizer.from_string("a\r\nb\rc")
        tokenizer.next()
        b = tokenizer.next()
        c = tokenizer.next()
        assert b.position.line == 2 and b.position.column == 1
        assert b.position.offset == 3
        assert c.position.line == 3

    def test_crlf_newline_token(self):
        options = ReadOptions(newline_is_token=True)
        assert pull_all("a\r\nb", options) == ["a", "\n", "b"]

    def test_comment_characters_are_counted(self):
        tokenizer = Tokenizer.from_string("[abc]\n  x")
        token = tokenizer.next()
        assert token.position.line == 2
        assert token.position.column == 3


class TestTokenHelpers:
    """Comparison helpers on Token and module functions"""

    def test_equals_ignores_case(self):
        token = Tokenizer.from_string("Matrix").next()
        assert token.equals("MATRIX")
        assert not token.equals("MATRIX", respect_case=True)

    def test_abbreviation(self):
        """The capitalized prefix is the shortest accepted abbreviation"""
        token = Tokenizer.from_string("equ").next()
        assert token.abbreviation("EQuate")
        assert not Tokenizer.from_string("e").next().abbreviation("EQuate")
        assert not Tokenizer.from_string("equates").next().abbreviation("EQuate")

    def test_begins(self):
        token = Tokenizer.from_string("CHARSTATELABELS").next()
        assert token.begins("charstate")

    def test_plus_minus(self):
        assert Tokenizer.from_string("-").next().is_plus_minus
        assert not Tokenizer.from_string("*").next().is_plus_minus

    def test_string_helpers(self):
        assert strip_whitespace(" 0 1\t2\n") == "012"
        assert blanks_to_underscores("Homo sapiens") == "Homo_sapiens"
