"""Tests for the ASSUMPTIONS reader and its link to the matrix sections"""

import pytest
from nexparse import parse_string
from nexparse.parsers.sections import AssumptionsSection, ExclusionTarget, TaxaSection
from nexparse.utils.errors import LabelNotFoundError

TAXA = """#NEXUS
BEGIN TAXA;
  DIMENSIONS NTAX=3;
  TAXLABELS A B C;
END;
"""

CHARACTERS = """BEGIN CHARACTERS;
  DIMENSIONS NCHAR=5;
  FORMAT SYMBOLS="012";
  CHARLABELS alpha beta gamma delta epsilon;
  MATRIX
    A 01210
    B 11111
    C 22220
  ;
END;
"""

ASSUMPTIONS = """BEGIN ASSUMPTIONS;
  EXSET * bad = 1-2;
  CHARSET first = 1 3-.;
  CHARSET named = beta-delta;
  TAXSET pair = A C;
END;
"""


def parse(*blocks):
    document = parse_string("".join(blocks))
    assert document.completed, document.errors
    return document


class TestSets:
    """CHARSET, TAXSET and EXSET contents"""

    def test_charsets(self):
        document = parse(TAXA, CHARACTERS, ASSUMPTIONS)
        assumptions = document.assumptions
        assert assumptions.charsets["first"] == {0, 2, 3, 4}
        assert assumptions.charsets["named"] == {1, 2, 3}
        assert assumptions.charset_names == ["first", "named"]

    def test_taxset_by_label(self):
        document = parse(TAXA, CHARACTERS, ASSUMPTIONS)
        assert document.assumptions.taxsets["pair"] == {0, 2}

    def test_default_exset_is_applied(self):
        """EXSET * excludes its characters as soon as it is read"""
        document = parse(TAXA, CHARACTERS, ASSUMPTIONS)
        characters = document.characters
        assert document.assumptions.default_exset == "bad"
        assert characters.is_excluded(0)
        assert characters.is_excluded(1)
        assert characters.num_active_columns == 3

    def test_named_exset_is_not_applied(self):
        document = parse(TAXA, CHARACTERS, ASSUMPTIONS.replace("EXSET * bad", "EXSET bad"))
        assert document.characters.num_active_columns == 5
        assert document.assumptions.apply_exclusion_set("bad") == 2
        assert document.assumptions.apply_exclusion_set("bad") == 0

    def test_unknown_exset(self):
        document = parse(TAXA, CHARACTERS, ASSUMPTIONS)
        with pytest.raises(KeyError):
            document.assumptions.apply_exclusion_set("nope")

    def test_eliminated_characters_are_skipped(self):
        characters = CHARACTERS.replace("  CHARLABELS alpha beta gamma delta epsilon;\n", "  ELIMINATE 2;\n")
        characters = characters.replace("01210", "0Z210").replace("11111", "1Z111").replace("22220", "2Z220")
        document = parse(TAXA, characters, "BEGIN ASSUMPTIONS;\n  EXSET * ex = 1-3;\nEND;\n")
        assert document.characters.num_active_columns == 2
        assert document.characters.is_excluded(0)
        assert document.characters.is_excluded(1)

    def test_report(self):
        report = parse(TAXA, CHARACTERS, ASSUMPTIONS).assumptions.report()
        assert "bad (default): 1-2" in report
        assert "first: 1 3-5" in report


class TestErrors:
    """Problems inside ASSUMPTIONS"""

    def test_charset_needs_matrix(self):
        document = parse_string(TAXA + ASSUMPTIONS)
        assert not document.completed
        assert document.errors[0].message == "A CHARACTERS or DATA section must precede the EXSET command"

    def test_unknown_taxon_label(self):
        document = parse_string(TAXA + CHARACTERS + "BEGIN ASSUMPTIONS;\n  TAXSET odd = A Z;\nEND;\n")
        assert isinstance(document.errors[0], LabelNotFoundError)

    def test_comma_is_not_a_terminator(self):
        document = parse_string(TAXA + CHARACTERS + "BEGIN ASSUMPTIONS;\n  CHARSET odd = 1, 3;\nEND;\n")
        assert document.errors[0].message == "Expecting ';' to terminate CHARSET command"

    def test_out_of_range(self):
        document = parse_string(TAXA + CHARACTERS + "BEGIN ASSUMPTIONS;\n  CHARSET big = 1-6;\nEND;\n")
        assert "out of range" in document.errors[0].message


class TestTarget:
    """The matrix section registers itself for exclusion sets"""

    def test_target_registered_after_matrix(self):
        document = parse(TAXA, CHARACTERS)
        target = document.assumptions.target
        assert target.owner is document.characters
        assert target.total_columns == 5
        assert target.resolve_label("gamma") == 3

    def test_reset_detaches_target(self):
        document = parse(TAXA, CHARACTERS, ASSUMPTIONS)
        document.characters.reset()
        assert document.assumptions.target is None
        assert document.assumptions.apply_exclusion_set("bad") == 0

    def test_detach_ignores_other_owner(self):
        assumptions = AssumptionsSection(TaxaSection())
        owner = object()
        assumptions.attach_target(ExclusionTarget(owner, 4, lambda label: 0, lambda indices: len(indices)))
        assumptions.detach_target(object())
        assert assumptions.target is not None
        assumptions.detach_target(owner)
        assert assumptions.target is None

    def test_assumptions_reset_keeps_target(self):
        document = parse(TAXA, CHARACTERS, ASSUMPTIONS)
        document.assumptions.reset()
        assert document.assumptions.exsets == {}
        assert document.assumptions.target is not None
